#!/usr/bin/env python
"""
Script to create an admin staff account.
"""
from gymledger import create_app, db
from gymledger.models.user import User

app = create_app()

with app.app_context():
    # Check if admin user already exists
    admin = User.query.filter_by(username='admin').first()

    if not admin:
        admin = User(username='admin', email='admin@example.com', password='admin123', is_admin=True)
        db.session.add(admin)
        db.session.commit()
        print(f'Admin staff account created with ID: {admin.id}')
    elif not admin.is_admin:
        # Ensure existing admin user has admin privileges
        admin.is_admin = True
        db.session.commit()
        print(f'Updated staff ID: {admin.id} with admin privileges')
    else:
        print(f'Admin staff account already exists with ID: {admin.id}')
