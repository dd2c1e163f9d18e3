"""
Staff user model for authentication and audit attribution.
"""
from werkzeug.security import check_password_hash, generate_password_hash

from gymledger import db

from .base import BaseModel


class User(BaseModel):
    """
    Staff account allowed to operate the ledger.

    Attributes:
        username (str): Unique username for user identification
        email (str): User's email address (unique)
        password_hash (str): Hashed password
        is_admin (bool): Whether the user may run admin-only operations
    """
    __tablename__ = 'users'

    username = db.Column(db.String(50), unique=True, nullable=False, index=True)
    email = db.Column(db.String(100), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    is_admin = db.Column(db.Boolean, nullable=False, default=False)

    def __init__(self, username, email, password, is_admin=False):
        self.username = username
        self.email = email
        self.password_hash = generate_password_hash(password)
        self.is_admin = is_admin

    def check_password(self, password):
        """
        Verify a password against the stored hash.

        Args:
            password (str): Password to check

        Returns:
            bool: True if password matches, False otherwise
        """
        return check_password_hash(self.password_hash, password)

    def __repr__(self):
        return f"<User {self.username}>"
