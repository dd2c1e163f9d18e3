"""
Pytest configuration and fixtures.
"""
import os
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from flask_jwt_extended import create_access_token

from gymledger import create_app
from gymledger import db as _db
from gymledger.models import SessionStatus, SessionType, SubscriptionPlan, TrainingSession, User


@pytest.fixture(scope="session")
def app():
    """
    Create a Flask application configured for testing.

    Returns:
        Flask: The Flask application instance.
    """
    os.environ["FLASK_ENV"] = "testing"

    app = create_app('testing')

    # Use the app context for the duration of the test session
    with app.app_context():
        yield app


@pytest.fixture(scope="function", autouse=True)
def fresh_schema(app):
    """
    Give every test an empty schema.

    The session is removed before dropping tables so no connection holds a
    transaction open across tests.
    """
    _db.create_all()
    yield
    _db.session.remove()
    _db.drop_all()


@pytest.fixture(scope="function")
def client(app):
    """
    Create a test client for the Flask application.

    Returns:
        FlaskClient: A test client for the Flask application.
    """
    return app.test_client()


@pytest.fixture(scope="function")
def db(app):
    """
    Fixture for the SQLAlchemy database object.

    Returns:
        SQLAlchemy db: The database object for testing.
    """
    return _db


@pytest.fixture
def staff_user(db):
    user = User(username="frontdesk", email="frontdesk@example.com", password="password123")
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def admin_user(db):
    user = User(username="manager", email="manager@example.com", password="password123", is_admin=True)
    db.session.add(user)
    db.session.commit()
    return user


def _headers_for(user):
    token = create_access_token(identity=str(user.id), additional_claims={'is_admin': user.is_admin})
    return {
        'Authorization': f'Bearer {token}',
        'Content-Type': 'application/json'
    }


@pytest.fixture
def auth_headers(staff_user):
    """Authorization headers for a regular staff member."""
    return _headers_for(staff_user)


@pytest.fixture
def admin_headers(admin_user):
    """Authorization headers for an admin."""
    return _headers_for(admin_user)


@pytest.fixture
def make_plan(db):
    """Factory creating catalog plans."""
    def _make_plan(name="10 Sessions", price="100.00", sessions_count=10, duration_months=1,
                   signup_fee="0.00", **kwargs):
        plan = SubscriptionPlan(
            name=name,
            price=Decimal(price),
            sessions_count=sessions_count,
            duration_months=duration_months,
            signup_fee=Decimal(signup_fee),
            **kwargs
        )
        db.session.add(plan)
        db.session.commit()
        return plan
    return _make_plan


@pytest.fixture
def make_session(db):
    """Factory creating training sessions relative to a base time."""
    base = datetime(2026, 1, 1, 9, 0, 0)

    def _make_session(member_id, days_after=0, session_type=SessionType.CONTRACTUAL.value,
                      status=SessionStatus.COMPLETED.value):
        training_session = TrainingSession(
            member_id=member_id,
            scheduled_start=base + timedelta(days=days_after),
            session_type=session_type,
            status=status,
        )
        db.session.add(training_session)
        db.session.commit()
        return training_session
    return _make_session
