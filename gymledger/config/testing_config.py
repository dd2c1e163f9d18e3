"""
Testing environment configuration module.
"""
import os

from gymledger.config.base_config import BaseConfig


class TestingConfig(BaseConfig):
    """Testing environment configuration class."""

    TESTING = True
    DEBUG = True

    # In-memory SQLite unless a real test database is provided
    DB_NAME = "gym_ledger_test_db"
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite://")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # JWT settings for testing
    JWT_ACCESS_TOKEN_EXPIRES = 300  # 5 minutes
    JWT_REFRESH_TOKEN_EXPIRES = 1800  # 30 minutes
    JWT_ERROR_MESSAGE_KEY = "message"
    # Use a predictable key for testing
    JWT_SECRET_KEY = "test-jwt-secret-key-for-testing-only"
