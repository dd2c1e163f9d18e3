"""
Base configuration module with common settings.
"""
import os


class BaseConfig:
    """Base configuration class with common settings."""

    # Flask settings
    SECRET_KEY = os.getenv("SECRET_KEY", "default-dev-key-not-for-production")
    DEBUG = False
    TESTING = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Database settings
    DB_ENGINE = os.getenv("DB_ENGINE", "mysql")
    DB_USER = os.getenv("DB_USER", "user")
    DB_PASSWORD = os.getenv("DB_PASSWORD", "password")
    DB_HOST = os.getenv("DB_HOST", "localhost")
    DB_PORT = os.getenv("DB_PORT", "3306")
    DB_NAME = os.getenv("DB_NAME", "gym_ledger_db")

    # Use pymysql if DB_ENGINE doesn't specify dialect
    if DB_ENGINE == "mysql":
        SQLALCHEMY_DATABASE_URI = f"mysql+pymysql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
    else:
        SQLALCHEMY_DATABASE_URI = f"{DB_ENGINE}://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # JWT settings
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "default-jwt-key-not-for-production")
    JWT_ACCESS_TOKEN_EXPIRES = int(os.getenv("JWT_ACCESS_TOKEN_EXPIRES", 3600))  # 1 hour
    JWT_REFRESH_TOKEN_EXPIRES = int(os.getenv("JWT_REFRESH_TOKEN_EXPIRES", 604800))  # 7 days
    JWT_ERROR_MESSAGE_KEY = "message"
    # JWT errors reach Flask-JWT-Extended handlers through Flask-RESTX
    PROPAGATE_EXCEPTIONS = True

    # API settings
    API_TITLE = "Gym Ledger API"
    API_VERSION = "1.0"
    API_DESCRIPTION = "Subscription, session and payment accounting for gym operations"

    # Accounting settings
    CURRENCY_QUANTUM = os.getenv("CURRENCY_QUANTUM", "0.01")
    DEFAULT_PAYMENT_METHOD = os.getenv("DEFAULT_PAYMENT_METHOD", "cash")
    DAYS_PER_PLAN_MONTH = int(os.getenv("DAYS_PER_PLAN_MONTH", 30))
    RECEIPT_PREFIX = os.getenv("RECEIPT_PREFIX", "RCPT")
