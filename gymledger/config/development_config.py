"""
Development environment configuration module.
"""
from gymledger.config.base_config import BaseConfig


class DevelopmentConfig(BaseConfig):
    """Development environment configuration class."""

    DEBUG = True
    LOG_LEVEL = "DEBUG"
    SQLALCHEMY_ECHO = True  # Log SQL queries

    DB_NAME = "gym_ledger_dev_db"
    SQLALCHEMY_DATABASE_URI = "mysql+pymysql://user:password@db:3306/gym_ledger_dev_db"
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # JWT settings for development
    JWT_ACCESS_TOKEN_EXPIRES = 86400  # 24 hours for easier development
    JWT_REFRESH_TOKEN_EXPIRES = 604800  # 7 days
    JWT_ERROR_MESSAGE_KEY = "message"
