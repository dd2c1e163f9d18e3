"""
Gym Ledger application factory.
"""
import importlib
import logging
import os

from dotenv import load_dotenv
from flask import Flask, jsonify
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_restx import Api
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import text

# Initialize extensions
db = SQLAlchemy()
jwt = JWTManager()
migrate = Migrate()

CONFIG_MAPPING = {
    'development': ('gymledger.config.development_config', 'DevelopmentConfig'),
    'testing': ('gymledger.config.testing_config', 'TestingConfig'),
    'production': ('gymledger.config.production_config', 'ProductionConfig'),
}


def create_app(config_name=None, config_overrides=None):
    """
    Application Factory Pattern implementation.

    Args:
        config_name: Configuration name to use (development, testing, production).
        config_overrides: Optional mapping applied on top of the configuration class.

    Returns:
        Flask application instance.
    """
    load_dotenv()

    app = Flask(__name__)

    app_config = config_name or os.getenv("FLASK_ENV", "development")
    if app_config not in CONFIG_MAPPING:
        app_config = 'development'

    module_path, class_name = CONFIG_MAPPING[app_config]
    config_class = getattr(importlib.import_module(module_path), class_name)
    app.config.from_object(config_class)
    if config_overrides:
        app.config.update(config_overrides)

    app.logger.setLevel(app.config.get('LOG_LEVEL', logging.INFO))
    app.logger.debug("Using configuration %s (%s)", class_name, app_config)

    # Initialize extensions with app
    db.init_app(app)
    jwt.init_app(app)
    migrate.init_app(app, db)

    # Import models to ensure they're registered with SQLAlchemy
    from gymledger.models import (MemberSubscription, Payment,  # noqa: F401
                                  SubscriptionPlan, TrainingSession, User)

    api = Api(
        app,
        version=app.config.get("API_VERSION", "1.0"),
        title=app.config.get("API_TITLE", "Gym Ledger API"),
        description=app.config.get("API_DESCRIPTION", "Subscription and session accounting for gym operations"),
        doc="/api/docs",
        authorizations={
            'Bearer Auth': {
                'type': 'apiKey',
                'in': 'header',
                'name': 'Authorization',
                'description': 'Enter: **Bearer &lt;JWT&gt;**'
            },
        },
        security='Bearer Auth'
    )

    from gymledger.errors import GymLedgerError

    @api.errorhandler(GymLedgerError)
    def handle_ledger_error(error):
        """Render engine errors with their status code and machine-readable code."""
        if error.status_code >= 500:
            app.logger.error("Request failed: %s", error)
        return error.to_dict(), error.status_code

    from gymledger.api.auth import auth_ns
    from gymledger.api.subscriptions import payment_ns, plan_ns, subscription_ns

    api.add_namespace(auth_ns, path='/api/auth')
    api.add_namespace(plan_ns, path='/api/plans')
    api.add_namespace(subscription_ns, path='/api/subscriptions')
    api.add_namespace(payment_ns, path='/api/payments')

    @app.route('/health')
    def health_check():
        """Health check endpoint to verify the application is running."""
        return jsonify({
            'status': 'healthy',
            'environment': app_config,
            'database_connected': _check_db_connection()
        })

    def _check_db_connection():
        """Check if the database connection is working."""
        try:
            db.session.execute(text('SELECT 1'))
            return True
        except Exception as e:
            app.logger.warning("Database connection error: %s", e)
            return False

    @app.shell_context_processor
    def shell_context():
        return {"app": app, "db": db}

    return app
