"""
Application Initialization Module
Initializes the Flask app with configuration, logging, security, database and routes
"""
import os
from flask import Flask
from config import get_config
from logging_config import setup_logging
from security import setup_security
from health_checks import register_health_checks
from database.connection import Database
from services.task_catalog import RegionCatalog
import logging

logger = logging.getLogger(__name__)


def create_app(config_class=None):
    """
    Application factory that creates and configures Flask app with all infrastructure

    Args:
        config_class: Config class to load (defaults to get_config() for FLASK_ENV)

    Returns:
        Configured Flask application instance
    """
    app = Flask(__name__)

    # Load configuration
    app.config.from_object(config_class or get_config())

    setup_logging(app)

    logger.info("=" * 60)
    logger.info("Initializing HomeBase Maintenance & CRM Service")
    logger.info("=" * 60)
    logger.info(f"Environment: {os.environ.get('FLASK_ENV', 'development')}")
    logger.info(f"Debug mode: {app.debug}")

    # Setup security (CORS, headers, error handlers)
    setup_security(app, app.config)

    initialize_database(app)
    initialize_catalog(app)

    # Import here so blueprints see a fully configured app
    from app import register_blueprints
    register_blueprints(app)

    register_health_checks(app)

    logger.info("Application initialization complete")
    logger.info("=" * 60)

    return app


def initialize_database(app):
    """
    Create the app's Database and store it on app.extensions

    Tables are created directly for SQLite (tests, local development);
    PostgreSQL schemas are managed by Alembic.

    Args:
        app: Flask application instance

    Returns:
        Database instance
    """
    database = Database(
        app.config['DATABASE_URL'],
        engine_options=app.config.get('SQLALCHEMY_ENGINE_OPTIONS')
    )
    if database.url.startswith('sqlite'):
        database.create_all()

    app.extensions['database'] = database
    return database


def initialize_catalog(app):
    """
    Load the regional maintenance catalog once for this app

    Args:
        app: Flask application instance

    Returns:
        RegionCatalog instance
    """
    catalog = RegionCatalog.from_file(app.config.get('MAINTENANCE_CATALOG_PATH'))
    app.extensions['maintenance_catalog'] = catalog
    logger.info(f"Maintenance catalog ready: {', '.join(catalog.regions)}")
    return catalog
