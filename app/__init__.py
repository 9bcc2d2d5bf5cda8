"""
HomeBase - Application Package

This package contains the modular backend structure:
- api/: HTTP route handlers (Flask Blueprints)
- utils/: Shared helpers for the route handlers

The app factory lives in app_init.py at the project root and business
logic in the top-level services/ package.
"""

import logging

logger = logging.getLogger(__name__)

# Import blueprints
from app.api.houses import houses_bp
from app.api.maintenance import maintenance_bp
from app.api.notifications import notifications_bp
from app.api.crm import crm_bp


def register_blueprints(app):
    """
    Register all API blueprints with the Flask app.
    Called from app_init.create_app after extensions are set up.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(houses_bp)
    app.register_blueprint(maintenance_bp)
    app.register_blueprint(notifications_bp)
    app.register_blueprint(crm_bp)
    logger.info("Registered blueprints: houses, maintenance, notifications, crm")


__all__ = ['register_blueprints', 'app', 'houses_bp', 'maintenance_bp', 'notifications_bp', 'crm_bp']


# ==============================================================================
# WSGI APP EXPORT FOR GUNICORN
# ==============================================================================
# This allows gunicorn to run with: gunicorn app:app
# The Flask app is created in wsgi.py.
# We use __getattr__ for lazy loading to avoid circular import issues.
# ==============================================================================

_flask_app = None

def __getattr__(name):
    """Lazy load the Flask app to avoid circular imports."""
    global _flask_app
    if name == 'app':
        if _flask_app is None:
            from wsgi import app as flask_app
            _flask_app = flask_app
        return _flask_app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
