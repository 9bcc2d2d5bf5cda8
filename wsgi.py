"""
WSGI Entry Point for Gunicorn

This module provides the WSGI application entry point for production deployment:
  gunicorn wsgi:app

Configuration comes from FLASK_ENV (see config.get_config).
"""

import atexit

from app_init import create_app

app = create_app()


@atexit.register
def _dispose_database():
    database = app.extensions.get('database')
    if database is not None:
        database.close()


if __name__ == '__main__':
    app.run(host='0.0.0.0', port=int(app.config.get('PORT', 5000)))
