"""
Centralized Configuration for the HomeBase maintenance & CRM service
Manages environment-specific settings, database location, and catalog paths.
"""
import os
from datetime import timedelta


def normalize_database_url(url):
    """Render/Heroku hand out postgres:// URLs; SQLAlchemy wants postgresql://"""
    if url and url.startswith('postgres://'):
        return url.replace('postgres://', 'postgresql://', 1)
    return url


class Config:
    """Base configuration with defaults"""

    # Flask Settings
    SECRET_KEY = os.environ.get('SECRET_KEY') or os.urandom(32).hex()
    MAX_CONTENT_LENGTH = 2 * 1024 * 1024  # 2MB, JSON bodies only
    JSON_SORT_KEYS = False
    PORT = int(os.environ.get('PORT', 5000))

    # CORS Settings
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')
    CORS_METHODS = ['GET', 'POST', 'PATCH', 'PUT', 'DELETE', 'OPTIONS']
    CORS_ALLOW_HEADERS = ['Content-Type', 'Authorization', 'X-Requested-With', 'X-User-Id']

    # Database Settings
    DATABASE_URL = normalize_database_url(
        os.environ.get('DATABASE_URL', 'sqlite:///homebase.db')
    )
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 300,
    }

    # Maintenance catalog
    BASE_DIR = os.path.dirname(os.path.abspath(__file__))
    MAINTENANCE_CATALOG_PATH = os.environ.get(
        'MAINTENANCE_CATALOG_PATH',
        os.path.join(BASE_DIR, 'services', 'data', 'regional_maintenance.json')
    )
    DEFAULT_CLIMATE_REGION = os.environ.get('DEFAULT_CLIMATE_REGION', 'Midwest')

    # Reminders
    NOTIFY_ON_HIGH_PRIORITY = os.environ.get('NOTIFY_ON_HIGH_PRIORITY', 'true').lower() == 'true'

    # Logging Configuration
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    LOG_FILE = os.environ.get('LOG_FILE', 'app.log')
    LOG_DIR = os.environ.get('LOG_DIR', 'logs')

    # Session Configuration
    SESSION_PERMANENT = False
    PERMANENT_SESSION_LIFETIME = timedelta(days=7)


class DevelopmentConfig(Config):
    """Development-specific configuration"""
    DEBUG = True
    TESTING = False
    LOG_LEVEL = 'DEBUG'
    # Allow all CORS in development
    CORS_ORIGINS = ['*']


class ProductionConfig(Config):
    """Production-specific configuration"""
    DEBUG = False
    TESTING = False
    # Strict CORS in production
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', 'https://homebase.example.com').split(',')
    # Force HTTPS
    PREFERRED_URL_SCHEME = 'https'
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'


class TestingConfig(Config):
    """Testing-specific configuration"""
    DEBUG = True
    TESTING = True
    DATABASE_URL = 'sqlite://'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    LOG_LEVEL = 'WARNING'
    NOTIFY_ON_HIGH_PRIORITY = True


# Configuration selector
config_by_name = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig,
}


def get_config():
    """Get configuration based on FLASK_ENV environment variable"""
    env = os.environ.get('FLASK_ENV', 'development')
    return config_by_name.get(env, DevelopmentConfig)


def is_production():
    """True when running with FLASK_ENV=production"""
    return os.environ.get('FLASK_ENV', 'development') == 'production'
