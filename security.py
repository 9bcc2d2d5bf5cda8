"""
Request-level security for the HomeBase API

- Caller identity: every homeowner/contractor route needs X-User-Id
- CORS for /api/* and hardening headers on every response
- JSON error bodies that never carry a stack trace outside debug
"""
import os
import secrets
from functools import wraps
from typing import Callable, Dict, Any
from flask import Flask, current_app, g, request, jsonify, Response
from flask_cors import CORS
import logging

from validators import ValidationError

logger = logging.getLogger(__name__)

WEAK_KEY_MARKERS = ('dev', 'test', 'secret', 'password', '12345', 'changeme')
MIN_SECRET_KEY_LENGTH = 32

RESPONSE_HEADERS = {
    'X-Frame-Options': 'DENY',
    'X-Content-Type-Options': 'nosniff',
    'Content-Security-Policy': "default-src 'none'; frame-ancestors 'none'",
    'Referrer-Policy': 'no-referrer',
    'Permissions-Policy': 'geolocation=(), microphone=(), camera=()',
}

# Liveness probes hit these every few seconds
UNLOGGED_PATHS = ('/api/health', '/api/ping')


class SecurityConfig:
    """SECRET_KEY checks used at startup"""

    @staticmethod
    def generate_secret_key() -> str:
        return secrets.token_hex(32)

    @staticmethod
    def validate_secret_key(secret_key: str) -> bool:
        """
        True when the key is long enough and isn't an obvious placeholder

        Args:
            secret_key: Candidate SECRET_KEY value
        """
        if not secret_key:
            return False
        if len(secret_key) < MIN_SECRET_KEY_LENGTH:
            logger.warning(f"SECRET_KEY shorter than {MIN_SECRET_KEY_LENGTH} characters")
            return False
        lowered = secret_key.lower()
        if any(marker in lowered for marker in WEAK_KEY_MARKERS):
            logger.warning("SECRET_KEY looks like a placeholder value")
            return False
        return True

    @staticmethod
    def ensure_secret_key(config: Dict[str, Any]) -> str:
        """
        Return the configured SECRET_KEY, or a fresh random one when it is unusable

        Args:
            config: Application configuration mapping

        Returns:
            The key to install on the app
        """
        secret_key = config.get('SECRET_KEY')
        if SecurityConfig.validate_secret_key(secret_key):
            return secret_key

        if os.environ.get('FLASK_ENV') == 'production':
            logger.error("Production is running without a usable SECRET_KEY; sessions reset on every restart")
        secret_key = SecurityConfig.generate_secret_key()
        logger.warning("Using a generated SECRET_KEY for this process")
        return secret_key


# ============================================================================
# CALLER IDENTITY
# ============================================================================

def require_user_id(f: Callable) -> Callable:
    """
    Decorator to require the X-User-Id caller identity header

    The id is stored on flask.g.user_id for the view.

    Usage:
        @bp.route('/api/houses')
        @require_user_id
        def list_houses():
            ...
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user_id = (request.headers.get('X-User-Id') or '').strip()

        if not user_id:
            logger.warning(f"Missing X-User-Id for {request.method} {request.path}")
            return jsonify({'success': False, 'error': 'X-User-Id header required'}), 401

        g.user_id = user_id
        return f(*args, **kwargs)

    return decorated_function


# ============================================================================
# RESPONSES
# ============================================================================

def setup_security_headers(app: Flask):
    """Attach RESPONSE_HEADERS (and HSTS outside debug) to every response"""
    hsts = not app.debug

    @app.after_request
    def add_security_headers(response: Response) -> Response:
        for name, value in RESPONSE_HEADERS.items():
            response.headers.setdefault(name, value)
        if hsts:
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
        return response


def setup_cors(app: Flask, config: Dict[str, Any]):
    """
    Enable CORS on /api/* from the CORS_* config keys

    Args:
        app: Flask application instance
        config: Application configuration mapping
    """
    origins = config.get('CORS_ORIGINS', ['*'])
    if '*' in origins and not app.debug:
        logger.warning("CORS allows every origin; set CORS_ORIGINS for this deployment")

    CORS(
        app,
        resources={r"/api/*": {"origins": origins}},
        methods=config.get('CORS_METHODS', ['GET', 'POST', 'PATCH', 'PUT', 'DELETE', 'OPTIONS']),
        allow_headers=config.get('CORS_ALLOW_HEADERS', ['Content-Type', 'X-User-Id']),
        supports_credentials=True,
        max_age=3600
    )
    logger.info(f"CORS origins: {origins}")


def sanitize_error_response(error: Exception, include_details: bool = False) -> Dict[str, Any]:
    """
    Build a 500 body; exception text is only included when include_details is set

    Args:
        error: The exception being reported
        include_details: True in debug
    """
    body = {
        'success': False,
        'error': 'Internal Server Error',
        'message': 'An error occurred while processing your request'
    }
    if include_details:
        body['details'] = str(error)
        body['type'] = type(error).__name__
    return body


def server_error(error: Exception, context: str):
    """
    Log an unexpected route error and build the 500 response

    Args:
        error: The exception that was caught
        context: What the route was doing, for the log line
    """
    logger.error(f"Error {context}: {error}", exc_info=True)
    return jsonify(sanitize_error_response(error, current_app.debug)), 500


def _json_error(status: int, error: str, message: str):
    return jsonify({'success': False, 'error': error, 'message': message}), status


def setup_error_handlers(app: Flask):
    """Register JSON handlers for ValidationError and the common HTTP errors"""
    include_details = app.debug

    @app.errorhandler(ValidationError)
    def validation_error(error):
        body = {'success': False, 'error': error.message}
        if error.field:
            body['field'] = error.field
        return jsonify(body), 400

    @app.errorhandler(400)
    def bad_request(error):
        return _json_error(400, 'Bad Request', 'The request body or parameters could not be understood')

    @app.errorhandler(401)
    def unauthorized(error):
        return _json_error(401, 'Unauthorized', 'Caller identity required')

    @app.errorhandler(404)
    def not_found(error):
        return _json_error(404, 'Not Found', 'No such endpoint or record')

    @app.errorhandler(405)
    def method_not_allowed(error):
        return _json_error(405, 'Method Not Allowed', f'{request.method} is not supported here')

    @app.errorhandler(413)
    def request_entity_too_large(error):
        limit = app.config.get('MAX_CONTENT_LENGTH')
        return _json_error(413, 'Payload Too Large', f'Request bodies are limited to {limit} bytes')

    @app.errorhandler(500)
    def internal_server_error(error):
        logger.error(f"Unhandled error: {error}", exc_info=True)
        return jsonify(sanitize_error_response(error, include_details)), 500


def setup_request_logging(app: Flask):
    """One log line per request and per response, except for probe endpoints"""

    @app.before_request
    def log_request():
        if request.path in UNLOGGED_PATHS:
            return
        logger.info(
            f"-> {request.method} {request.path} "
            f"user={request.headers.get('X-User-Id', '-')} from={request.remote_addr}"
        )

    @app.after_request
    def log_response(response: Response) -> Response:
        if request.path not in UNLOGGED_PATHS:
            logger.info(f"<- {request.method} {request.path} {response.status_code}")
        return response


def check_required_environment(required_vars: list, app: Flask) -> bool:
    """
    Warn about unset environment variables

    Returns:
        True when every variable is set
    """
    missing = [var for var in required_vars if not os.environ.get(var)]
    if missing:
        level = logging.WARNING if app.debug else logging.ERROR
        logger.log(level, f"Missing environment variables: {', '.join(missing)}")
    return not missing


def setup_security(app: Flask, config: Dict[str, Any]):
    """
    Install secret key, CORS, headers, error handlers and request logging

    Args:
        app: Flask application instance
        config: Application configuration mapping
    """
    app.secret_key = SecurityConfig.ensure_secret_key(config)

    setup_cors(app, config)
    setup_security_headers(app)
    setup_error_handlers(app)
    setup_request_logging(app)

    if not app.debug:
        check_required_environment(['SECRET_KEY', 'DATABASE_URL'], app)

    logger.info("Security configured")
