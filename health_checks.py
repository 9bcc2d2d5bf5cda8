"""
Health Check & Monitoring Endpoints
Provides liveness, readiness (database + maintenance catalog) and process metrics
"""
import os
import sys
import time
import psutil
from datetime import datetime
from typing import Dict, Any
from flask import Blueprint, jsonify, current_app
import logging

logger = logging.getLogger(__name__)

SERVICE_NAME = 'homebase-maintenance'
SERVICE_VERSION = '1.0.0'

health_bp = Blueprint('health', __name__)

# Process start, for /api/metrics uptime
START_TIME = time.time()


def get_system_metrics() -> Dict[str, Any]:
    """
    CPU, memory and handle counts for this worker process

    Returns:
        Metrics dictionary, empty when psutil can't read the process
    """
    try:
        process = psutil.Process()
        memory = process.memory_info()
        return {
            'cpu_percent': process.cpu_percent(interval=0.1),
            'memory_mb': round(memory.rss / (1024 * 1024), 2),
            'memory_percent': round(process.memory_percent(), 2),
            'threads': process.num_threads(),
            'open_files': len(process.open_files()),
        }
    except (psutil.Error, OSError) as e:
        logger.warning(f"Could not read process metrics: {e}")
        return {}


def get_uptime() -> Dict[str, Any]:
    """Seconds/minutes/hours since this module was imported"""
    elapsed = time.time() - START_TIME
    return {
        'uptime_seconds': round(elapsed, 2),
        'uptime_minutes': round(elapsed / 60, 2),
        'uptime_hours': round(elapsed / 3600, 2),
        'started_at': datetime.fromtimestamp(START_TIME).isoformat()
    }


def check_database(app) -> Dict[str, Any]:
    """
    Check that the configured database answers a trivial query

    Args:
        app: Flask application instance

    Returns:
        Dictionary with 'healthy' and, on failure, 'error'
    """
    database = app.extensions.get('database')
    if database is None:
        return {'healthy': False, 'error': 'Database not initialized'}

    try:
        database.check_connection()
        return {'healthy': True, 'backend': database.engine.url.get_backend_name()}
    except RuntimeError as e:
        return {'healthy': False, 'error': str(e)}


def check_catalog(app) -> Dict[str, Any]:
    """
    Check that the regional maintenance catalog is loaded

    Args:
        app: Flask application instance

    Returns:
        Dictionary with 'healthy' and the number of regions
    """
    catalog = app.extensions.get('maintenance_catalog')
    regions = catalog.regions if catalog is not None else []
    return {'healthy': bool(regions), 'regions': len(regions)}


@health_bp.route('/health', methods=['GET'])
def health_check():
    """Liveness: the process is up and serving requests"""
    return jsonify({
        'status': 'healthy',
        'timestamp': datetime.utcnow().isoformat(),
        'service': SERVICE_NAME
    }), 200


@health_bp.route('/ready', methods=['GET'])
def readiness_check():
    """
    Readiness: 200 once the database answers and the catalog has regions, else 503

    Load balancers should stop routing here while this fails.
    """
    checks = {
        'database': check_database(current_app),
        'catalog': check_catalog(current_app)
    }
    is_ready = all(check['healthy'] for check in checks.values())
    if not is_ready:
        logger.warning(f"Readiness check failed: {checks}")

    return jsonify({
        'status': 'ready' if is_ready else 'not_ready',
        'timestamp': datetime.utcnow().isoformat(),
        'checks': checks
    }), 200 if is_ready else 503


@health_bp.route('/metrics', methods=['GET'])
def metrics():
    """Process metrics, uptime and catalog size for dashboards"""
    return jsonify({
        'timestamp': datetime.utcnow().isoformat(),
        'service': SERVICE_NAME,
        'version': SERVICE_VERSION,
        'environment': os.environ.get('FLASK_ENV', 'development'),
        'python_version': sys.version.split()[0],
        'uptime': get_uptime(),
        'system': get_system_metrics(),
        'catalog': check_catalog(current_app)
    }), 200


@health_bp.route('/ping', methods=['GET'])
def ping():
    return 'pong', 200


def register_health_checks(app):
    """Mount the health blueprint under /api"""
    app.register_blueprint(health_bp, url_prefix='/api')
    logger.info("Health endpoints: /api/health, /api/ready, /api/metrics, /api/ping")
