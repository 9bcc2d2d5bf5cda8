"""
Houses API Routes Blueprint

Homeowner property management:
- /api/houses - List and create houses
- /api/houses/<id> - Get, update, delete a house
- /api/houses/<id>/appliances, /api/appliances/<id> - Appliance inventory
- /api/houses/<id>/maintenance-logs, /api/maintenance-logs/<id> - Service history
"""

import logging
from flask import Blueprint, request, jsonify, g

from app.utils import get_json_body, db_session
from security import require_user_id, server_error
from services.house_repository import HouseRepository
from validators import (
    ValidationError,
    validate_house_request,
    validate_appliance_request,
    validate_maintenance_log_request,
)

logger = logging.getLogger(__name__)

# Create blueprint
houses_bp = Blueprint('houses', __name__)


def _not_found(what):
    return jsonify({'success': False, 'error': f'{what} not found'}), 404


def _invalid(error):
    return jsonify({'success': False, 'error': error}), 400


# ============================================================================
# HOUSES
# ============================================================================

@houses_bp.route('/api/houses', methods=['GET', 'POST'])
@require_user_id
def handle_houses():
    """List or create houses for the caller"""
    try:
        with db_session() as session:
            repo = HouseRepository(session, g.user_id)
            if request.method == 'GET':
                return jsonify({'success': True, 'houses': repo.list_houses()})

            data = get_json_body()
            is_valid, error = validate_house_request(data)
            if not is_valid:
                return _invalid(error)
            house = repo.create_house(data)
            return jsonify({'success': True, 'house': house}), 201
    except ValidationError:
        raise
    except Exception as e:
        return server_error(e, "handling houses")


@houses_bp.route('/api/houses/<house_id>', methods=['GET', 'PATCH', 'PUT', 'DELETE'])
@require_user_id
def handle_house(house_id):
    """Get, update or delete a house"""
    try:
        with db_session() as session:
            repo = HouseRepository(session, g.user_id)

            if request.method == 'GET':
                house = repo.get_house(house_id)
                if not house:
                    return _not_found('House')
                return jsonify({'success': True, 'house': house})

            if request.method == 'DELETE':
                if not repo.delete_house(house_id):
                    return _not_found('House')
                return jsonify({'success': True})

            data = get_json_body()
            is_valid, error = validate_house_request(data, partial=True)
            if not is_valid:
                return _invalid(error)
            house = repo.update_house(house_id, data)
            if not house:
                return _not_found('House')
            return jsonify({'success': True, 'house': house})
    except ValidationError:
        raise
    except Exception as e:
        return server_error(e, f"handling house {house_id}")


# ============================================================================
# APPLIANCES
# ============================================================================

@houses_bp.route('/api/houses/<house_id>/appliances', methods=['GET', 'POST'])
@require_user_id
def handle_appliances(house_id):
    """List or add appliances for a house"""
    try:
        with db_session() as session:
            repo = HouseRepository(session, g.user_id)
            if not repo.get_house(house_id):
                return _not_found('House')

            if request.method == 'GET':
                return jsonify({'success': True, 'appliances': repo.list_appliances(house_id)})

            data = get_json_body()
            is_valid, error = validate_appliance_request(data)
            if not is_valid:
                return _invalid(error)
            appliance = repo.create_appliance(house_id, data)
            return jsonify({'success': True, 'appliance': appliance}), 201
    except ValidationError:
        raise
    except Exception as e:
        return server_error(e, f"handling appliances for house {house_id}")


@houses_bp.route('/api/appliances/<appliance_id>', methods=['PATCH', 'PUT', 'DELETE'])
@require_user_id
def handle_appliance(appliance_id):
    """Update or delete an appliance"""
    try:
        with db_session() as session:
            repo = HouseRepository(session, g.user_id)

            if request.method == 'DELETE':
                if not repo.delete_appliance(appliance_id):
                    return _not_found('Appliance')
                return jsonify({'success': True})

            data = get_json_body()
            is_valid, error = validate_appliance_request(data, partial=True)
            if not is_valid:
                return _invalid(error)
            appliance = repo.update_appliance(appliance_id, data)
            if not appliance:
                return _not_found('Appliance')
            return jsonify({'success': True, 'appliance': appliance})
    except ValidationError:
        raise
    except Exception as e:
        return server_error(e, f"handling appliance {appliance_id}")


# ============================================================================
# MAINTENANCE LOGS
# ============================================================================

@houses_bp.route('/api/houses/<house_id>/maintenance-logs', methods=['GET', 'POST'])
@require_user_id
def handle_maintenance_logs(house_id):
    """List or record completed services for a house"""
    try:
        with db_session() as session:
            repo = HouseRepository(session, g.user_id)
            if not repo.get_house(house_id):
                return _not_found('House')

            if request.method == 'GET':
                return jsonify({'success': True, 'logs': repo.list_logs(house_id)})

            data = get_json_body()
            is_valid, error = validate_maintenance_log_request(data)
            if not is_valid:
                return _invalid(error)
            log = repo.create_log(house_id, data)
            return jsonify({'success': True, 'log': log}), 201
    except ValidationError:
        raise
    except Exception as e:
        return server_error(e, f"handling maintenance logs for house {house_id}")


@houses_bp.route('/api/maintenance-logs/<log_id>', methods=['PATCH', 'PUT', 'DELETE'])
@require_user_id
def handle_maintenance_log(log_id):
    """Update or delete a maintenance log"""
    try:
        with db_session() as session:
            repo = HouseRepository(session, g.user_id)

            if request.method == 'DELETE':
                if not repo.delete_log(log_id):
                    return _not_found('Maintenance log')
                return jsonify({'success': True})

            data = get_json_body()
            is_valid, error = validate_maintenance_log_request(data, partial=True)
            if not is_valid:
                return _invalid(error)
            log = repo.update_log(log_id, data)
            if not log:
                return _not_found('Maintenance log')
            return jsonify({'success': True, 'log': log})
    except ValidationError:
        raise
    except Exception as e:
        return server_error(e, f"handling maintenance log {log_id}")
