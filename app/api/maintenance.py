"""
Maintenance API Routes Blueprint

Monthly maintenance planning for a house:
- /api/houses/<id>/maintenance-tasks - Resolved tasks for a month
- /api/houses/<id>/task-completions - Toggle / reset completion flags
- /api/houses/<id>/task-overrides - Per-house task customization
- /api/custom-maintenance-tasks - Homeowner-authored tasks
- /api/maintenance/regions - Regional catalog browsing
"""

import logging
from flask import Blueprint, request, jsonify, current_app, g

from app.utils import get_json_body, get_month_year_args, get_catalog, db_session
from security import require_user_id, server_error
from services.house_repository import HouseRepository
from services.maintenance_repository import MaintenanceRepository
from services.notification_service import NotificationService
from services.task_resolution import build_monthly_schedule, resolve_tasks_for_month
from validators import (
    ValidationError,
    validate_month_year,
    validate_completion_request,
    validate_task_override_request,
    validate_custom_task_request,
)

logger = logging.getLogger(__name__)

# Create blueprint
maintenance_bp = Blueprint('maintenance', __name__)


def _not_found(what):
    return jsonify({'success': False, 'error': f'{what} not found'}), 404


def _invalid(error):
    return jsonify({'success': False, 'error': error}), 400


# ============================================================================
# MONTHLY TASKS
# ============================================================================

@maintenance_bp.route('/api/houses/<house_id>/maintenance-tasks', methods=['GET'])
@require_user_id
def get_maintenance_tasks(house_id):
    """
    Resolve the maintenance tasks for a house and month.

    Query params:
        month, year: defaults to the current month
        notify: 'true' writes a reminder when high-priority tasks are pending
    """
    try:
        month, year = get_month_year_args()
        notify = request.args.get('notify', 'false').lower() == 'true'

        with db_session() as session:
            houses = HouseRepository(session, g.user_id)
            house = houses.get_house(house_id)
            if not house:
                return _not_found('House')

            tasks = MaintenanceRepository(session, g.user_id)
            schedule = build_monthly_schedule(
                get_catalog(),
                house,
                month,
                year,
                custom_tasks=tasks.list_custom_tasks(house_id, active_only=True),
                overrides=tasks.list_overrides(house_id),
                completion_keys=tasks.list_completion_keys(house_id, month, year),
                logs=houses.list_logs_for_month(house_id, month, year),
                default_region=current_app.config.get('DEFAULT_CLIMATE_REGION', 'Midwest'),
            )

            notification = None
            if notify and current_app.config.get('NOTIFY_ON_HIGH_PRIORITY', True):
                notification = NotificationService(session, g.user_id).notify_maintenance_due(house, schedule)

            return jsonify({
                'success': True,
                'house_id': house_id,
                'schedule': schedule.to_dict(),
                'notification': notification
            })
    except ValidationError:
        raise
    except Exception as e:
        return server_error(e, f"resolving maintenance tasks for house {house_id}")


# ============================================================================
# REGIONAL CATALOG
# ============================================================================

@maintenance_bp.route('/api/maintenance/regions', methods=['GET'])
def list_regions():
    """List catalog regions with their climate descriptions"""
    catalog = get_catalog()
    regions = [catalog.region_info(name).to_dict() for name in catalog.regions]
    return jsonify({'success': True, 'regions': regions})


@maintenance_bp.route('/api/maintenance/regions/<region>/<int:month>', methods=['GET'])
def get_region_month(region, month):
    """
    Catalog tasks for a region and month.

    Query params:
        systems: comma-separated installed system tags (gated tasks are hidden without them)
    """
    is_valid, error = validate_month_year(month, 2000)
    if not is_valid:
        return _invalid(error)

    catalog = get_catalog()
    name = catalog.canonical_region(region)
    if not name:
        return _not_found('Region')

    systems = [s.strip() for s in request.args.get('systems', '').split(',') if s.strip()]
    bucket = catalog.lookup(name, month)
    tasks = resolve_tasks_for_month(name, month, installed_systems=systems, catalog=catalog)

    return jsonify({
        'success': True,
        'region': catalog.region_info(name).to_dict(),
        'month': month,
        'priority': bucket.priority if bucket else None,
        'tasks': [t.to_dict() for t in tasks]
    })


# ============================================================================
# COMPLETIONS
# ============================================================================

@maintenance_bp.route('/api/houses/<house_id>/task-completions', methods=['POST', 'DELETE'])
@require_user_id
def handle_task_completions(house_id):
    """
    POST toggles one task's completion flag for a month.
    DELETE clears every flag for ?month=&year=.
    """
    try:
        with db_session() as session:
            if not HouseRepository(session, g.user_id).get_house(house_id):
                return _not_found('House')
            repo = MaintenanceRepository(session, g.user_id)

            if request.method == 'DELETE':
                month, year = get_month_year_args()
                cleared = repo.reset_month(house_id, month, year)
                return jsonify({'success': True, 'cleared': cleared})

            data = get_json_body()
            is_valid, error = validate_completion_request(data)
            if not is_valid:
                return _invalid(error)

            month, year = int(data['month']), int(data['year'])
            completed = repo.toggle_completion(house_id, data['task_key'], month, year)
            return jsonify({
                'success': True,
                'task_key': data['task_key'],
                'month': month,
                'year': year,
                'completed': completed
            })
    except ValidationError:
        raise
    except Exception as e:
        return server_error(e, f"updating task completions for house {house_id}")


# ============================================================================
# OVERRIDES
# ============================================================================

@maintenance_bp.route('/api/houses/<house_id>/task-overrides', methods=['GET', 'POST'])
@require_user_id
def handle_task_overrides(house_id):
    """List overrides, or create/replace one keyed by task_id"""
    try:
        with db_session() as session:
            if not HouseRepository(session, g.user_id).get_house(house_id):
                return _not_found('House')
            repo = MaintenanceRepository(session, g.user_id)

            if request.method == 'GET':
                return jsonify({'success': True, 'overrides': repo.list_overrides(house_id)})

            data = get_json_body()
            is_valid, error = validate_task_override_request(data)
            if not is_valid:
                return _invalid(error)

            override = repo.upsert_override(house_id, data['task_id'], data)
            return jsonify({'success': True, 'override': override})
    except ValidationError:
        raise
    except Exception as e:
        return server_error(e, f"handling task overrides for house {house_id}")


@maintenance_bp.route('/api/houses/<house_id>/task-overrides/<task_id>', methods=['DELETE'])
@require_user_id
def delete_task_override(house_id, task_id):
    """Reset a task to its catalog defaults"""
    try:
        with db_session() as session:
            if not MaintenanceRepository(session, g.user_id).delete_override(house_id, task_id):
                return _not_found('Override')
            return jsonify({'success': True})
    except Exception as e:
        return server_error(e, f"deleting task override {house_id}/{task_id}")


# ============================================================================
# CUSTOM TASKS
# ============================================================================

@maintenance_bp.route('/api/custom-maintenance-tasks', methods=['GET', 'POST'])
@require_user_id
def handle_custom_tasks():
    """
    List or create custom tasks.

    Query params (GET):
        house_id: limit to one house (plus tasks not tied to a house)
        active_only: 'true' to hide paused tasks
    """
    try:
        with db_session() as session:
            repo = MaintenanceRepository(session, g.user_id)

            if request.method == 'GET':
                tasks = repo.list_custom_tasks(
                    house_id=request.args.get('house_id'),
                    active_only=request.args.get('active_only', 'false').lower() == 'true'
                )
                return jsonify({'success': True, 'tasks': tasks})

            data = get_json_body()
            is_valid, error = validate_custom_task_request(data)
            if not is_valid:
                return _invalid(error)

            house_id = data.get('house_id')
            if house_id and not HouseRepository(session, g.user_id).get_house(house_id):
                return _not_found('House')

            task = repo.create_custom_task(data)
            return jsonify({'success': True, 'task': task}), 201
    except ValidationError:
        raise
    except Exception as e:
        return server_error(e, "handling custom tasks")


@maintenance_bp.route('/api/custom-maintenance-tasks/<task_id>', methods=['GET', 'PATCH', 'PUT', 'DELETE'])
@require_user_id
def handle_custom_task(task_id):
    """Get, update or delete a custom task"""
    try:
        with db_session() as session:
            repo = MaintenanceRepository(session, g.user_id)

            if request.method == 'GET':
                task = repo.get_custom_task(task_id)
                if not task:
                    return _not_found('Custom task')
                return jsonify({'success': True, 'task': task})

            if request.method == 'DELETE':
                if not repo.delete_custom_task(task_id):
                    return _not_found('Custom task')
                return jsonify({'success': True})

            data = get_json_body()
            is_valid, error = validate_custom_task_request(data, partial=True)
            if not is_valid:
                return _invalid(error)

            house_id = data.get('house_id')
            if house_id and not HouseRepository(session, g.user_id).get_house(house_id):
                return _not_found('House')

            task = repo.update_custom_task(task_id, data)
            if not task:
                return _not_found('Custom task')
            return jsonify({'success': True, 'task': task})
    except ValidationError:
        raise
    except Exception as e:
        return server_error(e, f"handling custom task {task_id}")
