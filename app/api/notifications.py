"""
Notifications API Routes Blueprint

In-app notifications for the calling user:
- /api/notifications: list (with unread count)
- /api/notifications/<id>/read: mark one read
- /api/notifications/read-all: mark everything read
"""

import logging
from flask import Blueprint, request, jsonify, g

from app.utils import db_session
from security import require_user_id, server_error
from services.notification_service import NotificationService

logger = logging.getLogger(__name__)

# Create blueprint
notifications_bp = Blueprint('notifications', __name__)


@notifications_bp.route('/api/notifications', methods=['GET'])
@require_user_id
def list_notifications():
    """Get the caller's notifications, newest first."""
    unread_only = request.args.get('unread_only') == 'true'
    try:
        limit = max(1, min(int(request.args.get('limit', 50)), 200))
    except ValueError:
        return jsonify({'success': False, 'error': 'limit must be an integer'}), 400

    try:
        with db_session() as session:
            service = NotificationService(session, g.user_id)
            return jsonify({
                'success': True,
                'notifications': service.get_notifications(unread_only=unread_only, limit=limit),
                'unread_count': service.get_unread_count()
            })
    except Exception as e:
        return server_error(e, "listing notifications")


@notifications_bp.route('/api/notifications/<notification_id>/read', methods=['POST'])
@require_user_id
def mark_notification_read(notification_id):
    """Mark a notification as read."""
    try:
        with db_session() as session:
            notification = NotificationService(session, g.user_id).mark_as_read(notification_id)
            if not notification:
                return jsonify({'success': False, 'error': 'Notification not found'}), 404
            return jsonify({'success': True, 'notification': notification})
    except Exception as e:
        return server_error(e, f"marking notification {notification_id} as read")


@notifications_bp.route('/api/notifications/read-all', methods=['POST'])
@require_user_id
def mark_all_notifications_read():
    """Mark all notifications as read."""
    try:
        with db_session() as session:
            count = NotificationService(session, g.user_id).mark_all_as_read()
            return jsonify({'success': True, 'marked': count})
    except Exception as e:
        return server_error(e, "marking all notifications as read")
