"""
Notification Service - Manages in-app notifications.

This service handles:
- Creating notifications for users
- Listing and marking notifications as read
- Writing the monthly "maintenance due" reminder for a house

Delivery (email, push, SMS) is not done here; rows are read by the client.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func

from database.models import Notification

logger = logging.getLogger(__name__)

MONTH_NAMES = ['January', 'February', 'March', 'April', 'May', 'June', 'July',
               'August', 'September', 'October', 'November', 'December']


class NotificationService:
    """Service for managing one user's notifications."""

    def __init__(self, session, user_id: str):
        self.session = session
        self.user_id = user_id

    def create_notification(self, title: str, message: str,
                            notification_type: str = 'info',
                            priority: str = 'normal',
                            entity_type: str = None,
                            entity_id: str = None,
                            dedupe_key: str = None,
                            metadata: Dict = None) -> Dict:
        """
        Create a new notification.

        Args:
            title: Notification title
            message: Notification message
            notification_type: Type (info, reminder, alert)
            priority: Priority level (low, normal, high, urgent)
            entity_type: Related entity type
            entity_id: Related entity ID
            dedupe_key: When set, an existing notification with the same key is returned instead
            metadata: Additional data

        Returns:
            Notification dict
        """
        if dedupe_key:
            existing = self.session.query(Notification).filter(
                Notification.user_id == self.user_id,
                Notification.dedupe_key == dedupe_key
            ).first()
            if existing:
                return existing.to_dict()

        notification = Notification(
            user_id=self.user_id,
            title=title,
            message=message,
            notification_type=notification_type,
            priority=priority,
            entity_type=entity_type,
            entity_id=entity_id,
            dedupe_key=dedupe_key,
            extra_data=metadata or {},
            is_read=False
        )
        self.session.add(notification)
        self.session.flush()

        logger.info(f"Created notification: {title}")
        return notification.to_dict()

    def get_notifications(self, unread_only: bool = False, limit: int = 50) -> List[Dict]:
        """Get the user's notifications, newest first."""
        query = self.session.query(Notification).filter(Notification.user_id == self.user_id)
        if unread_only:
            query = query.filter(Notification.is_read == False)
        notifications = query.order_by(Notification.created_at.desc()).limit(limit).all()
        return [n.to_dict() for n in notifications]

    def get_unread_count(self) -> int:
        """Get count of unread notifications."""
        return self.session.query(func.count(Notification.id)).filter(
            Notification.user_id == self.user_id,
            Notification.is_read == False
        ).scalar() or 0

    def mark_as_read(self, notification_id: str) -> Optional[Dict]:
        """Mark a notification as read. Returns None if it isn't the user's."""
        notification = self.session.query(Notification).filter(
            Notification.id == notification_id,
            Notification.user_id == self.user_id
        ).first()
        if not notification:
            return None

        if not notification.is_read:
            notification.is_read = True
            notification.read_at = datetime.utcnow()
            self.session.flush()
        return notification.to_dict()

    def mark_all_as_read(self) -> int:
        """Mark all of the user's notifications as read."""
        count = 0
        unread = self.session.query(Notification).filter(
            Notification.user_id == self.user_id,
            Notification.is_read == False
        ).all()
        for notification in unread:
            notification.is_read = True
            notification.read_at = datetime.utcnow()
            count += 1
        self.session.flush()
        return count

    def notify_maintenance_due(self, house: Dict, schedule) -> Optional[Dict]:
        """
        Write one reminder per house and month while high-priority tasks remain.

        Args:
            house: House dict
            schedule: MonthlySchedule from build_monthly_schedule

        Returns:
            The reminder dict, or None when nothing is due
        """
        if not schedule.notification_due:
            return None

        pending = [t for t in schedule.tasks if t.priority == 'high' and not t.completed]
        month_name = MONTH_NAMES[schedule.month - 1]
        return self.create_notification(
            title=f"{month_name} maintenance for {house.get('name')}",
            message=(
                f"{len(pending)} high-priority task{'s' if len(pending) != 1 else ''} still to do: "
                + ', '.join(t.title for t in pending[:3])
                + ('...' if len(pending) > 3 else '')
            ),
            notification_type='reminder',
            priority='high',
            entity_type='house',
            entity_id=house.get('id'),
            dedupe_key=f"maintenance-{house.get('id')}-{schedule.year}-{schedule.month}",
            metadata={
                'region': schedule.region,
                'month': schedule.month,
                'year': schedule.year,
                'pending_task_keys': [t.key for t in pending]
            }
        )
