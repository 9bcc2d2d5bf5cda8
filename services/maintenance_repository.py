"""
Maintenance Repository - Database access layer for schedule customization.
Handles custom tasks, per-house task overrides, and monthly completion flags.
"""

import logging
from datetime import datetime
from typing import List, Optional, Dict
from sqlalchemy.orm import Session
from sqlalchemy import or_

from database.models import CustomMaintenanceTask, TaskOverride, TaskCompletion
from services.task_resolution import summarize_task

logger = logging.getLogger(__name__)


class MaintenanceRepository:
    """Repository for custom tasks, overrides and completions, scoped to one homeowner."""

    CUSTOM_TASK_FIELDS = ['house_id', 'title', 'description', 'category', 'priority', 'difficulty',
                          'estimated_time', 'frequency_type', 'frequency_value', 'specific_months',
                          'tools', 'cost', 'pro_cost_low', 'pro_cost_high', 'materials_cost_low',
                          'materials_cost_high', 'is_active']
    OVERRIDE_FIELDS = ['is_enabled', 'frequency_type', 'frequency_value', 'specific_months',
                       'custom_description', 'notes']

    def __init__(self, session: Session, homeowner_id: str):
        self.session = session
        self.homeowner_id = homeowner_id

    # =========================================================================
    # CUSTOM TASKS
    # =========================================================================

    def list_custom_tasks(self, house_id: str = None, active_only: bool = False) -> List[Dict]:
        """
        List the homeowner's custom tasks.

        With a house_id, returns that house's tasks plus tasks not tied to any house.
        """
        query = self.session.query(CustomMaintenanceTask).filter(
            CustomMaintenanceTask.homeowner_id == self.homeowner_id
        )
        if house_id:
            query = query.filter(or_(
                CustomMaintenanceTask.house_id == house_id,
                CustomMaintenanceTask.house_id.is_(None)
            ))
        if active_only:
            query = query.filter(CustomMaintenanceTask.is_active == True)
        tasks = query.order_by(CustomMaintenanceTask.created_at).all()
        return [t.to_dict() for t in tasks]

    def _get_custom_task(self, task_id: str) -> Optional[CustomMaintenanceTask]:
        return self.session.query(CustomMaintenanceTask).filter(
            CustomMaintenanceTask.id == task_id,
            CustomMaintenanceTask.homeowner_id == self.homeowner_id
        ).first()

    def get_custom_task(self, task_id: str) -> Optional[Dict]:
        """Get a custom task by ID."""
        task = self._get_custom_task(task_id)
        return task.to_dict() if task else None

    def create_custom_task(self, data: Dict) -> Dict:
        """Create a custom task. Category and difficulty are inferred when not given."""
        title = data.get('title', '')
        inferred = summarize_task(title, data.get('description') or '')
        task = CustomMaintenanceTask(
            homeowner_id=self.homeowner_id,
            house_id=data.get('house_id') or None,
            title=title,
            description=data.get('description'),
            category=data.get('category') or inferred['category'],
            priority=data.get('priority', 'medium'),
            difficulty=data.get('difficulty') or inferred['difficulty'],
            estimated_time=data.get('estimated_time'),
            frequency_type=data.get('frequency_type', 'monthly'),
            frequency_value=data.get('frequency_value'),
            specific_months=data.get('specific_months'),
            tools=data.get('tools'),
            cost=data.get('cost'),
            pro_cost_low=data.get('pro_cost_low'),
            pro_cost_high=data.get('pro_cost_high'),
            materials_cost_low=data.get('materials_cost_low'),
            materials_cost_high=data.get('materials_cost_high'),
            is_active=data.get('is_active', True)
        )
        self.session.add(task)
        self.session.flush()
        logger.info(f"Created custom task: {task.id}")
        return task.to_dict()

    def update_custom_task(self, task_id: str, data: Dict) -> Optional[Dict]:
        """Update a custom task."""
        task = self._get_custom_task(task_id)
        if not task:
            return None

        for key in self.CUSTOM_TASK_FIELDS:
            if key in data:
                setattr(task, key, data[key])

        task.updated_at = datetime.utcnow()
        self.session.flush()
        logger.info(f"Updated custom task: {task_id}")
        return task.to_dict()

    def delete_custom_task(self, task_id: str) -> bool:
        """Delete a custom task."""
        task = self._get_custom_task(task_id)
        if not task:
            return False
        self.session.delete(task)
        self.session.flush()
        logger.info(f"Deleted custom task: {task_id}")
        return True

    # =========================================================================
    # TASK OVERRIDES
    # =========================================================================

    def list_overrides(self, house_id: str) -> List[Dict]:
        """List all overrides for a house."""
        overrides = self.session.query(TaskOverride).filter(
            TaskOverride.house_id == house_id,
            TaskOverride.homeowner_id == self.homeowner_id
        ).order_by(TaskOverride.task_id).all()
        return [o.to_dict() for o in overrides]

    def _get_override(self, house_id: str, task_id: str) -> Optional[TaskOverride]:
        return self.session.query(TaskOverride).filter(
            TaskOverride.house_id == house_id,
            TaskOverride.task_id == task_id,
            TaskOverride.homeowner_id == self.homeowner_id
        ).first()

    def upsert_override(self, house_id: str, task_id: str, data: Dict) -> Dict:
        """
        Create or replace the override for (house_id, task_id).

        Replacing resets every field not present in ``data`` to its default.
        """
        override = self._get_override(house_id, task_id)
        created = override is None
        if created:
            override = TaskOverride(
                homeowner_id=self.homeowner_id,
                house_id=house_id,
                task_id=task_id
            )
            self.session.add(override)

        override.is_enabled = data.get('is_enabled', True)
        for key in self.OVERRIDE_FIELDS:
            if key != 'is_enabled':
                setattr(override, key, data.get(key))

        override.updated_at = datetime.utcnow()
        self.session.flush()
        logger.info(f"{'Created' if created else 'Replaced'} task override: {house_id}/{task_id}")
        return override.to_dict()

    def delete_override(self, house_id: str, task_id: str) -> bool:
        """Reset a task to catalog defaults. Returns False when no override existed."""
        override = self._get_override(house_id, task_id)
        if not override:
            return False
        self.session.delete(override)
        self.session.flush()
        logger.info(f"Deleted task override: {house_id}/{task_id}")
        return True

    # =========================================================================
    # COMPLETIONS
    # =========================================================================

    def list_completion_keys(self, house_id: str, month: int = None, year: int = None) -> List[str]:
        """Completion flag keys ("{task_key}-{month}-{year}") for a house."""
        query = self.session.query(TaskCompletion).filter(
            TaskCompletion.house_id == house_id,
            TaskCompletion.homeowner_id == self.homeowner_id
        )
        if month is not None:
            query = query.filter(TaskCompletion.month == month)
        if year is not None:
            query = query.filter(TaskCompletion.year == year)
        return [c.completion_key for c in query.all()]

    def toggle_completion(self, house_id: str, task_key: str, month: int, year: int) -> bool:
        """Flip the completion flag for a task. Returns the new state."""
        completion = self.session.query(TaskCompletion).filter(
            TaskCompletion.house_id == house_id,
            TaskCompletion.homeowner_id == self.homeowner_id,
            TaskCompletion.task_key == task_key,
            TaskCompletion.month == month,
            TaskCompletion.year == year
        ).first()

        if completion:
            self.session.delete(completion)
            self.session.flush()
            logger.info(f"Cleared completion: {house_id}/{task_key}-{month}-{year}")
            return False

        self.session.add(TaskCompletion(
            homeowner_id=self.homeowner_id,
            house_id=house_id,
            task_key=task_key,
            month=month,
            year=year
        ))
        self.session.flush()
        logger.info(f"Marked complete: {house_id}/{task_key}-{month}-{year}")
        return True

    def reset_month(self, house_id: str, month: int, year: int) -> int:
        """Clear every completion flag for a house in one month. Returns the number cleared."""
        deleted = self.session.query(TaskCompletion).filter(
            TaskCompletion.house_id == house_id,
            TaskCompletion.homeowner_id == self.homeowner_id,
            TaskCompletion.month == month,
            TaskCompletion.year == year
        ).delete(synchronize_session=False)
        self.session.flush()
        logger.info(f"Reset {deleted} completions for {house_id} {month}/{year}")
        return deleted
