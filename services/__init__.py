"""
Services package for HomeBase.
Contains the maintenance engine and repository classes for database access.
"""

from services.task_catalog import RegionCatalog, region_for_climate_zone
from services.task_resolution import build_monthly_schedule, resolve_tasks_for_month
from services.house_repository import HouseRepository
from services.maintenance_repository import MaintenanceRepository
from services.crm_repository import CRMRepository
from services.notification_service import NotificationService

__all__ = [
    'RegionCatalog',
    'region_for_climate_zone',
    'build_monthly_schedule',
    'resolve_tasks_for_month',
    'HouseRepository',
    'MaintenanceRepository',
    'CRMRepository',
    'NotificationService'
]
