"""
Database package for HomeBase.
Provides SQLAlchemy models, connection management, and session handling.
"""

from database.connection import Base, Database

from database.models import (
    House,
    HomeAppliance,
    MaintenanceLog,
    CustomMaintenanceTask,
    TaskOverride,
    TaskCompletion,
    CrmLead,
    CrmNote,
    CrmClient,
    CrmJob,
    CrmQuote,
    CrmInvoice,
    CrmLineItem,
    EventLog,
    Notification
)

__all__ = [
    # Connection
    'Base',
    'Database',
    # Models
    'House',
    'HomeAppliance',
    'MaintenanceLog',
    'CustomMaintenanceTask',
    'TaskOverride',
    'TaskCompletion',
    'CrmLead',
    'CrmNote',
    'CrmClient',
    'CrmJob',
    'CrmQuote',
    'CrmInvoice',
    'CrmLineItem',
    'EventLog',
    'Notification'
]
