"""
API Blueprints Package

All HTTP route handlers for the application, organized by domain.
Each module defines a Flask Blueprint registered in app/__init__.py.

BLUEPRINT REFERENCE:
====================

Homeowner Domain:
- houses.py         : Houses, appliances, maintenance logs
- maintenance.py    : Monthly tasks, completions, overrides, custom tasks, regions
- notifications.py  : In-app notifications

Contractor Domain:
- crm.py            : Leads, clients, jobs, quotes, invoices, activity, stats

Health endpoints (/api/health, /api/ready, /api/metrics, /api/ping) are
registered from health_checks.py at the project root.
"""

# All blueprints are imported and registered in app/__init__.py
# This file serves as documentation only

__all__ = []
