"""
Utilities Package

Shared helper functions used across the application.
"""

from app.utils.helpers import (
    get_json_body,
    get_month_year_args,
    get_catalog,
    db_session,
)

__all__ = [
    'get_json_body',
    'get_month_year_args',
    'get_catalog',
    'db_session',
]
