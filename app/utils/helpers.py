"""
Helper utility functions shared by the API blueprints.
"""

from contextlib import contextmanager
from datetime import date

from flask import current_app, request

from validators import ValidationError, validate_month_year


def get_json_body():
    """
    Parse the request body as a JSON object.

    Raises:
        ValidationError: If the body is missing or not a JSON object
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def get_month_year_args():
    """
    month/year query arguments, defaulting to the current month.

    Raises:
        ValidationError: If either is present but invalid
    """
    today = date.today()
    month = request.args.get('month', today.month)
    year = request.args.get('year', today.year)
    is_valid, error = validate_month_year(month, year)
    if not is_valid:
        raise ValidationError(error)
    return int(month), int(year)


def get_catalog():
    """The app's regional maintenance catalog."""
    return current_app.extensions['maintenance_catalog']


@contextmanager
def db_session():
    """
    Unit of work on the app's database.

    Example:
        with db_session() as session:
            repo = HouseRepository(session, user_id)
    """
    with current_app.extensions['database'].session_scope() as session:
        yield session
