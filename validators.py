"""
Input Validation & Sanitization Utilities
Provides validation for API request bodies: houses, maintenance data and CRM records
"""
import re
from datetime import datetime
from typing import Dict, Any, List, Optional, Tuple
import logging

from services.system_requirements import unknown_system_tags

logger = logging.getLogger(__name__)

# Regex patterns
EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
PHONE_PATTERN = re.compile(r'^\+?1?\d{9,15}$')
ISO_DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}')

# Allowed values
FREQUENCY_TYPES = ('monthly', 'quarterly', 'biannually', 'annually', 'custom')
TASK_PRIORITIES = ('low', 'medium', 'high')
TASK_DIFFICULTIES = ('easy', 'moderate', 'difficult')
COMPLETION_METHODS = ('diy', 'contractor')
LEAD_SOURCES = ('referral', 'website', 'advertisement', 'social_media', 'repeat_customer', 'other')
LEAD_STATUSES = ('new', 'contacted', 'qualified', 'proposal_sent', 'won', 'lost', 'not_interested')
LEAD_PRIORITIES = ('low', 'medium', 'high', 'urgent')
NOTE_TYPES = ('note', 'call', 'email', 'meeting')
JOB_STATUSES = ('scheduled', 'in_progress', 'completed', 'cancelled')
QUOTE_STATUSES = ('draft', 'sent', 'accepted', 'rejected', 'expired')
INVOICE_STATUSES = ('draft', 'sent', 'paid', 'overdue', 'cancelled')


class ValidationError(Exception):
    """Custom exception for validation errors"""
    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(self.message)


def validate_required_fields(data: Dict[str, Any], required_fields: List[str]) -> Tuple[bool, Optional[str]]:
    """
    Validate that all required fields are present in the data

    Args:
        data: Dictionary of input data
        required_fields: List of required field names

    Returns:
        Tuple of (is_valid, error_message)
    """
    missing_fields = [field for field in required_fields if field not in data or data[field] is None or data[field] == '']

    if missing_fields:
        return False, f"Missing required fields: {', '.join(missing_fields)}"

    return True, None


def validate_email(email: str) -> Tuple[bool, Optional[str]]:
    """
    Validate email format

    Args:
        email: Email address to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not email or not isinstance(email, str):
        return False, "Email must be a non-empty string"

    if not EMAIL_PATTERN.match(email):
        return False, "Invalid email format"

    if len(email) > 254:  # RFC 5321
        return False, "Email address too long"

    return True, None


def validate_phone(phone: str) -> Tuple[bool, Optional[str]]:
    """
    Validate phone number format

    Args:
        phone: Phone number to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not phone or not isinstance(phone, str):
        return False, "Phone must be a non-empty string"

    # Remove common separators
    cleaned_phone = re.sub(r'[\s\-\(\)\.]', '', phone)

    if not PHONE_PATTERN.match(cleaned_phone):
        return False, "Invalid phone number format"

    return True, None


def validate_string_length(value: str, min_length: int = 0, max_length: int = 1000) -> Tuple[bool, Optional[str]]:
    """
    Validate string length is within acceptable range

    Args:
        value: String to validate
        min_length: Minimum allowed length
        max_length: Maximum allowed length

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(value, str):
        return False, "Value must be a string"

    if len(value) < min_length:
        return False, f"Value too short (minimum {min_length} characters)"

    if len(value) > max_length:
        return False, f"Value too long (maximum {max_length} characters)"

    return True, None


def validate_number_range(value: float, min_value: Optional[float] = None, max_value: Optional[float] = None) -> Tuple[bool, Optional[str]]:
    """
    Validate number is within acceptable range

    Args:
        value: Number to validate
        min_value: Minimum allowed value
        max_value: Maximum allowed value

    Returns:
        Tuple of (is_valid, error_message)
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False, "Value must be a number"

    if min_value is not None and value < min_value:
        return False, f"Value too small (minimum {min_value})"

    if max_value is not None and value > max_value:
        return False, f"Value too large (maximum {max_value})"

    return True, None


def validate_iso_date(value: str) -> Tuple[bool, Optional[str]]:
    """Validate a YYYY-MM-DD date (a time part is allowed and ignored)"""
    if not isinstance(value, str) or not ISO_DATE_PATTERN.match(value):
        return False, "Date must be in YYYY-MM-DD format"
    try:
        datetime.strptime(value[:10], '%Y-%m-%d')
    except ValueError:
        return False, "Invalid calendar date"
    return True, None


def validate_choice(value: Any, choices: Tuple[str, ...]) -> Tuple[bool, Optional[str]]:
    """Validate value is one of the allowed choices"""
    if value not in choices:
        return False, f"Must be one of: {', '.join(choices)}"
    return True, None


def _whole_number(value: Any) -> int:
    if isinstance(value, bool):
        raise TypeError("booleans are not numbers")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError("not a whole number")
    return int(value)


def validate_month_year(month: Any, year: Any) -> Tuple[bool, Optional[str]]:
    """Validate a calendar month (1-12) and a four-digit year"""
    try:
        month = _whole_number(month)
        year = _whole_number(year)
    except (TypeError, ValueError):
        return False, "month and year must be integers"

    if not 1 <= month <= 12:
        return False, "month must be between 1 and 12"
    if not 1900 <= year <= 9999:
        return False, "year must be between 1900 and 9999"
    return True, None


# ============================================================================
# FIELD-LEVEL CHECKS SHARED BY REQUEST VALIDATORS
# ============================================================================

def _check_fields(data: Dict[str, Any], checks: List[Tuple[str, Any]]) -> Tuple[bool, Optional[str]]:
    """
    Run (field, check) pairs over the fields present in data.

    A check is a callable returning (is_valid, error). Absent or null fields are skipped.
    """
    for field, check in checks:
        if field in data and data[field] is not None:
            is_valid, error = check(data[field])
            if not is_valid:
                return False, f"Invalid {field}: {error}"
    return True, None


def _text(max_length: int, min_length: int = 0):
    return lambda value: validate_string_length(value, min_length=min_length, max_length=max_length)


def _number(min_value: Optional[float] = None, max_value: Optional[float] = None):
    return lambda value: validate_number_range(value, min_value, max_value)


def _choice(choices: Tuple[str, ...]):
    return lambda value: validate_choice(value, choices)


def _boolean(value: Any) -> Tuple[bool, Optional[str]]:
    if not isinstance(value, bool):
        return False, "Value must be a boolean"
    return True, None


def _string_list(value: Any) -> Tuple[bool, Optional[str]]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        return False, "Value must be a list of strings"
    return True, None


def _month_list(value: Any) -> Tuple[bool, Optional[str]]:
    if not isinstance(value, list):
        return False, "Value must be a list of month numbers"
    for month in value:
        try:
            number = int(str(month).strip())
        except ValueError:
            return False, f"'{month}' is not a month number"
        if not 1 <= number <= 12:
            return False, f"{number} is not between 1 and 12"
    return True, None


def _home_systems(value: Any) -> Tuple[bool, Optional[str]]:
    is_valid, error = _string_list(value)
    if not is_valid:
        return is_valid, error
    unknown = unknown_system_tags(value)
    if unknown:
        return False, f"Unknown home systems: {', '.join(unknown)}"
    return True, None


def _line_items(value: Any) -> Tuple[bool, Optional[str]]:
    if not isinstance(value, list):
        return False, "line_items must be a list"
    for index, item in enumerate(value):
        if not isinstance(item, dict):
            return False, f"line item {index} must be an object"
        if not item.get('description'):
            return False, f"line item {index} is missing a description"
        for key in ('quantity', 'unit_price'):
            if key in item:
                is_valid, error = validate_number_range(item[key], min_value=0)
                if not is_valid:
                    return False, f"line item {index} {key}: {error}"
    return True, None


def _email(value: Any) -> Tuple[bool, Optional[str]]:
    # Empty strings are allowed for optional contact fields
    if value == '':
        return True, None
    return validate_email(value)


def _phone(value: Any) -> Tuple[bool, Optional[str]]:
    if value == '':
        return True, None
    return validate_phone(value)


def _run(data: Any, required: List[str], checks: List[Tuple[str, Any]],
         partial: bool) -> Tuple[bool, Optional[str]]:
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    if not partial:
        is_valid, error = validate_required_fields(data, required)
        if not is_valid:
            return False, error
    else:
        blank = [f for f in required if f in data and (data[f] is None or data[f] == '')]
        if blank:
            return False, f"Fields cannot be empty: {', '.join(blank)}"

    return _check_fields(data, checks)


# ============================================================================
# HOMEOWNER REQUESTS
# ============================================================================

def validate_house_request(data: Dict[str, Any], partial: bool = False) -> Tuple[bool, Optional[str]]:
    """
    Validate house create/update data

    Args:
        data: Request data dictionary
        partial: True for PATCH (required fields may be omitted)

    Returns:
        Tuple of (is_valid, error_message)
    """
    return _run(data, ['name'], [
        ('name', _text(200, min_length=1)),
        ('address', _text(500)),
        ('climate_zone', _text(100)),
        ('home_systems', _home_systems),
        ('is_default', _boolean),
    ], partial)


def validate_appliance_request(data: Dict[str, Any], partial: bool = False) -> Tuple[bool, Optional[str]]:
    """Validate appliance create/update data"""
    return _run(data, ['appliance_type'], [
        ('appliance_type', _text(100, min_length=1)),
        ('brand', _text(255)),
        ('model', _text(255)),
        ('year_installed', _number(1800, 2200)),
        ('serial_number', _text(255)),
        ('location', _text(255)),
        ('warranty_expiration', validate_iso_date),
        ('last_service_date', validate_iso_date),
        ('notes', _text(5000)),
    ], partial)


def validate_maintenance_log_request(data: Dict[str, Any], partial: bool = False) -> Tuple[bool, Optional[str]]:
    """Validate maintenance log create/update data"""
    return _run(data, ['service_date', 'service_type'], [
        ('service_date', validate_iso_date),
        ('service_type', _text(255, min_length=1)),
        ('home_area', _text(100)),
        ('description', _text(5000)),
        ('cost', _number(min_value=0)),
        ('contractor_name', _text(255)),
        ('contractor_company', _text(255)),
        ('completion_method', _choice(COMPLETION_METHODS)),
        ('notes', _text(5000)),
        ('warranty_period', _text(100)),
        ('next_service_due', validate_iso_date),
    ], partial)


def validate_custom_task_request(data: Dict[str, Any], partial: bool = False) -> Tuple[bool, Optional[str]]:
    """Validate custom maintenance task create/update data"""
    return _run(data, ['title', 'frequency_type'], [
        ('title', _text(255, min_length=1)),
        ('description', _text(5000)),
        ('category', _text(100)),
        ('priority', _choice(TASK_PRIORITIES)),
        ('difficulty', _choice(TASK_DIFFICULTIES)),
        ('estimated_time', _text(100)),
        ('frequency_type', _choice(FREQUENCY_TYPES)),
        ('frequency_value', _text(100)),
        ('specific_months', _month_list),
        ('tools', _string_list),
        ('cost', _text(100)),
        ('pro_cost_low', _number(min_value=0)),
        ('pro_cost_high', _number(min_value=0)),
        ('materials_cost_low', _number(min_value=0)),
        ('materials_cost_high', _number(min_value=0)),
        ('is_active', _boolean),
    ], partial)


def validate_task_override_request(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """Validate a task override upsert (task_id identifies the catalog or custom task)"""
    return _run(data, ['task_id'], [
        ('task_id', _text(255, min_length=1)),
        ('is_enabled', _boolean),
        ('frequency_type', _choice(FREQUENCY_TYPES)),
        ('frequency_value', _text(100)),
        ('specific_months', _month_list),
        ('custom_description', _text(5000)),
        ('notes', _text(5000)),
    ], partial=False)


def validate_completion_request(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """Validate a completion toggle"""
    is_valid, error = _run(data, ['task_key', 'month', 'year'], [
        ('task_key', _text(255, min_length=1)),
    ], partial=False)
    if not is_valid:
        return is_valid, error
    return validate_month_year(data['month'], data['year'])


# ============================================================================
# CRM REQUESTS
# ============================================================================

def validate_lead_request(data: Dict[str, Any], partial: bool = False) -> Tuple[bool, Optional[str]]:
    """Validate lead create/update data"""
    return _run(data, ['first_name', 'last_name'], [
        ('first_name', _text(255, min_length=1)),
        ('last_name', _text(255, min_length=1)),
        ('email', _email),
        ('phone', _phone),
        ('source', _choice(LEAD_SOURCES)),
        ('status', _choice(LEAD_STATUSES)),
        ('priority', _choice(LEAD_PRIORITIES)),
        ('project_type', _text(100)),
        ('estimated_value', _number(min_value=0)),
        ('follow_up_date', validate_iso_date),
        ('tags', _string_list),
        ('lost_reason', _text(2000)),
    ], partial)


def validate_lead_note_request(data: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """Validate a lead note"""
    return _run(data, ['content'], [
        ('content', _text(10000, min_length=1)),
        ('note_type', _choice(NOTE_TYPES)),
    ], partial=False)


def validate_client_request(data: Dict[str, Any], partial: bool = False) -> Tuple[bool, Optional[str]]:
    """Validate client create/update data"""
    return _run(data, ['name'], [
        ('name', _text(255, min_length=1)),
        ('company', _text(255)),
        ('email', _email),
        ('phone', _phone),
        ('notes', _text(5000)),
        ('tags', _string_list),
        ('is_active', _boolean),
    ], partial)


def validate_job_request(data: Dict[str, Any], partial: bool = False) -> Tuple[bool, Optional[str]]:
    """Validate job create/update data"""
    return _run(data, ['title'], [
        ('title', _text(255, min_length=1)),
        ('description', _text(5000)),
        ('status', _choice(JOB_STATUSES)),
        ('priority', _choice(LEAD_PRIORITIES)),
        ('scheduled_date', validate_iso_date),
        ('completed_date', validate_iso_date),
        ('estimated_hours', _number(min_value=0)),
        ('actual_hours', _number(min_value=0)),
        ('labor_cost', _number(min_value=0)),
        ('materials_cost', _number(min_value=0)),
        ('notes', _text(5000)),
    ], partial)


def validate_quote_request(data: Dict[str, Any], partial: bool = False) -> Tuple[bool, Optional[str]]:
    """Validate quote create/update data"""
    return _run(data, ['title'], [
        ('title', _text(255, min_length=1)),
        ('description', _text(5000)),
        ('status', _choice(QUOTE_STATUSES)),
        ('tax_rate', _number(0, 100)),
        ('valid_until', validate_iso_date),
        ('line_items', _line_items),
        ('notes', _text(5000)),
    ], partial)


def validate_invoice_request(data: Dict[str, Any], partial: bool = False) -> Tuple[bool, Optional[str]]:
    """Validate invoice create/update data"""
    return _run(data, [], [
        ('status', _choice(INVOICE_STATUSES)),
        ('tax_rate', _number(0, 100)),
        ('issue_date', validate_iso_date),
        ('due_date', validate_iso_date),
        ('paid_date', validate_iso_date),
        ('payment_method', _text(50)),
        ('line_items', _line_items),
        ('notes', _text(5000)),
    ], partial)
