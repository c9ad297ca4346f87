"""
Validation utilities for the School ERP backend
"""

from datetime import datetime, date

from utils.errors import ValidationError

ATTENDANCE_STATUSES = ('PRESENT', 'ABSENT', 'LATE', 'HALF_DAY', 'EXCUSED')
REPORT_TYPES = ('attendance', 'performance', 'financial', 'exam')
REPORT_FORMATS = ('pdf', 'excel', 'csv')

def validate_attendance_status(status):
    """Validate attendance status"""
    if status not in ATTENDANCE_STATUSES:
        return False, f"Attendance status must be one of: {', '.join(ATTENDANCE_STATUSES)}"

    return True, "Valid attendance status"

def validate_date(date_str):
    """Validate date format"""
    try:
        if isinstance(date_str, datetime):
            pass
        elif isinstance(date_str, date):
            pass  # Already a date object
        elif isinstance(date_str, str):
            datetime.strptime(date_str[:10], '%Y-%m-%d')
        else:
            return False, "Invalid date format"

        return True, "Valid date"
    except ValueError:
        return False, "Date must be in YYYY-MM-DD format"

def validate_month_year(month, year):
    """Validate a calendar month and year pair"""
    try:
        month_int = int(month)
        year_int = int(year)
    except (ValueError, TypeError):
        return False, "Month and year must be numbers"

    if month_int < 1 or month_int > 12:
        return False, "Month must be between 1 and 12"

    if year_int < 1900 or year_int > 9999:
        return False, "Year is out of range"

    return True, "Valid month and year"

def validate_marks(marks, max_marks, field_name="Marks"):
    """Validate marks against maximum marks"""
    try:
        marks_float = float(marks)
        max_marks_float = float(max_marks)

        if marks_float < 0:
            return False, f"{field_name} cannot be negative"

        if marks_float > max_marks_float:
            return False, f"{field_name} cannot exceed full marks ({max_marks_float:g})"

        return True, "Valid marks"
    except (ValueError, TypeError):
        return False, f"{field_name} must be a valid number"

def parse_date(value, field_name='date'):
    """Return a date for a date/datetime/ISO string or raise ValidationError"""
    is_valid, message = validate_date(value)
    if value is None or not is_valid:
        raise ValidationError(f"Invalid {field_name}: {message if value is not None else 'value is required'}")

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(value[:10], '%Y-%m-%d').date()

def parse_int(value, field_name, required=True):
    """Coerce a request value to int"""
    if value is None or value == '':
        if required:
            raise ValidationError(f"{field_name} is required")
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a whole number")
    try:
        return int(value)
    except (ValueError, TypeError):
        raise ValidationError(f"{field_name} must be a whole number")

def parse_month_year(month, year):
    """Validate and coerce a month/year pair"""
    if month in (None, '') or year in (None, ''):
        raise ValidationError("Month and year are required")

    is_valid, message = validate_month_year(month, year)
    if not is_valid:
        raise ValidationError(message)
    return int(month), int(year)

def require_fields(data, *fields):
    """Raise ValidationError listing every missing field"""
    missing = [field for field in fields if data.get(field) in (None, '')]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

def parse_bool(value):
    """Interpret JSON or form style booleans"""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')
