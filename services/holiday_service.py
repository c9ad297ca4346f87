"""
Holiday service for the School ERP backend
Holiday maintenance and the working-day calendar used by attendance and reports
"""

import calendar
import logging
import re
from datetime import date, timedelta

from sqlalchemy import and_, func, or_

from models.attendance import DailyAttendance
from models.holiday import Holiday, HolidayType
from utils.db_helpers import commit_or_rollback, get_or_404
from utils.errors import ConflictError, ValidationError
from utils.validators import parse_bool, parse_date, parse_int

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ('monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday')
ORDINALS = {'1st': 1, '2nd': 2, '3rd': 3, '4th': 4, '5th': 5, 'last': -1}

_MONTHLY_PATTERN = re.compile(
    r'^MONTHLY\s+(1st|2nd|3rd|4th|5th|last)\s+(' + '|'.join(WEEKDAY_NAMES) + r')$',
    re.IGNORECASE
)

def parse_recurrence_pattern(pattern):
    """Parse a recurrence pattern.

    Supported grammar:
        ``YEARLY``                      the holiday's own date range, every year
        ``MONTHLY <ordinal> <weekday>`` e.g. ``MONTHLY 3rd Saturday`` or
                                        ``MONTHLY last Friday``

    Returns ``('YEARLY', None, None)`` or ``('MONTHLY', ordinal, weekday)``
    where ordinal is 1..5 or -1 for "last" and weekday follows date.weekday().
    """
    text = ' '.join((pattern or '').split())
    if text.upper() == 'YEARLY':
        return 'YEARLY', None, None

    match = _MONTHLY_PATTERN.match(text)
    if not match:
        raise ValidationError(
            f"Unsupported recurrence pattern '{pattern}'. "
            "Use 'YEARLY' or 'MONTHLY <1st|2nd|3rd|4th|5th|last> <weekday>'"
        )
    return 'MONTHLY', ORDINALS[match.group(1).lower()], WEEKDAY_NAMES.index(match.group(2).lower())

def nth_weekday_of_month(year, month, weekday, ordinal):
    """Date of the nth (or last, ordinal=-1) weekday in a month, None if absent"""
    month_days = calendar.monthrange(year, month)[1]
    days = [date(year, month, d) for d in range(1, month_days + 1) if date(year, month, d).weekday() == weekday]
    if ordinal == -1:
        return days[-1]
    if ordinal > len(days):
        return None
    return days[ordinal - 1]

def _shift_year(day, years):
    try:
        return day.replace(year=day.year + years)
    except ValueError:
        # 29 February in a non-leap year
        return day.replace(year=day.year + years, day=28)

def _date_range(start, end):
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)

def month_bounds(month, year):
    """First and last day of a calendar month"""
    return date(year, month, 1), date(year, month, calendar.monthrange(year, month)[1])

class HolidayService:
    """Holiday CRUD plus working-day computation"""

    def __init__(self, session, weekend_days=(5, 6)):
        self.session = session
        self.weekend_days = tuple(weekend_days)

    # ------------------------------------------------------------------ CRUD

    def _clean_holiday_data(self, data, existing=None):
        name = (data.get('name') if 'name' in data else getattr(existing, 'name', None)) or ''
        if not name.strip():
            raise ValidationError("Holiday name is required")

        from_value = data.get('from_date') if data.get('from_date') is not None else getattr(existing, 'from_date', None)
        from_date = parse_date(from_value, 'from_date')
        to_value = data.get('to_date') if data.get('to_date') is not None else getattr(existing, 'to_date', None)
        to_date = parse_date(to_value, 'to_date') if to_value is not None else from_date

        if from_date > to_date:
            raise ValidationError("From date cannot be after to date")

        pattern = data.get('recurrence_pattern') if 'recurrence_pattern' in data else getattr(existing, 'recurrence_pattern', None)
        pattern = pattern.strip() if isinstance(pattern, str) and pattern.strip() else None
        if 'is_recurring' in data:
            is_recurring = parse_bool(data.get('is_recurring'))
        else:
            is_recurring = bool(getattr(existing, 'is_recurring', False)) or pattern is not None

        if is_recurring and not pattern:
            raise ValidationError("Recurring holidays need a recurrence pattern")
        if pattern:
            parse_recurrence_pattern(pattern)

        holiday_type_id = parse_int(
            data.get('holiday_type_id') if 'holiday_type_id' in data else getattr(existing, 'holiday_type_id', None),
            'holiday_type_id', required=False
        )
        if holiday_type_id is not None:
            get_or_404(self.session, HolidayType, holiday_type_id, 'Holiday type')

        return {
            'name': name.strip(),
            'description': data.get('description') if 'description' in data else getattr(existing, 'description', None),
            'from_date': from_date,
            'to_date': to_date,
            'holiday_type_id': holiday_type_id,
            'is_recurring': is_recurring,
            'recurrence_pattern': pattern if is_recurring else None
        }

    def _check_overlap(self, from_date, to_date, exclude_id=None):
        query = self.session.query(Holiday).filter(
            Holiday.from_date <= to_date,
            Holiday.to_date >= from_date
        )
        if exclude_id is not None:
            query = query.filter(Holiday.id != exclude_id)
        overlapping = query.first()
        if overlapping:
            raise ConflictError(f"Holiday dates overlap with existing holiday '{overlapping.name}'")

    def _check_attendance_recorded(self, values):
        """Refuse a holiday that would cover days which already have attendance"""
        candidate = Holiday(**values)
        query = self.session.query(DailyAttendance.date).filter(
            DailyAttendance.date >= values['from_date']
        )
        if not values['is_recurring']:
            query = query.filter(DailyAttendance.date <= values['to_date'])
        marked = sorted({row.date for row in query.distinct()})
        if not marked:
            return

        covered = {day for day in marked if candidate.covers(day)}
        if values['is_recurring']:
            covered.update(self.expand_recurrence(candidate, marked[0], marked[-1]))
        clashes = sorted(covered.intersection(marked))
        if clashes:
            raise ConflictError(
                f"Attendance is already recorded on {clashes[0].isoformat()}; "
                "clear it before declaring a holiday on that day",
                details={'dates': [day.isoformat() for day in clashes]}
            )

    def add_holiday(self, data):
        """Create a holiday after range, overlap and pattern checks"""
        values = self._clean_holiday_data(data)
        self._check_overlap(values['from_date'], values['to_date'])
        self._check_attendance_recorded(values)

        holiday = Holiday(**values)
        self.session.add(holiday)
        commit_or_rollback(self.session, "Holiday could not be saved")
        logger.info("Added holiday %s (%s - %s)", holiday.name, holiday.from_date, holiday.to_date)
        return holiday

    def list_holidays(self, start=None, end=None, holiday_type_id=None):
        """Holidays overlapping [start, end], ordered by start date"""
        query = self.session.query(Holiday)
        if start is not None and end is not None:
            query = query.filter(Holiday.from_date <= end, Holiday.to_date >= start)
        if holiday_type_id is not None:
            query = query.filter(Holiday.holiday_type_id == holiday_type_id)
        return query.order_by(Holiday.from_date.asc()).all()

    def update_holiday(self, holiday_id, data):
        holiday = get_or_404(self.session, Holiday, holiday_id, 'Holiday')
        values = self._clean_holiday_data(data, existing=holiday)
        self._check_overlap(values['from_date'], values['to_date'], exclude_id=holiday.id)
        self._check_attendance_recorded(values)

        for field, value in values.items():
            setattr(holiday, field, value)
        commit_or_rollback(self.session, "Holiday could not be saved")
        return holiday

    def delete_holiday(self, holiday_id):
        holiday = get_or_404(self.session, Holiday, holiday_id, 'Holiday')
        self.session.delete(holiday)
        commit_or_rollback(self.session)
        logger.info("Deleted holiday %s", holiday_id)

    def get_holiday(self, holiday_id):
        return get_or_404(self.session, Holiday, holiday_id, 'Holiday')

    def list_holiday_types(self):
        return self.session.query(HolidayType).order_by(HolidayType.name.asc()).all()

    def add_holiday_type(self, name):
        """Create a holiday category; names are unique ignoring case"""
        name = name.strip() if isinstance(name, str) else ''
        if not name:
            raise ValidationError("Holiday type name is required")
        if len(name) > 50:
            raise ValidationError("Holiday type name must be at most 50 characters")

        existing = self.session.query(HolidayType).filter(
            func.lower(HolidayType.name) == name.lower()
        ).first()
        if existing:
            raise ConflictError(f"Holiday type '{existing.name}' already exists")

        holiday_type = HolidayType(name=name)
        self.session.add(holiday_type)
        commit_or_rollback(self.session, f"Holiday type '{name}' already exists")
        logger.info("Added holiday type %s", name)
        return holiday_type

    def upcoming_holidays(self, from_day=None, limit=5, horizon_days=366):
        """Next holidays on or after ``from_day`` with the date each one next applies.

        Ongoing holidays count from ``from_day``; recurring holidays are
        expanded over the following ``horizon_days``.
        """
        from_day = from_day or date.today()
        horizon = from_day + timedelta(days=horizon_days)

        candidates = self.session.query(Holiday).filter(
            Holiday.from_date <= horizon,
            or_(Holiday.to_date >= from_day, Holiday.is_recurring.is_(True))
        ).all()

        upcoming = []
        for holiday in candidates:
            if holiday.to_date >= from_day:
                next_date = max(holiday.from_date, from_day)
            else:
                occurrences = self.expand_recurrence(holiday, from_day, horizon)
                if not occurrences:
                    continue
                next_date = min(occurrences)
            data = holiday.to_dict()
            data['next_date'] = next_date.isoformat()
            upcoming.append((next_date, holiday.id, data))

        upcoming.sort(key=lambda item: (item[0], item[1]))
        return [data for _, _, data in upcoming[:limit]]

    # -------------------------------------------------------------- calendar

    @staticmethod
    def expand_recurrence(holiday, start, end):
        """Concrete dates in [start, end] produced by a recurring holiday"""
        kind, ordinal, weekday = parse_recurrence_pattern(holiday.recurrence_pattern)
        window_start = max(start, holiday.from_date)
        if window_start > end:
            return []

        dates = []
        if kind == 'YEARLY':
            for offset in range(window_start.year - holiday.from_date.year - 1, end.year - holiday.from_date.year + 1):
                if offset < 0:
                    continue
                occ_start = _shift_year(holiday.from_date, offset)
                occ_end = _shift_year(holiday.to_date, offset)
                for day in _date_range(max(occ_start, window_start), min(occ_end, end)):
                    dates.append(day)
        else:
            year, month = window_start.year, window_start.month
            while date(year, month, 1) <= end:
                day = nth_weekday_of_month(year, month, weekday, ordinal)
                if day is not None and window_start <= day <= end:
                    dates.append(day)
                month += 1
                if month > 12:
                    year, month = year + 1, 1
        return dates

    def holiday_dates(self, start, end):
        """Every date in [start, end] covered by a holiday"""
        holidays = self.session.query(Holiday).filter(
            or_(
                and_(Holiday.from_date <= end, Holiday.to_date >= start),
                and_(Holiday.is_recurring.is_(True), Holiday.from_date <= end)
            )
        ).all()

        covered = set()
        for holiday in holidays:
            for day in _date_range(max(holiday.from_date, start), min(holiday.to_date, end)):
                covered.add(day)
            if holiday.is_recurring and holiday.recurrence_pattern:
                covered.update(self.expand_recurrence(holiday, start, end))
        return covered

    def is_weekend(self, day):
        return day.weekday() in self.weekend_days

    def is_working_day(self, day):
        """Not a weekend and not covered by any holiday"""
        if self.is_weekend(day):
            return False
        return day not in self.holiday_dates(day, day)

    def working_days(self, month, year):
        """Working dates of a month, in order"""
        start, end = month_bounds(month, year)
        holidays = self.holiday_dates(start, end)
        return [day for day in _date_range(start, end) if not self.is_weekend(day) and day not in holidays]
