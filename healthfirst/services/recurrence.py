"""Recurrence expansion for provider availability.

A recurring availability request becomes one dated instance per matching
calendar day. The expansion happens up front so the caller can check and
persist the whole series explicitly.
"""

import calendar
import logging
from datetime import date, timedelta
from typing import Iterable

from healthfirst.core import config
from healthfirst.models.enums import RecurrencePattern
from healthfirst.services.errors import ValidationError

logger = logging.getLogger(__name__)

ISO_WEEKDAYS = range(1, 8)
LAST_WEEKDAY = 5


def add_months(value: date, months: int) -> date:
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def normalize_days_of_week(days_of_week: Iterable[int] | None) -> list[int]:
    if not days_of_week:
        return []

    normalized = sorted(set(days_of_week))
    invalid = [day for day in normalized if day not in ISO_WEEKDAYS]
    if invalid:
        raise ValidationError(
            'Recurrence days must be ISO weekday numbers (1=Monday through 7=Sunday).',
            [f'Invalid weekday: {day}' for day in invalid],
        )
    return normalized


def validate_recurrence(
    start_date: date,
    pattern: RecurrencePattern,
    end_date: date | None = None,
    days_of_week: Iterable[int] | None = None,
) -> list[str]:
    """Return human-readable problems with a recurrence definition (empty when valid)."""
    if pattern == RecurrencePattern.NONE:
        return []

    errors: list[str] = []
    if pattern == RecurrencePattern.CUSTOM and not days_of_week:
        errors.append('Custom recurrence requires at least one day of the week')
    if days_of_week and any(day not in ISO_WEEKDAYS for day in days_of_week):
        errors.append('Recurrence days must be between 1 (Monday) and 7 (Sunday)')
    if end_date is not None and end_date <= start_date:
        errors.append('Recurrence end date must be after the availability date')
    return errors


def _matches(pattern: RecurrencePattern, current: date, days: set[int]) -> bool:
    weekday = current.isoweekday()
    if pattern in (RecurrencePattern.DAILY, RecurrencePattern.WEEKLY):
        return True
    if pattern == RecurrencePattern.WEEKDAYS:
        return weekday <= LAST_WEEKDAY
    if pattern == RecurrencePattern.WEEKENDS:
        return weekday > LAST_WEEKDAY
    if pattern == RecurrencePattern.CUSTOM:
        return weekday in days
    return False


def expand_recurrence(
    start_date: date,
    pattern: RecurrencePattern,
    end_date: date | None = None,
    days_of_week: Iterable[int] | None = None,
) -> list[date]:
    """Return the ordered dates, start and end inclusive, on which ``pattern`` repeats.

    Recurring patterns without an explicit end run for
    ``DEFAULT_RECURRENCE_MONTHS`` calendar months. WEEKLY steps one day at a
    time, the same as DAILY.
    """
    pattern = RecurrencePattern(pattern)
    days = list(days_of_week or [])

    problems = validate_recurrence(start_date, pattern, end_date, days)
    if problems:
        raise ValidationError('Invalid recurrence settings', problems)

    if pattern == RecurrencePattern.NONE:
        return [start_date]

    last_date = end_date or add_months(start_date, config.DEFAULT_RECURRENCE_MONTHS)

    if pattern == RecurrencePattern.MONTHLY:
        dates: list[date] = []
        offset = 0
        current = start_date
        while current <= last_date:
            dates.append(current)
            offset += 1
            current = add_months(start_date, offset)
        return dates

    if pattern == RecurrencePattern.WEEKLY:
        logger.warning('WEEKLY recurrence expands daily between %s and %s', start_date, last_date)

    weekday_set = set(normalize_days_of_week(days))
    dates = []
    current = start_date
    while current <= last_date:
        if _matches(pattern, current, weekday_set):
            dates.append(current)
        current += timedelta(days=1)

    if not dates:
        raise ValidationError('Recurrence settings do not match any date in the requested range')

    return dates
