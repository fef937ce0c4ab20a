"""Slot generation: expand one availability window into bookable UTC slots."""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

import pytz

from healthfirst.models.appointment import AppointmentSlot
from healthfirst.models.availability import ProviderAvailability
from healthfirst.services.errors import InvalidTimezoneError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlotWindow:
    start_utc: datetime
    end_utc: datetime


def resolve_timezone(name: str | None) -> pytz.BaseTzInfo:
    if not name or not name.strip():
        raise InvalidTimezoneError('Timezone is required')
    try:
        return pytz.timezone(name.strip())
    except pytz.UnknownTimeZoneError as exc:
        raise InvalidTimezoneError(f'Invalid timezone: {name}') from exc


def to_utc(local_date: date, local_time: time, timezone_name: str) -> datetime:
    """Interpret a wall-clock date/time in ``timezone_name`` and return it as naive UTC."""
    zone = resolve_timezone(timezone_name)
    localized = zone.localize(datetime.combine(local_date, local_time))
    return localized.astimezone(pytz.utc).replace(tzinfo=None)


def from_utc(value: datetime, timezone_name: str) -> datetime:
    """Inverse of ``to_utc``: naive UTC to naive wall-clock time in ``timezone_name``."""
    zone = resolve_timezone(timezone_name)
    return pytz.utc.localize(value).astimezone(zone).replace(tzinfo=None)


def generate_slot_windows(
    availability_date: date,
    start_time: time,
    end_time: time,
    timezone_name: str,
    slot_duration_minutes: int,
    buffer_time_minutes: int = 0,
) -> list[SlotWindow]:
    if slot_duration_minutes <= 0:
        raise ValueError('slot_duration_minutes must be positive')
    if buffer_time_minutes < 0:
        raise ValueError('buffer_time_minutes cannot be negative')

    duration = timedelta(minutes=slot_duration_minutes)
    step = duration + timedelta(minutes=buffer_time_minutes)

    cursor = to_utc(availability_date, start_time, timezone_name)
    window_end = to_utc(availability_date, end_time, timezone_name)

    windows: list[SlotWindow] = []
    # A slot ending exactly at the window end is kept.
    while cursor + duration <= window_end:
        windows.append(SlotWindow(start_utc=cursor, end_utc=cursor + duration))
        cursor += step

    return windows


def build_slots(availability: ProviderAvailability) -> list[AppointmentSlot]:
    windows = generate_slot_windows(
        availability.availability_date,
        availability.start_time,
        availability.end_time,
        availability.timezone,
        availability.slot_duration_minutes,
        availability.buffer_time_minutes or 0,
    )

    slots = [
        AppointmentSlot(
            availability=availability,
            provider_id=availability.provider_id,
            start_date_time=window.start_utc,
            end_date_time=window.end_utc,
            appointment_type=availability.appointment_type,
            price=availability.price,
            location=availability.location,
            is_booked=False,
            is_active=bool(availability.is_active),
            booking_confirmed=False,
        )
        for window in windows
    ]

    logger.info(
        'Generated %s appointment slots for availability on %s (%s-%s %s)',
        len(slots),
        availability.availability_date,
        availability.start_time,
        availability.end_time,
        availability.timezone,
    )
    return slots
