"""Overlap detection for availability windows and booked slots.

All checks use half-open intervals: ``[a_start, a_end)`` and
``[b_start, b_end)`` overlap iff ``a_start < b_end and a_end > b_start``, so
back-to-back ranges never conflict.

These are check-then-act queries. Two concurrent requests can both pass the
check; only a constraint in the database would close that gap.
"""

from datetime import date, datetime, time

from sqlalchemy.orm import Session

from healthfirst.models.appointment import AppointmentSlot
from healthfirst.models.availability import ProviderAvailability


def ranges_overlap(a_start, a_end, b_start, b_end) -> bool:
    return a_start < b_end and a_end > b_start


def find_overlapping_availability(
    db: Session,
    provider_id: str,
    availability_date: date,
    start_time: time,
    end_time: time,
    exclude_id: str | None = None,
) -> list[ProviderAvailability]:
    query = db.query(ProviderAvailability).filter(
        ProviderAvailability.provider_id == provider_id,
        ProviderAvailability.availability_date == availability_date,
        ProviderAvailability.is_active.is_(True),
        ProviderAvailability.start_time < end_time,
        ProviderAvailability.end_time > start_time,
    )
    if exclude_id is not None:
        query = query.filter(ProviderAvailability.id != exclude_id)
    return query.all()


def has_availability_overlap(
    db: Session,
    provider_id: str,
    availability_date: date,
    start_time: time,
    end_time: time,
    exclude_id: str | None = None,
) -> bool:
    return bool(
        find_overlapping_availability(db, provider_id, availability_date, start_time, end_time, exclude_id)
    )


def has_provider_slot_conflict(
    db: Session,
    provider_id: str,
    start: datetime,
    end: datetime,
    exclude_slot_id: str | None = None,
) -> bool:
    query = db.query(AppointmentSlot.id).filter(
        AppointmentSlot.provider_id == provider_id,
        AppointmentSlot.is_active.is_(True),
        AppointmentSlot.start_date_time < end,
        AppointmentSlot.end_date_time > start,
    )
    if exclude_slot_id is not None:
        query = query.filter(AppointmentSlot.id != exclude_slot_id)
    return query.first() is not None


def has_patient_booking_conflict(
    db: Session,
    patient_id: str,
    start: datetime,
    end: datetime,
    exclude_slot_id: str | None = None,
) -> bool:
    query = db.query(AppointmentSlot.id).filter(
        AppointmentSlot.patient_id == patient_id,
        AppointmentSlot.is_booked.is_(True),
        AppointmentSlot.is_active.is_(True),
        AppointmentSlot.start_date_time < end,
        AppointmentSlot.end_date_time > start,
    )
    if exclude_slot_id is not None:
        query = query.filter(AppointmentSlot.id != exclude_slot_id)
    return query.first() is not None
