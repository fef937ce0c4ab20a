"""
Appointment booking.

Booking marks one generated slot as taken by a patient after checking the
patient's and the provider's calendars for overlaps. Conflict checks are
check-then-act; two concurrent bookings can both pass them.
"""

import logging
import math
from datetime import datetime, time, timedelta
from typing import Callable

from sqlalchemy.orm import Session, joinedload

from healthfirst.models.appointment import AppointmentSlot
from healthfirst.models.patient import Patient
from healthfirst.models.provider import Provider, utc_now
from healthfirst.schemas.appointment import (
    AppointmentBookingRequest,
    AppointmentBookingResponse,
    AppointmentListRequest,
    AppointmentListResponse,
    AppointmentSummary,
    PaginationData,
)
from healthfirst.services import overlap
from healthfirst.services.errors import (
    BookedSlotsError,
    NotFoundError,
    OverlapError,
    OwnershipError,
    ValidationError,
)
from healthfirst.services.results import ServiceResult, service_operation

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    'startTime': AppointmentSlot.start_date_time,
    'endTime': AppointmentSlot.end_date_time,
    'bookedAt': AppointmentSlot.booked_at,
    'price': AppointmentSlot.price,
}


def appointment_status(slot: AppointmentSlot, now: datetime) -> str:
    if slot.cancelled_at is not None and not slot.is_booked:
        return 'CANCELLED'
    if not slot.is_booked:
        return 'AVAILABLE'
    if not slot.booking_confirmed:
        return 'PENDING_CONFIRMATION'
    if slot.start_date_time > now:
        return 'UPCOMING'
    if slot.end_date_time < now:
        return 'COMPLETED'
    return 'IN_PROGRESS'


def _to_booking_response(slot: AppointmentSlot) -> AppointmentBookingResponse:
    return AppointmentBookingResponse(
        slot_id=slot.id,
        provider_id=slot.provider_id,
        provider_name=slot.provider.full_name,
        patient_id=slot.patient.id,
        patient_name=slot.patient.full_name,
        start_date_time=slot.start_date_time,
        end_date_time=slot.end_date_time,
        appointment_type=slot.appointment_type,
        price=slot.price,
        location=slot.location,
        booking_reason=slot.booking_reason,
        booking_confirmed=slot.booking_confirmed,
        booked_at=slot.booked_at,
    )


def _to_summary(slot: AppointmentSlot, now: datetime) -> AppointmentSummary:
    return AppointmentSummary(
        slot_id=slot.id,
        provider_id=slot.provider_id,
        provider_name=slot.provider.full_name,
        provider_specialization=slot.provider.specialization,
        patient_id=slot.patient.id if slot.patient is not None else None,
        patient_name=slot.patient.full_name if slot.patient is not None else None,
        start_date_time=slot.start_date_time,
        end_date_time=slot.end_date_time,
        appointment_type=slot.appointment_type,
        status=appointment_status(slot, now),
        booking_confirmed=slot.booking_confirmed,
        price=slot.price,
        location=slot.location,
        consultation_type=slot.availability.consultation_type if slot.availability is not None else None,
        booking_reason=slot.booking_reason,
        patient_notes=slot.patient_notes,
        booked_at=slot.booked_at,
        cancelled_at=slot.cancelled_at,
        cancellation_reason=slot.cancellation_reason,
    )


@service_operation('Book appointment')
def book_slot(
    db: Session,
    request: AppointmentBookingRequest,
    clock: Callable[[], datetime] = utc_now,
) -> ServiceResult[AppointmentBookingResponse]:
    logger.info('Booking slot %s for patient %s', request.slot_id, request.patient_id)
    now = clock()

    slot = db.query(AppointmentSlot).filter(AppointmentSlot.id == request.slot_id).first()
    if slot is None:
        raise NotFoundError('Appointment slot not found')
    if not slot.is_available(now) or not slot.availability.is_active:
        raise BookedSlotsError('Appointment slot is not available')

    patient = db.query(Patient).filter(Patient.id == request.patient_id).first()
    if patient is None:
        raise NotFoundError('Patient not found')
    if not patient.is_active:
        raise ValidationError('Patient account is not active')

    if request.provider_id is not None and request.provider_id != slot.provider_id:
        raise ValidationError('Provider ID does not match slot provider')

    if overlap.has_patient_booking_conflict(db, patient.id, slot.start_date_time, slot.end_date_time):
        raise OverlapError('Patient has a conflicting appointment at this time')
    if overlap.has_provider_slot_conflict(
        db, slot.provider_id, slot.start_date_time, slot.end_date_time, exclude_slot_id=slot.id,
    ):
        raise OverlapError('Provider has a conflicting slot at this time')

    slot.book(patient, request.booking_reason, now=now)
    slot.patient_notes = request.patient_notes
    slot.booking_confirmed = not slot.availability.requires_confirmation

    db.commit()
    db.refresh(slot)

    logger.info('Booked slot %s for patient %s (confirmed=%s)', slot.id, patient.id, slot.booking_confirmed)
    return ServiceResult.ok('Appointment booked successfully', _to_booking_response(slot))


@service_operation('Cancel appointment')
def cancel_booking(
    db: Session,
    slot_id: str,
    patient_id: str | None = None,
    provider_id: str | None = None,
    reason: str | None = None,
    clock: Callable[[], datetime] = utc_now,
) -> ServiceResult[AppointmentSummary]:
    logger.info('Cancelling booking on slot %s', slot_id)

    slot = db.query(AppointmentSlot).filter(AppointmentSlot.id == slot_id).first()
    if slot is None:
        raise NotFoundError('Appointment slot not found')
    if not slot.is_booked:
        raise ValidationError('Appointment slot is not booked')

    is_patient = patient_id is not None and slot.patient_id == patient_id
    is_provider = provider_id is not None and slot.provider_id == provider_id
    if not (is_patient or is_provider):
        raise OwnershipError('Only the booking patient or the slot provider can cancel this appointment')

    now = clock()
    slot.cancel(reason, now=now)
    db.commit()
    db.refresh(slot)

    logger.info('Cancelled booking on slot %s', slot_id)
    return ServiceResult.ok('Appointment cancelled successfully', _to_summary(slot, now))


@service_operation('List appointments')
def list_appointments(
    db: Session,
    request: AppointmentListRequest,
    clock: Callable[[], datetime] = utc_now,
) -> ServiceResult[AppointmentListResponse]:
    now = clock()

    if request.start_date is not None and request.end_date is not None and request.start_date > request.end_date:
        raise ValidationError('Invalid date range')
    if request.patient_id is not None and db.query(Patient.id).filter(Patient.id == request.patient_id).first() is None:
        raise NotFoundError('Patient not found')
    if request.provider_id is not None and db.query(Provider.id).filter(Provider.id == request.provider_id).first() is None:
        raise NotFoundError('Provider not found')

    query = db.query(AppointmentSlot).options(
        joinedload(AppointmentSlot.provider),
        joinedload(AppointmentSlot.patient),
        joinedload(AppointmentSlot.availability),
    ).filter(AppointmentSlot.is_active.is_(True))

    if request.patient_id is not None:
        query = query.filter(AppointmentSlot.patient_id == request.patient_id)
    if request.provider_id is not None:
        query = query.filter(AppointmentSlot.provider_id == request.provider_id)

    if request.filter_type == 'upcoming':
        query = query.filter(AppointmentSlot.is_booked.is_(True), AppointmentSlot.start_date_time > now)
    elif request.filter_type == 'past':
        query = query.filter(AppointmentSlot.is_booked.is_(True), AppointmentSlot.end_date_time < now)
    elif request.filter_type == 'cancelled':
        query = query.filter(AppointmentSlot.cancelled_at.is_not(None), AppointmentSlot.is_booked.is_(False))
    else:
        query = query.filter(
            (AppointmentSlot.is_booked.is_(True)) | (AppointmentSlot.cancelled_at.is_not(None))
        )

    if request.filter_type in ('all', 'cancelled'):
        if request.start_date is not None:
            query = query.filter(AppointmentSlot.start_date_time >= datetime.combine(request.start_date, time.min))
        if request.end_date is not None:
            query = query.filter(
                AppointmentSlot.start_date_time < datetime.combine(request.end_date + timedelta(days=1), time.min)
            )

    total_items = query.count()
    column = SORT_COLUMNS[request.sort_by]
    query = query.order_by(column.asc() if request.ascending else column.desc(), AppointmentSlot.id.asc())
    slots = query.offset((request.page - 1) * request.page_size).limit(request.page_size).all()

    pagination = PaginationData(
        page=request.page,
        page_size=request.page_size,
        total_items=total_items,
        total_pages=math.ceil(total_items / request.page_size) if total_items else 0,
    )
    return ServiceResult.ok(
        'Appointments retrieved successfully',
        AppointmentListResponse(appointments=[_to_summary(slot, now) for slot in slots], pagination=pagination),
    )
