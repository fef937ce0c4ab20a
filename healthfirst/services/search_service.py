"""Patient-facing search over open appointment slots."""

import logging
from dataclasses import dataclass
from datetime import datetime, time

from sqlalchemy.orm import Session, joinedload

from healthfirst.models.appointment import AppointmentSlot
from healthfirst.models.availability import ProviderAvailability
from healthfirst.models.enums import AppointmentType
from healthfirst.models.provider import Provider
from healthfirst.schemas.availability import (
    AppointmentSlotResponse,
    AppointmentTypeOptionResponse,
    AvailabilitySearchRequest,
)
from healthfirst.services.errors import ValidationError
from healthfirst.services.presenters import slot_to_response
from healthfirst.services.results import ServiceResult, service_operation
from healthfirst.services.slot_generator import from_utc, resolve_timezone

logger = logging.getLogger(__name__)

END_OF_DAY = time(23, 59, 59)


@dataclass
class SlotSearchResult:
    slots: list[AppointmentSlotResponse]
    more_available: bool

    @property
    def total_results(self) -> int:
        return len(self.slots)


def _validate_criteria(criteria: AvailabilitySearchRequest) -> None:
    errors: list[str] = []
    if criteria.start_date > criteria.end_date:
        errors.append('Start date must be on or before end date')
    if (
        criteria.preferred_start_time is not None
        and criteria.preferred_end_time is not None
        and criteria.preferred_start_time > criteria.preferred_end_time
    ):
        errors.append('Preferred start time must be on or before preferred end time')
    if criteria.min_price is not None and criteria.max_price is not None and criteria.min_price > criteria.max_price:
        errors.append('Minimum price cannot exceed maximum price')
    if (
        criteria.min_slot_duration_minutes is not None
        and criteria.max_slot_duration_minutes is not None
        and criteria.min_slot_duration_minutes > criteria.max_slot_duration_minutes
    ):
        errors.append('Minimum slot duration cannot exceed maximum slot duration')
    if errors:
        raise ValidationError('Invalid search criteria: ' + ', '.join(errors), errors)
    if criteria.timezone is not None:
        resolve_timezone(criteria.timezone)


def _query_open_slots(db: Session, criteria: AvailabilitySearchRequest) -> list[AppointmentSlot]:
    range_start = datetime.combine(criteria.start_date, time.min)
    range_end = datetime.combine(criteria.end_date, END_OF_DAY)

    query = db.query(AppointmentSlot).join(Provider, AppointmentSlot.provider_id == Provider.id).join(
        ProviderAvailability, AppointmentSlot.availability_id == ProviderAvailability.id,
    ).options(
        joinedload(AppointmentSlot.provider),
    ).filter(
        AppointmentSlot.is_booked.is_(False),
        AppointmentSlot.is_active.is_(True),
        Provider.is_active.is_(True),
        ProviderAvailability.is_active.is_(True),
        AppointmentSlot.start_date_time >= range_start,
        AppointmentSlot.start_date_time <= range_end,
    )

    if criteria.provider_ids:
        query = query.filter(AppointmentSlot.provider_id.in_(criteria.provider_ids))
    if criteria.appointment_type is not None:
        query = query.filter(AppointmentSlot.appointment_type == criteria.appointment_type.value)

    return query.order_by(AppointmentSlot.start_date_time.asc(), AppointmentSlot.id.asc()).all()


def slot_matches(slot: AppointmentSlot, criteria: AvailabilitySearchRequest) -> bool:
    if criteria.preferred_start_time is not None or criteria.preferred_end_time is not None:
        slot_start = slot.start_date_time
        if criteria.timezone is not None:
            slot_start = from_utc(slot_start, criteria.timezone)
        slot_time = slot_start.time()
        if criteria.preferred_start_time is not None and slot_time < criteria.preferred_start_time:
            return False
        if criteria.preferred_end_time is not None and slot_time > criteria.preferred_end_time:
            return False

    if criteria.specialization is not None:
        specialization = slot.provider.specialization if slot.provider is not None else None
        if specialization is None or specialization.lower() != criteria.specialization.lower():
            return False

    if criteria.location is not None:
        if slot.location is None or criteria.location.lower() not in slot.location.lower():
            return False

    if criteria.min_price is not None or criteria.max_price is not None:
        if slot.price is None:
            return False
        if criteria.min_price is not None and slot.price < criteria.min_price:
            return False
        if criteria.max_price is not None and slot.price > criteria.max_price:
            return False

    if criteria.min_slot_duration_minutes is not None and slot.duration_minutes < criteria.min_slot_duration_minutes:
        return False
    if criteria.max_slot_duration_minutes is not None and slot.duration_minutes > criteria.max_slot_duration_minutes:
        return False

    return True


def sort_slots(slots: list[AppointmentSlot], sort_by: str, ascending: bool) -> list[AppointmentSlot]:
    """Stable sort; slots without a price always sort last."""
    if sort_by == 'price':
        priced = [slot for slot in slots if slot.price is not None]
        unpriced = [slot for slot in slots if slot.price is None]
        return sorted(priced, key=lambda slot: slot.price, reverse=not ascending) + unpriced
    return sorted(slots, key=lambda slot: slot.start_date_time, reverse=not ascending)


@service_operation('Search available slots')
def search_available_slots(db: Session, criteria: AvailabilitySearchRequest) -> ServiceResult[SlotSearchResult]:
    logger.info(
        'Searching slots %s..%s (type=%s, specialization=%s, providers=%s)',
        criteria.start_date,
        criteria.end_date,
        criteria.appointment_type,
        criteria.specialization,
        criteria.provider_ids,
    )
    _validate_criteria(criteria)

    candidates = _query_open_slots(db, criteria)
    matching = [slot for slot in candidates if slot_matches(slot, criteria)]
    limited = sort_slots(matching, criteria.sort_by, criteria.ascending)[:criteria.max_results]

    result = SlotSearchResult(
        slots=[slot_to_response(slot) for slot in limited],
        more_available=len(limited) == criteria.max_results,
    )
    logger.info('Slot search matched %s of %s candidate slots', len(matching), len(candidates))
    return ServiceResult.ok('Available slots retrieved successfully', result)


def list_appointment_types() -> list[AppointmentTypeOptionResponse]:
    return [
        AppointmentTypeOptionResponse(appointment_type=appointment_type, display_name=appointment_type.display_name)
        for appointment_type in AppointmentType
    ]
