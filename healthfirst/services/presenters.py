"""Conversion of ORM rows into API response models."""

from healthfirst.models.appointment import AppointmentSlot
from healthfirst.models.availability import ProviderAvailability
from healthfirst.schemas.availability import AppointmentSlotResponse, AvailabilityResponse


def slot_to_response(slot: AppointmentSlot, include_patient: bool = False) -> AppointmentSlotResponse:
    provider = slot.provider
    response = AppointmentSlotResponse(
        id=slot.id,
        availability_id=slot.availability_id,
        provider_id=slot.provider_id,
        provider_name=provider.full_name if provider is not None else None,
        provider_specialization=provider.specialization if provider is not None else None,
        start_date_time=slot.start_date_time,
        end_date_time=slot.end_date_time,
        appointment_type=slot.appointment_type,
        is_booked=slot.is_booked,
        is_active=slot.is_active,
        booking_confirmed=slot.booking_confirmed,
        price=slot.price,
        location=slot.location,
    )

    # Patient identity is only exposed for booked slots to authorized callers.
    if include_patient and slot.is_booked and slot.patient is not None:
        response.patient_id = slot.patient.id
        response.patient_name = slot.patient.full_name

    return response


def availability_to_response(
    availability: ProviderAvailability,
    include_slots: bool = False,
    instances_created: int | None = None,
) -> AvailabilityResponse:
    active_slots = [slot for slot in availability.slots if slot.is_active]
    provider = availability.provider

    response = AvailabilityResponse(
        id=availability.id,
        provider_id=availability.provider_id,
        provider_name=provider.full_name,
        specialization=provider.specialization,
        availability_date=availability.availability_date,
        start_time=availability.start_time,
        end_time=availability.end_time,
        slot_duration_minutes=availability.slot_duration_minutes,
        appointment_type=availability.appointment_type,
        timezone=availability.timezone,
        price=availability.price,
        location=availability.location,
        description=availability.description,
        recurrence_pattern=availability.recurrence_pattern,
        recurrence_end_date=availability.recurrence_end_date,
        recurrence_days_of_week=availability.recurrence_days_of_week,
        max_consecutive_slots=availability.max_consecutive_slots,
        buffer_time_minutes=availability.buffer_time_minutes or 0,
        is_active=availability.is_active,
        requires_confirmation=bool(availability.requires_confirmation),
        slot_count=len(active_slots),
        booked_slot_count=sum(1 for slot in active_slots if slot.is_booked),
        instances_created=instances_created,
        created_at=availability.created_at,
        updated_at=availability.updated_at,
    )

    if include_slots:
        response.appointment_slots = [slot_to_response(slot, include_patient=True) for slot in active_slots]

    return response
