"""
Provider availability lifecycle.

Creates, updates and deletes provider availability together with the
appointment slots generated from it. Every public method returns a
``ServiceResult``; domain errors raised internally are converted by
``service_operation`` and never escape to the caller.
"""

import logging
from datetime import date, datetime
from typing import Callable

import pytz
from sqlalchemy.orm import Session

from healthfirst.models.availability import ProviderAvailability
from healthfirst.models.provider import Provider
from healthfirst.schemas.availability import (
    AvailabilityResponse,
    CreateAvailabilityRequest,
    UpdateAvailabilityRequest,
)
from healthfirst.services import overlap
from healthfirst.services.errors import (
    BookedSlotsError,
    NotFoundError,
    OverlapError,
    OwnershipError,
    ValidationError,
)
from healthfirst.services.presenters import availability_to_response
from healthfirst.services.recurrence import expand_recurrence, normalize_days_of_week, validate_recurrence
from healthfirst.services.results import ServiceResult, service_operation
from healthfirst.services.slot_generator import build_slots, resolve_timezone

logger = logging.getLogger(__name__)

# Fields copied verbatim from a create request onto every generated instance.
COPIED_CREATE_FIELDS = (
    'start_time',
    'end_time',
    'slot_duration_minutes',
    'timezone',
    'price',
    'location',
    'description',
    'recurrence_end_date',
    'max_consecutive_slots',
    'buffer_time_minutes',
    'is_blocked',
    'block_reason',
    'consultation_type',
    'allow_walk_ins',
    'advance_booking_days',
    'same_day_booking',
    'consultation_duration_minutes',
    'break_between_appointments',
    'max_appointments_per_day',
    'consultation_fee',
    'emergency_available',
    'notes_for_patients',
    'requires_confirmation',
    'send_reminders',
    'reminder_time_hours',
    'allow_cancellation',
    'cancellation_hours_before',
)


def _utc_now() -> datetime:
    return datetime.now(pytz.utc)


class AvailabilityService:
    """Lifecycle manager for provider availability and its appointment slots."""

    def __init__(self, db: Session, clock: Callable[[], datetime] = _utc_now):
        self.db = db
        self.clock = clock

    def _today_in(self, timezone_name: str) -> date:
        return self.clock().astimezone(resolve_timezone(timezone_name)).date()

    def _get_provider(self, provider_id: str) -> Provider:
        provider = self.db.query(Provider).filter(Provider.id == provider_id).first()
        if provider is None:
            raise NotFoundError(f'Provider not found: {provider_id}')
        return provider

    def _get_active_provider(self, provider_id: str) -> Provider:
        provider = self._get_provider(provider_id)
        if not provider.is_active:
            raise ValidationError(f'Provider is not active: {provider_id}')
        return provider

    def _get_owned_availability(self, provider_id: str, availability_id: str) -> ProviderAvailability:
        availability = self.db.query(ProviderAvailability).filter(
            ProviderAvailability.id == availability_id,
        ).first()
        if availability is None:
            raise NotFoundError(f'Availability not found: {availability_id}')
        if availability.provider_id != provider_id:
            raise OwnershipError(f'Availability does not belong to provider: {provider_id}')
        return availability

    def _validate_create_request(self, request: CreateAvailabilityRequest) -> None:
        resolve_timezone(request.timezone)

        errors: list[str] = []
        if not request.is_valid_time_range():
            errors.append('Start time must be before end time')
        if request.availability_date < self._today_in(request.timezone):
            errors.append('Availability date cannot be in the past')
        errors.extend(
            validate_recurrence(
                request.availability_date,
                request.recurrence_pattern,
                request.recurrence_end_date,
                request.recurrence_days_of_week,
            )
        )

        if errors:
            raise ValidationError('Validation failed: ' + ', '.join(errors), errors)

    def _new_instance(
        self,
        provider: Provider,
        request: CreateAvailabilityRequest,
        availability_date: date,
        days_of_week: list[int] | None,
    ) -> ProviderAvailability:
        availability = ProviderAvailability(
            provider=provider,
            provider_id=provider.id,
            availability_date=availability_date,
            appointment_type=request.appointment_type.value,
            recurrence_pattern=request.recurrence_pattern.value,
            recurrence_days_of_week=days_of_week,
            is_active=True,
        )
        for field_name in COPIED_CREATE_FIELDS:
            setattr(availability, field_name, getattr(request, field_name))
        return availability

    @service_operation('Create availability')
    def create_availability(
        self,
        provider_id: str,
        request: CreateAvailabilityRequest,
    ) -> ServiceResult[AvailabilityResponse]:
        logger.info('Creating availability for provider %s on %s', provider_id, request.availability_date)

        provider = self._get_active_provider(provider_id)
        self._validate_create_request(request)

        dates = expand_recurrence(
            request.availability_date,
            request.recurrence_pattern,
            request.recurrence_end_date,
            request.recurrence_days_of_week,
        )

        conflicting_dates = [
            instance_date
            for instance_date in dates
            if overlap.has_availability_overlap(
                self.db, provider.id, instance_date, request.start_time, request.end_time,
            )
        ]
        if conflicting_dates:
            raise OverlapError(
                'Overlapping availability slots are not allowed',
                [f'Conflicting availability on {conflict.isoformat()}' for conflict in conflicting_dates],
            )

        days_of_week = normalize_days_of_week(request.recurrence_days_of_week) or None
        instances = [self._new_instance(provider, request, instance_date, days_of_week) for instance_date in dates]
        self.db.add_all(instances)
        self.db.flush()

        slot_total = 0
        for instance in instances:
            slots = build_slots(instance)
            self.db.add_all(slots)
            slot_total += len(slots)

        self.db.commit()
        first = instances[0]
        self.db.refresh(first)

        logger.info(
            'Created %s availability instance(s) with %s slots for provider %s',
            len(instances),
            slot_total,
            provider_id,
        )
        return ServiceResult.ok(
            'Availability created successfully',
            availability_to_response(first, instances_created=len(instances)),
        )

    @service_operation('List provider availability')
    def get_provider_availability(
        self,
        provider_id: str,
        start_date: date,
        end_date: date,
        include_slots: bool = False,
    ) -> ServiceResult[list[AvailabilityResponse]]:
        self._get_provider(provider_id)
        if start_date > end_date:
            raise ValidationError('Start date must be on or before end date')

        availabilities = self.db.query(ProviderAvailability).filter(
            ProviderAvailability.provider_id == provider_id,
            ProviderAvailability.is_active.is_(True),
            ProviderAvailability.availability_date >= start_date,
            ProviderAvailability.availability_date <= end_date,
        ).order_by(
            ProviderAvailability.availability_date.asc(),
            ProviderAvailability.start_time.asc(),
        ).all()

        return ServiceResult.ok(
            'Availability retrieved successfully',
            [availability_to_response(availability, include_slots) for availability in availabilities],
        )

    @service_operation('Get availability')
    def get_availability(self, availability_id: str, include_slots: bool = True) -> ServiceResult[AvailabilityResponse]:
        availability = self.db.query(ProviderAvailability).filter(
            ProviderAvailability.id == availability_id,
        ).first()
        if availability is None:
            raise NotFoundError(f'Availability not found: {availability_id}')
        return ServiceResult.ok('Availability retrieved successfully', availability_to_response(availability, include_slots))

    @service_operation('Update availability')
    def update_availability(
        self,
        provider_id: str,
        availability_id: str,
        request: UpdateAvailabilityRequest,
    ) -> ServiceResult[AvailabilityResponse]:
        logger.info('Updating availability %s for provider %s', availability_id, provider_id)

        availability = self._get_owned_availability(provider_id, availability_id)
        has_bookings = availability.has_booked_slots()
        is_active = availability.is_active if request.is_active is None else request.is_active
        reactivating = is_active and not availability.is_active

        if has_bookings and request.changes_slot_timing():
            raise BookedSlotsError('Cannot modify time settings when there are booked appointments')
        if has_bookings and not is_active:
            raise BookedSlotsError('Cannot deactivate availability with booked appointments')

        start_time = request.start_time or availability.start_time
        end_time = request.end_time or availability.end_time
        availability_date = request.availability_date or availability.availability_date
        timezone_name = request.timezone or availability.timezone

        resolve_timezone(timezone_name)
        errors: list[str] = []
        if start_time >= end_time:
            errors.append('Start time must be before end time')
        if request.availability_date is not None and availability_date < self._today_in(timezone_name):
            errors.append('Availability date cannot be in the past')
        if errors:
            raise ValidationError('Validation failed: ' + ', '.join(errors), errors)

        window_changed = (
            availability_date != availability.availability_date
            or start_time != availability.start_time
            or end_time != availability.end_time
        )
        if is_active and (window_changed or reactivating) and overlap.has_availability_overlap(
            self.db, provider_id, availability_date, start_time, end_time, exclude_id=availability.id,
        ):
            raise OverlapError('Overlapping availability slots are not allowed')

        updates = request.model_dump(exclude={'regenerate_slots'}, exclude_none=True)
        if 'appointment_type' in updates:
            updates['appointment_type'] = request.appointment_type.value
        for field_name, value in updates.items():
            setattr(availability, field_name, value)

        message = 'Availability updated successfully'
        if request.regenerate_slots:
            if has_bookings:
                logger.warning('Skipping slot regeneration for %s: it has booked slots', availability_id)
                message = 'Availability updated; slots were not regenerated because bookings exist'
            else:
                availability.slots.clear()
                self.db.flush()
                self.db.add_all(build_slots(availability))

        # Slots of an inactive record are neither searchable nor bookable.
        for slot in availability.slots:
            slot.is_active = availability.is_active

        self.db.commit()
        self.db.refresh(availability)

        logger.info('Updated availability %s', availability_id)
        return ServiceResult.ok(message, availability_to_response(availability))

    @service_operation('Delete availability')
    def delete_availability(
        self,
        provider_id: str,
        availability_id: str,
        delete_recurring: bool = False,
        reason: str | None = None,
    ) -> ServiceResult[dict]:
        logger.info('Deleting availability %s for provider %s (reason: %s)', availability_id, provider_id, reason)

        availability = self._get_owned_availability(provider_id, availability_id)
        if availability.has_booked_slots():
            raise BookedSlotsError('Cannot delete availability with booked appointments')

        if delete_recurring and availability.is_recurring:
            # Sibling instances of a series are independent rows with no link between them.
            logger.warning(
                'Recurring deletion requested for %s; only this instance is removed',
                availability_id,
            )

        slot_count = len(availability.slots)
        self.db.delete(availability)
        self.db.commit()

        logger.info('Deleted availability %s and %s slot(s)', availability_id, slot_count)
        return ServiceResult.ok(
            'Availability deleted successfully',
            {'deleted_availability_ids': [availability_id], 'deleted_slot_count': slot_count},
        )
