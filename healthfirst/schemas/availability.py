from datetime import date, datetime, time
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from healthfirst.core import config
from healthfirst.models.enums import AppointmentType, RecurrencePattern

MAX_SLOT_DURATION_MINUTES = 480
MIN_SLOT_DURATION_MINUTES = 15
MAX_BUFFER_MINUTES = 120


def _strip_or_none(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    return normalized or None


class CreateAvailabilityRequest(BaseModel):
    availability_date: date
    start_time: time
    end_time: time
    slot_duration_minutes: int = Field(default=30, ge=MIN_SLOT_DURATION_MINUTES, le=MAX_SLOT_DURATION_MINUTES)
    appointment_type: AppointmentType
    timezone: str = 'UTC'
    price: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    location: str | None = Field(default=None, max_length=255)
    description: str | None = Field(default=None, max_length=1000)

    recurrence_pattern: RecurrencePattern = RecurrencePattern.NONE
    recurrence_end_date: date | None = None
    recurrence_days_of_week: list[int] | None = None
    max_consecutive_slots: int | None = Field(default=None, ge=1, le=20)
    buffer_time_minutes: int = Field(default=0, ge=0, le=MAX_BUFFER_MINUTES)

    is_blocked: bool = False
    block_reason: str | None = Field(default=None, max_length=500)
    consultation_type: str = Field(default='In-person', max_length=100)
    allow_walk_ins: bool = False
    advance_booking_days: int = Field(default=30, ge=1, le=90)
    same_day_booking: bool = False
    consultation_duration_minutes: int = Field(default=30, ge=15, le=240)
    break_between_appointments: int = Field(default=5, ge=0, le=60)
    max_appointments_per_day: int = Field(default=20, ge=1, le=50)
    consultation_fee: Decimal | None = Field(default=None, ge=0, max_digits=8, decimal_places=2)
    emergency_available: bool = False
    notes_for_patients: str | None = Field(default=None, max_length=1000)
    requires_confirmation: bool = False
    send_reminders: bool = True
    reminder_time_hours: int = Field(default=24, ge=1, le=168)
    allow_cancellation: bool = True
    cancellation_hours_before: int = Field(default=24, ge=1, le=168)

    @field_validator('timezone')
    @classmethod
    def validate_timezone_present(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Timezone is required.')
        return normalized

    @field_validator('location', 'description', 'block_reason', 'notes_for_patients')
    @classmethod
    def normalize_text(cls, value: str | None) -> str | None:
        return _strip_or_none(value)

    def is_valid_time_range(self) -> bool:
        return self.start_time < self.end_time


class UpdateAvailabilityRequest(BaseModel):
    availability_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    slot_duration_minutes: int | None = Field(default=None, ge=MIN_SLOT_DURATION_MINUTES, le=MAX_SLOT_DURATION_MINUTES)
    appointment_type: AppointmentType | None = None
    timezone: str | None = None
    price: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    location: str | None = Field(default=None, max_length=255)
    description: str | None = Field(default=None, max_length=1000)
    is_active: bool | None = None
    max_consecutive_slots: int | None = Field(default=None, ge=1, le=20)
    buffer_time_minutes: int | None = Field(default=None, ge=0, le=MAX_BUFFER_MINUTES)
    requires_confirmation: bool | None = None
    notes_for_patients: str | None = Field(default=None, max_length=1000)
    regenerate_slots: bool = False

    @field_validator('timezone')
    @classmethod
    def normalize_timezone(cls, value: str | None) -> str | None:
        return _strip_or_none(value)

    def changes_slot_timing(self) -> bool:
        return any(
            value is not None
            for value in (self.start_time, self.end_time, self.slot_duration_minutes)
        )


class AvailabilitySearchRequest(BaseModel):
    start_date: date
    end_date: date
    preferred_start_time: time | None = None
    preferred_end_time: time | None = None
    timezone: str | None = None

    provider_ids: list[str] | None = None
    specialization: str | None = None
    location: str | None = None
    appointment_type: AppointmentType | None = None
    min_slot_duration_minutes: int | None = Field(default=None, ge=1)
    max_slot_duration_minutes: int | None = Field(default=None, ge=1)
    min_price: Decimal | None = Field(default=None, ge=0)
    max_price: Decimal | None = Field(default=None, ge=0)

    max_results: int = Field(default=config.SEARCH_DEFAULT_RESULTS, ge=1, le=config.SEARCH_MAX_RESULTS)
    sort_by: str = 'startTime'
    ascending: bool = True

    @field_validator('specialization', 'location', 'timezone')
    @classmethod
    def normalize_filters(cls, value: str | None) -> str | None:
        return _strip_or_none(value)

    @field_validator('sort_by')
    @classmethod
    def validate_sort_by(cls, value: str) -> str:
        normalized = value.strip()
        aliases = {'starttime': 'startTime', 'start_time': 'startTime', 'price': 'price'}
        if normalized.lower() not in aliases:
            raise ValueError('sort_by must be one of: startTime, price.')
        return aliases[normalized.lower()]


class AppointmentSlotResponse(BaseModel):
    id: str
    availability_id: str
    provider_id: str
    provider_name: str | None = None
    provider_specialization: str | None = None
    start_date_time: datetime
    end_date_time: datetime
    appointment_type: AppointmentType
    is_booked: bool
    is_active: bool
    booking_confirmed: bool
    price: Decimal | None = None
    location: str | None = None
    patient_id: str | None = None
    patient_name: str | None = None


class AvailabilityResponse(BaseModel):
    id: str
    provider_id: str
    provider_name: str
    specialization: str | None = None
    availability_date: date
    start_time: time
    end_time: time
    slot_duration_minutes: int
    appointment_type: AppointmentType
    timezone: str
    price: Decimal | None = None
    location: str | None = None
    description: str | None = None
    recurrence_pattern: RecurrencePattern
    recurrence_end_date: date | None = None
    recurrence_days_of_week: list[int] | None = None
    max_consecutive_slots: int | None = None
    buffer_time_minutes: int
    is_active: bool
    requires_confirmation: bool
    slot_count: int
    booked_slot_count: int
    instances_created: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    appointment_slots: list[AppointmentSlotResponse] | None = None


class SlotSearchResponse(BaseModel):
    slots: list[AppointmentSlotResponse]
    total_results: int
    more_available: bool


class AppointmentTypeOptionResponse(BaseModel):
    appointment_type: AppointmentType
    display_name: str


class AvailabilityDeletionResponse(BaseModel):
    deleted_availability_ids: list[str]
    deleted_slot_count: int
