from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from healthfirst.models.enums import AppointmentType

MAX_BOOKING_REASON_LENGTH = 500
MAX_PATIENT_NOTES_LENGTH = 1000
APPOINTMENT_FILTER_TYPES = ('all', 'upcoming', 'past', 'cancelled')
APPOINTMENT_SORT_FIELDS = ('startTime', 'endTime', 'bookedAt', 'price')


class AppointmentBookingRequest(BaseModel):
    slot_id: str
    patient_id: str
    provider_id: str | None = None
    booking_reason: str | None = Field(default=None, max_length=MAX_BOOKING_REASON_LENGTH)
    patient_notes: str | None = Field(default=None, max_length=MAX_PATIENT_NOTES_LENGTH)

    @field_validator('slot_id', 'patient_id')
    @classmethod
    def validate_identifier(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Identifier is required.')
        return normalized

    @field_validator('booking_reason', 'patient_notes')
    @classmethod
    def normalize_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        return normalized or None


class CancelAppointmentRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class AppointmentBookingResponse(BaseModel):
    slot_id: str
    provider_id: str
    provider_name: str
    patient_id: str
    patient_name: str
    start_date_time: datetime
    end_date_time: datetime
    appointment_type: AppointmentType
    price: Decimal | None = None
    location: str | None = None
    booking_reason: str | None = None
    booking_confirmed: bool
    booked_at: datetime


class AppointmentListRequest(BaseModel):
    patient_id: str | None = None
    provider_id: str | None = None
    filter_type: str = 'all'
    start_date: date | None = None
    end_date: date | None = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)
    sort_by: str = 'startTime'
    ascending: bool = True

    @field_validator('filter_type')
    @classmethod
    def validate_filter_type(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in APPOINTMENT_FILTER_TYPES:
            raise ValueError(f'filter_type must be one of: {", ".join(APPOINTMENT_FILTER_TYPES)}.')
        return normalized

    @field_validator('sort_by')
    @classmethod
    def validate_sort_by(cls, value: str) -> str:
        if value not in APPOINTMENT_SORT_FIELDS:
            raise ValueError(f'sort_by must be one of: {", ".join(APPOINTMENT_SORT_FIELDS)}.')
        return value


class AppointmentSummary(BaseModel):
    slot_id: str
    provider_id: str
    provider_name: str
    provider_specialization: str | None = None
    patient_id: str | None = None
    patient_name: str | None = None
    start_date_time: datetime
    end_date_time: datetime
    appointment_type: AppointmentType
    status: str
    booking_confirmed: bool
    price: Decimal | None = None
    location: str | None = None
    consultation_type: str | None = None
    booking_reason: str | None = None
    patient_notes: str | None = None
    booked_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None


class PaginationData(BaseModel):
    page: int
    page_size: int
    total_items: int
    total_pages: int


class AppointmentListResponse(BaseModel):
    appointments: list[AppointmentSummary]
    pagination: PaginationData
