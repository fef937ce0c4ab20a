"""Appointment slot model definitions."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship

from healthfirst.database import Base
from healthfirst.models.provider import generate_id, utc_now


class AppointmentSlot(Base):
    """A fixed-length bookable unit generated from a provider availability.

    ``start_date_time`` and ``end_date_time`` are naive UTC datetimes.
    """
    __tablename__ = "appointment_slots"

    id = Column(String(36), primary_key=True, default=generate_id)
    availability_id = Column(String(36), ForeignKey("provider_availability.id"), nullable=False, index=True)
    provider_id = Column(String(36), ForeignKey("providers.id"), nullable=False)
    patient_id = Column(String(36), ForeignKey("patients.id"))
    start_date_time = Column(DateTime, nullable=False)
    end_date_time = Column(DateTime, nullable=False)
    appointment_type = Column(String(50), nullable=False)
    price = Column(Numeric(10, 2))
    location = Column(String(255))
    is_booked = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    booking_confirmed = Column(Boolean, default=False, nullable=False)
    booking_reason = Column(String(500))
    patient_notes = Column(String(1000))
    provider_notes = Column(String(1000))
    booked_at = Column(DateTime)
    cancelled_at = Column(DateTime)
    cancellation_reason = Column(String(500))
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    availability = relationship("ProviderAvailability", back_populates="slots")
    provider = relationship("Provider")
    patient = relationship("Patient", back_populates="booked_slots")

    @property
    def duration_minutes(self) -> int:
        return int((self.end_date_time - self.start_date_time).total_seconds() // 60)

    def is_available(self, now: datetime | None = None) -> bool:
        now = now or utc_now()
        return bool(self.is_active) and not self.is_booked and self.start_date_time > now

    def has_time_conflict(self, other_start: datetime, other_end: datetime) -> bool:
        return self.start_date_time < other_end and self.end_date_time > other_start

    def book(self, patient, reason: str | None = None, now: datetime | None = None) -> None:
        self.patient = patient
        self.is_booked = True
        self.booking_reason = reason
        self.booked_at = now or utc_now()
        self.cancelled_at = None
        self.cancellation_reason = None

    def cancel(self, reason: str | None = None, now: datetime | None = None) -> None:
        self.patient = None
        self.is_booked = False
        self.booking_confirmed = False
        self.cancellation_reason = reason
        self.cancelled_at = now or utc_now()
