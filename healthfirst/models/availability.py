"""Availability model definitions."""

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Time
from sqlalchemy.orm import relationship

from healthfirst.database import Base
from healthfirst.models.enums import RecurrencePattern
from healthfirst.models.provider import generate_id, utc_now


class ProviderAvailability(Base):
    """One provider's bookable window on a single calendar date.

    Recurring availability is stored as one row per date; the recurrence
    columns only record how the row was produced. Times are wall-clock values
    in ``timezone``; generated slots are stored in UTC.
    """
    __tablename__ = "provider_availability"

    id = Column(String(36), primary_key=True, default=generate_id)
    provider_id = Column(String(36), ForeignKey("providers.id"), nullable=False, index=True)
    availability_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    slot_duration_minutes = Column(Integer, default=30, nullable=False)
    appointment_type = Column(String(50), nullable=False)
    timezone = Column(String(50), default="UTC", nullable=False)
    price = Column(Numeric(10, 2))
    location = Column(String(255))
    description = Column(String(1000))
    recurrence_pattern = Column(String(20), default=RecurrencePattern.NONE.value, nullable=False)
    recurrence_end_date = Column(Date)
    recurrence_days_of_week = Column(JSON)
    max_consecutive_slots = Column(Integer)
    buffer_time_minutes = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Scheduling preferences surfaced to the provider UI; slot generation ignores them.
    is_blocked = Column(Boolean, default=False)
    block_reason = Column(String(500))
    consultation_type = Column(String(100), default="In-person")
    allow_walk_ins = Column(Boolean, default=False)
    advance_booking_days = Column(Integer, default=30)
    same_day_booking = Column(Boolean, default=False)
    consultation_duration_minutes = Column(Integer, default=30)
    break_between_appointments = Column(Integer, default=5)
    max_appointments_per_day = Column(Integer, default=20)
    consultation_fee = Column(Numeric(8, 2))
    emergency_available = Column(Boolean, default=False)
    notes_for_patients = Column(String(1000))
    requires_confirmation = Column(Boolean, default=False, nullable=False)
    send_reminders = Column(Boolean, default=True)
    reminder_time_hours = Column(Integer, default=24)
    allow_cancellation = Column(Boolean, default=True)
    cancellation_hours_before = Column(Integer, default=24)

    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    provider = relationship("Provider", back_populates="availabilities")
    slots = relationship(
        "AppointmentSlot",
        back_populates="availability",
        cascade="all, delete-orphan",
        order_by="AppointmentSlot.start_date_time",
    )

    @property
    def is_recurring(self) -> bool:
        return self.recurrence_pattern != RecurrencePattern.NONE.value

    def has_booked_slots(self) -> bool:
        return any(slot.is_booked for slot in self.slots)
