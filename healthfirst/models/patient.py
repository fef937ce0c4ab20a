"""Patient model definitions."""

from datetime import datetime, timedelta

from sqlalchemy import Boolean, Column, Date, DateTime, Integer, String
from sqlalchemy.orm import relationship

from healthfirst.database import Base
from healthfirst.models.provider import generate_id, utc_now


class Patient(Base):
    """Represents a registered patient."""
    __tablename__ = "patients"

    id = Column(String(36), primary_key=True, default=generate_id)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone_number = Column(String(20), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    date_of_birth = Column(Date, nullable=False)
    gender = Column(String(20), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    failed_login_attempts = Column(Integer, default=0, nullable=False)
    account_locked_until = Column(DateTime)
    last_successful_login = Column(DateTime)
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    booked_slots = relationship("AppointmentSlot", back_populates="patient")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def is_account_locked(self, now: datetime | None = None) -> bool:
        now = now or utc_now()
        return self.account_locked_until is not None and self.account_locked_until > now

    def lock_account(self, minutes: int, now: datetime | None = None) -> None:
        now = now or utc_now()
        self.account_locked_until = now + timedelta(minutes=minutes)
