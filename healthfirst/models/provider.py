"""Provider model definitions."""

import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from healthfirst.database import Base
from healthfirst.models.enums import VerificationStatus


def generate_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Current UTC time as a naive datetime, matching the stored columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Provider(Base):
    """Represents a registered healthcare provider."""
    __tablename__ = "providers"

    id = Column(String(36), primary_key=True, default=generate_id)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone_number = Column(String(20), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    specialization = Column(String(100), nullable=False)
    license_number = Column(String(50), unique=True, nullable=False)
    years_of_experience = Column(Integer, default=0)
    clinic_address = Column(String(500))
    verification_status = Column(String(20), default=VerificationStatus.PENDING.value, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    failed_login_attempts = Column(Integer, default=0, nullable=False)
    account_locked_until = Column(DateTime)
    last_successful_login = Column(DateTime)
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    availabilities = relationship("ProviderAvailability", back_populates="provider")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_verified(self) -> bool:
        return self.verification_status == VerificationStatus.VERIFIED.value

    def is_account_locked(self, now: datetime | None = None) -> bool:
        now = now or utc_now()
        return self.account_locked_until is not None and self.account_locked_until > now

    def lock_account(self, minutes: int, now: datetime | None = None) -> None:
        now = now or utc_now()
        self.account_locked_until = now + timedelta(minutes=minutes)
