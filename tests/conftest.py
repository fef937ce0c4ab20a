import os
from datetime import date, datetime, time
from itertools import count

import pytest
import pytz
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from healthfirst.auth.passwords import hash_password  # noqa: E402
from healthfirst.database import Base  # noqa: E402
from healthfirst.models.appointment import AppointmentSlot  # noqa: E402
from healthfirst.models.availability import ProviderAvailability  # noqa: E402
from healthfirst.models.enums import AppointmentType, VerificationStatus  # noqa: E402
from healthfirst.models.patient import Patient  # noqa: E402
from healthfirst.models.provider import Provider  # noqa: E402
from healthfirst.schemas.availability import CreateAvailabilityRequest  # noqa: E402
from healthfirst.services.availability_service import AvailabilityService  # noqa: E402

# Monday, well after the fixed clocks below.
FUTURE_MONDAY = date(2031, 3, 3)
NOW_UTC = datetime(2031, 1, 1, 12, 0)
TEST_PASSWORD = 'Str0ng!Pass'
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)

_sequence = count(1)


def fixed_aware_clock() -> datetime:
    return pytz.utc.localize(NOW_UTC)


def fixed_naive_clock() -> datetime:
    return NOW_UTC


@pytest.fixture
def db_session():
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    tables = [Provider.__table__, Patient.__table__, ProviderAvailability.__table__, AppointmentSlot.__table__]
    Base.metadata.create_all(bind=engine, tables=tables)

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine, tables=list(reversed(tables)))


@pytest.fixture
def make_provider(db_session):
    def factory(**overrides) -> Provider:
        number = next(_sequence)
        values = {
            'first_name': 'Jane',
            'last_name': f'Doctor{number}',
            'email': f'provider{number}@clinic.example',
            'phone_number': f'+1555000{number:04d}',
            'password_hash': TEST_PASSWORD_HASH,
            'specialization': 'Cardiology',
            'license_number': f'LIC{number:06d}',
            'years_of_experience': 10,
            'verification_status': VerificationStatus.VERIFIED.value,
            'is_active': True,
        }
        values.update(overrides)
        provider = Provider(**values)
        db_session.add(provider)
        db_session.commit()
        db_session.refresh(provider)
        return provider

    return factory


@pytest.fixture
def make_patient(db_session):
    def factory(**overrides) -> Patient:
        number = next(_sequence)
        values = {
            'first_name': 'Sam',
            'last_name': f'Patient{number}',
            'email': f'patient{number}@mail.example',
            'phone_number': f'+1666000{number:04d}',
            'password_hash': TEST_PASSWORD_HASH,
            'date_of_birth': date(1990, 5, 17),
            'gender': 'female',
            'is_active': True,
        }
        values.update(overrides)
        patient = Patient(**values)
        db_session.add(patient)
        db_session.commit()
        db_session.refresh(patient)
        return patient

    return factory


@pytest.fixture
def availability_service(db_session) -> AvailabilityService:
    return AvailabilityService(db_session, clock=fixed_aware_clock)


@pytest.fixture
def create_availability(availability_service):
    """Create availability through the service and return the persisted first instance."""

    def factory(provider: Provider, **overrides) -> ProviderAvailability:
        values = {
            'availability_date': FUTURE_MONDAY,
            'start_time': time(9, 0),
            'end_time': time(12, 0),
            'slot_duration_minutes': 30,
            'appointment_type': AppointmentType.CONSULTATION,
            'timezone': 'UTC',
        }
        values.update(overrides)
        result = availability_service.create_availability(provider.id, CreateAvailabilityRequest(**values))
        assert result.success, result.message
        return availability_service.db.get(ProviderAvailability, result.data.id)

    return factory
