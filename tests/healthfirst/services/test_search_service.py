from datetime import datetime, time, timedelta
from decimal import Decimal

import pytest

from conftest import FUTURE_MONDAY
from healthfirst.models.enums import AppointmentType
from healthfirst.schemas.availability import AvailabilitySearchRequest
from healthfirst.services import search_service
from healthfirst.services.errors import ErrorCode


def build_criteria(**overrides) -> AvailabilitySearchRequest:
    values = {'start_date': FUTURE_MONDAY, 'end_date': FUTURE_MONDAY + timedelta(days=6)}
    values.update(overrides)
    return AvailabilitySearchRequest(**values)


def search(db_session, **overrides):
    result = search_service.search_available_slots(db_session, build_criteria(**overrides))
    assert result.success, result.message
    return result.data


def test_search_returns_open_slots_in_start_order(db_session, make_provider, create_availability) -> None:
    provider = make_provider()
    create_availability(provider)

    data = search(db_session)

    assert data.total_results == 6
    assert data.more_available is False
    starts = [slot.start_date_time for slot in data.slots]
    assert starts == sorted(starts)
    assert data.slots[0].provider_name == provider.full_name


def test_search_excludes_booked_slots_and_inactive_providers(
    db_session, make_provider, make_patient, create_availability,
) -> None:
    provider = make_provider()
    inactive = make_provider()
    availability = create_availability(provider)
    create_availability(inactive)
    availability.slots[0].book(make_patient(), now=datetime(2031, 1, 1))
    inactive.is_active = False
    db_session.commit()

    data = search(db_session)

    assert data.total_results == 5
    assert {slot.provider_id for slot in data.slots} == {provider.id}


def test_search_caps_results_and_flags_more_available(db_session, make_provider, create_availability) -> None:
    create_availability(make_provider())

    data = search(db_session, max_results=4)

    assert data.total_results == 4
    assert data.more_available is True


def test_search_filters_by_date_range(db_session, make_provider, create_availability) -> None:
    provider = make_provider()
    create_availability(provider)
    create_availability(provider, availability_date=FUTURE_MONDAY + timedelta(days=14))

    data = search(db_session)

    assert {slot.start_date_time.date() for slot in data.slots} == {FUTURE_MONDAY}


def test_search_filters_by_specialization_case_insensitively(db_session, make_provider, create_availability) -> None:
    create_availability(make_provider(specialization='Cardiology'))
    create_availability(make_provider(specialization='Dermatology'))

    data = search(db_session, specialization='dermatology')

    assert data.total_results == 6
    assert {slot.provider_specialization for slot in data.slots} == {'Dermatology'}


def test_search_filters_by_appointment_type(db_session, make_provider, create_availability) -> None:
    provider = make_provider()
    create_availability(provider, appointment_type=AppointmentType.TELEMEDICINE)
    create_availability(provider, start_time=time(13, 0), end_time=time(14, 0))

    data = search(db_session, appointment_type=AppointmentType.TELEMEDICINE)

    assert data.total_results == 6
    assert {slot.appointment_type for slot in data.slots} == {AppointmentType.TELEMEDICINE}


def test_search_filters_by_location_substring(db_session, make_provider, create_availability) -> None:
    provider = make_provider()
    create_availability(provider, location='Downtown Medical Center')
    create_availability(provider, start_time=time(13, 0), end_time=time(14, 0))

    data = search(db_session, location='medical')

    assert data.total_results == 6
    assert {slot.location for slot in data.slots} == {'Downtown Medical Center'}


def test_price_filters_exclude_unpriced_slots(db_session, make_provider, create_availability) -> None:
    provider = make_provider()
    create_availability(provider, price=Decimal('80.00'), end_time=time(10, 0))
    create_availability(provider, price=Decimal('200.00'), start_time=time(10, 0), end_time=time(11, 0))
    create_availability(provider, start_time=time(11, 0), end_time=time(12, 0))

    data = search(db_session, max_price=Decimal('100'))

    assert [slot.price for slot in data.slots] == [Decimal('80.00'), Decimal('80.00')]


def test_preferred_times_are_compared_in_requested_timezone(db_session, make_provider, create_availability) -> None:
    # 9:00-12:00 New York wall clock is 14:00-17:00 UTC.
    create_availability(make_provider(), timezone='America/New_York')

    data = search(
        db_session,
        timezone='America/New_York',
        preferred_start_time=time(10, 0),
        preferred_end_time=time(11, 0),
    )

    assert [slot.start_date_time for slot in data.slots] == [
        datetime(2031, 3, 3, 15, 0),
        datetime(2031, 3, 3, 15, 30),
        datetime(2031, 3, 3, 16, 0),
    ]


def test_sort_by_price_descending_keeps_unpriced_last(db_session, make_provider, create_availability) -> None:
    provider = make_provider()
    create_availability(provider, start_time=time(8, 0), end_time=time(8, 30))
    create_availability(provider, price=Decimal('50.00'), start_time=time(9, 0), end_time=time(9, 30))
    create_availability(provider, price=Decimal('120.00'), start_time=time(10, 0), end_time=time(10, 30))

    data = search(db_session, sort_by='price', ascending=False)

    assert [slot.price for slot in data.slots] == [Decimal('120.00'), Decimal('50.00'), None]


@pytest.mark.parametrize(
    'overrides',
    [
        {'end_date': FUTURE_MONDAY - timedelta(days=1)},
        {'min_price': Decimal('50'), 'max_price': Decimal('10')},
        {'preferred_start_time': time(15, 0), 'preferred_end_time': time(9, 0)},
        {'min_slot_duration_minutes': 60, 'max_slot_duration_minutes': 30},
    ],
)
def test_invalid_criteria_return_validation_error(db_session, overrides: dict) -> None:
    result = search_service.search_available_slots(db_session, build_criteria(**overrides))

    assert not result.success
    assert result.code == ErrorCode.VALIDATION_ERROR


def test_unknown_search_timezone_is_rejected(db_session) -> None:
    result = search_service.search_available_slots(db_session, build_criteria(timezone='Not/AZone'))

    assert result.code == ErrorCode.INVALID_TIMEZONE


def test_max_results_cannot_exceed_configured_cap() -> None:
    with pytest.raises(ValueError):
        build_criteria(max_results=101)


def test_appointment_types_have_display_names() -> None:
    options = search_service.list_appointment_types()

    assert len(options) == len(AppointmentType)
    assert options[1].appointment_type == AppointmentType.FOLLOW_UP
    assert options[1].display_name == 'Follow-up'
