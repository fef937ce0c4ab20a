from datetime import datetime, time, timedelta

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import OperationalError

from conftest import FUTURE_MONDAY, fixed_aware_clock
from healthfirst.models.appointment import AppointmentSlot
from healthfirst.models.enums import AppointmentType
from healthfirst.routes import availability_routes
from healthfirst.routes.availability_routes import (
    create_availability,
    delete_availability,
    get_availability,
    list_provider_availability,
    update_availability,
)
from healthfirst.schemas.availability import CreateAvailabilityRequest, UpdateAvailabilityRequest
from healthfirst.services.availability_service import AvailabilityService


class FixedClockAvailabilityService(AvailabilityService):
    def __init__(self, db) -> None:
        super().__init__(db, clock=fixed_aware_clock)


@pytest.fixture(autouse=True)
def route_setup(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('healthfirst.routes.availability_routes.ensure_database_ready', lambda: None)
    monkeypatch.setattr(availability_routes, 'AvailabilityService', FixedClockAvailabilityService)


def build_request(**overrides) -> CreateAvailabilityRequest:
    values = {
        'availability_date': FUTURE_MONDAY,
        'start_time': time(9, 0),
        'end_time': time(12, 0),
        'slot_duration_minutes': 30,
        'appointment_type': AppointmentType.FOLLOW_UP,
        'timezone': 'UTC',
    }
    values.update(overrides)
    return CreateAvailabilityRequest(**values)


def test_create_availability_returns_created_record(db_session, make_provider) -> None:
    provider = make_provider()

    response = create_availability(data=build_request(), current_provider=provider, db=db_session)

    assert response.provider_id == provider.id
    assert response.slot_count == 6
    assert response.appointment_type == AppointmentType.FOLLOW_UP


def test_create_overlapping_availability_returns_conflict(db_session, make_provider) -> None:
    provider = make_provider()
    create_availability(data=build_request(), current_provider=provider, db=db_session)

    with pytest.raises(HTTPException) as exception_info:
        create_availability(
            data=build_request(start_time=time(11, 0), end_time=time(13, 0)),
            current_provider=provider,
            db=db_session,
        )

    assert exception_info.value.status_code == 409
    assert exception_info.value.detail['code'] == 'OVERLAP_ERROR'


def test_create_with_invalid_timezone_returns_bad_request(db_session, make_provider) -> None:
    with pytest.raises(HTTPException) as exception_info:
        create_availability(
            data=build_request(timezone='Invalid/Zone'),
            current_provider=make_provider(),
            db=db_session,
        )

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail['code'] == 'INVALID_TIMEZONE'


def test_list_provider_availability_rejects_other_providers(db_session, make_provider) -> None:
    owner = make_provider()

    with pytest.raises(HTTPException) as exception_info:
        list_provider_availability(
            provider_id=owner.id,
            start_date=FUTURE_MONDAY,
            end_date=FUTURE_MONDAY,
            include_slots=False,
            current_provider=make_provider(),
            db=db_session,
        )

    assert exception_info.value.status_code == 403


def test_list_provider_availability_returns_slots_when_requested(db_session, make_provider) -> None:
    provider = make_provider()
    create_availability(data=build_request(), current_provider=provider, db=db_session)

    response = list_provider_availability(
        provider_id=provider.id,
        start_date=FUTURE_MONDAY,
        end_date=FUTURE_MONDAY + timedelta(days=7),
        include_slots=True,
        current_provider=provider,
        db=db_session,
    )

    assert len(response) == 1
    assert len(response[0].appointment_slots) == 6


def test_get_availability_rejects_other_providers(db_session, make_provider) -> None:
    created = create_availability(data=build_request(), current_provider=make_provider(), db=db_session)

    with pytest.raises(HTTPException) as exception_info:
        get_availability(availability_id=created.id, current_provider=make_provider(), db=db_session)

    assert exception_info.value.status_code == 403


def test_get_unknown_availability_returns_not_found(db_session, make_provider) -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_availability(availability_id='missing', current_provider=make_provider(), db=db_session)

    assert exception_info.value.status_code == 404


def test_get_availability_reports_database_outage_as_unavailable(
    db_session, make_provider, monkeypatch: pytest.MonkeyPatch,
) -> None:
    provider = make_provider()

    def raise_operational_error(*args, **kwargs):
        raise OperationalError('SELECT 1', {}, Exception('connection refused'))

    monkeypatch.setattr(db_session, 'query', raise_operational_error)

    with pytest.raises(HTTPException) as exception_info:
        get_availability(availability_id='any', current_provider=provider, db=db_session)

    assert exception_info.value.status_code == 503
    assert exception_info.value.detail['code'] == 'DATABASE_UNAVAILABLE'


def test_update_booked_availability_timing_returns_conflict(db_session, make_provider, make_patient) -> None:
    provider = make_provider()
    created = create_availability(data=build_request(), current_provider=provider, db=db_session)
    slot = db_session.query(AppointmentSlot).filter(AppointmentSlot.availability_id == created.id).first()
    slot.book(make_patient(), now=datetime(2031, 1, 1))
    db_session.commit()

    with pytest.raises(HTTPException) as exception_info:
        update_availability(
            availability_id=created.id,
            data=UpdateAvailabilityRequest(end_time=time(13, 0)),
            current_provider=provider,
            db=db_session,
        )

    assert exception_info.value.status_code == 409
    assert exception_info.value.detail['code'] == 'BOOKED_SLOTS_ERROR'


def test_delete_availability_reports_removed_slots(db_session, make_provider) -> None:
    provider = make_provider()
    created = create_availability(data=build_request(), current_provider=provider, db=db_session)

    response = delete_availability(
        availability_id=created.id,
        delete_recurring=False,
        reason=None,
        current_provider=provider,
        db=db_session,
    )

    assert response == {'deleted_availability_ids': [created.id], 'deleted_slot_count': 6}


def test_delete_other_providers_availability_is_forbidden(db_session, make_provider) -> None:
    created = create_availability(data=build_request(), current_provider=make_provider(), db=db_session)

    with pytest.raises(HTTPException) as exception_info:
        delete_availability(
            availability_id=created.id,
            delete_recurring=False,
            reason=None,
            current_provider=make_provider(),
            db=db_session,
        )

    assert exception_info.value.status_code == 403
    assert exception_info.value.detail['code'] == 'OWNERSHIP_ERROR'
