from datetime import time, timedelta
from decimal import Decimal

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from conftest import FUTURE_MONDAY
from healthfirst.main import app
from healthfirst.models.enums import AppointmentType
from healthfirst.routes.common import get_db, search_limiter
from healthfirst.routes.search_routes import list_appointment_types, search_slots_advanced
from healthfirst.schemas.availability import AvailabilitySearchRequest


@pytest.fixture(autouse=True)
def route_setup(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('healthfirst.routes.search_routes.ensure_database_ready', lambda: None)
    search_limiter.clear()


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_get_search_filters_by_query_parameters(client, make_provider, create_availability) -> None:
    create_availability(make_provider(specialization='Pediatrics'))
    create_availability(make_provider(specialization='Oncology'))

    response = client.get(
        '/availability/search',
        params={
            'start_date': FUTURE_MONDAY.isoformat(),
            'end_date': (FUTURE_MONDAY + timedelta(days=1)).isoformat(),
            'specialization': 'pediatrics',
            'max_results': 4,
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body['total_results'] == 4
    assert body['more_available'] is True
    assert {slot['provider_specialization'] for slot in body['slots']} == {'Pediatrics'}


def test_get_search_rejects_results_above_cap(client) -> None:
    response = client.get(
        '/availability/search',
        params={'start_date': FUTURE_MONDAY.isoformat(), 'end_date': FUTURE_MONDAY.isoformat(), 'max_results': 500},
    )

    assert response.status_code == 422


def test_get_search_requires_date_range(client) -> None:
    response = client.get('/availability/search')

    assert response.status_code == 422


def test_post_search_returns_bad_request_for_inverted_dates(db_session) -> None:
    criteria = AvailabilitySearchRequest(start_date=FUTURE_MONDAY, end_date=FUTURE_MONDAY - timedelta(days=1))

    with pytest.raises(HTTPException) as exception_info:
        search_slots_advanced(data=criteria, db=db_session)

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail['code'] == 'VALIDATION_ERROR'


def test_post_search_sorts_by_price(db_session, make_provider, create_availability) -> None:
    provider = make_provider()
    create_availability(provider, price=Decimal('90.00'), start_time=time(9, 0), end_time=time(9, 30))
    create_availability(provider, price=Decimal('40.00'), start_time=time(10, 0), end_time=time(10, 30))
    criteria = AvailabilitySearchRequest(start_date=FUTURE_MONDAY, end_date=FUTURE_MONDAY, sort_by='price')

    response = search_slots_advanced(data=criteria, db=db_session)

    assert [slot.price for slot in response.slots] == [Decimal('40.00'), Decimal('90.00')]
    assert response.total_results == 2
    assert response.more_available is False


def test_search_rate_limit_returns_too_many_requests(client, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(search_limiter, 'max_attempts', 1)
    params = {'start_date': FUTURE_MONDAY.isoformat(), 'end_date': FUTURE_MONDAY.isoformat()}

    first = client.get('/availability/search', params=params)
    second = client.get('/availability/search', params=params)

    assert first.status_code == 200
    assert second.status_code == 429


def test_list_appointment_types_returns_every_type() -> None:
    options = list_appointment_types()

    assert [option.appointment_type for option in options] == list(AppointmentType)
