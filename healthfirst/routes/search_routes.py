from datetime import date, time
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import ValidationError
from sqlalchemy.orm import Session

from healthfirst.core import config
from healthfirst.models.enums import AppointmentType
from healthfirst.routes.common import (
    ensure_database_ready,
    get_db,
    rate_limited,
    search_limiter,
    unwrap,
)
from healthfirst.schemas.availability import (
    AppointmentTypeOptionResponse,
    AvailabilitySearchRequest,
    SlotSearchResponse,
)
from healthfirst.services import search_service

router = APIRouter(tags=['search'])


def run_search(criteria: AvailabilitySearchRequest, db: Session) -> SlotSearchResponse:
    ensure_database_ready()

    result = unwrap(search_service.search_available_slots(db, criteria))

    return SlotSearchResponse(
        slots=result.slots,
        total_results=result.total_results,
        more_available=result.more_available,
    )


@router.get(
    '/search',
    response_model=SlotSearchResponse,
    dependencies=[Depends(rate_limited(search_limiter))],
)
def search_slots(
    start_date: date = Query(...),
    end_date: date = Query(...),
    preferred_start_time: time | None = Query(default=None),
    preferred_end_time: time | None = Query(default=None),
    timezone: str | None = Query(default=None),
    provider_ids: list[str] | None = Query(default=None),
    specialization: str | None = Query(default=None),
    location: str | None = Query(default=None),
    appointment_type: AppointmentType | None = Query(default=None),
    min_price: Decimal | None = Query(default=None),
    max_price: Decimal | None = Query(default=None),
    max_results: int = Query(default=config.SEARCH_DEFAULT_RESULTS),
    sort_by: str = Query(default='startTime'),
    ascending: bool = Query(default=True),
    db: Session = Depends(get_db),
):
    try:
        criteria = AvailabilitySearchRequest(
            start_date=start_date,
            end_date=end_date,
            preferred_start_time=preferred_start_time,
            preferred_end_time=preferred_end_time,
            timezone=timezone,
            provider_ids=provider_ids,
            specialization=specialization,
            location=location,
            appointment_type=appointment_type,
            min_price=min_price,
            max_price=max_price,
            max_results=max_results,
            sort_by=sort_by,
            ascending=ascending,
        )
    except ValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail=exc.errors(include_url=False, include_context=False),
        ) from exc

    return run_search(criteria, db)


@router.post(
    '/search',
    response_model=SlotSearchResponse,
    dependencies=[Depends(rate_limited(search_limiter))],
)
def search_slots_advanced(data: AvailabilitySearchRequest, db: Session = Depends(get_db)):
    return run_search(data, db)


@router.get('/appointment-types', response_model=list[AppointmentTypeOptionResponse])
def list_appointment_types():
    return search_service.list_appointment_types()
