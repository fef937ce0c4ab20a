from datetime import date, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from healthfirst.auth.dependencies import get_current_provider
from healthfirst.models.provider import Provider
from healthfirst.routes.common import (
    availability_write_limiter,
    ensure_database_ready,
    get_db,
    rate_limited,
    unwrap,
)
from healthfirst.schemas.availability import (
    AvailabilityDeletionResponse,
    AvailabilityResponse,
    CreateAvailabilityRequest,
    UpdateAvailabilityRequest,
)
from healthfirst.services.availability_service import AvailabilityService

router = APIRouter(tags=['availability'])

DEFAULT_LISTING_DAYS = 30


@router.post(
    '/availability',
    response_model=AvailabilityResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limited(availability_write_limiter))],
)
def create_availability(
    data: CreateAvailabilityRequest,
    current_provider: Provider = Depends(get_current_provider),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    return unwrap(AvailabilityService(db).create_availability(current_provider.id, data))


@router.get('/{provider_id}/availability', response_model=list[AvailabilityResponse])
def list_provider_availability(
    provider_id: str,
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    include_slots: bool = Query(default=False),
    current_provider: Provider = Depends(get_current_provider),
    db: Session = Depends(get_db),
):
    if current_provider.id != provider_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Providers can only view their own availability.',
        )

    range_start = start_date or date.today()
    range_end = end_date or range_start + timedelta(days=DEFAULT_LISTING_DAYS)

    ensure_database_ready()

    return unwrap(
        AvailabilityService(db).get_provider_availability(provider_id, range_start, range_end, include_slots)
    )


@router.get('/availability/{availability_id}', response_model=AvailabilityResponse)
def get_availability(
    availability_id: str,
    current_provider: Provider = Depends(get_current_provider),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    availability = unwrap(AvailabilityService(db).get_availability(availability_id))

    if availability.provider_id != current_provider.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Providers can only view their own availability.',
        )
    return availability


@router.put(
    '/availability/{availability_id}',
    response_model=AvailabilityResponse,
    dependencies=[Depends(rate_limited(availability_write_limiter))],
)
def update_availability(
    availability_id: str,
    data: UpdateAvailabilityRequest,
    current_provider: Provider = Depends(get_current_provider),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    return unwrap(AvailabilityService(db).update_availability(current_provider.id, availability_id, data))


@router.delete(
    '/availability/{availability_id}',
    response_model=AvailabilityDeletionResponse,
    dependencies=[Depends(rate_limited(availability_write_limiter))],
)
def delete_availability(
    availability_id: str,
    delete_recurring: bool = Query(default=False),
    reason: str | None = Query(default=None, max_length=500),
    current_provider: Provider = Depends(get_current_provider),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    return unwrap(
        AvailabilityService(db).delete_availability(current_provider.id, availability_id, delete_recurring, reason)
    )
