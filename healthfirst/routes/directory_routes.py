from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from healthfirst.models.enums import UserType
from healthfirst.routes.common import ensure_database_ready, get_db, rate_limited, search_limiter, unwrap
from healthfirst.schemas.auth import (
    FieldAvailabilityResponse,
    ProviderDirectoryResponse,
    SpecializationListResponse,
)
from healthfirst.services import auth_service

router = APIRouter(tags=['directory'])

lookup_dependencies = [Depends(rate_limited(search_limiter))]


def check_field(db: Session, user_type: UserType, field: str, value: str) -> FieldAvailabilityResponse:
    ensure_database_ready()

    return unwrap(auth_service.check_registration_field(db, user_type, field, value))


@router.get('/provider/specializations', response_model=SpecializationListResponse)
def list_specializations():
    return auth_service.list_specializations()


@router.get(
    '/provider/check-email',
    response_model=FieldAvailabilityResponse,
    dependencies=lookup_dependencies,
)
def check_provider_email(email: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    return check_field(db, UserType.PROVIDER, 'email', email)


@router.get(
    '/provider/check-phone',
    response_model=FieldAvailabilityResponse,
    dependencies=lookup_dependencies,
)
def check_provider_phone(phone_number: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    return check_field(db, UserType.PROVIDER, 'phone_number', phone_number)


@router.get(
    '/provider/check-license',
    response_model=FieldAvailabilityResponse,
    dependencies=lookup_dependencies,
)
def check_provider_license(license_number: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    return check_field(db, UserType.PROVIDER, 'license_number', license_number)


@router.get(
    '/patient/check-email',
    response_model=FieldAvailabilityResponse,
    dependencies=lookup_dependencies,
)
def check_patient_email(email: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    return check_field(db, UserType.PATIENT, 'email', email)


@router.get(
    '/patient/check-phone',
    response_model=FieldAvailabilityResponse,
    dependencies=lookup_dependencies,
)
def check_patient_phone(phone_number: str = Query(..., min_length=1), db: Session = Depends(get_db)):
    return check_field(db, UserType.PATIENT, 'phone_number', phone_number)


@router.get('/providers', response_model=ProviderDirectoryResponse)
def list_providers(
    specialization: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    return unwrap(auth_service.list_active_providers(db, specialization))
