from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from healthfirst.auth.dependencies import get_current_account, require_admin_key
from healthfirst.models.provider import Provider
from healthfirst.routes.common import (
    ensure_database_ready,
    get_db,
    rate_limited,
    registration_limiter,
    unwrap,
)
from healthfirst.schemas.auth import (
    LoginRequest,
    LoginResponse,
    PatientRegistrationRequest,
    PatientUser,
    ProviderRegistrationRequest,
    ProviderStatusUpdateRequest,
    ProviderUser,
    RegistrationResponse,
    VerificationUpdateRequest,
)
from healthfirst.services import auth_service

router = APIRouter(tags=['auth'])


@router.post(
    '/provider/register',
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limited(registration_limiter))],
)
def register_provider(data: ProviderRegistrationRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    return unwrap(auth_service.register_provider(db, data))


@router.post(
    '/patient/register',
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limited(registration_limiter))],
)
def register_patient(data: PatientRegistrationRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    return unwrap(auth_service.register_patient(db, data))


@router.post('/login', response_model=LoginResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    return unwrap(auth_service.login(db, data))


@router.get('/me', response_model=ProviderUser | PatientUser)
def read_current_user(account=Depends(get_current_account)):
    if isinstance(account, Provider):
        return auth_service.to_provider_user(account)
    return auth_service.to_patient_user(account)


@router.patch(
    '/provider/{provider_id}/verification',
    response_model=ProviderUser,
    dependencies=[Depends(require_admin_key)],
)
def update_provider_verification(
    provider_id: str,
    data: VerificationUpdateRequest,
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    return unwrap(auth_service.set_provider_verification(db, provider_id, data.verification_status))


@router.patch(
    '/provider/{provider_id}/status',
    response_model=ProviderUser,
    dependencies=[Depends(require_admin_key)],
)
def update_provider_status(
    provider_id: str,
    data: ProviderStatusUpdateRequest,
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    return unwrap(auth_service.set_provider_active(db, provider_id, data.is_active))
