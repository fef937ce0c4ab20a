"""
Provider and patient registration, unified login and provider management.

Failed logins are counted per account; reaching the configured limit locks
the account for a fixed period. The failure bookkeeping is committed before
the login error is raised so the rollback in ``service_operation`` does not
undo it.
"""

import logging
from datetime import date, datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from healthfirst.auth import jwt_handler
from healthfirst.auth.passwords import hash_password, verify_password
from healthfirst.core import config
from healthfirst.models.enums import UserType, VerificationStatus
from healthfirst.models.patient import Patient
from healthfirst.models.provider import Provider, utc_now
from healthfirst.schemas.auth import (
    VALID_SPECIALIZATIONS,
    FieldAvailabilityResponse,
    LoginRequest,
    LoginResponse,
    PatientRegistrationRequest,
    PatientUser,
    ProviderDirectoryEntry,
    ProviderDirectoryResponse,
    ProviderRegistrationRequest,
    ProviderUser,
    RegistrationResponse,
    SpecializationListResponse,
    normalize_email,
    normalize_license_number,
    normalize_phone,
)
from healthfirst.services.errors import (
    AccountInactiveError,
    AccountLockedError,
    AccountNotVerifiedError,
    AuthenticationError,
    NotFoundError,
    ValidationError,
)
from healthfirst.services.results import ServiceResult, service_operation

logger = logging.getLogger(__name__)

MINIMUM_PATIENT_AGE = 13
INVALID_CREDENTIALS_MESSAGE = 'Invalid credentials'


def age_on(date_of_birth: date, today: date) -> int:
    had_birthday = (today.month, today.day) >= (date_of_birth.month, date_of_birth.day)
    return today.year - date_of_birth.year - (0 if had_birthday else 1)


def to_provider_user(provider: Provider) -> ProviderUser:
    return ProviderUser(
        id=provider.id,
        first_name=provider.first_name,
        last_name=provider.last_name,
        email=provider.email,
        phone_number=provider.phone_number,
        specialization=provider.specialization,
        verification_status=provider.verification_status,
        is_active=provider.is_active,
    )


def to_patient_user(patient: Patient) -> PatientUser:
    return PatientUser(
        id=patient.id,
        first_name=patient.first_name,
        last_name=patient.last_name,
        email=patient.email,
        phone_number=patient.phone_number,
        date_of_birth=patient.date_of_birth,
        gender=patient.gender,
        is_active=patient.is_active,
    )


def _duplicate_details(db: Session, model, email: str, phone_number: str) -> list[str]:
    details: list[str] = []
    if db.query(model.id).filter(model.email == email).first() is not None:
        details.append('DUPLICATE_EMAIL')
    if db.query(model.id).filter(model.phone_number == phone_number).first() is not None:
        details.append('DUPLICATE_PHONE')
    return details


@service_operation('Register provider')
def register_provider(db: Session, request: ProviderRegistrationRequest) -> ServiceResult[RegistrationResponse]:
    logger.info('Registering provider %s', request.email)

    if not request.passwords_match():
        raise ValidationError('Passwords do not match')

    details = _duplicate_details(db, Provider, request.email, request.phone_number)
    if db.query(Provider.id).filter(Provider.license_number == request.license_number).first() is not None:
        details.append('DUPLICATE_LICENSE')
    if details:
        raise ValidationError('A provider with these details is already registered', details)

    provider = Provider(
        first_name=request.first_name,
        last_name=request.last_name,
        email=request.email,
        phone_number=request.phone_number,
        password_hash=hash_password(request.password),
        specialization=request.specialization,
        license_number=request.license_number,
        years_of_experience=request.years_of_experience,
        clinic_address=request.clinic_address,
        verification_status=VerificationStatus.PENDING.value,
        is_active=True,
    )
    db.add(provider)
    db.commit()
    db.refresh(provider)

    logger.info('Registered provider %s', provider.id)
    return ServiceResult.ok(
        'Provider registered successfully. Verification is pending.',
        RegistrationResponse(
            id=provider.id,
            email=provider.email,
            user_type=UserType.PROVIDER.value,
            verification_status=provider.verification_status,
        ),
    )


@service_operation('Register patient')
def register_patient(
    db: Session,
    request: PatientRegistrationRequest,
    today: date | None = None,
) -> ServiceResult[RegistrationResponse]:
    logger.info('Registering patient %s', request.email)
    today = today or date.today()

    if not request.passwords_match():
        raise ValidationError('Passwords do not match')
    if request.date_of_birth > today:
        raise ValidationError('Date of birth cannot be in the future')
    if age_on(request.date_of_birth, today) < MINIMUM_PATIENT_AGE:
        raise ValidationError(f'Patients must be at least {MINIMUM_PATIENT_AGE} years old')

    details = _duplicate_details(db, Patient, request.email, request.phone_number)
    if details:
        raise ValidationError('A patient with these details is already registered', details)

    patient = Patient(
        first_name=request.first_name,
        last_name=request.last_name,
        email=request.email,
        phone_number=request.phone_number,
        password_hash=hash_password(request.password),
        date_of_birth=request.date_of_birth,
        gender=request.gender.value,
        is_active=True,
    )
    db.add(patient)
    db.commit()
    db.refresh(patient)

    logger.info('Registered patient %s', patient.id)
    return ServiceResult.ok(
        'Patient registered successfully',
        RegistrationResponse(id=patient.id, email=patient.email, user_type=UserType.PATIENT.value),
    )


def _find_account(db: Session, identifier: str) -> Provider | Patient | None:
    for model in (Provider, Patient):
        column = model.email if '@' in identifier else model.phone_number
        account = db.query(model).filter(column == identifier).first()
        if account is not None:
            return account
    return None


def _record_failed_login(db: Session, account: Provider | Patient, now: datetime) -> None:
    account.failed_login_attempts = (account.failed_login_attempts or 0) + 1
    if account.failed_login_attempts >= config.MAX_FAILED_LOGIN_ATTEMPTS:
        account.lock_account(config.ACCOUNT_LOCKOUT_MINUTES, now=now)
        account.failed_login_attempts = 0
        logger.warning('Locked account %s after repeated failed logins', account.id)
    db.commit()


@service_operation('Login')
def login(db: Session, request: LoginRequest, now: datetime | None = None) -> ServiceResult[LoginResponse]:
    now = now or utc_now()
    account = _find_account(db, request.identifier)
    if account is None:
        raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

    if account.is_account_locked(now):
        raise AccountLockedError('Account is temporarily locked due to multiple failed login attempts')
    if not account.is_active:
        raise AccountInactiveError('Account is inactive')
    is_provider = isinstance(account, Provider)
    if is_provider and not account.is_verified:
        raise AccountNotVerifiedError('Account is not verified')

    if not verify_password(request.password, account.password_hash):
        _record_failed_login(db, account, now)
        raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

    account.failed_login_attempts = 0
    account.account_locked_until = None
    account.last_successful_login = now
    db.commit()
    db.refresh(account)

    user_type = UserType.PROVIDER if is_provider else UserType.PATIENT
    user = to_provider_user(account) if is_provider else to_patient_user(account)
    token = jwt_handler.create_access_token(subject=account.id, user_type=user_type.value)

    logger.info('Successful %s login for %s', user_type.value, account.id)
    return ServiceResult.ok(
        'Login successful',
        LoginResponse(
            access_token=token,
            expires_in=config.JWT_EXPIRES_MINUTES * 60,
            user_type=user_type.value,
            user=user,
        ),
    )


def _get_provider(db: Session, provider_id: str) -> Provider:
    provider = db.query(Provider).filter(Provider.id == provider_id).first()
    if provider is None:
        raise NotFoundError(f'Provider not found: {provider_id}')
    return provider


@service_operation('Update provider verification')
def set_provider_verification(
    db: Session,
    provider_id: str,
    verification_status: VerificationStatus,
) -> ServiceResult[ProviderUser]:
    provider = _get_provider(db, provider_id)
    provider.verification_status = verification_status.value
    db.commit()
    db.refresh(provider)

    logger.info('Provider %s verification set to %s', provider_id, verification_status.value)
    return ServiceResult.ok('Provider verification updated', to_provider_user(provider))


@service_operation('Update provider status')
def set_provider_active(db: Session, provider_id: str, is_active: bool) -> ServiceResult[ProviderUser]:
    provider = _get_provider(db, provider_id)
    provider.is_active = is_active
    db.commit()
    db.refresh(provider)

    logger.info('Provider %s %s', provider_id, 'activated' if is_active else 'deactivated')
    return ServiceResult.ok('Provider status updated', to_provider_user(provider))


# (column, normalizer, label) per account type and lookup field.
REGISTRATION_FIELDS = {
    (UserType.PROVIDER, 'email'): (Provider.email, normalize_email, 'Email'),
    (UserType.PROVIDER, 'phone_number'): (Provider.phone_number, normalize_phone, 'Phone number'),
    (UserType.PROVIDER, 'license_number'): (Provider.license_number, normalize_license_number, 'License number'),
    (UserType.PATIENT, 'email'): (Patient.email, normalize_email, 'Email'),
    (UserType.PATIENT, 'phone_number'): (Patient.phone_number, normalize_phone, 'Phone number'),
}


@service_operation('Check registration field')
def check_registration_field(
    db: Session,
    user_type: UserType,
    field: str,
    value: str,
) -> ServiceResult[FieldAvailabilityResponse]:
    """Report whether ``value`` is still free for a new registration.

    Values are normalized the same way registration normalizes them, so
    ``Ada@Clinic.Example`` and ``ada@clinic.example`` are the same email.
    """
    column, normalize, label = REGISTRATION_FIELDS[(user_type, field)]
    try:
        normalized = normalize(value)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc

    taken = db.query(column).filter(column == normalized).first() is not None
    return ServiceResult.ok(
        'Lookup completed',
        FieldAvailabilityResponse(
            field=field,
            value=normalized,
            available=not taken,
            message=f'{label} already registered' if taken else f'{label} available',
        ),
    )


def list_specializations() -> SpecializationListResponse:
    return SpecializationListResponse(
        specializations=list(VALID_SPECIALIZATIONS),
        count=len(VALID_SPECIALIZATIONS),
    )


@service_operation('List providers')
def list_active_providers(
    db: Session,
    specialization: str | None = None,
) -> ServiceResult[ProviderDirectoryResponse]:
    """Active, verified providers that patients can book with."""
    query = db.query(Provider).filter(
        Provider.is_active.is_(True),
        Provider.verification_status == VerificationStatus.VERIFIED.value,
    )
    if specialization:
        query = query.filter(func.lower(Provider.specialization) == specialization.strip().lower())

    providers = query.order_by(Provider.last_name.asc(), Provider.first_name.asc(), Provider.id.asc()).all()
    entries = [
        ProviderDirectoryEntry(
            id=provider.id,
            first_name=provider.first_name,
            last_name=provider.last_name,
            specialization=provider.specialization,
            years_of_experience=provider.years_of_experience or 0,
            clinic_address=provider.clinic_address,
        )
        for provider in providers
    ]
    return ServiceResult.ok(
        'Providers retrieved successfully',
        ProviderDirectoryResponse(providers=entries, count=len(entries)),
    )
