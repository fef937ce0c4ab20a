from datetime import date, datetime, timedelta

import pytest
from pydantic import ValidationError

from conftest import NOW_UTC, TEST_PASSWORD
from healthfirst.auth import jwt_handler
from healthfirst.auth.passwords import hash_password, verify_password
from healthfirst.models.enums import Gender, UserType, VerificationStatus
from healthfirst.models.patient import Patient
from healthfirst.models.provider import Provider
from healthfirst.schemas.auth import LoginRequest, PatientRegistrationRequest, ProviderRegistrationRequest
from healthfirst.services import auth_service
from healthfirst.services.errors import ErrorCode


def provider_registration(**overrides) -> ProviderRegistrationRequest:
    values = {
        'first_name': 'Grace',
        'last_name': 'Hopper',
        'email': 'Grace.Hopper@Clinic.Example',
        'phone_number': '+1 (555) 123-4567',
        'password': TEST_PASSWORD,
        'confirm_password': TEST_PASSWORD,
        'specialization': 'Neurology',
        'license_number': 'md12345',
        'years_of_experience': 12,
    }
    values.update(overrides)
    return ProviderRegistrationRequest(**values)


def patient_registration(**overrides) -> PatientRegistrationRequest:
    values = {
        'first_name': 'Alan',
        'last_name': 'Turing',
        'email': 'alan@mail.example',
        'phone_number': '+15559876543',
        'password': TEST_PASSWORD,
        'confirm_password': TEST_PASSWORD,
        'date_of_birth': date(1990, 6, 23),
        'gender': Gender.MALE,
    }
    values.update(overrides)
    return PatientRegistrationRequest(**values)


def test_password_hashing_round_trip() -> None:
    password_hash = hash_password(TEST_PASSWORD)

    assert password_hash != TEST_PASSWORD
    assert verify_password(TEST_PASSWORD, password_hash)
    assert not verify_password('wrong-password', password_hash)
    assert not verify_password(TEST_PASSWORD, 'not-a-bcrypt-hash')


def test_register_provider_normalizes_and_starts_pending(db_session) -> None:
    result = auth_service.register_provider(db_session, provider_registration())

    assert result.success
    assert result.data.verification_status == VerificationStatus.PENDING
    provider = db_session.get(Provider, result.data.id)
    assert provider.email == 'grace.hopper@clinic.example'
    assert provider.phone_number == '+15551234567'
    assert provider.license_number == 'MD12345'
    assert verify_password(TEST_PASSWORD, provider.password_hash)


def test_register_provider_reports_duplicates(db_session, make_provider) -> None:
    existing = make_provider()

    result = auth_service.register_provider(
        db_session,
        provider_registration(email=existing.email, license_number=existing.license_number),
    )

    assert result.code == ErrorCode.VALIDATION_ERROR
    assert result.details == ['DUPLICATE_EMAIL', 'DUPLICATE_LICENSE']


def test_register_provider_requires_matching_passwords(db_session) -> None:
    result = auth_service.register_provider(db_session, provider_registration(confirm_password='Other!Pass1'))

    assert result.code == ErrorCode.VALIDATION_ERROR
    assert result.message == 'Passwords do not match'


@pytest.mark.parametrize('password', ['short1!', 'alllowercase1!', 'NoDigits!!', 'NoSpecial123'])
def test_weak_passwords_fail_schema_validation(password: str) -> None:
    with pytest.raises(ValidationError):
        provider_registration(password=password, confirm_password=password)


def test_register_patient_enforces_minimum_age(db_session) -> None:
    today = date(2031, 1, 1)

    too_young = auth_service.register_patient(db_session, patient_registration(date_of_birth=date(2018, 1, 2)), today)
    old_enough = auth_service.register_patient(db_session, patient_registration(date_of_birth=date(2018, 1, 1)), today)

    assert too_young.code == ErrorCode.VALIDATION_ERROR
    assert old_enough.success


def test_register_patient_rejects_duplicate_phone(db_session, make_patient) -> None:
    existing = make_patient()

    result = auth_service.register_patient(db_session, patient_registration(phone_number=existing.phone_number))

    assert result.details == ['DUPLICATE_PHONE']


def test_age_on_counts_completed_years() -> None:
    assert auth_service.age_on(date(2000, 2, 29), date(2013, 2, 28)) == 12
    assert auth_service.age_on(date(2000, 2, 29), date(2013, 3, 1)) == 13


def test_provider_login_returns_token_with_user_type(db_session, make_provider) -> None:
    provider = make_provider()

    result = auth_service.login(db_session, LoginRequest(identifier=provider.email.upper(), password=TEST_PASSWORD))

    assert result.success
    assert result.data.user_type == 'provider'
    assert result.data.user.user_type == 'provider'
    assert result.data.user.specialization == provider.specialization
    payload = jwt_handler.decode_access_token(result.data.access_token)
    assert payload['sub'] == provider.id
    assert payload['user_type'] == 'provider'


def test_patient_login_by_phone_number(db_session, make_patient) -> None:
    patient = make_patient()

    result = auth_service.login(db_session, LoginRequest(identifier=patient.phone_number, password=TEST_PASSWORD))

    assert result.success
    assert result.data.user.user_type == 'patient'
    assert result.data.user.id == patient.id


def test_unknown_identifier_is_invalid_credentials(db_session) -> None:
    result = auth_service.login(db_session, LoginRequest(identifier='nobody@mail.example', password=TEST_PASSWORD))

    assert result.code == ErrorCode.INVALID_CREDENTIALS


def test_unverified_provider_cannot_log_in(db_session, make_provider) -> None:
    provider = make_provider(verification_status=VerificationStatus.PENDING.value)

    result = auth_service.login(db_session, LoginRequest(identifier=provider.email, password=TEST_PASSWORD))

    assert result.code == ErrorCode.ACCOUNT_NOT_VERIFIED


def test_inactive_patient_cannot_log_in(db_session, make_patient) -> None:
    patient = make_patient(is_active=False)

    result = auth_service.login(db_session, LoginRequest(identifier=patient.email, password=TEST_PASSWORD))

    assert result.code == ErrorCode.ACCOUNT_INACTIVE


def test_repeated_failures_lock_the_account(db_session, make_patient) -> None:
    patient = make_patient()
    wrong = LoginRequest(identifier=patient.email, password='Wrong!Pass1')

    codes = [auth_service.login(db_session, wrong, now=NOW_UTC).code for _ in range(5)]
    locked = auth_service.login(
        db_session, LoginRequest(identifier=patient.email, password=TEST_PASSWORD), now=NOW_UTC,
    )

    assert codes == [ErrorCode.INVALID_CREDENTIALS] * 5
    assert locked.code == ErrorCode.ACCOUNT_LOCKED
    assert db_session.get(Patient, patient.id).account_locked_until == NOW_UTC + timedelta(minutes=30)


def test_lock_expires_and_successful_login_resets_counters(db_session, make_patient) -> None:
    patient = make_patient(failed_login_attempts=3, account_locked_until=NOW_UTC - timedelta(minutes=1))

    result = auth_service.login(
        db_session, LoginRequest(identifier=patient.email, password=TEST_PASSWORD), now=NOW_UTC,
    )

    assert result.success
    refreshed = db_session.get(Patient, patient.id)
    assert refreshed.failed_login_attempts == 0
    assert refreshed.account_locked_until is None
    assert refreshed.last_successful_login == NOW_UTC


def test_set_provider_verification_and_status(db_session, make_provider) -> None:
    provider = make_provider(verification_status=VerificationStatus.PENDING.value)

    verified = auth_service.set_provider_verification(db_session, provider.id, VerificationStatus.VERIFIED)
    deactivated = auth_service.set_provider_active(db_session, provider.id, False)
    missing = auth_service.set_provider_active(db_session, 'missing', True)

    assert verified.data.verification_status == VerificationStatus.VERIFIED
    assert deactivated.data.is_active is False
    assert missing.code == ErrorCode.NOT_FOUND


def test_login_issued_at_is_recent(db_session, make_patient) -> None:
    patient = make_patient()

    result = auth_service.login(db_session, LoginRequest(identifier=patient.email, password=TEST_PASSWORD))

    payload = jwt_handler.decode_access_token(result.data.access_token)
    assert abs(payload['iat'] - datetime.now().timestamp()) < 60


def test_provider_specialization_is_matched_to_the_known_list() -> None:
    assert provider_registration(specialization='  family   medicine ').specialization == 'Family Medicine'

    with pytest.raises(ValidationError):
        provider_registration(specialization='Astrology')


def test_check_registration_field_normalizes_before_lookup(db_session, make_provider) -> None:
    provider = make_provider(email='taken@clinic.example')

    taken = auth_service.check_registration_field(db_session, UserType.PROVIDER, 'email', ' Taken@Clinic.Example ')
    free = auth_service.check_registration_field(db_session, UserType.PROVIDER, 'email', 'free@clinic.example')
    license_taken = auth_service.check_registration_field(
        db_session, UserType.PROVIDER, 'license_number', provider.license_number.lower(),
    )

    assert taken.data.available is False
    assert taken.data.value == 'taken@clinic.example'
    assert taken.data.message == 'Email already registered'
    assert free.data.available is True
    assert license_taken.data.available is False


def test_check_registration_field_is_scoped_to_account_type(db_session, make_patient) -> None:
    patient = make_patient()

    as_patient = auth_service.check_registration_field(
        db_session, UserType.PATIENT, 'phone_number', patient.phone_number,
    )
    as_provider = auth_service.check_registration_field(
        db_session, UserType.PROVIDER, 'phone_number', patient.phone_number,
    )

    assert as_patient.data.available is False
    assert as_provider.data.available is True


def test_check_registration_field_rejects_malformed_values(db_session) -> None:
    result = auth_service.check_registration_field(db_session, UserType.PATIENT, 'phone_number', 'call me')

    assert result.code == ErrorCode.VALIDATION_ERROR


def test_list_active_providers_only_returns_bookable_providers(db_session, make_provider) -> None:
    visible = make_provider(last_name='Adams', specialization='Pediatrics')
    make_provider(last_name='Baker', specialization='Oncology')
    make_provider(verification_status=VerificationStatus.PENDING.value)
    make_provider(is_active=False)

    everyone = auth_service.list_active_providers(db_session)
    pediatrics = auth_service.list_active_providers(db_session, specialization='pediatrics')

    assert [entry.last_name for entry in everyone.data.providers] == ['Adams', 'Baker']
    assert everyone.data.count == 2
    assert [entry.id for entry in pediatrics.data.providers] == [visible.id]


def test_list_specializations_returns_the_known_list() -> None:
    response = auth_service.list_specializations()

    assert response.count == len(response.specializations)
    assert 'Cardiology' in response.specializations
