import re
from datetime import date
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, field_validator

from healthfirst.models.enums import Gender, VerificationStatus

PHONE_PATTERN = re.compile(r'^\+?[1-9]\d{7,14}$')
LICENSE_PATTERN = re.compile(r'^[A-Z0-9]{4,50}$')
EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
MIN_PASSWORD_LENGTH = 8

VALID_SPECIALIZATIONS = (
    'Anesthesiology',
    'Cardiology',
    'Dermatology',
    'Emergency Medicine',
    'Endocrinology',
    'Family Medicine',
    'Gastroenterology',
    'Hematology',
    'Infectious Disease',
    'Internal Medicine',
    'Nephrology',
    'Neurology',
    'Obstetrics and Gynecology',
    'Oncology',
    'Ophthalmology',
    'Orthopedic Surgery',
    'Otolaryngology',
    'Pathology',
    'Pediatrics',
    'Psychiatry',
    'Pulmonology',
    'Radiology',
    'Rheumatology',
    'Surgery',
    'Urology',
)
_SPECIALIZATIONS_BY_KEY = {name.lower(): name for name in VALID_SPECIALIZATIONS}


def normalize_email(value: str) -> str:
    normalized = value.strip().lower()
    if not EMAIL_PATTERN.match(normalized):
        raise ValueError('Email must be a valid email address.')
    return normalized


def normalize_phone(value: str) -> str:
    normalized = re.sub(r'[\s\-()]', '', value)
    if not PHONE_PATTERN.match(normalized):
        raise ValueError('Phone number must be in international format.')
    return normalized


def normalize_license_number(value: str) -> str:
    normalized = value.strip().upper()
    if not LICENSE_PATTERN.match(normalized):
        raise ValueError('License number must be alphanumeric.')
    return normalized


def _validate_password(value: str) -> str:
    if len(value) < MIN_PASSWORD_LENGTH:
        raise ValueError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters.')
    if not (
        re.search(r'[a-z]', value)
        and re.search(r'[A-Z]', value)
        and re.search(r'\d', value)
        and re.search(r'[^A-Za-z0-9]', value)
    ):
        raise ValueError('Password must contain upper and lower case letters, a number and a special character.')
    return value


class ProviderRegistrationRequest(BaseModel):
    first_name: str = Field(min_length=2, max_length=50)
    last_name: str = Field(min_length=2, max_length=50)
    email: str
    phone_number: str
    password: str
    confirm_password: str
    specialization: str = Field(min_length=3, max_length=100)
    license_number: str
    years_of_experience: int = Field(default=0, ge=0, le=50)
    clinic_address: str | None = Field(default=None, max_length=500)

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return normalize_email(value)

    @field_validator('phone_number')
    @classmethod
    def validate_phone(cls, value: str) -> str:
        return normalize_phone(value)

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        return _validate_password(value)

    @field_validator('first_name', 'last_name')
    @classmethod
    def strip_names(cls, value: str) -> str:
        return value.strip()

    @field_validator('specialization')
    @classmethod
    def validate_specialization(cls, value: str) -> str:
        canonical = _SPECIALIZATIONS_BY_KEY.get(' '.join(value.split()).lower())
        if canonical is None:
            raise ValueError('Please select a valid specialization from the predefined list.')
        return canonical

    @field_validator('license_number')
    @classmethod
    def validate_license(cls, value: str) -> str:
        return normalize_license_number(value)

    def passwords_match(self) -> bool:
        return self.password == self.confirm_password


class PatientRegistrationRequest(BaseModel):
    first_name: str = Field(min_length=2, max_length=50)
    last_name: str = Field(min_length=2, max_length=50)
    email: str
    phone_number: str
    password: str
    confirm_password: str
    date_of_birth: date
    gender: Gender

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return normalize_email(value)

    @field_validator('phone_number')
    @classmethod
    def validate_phone(cls, value: str) -> str:
        return normalize_phone(value)

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        return _validate_password(value)

    @field_validator('first_name', 'last_name')
    @classmethod
    def strip_names(cls, value: str) -> str:
        return value.strip()

    def passwords_match(self) -> bool:
        return self.password == self.confirm_password


class RegistrationResponse(BaseModel):
    id: str
    email: str
    user_type: str
    verification_status: VerificationStatus | None = None


class LoginRequest(BaseModel):
    identifier: str
    password: str

    @field_validator('identifier')
    @classmethod
    def normalize_identifier(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Email or phone number is required.')
        return normalized.lower() if '@' in normalized else normalize_phone(normalized)


class ProviderUser(BaseModel):
    user_type: Literal['provider'] = 'provider'
    id: str
    first_name: str
    last_name: str
    email: str
    phone_number: str
    specialization: str
    verification_status: VerificationStatus
    is_active: bool


class PatientUser(BaseModel):
    user_type: Literal['patient'] = 'patient'
    id: str
    first_name: str
    last_name: str
    email: str
    phone_number: str
    date_of_birth: date
    gender: Gender
    is_active: bool


LoginUser = Annotated[Union[ProviderUser, PatientUser], Field(discriminator='user_type')]


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = 'bearer'
    expires_in: int
    user_type: str
    user: LoginUser


class VerificationUpdateRequest(BaseModel):
    verification_status: VerificationStatus


class ProviderStatusUpdateRequest(BaseModel):
    is_active: bool


class FieldAvailabilityResponse(BaseModel):
    field: str
    value: str
    available: bool
    message: str


class SpecializationListResponse(BaseModel):
    specializations: list[str]
    count: int


class ProviderDirectoryEntry(BaseModel):
    id: str
    first_name: str
    last_name: str
    specialization: str
    years_of_experience: int
    clinic_address: str | None = None


class ProviderDirectoryResponse(BaseModel):
    providers: list[ProviderDirectoryEntry]
    count: int
