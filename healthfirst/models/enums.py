"""Enumerations shared by models, schemas and services."""

from enum import Enum


class AppointmentType(str, Enum):
    CONSULTATION = 'CONSULTATION'
    FOLLOW_UP = 'FOLLOW_UP'
    ROUTINE_CHECKUP = 'ROUTINE_CHECKUP'
    SPECIALIST_CONSULTATION = 'SPECIALIST_CONSULTATION'
    EMERGENCY = 'EMERGENCY'
    TELEMEDICINE = 'TELEMEDICINE'
    SURGICAL_CONSULTATION = 'SURGICAL_CONSULTATION'
    DIAGNOSTIC = 'DIAGNOSTIC'
    PREVENTIVE_CARE = 'PREVENTIVE_CARE'
    THERAPY_SESSION = 'THERAPY_SESSION'

    @property
    def display_name(self) -> str:
        return APPOINTMENT_TYPE_DISPLAY_NAMES[self]


APPOINTMENT_TYPE_DISPLAY_NAMES = {
    AppointmentType.CONSULTATION: 'Consultation',
    AppointmentType.FOLLOW_UP: 'Follow-up',
    AppointmentType.ROUTINE_CHECKUP: 'Routine Checkup',
    AppointmentType.SPECIALIST_CONSULTATION: 'Specialist Consultation',
    AppointmentType.EMERGENCY: 'Emergency',
    AppointmentType.TELEMEDICINE: 'Telemedicine',
    AppointmentType.SURGICAL_CONSULTATION: 'Surgical Consultation',
    AppointmentType.DIAGNOSTIC: 'Diagnostic',
    AppointmentType.PREVENTIVE_CARE: 'Preventive Care',
    AppointmentType.THERAPY_SESSION: 'Therapy Session',
}


class RecurrencePattern(str, Enum):
    NONE = 'NONE'
    DAILY = 'DAILY'
    WEEKLY = 'WEEKLY'
    MONTHLY = 'MONTHLY'
    WEEKDAYS = 'WEEKDAYS'
    WEEKENDS = 'WEEKENDS'
    CUSTOM = 'CUSTOM'


class VerificationStatus(str, Enum):
    PENDING = 'pending'
    VERIFIED = 'verified'
    REJECTED = 'rejected'


class Gender(str, Enum):
    MALE = 'male'
    FEMALE = 'female'
    OTHER = 'other'
    PREFER_NOT_TO_SAY = 'prefer_not_to_say'


class UserType(str, Enum):
    PROVIDER = 'provider'
    PATIENT = 'patient'
