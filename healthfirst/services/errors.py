"""Domain errors raised inside the scheduling services.

Services raise these internally and convert them into a failed
``ServiceResult`` before returning, so callers only ever see the
machine-readable ``code``.
"""


class ErrorCode:
    VALIDATION_ERROR = 'VALIDATION_ERROR'
    INVALID_TIMEZONE = 'INVALID_TIMEZONE'
    NOT_FOUND = 'NOT_FOUND'
    OWNERSHIP_ERROR = 'OWNERSHIP_ERROR'
    OVERLAP_ERROR = 'OVERLAP_ERROR'
    BOOKED_SLOTS_ERROR = 'BOOKED_SLOTS_ERROR'
    INVALID_CREDENTIALS = 'INVALID_CREDENTIALS'
    ACCOUNT_LOCKED = 'ACCOUNT_LOCKED'
    ACCOUNT_INACTIVE = 'ACCOUNT_INACTIVE'
    ACCOUNT_NOT_VERIFIED = 'ACCOUNT_NOT_VERIFIED'
    RATE_LIMITED = 'RATE_LIMITED'
    DATABASE_UNAVAILABLE = 'DATABASE_UNAVAILABLE'
    INTERNAL_ERROR = 'INTERNAL_ERROR'


class ServiceError(Exception):
    code = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, details: list[str] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or []


class ValidationError(ServiceError):
    code = ErrorCode.VALIDATION_ERROR


class InvalidTimezoneError(ValidationError):
    code = ErrorCode.INVALID_TIMEZONE


class NotFoundError(ServiceError):
    code = ErrorCode.NOT_FOUND


class OwnershipError(ServiceError):
    code = ErrorCode.OWNERSHIP_ERROR


class OverlapError(ServiceError):
    code = ErrorCode.OVERLAP_ERROR


class BookedSlotsError(ServiceError):
    code = ErrorCode.BOOKED_SLOTS_ERROR


class AuthenticationError(ServiceError):
    code = ErrorCode.INVALID_CREDENTIALS


class AccountLockedError(AuthenticationError):
    code = ErrorCode.ACCOUNT_LOCKED


class AccountInactiveError(AuthenticationError):
    code = ErrorCode.ACCOUNT_INACTIVE


class AccountNotVerifiedError(AuthenticationError):
    code = ErrorCode.ACCOUNT_NOT_VERIFIED
