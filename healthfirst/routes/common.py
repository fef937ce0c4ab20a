from typing import Callable

from fastapi import HTTPException, Request, status
from sqlalchemy.exc import SQLAlchemyError

from healthfirst.core import config
from healthfirst.database import SessionLocal, ensure_scheduling_schema
from healthfirst.services.errors import ErrorCode
from healthfirst.services.rate_limiter import SlidingWindowRateLimiter
from healthfirst.services.results import ServiceResult

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'

ERROR_STATUS_CODES = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_TIMEZONE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.OWNERSHIP_ERROR: status.HTTP_403_FORBIDDEN,
    ErrorCode.OVERLAP_ERROR: status.HTTP_409_CONFLICT,
    ErrorCode.BOOKED_SLOTS_ERROR: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.ACCOUNT_LOCKED: status.HTTP_423_LOCKED,
    ErrorCode.ACCOUNT_INACTIVE: status.HTTP_403_FORBIDDEN,
    ErrorCode.ACCOUNT_NOT_VERIFIED: status.HTTP_403_FORBIDDEN,
    ErrorCode.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorCode.DATABASE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

registration_limiter = SlidingWindowRateLimiter(
    config.REGISTRATION_RATE_LIMIT,
    config.REGISTRATION_RATE_WINDOW_SECONDS,
)
search_limiter = SlidingWindowRateLimiter(config.SEARCH_RATE_LIMIT, config.SEARCH_RATE_WINDOW_SECONDS)
availability_write_limiter = SlidingWindowRateLimiter(
    config.AVAILABILITY_WRITE_RATE_LIMIT,
    config.AVAILABILITY_WRITE_RATE_WINDOW_SECONDS,
)


def ensure_database_ready() -> None:
    try:
        ensure_scheduling_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def unwrap(result: ServiceResult):
    """Return the data of a successful result or raise the matching HTTPException."""
    if result.success:
        return result.data

    status_code = ERROR_STATUS_CODES.get(result.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
    detail = {'message': result.message, 'code': result.code}
    if result.details:
        detail['details'] = result.details
    raise HTTPException(status_code=status_code, detail=detail)


def rate_limited(limiter: SlidingWindowRateLimiter) -> Callable[[Request], None]:
    def dependency(request: Request) -> None:
        client_key = request.client.host if request.client else 'unknown'
        if not limiter.is_allowed(client_key):
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail={'message': 'Too many requests. Please try again later.', 'code': ErrorCode.RATE_LIMITED},
            )

    return dependency
