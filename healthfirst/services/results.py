import logging
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Callable, Generic, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from healthfirst.services.errors import ErrorCode, ServiceError

logger = logging.getLogger(__name__)

T = TypeVar('T')

GENERIC_FAILURE_MESSAGE = 'The request could not be completed. Please try again later.'
DATABASE_UNAVAILABLE_MESSAGE = 'Database unavailable. Please try again later.'


@dataclass
class ServiceResult(Generic[T]):
    success: bool
    message: str
    code: str | None = None
    data: T | None = None
    details: list[str] = field(default_factory=list)

    @classmethod
    def ok(cls, message: str, data: T | None = None) -> 'ServiceResult[T]':
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, message: str, code: str, details: list[str] | None = None) -> 'ServiceResult[T]':
        return cls(success=False, message=message, code=code, details=details or [])

    @classmethod
    def from_error(cls, error: ServiceError) -> 'ServiceResult[T]':
        return cls.fail(error.message, error.code, error.details)


def service_operation(operation: str) -> Callable:
    """Turn a service function that raises ``ServiceError`` into one returning ``ServiceResult``.

    The wrapped callable must accept the SQLAlchemy session either as its
    ``db`` keyword, as its first positional argument, or expose it as
    ``self.db``. Database errors roll the session back and are reported as
    ``DATABASE_UNAVAILABLE``; any other unexpected failure is reported as
    ``INTERNAL_ERROR``. Neither leaks its detail to the caller.
    """

    def decorator(func: Callable[..., 'ServiceResult[Any]']) -> Callable[..., 'ServiceResult[Any]']:
        @wraps(func)
        def wrapper(*args, **kwargs) -> ServiceResult[Any]:
            db = _find_session(args, kwargs)
            try:
                return func(*args, **kwargs)
            except ServiceError as exc:
                if db is not None:
                    db.rollback()
                logger.warning('%s rejected: %s', operation, exc.message)
                return ServiceResult.from_error(exc)
            except SQLAlchemyError:
                if db is not None:
                    db.rollback()
                logger.exception('%s failed: database error', operation)
                return ServiceResult.fail(DATABASE_UNAVAILABLE_MESSAGE, ErrorCode.DATABASE_UNAVAILABLE)
            except Exception:
                if db is not None:
                    db.rollback()
                logger.exception('%s failed unexpectedly', operation)
                return ServiceResult.fail(GENERIC_FAILURE_MESSAGE, ErrorCode.INTERNAL_ERROR)

        return wrapper

    return decorator


def _find_session(args: tuple, kwargs: dict) -> Session | None:
    if isinstance(kwargs.get('db'), Session):
        return kwargs['db']
    for arg in args[:1]:
        if isinstance(arg, Session):
            return arg
        session = getattr(arg, 'db', None)
        if isinstance(session, Session):
            return session
    return None
