import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")
DEBUG = _get_bool(os.getenv("DEBUG"), default=False)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./healthfirst.db")

CORS_ALLOW_ORIGINS = _get_list(os.getenv("CORS_ALLOW_ORIGINS"), ["http://localhost:3000"])

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

# Scheduling
DEFAULT_RECURRENCE_MONTHS = int(os.getenv("DEFAULT_RECURRENCE_MONTHS", "6"))
SEARCH_DEFAULT_RESULTS = int(os.getenv("SEARCH_DEFAULT_RESULTS", "50"))
SEARCH_MAX_RESULTS = int(os.getenv("SEARCH_MAX_RESULTS", "100"))

# Abuse protection
REGISTRATION_RATE_LIMIT = int(os.getenv("REGISTRATION_RATE_LIMIT", "5"))
REGISTRATION_RATE_WINDOW_SECONDS = int(os.getenv("REGISTRATION_RATE_WINDOW_SECONDS", "3600"))
MAX_FAILED_LOGIN_ATTEMPTS = int(os.getenv("MAX_FAILED_LOGIN_ATTEMPTS", "5"))
ACCOUNT_LOCKOUT_MINUTES = int(os.getenv("ACCOUNT_LOCKOUT_MINUTES", "30"))
SEARCH_RATE_LIMIT = int(os.getenv("SEARCH_RATE_LIMIT", "60"))
SEARCH_RATE_WINDOW_SECONDS = int(os.getenv("SEARCH_RATE_WINDOW_SECONDS", "60"))
AVAILABILITY_WRITE_RATE_LIMIT = int(os.getenv("AVAILABILITY_WRITE_RATE_LIMIT", "30"))
AVAILABILITY_WRITE_RATE_WINDOW_SECONDS = int(os.getenv("AVAILABILITY_WRITE_RATE_WINDOW_SECONDS", "60"))

# Provider verification endpoints are disabled while this is empty.
ADMIN_API_KEY = os.getenv("ADMIN_API_KEY", "")


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if SEARCH_DEFAULT_RESULTS > SEARCH_MAX_RESULTS:
        raise RuntimeError("SEARCH_DEFAULT_RESULTS cannot exceed SEARCH_MAX_RESULTS.")
