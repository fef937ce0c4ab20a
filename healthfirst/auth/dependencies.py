import jwt
from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from healthfirst.auth import jwt_handler
from healthfirst.core import config
from healthfirst.models.enums import UserType
from healthfirst.models.patient import Patient
from healthfirst.models.provider import Provider
from healthfirst.routes.common import get_db

security = HTTPBearer()


def get_token_payload(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> dict:
    try:
        payload = jwt_handler.decode_access_token(credentials.credentials)
    except jwt.PyJWTError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc

    if not payload.get("sub") or payload.get("user_type") not in {user_type.value for user_type in UserType}:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token subject")
    return payload


def get_current_account(
    payload: dict = Depends(get_token_payload),
    db: Session = Depends(get_db),
) -> Provider | Patient:
    model = Provider if payload["user_type"] == UserType.PROVIDER.value else Patient
    account = db.query(model).filter(model.id == payload["sub"]).first()
    if account is None or not account.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return account


def get_current_provider(account: Provider | Patient = Depends(get_current_account)) -> Provider:
    if not isinstance(account, Provider):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Provider access required")
    return account


def get_current_patient(account: Provider | Patient = Depends(get_current_account)) -> Patient:
    if not isinstance(account, Patient):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Patient access required")
    return account


def require_admin_key(x_admin_key: str | None = Header(default=None)) -> None:
    if not config.ADMIN_API_KEY or x_admin_key != config.ADMIN_API_KEY:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
