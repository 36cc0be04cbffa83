"""
Authentication and authorization.

Bearer JWTs carry the account id (`sub`), the role (`provider` / `customer`)
and the tenant (`provider_id`). Route dependencies resolve them to a Principal.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, NamedTuple, Optional

import bcrypt
import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config.settings import settings
from .exceptions import AuthenticationError, PermissionDeniedError, ValidationError

logger = logging.getLogger(__name__)

ROLE_PROVIDER = "provider"
ROLE_CUSTOMER = "customer"

MIN_PASSWORD_LENGTH = 6
# bcrypt only looks at the first 72 bytes
MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    """bcrypt hash of a new password"""
    raw = (password or "").encode("utf-8")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(raw) > MAX_PASSWORD_BYTES:
        raise ValidationError("Password is too long")
    return bcrypt.hashpw(raw, bcrypt.gensalt()).decode("ascii")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """False for accounts without a password"""
    if not password or not password_hash:
        return False
    raw = password.encode("utf-8")
    if len(raw) > MAX_PASSWORD_BYTES:
        return False
    return bcrypt.checkpw(raw, password_hash.encode("ascii"))


class Principal(NamedTuple):
    """The authenticated caller"""
    account_id: int
    role: str
    provider_id: int

    @property
    def is_provider(self) -> bool:
        return self.role == ROLE_PROVIDER

    @property
    def is_customer(self) -> bool:
        return self.role == ROLE_CUSTOMER


class SecurityManager:
    """Token issue and verification"""

    def __init__(self, secret_key: Optional[str] = None, algorithm: Optional[str] = None,
                 expire_hours: Optional[int] = None):
        self.secret_key = secret_key or settings.jwt_secret_key
        self.algorithm = algorithm or settings.jwt_algorithm
        self.expire_hours = expire_hours or settings.jwt_expire_hours

    def create_jwt_token(self, account_id: int, role: str, provider_id: int,
                         additional_claims: Optional[Dict[str, Any]] = None) -> str:
        if role not in (ROLE_PROVIDER, ROLE_CUSTOMER):
            raise AuthenticationError(f"Unknown role: {role}")
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(account_id),
            "role": role,
            "provider_id": provider_id,
            "exp": now + timedelta(hours=self.expire_hours),
            "iat": now,
        }
        if additional_claims:
            payload.update(additional_claims)
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def decode_jwt_token(self, token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise AuthenticationError(f"Invalid token: {e}")

    def principal_from_token(self, token: str) -> Principal:
        payload = self.decode_jwt_token(token)
        try:
            return Principal(
                account_id=int(payload["sub"]),
                role=payload["role"],
                provider_id=int(payload["provider_id"]),
            )
        except (KeyError, TypeError, ValueError):
            raise AuthenticationError("Token is missing required claims")


security_manager = SecurityManager()

_bearer = HTTPBearer(auto_error=False)


def create_access_token(account_id: int, role: str, provider_id: int) -> str:
    return security_manager.create_jwt_token(account_id, role, provider_id)


async def get_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
) -> Principal:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()
    return security_manager.principal_from_token(credentials.credentials)


async def require_provider(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.is_provider:
        raise PermissionDeniedError("Provider access required")
    return principal


async def require_customer(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.is_customer:
        raise PermissionDeniedError("Customer access required")
    return principal
