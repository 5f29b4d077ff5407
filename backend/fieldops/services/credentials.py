"""Credential resolution: bearer token -> authenticated user.

Fails closed: any problem with the token or the user record raises
``Unauthenticated`` (or ``Forbidden`` for a deactivated account).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt

from fieldops.errors import Forbidden, Unauthenticated
from fieldops.models import User
from fieldops.rbac import RoleRef, parse_role
from fieldops.services.store import RecordStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthenticatedUser:
    id: int
    email: str
    first_name: str
    last_name: str
    role: RoleRef
    phone: str | None = None
    contractor_company_name: str | None = None

    @property
    def role_name(self) -> str:
        return self.role.value

    @classmethod
    def from_record(cls, user: User) -> "AuthenticatedUser":
        return cls(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            role=parse_role(user.role),
            phone=user.phone,
            contractor_company_name=user.contractor_company_name,
        )


# ---------------------------------------------------------------------------
# JWT helpers
# ---------------------------------------------------------------------------


class TokenService:
    """Issues and verifies signed bearer tokens carrying the user id as ``sub``."""

    def __init__(self, secret: str, algorithm: str = "HS256", expiry_minutes: int = 480) -> None:
        self.secret = secret
        self.algorithm = algorithm
        self.expiry_minutes = expiry_minutes

    def issue(self, subject_id: int) -> str:
        expire = datetime.now(timezone.utc) + timedelta(minutes=self.expiry_minutes)
        payload = {"sub": str(subject_id), "exp": expire}
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> int:
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except ExpiredSignatureError as exc:
            logger.info(f"Token expired: {exc}")
            raise Unauthenticated("Your session has expired. Please log in again.") from exc
        except JWTError as exc:
            logger.info(f"Invalid token: {exc}")
            raise Unauthenticated("Invalid authentication token. Please log in again.") from exc

        subject = payload.get("sub")
        try:
            return int(subject)
        except (TypeError, ValueError) as exc:
            raise Unauthenticated("Invalid token format. Please log in again.") from exc


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class CredentialResolver:
    def __init__(self, tokens: TokenService, store: RecordStore) -> None:
        self.tokens = tokens
        self.store = store

    async def resolve(self, credential: str | None) -> AuthenticatedUser:
        if not credential:
            raise Unauthenticated("Authentication required. Please log in.")

        subject_id = self.tokens.verify(credential)
        user = await self.store.find_user_by_id(subject_id)
        if user is None:
            raise Unauthenticated("User not found. Please log in again.")
        if not user.is_active:
            raise Forbidden("User account is deactivated")
        return AuthenticatedUser.from_record(user)
