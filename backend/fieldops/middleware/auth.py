"""Authentication and authorization dependencies for the field-ops API.

Provides:
- Password hashing (bcrypt)
- ``get_access()``: the per-request ``AccessControl`` facade
- ``get_current_user()`` dependency
- ``require_permission()`` and ``require_role_class()`` dependency factories
"""
from __future__ import annotations

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession

from fieldops.config import settings
from fieldops.database import get_db
from fieldops.rbac import Permission, RoleClass
from fieldops.services.access import AccessControl
from fieldops.services.cache import ConfigCache
from fieldops.services.credentials import AuthenticatedUser, TokenService
from fieldops.services.store import RecordStore

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain: str, hashed: str) -> bool:
    """Compare a plain-text password against a bcrypt hash."""
    return _pwd_context.verify(plain, hashed)


def hash_password(plain: str) -> str:
    return _pwd_context.hash(plain)


# ---------------------------------------------------------------------------
# OAuth2 scheme (tells Swagger UI where the login endpoint is)
# ---------------------------------------------------------------------------

# auto_error is off so a missing header reaches the resolver and fails with
# the same error shape as a bad token.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login/form", auto_error=False)


# ---------------------------------------------------------------------------
# Engine wiring
# ---------------------------------------------------------------------------


def get_token_service() -> TokenService:
    return TokenService(
        secret=settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
        expiry_minutes=settings.JWT_EXPIRY_MINUTES,
    )


def get_config_cache(request: Request) -> ConfigCache:
    """The process-wide cache created in ``fieldops.main``."""
    return request.app.state.config_cache


def get_access(
    db: AsyncSession = Depends(get_db),
    cache: ConfigCache = Depends(get_config_cache),
    tokens: TokenService = Depends(get_token_service),
) -> AccessControl:
    return AccessControl(RecordStore(db), cache, tokens)


# ---------------------------------------------------------------------------
# Current-user dependency
# ---------------------------------------------------------------------------


async def get_current_user(
    token: str | None = Depends(oauth2_scheme),
    access: AccessControl = Depends(get_access),
) -> AuthenticatedUser:
    """Resolve the bearer token to an ``AuthenticatedUser``.

    Raises ``Unauthenticated`` (401) for a missing, invalid or expired token
    and ``Forbidden`` (403) for a deactivated account.
    """
    return await access.resolve_user(token)


# ---------------------------------------------------------------------------
# Dependency factories
# ---------------------------------------------------------------------------


def require_permission(*permissions: Permission, role_class: RoleClass | None = None):
    """Return a FastAPI dependency that ensures the authenticated user has
    ALL of the specified permissions.

    When *role_class* is given it is checked first; a user outside the class
    is refused without consulting the permission configuration.

    Usage::

        @router.put("/role-permissions")
        async def update_role_permissions(
            body: RolePermissionsUpdate,
            user: AuthenticatedUser = Depends(
                require_permission(Permission.MANAGE_SYSTEM_SETTINGS,
                                   role_class=RoleClass.SENIOR_ADMIN)
            ),
        ):
            ...
    """
    required = list(permissions)

    async def _check_permission(
        current_user: AuthenticatedUser = Depends(get_current_user),
        access: AccessControl = Depends(get_access),
    ) -> AuthenticatedUser:
        if role_class is not None:
            access.require_role_class(current_user, role_class)
        if len(required) == 1:
            await access.authorize(current_user, required[0])
        elif required:
            await access.authorize_all(current_user, required)
        return current_user

    return _check_permission


def require_role_class(role_class: RoleClass):
    """Return a FastAPI dependency that only admits members of *role_class*."""

    async def _check_role(
        current_user: AuthenticatedUser = Depends(get_current_user),
        access: AccessControl = Depends(get_access),
    ) -> AuthenticatedUser:
        access.require_role_class(current_user, role_class)
        return current_user

    return _check_role
