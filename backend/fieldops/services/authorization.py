"""Authorization evaluator.

Two kinds of checks:

* role classes (``RoleClass``) are structural and compiled: who *is* an admin;
* permissions are behavioural and come from the live configuration: what a
  role *can do*.

Call sites needing both evaluate the role class first so a coarse denial
never pays for a configuration lookup.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable

from fieldops.errors import Forbidden
from fieldops.rbac import ROLE_CLASS_MESSAGES, Permission, RoleClass, in_role_class
from fieldops.services.credentials import AuthenticatedUser
from fieldops.services.permission_config import PermissionConfigStore

# Denials are policy-relevant events; an audit sink can subscribe to this logger.
audit_logger = logging.getLogger("fieldops.authz")

DEFAULT_DENIAL = "You don't have permission to perform this action"


class AuthorizationEvaluator:
    def __init__(self, config: PermissionConfigStore) -> None:
        self.config = config

    async def permissions_for(self, user: AuthenticatedUser) -> frozenset[Permission]:
        """Effective permissions for *user*; empty for unknown or deleted roles."""
        return await self.config.permissions_for(user.role_name)

    async def has_permission(self, user: AuthenticatedUser, permission: Permission) -> bool:
        return permission in await self.permissions_for(user)

    async def authorize(
        self,
        user: AuthenticatedUser,
        permission: Permission,
        message: str | None = None,
    ) -> None:
        if not await self.has_permission(user, permission):
            self._deny(user, f"permission {permission.value}", message or DEFAULT_DENIAL)

    async def authorize_any(
        self,
        user: AuthenticatedUser,
        permissions: Iterable[Permission],
        message: str | None = None,
    ) -> None:
        wanted = set(permissions)
        if not wanted & await self.permissions_for(user):
            names = ", ".join(sorted(p.value for p in wanted))
            self._deny(user, f"any of [{names}]", message or DEFAULT_DENIAL)

    async def authorize_all(
        self,
        user: AuthenticatedUser,
        permissions: Iterable[Permission],
        message: str | None = None,
    ) -> None:
        missing = set(permissions) - await self.permissions_for(user)
        if missing:
            names = ", ".join(sorted(p.value for p in missing))
            self._deny(
                user,
                f"all of [{names}]",
                message or "You don't have all required permissions to perform this action",
            )

    def require_role_class(self, user: AuthenticatedUser, role_class: RoleClass) -> None:
        if not in_role_class(user.role, role_class):
            self._deny(user, f"role class {role_class.value}", ROLE_CLASS_MESSAGES[role_class])

    @staticmethod
    def _deny(user: AuthenticatedUser, requirement: str, message: str) -> None:
        audit_logger.warning(
            f"Access denied: user={user.id} role={user.role_name} required={requirement}"
        )
        raise Forbidden(message)
