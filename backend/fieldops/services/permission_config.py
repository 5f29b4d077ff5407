"""Permission configuration store.

The effective role → permissions map comes from exactly one of two sources:

* the compiled ``DEFAULT_ROLE_PERMISSIONS`` table, or
* a persisted override document under ``ROLE_PERMISSIONS_KEY``.

The presence of the override document is the only switch. When present it is
authoritative for every role: roles it does not list have no permissions.
Custom roles the override does not mention take the permission set from their
own definition in the role registry.
"""
from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping

from pydantic import TypeAdapter, ValidationError

from fieldops.errors import InvalidRequest
from fieldops.rbac import (
    DEFAULT_ROLE_PERMISSIONS,
    ROLE_PERMISSIONS_KEY,
    Permission,
    is_known_permission,
)
from fieldops.services.cache import EFFECTIVE_PERMISSIONS, ConfigCache
from fieldops.services.role_registry import RoleRegistry
from fieldops.services.store import RecordStore

logger = logging.getLogger(__name__)

PermissionMap = dict[str, frozenset[Permission]]

_OVERRIDE_ADAPTER = TypeAdapter(dict[str, list[str]])


class PermissionConfigStore:
    def __init__(self, store: RecordStore, cache: ConfigCache, registry: RoleRegistry) -> None:
        self.store = store
        self.cache = cache
        self.registry = registry

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_effective(self) -> PermissionMap:
        generation = self.cache.generation
        cached = self.cache.get(EFFECTIVE_PERMISSIONS)
        if cached is not None:
            return dict(cached)

        base = await self._load_override()
        if base is None:
            base = self.get_defaults()

        effective: PermissionMap = {}
        known = set(await self.registry.list_roles())
        for role, perms in base.items():
            if role in known:
                effective[role] = perms
        for custom in await self.registry.get_custom_roles():
            effective.setdefault(custom.name, frozenset(custom.permissions))

        self.cache.set(EFFECTIVE_PERMISSIONS, effective, generation)
        return dict(effective)

    def get_defaults(self) -> PermissionMap:
        return dict(DEFAULT_ROLE_PERMISSIONS)

    async def is_override_active(self) -> bool:
        """True iff the override document exists, whether or not it parses."""
        return await self.store.has_config_blob(ROLE_PERMISSIONS_KEY)

    async def permissions_for(self, role: str) -> frozenset[Permission]:
        return (await self.get_effective()).get(role, frozenset())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def set_effective(self, new_map: Mapping[str, Iterable[str]]) -> PermissionMap:
        validated = await self._validate(new_map)
        payload = json.dumps(
            {role: sorted(p.value for p in perms) for role, perms in validated.items()},
            sort_keys=True,
        )
        try:
            await self.store.set_config_blob(ROLE_PERMISSIONS_KEY, payload)
        finally:
            self.cache.invalidate()
        logger.info(f"Role permission override saved for {len(validated)} role(s)")
        return validated

    async def reset(self) -> None:
        """Drop the override so every role uses the compiled defaults again."""
        try:
            removed = await self.store.delete_config_blob(ROLE_PERMISSIONS_KEY)
        finally:
            self.cache.invalidate()
        if removed:
            logger.info("Role permission override removed; compiled defaults restored")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _validate(self, new_map: Mapping[str, Iterable[str]]) -> PermissionMap:
        unknown_roles = [
            role for role in new_map if not await self.registry.is_valid_role(role)
        ]
        if unknown_roles:
            raise InvalidRequest(
                f"Unknown role(s): {', '.join(sorted(unknown_roles))}",
                details={"unknown_roles": sorted(unknown_roles)},
            )

        validated: PermissionMap = {}
        unknown_perms: set[str] = set()
        for role, perms in new_map.items():
            values = [p.value if isinstance(p, Permission) else str(p) for p in perms]
            unknown_perms.update(v for v in values if not is_known_permission(v))
            validated[role] = frozenset(Permission(v) for v in values if is_known_permission(v))
        if unknown_perms:
            raise InvalidRequest(
                f"Unknown permission(s): {', '.join(sorted(unknown_perms))}",
                details={"unknown_permissions": sorted(unknown_perms)},
            )
        return validated

    async def _load_override(self) -> PermissionMap | None:
        raw = await self.store.get_config_blob(ROLE_PERMISSIONS_KEY)
        if raw is None:
            return None
        try:
            parsed = _OVERRIDE_ADAPTER.validate_json(raw)
        except ValidationError as exc:
            logger.error(f"Error loading role permission override, using defaults: {exc}")
            return None

        result: PermissionMap = {}
        for role, values in parsed.items():
            dropped = [v for v in values if not is_known_permission(v)]
            if dropped:
                logger.warning(
                    f"Ignoring unknown permission(s) {dropped} stored for role '{role}'"
                )
            result[role] = frozenset(Permission(v) for v in values if is_known_permission(v))
        return result
