"""Role registry: built-in roles plus administrator-defined custom roles.

Custom roles are persisted together as one JSON document under
``CUSTOM_ROLES_KEY``. Every mutation is a read-modify-write of that document;
concurrent edits resolve last-writer-wins. Writes also rewrite the role's entry in
the permission override, when the override lists it, so a stale mapping never
outlives the definition it was made for.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from fieldops.errors import Conflict, InvalidRequest, NotFound
from fieldops.rbac import (
    BUILT_IN_ROLE_NAMES,
    CUSTOM_ROLES_KEY,
    ROLE_METADATA,
    ROLE_PERMISSIONS_KEY,
    Permission,
    get_default_permissions,
    is_built_in_role,
    is_known_permission,
)
from fieldops.services.cache import CUSTOM_ROLES, ConfigCache
from fieldops.services.store import RecordStore

logger = logging.getLogger(__name__)

ROLE_NAME_PATTERN = re.compile(r"^[A-Z][A-Z0-9_]*$")


class RoleMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str | None = None
    color: str | None = None
    description: str | None = None
    default_route: str | None = None


class RoleDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    is_built_in: bool = False
    permissions: frozenset[Permission] = frozenset()
    metadata: RoleMetadata = RoleMetadata()


_CUSTOM_ROLES_ADAPTER = TypeAdapter(list[RoleDefinition])
_STORED_ROLES_ADAPTER = TypeAdapter(list[dict[str, Any]])
_OVERRIDE_ADAPTER = TypeAdapter(dict[str, list[str]])


def _built_in_definition(name: str) -> RoleDefinition:
    return RoleDefinition(
        name=name,
        is_built_in=True,
        permissions=get_default_permissions(name),
        metadata=RoleMetadata(**ROLE_METADATA.get(name, {})),
    )


class RoleRegistry:
    """The single authority on which role names exist."""

    def __init__(self, store: RecordStore, cache: ConfigCache) -> None:
        self.store = store
        self.cache = cache

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_built_in(self, name: str) -> bool:
        return is_built_in_role(name)

    async def get_custom_roles(self) -> list[RoleDefinition]:
        generation = self.cache.generation
        cached = self.cache.get(CUSTOM_ROLES)
        if cached is not None:
            return list(cached)

        roles = await self._load_custom_roles()
        self.cache.set(CUSTOM_ROLES, tuple(roles), generation)
        return roles

    async def list_roles(self) -> list[str]:
        """Built-in roles in their fixed order, then custom roles alphabetically."""
        custom = sorted(r.name for r in await self.get_custom_roles())
        return [*BUILT_IN_ROLE_NAMES, *custom]

    async def is_valid_role(self, name: str) -> bool:
        if self.is_built_in(name):
            return True
        return any(r.name == name for r in await self.get_custom_roles())

    async def get_definition(self, name: str) -> RoleDefinition | None:
        if self.is_built_in(name):
            return _built_in_definition(name)
        for role in await self.get_custom_roles():
            if role.name == name:
                return role
        return None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create_custom_role(self, definition: RoleDefinition) -> RoleDefinition:
        self._validate(definition)
        existing = await self._load_custom_roles()
        if any(r.name == definition.name for r in existing):
            raise Conflict(f"A custom role named '{definition.name}' already exists")
        return await self._write_role(existing, definition)

    async def update_custom_role(self, definition: RoleDefinition) -> RoleDefinition:
        self._validate(definition)
        existing = await self._load_custom_roles()
        if not any(r.name == definition.name for r in existing):
            raise NotFound(f"Custom role '{definition.name}' not found")
        return await self._write_role(existing, definition)

    async def create_or_update_custom_role(self, definition: RoleDefinition) -> RoleDefinition:
        """Insert *definition*, or replace the existing entry of that name wholesale."""
        self._validate(definition)
        existing = await self._load_custom_roles()
        return await self._write_role(existing, definition)

    async def delete_custom_role(self, name: str) -> None:
        if self.is_built_in(name):
            raise InvalidRequest(f"Cannot delete built-in role '{name}'")

        existing = await self._load_custom_roles()
        if not any(r.name == name for r in existing):
            raise NotFound(f"Custom role '{name}' not found")

        in_use = await self.store.count_users_with_role(name)
        if in_use > 0:
            raise Conflict(
                f"Cannot delete role '{name}': {in_use} user(s) are still assigned to it. "
                "Reassign them to another role first.",
                details={"role": name, "user_count": in_use},
            )

        remaining = [r for r in existing if r.name != name]
        try:
            await self._rewrite_override_entry(name, None)
            if remaining:
                await self.store.set_config_blob(CUSTOM_ROLES_KEY, self._dump(remaining))
            else:
                await self.store.delete_config_blob(CUSTOM_ROLES_KEY)
        finally:
            self.cache.invalidate()
        logger.info(f"Custom role '{name}' deleted")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _validate(self, definition: RoleDefinition) -> None:
        name = definition.name
        if not name or not name.strip():
            raise InvalidRequest("Role name must not be empty")
        if self.is_built_in(name):
            raise InvalidRequest(f"'{name}' is a built-in role name and cannot be used for a custom role")
        if not ROLE_NAME_PATTERN.match(name):
            raise InvalidRequest("Role name must be uppercase letters, digits and underscores")

    async def _write_role(
        self,
        existing: list[RoleDefinition],
        definition: RoleDefinition,
    ) -> RoleDefinition:
        stored = definition.model_copy(update={"is_built_in": False})
        updated = [r for r in existing if r.name != stored.name]
        updated.append(stored)
        try:
            await self._rewrite_override_entry(stored.name, stored.permissions)
            await self.store.set_config_blob(CUSTOM_ROLES_KEY, self._dump(updated))
        finally:
            self.cache.invalidate()
        logger.info(
            f"Custom role '{stored.name}' saved with {len(stored.permissions)} permission(s)"
        )
        return stored

    async def _rewrite_override_entry(
        self,
        name: str,
        permissions: frozenset[Permission] | None,
    ) -> None:
        """Keep the permission override in step with a custom-role write.

        If the override lists *name*, its entry is replaced with *permissions*,
        or removed when *permissions* is ``None``. An override that does not
        list the role is left untouched.
        """
        raw = await self.store.get_config_blob(ROLE_PERMISSIONS_KEY)
        if raw is None:
            return
        try:
            override = _OVERRIDE_ADAPTER.validate_json(raw)
        except ValidationError:
            return
        if name not in override:
            return

        if permissions is None:
            del override[name]
        else:
            override[name] = sorted(p.value for p in permissions)
        await self.store.set_config_blob(
            ROLE_PERMISSIONS_KEY, json.dumps(override, sort_keys=True)
        )

    async def _load_custom_roles(self) -> list[RoleDefinition]:
        raw = await self.store.get_config_blob(CUSTOM_ROLES_KEY)
        if raw is None:
            return []
        try:
            entries = _STORED_ROLES_ADAPTER.validate_json(raw)
        except ValidationError as exc:
            logger.error(f"Error loading custom roles, ignoring stored collection: {exc}")
            return []

        roles: list[RoleDefinition] = []
        for entry in entries:
            name = entry.get("name")
            values = entry.get("permissions")
            if isinstance(values, list):
                dropped = [
                    v for v in values if not (isinstance(v, str) and is_known_permission(v))
                ]
                if dropped:
                    logger.warning(
                        f"Ignoring unknown permission(s) {dropped} stored for custom role '{name}'"
                    )
                    entry = {**entry, "permissions": [v for v in values if v not in dropped]}
            try:
                role = RoleDefinition.model_validate(entry)
            except ValidationError as exc:
                logger.error(f"Skipping unreadable custom role entry '{name}': {exc}")
                continue
            if not is_built_in_role(role.name):
                roles.append(role)
        return roles

    @staticmethod
    def _dump(roles: list[RoleDefinition]) -> str:
        ordered = sorted(roles, key=lambda r: r.name)
        return _CUSTOM_ROLES_ADAPTER.dump_json(ordered).decode()
