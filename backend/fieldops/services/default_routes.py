"""Landing route shown to a user right after login."""
from __future__ import annotations

from fieldops.config import settings
from fieldops.rbac import ROLE_METADATA, RoleRef
from fieldops.services.role_registry import RoleRegistry


class DefaultRouteResolver:
    def __init__(self, registry: RoleRegistry, fallback: str | None = None) -> None:
        self.registry = registry
        self.fallback = fallback or settings.DEFAULT_LANDING_ROUTE

    async def default_route_for(self, role: RoleRef | str) -> str:
        name = role if isinstance(role, str) else role.value

        route = ROLE_METADATA.get(name, {}).get("default_route")
        if route:
            return route

        definition = await self.registry.get_definition(name)
        if definition is not None and definition.metadata.default_route:
            return definition.metadata.default_route
        return self.fallback
