"""
Access-control facade.

``AccessControl`` wires the credential resolver, role registry, permission
configuration, evaluator, scope resolver and default-route resolver around a
single ``RecordStore`` and the process-wide ``ConfigCache``. Route handlers
receive one per request through ``fieldops.middleware.auth.get_access``.
"""
from __future__ import annotations

from collections.abc import Iterable

from fieldops.rbac import Permission, RoleClass, RoleRef
from fieldops.services.authorization import AuthorizationEvaluator
from fieldops.services.cache import ConfigCache
from fieldops.services.credentials import AuthenticatedUser, CredentialResolver, TokenService
from fieldops.services.default_routes import DefaultRouteResolver
from fieldops.services.permission_config import PermissionConfigStore
from fieldops.services.role_registry import RoleRegistry
from fieldops.services.scoping import FilterPredicate, ResourceKind, ScopeResolver
from fieldops.services.store import RecordStore


class AccessControl:
    def __init__(self, store: RecordStore, cache: ConfigCache, tokens: TokenService) -> None:
        self.store = store
        self.tokens = tokens
        self.registry = RoleRegistry(store, cache)
        self.config = PermissionConfigStore(store, cache, self.registry)
        self.evaluator = AuthorizationEvaluator(self.config)
        self.credentials = CredentialResolver(tokens, store)
        self.scopes = ScopeResolver()
        self.routes = DefaultRouteResolver(self.registry)

    async def resolve_user(self, credential: str | None) -> AuthenticatedUser:
        return await self.credentials.resolve(credential)

    async def authorize(
        self,
        user: AuthenticatedUser,
        permission: Permission,
        message: str | None = None,
    ) -> None:
        await self.evaluator.authorize(user, permission, message)

    async def authorize_any(self, user: AuthenticatedUser, permissions: Iterable[Permission]) -> None:
        await self.evaluator.authorize_any(user, permissions)

    async def authorize_all(self, user: AuthenticatedUser, permissions: Iterable[Permission]) -> None:
        await self.evaluator.authorize_all(user, permissions)

    def require_role_class(self, user: AuthenticatedUser, role_class: RoleClass) -> None:
        self.evaluator.require_role_class(user, role_class)

    async def permissions_for(self, user: AuthenticatedUser) -> frozenset[Permission]:
        return await self.evaluator.permissions_for(user)

    def scope_filter(
        self,
        user: AuthenticatedUser,
        resource_kind: ResourceKind,
        as_property_manager_id: int | None = None,
    ) -> FilterPredicate:
        return self.scopes.scope_filter(user, resource_kind, as_property_manager_id)

    async def default_route_for(self, role: RoleRef | str) -> str:
        return await self.routes.default_route_for(role)
