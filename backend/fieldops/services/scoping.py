"""
Row-level data scoping.

``ScopeResolver`` answers "which rows of this resource may this user see?"
with a ``FilterPredicate``. The rules are compiled here and are
not part of the runtime permission configuration: they encode tenancy
boundaries. Only admin-tier roles ever receive ``Unrestricted``; every other
role gets an ownership predicate or ``DenyAll``.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from sqlalchemy import false

from fieldops.errors import Forbidden, InvalidRequest
from fieldops.rbac import ADMIN_TIER_ROLES, BuiltInRole
from fieldops.services.credentials import AuthenticatedUser


class ResourceKind(str, Enum):
    ORDERS = "orders"
    INVOICES = "invoices"
    QUOTATIONS = "quotations"
    PROJECTS = "projects"
    LEADS = "leads"
    PAYMENT_REQUESTS = "payment_requests"
    PM_RFQS = "pm_rfqs"
    PM_ORDERS = "pm_orders"
    PM_INVOICES = "pm_invoices"
    BUILDINGS = "buildings"
    MAINTENANCE_REQUESTS = "maintenance_requests"
    PM_TASKS = "pm_tasks"


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


class FilterPredicate(ABC):
    unrestricted = False

    @abstractmethod
    def apply(self, stmt, model):
        """Add this predicate to a SQLAlchemy ``select()`` over *model*."""

    @abstractmethod
    def matches(self, row: Mapping[str, Any]) -> bool:
        ...


@dataclass(frozen=True)
class Unrestricted(FilterPredicate):
    unrestricted = True

    def apply(self, stmt, model):
        return stmt

    def matches(self, row: Mapping[str, Any]) -> bool:
        return True


@dataclass(frozen=True)
class DenyAll(FilterPredicate):
    def apply(self, stmt, model):
        return stmt.where(false())

    def matches(self, row: Mapping[str, Any]) -> bool:
        return False


@dataclass(frozen=True)
class FieldEquals(FilterPredicate):
    field: str
    value: Any

    def apply(self, stmt, model):
        return stmt.where(getattr(model, self.field) == self.value)

    def matches(self, row: Mapping[str, Any]) -> bool:
        return self.field in row and row[self.field] == self.value


# ---------------------------------------------------------------------------
# Compiled ownership rules
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OwnershipRule:
    """Rows where ``field`` equals the user's ``source`` attribute (``id`` or ``email``)."""

    field: str
    source: str = "id"

    def predicate(self, user: AuthenticatedUser) -> FieldEquals:
        return FieldEquals(self.field, getattr(user, self.source))


R = ResourceKind

_ASSIGNED = OwnershipRule("assigned_to_id")
_CREATED = OwnershipRule("created_by_id")
_OWNED_BY_PM = OwnershipRule("property_manager_id")
_CUSTOMER_EMAIL = OwnershipRule("customer_email", source="email")

_CONTRACTOR_RULES: dict[ResourceKind, OwnershipRule] = {
    R.ORDERS: _ASSIGNED,
    R.PROJECTS: _ASSIGNED,
    R.INVOICES: _CREATED,
    R.QUOTATIONS: _CREATED,
    R.LEADS: _CREATED,
    R.PM_ORDERS: OwnershipRule("contractor_id"),
    R.PM_INVOICES: OwnershipRule("contractor_id"),
    R.PM_RFQS: OwnershipRule("contractor_id"),
}

# Internal staff outside the admin tier see the work assigned to them.
_STAFF_RULES: dict[ResourceKind, OwnershipRule] = {
    R.ORDERS: _ASSIGNED,
    R.PROJECTS: _ASSIGNED,
    R.LEADS: _ASSIGNED,
    R.QUOTATIONS: _CREATED,
    R.INVOICES: _CREATED,
}

SCOPE_RULES: dict[BuiltInRole, dict[ResourceKind, OwnershipRule]] = {
    BuiltInRole.MANAGER: _STAFF_RULES,
    BuiltInRole.TECHNICAL_MANAGER: _STAFF_RULES,
    BuiltInRole.ACCOUNTANT: {
        **_STAFF_RULES,
        R.PAYMENT_REQUESTS: OwnershipRule("approver_id"),
    },
    BuiltInRole.SUPERVISOR: _STAFF_RULES,
    BuiltInRole.SALES_AGENT: {
        R.LEADS: _ASSIGNED,
        R.QUOTATIONS: _CREATED,
        R.INVOICES: _CREATED,
    },
    BuiltInRole.ARTISAN: {
        R.ORDERS: _ASSIGNED,
        R.PROJECTS: _ASSIGNED,
        R.LEADS: _ASSIGNED,
        R.QUOTATIONS: _ASSIGNED,
        R.PM_ORDERS: _ASSIGNED,
        R.PAYMENT_REQUESTS: OwnershipRule("artisan_id"),
    },
    BuiltInRole.STAFF: {
        R.PM_TASKS: _ASSIGNED,
        R.MAINTENANCE_REQUESTS: _ASSIGNED,
    },
    BuiltInRole.CUSTOMER: {
        R.ORDERS: _CUSTOMER_EMAIL,
        R.INVOICES: _CUSTOMER_EMAIL,
        R.QUOTATIONS: _CUSTOMER_EMAIL,
        R.MAINTENANCE_REQUESTS: OwnershipRule("customer_id"),
    },
    BuiltInRole.PROPERTY_MANAGER: {
        R.PM_RFQS: _OWNED_BY_PM,
        R.PM_ORDERS: _OWNED_BY_PM,
        R.PM_INVOICES: _OWNED_BY_PM,
        R.BUILDINGS: _OWNED_BY_PM,
        R.MAINTENANCE_REQUESTS: _OWNED_BY_PM,
        R.PM_TASKS: _OWNED_BY_PM,
        R.INVOICES: _CUSTOMER_EMAIL,
    },
    BuiltInRole.CONTRACTOR: _CONTRACTOR_RULES,
    BuiltInRole.CONTRACTOR_SENIOR_MANAGER: _CONTRACTOR_RULES,
    BuiltInRole.CONTRACTOR_JUNIOR_MANAGER: _CONTRACTOR_RULES,
}

# Resources that carry property-manager ownership, for admin drill-down views.
PROPERTY_MANAGER_OWNED: frozenset[ResourceKind] = frozenset({
    R.PM_RFQS, R.PM_ORDERS, R.PM_INVOICES, R.BUILDINGS,
    R.MAINTENANCE_REQUESTS, R.PM_TASKS,
})


class ScopeResolver:
    def scope_filter(
        self,
        user: AuthenticatedUser,
        resource_kind: ResourceKind,
        as_property_manager_id: int | None = None,
    ) -> FilterPredicate:
        role = user.role
        is_admin_tier = isinstance(role, BuiltInRole) and role in ADMIN_TIER_ROLES

        if is_admin_tier:
            if as_property_manager_id is None:
                return Unrestricted()
            if resource_kind not in PROPERTY_MANAGER_OWNED:
                raise InvalidRequest(
                    f"Resource '{resource_kind.value}' cannot be filtered by property manager"
                )
            return FieldEquals(_OWNED_BY_PM.field, as_property_manager_id)

        if as_property_manager_id is not None:
            raise Forbidden("Only administrators can view another property manager's data")

        if not isinstance(role, BuiltInRole):
            return DenyAll()
        rule = SCOPE_RULES.get(role, {}).get(resource_kind)
        if rule is None:
            return DenyAll()
        return rule.predicate(user)
