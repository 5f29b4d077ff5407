"""
RBAC permission registry: compiled policy tables.

Defines the closed permission enumeration, the built-in roles, and the
default role-to-permission mapping. Administrators may override the mapping
and define custom roles at runtime (see ``services.permission_config`` and
``services.role_registry``); everything in this module is versioned with the
code and never edited through the API.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


# ---------------------------------------------------------------------------
# Permissions (closed enumeration)
# ---------------------------------------------------------------------------


class Permission(str, Enum):
    # System administration
    MANAGE_SYSTEM_SETTINGS = "MANAGE_SYSTEM_SETTINGS"
    MANAGE_COMPANY_SETTINGS = "MANAGE_COMPANY_SETTINGS"

    # User management
    MANAGE_ALL_EMPLOYEES = "MANAGE_ALL_EMPLOYEES"
    VIEW_ALL_EMPLOYEES = "VIEW_ALL_EMPLOYEES"
    MANAGE_EMPLOYEE_ROLES = "MANAGE_EMPLOYEE_ROLES"
    MANAGE_EMPLOYEE_COMPENSATION = "MANAGE_EMPLOYEE_COMPENSATION"
    DELETE_EMPLOYEES = "DELETE_EMPLOYEES"

    # HR
    MANAGE_PERFORMANCE_REVIEWS = "MANAGE_PERFORMANCE_REVIEWS"
    VIEW_PERFORMANCE_REVIEWS = "VIEW_PERFORMANCE_REVIEWS"
    MANAGE_LEAVE_REQUESTS = "MANAGE_LEAVE_REQUESTS"
    VIEW_LEAVE_REQUESTS = "VIEW_LEAVE_REQUESTS"
    MANAGE_HR_DOCUMENTS = "MANAGE_HR_DOCUMENTS"
    VIEW_HR_DOCUMENTS = "VIEW_HR_DOCUMENTS"
    MANAGE_KPI = "MANAGE_KPI"
    VIEW_KPI = "VIEW_KPI"
    VIEW_PAYSLIPS = "VIEW_PAYSLIPS"
    MANAGE_PAYSLIPS = "MANAGE_PAYSLIPS"

    # Finance
    MANAGE_ACCOUNTS = "MANAGE_ACCOUNTS"
    VIEW_ACCOUNTS = "VIEW_ACCOUNTS"
    MANAGE_LIABILITIES = "MANAGE_LIABILITIES"
    VIEW_LIABILITIES = "VIEW_LIABILITIES"
    MANAGE_ASSETS = "MANAGE_ASSETS"
    VIEW_ASSETS = "VIEW_ASSETS"
    GENERATE_FINANCIAL_REPORTS = "GENERATE_FINANCIAL_REPORTS"
    VIEW_FINANCIAL_REPORTS = "VIEW_FINANCIAL_REPORTS"
    MANAGE_INVOICES = "MANAGE_INVOICES"
    VIEW_INVOICES = "VIEW_INVOICES"
    APPROVE_PAYMENT_REQUESTS = "APPROVE_PAYMENT_REQUESTS"
    VIEW_PAYMENT_REQUESTS = "VIEW_PAYMENT_REQUESTS"

    # Projects
    MANAGE_PROJECTS = "MANAGE_PROJECTS"
    VIEW_ALL_PROJECTS = "VIEW_ALL_PROJECTS"
    VIEW_ASSIGNED_PROJECTS = "VIEW_ASSIGNED_PROJECTS"
    MANAGE_MILESTONES = "MANAGE_MILESTONES"
    VIEW_MILESTONES = "VIEW_MILESTONES"
    APPROVE_CHANGE_ORDERS = "APPROVE_CHANGE_ORDERS"

    # Operations
    MANAGE_ORDERS = "MANAGE_ORDERS"
    VIEW_ALL_ORDERS = "VIEW_ALL_ORDERS"
    VIEW_ASSIGNED_ORDERS = "VIEW_ASSIGNED_ORDERS"
    MANAGE_QUOTATIONS = "MANAGE_QUOTATIONS"
    VIEW_QUOTATIONS = "VIEW_QUOTATIONS"
    ASSIGN_WORK = "ASSIGN_WORK"

    # CRM & sales
    MANAGE_LEADS = "MANAGE_LEADS"
    VIEW_ALL_LEADS = "VIEW_ALL_LEADS"
    VIEW_ASSIGNED_LEADS = "VIEW_ASSIGNED_LEADS"
    MANAGE_CAMPAIGNS = "MANAGE_CAMPAIGNS"
    VIEW_CAMPAIGNS = "VIEW_CAMPAIGNS"

    # Analytics
    VIEW_DASHBOARD_ANALYTICS = "VIEW_DASHBOARD_ANALYTICS"
    VIEW_SALES_ANALYTICS = "VIEW_SALES_ANALYTICS"
    VIEW_EMPLOYEE_ANALYTICS = "VIEW_EMPLOYEE_ANALYTICS"
    CUSTOMIZE_DASHBOARD = "CUSTOMIZE_DASHBOARD"

    # Customer portal
    VIEW_OWN_ORDERS = "VIEW_OWN_ORDERS"
    CREATE_REVIEWS = "CREATE_REVIEWS"
    VIEW_OWN_INVOICES = "VIEW_OWN_INVOICES"

    # Property manager portal
    MANAGE_PM_RFQS = "MANAGE_PM_RFQS"
    VIEW_PM_RFQS = "VIEW_PM_RFQS"
    MANAGE_PM_ORDERS = "MANAGE_PM_ORDERS"
    VIEW_PM_ORDERS = "VIEW_PM_ORDERS"
    APPROVE_PM_INVOICES = "APPROVE_PM_INVOICES"
    VIEW_PM_INVOICES = "VIEW_PM_INVOICES"
    MANAGE_PM_CUSTOMERS = "MANAGE_PM_CUSTOMERS"
    VIEW_PM_CUSTOMERS = "VIEW_PM_CUSTOMERS"
    MANAGE_PM_BUILDINGS = "MANAGE_PM_BUILDINGS"
    VIEW_PM_BUILDINGS = "VIEW_PM_BUILDINGS"
    MANAGE_PM_BUDGETS = "MANAGE_PM_BUDGETS"
    VIEW_PM_BUDGETS = "VIEW_PM_BUDGETS"
    MANAGE_MAINTENANCE_SCHEDULES = "MANAGE_MAINTENANCE_SCHEDULES"
    VIEW_MAINTENANCE_SCHEDULES = "VIEW_MAINTENANCE_SCHEDULES"
    APPROVE_MAINTENANCE_REQUESTS = "APPROVE_MAINTENANCE_REQUESTS"
    VIEW_MAINTENANCE_REQUESTS = "VIEW_MAINTENANCE_REQUESTS"


ALL_PERMISSIONS: list[Permission] = list(Permission)

_PERMISSION_VALUES: frozenset[str] = frozenset(p.value for p in Permission)


def is_known_permission(value: str) -> bool:
    return value in _PERMISSION_VALUES


# ---------------------------------------------------------------------------
# Roles: built-in (compiled) and custom (administrator-defined)
# ---------------------------------------------------------------------------


class BuiltInRole(str, Enum):
    # Administrative
    SENIOR_ADMIN = "SENIOR_ADMIN"
    JUNIOR_ADMIN = "JUNIOR_ADMIN"
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"

    # Specialised
    TECHNICAL_MANAGER = "TECHNICAL_MANAGER"
    ACCOUNTANT = "ACCOUNTANT"
    SUPERVISOR = "SUPERVISOR"
    SALES_AGENT = "SALES_AGENT"

    # Operational
    ARTISAN = "ARTISAN"
    STAFF = "STAFF"

    # External
    CUSTOMER = "CUSTOMER"
    PROPERTY_MANAGER = "PROPERTY_MANAGER"
    CONTRACTOR = "CONTRACTOR"
    CONTRACTOR_SENIOR_MANAGER = "CONTRACTOR_SENIOR_MANAGER"
    CONTRACTOR_JUNIOR_MANAGER = "CONTRACTOR_JUNIOR_MANAGER"


BUILT_IN_ROLE_NAMES: list[str] = [r.value for r in BuiltInRole]

_BUILT_IN_VALUES: frozenset[str] = frozenset(BUILT_IN_ROLE_NAMES)


@dataclass(frozen=True)
class CustomRole:
    """A role an administrator defined at runtime, referenced by name only."""

    name: str

    @property
    def value(self) -> str:
        return self.name


RoleRef = Union[BuiltInRole, CustomRole]


def is_built_in_role(name: str) -> bool:
    return name in _BUILT_IN_VALUES


def parse_role(raw: str) -> RoleRef:
    """Turn a stored role string into a ``BuiltInRole`` or ``CustomRole``.

    Whether a custom name still exists is not checked here; only the
    role registry can answer that.
    """
    if is_built_in_role(raw):
        return BuiltInRole(raw)
    return CustomRole(raw)


# ---------------------------------------------------------------------------
# Role → Permissions mapping (compiled defaults)
# ---------------------------------------------------------------------------

P = Permission

_JUNIOR_ADMIN_PERMISSIONS: frozenset[Permission] = frozenset({
    P.VIEW_ALL_EMPLOYEES,
    P.VIEW_PERFORMANCE_REVIEWS, P.VIEW_LEAVE_REQUESTS, P.VIEW_HR_DOCUMENTS,
    P.VIEW_KPI, P.VIEW_PAYSLIPS,
    P.VIEW_ACCOUNTS, P.VIEW_LIABILITIES, P.VIEW_ASSETS, P.VIEW_FINANCIAL_REPORTS,
    P.MANAGE_INVOICES, P.VIEW_INVOICES, P.VIEW_PAYMENT_REQUESTS,
    P.MANAGE_PROJECTS, P.VIEW_ALL_PROJECTS, P.MANAGE_MILESTONES, P.VIEW_MILESTONES,
    P.MANAGE_ORDERS, P.VIEW_ALL_ORDERS, P.MANAGE_QUOTATIONS, P.VIEW_QUOTATIONS,
    P.ASSIGN_WORK,
    P.MANAGE_LEADS, P.VIEW_ALL_LEADS, P.MANAGE_CAMPAIGNS, P.VIEW_CAMPAIGNS,
    P.VIEW_DASHBOARD_ANALYTICS, P.VIEW_SALES_ANALYTICS, P.VIEW_EMPLOYEE_ANALYTICS,
    P.CUSTOMIZE_DASHBOARD,
})

_CONTRACTOR_PERMISSIONS: frozenset[Permission] = frozenset({
    # CRM & sales
    P.MANAGE_LEADS, P.VIEW_ALL_LEADS, P.MANAGE_CAMPAIGNS, P.VIEW_CAMPAIGNS,
    # Operations
    P.MANAGE_ORDERS, P.VIEW_ALL_ORDERS, P.MANAGE_QUOTATIONS, P.VIEW_QUOTATIONS,
    P.ASSIGN_WORK,
    # Projects
    P.MANAGE_PROJECTS, P.VIEW_ALL_PROJECTS, P.MANAGE_MILESTONES, P.VIEW_MILESTONES,
    # Finance
    P.MANAGE_INVOICES, P.VIEW_INVOICES, P.VIEW_FINANCIAL_REPORTS, P.VIEW_ACCOUNTS,
    P.VIEW_ASSETS, P.VIEW_LIABILITIES, P.VIEW_PAYMENT_REQUESTS,
    # HR
    P.VIEW_ALL_EMPLOYEES, P.MANAGE_PERFORMANCE_REVIEWS, P.VIEW_PERFORMANCE_REVIEWS,
    P.MANAGE_LEAVE_REQUESTS, P.VIEW_LEAVE_REQUESTS, P.MANAGE_KPI, P.VIEW_KPI,
    P.VIEW_HR_DOCUMENTS, P.VIEW_PAYSLIPS,
    # Analytics
    P.VIEW_DASHBOARD_ANALYTICS, P.VIEW_SALES_ANALYTICS, P.VIEW_EMPLOYEE_ANALYTICS,
    # Portal
    P.CUSTOMIZE_DASHBOARD, P.VIEW_OWN_ORDERS, P.CREATE_REVIEWS,
})

DEFAULT_ROLE_PERMISSIONS: dict[str, frozenset[Permission]] = {
    # ── Senior Admin ─────────────────────────────────────────────────────
    # Full system access, including settings and employee compensation.
    BuiltInRole.SENIOR_ADMIN.value: frozenset(
        set(Permission)
        - {
            P.VIEW_ASSIGNED_PROJECTS, P.VIEW_ASSIGNED_ORDERS, P.VIEW_ASSIGNED_LEADS,
            P.VIEW_OWN_ORDERS, P.CREATE_REVIEWS, P.VIEW_OWN_INVOICES,
            P.MANAGE_PM_RFQS, P.VIEW_PM_RFQS, P.MANAGE_PM_ORDERS, P.VIEW_PM_ORDERS,
            P.APPROVE_PM_INVOICES, P.VIEW_PM_INVOICES, P.MANAGE_PM_CUSTOMERS,
            P.VIEW_PM_CUSTOMERS, P.MANAGE_PM_BUILDINGS, P.VIEW_PM_BUILDINGS,
            P.MANAGE_PM_BUDGETS, P.VIEW_PM_BUDGETS, P.MANAGE_MAINTENANCE_SCHEDULES,
            P.VIEW_MAINTENANCE_SCHEDULES, P.APPROVE_MAINTENANCE_REQUESTS,
            P.VIEW_MAINTENANCE_REQUESTS,
        }
    ),

    # ── Junior Admin / legacy Admin ──────────────────────────────────────
    # Most admin features except critical system settings.
    BuiltInRole.JUNIOR_ADMIN.value: _JUNIOR_ADMIN_PERMISSIONS,
    BuiltInRole.ADMIN.value: _JUNIOR_ADMIN_PERMISSIONS,

    # ── Manager ──────────────────────────────────────────────────────────
    # Team and project management with HR oversight.
    BuiltInRole.MANAGER.value: frozenset({
        P.VIEW_ALL_EMPLOYEES,
        P.MANAGE_PERFORMANCE_REVIEWS, P.VIEW_PERFORMANCE_REVIEWS,
        P.MANAGE_LEAVE_REQUESTS, P.VIEW_LEAVE_REQUESTS, P.VIEW_HR_DOCUMENTS,
        P.MANAGE_KPI, P.VIEW_KPI, P.VIEW_PAYSLIPS,
        P.VIEW_FINANCIAL_REPORTS, P.VIEW_INVOICES, P.VIEW_PAYMENT_REQUESTS,
        P.MANAGE_PROJECTS, P.VIEW_ALL_PROJECTS, P.MANAGE_MILESTONES, P.VIEW_MILESTONES,
        P.APPROVE_CHANGE_ORDERS,
        P.MANAGE_ORDERS, P.VIEW_ALL_ORDERS, P.MANAGE_QUOTATIONS, P.VIEW_QUOTATIONS,
        P.ASSIGN_WORK,
        P.MANAGE_LEADS, P.VIEW_ALL_LEADS, P.VIEW_CAMPAIGNS,
        P.VIEW_DASHBOARD_ANALYTICS, P.VIEW_SALES_ANALYTICS, P.VIEW_EMPLOYEE_ANALYTICS,
    }),

    # ── Technical Manager ────────────────────────────────────────────────
    # Operational delivery; no management accounts or dashboard analytics.
    BuiltInRole.TECHNICAL_MANAGER.value: frozenset({
        P.VIEW_ALL_LEADS, P.MANAGE_LEADS, P.VIEW_CAMPAIGNS,
        P.MANAGE_ORDERS, P.VIEW_ALL_ORDERS, P.ASSIGN_WORK,
        P.MANAGE_PROJECTS, P.VIEW_ALL_PROJECTS, P.MANAGE_MILESTONES, P.VIEW_MILESTONES,
        P.MANAGE_QUOTATIONS, P.VIEW_QUOTATIONS,
        P.MANAGE_INVOICES, P.VIEW_INVOICES,
    }),

    # ── Accountant ───────────────────────────────────────────────────────
    BuiltInRole.ACCOUNTANT.value: frozenset({
        P.VIEW_ALL_EMPLOYEES, P.VIEW_PAYSLIPS, P.MANAGE_PAYSLIPS,
        P.MANAGE_ACCOUNTS, P.VIEW_ACCOUNTS, P.MANAGE_LIABILITIES, P.VIEW_LIABILITIES,
        P.MANAGE_ASSETS, P.VIEW_ASSETS,
        P.GENERATE_FINANCIAL_REPORTS, P.VIEW_FINANCIAL_REPORTS,
        P.MANAGE_INVOICES, P.VIEW_INVOICES,
        P.APPROVE_PAYMENT_REQUESTS, P.VIEW_PAYMENT_REQUESTS,
        P.VIEW_ALL_PROJECTS, P.VIEW_MILESTONES, P.VIEW_ALL_ORDERS, P.VIEW_QUOTATIONS,
        P.VIEW_DASHBOARD_ANALYTICS,
    }),

    # ── Supervisor ───────────────────────────────────────────────────────
    BuiltInRole.SUPERVISOR.value: frozenset({
        P.VIEW_ALL_EMPLOYEES, P.VIEW_LEAVE_REQUESTS, P.VIEW_KPI,
        P.VIEW_INVOICES, P.VIEW_PAYMENT_REQUESTS,
        P.VIEW_ALL_PROJECTS, P.VIEW_MILESTONES,
        P.MANAGE_ORDERS, P.VIEW_ALL_ORDERS, P.MANAGE_QUOTATIONS, P.VIEW_QUOTATIONS,
        P.ASSIGN_WORK,
        P.MANAGE_LEADS, P.VIEW_ALL_LEADS,
        P.VIEW_DASHBOARD_ANALYTICS,
    }),

    # ── Sales Agent ──────────────────────────────────────────────────────
    BuiltInRole.SALES_AGENT.value: frozenset({
        P.VIEW_ALL_LEADS, P.MANAGE_LEADS, P.MANAGE_CAMPAIGNS, P.VIEW_CAMPAIGNS,
        P.VIEW_SALES_ANALYTICS,
        P.VIEW_ACCOUNTS, P.VIEW_INVOICES, P.MANAGE_INVOICES,
        P.VIEW_ALL_PROJECTS, P.VIEW_MILESTONES, P.VIEW_ALL_ORDERS,
        P.MANAGE_QUOTATIONS, P.VIEW_QUOTATIONS, P.ASSIGN_WORK,
        P.VIEW_FINANCIAL_REPORTS,
    }),

    # ── Artisan ──────────────────────────────────────────────────────────
    # Field worker: assigned jobs only.
    BuiltInRole.ARTISAN.value: frozenset({
        P.VIEW_ASSIGNED_PROJECTS, P.VIEW_ASSIGNED_ORDERS, P.VIEW_MILESTONES,
        P.VIEW_ASSIGNED_LEADS, P.VIEW_PAYSLIPS,
    }),

    # ── Customer (tenant portal) ─────────────────────────────────────────
    BuiltInRole.CUSTOMER.value: frozenset({
        P.VIEW_OWN_ORDERS, P.CREATE_REVIEWS, P.VIEW_OWN_INVOICES,
    }),

    # ── Property Manager ─────────────────────────────────────────────────
    BuiltInRole.PROPERTY_MANAGER.value: frozenset({
        P.MANAGE_PM_RFQS, P.VIEW_PM_RFQS,
        P.MANAGE_PM_ORDERS, P.VIEW_PM_ORDERS,
        P.APPROVE_PM_INVOICES, P.VIEW_PM_INVOICES,
        P.MANAGE_PM_CUSTOMERS, P.VIEW_PM_CUSTOMERS,
        P.MANAGE_PM_BUILDINGS, P.VIEW_PM_BUILDINGS,
        P.MANAGE_PM_BUDGETS, P.VIEW_PM_BUDGETS,
        P.MANAGE_MAINTENANCE_SCHEDULES, P.VIEW_MAINTENANCE_SCHEDULES,
        P.APPROVE_MAINTENANCE_REQUESTS, P.VIEW_MAINTENANCE_REQUESTS,
        P.VIEW_OWN_ORDERS, P.CREATE_REVIEWS,
    }),

    # ── Contractor company roles ─────────────────────────────────────────
    BuiltInRole.CONTRACTOR.value: _CONTRACTOR_PERMISSIONS,
    BuiltInRole.CONTRACTOR_SENIOR_MANAGER.value: _CONTRACTOR_PERMISSIONS | {
        P.MANAGE_ALL_EMPLOYEES, P.DELETE_EMPLOYEES,
    },
    BuiltInRole.CONTRACTOR_JUNIOR_MANAGER.value: _CONTRACTOR_PERMISSIONS - {
        P.MANAGE_INVOICES, P.MANAGE_KPI,
    },

    # STAFF has no entry: property staff work only through scoped task views.
}


# ---------------------------------------------------------------------------
# Role metadata (labels, badges, landing routes)
# ---------------------------------------------------------------------------

ROLE_METADATA: dict[str, dict[str, str]] = {
    "SENIOR_ADMIN": {
        "label": "Senior Admin",
        "color": "bg-purple-100 text-purple-800",
        "description": "Full system access with ability to manage settings, users, and all features",
        "default_route": "/admin/dashboard",
    },
    "JUNIOR_ADMIN": {
        "label": "Junior Admin",
        "color": "bg-blue-100 text-blue-800",
        "description": "Administrative access to most features except critical system settings",
        "default_route": "/admin/dashboard",
    },
    "ADMIN": {
        "label": "Admin",
        "color": "bg-blue-100 text-blue-800",
        "description": "Legacy administrator role with junior admin access",
        "default_route": "/admin/dashboard",
    },
    "MANAGER": {
        "label": "Manager",
        "color": "bg-indigo-100 text-indigo-800",
        "description": "Team and project management with HR and operational oversight",
        "default_route": "/admin/dashboard",
    },
    "TECHNICAL_MANAGER": {
        "label": "Technical Manager",
        "color": "bg-orange-100 text-orange-800",
        "description": "Manages operational execution, project delivery, and quality control",
        "default_route": "/admin/operations",
    },
    "ACCOUNTANT": {
        "label": "Accountant",
        "color": "bg-emerald-100 text-emerald-800",
        "description": "Financial management including accounts, invoices, and payment approvals",
        "default_route": "/admin/accounts",
    },
    "SUPERVISOR": {
        "label": "Supervisor",
        "color": "bg-cyan-100 text-cyan-800",
        "description": "Operational oversight with ability to manage orders, quotations, and leads",
        "default_route": "/admin/operations",
    },
    "SALES_AGENT": {
        "label": "Sales Agent",
        "color": "bg-pink-100 text-pink-800",
        "description": "Focuses on lead conversion, quotation management, and sales analytics",
        "default_route": "/admin/crm",
    },
    "ARTISAN": {
        "label": "Artisan",
        "color": "bg-green-100 text-green-800",
        "description": "Field worker with access to assigned jobs and projects",
        "default_route": "/artisan/dashboard",
    },
    "STAFF": {
        "label": "Staff",
        "color": "bg-lime-100 text-lime-800",
        "description": "Property management staff with access to assigned tasks and property maintenance",
        "default_route": "/staff/dashboard",
    },
    "CUSTOMER": {
        "label": "Tenant",
        "color": "bg-gray-100 text-gray-800",
        "description": "Tenant portal access to view orders and invoices",
        "default_route": "/customer/dashboard",
    },
    "PROPERTY_MANAGER": {
        "label": "Property Manager",
        "color": "bg-teal-100 text-teal-800",
        "description": "Manages properties, tenants, budgets, and maintenance requests",
        "default_route": "/property-manager/dashboard",
    },
    "CONTRACTOR": {
        "label": "Contractor",
        "color": "bg-amber-100 text-amber-800",
        "description": "External contractor with access to assigned jobs, invoices, and documents",
        "default_route": "/contractor/dashboard",
    },
    "CONTRACTOR_SENIOR_MANAGER": {
        "label": "Senior Manager",
        "color": "bg-purple-100 text-purple-800",
        "description": "Contractor senior manager with full authority over the contractor portal",
        "default_route": "/contractor/dashboard",
    },
    "CONTRACTOR_JUNIOR_MANAGER": {
        "label": "Junior Manager",
        "color": "bg-blue-100 text-blue-800",
        "description": "Contractor junior manager with operational oversight and limited financial authority",
        "default_route": "/contractor/dashboard",
    },
}


# ---------------------------------------------------------------------------
# Role classes (structural, never runtime-configurable)
# ---------------------------------------------------------------------------

ROLE_LEVELS: dict[BuiltInRole, int] = {
    BuiltInRole.SENIOR_ADMIN: 100,
    BuiltInRole.JUNIOR_ADMIN: 80,
    BuiltInRole.ADMIN: 80,
    BuiltInRole.MANAGER: 70,
    BuiltInRole.ACCOUNTANT: 60,
    BuiltInRole.TECHNICAL_MANAGER: 55,
    BuiltInRole.SUPERVISOR: 50,
    BuiltInRole.SALES_AGENT: 45,
    BuiltInRole.ARTISAN: 30,
    BuiltInRole.PROPERTY_MANAGER: 15,
    BuiltInRole.CONTRACTOR_SENIOR_MANAGER: 14,
    BuiltInRole.CONTRACTOR_JUNIOR_MANAGER: 13,
    BuiltInRole.CONTRACTOR: 12,
    BuiltInRole.STAFF: 11,
    BuiltInRole.CUSTOMER: 10,
}


def _at_least(level: int) -> frozenset[BuiltInRole]:
    return frozenset(r for r, lvl in ROLE_LEVELS.items() if lvl >= level)


class RoleClass(str, Enum):
    ADMIN = "admin"
    SENIOR_ADMIN = "senior_admin"
    MANAGER_OR_HIGHER = "manager_or_higher"
    CONTRACTOR = "contractor"


# Admin tier: the only roles that may see rows without an ownership filter.
ADMIN_TIER_ROLES: frozenset[BuiltInRole] = _at_least(ROLE_LEVELS[BuiltInRole.JUNIOR_ADMIN])

ROLE_CLASSES: dict[RoleClass, frozenset[BuiltInRole]] = {
    RoleClass.ADMIN: ADMIN_TIER_ROLES,
    RoleClass.SENIOR_ADMIN: frozenset({BuiltInRole.SENIOR_ADMIN}),
    RoleClass.MANAGER_OR_HIGHER: _at_least(ROLE_LEVELS[BuiltInRole.MANAGER]),
    RoleClass.CONTRACTOR: frozenset({
        BuiltInRole.CONTRACTOR,
        BuiltInRole.CONTRACTOR_SENIOR_MANAGER,
        BuiltInRole.CONTRACTOR_JUNIOR_MANAGER,
    }),
}

ROLE_CLASS_MESSAGES: dict[RoleClass, str] = {
    RoleClass.ADMIN: "Only administrators can perform this action",
    RoleClass.SENIOR_ADMIN: "Only senior administrators can perform this action",
    RoleClass.MANAGER_OR_HIGHER: "Only managers and administrators can perform this action",
    RoleClass.CONTRACTOR: "Only contractor accounts can perform this action",
}


def in_role_class(role: RoleRef, role_class: RoleClass) -> bool:
    """Custom roles never belong to a role class."""
    if not isinstance(role, BuiltInRole):
        return False
    return role in ROLE_CLASSES[role_class]


# ---------------------------------------------------------------------------
# Persisted configuration keys
# ---------------------------------------------------------------------------

ROLE_PERMISSIONS_KEY = "role_permissions_config"
CUSTOM_ROLES_KEY = "custom_roles_config"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def get_default_permissions(role: str) -> frozenset[Permission]:
    """Return the compiled permission set for a role, or empty set if unknown."""
    return DEFAULT_ROLE_PERMISSIONS.get(role, frozenset())


def format_role_label(name: str) -> str:
    """``PROJECT_COORDINATOR`` -> ``Project Coordinator``."""
    return " ".join(word.capitalize() for word in name.split("_") if word)


def permission_description(permission: str) -> str:
    """Return a human-readable description for a permission string."""
    return _DESCRIPTIONS.get(permission, format_role_label(permission))


_DESCRIPTIONS: dict[str, str] = {
    "MANAGE_SYSTEM_SETTINGS": "Change system-wide settings and role permissions",
    "MANAGE_COMPANY_SETTINGS": "Edit company details and branding",
    "MANAGE_ALL_EMPLOYEES": "Create and edit employee records",
    "VIEW_ALL_EMPLOYEES": "View employee list",
    "MANAGE_EMPLOYEE_ROLES": "Change the role assigned to a user",
    "MANAGE_EMPLOYEE_COMPENSATION": "Edit hourly and daily rates",
    "DELETE_EMPLOYEES": "Delete employee records",
    "VIEW_PAYMENT_REQUESTS": "View artisan payment requests",
    "APPROVE_PAYMENT_REQUESTS": "Approve or reject artisan payment requests",
    "VIEW_DASHBOARD_ANALYTICS": "View dashboard KPIs",
    "MANAGE_LEADS": "Create and edit CRM leads",
    "VIEW_ASSETS": "View the asset register",
    "MANAGE_LIABILITIES": "Create and edit liabilities",
    "VIEW_OWN_ORDERS": "View your own orders",
    "VIEW_OWN_INVOICES": "View your own invoices",
}
