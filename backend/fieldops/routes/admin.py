"""Administration routes --- roles, role permissions, custom roles, users."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from fieldops.errors import Conflict, Forbidden, InvalidRequest, NotFound
from fieldops.middleware.auth import (
    get_access,
    hash_password,
    require_permission,
    require_role_class,
)
from fieldops.models import User
from fieldops.rbac import (
    ALL_PERMISSIONS,
    BuiltInRole,
    Permission,
    RoleClass,
    format_role_label,
    in_role_class,
    is_known_permission,
    permission_description,
)
from fieldops.services.access import AccessControl
from fieldops.services.credentials import AuthenticatedUser
from fieldops.services.role_registry import RoleDefinition, RoleMetadata

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------


class RolePermissionsUpdate(BaseModel):
    permissions: dict[str, list[str]]


class CustomRoleBody(BaseModel):
    permissions: list[str] = Field(default_factory=list)
    label: str | None = None
    color: str | None = None
    description: str | None = None
    default_route: str | None = None


class CustomRoleCreate(CustomRoleBody):
    name: str


class UserCreate(BaseModel):
    email: str
    password: str
    first_name: str
    last_name: str
    phone: str | None = None
    role: str = BuiltInRole.CUSTOMER.value
    contractor_company_name: str | None = None


class UserRoleUpdate(BaseModel):
    role: str


def _permission_map_out(permission_map: dict) -> dict[str, list[str]]:
    return {role: sorted(p.value for p in perms) for role, perms in permission_map.items()}


def _to_definition(name: str, body: CustomRoleBody) -> RoleDefinition:
    unknown = sorted({p for p in body.permissions if not is_known_permission(p)})
    if unknown:
        raise InvalidRequest(
            f"Unknown permission(s): {', '.join(unknown)}",
            details={"unknown_permissions": unknown},
        )
    return RoleDefinition(
        name=name,
        permissions=frozenset(Permission(p) for p in body.permissions),
        metadata=RoleMetadata(
            label=body.label or format_role_label(name),
            color=body.color,
            description=body.description,
            default_route=body.default_route,
        ),
    )


def _role_out(definition: RoleDefinition) -> dict:
    return {
        "name": definition.name,
        "is_built_in": definition.is_built_in,
        "permissions": sorted(p.value for p in definition.permissions),
        **definition.metadata.model_dump(),
    }


def _user_out(u: User) -> dict:
    return {
        "id": u.id,
        "email": u.email,
        "first_name": u.first_name,
        "last_name": u.last_name,
        "phone": u.phone,
        "role": u.role,
        "contractor_company_name": u.contractor_company_name,
        "is_active": u.is_active,
        "created_at": u.created_at.isoformat() if u.created_at else None,
    }


# ---------------------------------------------------------------------------
# ROLES & PERMISSIONS CATALOGUE
# ---------------------------------------------------------------------------


@router.get("/roles")
async def list_roles(
    access: AccessControl = Depends(get_access),
    user: AuthenticatedUser = Depends(require_role_class(RoleClass.ADMIN)),
):
    """List every role (built-in first) with its effective permissions."""
    effective = await access.config.get_effective()
    roles = []
    for name in await access.registry.list_roles():
        definition = await access.registry.get_definition(name)
        item = _role_out(definition)
        item["permissions"] = sorted(p.value for p in effective.get(name, frozenset()))
        item["default_route"] = await access.default_route_for(name)
        roles.append(item)
    return {"roles": roles, "total": len(roles)}


@router.get("/permissions")
async def list_permissions(
    user: AuthenticatedUser = Depends(require_role_class(RoleClass.ADMIN)),
):
    return {
        "permissions": [
            {"code": p.value, "description": permission_description(p.value)}
            for p in ALL_PERMISSIONS
        ],
    }


# ---------------------------------------------------------------------------
# ROLE PERMISSION CONFIGURATION (senior admin only)
# ---------------------------------------------------------------------------


@router.get("/role-permissions")
async def get_role_permissions(
    access: AccessControl = Depends(get_access),
    user: AuthenticatedUser = Depends(require_role_class(RoleClass.SENIOR_ADMIN)),
):
    return {
        "permissions": _permission_map_out(await access.config.get_effective()),
        "defaults": _permission_map_out(access.config.get_defaults()),
        "is_override_active": await access.config.is_override_active(),
        "roles": await access.registry.list_roles(),
    }


@router.put("/role-permissions")
async def update_role_permissions(
    body: RolePermissionsUpdate,
    access: AccessControl = Depends(get_access),
    user: AuthenticatedUser = Depends(require_role_class(RoleClass.SENIOR_ADMIN)),
):
    saved = await access.config.set_effective(body.permissions)
    logger.info(f"User {user.id} replaced the role permission configuration")
    return {"status": "updated", "permissions": _permission_map_out(saved)}


@router.delete("/role-permissions")
async def reset_role_permissions(
    access: AccessControl = Depends(get_access),
    user: AuthenticatedUser = Depends(require_role_class(RoleClass.SENIOR_ADMIN)),
):
    await access.config.reset()
    logger.info(f"User {user.id} reset role permissions to defaults")
    return {
        "status": "reset",
        "permissions": _permission_map_out(await access.config.get_effective()),
    }


# ---------------------------------------------------------------------------
# CUSTOM ROLES (senior admin only)
# ---------------------------------------------------------------------------


@router.get("/custom-roles")
async def list_custom_roles(
    access: AccessControl = Depends(get_access),
    user: AuthenticatedUser = Depends(require_role_class(RoleClass.SENIOR_ADMIN)),
):
    items = []
    for definition in await access.registry.get_custom_roles():
        item = _role_out(definition)
        item["user_count"] = await access.store.count_users_with_role(definition.name)
        items.append(item)
    return {"items": items, "total": len(items)}


@router.post("/custom-roles", status_code=201)
async def create_custom_role(
    body: CustomRoleCreate,
    access: AccessControl = Depends(get_access),
    user: AuthenticatedUser = Depends(require_role_class(RoleClass.SENIOR_ADMIN)),
):
    created = await access.registry.create_custom_role(_to_definition(body.name, body))
    return _role_out(created)


@router.put("/custom-roles/{name}")
async def update_custom_role(
    name: str,
    body: CustomRoleBody,
    access: AccessControl = Depends(get_access),
    user: AuthenticatedUser = Depends(require_role_class(RoleClass.SENIOR_ADMIN)),
):
    updated = await access.registry.update_custom_role(_to_definition(name, body))
    return _role_out(updated)


@router.delete("/custom-roles/{name}")
async def delete_custom_role(
    name: str,
    access: AccessControl = Depends(get_access),
    user: AuthenticatedUser = Depends(require_role_class(RoleClass.SENIOR_ADMIN)),
):
    await access.registry.delete_custom_role(name)
    return {"status": "deleted", "name": name}


# ---------------------------------------------------------------------------
# USER MANAGEMENT
# ---------------------------------------------------------------------------


async def _check_assignable_role(
    access: AccessControl,
    actor: AuthenticatedUser,
    role: str,
) -> None:
    if not await access.registry.is_valid_role(role):
        valid = await access.registry.list_roles()
        raise InvalidRequest(
            f"Invalid role '{role}'. Valid roles: {', '.join(valid)}",
            details={"valid_roles": valid},
        )
    if role == BuiltInRole.SENIOR_ADMIN.value and not in_role_class(actor.role, RoleClass.SENIOR_ADMIN):
        raise Forbidden("Only senior administrators can assign the SENIOR_ADMIN role")


@router.get("/users")
async def list_users(
    role: str | None = Query(None),
    access: AccessControl = Depends(get_access),
    user: AuthenticatedUser = Depends(
        require_permission(Permission.VIEW_ALL_EMPLOYEES, role_class=RoleClass.ADMIN)
    ),
):
    users = await access.store.list_users(role=role)
    items = [_user_out(u) for u in users]
    return {"items": items, "total": len(items)}


@router.post("/users", status_code=201)
async def create_user(
    body: UserCreate,
    access: AccessControl = Depends(get_access),
    user: AuthenticatedUser = Depends(
        require_permission(Permission.MANAGE_ALL_EMPLOYEES, role_class=RoleClass.ADMIN)
    ),
):
    await _check_assignable_role(access, user, body.role)

    email = body.email.strip().lower()
    if await access.store.find_user_by_email(email) is not None:
        raise Conflict("A user with this email already exists")

    new_user = await access.store.add_user(User(
        email=email,
        password_hash=hash_password(body.password),
        first_name=body.first_name,
        last_name=body.last_name,
        phone=body.phone,
        role=body.role,
        contractor_company_name=body.contractor_company_name,
    ))
    logger.info(f"User {user.id} created user {new_user.id} with role {new_user.role}")
    return _user_out(new_user)


@router.patch("/users/{user_id}/role")
async def update_user_role(
    user_id: int,
    body: UserRoleUpdate,
    access: AccessControl = Depends(get_access),
    user: AuthenticatedUser = Depends(
        require_permission(Permission.MANAGE_EMPLOYEE_ROLES, role_class=RoleClass.ADMIN)
    ),
):
    target = await access.store.find_user_by_id(user_id)
    if target is None:
        raise NotFound("User not found")
    await _check_assignable_role(access, user, body.role)

    previous = target.role
    target = await access.store.set_user_role(target, body.role)
    logger.info(f"User {user.id} changed role of user {target.id}: {previous} -> {target.role}")
    return _user_out(target)
