"""Authentication routes."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel

from fieldops.errors import Forbidden, Unauthenticated
from fieldops.middleware.auth import get_access, get_current_user, verify_password
from fieldops.services.access import AccessControl
from fieldops.services.credentials import AuthenticatedUser

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: dict
    default_route: str


async def _user_payload(access: AccessControl, user: AuthenticatedUser) -> dict:
    permissions = await access.permissions_for(user)
    return {
        "id": user.id,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "phone": user.phone,
        "role": user.role_name,
        "contractor_company_name": user.contractor_company_name,
        "permissions": sorted(p.value for p in permissions),
    }


async def _authenticate(access: AccessControl, email: str, password: str) -> TokenResponse:
    user_row = await access.store.find_user_by_email(email.strip().lower())
    if user_row is None or not verify_password(password, user_row.password_hash):
        logger.info(f"Failed login attempt for {email}")
        raise Unauthenticated("Invalid email or password")
    if not user_row.is_active:
        raise Forbidden("User account is deactivated")

    user = AuthenticatedUser.from_record(user_row)
    token = access.tokens.issue(user.id)
    logger.info(f"User {user.id} logged in as {user.role_name}")

    return TokenResponse(
        access_token=token,
        user=await _user_payload(access, user),
        default_route=await access.default_route_for(user.role),
    )


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, access: AccessControl = Depends(get_access)):
    return await _authenticate(access, body.email, body.password)


@router.post("/login/form", response_model=TokenResponse)
async def login_form(
    form: OAuth2PasswordRequestForm = Depends(),
    access: AccessControl = Depends(get_access),
):
    """OAuth2 password flow for Swagger UI; ``username`` carries the email."""
    return await _authenticate(access, form.username, form.password)


@router.get("/me")
async def get_me(
    user: AuthenticatedUser = Depends(get_current_user),
    access: AccessControl = Depends(get_access),
):
    payload = await _user_payload(access, user)
    payload["default_route"] = await access.default_route_for(user.role)
    return payload


@router.post("/refresh")
async def refresh_token(
    user: AuthenticatedUser = Depends(get_current_user),
    access: AccessControl = Depends(get_access),
):
    return {"access_token": access.tokens.issue(user.id), "token_type": "bearer"}
