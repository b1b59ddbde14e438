"""Owner login and account management endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Request

from gym_membership.api.dependencies import limit_account_changes, require_owner
from gym_membership.api.schemas import (
    LoginRequest,
    PasswordChangeRequest,
    PhoneChangeRequest,
    PhoneVerifyRequest,
    serialize_owner,
)
from gym_membership.domain.errors import NotFoundError, ValidationFailedError

if TYPE_CHECKING:
    from gym_membership.containers import AppContainer

router = APIRouter(tags=["account"])


@router.post("/login")
async def login(body: LoginRequest, request: Request) -> dict[str, object]:
    """Exchange owner credentials for a bearer token."""
    if not body.phone_number or not body.password:
        raise ValidationFailedError("Phone number and password are required")
    container: AppContainer = request.app.state.container
    token = container.auth_service.login(body.phone_number, body.password)
    return {"success": True, "token": token}


@router.get("/account")
async def account(
    request: Request, owner_id: int = Depends(require_owner)
) -> dict[str, object]:
    """Return the authenticated owner's profile."""
    container: AppContainer = request.app.state.container
    owner = container.owner_repository.get_by_id(owner_id)
    if owner is None:
        raise NotFoundError("Gym owner not found")
    return serialize_owner(owner)


@router.post("/account/password")
async def change_password(
    body: PasswordChangeRequest,
    request: Request,
    owner_id: int = Depends(require_owner),
) -> dict[str, object]:
    """Change the owner's password."""
    container: AppContainer = request.app.state.container
    container.auth_service.change_password(
        owner_id, body.current_password, body.new_password
    )
    return {"success": True}


@router.post("/account/phone/request")
async def request_phone_change(
    body: PhoneChangeRequest,
    request: Request,
    owner_id: int = Depends(limit_account_changes),
) -> dict[str, object]:
    """Send a verification code to the owner's current phone."""
    container: AppContainer = request.app.state.container
    await container.account_service.request_phone_change(owner_id, body.phone_number)
    return {"success": True, "message": "Verification code sent"}


@router.post("/account/phone/verify")
async def verify_phone_change(
    body: PhoneVerifyRequest,
    request: Request,
    owner_id: int = Depends(limit_account_changes),
) -> dict[str, object]:
    """Confirm a phone change with the received code."""
    container: AppContainer = request.app.state.container
    owner = await container.account_service.confirm_phone_change(owner_id, body.code)
    return {"success": True, "owner": serialize_owner(owner)}
