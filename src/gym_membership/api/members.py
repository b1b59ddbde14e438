"""Customer and membership endpoints scoped to the authenticated owner."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Request

from gym_membership.api.dependencies import require_owner
from gym_membership.api.schemas import (
    MembershipPayload,
    serialize_customer,
    serialize_membership,
)
from gym_membership.domain.errors import NotFoundError, ValidationFailedError
from gym_membership.services.customers import DEFAULT_EXPIRY_DAYS

if TYPE_CHECKING:
    from gym_membership.containers import AppContainer

router = APIRouter(tags=["members"])


@router.get("/get_profile")
async def get_profile(
    request: Request,
    gym_id: str | None = None,
    owner_id: int = Depends(require_owner),
) -> dict[str, object]:
    """Return a customer's name, phone and end date."""
    if not gym_id:
        raise ValidationFailedError("Missing gym_id")
    container: AppContainer = request.app.state.container
    customer = container.customer_service.get_customer(owner_id, gym_id)
    return {
        "name": customer.name,
        "phone_number": customer.phone_number,
        "end_date": customer.end_date.isoformat() if customer.end_date else None,
    }


@router.get("/profile")
async def profile(
    request: Request,
    gym_id: str | None = None,
    owner_id: int = Depends(require_owner),
) -> dict[str, object]:
    """Return a customer with all membership transactions."""
    if not gym_id:
        raise ValidationFailedError("gym_id is required")
    container: AppContainer = request.app.state.container
    customer, memberships = container.customer_service.get_profile(owner_id, gym_id)
    return {
        "name": customer.name,
        "phone_number": customer.phone_number,
        "status": customer.status,
        "end_date": customer.end_date.isoformat() if customer.end_date else None,
        "membership_transactions": [serialize_membership(m) for m in memberships],
    }


@router.get("/view_all")
async def view_all(
    request: Request, owner_id: int = Depends(require_owner)
) -> list[dict[str, object]]:
    """Return every customer of the owner."""
    container: AppContainer = request.app.state.container
    customers = container.customer_service.list_customers(owner_id)
    return [serialize_customer(customer) for customer in customers]


@router.get("/expiring_memberships/{days}")
async def expiring_memberships(
    days: str, request: Request, owner_id: int = Depends(require_owner)
) -> dict[str, object]:
    """Return active customers whose membership ends within the given days."""
    container: AppContainer = request.app.state.container
    customers = container.customer_service.list_expiring(owner_id, _parse_days(days))
    return {
        "count": len(customers),
        "members": [
            {
                "id": customer.id,
                "name": customer.name,
                "phone_number": customer.phone_number,
                "end_date": customer.end_date.isoformat()
                if customer.end_date
                else None,
            }
            for customer in customers
        ],
    }


@router.post("/membership")
async def create_membership(
    body: MembershipPayload, request: Request, owner_id: int = Depends(require_owner)
) -> dict[str, object]:
    """Record a membership payment and notify the member and owner."""
    container: AppContainer = request.app.state.container
    _, membership = await container.membership_service.create_membership(
        owner_id, body.to_request()
    )
    return {"success": True, "membership": serialize_membership(membership)}


@router.post("/reminders/expiring/{days}")
async def send_expiry_reminders(
    days: str, request: Request, owner_id: int = Depends(require_owner)
) -> dict[str, object]:
    """Send renewal reminders to customers expiring within the given days."""
    container: AppContainer = request.app.state.container
    owner = container.owner_repository.get_by_id(owner_id)
    if owner is None:
        raise NotFoundError("Gym owner not found")
    customers = container.customer_service.list_expiring(owner_id, _parse_days(days))
    report = await container.notification_service.send_expiry_reminders(
        owner, customers
    )
    return {"sent": report.sent, "failed": report.failed}


def _parse_days(raw: str) -> int:
    try:
        days = int(raw)
    except ValueError:
        return DEFAULT_EXPIRY_DAYS
    return days if days > 0 else DEFAULT_EXPIRY_DAYS
