"""Revenue reporting endpoint."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Request

from gym_membership.api.dependencies import require_owner
from gym_membership.api.schemas import serialize_revenue

if TYPE_CHECKING:
    from gym_membership.containers import AppContainer

router = APIRouter(tags=["reports"])


@router.get("/revenue")
async def revenue(
    request: Request,
    start: datetime | None = None,
    end: datetime | None = None,
    owner_id: int = Depends(require_owner),
) -> dict[str, object]:
    """Return revenue totals for a date range, defaulting to this month."""
    container: AppContainer = request.app.state.container
    summary = container.revenue_service.summarize(
        owner_id, _as_aware(start), _as_aware(end)
    )
    return serialize_revenue(summary)


def _as_aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
