"""Shared FastAPI dependencies."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Depends, Header, HTTPException, Request, status

from gym_membership.domain.errors import InvalidCredentialsError

if TYPE_CHECKING:
    from gym_membership.containers import AppContainer


async def require_owner(
    request: Request,
    authorization: str | None = Header(default=None),
) -> int:
    """Resolve the authenticated owner id from a bearer token."""
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header missing",
        )
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Invalid or expired token"
        )
    container: AppContainer = request.app.state.container
    try:
        return container.auth_service.decode_token(token.strip())
    except InvalidCredentialsError as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Invalid or expired token"
        ) from exc


async def limit_account_changes(
    request: Request, owner_id: int = Depends(require_owner)
) -> int:
    """Cap account-change requests per owner and endpoint."""
    container: AppContainer = request.app.state.container
    settings = container.settings
    allowed = await container.rate_limiter.hit(
        f"{request.url.path}:{owner_id}",
        settings.rate_limit_requests,
        settings.rate_limit_window_seconds,
    )
    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests, please try again later",
        )
    return owner_id
