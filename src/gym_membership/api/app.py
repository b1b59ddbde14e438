"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gym_membership.api.account import router as account_router
from gym_membership.api.admin import router as admin_router
from gym_membership.api.members import router as members_router
from gym_membership.api.reports import router as reports_router
from gym_membership.app_logging import configure_logging
from gym_membership.containers import AppContainer
from gym_membership.domain.errors import GymMembershipError


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await app.state.container.session_manager.start()
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(GymMembershipError)
    async def handle_domain_error(
        request: Request, exc: GymMembershipError
    ) -> JSONResponse:
        if exc.status_code >= 500:  # noqa: PLR2004
            logger.error(
                "Request failed", extra={"path": request.url.path, "error": str(exc)}
            )
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})

    app.include_router(account_router)
    app.include_router(members_router)
    app.include_router(reports_router)
    app.include_router(admin_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
