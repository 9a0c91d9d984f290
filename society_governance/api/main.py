"""FastAPI application entry point for the society governance service."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress
from typing import Optional

import structlog
from fastapi import FastAPI

from society_governance.api.dependencies.governance import set_governance_coordinator
from society_governance.api.middleware.logging_middleware import LoggingMiddleware
from society_governance.api.routes.governance import (
    governance_error_handler,
    router as governance_router,
)
from society_governance.application.services.governance_coordinator import (
    GovernanceCoordinator,
)
from society_governance.bootstrap.governance import build_governance_coordinator
from society_governance.bootstrap.logging import configure_structlog
from society_governance.domain.exceptions import GovernanceError

# Seconds between sweeps that open and close campaigns whose window passed.
TRANSITION_SWEEP_SECONDS = 30

logger = structlog.get_logger()


async def _sweep_due_transitions(coordinator: GovernanceCoordinator) -> None:
    while True:
        await coordinator.time_authority.sleep(TRANSITION_SWEEP_SECONDS)
        try:
            changed = await coordinator.run_due_transitions()
        except Exception:
            logger.exception("transition_sweep_failed")
            continue
        if changed:
            logger.info("transition_sweep_completed", campaigns=len(changed))


def create_app(coordinator: Optional[GovernanceCoordinator] = None) -> FastAPI:
    """Build the API application.

    Args:
        coordinator: Engine to serve. Built from the environment on
            startup when omitted.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        engine = coordinator
        if engine is None:
            engine = build_governance_coordinator()
            configure_structlog(engine.config.environment)

        set_governance_coordinator(engine)
        await engine.start()
        sweeper = asyncio.create_task(_sweep_due_transitions(engine))
        try:
            yield
        finally:
            sweeper.cancel()
            with suppress(asyncio.CancelledError):
                await sweeper
            await engine.shutdown()
            set_governance_coordinator(None)

    app = FastAPI(
        title="Society Governance API",
        description="Voting campaigns, emergency escalation, succession and policy proposals",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_middleware(LoggingMiddleware)
    app.add_exception_handler(GovernanceError, governance_error_handler)
    app.include_router(governance_router)
    return app


app = create_app()
