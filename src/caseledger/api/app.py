"""FastAPI application with lifespan and router mounting."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from caseledger.api.routes import health, payouts
from caseledger.core.config import AppSettings
from caseledger.core.exceptions import (
    CaseLedgerError,
    InvalidStatusTransitionError,
    PayoutCalculationError,
    PayoutLockedError,
    PayoutNotFoundError,
)
from caseledger.core.log import configure_logging
from caseledger.persistence import Persistence, create_persistence
from caseledger.services.payout_service import PayoutService

ERROR_STATUS: list[tuple[type[CaseLedgerError], int]] = [
    (PayoutNotFoundError, 404),
    (PayoutCalculationError, 422),
    (PayoutLockedError, 409),
    (InvalidStatusTransitionError, 409),
]


async def _error_handler(request: Request, exc: CaseLedgerError) -> JSONResponse:
    status = next((code for kind, code in ERROR_STATUS if isinstance(exc, kind)), 500)
    return JSONResponse(status_code=status, content={"error": type(exc).__name__, "detail": str(exc)})


def create_app(settings: AppSettings | None = None, persistence: Persistence | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Initialize and tear down application resources."""
        app_settings = settings or AppSettings()
        configure_logging(app_settings.log_level)
        backends = persistence or create_persistence(app_settings)
        app.state.settings = app_settings
        app.state.persistence = backends
        app.state.service = PayoutService(
            activity_source=backends.activity_source,
            rate_table=backends.rate_table,
            store=backends.payout_store,
            rules=app_settings.payout.to_rules(),
        )
        yield

    app = FastAPI(
        title="caseledger Resource Payout Service",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_exception_handler(CaseLedgerError, _error_handler)
    app.include_router(health.router)
    app.include_router(payouts.router, prefix="/payouts")
    return app
