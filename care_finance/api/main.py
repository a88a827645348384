"""FastAPI application factory"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy.exc import OperationalError
from starlette.responses import Response

from care_finance.api.middleware import MetricsMiddleware, RequestIDMiddleware
from care_finance.api.v1 import bank_balances, billing, budgets, factoring, loans, month_status, organizations, records, reports
from care_finance.config import settings
from care_finance.domain.exceptions import (
    DomainException,
    DuplicateRecordError,
    InvalidYearMonthError,
    MissingOrganizationError,
    PersistenceUnavailableError,
    RecordNotFoundError,
)
from care_finance.infrastructure.database.session import init_db
from care_finance.infrastructure.observability.logging import setup_logging
from care_finance.infrastructure.observability.metrics import persistence_failure_counter

# Setup structured logging
setup_logging(settings.log_level)

# Most specific first; PersistenceUnavailableError also covers storage outages
ERROR_STATUS = (
    (MissingOrganizationError, 400),
    (RecordNotFoundError, 404),
    (DuplicateRecordError, 409),
    (InvalidYearMonthError, 422),
    (PersistenceUnavailableError, 503),
)


def _status_for(exc: DomainException) -> int:
    for exc_type, status_code in ERROR_STATUS:
        if isinstance(exc, exc_type):
            return status_code
    return 500


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    status_code = _status_for(exc)
    extra = {"request_id": getattr(request.state, "request_id", "unknown"), "path": request.url.path}
    if status_code >= 500:
        logging.error(f"Request failed: {exc}", extra=extra)
    else:
        logging.warning(f"Request rejected: {exc}", extra=extra)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


async def storage_exception_handler(request: Request, exc: OperationalError) -> JSONResponse:
    persistence_failure_counter.inc()
    logging.error(f"Database unavailable: {exc}", extra={"request_id": getattr(request.state, "request_id", "unknown")})
    return JSONResponse(status_code=503, content={"detail": "Database unavailable"})


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.create_tables:
        init_db()
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Care Finance",
        description="Cash-flow records, loan amortization and monthly projections for care-service operators",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(DomainException, domain_exception_handler)
    app.add_exception_handler(OperationalError, storage_exception_handler)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name, "run_mode": settings.run_mode.value}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(organizations.router, prefix="/v1", tags=["organizations"])
    app.include_router(bank_balances.router, prefix="/v1", tags=["bank balances"])
    app.include_router(records.income_router, prefix="/v1", tags=["income"])
    app.include_router(records.expense_router, prefix="/v1", tags=["expense"])
    app.include_router(billing.router, prefix="/v1", tags=["billing"])
    app.include_router(factoring.router, prefix="/v1", tags=["factoring"])
    app.include_router(budgets.router, prefix="/v1", tags=["budgets"])
    app.include_router(loans.router, prefix="/v1", tags=["loans"])
    app.include_router(month_status.router, prefix="/v1", tags=["month status"])
    app.include_router(reports.router, prefix="/v1", tags=["reports"])

    return app


app = create_app()
