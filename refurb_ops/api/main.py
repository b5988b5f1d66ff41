from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from refurb_ops.core.errors import DomainError
from refurb_ops.core.logging import configure_logging, correlation_id_var
from refurb_ops.core.settings import get_app_settings
from refurb_ops.db.run_migrations import main as run_alembic
from refurb_ops.db.seed import seed_all
from refurb_ops.schemas.common import ErrorInfo, ErrorResponse, MessageResponse

# Routers
from refurb_ops.api.routes.auth import router as auth_router
from refurb_ops.api.routes.users import router as users_router
from refurb_ops.api.routes.roles import router as roles_router
# Workflow routers
from refurb_ops.api.routes.inward import router as inward_router
from refurb_ops.api.routes.devices import router as devices_router
from refurb_ops.api.routes.inspection import router as inspection_router
from refurb_ops.api.routes.spares import router as spares_router
from refurb_ops.api.routes.repair import router as repair_router
from refurb_ops.api.routes.l2 import router as l2_router
from refurb_ops.api.routes.specialists import battery_router, display_router, l3_router
from refurb_ops.api.routes.paint import router as paint_router
from refurb_ops.api.routes.quality import router as quality_router
from refurb_ops.api.routes.outward import router as outward_router
from refurb_ops.api.routes.procurement import router as procurement_router
from refurb_ops.api.routes.files import router as files_router
from refurb_ops.api.routes.dashboard import router as dashboard_router
from refurb_ops.api.routes.reports import router as reports_router
from refurb_ops.api.routes.cron import router as cron_router

settings = get_app_settings()

# Configure structured logging once at import
configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "Health", "description": "Liveness check."},
    {"name": "Auth", "description": "Authentication and token endpoints."},
    {"name": "Users", "description": "User administration (Super Admin only)."},
    {"name": "Roles", "description": "Role catalogue and module access."},
    {"name": "Inward", "description": "Receiving batches, device registration, PO verification, labels."},
    {"name": "Inventory", "description": "Device lookup, search, edits, moves and history."},
    {"name": "Inspection", "description": "Inspection checklists and routing."},
    {"name": "Spares", "description": "Spares queue, issuing and spare part catalogue."},
    {"name": "Repair", "description": "Classic repair engineer workflow."},
    {"name": "L2 Repair", "description": "L2 engineer bench with parallel specialist work."},
    {"name": "L3 Repair", "description": "Motherboard, lock and power-on escalations."},
    {"name": "Display Repair", "description": "Display technician queue."},
    {"name": "Battery Boost", "description": "Battery technician queue."},
    {"name": "Paint Shop", "description": "Panel painting and collection."},
    {"name": "Quality", "description": "Final QC, grading and rework."},
    {"name": "Outward", "description": "Dispatch for sales and rentals."},
    {"name": "Procurement", "description": "Purchase orders and racks."},
    {"name": "Files", "description": "Purchase order PDFs and delivery challans."},
    {"name": "Dashboard", "description": "Pipeline counts and activity feed."},
    {"name": "Reports", "description": "Exportable business reports (CSV/Excel/PDF)."},
    {"name": "Cron", "description": "Scheduled notification checks."},
]

app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    openapi_tags=openapi_tags,
)

# CORS - avoid wildcard with credentials
cors_allow_credentials = settings.CORS_ALLOW_CREDENTIALS
if settings.CORS_ORIGINS == ["*"] and cors_allow_credentials:
    logger.warning("CORS_ALLOW_CREDENTIALS=True with '*' origins is not permitted; disabling credentials.")
    cors_allow_credentials = False

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=cors_allow_credentials,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """
    Attach a correlation_id to the request for logging and error responses.
    Adds 'X-Correlation-ID' to every response.
    """
    corr = request.headers.get("X-Correlation-ID") or request.headers.get("X-Request-ID") or str(uuid4())
    token_corr = correlation_id_var.set(corr)
    request.state.correlation_id = corr

    logger.info("Incoming request %s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
    finally:
        correlation_id_var.reset(token_corr)

    response.headers["X-Correlation-ID"] = corr
    return response


def _build_error_response(
    request: Request,
    status_code: int,
    error_type: str,
    message: str,
    details: Any | None = None,
) -> JSONResponse:
    """Build a standardized ErrorResponse JSONResponse."""
    err = ErrorResponse(
        status=status_code,
        error=ErrorInfo(type=error_type, message=message, details=details),
        correlation_id=getattr(request.state, "correlation_id", None),
        path=request.url.path,
        method=request.method,
        timestamp=datetime.now(tz=timezone.utc),
    )
    return JSONResponse(status_code=status_code, content=err.model_dump(mode="json"))


@app.exception_handler(DomainError)
async def domain_exception_handler(request: Request, exc: DomainError):
    """Business rule violations carry their own status code and operator-facing message."""
    if exc.status_code >= 500:
        logger.error("Domain error %s: %s", exc.error_type, exc.message)
    return _build_error_response(
        request=request,
        status_code=exc.status_code,
        error_type=exc.error_type,
        message=exc.message,
        details=exc.details,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """
    Global handler for HTTPException to produce a standardized error envelope.
    """
    detail = exc.detail if isinstance(exc.detail, str) else "HTTP Error"
    response = _build_error_response(
        request=request,
        status_code=exc.status_code,
        error_type="http_error",
        message=str(detail),
        details=None if isinstance(exc.detail, str) else exc.detail,
    )
    if exc.headers:
        response.headers.update(exc.headers)
    return response


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may hold exception instances that are not JSON serializable
    errors = []
    for err in exc.errors():
        err = dict(err)
        if "ctx" in err:
            err["ctx"] = {k: str(v) for k, v in err["ctx"].items()}
        errors.append(err)
    return errors


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Global handler for request validation errors with a standard structure.
    """
    return _build_error_response(
        request=request,
        status_code=422,
        error_type="validation_error",
        message="Request validation failed",
        details=jsonable_errors(exc),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Catch-all handler to avoid leaking stack traces and to return a structured error.
    """
    logger.exception("Unhandled error processing request")
    return _build_error_response(
        request=request,
        status_code=500,
        error_type="internal_error",
        message="An unexpected error occurred",
        details=None,
    )


@app.on_event("startup")
async def on_startup() -> None:
    """
    Run migrations and optional seeding on service startup.

    This ensures the database schema is up to date. Seeding is opt-in via settings.
    """
    if settings.RUN_MIGRATIONS_ON_STARTUP:
        try:
            logger.info("Running Alembic migrations: upgrade head")
            run_alembic(["upgrade", "head"])
            logger.info("Migrations completed.")
        except Exception as exc:
            logger.exception("Migration step failed: %s", exc)
            # Do not crash the app in case of transient DB issues; rely on retries or later readiness checks.

    if settings.AUTO_SEED:
        try:
            logger.info("Running database seeding...")
            await seed_all()
            logger.info("Seeding completed.")
        except Exception as exc:
            logger.exception("Seeding step failed: %s", exc)


# Build API v1 router and include sub-routers
api_v1 = APIRouter(prefix="/api/v1")


# PUBLIC_INTERFACE
@api_v1.get(
    "/health",
    response_model=MessageResponse,
    summary="Health Check",
    tags=["Health"],
)
def health_check() -> MessageResponse:
    """
    Basic liveness health check endpoint.

    Returns:
        MessageResponse: Simple confirmation that the service is running.
    """
    return MessageResponse(message="Healthy")


# Include all routers under /api/v1
for router in (
    auth_router,
    users_router,
    roles_router,
    inward_router,
    devices_router,
    inspection_router,
    spares_router,
    repair_router,
    l2_router,
    l3_router,
    display_router,
    battery_router,
    paint_router,
    quality_router,
    outward_router,
    procurement_router,
    files_router,
    dashboard_router,
    reports_router,
    cron_router,
):
    api_v1.include_router(router)

# Attach api_v1 to app
app.include_router(api_v1)
