"""Pledge Ledger API: FastAPI entry point.

Domain routers live under apps/api/domains/ and are mounted at /api/v1.
Errors are rendered as RFC 7807 problem details.
"""

import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from apps.api.core.config import setting, settings
from apps.api.core.errors import register_error_handlers
from apps.api.core.logging import setup_logging
from apps.api.domains.commitments.router import router as commitments_router
from apps.api.domains.fulfillment.router import router as fulfillment_router
from apps.api.domains.ingestion.router import router as ingestion_router
from apps.api.domains.pledges.router import router as pledges_router
from apps.api.domains.transactions.router import router as transactions_router
from apps.api.routers import health

logger = structlog.get_logger()

APP_VERSION = setting("APP_VERSION", "0.1.0")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: configure logging on startup."""
    setup_logging(
        log_level=setting("LOG_LEVEL", "INFO"),
        json_output=settings.json_logs if settings else False,
    )
    logger.info("app_starting", version=APP_VERSION)
    yield
    logger.info("app_stopping")


app = FastAPI(
    title="Pledge Ledger API",
    description="Bank statement ingestion and pledge fulfillment for the dashboard.",
    version=APP_VERSION,
    lifespan=lifespan,
)

register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins if settings else ["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def bind_request_context(request: Request, call_next):
    """Tag every log line and error body of a request with one request id."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    request.state.request_id = request_id
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, path=request.url.path)
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


app.include_router(ingestion_router, prefix="/api/v1")
app.include_router(transactions_router, prefix="/api/v1")
app.include_router(fulfillment_router, prefix="/api/v1")
app.include_router(pledges_router, prefix="/api/v1")
app.include_router(commitments_router, prefix="/api/v1")
app.include_router(health.router, prefix="/api/v1")
