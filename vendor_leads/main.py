from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Optional

import sentry_sdk
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from vendor_leads.core.config import Settings, get_settings
from vendor_leads.core.exceptions import BaseAPIException
from vendor_leads.core.logging import configure_structlog, get_structlog_logger
from vendor_leads.middleware.logging import LoggingMiddleware
from vendor_leads.middleware.request_id import RequestIdMiddleware
from vendor_leads.routes import health_router, leads_router
from vendor_leads.services.aws import close_aws_clients


def init_sentry(settings: Settings) -> None:
    if not settings.sentry_dsn:
        return
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        integrations=[
            AsyncioIntegration(),
            FastApiIntegration(),
            StarletteIntegration(),
        ],
        traces_sample_rate=1.0 if settings.is_development else 0.1,
        send_default_pii=False,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    logger = get_structlog_logger(__name__)
    settings: Settings = app.state.settings

    logger.info("application.starting", environment=settings.environment, stage=settings.stage)
    init_sentry(settings)
    logger.info("application.started")
    yield

    logger.info("application.shutting_down")
    close_aws_clients()
    logger.info("application.shutdown_complete")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_structlog(settings)
    logger = get_structlog_logger(__name__)

    app = FastAPI(
        title="Vendor Leads API",
        version=settings.version,
        description="Receives vendor leads and forwards them to the leads table and Salesforce",
        docs_url="/docs" if settings.is_development else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.is_development else None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Last added runs first: request ids must exist before logging.
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)

    @app.exception_handler(BaseAPIException)
    async def api_exception_handler(request: Request, exc: BaseAPIException):
        logger.warning(
            "api.exception",
            status_code=exc.status_code,
            code=exc.code,
            path=request.url.path,
            method=request.method,
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        error_id = f"err_{int(time.time())}_{hash(str(exc)) % 10000:04d}"
        logger.error(
            "unhandled.exception",
            error_id=error_id,
            error_type=type(exc).__name__,
            error=str(exc),
            path=request.url.path,
            method=request.method,
        )
        message = f"Internal server error: {exc}" if settings.is_development else "Internal server error"
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"code": "internal_error", "message": message, "details": {"error_id": error_id}},
            headers={"X-Error-ID": error_id},
        )

    app.include_router(health_router, prefix=settings.api_prefix)
    app.include_router(leads_router, prefix=settings.api_prefix, tags=["leads"])

    if not settings.is_testing:
        Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

    logger.info("application.configured", environment=settings.environment, stage=settings.stage)
    return app


app = create_app()
