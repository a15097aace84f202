from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from typing import Dict

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from vendor_leads.core.logging import get_structlog_logger
from vendor_leads.dependencies import get_vendors_config_provider
from vendor_leads.services.vendors_config import VendorsConfigProvider

logger = get_structlog_logger(__name__)

router = APIRouter(tags=["health"])

_started_at = time.monotonic()


class HealthCheckResponse(BaseModel):
    status: str
    service: str
    environment: str
    stage: str
    version: str
    timestamp: str
    uptime: float
    checks: Dict[str, Dict[str, str]]


async def check_vendors_config(provider: VendorsConfigProvider) -> Dict[str, str]:
    """Check the vendors config parameter is readable."""
    start = time.monotonic()
    try:
        config = await asyncio.to_thread(provider.fetch)
    except Exception as e:
        logger.warning("health.vendors_config_unavailable", error=str(e))
        # Ingestion fails open without it, so this only degrades.
        return {
            "status": "degraded",
            "parameter": provider.parameter_name,
            "error": str(e),
        }
    return {
        "status": "healthy",
        "parameter": provider.parameter_name,
        "vendors": str(len(config)),
        "response_time_ms": f"{(time.monotonic() - start) * 1000:.2f}",
    }


@router.get("/health", response_model=HealthCheckResponse)
async def health(
    request: Request,
    provider: VendorsConfigProvider = Depends(get_vendors_config_provider),
) -> HealthCheckResponse:
    settings = request.app.state.settings
    checks = {"vendors_config": await check_vendors_config(provider)}
    overall = "healthy" if all(c["status"] == "healthy" for c in checks.values()) else "degraded"

    return HealthCheckResponse(
        status=overall,
        service=settings.service_name,
        environment=settings.environment,
        stage=settings.stage,
        version=settings.version,
        timestamp=datetime.now(timezone.utc).isoformat(),
        uptime=round(time.monotonic() - _started_at, 3),
        checks=checks,
    )
