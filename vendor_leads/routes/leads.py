from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from vendor_leads.core.logging import get_structlog_logger
from vendor_leads.dependencies import get_ingestion_service
from vendor_leads.services.ingestion import LeadIngestionService
from vendor_leads.services.request_normalizer import IncomingRequest
from vendor_leads.services.vendor_response import (
    create_http_response,
    create_preflight_response,
)

router = APIRouter()


@router.options("/leads", include_in_schema=False)
async def leads_preflight() -> Response:
    return create_preflight_response()


@router.post(
    "/leads",
    summary="Ingest leads from a vendor integration",
    responses={
        200: {"description": "Leads accepted for asynchronous processing"},
        400: {"description": "Missing vendor or lead data"},
        500: {"description": "Leads could not be forwarded"},
    },
)
async def ingest_leads(
    request: Request,
    service: LeadIngestionService = Depends(get_ingestion_service),
) -> Response:
    logger = get_structlog_logger(__name__).bind(route="/leads", action="ingest")

    body = await request.body()
    incoming = IncomingRequest(
        method=request.method,
        headers=request.headers,
        query_params=dict(request.query_params),
        body=body.decode("utf-8", errors="replace") if body else None,
    )
    request_id = getattr(request.state, "request_id", None) or "unknown"

    outcome = await service.ingest(incoming, request_id)
    logger.info(
        "lead.ingest.responded",
        status_code=outcome.status_code,
        vendor=outcome.vendor,
    )
    return create_http_response(
        outcome.status_code,
        outcome.vendor,
        outcome.response_data,
        outcome.is_success,
    )
