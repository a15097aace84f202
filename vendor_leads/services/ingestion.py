from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from fastapi import status

from vendor_leads.core.exceptions import LeadPayloadError
from vendor_leads.core.logging import get_structlog_logger
from vendor_leads.services.lead_dispatch import EventBusDispatcher, QueueDispatcher
from vendor_leads.services.lead_id import resolve_lead_id
from vendor_leads.services.request_normalizer import (
    IncomingRequest,
    extract_payload,
    extract_vendor,
)
from vendor_leads.services.vendors_config import VendorsConfigProvider

logger = get_structlog_logger(__name__)

UNKNOWN_VENDOR = "unknown"
MISSING_VENDOR_ERROR = "Vendor name cannot be empty."
MISSING_PAYLOAD_ERROR = "No lead data provided in body or query parameters."


@dataclass
class IngestionOutcome:
    status_code: int
    vendor: str
    response_data: Dict[str, Any] = field(default_factory=dict)
    is_success: bool = True


def parse_leads_payload(payload: str) -> Any:
    try:
        return json.loads(payload)
    except ValueError as e:
        raise LeadPayloadError(f"Lead data is not valid JSON: {e}") from e


class LeadIngestionService:
    """Normalizes a vendor submission and fans it out to queue and event bus."""

    def __init__(
        self,
        vendors_config_provider: VendorsConfigProvider,
        queue_dispatcher: QueueDispatcher,
        event_dispatcher: EventBusDispatcher,
    ):
        self.vendors_config_provider = vendors_config_provider
        self.queue_dispatcher = queue_dispatcher
        self.event_dispatcher = event_dispatcher

    async def extract_lead_id(self, leads: Any, vendor: str) -> Optional[str]:
        """Lead id echoed back to single-object submitters; ``None`` for arrays and scalars."""
        if not isinstance(leads, dict):
            return None
        vendors_config = await self.vendors_config_provider.load_async()
        return resolve_lead_id(leads, vendors_config, vendor)

    async def ingest(self, request: IncomingRequest, request_id: str) -> IngestionOutcome:
        vendor: Optional[str] = None
        lead_id: Optional[str] = None

        try:
            vendor = extract_vendor(request)
            if not vendor:
                logger.warning("lead.ingest.missing_vendor")
                return IngestionOutcome(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    vendor=UNKNOWN_VENDOR,
                    response_data={"error": MISSING_VENDOR_ERROR},
                    is_success=False,
                )

            payload = extract_payload(request)
            if payload is None:
                logger.warning("lead.ingest.missing_payload", vendor=vendor)
                return IngestionOutcome(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    vendor=vendor,
                    response_data={"error": MISSING_PAYLOAD_ERROR},
                    is_success=False,
                )

            leads = parse_leads_payload(payload)
            lead_id = await self.extract_lead_id(leads, vendor)

            queue_report = await self.queue_dispatcher.dispatch(request_id, vendor, leads)
            event_report = await self.event_dispatcher.dispatch(vendor, leads)

            logger.info(
                "lead.ingest.accepted",
                vendor=vendor,
                lead_id=lead_id,
                leads=queue_report.total_leads,
                queued=queue_report.sent,
                queue_failed=queue_report.failed,
                events_failed=event_report.failed,
            )
            return IngestionOutcome(
                status_code=status.HTTP_200_OK,
                vendor=vendor,
                response_data={"leadId": lead_id},
            )

        except Exception as e:
            logger.error(
                "lead.ingest.failed",
                vendor=vendor,
                lead_id=lead_id,
                error_type=type(e).__name__,
                error=str(e),
                exc_info=True,
            )
            message = getattr(e, "message", None) or str(e) or "Internal Server Error"
            return IngestionOutcome(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                vendor=vendor or UNKNOWN_VENDOR,
                response_data={"errorMessage": message, "leadId": lead_id},
                is_success=False,
            )
