from __future__ import annotations

import json
from typing import Any, Dict, Mapping, Optional

from fastapi.responses import Response

from vendor_leads.schemas.leads import (
    GenericLeadResponse,
    LeadAcknowledgement,
    LendingTreeResponse,
)

RESPONSE_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, vendor",
}

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, PUT, PATCH, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, vendor",
    "Access-Control-Max-Age": "86400",
}

SUCCESS_MESSAGE = "Leads processed asynchronously."
DEFAULT_ERROR_MESSAGE = "Failed to process leads request."


class GenericFormatter:
    """``{"status": "success"|"error", "message": ...}`` for vendors without a bespoke shape."""

    def format(self, response_data: Mapping[str, Any], is_success: bool) -> Dict[str, Any]:
        if is_success:
            body = GenericLeadResponse(status="success", message=SUCCESS_MESSAGE)
        else:
            message = (
                response_data.get("errorMessage")
                or response_data.get("error")
                or DEFAULT_ERROR_MESSAGE
            )
            body = GenericLeadResponse(status="error", message=message)
        return body.model_dump()


class LendingTreeFormatter:
    """LendingTree expects a lead acknowledgement with a partner decision."""

    def format(self, response_data: Mapping[str, Any], is_success: bool) -> Dict[str, Any]:
        body = LendingTreeResponse(
            lead_acknowledgement=LeadAcknowledgement(
                lead_external_id=response_data.get("leadId") or None,
                partner_decision="accepted" if is_success else "rejected",
                attempt_retransmit=not is_success,
            )
        )
        return body.model_dump(by_alias=True)


DEFAULT_FORMATTER = GenericFormatter()

VENDOR_FORMATTERS = {
    "lendingtree": LendingTreeFormatter(),
}


def get_formatter(vendor: Optional[str]):
    return VENDOR_FORMATTERS.get((vendor or "").lower(), DEFAULT_FORMATTER)


def create_vendor_response(
    vendor: Optional[str],
    response_data: Optional[Mapping[str, Any]] = None,
    is_success: bool = True,
) -> Dict[str, Any]:
    return get_formatter(vendor).format(response_data or {}, is_success)


def create_http_response(
    status_code: int,
    vendor: Optional[str],
    response_data: Optional[Mapping[str, Any]] = None,
    is_success: bool = True,
) -> Response:
    body = create_vendor_response(vendor, response_data, is_success)
    return Response(
        content=json.dumps(body),
        status_code=status_code,
        headers=RESPONSE_HEADERS,
        media_type="application/json",
    )


def create_preflight_response() -> Response:
    return Response(
        content=json.dumps({"message": "CORS preflight successful"}),
        status_code=200,
        headers=PREFLIGHT_HEADERS,
        media_type="application/json",
    )
