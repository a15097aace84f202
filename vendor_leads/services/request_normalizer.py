from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional
from urllib.parse import unquote

from vendor_leads.core.logging import get_structlog_logger

logger = get_structlog_logger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
VENDOR_KEY = "vendor"

# A "%" that does not start a two-digit hex escape.
_MALFORMED_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


@dataclass
class IncomingRequest:
    """Transport-neutral view of an ingestion request.

    ``headers`` should be case-insensitive (starlette ``Headers`` is).
    """

    method: str
    headers: Mapping[str, str] = field(default_factory=dict)
    query_params: Mapping[str, str] = field(default_factory=dict)
    body: Optional[str] = None

    def header(self, name: str) -> Optional[str]:
        value = self.headers.get(name)
        if value is None and not hasattr(self.headers, "getlist"):
            lowered = name.lower()
            for key, candidate in self.headers.items():
                if key.lower() == lowered:
                    return candidate
        return value


def decode_form_value(value: Optional[str]) -> Optional[str]:
    """Decode ``value`` until it stops changing.

    Handles values that were percent-encoded more than once. On a
    malformed escape the last successfully decoded value is kept.
    """
    if value is None:
        return None

    decoded = value
    previous = None
    while decoded != previous:
        previous = decoded
        candidate = decoded.replace("+", " ")
        try:
            if _MALFORMED_ESCAPE.search(candidate):
                raise ValueError("malformed percent escape")
            decoded = unquote(candidate, errors="strict")
        except (ValueError, UnicodeDecodeError) as e:
            logger.warning("request.decode_failed", value=decoded, error=str(e))
            break

    return decoded


def decode_params(params: Mapping[str, Optional[str]]) -> Dict[str, Optional[str]]:
    return {decode_form_value(key): decode_form_value(value) for key, value in params.items()}


def parse_form_body(body: str) -> Dict[str, Optional[str]]:
    """Parse ``key=value&key=value`` pairs.

    Each pair is split on every ``=``; only the first two pieces are kept
    and a missing or empty value becomes ``None``.
    """
    params: Dict[str, Optional[str]] = {}
    if not body or not body.strip():
        return params

    for pair in body.split("&"):
        pieces = pair.split("=")
        key = pieces[0]
        if not key:
            continue
        value = pieces[1] if len(pieces) > 1 and pieces[1] != "" else None
        params[decode_form_value(key)] = decode_form_value(value)

    return params


def extract_vendor(request: IncomingRequest) -> Optional[str]:
    """Vendor from the ``vendor`` header, then the ``vendor`` query parameter."""
    vendor = request.header(VENDOR_KEY)
    if vendor:
        return vendor

    vendor = request.query_params.get(VENDOR_KEY)
    if vendor:
        return vendor
    return None


def extract_payload(request: IncomingRequest) -> Optional[str]:
    """Return the lead payload as a JSON string, or ``None`` when there is none."""
    if request.body:
        content_type = request.header("content-type") or ""
        if FORM_CONTENT_TYPE in content_type.lower():
            params = parse_form_body(request.body)
            params.pop(VENDOR_KEY, None)
            if not params:
                return None
            return json.dumps(params)

        # Anything else is assumed to already be JSON.
        return request.body

    params = {key: value for key, value in request.query_params.items() if key != VENDOR_KEY}
    if not params:
        return None

    logger.debug("request.query_payload", keys=sorted(params))
    return json.dumps(decode_params(params))
