# cli/verification.py
"""
Checks against a running vendor leads API.
All functions return a VerificationResult: (success, message, data).
"""
from __future__ import annotations

import json
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, Optional

import httpx

from vendor_leads.services.vendor_response import PREFLIGHT_HEADERS


@dataclass
class VerificationResult:
    """Structured result from verification functions."""
    success: bool
    message: str
    data: Dict = None

    def __post_init__(self):
        if self.data is None:
            self.data = {}


async def check_preflight(api_url: str, client: Optional[httpx.AsyncClient] = None) -> VerificationResult:
    """OPTIONS /leads must answer with the CORS preflight headers."""
    url = f"{api_url.rstrip('/')}/leads"
    try:
        async with _client(client) as http:
            response = await http.options(url)
    except httpx.HTTPError as e:
        return VerificationResult(False, f"Preflight request failed: {e}", {"url": url})

    missing = [
        name for name, value in PREFLIGHT_HEADERS.items()
        if response.headers.get(name) != value
    ]
    if response.status_code != 200 or missing:
        return VerificationResult(
            False,
            f"Preflight returned {response.status_code}",
            {"url": url, "missing_headers": missing},
        )
    return VerificationResult(True, "Preflight OK", {"url": url})


async def check_health(api_url: str, client: Optional[httpx.AsyncClient] = None) -> VerificationResult:
    url = f"{api_url.rstrip('/')}/health"
    try:
        async with _client(client) as http:
            response = await http.get(url)
    except httpx.HTTPError as e:
        return VerificationResult(False, f"Health request failed: {e}", {"url": url})

    if response.status_code != 200:
        return VerificationResult(False, f"Health returned {response.status_code}", {"url": url})

    body = response.json()
    return VerificationResult(
        True,
        f"Health status: {body.get('status')}",
        {"url": url, "checks": body.get("checks", {})},
    )


async def submit_test_lead(
    api_url: str,
    vendor: str,
    lead: Dict[str, Any],
    client: Optional[httpx.AsyncClient] = None,
) -> VerificationResult:
    """POST one JSON lead and report the vendor-formatted response."""
    url = f"{api_url.rstrip('/')}/leads"
    try:
        async with _client(client) as http:
            response = await http.post(
                url,
                content=json.dumps(lead),
                headers={"Content-Type": "application/json", "vendor": vendor},
            )
    except httpx.HTTPError as e:
        return VerificationResult(False, f"Lead submission failed: {e}", {"url": url})

    try:
        body = response.json()
    except ValueError:
        body = {"raw": response.text[:500]}

    return VerificationResult(
        response.status_code == 200,
        f"Lead submission returned {response.status_code}",
        {"url": url, "response": body, "request_id": response.headers.get("X-Request-ID")},
    )


@asynccontextmanager
async def _client(client: Optional[httpx.AsyncClient]) -> AsyncIterator[httpx.AsyncClient]:
    """Use the given client, or open (and close) a short-lived one."""
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(timeout=10.0) as owned:
        yield owned
