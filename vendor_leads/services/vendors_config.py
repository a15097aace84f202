"""
Vendors configuration provider.

The vendors config lives in SSM Parameter Store as a JSON document::

    {
        "lendingtree": {"leadIdProperty": "Internal_LeadID"},
        "lendgo": {"leadIdProperty": "universal_leadid"},
        "testurl": {"leadIdProperty": "id"}
    }

Loading fails open: any problem yields an empty mapping so lead id
resolution falls back to generated ids instead of blocking ingestion.
"""
from __future__ import annotations

import asyncio
import json
import time
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from vendor_leads.core.config import Settings
from vendor_leads.core.logging import get_structlog_logger
from vendor_leads.schemas.leads import VendorConfig

logger = get_structlog_logger(__name__)

VendorsConfig = Dict[str, VendorConfig]


def parse_vendors_config(raw: str) -> VendorsConfig:
    """Parse the parameter value; vendor keys are lower-cased."""
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("vendors config must be a JSON object")

    config: VendorsConfig = {}
    for vendor, entry in data.items():
        config[str(vendor).lower()] = VendorConfig.model_validate(entry or {})
    return config


class VendorsConfigProvider:
    """Loads the vendor -> lead id property mapping from Parameter Store.

    Successful loads are cached for ``vendors_config_cache_ttl_seconds``
    (``0`` disables caching). Failed loads are never cached.
    """

    def __init__(self, ssm_client: Any, settings: Settings):
        self.ssm = ssm_client
        self.parameter_name = settings.vendors_config_parameter
        self.cache_ttl = max(settings.vendors_config_cache_ttl_seconds, 0)
        self._cached: Optional[VendorsConfig] = None
        self._cached_at = 0.0

    def load(self) -> VendorsConfig:
        if self._cached is not None and time.monotonic() - self._cached_at < self.cache_ttl:
            return dict(self._cached)

        try:
            config = self.fetch()
        except Exception as e:
            logger.error(
                "vendors_config.load_failed",
                parameter=self.parameter_name,
                error_type=type(e).__name__,
                error=str(e),
            )
            return {}

        if self.cache_ttl:
            self._cached = config
            self._cached_at = time.monotonic()
        return dict(config)

    async def load_async(self) -> VendorsConfig:
        return await asyncio.to_thread(self.load)

    def invalidate(self) -> None:
        self._cached = None
        self._cached_at = 0.0

    def fetch(self) -> VendorsConfig:
        response = self.ssm.get_parameter(Name=self.parameter_name, WithDecryption=False)
        value = (response.get("Parameter") or {}).get("Value")
        if not value:
            raise LookupError(f"Parameter {self.parameter_name} not found or has no value.")

        try:
            config = parse_vendors_config(value)
        except (ValueError, PydanticValidationError) as e:
            raise ValueError(f"Parameter {self.parameter_name} is malformed: {e}") from e

        logger.info(
            "vendors_config.loaded",
            parameter=self.parameter_name,
            vendors=sorted(config),
        )
        return config
