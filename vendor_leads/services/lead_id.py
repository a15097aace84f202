from __future__ import annotations

import secrets
import string
import time
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Optional

from vendor_leads.schemas.leads import VendorConfig
from vendor_leads.utils.object_utils import get_nested_property

_BASE36 = string.digits + string.ascii_lowercase
_SUFFIX_LENGTH = 6


def generate_unique_lead_id(lead: Any = None) -> str:
    """Build a fallback id: ``[requestId_]<epoch millis>_<6 base36 chars>``.

    Uniqueness is probabilistic; the store key is the only real guard.
    """
    suffix = "".join(secrets.choice(_BASE36) for _ in range(_SUFFIX_LENGTH))
    millis = int(time.time() * 1000)

    request_id = lead.get("requestId") if isinstance(lead, Mapping) else None
    if request_id:
        return f"{request_id}_{millis}_{suffix}"
    return f"{millis}_{suffix}"


def _as_identifier(value: Any) -> Optional[str]:
    if not value or isinstance(value, (Mapping, list, tuple)):
        return None
    # float on ingestion, Decimal in the store writer: same rendering.
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, Decimal) and value == value.to_integral_value():
        return str(int(value))
    return str(value)


def resolve_lead_id(
    lead: Any,
    vendors_config: Mapping[str, VendorConfig],
    vendor_name: Optional[str] = None,
) -> str:
    """Resolve the identifier a lead is stored and acknowledged under.

    The vendor's ``leadIdProperty`` (a key or a dotted path) is looked up in
    the lead; falsy or non-scalar values fall back to a generated id.
    """
    if not lead:
        return generate_unique_lead_id(lead)

    vendor_config = vendors_config.get(vendor_name.lower()) if vendor_name else None
    id_property = vendor_config.lead_id_property if vendor_config else None

    value = None
    if id_property and isinstance(lead, Mapping):
        if "." in id_property:
            value = get_nested_property(lead, id_property)
        else:
            value = lead.get(id_property)

    return _as_identifier(value) or generate_unique_lead_id(lead)
