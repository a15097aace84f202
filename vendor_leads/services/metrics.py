from __future__ import annotations

from prometheus_client import Counter

LEADS_DISPATCHED = Counter(
    "vendor_leads_dispatched_total",
    "Leads handed to a downstream target, by outcome.",
    ["target", "outcome"],
)

STORE_WRITES = Counter(
    "vendor_leads_store_writes_total",
    "Leads written to (or dropped by) the vendor leads table.",
    ["outcome"],
)
