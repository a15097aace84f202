"""
Business logic services: id resolution, request normalization, fan-out and persistence.
"""

from vendor_leads.services.ingestion import IngestionOutcome, LeadIngestionService
from vendor_leads.services.lead_dispatch import DispatchReport, EventBusDispatcher, QueueDispatcher
from vendor_leads.services.lead_id import generate_unique_lead_id, resolve_lead_id
from vendor_leads.services.store_writer import StoreWriter, StoreWriteResult
from vendor_leads.services.vendors_config import VendorsConfigProvider

__all__ = [
    # Ingestion
    "IngestionOutcome",
    "LeadIngestionService",
    # Fan-out
    "DispatchReport",
    "EventBusDispatcher",
    "QueueDispatcher",
    # Lead ids
    "generate_unique_lead_id",
    "resolve_lead_id",
    # Persistence
    "StoreWriter",
    "StoreWriteResult",
    # Vendors config
    "VendorsConfigProvider",
]
