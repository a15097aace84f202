"""
Pydantic schemas for queue messages, events, vendor config and responses.
"""

from vendor_leads.schemas.leads import (
    GenericLeadResponse,
    LeadAcknowledgement,
    LeadsReceivedDetail,
    LendingTreeResponse,
    QueuedLeadMessage,
    VendorConfig,
)

__all__ = [
    "GenericLeadResponse",
    "LeadAcknowledgement",
    "LeadsReceivedDetail",
    "LendingTreeResponse",
    "QueuedLeadMessage",
    "VendorConfig",
]
