from __future__ import annotations

import json
from decimal import Decimal
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class VendorConfig(BaseModel):
    """Per-vendor settings stored in the vendors config parameter."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    lead_id_property: Optional[str] = Field(default=None, alias="leadIdProperty")


class QueuedLeadMessage(BaseModel):
    """Body of a message on the leads -> store queue."""

    model_config = ConfigDict(populate_by_name=True)

    request_id: Optional[str] = Field(default=None, alias="requestId")
    vendor: str
    lead: Any = None

    def to_body(self) -> str:
        return json.dumps(self.model_dump(by_alias=True))

    @classmethod
    def from_body(cls, body: Union[str, bytes]) -> "QueuedLeadMessage":
        # Decimal keeps numbers storable as DynamoDB N attributes.
        return cls.model_validate(json.loads(body, parse_float=Decimal))


class LeadsReceivedDetail(BaseModel):
    """``Detail`` of a LeadsReceived event on the Salesforce bus."""

    vendor: str
    leads: List[Any]

    def to_detail(self) -> str:
        return json.dumps(self.model_dump())


class LeadAcknowledgement(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    lead_external_id: Optional[str] = Field(default=None, alias="leadExternalId")
    partner_decision: str = Field(alias="partnerDecision")
    attempt_retransmit: bool = Field(alias="attemptRetransmit")


class LendingTreeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    lead_acknowledgement: LeadAcknowledgement = Field(alias="leadAcknowledgement")


class GenericLeadResponse(BaseModel):
    status: str
    message: str
