"""
Fan-out of a lead batch to the leads queue and the Salesforce event bus.

Both targets accept at most 10 entries per call, so leads go out in
chunks. The two dispatchers differ on purpose in how they fail:

* the queue path is best effort: every failure is logged and the HTTP
  caller still gets a 200;
* the event bus path re-raises transport errors so the caller sees a 500
  and the vendor can retransmit.
"""
from __future__ import annotations

import asyncio
import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Sequence

from vendor_leads.core.config import Settings
from vendor_leads.core.logging import get_structlog_logger
from vendor_leads.schemas.leads import LeadsReceivedDetail, QueuedLeadMessage
from vendor_leads.services.metrics import LEADS_DISPATCHED

logger = get_structlog_logger(__name__)

MAX_ENTRY_ID_LENGTH = 80
_ENTRY_ID_INVALID = re.compile(r"[^A-Za-z0-9_-]")


@dataclass
class DispatchReport:
    target: str
    total_leads: int = 0
    batches: int = 0
    sent: int = 0
    failed: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.failed == 0


def as_lead_list(leads_data: Any) -> List[Any]:
    """Parse a JSON string if needed and wrap a single lead into a list."""
    if isinstance(leads_data, (str, bytes)):
        leads_data = json.loads(leads_data)
    if isinstance(leads_data, list):
        return leads_data
    return [leads_data]


def chunked(items: Sequence[Any], size: int) -> Iterator[Sequence[Any]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


def make_entry_id(request_id: str, position: int) -> str:
    """Batch entry id unique across every chunk of one request.

    SQS only accepts ``[A-Za-z0-9_-]`` and at most 80 characters.
    """
    suffix = f"-{position}"
    prefix = _ENTRY_ID_INVALID.sub("_", request_id or "lead")
    return prefix[:MAX_ENTRY_ID_LENGTH - len(suffix)] + suffix


class QueueDispatcher:
    """Sends leads to the leads -> store queue. Never raises."""

    target = "queue"

    def __init__(self, sqs_client: Any, settings: Settings):
        self.sqs = sqs_client
        self.queue_url = settings.leads_queue_url
        self.batch_size = settings.dispatch_batch_size

    async def dispatch(self, request_id: str, vendor: str, leads_data: Any) -> DispatchReport:
        report = DispatchReport(target=self.target)
        try:
            leads = as_lead_list(leads_data)
        except ValueError as e:
            logger.error("lead.dispatch.queue_parse_failed", vendor=vendor, error=str(e))
            report.errors.append({"error": str(e)})
            return report

        report.total_leads = len(leads)
        position = 0
        for chunk in chunked(leads, self.batch_size):
            entries = []
            for lead in chunk:
                message = QueuedLeadMessage(request_id=request_id, vendor=vendor, lead=lead)
                entries.append({
                    "Id": make_entry_id(request_id, position),
                    "MessageBody": message.to_body(),
                })
                position += 1

            report.batches += 1
            try:
                response = await asyncio.to_thread(
                    self.sqs.send_message_batch,
                    QueueUrl=self.queue_url,
                    Entries=entries,
                )
            except Exception as e:
                report.failed += len(entries)
                report.errors.append({"error": str(e), "entries": len(entries)})
                logger.error(
                    "lead.dispatch.queue_batch_error",
                    vendor=vendor,
                    entries=len(entries),
                    error_type=type(e).__name__,
                    error=str(e),
                )
                continue

            failed = response.get("Failed") or []
            report.sent += len(entries) - len(failed)
            report.failed += len(failed)
            if failed:
                report.errors.extend(failed)
                logger.error(
                    "lead.dispatch.queue_partial_failure",
                    vendor=vendor,
                    failed=failed,
                )
            else:
                logger.info("lead.dispatch.queue_batch_sent", vendor=vendor, entries=len(entries))

        LEADS_DISPATCHED.labels(target=self.target, outcome="sent").inc(report.sent)
        LEADS_DISPATCHED.labels(target=self.target, outcome="failed").inc(report.failed)
        return report


class EventBusDispatcher:
    """Publishes LeadsReceived events, one event per chunk of leads.

    Entries the bus rejects are logged; a transport error is re-raised.
    """

    target = "event_bus"

    def __init__(self, events_client: Any, settings: Settings):
        self.events = events_client
        self.event_bus_name = settings.event_bus_name
        self.source = settings.event_source
        self.detail_type = settings.event_detail_type
        self.batch_size = settings.dispatch_batch_size

    async def dispatch(self, vendor: str, leads_data: Any) -> DispatchReport:
        report = DispatchReport(target=self.target)
        leads = as_lead_list(leads_data)
        report.total_leads = len(leads)

        for chunk in chunked(leads, self.batch_size):
            detail = LeadsReceivedDetail(vendor=vendor, leads=list(chunk))
            entry = {
                "EventBusName": self.event_bus_name,
                "Source": self.source,
                "DetailType": self.detail_type,
                "Detail": detail.to_detail(),
            }

            report.batches += 1
            try:
                response = await asyncio.to_thread(self.events.put_events, Entries=[entry])
            except Exception as e:
                logger.error(
                    "lead.dispatch.event_bus_error",
                    vendor=vendor,
                    event_bus=self.event_bus_name,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                LEADS_DISPATCHED.labels(target=self.target, outcome="failed").inc(len(chunk))
                raise

            if response.get("FailedEntryCount", 0) > 0:
                rejected = [e for e in response.get("Entries", []) if e.get("ErrorCode")]
                report.failed += len(chunk)
                report.errors.extend(rejected)
                logger.error(
                    "lead.dispatch.event_bus_partial_failure",
                    vendor=vendor,
                    event_bus=self.event_bus_name,
                    failed=rejected,
                )
                LEADS_DISPATCHED.labels(target=self.target, outcome="failed").inc(len(chunk))
            else:
                report.sent += len(chunk)
                logger.info(
                    "lead.dispatch.event_sent",
                    vendor=vendor,
                    event_bus=self.event_bus_name,
                    leads=len(chunk),
                )
                LEADS_DISPATCHED.labels(target=self.target, outcome="sent").inc(len(chunk))

        return report
