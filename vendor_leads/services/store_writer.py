from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple

from boto3.dynamodb.types import TypeSerializer
from pydantic import ValidationError as PydanticValidationError

from vendor_leads.core.config import Settings
from vendor_leads.core.exceptions import QueueMessageError
from vendor_leads.core.logging import get_structlog_logger
from vendor_leads.schemas.leads import QueuedLeadMessage
from vendor_leads.services.lead_id import resolve_lead_id
from vendor_leads.services.vendors_config import VendorsConfig, VendorsConfigProvider

logger = get_structlog_logger(__name__)

_serializer = TypeSerializer()


@dataclass
class StoreWriteResult:
    """Outcome of persisting one queue batch.

    ``degraded`` means some items were still unprocessed after the last
    attempt and have been dropped.
    """

    received: int = 0
    written: int = 0
    unprocessed: int = 0
    attempts: int = 0
    lead_ids: List[str] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return self.unprocessed > 0


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_lead_item(lead_id: str, vendor: str, lead: Any, received_at: str) -> Dict[str, Any]:
    """DynamoDB item (attribute-value format) for one lead."""
    return {
        "LeadId": {"S": f"Lead#{lead_id}"},
        "VendorName": {"S": f"Vendor#{vendor}"},
        "Vendor": {"S": vendor},
        "ReceivedAt": {"S": received_at},
        "Lead": _serializer.serialize(lead),
    }


def backoff_delay_ms(retry_count: int, base_ms: int = 100, max_ms: int = 2000) -> int:
    return min(base_ms * 2 ** retry_count, max_ms)


def parse_records(event: Mapping[str, Any]) -> List[QueuedLeadMessage]:
    """Parse every record body; one bad record fails the whole batch."""
    messages = []
    for index, record in enumerate(event.get("Records") or []):
        try:
            messages.append(QueuedLeadMessage.from_body(record["body"]))
        except (KeyError, TypeError, ValueError, PydanticValidationError) as e:
            raise QueueMessageError(
                f"Record {index} could not be parsed: {e}",
                details={"message_id": record.get("messageId") if isinstance(record, Mapping) else None},
            ) from e
    return messages


class StoreWriter:
    """Persists queued lead messages to the vendor leads table."""

    def __init__(
        self,
        dynamodb_client: Any,
        vendors_config_provider: VendorsConfigProvider,
        settings: Settings,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.dynamodb = dynamodb_client
        self.vendors_config_provider = vendors_config_provider
        self.table_name = settings.vendor_leads_table_name
        self.max_attempts = settings.store_write_max_attempts
        self.base_delay_ms = settings.store_write_base_delay_ms
        self.max_delay_ms = settings.store_write_max_delay_ms
        self._sleep = sleep

    async def process_event(self, event: Optional[Mapping[str, Any]]) -> StoreWriteResult:
        if not event or not event.get("Records"):
            logger.info("store_writer.no_records")
            return StoreWriteResult()

        try:
            messages = parse_records(event)
        except QueueMessageError as e:
            logger.error("store_writer.parse_failed", error=e.message, details=e.details)
            raise

        logger.info("store_writer.records_parsed", count=len(messages))
        result = await self.save_messages(messages)

        if result.degraded:
            logger.error(
                "store_writer.items_dropped",
                table=self.table_name,
                unprocessed=result.unprocessed,
                attempts=result.attempts,
            )
        else:
            logger.info(
                "store_writer.batch_saved",
                table=self.table_name,
                written=result.written,
                attempts=result.attempts,
            )
        return result

    def build_put_requests(
        self,
        messages: List[QueuedLeadMessage],
        vendors_config: VendorsConfig,
    ) -> Tuple[List[Dict[str, Any]], List[str]]:
        received_at = utc_timestamp()
        requests: Dict[Tuple[str, str], Dict[str, Any]] = {}
        lead_ids: List[str] = []

        for message in messages:
            lead_id = resolve_lead_id(message.lead, vendors_config, message.vendor)
            lead_ids.append(lead_id)
            item = build_lead_item(lead_id, message.vendor, message.lead, received_at)
            key = (item["LeadId"]["S"], item["VendorName"]["S"])
            if key in requests:
                # A batch request may not name the same key twice; last write wins.
                logger.warning("store_writer.duplicate_key_in_batch", lead_id=lead_id, vendor=message.vendor)
            requests[key] = {"PutRequest": {"Item": item}}

        return list(requests.values()), lead_ids

    async def save_messages(self, messages: List[QueuedLeadMessage]) -> StoreWriteResult:
        result = StoreWriteResult(received=len(messages))
        if not messages:
            return result

        vendors_config = await self.vendors_config_provider.load_async()
        put_requests, result.lead_ids = self.build_put_requests(messages, vendors_config)

        unprocessed: Dict[str, List[Dict[str, Any]]] = {self.table_name: put_requests}
        retry_count = 0

        while unprocessed and retry_count < self.max_attempts:
            if retry_count > 0:
                delay = backoff_delay_ms(retry_count, self.base_delay_ms, self.max_delay_ms)
                await self._sleep(delay / 1000)

            result.attempts += 1
            try:
                response = await asyncio.to_thread(
                    self.dynamodb.batch_write_item,
                    RequestItems=unprocessed,
                )
            except Exception as e:
                retry_count += 1
                logger.error(
                    "store_writer.batch_write_error",
                    attempt=result.attempts,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                if retry_count >= self.max_attempts:
                    raise
                continue

            unprocessed = {
                table: items
                for table, items in (response.get("UnprocessedItems") or {}).items()
                if items
            }
            if unprocessed:
                retry_count += 1
                logger.warning(
                    "store_writer.retrying_unprocessed",
                    attempt=result.attempts,
                    unprocessed=_count_items(unprocessed),
                )

        result.unprocessed = _count_items(unprocessed)
        result.written = len(put_requests) - result.unprocessed
        return result


def _count_items(request_items: Mapping[str, List[Any]]) -> int:
    return sum(len(items) for items in request_items.values())
