"""
Store writer worker: drains the leads queue into the vendor leads table.

Two entry points share the same processing:

* ``handler(event, context)`` for an SQS event source mapping;
* ``worker_main()`` long-polls the queue itself and deletes a batch only
  after it was processed without raising. Anything else is left for the
  queue to redeliver and, after its max receive count, dead-letter.
"""
from __future__ import annotations

import asyncio
import signal
from typing import Any, Dict, List, Optional

from vendor_leads.core.config import Settings, get_settings
from vendor_leads.core.exceptions import ConfigurationError
from vendor_leads.core.logging import configure_structlog, get_structlog_logger
from vendor_leads.dependencies import build_store_writer
from vendor_leads.services.aws import close_aws_clients, get_aws_client
from vendor_leads.services.metrics import STORE_WRITES
from vendor_leads.services.store_writer import StoreWriter, StoreWriteResult

logger = get_structlog_logger(__name__)

_store_writer: Optional[StoreWriter] = None


def record_result(result: StoreWriteResult) -> None:
    STORE_WRITES.labels(outcome="written").inc(result.written)
    if result.degraded:
        STORE_WRITES.labels(outcome="dropped").inc(result.unprocessed)


def handler(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """SQS event source entry point.

    Raising makes the whole batch visible again; an empty
    ``batchItemFailures`` list acknowledges every record.
    """
    global _store_writer
    if _store_writer is None:
        settings = get_settings()
        configure_structlog(settings)
        _store_writer = build_store_writer(settings)

    result = asyncio.run(_store_writer.process_event(event))
    record_result(result)
    return {"batchItemFailures": []}


def messages_to_event(messages: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Shape ``receive_message`` output like an SQS event source batch."""
    return {
        "Records": [
            {
                "messageId": message["MessageId"],
                "receiptHandle": message["ReceiptHandle"],
                "body": message["Body"],
                "attributes": message.get("Attributes", {}),
                "eventSource": "aws:sqs",
            }
            for message in messages
        ]
    }


class StoreWriterWorker:
    def __init__(self, sqs_client: Any, store_writer: StoreWriter, settings: Settings):
        if not settings.leads_queue_url:
            raise ConfigurationError("LEADS_TO_DYNAMODB_SQS_URL must be set to run the store writer worker")
        self.sqs = sqs_client
        self.store_writer = store_writer
        self.queue_url = settings.leads_queue_url
        self.wait_time_seconds = settings.worker_wait_time_seconds
        self.max_messages = settings.worker_max_messages
        self.visibility_timeout = settings.worker_visibility_timeout
        self._stopping = asyncio.Event()

    def stop(self) -> None:
        logger.info("store_writer_worker.stopping")
        self._stopping.set()

    async def poll_once(self) -> int:
        """Receive and process one batch; returns the number of messages handled."""
        response = await asyncio.to_thread(
            self.sqs.receive_message,
            QueueUrl=self.queue_url,
            MaxNumberOfMessages=self.max_messages,
            WaitTimeSeconds=self.wait_time_seconds,
            VisibilityTimeout=self.visibility_timeout,
            AttributeNames=["ApproximateReceiveCount"],
        )
        messages = response.get("Messages") or []
        if not messages:
            return 0

        try:
            result = await self.store_writer.process_event(messages_to_event(messages))
        except Exception as e:
            logger.error(
                "store_writer_worker.batch_failed",
                messages=len(messages),
                error_type=type(e).__name__,
                error=str(e),
            )
            return 0

        record_result(result)
        await self.delete_messages(messages)
        return len(messages)

    async def delete_messages(self, messages: List[Dict[str, Any]]) -> None:
        entries = [
            {"Id": str(index), "ReceiptHandle": message["ReceiptHandle"]}
            for index, message in enumerate(messages)
        ]
        response = await asyncio.to_thread(
            self.sqs.delete_message_batch,
            QueueUrl=self.queue_url,
            Entries=entries,
        )
        failed = response.get("Failed") or []
        if failed:
            logger.warning("store_writer_worker.delete_failed", failed=failed)

    async def run(self) -> None:
        logger.info(
            "store_writer_worker.started",
            queue_url=self.queue_url,
            max_messages=self.max_messages,
        )
        while not self._stopping.is_set():
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("store_writer_worker.poll_error", error=str(e))
                await asyncio.sleep(5)
        logger.info("store_writer_worker.stopped")


async def worker_main(settings: Optional[Settings] = None) -> None:
    settings = settings or get_settings()
    configure_structlog(settings)

    worker = StoreWriterWorker(
        sqs_client=get_aws_client("sqs", settings),
        store_writer=build_store_writer(settings),
        settings=settings,
    )

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, worker.stop)
        except NotImplementedError:
            # Windows event loops have no signal handler support.
            pass

    try:
        await worker.run()
    finally:
        close_aws_clients()


def run() -> None:
    asyncio.run(worker_main())


if __name__ == "__main__":
    run()
