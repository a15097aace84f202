import json
import os
from typing import Any, Dict, List, Optional

os.environ.setdefault("ENVIRONMENT", "testing")

import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient

from vendor_leads.core.config import Settings
from vendor_leads.main import create_app
from vendor_leads.services.ingestion import LeadIngestionService
from vendor_leads.services.lead_dispatch import EventBusDispatcher, QueueDispatcher
from vendor_leads.services.store_writer import StoreWriter
from vendor_leads.services.vendors_config import VendorsConfigProvider

QUEUE_URL = "https://sqs.us-east-1.amazonaws.com/123456789012/test-vendor-leads-ddb-queue"

VENDORS_CONFIG = {
    "lendingtree": {"leadIdProperty": "Internal_LeadID"},
    "lendgo": {"leadIdProperty": "universal_leadid"},
    "nested": {"leadIdProperty": "user.id"},
}


def client_error(code: str, operation: str, message: str = "boom") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


class FakeSSM:
    def __init__(self, value: Optional[str] = None, error: Optional[Exception] = None):
        self.value = value
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def get_parameter(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        if self.value is None:
            raise client_error("ParameterNotFound", "GetParameter")
        return {"Parameter": {"Name": kwargs["Name"], "Value": self.value}}


class FakeSQS:
    def __init__(self):
        self.sent: List[Dict[str, Any]] = []
        self.deleted: List[Dict[str, Any]] = []
        self.incoming: List[List[Dict[str, Any]]] = []
        self.send_errors: List[Optional[Exception]] = []
        self.failed_ids: List[str] = []

    def send_message_batch(self, QueueUrl, Entries):
        error = self.send_errors.pop(0) if self.send_errors else None
        if error:
            raise error
        self.sent.append({"QueueUrl": QueueUrl, "Entries": Entries})
        failed = [
            {"Id": e["Id"], "SenderFault": False, "Code": "InternalError"}
            for e in Entries
            if e["Id"] in self.failed_ids
        ]
        successful = [{"Id": e["Id"], "MessageId": f"msg-{e['Id']}"} for e in Entries if e["Id"] not in self.failed_ids]
        response = {"Successful": successful}
        if failed:
            response["Failed"] = failed
        return response

    def receive_message(self, **kwargs):
        if not self.incoming:
            return {}
        return {"Messages": self.incoming.pop(0)}

    def delete_message_batch(self, QueueUrl, Entries):
        self.deleted.append({"QueueUrl": QueueUrl, "Entries": Entries})
        return {"Successful": [{"Id": e["Id"]} for e in Entries]}

    @property
    def messages(self) -> List[Dict[str, Any]]:
        return [json.loads(e["MessageBody"]) for call in self.sent for e in call["Entries"]]


class FakeEvents:
    def __init__(self):
        self.calls: List[List[Dict[str, Any]]] = []
        self.error: Optional[Exception] = None
        self.fail_entries = False

    def put_events(self, Entries):
        if self.error:
            raise self.error
        self.calls.append(Entries)
        if self.fail_entries:
            return {
                "FailedEntryCount": len(Entries),
                "Entries": [{"ErrorCode": "InternalFailure", "ErrorMessage": "nope"} for _ in Entries],
            }
        return {"FailedEntryCount": 0, "Entries": [{"EventId": f"evt-{len(self.calls)}"} for _ in Entries]}

    @property
    def details(self) -> List[Dict[str, Any]]:
        return [json.loads(entry["Detail"]) for call in self.calls for entry in call]


class FakeDynamoDB:
    """``batch_write_item`` against an in-memory table keyed by (LeadId, VendorName).

    ``unprocessed_plan`` holds, per call, how many of the requested items
    to hand back as unprocessed; ``errors`` holds exceptions to raise per call.
    """

    def __init__(self):
        self.tables: Dict[str, Dict[tuple, Dict[str, Any]]] = {}
        self.calls: List[Dict[str, Any]] = []
        self.unprocessed_plan: List[int] = []
        self.errors: List[Optional[Exception]] = []

    def batch_write_item(self, RequestItems):
        self.calls.append(RequestItems)
        error = self.errors.pop(0) if self.errors else None
        if error:
            raise error

        keep_back = self.unprocessed_plan.pop(0) if self.unprocessed_plan else 0
        unprocessed = {}
        for table, requests in RequestItems.items():
            split = len(requests) - keep_back
            for request in requests[:split]:
                item = request["PutRequest"]["Item"]
                key = (item["LeadId"]["S"], item["VendorName"]["S"])
                self.tables.setdefault(table, {})[key] = item
            if keep_back:
                unprocessed[table] = requests[split:]
        return {"UnprocessedItems": unprocessed}

    def items(self, table: str) -> List[Dict[str, Any]]:
        return list(self.tables.get(table, {}).values())


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        ENVIRONMENT="testing",
        STAGE="test",
        LEADS_TO_DYNAMODB_SQS_URL=QUEUE_URL,
        VENDORS_CONFIG_CACHE_TTL_SECONDS=0,
    )


@pytest.fixture
def ssm():
    return FakeSSM(value=json.dumps(VENDORS_CONFIG))


@pytest.fixture
def sqs():
    return FakeSQS()


@pytest.fixture
def events():
    return FakeEvents()


@pytest.fixture
def dynamodb():
    return FakeDynamoDB()


@pytest.fixture
def vendors_config_provider(ssm, settings):
    return VendorsConfigProvider(ssm, settings)


@pytest.fixture
def ingestion_service(vendors_config_provider, sqs, events, settings):
    return LeadIngestionService(
        vendors_config_provider=vendors_config_provider,
        queue_dispatcher=QueueDispatcher(sqs, settings),
        event_dispatcher=EventBusDispatcher(events, settings),
    )


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def store_writer(dynamodb, vendors_config_provider, settings, sleeps):
    async def fake_sleep(seconds):
        sleeps.append(seconds)

    return StoreWriter(dynamodb, vendors_config_provider, settings, sleep=fake_sleep)


@pytest.fixture
def client(settings, ingestion_service):
    app = create_app(settings)
    app.state.ingestion_service = ingestion_service
    return TestClient(app)


@pytest.fixture
def sqs_event():
    def _build(*messages: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "Records": [
                {"messageId": f"m-{i}", "body": json.dumps(message), "eventSource": "aws:sqs"}
                for i, message in enumerate(messages)
            ]
        }

    return _build
