"""
Component wiring. Settings are built once per process and passed in
explicitly; nothing below reads the environment itself.
"""
from __future__ import annotations

from fastapi import Request

from vendor_leads.core.config import Settings
from vendor_leads.services.aws import get_aws_client
from vendor_leads.services.ingestion import LeadIngestionService
from vendor_leads.services.lead_dispatch import EventBusDispatcher, QueueDispatcher
from vendor_leads.services.store_writer import StoreWriter
from vendor_leads.services.vendors_config import VendorsConfigProvider


def build_vendors_config_provider(settings: Settings) -> VendorsConfigProvider:
    return VendorsConfigProvider(get_aws_client("ssm", settings), settings)


def build_ingestion_service(settings: Settings) -> LeadIngestionService:
    return LeadIngestionService(
        vendors_config_provider=build_vendors_config_provider(settings),
        queue_dispatcher=QueueDispatcher(get_aws_client("sqs", settings), settings),
        event_dispatcher=EventBusDispatcher(get_aws_client("events", settings), settings),
    )


def build_store_writer(settings: Settings) -> StoreWriter:
    return StoreWriter(
        dynamodb_client=get_aws_client("dynamodb", settings),
        vendors_config_provider=build_vendors_config_provider(settings),
        settings=settings,
    )


def get_ingestion_service(request: Request) -> LeadIngestionService:
    service = getattr(request.app.state, "ingestion_service", None)
    if service is None:
        service = build_ingestion_service(request.app.state.settings)
        request.app.state.ingestion_service = service
    return service


def get_vendors_config_provider(request: Request) -> VendorsConfigProvider:
    return get_ingestion_service(request).vendors_config_provider
