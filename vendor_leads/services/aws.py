from __future__ import annotations

import threading
from typing import Any, Dict, Optional, Tuple

import boto3
from botocore.config import Config

from vendor_leads.core.config import Settings
from vendor_leads.core.logging import get_structlog_logger

logger = get_structlog_logger(__name__)

# boto3 clients are thread-safe once built; building them is not.
_clients: Dict[Tuple[str, Optional[str], Optional[str]], Any] = {}
_clients_lock = threading.Lock()

_client_config = Config(
    retries={"max_attempts": 3, "mode": "standard"},
    connect_timeout=5,
    read_timeout=10,
)


def get_aws_client(service_name: str, settings: Settings) -> Any:
    """Return a process-wide boto3 client for ``service_name``."""
    key = (service_name, settings.aws_region, settings.aws_endpoint_url)

    client = _clients.get(key)
    if client is not None:
        return client

    with _clients_lock:
        client = _clients.get(key)
        if client is None:
            client = boto3.client(
                service_name,
                region_name=settings.aws_region,
                endpoint_url=settings.aws_endpoint_url,
                config=_client_config,
            )
            _clients[key] = client
            logger.info(
                "aws.client_created",
                service=service_name,
                region=settings.aws_region,
                endpoint_url=settings.aws_endpoint_url,
            )
    return client


def close_aws_clients() -> None:
    """Close and forget every cached client."""
    with _clients_lock:
        for client in _clients.values():
            client.close()
        _clients.clear()
    logger.info("aws.clients_closed")
