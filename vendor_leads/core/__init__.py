"""
Core package for configuration, logging, and shared exceptions.
"""

from vendor_leads.core.config import Settings, get_settings
from vendor_leads.core.logging import configure_structlog, get_structlog_logger

__all__ = [
    "Settings",
    "get_settings",
    "configure_structlog",
    "get_structlog_logger",
]
