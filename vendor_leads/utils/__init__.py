"""
Small helpers shared across services.
"""

from vendor_leads.utils.object_utils import get_nested_property

__all__ = ["get_nested_property"]
