"""
API route handlers.
"""

from vendor_leads.routes.health import router as health_router
from vendor_leads.routes.leads import router as leads_router

__all__ = [
    "health_router",
    "leads_router",
]
