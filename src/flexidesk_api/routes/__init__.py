"""API routes package.

Routers are organized by audience:

- health: Health check endpoints
- listings: Listing detail, quotes, availability and checkout intent
- client: Client bookings, reviews and account
- owner: Owner bookings, refunds, analytics, reviews and policy editor
- admin: Cancellations, analytics, occupancy and review moderation

All routers are registered in main.py with /api prefix.
"""

from flexidesk_api.routes.admin import router as admin_router
from flexidesk_api.routes.client import router as client_router
from flexidesk_api.routes.health import router as health_router
from flexidesk_api.routes.listings import router as listings_router
from flexidesk_api.routes.owner import router as owner_router

__all__ = [
    "admin_router",
    "client_router",
    "health_router",
    "listings_router",
    "owner_router",
]
