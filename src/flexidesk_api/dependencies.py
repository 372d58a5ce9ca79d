"""FastAPI dependency injection providers for gateway services.

Stateless services are cached with @lru_cache. Services that call the
upstream API are built per request around a FlexiDeskClient that carries the
caller's bearer token and is closed when the request finishes.

Usage in routes:
    from flexidesk_api.dependencies import get_owner_refunds_service

    @router.get("/owner/refunds")
    async def list_refunds(
        service: OwnerRefundsService = Depends(get_owner_refunds_service),
    ):
        ...

Service Dependency Graph:
    Settings (singleton via get_settings)
        └── FlexiDeskClient (per request, get_api_client)
                ├── AvailabilityService, CancellationsService, ...
                └── every other page service

Testing:
    Override get_api_client with a client built on httpx.MockTransport, and
    use reset_services() to clear cached instances between tests.
"""

from collections.abc import AsyncIterator
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Request

from flexidesk.config import Settings, get_settings
from flexidesk.services.account import AccountService
from flexidesk.services.analytics import (
    AdminAnalyticsService,
    OccupancyService,
    OwnerAnalyticsService,
)
from flexidesk.services.api_client import FlexiDeskClient
from flexidesk.services.availability import AvailabilityService
from flexidesk.services.bookings import ClientBookingsService, OwnerBookingsService
from flexidesk.services.cancellations import CancellationsService
from flexidesk.services.listings import ListingsService
from flexidesk.services.policy import PolicyService
from flexidesk.services.pricing import PricingService
from flexidesk.services.refunds import OwnerRefundsService
from flexidesk.services.reviews import ModerationService, OwnerReviewsService, ReviewsService

REFRESH_TOKEN_HEADER = "X-Refresh-Token"


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_api_client(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> AsyncIterator[FlexiDeskClient]:
    """Per-request upstream client forwarding the caller's credentials."""
    async with FlexiDeskClient.from_settings(
        settings,
        token=bearer_token(request.headers.get("Authorization")),
        refresh_token=request.headers.get(REFRESH_TOKEN_HEADER),
    ) as client:
        yield client


@lru_cache
def get_pricing_service() -> PricingService:
    return PricingService()


@lru_cache
def get_policy_service() -> PolicyService:
    return PolicyService()


def get_availability_service(api: FlexiDeskClient = Depends(get_api_client)) -> AvailabilityService:
    return AvailabilityService(api)


def get_listings_service(
    api: FlexiDeskClient = Depends(get_api_client),
    pricing: PricingService = Depends(get_pricing_service),
    policies: PolicyService = Depends(get_policy_service),
) -> ListingsService:
    return ListingsService(api, pricing, policies)


def get_cancellations_service(api: FlexiDeskClient = Depends(get_api_client)) -> CancellationsService:
    return CancellationsService(api)


def get_admin_analytics_service(api: FlexiDeskClient = Depends(get_api_client)) -> AdminAnalyticsService:
    return AdminAnalyticsService(api)


def get_occupancy_service(api: FlexiDeskClient = Depends(get_api_client)) -> OccupancyService:
    return OccupancyService(api)


def get_moderation_service(api: FlexiDeskClient = Depends(get_api_client)) -> ModerationService:
    return ModerationService(api)


def get_owner_bookings_service(api: FlexiDeskClient = Depends(get_api_client)) -> OwnerBookingsService:
    return OwnerBookingsService(api)


def get_owner_refunds_service(api: FlexiDeskClient = Depends(get_api_client)) -> OwnerRefundsService:
    return OwnerRefundsService(api)


def get_owner_analytics_service(api: FlexiDeskClient = Depends(get_api_client)) -> OwnerAnalyticsService:
    return OwnerAnalyticsService(api)


def get_owner_reviews_service(api: FlexiDeskClient = Depends(get_api_client)) -> OwnerReviewsService:
    return OwnerReviewsService(api)


def get_client_bookings_service(api: FlexiDeskClient = Depends(get_api_client)) -> ClientBookingsService:
    return ClientBookingsService(api)


def get_reviews_service(api: FlexiDeskClient = Depends(get_api_client)) -> ReviewsService:
    return ReviewsService(api)


def get_account_service(api: FlexiDeskClient = Depends(get_api_client)) -> AccountService:
    return AccountService(api)


def reset_services() -> None:
    """Clear all cached service and settings instances.

    Example:
        @pytest.fixture(autouse=True)
        def reset_state():
            yield
            reset_services()
    """
    get_pricing_service.cache_clear()
    get_policy_service.cache_clear()
    get_settings.cache_clear()
