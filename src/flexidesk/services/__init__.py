"""View services for FlexiDesk pages."""

from .account import AccountService
from .analytics import AdminAnalyticsService, OccupancyService, OwnerAnalyticsService
from .api_client import FlexiDeskClient
from .availability import AvailabilityService
from .bookings import ClientBookingsService, OwnerBookingsService
from .cancellations import CancellationsService
from .listings import ListingsService
from .policy import PolicyService
from .pricing import PricingService
from .refunds import OwnerRefundsService
from .reviews import ModerationService, OwnerReviewsService, ReviewsService

__all__ = [
    "FlexiDeskClient",
    "AccountService",
    "AdminAnalyticsService",
    "AvailabilityService",
    "CancellationsService",
    "ClientBookingsService",
    "ListingsService",
    "ModerationService",
    "OccupancyService",
    "OwnerAnalyticsService",
    "OwnerBookingsService",
    "OwnerRefundsService",
    "OwnerReviewsService",
    "PolicyService",
    "PricingService",
    "ReviewsService",
]
