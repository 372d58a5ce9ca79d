"""Pydantic models for FlexiDesk view state and upstream payloads."""

from .account import AccountView, Preferences, RefundRequest, TripGroup, TripItem
from .analytics import (
    AdminAnalyticsView,
    AnalyticsFilterOptions,
    OccupancyReport,
    OccupancyRow,
    OccupancySummary,
    OwnerAnalyticsSummary,
    OwnerAnalyticsView,
    PrescriptiveInsight,
    SeriesRow,
)
from .availability import AvailabilityResult, BusyCalendar, CalendarDay, TimeSlot
from .base import CamelModel
from .booking import (
    BookingFlags,
    CancellationPreview,
    CancelRequest,
    ClientBooking,
    ClientBookingsView,
    OwnerBookingDetail,
    OwnerBookingsView,
)
from .enums import (
    BookingStatus,
    DayStatus,
    FlagReason,
    ModerationAction,
    OccupancyBucket,
    PolicyType,
    PricingMode,
    RefundStatus,
    ReviewStatus,
    StatusTone,
)
from .errors import (
    ERROR_MESSAGES,
    ERROR_RECOVERY,
    ErrorCode,
    ErrorResponse,
    FlexiDeskError,
    UpstreamError,
)
from .listing import ListingView, RateCard
from .policy import CancellationPolicy, PolicySummary, PolicyTier, RefundPreview
from .quote import CheckoutIntent, Quote, QuoteFees
from .refund import CancellationsPage, OwnerRefundsView, RefundDecision, RefundStats
from .review import (
    EditEligibility,
    FlagRequest,
    ListingReview,
    ListingReviewsPage,
    ModerationQueue,
    ModerationRequest,
    OwnerReviewsView,
    ReplyRequest,
    ReviewAnalytics,
)

__all__ = [
    # Base
    "CamelModel",
    # Enums
    "BookingStatus",
    "DayStatus",
    "FlagReason",
    "ModerationAction",
    "OccupancyBucket",
    "PolicyType",
    "PricingMode",
    "RefundStatus",
    "ReviewStatus",
    "StatusTone",
    # Errors
    "ERROR_MESSAGES",
    "ERROR_RECOVERY",
    "ErrorCode",
    "ErrorResponse",
    "FlexiDeskError",
    "UpstreamError",
    # Listings and quotes
    "CheckoutIntent",
    "ListingView",
    "Quote",
    "QuoteFees",
    "RateCard",
    # Availability
    "AvailabilityResult",
    "BusyCalendar",
    "CalendarDay",
    "TimeSlot",
    # Cancellation policy
    "CancellationPolicy",
    "PolicySummary",
    "PolicyTier",
    "RefundPreview",
    # Bookings
    "BookingFlags",
    "CancellationPreview",
    "CancelRequest",
    "ClientBooking",
    "ClientBookingsView",
    "OwnerBookingDetail",
    "OwnerBookingsView",
    # Refunds
    "CancellationsPage",
    "OwnerRefundsView",
    "RefundDecision",
    "RefundStats",
    # Reviews
    "EditEligibility",
    "FlagRequest",
    "ListingReview",
    "ListingReviewsPage",
    "ModerationQueue",
    "ModerationRequest",
    "OwnerReviewsView",
    "ReplyRequest",
    "ReviewAnalytics",
    # Analytics
    "AdminAnalyticsView",
    "AnalyticsFilterOptions",
    "OccupancyReport",
    "OccupancyRow",
    "OccupancySummary",
    "OwnerAnalyticsSummary",
    "OwnerAnalyticsView",
    "PrescriptiveInsight",
    "SeriesRow",
    # Account
    "AccountView",
    "Preferences",
    "RefundRequest",
    "TripGroup",
    "TripItem",
]
