"""Enumeration types for FlexiDesk view models."""

from enum import Enum


class BookingStatus(str, Enum):
    """Status of a booking as reported by the API."""

    PENDING_PAYMENT = "pending_payment"
    AWAITING_PAYMENT = "awaiting_payment"
    PAID = "paid"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RefundStatus(str, Enum):
    """Status of a cancellation request / refund case."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ReviewStatus(str, Enum):
    """Moderation status of a review."""

    VISIBLE = "visible"
    HIDDEN = "hidden"
    FLAGGED = "flagged"
    DELETED = "deleted"


class ModerationAction(str, Enum):
    """Admin action on a flagged review."""

    APPROVE = "approve"
    HIDE = "hide"
    DELETE = "delete"


class FlagReason(str, Enum):
    """Reason a review was flagged."""

    SPAM = "spam"
    INAPPROPRIATE = "inappropriate"
    FAKE = "fake"
    PROFANITY = "profanity"
    EXTERNAL_LINKS = "external_links"
    CONTACT_INFO = "contact_info"
    OTHER = "other"


class PricingMode(str, Enum):
    """Unit the quote is charged in."""

    HOUR = "hour"
    DAY = "day"
    MONTH = "month"


class PolicyType(str, Enum):
    """Cancellation policy template."""

    FLEXIBLE = "flexible"
    MODERATE = "moderate"
    STRICT = "strict"
    CUSTOM = "custom"
    NONE = "none"


class OccupancyBucket(str, Enum):
    """Utilisation band of a workspace."""

    CRITICAL = "critical"
    LOW = "low"
    HEALTHY = "healthy"
    HOT = "hot"


class DayStatus(str, Enum):
    """Busy-calendar classification of a single day."""

    AVAILABLE = "available"
    PARTIALLY_BOOKED = "partially-booked"
    FULLY_BOOKED = "fully-booked"


class StatusTone(str, Enum):
    """Badge tone used for account status chips."""

    SUCCESS = "success"
    WARN = "warn"
    DANGER = "danger"
    NEUTRAL = "neutral"
