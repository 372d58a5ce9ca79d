"""Review models: listing reviews, submissions, moderation and analytics."""

from typing import Any, Optional

from pydantic import Field

from flexidesk.models.base import CamelModel
from flexidesk.models.enums import FlagReason, ModerationAction


class ListingReview(CamelModel):
    """A visible review as shown on a listing page."""

    id: str
    user_id: Optional[str] = None
    author_name: str = "Guest"
    rating: float = 0
    comment: str = ""
    created_at: Optional[str] = None
    is_edited: bool = False
    edited_at: Optional[str] = None
    photos: list[Any] = Field(default_factory=list)
    images: list[Any] = Field(default_factory=list)
    owner_reply: Optional[dict[str, Any]] = None


class ListingReviewsPage(CamelModel):
    """One page of listing reviews plus the star distribution of all of them."""

    items: list[ListingReview] = Field(default_factory=list)
    page: int = 1
    pages: int = 0
    total: int = 0
    average: float = 0
    distribution: dict[int, int] = Field(default_factory=dict)


class EditEligibility(CamelModel):
    eligible: bool = False
    reason: Optional[str] = None
    hours_remaining: Optional[float] = None


class FlagRequest(CamelModel):
    reason: Optional[FlagReason] = None
    details: Optional[str] = None


class ModerationRequest(CamelModel):
    action: ModerationAction
    notes: str = ""


class ReplyRequest(CamelModel):
    text: str = ""


class ModerationQueue(CamelModel):
    """A page of flagged reviews for moderators."""

    reviews: list[dict[str, Any]] = Field(default_factory=list)
    page: int = 1
    pages: int = 1
    total: int = 0
    limit: int = 20


class DistributionBar(CamelModel):
    key: str
    label: str
    count: int = 0
    percentage: float = 0


class ReviewAnalytics(CamelModel):
    """Platform-wide review statistics with derived shares."""

    total_reviews: int = 0
    visible_reviews: int = 0
    average_rating: float = 0
    flagged_count: int = 0
    reviews_with_photos: int = 0
    reviews_with_replies: int = 0
    status_counts: dict[str, int] = Field(default_factory=dict)
    rating_distribution: list[DistributionBar] = Field(default_factory=list)
    flag_reasons: list[DistributionBar] = Field(default_factory=list)
    flagged_share: float = 0
    photo_share: float = 0
    reply_rate: float = 0
    period: dict[str, Any] = Field(default_factory=dict)


class OwnerReviewStats(CamelModel):
    total_reviews: int = 0
    average_rating: float = 0
    reply_rate: float = 0
    rating_distribution: dict[int, int] = Field(default_factory=dict)


class OwnerReviewsView(CamelModel):
    """Owner reviews dashboard."""

    reviews: list[dict[str, Any]] = Field(default_factory=list)
    stats: OwnerReviewStats = Field(default_factory=OwnerReviewStats)
    listings: list[dict[str, Any]] = Field(default_factory=list)
