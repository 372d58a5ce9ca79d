"""Review flows for clients, owners and moderators."""

import json
import math
from collections.abc import Sequence
from typing import Any, Optional

from flexidesk.models.base import as_number, record_id
from flexidesk.models.enums import FlagReason, ModerationAction, ReviewStatus
from flexidesk.models.errors import ErrorCode, FlexiDeskError
from flexidesk.models.review import (
    DistributionBar,
    EditEligibility,
    ListingReview,
    ListingReviewsPage,
    ModerationQueue,
    OwnerReviewStats,
    OwnerReviewsView,
    ReviewAnalytics,
)
from flexidesk.services.api_client import FlexiDeskClient
from flexidesk.utils.csv_export import records_to_csv
from flexidesk.utils.logging import get_logger
from flexidesk.utils.records import as_list, matches, pluck, text, timestamp, with_id

logger = get_logger(__name__)

MIN_COMMENT_CHARS = 10
MAX_COMMENT_CHARS = 500
MAX_PHOTOS = 5
REVIEWS_PER_PAGE = 6

MIN_REPLY_CHARS = 5
MAX_REPLY_CHARS = 300

MODERATION_PAGE_SIZE = 20
OWNER_REVIEWS_LIMIT = 50

FLAG_REASON_LABELS = {
    FlagReason.SPAM.value: "Spam",
    FlagReason.INAPPROPRIATE.value: "Inappropriate Content",
    FlagReason.FAKE.value: "Fake Review",
    FlagReason.PROFANITY.value: "Profanity",
    FlagReason.EXTERNAL_LINKS.value: "External Links",
    FlagReason.CONTACT_INFO.value: "Contact Information",
    FlagReason.OTHER.value: "Other",
}

# (filename, content, content type) for a multipart upload
Photo = tuple[str, bytes, str]


def censor_name(name: Any) -> str:
    """``jane doe`` -> ``Jane D.``; blank names become ``Guest``."""
    parts = str(name or "").split()
    if not parts:
        return "Guest"
    first = parts[0][:1].upper() + parts[0][1:]
    if len(parts) == 1:
        return first
    return f"{first} {parts[-1][:1].upper()}."


def listing_review(raw: dict[str, Any]) -> ListingReview:
    name = pluck(raw, "user.firstName", "user.fullName", "user.name", "userName", "authorName")
    owner_reply = raw.get("ownerReply")
    return ListingReview(
        id=record_id(raw),
        user_id=text(raw, "user._id", "user.id", "userId") or None,
        author_name=censor_name(name),
        rating=as_number(raw.get("rating")),
        comment=text(raw, "comment"),
        created_at=text(raw, "createdAt") or None,
        is_edited=bool(raw.get("isEdited")),
        edited_at=text(raw, "editedAt") or None,
        photos=as_list(raw.get("photos")),
        images=as_list(raw.get("images")),
        owner_reply=owner_reply if isinstance(owner_reply, dict) else None,
    )


def rating_distribution(ratings: Sequence[Any]) -> dict[int, int]:
    """Count of reviews per star, ratings rounded to the nearest star."""
    dist = {star: 0 for star in (5, 4, 3, 2, 1)}
    for value in ratings:
        star = math.floor(as_number(value) + 0.5)
        if 1 <= star <= 5:
            dist[star] += 1
    return dist


def sort_reviews(reviews: list[ListingReview], sort: str = "recent") -> list[ListingReview]:
    if sort == "highest":
        return sorted(reviews, key=lambda r: r.rating, reverse=True)
    if sort == "lowest":
        return sorted(reviews, key=lambda r: r.rating)
    return sorted(reviews, key=lambda r: timestamp(r.created_at), reverse=True)


def validate_submission(rating: Any, comment: Optional[str], photo_count: int = 0) -> dict[str, str]:
    """Field errors for a review submission; empty when valid.

    The comment is optional, but when given it must be at least
    ``MIN_COMMENT_CHARS`` once trimmed and at most ``MAX_COMMENT_CHARS``.
    """
    errors: dict[str, str] = {}
    stars = as_number(rating)
    if not 1 <= stars <= 5:
        errors["rating"] = "Please select a rating"

    body = comment or ""
    trimmed = body.strip()
    if trimmed and len(trimmed) < MIN_COMMENT_CHARS:
        errors["comment"] = f"Review must be at least {MIN_COMMENT_CHARS} characters"
    if len(body) > MAX_COMMENT_CHARS:
        errors["comment"] = f"Review cannot exceed {MAX_COMMENT_CHARS} characters"

    if photo_count > MAX_PHOTOS:
        errors["photos"] = f"Maximum {MAX_PHOTOS} photos allowed"
    return errors


def ensure_valid_submission(rating: Any, comment: Optional[str], photo_count: int = 0) -> None:
    """Raise INVALID_REVIEW with the field errors as details."""
    errors = validate_submission(rating, comment, photo_count)
    if errors:
        raise FlexiDeskError(
            ErrorCode.INVALID_REVIEW,
            details={"errors": errors},
            message=next(iter(errors.values())),
        )


def _multipart(photos: Sequence[Photo]) -> list[tuple[str, Photo]] | None:
    return [("photos", photo) for photo in photos] or None


class ReviewsService:
    """Listing reviews and the client's own review actions."""

    def __init__(self, api: FlexiDeskClient) -> None:
        self.api = api

    async def listing_reviews(
        self,
        listing_id: str,
        sort: str = "recent",
        page: int = 1,
        per_page: int = REVIEWS_PER_PAGE,
    ) -> ListingReviewsPage:
        """Visible reviews for a listing, sorted and paginated locally.

        A failed fetch renders as an empty list.
        """
        try:
            data = await self.api.get("/reviews", params={"listing": listing_id, "status": "visible"})
        except FlexiDeskError as exc:
            logger.warning("Listing reviews unavailable: %s", exc.message)
            data = []

        reviews = [listing_review(r) for r in as_list(data, "reviews") if isinstance(r, dict)]
        ordered = sort_reviews(reviews, sort)
        page = max(1, page)
        start = (page - 1) * per_page
        average = sum(r.rating for r in reviews) / len(reviews) if reviews else 0

        return ListingReviewsPage(
            items=ordered[start : start + per_page],
            page=page,
            pages=math.ceil(len(ordered) / per_page),
            total=len(ordered),
            average=round(average, 1),
            distribution=rating_distribution([r.rating for r in reviews]),
        )

    async def create(
        self,
        booking_id: str,
        rating: Any,
        comment: Optional[str] = None,
        photos: Sequence[Photo] = (),
    ) -> dict[str, Any]:
        """Submit a review for a booking.

        Returns:
            The created review with ``id`` filled

        Raises:
            FlexiDeskError: INVALID_REVIEW when local validation fails
        """
        ensure_valid_submission(rating, comment, len(photos))
        result = await self.api.post(
            f"/reviews/booking/{booking_id}",
            data={"rating": str(int(as_number(rating))), "comment": (comment or "").strip()},
            files=_multipart(photos),
        )
        created = with_id(result) if isinstance(result, dict) else {"id": ""}
        created["id"] = created["id"] or "new"
        logger.info("Review submitted", extra={"booking_id": booking_id})
        return created

    async def edit_eligibility(self, review_id: str) -> EditEligibility:
        data = await self.api.get(f"/reviews/{review_id}/edit-eligibility")
        eligibility = EditEligibility.model_validate(data if isinstance(data, dict) else {})
        if not eligibility.eligible and not eligibility.reason:
            eligibility.reason = "Cannot edit this review"
        return eligibility

    async def update(
        self,
        review_id: str,
        rating: Any,
        comment: Optional[str] = None,
        photos: Sequence[Photo] = (),
        existing_photos: Sequence[str] = (),
    ) -> Any:
        """Edit a review; kept photo URLs are sent as a JSON list.

        Raises:
            FlexiDeskError: INVALID_REVIEW when local validation fails
        """
        ensure_valid_submission(rating, comment, len(photos) + len(existing_photos))
        form = {"rating": str(int(as_number(rating))), "comment": (comment or "").strip()}
        if existing_photos:
            form["photos"] = json.dumps(list(existing_photos))
        result = await self.api.put(f"/reviews/{review_id}", data=form, files=_multipart(photos))
        logger.info("Review updated", extra={"review_id": review_id})
        return result

    async def flag(self, review_id: str, reason: Optional[str], details: Optional[str] = None) -> Any:
        """Report a review to moderators.

        Raises:
            FlexiDeskError: REASON_REQUIRED when no reason is selected
        """
        if not reason:
            raise FlexiDeskError(
                ErrorCode.REASON_REQUIRED,
                message="Please select a reason for flagging this review.",
            )
        body: dict[str, Any] = {"reason": reason}
        if details and details.strip():
            body["details"] = details.strip()
        result = await self.api.post(f"/reviews/{review_id}/flag", json=body)
        logger.info("Review flagged", extra={"review_id": review_id, "reason": reason})
        return result


def moderation_rows(reviews: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Flat export rows; populated references are reduced to name or email."""
    return [
        {
            "id": record_id(r),
            "listing": text(r, "listingId.name", "listingId"),
            "user": text(r, "userId.email", "userId"),
            "rating": r.get("rating"),
            "comment": text(r, "comment"),
            "status": r.get("status"),
            "flagReason": text(r, "flagReason"),
            "flaggedBy": text(r, "flaggedBy.email", "flaggedBy"),
            "flaggedAt": text(r, "flaggedAt"),
            "createdAt": text(r, "createdAt"),
        }
        for r in reviews
    ]


def _share(part: float, whole: float) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


def _bars(counts: dict[str, int], labels: dict[str, str]) -> list[DistributionBar]:
    total = sum(counts.values())
    return [
        DistributionBar(key=key, label=labels.get(key, key), count=count, percentage=_share(count, total))
        for key, count in counts.items()
    ]


def review_analytics(data: Any) -> ReviewAnalytics:
    """Normalize the admin review analytics payload.

    Rating distribution may arrive keyed by star; flag reasons arrive as
    ``[{_id, count}]`` aggregation rows.
    """
    raw = data if isinstance(data, dict) else {}
    total = int(as_number(raw.get("totalReviews")))
    visible = int(as_number(raw.get("visibleReviews")))
    flagged = int(as_number(raw.get("flaggedCount")))
    photos = int(as_number(raw.get("reviewsWithPhotos")))
    replies = int(as_number(raw.get("reviewsWithReplies")))

    dist_raw = raw.get("ratingDistribution") if isinstance(raw.get("ratingDistribution"), dict) else {}
    stars = {str(s): int(as_number(dist_raw.get(str(s), dist_raw.get(s)))) for s in (5, 4, 3, 2, 1)}

    reasons: dict[str, int] = {}
    for row in as_list(raw.get("flagReasons")):
        if isinstance(row, dict) and row.get("_id"):
            reasons[str(row["_id"])] = int(as_number(row.get("count")))

    status_raw = raw.get("statusCounts") if isinstance(raw.get("statusCounts"), dict) else {}

    return ReviewAnalytics(
        total_reviews=total,
        visible_reviews=visible,
        average_rating=round(as_number(raw.get("averageRating")), 2),
        flagged_count=flagged,
        reviews_with_photos=photos,
        reviews_with_replies=replies,
        status_counts={s.value: int(as_number(status_raw.get(s.value))) for s in ReviewStatus},
        rating_distribution=_bars(stars, {s: f"{s} star" for s in stars}),
        flag_reasons=_bars(reasons, FLAG_REASON_LABELS),
        flagged_share=_share(flagged, total),
        photo_share=_share(photos, total),
        reply_rate=_share(replies, visible),
        period=raw["period"] if isinstance(raw.get("period"), dict) else {},
    )


class ModerationService:
    """Admin review moderation queue and analytics."""

    def __init__(self, api: FlexiDeskClient) -> None:
        self.api = api

    async def flagged(
        self,
        status: Optional[str] = ReviewStatus.FLAGGED.value,
        reason: Optional[str] = None,
        search: Optional[str] = None,
        sort: str = "flaggedAt_desc",
        page: int = 1,
        limit: int = MODERATION_PAGE_SIZE,
    ) -> ModerationQueue:
        data = await self.api.get(
            "/admin/reviews/flagged",
            params={
                "page": page,
                "limit": limit,
                "sort": sort,
                "status": None if status in (None, "", "all") else status,
                "reason": None if reason in (None, "", "all") else reason,
                "search": (search or "").strip() or None,
            },
        )
        data = data if isinstance(data, dict) else {}
        return ModerationQueue(
            reviews=[r for r in as_list(data, "reviews") if isinstance(r, dict)],
            page=page,
            pages=int(as_number(data.get("pages"))) or 1,
            total=int(as_number(data.get("total"))),
            limit=limit,
        )

    async def moderate(
        self,
        review_id: str,
        action: ModerationAction,
        notes: str = "",
        **filters: Any,
    ) -> ModerationQueue:
        """Apply a moderation action, then re-fetch the queue with ``filters``."""
        await self.api.post(
            f"/admin/reviews/{review_id}/moderate",
            json={"action": ModerationAction(action).value, "notes": notes},
        )
        logger.info("Review moderated", extra={"review_id": review_id, "action": str(action)})
        return await self.flagged(**filters)

    async def analytics(self, start_date: Optional[str] = None, end_date: Optional[str] = None) -> ReviewAnalytics:
        data = await self.api.get(
            "/admin/reviews/analytics",
            params={"startDate": start_date, "endDate": end_date},
        )
        return review_analytics(data)

    def export_csv(self, reviews: list[dict[str, Any]]) -> str:
        return records_to_csv(moderation_rows(reviews))


def validate_reply(reply: Optional[str]) -> str:
    """Trimmed reply text.

    Raises:
        FlexiDeskError: INVALID_REVIEW when blank, too short or too long
    """
    body = reply or ""
    trimmed = body.strip()
    if not trimmed:
        message = "Reply text is required"
    elif len(trimmed) < MIN_REPLY_CHARS:
        message = f"Reply must be at least {MIN_REPLY_CHARS} characters"
    elif len(body) > MAX_REPLY_CHARS:
        message = f"Reply must not exceed {MAX_REPLY_CHARS} characters"
    else:
        return trimmed
    raise FlexiDeskError(ErrorCode.INVALID_REVIEW, details={"errors": {"text": message}}, message=message)


def _has_reply(review: dict[str, Any]) -> bool:
    return bool(text(review, "ownerReply.text"))


def owner_review_stats(reviews: list[dict[str, Any]], given: Any = None) -> OwnerReviewStats:
    """KPIs from the API's ``stats`` where present, else computed from rows."""
    stats = given if isinstance(given, dict) else {}
    ratings = [r.get("rating") for r in reviews]
    computed_avg = sum(as_number(v) for v in ratings) / len(ratings) if ratings else 0
    computed_rate = _share(sum(1 for r in reviews if _has_reply(r)), len(reviews))

    return OwnerReviewStats(
        total_reviews=int(as_number(stats.get("totalReviews"), default=len(reviews))),
        average_rating=round(as_number(stats.get("averageRating"), default=computed_avg), 1),
        reply_rate=as_number(stats.get("replyRate"), default=computed_rate),
        rating_distribution=rating_distribution(ratings),
    )


class OwnerReviewsService:
    """Reviews of an owner's listings and owner replies."""

    def __init__(self, api: FlexiDeskClient) -> None:
        self.api = api

    async def load(
        self,
        listing_id: Optional[str] = None,
        reply_filter: str = "all",
        sort: str = "recent",
        query: str = "",
    ) -> OwnerReviewsView:
        """Owner reviews, KPIs and the listing filter options.

        Args:
            listing_id: Restrict to one listing (``all`` for none)
            reply_filter: ``all``, ``replied`` or ``unreplied``
            sort: Upstream sort key
            query: Local search over listing name, reviewer and comment
        """
        has_reply = {"replied": "true", "unreplied": "false"}.get(reply_filter)
        data = await self.api.get(
            "/reviews/owner/my-reviews",
            params={
                "status": ReviewStatus.VISIBLE.value,
                "sort": sort,
                "limit": OWNER_REVIEWS_LIMIT,
                "listingId": None if listing_id in (None, "", "all") else listing_id,
                "hasReply": has_reply,
            },
        )
        reviews = [with_id(r) for r in as_list(data, "reviews") if isinstance(r, dict)]
        visible = [
            r
            for r in reviews
            if matches(
                query,
                text(r, "listingId.venue", "listingId.shortDesc", "listing.venue", "listing.shortDesc"),
                text(r, "userId.name", "userId.fullName", "userId.firstName", "user.name", "user.fullName"),
                text(r, "comment"),
            )
        ]
        return OwnerReviewsView(
            reviews=visible,
            stats=owner_review_stats(reviews, data.get("stats") if isinstance(data, dict) else None),
            listings=await self.listings(),
        )

    async def listings(self) -> list[dict[str, Any]]:
        try:
            data = await self.api.get("/owner/listings/mine")
        except FlexiDeskError as exc:
            logger.warning("Owner listings unavailable: %s", exc.message)
            return []
        return [with_id(i) for i in as_list(data, "items") if isinstance(i, dict)]

    async def reply(self, review_id: str, reply_text: Optional[str], editing: bool = False) -> Any:
        """Post a reply, or replace the existing one when ``editing``."""
        body = {"text": validate_reply(reply_text)}
        if editing:
            result = await self.api.put(f"/reviews/{review_id}/reply", json=body)
        else:
            result = await self.api.post(f"/reviews/{review_id}/reply", json=body)
        logger.info("Owner replied to review", extra={"review_id": review_id, "editing": editing})
        return result
