"""Owner (host) dashboard endpoints.

Provides REST endpoints for:
- Bookings list, detail, completion and status changes
- Refund requests with approve/reject and CSV export
- Financial analytics with optional predictions and recommendations
- Reviews of the owner's listings and replies
- Cancellation policy templates and validation for the listing editor
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Response

from flexidesk.models.analytics import OwnerAnalyticsView
from flexidesk.models.booking import OwnerBookingDetail, OwnerBookingsView
from flexidesk.models.enums import PolicyType
from flexidesk.models.policy import CancellationPolicy, PolicySummary
from flexidesk.models.refund import OwnerRefundsView, RefundDecision
from flexidesk.models.review import OwnerReviewsView, ReplyRequest
from flexidesk.services.analytics import OwnerAnalyticsService
from flexidesk.services.bookings import OWNER_PAGE_SIZE, OWNER_SORTS, OwnerBookingsService
from flexidesk.services.policy import PolicyService
from flexidesk.services.refunds import REFUND_SORTS, OwnerRefundsService
from flexidesk.services.reviews import OwnerReviewsService
from flexidesk.utils.csv_export import export_filename
from flexidesk_api.dependencies import (
    get_owner_analytics_service,
    get_owner_bookings_service,
    get_owner_refunds_service,
    get_owner_reviews_service,
    get_policy_service,
)
from flexidesk_api.models.requests import StatusChangeRequest
from flexidesk_api.responses import csv_response

router = APIRouter(tags=["owner"])


# Bookings


@router.get(
    "/owner/bookings",
    summary="List my bookings",
    description="""
One page of the owner's bookings, searched and sorted locally.

**Sorts:** `created_desc`, `created_asc`, `checkin_desc`, `checkin_asc`,
`amount_desc`, `amount_asc`

Totals (count, revenue, guests) cover the fetched page before search.
""",
    response_model=OwnerBookingsView,
)
async def list_bookings(
    status: Optional[str] = Query(None, description="Booking status (`all` for none)"),
    cursor: Optional[str] = Query(None, description="Pagination cursor"),
    q: str = Query("", description="Search over listing title, city and guest"),
    sort: str = Query("created_desc", description=f"One of {', '.join(OWNER_SORTS)}"),
    limit: int = Query(OWNER_PAGE_SIZE, ge=1, le=100, description="Page size"),
    service: OwnerBookingsService = Depends(get_owner_bookings_service),
) -> OwnerBookingsView:
    return await service.load(status=status, cursor=cursor, query=q, sort=sort, limit=limit)


@router.get(
    "/owner/bookings/{booking_id}",
    summary="Get booking detail",
    response_model=OwnerBookingDetail,
)
async def get_booking(
    booking_id: str,
    service: OwnerBookingsService = Depends(get_owner_bookings_service),
) -> OwnerBookingDetail:
    return await service.detail(booking_id)


@router.post(
    "/owner/bookings/{booking_id}/complete",
    summary="Mark a booking completed",
    description="Allowed only from paid, confirmed or checked-in bookings.",
    response_model=OwnerBookingDetail,
    responses={409: {"description": "Booking cannot be completed from its status"}},
)
async def complete_booking(
    booking_id: str,
    service: OwnerBookingsService = Depends(get_owner_bookings_service),
) -> OwnerBookingDetail:
    return await service.complete(booking_id)


@router.patch(
    "/owner/bookings/{booking_id}/status",
    summary="Change booking status",
    description="""
Move a booking to another status.

**Allowed transitions:**
- paid → completed, cancelled
- pending_payment, awaiting_payment → cancelled
- every other status is terminal
""",
    response_model=OwnerBookingDetail,
    responses={409: {"description": "Transition not allowed"}},
)
async def change_booking_status(
    booking_id: str,
    body: StatusChangeRequest,
    service: OwnerBookingsService = Depends(get_owner_bookings_service),
) -> OwnerBookingDetail:
    return await service.change_status(booking_id, body.status)


# Refunds


@router.get(
    "/owner/refunds",
    summary="List refund requests",
    description="""
Refund requests on the owner's listings with KPIs.

**Sorts:** `requested_desc`, `requested_asc`, `amount_desc`, `amount_asc`

Stats cover everything the upstream returned, before the local search.
""",
    response_model=OwnerRefundsView,
)
async def list_refunds(
    status: Optional[str] = Query(None, description="Request status (`all` for none)"),
    listing_id: Optional[str] = Query(None, description="Listing filter (`all` for none)"),
    date_range: Optional[str] = Query(None, description="today, week or month"),
    q: str = Query("", description="Search over client, listing and booking code"),
    sort: str = Query("requested_desc", description=f"One of {', '.join(REFUND_SORTS)}"),
    service: OwnerRefundsService = Depends(get_owner_refunds_service),
) -> OwnerRefundsView:
    return await service.load(status, listing_id, date_range, q, sort)


@router.get(
    "/owner/refunds/export.csv",
    summary="Export refund requests",
    description="CSV of the requests the list endpoint returns for the same filters.",
    response_class=Response,
)
async def export_refunds(
    status: Optional[str] = Query(None),
    listing_id: Optional[str] = Query(None),
    date_range: Optional[str] = Query(None),
    q: str = Query(""),
    sort: str = Query("requested_desc"),
    service: OwnerRefundsService = Depends(get_owner_refunds_service),
) -> Response:
    view = await service.load(status, listing_id, date_range, q, sort)
    return csv_response(
        service.export_csv(view.items),
        export_filename("refund-requests", separator="-"),
    )


@router.post(
    "/owner/refunds/{request_id}/approve",
    summary="Approve a refund request",
)
async def approve_refund(
    request_id: str,
    body: Optional[RefundDecision] = None,
    service: OwnerRefundsService = Depends(get_owner_refunds_service),
) -> Any:
    return await service.approve(request_id, body.notes if body else None)


@router.post(
    "/owner/refunds/{request_id}/reject",
    summary="Reject a refund request",
    description="A non-blank reason is required.",
    responses={400: {"description": "Reason missing"}},
)
async def reject_refund(
    request_id: str,
    body: RefundDecision,
    service: OwnerRefundsService = Depends(get_owner_refunds_service),
) -> Any:
    return await service.reject(request_id, body.reason)


# Analytics


@router.get(
    "/owner/analytics",
    summary="Get financial analytics",
    description="""
Summary KPIs with earnings and occupancy series, plus predictions and
recommendations when available.

A month without a year uses the current year. Series missing from the
summary are derived from its averages.
""",
    response_model=OwnerAnalyticsView,
)
async def get_analytics(
    listing_id: Optional[str] = Query(None, description="Workspace filter"),
    month: Optional[str] = Query(None, description="Month number 1-12"),
    year: Optional[str] = Query(None, description="Four-digit year"),
    service: OwnerAnalyticsService = Depends(get_owner_analytics_service),
) -> OwnerAnalyticsView:
    return await service.load(listing_id, month, year)


@router.get(
    "/owner/analytics/listings",
    summary="List workspaces for the analytics filter",
)
async def list_analytics_listings(
    service: OwnerAnalyticsService = Depends(get_owner_analytics_service),
) -> list[dict[str, Any]]:
    return await service.listings()


# Reviews


@router.get(
    "/owner/reviews",
    summary="List reviews of my listings",
    description="Visible reviews with KPIs: total, average, reply rate and rating distribution.",
    response_model=OwnerReviewsView,
)
async def list_reviews(
    listing_id: Optional[str] = Query(None, description="Listing filter (`all` for none)"),
    reply: str = Query("all", description="all, replied or unreplied"),
    sort: str = Query("recent", description="Upstream sort key"),
    q: str = Query("", description="Search over listing, reviewer and comment"),
    service: OwnerReviewsService = Depends(get_owner_reviews_service),
) -> OwnerReviewsView:
    return await service.load(listing_id, reply, sort, q)


@router.post(
    "/owner/reviews/{review_id}/reply",
    summary="Reply to a review",
    description="Reply text is 5-300 characters.",
    responses={400: {"description": "Reply failed validation"}},
)
async def reply_to_review(
    review_id: str,
    body: ReplyRequest,
    service: OwnerReviewsService = Depends(get_owner_reviews_service),
) -> Any:
    return await service.reply(review_id, body.text)


@router.put(
    "/owner/reviews/{review_id}/reply",
    summary="Edit a review reply",
    responses={400: {"description": "Reply failed validation"}},
)
async def edit_review_reply(
    review_id: str,
    body: ReplyRequest,
    service: OwnerReviewsService = Depends(get_owner_reviews_service),
) -> Any:
    return await service.reply(review_id, body.text, editing=True)


# Cancellation policy editor


@router.get(
    "/owner/cancellation-policy/templates/{policy_type}",
    summary="Get a policy template",
    response_model=CancellationPolicy,
)
async def get_policy_template(
    policy_type: PolicyType,
    service: PolicyService = Depends(get_policy_service),
) -> CancellationPolicy:
    return service.template(policy_type)


@router.post(
    "/owner/cancellation-policy/validate",
    summary="Validate a policy",
    description="""
Validate a policy from the listing editor and return the summary clients
will see.

Custom tiers must have distinct hours and percentages within 0-100; the
processing fee must be within 0-100.
""",
    response_model=PolicySummary,
    responses={400: {"description": "Policy failed validation"}},
)
async def validate_policy(
    body: CancellationPolicy,
    service: PolicyService = Depends(get_policy_service),
) -> PolicySummary:
    return service.summarize(service.ensure_valid(body))
