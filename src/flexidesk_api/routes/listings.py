"""Listing detail endpoints.

Provides REST endpoints for:
- Listing display fields (headline price, host, amenities)
- Price quote estimates for a date/time selection
- Availability conflict checks, blocked dates and the busy calendar
- Cancellation policy summary and refund preview
- Listing reviews
- Checkout intent (pre-reserve checks plus pricing snapshot)

Quotes are display estimates; the upstream API prices the booking again
at checkout.
"""

import datetime as dt
from typing import Optional

from fastapi import APIRouter, Depends, Query

from flexidesk.models.availability import AvailabilityResult, BusyCalendar
from flexidesk.models.errors import ErrorCode, FlexiDeskError
from flexidesk.models.listing import ListingView
from flexidesk.models.policy import PolicySummary, RefundPreview
from flexidesk.models.quote import CheckoutIntent, Quote
from flexidesk.models.review import ListingReviewsPage
from flexidesk.services.availability import AvailabilityService
from flexidesk.services.listings import ListingsService
from flexidesk.services.reviews import REVIEWS_PER_PAGE, ReviewsService
from flexidesk_api.dependencies import (
    get_availability_service,
    get_listings_service,
    get_reviews_service,
)
from flexidesk_api.models.requests import CheckoutRequest

router = APIRouter(tags=["listings"])


@router.get(
    "/listings/{listing_id}",
    summary="Get listing detail",
    description="""
Get the display fields of a listing detail page.

The headline price follows the quoting precedence: hourly rate first,
then daily, then monthly. Listings without any rate show 0 per day.
""",
    response_description="Listing display fields",
    response_model=ListingView,
    responses={404: {"description": "Listing not found"}},
)
async def get_listing(
    listing_id: str,
    service: ListingsService = Depends(get_listings_service),
) -> ListingView:
    return await service.view(listing_id)


@router.get(
    "/listings/{listing_id}/quote",
    summary="Estimate a price quote",
    description="""
Estimate the price of a date/time selection.

Returns `null` when any of the dates or times is missing or cannot be
parsed. Hourly rates apply whenever the listing has one and the selection
has billable hours; otherwise the daily rate, then the monthly rate.

**Notes:**
- Hours are rounded up to the nearest quarter hour
- Stays of 27 nights or more bill as one whole month
""",
    response_description="Quote, or null for an incomplete selection",
    response_model=Optional[Quote],
    responses={
        200: {
            "description": "Quote estimated",
            "content": {
                "application/json": {
                    "example": {
                        "mode": "hour",
                        "unitPrice": 150,
                        "quantity": 2,
                        "base": 300,
                        "fees": {"service": 0, "cleaning": 0},
                        "total": 300,
                        "hours": 2,
                        "nights": 0,
                        "guests": 1,
                        "label": "2 hour(s)",
                    }
                }
            },
        },
    },
)
async def get_quote(
    listing_id: str,
    start_date: Optional[str] = Query(None, description="Start date (YYYY-MM-DD)"),
    end_date: Optional[str] = Query(None, description="End date (YYYY-MM-DD)"),
    check_in_time: Optional[str] = Query(None, description="Check-in time (HH:MM)"),
    check_out_time: Optional[str] = Query(None, description="Check-out time (HH:MM)"),
    guests: int = Query(1, description="Number of guests"),
    service: ListingsService = Depends(get_listings_service),
) -> Optional[Quote]:
    listing = await service.raw(listing_id)
    return service.pricing.estimate_quote(
        listing, start_date, end_date, check_in_time, check_out_time, guests
    )


@router.get(
    "/listings/{listing_id}/availability",
    summary="Check a selection for conflicts",
    description="""
Ask the upstream API whether the selection overlaps existing bookings.

The check is skipped (no conflict, no suggestions) when any input is
missing or the selection has no billable hours. Upstream failures also
report no conflict.
""",
    response_description="Conflict flag and alternative suggestions",
    response_model=AvailabilityResult,
)
async def check_availability(
    listing_id: str,
    start_date: Optional[str] = Query(None, description="Start date (YYYY-MM-DD)"),
    end_date: Optional[str] = Query(None, description="End date (YYYY-MM-DD)"),
    check_in_time: Optional[str] = Query(None, description="Check-in time (HH:MM)"),
    check_out_time: Optional[str] = Query(None, description="Check-out time (HH:MM)"),
    service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityResult:
    return await service.check(listing_id, start_date, end_date, check_in_time, check_out_time)


@router.get(
    "/listings/{listing_id}/blocked-dates",
    summary="Get blocked dates",
    description="Dates fully blocked for non-hourly bookings. Empty when unavailable.",
    response_model=list[str],
)
async def get_blocked_dates(
    listing_id: str,
    service: AvailabilityService = Depends(get_availability_service),
) -> list[str]:
    return await service.blocked_dates(listing_id)


@router.get(
    "/listings/{listing_id}/busy-calendar",
    summary="Get busy calendar",
    description="""
Classify each day in the window as available, partially booked or fully
booked against the common two-hour slots, with the free slots listed.

Defaults to today through the next two months; at most one year is returned.
""",
    response_model=BusyCalendar,
)
async def get_busy_calendar(
    listing_id: str,
    start_date: Optional[str] = Query(None, description="Window start (YYYY-MM-DD)"),
    end_date: Optional[str] = Query(None, description="Window end (YYYY-MM-DD)"),
    service: AvailabilityService = Depends(get_availability_service),
) -> BusyCalendar:
    return await service.busy_calendar(listing_id, start_date, end_date)


@router.get(
    "/listings/{listing_id}/cancellation-policy",
    summary="Get cancellation policy summary",
    description="Refund schedule ordered by lead time, longest first.",
    response_model=PolicySummary,
)
async def get_policy_summary(
    listing_id: str,
    service: ListingsService = Depends(get_listings_service),
) -> PolicySummary:
    policy = await service.cancellation_policy(listing_id)
    return service.policies.summarize(policy)


@router.get(
    "/listings/{listing_id}/cancellation-policy/preview",
    summary="Preview a refund",
    description="""
Estimate the refund for cancelling now.

Not authoritative: the upstream API calculates the actual refund when the
booking is cancelled.
""",
    response_model=RefundPreview,
    responses={404: {"description": "Listing has no cancellation policy"}},
)
async def preview_refund(
    listing_id: str,
    amount: float = Query(..., ge=0, description="Amount paid"),
    starts_at: dt.datetime = Query(..., description="Booking start (ISO 8601)"),
    service: ListingsService = Depends(get_listings_service),
) -> RefundPreview:
    policy = await service.cancellation_policy(listing_id)
    if policy is None:
        raise FlexiDeskError(ErrorCode.NOT_FOUND, details={"listingId": listing_id})
    if starts_at.tzinfo is None:
        starts_at = starts_at.replace(tzinfo=dt.UTC)
    return service.policies.preview_refund(policy, amount, starts_at)


@router.get(
    "/listings/{listing_id}/reviews",
    summary="List listing reviews",
    description="Visible reviews with rating distribution and censored author names.",
    response_model=ListingReviewsPage,
)
async def list_listing_reviews(
    listing_id: str,
    sort: str = Query("recent", description="recent, highest or lowest"),
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(REVIEWS_PER_PAGE, ge=1, le=50, description="Reviews per page"),
    service: ReviewsService = Depends(get_reviews_service),
) -> ListingReviewsPage:
    return await service.listing_reviews(listing_id, sort=sort, page=page, per_page=per_page)


@router.post(
    "/listings/{listing_id}/checkout",
    summary="Build a checkout intent",
    description="""
Run the pre-reserve checks and build the reservation intent handed to
checkout.

**Checks:**
- Dates and times are picked, not in the past, end on or after start
- Same-day check-out is after check-in; minimum hours are met
- Non-hourly selections avoid blocked dates
- No known booking conflict
- The cancellation policy is acknowledged when the listing allows cancellation
""",
    response_description="Reservation intent with pricing snapshot",
    response_model=CheckoutIntent,
    responses={
        400: {"description": "Selection failed validation"},
        404: {"description": "Listing not found"},
    },
)
async def create_checkout_intent(
    listing_id: str,
    body: CheckoutRequest,
    service: ListingsService = Depends(get_listings_service),
) -> CheckoutIntent:
    return await service.checkout(
        listing_id,
        body.start_date,
        body.end_date,
        body.check_in_time,
        body.check_out_time,
        guests=body.guests,
        policy_acknowledged=body.policy_acknowledged,
    )
