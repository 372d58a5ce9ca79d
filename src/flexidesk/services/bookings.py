"""Owner and client bookings pages."""

import datetime as dt
from typing import Any, Optional

from flexidesk.models.booking import (
    BookingFlags,
    BookingTotals,
    CancellationPreview,
    ClientBooking,
    ClientBookingsView,
    OwnerBookingDetail,
    OwnerBookingsView,
)
from flexidesk.models.enums import BookingStatus
from flexidesk.models.errors import ErrorCode, FlexiDeskError, UpstreamError
from flexidesk.models.policy import CancellationPolicy
from flexidesk.services.api_client import FlexiDeskClient
from flexidesk.utils.dates import parse_datetime, utcnow
from flexidesk.utils.logging import get_logger
from flexidesk.utils.records import as_list, matches, number, pluck, text, timestamp, with_id

logger = get_logger(__name__)

OWNER_PAGE_SIZE = 12

# Statuses from which an owner may mark a booking completed
COMPLETABLE_STATUSES = frozenset({"paid", "confirmed", "checked_in"})

STATUS_TRANSITIONS: dict[str, list[str]] = {
    BookingStatus.PAID.value: [BookingStatus.COMPLETED.value, BookingStatus.CANCELLED.value],
    BookingStatus.PENDING_PAYMENT.value: [BookingStatus.CANCELLED.value],
    BookingStatus.AWAITING_PAYMENT.value: [BookingStatus.CANCELLED.value],
    BookingStatus.COMPLETED.value: [],
    BookingStatus.CANCELLED.value: [],
}

PENDING_PAYMENT_STATUSES = frozenset({"pending_payment", "awaiting_payment"})

OWNER_SORTS = (
    "created_desc",
    "created_asc",
    "checkin_asc",
    "checkin_desc",
    "amount_desc",
    "amount_asc",
)

CANCEL_REASONS = ("schedule_change", "found_alternative", "emergency", "other")

REFUND_CASE_TYPE = "refund_request"


def guest_name(booking: dict[str, Any]) -> str:
    return text(
        booking,
        "guestName",
        "customerName",
        "clientName",
        "user.fullName",
        "user.name",
        "customer.name",
    )


def _listing(booking: dict[str, Any]) -> dict[str, Any]:
    listing = booking.get("listing") or booking.get("listingRef") or {}
    return listing if isinstance(listing, dict) else {}


def _amount(booking: dict[str, Any]) -> float:
    return number(booking, "totalAmount", "amount")


def _check_in(booking: dict[str, Any]) -> float:
    return timestamp(pluck(booking, "checkIn", "checkInDate"))


def allowed_transitions(status: Optional[str]) -> list[str]:
    return list(STATUS_TRANSITIONS.get(status or "", []))


def can_complete(status: Optional[str]) -> bool:
    return status in COMPLETABLE_STATUSES


def filter_owner_bookings(
    items: list[dict[str, Any]],
    query: str = "",
    sort: str = "created_desc",
) -> list[dict[str, Any]]:
    """Search over listing title, location and guest name, then sort."""

    def searchable(b: dict[str, Any]) -> tuple[str, str, str]:
        listing = _listing(b)
        title = listing.get("shortDesc") or listing.get("title") or ""
        place = ", ".join(
            str(p) for p in (listing.get("city"), listing.get("region"), listing.get("country")) if p
        )
        return title, place, guest_name(b)

    rows = [b for b in items if matches(query, *searchable(b))]

    if sort == "created_asc":
        rows.sort(key=lambda b: timestamp(b.get("createdAt")))
    elif sort == "checkin_asc":
        rows.sort(key=_check_in)
    elif sort == "checkin_desc":
        rows.sort(key=_check_in, reverse=True)
    elif sort == "amount_desc":
        rows.sort(key=_amount, reverse=True)
    elif sort == "amount_asc":
        rows.sort(key=_amount)
    else:
        rows.sort(key=lambda b: timestamp(b.get("createdAt")), reverse=True)
    return rows


def owner_totals(items: list[dict[str, Any]]) -> BookingTotals:
    return BookingTotals(
        count=len(items),
        revenue=sum(_amount(b) for b in items),
        guests=int(sum(number(b, "guests", "seats") for b in items)),
    )


class OwnerBookingsService:
    """Owner bookings list, detail and status changes."""

    def __init__(self, api: FlexiDeskClient) -> None:
        self.api = api

    async def load(
        self,
        status: Optional[str] = None,
        cursor: Optional[str] = None,
        query: str = "",
        sort: str = "created_desc",
        limit: int = OWNER_PAGE_SIZE,
    ) -> OwnerBookingsView:
        """Fetch one page of the owner's bookings and derive the view.

        Totals are computed over the fetched page before local search.
        """
        data = await self.api.get(
            "/owner/bookings/mine",
            params={
                "status": None if status in (None, "", "all") else status,
                "limit": limit,
                "cursor": cursor,
            },
        )
        items = [with_id(b) for b in as_list(data, "items") if isinstance(b, dict)]
        next_cursor = data.get("nextCursor") if isinstance(data, dict) else None

        return OwnerBookingsView(
            items=filter_owner_bookings(items, query, sort),
            next_cursor=next_cursor or None,
            totals=owner_totals(items),
        )

    async def detail(self, booking_id: str) -> OwnerBookingDetail:
        data = await self.api.get(f"/owner/bookings/{booking_id}")
        booking = with_id(data) if isinstance(data, dict) else {"id": booking_id}
        status = booking.get("status")
        return OwnerBookingDetail(
            booking=booking,
            can_complete=can_complete(status),
            available_statuses=allowed_transitions(status),
        )

    async def complete(self, booking_id: str) -> OwnerBookingDetail:
        """Mark a booking completed, then re-fetch it.

        Raises:
            FlexiDeskError: INVALID_TRANSITION unless paid, confirmed or checked in
        """
        current = await self.detail(booking_id)
        if not current.can_complete:
            raise FlexiDeskError(
                ErrorCode.INVALID_TRANSITION,
                details={"status": str(current.booking.get("status"))},
            )
        await self.api.post(f"/owner/bookings/{booking_id}/complete")
        logger.info("Booking marked completed", extra={"booking_id": booking_id})
        return await self.detail(booking_id)

    async def change_status(self, booking_id: str, new_status: str) -> OwnerBookingDetail:
        """Move a booking to another status, then re-fetch it.

        Raises:
            FlexiDeskError: INVALID_TRANSITION when the move is not allowed
        """
        current = await self.detail(booking_id)
        if new_status not in current.available_statuses:
            raise FlexiDeskError(
                ErrorCode.INVALID_TRANSITION,
                details={"status": str(current.booking.get("status")), "requested": new_status},
            )
        await self.api.patch(f"/owner/bookings/{booking_id}/status", json={"status": new_status})
        logger.info(
            "Booking status changed",
            extra={"booking_id": booking_id, "status": new_status},
        )
        return await self.detail(booking_id)


def booking_start(booking: dict[str, Any]) -> Optional[dt.datetime]:
    return parse_datetime(pluck(booking, "startDate", "from"))


def qr_available(start: Optional[dt.datetime], now: dt.datetime) -> bool:
    """QR access opens one day before the start date and on the day itself."""
    if start is None:
        return False
    days_ahead = (start.date() - now.date()).days
    return 0 <= days_ahead <= 1


def booking_flags(
    booking: dict[str, Any],
    now: dt.datetime,
    has_cancellation_request: bool = False,
) -> BookingFlags:
    status = str(booking.get("status") or "confirmed").lower()
    start = booking_start(booking)
    is_past = not (start is not None and start >= now)
    pending = status in PENDING_PAYMENT_STATUSES
    cancelled = status == BookingStatus.CANCELLED.value

    can_review = (
        (status == "completed" or (is_past and status == "paid"))
        and not cancelled
        and not pending
    )

    return BookingFlags(
        is_past=is_past,
        is_pending_payment=pending,
        can_review=can_review,
        can_cancel=not is_past and not cancelled and not pending and not has_cancellation_request,
        can_pay=not is_past and not cancelled and pending,
        qr_available=not is_past and not cancelled and not pending and qr_available(start, now),
        reviewed=bool(booking.get("hasReview") or booking.get("reviewed") or booking.get("reviewId")),
    )


def latest_refund_cases(cases: list[dict[str, Any]]) -> dict[str, dict[str, Any]]:
    """Latest refund case per booking id (by updatedAt, else createdAt)."""
    latest: dict[str, dict[str, Any]] = {}
    for case in cases:
        if not isinstance(case, dict):
            continue
        booking_id = str(
            case.get("bookingId") or case.get("bookingRef") or case.get("booking") or case.get("booking_id") or ""
        )
        case_type = str(case.get("type") or "")
        if not booking_id or (case_type and case_type != REFUND_CASE_TYPE):
            continue

        picked = {
            "id": str(case.get("_id") or case.get("id") or ""),
            "referenceCode": case.get("referenceCode"),
            "status": case.get("status") or "open",
            "priority": case.get("priority"),
            "amountRequested": case.get("amountRequested"),
            "summary": case.get("summary"),
            "createdAt": case.get("createdAt"),
            "updatedAt": case.get("updatedAt"),
        }
        current = latest.get(booking_id)
        if current is None:
            latest[booking_id] = picked
            continue

        previous = timestamp(current.get("updatedAt") or current.get("createdAt"))
        candidate = timestamp(picked.get("updatedAt") or picked.get("createdAt"))
        if candidate >= previous:
            latest[booking_id] = picked
    return latest


def _booking_rows(data: Any) -> list[dict[str, Any]]:
    rows = as_list(data, "items") or as_list(data, "data") or as_list(data)
    out = []
    for row in rows:
        if isinstance(row, dict):
            inner = row.get("booking")
            out.append(inner if isinstance(inner, dict) else row)
    return out


class ClientBookingsService:
    """Client bookings page and the cancellation flow."""

    BOOKING_ENDPOINTS = ("/bookings/me", "/users/me/bookings", "/bookings")

    def __init__(self, api: FlexiDeskClient) -> None:
        self.api = api

    async def _fetch_bookings(self) -> Any:
        *fallbacks, last = self.BOOKING_ENDPOINTS
        for path in fallbacks:
            try:
                return await self.api.get(path)
            except UpstreamError as exc:
                if exc.code == ErrorCode.AUTH_REQUIRED:
                    raise
                logger.info("Bookings endpoint %s failed, trying next", path)
        return await self.api.get(last)

    async def reviewed_booking_ids(self, booking_ids: list[str]) -> set[str]:
        if not booking_ids:
            return set()
        try:
            data = await self.api.get(
                "/reviews/my-reviewed-bookings",
                params={"bookingIds": ",".join(booking_ids)},
            )
        except UpstreamError as exc:
            logger.warning("Reviewed bookings unavailable: %s", exc.message)
            return set()
        return {str(i) for i in as_list(data, "bookingIds")}

    async def refund_cases(self, booking_ids: list[str]) -> dict[str, dict[str, Any]]:
        """Latest refund case for each cancelled booking.

        Tries the case endpoints in turn and uses the first that answers.
        """
        if not booking_ids:
            return {}
        joined = ",".join(booking_ids)
        endpoints = [
            ("/cases/by-bookings", {"bookingIds": joined, "type": REFUND_CASE_TYPE}),
            ("/cases/bookings", {"bookingIds": joined, "type": REFUND_CASE_TYPE}),
            ("/cases", {"bookingIds": joined, "type": REFUND_CASE_TYPE}),
            ("/cases", {"bookingIds": joined}),
        ]
        for path, params in endpoints:
            try:
                data = await self.api.get(path, params=params)
            except UpstreamError:
                continue
            if data:
                rows = (
                    as_list(data, "items")
                    or as_list(data, "data")
                    or as_list(data)
                    or as_list(data, "cases")
                )
                return latest_refund_cases(rows)
        return {}

    async def load(self, now: Optional[dt.datetime] = None) -> ClientBookingsView:
        """Load bookings merged with review flags and refund cases.

        Upcoming bookings are ordered soonest first, past ones most recent first.
        """
        current = now or utcnow()
        bookings = [with_id(b) for b in _booking_rows(await self._fetch_bookings())]
        ids = [b["id"] for b in bookings if b["id"]]

        reviewed = await self.reviewed_booking_ids(ids)
        for booking in bookings:
            if booking["id"] in reviewed:
                booking["hasReview"] = True
                booking["reviewed"] = True
                booking["reviewId"] = booking.get("reviewId") or "existing"

        cancelled_ids = [
            b["id"] for b in bookings if str(b.get("status") or "").lower() == "cancelled" and b["id"]
        ]
        cases = await self.refund_cases(cancelled_ids)

        view = ClientBookingsView()
        for booking in bookings:
            item = ClientBooking(
                booking=booking,
                refund_case=cases.get(booking["id"]),
                flags=booking_flags(
                    booking,
                    current,
                    has_cancellation_request=bool(booking.get("hasCancellationRequest")),
                ),
            )
            (view.past if item.flags.is_past else view.upcoming).append(item)

        def start_ts(item: ClientBooking) -> float:
            start = booking_start(item.booking)
            return start.timestamp() if start else 0.0

        view.upcoming.sort(key=start_ts)
        view.past.sort(key=start_ts, reverse=True)
        return view

    async def cancellation_preview(self, booking_id: str, listing_id: str) -> CancellationPreview:
        """Listing policy and the API's refund calculation for a booking."""
        policy_data = await self.api.get(f"/listings/{listing_id}/cancellation-policy")
        raw_policy = policy_data.get("policy", policy_data) if isinstance(policy_data, dict) else None

        refund_data = await self.api.post(f"/bookings/{booking_id}/calculate-refund")
        calculation = (
            refund_data.get("calculation", refund_data) if isinstance(refund_data, dict) else None
        )

        return CancellationPreview(
            booking_id=booking_id,
            policy=CancellationPolicy.model_validate(raw_policy) if isinstance(raw_policy, dict) else None,
            calculation=calculation if isinstance(calculation, dict) else None,
        )

    async def cancel(
        self,
        booking_id: str,
        reason: Optional[str],
        reason_other: Optional[str] = None,
    ) -> Any:
        """Submit a cancellation.

        Raises:
            FlexiDeskError: REASON_REQUIRED when no reason is chosen, or when
                ``other`` has no details
        """
        if not reason:
            raise FlexiDeskError(
                ErrorCode.REASON_REQUIRED,
                message="Please select a cancellation reason",
            )
        details = (reason_other or "").strip()
        if reason == "other" and not details:
            raise FlexiDeskError(
                ErrorCode.REASON_REQUIRED,
                message="Please provide details for 'Other' reason",
            )

        payload: dict[str, Any] = {"reason": reason}
        if reason == "other":
            payload["reasonOther"] = details
        result = await self.api.post(f"/bookings/{booking_id}/cancel", json=payload)
        logger.info("Booking cancelled", extra={"booking_id": booking_id, "reason": reason})
        return result
