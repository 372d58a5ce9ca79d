"""Availability/conflict indicator for the listing detail page.

Every call here degrades to "no information" on failure: a broken
availability endpoint must never block the page or the quote.
"""

import datetime as dt
from typing import Any, Optional

from pydantic import ValidationError

from flexidesk.models.availability import (
    AvailabilityResult,
    AvailabilitySuggestions,
    BusyCalendar,
    CalendarDay,
    TimeSlot,
)
from flexidesk.models.enums import DayStatus
from flexidesk.models.errors import UpstreamError
from flexidesk.services.api_client import FlexiDeskClient
from flexidesk.services.pricing import diff_hours
from flexidesk.utils.dates import parse_date, parse_time
from flexidesk.utils.logging import get_logger

logger = get_logger(__name__)

# Two-hour slots shown on the busy calendar
COMMON_SLOTS: list[tuple[str, str]] = [
    ("09:00", "11:00"),
    ("11:00", "13:00"),
    ("13:00", "15:00"),
    ("15:00", "17:00"),
    ("17:00", "19:00"),
]

DEFAULT_WINDOW_DAYS = 60
MAX_WINDOW_DAYS = 366


def slot_overlaps(slot_start: str, slot_end: str, bookings: list[dict[str, Any]]) -> bool:
    """True if any booking overlaps ``[slot_start, slot_end)``.

    Bookings without times span the whole day. ``HH:MM`` strings compare
    correctly as text.
    """
    for booking in bookings:
        booking_start = booking.get("checkInTime") or "00:00"
        booking_end = booking.get("checkOutTime") or "23:59"
        if slot_start < booking_end and booking_start < slot_end:
            return True
    return False


def _add_days(day: dt.date, days: int) -> dt.date:
    try:
        return day + dt.timedelta(days=days)
    except OverflowError:
        return dt.date.max


def classify_day(date: str, bookings: list[dict[str, Any]]) -> CalendarDay:
    free = [
        TimeSlot(check_in_time=start, check_out_time=end)
        for start, end in COMMON_SLOTS
        if not slot_overlaps(start, end, bookings)
    ]
    if not bookings:
        status = DayStatus.AVAILABLE
    elif not free:
        status = DayStatus.FULLY_BOOKED
    else:
        status = DayStatus.PARTIALLY_BOOKED

    return CalendarDay(
        date=date,
        status=status,
        bookings=[
            TimeSlot(
                check_in_time=b.get("checkInTime") or "00:00",
                check_out_time=b.get("checkOutTime") or "23:59",
            )
            for b in bookings
        ],
        free_slots=free,
    )


class AvailabilityService:
    """Conflict checks, blocked dates and busy calendar for a listing."""

    def __init__(self, api: FlexiDeskClient) -> None:
        self.api = api

    async def check(
        self,
        listing_id: Optional[str],
        start_date: Optional[str],
        end_date: Optional[str],
        check_in_time: Optional[str],
        check_out_time: Optional[str],
    ) -> AvailabilityResult:
        """Ask the API whether the selection conflicts with existing bookings.

        The call is skipped when any input is missing or the selection has
        no billable hours.

        Returns:
            AvailabilityResult (no conflict and no suggestions on any failure)
        """
        if not (listing_id and start_date and end_date and check_in_time and check_out_time):
            return AvailabilityResult()

        hours = diff_hours(
            parse_date(start_date),
            parse_time(check_in_time),
            parse_date(end_date),
            parse_time(check_out_time),
        )
        if hours <= 0:
            return AvailabilityResult()

        try:
            data = await self.api.post(
                "/bookings/check-availability",
                json={
                    "listingId": listing_id,
                    "startDate": start_date,
                    "endDate": end_date,
                    "checkInTime": check_in_time,
                    "checkOutTime": check_out_time,
                },
            )
        except UpstreamError as exc:
            logger.warning(
                "Availability check failed for listing %s: %s", listing_id, exc.message
            )
            return AvailabilityResult()

        data = data if isinstance(data, dict) else {}
        suggestions = None
        raw_suggestions = data.get("suggestions")
        if isinstance(raw_suggestions, dict):
            try:
                suggestions = AvailabilitySuggestions.model_validate(raw_suggestions)
            except ValidationError:
                logger.warning("Ignoring malformed availability suggestions")

        return AvailabilityResult(
            checked=True,
            has_conflict=data.get("available") is False,
            suggestions=suggestions,
        )

    async def blocked_dates(self, listing_id: str) -> list[str]:
        """Dates fully blocked for non-hourly listings (``YYYY-MM-DD``)."""
        try:
            data = await self.api.get("/bookings/blocked-dates", params={"listingId": listing_id})
        except UpstreamError as exc:
            logger.warning("Blocked dates unavailable for listing %s: %s", listing_id, exc.message)
            return []

        dates = data.get("blockedDates") if isinstance(data, dict) else None
        if not isinstance(dates, list):
            return []
        return [str(d) for d in dates if d]

    async def busy_calendar(
        self,
        listing_id: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> BusyCalendar:
        """Classify each day in the window against the common slots.

        Defaults to today through the next two months. Windows are capped
        at ``MAX_WINDOW_DAYS`` and at the last representable date; an end
        before the start yields an empty calendar without calling upstream.
        """
        start = parse_date(start_date) or dt.date.today()
        end = parse_date(end_date) or _add_days(start, DEFAULT_WINDOW_DAYS)
        if end < start:
            return BusyCalendar(listing_id=listing_id)
        end = min(end, _add_days(start, MAX_WINDOW_DAYS - 1))

        try:
            data = await self.api.get(
                "/bookings/busy-slots",
                params={
                    "listingId": listing_id,
                    "startDate": start.isoformat(),
                    "endDate": end.isoformat(),
                },
            )
        except UpstreamError as exc:
            logger.warning("Busy slots unavailable for listing %s: %s", listing_id, exc.message)
            return BusyCalendar(listing_id=listing_id)

        busy_by_day = data.get("busyByDay") if isinstance(data, dict) else None
        busy_by_day = busy_by_day if isinstance(busy_by_day, dict) else {}

        days = []
        for offset in range((end - start).days + 1):
            key = (start + dt.timedelta(days=offset)).isoformat()
            bookings = [b for b in busy_by_day.get(key) or [] if isinstance(b, dict)]
            days.append(classify_day(key, bookings))

        return BusyCalendar(listing_id=listing_id, days=days)
