"""Unit tests for the availability/conflict indicator.

Tests for:
- Conflict check skip rules and upstream mapping
- Blocked dates
- Busy calendar day classification
"""

from typing import Any

from flexidesk.models.enums import DayStatus
from flexidesk.services.availability import (
    MAX_WINDOW_DAYS,
    AvailabilityService,
    classify_day,
    slot_overlaps,
)


class TestCheck:
    """Tests for AvailabilityService.check."""

    def test_skips_call_when_input_missing(self, upstream: Any, call: Any) -> None:
        result = call(lambda api: AvailabilityService(api).check("lst-1", "2026-11-02", None, "09:00", "11:00"))

        assert result.checked is False
        assert result.has_conflict is False
        assert upstream.requests == []

    def test_skips_call_when_no_hours(self, upstream: Any, call: Any) -> None:
        result = call(
            lambda api: AvailabilityService(api).check("lst-1", "2026-11-02", "2026-11-02", "11:00", "09:00")
        )

        assert result.checked is False
        assert upstream.requests == []

    def test_conflict_with_suggestions(self, upstream: Any, call: Any) -> None:
        upstream.add(
            "POST",
            "/bookings/check-availability",
            {
                "available": False,
                "suggestions": {
                    "sameDaySlots": [{"checkInTime": "13:00", "checkOutTime": "15:00"}],
                    "alternativeDates": [
                        {
                            "date": "2026-11-03",
                            "availableSlots": [{"checkInTime": "09:00", "checkOutTime": "11:00"}],
                        }
                    ],
                },
            },
        )

        result = call(
            lambda api: AvailabilityService(api).check("lst-1", "2026-11-02", "2026-11-02", "09:00", "11:00")
        )

        assert result.checked is True
        assert result.has_conflict is True
        assert result.suggestions is not None
        assert result.suggestions.same_day_slots[0].check_in_time == "13:00"
        assert result.suggestions.alternative_dates[0].date == "2026-11-03"
        assert upstream.last_json("POST", "/bookings/check-availability") == {
            "listingId": "lst-1",
            "startDate": "2026-11-02",
            "endDate": "2026-11-02",
            "checkInTime": "09:00",
            "checkOutTime": "11:00",
        }

    def test_missing_available_flag_is_not_a_conflict(self, upstream: Any, call: Any) -> None:
        upstream.add("POST", "/bookings/check-availability", {})

        result = call(
            lambda api: AvailabilityService(api).check("lst-1", "2026-11-02", "2026-11-02", "09:00", "11:00")
        )

        assert result.checked is True
        assert result.has_conflict is False

    def test_upstream_failure_reports_no_conflict(self, upstream: Any, call: Any) -> None:
        upstream.add("POST", "/bookings/check-availability", {"message": "boom"}, status=500)

        result = call(
            lambda api: AvailabilityService(api).check("lst-1", "2026-11-02", "2026-11-02", "09:00", "11:00")
        )

        assert result.has_conflict is False
        assert result.suggestions is None


class TestBlockedDates:
    def test_returns_dates(self, upstream: Any, call: Any) -> None:
        upstream.add("GET", "/bookings/blocked-dates", {"blockedDates": ["2026-11-03", None, "2026-11-04"]})

        dates = call(lambda api: AvailabilityService(api).blocked_dates("lst-1"))

        assert dates == ["2026-11-03", "2026-11-04"]
        assert upstream.calls("GET", "/bookings/blocked-dates")[0].url.params["listingId"] == "lst-1"

    def test_failure_is_empty(self, call: Any) -> None:
        assert call(lambda api: AvailabilityService(api).blocked_dates("lst-1")) == []


class TestBusyCalendar:
    """Tests for busy calendar classification."""

    def test_classify_available_day(self) -> None:
        day = classify_day("2026-11-02", [])

        assert day.status == DayStatus.AVAILABLE
        assert len(day.free_slots) == 5

    def test_classify_partial_day(self) -> None:
        day = classify_day("2026-11-02", [{"checkInTime": "09:00", "checkOutTime": "12:00"}])

        assert day.status == DayStatus.PARTIALLY_BOOKED
        assert [s.check_in_time for s in day.free_slots] == ["13:00", "15:00", "17:00"]

    def test_booking_without_times_fills_day(self) -> None:
        day = classify_day("2026-11-02", [{}])

        assert day.status == DayStatus.FULLY_BOOKED
        assert day.free_slots == []

    def test_slot_boundaries_do_not_overlap(self) -> None:
        assert slot_overlaps("11:00", "13:00", [{"checkInTime": "09:00", "checkOutTime": "11:00"}]) is False

    def test_builds_window(self, upstream: Any, call: Any) -> None:
        upstream.add(
            "GET",
            "/bookings/busy-slots",
            {"busyByDay": {"2026-11-03": [{"checkInTime": "09:00", "checkOutTime": "19:00"}]}},
        )

        calendar = call(
            lambda api: AvailabilityService(api).busy_calendar("lst-1", "2026-11-02", "2026-11-04")
        )

        assert [d.date for d in calendar.days] == ["2026-11-02", "2026-11-03", "2026-11-04"]
        assert [d.status for d in calendar.days] == [
            DayStatus.AVAILABLE,
            DayStatus.FULLY_BOOKED,
            DayStatus.AVAILABLE,
        ]

    def test_failure_is_empty_calendar(self, call: Any) -> None:
        calendar = call(lambda api: AvailabilityService(api).busy_calendar("lst-1", "2026-11-02", "2026-11-04"))

        assert calendar.listing_id == "lst-1"
        assert calendar.days == []

    def test_oversized_window_is_capped(self, upstream: Any, call: Any) -> None:
        upstream.add("GET", "/bookings/busy-slots", {"busyByDay": {}})

        calendar = call(lambda api: AvailabilityService(api).busy_calendar("lst-1", "2000-01-01", "2199-12-31"))

        assert len(calendar.days) == MAX_WINDOW_DAYS
        assert calendar.days[-1].date == "2000-12-31"
        assert upstream.calls("GET", "/bookings/busy-slots")[0].url.params["endDate"] == "2000-12-31"

    def test_window_stops_at_last_date(self, upstream: Any, call: Any) -> None:
        upstream.add("GET", "/bookings/busy-slots", {"busyByDay": {}})

        calendar = call(lambda api: AvailabilityService(api).busy_calendar("lst-1", "9999-12-30", None))

        assert [d.date for d in calendar.days] == ["9999-12-30", "9999-12-31"]

    def test_end_before_start_is_empty(self, upstream: Any, call: Any) -> None:
        calendar = call(lambda api: AvailabilityService(api).busy_calendar("lst-1", "2026-11-04", "2026-11-02"))

        assert calendar.days == []
        assert upstream.requests == []
