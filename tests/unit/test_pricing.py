"""Unit tests for the listing price quote estimator.

Test categories:
- Mode selection (hour, day, month, no rates)
- Hour computation (quarter-hour rounding, overnight windows)
- Incomplete selections
- Pre-reserve validation and checkout intent
- Listing display fields
"""

import datetime as dt
from typing import Any

import pytest

from flexidesk.models.enums import PricingMode
from flexidesk.models.errors import ErrorCode, FlexiDeskError
from flexidesk.models.policy import CancellationPolicy
from flexidesk.services.pricing import (
    PricingService,
    count_day_slots,
    diff_days,
    diff_hours,
    first_positive,
    round2,
)

TODAY = dt.date(2026, 11, 1)


@pytest.fixture
def service() -> PricingService:
    return PricingService(today=TODAY)


class TestModeSelection:
    """Tests for picking the pricing mode."""

    def test_hourly_two_hour_window(self, service: PricingService, hourly_listing: dict[str, Any]) -> None:
        """Hourly-only rates with a 2-hour same-day window bill 2 hours."""
        quote = service.estimate_quote(hourly_listing, "2026-11-02", "2026-11-02", "09:00", "11:00")

        assert quote is not None
        assert quote.mode == PricingMode.HOUR
        assert quote.quantity == 2
        assert quote.unit_price == 150
        assert quote.total == 300
        assert quote.label == "2 hour(s)"

    def test_monthly_rate_over_thirty_days(self, service: PricingService) -> None:
        """A 30-day range on a monthly-only rate bills one month."""
        quote = service.estimate_quote(
            {"priceWholeMonth": 20000}, "2026-11-01", "2026-12-01", "09:00", "17:00"
        )

        assert quote is not None
        assert quote.mode == PricingMode.MONTH
        assert quote.quantity == 1
        assert quote.total == 20000

    def test_short_monthly_stay_is_prorated(self, service: PricingService) -> None:
        """Under 27 nights the month is prorated over 30 days."""
        quote = service.estimate_quote(
            {"priceWholeMonth": 20000}, "2026-11-01", "2026-11-16", "09:00", "17:00"
        )

        assert quote is not None
        assert quote.quantity == 0.5
        assert quote.base == 10000
        assert quote.label == "0.50 month(s)"

    def test_no_rates_total_equals_fees(self, service: PricingService) -> None:
        """Without any rate the mode is day and the total is just the fees."""
        quote = service.estimate_quote(
            {"serviceFee": 50, "cleaningFee": 25}, "2026-11-02", "2026-11-03", "09:00", "17:00"
        )

        assert quote is not None
        assert quote.mode == PricingMode.DAY
        assert quote.unit_price == 0
        assert quote.base == 0
        assert quote.total == 75

    def test_daily_rate_with_fees(self, service: PricingService, daily_listing: dict[str, Any]) -> None:
        """Daily rates bill per night plus fees."""
        quote = service.estimate_quote(daily_listing, "2026-11-02", "2026-11-05", "09:00", "17:00")

        assert quote is not None
        assert quote.mode == PricingMode.DAY
        assert quote.quantity == 3
        assert quote.base == 2400
        assert quote.fees.service == 50
        assert quote.fees.cleaning == 25
        assert quote.total == 2475

    def test_same_day_daily_bills_one_day(self, service: PricingService, daily_listing: dict[str, Any]) -> None:
        quote = service.estimate_quote(daily_listing, "2026-11-02", "2026-11-02", "09:00", "17:00")

        assert quote is not None
        assert quote.quantity == 1

    def test_zero_hourly_rate_is_not_present(self, service: PricingService) -> None:
        """A zero or non-numeric hourly rate falls through to the daily rate."""
        quote = service.estimate_quote(
            {"priceSeatHour": 0, "priceRoomHour": "abc", "priceRoomDay": 900},
            "2026-11-02",
            "2026-11-02",
            "09:00",
            "11:00",
        )

        assert quote is not None
        assert quote.mode == PricingMode.DAY
        assert quote.unit_price == 900

    def test_room_rate_used_when_seat_rate_missing(self, service: PricingService) -> None:
        quote = service.estimate_quote(
            {"priceRoomHour": 400}, "2026-11-02", "2026-11-02", "10:00", "12:00"
        )

        assert quote is not None
        assert quote.unit_price == 400
        assert quote.total == 800


class TestHours:
    """Tests for billable hour computation."""

    def test_rounds_up_to_quarter_hour(self) -> None:
        hours = diff_hours(dt.date(2026, 11, 2), dt.time(9, 0), dt.date(2026, 11, 2), dt.time(10, 10))
        assert hours == 1.25

    def test_overnight_window_uses_full_span(self) -> None:
        """An empty same-day window falls back to start-to-end, times day slots."""
        hours = diff_hours(dt.date(2026, 11, 2), dt.time(22, 0), dt.date(2026, 11, 3), dt.time(6, 0))
        assert hours == 16

    def test_multi_day_window_multiplies_by_slots(self) -> None:
        hours = diff_hours(dt.date(2026, 11, 2), dt.time(9, 0), dt.date(2026, 11, 4), dt.time(11, 0))
        assert hours == 6

    def test_reversed_window_is_zero(self) -> None:
        hours = diff_hours(dt.date(2026, 11, 2), dt.time(11, 0), dt.date(2026, 11, 2), dt.time(9, 0))
        assert hours == 0

    def test_day_helpers(self) -> None:
        assert diff_days(dt.date(2026, 11, 2), dt.date(2026, 11, 2)) == 1
        assert diff_days(dt.date(2026, 11, 2), dt.date(2026, 11, 5)) == 3
        assert count_day_slots(None, dt.date(2026, 11, 2)) == 0
        assert count_day_slots(dt.date(2026, 11, 2), dt.date(2026, 11, 2)) == 1
        assert count_day_slots(dt.date(2026, 11, 2), dt.date(2026, 11, 5)) == 4

    def test_hourly_overnight_quote(self, service: PricingService, hourly_listing: dict[str, Any]) -> None:
        quote = service.estimate_quote(hourly_listing, "2026-11-02", "2026-11-03", "22:00", "06:00")

        assert quote is not None
        assert quote.hours == 16
        assert quote.total == 2400


class TestIncompleteSelection:
    """A quote is never produced from an incomplete selection."""

    @pytest.mark.parametrize(
        "start,end,time_in,time_out",
        [
            (None, "2026-11-02", "09:00", "11:00"),
            ("2026-11-02", None, "09:00", "11:00"),
            ("2026-11-02", "2026-11-02", None, "11:00"),
            ("2026-11-02", "2026-11-02", "09:00", ""),
            ("not-a-date", "2026-11-02", "09:00", "11:00"),
            ("2026-11-02", "2026-11-02", "9am", "11:00"),
            ("2026-11-02", "2026-11-02", "25:00", "11:00"),
        ],
    )
    def test_returns_none(
        self,
        service: PricingService,
        hourly_listing: dict[str, Any],
        start: Any,
        end: Any,
        time_in: Any,
        time_out: Any,
    ) -> None:
        assert service.estimate_quote(hourly_listing, start, end, time_in, time_out) is None

    def test_guests_coerced_to_one(self, service: PricingService, hourly_listing: dict[str, Any]) -> None:
        quote = service.estimate_quote(
            hourly_listing, "2026-11-02", "2026-11-02", "09:00", "11:00", guests=0
        )
        assert quote is not None
        assert quote.guests == 1

    def test_overflowing_rate_yields_no_quote(self, service: PricingService) -> None:
        quote = service.estimate_quote(
            {"priceWholeDay": 1e308}, "2026-11-01", "2026-11-05", "09:00", "17:00"
        )
        assert quote is None

    def test_huge_finite_rate_still_quotes(self, service: PricingService) -> None:
        quote = service.estimate_quote(
            {"priceWholeDay": 1e300}, "2026-11-01", "2026-11-05", "09:00", "17:00"
        )
        assert quote is not None
        assert quote.total == 4e300

    def test_infinite_guests_coerced_to_one(self, service: PricingService, hourly_listing: dict[str, Any]) -> None:
        quote = service.estimate_quote(
            hourly_listing, "2026-11-02", "2026-11-02", "09:00", "11:00", guests=float("inf")
        )
        assert quote is not None
        assert quote.guests == 1


class TestNumberHelpers:
    def test_round_half_up(self) -> None:
        assert round2(2.675) == 2.68
        assert round2(1.005) == 1.01

    def test_round_leaves_unrepresentable_values(self) -> None:
        assert round2(float("inf")) == float("inf")
        assert round2(1e300) == 1e300

    def test_first_positive_skips_invalid(self) -> None:
        assert first_positive([None, True, "x", float("nan"), -5, 0, "12.5"]) == 12.5
        assert first_positive([]) == 0


class TestValidateSelection:
    """Tests for the pre-reserve checks."""

    def test_dates_required(self, service: PricingService, hourly_listing: dict[str, Any]) -> None:
        assert service.validate_selection(hourly_listing, None, None, "09:00", "11:00") == [
            "Pick dates first"
        ]

    def test_times_required(self, service: PricingService, hourly_listing: dict[str, Any]) -> None:
        assert service.validate_selection(hourly_listing, "2026-11-02", "2026-11-02", "", "11:00") == [
            "Select time in & time out"
        ]

    def test_past_dates(self, service: PricingService, hourly_listing: dict[str, Any]) -> None:
        problems = service.validate_selection(
            hourly_listing, "2026-10-30", "2026-10-30", "09:00", "11:00"
        )
        assert "You can't select past dates." in problems

    def test_end_before_start(self, service: PricingService, hourly_listing: dict[str, Any]) -> None:
        problems = service.validate_selection(
            hourly_listing, "2026-11-05", "2026-11-03", "09:00", "11:00"
        )
        assert problems == ["Check-out date can't be before check-in."]

    def test_same_day_time_order(self, service: PricingService, hourly_listing: dict[str, Any]) -> None:
        problems = service.validate_selection(
            hourly_listing, "2026-11-02", "2026-11-02", "11:00", "09:00"
        )
        assert problems == ["Time out must be after time in"]

    def test_minimum_hours(self, service: PricingService, hourly_listing: dict[str, Any]) -> None:
        listing = {**hourly_listing, "minHours": 4}
        problems = service.validate_selection(listing, "2026-11-02", "2026-11-02", "09:00", "11:00")
        assert problems == ["Minimum 4 hour(s) required"]

    def test_blocked_dates_for_daily_listing(
        self, service: PricingService, daily_listing: dict[str, Any]
    ) -> None:
        problems = service.validate_selection(
            daily_listing,
            "2026-11-02",
            "2026-11-05",
            "09:00",
            "17:00",
            blocked_dates=["2026-11-03"],
        )
        assert problems == [
            "Your stay overlaps dates that are already booked. Please adjust your dates."
        ]

    def test_blocked_dates_ignored_for_hourly_listing(
        self, service: PricingService, hourly_listing: dict[str, Any]
    ) -> None:
        problems = service.validate_selection(
            hourly_listing,
            "2026-11-02",
            "2026-11-05",
            "09:00",
            "17:00",
            blocked_dates=["2026-11-03"],
        )
        assert problems == []

    def test_known_conflict(self, service: PricingService, hourly_listing: dict[str, Any]) -> None:
        problems = service.validate_selection(
            hourly_listing, "2026-11-02", "2026-11-02", "09:00", "11:00", has_conflict=True
        )
        assert problems == ["This time slot is already booked. Please choose another."]


class TestCheckoutIntent:
    """Tests for building the reservation intent."""

    def test_builds_pricing_snapshot(self, service: PricingService, hourly_listing: dict[str, Any]) -> None:
        intent = service.checkout_intent(
            "lst-hourly", hourly_listing, "2026-11-02", "2026-11-02", "09:00", "12:00", guests=3
        )

        assert intent.listing_id == "lst-hourly"
        assert intent.guests == 3
        assert intent.total_hours == 3
        assert intent.pricing.mode == PricingMode.HOUR
        assert intent.pricing.total == 450
        assert intent.pricing.currency_symbol == "₱"

    def test_rejects_zero_guests(self, service: PricingService, hourly_listing: dict[str, Any]) -> None:
        with pytest.raises(FlexiDeskError) as exc_info:
            service.checkout_intent(
                "lst-hourly", hourly_listing, "2026-11-02", "2026-11-02", "09:00", "12:00", guests=0
            )
        assert exc_info.value.code == ErrorCode.INVALID_SELECTION
        assert exc_info.value.message == "Guests must be at least 1"

    def test_rejects_infinite_guests(self, service: PricingService, hourly_listing: dict[str, Any]) -> None:
        with pytest.raises(FlexiDeskError) as exc_info:
            service.checkout_intent(
                "lst-hourly", hourly_listing, "2026-11-02", "2026-11-02", "09:00", "12:00", guests=float("inf")
            )
        assert exc_info.value.code == ErrorCode.INVALID_SELECTION

    def test_rejects_invalid_selection(self, service: PricingService, hourly_listing: dict[str, Any]) -> None:
        with pytest.raises(FlexiDeskError) as exc_info:
            service.checkout_intent(
                "lst-hourly", hourly_listing, "2026-11-02", "2026-11-02", "12:00", "09:00"
            )
        assert exc_info.value.details == {"problems": ["Time out must be after time in"]}

    def test_requires_policy_acknowledgement(
        self,
        service: PricingService,
        hourly_listing: dict[str, Any],
        moderate_policy: dict[str, Any],
    ) -> None:
        policy = CancellationPolicy.model_validate(moderate_policy)
        with pytest.raises(FlexiDeskError) as exc_info:
            service.checkout_intent(
                "lst-hourly",
                hourly_listing,
                "2026-11-02",
                "2026-11-02",
                "09:00",
                "12:00",
                policy=policy,
            )
        assert exc_info.value.message == "Please acknowledge the cancellation policy to continue"

        intent = service.checkout_intent(
            "lst-hourly",
            hourly_listing,
            "2026-11-02",
            "2026-11-02",
            "09:00",
            "12:00",
            policy=policy,
            policy_acknowledged=True,
        )
        assert intent.policy_acknowledged is True
        assert intent.cancellation_policy is not None


class TestListingView:
    """Tests for listing display fields."""

    def test_hourly_headline(self, service: PricingService, hourly_listing: dict[str, Any]) -> None:
        view = service.listing_view(hourly_listing)

        assert view.id == "lst-hourly"
        assert view.price == 150
        assert view.price_note == "/ hour"
        assert view.currency_symbol == "₱"
        assert view.title == "Meeting_room • Entire_space"
        assert view.location == "Makati, PH"
        assert view.host_first_name == "Maria"
        assert view.amenities == ["Wifi", "Coffee bar"]
        assert view.is_hourly is True

    def test_daily_headline(self, service: PricingService, daily_listing: dict[str, Any]) -> None:
        view = service.listing_view(daily_listing)

        assert view.title == "Ayala Hub"
        assert view.price == 800
        assert view.price_note == "/ day"
        assert view.currency == "PHP"
        assert view.location == "—"
        assert view.host_first_name == "Host"

    def test_no_rates(self, service: PricingService) -> None:
        view = service.listing_view({})

        assert view.price == 0
        assert view.price_note == "/ day"
        assert view.title == "Space"
        assert view.rating == 5
