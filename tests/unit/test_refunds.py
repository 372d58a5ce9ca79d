"""Unit tests for the owner refund requests page.

Test categories:
- Date range presets
- Search and sort
- Stats
- Load, approve, reject and CSV export against the fake upstream
"""

import datetime as dt
from typing import Any

import pytest

from flexidesk.models.errors import ErrorCode, FlexiDeskError
from flexidesk.services.refunds import (
    OwnerRefundsService,
    date_range_start,
    filter_and_sort,
    refund_stats,
)

NOW = dt.datetime(2026, 3, 31, 15, 30, tzinfo=dt.UTC)


@pytest.fixture
def refund_requests() -> list[dict[str, Any]]:
    return [
        {
            "_id": "rr-1",
            "status": "pending",
            "requestedAt": "2026-03-01T10:00:00Z",
            "clientName": "Ana Reyes",
            "listingTitle": "Quiet Desk",
            "bookingCode": "BK-100",
            "bookingAmount": 1000,
            "refundCalculation": {"finalRefund": 950},
            "cancellationReason": "emergency",
        },
        {
            "_id": "rr-2",
            "status": "approved",
            "requestedAt": "2026-03-05T10:00:00Z",
            "client": {"fullName": "Ben Cruz"},
            "listing": {"title": "Corner Office"},
            "booking": {"code": "BK-200"},
            "refundCalculation": {"finalRefund": 400},
        },
        {
            "_id": "rr-3",
            "status": "completed",
            "requestedAt": "2026-02-20T10:00:00Z",
            "clientName": "Carla Lim",
            "listingTitle": "Quiet Desk",
            "refundCalculation": {"finalRefund": 100},
        },
        {
            "_id": "rr-4",
            "status": "rejected",
            "requestedAt": "2026-03-10T10:00:00Z",
            "clientName": "Dan Uy",
            "listingTitle": "Board Room",
            "refundCalculation": {"finalRefund": 2000},
        },
    ]


class TestDateRangeStart:
    def test_today_is_midnight(self) -> None:
        assert date_range_start("today", NOW) == "2026-03-31T00:00:00Z"

    def test_week_is_seven_days_back(self) -> None:
        assert date_range_start("week", NOW) == "2026-03-24T15:30:00Z"

    def test_month_clamps_day(self) -> None:
        assert date_range_start("month", NOW) == "2026-02-28T15:30:00Z"

    def test_month_in_january_wraps_year(self) -> None:
        start = date_range_start("month", dt.datetime(2026, 1, 15, tzinfo=dt.UTC))
        assert start == "2025-12-15T00:00:00Z"

    def test_all_has_no_start(self) -> None:
        assert date_range_start("all", NOW) is None
        assert date_range_start(None, NOW) is None


class TestFilterAndSort:
    """Tests for local search and sorting."""

    def test_default_is_newest_first(self, refund_requests: list[dict[str, Any]]) -> None:
        rows = filter_and_sort(refund_requests)
        assert [r["_id"] for r in rows] == ["rr-4", "rr-2", "rr-1", "rr-3"]

    def test_search_reads_nested_references(self, refund_requests: list[dict[str, Any]]) -> None:
        assert [r["_id"] for r in filter_and_sort(refund_requests, "ben")] == ["rr-2"]
        assert [r["_id"] for r in filter_and_sort(refund_requests, "bk-200")] == ["rr-2"]

    def test_search_on_listing_title(self, refund_requests: list[dict[str, Any]]) -> None:
        rows = filter_and_sort(refund_requests, "  quiet ", "requested_asc")
        assert [r["_id"] for r in rows] == ["rr-3", "rr-1"]

    def test_amount_sorts(self, refund_requests: list[dict[str, Any]]) -> None:
        assert [r["_id"] for r in filter_and_sort(refund_requests, sort="amount_desc")] == [
            "rr-4",
            "rr-1",
            "rr-2",
            "rr-3",
        ]
        assert filter_and_sort(refund_requests, sort="amount_asc")[0]["_id"] == "rr-3"


class TestRefundStats:
    def test_stats(self, refund_requests: list[dict[str, Any]]) -> None:
        stats = refund_stats(refund_requests)

        assert stats.pending == 1
        # approved + completed over approved + completed + rejected
        assert stats.approval_rate == 67
        assert stats.total_refunded == 500

    def test_no_decisions(self) -> None:
        stats = refund_stats([{"status": "pending"}])

        assert stats.approval_rate == 0
        assert stats.total_refunded == 0


class TestOwnerRefundsService:
    """Tests for OwnerRefundsService against the fake upstream."""

    def test_load(self, upstream: Any, call: Any, refund_requests: list[dict[str, Any]]) -> None:
        upstream.add("GET", "/owner/refunds", {"requests": refund_requests})
        upstream.add("GET", "/owner/listings/mine", {"items": [{"_id": "lst-1", "title": "Quiet Desk"}]})

        view = call(lambda api: OwnerRefundsService(api).load(status="all", listing_id="lst-1", query="quiet"))

        assert view.total == 2
        assert [r["id"] for r in view.items] == ["rr-1", "rr-3"]
        # stats cover everything returned, not just the search hits
        assert view.stats.pending == 1
        assert view.stats.approval_rate == 67
        assert view.listings[0]["id"] == "lst-1"

        params = upstream.calls("GET", "/owner/refunds")[0].url.params
        assert "status" not in params
        assert "startDate" not in params
        assert params["listingId"] == "lst-1"

    def test_load_forwards_date_range(self, upstream: Any, call: Any) -> None:
        upstream.add("GET", "/owner/refunds", {"requests": []})

        call(lambda api: OwnerRefundsService(api).load(status="pending", date_range="week"))

        params = upstream.calls("GET", "/owner/refunds")[0].url.params
        assert params["status"] == "pending"
        assert params["startDate"].endswith("Z")

    def test_listings_failure_is_empty(self, upstream: Any, call: Any) -> None:
        upstream.add("GET", "/owner/refunds", {"requests": []})
        upstream.add("GET", "/owner/listings/mine", {"message": "boom"}, status=500)

        view = call(lambda api: OwnerRefundsService(api).load())

        assert view.listings == []

    def test_approve_with_notes(self, upstream: Any, call: Any) -> None:
        upstream.add("POST", "/owner/refunds/rr-1/approve", {"ok": True})

        call(lambda api: OwnerRefundsService(api).approve("rr-1", "  refunded in full "))

        assert upstream.last_json("POST", "/owner/refunds/rr-1/approve") == {"notes": "refunded in full"}

    def test_approve_without_notes(self, upstream: Any, call: Any) -> None:
        upstream.add("POST", "/owner/refunds/rr-1/approve", {"ok": True})

        call(lambda api: OwnerRefundsService(api).approve("rr-1", "   "))

        assert upstream.last_json("POST", "/owner/refunds/rr-1/approve") == {}

    def test_reject_requires_reason(self, upstream: Any, call: Any) -> None:
        with pytest.raises(FlexiDeskError) as exc_info:
            call(lambda api: OwnerRefundsService(api).reject("rr-1", "  "))

        assert exc_info.value.code == ErrorCode.REASON_REQUIRED
        assert exc_info.value.message == "Rejection reason is required"
        assert upstream.requests == []

    def test_reject(self, upstream: Any, call: Any) -> None:
        upstream.add("POST", "/owner/refunds/rr-1/reject", {"ok": True})

        call(lambda api: OwnerRefundsService(api).reject("rr-1", " Booking was used "))

        assert upstream.last_json("POST", "/owner/refunds/rr-1/reject") == {"reason": "Booking was used"}

    def test_export_csv(self, refund_requests: list[dict[str, Any]]) -> None:
        output = OwnerRefundsService(api=None).export_csv(refund_requests[:2])  # type: ignore[arg-type]
        lines = output.split("\n")

        assert lines[0] == '"Date","Client","Listing","Booking Code","Amount","Refund","Status","Reason"'
        assert lines[1] == '"2026-03-01","Ana Reyes","Quiet Desk","BK-100","1000","950","pending","emergency"'
        assert lines[2] == '"2026-03-05","Ben Cruz","Corner Office","BK-200","0","400","approved","—"'
