"""Unit tests for the admin cancellation requests page."""

from typing import Any

from flexidesk.services.cancellations import CSV_HEADERS, STATUS_CONFIG, CancellationsService


class TestListRequests:
    """Tests for CancellationsService.list_requests."""

    def test_all_filters_are_omitted(self, upstream: Any, call: Any) -> None:
        upstream.add("GET", "/admin/cancellations", {"items": [], "total": 0, "pages": 0})

        call(lambda api: CancellationsService(api).list_requests(status="all", is_automatic="all", search="  "))

        params = upstream.calls("GET", "/admin/cancellations")[0].url.params
        assert "status" not in params
        assert "isAutomatic" not in params
        assert "search" not in params
        assert params["page"] == "1"
        assert params["limit"] == "20"

    def test_filters_are_forwarded(self, upstream: Any, call: Any) -> None:
        upstream.add(
            "GET",
            "/admin/cancellations",
            {"items": [{"_id": "c-1", "status": "pending"}], "total": 41, "pages": 3},
        )

        page = call(
            lambda api: CancellationsService(api).list_requests(
                status="pending", is_automatic="false", search=" ana ", page=2
            )
        )

        params = upstream.calls("GET", "/admin/cancellations")[0].url.params
        assert params["status"] == "pending"
        assert params["isAutomatic"] == "false"
        assert params["search"] == "ana"
        assert page.total == 41
        assert page.pages == 3
        assert page.page == 2
        assert page.items[0]["_id"] == "c-1"
        assert page.status_badges["failed"].badge == "destructive"

    def test_detail_and_stats(self, upstream: Any, call: Any) -> None:
        upstream.add("GET", "/admin/cancellations/stats", {"pending": 4})
        upstream.add("GET", "/admin/cancellations/c-1", {"_id": "c-1"})

        assert call(lambda api: CancellationsService(api).stats()) == {"pending": 4}
        assert call(lambda api: CancellationsService(api).get_request("c-1")) == {"_id": "c-1"}


class TestExportCsv:
    def test_columns(self) -> None:
        service = CancellationsService(api=None)  # type: ignore[arg-type]
        output = service.export_csv(
            [
                {
                    "_id": "c-1",
                    "client": {"name": "Ana Reyes", "email": "ana@example.com"},
                    "owner": {"name": "Maria Santos"},
                    "listing": {"title": "Quiet Desk"},
                    "booking": {"startDate": "2026-07-01T09:30:00Z", "endDate": "2026-07-01T17:00:00Z"},
                    "refundCalculation": {"originalAmount": 1000, "finalRefund": 475.5},
                    "status": "approved",
                    "isAutomatic": True,
                    "requestedAt": "2026-06-20T08:00:00Z",
                },
                {"id": "c-2", "status": "pending"},
            ]
        )
        lines = output.split("\n")

        assert lines[0] == ",".join(f'"{h}"' for h in CSV_HEADERS)
        assert lines[1] == (
            '"c-1","Ana Reyes","ana@example.com","Maria Santos","Quiet Desk",'
            '"Jul 01, 2026 09:30 AM","Jul 01, 2026 05:00 PM","1000","475.5",'
            '"approved","Automatic","Jun 20, 2026 08:00 AM"'
        )
        assert lines[2] == '"c-2","N/A","N/A","N/A","N/A","N/A","N/A","0","0","pending","Manual","N/A"'

    def test_status_config_covers_lifecycle(self) -> None:
        assert set(STATUS_CONFIG) == {"pending", "approved", "rejected", "processing", "completed", "failed"}
