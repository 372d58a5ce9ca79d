"""Admin cancellation requests page."""

from typing import Any, Optional

from flexidesk.models.enums import RefundStatus
from flexidesk.models.refund import CancellationsPage, StatusBadge
from flexidesk.services.api_client import FlexiDeskClient
from flexidesk.utils.csv_export import to_csv
from flexidesk.utils.dates import format_datetime
from flexidesk.utils.logging import get_logger
from flexidesk.utils.records import as_list, dig, number, text

logger = get_logger(__name__)

PAGE_SIZE = 20

STATUS_CONFIG: dict[str, StatusBadge] = {
    status.value: StatusBadge(value=status.value, label=status.value.title(), badge=badge)
    for status, badge in (
        (RefundStatus.PENDING, "secondary"),
        (RefundStatus.APPROVED, "default"),
        (RefundStatus.REJECTED, "destructive"),
        (RefundStatus.PROCESSING, "secondary"),
        (RefundStatus.COMPLETED, "default"),
        (RefundStatus.FAILED, "destructive"),
    )
}

CSV_HEADERS = [
    "ID",
    "Client Name",
    "Client Email",
    "Owner Name",
    "Listing",
    "Booking Start",
    "Booking End",
    "Original Amount",
    "Refund Amount",
    "Status",
    "Type",
    "Requested At",
]


def _filter(value: Optional[Any]) -> Optional[Any]:
    """Drop the ``all`` sentinel used by filter dropdowns."""
    if value in (None, "", "all"):
        return None
    return value


class CancellationsService:
    """List, inspect and export cancellation requests for admins."""

    def __init__(self, api: FlexiDeskClient) -> None:
        self.api = api

    async def list_requests(
        self,
        status: Optional[str] = None,
        is_automatic: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = PAGE_SIZE,
    ) -> CancellationsPage:
        """Load one page of cancellation requests.

        Args:
            status: Status filter (``all`` for none)
            is_automatic: ``true``/``false`` filter (``all`` for none)
            search: Free-text search, passed to the API
            page: 1-based page number
            limit: Page size
        """
        data = await self.api.get(
            "/admin/cancellations",
            params={
                "status": _filter(status),
                "isAutomatic": _filter(is_automatic),
                "search": _filter(search.strip() if search else None),
                "page": page,
                "limit": limit,
            },
        )
        data = data if isinstance(data, dict) else {}
        items = [i for i in as_list(data, "items") if isinstance(i, dict)]
        logger.info("Loaded cancellation requests", extra={"count": len(items), "page": page})

        return CancellationsPage(
            items=items,
            total=int(number(data, "total")),
            pages=int(number(data, "pages")),
            page=page,
            limit=limit,
            status_badges=STATUS_CONFIG,
        )

    async def stats(self) -> dict[str, Any]:
        data = await self.api.get("/admin/cancellations/stats")
        return data if isinstance(data, dict) else {}

    async def get_request(self, request_id: str) -> dict[str, Any]:
        data = await self.api.get(f"/admin/cancellations/{request_id}")
        return data if isinstance(data, dict) else {}

    def export_csv(self, items: list[dict[str, Any]]) -> str:
        """CSV of the visible requests."""
        rows = [
            [
                text(req, "id", "_id"),
                text(req, "client.name", default="N/A"),
                text(req, "client.email", default="N/A"),
                text(req, "owner.name", default="N/A"),
                text(req, "listing.title", default="N/A"),
                format_datetime(dig(req, "booking.startDate")),
                format_datetime(dig(req, "booking.endDate")),
                number(req, "refundCalculation.originalAmount"),
                number(req, "refundCalculation.finalRefund"),
                text(req, "status"),
                "Automatic" if req.get("isAutomatic") else "Manual",
                format_datetime(req.get("requestedAt")),
            ]
            for req in items
        ]
        return to_csv(CSV_HEADERS, rows)
