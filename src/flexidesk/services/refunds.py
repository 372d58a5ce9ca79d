"""Owner refund requests page."""

import calendar
import datetime as dt
from typing import Any, Optional

from flexidesk.models.enums import RefundStatus
from flexidesk.models.errors import ErrorCode, FlexiDeskError
from flexidesk.models.refund import OwnerRefundsView, RefundStats
from flexidesk.services.api_client import FlexiDeskClient
from flexidesk.utils.csv_export import to_csv
from flexidesk.utils.dates import format_date, utcnow
from flexidesk.utils.logging import get_logger
from flexidesk.utils.records import as_list, matches, number, text, timestamp, with_id

logger = get_logger(__name__)

# Statuses that count as an approved refund
APPROVED_STATUSES = frozenset(
    {RefundStatus.APPROVED.value, RefundStatus.PROCESSING.value, RefundStatus.COMPLETED.value}
)

REFUND_SORTS = ("requested_desc", "requested_asc", "amount_desc", "amount_asc")

CSV_HEADERS = ["Date", "Client", "Listing", "Booking Code", "Amount", "Refund", "Status", "Reason"]


def date_range_start(preset: Optional[str], now: Optional[dt.datetime] = None) -> Optional[str]:
    """ISO start of a ``today``/``week``/``month`` preset, None for ``all``."""
    current = now or utcnow()
    if preset == "today":
        start = current.replace(hour=0, minute=0, second=0, microsecond=0)
    elif preset == "week":
        start = current - dt.timedelta(days=7)
    elif preset == "month":
        month = current.month - 1 or 12
        year = current.year if current.month > 1 else current.year - 1
        day = min(current.day, calendar.monthrange(year, month)[1])
        start = current.replace(year=year, month=month, day=day)
    else:
        return None
    return start.isoformat().replace("+00:00", "Z")


def _client_name(req: dict[str, Any]) -> str:
    return text(req, "clientName", "client.fullName")


def _listing_title(req: dict[str, Any]) -> str:
    return text(req, "listingTitle", "listing.title")


def _booking_code(req: dict[str, Any]) -> str:
    return text(req, "bookingCode", "booking.code")


def _final_refund(req: dict[str, Any]) -> float:
    return number(req, "refundCalculation.finalRefund")


def filter_and_sort(
    requests: list[dict[str, Any]],
    query: str = "",
    sort: str = "requested_desc",
) -> list[dict[str, Any]]:
    """Search over client, listing and booking code, then sort."""
    rows = [
        r
        for r in requests
        if matches(query, _client_name(r), _listing_title(r), _booking_code(r))
    ]

    if sort == "requested_asc":
        rows.sort(key=lambda r: timestamp(r.get("requestedAt")))
    elif sort == "amount_desc":
        rows.sort(key=_final_refund, reverse=True)
    elif sort == "amount_asc":
        rows.sort(key=_final_refund)
    else:
        rows.sort(key=lambda r: timestamp(r.get("requestedAt")), reverse=True)
    return rows


def refund_stats(requests: list[dict[str, Any]]) -> RefundStats:
    """Pending count, approval rate and total refunded."""
    pending = sum(1 for r in requests if r.get("status") == RefundStatus.PENDING.value)
    approved = [r for r in requests if r.get("status") in APPROVED_STATUSES]
    rejected = sum(1 for r in requests if r.get("status") == RefundStatus.REJECTED.value)

    decided = len(approved) + rejected
    approval_rate = round(len(approved) / decided * 100) if decided else 0

    return RefundStats(
        pending=pending,
        approval_rate=approval_rate,
        total_refunded=sum(_final_refund(r) for r in approved),
    )


class OwnerRefundsService:
    """Load, filter, decide and export an owner's refund requests."""

    def __init__(self, api: FlexiDeskClient) -> None:
        self.api = api

    async def load(
        self,
        status: Optional[str] = None,
        listing_id: Optional[str] = None,
        date_range: Optional[str] = None,
        query: str = "",
        sort: str = "requested_desc",
    ) -> OwnerRefundsView:
        """Fetch requests and derive the page view.

        Stats are computed over everything the API returned, before the
        local search narrows the list.
        """
        data = await self.api.get(
            "/owner/refunds",
            params={
                "status": None if status in (None, "", "all") else status,
                "listingId": None if listing_id in (None, "", "all") else listing_id,
                "startDate": date_range_start(date_range),
            },
        )
        requests = [with_id(r) for r in as_list(data, "requests") if isinstance(r, dict)]
        items = filter_and_sort(requests, query, sort)

        return OwnerRefundsView(
            items=items,
            stats=refund_stats(requests),
            total=len(items),
            listings=await self.listings(),
        )

    async def listings(self) -> list[dict[str, Any]]:
        """Owner's listings for the filter dropdown; empty on failure."""
        try:
            data = await self.api.get("/owner/listings/mine")
        except FlexiDeskError as exc:
            logger.warning("Owner listings unavailable: %s", exc.message)
            return []
        return [with_id(i) for i in as_list(data, "items") if isinstance(i, dict)]

    async def approve(self, request_id: str, notes: Optional[str] = None) -> Any:
        body = {"notes": notes.strip()} if notes and notes.strip() else {}
        result = await self.api.post(f"/owner/refunds/{request_id}/approve", json=body)
        logger.info("Refund request approved", extra={"request_id": request_id})
        return result

    async def reject(self, request_id: str, reason: Optional[str]) -> Any:
        """Reject a refund request.

        Raises:
            FlexiDeskError: REASON_REQUIRED when the reason is blank
        """
        cleaned = (reason or "").strip()
        if not cleaned:
            raise FlexiDeskError(
                ErrorCode.REASON_REQUIRED,
                message="Rejection reason is required",
            )
        result = await self.api.post(
            f"/owner/refunds/{request_id}/reject",
            json={"reason": cleaned},
        )
        logger.info("Refund request rejected", extra={"request_id": request_id})
        return result

    def export_csv(self, items: list[dict[str, Any]]) -> str:
        rows = [
            [
                format_date(r.get("requestedAt")),
                _client_name(r) or "—",
                _listing_title(r) or "—",
                _booking_code(r) or "—",
                number(r, "bookingAmount"),
                _final_refund(r),
                text(r, "status", default="—"),
                text(r, "cancellationReason", default="—"),
            ]
            for r in items
        ]
        return to_csv(CSV_HEADERS, rows)
