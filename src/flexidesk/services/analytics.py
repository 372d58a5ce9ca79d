"""Analytics dashboards: admin analytics, occupancy report, owner summary.

Dashboards render with fallbacks. Upstream failures become default values
and a permission banner when the API answered 403; they are not raised.
"""

import datetime as dt
import math
from typing import Any, Optional

from flexidesk.models.analytics import (
    AdminAnalyticsView,
    AnalyticsFilterOptions,
    DemandSummary,
    DescriptiveKpis,
    OccupancyOptions,
    OccupancyReport,
    OccupancyRow,
    OccupancySummary,
    OwnerAnalyticsSummary,
    OwnerAnalyticsView,
    PredictiveKpis,
    PrescriptiveInsight,
    PrescriptiveKpis,
    SeriesRow,
)
from flexidesk.models.base import as_number
from flexidesk.models.enums import OccupancyBucket
from flexidesk.models.errors import FlexiDeskError, UpstreamError
from flexidesk.services.api_client import FlexiDeskClient
from flexidesk.utils.csv_export import to_csv
from flexidesk.utils.dates import format_datetime, parse_date, parse_datetime, utcnow
from flexidesk.utils.logging import get_logger
from flexidesk.utils.records import as_list, matches, pluck, text, timestamp, with_id

logger = get_logger(__name__)

RANGE_LABELS = {"1d": "Last 1 day", "30d": "Last 1 month", "1y": "Last 1 year"}

SERIES_SORTS = ("occDesc", "forecastDesc", "deltaDesc")

SERIES_CSV_HEADERS = [
    "Day",
    "Actual occupancy (%)",
    "Forecast occupancy (%)",
    "Gap (forecast - actual)",
]
SERIES_CSV_FILENAME = "admin_analytics_descriptive_predictive.csv"

# Values at or below this are fractions of 1 rather than percentages
FRACTION_CEILING = 1.5


def range_label(value: Optional[str]) -> str:
    return RANGE_LABELS.get(value or "", "Custom")


def _settled(result: Any) -> Any:
    """Payload of a fan-out result, or None when the call failed.

    Only gateway errors are settled; anything else is a bug and propagates.
    """
    if isinstance(result, FlexiDeskError):
        return None
    if isinstance(result, BaseException):
        raise result
    return result


def _forbidden(result: Any) -> bool:
    return isinstance(result, UpstreamError) and result.is_forbidden


def _first_list(raw: Any, *keys: str) -> Optional[list[Any]]:
    """First value among keys that is present (truthy), if it is a list."""
    if not isinstance(raw, dict):
        return None
    for key in keys:
        value = raw.get(key)
        if value:
            return value if isinstance(value, list) else None
    return None


def prescriptive_usable(payload: Any) -> bool:
    return isinstance(payload, dict) and any(
        isinstance(payload.get(key), list) for key in ("insights", "recommendations", "actions")
    )


def normalize_insights(payload: Any) -> list[PrescriptiveInsight]:
    """Insights/recommendations/actions normalized to one shape.

    Entries with no title, description or actions are dropped.
    """
    items = _first_list(payload, "insights", "recommendations", "actions") or []
    insights = []
    for idx, raw in enumerate(items):
        if not isinstance(raw, dict):
            continue
        severity = str(pluck(raw, "severity", "level", "priority", default="")).lower()
        actions = next(
            (raw[k] for k in ("actions", "steps", "items") if isinstance(raw.get(k), list)),
            [],
        )
        insight = PrescriptiveInsight(
            key=str(raw.get("key") or raw.get("id") or f"db-{idx + 1}"),
            severity=severity or "medium",
            title=text(raw, "title", "name", default="Recommendation"),
            description=text(raw, "description", "rationale", "summary"),
            actions=actions,
            tags=raw["tags"] if isinstance(raw.get("tags"), list) else [],
            kpis=raw["kpis"] if isinstance(raw.get("kpis"), dict) else None,
        )
        if insight.title or insight.description or insight.actions:
            insights.append(insight)
    return insights


def _coalesce(raw: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


def prescriptive_kpis(payload: Any, insight_count: int) -> PrescriptiveKpis:
    """KPI cards; the action count falls back to the number of insights."""
    summary = None
    if isinstance(payload, dict):
        summary = payload.get("summary") or payload.get("kpis")
    if not isinstance(summary, dict):
        return PrescriptiveKpis(actions_count=insight_count)

    count = _coalesce(summary, "recommendedActions", "actionsCount", "count")
    return PrescriptiveKpis(
        actions_count=as_number(count) if count is not None else insight_count,
        revenue_lift=_coalesce(summary, "estimatedRevenueLift", "revenueLift"),
        occupancy_lift=_coalesce(summary, "estimatedOccupancyLift", "occupancyLift"),
        risk_score=_coalesce(summary, "riskScore", "risk"),
    )


def series_rows(series: list[Any]) -> list[SeriesRow]:
    """Occupancy series as percent rows with the forecast gap.

    A row whose actual and forecast values are both fractions is scaled to
    percent. A missing forecast equals the actual value.
    """
    rows = []
    for index, point in enumerate(series):
        point = point if isinstance(point, dict) else {}
        occ = as_number(point.get("occupancy"))
        fc = as_number(point.get("forecast"), default=occ)
        if max(occ, fc) <= FRACTION_CEILING:
            occ, fc = occ * 100, fc * 100
        rows.append(
            SeriesRow(id=index + 1, label=point.get("label"), occupancy=occ, forecast=fc, delta=fc - occ)
        )
    return rows


def filter_series(rows: list[SeriesRow], query: str = "", sort: Optional[str] = None) -> list[SeriesRow]:
    """Search over label and row number, then sort; unknown sorts keep order."""
    out = [r for r in rows if matches(query, r.label, str(r.id))]
    if sort == "occDesc":
        out.sort(key=lambda r: r.occupancy, reverse=True)
    elif sort == "forecastDesc":
        out.sort(key=lambda r: r.forecast, reverse=True)
    elif sort == "deltaDesc":
        out.sort(key=lambda r: r.delta, reverse=True)
    return out


def demand_summary(cycles: list[Any]) -> Optional[DemandSummary]:
    """Labels of the highest and lowest demand cycle (first one wins ties)."""
    points = [c for c in cycles if isinstance(c, dict)]
    if not points:
        return None
    peak = max(points, key=lambda c: as_number(c.get("value")))
    low = min(points, key=lambda c: as_number(c.get("value")))
    return DemandSummary(peak_label=peak.get("label"), low_label=low.get("label"))


def series_csv(rows: list[SeriesRow]) -> str:
    return to_csv(
        SERIES_CSV_HEADERS,
        ([r.label, round(r.occupancy, 1), round(r.forecast, 1), round(r.delta, 1)] for r in rows),
    )


class AdminAnalyticsService:
    """Admin descriptive, predictive and prescriptive analytics."""

    SECTIONS = ("overview", "forecast", "prescriptive", "demographics")

    def __init__(self, api: FlexiDeskClient) -> None:
        self.api = api

    async def load(
        self,
        range_: str = "30d",
        city: Optional[str] = None,
        category: Optional[str] = None,
        status: Optional[str] = None,
        query: str = "",
        sort: Optional[str] = None,
    ) -> AdminAnalyticsView:
        """Fetch the four analytics sections in parallel and build the view.

        Args:
            range_: ``1d``, ``30d`` or ``1y``
            city: City filter (``all`` for none)
            category: Category filter (``all`` for none)
            status: Status filter (``all`` for none)
            query: Search over series rows
            sort: Series sort key

        Returns:
            AdminAnalyticsView; sections that failed fall back to defaults
        """
        params = {
            "range": range_,
            "city": None if city in (None, "", "all") else city,
            "category": None if category in (None, "", "all") else category,
            "status": None if status in (None, "", "all") else status,
        }
        results = await self.api.fan_out(
            {name: self.api.get(f"/admin/analytics/{name}", params=params) for name in self.SECTIONS}
        )

        overview = _settled(results["overview"])
        forecast = _settled(results["forecast"])
        prescriptive = _settled(results["prescriptive"])
        demographics = _settled(results["demographics"])
        overview = overview if isinstance(overview, dict) else {}
        forecast = forecast if isinstance(forecast, dict) else {}

        permission_error = any(
            _forbidden(results[name]) for name in ("overview", "forecast", "prescriptive")
        ) or any(
            isinstance(p, dict) and p.get("permissionError")
            for p in (overview, forecast, prescriptive)
        )
        if permission_error:
            logger.warning("Analytics access denied", extra={"range": range_})

        usable = prescriptive_usable(prescriptive)
        insights = normalize_insights(prescriptive) if usable else []
        series = _first_list(overview, "occupancySeries") or _first_list(forecast, "occupancySeries") or []
        cycles = as_list(forecast.get("demandCycles"))

        return AdminAnalyticsView(
            range=range_,
            range_label=range_label(range_),
            permission_error=permission_error,
            prescriptive_unavailable=not usable,
            year_unavailable=range_ == "1y" and not series,
            rows=filter_series(series_rows(series), query, sort),
            demand_summary=demand_summary(cycles),
            high_risk_periods=as_list(forecast.get("highRiskPeriods")),
            bookings_by_type=as_list(overview.get("bookingsByType")),
            descriptive_kpis=DescriptiveKpis(
                avg_occupancy=overview.get("avgOccupancy") or "0%",
                total_bookings=overview.get("totalBookings") or 0,
                total_revenue=overview.get("totalRevenueFormatted") or "₱0",
                active_users=overview.get("activeUsers") or 0,
            ),
            predictive_kpis=PredictiveKpis(
                next_peak_day=forecast.get("nextPeakDay") or "-",
                next_peak_hour=forecast.get("nextPeakHour") or "",
                projected_occupancy=forecast.get("projectedOccupancy") or "0%",
                projected_peak_demand_index=max(
                    (as_number(c.get("value")) for c in cycles if isinstance(c, dict)),
                    default=0,
                ),
            ),
            insights=insights,
            prescriptive_kpis=prescriptive_kpis(prescriptive if usable else None, len(insights)),
            demographics=demographics.get("data") if isinstance(demographics, dict) else None,
        )

    async def filter_options(self) -> AnalyticsFilterOptions:
        """Cities and categories of active listings; empty on failure."""
        try:
            data = await self.api.get("/admin/listings", params={"limit": 1000, "status": "active"})
        except FlexiDeskError as exc:
            logger.warning("Analytics filter options unavailable: %s", exc.message)
            return AnalyticsFilterOptions()
        listings = [item for item in as_list(data, "listings") if isinstance(item, dict)]
        return AnalyticsFilterOptions(
            cities=sorted({str(item["city"]) for item in listings if item.get("city")}),
            categories=sorted({str(item["category"]) for item in listings if item.get("category")}),
        )


# Occupancy report

OCCUPANCY_CSV_HEADERS = [
    "ID",
    "Workspace",
    "Brand",
    "Branch",
    "Type",
    "Capacity",
    "Avg Occupancy",
    "Peak Hour",
    "Status",
    "Updated",
]

OCCUPANCY_SORTS = ("recent", "occDesc", "occAsc", "capacityDesc")

LOW_THRESHOLD = 0.4
HOT_THRESHOLD = 0.7
FOCUS_SIZE = 5

RECOMMENDATIONS = {
    OccupancyBucket.CRITICAL: "Consider promos, price adjustment, or repurpose to a smaller unit.",
    OccupancyBucket.LOW: "Improve visibility, bundle amenities, or offer off-peak discounts.",
    OccupancyBucket.HEALTHY: "Maintain current setup; explore small pricing tests.",
    OccupancyBucket.HOT: "Consider dynamic pricing, capacity controls, or waitlist rules during peak hours.",
}


def occupancy_bucket(avg_occ: Optional[float]) -> OccupancyBucket:
    value = avg_occ or 0
    if value < 0.25:
        return OccupancyBucket.CRITICAL
    if value < LOW_THRESHOLD:
        return OccupancyBucket.LOW
    if value < HOT_THRESHOLD:
        return OccupancyBucket.HEALTHY
    return OccupancyBucket.HOT


def occupancy_row(raw: dict[str, Any]) -> OccupancyRow:
    avg_occ = as_number(raw.get("avgOcc"))
    bucket = occupancy_bucket(avg_occ)
    return OccupancyRow(
        id=text(raw, "id", "_id"),
        name=text(raw, "name"),
        brand=text(raw, "brand"),
        branch=text(raw, "branch"),
        type=text(raw, "type"),
        status=text(raw, "status"),
        capacity=as_number(raw.get("capacity")),
        avg_occ=avg_occ,
        peak=text(raw, "peak"),
        updated_at=text(raw, "updatedAt") or None,
        bucket=bucket,
        recommendation=RECOMMENDATIONS[bucket],
    )


def _day_bound(value: Optional[str], end: bool) -> Optional[dt.datetime]:
    day = parse_date(value)
    if day is None:
        return None
    moment = dt.time(23, 59, 59) if end else dt.time()
    return dt.datetime.combine(day, moment, tzinfo=dt.UTC)


def filter_occupancy(
    rows: list[OccupancyRow],
    *,
    query: str = "",
    brand: Optional[str] = None,
    branch: Optional[str] = None,
    type_: Optional[str] = None,
    status: Optional[str] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    sort: str = "recent",
) -> list[OccupancyRow]:
    """Apply the report filters and sort.

    The custom date window, when given, keeps rows whose ``updatedAt`` falls
    inside it; rows without ``updatedAt`` are dropped.
    """
    out = [r for r in rows if matches(query, r.name, r.brand, r.branch, r.id)]
    for attr, wanted in (("brand", brand), ("branch", branch), ("type", type_), ("status", status)):
        if wanted not in (None, "", "all"):
            out = [r for r in out if getattr(r, attr) == wanted]

    start, end = _day_bound(date_from, end=False), _day_bound(date_to, end=True)
    if start or end:
        windowed = []
        for row in out:
            updated = parse_datetime(row.updated_at)
            if updated is None or (start and updated < start) or (end and updated > end):
                continue
            windowed.append(row)
        out = windowed

    if sort == "occDesc":
        out.sort(key=lambda r: r.avg_occ, reverse=True)
    elif sort == "occAsc":
        out.sort(key=lambda r: r.avg_occ)
    elif sort == "capacityDesc":
        out.sort(key=lambda r: r.capacity, reverse=True)
    else:
        out.sort(key=lambda r: timestamp(r.updated_at), reverse=True)
    return out


def occupancy_summary(raw: Any, rows: list[dict[str, Any]]) -> OccupancySummary:
    """Summary with defaults; capacity and healthy count derived when absent."""
    given = raw if isinstance(raw, dict) else {}
    summary = OccupancySummary.model_validate(
        {k: v for k, v in given.items() if v is not None}
    )
    if given.get("totalCapacity") is None:
        summary.total_capacity = sum(as_number(r.get("capacity")) for r in rows)
    if given.get("healthyCount") is None:
        summary.healthy_count = sum(1 for r in rows if as_number(r.get("avgOcc")) >= LOW_THRESHOLD)
    return summary


def occupancy_csv(rows: list[OccupancyRow]) -> str:
    return to_csv(
        OCCUPANCY_CSV_HEADERS,
        (
            [
                r.id,
                r.name,
                r.brand,
                r.branch,
                r.type,
                r.capacity,
                f"{math.floor(r.avg_occ * 100 + 0.5)}%",
                r.peak,
                r.status,
                format_datetime(r.updated_at, fallback="Not available"),
            ]
            for r in rows
        ),
    )


class OccupancyService:
    """Admin workspace occupancy report."""

    def __init__(self, api: FlexiDeskClient) -> None:
        self.api = api

    async def report(
        self,
        *,
        query: str = "",
        brand: Optional[str] = None,
        branch: Optional[str] = None,
        type_: Optional[str] = None,
        status: Optional[str] = None,
        date_preset: str = "last30",
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        sort: str = "recent",
    ) -> OccupancyReport:
        """Load and derive the occupancy report.

        The date window is only sent, and only applied locally, for the
        ``custom`` preset.
        """
        custom = date_preset == "custom"
        if not custom:
            date_from = date_to = None

        def _opt(value: Optional[str]) -> Optional[str]:
            return None if value in (None, "", "all") else value

        try:
            data = await self.api.get(
                "/admin/analytics/occupancy",
                params={
                    "brand": _opt(brand),
                    "branch": _opt(branch),
                    "type": _opt(type_),
                    "status": _opt(status),
                    "datePreset": date_preset,
                    "dateFrom": date_from,
                    "dateTo": date_to,
                },
            )
        except UpstreamError as exc:
            logger.warning("Occupancy report unavailable: %s", exc.message)
            return OccupancyReport(permission_error=exc.is_forbidden)

        data = data if isinstance(data, dict) else {}
        raw_rows = [r for r in as_list(data, "rows") if isinstance(r, dict)]
        rows = [occupancy_row(r) for r in raw_rows]
        visible = filter_occupancy(
            rows,
            query=query,
            brand=brand,
            branch=branch,
            type_=type_,
            status=status,
            date_from=date_from,
            date_to=date_to,
            sort=sort,
        )

        counts = {bucket.value: 0 for bucket in OccupancyBucket}
        for row in visible:
            counts[row.bucket.value] += 1

        return OccupancyReport(
            permission_error=bool(data.get("permissionError")),
            rows=visible,
            summary=occupancy_summary(data.get("summary"), raw_rows),
            by_hour=as_list(data, "byHour"),
            by_branch=as_list(data, "byBranch"),
            options=OccupancyOptions(
                brands=as_list(data, "brandOptions"),
                branches=as_list(data, "branchOptions"),
                types=as_list(data, "typeOptions"),
                statuses=as_list(data, "statusOptions"),
            ),
            counts=counts,
            focus_low=sorted(
                (r for r in visible if r.avg_occ < LOW_THRESHOLD), key=lambda r: r.avg_occ
            )[:FOCUS_SIZE],
            focus_hot=sorted(
                (r for r in visible if r.avg_occ >= HOT_THRESHOLD), key=lambda r: r.avg_occ, reverse=True
            )[:FOCUS_SIZE],
            hidden_count=max(0, len(rows) - len(visible)),
        )


# Owner analytics

WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
DEFAULT_HOURS = ("09:00", "12:00", "15:00", "18:00")


def fallback_earnings_series(avg_daily_earnings: float) -> list[dict[str, Any]]:
    """Weekly earnings curve around the daily average, for empty summaries."""
    base = as_number(avg_daily_earnings)
    if not base:
        return [{"label": label, "value": (i + 1) * 1000} for i, label in enumerate(WEEKDAYS)]
    return [
        {
            "label": label,
            "value": max(0, round(base * (0.8 + 0.4 * math.sin(i / len(WEEKDAYS) * math.pi * 2)))),
        }
        for i, label in enumerate(WEEKDAYS)
    ]


def fallback_occupancy_series(peak_hours: list[Any]) -> list[dict[str, Any]]:
    """Bars for the peak hours in rank order, or a default spread."""
    if peak_hours:
        return [{"hour": hour, "value": 70 - idx * 10} for idx, hour in enumerate(peak_hours)]
    return [{"hour": hour, "value": 40 + idx * 10} for idx, hour in enumerate(DEFAULT_HOURS)]


def period_label(
    month: Optional[str],
    year: Optional[str],
    date_range: Optional[dict[str, Any]] = None,
    today: Optional[dt.date] = None,
) -> str:
    current_year = (today or utcnow().date()).year
    month_no = int(as_number(month)) if month else 0
    if 1 <= month_no <= 12:
        return f"{MONTH_NAMES[month_no - 1]} {year or current_year}"
    if year:
        return f"Year {year}"
    if isinstance(date_range, dict) and date_range.get("days"):
        return f"{date_range['days']} days"
    return "Last 30 days"


class OwnerAnalyticsService:
    """Owner financial dashboard."""

    def __init__(self, api: FlexiDeskClient) -> None:
        self.api = api

    async def load(
        self,
        listing_id: Optional[str] = None,
        month: Optional[str] = None,
        year: Optional[str] = None,
        today: Optional[dt.date] = None,
    ) -> OwnerAnalyticsView:
        """Summary plus optional predictions and recommendations.

        A month without a year is sent with the current year. The summary
        call's errors propagate; the two optional calls fall back to None.

        Raises:
            UpstreamError: When the summary cannot be loaded
        """
        params: dict[str, Any] = {"listingId": listing_id or None}
        if month:
            params["month"] = month
            params["year"] = year or str((today or utcnow().date()).year)
        elif year:
            params["year"] = year

        results = await self.api.fan_out(
            {
                "summary": self.api.get("/owner/analytics/summary", params=params),
                "predictions": self.api.get("/owner/analytics/predictions"),
                "recommendations": self.api.get("/owner/analytics/recommendations"),
            }
        )
        if isinstance(results["summary"], BaseException):
            raise results["summary"]

        raw = results["summary"] if isinstance(results["summary"], dict) else {}
        summary = OwnerAnalyticsSummary.model_validate({k: v for k, v in raw.items() if v is not None})
        earnings = as_list(raw.get("earningsSeries"))
        hourly = as_list(raw.get("hourlyOccupancy"))

        return OwnerAnalyticsView(
            summary=summary,
            earnings_series=earnings or fallback_earnings_series(summary.avg_daily_earnings),
            occupancy_series=hourly or fallback_occupancy_series(summary.peak_hours),
            period_label=period_label(month, year, summary.date_range, today),
            predictions=_settled(results["predictions"]),
            recommendations=_settled(results["recommendations"]),
        )

    async def listings(self) -> list[dict[str, Any]]:
        """Owner's listings for the workspace filter; empty on failure."""
        try:
            data = await self.api.get("/owner/listings/mine", params={"limit": 100})
        except FlexiDeskError as exc:
            logger.warning("Owner listings unavailable: %s", exc.message)
            return []
        return [with_id(item) for item in as_list(data, "items") if isinstance(item, dict)]
