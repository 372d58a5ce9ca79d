"""Analytics dashboard models (admin analytics, occupancy report, owner)."""

from typing import Any, Optional

from pydantic import Field

from flexidesk.models.base import CamelModel
from flexidesk.models.enums import OccupancyBucket


class PrescriptiveInsight(CamelModel):
    """A recommendation from the prescriptive analytics endpoint."""

    key: str
    severity: str = "medium"
    title: str = "Recommendation"
    description: str = ""
    actions: list[Any] = Field(default_factory=list)
    tags: list[Any] = Field(default_factory=list)
    kpis: Optional[dict[str, Any]] = None


class PrescriptiveKpis(CamelModel):
    actions_count: float = 0
    revenue_lift: Any = None
    occupancy_lift: Any = None
    risk_score: Any = None


class SeriesRow(CamelModel):
    """One day of actual vs forecast occupancy, in percent."""

    id: int
    label: Any = None
    occupancy: float = 0
    forecast: float = 0
    delta: float = 0


class DemandSummary(CamelModel):
    peak_label: Any = None
    low_label: Any = None


class DescriptiveKpis(CamelModel):
    avg_occupancy: Any = "0%"
    total_bookings: Any = 0
    total_revenue: Any = "₱0"
    active_users: Any = 0


class PredictiveKpis(CamelModel):
    next_peak_day: Any = "-"
    next_peak_hour: Any = ""
    projected_occupancy: Any = "0%"
    projected_peak_demand_index: float = 0


class AdminAnalyticsView(CamelModel):
    """Admin analytics dashboard built from four independently settled calls."""

    range: str
    range_label: str
    permission_error: bool = False
    prescriptive_unavailable: bool = False
    year_unavailable: bool = False
    rows: list[SeriesRow] = Field(default_factory=list)
    demand_summary: Optional[DemandSummary] = None
    high_risk_periods: list[Any] = Field(default_factory=list)
    bookings_by_type: list[Any] = Field(default_factory=list)
    descriptive_kpis: DescriptiveKpis = Field(default_factory=DescriptiveKpis)
    predictive_kpis: PredictiveKpis = Field(default_factory=PredictiveKpis)
    insights: list[PrescriptiveInsight] = Field(default_factory=list)
    prescriptive_kpis: PrescriptiveKpis = Field(default_factory=PrescriptiveKpis)
    demographics: Optional[Any] = None


class AnalyticsFilterOptions(CamelModel):
    cities: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)


class OccupancySummary(CamelModel):
    """Headline occupancy figures; defaults stand in for missing keys."""

    avg_occupancy: float = 0
    peak_hour: Any = ""
    peak_day: Any = ""
    underutilized_count: int = 0
    healthy_count: int = 0
    total_capacity: float = 0


class OccupancyRow(CamelModel):
    """A workspace row annotated with its utilisation band."""

    id: str = ""
    name: str = ""
    brand: str = ""
    branch: str = ""
    type: str = ""
    status: str = ""
    capacity: float = 0
    avg_occ: float = 0
    peak: str = ""
    updated_at: Optional[str] = None
    bucket: OccupancyBucket = OccupancyBucket.CRITICAL
    recommendation: str = ""


class OccupancyOptions(CamelModel):
    brands: list[Any] = Field(default_factory=list)
    branches: list[Any] = Field(default_factory=list)
    types: list[Any] = Field(default_factory=list)
    statuses: list[Any] = Field(default_factory=list)


class OccupancyReport(CamelModel):
    """Filtered occupancy report with bucket counts and focus lists."""

    permission_error: bool = False
    rows: list[OccupancyRow] = Field(default_factory=list)
    summary: OccupancySummary = Field(default_factory=OccupancySummary)
    by_hour: list[Any] = Field(default_factory=list)
    by_branch: list[Any] = Field(default_factory=list)
    options: OccupancyOptions = Field(default_factory=OccupancyOptions)
    counts: dict[str, int] = Field(default_factory=dict)
    focus_low: list[OccupancyRow] = Field(default_factory=list)
    focus_hot: list[OccupancyRow] = Field(default_factory=list)
    hidden_count: int = 0


class OwnerAnalyticsSummary(CamelModel):
    total_earnings: float = 0
    occupancy_rate: float = 0
    avg_daily_earnings: float = 0
    peak_hours: list[Any] = Field(default_factory=list)
    listing_stats: list[Any] = Field(default_factory=list)
    date_range: Optional[dict[str, Any]] = None
    comparison: dict[str, Any] = Field(default_factory=dict)
    metrics: dict[str, Any] = Field(default_factory=dict)
    revenue_by_category: list[Any] = Field(default_factory=list)


class OwnerAnalyticsView(CamelModel):
    """Owner financial dashboard."""

    summary: OwnerAnalyticsSummary = Field(default_factory=OwnerAnalyticsSummary)
    earnings_series: list[dict[str, Any]] = Field(default_factory=list)
    occupancy_series: list[dict[str, Any]] = Field(default_factory=list)
    period_label: str = "Last 30 days"
    predictions: Optional[Any] = None
    recommendations: Optional[Any] = None
