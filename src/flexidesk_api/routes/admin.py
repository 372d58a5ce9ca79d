"""Admin console endpoints.

Provides REST endpoints for:
- Cancellation requests (list, stats, detail, CSV export)
- Platform analytics (descriptive, predictive, prescriptive) with CSV export
- Workspace occupancy report with CSV export
- Review moderation queue, moderation actions, analytics and CSV export

Analytics and occupancy degrade to defaults when sections fail upstream;
a 403 from any section sets ``permissionError`` instead of failing.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Response

from flexidesk.models.analytics import AdminAnalyticsView, AnalyticsFilterOptions, OccupancyReport
from flexidesk.models.refund import CancellationsPage
from flexidesk.models.review import ModerationQueue, ModerationRequest, ReviewAnalytics
from flexidesk.services.analytics import (
    OCCUPANCY_SORTS,
    SERIES_CSV_FILENAME,
    SERIES_SORTS,
    AdminAnalyticsService,
    OccupancyService,
    occupancy_csv,
    series_csv,
)
from flexidesk.services.cancellations import PAGE_SIZE, CancellationsService
from flexidesk.services.reviews import MODERATION_PAGE_SIZE, ModerationService
from flexidesk.utils.csv_export import export_filename
from flexidesk_api.dependencies import (
    get_admin_analytics_service,
    get_cancellations_service,
    get_moderation_service,
    get_occupancy_service,
)
from flexidesk_api.responses import csv_response

router = APIRouter(tags=["admin"])

OCCUPANCY_CSV_FILENAME = "occupancy_report.csv"


# Cancellations


@router.get(
    "/admin/cancellations",
    summary="List cancellation requests",
    description="One page of cancellation requests. `all` filters are omitted upstream.",
    response_model=CancellationsPage,
)
async def list_cancellations(
    status: Optional[str] = Query(None, description="Request status (`all` for none)"),
    is_automatic: Optional[str] = Query(None, description="true, false or all"),
    search: Optional[str] = Query(None, description="Free-text search"),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(PAGE_SIZE, ge=1, le=100, description="Page size"),
    service: CancellationsService = Depends(get_cancellations_service),
) -> CancellationsPage:
    return await service.list_requests(status, is_automatic, search, page, limit)


@router.get(
    "/admin/cancellations/stats",
    summary="Get cancellation stats",
)
async def get_cancellation_stats(
    service: CancellationsService = Depends(get_cancellations_service),
) -> dict[str, Any]:
    return await service.stats()


@router.get(
    "/admin/cancellations/export.csv",
    summary="Export cancellation requests",
    description="CSV of the page the list endpoint returns for the same filters.",
    response_class=Response,
)
async def export_cancellations(
    status: Optional[str] = Query(None),
    is_automatic: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(PAGE_SIZE, ge=1, le=100),
    service: CancellationsService = Depends(get_cancellations_service),
) -> Response:
    result = await service.list_requests(status, is_automatic, search, page, limit)
    return csv_response(service.export_csv(result.items), export_filename("cancellations"))


@router.get(
    "/admin/cancellations/{request_id}",
    summary="Get a cancellation request",
)
async def get_cancellation(
    request_id: str,
    service: CancellationsService = Depends(get_cancellations_service),
) -> dict[str, Any]:
    return await service.get_request(request_id)


# Analytics


@router.get(
    "/admin/analytics",
    summary="Get platform analytics",
    description="""
Overview, forecast, prescriptive insights and demographics loaded in
parallel, each settled independently.

**Series sorts:** `occDesc`, `forecastDesc`, `deltaDesc`

**Notes:**
- Occupancy fractions are scaled to percent
- `yearUnavailable` is set for `1y` when no series came back
- `prescriptiveUnavailable` is set when insights cannot be used
""",
    response_model=AdminAnalyticsView,
)
async def get_analytics(
    range_: str = Query("30d", alias="range", description="1d, 30d or 1y"),
    city: Optional[str] = Query(None, description="City filter (`all` for none)"),
    category: Optional[str] = Query(None, description="Category filter (`all` for none)"),
    status: Optional[str] = Query(None, description="Status filter (`all` for none)"),
    q: str = Query("", description="Search over series labels"),
    sort: Optional[str] = Query(None, description=f"Series sort: {', '.join(SERIES_SORTS)}"),
    service: AdminAnalyticsService = Depends(get_admin_analytics_service),
) -> AdminAnalyticsView:
    return await service.load(range_, city, category, status, q, sort)


@router.get(
    "/admin/analytics/filters",
    summary="Get analytics filter options",
    description="Cities and categories of active listings. Empty when unavailable.",
    response_model=AnalyticsFilterOptions,
)
async def get_analytics_filters(
    service: AdminAnalyticsService = Depends(get_admin_analytics_service),
) -> AnalyticsFilterOptions:
    return await service.filter_options()


@router.get(
    "/admin/analytics/export.csv",
    summary="Export analytics series",
    response_class=Response,
)
async def export_analytics(
    range_: str = Query("30d", alias="range"),
    city: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    q: str = Query(""),
    sort: Optional[str] = Query(None),
    service: AdminAnalyticsService = Depends(get_admin_analytics_service),
) -> Response:
    view = await service.load(range_, city, category, status, q, sort)
    return csv_response(series_csv(view.rows), SERIES_CSV_FILENAME)


# Occupancy


@router.get(
    "/admin/occupancy",
    summary="Get occupancy report",
    description="""
Workspace occupancy with bucket counts, recommendations and focus lists.

**Buckets:** critical below 25%, low below 40%, healthy below 70%, hot
otherwise.

**Sorts:** `recent` (default), `occDesc`, `occAsc`, `capacityDesc`

The date window applies only to the `custom` preset.
""",
    response_model=OccupancyReport,
)
async def get_occupancy(
    q: str = Query("", description="Search over name, brand and branch"),
    brand: Optional[str] = Query(None),
    branch: Optional[str] = Query(None),
    type_: Optional[str] = Query(None, alias="type"),
    status: Optional[str] = Query(None),
    date_preset: str = Query("last30", description="Upstream date preset, or `custom` for an explicit window"),
    date_from: Optional[str] = Query(None, description="Custom window start (YYYY-MM-DD)"),
    date_to: Optional[str] = Query(None, description="Custom window end (YYYY-MM-DD)"),
    sort: str = Query("recent", description=f"One of {', '.join(OCCUPANCY_SORTS)}"),
    service: OccupancyService = Depends(get_occupancy_service),
) -> OccupancyReport:
    return await service.report(
        query=q,
        brand=brand,
        branch=branch,
        type_=type_,
        status=status,
        date_preset=date_preset,
        date_from=date_from,
        date_to=date_to,
        sort=sort,
    )


@router.get(
    "/admin/occupancy/export.csv",
    summary="Export occupancy report",
    response_class=Response,
)
async def export_occupancy(
    q: str = Query(""),
    brand: Optional[str] = Query(None),
    branch: Optional[str] = Query(None),
    type_: Optional[str] = Query(None, alias="type"),
    status: Optional[str] = Query(None),
    date_preset: str = Query("last30"),
    date_from: Optional[str] = Query(None),
    date_to: Optional[str] = Query(None),
    sort: str = Query("recent"),
    service: OccupancyService = Depends(get_occupancy_service),
) -> Response:
    report = await service.report(
        query=q,
        brand=brand,
        branch=branch,
        type_=type_,
        status=status,
        date_preset=date_preset,
        date_from=date_from,
        date_to=date_to,
        sort=sort,
    )
    return csv_response(occupancy_csv(report.rows), OCCUPANCY_CSV_FILENAME)


# Review moderation


@router.get(
    "/admin/reviews/flagged",
    summary="List flagged reviews",
    response_model=ModerationQueue,
)
async def list_flagged_reviews(
    status: Optional[str] = Query("flagged", description="Moderation status (`all` for none)"),
    reason: Optional[str] = Query(None, description="Flag reason (`all` for none)"),
    search: Optional[str] = Query(None),
    sort: str = Query("flaggedAt_desc"),
    page: int = Query(1, ge=1),
    limit: int = Query(MODERATION_PAGE_SIZE, ge=1, le=100),
    service: ModerationService = Depends(get_moderation_service),
) -> ModerationQueue:
    return await service.flagged(status, reason, search, sort, page, limit)


@router.get(
    "/admin/reviews/flagged/export.csv",
    summary="Export flagged reviews",
    response_class=Response,
)
async def export_flagged_reviews(
    status: Optional[str] = Query("flagged"),
    reason: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    sort: str = Query("flaggedAt_desc"),
    page: int = Query(1, ge=1),
    limit: int = Query(MODERATION_PAGE_SIZE, ge=1, le=100),
    service: ModerationService = Depends(get_moderation_service),
) -> Response:
    queue = await service.flagged(status, reason, search, sort, page, limit)
    return csv_response(service.export_csv(queue.reviews), export_filename("flagged_reviews"))


@router.post(
    "/admin/reviews/{review_id}/moderate",
    summary="Moderate a review",
    description="Apply a moderation action, then return the re-fetched queue for the given filters.",
    response_model=ModerationQueue,
)
async def moderate_review(
    review_id: str,
    body: ModerationRequest,
    status: Optional[str] = Query("flagged"),
    reason: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    sort: str = Query("flaggedAt_desc"),
    page: int = Query(1, ge=1),
    limit: int = Query(MODERATION_PAGE_SIZE, ge=1, le=100),
    service: ModerationService = Depends(get_moderation_service),
) -> ModerationQueue:
    return await service.moderate(
        review_id,
        body.action,
        body.notes,
        status=status,
        reason=reason,
        search=search,
        sort=sort,
        page=page,
        limit=limit,
    )


@router.get(
    "/admin/reviews/analytics",
    summary="Get review analytics",
    response_model=ReviewAnalytics,
)
async def get_review_analytics(
    start_date: Optional[str] = Query(None, description="Window start (YYYY-MM-DD)"),
    end_date: Optional[str] = Query(None, description="Window end (YYYY-MM-DD)"),
    service: ModerationService = Depends(get_moderation_service),
) -> ReviewAnalytics:
    return await service.analytics(start_date, end_date)
