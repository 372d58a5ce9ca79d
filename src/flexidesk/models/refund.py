"""Cancellation request and refund case view models."""

from typing import Any, Optional

from pydantic import Field

from flexidesk.models.base import CamelModel


class StatusBadge(CamelModel):
    """Label and badge variant for a status value."""

    value: str
    label: str
    badge: str


class CancellationsPage(CamelModel):
    """One page of admin cancellation requests."""

    items: list[dict[str, Any]] = Field(default_factory=list)
    total: int = 0
    pages: int = 0
    page: int = 1
    limit: int = 20
    status_badges: dict[str, StatusBadge] = Field(default_factory=dict)


class RefundStats(CamelModel):
    """Owner refund KPIs over the loaded requests."""

    pending: int = 0
    approval_rate: int = 0
    total_refunded: float = 0


class OwnerRefundsView(CamelModel):
    """Filtered and sorted owner refund requests."""

    items: list[dict[str, Any]] = Field(default_factory=list)
    stats: RefundStats = Field(default_factory=RefundStats)
    total: int = 0
    listings: list[dict[str, Any]] = Field(default_factory=list)


class RefundDecision(CamelModel):
    """Owner decision on a refund request."""

    reason: Optional[str] = None
    notes: Optional[str] = None
