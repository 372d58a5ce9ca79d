"""Booking view models for owner and client pages."""

from typing import Any, Optional

from pydantic import Field

from flexidesk.models.base import CamelModel
from flexidesk.models.policy import CancellationPolicy


class BookingTotals(CamelModel):
    """Owner booking KPIs over the loaded rows."""

    count: int = 0
    revenue: float = 0
    guests: int = 0


class OwnerBookingsView(CamelModel):
    """Filtered and sorted owner bookings with a pagination cursor."""

    items: list[dict[str, Any]] = Field(default_factory=list)
    next_cursor: Optional[str] = None
    totals: BookingTotals = Field(default_factory=BookingTotals)


class OwnerBookingDetail(CamelModel):
    """Booking detail plus the actions the owner may take."""

    booking: dict[str, Any]
    can_complete: bool = False
    available_statuses: list[str] = Field(default_factory=list)


class BookingFlags(CamelModel):
    """Per-booking action flags on the client bookings page."""

    is_past: bool = False
    is_pending_payment: bool = False
    can_review: bool = False
    can_cancel: bool = False
    can_pay: bool = False
    qr_available: bool = False
    reviewed: bool = False


class ClientBooking(CamelModel):
    """A booking merged with its review flag, refund case and action flags."""

    booking: dict[str, Any]
    refund_case: Optional[dict[str, Any]] = None
    flags: BookingFlags = Field(default_factory=BookingFlags)


class ClientBookingsView(CamelModel):
    """Client bookings split by start time."""

    upcoming: list[ClientBooking] = Field(default_factory=list)
    past: list[ClientBooking] = Field(default_factory=list)


class CancellationPreview(CamelModel):
    """Policy and refund calculation shown before cancelling."""

    booking_id: str
    policy: Optional[CancellationPolicy] = None
    calculation: Optional[dict[str, Any]] = None


class CancelRequest(CamelModel):
    """Client cancellation submission."""

    reason: Optional[str] = None
    reason_other: Optional[str] = None
