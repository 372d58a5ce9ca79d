"""Client account models."""

from typing import Any, Optional

from pydantic import Field

from flexidesk.models.base import CamelModel
from flexidesk.models.enums import StatusTone


class Preferences(CamelModel):
    """Workspace preferences; the defaults apply to new accounts."""

    workspace_type: str = "any"
    seating_preference: str = "any"
    allow_instant_bookings: bool = True
    preferred_city: str = ""
    receive_email_updates: bool = True


class TripItem(CamelModel):
    """A booking or completed stay on the trips tab."""

    id: str
    title: str = "Booking"
    img: str = ""
    dates: str = ""
    listing_name: str = ""
    status: str = ""
    status_tone: StatusTone = StatusTone.NEUTRAL
    total: Optional[float] = None
    currency: str = "PHP"
    refund_status: str = ""
    refund_tone: StatusTone = StatusTone.NEUTRAL
    starts_at: Optional[str] = None


class TripGroup(CamelModel):
    year: int
    items: list[TripItem] = Field(default_factory=list)


class AccountView(CamelModel):
    """Everything the account page shows."""

    profile: Optional[dict[str, Any]] = None
    identity_tone: StatusTone = StatusTone.NEUTRAL
    reviews: list[dict[str, Any]] = Field(default_factory=list)
    preferences: Preferences = Field(default_factory=Preferences)
    trips: list[TripGroup] = Field(default_factory=list)
    refunds: list[dict[str, Any]] = Field(default_factory=list)


class RefundRequest(CamelModel):
    booking_id: str
    reason: str = ""
