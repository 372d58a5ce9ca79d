"""Client account page: profile, preferences, identity documents, trips, refunds."""

import datetime as dt
import uuid
from collections.abc import Sequence
from typing import Any, Optional

from flexidesk.models.account import AccountView, Preferences, TripGroup, TripItem
from flexidesk.models.base import parse_amount
from flexidesk.models.enums import StatusTone
from flexidesk.models.errors import ErrorCode, FlexiDeskError, UpstreamError
from flexidesk.services.api_client import FlexiDeskClient
from flexidesk.utils.dates import parse_datetime, utcnow
from flexidesk.utils.logging import get_logger
from flexidesk.utils.records import as_list, pluck, text, timestamp

logger = get_logger(__name__)

SUCCESS_STATUSES = frozenset({"paid", "completed", "confirmed", "approved"})
WARN_STATUSES = frozenset({"pending", "processing", "review", "requested"})
DANGER_STATUSES = frozenset({"cancelled", "canceled", "failed", "rejected", "refunded"})

IDENTITY_TONES = {
    "verified": StatusTone.SUCCESS,
    "pending": StatusTone.WARN,
    "rejected": StatusTone.DANGER,
}

# Tried in order; the first that answers with a list wins
BOOKING_SOURCES = (
    ("/bookings", {"scope": "me"}),
    ("/bookings/mine", None),
    ("/bookings", None),
    ("/account/bookings", None),
)

# (form field, (filename, content, content type))
Upload = tuple[str, tuple[str, bytes, str]]


def tone_for_status(status: Any) -> StatusTone:
    value = str(status or "").lower()
    if value in SUCCESS_STATUSES:
        return StatusTone.SUCCESS
    if value in WARN_STATUSES:
        return StatusTone.WARN
    if value in DANGER_STATUSES:
        return StatusTone.DANGER
    return StatusTone.NEUTRAL


def trip_item(raw: dict[str, Any]) -> TripItem:
    """Normalize a booking (or an API trip entry) to a trip card."""
    start = pluck(raw, "startDate", "start", "from")
    end = pluck(raw, "endDate", "end", "to")
    if start and end:
        dates = f"{str(start)[:10]} → {str(end)[:10]}"
    else:
        dates = text(raw, "dates")
    status = text(raw, "status", "state")
    refund_status = text(raw, "refund.status", "refundStatus")
    images = raw.get("listing", {}).get("images") if isinstance(raw.get("listing"), dict) else None
    first_image = images[0] if isinstance(images, list) and images else ""

    return TripItem(
        id=text(raw, "_id", "id", "bookingId", "uid") or uuid.uuid4().hex,
        title=text(raw, "listing.title", "listingTitle", "title", default="Booking"),
        img=text(raw, "listing.cover") or str(first_image or "") or text(raw, "img"),
        dates=dates,
        listing_name=text(raw, "listing.venue", "listing.city", "listingName"),
        status=status,
        status_tone=tone_for_status(status),
        total=parse_amount(pluck(raw, "total", "amount", "totalAmount", "priceTotal")),
        currency=text(raw, "currency", default="PHP"),
        refund_status=refund_status,
        refund_tone=tone_for_status(refund_status) if refund_status else StatusTone.NEUTRAL,
        starts_at=text(raw, "startDate", "createdAt", "created_at", "date", "start", "from") or None,
    )


def _trip_year(item: TripItem, today: dt.date) -> int:
    moment = parse_datetime(item.starts_at or item.dates[:10])
    return moment.year if moment else today.year


def group_trips_by_year(items: Sequence[TripItem], today: Optional[dt.date] = None) -> list[TripGroup]:
    """Trips grouped by year, newest year first and newest trip first.

    Trips without a usable date land in the current year.
    """
    current = today or utcnow().date()
    by_year: dict[int, list[TripItem]] = {}
    for item in items:
        by_year.setdefault(_trip_year(item, current), []).append(item)

    return [
        TripGroup(
            year=year,
            items=sorted(by_year[year], key=lambda t: timestamp(t.starts_at), reverse=True),
        )
        for year in sorted(by_year, reverse=True)
    ]


def _api_trips(trips: Any) -> list[dict[str, Any]]:
    """Flatten the ``trips`` groups returned by ``/account``."""
    out = []
    for group in as_list(trips):
        if isinstance(group, dict):
            out.extend(x for x in as_list(group.get("items")) if isinstance(x, dict))
    return out


class AccountService:
    """Read and update the signed-in client's account."""

    def __init__(self, api: FlexiDeskClient) -> None:
        self.api = api

    async def load(self, today: Optional[dt.date] = None) -> AccountView:
        """Account, bookings and refunds.

        Bookings and refunds are best effort; the account call is not.

        Raises:
            UpstreamError: When ``/account`` fails
        """
        data = await self.api.get("/account")
        data = data if isinstance(data, dict) else {}
        extra = await self.api.fan_out({"bookings": self.bookings(), "refunds": self.refunds()})
        for value in extra.values():
            if isinstance(value, BaseException):
                raise value

        profile = data.get("profile") if isinstance(data.get("profile"), dict) else None
        prefs = data.get("preferences") if isinstance(data.get("preferences"), dict) else {}
        rows = [b for b in extra["bookings"] if isinstance(b, dict)] + _api_trips(data.get("trips"))

        return AccountView(
            profile=profile,
            identity_tone=IDENTITY_TONES.get(str((profile or {}).get("identityStatus")), StatusTone.NEUTRAL),
            reviews=[r for r in as_list(data.get("reviews")) if isinstance(r, dict)],
            preferences=Preferences.model_validate({k: v for k, v in prefs.items() if v is not None}),
            trips=group_trips_by_year([trip_item(r) for r in rows], today),
            refunds=extra["refunds"],
        )

    async def bookings(self) -> list[Any]:
        for path, params in BOOKING_SOURCES:
            try:
                data = await self.api.get(path, params=params)
            except UpstreamError:
                continue
            if isinstance(data, list):
                return data
            if isinstance(data, dict):
                return as_list(data, "bookings") or as_list(data, "items")
        return []

    async def refunds(self) -> list[dict[str, Any]]:
        """Refund requests from ``/refunds``, else refund cases; empty on failure."""
        try:
            data = await self.api.get("/refunds")
            rows = as_list(data) or as_list(data, "refunds") or as_list(data, "items")
        except UpstreamError:
            try:
                data = await self.api.get("/cases", params={"kind": "refund"})
            except UpstreamError as exc:
                logger.warning("Refund requests unavailable: %s", exc.message)
                return []
            rows = as_list(data) or as_list(data, "cases") or as_list(data, "items")
        return [r for r in rows if isinstance(r, dict)]

    async def request_refund(self, booking_id: str, reason: Optional[str] = None) -> list[dict[str, Any]]:
        """File a refund request, falling back to a refund case, then reload refunds."""
        payload = {"bookingId": booking_id, "reason": (reason or "").strip()}
        try:
            await self.api.post("/refunds", json=payload)
        except UpstreamError as exc:
            if exc.code == ErrorCode.AUTH_REQUIRED:
                raise
            await self.api.post("/cases", json={**payload, "kind": "refund"})
        logger.info("Refund requested", extra={"booking_id": booking_id})
        return await self.refunds()

    async def update_profile(
        self,
        name: str = "",
        location: str = "",
        bio: str = "",
        avatar: Optional[tuple[str, bytes, str]] = None,
    ) -> Any:
        data = await self.api.put(
            "/account/profile",
            data={"name": name, "location": location, "bio": bio},
            files=[("avatar", avatar)] if avatar else None,
        )
        return data.get("profile") or data if isinstance(data, dict) else data

    async def update_preferences(self, prefs: Preferences) -> Preferences:
        data = await self.api.put("/account/preferences", json=prefs.model_dump(by_alias=True))
        saved = data.get("preferences") if isinstance(data, dict) else None
        return Preferences.model_validate(saved) if isinstance(saved, dict) else prefs

    async def upload_identity_docs(self, uploads: Sequence[Upload]) -> dict[str, Any]:
        """Upload the front and/or back of an identity document.

        Raises:
            FlexiDeskError: MISSING_UPLOAD when neither side is given
        """
        if not uploads:
            raise FlexiDeskError(ErrorCode.MISSING_UPLOAD)
        data = await self.api.post("/account/identity-docs", files=list(uploads))
        data = data if isinstance(data, dict) else {}
        logger.info("Identity documents uploaded", extra={"sides": [field for field, _ in uploads]})
        return {
            "identityStatus": data.get("identityStatus"),
            "documents": data.get("documents"),
        }
