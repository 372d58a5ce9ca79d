"""Price quote estimator for the listing detail page.

The quote is a display estimate: the API prices the booking again at
checkout. Nothing here raises on bad input; an incomplete or unparsable
selection simply yields no quote.
"""

import datetime as dt
import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from flexidesk.models.enums import PricingMode
from flexidesk.models.errors import ErrorCode, FlexiDeskError
from flexidesk.models.listing import ListingView, RateCard
from flexidesk.models.policy import CancellationPolicy
from flexidesk.models.quote import CheckoutIntent, PricingSnapshot, Quote, QuoteFees
from flexidesk.utils.dates import nights_between, parse_date, parse_time, to_minutes
from flexidesk.utils.logging import get_logger

logger = get_logger(__name__)

CURRENCY_SYMBOLS: dict[str, str] = {"PHP": "₱", "USD": "$"}

# Stays of this many nights or more bill as one whole month
MONTH_THRESHOLD_NIGHTS = 27


# Beyond this, floats carry no cents and Decimal quantize runs out of precision
_MAX_EXACT_AMOUNT = 1e15


def round2(value: float) -> float:
    """Round half-up to two decimals."""
    if not math.isfinite(value) or abs(value) >= _MAX_EXACT_AMOUNT:
        return value
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def first_positive(values: list[Any]) -> float:
    """First value that is a finite number > 0, else 0."""
    for value in values:
        if value is None or isinstance(value, bool):
            continue
        try:
            number = float(value)
        except (TypeError, ValueError, OverflowError):
            continue
        if math.isfinite(number) and number > 0:
            return number
    return 0.0


def currency_symbol(currency: Optional[str]) -> str:
    code = str(currency or "PHP").upper()
    return CURRENCY_SYMBOLS.get(code, f"{code} ")


def diff_days(start: dt.date, end: dt.date) -> int:
    """Calendar days between two dates, never less than 1."""
    return max(1, (end - start).days)


def count_day_slots(start: Optional[dt.date], end: Optional[dt.date]) -> int:
    """Number of calendar days the selection touches."""
    if start is None or end is None:
        return 0
    if start == end:
        return 1
    return diff_days(start, end) + 1


def diff_hours(
    start: Optional[dt.date],
    check_in: Optional[dt.time],
    end: Optional[dt.date],
    check_out: Optional[dt.time],
) -> float:
    """Billable hours for a selection, rounded up to a quarter hour.

    The per-day window is check-in to check-out on the start date. When that
    is empty (overnight windows) the full span from start to end is used.
    The window is multiplied by the number of days touched.
    """
    if start is None or end is None:
        return 0.0

    time_in = check_in or dt.time()
    time_out = check_out or dt.time()

    opened = dt.datetime.combine(start, time_in)
    per_day = dt.datetime.combine(start, time_out) - opened
    if per_day.total_seconds() <= 0:
        per_day = dt.datetime.combine(end, time_out) - opened
    if per_day.total_seconds() <= 0:
        return 0.0

    total = per_day.total_seconds() / 3600 * count_day_slots(start, end)
    return math.ceil(total * 4) / 4


def has_rate(values: list[Optional[float]]) -> bool:
    return first_positive(values) > 0


def pick_pricing_mode(rates: RateCard, hours: float) -> PricingMode:
    """Hourly when an hourly rate exists and hours > 0, then daily, then monthly."""
    if has_rate(rates.hourly_rates) and hours > 0:
        return PricingMode.HOUR
    if has_rate(rates.daily_rates):
        return PricingMode.DAY
    if has_rate(rates.monthly_rates):
        return PricingMode.MONTH
    return PricingMode.DAY


def unit_price(rates: RateCard, mode: PricingMode) -> float:
    if mode == PricingMode.HOUR:
        return first_positive(rates.hourly_rates)
    if mode == PricingMode.MONTH:
        return first_positive(rates.monthly_rates)
    return first_positive(rates.daily_rates)


def _fmt_qty(value: float) -> str:
    return f"{value:g}"


def quote_label(mode: PricingMode, quantity: float) -> str:
    if mode == PricingMode.HOUR:
        return f"{_fmt_qty(quantity)} hour(s)"
    if mode == PricingMode.DAY:
        return f"{_fmt_qty(quantity)} day(s)"
    return f"{quantity:.{0 if quantity >= 1 else 2}f} month(s)"


def _as_rate_card(listing: RateCard | dict[str, Any]) -> RateCard:
    if isinstance(listing, RateCard):
        return listing
    return RateCard.model_validate(listing or {})


def _guest_count(guests: Any) -> int:
    try:
        count = int(guests)
    except (TypeError, ValueError, OverflowError):
        return 1
    return max(1, count)


class PricingService:
    """Quote, validate and build checkout intents for a listing selection."""

    def __init__(self, today: Optional[dt.date] = None) -> None:
        """Initialize pricing service.

        Args:
            today: Fixed "today" for past-date checks (defaults to the real date)
        """
        self._today = today

    @property
    def today(self) -> dt.date:
        return self._today or dt.date.today()

    def estimate_quote(
        self,
        listing: RateCard | dict[str, Any],
        start_date: Any,
        end_date: Any,
        check_in_time: Any,
        check_out_time: Any,
        guests: Any = 1,
    ) -> Quote | None:
        """Estimate the price of a selection.

        Args:
            listing: Rate card or raw listing payload
            start_date: ``YYYY-MM-DD``
            end_date: ``YYYY-MM-DD``
            check_in_time: ``HH:MM``
            check_out_time: ``HH:MM``
            guests: Guest count (coerced to >= 1)

        Returns:
            Quote, or None when any date/time is missing or unparsable or
            the total overflows
        """
        start = parse_date(start_date)
        end = parse_date(end_date)
        time_in = parse_time(check_in_time)
        time_out = parse_time(check_out_time)
        if start is None or end is None or time_in is None or time_out is None:
            return None

        rates = _as_rate_card(listing)
        hours = diff_hours(start, time_in, end, time_out)
        nights = diff_days(start, end)

        mode = pick_pricing_mode(rates, hours)
        price = unit_price(rates, mode)

        if mode == PricingMode.HOUR:
            quantity = max(0.0, hours)
        elif mode == PricingMode.DAY:
            quantity = float(max(1, nights))
        else:
            quantity = 1.0 if nights >= MONTH_THRESHOLD_NIGHTS else nights / 30

        service_fee = rates.service_fee or 0.0
        cleaning_fee = rates.cleaning_fee or 0.0
        base = max(0.0, price * quantity)
        total = max(0.0, base + service_fee + cleaning_fee)
        if not math.isfinite(total):
            logger.warning("Quote overflowed for rates %s", rates.model_dump(exclude_none=True))
            return None

        return Quote(
            mode=mode,
            unit_price=price,
            quantity=quantity,
            base=round2(base),
            fees=QuoteFees(service=service_fee, cleaning=cleaning_fee),
            total=round2(total),
            hours=hours,
            nights=nights,
            guests=_guest_count(guests),
            label=quote_label(mode, quantity),
        )

    def validate_selection(
        self,
        listing: RateCard | dict[str, Any],
        start_date: Any,
        end_date: Any,
        check_in_time: Any,
        check_out_time: Any,
        *,
        blocked_dates: Optional[list[str]] = None,
        has_conflict: bool = False,
    ) -> list[str]:
        """Pre-reserve checks for a selection.

        Missing dates or times stop the checks early. An empty list means the
        selection can proceed to checkout.

        Returns:
            Human-readable problems, in display order
        """
        if not start_date or not end_date:
            return ["Pick dates first"]
        if not check_in_time or not check_out_time:
            return ["Select time in & time out"]

        start = parse_date(start_date)
        end = parse_date(end_date)
        if start is None or end is None:
            return ["Pick dates first"]

        problems: list[str] = []
        if start < self.today or end < self.today:
            problems.append("You can't select past dates.")
        if end < start:
            problems.append("Check-out date can't be before check-in.")
            return problems

        if start == end:
            minutes_in = to_minutes(check_in_time)
            minutes_out = to_minutes(check_out_time)
            if minutes_in is None or minutes_out is None:
                problems.append("Invalid time selected")
                return problems
            if minutes_out <= minutes_in:
                problems.append("Time out must be after time in")

        rates = _as_rate_card(listing)
        min_hours = rates.min_hours or 0
        if min_hours > 0:
            hours = diff_hours(start, parse_time(check_in_time), end, parse_time(check_out_time))
            if 0 < hours < min_hours:
                problems.append(f"Minimum {_fmt_qty(min_hours)} hour(s) required")

        if blocked_dates and not has_rate(rates.hourly_rates):
            blocked = set(blocked_dates)
            if any(night.isoformat() in blocked for night in nights_between(start, end)):
                problems.append(
                    "Your stay overlaps dates that are already booked. Please adjust your dates."
                )

        if has_conflict:
            problems.append("This time slot is already booked. Please choose another.")

        return problems

    def checkout_intent(
        self,
        listing_id: str,
        listing: RateCard | dict[str, Any],
        start_date: str,
        end_date: str,
        check_in_time: str,
        check_out_time: str,
        guests: Any = 1,
        *,
        policy: Optional[CancellationPolicy] = None,
        policy_acknowledged: bool = False,
        blocked_dates: Optional[list[str]] = None,
        has_conflict: bool = False,
    ) -> CheckoutIntent:
        """Build the reservation intent handed to checkout.

        Raises:
            FlexiDeskError: INVALID_SELECTION when the selection fails
                validation, has no quote, or the policy is unacknowledged
        """
        try:
            guest_count = int(guests)
        except (TypeError, ValueError, OverflowError):
            guest_count = 0
        if guest_count < 1:
            raise FlexiDeskError(ErrorCode.INVALID_SELECTION, message="Guests must be at least 1")

        problems = self.validate_selection(
            listing,
            start_date,
            end_date,
            check_in_time,
            check_out_time,
            blocked_dates=blocked_dates,
            has_conflict=has_conflict,
        )
        if problems:
            raise FlexiDeskError(
                ErrorCode.INVALID_SELECTION,
                details={"problems": problems},
                message=problems[0],
            )

        rates = _as_rate_card(listing)
        quote = self.estimate_quote(
            rates, start_date, end_date, check_in_time, check_out_time, guest_count
        )
        if quote is None:
            raise FlexiDeskError(
                ErrorCode.INVALID_SELECTION,
                message="Select valid dates/times to continue",
            )

        if policy is not None and policy.allow_cancellation and not policy_acknowledged:
            raise FlexiDeskError(
                ErrorCode.INVALID_SELECTION,
                message="Please acknowledge the cancellation policy to continue",
            )

        logger.info(
            "Checkout intent built",
            extra={"listing_id": listing_id, "mode": quote.mode.value, "total": quote.total},
        )

        return CheckoutIntent(
            listing_id=listing_id,
            start_date=start_date,
            end_date=end_date,
            check_in_time=check_in_time,
            check_out_time=check_out_time,
            nights=quote.nights,
            total_hours=quote.hours,
            guests=guest_count,
            pricing=PricingSnapshot(
                mode=quote.mode,
                unit_price=quote.unit_price,
                quantity=quote.quantity,
                base=quote.base,
                fees=quote.fees,
                total=quote.total,
                currency_symbol=currency_symbol(rates.currency),
                label=quote.label,
            ),
            cancellation_policy=policy,
            policy_acknowledged=policy_acknowledged,
        )

    def listing_view(self, raw: dict[str, Any]) -> ListingView:
        """Display fields for the listing detail page."""
        rates = _as_rate_card(raw)

        if has_rate(rates.hourly_rates):
            price, note = first_positive(rates.hourly_rates), "/ hour"
        elif has_rate(rates.daily_rates):
            price, note = first_positive(rates.daily_rates), "/ day"
        elif has_rate(rates.monthly_rates):
            price, note = first_positive(rates.monthly_rates), "/ month"
        else:
            price, note = 0.0, "/ day"

        category = _cap(raw.get("category"))
        scope = _cap(raw.get("scope"))
        title = raw.get("venue") or " • ".join(p for p in (category, scope) if p) or "Space"

        address_parts = [
            raw.get(key)
            for key in ("address", "address2", "district", "city", "region", "zip", "country")
        ]
        location = ", ".join(str(p) for p in address_parts if p) or "—"

        amenities = raw.get("amenities") or []
        if isinstance(amenities, dict):
            amenities = [key for key, enabled in amenities.items() if enabled]

        owner = raw.get("owner")
        host_name = ""
        if isinstance(owner, dict):
            host_name = (
                owner.get("name")
                or owner.get("fullName")
                or owner.get("firstName")
                or owner.get("displayName")
                or ""
            )
        host_name = host_name or raw.get("hostName") or ""

        owner_id = raw.get("ownerId") or ""
        if isinstance(owner, dict):
            owner_id = owner_id or owner.get("_id") or owner.get("id") or ""
        elif isinstance(owner, str):
            owner_id = owner_id or owner

        try:
            reviews_count = int(raw.get("reviewsCount") or 0)
        except (TypeError, ValueError, OverflowError):
            reviews_count = 0

        return ListingView(
            id=str(raw.get("_id") or raw.get("id") or ""),
            title=title,
            location=location,
            currency=rates.currency,
            currency_symbol=currency_symbol(rates.currency),
            price=price,
            price_note=note,
            host_first_name=first_name_only(host_name) or "Host",
            amenities=[_pretty_amenity(a) for a in amenities],
            capacity=first_positive(
                [raw.get("capacity"), raw.get("seatCapacity"), raw.get("maxGuests"), raw.get("seats")]
            ),
            rating=first_positive([raw.get("rating")]) or 5,
            reviews_count=reviews_count,
            min_hours=rates.min_hours,
            is_hourly=has_rate(rates.hourly_rates),
            ideal_for=_str_list(raw.get("idealFor")),
            work_style=_str_list(raw.get("workStyle")),
            industries=_str_list(raw.get("industries")),
            owner_id=str(owner_id),
        )


def _cap(value: Any) -> str:
    text = str(value or "")
    return text[:1].upper() + text[1:]


def _pretty_amenity(value: Any) -> str:
    return _cap(" ".join(str(value).replace("_", " ").split()))


def _str_list(value: Any) -> list[str]:
    if isinstance(value, list):
        return [str(v) for v in value if v]
    return []


def first_name_only(name: Any) -> str:
    """Capitalised first token of a display name (split on space or hyphen)."""
    if not name:
        return ""
    clean = " ".join(str(name).split())
    token = clean.replace("-", " ").split(" ")[0] if clean else ""
    return _cap(token)
