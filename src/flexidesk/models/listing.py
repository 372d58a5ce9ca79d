"""Listing models: the rate card used for quoting and the detail view."""

from typing import Any, Optional

from pydantic import Field, field_validator

from flexidesk.models.base import CamelModel, parse_amount


class RateCard(CamelModel):
    """Prices and fees of a listing.

    Every amount is optional; missing, non-numeric and non-finite values
    parse to ``None``. A rate counts as present only when it is > 0.
    """

    price_seat_hour: Optional[float] = None
    price_room_hour: Optional[float] = None
    price_seat_day: Optional[float] = None
    price_room_day: Optional[float] = None
    price_whole_day: Optional[float] = None
    price_whole_month: Optional[float] = None
    service_fee: Optional[float] = None
    cleaning_fee: Optional[float] = None
    min_hours: Optional[float] = None
    currency: str = "PHP"

    @field_validator(
        "price_seat_hour",
        "price_room_hour",
        "price_seat_day",
        "price_room_day",
        "price_whole_day",
        "price_whole_month",
        "service_fee",
        "cleaning_fee",
        "min_hours",
        mode="before",
    )
    @classmethod
    def lenient_amount(cls, v: Any) -> Optional[float]:
        return parse_amount(v)

    @field_validator("currency", mode="before")
    @classmethod
    def upper_currency(cls, v: Any) -> str:
        return str(v or "PHP").upper()

    @property
    def hourly_rates(self) -> list[Optional[float]]:
        return [self.price_seat_hour, self.price_room_hour]

    @property
    def daily_rates(self) -> list[Optional[float]]:
        return [self.price_seat_day, self.price_room_day, self.price_whole_day]

    @property
    def monthly_rates(self) -> list[Optional[float]]:
        return [self.price_whole_month]


class ListingView(CamelModel):
    """Display fields of the listing detail page."""

    id: str = ""
    title: str
    location: str
    currency: str
    currency_symbol: str
    price: float
    price_note: str
    host_first_name: str
    amenities: list[str] = Field(default_factory=list)
    capacity: float = 0
    rating: float = 5
    reviews_count: int = 0
    min_hours: Optional[float] = None
    is_hourly: bool = False
    ideal_for: list[str] = Field(default_factory=list)
    work_style: list[str] = Field(default_factory=list)
    industries: list[str] = Field(default_factory=list)
    owner_id: str = ""
