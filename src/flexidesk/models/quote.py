"""Price quote and checkout intent models."""

from typing import Optional

from pydantic import Field

from flexidesk.models.base import CamelModel
from flexidesk.models.enums import PricingMode
from flexidesk.models.policy import CancellationPolicy


class QuoteFees(CamelModel):
    """Flat fees added on top of the base price."""

    service: float = 0
    cleaning: float = 0


class Quote(CamelModel):
    """Client-side estimate of a booking's price.

    Display only; the API computes the authoritative amount at checkout.
    """

    mode: PricingMode
    unit_price: float
    quantity: float
    base: float
    fees: QuoteFees
    total: float
    hours: float
    nights: int
    guests: int = Field(ge=1)
    label: str


class PricingSnapshot(CamelModel):
    """Quote fields frozen into the checkout intent."""

    mode: PricingMode
    unit_price: float
    quantity: float
    base: float
    fees: QuoteFees
    total: float
    currency_symbol: str
    label: str


class CheckoutIntent(CamelModel):
    """Reservation intent handed to the checkout page."""

    listing_id: str
    start_date: str
    end_date: str
    check_in_time: str
    check_out_time: str
    nights: int
    total_hours: float
    guests: int
    pricing: PricingSnapshot
    cancellation_policy: Optional[CancellationPolicy] = None
    policy_acknowledged: bool = False
