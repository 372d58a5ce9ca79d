"""Listing detail page: listing fetch, cancellation policy and checkout intent."""

from typing import Any, Optional

from flexidesk.models.errors import ErrorCode, FlexiDeskError, UpstreamError
from flexidesk.models.listing import ListingView
from flexidesk.models.policy import CancellationPolicy
from flexidesk.models.quote import CheckoutIntent
from flexidesk.services.api_client import FlexiDeskClient
from flexidesk.services.availability import AvailabilityService
from flexidesk.services.policy import PolicyService
from flexidesk.services.pricing import PricingService
from flexidesk.utils.logging import get_logger

logger = get_logger(__name__)


class ListingsService:
    """Loads a listing and composes pricing, availability and policy for it."""

    def __init__(
        self,
        api: FlexiDeskClient,
        pricing: Optional[PricingService] = None,
        policies: Optional[PolicyService] = None,
    ) -> None:
        self.api = api
        self.pricing = pricing or PricingService()
        self.policies = policies or PolicyService()
        self.availability = AvailabilityService(api)

    async def raw(self, listing_id: str) -> dict[str, Any]:
        """Listing record as returned by ``GET /listings/:id``.

        Raises:
            FlexiDeskError: NOT_FOUND when the response carries no listing
        """
        data = await self.api.get(f"/listings/{listing_id}")
        listing = data.get("listing", data) if isinstance(data, dict) else None
        if not isinstance(listing, dict) or not listing:
            raise FlexiDeskError(ErrorCode.NOT_FOUND, details={"listingId": listing_id})
        return listing

    async def view(self, listing_id: str) -> ListingView:
        view = self.pricing.listing_view(await self.raw(listing_id))
        if not view.id:
            view.id = listing_id
        return view

    async def cancellation_policy(self, listing_id: str) -> Optional[CancellationPolicy]:
        """Listing policy, or None when the listing has none."""
        try:
            data = await self.api.get(f"/listings/{listing_id}/cancellation-policy")
        except UpstreamError as exc:
            if exc.code == ErrorCode.NOT_FOUND:
                return None
            raise
        raw = data.get("policy", data) if isinstance(data, dict) else None
        return CancellationPolicy.model_validate(raw) if isinstance(raw, dict) and raw else None

    async def checkout(
        self,
        listing_id: str,
        start_date: Optional[str],
        end_date: Optional[str],
        check_in_time: Optional[str],
        check_out_time: Optional[str],
        guests: Any = 1,
        policy_acknowledged: bool = False,
    ) -> CheckoutIntent:
        """Run the pre-reserve checks against live data and build the intent.

        The listing and policy must load. Blocked dates and the conflict check
        fall back to their empty defaults.
        """
        listing = await self.raw(listing_id)
        results = await self.api.fan_out(
            {
                "policy": self.cancellation_policy(listing_id),
                "blocked": self.availability.blocked_dates(listing_id),
                "conflict": self.availability.check(
                    listing_id, start_date, end_date, check_in_time, check_out_time
                ),
            }
        )
        for value in results.values():
            if isinstance(value, BaseException):
                raise value

        return self.pricing.checkout_intent(
            listing_id,
            listing,
            start_date,
            end_date,
            check_in_time,
            check_out_time,
            guests,
            policy=results["policy"],
            policy_acknowledged=policy_acknowledged,
            blocked_dates=results["blocked"],
            has_conflict=results["conflict"].has_conflict,
        )
