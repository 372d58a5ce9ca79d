"""Cancellation policy display and refund preview.

Templates mirror the owner policy editor:
- Flexible: full refund 24h+ before start, no fee, automatic
- Moderate: full refund 7+ days, 50% at 2-7 days, 5% fee, automatic
- Strict: 50% refund 14+ days, 10% fee, manual review
- Custom: owner-defined tiers
- None: cancellation not allowed

The refund preview is an estimate for display; the API calculates the
binding amount when the booking is cancelled.
"""

import datetime as dt
from typing import Any, Optional

from flexidesk.models.enums import PolicyType
from flexidesk.models.errors import ErrorCode, FlexiDeskError
from flexidesk.models.policy import (
    CancellationPolicy,
    PolicyKeyPoint,
    PolicySummary,
    PolicyTier,
    RefundPreview,
)
from flexidesk.services.pricing import round2
from flexidesk.utils.dates import utcnow

POLICY_TEMPLATES: dict[PolicyType, dict[str, Any]] = {
    PolicyType.FLEXIBLE: {
        "type": "flexible",
        "allowCancellation": True,
        "automaticRefund": True,
        "tiers": [
            {"hoursBeforeBooking": 24, "refundPercentage": 100, "description": "Full refund"},
            {"hoursBeforeBooking": 0, "refundPercentage": 0, "description": "No refund"},
        ],
        "processingFeePercentage": 0,
    },
    PolicyType.MODERATE: {
        "type": "moderate",
        "allowCancellation": True,
        "automaticRefund": True,
        "tiers": [
            {"hoursBeforeBooking": 168, "refundPercentage": 100, "description": "Full refund (7+ days)"},
            {"hoursBeforeBooking": 48, "refundPercentage": 50, "description": "50% refund (2-7 days)"},
            {"hoursBeforeBooking": 0, "refundPercentage": 0, "description": "No refund (<2 days)"},
        ],
        "processingFeePercentage": 5,
    },
    PolicyType.STRICT: {
        "type": "strict",
        "allowCancellation": True,
        "automaticRefund": False,
        "tiers": [
            {"hoursBeforeBooking": 336, "refundPercentage": 50, "description": "50% refund (14+ days)"},
            {"hoursBeforeBooking": 0, "refundPercentage": 0, "description": "No refund (<14 days)"},
        ],
        "processingFeePercentage": 10,
    },
    PolicyType.CUSTOM: {
        "type": "custom",
        "allowCancellation": True,
        "automaticRefund": False,
        "tiers": [
            {"hoursBeforeBooking": 24, "refundPercentage": 100, "description": "Full refund"},
        ],
        "processingFeePercentage": 0,
    },
    PolicyType.NONE: {
        "type": "none",
        "allowCancellation": False,
        "automaticRefund": False,
        "tiers": [],
        "processingFeePercentage": 0,
    },
}

POLICY_LABELS: dict[PolicyType, str] = {
    PolicyType.FLEXIBLE: "Flexible",
    PolicyType.MODERATE: "Moderate",
    PolicyType.STRICT: "Strict",
    PolicyType.CUSTOM: "Custom",
    PolicyType.NONE: "No cancellation",
}


def _num(value: float) -> str:
    return f"{value:g}"


def format_hours(hours: float) -> str:
    """Readable lead time: weeks from 168h, days from 24h, else hours."""
    if hours >= 168:
        weeks = int(hours // 168)
        return f"{weeks} week{'s' if weeks > 1 else ''}"
    if hours >= 24:
        days = int(hours // 24)
        return f"{days} day{'s' if days > 1 else ''}"
    return f"{_num(hours)} hour{'s' if hours > 1 else ''}"


def refund_label(percentage: float) -> str:
    if percentage == 100:
        return "Full refund"
    if percentage == 0:
        return "No refund"
    return f"{_num(percentage)}% refund"


class PolicyService:
    """Templates, validation and display helpers for cancellation policies."""

    def template(self, policy_type: PolicyType | str) -> CancellationPolicy:
        """Return a fresh copy of a policy template."""
        return CancellationPolicy.model_validate(POLICY_TEMPLATES[PolicyType(policy_type)])

    def validate(self, policy: CancellationPolicy) -> list[str]:
        """Validate owner-defined tiers.

        Only custom policies are checked; templates are valid by construction.

        Returns:
            Error messages, empty when valid
        """
        errors: list[str] = []
        if policy.type != PolicyType.CUSTOM or not policy.tiers:
            return errors

        seen: set[float] = set()
        duplicates: list[str] = []
        for tier in policy.tiers:
            if tier.hours_before_booking in seen:
                duplicates.append(_num(tier.hours_before_booking))
            seen.add(tier.hours_before_booking)
        if duplicates:
            errors.append(f"Duplicate tier hours: {', '.join(duplicates)}")

        for tier in policy.tiers:
            if not 0 <= tier.refund_percentage <= 100:
                errors.append(f"Invalid refund percentage: {_num(tier.refund_percentage)}%")

        if not 0 <= policy.processing_fee_percentage <= 100:
            errors.append(f"Invalid processing fee: {_num(policy.processing_fee_percentage)}%")

        return errors

    def ensure_valid(self, policy: CancellationPolicy) -> CancellationPolicy:
        """Raise INVALID_POLICY if validation finds problems."""
        errors = self.validate(policy)
        if errors:
            raise FlexiDeskError(
                ErrorCode.INVALID_POLICY,
                details={"errors": errors},
                message=errors[0],
            )
        return policy

    def sorted_tiers(self, policy: CancellationPolicy) -> list[PolicyTier]:
        return sorted(policy.tiers, key=lambda t: t.hours_before_booking, reverse=True)

    def summarize(self, policy: Optional[CancellationPolicy]) -> PolicySummary:
        """Display-ready summary with key points ordered by lead time."""
        if policy is None or not policy.allow_cancellation:
            return PolicySummary(
                has_policy=False,
                type=policy.type if policy else PolicyType.NONE,
                label=POLICY_LABELS[PolicyType.NONE],
                automatic_refund=False,
                processing_fee_percentage=0,
            )

        key_points = []
        for tier in self.sorted_tiers(policy):
            label = refund_label(tier.refund_percentage)
            key_points.append(
                PolicyKeyPoint(
                    time=format_hours(tier.hours_before_booking),
                    refund=tier.refund_percentage,
                    label=label,
                    description=tier.description or label,
                )
            )

        return PolicySummary(
            has_policy=True,
            type=policy.type,
            label=POLICY_LABELS[policy.type],
            automatic_refund=policy.automatic_refund,
            processing_fee_percentage=policy.processing_fee_percentage,
            key_points=key_points,
            custom_notes=policy.custom_notes,
        )

    def preview_refund(
        self,
        policy: CancellationPolicy,
        amount: float,
        starts_at: dt.datetime,
        now: Optional[dt.datetime] = None,
    ) -> RefundPreview:
        """Estimate the refund for cancelling now.

        Picks the first tier (longest lead time first) whose threshold the
        remaining hours meet. The processing fee is a share of the refund.

        Args:
            policy: Listing's cancellation policy
            amount: Amount paid
            starts_at: Booking start (aware datetime)
            now: Reference time (defaults to current UTC time)
        """
        current = now or utcnow()
        hours_left = (starts_at - current).total_seconds() / 3600

        tier = None
        if policy.allow_cancellation:
            for candidate in self.sorted_tiers(policy):
                if hours_left >= candidate.hours_before_booking:
                    tier = candidate
                    break

        percentage = tier.refund_percentage if tier else 0
        refund_amount = amount * percentage / 100
        processing_fee = refund_amount * policy.processing_fee_percentage / 100

        return RefundPreview(
            hours_until_start=round2(hours_left),
            refund_percentage=percentage,
            original_amount=round2(amount),
            refund_amount=round2(refund_amount),
            processing_fee=round2(processing_fee),
            final_refund=round2(max(0.0, refund_amount - processing_fee)),
            tier=tier,
        )
