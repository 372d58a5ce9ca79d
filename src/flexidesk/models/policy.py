"""Cancellation policy models."""

from typing import Any

from pydantic import Field, field_validator

from flexidesk.models.base import CamelModel, as_number
from flexidesk.models.enums import PolicyType


class PolicyTier(CamelModel):
    """Refund percentage applied when cancelling at least N hours ahead."""

    hours_before_booking: float = Field(default=0, description="Hours before start")
    refund_percentage: float = Field(default=0, description="Refund share, 0-100")
    description: str = ""

    @field_validator("hours_before_booking", "refund_percentage", mode="before")
    @classmethod
    def coerce_number(cls, v: Any) -> float:
        return as_number(v)


class CancellationPolicy(CamelModel):
    """Cancellation policy attached to a listing."""

    type: PolicyType = PolicyType.CUSTOM
    allow_cancellation: bool = False
    automatic_refund: bool = False
    tiers: list[PolicyTier] = Field(default_factory=list)
    processing_fee_percentage: float = 0
    custom_notes: str = ""

    @field_validator("type", mode="before")
    @classmethod
    def unknown_type_is_custom(cls, v: Any) -> Any:
        if isinstance(v, PolicyType):
            return v
        if isinstance(v, str) and v in {t.value for t in PolicyType}:
            return v
        return PolicyType.CUSTOM

    @field_validator("processing_fee_percentage", mode="before")
    @classmethod
    def coerce_fee(cls, v: Any) -> float:
        return as_number(v)

    @field_validator("custom_notes", mode="before")
    @classmethod
    def none_notes(cls, v: Any) -> str:
        return v or ""


class PolicyKeyPoint(CamelModel):
    """One row of the refund schedule shown to clients."""

    time: str
    refund: float
    label: str
    description: str


class PolicySummary(CamelModel):
    """Display-ready view of a cancellation policy."""

    has_policy: bool
    type: PolicyType
    label: str
    automatic_refund: bool
    processing_fee_percentage: float
    key_points: list[PolicyKeyPoint] = Field(default_factory=list)
    custom_notes: str = ""


class RefundPreview(CamelModel):
    """Estimated refund for cancelling now. Not authoritative."""

    hours_until_start: float
    refund_percentage: float
    original_amount: float
    refund_amount: float
    processing_fee: float
    final_refund: float
    tier: PolicyTier | None = None
