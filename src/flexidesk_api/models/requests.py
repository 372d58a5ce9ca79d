"""API request bodies that have no counterpart in flexidesk.models.

Bodies accept camelCase (what the web client sends) or snake_case keys.
"""

from pydantic import Field

from flexidesk.models.base import CamelModel


class CheckoutRequest(CamelModel):
    """Selection submitted from the listing detail page."""

    model_config = CamelModel.model_config | {
        "json_schema_extra": {
            "examples": [
                {
                    "startDate": "2026-11-02",
                    "endDate": "2026-11-02",
                    "checkInTime": "09:00",
                    "checkOutTime": "13:00",
                    "guests": 2,
                    "policyAcknowledged": True,
                }
            ]
        }
    }

    start_date: str | None = Field(default=None, description="Start date (YYYY-MM-DD)")
    end_date: str | None = Field(default=None, description="End date (YYYY-MM-DD)")
    check_in_time: str | None = Field(default=None, description="Check-in time (HH:MM)")
    check_out_time: str | None = Field(default=None, description="Check-out time (HH:MM)")
    guests: int = Field(default=1, description="Number of guests")
    policy_acknowledged: bool = Field(
        default=False,
        description="Client ticked the cancellation policy acknowledgement",
    )


class StatusChangeRequest(CamelModel):
    """Owner request to move a booking to another status."""

    status: str = Field(..., description="Target status", examples=["completed"])
