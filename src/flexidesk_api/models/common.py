"""Request validation error body.

Failures of FastAPI's own parameter parsing (bad query strings, malformed
form fields) are reported in the same envelope as ``ErrorResponse`` with a
list of per-field issues instead of a details dict.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel, Field

from flexidesk.models.errors import ErrorCode, ErrorResponse

__all__ = [
    "ErrorCode",
    "ErrorResponse",
    "ValidationErrorDetail",
    "ValidationErrorResponse",
    "format_validation_errors",
]


class ValidationErrorDetail(BaseModel):
    loc: list[str] = Field(..., examples=[["query", "amount"]])
    field: str = Field(..., description="Last element of loc", examples=["amount"])
    msg: str = Field(..., examples=["Field required"])
    type: str = Field(..., examples=["missing"])


class ValidationErrorResponse(BaseModel):
    success: bool = False
    error_code: str = "ERR_VALIDATION"
    message: str = "Request validation failed"
    recovery: str = "Check the highlighted fields and try again"
    details: list[ValidationErrorDetail] = Field(default_factory=list)


def format_validation_errors(errors: Iterable[Mapping[str, Any]]) -> ValidationErrorResponse:
    """Flatten ``RequestValidationError.errors()`` into ``ValidationErrorDetail`` rows."""
    details = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        details.append(
            ValidationErrorDetail(
                loc=loc,
                field=loc[-1] if loc else "",
                msg=str(error.get("msg", "")),
                type=str(error.get("type", "")),
            )
        )
    return ValidationErrorResponse(details=details)
