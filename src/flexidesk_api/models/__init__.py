"""API-layer request/response models.

View models live in flexidesk.models and are returned directly; this
package holds HTTP-only concerns (error wrappers and request bodies).
"""

from flexidesk_api.models.common import (
    ValidationErrorDetail,
    ValidationErrorResponse,
    format_validation_errors,
)
from flexidesk_api.models.requests import CheckoutRequest, StatusChangeRequest

__all__ = [
    "CheckoutRequest",
    "StatusChangeRequest",
    "ValidationErrorDetail",
    "ValidationErrorResponse",
    "format_validation_errors",
]
