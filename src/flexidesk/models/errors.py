"""Standard error codes for the FlexiDesk gateway.

Every failure surfaced to a caller uses one of these codes so the front end
can pick a message and a recovery action without parsing free text.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Standard error codes returned by the gateway."""

    # Upstream / transport (ERR_UP_001-ERR_UP_005)
    AUTH_REQUIRED = "ERR_UP_001"
    PERMISSION_DENIED = "ERR_UP_002"
    NOT_FOUND = "ERR_UP_003"
    UPSTREAM_ERROR = "ERR_UP_004"
    UPSTREAM_UNAVAILABLE = "ERR_UP_005"

    # Local validation (ERR_VAL_001-ERR_VAL_006)
    INVALID_SELECTION = "ERR_VAL_001"
    INVALID_REVIEW = "ERR_VAL_002"
    REASON_REQUIRED = "ERR_VAL_003"
    INVALID_TRANSITION = "ERR_VAL_004"
    INVALID_POLICY = "ERR_VAL_005"
    MISSING_UPLOAD = "ERR_VAL_006"


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.AUTH_REQUIRED: "Authentication required to perform this action",
    ErrorCode.PERMISSION_DENIED: "You do not have permission to view this resource",
    ErrorCode.NOT_FOUND: "The requested resource was not found",
    ErrorCode.UPSTREAM_ERROR: "The FlexiDesk API returned an error",
    ErrorCode.UPSTREAM_UNAVAILABLE: "The FlexiDesk API could not be reached",
    ErrorCode.INVALID_SELECTION: "The selected dates or times are not valid",
    ErrorCode.INVALID_REVIEW: "The review does not meet the submission rules",
    ErrorCode.REASON_REQUIRED: "A reason is required for this action",
    ErrorCode.INVALID_TRANSITION: "This booking cannot move to the requested status",
    ErrorCode.INVALID_POLICY: "The cancellation policy is not valid",
    ErrorCode.MISSING_UPLOAD: "Select at least one document to upload.",
}

# Recovery suggestions shown next to the message
ERROR_RECOVERY: dict[ErrorCode, str] = {
    ErrorCode.AUTH_REQUIRED: "Sign in again and retry",
    ErrorCode.PERMISSION_DENIED: "Ask an administrator for access",
    ErrorCode.NOT_FOUND: "Check the identifier and reload the page",
    ErrorCode.UPSTREAM_ERROR: "Try again in a moment",
    ErrorCode.UPSTREAM_UNAVAILABLE: "Check your connection and try again",
    ErrorCode.INVALID_SELECTION: "Adjust the dates or times and try again",
    ErrorCode.INVALID_REVIEW: "Fix the highlighted fields and resubmit",
    ErrorCode.REASON_REQUIRED: "Provide a reason and resubmit",
    ErrorCode.INVALID_TRANSITION: "Reload the booking to see its current status",
    ErrorCode.INVALID_POLICY: "Fix the refund tiers and save again",
    ErrorCode.MISSING_UPLOAD: "Attach a file and try again",
}


class ErrorResponse(BaseModel):
    """Standard error body returned by every failing route."""

    model_config = ConfigDict(strict=True)

    success: bool = False
    error_code: ErrorCode
    message: str
    recovery: str
    details: Optional[dict[str, Any]] = None

    @classmethod
    def from_code(
        cls,
        code: ErrorCode,
        details: Optional[dict[str, Any]] = None,
        message: Optional[str] = None,
    ) -> "ErrorResponse":
        """Create an ErrorResponse from an error code.

        Args:
            code: The error code
            details: Optional additional context about the error
            message: Optional message overriding the default for the code

        Returns:
            An ErrorResponse with the message and recovery hint for the code.
        """
        return cls(
            error_code=code,
            message=message or ERROR_MESSAGES[code],
            recovery=ERROR_RECOVERY[code],
            details=details,
        )


class FlexiDeskError(Exception):
    """Exception raised by gateway operations.

    Caught by the API layer and converted to an ErrorResponse.
    """

    def __init__(
        self,
        code: ErrorCode,
        details: Optional[dict[str, Any]] = None,
        message: Optional[str] = None,
    ):
        self.code = code
        self.message = message or ERROR_MESSAGES[code]
        self.recovery = ERROR_RECOVERY[code]
        self.details = details
        super().__init__(self.message)

    def to_error_response(self) -> ErrorResponse:
        """Convert this exception to an ErrorResponse."""
        return ErrorResponse.from_code(self.code, self.details, self.message)


class UpstreamError(FlexiDeskError):
    """Error returned by (or while reaching) the FlexiDesk REST API."""

    def __init__(
        self,
        code: ErrorCode,
        status_code: Optional[int] = None,
        message: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.status_code = status_code
        merged = dict(details or {})
        if status_code is not None:
            merged.setdefault("upstream_status", status_code)
        super().__init__(code, merged or None, message)

    @property
    def is_forbidden(self) -> bool:
        return self.code == ErrorCode.PERMISSION_DENIED

    @classmethod
    def from_status(
        cls,
        status_code: int,
        message: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> "UpstreamError":
        """Map an upstream HTTP status to an error code.

        Args:
            status_code: HTTP status returned by the upstream
            message: Upstream-provided message, if any
            details: Extra context (path, method)

        Returns:
            UpstreamError with the mapped code
        """
        code = UPSTREAM_STATUS_CODES.get(status_code, ErrorCode.UPSTREAM_ERROR)
        return cls(code, status_code=status_code, message=message, details=details)


UPSTREAM_STATUS_CODES: dict[int, ErrorCode] = {
    401: ErrorCode.AUTH_REQUIRED,
    403: ErrorCode.PERMISSION_DENIED,
    404: ErrorCode.NOT_FOUND,
}
