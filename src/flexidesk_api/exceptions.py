"""Map gateway errors onto HTTP responses.

Upstream failures keep their meaning for the browser (401, 403, 404) or
become 502/503; local checks answer 400, and a refused booking status
change answers 409. Every body uses the ``ErrorResponse`` envelope.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_502_BAD_GATEWAY,
    HTTP_503_SERVICE_UNAVAILABLE,
)

from flexidesk.models.errors import ErrorCode, FlexiDeskError
from flexidesk.utils.logging import get_correlation_id, get_logger
from flexidesk_api.middleware.correlation import CORRELATION_ID_HEADER
from flexidesk_api.models.common import format_validation_errors

logger = get_logger(__name__)

ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    # Upstream
    ErrorCode.AUTH_REQUIRED: HTTP_401_UNAUTHORIZED,
    ErrorCode.PERMISSION_DENIED: HTTP_403_FORBIDDEN,
    ErrorCode.NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.UPSTREAM_ERROR: HTTP_502_BAD_GATEWAY,
    ErrorCode.UPSTREAM_UNAVAILABLE: HTTP_503_SERVICE_UNAVAILABLE,
    # Local validation
    ErrorCode.INVALID_SELECTION: HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_REVIEW: HTTP_400_BAD_REQUEST,
    ErrorCode.REASON_REQUIRED: HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_POLICY: HTTP_400_BAD_REQUEST,
    ErrorCode.MISSING_UPLOAD: HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_TRANSITION: HTTP_409_CONFLICT,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    """Get HTTP status code for an ErrorCode, defaulting to 400."""
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_400_BAD_REQUEST)


async def flexidesk_error_handler(request: Request, exc: FlexiDeskError) -> JSONResponse:
    status_code = get_http_status_for_error(exc.code)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.code.value)
    return JSONResponse(status_code=status_code, content=exc.to_error_response().model_dump(mode="json"))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    body = format_validation_errors(exc.errors())
    logger.info(
        "%s %s invalid parameters: %s",
        request.method,
        request.url.path,
        ", ".join(d.field for d in body.details),
    )
    return JSONResponse(status_code=422, content=body.model_dump(mode="json"))


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort for bugs in the gateway itself; the traceback is logged, never returned.

    Starlette runs this outside ``CorrelationIdMiddleware``, so the ID is
    read from ``request.state`` and set on the response here.
    """
    cid = getattr(request.state, "correlation_id", None) or get_correlation_id()
    logger.exception("Unhandled error on %s %s [%s]", request.method, request.url.path, cid)
    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error_code": "ERR_INTERNAL",
            "message": "An unexpected error occurred",
            "recovery": "Reload the page; if it keeps failing, report the correlation ID",
            "details": {"correlation_id": cid} if cid else None,
        },
        headers={CORRELATION_ID_HEADER: cid} if cid else None,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FlexiDeskError, flexidesk_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
