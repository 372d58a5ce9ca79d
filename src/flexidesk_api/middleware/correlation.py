"""Request correlation and access logging.

The incoming ``X-Correlation-ID`` (or a fresh one) is bound for the whole
request, forwarded upstream by the API client and returned to the browser.
"""

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from flexidesk.utils.logging import clear_correlation_id, get_logger, set_correlation_id

CORRELATION_ID_HEADER = "X-Correlation-ID"

logger = get_logger(__name__)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        cid = set_correlation_id(request.headers.get(CORRELATION_ID_HEADER))
        # Read back by the 500 handler, which runs outside this middleware
        request.state.correlation_id = cid
        started = time.perf_counter()
        try:
            response = await call_next(request)
            logger.info(
                "%s %s -> %d (%.1f ms)",
                request.method,
                request.url.path,
                response.status_code,
                (time.perf_counter() - started) * 1000,
            )
            response.headers[CORRELATION_ID_HEADER] = cid
            return response
        finally:
            clear_correlation_id()
