"""Logging with request correlation IDs.

Every log line is prefixed with the correlation ID of the request being
served, so a browser request, the gateway's log lines and the upstream
calls it made can be matched up:

    [3f9c...] 2026-10-18 09:00:01 INFO flexidesk.services.api_client: Upstream call: GET /bookings/me | status_code=200 | elapsed_ms=41.2

The ID lives in a context variable set by ``CorrelationIdMiddleware`` and
is forwarded upstream by ``FlexiDeskClient``.
"""

import logging
import re
import uuid
from contextvars import ContextVar
from typing import Any

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
NO_CORRELATION_ID = "no-correlation-id"

# Incoming IDs end up in log lines and response headers
_VALID_CORRELATION_ID = re.compile(r"[A-Za-z0-9._:\-]{1,128}")

# Context keys rendered into the upstream call message, in this order
_UPSTREAM_FIELDS = ("status_code", "elapsed_ms", "error")


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Bind a correlation ID to the current context and return it.

    A missing or malformed incoming ID is replaced by a fresh UUID.
    """
    candidate = (correlation_id or "").strip()
    cid = candidate if _VALID_CORRELATION_ID.fullmatch(candidate) else generate_correlation_id()
    _correlation_id.set(cid)
    return cid


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def clear_correlation_id() -> None:
    _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """Stamp ``correlation_id`` on every record passing through."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or NO_CORRELATION_ID
        return True


class StructuredFormatter(logging.Formatter):
    """Prefix formatted records with ``[correlation_id]``.

    Records that bypassed ``CorrelationIdFilter`` (third-party loggers
    propagating to root) get the current context's ID here instead.
    """

    def format(self, record: logging.LogRecord) -> str:
        cid = getattr(record, "correlation_id", None) or get_correlation_id() or NO_CORRELATION_ID
        record.correlation_id = cid
        return f"[{cid}] {super().format(record)}"


def configure_logging(level: str = "INFO") -> None:
    """Install the structured formatter on the root logger's handlers.

    Called once at app startup; calling again only updates the level.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    if not root.handlers:
        root.addHandler(logging.StreamHandler())

    for handler in root.handlers:
        if not isinstance(handler.formatter, StructuredFormatter):
            handler.setFormatter(StructuredFormatter(LOG_FORMAT))
        if not any(isinstance(f, CorrelationIdFilter) for f in handler.filters):
            handler.addFilter(CorrelationIdFilter())


def get_logger(name: str) -> logging.Logger:
    """Module logger carrying the correlation ID filter."""
    logger = logging.getLogger(name)

    if not any(isinstance(f, CorrelationIdFilter) for f in logger.filters):
        logger.addFilter(CorrelationIdFilter())

    return logger


def _upstream_level(status_code: int | None, error: str | None) -> int:
    if error or (status_code is not None and status_code >= 500):
        return logging.ERROR
    if status_code is not None and status_code >= 400:
        return logging.WARNING
    return logging.INFO


def log_upstream_call(
    logger: logging.Logger,
    method: str,
    path: str,
    *,
    status_code: int | None = None,
    elapsed_ms: float | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log one call to the FlexiDesk API.

    Level follows the outcome: transport errors and 5xx log at ERROR, 4xx
    at WARNING, everything else at INFO. The context is also attached to
    the record as ``extra`` fields.

    Args:
        logger: Logger to write to
        method: HTTP method
        path: Path relative to the API base URL
        status_code: Response status, when a response arrived
        elapsed_ms: Round-trip time in milliseconds
        error: Transport error message
        **extra: More context fields, appended to the message
    """
    context: dict[str, Any] = {"method": method, "path": path}
    if status_code is not None:
        context["status_code"] = status_code
    if elapsed_ms is not None:
        context["elapsed_ms"] = round(elapsed_ms, 1)
    if error:
        context["error"] = error
    context.update(extra)

    fields = [k for k in _UPSTREAM_FIELDS if k in context]
    fields += [k for k in extra if k not in _UPSTREAM_FIELDS]
    message = " | ".join([f"Upstream call: {method} {path}"] + [f"{k}={context[k]}" for k in fields])

    logger.log(_upstream_level(status_code, error), message, extra=context)
