"""Async client for the FlexiDesk REST API.

One client is created per incoming request. It forwards the caller's bearer
token and the current correlation ID, converts error statuses to
UpstreamError, and retries a request once after refreshing the access token
when the API answers 401 and a refresh token is available.

Usage:
    async with FlexiDeskClient.from_settings(get_settings(), token=token) as api:
        data = await api.get("/bookings/me")
"""

import asyncio
import time
from collections.abc import Awaitable, Mapping
from typing import TYPE_CHECKING, Any, Optional

import httpx

from flexidesk.models.errors import ErrorCode, UpstreamError
from flexidesk.utils.logging import get_correlation_id, get_logger, log_upstream_call

if TYPE_CHECKING:
    from flexidesk.config import Settings

logger = get_logger(__name__)

REFRESH_PATH = "/auth/refresh"


def _clean_params(params: Optional[Mapping[str, Any]]) -> dict[str, Any] | None:
    """Drop ``None`` and empty-string values so they are not sent."""
    if not params:
        return None
    return {k: v for k, v in params.items() if v is not None and v != ""}


def _error_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        return str(message) if message else None
    return None


class FlexiDeskClient:
    """Thin async wrapper around ``httpx.AsyncClient``."""

    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        refresh_token: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: API root, e.g. ``http://localhost:4000/api``
            token: Bearer access token forwarded on every call
            refresh_token: Token exchanged at ``/auth/refresh`` after a 401
            timeout: Per-request timeout in seconds
            transport: Optional transport (tests use ``httpx.MockTransport``)
        """
        self.token = token
        self.refresh_token = refresh_token
        self.refreshed = False
        self._http = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: "Settings",
        *,
        token: Optional[str] = None,
        refresh_token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "FlexiDeskClient":
        return cls(
            settings.api_base_url,
            token=token,
            refresh_token=refresh_token,
            timeout=settings.request_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "FlexiDeskClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        correlation_id = get_correlation_id()
        if correlation_id:
            headers["X-Correlation-ID"] = correlation_id
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
        data: Optional[Mapping[str, Any]] = None,
        files: Any = None,
        _retried: bool = False,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Args:
            method: HTTP method
            path: Path relative to the API root (leading slash)
            params: Query parameters; ``None``/empty values are dropped
            json: JSON body
            data: Form fields, sent as multipart when ``files`` is given
            files: Files for a multipart upload, in httpx ``files`` form

        Returns:
            Decoded JSON, response text for non-JSON bodies, or None when empty

        Raises:
            UpstreamError: On transport failure or an error status
        """
        started = time.perf_counter()
        try:
            response = await self._http.request(
                method,
                path,
                params=_clean_params(params),
                json=json,
                data=data,
                files=files,
                headers=self._headers(),
            )
        except httpx.HTTPError as exc:
            log_upstream_call(
                logger,
                method,
                path,
                elapsed_ms=(time.perf_counter() - started) * 1000,
                error=str(exc) or type(exc).__name__,
            )
            raise UpstreamError(
                ErrorCode.UPSTREAM_UNAVAILABLE,
                details={"path": path, "method": method},
            ) from exc

        log_upstream_call(
            logger,
            method,
            path,
            status_code=response.status_code,
            elapsed_ms=(time.perf_counter() - started) * 1000,
        )

        if (
            response.status_code == 401
            and not _retried
            and self.refresh_token
            and path != REFRESH_PATH
        ):
            if await self._refresh():
                return await self.request(
                    method, path, params=params, json=json, data=data, files=files, _retried=True
                )

        if response.is_error:
            raise UpstreamError.from_status(
                response.status_code,
                message=_error_message(response),
                details={"path": path, "method": method},
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    async def _refresh(self) -> bool:
        """Exchange the refresh token for a new access token.

        Returns:
            True if a new token was obtained
        """
        try:
            data = await self.request(
                "POST",
                REFRESH_PATH,
                json={"refreshToken": self.refresh_token},
                _retried=True,
            )
        except UpstreamError as exc:
            logger.warning("Token refresh failed: %s", exc.message)
            return False

        new_token = data.get("token") if isinstance(data, dict) else None
        if not new_token:
            logger.warning("Token refresh returned no token")
            return False

        self.token = new_token
        self.refreshed = True
        logger.info("Access token refreshed")
        return True

    async def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(
        self,
        path: str,
        json: Any = None,
        params: Optional[Mapping[str, Any]] = None,
        *,
        data: Optional[Mapping[str, Any]] = None,
        files: Any = None,
    ) -> Any:
        return await self.request("POST", path, params=params, json=json, data=data, files=files)

    async def put(
        self,
        path: str,
        json: Any = None,
        *,
        data: Optional[Mapping[str, Any]] = None,
        files: Any = None,
    ) -> Any:
        return await self.request("PUT", path, json=json, data=data, files=files)

    async def patch(self, path: str, json: Any = None) -> Any:
        return await self.request("PATCH", path, json=json)

    async def fan_out(self, calls: Mapping[str, Awaitable[Any]]) -> dict[str, Any]:
        """Run calls concurrently and settle each one independently.

        Args:
            calls: Name -> awaitable

        Returns:
            Name -> result, or the exception the call raised
        """
        names = list(calls)
        results = await asyncio.gather(*calls.values(), return_exceptions=True)
        return dict(zip(names, results, strict=True))
