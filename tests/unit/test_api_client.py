"""Unit tests for the FlexiDesk API client.

Tests for:
- Forwarded headers
- Query parameter cleaning
- Status to error code mapping
- Token refresh and retry
- Multipart uploads
- Concurrent fan-out
"""

import asyncio
from typing import Any

import httpx
import pytest

from flexidesk.config import Settings
from flexidesk.models.errors import ErrorCode, FlexiDeskError, UpstreamError
from flexidesk.services.api_client import FlexiDeskClient, _clean_params
from flexidesk.utils.logging import clear_correlation_id, set_correlation_id


class TestHeaders:
    def test_bearer_and_correlation_headers(self, upstream: Any) -> None:
        upstream.add("GET", "/bookings/me", [])

        async def go() -> None:
            set_correlation_id("corr-123")
            try:
                async with upstream.client(token="abc") as api:
                    await api.get("/bookings/me")
            finally:
                clear_correlation_id()

        asyncio.run(go())

        request = upstream.calls("GET", "/bookings/me")[0]
        assert request.headers["Authorization"] == "Bearer abc"
        assert request.headers["X-Correlation-ID"] == "corr-123"
        assert request.headers["Accept"] == "application/json"

    def test_anonymous_call_has_no_authorization(self, upstream: Any) -> None:
        upstream.add("GET", "/listings/lst-1", {"_id": "lst-1"})

        async def go() -> None:
            async with upstream.client(token=None) as api:
                await api.get("/listings/lst-1")

        asyncio.run(go())

        assert "Authorization" not in upstream.calls("GET", "/listings/lst-1")[0].headers


class TestParams:
    def test_clean_params_drops_empty_values(self) -> None:
        assert _clean_params({"a": 1, "b": None, "c": "", "d": 0, "e": False}) == {"a": 1, "d": 0, "e": False}

    def test_no_params(self) -> None:
        assert _clean_params(None) is None
        assert _clean_params({}) is None

    def test_params_sent_on_query_string(self, upstream: Any, call: Any) -> None:
        upstream.add("GET", "/admin/cancellations", {"items": []})

        call(lambda api: api.get("/admin/cancellations", params={"status": None, "page": 2}))

        assert str(upstream.calls("GET", "/admin/cancellations")[0].url.query, "ascii") == "page=2"


class TestResponses:
    """Tests for body decoding and error mapping."""

    def test_empty_body_is_none(self, upstream: Any, call: Any) -> None:
        upstream.add("POST", "/owner/bookings/b-1/complete", None, status=204)

        assert call(lambda api: api.post("/owner/bookings/b-1/complete")) is None

    @pytest.mark.parametrize(
        "status,code",
        [
            (401, ErrorCode.AUTH_REQUIRED),
            (403, ErrorCode.PERMISSION_DENIED),
            (404, ErrorCode.NOT_FOUND),
            (409, ErrorCode.UPSTREAM_ERROR),
            (500, ErrorCode.UPSTREAM_ERROR),
        ],
    )
    def test_status_mapping(self, upstream: Any, call: Any, status: int, code: ErrorCode) -> None:
        upstream.add("GET", "/owner/analytics/summary", {"message": "nope"}, status=status)

        with pytest.raises(UpstreamError) as exc_info:
            call(lambda api: api.get("/owner/analytics/summary"))

        error = exc_info.value
        assert error.code == code
        assert error.status_code == status
        assert error.message == "nope"
        assert error.details == {
            "path": "/owner/analytics/summary",
            "method": "GET",
            "upstream_status": status,
        }

    def test_default_message_without_body(self, upstream: Any, call: Any) -> None:
        upstream.add("GET", "/owner/analytics/summary", None, status=403)

        with pytest.raises(UpstreamError) as exc_info:
            call(lambda api: api.get("/owner/analytics/summary"))

        assert exc_info.value.is_forbidden is True
        assert exc_info.value.message == "You do not have permission to view this resource"

    def test_transport_failure(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async def go() -> Any:
            async with FlexiDeskClient("http://upstream.test/api", transport=httpx.MockTransport(refuse)) as api:
                return await api.get("/bookings/me")

        with pytest.raises(FlexiDeskError) as exc_info:
            asyncio.run(go())

        assert exc_info.value.code == ErrorCode.UPSTREAM_UNAVAILABLE
        assert exc_info.value.details == {"path": "/bookings/me", "method": "GET"}


class TestRefresh:
    """Tests for the refresh-and-retry flow on 401."""

    def test_refreshes_and_retries_once(self, upstream: Any) -> None:
        upstream.add("GET", "/bookings/me", {"message": "expired"}, status=401)
        upstream.add("GET", "/bookings/me", [{"_id": "b-1"}])
        upstream.add("POST", "/auth/refresh", {"token": "fresh"})

        async def go() -> tuple[Any, FlexiDeskClient]:
            async with upstream.client(token="stale", refresh_token="r-1") as api:
                return await api.get("/bookings/me"), api

        data, api = asyncio.run(go())

        assert data == [{"_id": "b-1"}]
        assert api.refreshed is True
        assert api.token == "fresh"
        assert upstream.last_json("POST", "/auth/refresh") == {"refreshToken": "r-1"}
        retried = upstream.calls("GET", "/bookings/me")
        assert [r.headers["Authorization"] for r in retried] == ["Bearer stale", "Bearer fresh"]

    def test_failed_refresh_surfaces_401(self, upstream: Any) -> None:
        upstream.add("GET", "/bookings/me", {"message": "expired"}, status=401)
        upstream.add("POST", "/auth/refresh", {"message": "invalid"}, status=401)

        async def go() -> Any:
            async with upstream.client(refresh_token="r-1") as api:
                return await api.get("/bookings/me")

        with pytest.raises(UpstreamError) as exc_info:
            asyncio.run(go())

        assert exc_info.value.code == ErrorCode.AUTH_REQUIRED
        assert len(upstream.calls("POST", "/auth/refresh")) == 1
        assert len(upstream.calls("GET", "/bookings/me")) == 1

    def test_no_refresh_token_no_refresh(self, upstream: Any, call: Any) -> None:
        upstream.add("GET", "/bookings/me", None, status=401)

        with pytest.raises(UpstreamError):
            call(lambda api: api.get("/bookings/me"))

        assert upstream.calls("POST", "/auth/refresh") == []


class TestMultipart:
    def test_files_and_fields(self, upstream: Any, call: Any) -> None:
        upstream.add("POST", "/reviews", {"_id": "rev-1"})

        call(
            lambda api: api.post(
                "/reviews",
                data={"bookingId": "b-1", "rating": "5"},
                files=[("photos", ("desk.jpg", b"\xff\xd8jpeg", "image/jpeg"))],
            )
        )

        request = upstream.calls("POST", "/reviews")[0]
        assert request.headers["Content-Type"].startswith("multipart/form-data; boundary=")
        assert b'name="bookingId"' in request.content
        assert b'filename="desk.jpg"' in request.content


class TestFanOut:
    def test_settles_each_call(self, upstream: Any, call: Any) -> None:
        upstream.add("GET", "/owner/analytics/summary", {"revenue": 10})

        async def both(api: FlexiDeskClient) -> dict[str, Any]:
            return await api.fan_out(
                {
                    "summary": api.get("/owner/analytics/summary"),
                    "missing": api.get("/owner/analytics/missing"),
                }
            )

        results = call(both)

        assert results["summary"] == {"revenue": 10}
        assert isinstance(results["missing"], UpstreamError)
        assert results["missing"].code == ErrorCode.NOT_FOUND


class TestFromSettings:
    def test_uses_configured_base_url(self) -> None:
        settings = Settings(api_base_url="http://api.example.test/api", request_timeout=3)
        client = FlexiDeskClient.from_settings(settings, token="t")

        assert str(client._http.base_url) == "http://api.example.test/api/"
        assert client._http.timeout.read == 3
        asyncio.run(client.aclose())
