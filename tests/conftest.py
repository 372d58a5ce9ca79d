"""Pytest configuration and fixtures for FlexiDesk gateway tests.

This module provides reusable fixtures for testing:
- A fake upstream API on httpx.MockTransport
- A runner for async service calls from sync tests
- Sample listing, booking and policy payloads
"""

import asyncio
import json
import os
from collections.abc import Awaitable, Callable, Generator
from typing import Any, Optional

import httpx
import pytest

# Set environment variables for testing before imports
os.environ.setdefault("FLEXIDESK_API_BASE_URL", "http://upstream.test/api")
os.environ.setdefault("FLEXIDESK_ENVIRONMENT", "test")

from flexidesk.services.api_client import FlexiDeskClient  # noqa: E402

BASE_URL = "http://upstream.test/api"
API_PREFIX = "/api"


class FakeUpstream:
    """Canned upstream responses keyed by method and path.

    Several responses registered for the same route are served in order;
    the last one repeats. Unregistered routes answer 404.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], list[tuple[int, Any]]] = {}
        self.requests: list[httpx.Request] = []

    def add(
        self,
        method: str,
        path: str,
        body: Any = None,
        status: int = 200,
    ) -> "FakeUpstream":
        self.routes.setdefault((method.upper(), path), []).append((status, body))
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.startswith(API_PREFIX):
            path = path[len(API_PREFIX) :]
        queue = self.routes.get((request.method, path))
        if not queue:
            return httpx.Response(404, json={"message": f"No route {request.method} {path}"})
        status, body = queue.pop(0) if len(queue) > 1 else queue[0]
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    def client(self, token: Optional[str] = "test-token", refresh_token: Optional[str] = None) -> FlexiDeskClient:
        return FlexiDeskClient(
            BASE_URL,
            token=token,
            refresh_token=refresh_token,
            transport=httpx.MockTransport(self.handler),
        )

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [
            r
            for r in self.requests
            if r.method == method.upper() and r.url.path == API_PREFIX + path
        ]

    def last_json(self, method: str, path: str) -> Any:
        return json.loads(self.calls(method, path)[-1].content)


@pytest.fixture
def upstream() -> FakeUpstream:
    """Fresh fake upstream for each test."""
    return FakeUpstream()


@pytest.fixture
def call(upstream: FakeUpstream) -> Callable[[Callable[[FlexiDeskClient], Awaitable[Any]]], Any]:
    """Run ``fn(api)`` on a client bound to the fake upstream.

    Example:
        view = call(lambda api: OwnerRefundsService(api).load())
    """

    def run(fn: Callable[[FlexiDeskClient], Awaitable[Any]]) -> Any:
        async def go() -> Any:
            async with upstream.client() as api:
                return await fn(api)

        return asyncio.run(go())

    return run


@pytest.fixture(autouse=True)
def reset_state() -> Generator[None, None, None]:
    """Clear cached services and dependency overrides after each test."""
    yield
    from flexidesk_api.dependencies import reset_services
    from flexidesk_api.main import app

    app.dependency_overrides.clear()
    reset_services()


# === Sample Data Fixtures ===


@pytest.fixture
def hourly_listing() -> dict[str, Any]:
    """Listing priced per hour only."""
    return {
        "_id": "lst-hourly",
        "category": "meeting_room",
        "scope": "entire_space",
        "city": "Makati",
        "country": "PH",
        "priceSeatHour": 150,
        "currency": "PHP",
        "owner": {"_id": "own-1", "name": "Maria Santos"},
        "amenities": {"wifi": True, "parking": False, "coffee_bar": True},
    }


@pytest.fixture
def daily_listing() -> dict[str, Any]:
    """Listing priced per day with fees."""
    return {
        "_id": "lst-daily",
        "venue": "Ayala Hub",
        "priceSeatDay": "800",
        "serviceFee": 50,
        "cleaningFee": 25,
        "currency": "php",
    }


@pytest.fixture
def moderate_policy() -> dict[str, Any]:
    return {
        "type": "moderate",
        "allowCancellation": True,
        "automaticRefund": True,
        "tiers": [
            {"hoursBeforeBooking": 48, "refundPercentage": 50, "description": "50% refund (2-7 days)"},
            {"hoursBeforeBooking": 168, "refundPercentage": 100, "description": "Full refund (7+ days)"},
            {"hoursBeforeBooking": 0, "refundPercentage": 0, "description": "No refund (<2 days)"},
        ],
        "processingFeePercentage": 5,
    }
