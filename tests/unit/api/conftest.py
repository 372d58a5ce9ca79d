"""Fixtures for route tests: the app wired to the fake upstream."""

from collections.abc import AsyncIterator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from flexidesk.services.api_client import FlexiDeskClient
from flexidesk_api.dependencies import get_api_client
from flexidesk_api.main import app


@pytest.fixture
def client(upstream: Any) -> TestClient:
    """Test client whose upstream calls go to the fake upstream."""

    async def upstream_client() -> AsyncIterator[FlexiDeskClient]:
        async with upstream.client() as api:
            yield api

    app.dependency_overrides[get_api_client] = upstream_client
    return TestClient(app)
