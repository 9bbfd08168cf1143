"""Shared pytest fixtures for LingQ client tests."""

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from lingq.client import LingQClient


@pytest.fixture
def client_settings() -> dict:
    """Session values for client initialization."""
    return {
        "language_code": "he",
        "lesson_code": 0,
        "csrf_token": "TKN",
        "session_id": "SID",
    }


@pytest.fixture
def mock_httpx_client():
    """Create a mock httpx.AsyncClient."""
    return AsyncMock(spec=httpx.AsyncClient)


@pytest.fixture
def mock_httpx_response():
    """Create a factory for mock httpx.Response objects."""

    def _create_response(
        status_code: int = 200,
        json_data: dict | list | None = None,
        text: str | None = None,
    ) -> httpx.Response:
        response = MagicMock(spec=httpx.Response)
        response.status_code = status_code
        response.is_success = 200 <= status_code < 300
        if json_data is not None:
            response.json = MagicMock(return_value=json_data)
            response.text = json.dumps(json_data)
        else:
            response.json = MagicMock(side_effect=json.JSONDecodeError("Expecting value", text or "", 0))
            response.text = text or ""
        return response

    return _create_response


@pytest.fixture
def client_with_mock_httpx(client_settings: dict, mock_httpx_client: AsyncMock) -> LingQClient:
    """Create a LingQClient with mocked httpx client."""
    client = LingQClient(**client_settings)

    # Replace the client's httpx.AsyncClient with our mock
    client.client = mock_httpx_client

    return client
