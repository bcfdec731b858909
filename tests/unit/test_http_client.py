"""Testes unitários para infra/http.py.

Valida cliente HTTP com retry e timeout.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from wally.infra.http import (
    HttpClient,
    HttpClientConfig,
    HttpError,
    _calculate_backoff,
    _is_retryable_status,
    create_http_client,
)


def _response(status_code: int) -> MagicMock:
    response = MagicMock(spec=httpx.Response)
    response.status_code = status_code
    response.is_success = 200 <= status_code < 300
    return response


def _client_with(config: HttpClientConfig, side_effect) -> tuple[HttpClient, AsyncMock]:
    client = HttpClient(config)
    mock_httpx_client = AsyncMock()
    mock_httpx_client.is_closed = False
    mock_httpx_client.request.side_effect = side_effect
    client._client = mock_httpx_client
    return client, mock_httpx_client


class TestHelpers:
    @pytest.mark.parametrize(
        ("status_code", "expected"),
        [(429, True), (500, True), (503, True), (400, False), (401, False), (404, False)],
    )
    def test_retryable_status(self, status_code, expected):
        assert _is_retryable_status(status_code) is expected

    def test_backoff_is_exponential_and_capped(self):
        assert _calculate_backoff(0, 1.0, 30.0) == 1.0
        assert _calculate_backoff(1, 1.0, 30.0) == 2.0
        assert _calculate_backoff(2, 1.0, 30.0) == 4.0
        assert _calculate_backoff(10, 1.0, 30.0) == 30.0


class TestRequests:
    @pytest.mark.asyncio
    async def test_post_with_json(self):
        client, mock_httpx = _client_with(HttpClientConfig(), [_response(200)])

        await client.post("/api/send-message", json={"to": "1", "text": "oi"})

        mock_httpx.request.assert_called_once_with(
            "POST", "/api/send-message", json={"to": "1", "text": "oi"}
        )

    @pytest.mark.asyncio
    async def test_retry_on_5xx(self):
        client, mock_httpx = _client_with(
            HttpClientConfig(max_retries=2),
            [_response(500), _response(502), _response(200)],
        )

        with patch("asyncio.sleep", new_callable=AsyncMock):
            response = await client.post("/x")

        assert response.status_code == 200
        assert mock_httpx.request.call_count == 3

    @pytest.mark.asyncio
    async def test_no_retry_on_4xx(self):
        client, mock_httpx = _client_with(HttpClientConfig(max_retries=3), [_response(401)])

        with pytest.raises(HttpError) as exc_info:
            await client.post("/x")

        assert exc_info.value.status_code == 401
        assert exc_info.value.is_retryable is False
        assert mock_httpx.request.call_count == 1

    @pytest.mark.asyncio
    async def test_timeout_is_retried_then_raised(self):
        client, mock_httpx = _client_with(
            HttpClientConfig(max_retries=1),
            httpx.ReadTimeout("timeout"),
        )

        with patch("asyncio.sleep", new_callable=AsyncMock), pytest.raises(HttpError) as exc_info:
            await client.post("/x")

        assert exc_info.value.is_retryable is True
        assert mock_httpx.request.call_count == 2

    @pytest.mark.asyncio
    async def test_connection_error_is_retryable(self):
        client, _ = _client_with(
            HttpClientConfig(max_retries=0),
            httpx.ConnectError("refused"),
        )

        with pytest.raises(HttpError) as exc_info:
            await client.post("/x")

        assert "ConnectError" in str(exc_info.value)


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_close_releases_client(self):
        client, mock_httpx = _client_with(HttpClientConfig(), [])

        await client.close()

        mock_httpx.aclose.assert_awaited_once()
        assert client._client is None


def test_create_http_client_uses_wasender_settings(settings):
    client = create_http_client(settings)

    assert client._config.base_url == "https://www.wasenderapi.com"
    assert client._config.max_retries == settings.wasender_max_retries
    assert client._config.default_headers["User-Agent"] == "wally/0.1.0"
