#!/usr/bin/env python3
"""
Lex semantic search client tests
"""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from legislation_mcp.exceptions import LexAPIError
from legislation_mcp.lex_client import DEFAULT_LEX_API_URL, LexClient


def make_response(status_code=200, payload=None, reason_phrase="OK", text=""):
    response = MagicMock()
    response.status_code = status_code
    response.reason_phrase = reason_phrase
    response.text = text
    response.json = MagicMock(return_value=payload)
    return response


def make_client(response=None, side_effect=None):
    mock_client = AsyncMock()
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=None)
    if side_effect is not None:
        mock_client.post = AsyncMock(side_effect=side_effect)
    else:
        mock_client.post = AsyncMock(return_value=response)
    return mock_client


class TestLexClientConfig:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("LEX_API_BASE_URL", raising=False)
        monkeypatch.delenv("LEX_API_KEY", raising=False)
        monkeypatch.delenv("LEX_API_USER_AGENT", raising=False)

        client = LexClient()
        assert client.base_url == DEFAULT_LEX_API_URL
        assert client.headers() == {"Content-Type": "application/json", "Accept": "application/json"}

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("LEX_API_BASE_URL", "https://lex.example.org/")
        monkeypatch.setenv("LEX_API_KEY", "secret")
        monkeypatch.setenv("LEX_API_USER_AGENT", "tests/1.0")

        client = LexClient()
        headers = client.headers()
        assert client.base_url == "https://lex.example.org"
        assert headers["Authorization"] == "Bearer secret"
        assert headers["User-Agent"] == "tests/1.0"

    def test_explicit_arguments_win(self, monkeypatch):
        monkeypatch.setenv("LEX_API_KEY", "from-env")
        client = LexClient(base_url="http://lex:9000", api_key="")
        assert client.base_url == "http://lex:9000"
        assert "Authorization" not in client.headers()


class TestLexClientRequests:

    @pytest.mark.asyncio
    async def test_search_legislation_drops_unset_fields(self):
        payload = {"results": [], "total": 0, "offset": 0, "limit": 5}
        mock_client = make_client(make_response(payload=payload))

        with patch("legislation_mcp.lex_client.get_http_client", AsyncMock(return_value=mock_client)):
            result = await LexClient(base_url="http://lex").search_legislation(
                "rights of tenants", legislation_type=["ukpga"], limit=5
            )

        assert result == payload
        call = mock_client.post.call_args
        assert call.args[0] == "/legislation/search"
        assert call.kwargs["json"] == {"query": "rights of tenants", "legislation_type": ["ukpga"], "limit": 5}

    @pytest.mark.asyncio
    async def test_search_sections(self):
        mock_client = make_client(make_response(payload=[{"id": "ukpga/2010/15/section/20"}]))

        with patch("legislation_mcp.lex_client.get_http_client", AsyncMock(return_value=mock_client)):
            result = await LexClient(base_url="http://lex").search_legislation_sections(
                "reasonable adjustments", legislation_id="ukpga/2010/15", size=3, include_text=False
            )

        assert result == [{"id": "ukpga/2010/15/section/20"}]
        call = mock_client.post.call_args
        assert call.args[0] == "/legislation/section/search"
        assert call.kwargs["json"] == {
            "query": "reasonable adjustments",
            "legislation_id": "ukpga/2010/15",
            "size": 3,
            "include_text": False,
        }

    @pytest.mark.asyncio
    async def test_error_status(self):
        mock_client = make_client(make_response(422, reason_phrase="Unprocessable Entity", text="bad query"))

        with patch("legislation_mcp.lex_client.get_http_client", AsyncMock(return_value=mock_client)):
            with pytest.raises(LexAPIError) as exc_info:
                await LexClient(base_url="http://lex").search_legislation("x")

        assert str(exc_info.value) == "Lex API request failed: 422 Unprocessable Entity - bad query"
        assert exc_info.value.status_code == 422

    @pytest.mark.asyncio
    async def test_transport_error(self):
        mock_client = make_client(side_effect=httpx.ConnectError("refused"))

        with patch("legislation_mcp.lex_client.get_http_client", AsyncMock(return_value=mock_client)):
            with pytest.raises(LexAPIError, match="refused"):
                await LexClient(base_url="http://lex").search_legislation("x")
