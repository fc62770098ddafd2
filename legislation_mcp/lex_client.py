"""
Client for the Lex semantic search API

Mirrors the Lex endpoint shapes and parameter names. Responses are returned
as received; lex_mapper turns them into the shapes the tools expose.
"""

import logging
import os

import httpx

from .exceptions import LexAPIError

logger = logging.getLogger(__name__)

DEFAULT_LEX_API_URL = "http://localhost:8000"
LEGISLATION_CATEGORIES = ("primary", "secondary", "european", "euretained")


async def get_http_client(base_url: str, headers: dict) -> httpx.AsyncClient:
    """Create HTTP client for the Lex API."""
    return httpx.AsyncClient(base_url=base_url, headers=headers, timeout=30.0)


class LexClient:
    def __init__(self, base_url: str = None, api_key: str = None, user_agent: str = None):
        base_url = base_url or os.environ.get("LEX_API_BASE_URL") or DEFAULT_LEX_API_URL
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key if api_key is not None else os.environ.get("LEX_API_KEY", "")
        self.user_agent = user_agent or os.environ.get("LEX_API_USER_AGENT", "")

    def headers(self) -> dict:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        if self.user_agent:
            headers["User-Agent"] = self.user_agent
        return headers

    async def search_legislation(self, query: str, year_from: int = None, year_to: int = None,
                                 legislation_type: list[str] = None, offset: int = None,
                                 limit: int = None, include_text: bool = None) -> dict:
        """POST /legislation/search - act-level semantic search"""
        return await self._post("/legislation/search", {
            "query": query,
            "year_from": year_from,
            "year_to": year_to,
            "legislation_type": legislation_type,
            "offset": offset,
            "limit": limit,
            "include_text": include_text,
        })

    async def search_legislation_sections(self, query: str, legislation_id: str = None,
                                          legislation_category: list[str] = None,
                                          legislation_type: list[str] = None,
                                          year_from: int = None, year_to: int = None,
                                          offset: int = None, size: int = None,
                                          include_text: bool = None) -> list:
        """POST /legislation/section/search - provision-level semantic search"""
        return await self._post("/legislation/section/search", {
            "query": query,
            "legislation_id": legislation_id,
            "legislation_category": legislation_category,
            "legislation_type": legislation_type,
            "year_from": year_from,
            "year_to": year_to,
            "offset": offset,
            "size": size,
            "include_text": include_text,
        })

    async def _post(self, path: str, payload: dict):
        body = {k: v for k, v in payload.items() if v is not None}
        logger.debug(f"Lex request {path}: {body}")

        try:
            async with await get_http_client(self.base_url, self.headers()) as client:
                response = await client.post(path, json=body)
        except httpx.HTTPError as e:
            raise LexAPIError(f"Lex API request failed: {e}") from e

        if response.status_code >= 400:
            raise LexAPIError(
                f"Lex API request failed: {response.status_code} {response.reason_phrase} - {response.text}",
                response.status_code,
            )
        return response.json()
