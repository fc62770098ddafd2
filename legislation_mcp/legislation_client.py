"""
Client for the legislation.gov.uk public API

Wraps the document, fragment, metadata, contents and search endpoints.
Most return CLML XML; Akoma Ntoso (``akn``) and HTML are also available.
"""

import html
import logging
import os
import re
from typing import Optional
from urllib.parse import urlencode

import httpx

from .cache import CacheManager, LRUCache, cache_manager
from .exceptions import LegislationAPIError
from .legislation_uri import parse_legislation_uri

logger = logging.getLogger(__name__)

API_URL = os.environ.get("LEGISLATION_API_URL", "https://www.legislation.gov.uk").rstrip("/")
USER_AGENT = "legislation-mcp-server/0.1.0"

DOCUMENT_FORMATS = ("xml", "akn", "html")

# <a href="/ukpga/Geo5/4-5/1">Consolidated Fund (No. 1) Act 1914</a>
DISAMBIGUATION_LINK_RE = re.compile(r'<a\s+[^>]*href="/([^"#?]+)"[^>]*>(.*?)</a>', re.DOTALL)
TAG_RE = re.compile(r'<[^>]+>')


async def get_http_client() -> httpx.AsyncClient:
    """Create HTTP client for legislation.gov.uk."""
    return httpx.AsyncClient(
        base_url=API_URL,
        headers={"User-Agent": USER_AGENT},
        timeout=30.0,
        follow_redirects=True
    )


def parse_disambiguation_html(body: str) -> list[dict]:
    """
    Extract the alternatives listed in an HTTP 300 Multiple Choices page.

    legislation.gov.uk answers with 300 when a calendar year matches more
    than one regnal year (e.g. ukpga/1914/1). Each link names one candidate.
    """
    alternatives = []
    for href, label in DISAMBIGUATION_LINK_RE.findall(body or ""):
        parsed = parse_legislation_uri(href)
        if not parsed:
            continue
        alternatives.append({
            "id": href,
            "title": html.unescape(TAG_RE.sub("", label)).strip(),
            "type": parsed["type"],
            "year": parsed["year"],
            "number": parsed["number"],
        })
    return alternatives


def _version_path(version: Optional[str]) -> str:
    return f"/{version}" if version else ""


class LegislationClient:
    """
    Async client for legislation.gov.uk.

    Document-style calls return ``{"kind": "document", "content": str}`` or,
    when the citation is ambiguous, ``{"kind": "disambiguation",
    "alternatives": [...]}``.
    """

    def __init__(self, manager: CacheManager = None):
        self.cache_manager = manager or cache_manager
        self.document_cache = self.cache_manager.document_cache
        self.search_cache = self.cache_manager.search_cache

    async def get_document(self, type: str, year: str, number: str,
                           format: str = "xml", version: str = None) -> dict:
        """Full document: /{type}/{year}/{number}[/{version}]/data.{format}"""
        path = f"/{type}/{year}/{number}{_version_path(version)}/data.{format}"
        return await self._fetch(path)

    async def get_document_metadata(self, type: str, year: str, number: str,
                                    version: str = None) -> dict:
        """Metadata only: /{type}/{year}/{number}[/{version}]/resources/data.xml"""
        path = f"/{type}/{year}/{number}{_version_path(version)}/resources/data.xml"
        return await self._fetch(path)

    async def get_fragment(self, type: str, year: str, number: str, fragment_id: str,
                           format: str = "xml", version: str = None) -> dict:
        """
        A Part, Chapter, cross-heading, section or subsection.

        fragment_id is a path such as "section/5" or "part/1/chapter/2".
        """
        fragment_id = fragment_id.strip("/")
        path = f"/{type}/{year}/{number}{_version_path(version)}/{fragment_id}/data.{format}"
        return await self._fetch(path)

    async def get_table_of_contents(self, type: str, year: str, number: str,
                                    format: str = "xml", version: str = None) -> dict:
        path = f"/{type}/{year}/{number}{_version_path(version)}/contents/data.{format}"
        return await self._fetch(path)

    async def search(self, title: str = None, text: str = None, type: str = None,
                     year: str = None, start_year: str = None, end_year: str = None) -> str:
        """Search by title, full text, type and year; returns the Atom feed XML."""
        params = {}
        if title:
            params["title"] = title
        if text:
            params["text"] = text
        if type:
            params["type"] = type
        if year:
            params["year"] = year
        if start_year:
            params["start-year"] = start_year
        if end_year:
            params["end-year"] = end_year

        result = await self._fetch("/search/data.feed", params=params, cache=self.search_cache)
        return result.get("content", "")

    async def _fetch(self, path: str, params: dict = None, cache: LRUCache = None) -> dict:
        cache = cache if cache is not None else self.document_cache
        url = f"{API_URL}{path}"
        if params:
            url = f"{url}?{urlencode(params)}"

        cached = cache.get(url)
        if cached is not None:
            logger.debug(f"Cache hit: {url}")
            return {"kind": "document", "content": cached}

        try:
            async with await get_http_client() as client:
                response = await client.get(path, params=params)
        except httpx.HTTPError as e:
            raise LegislationAPIError(f"Failed to fetch {url}: {e}", url=url) from e

        status = response.status_code
        if status == 300:
            alternatives = parse_disambiguation_html(response.text)
            if alternatives:
                logger.info(f"Ambiguous citation {url}: {len(alternatives)} alternatives")
                return {"kind": "disambiguation", "alternatives": alternatives}
        if status == 404:
            raise LegislationAPIError(f"Failed to fetch {url}: Not found: {url}", status, url)
        if status >= 300:
            raise LegislationAPIError(
                f"Failed to fetch {url}: HTTP {status}: {response.reason_phrase}", status, url
            )

        if not self.cache_manager.store(cache, url, response.text):
            logger.debug(f"Not caching {url}: memory limit exceeded")
        return {"kind": "document", "content": response.text}
