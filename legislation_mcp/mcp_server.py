#!/usr/bin/env python3
"""
UK Legislation MCP Server

Model Context Protocol server for legislation.gov.uk.

Tools:
- search_legislation / get_legislation / get_legislation_fragment
- get_legislation_metadata / get_legislation_table_of_contents
- search_legislation_semantic / search_legislation_sections_semantic (Lex)
- get_cache_stats / clear_cache

Documents come back as CLML XML, Akoma Ntoso, HTML, or plain text rendered
from CLML. Tables of contents are outlined into nested JSON.
"""

import argparse
import logging
import os
import re
from typing import Optional

from fastmcp import FastMCP, Context
from fastmcp.exceptions import ToolError
from starlette.requests import Request
from starlette.responses import JSONResponse

from . import __version__
from .atom_parser import AtomParser
from .cache import cache_manager
from .clml_text_parser import CLMLTextParser
from .config_loader import config_loader
from .legislation_client import DOCUMENT_FORMATS, LegislationClient
from .legislation_uri import FIRST_VERSION_KEYWORDS
from .lex_client import LEGISLATION_CATEGORIES, LexClient
from .lex_mapper import map_legislation_search_response, map_legislation_sections
from .metadata_parser import MetadataParser
from .toc_parser import TocParser

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

VERSION_RE = re.compile(r'^\d{4}-\d{2}-\d{2}$')
TEXT_FORMAT = "text"

mcp = FastMCP(
    name=os.environ.get("MCP_SERVER_NAME", "UK Legislation MCP Server"),
    mask_error_details=True,  # Security: mask internal error details
    on_duplicate_tools="warn",
    on_duplicate_resources="warn",
    on_duplicate_prompts="warn"
)

legislation_client = LegislationClient()
lex_client = LexClient()
text_parser = CLMLTextParser()


def _require_citation(type: str, year: str, number: str) -> tuple[str, str, str]:
    """Validate and tidy a type/year/number citation"""
    type = (type or "").strip().lower()
    year = (year or "").strip().strip("/")
    number = (number or "").strip()
    if not type:
        raise ToolError("type is required (e.g. ukpga, uksi, asp)")
    if not year:
        raise ToolError("year is required (e.g. 2020, or a regnal year such as Vict/63)")
    if not number:
        raise ToolError("number is required")
    if not (number.isascii() and number.isdigit()) or int(number) == 0:
        raise ToolError(f"number must be a positive integer: {number}")
    return type, year, number


def _check_version(version: str) -> Optional[str]:
    version = (version or "").strip()
    if not version:
        return None
    if not VERSION_RE.match(version) and version not in FIRST_VERSION_KEYWORDS:
        raise ToolError(
            f"Invalid version: {version}. Use YYYY-MM-DD or one of {', '.join(FIRST_VERSION_KEYWORDS)}"
        )
    return version


def _check_format(format: str, allowed: tuple[str, ...]) -> str:
    format = (format or "").strip().lower()
    if format not in allowed:
        raise ToolError(f"format must be one of: {', '.join(allowed)}")
    return format


def format_disambiguation(alternatives: list[dict]) -> dict:
    """Tool response for a calendar year that matched several regnal years"""
    lines = [
        f'- {a["title"]} → use year="{a["year"]}", number="{a["number"]}"'
        for a in alternatives
    ]
    return {
        "disambiguation": True,
        "message": (
            "Ambiguous request: the calendar year matched multiple regnal years. "
            "Retry with a specific regnal year:\n" + "\n".join(lines)
        ),
        "alternatives": alternatives,
    }


def _document_response(result: dict, format: str) -> dict:
    if result["kind"] == "disambiguation":
        return format_disambiguation(result["alternatives"])
    if format == TEXT_FORMAT:
        return {"format": TEXT_FORMAT, "content": text_parser.parse(result["content"])}
    return {"format": format, "content": result["content"]}


@mcp.tool
async def search_legislation(title: str = "", text: str = "", type: str = "", year: str = "",
                             start_year: str = "", end_year: str = "", format: str = "json",
                             ctx: Context = None) -> dict:
    """
    Search UK legislation on legislation.gov.uk

    Args:
        title: Search in legislation titles
        text: Full-text search across legislation content
        type: Filter by legislation type (e.g. ukpga, uksi, asp)
        year: Filter by specific year
        start_year: Start of year range (inclusive)
        end_year: End of year range (inclusive)
        format: "json" (parsed results with paging info) or "xml" (raw Atom feed)
        ctx: FastMCP context for logging

    Returns:
        Dict with matching documents (id, type, year, number, title, date)
    """
    format = _check_format(format, ("json", "xml"))
    if not any([title, text, type, year, start_year, end_year]):
        raise ToolError("At least one search criterion is required (title, text, type or year)")

    if ctx:
        await ctx.info(f"Searching legislation: title='{title}' text='{text}' type='{type}' year='{year}'")

    try:
        feed = await legislation_client.search(
            title=title, text=text, type=type, year=year,
            start_year=start_year, end_year=end_year,
        )
        if format == "xml":
            return {"format": "xml", "content": feed}

        result = AtomParser().parse(feed)
        if ctx:
            await ctx.info(f"Found {len(result['documents'])} documents")
        return result

    except Exception as e:
        logger.error(f"Search legislation error: {e}")
        if ctx:
            await ctx.error(f"Failed to search legislation: {str(e)}")
        raise ToolError(f"Error searching legislation: {str(e)}")


@mcp.tool
async def get_legislation(type: str, year: str, number: str, format: str = "xml",
                          version: str = "", ctx: Context = None) -> dict:
    """
    Retrieve a piece of UK legislation by citation

    Args:
        type: Type of legislation (e.g. ukpga, uksi, asp, ukla)
        year: Year of enactment. A 4-digit calendar year works for all legislation;
              pre-1963 Acts also use regnal years such as Vict/63 or Geo5/26
        number: Legislation number, a positive integer in digits (e.g. 18, 1234).
                Anything else raises a ToolError before any request is made
        format: "xml" (CLML), "akn" (Akoma Ntoso), "html", or "text" (plain text rendered from CLML)
        version: YYYY-MM-DD for the text as it stood on that date, or
                 enacted/made/created/adopted for the original version
        ctx: FastMCP context for logging

    Returns:
        Dict with format and content. Ambiguous calendar years return the
        regnal-year alternatives instead.
    """
    type, year, number = _require_citation(type, year, number)
    format = _check_format(format, DOCUMENT_FORMATS + (TEXT_FORMAT,))
    version = _check_version(version)

    if ctx:
        await ctx.info(f"Getting {type}/{year}/{number} in {format} format")

    try:
        api_format = "xml" if format == TEXT_FORMAT else format
        result = await legislation_client.get_document(type, year, number, format=api_format, version=version)
        response = _document_response(result, format)

        if ctx and "content" in response:
            await ctx.info(f"Retrieved {type}/{year}/{number} ({len(response['content'])} chars)")
        return response

    except Exception as e:
        logger.error(f"Get legislation error: {e}")
        if ctx:
            await ctx.error(f"Failed to get legislation: {str(e)}")
        raise ToolError(f"Error retrieving legislation: {str(e)}")


@mcp.tool
async def get_legislation_fragment(type: str, year: str, number: str, fragment_id: str,
                                   format: str = "xml", version: str = "",
                                   ctx: Context = None) -> dict:
    """
    Retrieve one part of a document: a Part, Chapter, cross-heading, section or subsection

    Args:
        type: Type of legislation (e.g. ukpga, uksi)
        year: Year of enactment (calendar or regnal)
        number: Legislation number, a positive integer in digits.
                Anything else raises a ToolError before any request is made
        fragment_id: Fragment path such as "section/1" or "part/2/chapter/1"
                     (the fragmentId values returned by get_legislation_table_of_contents)
        format: "xml", "akn", "html" or "text"
        version: YYYY-MM-DD or enacted/made/created/adopted
        ctx: FastMCP context for logging

    Returns:
        Dict with format and content
    """
    type, year, number = _require_citation(type, year, number)
    fragment_id = (fragment_id or "").strip().strip("/")
    if not fragment_id:
        raise ToolError("fragment_id is required (e.g. section/1)")
    format = _check_format(format, DOCUMENT_FORMATS + (TEXT_FORMAT,))
    version = _check_version(version)

    if ctx:
        await ctx.info(f"Getting {type}/{year}/{number}/{fragment_id} in {format} format")

    try:
        api_format = "xml" if format == TEXT_FORMAT else format
        result = await legislation_client.get_fragment(
            type, year, number, fragment_id, format=api_format, version=version
        )
        return _document_response(result, format)

    except Exception as e:
        logger.error(f"Get legislation fragment error: {e}")
        if ctx:
            await ctx.error(f"Failed to get legislation fragment: {str(e)}")
        raise ToolError(f"Error retrieving legislation fragment: {str(e)}")


@mcp.tool
async def get_legislation_metadata(type: str, year: str, number: str, version: str = "",
                                   ctx: Context = None) -> dict:
    """
    Structured metadata for a document without its text

    Args:
        type: Type of legislation (e.g. ukpga, uksi)
        year: Year of enactment
        number: Legislation number, a positive integer in digits.
                Anything else raises a ToolError before any request is made
        version: YYYY-MM-DD or enacted/made/created/adopted
        ctx: FastMCP context for logging

    Returns:
        Dict with id, type, year, number, title, status, extent, enactmentDate
        or madeDate, startDate, endDate and isbn where known
    """
    type, year, number = _require_citation(type, year, number)
    version = _check_version(version)

    if ctx:
        await ctx.info(f"Getting metadata for {type}/{year}/{number}")

    try:
        result = await legislation_client.get_document_metadata(type, year, number, version=version)
        if result["kind"] == "disambiguation":
            return format_disambiguation(result["alternatives"])
        return MetadataParser().parse(result["content"])

    except Exception as e:
        logger.error(f"Get legislation metadata error: {e}")
        if ctx:
            await ctx.error(f"Failed to get legislation metadata: {str(e)}")
        raise ToolError(f"Error retrieving legislation metadata: {str(e)}")


@mcp.tool
async def get_legislation_table_of_contents(type: str, year: str, number: str, format: str = "json",
                                            version: str = "", ctx: Context = None) -> dict:
    """
    Table of contents for a document

    Shows the Parts, Chapters, cross-headings, sections and schedules with
    their fragment ids, for use with get_legislation_fragment.

    Args:
        type: Type of legislation (e.g. ukpga, uksi)
        year: Year of enactment (calendar or regnal)
        number: Legislation number, a positive integer in digits.
                Anything else raises a ToolError before any request is made
        format: "json" (structured outline), "xml", "akn" or "html"
        version: YYYY-MM-DD or enacted/made/created/adopted
        ctx: FastMCP context for logging

    Returns:
        {"meta": ..., "contents": ...} for json, otherwise format and content
    """
    type, year, number = _require_citation(type, year, number)
    format = _check_format(format, ("json",) + DOCUMENT_FORMATS)
    version = _check_version(version)

    if ctx:
        await ctx.info(f"Getting table of contents for {type}/{year}/{number}")

    try:
        api_format = "xml" if format == "json" else format
        result = await legislation_client.get_table_of_contents(
            type, year, number, format=api_format, version=version
        )
        if result["kind"] == "disambiguation":
            return format_disambiguation(result["alternatives"])
        if format != "json":
            return {"format": format, "content": result["content"]}

        toc = TocParser().parse(result["content"])
        if ctx:
            await ctx.info(f"Parsed table of contents: {len(toc['contents']['body'])} top-level items")
        return toc

    except Exception as e:
        logger.error(f"Get table of contents error: {e}")
        if ctx:
            await ctx.error(f"Failed to get table of contents: {str(e)}")
        raise ToolError(f"Error retrieving table of contents: {str(e)}")


@mcp.tool
async def search_legislation_semantic(query: str, types: list[str] = None, year_from: int = None,
                                      year_to: int = None, offset: int = 0, limit: int = 10,
                                      include_text: bool = False, ctx: Context = None) -> dict:
    """
    Semantic (meaning-based) search for Acts and instruments via Lex

    Args:
        query: Natural language query
        types: Legislation type codes (e.g. ["ukpga", "uksi"])
        year_from: Start year (inclusive)
        year_to: End year (inclusive)
        offset: Pagination offset
        limit: Max results (default: 10)
        include_text: Include section text in results (slower)
        ctx: FastMCP context for logging

    Returns:
        Dict with results, total, offset and limit
    """
    if not query or not query.strip():
        raise ToolError("query is required")
    if limit < 1 or limit > 100:
        raise ToolError("limit must be between 1 and 100")

    if ctx:
        await ctx.info(f"Semantic legislation search: {query}")

    try:
        response = await lex_client.search_legislation(
            query=query.strip(),
            legislation_type=types or None,
            year_from=year_from,
            year_to=year_to,
            offset=offset,
            limit=limit,
            include_text=include_text,
        )
        return map_legislation_search_response(response)

    except Exception as e:
        logger.error(f"Semantic search error: {e}")
        if ctx:
            await ctx.error(f"Failed semantic search: {str(e)}")
        raise ToolError(f"Error searching legislation (semantic): {str(e)}")


@mcp.tool
async def search_legislation_sections_semantic(query: str, legislation_id: str = "",
                                               types: list[str] = None, categories: list[str] = None,
                                               year_from: int = None, year_to: int = None,
                                               offset: int = 0, limit: int = 10,
                                               include_text: bool = False,
                                               ctx: Context = None) -> dict:
    """
    Semantic search for individual sections and provisions via Lex

    Args:
        query: Natural language query
        legislation_id: Optional document to search within (e.g. ukpga/2018/12)
        types: Legislation type codes (e.g. ["ukpga"])
        categories: primary, secondary, european and/or euretained
        year_from: Start year (inclusive); not reliable for regnal-year legislation
        year_to: End year (inclusive)
        offset: Pagination offset
        limit: Max results (default: 10)
        include_text: Include section text in results (slower)
        ctx: FastMCP context for logging

    Returns:
        Dict with the matching sections
    """
    if not query or not query.strip():
        raise ToolError("query is required")
    if limit < 1 or limit > 100:
        raise ToolError("limit must be between 1 and 100")
    for category in categories or []:
        if category not in LEGISLATION_CATEGORIES:
            raise ToolError(f"Invalid category: {category}. Use one of: {', '.join(LEGISLATION_CATEGORIES)}")

    if ctx:
        await ctx.info(f"Semantic section search: {query}")

    try:
        response = await lex_client.search_legislation_sections(
            query=query.strip(),
            legislation_id=legislation_id.strip() or None,
            legislation_type=types or None,
            legislation_category=categories or None,
            year_from=year_from,
            year_to=year_to,
            offset=offset,
            size=limit,
            include_text=include_text,
        )
        sections = map_legislation_sections(response)
        return {"sections": sections, "count": len(sections)}

    except Exception as e:
        logger.error(f"Semantic section search error: {e}")
        if ctx:
            await ctx.error(f"Failed semantic section search: {str(e)}")
        raise ToolError(f"Error searching legislation sections (semantic): {str(e)}")


@mcp.tool
async def get_cache_stats(ctx: Context = None) -> dict:
    """
    Get current cache statistics

    Args:
        ctx: FastMCP context for logging

    Returns:
        Dict with cache sizes and memory usage
    """
    try:
        cache_manager.cleanup_if_needed()
        result = cache_manager.stats()
        if ctx:
            total = sum(c["size"] for c in result["cache_statistics"].values())
            await ctx.info(f"Cache statistics retrieved: {total} total cached items")
        return result

    except Exception as e:
        logger.error(f"Get cache stats error: {e}")
        if ctx:
            await ctx.error(f"Failed to get cache stats: {str(e)}")
        raise ToolError(f"Failed to get cache stats: {str(e)}")


@mcp.tool
async def clear_cache(cache_type: str = "all", ctx: Context = None) -> dict:
    """
    Clear specified cache or all caches

    Args:
        cache_type: Cache type to clear ("all", "document", "search")
        ctx: FastMCP context for logging

    Returns:
        Dict with clear operation results
    """
    if cache_type != "all" and cache_type not in cache_manager.caches():
        raise ToolError(f"Invalid cache_type: {cache_type}. Use 'all', 'document', or 'search'")

    if ctx:
        await ctx.info(f"Clearing cache: {cache_type}")

    cache_manager.clear(cache_type)
    return {
        "status": "success",
        "message": f"Cache cleared: {cache_type}",
        "cache_sizes_after_clear": {name: cache.size() for name, cache in cache_manager.caches().items()},
    }


# Resources
@mcp.resource("api://info")
def get_api_info() -> dict:
    """UK Legislation MCP Server information"""
    return {
        "name": "UK Legislation MCP Server",
        "version": __version__,
        "description": "Search and retrieve UK legislation from legislation.gov.uk",
        "data_source": "https://www.legislation.gov.uk",
        "formats": {
            "xml": "CLML (Crown Legislation Markup Language)",
            "akn": "Akoma Ntoso",
            "html": "Rendered HTML",
            "text": "Plain text rendered from CLML",
        },
        "version_parameter": "YYYY-MM-DD for point-in-time, or enacted/made/created/adopted for the original",
        "semantic_search": "Backed by the Lex API (LEX_API_BASE_URL)",
    }


@mcp.resource("types://legislation")
def get_legislation_types() -> dict:
    """legislation.gov.uk document type codes"""
    return {
        "types": config_loader.type_descriptions,
        "document_main_types": config_loader.document_types,
    }


@mcp.custom_route("/health", methods=["GET"])
async def health_check(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


def main():
    """Entry point for the legislation-mcp command"""
    parser = argparse.ArgumentParser(description="UK Legislation MCP Server")
    parser.add_argument("--transport", choices=["stdio", "streamable-http"],
                        default=os.environ.get("MCP_TRANSPORT", "stdio"))
    parser.add_argument("--host", default=os.environ.get("HOST", "127.0.0.1"))
    parser.add_argument("--port", type=int, default=int(os.environ.get("PORT", "8000")))
    args = parser.parse_args()

    if args.transport == "stdio":
        mcp.run()
    else:
        logger.info(f"Starting streamable-http server on {args.host}:{args.port}")
        mcp.run(
            transport="streamable-http",
            host=args.host,
            port=args.port
        )


if __name__ == "__main__":
    main()
