#!/usr/bin/env python3
"""
CLI wrapper for the UK Legislation MCP Server.
Gives direct command-line access to the legislation tools and the CLML
converters without needing an MCP client.

Usage:
  python cli.py search --title "Theft Act"
  python cli.py get --type ukpga --year 1968 --number 60 --format text
  python cli.py fragment --type ukpga --year 1968 --number 60 --fragment section/1 --format text
  python cli.py metadata --type ukpga --year 2020 --number 2
  python cli.py toc --type ukpga --year 2020 --number 2
  python cli.py semantic --query "rights of tenants on eviction"
  python cli.py sections --query "duty to make reasonable adjustments" --legislation-id ukpga/2010/15
  python cli.py render --file section.xml
  python cli.py outline --file contents.xml
"""

import argparse
import asyncio
import json
import logging
import sys

from legislation_mcp import mcp_server
from legislation_mcp.clml_text_parser import CLMLTextParser
from legislation_mcp.toc_parser import TocParser

# Keep progress logs out of the JSON output
logging.getLogger().setLevel(logging.WARNING)


def _tool_fn(tool):
    """Underlying coroutine of an @mcp.tool function"""
    return tool.fn if hasattr(tool, 'fn') else tool


def _read_source(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, encoding="utf-8") as f:
        return f.read()


def cmd_render(path: str) -> str:
    """Render a local CLML file as plain text."""
    return CLMLTextParser().parse(_read_source(path))


def cmd_outline(path: str) -> dict:
    """Outline a local CLML contents file."""
    return TocParser().parse(_read_source(path))


def _add_citation_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--type", required=True, help="Legislation type (e.g., ukpga, uksi, asp)")
    p.add_argument("--year", required=True, help="Year (e.g., 1968, or regnal year Vict/63)")
    p.add_argument("--number", required=True, help="Legislation number")
    p.add_argument("--version", default="", help="YYYY-MM-DD or enacted/made/created/adopted")


def main():
    parser = argparse.ArgumentParser(
        description="UK Legislation CLI - direct access to legislation.gov.uk tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # search
    p_search = subparsers.add_parser("search", help="Search legislation by title/text/type/year")
    p_search.add_argument("--title", default="", help="Words in the title")
    p_search.add_argument("--text", default="", help="Full-text search")
    p_search.add_argument("--type", default="", help="Legislation type filter")
    p_search.add_argument("--year", default="", help="Year filter")
    p_search.add_argument("--start-year", default="", help="Start of year range")
    p_search.add_argument("--end-year", default="", help="End of year range")
    p_search.add_argument("--format", default="json", choices=["json", "xml"], help="Response format")

    # get
    p_get = subparsers.add_parser("get", help="Get a whole document")
    _add_citation_args(p_get)
    p_get.add_argument("--format", default="xml", choices=["xml", "akn", "html", "text"], help="Response format")

    # fragment
    p_frag = subparsers.add_parser("fragment", help="Get a Part, Chapter or section")
    _add_citation_args(p_frag)
    p_frag.add_argument("--fragment", required=True, help="Fragment id (e.g., section/1, part/2)")
    p_frag.add_argument("--format", default="xml", choices=["xml", "akn", "html", "text"], help="Response format")

    # metadata
    p_meta = subparsers.add_parser("metadata", help="Get document metadata")
    _add_citation_args(p_meta)

    # toc
    p_toc = subparsers.add_parser("toc", help="Get the table of contents")
    _add_citation_args(p_toc)
    p_toc.add_argument("--format", default="json", choices=["json", "xml", "akn", "html"], help="Response format")

    # semantic
    p_sem = subparsers.add_parser("semantic", help="Semantic search for Acts and instruments (Lex)")
    p_sem.add_argument("--query", required=True, help="Natural language query")
    p_sem.add_argument("--types", default="", help="Comma-separated type codes (e.g., ukpga,uksi)")
    p_sem.add_argument("--year-from", type=int, default=None, help="Start year")
    p_sem.add_argument("--year-to", type=int, default=None, help="End year")
    p_sem.add_argument("--limit", type=int, default=10, help="Max results")
    p_sem.add_argument("--include-text", action="store_true", help="Include section text")

    # sections
    p_sec = subparsers.add_parser("sections", help="Semantic search for sections (Lex)")
    p_sec.add_argument("--query", required=True, help="Natural language query")
    p_sec.add_argument("--legislation-id", default="", help="Search within one document (e.g., ukpga/2010/15)")
    p_sec.add_argument("--types", default="", help="Comma-separated type codes")
    p_sec.add_argument("--categories", default="", help="Comma-separated categories (primary, secondary, ...)")
    p_sec.add_argument("--limit", type=int, default=10, help="Max results")
    p_sec.add_argument("--include-text", action="store_true", help="Include section text")

    # render / outline (local files)
    p_render = subparsers.add_parser("render", help="Render a local CLML file as plain text")
    p_render.add_argument("--file", required=True, help="CLML XML file ('-' for stdin)")
    p_outline = subparsers.add_parser("outline", help="Outline a local CLML contents file")
    p_outline.add_argument("--file", required=True, help="CLML XML file ('-' for stdin)")

    args = parser.parse_args()

    def split(value: str) -> list[str]:
        return [v.strip() for v in value.split(",") if v.strip()] or None

    if args.command == "search":
        fn = _tool_fn(mcp_server.search_legislation)
        result = asyncio.run(fn(args.title, args.text, args.type, args.year,
                                args.start_year, args.end_year, args.format))
    elif args.command == "get":
        fn = _tool_fn(mcp_server.get_legislation)
        result = asyncio.run(fn(args.type, args.year, args.number, args.format, args.version))
    elif args.command == "fragment":
        fn = _tool_fn(mcp_server.get_legislation_fragment)
        result = asyncio.run(fn(args.type, args.year, args.number, args.fragment, args.format, args.version))
    elif args.command == "metadata":
        fn = _tool_fn(mcp_server.get_legislation_metadata)
        result = asyncio.run(fn(args.type, args.year, args.number, args.version))
    elif args.command == "toc":
        fn = _tool_fn(mcp_server.get_legislation_table_of_contents)
        result = asyncio.run(fn(args.type, args.year, args.number, args.format, args.version))
    elif args.command == "semantic":
        fn = _tool_fn(mcp_server.search_legislation_semantic)
        result = asyncio.run(fn(args.query, types=split(args.types), year_from=args.year_from,
                                year_to=args.year_to, limit=args.limit, include_text=args.include_text))
    elif args.command == "sections":
        fn = _tool_fn(mcp_server.search_legislation_sections_semantic)
        result = asyncio.run(fn(args.query, legislation_id=args.legislation_id, types=split(args.types),
                                categories=split(args.categories), limit=args.limit,
                                include_text=args.include_text))
    elif args.command == "render":
        print(cmd_render(args.file))
        return
    elif args.command == "outline":
        result = cmd_outline(args.file)
    else:
        parser.print_help()
        sys.exit(1)

    # Plain text output reads better unwrapped
    if isinstance(result, dict) and result.get("format") == "text":
        print(result["content"])
    else:
        print(json.dumps(result, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
