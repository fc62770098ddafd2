#!/usr/bin/env python3
"""
Entry point for the UK Legislation MCP Server
Checks dependencies before starting so a missing package gives a clear message
"""
import sys


def check_dependencies():
    """Exit with an install hint when a required dependency is missing"""
    missing_deps = []

    try:
        import fastmcp  # noqa: F401
    except ImportError:
        missing_deps.append("fastmcp")

    try:
        import httpx  # noqa: F401
    except ImportError:
        missing_deps.append("httpx")

    try:
        import yaml  # noqa: F401
    except ImportError:
        missing_deps.append("PyYAML")

    try:
        import psutil  # noqa: F401
    except ImportError:
        missing_deps.append("psutil")

    try:
        import starlette  # noqa: F401
    except ImportError:
        missing_deps.append("starlette")

    if missing_deps:
        print(f"Error: Missing required dependencies: {', '.join(missing_deps)}", file=sys.stderr)
        print("Please install with: pip install " + " ".join(missing_deps), file=sys.stderr)
        sys.exit(1)


def main():
    """Main entry point with dependency checking"""
    check_dependencies()

    from legislation_mcp.mcp_server import main as server_main
    try:
        server_main()
    except Exception as e:
        print(f"Error starting MCP server: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
