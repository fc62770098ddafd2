"""UK legislation MCP server: legislation.gov.uk tools and CLML converters."""

__version__ = "0.1.0"
