"""Error types raised by the legislation clients and parsers."""


class LegislationError(Exception):
    """Base class for legislation server errors"""


class StructureError(LegislationError, ValueError):
    """Raised when a document lacks an element it is required to have"""


class LegislationAPIError(LegislationError):
    """Raised when legislation.gov.uk cannot serve a request"""

    def __init__(self, message: str, status_code: int = None, url: str = None):
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class LexAPIError(LegislationError):
    """Raised when the Lex semantic search backend returns an error"""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code
