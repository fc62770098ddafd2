"""
legislation.gov.uk URI helpers

Parses identifiers such as ``http://www.legislation.gov.uk/id/ukpga/2020/2/section/1``
or bare paths like ``ukpga/Vict/63/52/enacted`` into their parts.
"""

import re
from typing import Optional

BASE_URL_RE = re.compile(r'^https?://www\.legislation\.gov\.uk/')
ID_PREFIX_RE = re.compile(r'^https?://www\.legislation\.gov\.uk/(id/)?')

CALENDAR_YEAR_RE = re.compile(r'^\d{4}$')
NUMBER_RE = re.compile(r'^\d+$')
ISO_DATE_RE = re.compile(r'^\d{4}-\d{2}-\d{2}$')

LANGUAGES = ("english", "welsh")
FIRST_VERSION_KEYWORDS = ("enacted", "made", "created", "adopted")


def parse_legislation_uri(uri: str) -> Optional[dict]:
    """
    Split a legislation URI into type, year, number, fragment, version and language.

    Calendar years take one path segment; regnal years take two (``Vict/63``).
    Returns None when the type, year and number cannot all be found.
    """
    if not uri:
        return None

    path = BASE_URL_RE.sub("", uri)
    if path.startswith("/"):
        path = path[1:]
    if path.startswith("id/"):
        path = path[3:]

    segments = [s for s in path.split("/") if s]
    if len(segments) < 3:
        return None

    i = 0
    doc_type = segments[i]
    i += 1

    if CALENDAR_YEAR_RE.match(segments[i]):
        year = segments[i]
        i += 1
    else:
        if i + 1 >= len(segments):
            return None
        year = f"{segments[i]}/{segments[i + 1]}"
        i += 2

    if i >= len(segments) or not NUMBER_RE.match(segments[i]):
        return None
    number = segments[i]
    i += 1

    remaining = segments[i:]

    language = None
    if remaining and remaining[-1] in LANGUAGES:
        language = remaining.pop()

    version = None
    if remaining and (ISO_DATE_RE.match(remaining[-1]) or remaining[-1] in FIRST_VERSION_KEYWORDS):
        version = remaining.pop()

    return {
        "type": doc_type,
        "year": year,
        "number": number,
        "fragment": "/".join(remaining) if remaining else None,
        "version": version,
        "language": language,
    }


def strip_base_url(value: str) -> str:
    """Remove the legislation.gov.uk host and optional ``id/`` prefix"""
    return ID_PREFIX_RE.sub("", value or "")


def normalize_legislation_id(value: Optional[str]) -> Optional[str]:
    """Reduce a URI to its ``type/year/number`` document id"""
    if not value:
        return None
    parsed = parse_legislation_uri(value)
    if not parsed:
        return strip_base_url(value)
    return f"{parsed['type']}/{parsed['year']}/{parsed['number']}"


def parse_restrict_extent(value: Optional[str]) -> Optional[list[str]]:
    """Turn a RestrictExtent attribute such as ``E+W+S+N.I.`` into region codes"""
    if not value:
        return None
    return [code.replace("N.I.", "NI") for code in value.split("+")]
