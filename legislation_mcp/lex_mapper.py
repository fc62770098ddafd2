"""
Mapping of Lex API responses to legislation.gov.uk-style shapes

Ids become ``type/year/number`` paths, extent names become region codes
and keys are camelCased. Absent values are left out.

Known limitations: enactmentDate is only filled for primary legislation;
Lex does not return made dates for secondary legislation.
"""

from typing import Optional

from .legislation_uri import normalize_legislation_id, parse_legislation_uri

EXTENT_CODES = {
    "England": ["E"],
    "Wales": ["W"],
    "Scotland": ["S"],
    "Northern Ireland": ["NI"],
    "United Kingdom": ["E", "W", "S", "NI"],
}


def _compact(data: dict) -> dict:
    return {k: v for k, v in data.items() if v is not None}


def normalize_extent(extent: Optional[list]) -> Optional[list[str]]:
    """
    ["England", "Wales", ""] -> ["E", "W"]; ["United Kingdom"] -> ["E", "W", "S", "NI"]

    Unknown names are kept as they are. Returns None when nothing is left.
    """
    if not extent:
        return None

    normalized = []
    for name in extent:
        if name == "" or name is None:
            continue
        normalized.extend(EXTENT_CODES.get(name, [name]))
    return normalized or None


def provision_id(value: Optional[str]) -> Optional[str]:
    """
    Full provision path of a section URI.

    "https://www.legislation.gov.uk/id/ukpga/2020/2/section/1" -> "ukpga/2020/2/section/1"
    """
    if not value:
        return None
    parsed = parse_legislation_uri(value)
    if not parsed or not parsed["fragment"]:
        return normalize_legislation_id(value)
    return f"{parsed['type']}/{parsed['year']}/{parsed['number']}/{parsed['fragment']}"


def map_section_match(section: dict) -> dict:
    return _compact({
        "number": section.get("number"),
        "provisionType": section.get("provision_type"),
        "score": section.get("score"),
    })


def map_legislation_act_result(result: dict) -> dict:
    raw_id = result.get("id") or result.get("uri")
    sections = result.get("sections")

    return _compact({
        "id": normalize_legislation_id(raw_id) or raw_id or "",
        "type": result.get("type"),
        "year": result.get("year"),
        "number": result.get("number"),
        "title": result.get("title"),
        "description": result.get("description"),
        "publisher": result.get("publisher"),
        "status": result.get("status"),
        "extent": normalize_extent(result.get("extent")),
        "enactmentDate": result.get("enactment_date"),
        "modifiedDate": result.get("modified_date"),
        "sections": [map_section_match(s) for s in sections] if sections is not None else None,
    })


def map_legislation_search_response(response: dict) -> dict:
    return {
        "results": [map_legislation_act_result(r) for r in response.get("results", [])],
        "total": response.get("total", 0),
        "offset": response.get("offset", 0),
        "limit": response.get("limit", 0),
    }


def map_legislation_section(section: dict) -> dict:
    raw_id = section.get("id") or section.get("uri")
    legislation_id = section.get("legislation_id")

    return _compact({
        "provisionId": provision_id(raw_id) or raw_id or "",
        "provisionType": section.get("provision_type"),
        "number": section.get("number"),
        "legislation": _compact({
            "id": normalize_legislation_id(legislation_id) or legislation_id or "",
            "type": section.get("legislation_type"),
            "year": section.get("legislation_year"),
            "number": section.get("legislation_number"),
        }),
        "title": section.get("title"),
        "extent": normalize_extent(section.get("extent")),
        "text": section.get("text"),
    })


def map_legislation_sections(sections) -> list[dict]:
    """Section search returns a bare list; tolerate a {"results": [...]} envelope too"""
    if isinstance(sections, dict):
        sections = sections.get("results", [])
    return [map_legislation_section(s) for s in sections or []]
