"""Atom search feed parser for legislation.gov.uk ``/search/data.feed`` results."""

import logging
import xml.etree.ElementTree as ET
from typing import Optional

from .config_loader import config_loader
from .exceptions import StructureError
from .legislation_uri import strip_base_url
from .xml_utils import attr_of, child_named, children_named, local_name, parse_xml, text_content

logger = logging.getLogger(__name__)


def _optional_int(element: Optional[ET.Element]) -> Optional[int]:
    text = text_content(element)
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        return None


def _value_int(element: Optional[ET.Element]) -> int:
    value = attr_of(element, "Value")
    try:
        return int(value) if value else 0
    except ValueError:
        return 0


class AtomParser:
    """Parse a search results feed into documents plus paging info"""

    def parse(self, xml: str) -> dict:
        root = parse_xml(xml)
        if local_name(root) != "feed":
            raise StructureError("Unable to find feed element in Atom XML")

        documents = [self._parse_entry(entry) for entry in children_named(root, "entry")]
        logger.debug(f"Parsed {len(documents)} search results")

        return {
            "meta": self._parse_meta(root),
            "documents": documents,
        }

    def _parse_meta(self, feed: ET.Element) -> dict:
        meta = {}

        page = _optional_int(child_named(feed, "page"))
        if page is not None:
            meta["page"] = page

        more_pages = _optional_int(child_named(feed, "morePages"))
        meta["morePages"] = bool(more_pages and more_pages > 0)

        # openSearch elements
        for tag, key in (("itemsPerPage", "itemsPerPage"),
                         ("startIndex", "startIndex"),
                         ("totalResults", "totalResults")):
            value = _optional_int(child_named(feed, tag))
            if value is not None:
                meta[key] = value

        return meta

    def _parse_entry(self, entry: ET.Element) -> dict:
        long_type = attr_of(child_named(entry, "DocumentMainType"), "Value") or ""
        document = {
            "id": strip_base_url(text_content(child_named(entry, "id"))),
            "type": config_loader.short_type(long_type),
            "year": _value_int(child_named(entry, "Year")),
            "number": _value_int(child_named(entry, "Number")),
            "title": text_content(child_named(entry, "title")),
        }
        date = attr_of(child_named(entry, "CreationDate"), "Date")
        if date:
            document["date"] = date
        return document
