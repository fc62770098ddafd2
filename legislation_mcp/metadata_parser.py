"""
Metadata extraction for CLML documents

Reads the <ukm:Metadata> block of a legislation.gov.uk document (the
``/resources/data.xml`` endpoint, or any full document) into a flat dict.
"""

import logging
import xml.etree.ElementTree as ET
from typing import Optional

from .config_loader import config_loader
from .exceptions import StructureError
from .legislation_uri import parse_restrict_extent, strip_base_url
from .xml_utils import attr_of, child_named, children_named, local_name, parse_xml, text_content

logger = logging.getLogger(__name__)

NAVIGATION_REL_PREFIX = "http://www.legislation.gov.uk/def/navigation/"

TYPE_METADATA_TAGS = ("PrimaryMetadata", "SecondaryMetadata", "EUMetadata")


def _to_int(value: Optional[str]) -> int:
    try:
        return int(value) if value else 0
    except ValueError:
        return 0


class MetadataParser:
    """Parse legislation metadata into structured JSON"""

    def parse(self, xml: str) -> dict:
        """
        Parse a CLML document's metadata.

        Args:
            xml: CLML XML with a <Legislation> root

        Returns:
            Dict with id, type, year, number, title and whichever of status,
            extent, enactmentDate, madeDate, startDate, endDate, isbn are present

        Raises:
            StructureError: if the root element is not <Legislation>
        """
        return self.parse_element(self._legislation_root(xml))

    def parse_element(self, legislation: ET.Element) -> dict:
        metadata = child_named(legislation, "Metadata")
        type_metadata = self._type_metadata(metadata)
        classification = child_named(type_metadata, "DocumentClassification")

        long_type = attr_of(child_named(classification, "DocumentMainType"), "Value") or ""

        result = {
            "id": strip_base_url(legislation.get("DocumentURI", "")),
            "type": config_loader.short_type(long_type),
            "year": _to_int(attr_of(child_named(type_metadata, "Year"), "Value")),
            "number": _to_int(attr_of(child_named(type_metadata, "Number"), "Value")),
            "title": text_content(child_named(metadata, "title")),
            "status": attr_of(child_named(classification, "DocumentStatus"), "Value"),
            "extent": parse_restrict_extent(legislation.get("RestrictExtent")),
            "enactmentDate": None,
            "madeDate": None,
            "startDate": legislation.get("RestrictStartDate"),
            "endDate": legislation.get("RestrictEndDate"),
            "isbn": attr_of(child_named(type_metadata, "ISBN"), "Value"),
        }

        # Acts (and EU legislation) carry EnactmentDate, instruments MadeDate
        if type_metadata is not None and local_name(type_metadata) in ("PrimaryMetadata", "EUMetadata"):
            result["enactmentDate"] = attr_of(child_named(type_metadata, "EnactmentDate"), "Date")
        elif type_metadata is not None:
            result["madeDate"] = attr_of(child_named(type_metadata, "MadeDate"), "Date")

        if not long_type:
            logger.debug(f"No DocumentMainType found for {result['id'] or 'document'}")

        return {k: v for k, v in result.items() if v is not None}

    def parse_navigation_links(self, xml: str) -> dict:
        """Detect introduction/signature/note/earlier-orders navigation links"""
        return self.navigation_links_for(self._legislation_root(xml))

    def navigation_links_for(self, legislation: ET.Element) -> dict:
        rels = set()
        metadata = child_named(legislation, "Metadata")
        links = children_named(metadata, "link") if metadata is not None else ()
        for link in links:
            rel = link.get("rel", "")
            if rel.startswith(NAVIGATION_REL_PREFIX):
                rels.add(rel[len(NAVIGATION_REL_PREFIX):])

        return {
            "has_introduction": "introduction" in rels,
            "has_signature": "signature" in rels,
            "has_explanatory_note": "note" in rels,
            "has_earlier_orders": "earlier-orders" in rels,
        }

    @staticmethod
    def _legislation_root(xml: str) -> ET.Element:
        root = parse_xml(xml)
        if local_name(root) != "Legislation":
            raise StructureError("Unable to find Legislation element in metadata XML")
        return root

    @staticmethod
    def _type_metadata(metadata: Optional[ET.Element]) -> Optional[ET.Element]:
        for tag in TYPE_METADATA_TAGS:
            found = child_named(metadata, tag)
            if found is not None:
                return found
        return None
