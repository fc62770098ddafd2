"""
Table of contents outliner

Turns the <Contents> element of a CLML document (the ``/contents/data.xml``
endpoint) into a nested outline. Items keep document order; schedules,
appendices, attachments and the other front/back-matter groups go to their
own slots. Sections that exist in the document but are missing from
<Contents> (introduction, signature, explanatory note, earlier orders) are
added from the metadata navigation links.
"""

import logging
import xml.etree.ElementTree as ET

from .exceptions import StructureError
from .legislation_uri import parse_legislation_uri, parse_restrict_extent
from .metadata_parser import MetadataParser
from .xml_utils import child_named, local_name, parse_xml

logger = logging.getLogger(__name__)

CONTENTS_PREFIX = "Contents"

# CLML names that read badly once the prefix is gone
NAME_MAP = {
    "Pblock": "crossheading",
    "Psubblock": "subheading",
}

# Slots filled from a single Contents* element
SINGLE_ITEM_SLOTS = {
    "ContentsIntroduction": "introduction",
    "ContentsSignature": "signature",
    "ContentsExplanatoryNote": "explanatoryNote",
    "ContentsEarlierOrders": "earlierOrders",
}

# navigation flag -> (slot, title, fragmentId)
SYNTHETIC_ITEMS = (
    ("has_introduction", "introduction", "Introductory Text", "introduction"),
    ("has_signature", "signature", "Signature", "signature"),
    ("has_explanatory_note", "explanatoryNote", "Explanatory Note", "note"),
    ("has_earlier_orders", "earlierOrders", "Note as to Earlier Commencement Orders", "earlier-orders"),
)


def extract_name(element_name: str) -> str:
    """``ContentsPart`` -> ``part``, ``ContentsPblock`` -> ``crossheading``"""
    if element_name.startswith(CONTENTS_PREFIX):
        suffix = element_name[len(CONTENTS_PREFIX):]
        if suffix in NAME_MAP:
            return NAME_MAP[suffix]
        return suffix[:1].lower() + suffix[1:]
    return element_name.lower()


def extract_text(element: ET.Element) -> str:
    """Flatten inline markup (Abbreviation, Emphasis, ...) into plain text"""
    return "".join(element.itertext()).strip()


class TocParser:
    """Parse CLML <Contents> into a structured table of contents"""

    def __init__(self):
        self.metadata_parser = MetadataParser()

    def parse(self, xml: str) -> dict:
        """
        Parse a CLML document containing a <Contents> element.

        Args:
            xml: CLML XML with a <Legislation> root and a <Contents> child

        Returns:
            {"meta": <document metadata>, "contents": <outline>}

        Raises:
            StructureError: if there is no <Legislation> root or no <Contents> in it
        """
        root = parse_xml(xml)
        if local_name(root) != "Legislation":
            raise StructureError("No Legislation element found")

        contents_element = child_named(root, "Contents")
        if contents_element is None:
            raise StructureError("No Contents element found in Legislation")

        meta = self.metadata_parser.parse_element(root)
        nav = self.metadata_parser.navigation_links_for(root)

        contents = self.build_contents(contents_element)
        self.add_synthetic_items(contents, nav, meta.get("extent"))

        logger.debug(f"Outlined {meta.get('id') or 'document'}: {len(contents['body'])} body items")
        return {"meta": meta, "contents": contents}

    def build_contents(self, contents_element: ET.Element) -> dict:
        """Walk the <Contents> children once, in order"""
        contents = {"body": []}
        seen_schedules = False

        for child in contents_element:
            name = local_name(child)
            if name == "ContentsTitle":
                contents["title"] = extract_text(child)
            elif name in SINGLE_ITEM_SLOTS:
                contents[SINGLE_ITEM_SLOTS[name]] = self.process_item(child)
            elif name == "ContentsSchedules":
                seen_schedules = True
                contents["schedules"] = self.process_group_children(child)
            elif name == "ContentsAppendices":
                contents["appendices"] = self.process_group_children(child)
            elif name == "ContentsAttachments":
                # Attachments can sit either side of the schedules
                slot = "attachments" if seen_schedules else "attachmentsBeforeSchedules"
                contents[slot] = self.process_group_children(child)
            elif name.startswith(CONTENTS_PREFIX):
                contents["body"].append(self.process_item(child))

        return contents

    def process_item(self, element: ET.Element) -> dict:
        item = {"name": extract_name(local_name(element))}

        fragment_id = self._fragment_id(element)
        if fragment_id:
            item["fragmentId"] = fragment_id

        extent = parse_restrict_extent(element.get("RestrictExtent"))
        if extent:
            item["extent"] = extent

        children = []
        for child in element:
            name = local_name(child)
            if name == "ContentsNumber":
                item["number"] = extract_text(child)
            elif name == "ContentsTitle":
                item["title"] = extract_text(child)
            elif name.startswith(CONTENTS_PREFIX):
                children.append(self.process_item(child))

        if children:
            item["children"] = children
        return item

    def process_group_children(self, element: ET.Element) -> list[dict]:
        """Items of a group wrapper, without the group's own title (e.g. "SCHEDULES")"""
        return [
            self.process_item(child)
            for child in element
            if local_name(child).startswith(CONTENTS_PREFIX) and local_name(child) != "ContentsTitle"
        ]

    @staticmethod
    def add_synthetic_items(contents: dict, nav: dict, extent: list[str] = None) -> None:
        for flag, slot, title, fragment_id in SYNTHETIC_ITEMS:
            if nav.get(flag) and slot not in contents:
                item = {"name": slot, "title": title, "fragmentId": fragment_id}
                if extent:
                    item["extent"] = list(extent)
                contents[slot] = item

    @staticmethod
    def _fragment_id(element: ET.Element):
        uri = element.get("IdURI") or element.get("DocumentURI")
        if not uri:
            return None
        parsed = parse_legislation_uri(uri)
        return parsed["fragment"] if parsed else None


def outline(xml: str) -> dict:
    """Contents outline of a CLML document, without the metadata"""
    return TocParser().parse(xml)["contents"]
