"""Namespace-agnostic ElementTree helpers shared by the CLML parsers."""

import xml.etree.ElementTree as ET
from typing import Iterator, Optional


def parse_xml(xml: str) -> ET.Element:
    """Parse an XML string, tolerating surrounding whitespace"""
    return ET.fromstring(xml.strip())


def local_name(element: ET.Element) -> str:
    """Tag name with any ``{namespace}`` prefix removed"""
    tag = element.tag
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def text_content(element: Optional[ET.Element]) -> str:
    """All descendant text, trimmed"""
    if element is None:
        return ""
    return "".join(element.itertext()).strip()


def children_named(element: ET.Element, name: str) -> Iterator[ET.Element]:
    for child in element:
        if local_name(child) == name:
            yield child


def child_named(element: Optional[ET.Element], name: str) -> Optional[ET.Element]:
    """First direct child with the given local name"""
    if element is None:
        return None
    return next(children_named(element, name), None)


def descendant_named(element: Optional[ET.Element], name: str) -> Optional[ET.Element]:
    """First descendant (excluding the element itself) with the given local name"""
    if element is None:
        return None
    for node in element.iter():
        if node is not element and local_name(node) == name:
            return node
    return None


def attr_of(element: Optional[ET.Element], attribute: str) -> Optional[str]:
    if element is None:
        return None
    return element.get(attribute)
