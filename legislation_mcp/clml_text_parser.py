"""
CLML to plain text converter

Renders Crown Legislation Markup Language documents (or fragments of them)
as readable text: markdown-style headings for Parts, Chapters, cross-headings
and Schedules, tab indentation for nested provisions, ``- `` list items and
``|``-delimited table rows. Editorial material (metadata, commentaries,
contents) is left out.
"""

import logging
import re
import xml.etree.ElementTree as ET
from functools import partial
from typing import Callable, Optional

from .xml_utils import descendant_named, local_name, parse_xml, text_content

logger = logging.getLogger(__name__)

WHITESPACE_RE = re.compile(r'\s+')
P_WRAPPER_RE = re.compile(r'^P\d+(para|group)$')
P_LEVEL_RE = re.compile(r'^P(\d+)$')

# Elements whose children are rendered in place at the same indent
TRANSPARENT_TAGS = frozenset({
    "P", "Para", "TitleBlock",
    "Legislation", "Primary", "Secondary", "EURetained", "Body",
    "EUBody", "EUPreamble", "IntroductoryText", "EnactingText",
    "ScheduleBody",
    "table", "tbody", "thead", "tfoot", "colgroup",
    "UnorderedList", "OrderedList",
})

# Elements that never contribute text
DROPPED_TAGS = frozenset({
    "Metadata", "Commentaries", "Commentary", "CommentaryRef", "Contents", "col",
})

PRELIMS_DATE_TAGS = ("DateOfEnactment", "MadeDate", "LaidDate", "ComingIntoForce")


def tidy_quotes(text: str) -> str:
    """Remove the space left inside typographic double quotes"""
    return text.replace("“ ", "“").replace(" ”", "”")


class _RenderState:
    """State shared by one top-level render call"""

    __slots__ = ("skip_next_pnumber",)

    def __init__(self):
        # Set once a P1group heading has printed the provision number
        self.skip_next_pnumber = False


class CLMLTextParser:
    """
    Recursive CLML renderer.

    Rules are looked up by local tag name; anything unrecognised is walked
    generically so new markup still yields its text. The parser keeps no
    state between calls and can be shared.
    """

    def __init__(self):
        self._rules: dict[str, Callable[[ET.Element, int, _RenderState], str]] = {
            "Pnumber": self._format_pnumber,
            "Text": self._format_text,
            "BlockAmendment": self._format_block_amendment,
            "Pblock": partial(self._format_pblock, heading_mark="####"),
            "PsubBlock": partial(self._format_pblock, heading_mark="#####"),
            "P1group": self._format_pgroup,
            "Part": partial(self._format_division, heading_mark="##"),
            "Chapter": partial(self._format_division, heading_mark="###"),
            "EUPart": partial(self._format_division, heading_mark="##"),
            "EUTitle": partial(self._format_division, heading_mark="##"),
            "EUChapter": partial(self._format_division, heading_mark="###"),
            "EUSection": partial(self._format_division, heading_mark="####"),
            "EUSubsection": partial(self._format_division, heading_mark="####"),
            "Schedules": self._format_schedules,
            "Schedule": self._format_schedule,
            "Tabular": self._format_table,
            "tr": self._format_table_row,
            "th": self._format_cell,
            "td": self._format_cell,
            "ListItem": self._format_list_item,
            "PrimaryPrelims": self._format_prelims,
            "SecondaryPrelims": self._format_prelims,
            "EUPrelims": self._format_eu_prelims,
            "Division": self._format_numbered_paragraph,
            "Footnote": self._format_footnote,
            "FootnoteRef": self._format_cell,
            "Figure": self._format_figure,
            "Image": self._format_figure,
        }

    def parse(self, xml: str) -> str:
        """
        Render a CLML document or fragment as plain text.

        Args:
            xml: CLML XML string; a whole <Legislation> document or any
                 sub-tree of one (a Part, a single section, ...)

        Returns:
            The rendered text, trimmed

        Raises:
            xml.etree.ElementTree.ParseError: if the input is not well-formed XML
        """
        root = parse_xml(xml)
        return self.render(root)

    def render(self, root: ET.Element) -> str:
        """Render an already parsed element"""
        state = _RenderState()
        logger.debug(f"Rendering <{local_name(root)}> as text")
        return tidy_quotes(self._parse_element(root, 0, state)).strip()

    # --- Dispatch ---

    def _parse_element(self, element: ET.Element, indent: int, state: _RenderState,
                       recurse_only: bool = False) -> str:
        if not recurse_only:
            rendered = self._parse_known_tag(element, indent, state)
            if rendered is not None:
                return rendered
        return self._render_children(element, indent, state)

    def _parse_known_tag(self, element: ET.Element, indent: int, state: _RenderState) -> Optional[str]:
        name = local_name(element)

        rule = self._rules.get(name)
        if rule is not None:
            return rule(element, indent, state)
        if name in TRANSPARENT_TAGS:
            return self._render_children(element, indent, state)
        if name in DROPPED_TAGS:
            return ""

        if P_WRAPPER_RE.match(name):
            return self._render_children(element, indent, state)

        # P1/P2 sit at the margin, P3 one tab in, P4 two, ...
        level = P_LEVEL_RE.match(name)
        if level:
            return self._render_children(element, max(0, int(level.group(1)) - 2), state)

        return None

    def _render_children(self, element: ET.Element, indent: int, state: _RenderState) -> str:
        parts = []
        head = (element.text or "").strip()
        if head:
            parts.append(head + " ")

        for child in element:
            rendered = self._parse_known_tag(child, indent, state)
            if rendered is None:
                rendered = self._render_unknown(child, indent, state)
            parts.append(rendered)

            tail = (child.tail or "").strip()
            if tail:
                parts.append(tail + " ")

        return tidy_quotes("".join(parts))

    def _render_unknown(self, element: ET.Element, indent: int, state: _RenderState) -> str:
        if len(element):
            return self._render_children(element, indent, state)
        return text_content(element) + " "

    # --- Formatters ---

    def _format_pnumber(self, element, indent, state):
        if state.skip_next_pnumber:
            state.skip_next_pnumber = False
            return ""
        return "\n" + "\t" * indent + text_content(element) + ") "

    def _format_text(self, element, indent, state):
        return WHITESPACE_RE.sub(" ", "".join(element.itertext())).strip() + " "

    def _format_block_amendment(self, element, indent, state):
        content = self._parse_element(element, indent + 1, state, recurse_only=True)
        return content.replace("\n", "\n" + "\t" * (indent + 1))

    def _format_pblock(self, element, indent, state, heading_mark):
        heading = None
        body = []
        for child in element:
            if local_name(child) == "Title":
                heading = f"\n\n{heading_mark} {text_content(child)}\n"
            else:
                body.append(self._parse_element(child, indent, state))
        return (heading or "") + "".join(body)

    def _format_pgroup(self, element, indent, state):
        heading = None
        body = []
        for child in element:
            if local_name(child) != "Title":
                body.append(self._parse_element(child, indent, state))
                continue

            pnumber = descendant_named(element, "Pnumber")
            if pnumber is None:
                # No number to hang the heading on; the title is dropped
                continue
            number = text_content(pnumber)
            title = text_content(child)
            if "Article" in number:
                heading = f"\n\n{number}) **{title}**\n"
            else:
                heading = f"\n\nSection {number}) **{title}**\n"
            state.skip_next_pnumber = True

        return (heading or "") + "".join(body)

    def _format_division(self, element, indent, state, heading_mark):
        heading = ""
        body = []
        for child in element:
            if local_name(child) in ("Number", "Title"):
                heading += f"{heading_mark} {text_content(child)}\n"
            else:
                body.append(self._parse_element(child, indent, state))

        result = "".join(body)
        if heading:
            result = heading + "\n" + result
        return result

    def _format_schedules(self, element, indent, state):
        heading = ""
        body = []
        for child in element:
            if local_name(child) == "Title":
                heading += f"\n\n## {text_content(child)}\n"
            else:
                body.append(self._parse_element(child, indent, state))
        return heading + "".join(body)

    def _format_schedule(self, element, indent, state):
        heading = ""
        body = []
        for child in element:
            name = local_name(child)
            if name == "Number":
                heading += f"## {text_content(child)}\n"
            elif name == "TitleBlock":
                for title in child:
                    if local_name(title) in ("Title", "Subtitle"):
                        heading += f"## {text_content(title)}\n"
            elif name == "Reference":
                heading += f"{text_content(child)}\n"
            else:
                body.append(self._parse_element(child, indent, state))

        result = "".join(body)
        if heading:
            result = "\n" + heading + "\n" + result
        return result

    def _format_table(self, element, indent, state):
        return "\n" + self._parse_element(element, 0, state, recurse_only=True).strip() + "\n"

    def _format_table_row(self, element, indent, state):
        cells = [text_content(cell) for cell in element if local_name(cell) in ("th", "td")]
        return "\n| " + " | ".join(cells) + " |"

    def _format_cell(self, element, indent, state):
        return text_content(element)

    def _format_list_item(self, element, indent, state):
        content = self._parse_element(element, indent + 1, state, recurse_only=True)
        return "\n" + "\t" * (indent + 1) + "- " + content.strip()

    def _format_prelims(self, element, indent, state):
        result = ""
        for child in element:
            name = local_name(child)
            if name == "Title":
                result += f"# {text_content(child)}\n\n"
            elif name in ("Number", "LongTitle"):
                result += f"{text_content(child)}\n\n"
            elif name in PRELIMS_DATE_TAGS:
                result += self._format_prelims_date(child) + "\n\n"
            elif name in ("PrimaryPreamble", "SecondaryPreamble"):
                for preamble_child in child:
                    result += self._parse_element(preamble_child, 0, state).strip() + "\n\n"
            # SubjectInformation and anything else in the prelims is skipped
        return result

    def _format_prelims_date(self, element) -> str:
        """
        Join label and date children with spaces (``Made 1st January 2024``).

        Each ComingIntoForceClauses child becomes its own line after the
        top-level label, for staggered commencement.
        """
        top_parts = []
        clauses = []
        for child in element:
            if local_name(child) == "ComingIntoForceClauses":
                clause_parts = [t for t in (text_content(c) for c in child) if t]
                if clause_parts:
                    clauses.append(" ".join(clause_parts))
            else:
                text = text_content(child)
                if text:
                    top_parts.append(text)

        top = " ".join(top_parts)
        if not clauses:
            return top
        return "\n".join(line for line in [top, *clauses] if line)

    def _format_eu_prelims(self, element, indent, state):
        result = ""
        for child in element:
            name = local_name(child)
            if name == "MultilineTitle":
                lines = []
                for line in child:
                    text = WHITESPACE_RE.sub(" ", "".join(line.itertext())).strip()
                    if text:
                        lines.append(text)
                result += "# " + "\n".join(lines) + "\n\n"
            elif name == "EUPreamble":
                result += self._parse_element(child, indent, state, recurse_only=True)
            elif name == "CommentaryRef":
                continue
            else:
                result += self._parse_element(child, indent, state)
        return result

    def _format_numbered_paragraph(self, element, indent, state):
        number = ""
        content = ""
        for child in element:
            if local_name(child) == "Number":
                number = text_content(child)
            else:
                content += self._parse_element(child, indent, state)
        if number:
            return f"\n{number} {content.strip()}\n"
        return content

    def _format_footnote(self, element, indent, state):
        return "\n" + " ".join(text_content(child) for child in element)

    def _format_figure(self, element, indent, state):
        return "\n[Figure]\n"


def render_clml_text(xml: str) -> str:
    """Render CLML XML as plain text with a fresh parser"""
    return CLMLTextParser().parse(xml)
