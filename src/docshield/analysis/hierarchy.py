"""Infer a heading hierarchy over the text sections of a page.

Levels come from textual heading markers only:

* Markdown headings (``## Terms``) take the number of ``#`` as level.
* Numbered headings (``2.``, ``2.3 Scope``) take the number of components.
* Roman numeral headings (``IV. Payment Terms``) and short all-caps lines
  without digits are level 1.

List items and paragraphs sit one level below the nearest preceding heading,
or at level 1 when no heading precedes them.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import List, Optional

from docshield.extract.models import ContentSection, SectionType

__all__ = ["HierarchyNode", "heading_level", "build_text_hierarchy"]

_MARKDOWN_RE = re.compile(r"^(#{1,6})\s+\S")
_NUMBERED_RE = re.compile(r"^(\d+(?:\.\d+)*)\.?\s+[A-Z]")
_ROMAN_RE = re.compile(r"^[IVXLCDM]+\.\s+(?:[A-Z][a-z]+\s+){0,7}[A-Z][a-z]+:?$")
_LIST_RE = re.compile(r"^(?:[-*•]|\d+[.)])\s+")

# longer lines are treated as body text even when numbered
_MAX_HEADING_CHARS = 80


@dataclass(slots=True, frozen=True)
class HierarchyNode:
    """A text section placed in the page outline."""

    section: ContentSection
    level: int
    kind: str
    parent_id: Optional[str] = None

    def to_dict(self) -> dict[str, object]:
        return {
            "sectionId": self.section.id,
            "level": self.level,
            "kind": self.kind,
            "parentId": self.parent_id,
            "preview": self.section.preview,
        }


def heading_level(text: str) -> Optional[int]:
    """Return the heading level of ``text`` or ``None`` for body text."""

    line = text.strip()
    if not line or "\n" in line or len(line) > _MAX_HEADING_CHARS:
        return None
    m = _MARKDOWN_RE.match(line)
    if m:
        return len(m.group(1))
    m = _NUMBERED_RE.match(line)
    if m and not line.endswith("."):
        return len(m.group(1).split("."))
    if _ROMAN_RE.match(line):
        return 1
    if _is_caps_heading(line):
        return 1
    return None


def _is_caps_heading(line: str) -> bool:
    # digits mark identifiers such as "SSN 123-45-6789", not titles
    tokens = line.split()
    if not 1 <= len(tokens) <= 6 or line.upper() != line:
        return False
    if any(c.isdigit() for c in line):
        return False
    return any(sum(c.isalpha() for c in t) >= 2 for t in tokens)


def build_text_hierarchy(sections: Iterable[ContentSection]) -> List[HierarchyNode]:
    """Return nodes for the text sections of ``sections`` in document order."""

    nodes: List[HierarchyNode] = []
    # open headings, outermost first, as (level, section id)
    stack: List[tuple[int, str]] = []
    for section in sections:
        if section.type is not SectionType.TEXT:
            continue
        level = heading_level(section.content)
        if level is not None:
            while stack and stack[-1][0] >= level:
                stack.pop()
            parent = stack[-1][1] if stack else None
            nodes.append(HierarchyNode(section, level, "heading", parent))
            stack.append((level, section.id))
            continue
        kind = "list_item" if _LIST_RE.match(section.content.lstrip()) else "paragraph"
        if stack:
            level, parent = stack[-1][0] + 1, stack[-1][1]
        else:
            level, parent = 1, None
        nodes.append(HierarchyNode(section, level, kind, parent))
    return nodes
