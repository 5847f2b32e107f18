"""Paragraph segmentation for extracted page text.

:func:`segment_blocks` splits page text into the blocks that become text
sections.  Blank lines separate paragraphs.  When the text has no blank line
boundary at all (a single paragraph, or a layout that emits one line per
block) each non-blank line becomes its own block instead.
"""

from __future__ import annotations

import re
from typing import List

__all__ = ["segment_blocks"]

_BLANK_LINE_RE = re.compile(r"\n\s*\n")


def segment_blocks(text: str) -> List[str]:
    """Split ``text`` into stripped, non-empty blocks."""

    if not text or not text.strip():
        return []

    paragraphs = [p.strip() for p in _BLANK_LINE_RE.split(text) if p.strip()]
    if len(paragraphs) > 1:
        return paragraphs
    return [line.strip() for line in text.splitlines() if line.strip()]
