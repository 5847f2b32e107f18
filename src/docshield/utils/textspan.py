"""Utility functions for working with text and page regions.

Bounding boxes are ``(x1, y1, x2, y2)`` tuples in page coordinates with the
origin at the top-left corner.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, TypeVar

__all__ = ["BoundingBox", "make_preview", "merge_spans", "normalize_box", "box_size"]

BoundingBox = tuple[float, float, float, float]

ELLIPSIS = "..."

T = TypeVar("T")


def make_preview(text: str, max_length: int = 100) -> str:
    """Return ``text`` truncated to ``max_length`` characters plus an ellipsis."""

    if len(text) <= max_length:
        return text
    return text[:max_length].rstrip() + ELLIPSIS


def normalize_box(box: object) -> BoundingBox:
    """Coerce any four-number sequence (or rect-like object) to a ``BoundingBox``."""

    x1, y1, x2, y2 = (float(v) for v in tuple(box))  # type: ignore[arg-type]
    return (min(x1, x2), min(y1, y2), max(x1, x2), max(y1, y2))


def box_size(box: BoundingBox) -> tuple[int, int]:
    """Return the rounded ``(width, height)`` of ``box``."""

    return round(box[2] - box[0]), round(box[3] - box[1])


def merge_spans(spans: Iterable[tuple[int, int, T]]) -> list[tuple[int, int, T]]:
    """Merge overlapping ``(start, end, tag)`` spans into their union.

    The tag of the earliest-listed span in each group is kept.  The result is
    sorted by start offset.
    """

    ordered = sorted(
        ((start, end, rank, tag) for rank, (start, end, tag) in enumerate(spans) if end > start),
        key=lambda s: (s[0], s[2]),
    )
    merged: list[list[Any]] = []
    for start, end, rank, tag in ordered:
        if merged and start < merged[-1][1]:
            last = merged[-1]
            last[1] = max(last[1], end)
            if rank < last[2]:
                last[2], last[3] = rank, tag
        else:
            merged.append([start, end, rank, tag])
    return [(start, end, tag) for start, end, _, tag in merged]
