"""Tests for text and region helpers."""

from __future__ import annotations

from docshield.utils.textspan import box_size, make_preview, merge_spans, normalize_box


def test_merge_spans_unions_overlaps() -> None:
    spans = [(10, 20, "b"), (0, 5, "a"), (15, 30, "c"), (30, 32, "d")]
    assert merge_spans(spans) == [(0, 5, "a"), (10, 30, "b"), (30, 32, "d")]


def test_merge_spans_keeps_earliest_listed_tag() -> None:
    assert merge_spans([(4, 9, "late"), (2, 6, "early")]) == [(2, 9, "late")]
    assert merge_spans([(2, 6, "early"), (4, 9, "late")]) == [(2, 9, "early")]


def test_merge_spans_drops_empty_spans() -> None:
    assert merge_spans([(3, 3, "x"), (1, 2, "y")]) == [(1, 2, "y")]


def test_preview_and_boxes() -> None:
    assert make_preview("short") == "short"
    assert make_preview("abcdef  ghij", 8) == "abcdef..."
    assert normalize_box((10, 20, 0, 5)) == (0.0, 5.0, 10.0, 20.0)
    assert box_size((0.0, 0.0, 120.4, 79.6)) == (120, 80)
