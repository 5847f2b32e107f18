"""Tests for the DocumentGuard facade."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterator

import pytest

from docshield.config import load_config
from docshield.replace import RedactionOptions
from docshield.service import DocumentGuard
from docshield.store import SQLiteStore


@pytest.fixture
def guard() -> Iterator[DocumentGuard]:
    with DocumentGuard(store=SQLiteStore()) as g:
        yield g


def test_review_workflow(guard: DocumentGuard, make_pdf: Callable[..., bytes]) -> None:
    data = make_pdf(["Public overview\n", "Reach jane@example.com"])
    analysis = guard.analyze_document(data, "memo.pdf", "application/pdf")
    sensitive = [s.id for s in analysis.sections if s.has_sensitive_content]
    assert sensitive

    update = guard.update_section_selections(
        analysis.document_id, {sid: False for sid in sensitive} | {"unknown": False}
    )
    assert update.unknown == ("unknown",)
    selected = guard.get_selected_content(analysis.document_id)
    assert selected
    assert all(not s.has_sensitive_content for s in selected)
    assert guard.get_analysis(analysis.document_id) is not None
    assert analysis.document_id in guard.export_annotations_as_json(analysis.document_id)


def test_default_options_apply(guard: DocumentGuard) -> None:
    result = guard.redact_text("Contact me at jane@example.com or 415-555-0100")
    assert result.redaction_summary.pii_redactions == 2


def test_call_options_override_defaults(guard: DocumentGuard) -> None:
    result = guard.redact_text("jane@example.com", RedactionOptions(enable_pii=False))
    assert result.redacted_areas == ()


def test_from_config_honours_settings(tmp_path: Path) -> None:
    cfg_file = tmp_path / "cfg.yml"
    cfg_file.write_text(
        "redaction:\n  enable_financial: false\n"
        "analysis:\n  preview_length: 10\n"
        "patterns:\n  disabled: [Email Address]\n",
        encoding="utf-8",
    )
    cfg = load_config(cfg_file, env={})
    with DocumentGuard.from_config(cfg, store=SQLiteStore()) as guard:
        assert "Email Address" not in guard.classifier.catalog
        assert guard.extractor.preview_length == 10
        assert guard.options.enable_financial is False
        assert guard.redact_text("jane@example.com").redacted_areas == ()


def test_guards_are_independent() -> None:
    a = DocumentGuard(store=SQLiteStore())
    b = DocumentGuard(store=SQLiteStore())
    try:
        a.classifier.catalog.unregister("SSN")
        assert "SSN" in b.classifier.catalog
    finally:
        a.close()
        b.close()
