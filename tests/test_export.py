"""Tests for JSON export and re-import."""

from __future__ import annotations

import json

from docshield.analysis import AnalysisStatus, DocumentAnalysis, export_json, load_export
from docshield.extract.models import ImageSection, MetadataSection, TextSection


def _analysis() -> DocumentAnalysis:
    sections = (
        MetadataSection(
            id="d_metadata",
            index=0,
            content='{"Author": "jane@example.com"}',
            preview="Document Metadata (1 fields)",
            length=30,
            has_sensitive_content=True,
            sensitive_patterns=("Email Address",),
            confidence=0.9,
            entries={"Author": "jane@example.com"},
        ),
        TextSection(
            id="d_text_0_0",
            index=1,
            page_number=0,
            content="Hello",
            preview="Hello",
            length=5,
        ),
        ImageSection(
            id="d_image_0_0",
            index=2,
            page_number=0,
            content="[Image 1 on page 1]",
            preview="Image 1 (10x10px)",
            length=0,
            confidence=1.0,
            bounding_box=(0.0, 0.0, 10.0, 10.0),
            width=10,
            height=10,
        ),
    )
    return DocumentAnalysis(
        document_id="d",
        file_name="a.pdf",
        file_type="application/pdf",
        file_size=100,
        sections=sections,
        analysis_status=AnalysisStatus.COMPLETED,
    )


def test_export_contains_selection_and_summary() -> None:
    payload = json.loads(export_json(_analysis(), {"d_text_0_0": False}))
    assert payload["analysisStatus"] == "completed"
    assert [s["selected"] for s in payload["sections"]] == [True, False, True]
    assert payload["summary"] == {
        "totalSections": 3,
        "sensitiveSections": 1,
        "selectedSections": 2,
        "sectionsByType": {"metadata": 1, "text": 1, "image": 1},
        "patterns": {"Email Address": 1},
    }
    assert payload["exportedAt"]


def test_export_reloads() -> None:
    analysis = _analysis()
    sections, selection, summary = load_export(export_json(analysis, {"d_image_0_0": False}))
    assert tuple(sections) == analysis.sections
    assert selection == {"d_metadata": True, "d_text_0_0": True, "d_image_0_0": False}
    assert summary["selectedSections"] == 2
