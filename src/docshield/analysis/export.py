"""JSON export of an analysis and its selection state.

The exported document has the shape::

    {
      "documentId": ..., "fileName": ..., "fileType": ..., "fileSize": ...,
      "analysisStatus": ...,
      "sections": [{...section fields..., "selected": true}, ...],
      "summary": {"totalSections": ..., "sensitiveSections": ...,
                  "selectedSections": ..., "sectionsByType": {...},
                  "patterns": {...}},
      "exportedAt": "<ISO timestamp>"
    }

:func:`load_export` reads it back into sections and selection flags.
"""

from __future__ import annotations

import json
from collections import Counter
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from docshield.extract.models import ContentSection, section_from_dict, section_to_dict

from .models import DocumentAnalysis

__all__ = ["build_summary", "export_payload", "export_json", "load_export"]


def build_summary(
    sections: tuple[ContentSection, ...] | list[ContentSection], selection: Mapping[str, bool]
) -> dict[str, Any]:
    """Counts over ``sections`` used by exports and reports."""

    patterns: Counter[str] = Counter()
    for section in sections:
        patterns.update(section.sensitive_patterns)
    return {
        "totalSections": len(sections),
        "sensitiveSections": sum(1 for s in sections if s.has_sensitive_content),
        "selectedSections": sum(1 for s in sections if selection.get(s.id, True)),
        "sectionsByType": dict(Counter(s.type.value for s in sections)),
        "patterns": dict(patterns),
    }


def export_payload(analysis: DocumentAnalysis, selection: Mapping[str, bool]) -> dict[str, Any]:
    sections = []
    for section in analysis.sections:
        data = section_to_dict(section)
        data["selected"] = selection.get(section.id, True)
        sections.append(data)
    return {
        "documentId": analysis.document_id,
        "fileName": analysis.file_name,
        "fileType": analysis.file_type,
        "fileSize": analysis.file_size,
        "analysisStatus": analysis.analysis_status.value,
        "sections": sections,
        "summary": build_summary(analysis.sections, selection),
        "exportedAt": datetime.now(timezone.utc).isoformat(),
    }


def export_json(
    analysis: DocumentAnalysis, selection: Mapping[str, bool], *, indent: int | None = 2
) -> str:
    return json.dumps(export_payload(analysis, selection), indent=indent, ensure_ascii=False)


def load_export(payload: str) -> tuple[list[ContentSection], dict[str, bool], dict[str, Any]]:
    """Parse an export into ``(sections, selection, summary)``."""

    data = json.loads(payload)
    sections = [section_from_dict(item) for item in data.get("sections", [])]
    selection = {item["id"]: bool(item.get("selected", True)) for item in data.get("sections", [])}
    return sections, selection, dict(data.get("summary", {}))
