"""Analysis result model."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from docshield.extract.models import ContentSection, section_to_dict
from docshield.store.base import AnalysisStatus, DocumentRecord

__all__ = ["AnalysisStatus", "DocumentAnalysis"]


@dataclass(slots=True, frozen=True)
class DocumentAnalysis:
    """Sections and aggregate counts for one analysed document.

    ``total_sections`` and ``sensitive_sections`` are derived from
    ``sections`` so they can never disagree with it.
    """

    document_id: str
    file_name: str
    file_type: str
    file_size: int
    sections: tuple[ContentSection, ...] = ()
    analysis_status: AnalysisStatus = AnalysisStatus.PENDING
    metadata: dict[str, Any] = field(default_factory=dict)
    failure_reason: str | None = None

    @classmethod
    def from_record(
        cls, record: DocumentRecord, sections: tuple[ContentSection, ...] | list[ContentSection]
    ) -> "DocumentAnalysis":
        return cls(
            document_id=record.document_id,
            file_name=record.file_name,
            file_type=record.file_type,
            file_size=record.file_size,
            sections=tuple(sections),
            analysis_status=record.status,
            metadata=dict(record.metadata),
            failure_reason=record.failure_reason,
        )

    @property
    def total_sections(self) -> int:
        return len(self.sections)

    @property
    def sensitive_sections(self) -> int:
        return sum(1 for s in self.sections if s.has_sensitive_content)

    @property
    def sections_by_type(self) -> dict[str, int]:
        return dict(Counter(s.type.value for s in self.sections))

    def to_dict(self) -> dict[str, Any]:
        return {
            "documentId": self.document_id,
            "fileName": self.file_name,
            "fileType": self.file_type,
            "fileSize": self.file_size,
            "analysisStatus": self.analysis_status.value,
            "totalSections": self.total_sections,
            "sensitiveSections": self.sensitive_sections,
            "sections": [section_to_dict(s) for s in self.sections],
            "metadata": dict(self.metadata),
            "failureReason": self.failure_reason,
        }
