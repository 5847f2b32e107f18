"""Persistence capability.

Stores document records, their sections and each section's selection flag.
Implementations must write a document's sections and every bulk selection
update atomically, so that no reader observes a partially written batch.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from docshield.extract.models import ContentSection

__all__ = [
    "AnalysisStatus",
    "TERMINAL_STATUSES",
    "DocumentRecord",
    "PersistenceStore",
]


class AnalysisStatus(Enum):
    """Lifecycle of a document analysis."""

    PENDING = "pending"
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES: frozenset[AnalysisStatus] = frozenset(
    {AnalysisStatus.COMPLETED, AnalysisStatus.FAILED}
)


@dataclass(slots=True, frozen=True)
class DocumentRecord:
    """A persisted document row."""

    document_id: str
    file_name: str
    file_type: str
    file_size: int
    status: AnalysisStatus = AnalysisStatus.PENDING
    total_sections: int = 0
    sensitive_sections: int = 0
    created_at: str = ""
    updated_at: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)
    failure_reason: str | None = None


@runtime_checkable
class PersistenceStore(Protocol):
    """Operations the orchestrator and selection store rely on."""

    def create_document(self, record: DocumentRecord) -> None:
        ...

    def update_document_status(
        self,
        document_id: str,
        status: AnalysisStatus,
        *,
        total_sections: int | None = None,
        sensitive_sections: int | None = None,
        metadata: Mapping[str, Any] | None = None,
        failure_reason: str | None = None,
    ) -> None:
        ...

    def get_document(self, document_id: str) -> DocumentRecord | None:
        ...

    def create_section(
        self, document_id: str, section: ContentSection, *, selected: bool = True
    ) -> None:
        ...

    def create_sections(
        self, document_id: str, sections: Iterable[ContentSection], *, selected: bool = True
    ) -> None:
        """Write all ``sections`` in one transaction."""

        ...

    def get_sections(
        self, document_id: str, page_number: int | None = None
    ) -> list[ContentSection]:
        ...

    def set_selection(self, document_id: str, section_id: str, selected: bool) -> bool:
        ...

    def update_selection_bulk(
        self, document_id: str, flags: Mapping[str, bool]
    ) -> Sequence[str]:
        """Apply ``flags`` atomically and return the ids that did not exist."""

        ...

    def get_selected_sections(self, document_id: str) -> list[ContentSection]:
        ...

    def get_selection_state(self, document_id: str) -> dict[str, bool]:
        ...

    def close(self) -> None:
        ...
