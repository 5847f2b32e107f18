"""User selection of sections approved for release.

Every section starts selected.  Selection is independent of classification:
a flagged section may stay selected and a clean one may be deselected.  Bulk
updates are applied atomically by the persistence store; ids that do not
belong to the document are reported back and otherwise ignored.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass

from docshield.extract.models import ContentSection
from docshield.store.base import PersistenceStore
from docshield.utils.errors import DocumentNotFoundError
from docshield.utils.logging import get_logger

__all__ = ["SelectionUpdate", "SelectionStore"]

logger = get_logger(__name__)


@dataclass(slots=True, frozen=True)
class SelectionUpdate:
    """Outcome of a bulk selection change."""

    applied: tuple[str, ...]
    unknown: tuple[str, ...]


class SelectionStore:
    """Read and change the per-section selection flags of a document."""

    def __init__(self, store: PersistenceStore) -> None:
        self.store = store

    def set_selection(self, document_id: str, section_id: str, selected: bool) -> bool:
        """Set one flag; returns ``False`` if the section does not exist."""

        self._require(document_id)
        return self.store.set_selection(document_id, section_id, bool(selected))

    def bulk_set_selection(self, document_id: str, flags: Mapping[str, bool]) -> SelectionUpdate:
        """Apply all ``flags`` in one transaction."""

        self._require(document_id)
        unknown = tuple(self.store.update_selection_bulk(document_id, dict(flags)))
        skipped = set(unknown)
        applied = tuple(sid for sid in flags if sid not in skipped)
        logger.debug("Selection update on %s: %d applied", document_id, len(applied))
        return SelectionUpdate(applied=applied, unknown=unknown)

    def get_selected(self, document_id: str) -> list[ContentSection]:
        self._require(document_id)
        return self.store.get_selected_sections(document_id)

    def get_selection_state(self, document_id: str) -> dict[str, bool]:
        self._require(document_id)
        return self.store.get_selection_state(document_id)

    def select_all(self, document_id: str) -> SelectionUpdate:
        return self._set_many(document_id, lambda section: True)

    def deselect_all(self, document_id: str) -> SelectionUpdate:
        return self._set_many(document_id, lambda section: False)

    def deselect_sensitive(self, document_id: str) -> SelectionUpdate:
        """Deselect flagged sections and leave the others untouched."""

        self._require(document_id)
        flags = {
            s.id: False for s in self.store.get_sections(document_id) if s.has_sensitive_content
        }
        return self.bulk_set_selection(document_id, flags)

    def _set_many(
        self, document_id: str, rule: Callable[[ContentSection], bool]
    ) -> SelectionUpdate:
        self._require(document_id)
        flags = {s.id: rule(s) for s in self.store.get_sections(document_id)}
        return self.bulk_set_selection(document_id, flags)

    def _require(self, document_id: str) -> None:
        if self.store.get_document(document_id) is None:
            raise DocumentNotFoundError(document_id)
