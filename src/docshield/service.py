"""Caller-facing facade.

:class:`DocumentGuard` wires a pattern catalog, classifier, extractor,
redaction engine, persistence store and selection store together and exposes
the operations a UI or a downstream sender needs.  Every collaborator can be
injected; :meth:`DocumentGuard.from_config` builds the defaults from a
:class:`~docshield.config.ConfigModel`.
"""

from __future__ import annotations

from collections.abc import Mapping

from docshield.analysis.models import DocumentAnalysis
from docshield.analysis.orchestrator import AnalysisOrchestrator
from docshield.config import ConfigModel, load_config
from docshield.detect.classifier import SensitiveContentClassifier
from docshield.detect.patterns import PatternCatalog
from docshield.extract.extractor import SectionExtractor
from docshield.extract.models import ContentSection
from docshield.replace.engine import RedactionEngine
from docshield.replace.models import RedactionOptions, RedactionResult
from docshield.selection import SelectionStore, SelectionUpdate
from docshield.store.base import PersistenceStore
from docshield.store.sqlite_store import SQLiteStore

__all__ = ["DocumentGuard"]


class DocumentGuard:
    """Analyse, review and redact documents before they leave the device."""

    def __init__(
        self,
        *,
        store: PersistenceStore,
        classifier: SensitiveContentClassifier | None = None,
        extractor: SectionExtractor | None = None,
        engine: RedactionEngine | None = None,
        options: RedactionOptions | None = None,
    ) -> None:
        self.classifier = classifier if classifier is not None else SensitiveContentClassifier()
        self.extractor = extractor if extractor is not None else SectionExtractor(self.classifier)
        self.engine = engine if engine is not None else RedactionEngine(self.classifier)
        self.options = options if options is not None else RedactionOptions()
        self.store = store
        self.orchestrator = AnalysisOrchestrator(self.extractor, store)
        self.selection = SelectionStore(store)

    @classmethod
    def from_config(
        cls, cfg: ConfigModel | None = None, *, store: PersistenceStore | None = None
    ) -> "DocumentGuard":
        """Build a guard from ``cfg`` (package defaults when omitted)."""

        cfg = cfg if cfg is not None else load_config()
        catalog = PatternCatalog.from_config(cfg)
        classifier = SensitiveContentClassifier(
            catalog, threshold=cfg.classifier.confidence_threshold
        )
        extractor = SectionExtractor(classifier, preview_length=cfg.analysis.preview_length)
        return cls(
            store=store if store is not None else SQLiteStore(cfg.storage.path),
            classifier=classifier,
            extractor=extractor,
            engine=RedactionEngine(classifier),
            options=RedactionOptions.from_config(cfg),
        )

    def __enter__(self) -> "DocumentGuard":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # analysis ---------------------------------------------------------------

    def analyze_document(self, buffer: bytes, file_name: str, file_type: str) -> DocumentAnalysis:
        return self.orchestrator.analyze(buffer, file_name, file_type)

    def get_analysis(self, document_id: str) -> DocumentAnalysis | None:
        return self.orchestrator.get_analysis(document_id)

    def export_annotations_as_json(self, document_id: str) -> str:
        return self.orchestrator.export_as_json(document_id)

    # selection --------------------------------------------------------------

    def get_selected_content(self, document_id: str) -> list[ContentSection]:
        """Sections the user approved for release, in document order."""

        return self.selection.get_selected(document_id)

    def update_section_selections(
        self, document_id: str, flags: Mapping[str, bool]
    ) -> SelectionUpdate:
        return self.selection.bulk_set_selection(document_id, flags)

    # redaction --------------------------------------------------------------

    def redact_document(
        self, buffer: bytes, mime_type: str, options: RedactionOptions | None = None
    ) -> RedactionResult:
        return self.engine.redact_document(buffer, mime_type, options or self.options)

    def redact_text(self, text: str, options: RedactionOptions | None = None) -> RedactionResult:
        return self.engine.redact_text(text, options or self.options)

    def close(self) -> None:
        self.store.close()
