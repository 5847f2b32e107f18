"""End-to-end document analysis.

Purpose:
    Turn an uploaded buffer into persisted, classified sections and keep the
    document record's status truthful while doing so.

Key responsibilities:
    - Create the document record and drive it through
      ``pending -> analyzing -> completed | failed``.
    - Extract the metadata section once, then the sections of every page in
      order (or the embedded text and image section of a raster image).
    - Persist all sections in one batch, selected by default.
    - Answer queries: analysis, sections, text hierarchy, JSON export and a
      per-document report.

Notes/Edge cases:
    - Any exception raised after the record exists moves it to ``failed``
      before propagating, so ``analyzing`` is never left behind.
    - A page that cannot be loaded is logged and skipped like any other
      extraction unit.
"""

from __future__ import annotations

import uuid
from collections import Counter
from datetime import datetime, timezone
from typing import Any

from docshield.extract.extractor import SectionExtractor, describe_failures
from docshield.extract.models import ContentSection
from docshield.io import is_supported, open_document
from docshield.io.base import Document
from docshield.store.base import AnalysisStatus, DocumentRecord, PersistenceStore
from docshield.utils.errors import (
    DocShieldError,
    DocumentNotFoundError,
    ExtractionUnitFailure,
    UnsupportedFormatError,
)
from docshield.utils.logging import get_logger

from .export import build_summary, export_json
from .hierarchy import HierarchyNode, build_text_hierarchy
from .models import DocumentAnalysis

__all__ = ["new_document_id", "AnalysisOrchestrator"]

logger = get_logger(__name__)


def new_document_id() -> str:
    return f"doc_{uuid.uuid4().hex}"


class AnalysisOrchestrator:
    """Run analyses and answer queries about analysed documents."""

    def __init__(self, extractor: SectionExtractor, store: PersistenceStore) -> None:
        self.extractor = extractor
        self.store = store

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def analyze(self, buffer: bytes, file_name: str, file_type: str) -> DocumentAnalysis:
        """Analyse ``buffer`` and return the completed analysis.

        Raises
        ------
        UnsupportedFormatError
            If no parser handles ``file_type``.
        EncryptedDocumentError
            If the document requires a password.
        DocShieldError
            Any other fatal failure.  In every case the document record is
            left in the ``failed`` state.
        """

        document_id = new_document_id()
        self.store.create_document(
            DocumentRecord(
                document_id=document_id,
                file_name=file_name,
                file_type=file_type,
                file_size=len(buffer),
            )
        )
        self.store.update_document_status(document_id, AnalysisStatus.ANALYZING)
        logger.info(
            "Analysing %s (%s, %d bytes) as %s", file_name, file_type, len(buffer), document_id
        )

        try:
            if not is_supported(file_type):
                raise UnsupportedFormatError(f"Unsupported file type: '{file_type}'")
            failures: list[ExtractionUnitFailure] = []
            document = open_document(buffer, file_type)
            try:
                sections, page_count = self._extract(document, document_id, len(buffer), failures)
            finally:
                document.close()

            self.store.create_sections(document_id, sections, selected=True)
            analysis = DocumentAnalysis(
                document_id=document_id,
                file_name=file_name,
                file_type=file_type,
                file_size=len(buffer),
                sections=tuple(sections),
                analysis_status=AnalysisStatus.COMPLETED,
            )
            metadata = {
                "analyzedAt": datetime.now(timezone.utc).isoformat(),
                "pageCount": page_count,
                "sectionsByType": analysis.sections_by_type,
                "extractionFailures": describe_failures(failures),
            }
            self.store.update_document_status(
                document_id,
                AnalysisStatus.COMPLETED,
                total_sections=analysis.total_sections,
                sensitive_sections=analysis.sensitive_sections,
                metadata=metadata,
            )
        except Exception as exc:
            self._mark_failed(document_id, exc)
            raise

        logger.info(
            "Analysis of %s complete: %d sections, %d sensitive",
            document_id,
            analysis.total_sections,
            analysis.sensitive_sections,
        )
        record = self.store.get_document(document_id)
        assert record is not None
        return DocumentAnalysis.from_record(record, analysis.sections)

    def _extract(
        self,
        document: Document,
        document_id: str,
        file_size: int,
        failures: list[ExtractionUnitFailure],
    ) -> tuple[list[ContentSection], int]:
        page_count = document.page_count()
        if not document.is_pdf:
            page = document.load_page(0)
            image_sections = self.extractor.extract_image_document(
                page,
                document_id=document_id,
                mime_type=document.mime_type,
                file_size=file_size,
                failures=failures,
            )
            return image_sections, page_count

        sections: list[ContentSection] = []
        meta = self.extractor.extract_metadata(document, document_id=document_id, failures=failures)
        if meta is not None:
            sections.append(meta)
        for number in range(page_count):
            try:
                page = document.load_page(number)
            except Exception as exc:  # noqa: BLE001 - page skipped
                failure = ExtractionUnitFailure("page", number, exc)
                logger.warning("%s", failure)
                failures.append(failure)
                continue
            sections.extend(
                self.extractor.extract(
                    page,
                    number,
                    document_id=document_id,
                    start_index=len(sections),
                    failures=failures,
                )
            )
            logger.debug("Processed page %d/%d of %s", number + 1, page_count, document_id)
        return sections, page_count

    def _mark_failed(self, document_id: str, exc: BaseException) -> None:
        reason = str(exc) or type(exc).__name__
        level = logger.info if isinstance(exc, DocShieldError) else logger.error
        level("Analysis of %s failed: %s", document_id, reason)
        try:
            self.store.update_document_status(
                document_id, AnalysisStatus.FAILED, failure_reason=reason
            )
        except DocShieldError as store_exc:
            logger.error("Could not mark %s as failed: %s", document_id, store_exc)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_analysis(self, document_id: str) -> DocumentAnalysis | None:
        record = self.store.get_document(document_id)
        if record is None:
            return None
        return DocumentAnalysis.from_record(record, self.store.get_sections(document_id))

    def get_sections(
        self, document_id: str, page_number: int | None = None
    ) -> list[ContentSection]:
        if self.store.get_document(document_id) is None:
            raise DocumentNotFoundError(document_id)
        return self.store.get_sections(document_id, page_number)

    def get_text_hierarchy(self, document_id: str, page_number: int) -> list[HierarchyNode]:
        """Text sections of one page with inferred heading levels."""

        return build_text_hierarchy(self.get_sections(document_id, page_number))

    def export_as_json(self, document_id: str) -> str:
        analysis = self._require(document_id)
        return export_json(analysis, self.store.get_selection_state(document_id))

    def get_report(self, document_id: str) -> dict[str, Any]:
        """Counts by type, page and pattern plus selection totals."""

        analysis = self._require(document_id)
        selection = self.store.get_selection_state(document_id)
        by_page: Counter[str] = Counter(
            "document" if s.page_number is None else str(s.page_number) for s in analysis.sections
        )
        report = build_summary(analysis.sections, selection)
        report.update(
            {
                "documentId": document_id,
                "analysisStatus": analysis.analysis_status.value,
                "sectionsByPage": dict(by_page),
                "sensitiveSectionIds": [
                    s.id for s in analysis.sections if s.has_sensitive_content
                ],
                "failureReason": analysis.failure_reason,
            }
        )
        return report

    def _require(self, document_id: str) -> DocumentAnalysis:
        analysis = self.get_analysis(document_id)
        if analysis is None:
            raise DocumentNotFoundError(document_id)
        return analysis
