"""Page section extractor.

Walks a loaded page and emits typed sections in a fixed order: text blocks,
images, form fields, links, then annotations.  The document metadata section
is emitted separately, once per document, by :meth:`extract_metadata`.

Every emitted section is classified immediately.  Images are never scanned
and are reported as safe with confidence ``1.0``.

Extraction is unit-tolerant: when one kind of content (or a single item)
cannot be read the failure is logged as an
:class:`~docshield.utils.errors.ExtractionUnitFailure`, the unit is left out,
and extraction carries on with the next unit.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Sequence
from typing import Any, TypeVar

from docshield.detect.base import Category, ClassificationResult
from docshield.detect.classifier import SensitiveContentClassifier
from docshield.io.base import STANDARD_METADATA_KEYS, Document, ItemErrorHandler, Page
from docshield.preprocess.segmenter import segment_blocks
from docshield.utils.errors import ExtractionUnitFailure
from docshield.utils.logging import get_logger
from docshield.utils.textspan import box_size, make_preview

from .models import (
    AnnotationSection,
    ContentSection,
    FormSection,
    ImageSection,
    LinkSection,
    MetadataSection,
    TextSection,
)

__all__ = ["METADATA_LABELS", "SectionExtractor", "describe_failures"]

logger = get_logger(__name__)

T = TypeVar("T")

# Display names for the info dictionary keys, as shown to reviewers.
METADATA_LABELS: dict[str, str] = {
    "title": "Title",
    "author": "Author",
    "subject": "Subject",
    "keywords": "Keywords",
    "creator": "Creator",
    "producer": "Producer",
    "creationDate": "CreationDate",
    "modDate": "ModDate",
}


class SectionExtractor:
    """Turn pages into classified :data:`ContentSection` objects."""

    def __init__(
        self,
        classifier: SensitiveContentClassifier | None = None,
        *,
        preview_length: int = 100,
        enabled_categories: Sequence[Category] | None = None,
    ) -> None:
        self.classifier = classifier if classifier is not None else SensitiveContentClassifier()
        self.preview_length = preview_length
        self.enabled_categories = enabled_categories

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def extract(
        self,
        page: Page,
        page_number: int,
        *,
        document_id: str,
        start_index: int = 0,
        failures: list[ExtractionUnitFailure] | None = None,
    ) -> list[ContentSection]:
        """Return the sections of ``page`` numbered from ``start_index``."""

        sections: list[ContentSection] = []
        steps: tuple[Callable[..., list[ContentSection]], ...] = (
            self._text_sections,
            self._image_sections,
            self._form_sections,
            self._link_sections,
            self._annotation_sections,
        )
        for step in steps:
            sections.extend(
                step(page, page_number, document_id, start_index + len(sections), failures)
            )
        logger.debug("Page %d yielded %d sections", page_number, len(sections))
        return sections

    def extract_metadata(
        self,
        document: Document,
        *,
        document_id: str,
        index: int = 0,
        failures: list[ExtractionUnitFailure] | None = None,
    ) -> MetadataSection | None:
        """Return one section for the document metadata, or ``None`` if empty."""

        entries: dict[str, str] = {}
        for key in STANDARD_METADATA_KEYS:
            try:
                value = document.get_metadata(key)
            except Exception as exc:  # noqa: BLE001 - unit tolerant
                self._record(failures, ExtractionUnitFailure(f"metadata field {key}", None, exc))
                continue
            if value and value.strip():
                entries[METADATA_LABELS[key]] = value
        if not entries:
            return None

        content = json.dumps(entries, indent=2)
        result = self._classify(content)
        return MetadataSection(
            id=f"{document_id}_metadata",
            index=index,
            content=content,
            preview=f"Document Metadata ({len(entries)} fields)",
            length=len(content),
            has_sensitive_content=result.has_sensitive_content,
            sensitive_patterns=result.pattern_names,
            confidence=result.confidence,
            entries=entries,
            metadata={"fieldCount": len(entries)},
        )

    def extract_image_document(
        self,
        page: Page,
        *,
        document_id: str,
        mime_type: str,
        file_size: int,
        failures: list[ExtractionUnitFailure] | None = None,
    ) -> list[ContentSection]:
        """Sections for a raster image input: embedded text, then the image itself."""

        sections: list[ContentSection] = []
        try:
            text = page.extract_text(preserve_whitespace=True)
        except Exception as exc:  # noqa: BLE001 - unit tolerant
            self._record(failures, ExtractionUnitFailure("image text", 0, exc))
            text = ""
        if text.strip():
            result = self._classify(text)
            sections.append(
                TextSection(
                    id=f"{document_id}_ocr_0",
                    index=0,
                    page_number=0,
                    content=text,
                    preview=make_preview(text, self.preview_length),
                    length=len(text),
                    has_sensitive_content=result.has_sensitive_content,
                    sensitive_patterns=result.pattern_names,
                    confidence=result.confidence,
                    metadata={"source": "embedded"},
                )
            )
        sections.append(
            ImageSection(
                id=f"{document_id}_image_0",
                index=len(sections),
                page_number=0,
                content=f"[Image Content - {mime_type}]",
                preview=f"Image ({mime_type})",
                length=file_size,
                confidence=1.0,
                mime_type=mime_type,
                metadata={"size": file_size},
            )
        )
        return sections

    # ------------------------------------------------------------------
    # Per-type extraction
    # ------------------------------------------------------------------

    def _text_sections(
        self,
        page: Page,
        page_number: int,
        document_id: str,
        start: int,
        failures: list[ExtractionUnitFailure] | None,
    ) -> list[ContentSection]:
        text = self._read(
            lambda: page.extract_text(preserve_whitespace=True), "text", page_number, failures
        )
        if not text:
            return []
        sections: list[ContentSection] = []
        for i, block in enumerate(segment_blocks(text)):
            result = self._classify(block)
            sections.append(
                TextSection(
                    id=f"{document_id}_text_{page_number}_{i}",
                    index=start + i,
                    page_number=page_number,
                    content=block,
                    preview=make_preview(block, self.preview_length),
                    length=len(block),
                    has_sensitive_content=result.has_sensitive_content,
                    sensitive_patterns=result.pattern_names,
                    confidence=result.confidence,
                    block_index=i,
                    metadata={"pageNumber": page_number, "blockIndex": i},
                )
            )
        return sections

    def _image_sections(
        self,
        page: Page,
        page_number: int,
        document_id: str,
        start: int,
        failures: list[ExtractionUnitFailure] | None,
    ) -> list[ContentSection]:
        report = self._item_errors("image", page_number, failures)
        images = self._read(lambda: page.extract_images(report), "images", page_number, failures)
        images = images or []
        sections: list[ContentSection] = []
        for i, image in enumerate(images):
            width, height = box_size(image.bounding_box)
            sections.append(
                ImageSection(
                    id=f"{document_id}_image_{page_number}_{i}",
                    index=start + i,
                    page_number=page_number,
                    content=f"[Image {i + 1} on page {page_number + 1}]",
                    preview=f"Image {i + 1} ({width}x{height}px)",
                    length=0,
                    confidence=1.0,
                    bounding_box=image.bounding_box,
                    width=width,
                    height=height,
                    metadata={
                        "imageIndex": i,
                        "pixelWidth": image.width,
                        "pixelHeight": image.height,
                    },
                )
            )
        return sections

    def _form_sections(
        self,
        page: Page,
        page_number: int,
        document_id: str,
        start: int,
        failures: list[ExtractionUnitFailure] | None,
    ) -> list[ContentSection]:
        report = self._item_errors("form field", page_number, failures)
        widgets = self._read(
            lambda: page.extract_form_fields(report), "form fields", page_number, failures
        )
        sections: list[ContentSection] = []
        for i, widget in enumerate(widgets or []):
            content = f"Form Field: {widget.name} ({widget.field_type})"
            result = self._classify(content)
            sections.append(
                FormSection(
                    id=f"{document_id}_form_{page_number}_{i}",
                    index=start + len(sections),
                    page_number=page_number,
                    content=content,
                    preview=f"{widget.field_type}: {widget.name}",
                    length=len(content),
                    has_sensitive_content=result.has_sensitive_content,
                    sensitive_patterns=result.pattern_names,
                    confidence=result.confidence,
                    bounding_box=widget.bounding_box,
                    field_type=widget.field_type,
                    field_name=widget.name,
                    metadata={"formIndex": i},
                )
            )
        return sections

    def _link_sections(
        self,
        page: Page,
        page_number: int,
        document_id: str,
        start: int,
        failures: list[ExtractionUnitFailure] | None,
    ) -> list[ContentSection]:
        links = self._read(page.extract_links, "links", page_number, failures) or []
        sections: list[ContentSection] = []
        for i, link in enumerate(links):
            result = self._classify(link.uri)
            sections.append(
                LinkSection(
                    id=f"{document_id}_link_{page_number}_{i}",
                    index=start + len(sections),
                    page_number=page_number,
                    content=link.uri,
                    preview=f"Link: {make_preview(link.uri, 50)}",
                    length=len(link.uri),
                    has_sensitive_content=result.has_sensitive_content,
                    sensitive_patterns=result.pattern_names,
                    confidence=result.confidence,
                    bounding_box=link.bounding_box,
                    uri=link.uri,
                    metadata={"linkIndex": i},
                )
            )
        return sections

    def _annotation_sections(
        self,
        page: Page,
        page_number: int,
        document_id: str,
        start: int,
        failures: list[ExtractionUnitFailure] | None,
    ) -> list[ContentSection]:
        report = self._item_errors("annotation", page_number, failures)
        annotations = self._read(
            lambda: page.extract_annotations(report), "annotations", page_number, failures
        )
        sections: list[ContentSection] = []
        for i, annotation in enumerate(annotations or []):
            content = annotation.text or f"Annotation: {annotation.annotation_type}"
            result = self._classify(content)
            sections.append(
                AnnotationSection(
                    id=f"{document_id}_annotation_{page_number}_{i}",
                    index=start + len(sections),
                    page_number=page_number,
                    content=content,
                    preview=make_preview(content, 50),
                    length=len(content),
                    has_sensitive_content=result.has_sensitive_content,
                    sensitive_patterns=result.pattern_names,
                    confidence=result.confidence,
                    bounding_box=annotation.bounding_box,
                    annotation_type=annotation.annotation_type,
                    metadata={"annotationIndex": i},
                )
            )
        return sections

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _classify(self, text: str) -> ClassificationResult:
        return self.classifier.classify(text, self.enabled_categories)

    def _read(
        self,
        reader: Callable[[], T],
        unit: str,
        page_number: int,
        failures: list[ExtractionUnitFailure] | None,
    ) -> T | None:
        try:
            return reader()
        except Exception as exc:  # noqa: BLE001 - unit tolerant
            self._record(failures, ExtractionUnitFailure(unit, page_number, exc))
            return None

    def _item_errors(
        self,
        unit: str,
        page_number: int,
        failures: list[ExtractionUnitFailure] | None,
    ) -> ItemErrorHandler:
        def report(position: int, exc: BaseException) -> None:
            self._record(failures, ExtractionUnitFailure(f"{unit} {position}", page_number, exc))

        return report

    @staticmethod
    def _record(
        failures: list[ExtractionUnitFailure] | None, failure: ExtractionUnitFailure
    ) -> None:
        logger.warning("%s", failure)
        if failures is not None:
            failures.append(failure)


def describe_failures(failures: Sequence[ExtractionUnitFailure]) -> list[dict[str, Any]]:
    """Return JSON-ready descriptions of extraction failures."""

    return [
        {"unit": f.unit, "pageNumber": f.page_number, "error": str(f.cause)} for f in failures
    ]
