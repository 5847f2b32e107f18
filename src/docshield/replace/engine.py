"""Redaction engine.

Purpose:
    Replace sensitive matches with category-tagged placeholders in text and,
    for PDFs, black out the matching regions and scrub document metadata.

Key responsibilities:
    - Classify text with only the categories enabled in
      :class:`~docshield.replace.models.RedactionOptions`.
    - Record one :class:`~docshield.replace.models.RedactedArea` per match and
      substitute every occurrence of each match in a working copy.
    - Drive a two-phase :class:`~docshield.replace.plan.RedactionPlan` so all
      page annotations exist before any page is committed.
    - Clear the standard metadata fields and the XML metadata stream,
      restoring the previous values if clearing fails part way.

Notes/Edge cases:
    - Placeholders never match a built-in pattern, so redacting redacted text
      produces no new areas.
    - Raster images are not modified; only text embedded in them is redacted.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from dataclasses import replace

from docshield.detect.classifier import SensitiveContentClassifier
from docshield.io import open_document
from docshield.io.base import STANDARD_METADATA_KEYS, Document, Page
from docshield.utils.logging import get_logger
from docshield.utils.textspan import BoundingBox, merge_spans

from .models import AreaType, RedactedArea, RedactionOptions, RedactionResult, placeholder_for
from .plan import RedactionPlan

__all__ = ["RedactionEngine", "apply_areas"]

logger = get_logger(__name__)


def _area_id() -> str:
    return f"redaction_{uuid.uuid4().hex[:12]}"


def _occurrences(text: str, needle: str) -> list[tuple[int, int]]:
    found: list[tuple[int, int]] = []
    start = text.find(needle)
    while start != -1:
        found.append((start, start + len(needle)))
        start = text.find(needle, start + 1)
    return found


def apply_areas(text: str, areas: Sequence[RedactedArea]) -> str:
    """Replace every occurrence of each area's original content.

    Occurrences are located in the original text and overlapping ones are
    merged, so a match that overlaps another is removed as a whole.  A merged
    span takes the placeholder of the first area recorded.
    """

    spans = [
        (start, end, area.redacted_content)
        for area in areas
        if area.original_content
        for start, end in _occurrences(text, area.original_content)
    ]
    redacted = text
    for start, end, placeholder in reversed(merge_spans(spans)):
        redacted = redacted[:start] + placeholder + redacted[end:]
    return redacted


class RedactionEngine:
    """Compute and apply redactions for texts and documents."""

    def __init__(self, classifier: SensitiveContentClassifier | None = None) -> None:
        self.classifier = classifier if classifier is not None else SensitiveContentClassifier()

    # ------------------------------------------------------------------
    # Text
    # ------------------------------------------------------------------

    def find_areas(
        self,
        text: str,
        options: RedactionOptions | None = None,
        *,
        page_number: int | None = None,
        area_type: AreaType = AreaType.TEXT,
    ) -> list[RedactedArea]:
        """Return one area per match in ``text`` that passes ``options``."""

        opts = options or RedactionOptions()
        result = self.classifier.classify(
            text, opts.enabled_categories, threshold=opts.confidence_threshold
        )
        return [
            RedactedArea(
                id=_area_id(),
                type=area_type,
                original_content=hit.matched,
                redacted_content=placeholder_for(hit.category),
                confidence=hit.confidence,
                category=hit.category,
                pattern_name=hit.pattern_name,
                page_number=page_number,
            )
            for hit in result.hits
        ]

    def redact_text(
        self,
        text: str,
        options: RedactionOptions | None = None,
        *,
        page_number: int | None = None,
    ) -> RedactionResult:
        """Redact a plain string."""

        areas = self.find_areas(text, options, page_number=page_number)
        redacted = apply_areas(text, areas)
        return RedactionResult(
            original_text=text,
            redacted_text=redacted,
            redacted_areas=tuple(areas),
            page_texts=(redacted,),
        )

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def redact_document(
        self, buffer: bytes, mime_type: str, options: RedactionOptions | None = None
    ) -> RedactionResult:
        """Open ``buffer`` and redact it with :meth:`redact_pages`.

        Raises
        ------
        UnsupportedFormatError, EncryptedDocumentError, DocumentOpenError
            Propagated from :func:`docshield.io.open_document`.
        """

        document = open_document(buffer, mime_type)
        try:
            return self.redact_pages(document, options)
        finally:
            document.close()

    def redact_pages(
        self, document: Document, options: RedactionOptions | None = None
    ) -> RedactionResult:
        """Redact every page of an opened document in place."""

        opts = options or RedactionOptions()
        areas: list[RedactedArea] = []
        originals: list[str] = []
        redacted_pages: list[str] = []
        plan = RedactionPlan(document) if document.is_pdf else None

        for number in range(document.page_count()):
            page = document.load_page(number)
            text = page.extract_text(preserve_whitespace=True)
            page_areas = self._locate(page, self.find_areas(text, opts, page_number=number))
            if plan is not None:
                plan.annotate(number, self._regions(page, page_areas))
            areas.extend(page_areas)
            originals.append(text)
            redacted_pages.append(apply_areas(text, page_areas))
            logger.debug("Page %d: %d redactions", number, len(page_areas))

        if plan is not None:
            plan.seal().commit()

        scrubbed = False
        if opts.enable_metadata and document.is_pdf:
            areas.extend(self._metadata_areas(document, opts))
            scrubbed = self.scrub_metadata(document)

        return RedactionResult(
            original_text="\n".join(originals).strip(),
            redacted_text="\n".join(redacted_pages).strip(),
            redacted_areas=tuple(areas),
            document_bytes=document.to_bytes() if document.is_pdf else None,
            metadata_scrubbed=scrubbed,
            page_texts=tuple(redacted_pages),
        )

    def scrub_metadata(self, document: Document) -> bool:
        """Clear every standard metadata field and the XML metadata stream.

        The previous values are restored if clearing fails; the failure is
        logged and ``False`` returned.
        """

        snapshot = {key: document.get_metadata(key) for key in STANDARD_METADATA_KEYS}
        try:
            for key in STANDARD_METADATA_KEYS:
                document.set_metadata(key, "")
            document.delete_metadata_object()
        except Exception as exc:  # noqa: BLE001 - restored below
            logger.warning("Metadata scrub failed, restoring previous values: %s", exc)
            for key, value in snapshot.items():
                document.set_metadata(key, value)
            return False
        return True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _metadata_areas(self, document: Document, opts: RedactionOptions) -> list[RedactedArea]:
        areas: list[RedactedArea] = []
        for key in STANDARD_METADATA_KEYS:
            value = document.get_metadata(key)
            if value:
                areas.extend(self.find_areas(value, opts, area_type=AreaType.METADATA))
        return areas

    @staticmethod
    def _locate(page: Page, areas: list[RedactedArea]) -> list[RedactedArea]:
        located: list[RedactedArea] = []
        for area in areas:
            boxes = page.locate_text(area.original_content)
            if boxes:
                area = replace(area, bounding_box=boxes[0])
            located.append(area)
        return located

    @staticmethod
    def _regions(page: Page, areas: list[RedactedArea]) -> list[BoundingBox]:
        # every drawn occurrence is covered, not only the first
        regions: list[BoundingBox] = []
        seen: set[str] = set()
        for area in areas:
            if area.bounding_box is None or area.original_content in seen:
                continue
            seen.add(area.original_content)
            regions.extend(page.locate_text(area.original_content))
        return regions
