"""Two-phase redaction plan.

Applying redactions is an irreversible structural edit and can move content
on the page, so every annotation must exist before the first page is
committed.  The plan makes that ordering explicit:

1. :meth:`RedactionPlan.annotate` records the regions of one page.  It only
   stores data and may be repeated; the latest call for a page wins.
2. :meth:`RedactionPlan.seal` checks that every page was recorded and returns
   a :class:`SealedRedactionPlan`.
3. :meth:`SealedRedactionPlan.commit` creates every annotation on every page
   and only then applies the redactions, one page at a time.  A sealed plan
   commits once.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from docshield.io.base import Document
from docshield.utils.errors import RedactionStateError
from docshield.utils.logging import get_logger
from docshield.utils.textspan import BoundingBox

__all__ = ["RedactionPlan", "SealedRedactionPlan"]

logger = get_logger(__name__)


class RedactionPlan:
    """Collects the regions to redact on each page of ``document``."""

    def __init__(self, document: Document) -> None:
        self._document = document
        self._page_count = document.page_count()
        self._regions: dict[int, tuple[BoundingBox, ...]] = {}
        self._sealed = False

    @property
    def page_count(self) -> int:
        return self._page_count

    @property
    def annotated_pages(self) -> frozenset[int]:
        return frozenset(self._regions)

    @property
    def is_complete(self) -> bool:
        return len(self._regions) == self._page_count

    def annotate(self, page_number: int, regions: Iterable[BoundingBox]) -> None:
        """Record the regions to redact on ``page_number`` (may be empty)."""

        if self._sealed:
            raise RedactionStateError("plan is sealed; annotate before sealing")
        if not 0 <= page_number < self._page_count:
            raise RedactionStateError(
                f"page {page_number} outside document of {self._page_count} pages"
            )
        self._regions[page_number] = tuple(regions)

    def seal(self) -> "SealedRedactionPlan":
        """Freeze the plan once every page has been annotated."""

        missing = sorted(set(range(self._page_count)) - set(self._regions))
        if missing:
            raise RedactionStateError(f"pages not annotated: {missing}")
        self._sealed = True
        return SealedRedactionPlan(self._document, dict(self._regions))


class SealedRedactionPlan:
    """A complete plan whose only remaining operation is :meth:`commit`."""

    def __init__(self, document: Document, regions: Mapping[int, tuple[BoundingBox, ...]]) -> None:
        self._document = document
        self._regions = dict(regions)
        self._committed = False

    @property
    def region_count(self) -> int:
        return sum(len(boxes) for boxes in self._regions.values())

    @property
    def committed(self) -> bool:
        return self._committed

    def commit(self) -> int:
        """Create all annotations, then apply redactions page by page.

        Returns the number of annotations created.
        """

        if self._committed:
            raise RedactionStateError("redaction plan already committed")
        self._committed = True

        pages = {number: self._document.load_page(number) for number in sorted(self._regions)}
        created = 0
        for number, page in pages.items():
            for box in self._regions[number]:
                page.create_redaction_annotation(box)
                created += 1
        for number, page in pages.items():
            if self._regions[number]:
                page.apply_redactions()
        logger.debug("Committed %d redaction annotations", created)
        return created
