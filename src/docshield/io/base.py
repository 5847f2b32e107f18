"""Document parsing capability.

These protocols describe the slice of a document library that analysis and
redaction rely on.  The shipped backend wraps PyMuPDF
(:mod:`docshield.io.pymupdf_reader`); tests and alternative parsers only need
to provide objects with the same shape.

Page numbers are zero-based.  Bounding boxes follow
:data:`docshield.utils.textspan.BoundingBox`.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from docshield.utils.textspan import BoundingBox

__all__ = [
    "STANDARD_METADATA_KEYS",
    "ImageRegion",
    "FormField",
    "Link",
    "Annotation",
    "ItemErrorHandler",
    "Page",
    "Document",
]

# Standard info dictionary fields, in the order they are reported and scrubbed.
STANDARD_METADATA_KEYS: tuple[str, ...] = (
    "title",
    "author",
    "subject",
    "keywords",
    "creator",
    "producer",
    "creationDate",
    "modDate",
)


# Called with the position of an item that could not be read and the error.
ItemErrorHandler = Callable[[int, BaseException], None]


@dataclass(slots=True, frozen=True)
class ImageRegion:
    """An image drawn on a page."""

    bounding_box: BoundingBox
    width: int = 0
    height: int = 0
    xref: int = 0


@dataclass(slots=True, frozen=True)
class FormField:
    """An interactive form widget."""

    field_type: str
    name: str
    value: str = ""
    bounding_box: BoundingBox | None = None


@dataclass(slots=True, frozen=True)
class Link:
    """A hyperlink annotation pointing at a URI."""

    uri: str
    bounding_box: BoundingBox | None = None


@dataclass(slots=True, frozen=True)
class Annotation:
    """A free-form annotation such as a sticky note or highlight."""

    annotation_type: str
    text: str = ""
    bounding_box: BoundingBox | None = None


@runtime_checkable
class Page(Protocol):
    """A single loaded page."""

    def extract_text(self, preserve_whitespace: bool = True) -> str:
        ...

    def extract_images(self, on_error: ItemErrorHandler | None = None) -> Sequence[ImageRegion]:
        """Return the page images.

        When ``on_error`` is given, an image that cannot be read is reported to
        it and skipped; otherwise the error propagates.  The same applies to
        form fields and annotations.
        """

        ...

    def extract_form_fields(
        self, on_error: ItemErrorHandler | None = None
    ) -> Sequence[FormField]:
        ...

    def extract_links(self) -> Sequence[Link]:
        ...

    def extract_annotations(
        self, on_error: ItemErrorHandler | None = None
    ) -> Sequence[Annotation]:
        ...

    def locate_text(self, needle: str) -> Sequence[BoundingBox]:
        """Return the regions where ``needle`` is drawn on the page."""

        ...

    def create_redaction_annotation(self, bounding_box: BoundingBox) -> None:
        ...

    def apply_redactions(self) -> None:
        """Irreversibly remove content under this page's redaction annotations."""

        ...


@runtime_checkable
class Document(Protocol):
    """An opened document."""

    mime_type: str

    @property
    def is_pdf(self) -> bool:
        ...

    def page_count(self) -> int:
        ...

    def load_page(self, index: int) -> Page:
        ...

    def get_metadata(self, key: str) -> str:
        ...

    def set_metadata(self, key: str, value: str) -> None:
        ...

    def delete_metadata_object(self) -> None:
        """Remove the embedded XML metadata stream, if any."""

        ...

    def to_bytes(self) -> bytes:
        ...

    def close(self) -> None:
        ...
