"""PyMuPDF backed documents.

Purpose:
    Open PDF and raster image buffers and expose them through the
    :class:`~docshield.io.base.Document` and :class:`~docshield.io.base.Page`
    protocols.

Notes/Edge cases:
    - Password protected PDFs are rejected with ``EncryptedDocumentError``;
      no attempt is made to authenticate.
    - Raster images open as a one page document.  Only text already embedded
      in the page is returned; no OCR is performed.
    - Form fields, links and annotations only exist on PDF pages.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from types import TracebackType
from typing import Any, TypeVar

import fitz  # PyMuPDF

from docshield.utils.errors import DocumentOpenError, EncryptedDocumentError
from docshield.utils.logging import get_logger
from docshield.utils.textspan import BoundingBox, normalize_box

from .base import (
    STANDARD_METADATA_KEYS,
    Annotation,
    FormField,
    ImageRegion,
    ItemErrorHandler,
    Link,
)

__all__ = ["PDF_MIME", "IMAGE_FILETYPES", "PyMuPDFPage", "PyMuPDFDocument", "open_with_pymupdf"]

logger = get_logger(__name__)

PDF_MIME = "application/pdf"

IMAGE_FILETYPES: dict[str, str] = {
    "image/png": "png",
    "image/jpeg": "jpeg",
    "image/jpg": "jpeg",
    "image/gif": "gif",
    "image/bmp": "bmp",
    "image/tiff": "tiff",
}

_REDACT_FILL = (0, 0, 0)

T = TypeVar("T")
R = TypeVar("R")


def _collect(
    items: Iterable[R], build: Callable[[R], T], on_error: ItemErrorHandler | None
) -> list[T]:
    """Build one value per item, handing unreadable items to ``on_error``."""

    out: list[T] = []
    for i, item in enumerate(items):
        try:
            out.append(build(item))
        except Exception as exc:  # noqa: BLE001 - reported per item
            if on_error is None:
                raise
            on_error(i, exc)
    return out


def _image_region(info: dict[str, Any]) -> ImageRegion:
    return ImageRegion(
        normalize_box(info["bbox"]),
        int(info.get("width") or 0),
        int(info.get("height") or 0),
        int(info.get("xref") or 0),
    )


def _form_field(widget: fitz.Widget) -> FormField:
    value = widget.field_value
    return FormField(
        field_type=str(widget.field_type_string or "Unknown"),
        name=str(widget.field_name or ""),
        value="" if value is None else str(value),
        bounding_box=normalize_box(widget.rect),
    )


def _annotation(annot: fitz.Annot) -> Annotation:
    return Annotation(
        annotation_type=str(annot.type[1]),
        text=str(annot.info.get("content") or ""),
        bounding_box=normalize_box(annot.rect),
    )


class PyMuPDFPage:
    """Adapter around :class:`fitz.Page`."""

    def __init__(self, page: fitz.Page, *, is_pdf: bool) -> None:
        self._page = page
        self._is_pdf = is_pdf

    @property
    def number(self) -> int:
        return int(self._page.number)

    def extract_text(self, preserve_whitespace: bool = True) -> str:
        flags = fitz.TEXT_PRESERVE_LIGATURES
        if preserve_whitespace:
            flags |= fitz.TEXT_PRESERVE_WHITESPACE
        return self._page.get_text("text", flags=flags) or ""

    def extract_images(self, on_error: ItemErrorHandler | None = None) -> list[ImageRegion]:
        return _collect(self._page.get_image_info(xrefs=True), _image_region, on_error)

    def extract_form_fields(self, on_error: ItemErrorHandler | None = None) -> list[FormField]:
        if not self._is_pdf:
            return []
        return _collect(self._page.widgets() or [], _form_field, on_error)

    def extract_links(self) -> list[Link]:
        links: list[Link] = []
        for link in self._page.get_links():
            uri = link.get("uri")
            if link.get("kind") != fitz.LINK_URI or not uri:
                continue
            rect = link.get("from")
            links.append(Link(uri=str(uri), bounding_box=normalize_box(rect) if rect else None))
        return links

    def extract_annotations(self, on_error: ItemErrorHandler | None = None) -> list[Annotation]:
        if not self._is_pdf:
            return []
        return _collect(self._page.annots() or [], _annotation, on_error)

    def locate_text(self, needle: str) -> list[BoundingBox]:
        if not needle.strip():
            return []
        return [normalize_box(rect) for rect in self._page.search_for(needle)]

    def create_redaction_annotation(self, bounding_box: BoundingBox) -> None:
        self._page.add_redact_annot(fitz.Rect(*bounding_box), fill=_REDACT_FILL)

    def apply_redactions(self) -> None:
        self._page.apply_redactions()


class PyMuPDFDocument:
    """Adapter around :class:`fitz.Document`."""

    def __init__(self, doc: fitz.Document, mime_type: str) -> None:
        self._doc = doc
        self.mime_type = mime_type

    def __enter__(self) -> "PyMuPDFDocument":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def is_pdf(self) -> bool:
        return bool(self._doc.is_pdf)

    def page_count(self) -> int:
        return int(self._doc.page_count)

    def load_page(self, index: int) -> PyMuPDFPage:
        return PyMuPDFPage(self._doc.load_page(index), is_pdf=self.is_pdf)

    def get_metadata(self, key: str) -> str:
        return str((self._doc.metadata or {}).get(key) or "")

    def set_metadata(self, key: str, value: str) -> None:
        current = {
            k: v or ""
            for k, v in (self._doc.metadata or {}).items()
            if k in STANDARD_METADATA_KEYS
        }
        current[key] = value
        self._doc.set_metadata(current)

    def delete_metadata_object(self) -> None:
        if self.is_pdf:
            self._doc.del_xml_metadata()

    def to_bytes(self) -> bytes:
        if self.is_pdf:
            return self._doc.tobytes(garbage=3, deflate=True)
        return self._doc.convert_to_pdf()

    def close(self) -> None:
        if not self._doc.is_closed:
            self._doc.close()


def open_with_pymupdf(buffer: bytes, mime_type: str) -> PyMuPDFDocument:
    """Open ``buffer`` as ``mime_type`` with PyMuPDF.

    Raises
    ------
    EncryptedDocumentError
        If the document needs a password.
    DocumentOpenError
        If PyMuPDF cannot parse the buffer.
    """

    filetype = "pdf" if mime_type == PDF_MIME else IMAGE_FILETYPES.get(mime_type, mime_type)
    if not buffer:
        raise DocumentOpenError("Received an empty file buffer.")
    try:
        doc = fitz.open(stream=buffer, filetype=filetype)
    except (RuntimeError, ValueError) as exc:
        raise DocumentOpenError(f"Could not parse {mime_type} document: {exc}") from exc

    if doc.needs_pass:
        doc.close()
        logger.info("Password-protected document rejected")
        raise EncryptedDocumentError("Password-protected documents are not supported")
    return PyMuPDFDocument(doc, mime_type)
