"""Shared fixtures: in-memory PDFs built with PyMuPDF and fake pages."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

import fitz
import pytest

from docshield.detect import SensitiveContentClassifier
from docshield.extract import SectionExtractor
from docshield.io.base import Annotation, FormField, ImageRegion, ItemErrorHandler, Link
from docshield.store import SQLiteStore
from docshield.utils.textspan import BoundingBox


def _png(width: int = 16, height: int = 12) -> bytes:
    pix = fitz.Pixmap(fitz.csRGB, fitz.IRect(0, 0, width, height), False)
    pix.clear_with(180)
    return pix.tobytes("png")


def build_pdf(
    pages: Sequence[str],
    *,
    metadata: dict[str, str] | None = None,
    images: bool = False,
    link: str | None = None,
    note: str | None = None,
    field_name: str | None = None,
    password: str | None = None,
) -> bytes:
    """Return PDF bytes with one page per entry of ``pages``."""

    doc = fitz.open()
    for text in pages:
        page = doc.new_page(width=612, height=792)
        if text:
            page.insert_text((72, 72), text, fontsize=11)
        if images:
            page.insert_image(fitz.Rect(72, 300, 172, 400), stream=_png())
        if link:
            page.insert_link(
                {"kind": fitz.LINK_URI, "from": fitz.Rect(72, 500, 300, 515), "uri": link}
            )
        if note:
            page.add_text_annot((72, 600), note)
        if field_name:
            widget = fitz.Widget()
            widget.field_type = fitz.PDF_WIDGET_TYPE_TEXT
            widget.field_name = field_name
            widget.rect = fitz.Rect(72, 650, 272, 670)
            widget.field_value = ""
            page.add_widget(widget)
    doc.set_metadata(metadata or {})
    if password:
        data = doc.tobytes(
            encryption=fitz.PDF_ENCRYPT_AES_256, owner_pw=password + "-owner", user_pw=password
        )
    else:
        data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def make_pdf() -> Callable[..., bytes]:
    return build_pdf


@pytest.fixture
def png_bytes() -> bytes:
    return _png(40, 30)


@pytest.fixture
def classifier() -> SensitiveContentClassifier:
    return SensitiveContentClassifier()


@pytest.fixture
def extractor(classifier: SensitiveContentClassifier) -> SectionExtractor:
    return SectionExtractor(classifier)


@pytest.fixture
def store() -> Any:
    s = SQLiteStore()
    yield s
    s.close()


class FakePage:
    """Minimal page for unit tests; ``broken`` names methods that raise."""

    def __init__(
        self,
        text: str = "",
        *,
        images: Sequence[ImageRegion | Exception] = (),
        fields: Sequence[FormField | Exception] = (),
        links: Sequence[Link] = (),
        annotations: Sequence[Annotation | Exception] = (),
        broken: Sequence[str] = (),
    ) -> None:
        self.text = text
        self.images: list[Any] = list(images)
        self.fields: list[Any] = list(fields)
        self.links = list(links)
        self.annotations: list[Any] = list(annotations)
        self.broken = set(broken)
        self.number = 0
        self.log: list[tuple[str, int]] = []
        self.boxes: list[BoundingBox] = []

    def _check(self, name: str) -> None:
        if name in self.broken:
            raise RuntimeError(f"{name} unavailable")

    def _items(self, name: str, items: list[Any], on_error: ItemErrorHandler | None) -> list[Any]:
        """Return ``items``; exception entries stand for unreadable items."""

        self._check(name)
        out: list[Any] = []
        for i, item in enumerate(items):
            if isinstance(item, Exception):
                if on_error is None:
                    raise item
                on_error(i, item)
            else:
                out.append(item)
        return out

    def extract_text(self, preserve_whitespace: bool = True) -> str:
        self._check("text")
        return self.text

    def extract_images(self, on_error: ItemErrorHandler | None = None) -> list[ImageRegion]:
        return self._items("images", self.images, on_error)

    def extract_form_fields(self, on_error: ItemErrorHandler | None = None) -> list[FormField]:
        return self._items("fields", self.fields, on_error)

    def extract_links(self) -> list[Link]:
        self._check("links")
        return self.links

    def extract_annotations(self, on_error: ItemErrorHandler | None = None) -> list[Annotation]:
        return self._items("annotations", self.annotations, on_error)

    def locate_text(self, needle: str) -> list[BoundingBox]:
        if needle and needle in self.text:
            return [(10.0, 10.0, 10.0 + len(needle), 20.0)]
        return []

    def create_redaction_annotation(self, bounding_box: BoundingBox) -> None:
        self.boxes.append(bounding_box)
        self.log.append(("annotate", self.number))

    def apply_redactions(self) -> None:
        self.log.append(("apply", self.number))


class FakeDocument:
    """In-memory document over :class:`FakePage` objects."""

    mime_type = "application/pdf"

    def __init__(self, pages: Sequence[FakePage], metadata: dict[str, str] | None = None) -> None:
        self.pages = list(pages)
        self.metadata = dict(metadata or {})
        self.log: list[tuple[str, int]] = []
        for number, page in enumerate(self.pages):
            page.number = number
            page.log = self.log
        self.fail_on_set: str | None = None
        self.xml_deleted = False
        self.closed = False

    @property
    def is_pdf(self) -> bool:
        return True

    def page_count(self) -> int:
        return len(self.pages)

    def load_page(self, index: int) -> FakePage:
        return self.pages[index]

    def get_metadata(self, key: str) -> str:
        return self.metadata.get(key, "")

    def set_metadata(self, key: str, value: str) -> None:
        if self.fail_on_set == key and value == "":
            raise RuntimeError(f"cannot clear {key}")
        self.metadata[key] = value

    def delete_metadata_object(self) -> None:
        self.xml_deleted = True

    def to_bytes(self) -> bytes:
        return b"%PDF-fake"

    def close(self) -> None:
        self.closed = True
