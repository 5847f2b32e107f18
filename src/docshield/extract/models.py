"""Content section models.

A document is analysed into an ordered list of sections.  ``ContentSection``
is a closed union of one frozen dataclass per section type; every variant
shares the common fields of :class:`SectionBase` and adds only what is
relevant to it (a link carries its URI, a form field its type and name).

Confidence and the sensitivity flag are fixed when a section is created.  The
user's selection flag is not part of a section; it lives in the selection
store.

:func:`section_to_dict` and :func:`section_from_dict` convert sections to and
from the camelCase mapping used in JSON exports.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, ClassVar, Union

from docshield.utils.textspan import BoundingBox

__all__ = [
    "SectionType",
    "SectionBase",
    "TextSection",
    "ImageSection",
    "MetadataSection",
    "FormSection",
    "LinkSection",
    "AnnotationSection",
    "ContentSection",
    "SECTION_CLASSES",
    "variant_fields",
    "build_section",
    "section_to_dict",
    "section_from_dict",
]


class SectionType(Enum):
    """Kinds of addressable content."""

    TEXT = "text"
    IMAGE = "image"
    METADATA = "metadata"
    FORM = "form"
    LINK = "link"
    ANNOTATION = "annotation"


@dataclass(slots=True, frozen=True, kw_only=True)
class SectionBase:
    """Fields shared by every section variant."""

    type: ClassVar[SectionType]

    id: str
    index: int
    content: str
    preview: str
    length: int
    page_number: int | None = None
    has_sensitive_content: bool = False
    sensitive_patterns: tuple[str, ...] = ()
    confidence: float = 0.0
    bounding_box: BoundingBox | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:  # noqa: D401 - simple validation
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError("confidence must be within [0.0, 1.0]")
        if self.index < 0:
            raise ValueError("index must be non-negative")


@dataclass(slots=True, frozen=True, kw_only=True)
class TextSection(SectionBase):
    """A paragraph or line block of page text."""

    type: ClassVar[SectionType] = SectionType.TEXT
    block_index: int = 0


@dataclass(slots=True, frozen=True, kw_only=True)
class ImageSection(SectionBase):
    """An embedded image, or the whole file for image inputs.

    Raster content is never scanned, so images are never flagged.
    """

    type: ClassVar[SectionType] = SectionType.IMAGE
    width: int = 0
    height: int = 0
    mime_type: str | None = None


@dataclass(slots=True, frozen=True, kw_only=True)
class MetadataSection(SectionBase):
    """The document information dictionary."""

    type: ClassVar[SectionType] = SectionType.METADATA
    entries: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True, frozen=True, kw_only=True)
class FormSection(SectionBase):
    type: ClassVar[SectionType] = SectionType.FORM
    field_type: str = ""
    field_name: str = ""


@dataclass(slots=True, frozen=True, kw_only=True)
class LinkSection(SectionBase):
    type: ClassVar[SectionType] = SectionType.LINK
    uri: str = ""


@dataclass(slots=True, frozen=True, kw_only=True)
class AnnotationSection(SectionBase):
    type: ClassVar[SectionType] = SectionType.ANNOTATION
    annotation_type: str = ""


ContentSection = Union[
    TextSection,
    ImageSection,
    MetadataSection,
    FormSection,
    LinkSection,
    AnnotationSection,
]

SECTION_CLASSES: dict[SectionType, type[SectionBase]] = {
    SectionType.TEXT: TextSection,
    SectionType.IMAGE: ImageSection,
    SectionType.METADATA: MetadataSection,
    SectionType.FORM: FormSection,
    SectionType.LINK: LinkSection,
    SectionType.ANNOTATION: AnnotationSection,
}

_COMMON_FIELDS: frozenset[str] = frozenset(f.name for f in fields(SectionBase))


# ---------------------------------------------------------------------------
# Conversion helpers
# ---------------------------------------------------------------------------


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _coerce(name: str, value: Any) -> Any:
    if name == "sensitive_patterns":
        return tuple(value or ())
    if name == "bounding_box":
        return tuple(float(v) for v in value) if value else None
    if name in {"metadata", "entries"}:
        return dict(value or {})
    return value


def variant_fields(section: SectionBase) -> dict[str, Any]:
    """Return the type-specific fields of ``section`` keyed by attribute name."""

    return {
        f.name: getattr(section, f.name) for f in fields(section) if f.name not in _COMMON_FIELDS
    }


def build_section(section_type: SectionType | str, **values: Any) -> ContentSection:
    """Construct the variant for ``section_type`` from attribute-named values.

    Unknown keys are ignored so records written by newer versions still load.
    """

    cls = SECTION_CLASSES[SectionType(section_type)]
    names = {f.name for f in fields(cls)}
    kwargs = {k: _coerce(k, v) for k, v in values.items() if k in names}
    return cls(**kwargs)  # type: ignore[return-value]


def section_to_dict(section: SectionBase) -> dict[str, Any]:
    """Return a JSON-ready camelCase mapping for ``section``."""

    data: dict[str, Any] = {"type": section.type.value}
    for f in fields(section):
        value = getattr(section, f.name)
        if isinstance(value, tuple):
            value = list(value)
        elif isinstance(value, dict):
            value = dict(value)
        data[_camel(f.name)] = value
    return data


def section_from_dict(data: dict[str, Any]) -> ContentSection:
    """Inverse of :func:`section_to_dict`."""

    cls = SECTION_CLASSES[SectionType(data["type"])]
    values = {f.name: data[_camel(f.name)] for f in fields(cls) if _camel(f.name) in data}
    return build_section(cls.type, **values)
