"""Redaction options, areas and results."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum

from docshield.config import ConfigModel
from docshield.detect.base import Category
from docshield.utils.textspan import BoundingBox

__all__ = [
    "PLACEHOLDERS",
    "placeholder_for",
    "AreaType",
    "RedactionOptions",
    "RedactedArea",
    "RedactionSummary",
    "RedactionResult",
]

PLACEHOLDERS: dict[Category, str] = {
    Category.PII: "[PII_REDACTED]",
    Category.FINANCIAL: "[FINANCIAL_REDACTED]",
    Category.MEDICAL: "[MEDICAL_REDACTED]",
    Category.LEGAL: "[LEGAL_REDACTED]",
    Category.OTHER: "[REDACTED]",
}

HIGH_CONFIDENCE = 0.8
MEDIUM_CONFIDENCE = 0.6


def placeholder_for(category: Category) -> str:
    """Return the category-tagged placeholder substituted for a match."""

    return PLACEHOLDERS.get(category, PLACEHOLDERS[Category.OTHER])


class AreaType(Enum):
    """Where a redacted area was found."""

    TEXT = "text"
    IMAGE = "image"
    METADATA = "metadata"


@dataclass(slots=True, frozen=True)
class RedactionOptions:
    """Per-category switches plus a global confidence threshold.

    ``other`` patterns are always applied.
    """

    enable_pii: bool = True
    enable_financial: bool = True
    enable_medical: bool = True
    enable_legal: bool = True
    enable_metadata: bool = True
    confidence_threshold: float = 0.7

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence_threshold <= 1.0:
            raise ValueError("confidence_threshold must be within [0.0, 1.0]")

    @classmethod
    def from_config(cls, cfg: ConfigModel) -> "RedactionOptions":
        r = cfg.redaction
        return cls(
            enable_pii=r.enable_pii,
            enable_financial=r.enable_financial,
            enable_medical=r.enable_medical,
            enable_legal=r.enable_legal,
            enable_metadata=r.enable_metadata,
            confidence_threshold=r.confidence_threshold,
        )

    @property
    def enabled_categories(self) -> tuple[Category, ...]:
        switches = {
            Category.PII: self.enable_pii,
            Category.FINANCIAL: self.enable_financial,
            Category.MEDICAL: self.enable_medical,
            Category.LEGAL: self.enable_legal,
            Category.OTHER: True,
        }
        return tuple(cat for cat, on in switches.items() if on)


@dataclass(slots=True, frozen=True)
class RedactedArea:
    """One detected match and the placeholder that replaces it."""

    id: str
    type: AreaType
    original_content: str
    redacted_content: str
    confidence: float
    category: Category
    pattern_name: str = ""
    bounding_box: BoundingBox | None = None
    page_number: int | None = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError("confidence must be within [0.0, 1.0]")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "type": self.type.value,
            "originalContent": self.original_content,
            "redactedContent": self.redacted_content,
            "boundingBox": list(self.bounding_box) if self.bounding_box else None,
            "pageNumber": self.page_number,
            "confidence": self.confidence,
            "category": self.category.value,
            "patternName": self.pattern_name,
        }


@dataclass(slots=True, frozen=True)
class RedactionSummary:
    """Counts derived from a list of :class:`RedactedArea` objects.

    Build instances with :meth:`from_areas`; the totals per category and per
    confidence bucket then always add up to ``total_redactions``.
    """

    total_redactions: int = 0
    pii_redactions: int = 0
    financial_redactions: int = 0
    medical_redactions: int = 0
    legal_redactions: int = 0
    other_redactions: int = 0
    high_confidence: int = 0
    medium_confidence: int = 0
    low_confidence: int = 0

    @classmethod
    def from_areas(cls, areas: Iterable[RedactedArea]) -> "RedactionSummary":
        areas = list(areas)
        by_category = Counter(area.category for area in areas)
        high = sum(1 for a in areas if a.confidence >= HIGH_CONFIDENCE)
        medium = sum(1 for a in areas if MEDIUM_CONFIDENCE <= a.confidence < HIGH_CONFIDENCE)
        return cls(
            total_redactions=len(areas),
            pii_redactions=by_category[Category.PII],
            financial_redactions=by_category[Category.FINANCIAL],
            medical_redactions=by_category[Category.MEDICAL],
            legal_redactions=by_category[Category.LEGAL],
            other_redactions=by_category[Category.OTHER],
            high_confidence=high,
            medium_confidence=medium,
            low_confidence=len(areas) - high - medium,
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "totalRedactions": self.total_redactions,
            "piiRedactions": self.pii_redactions,
            "financialRedactions": self.financial_redactions,
            "medicalRedactions": self.medical_redactions,
            "legalRedactions": self.legal_redactions,
            "otherRedactions": self.other_redactions,
            "highConfidence": self.high_confidence,
            "mediumConfidence": self.medium_confidence,
            "lowConfidence": self.low_confidence,
        }


@dataclass(slots=True, frozen=True)
class RedactionResult:
    """Outcome of redacting a text or a document.

    ``confidence`` and ``redaction_summary`` are computed from
    ``redacted_areas`` on access.
    """

    original_text: str
    redacted_text: str
    redacted_areas: tuple[RedactedArea, ...] = ()
    document_bytes: bytes | None = None
    metadata_scrubbed: bool = False
    page_texts: Sequence[str] = field(default_factory=tuple)

    @property
    def extracted_text(self) -> str:
        """Text that is safe to forward: the redacted text."""

        return self.redacted_text

    @property
    def confidence(self) -> float:
        """Mean area confidence, ``1.0`` when nothing was redacted."""

        if not self.redacted_areas:
            return 1.0
        return sum(a.confidence for a in self.redacted_areas) / len(self.redacted_areas)

    @property
    def redaction_summary(self) -> RedactionSummary:
        return RedactionSummary.from_areas(self.redacted_areas)

    def to_dict(self) -> dict[str, object]:
        return {
            "originalText": self.original_text,
            "redactedText": self.redacted_text,
            "extractedText": self.extracted_text,
            "redactedAreas": [a.to_dict() for a in self.redacted_areas],
            "confidence": self.confidence,
            "redactionSummary": self.redaction_summary.to_dict(),
            "metadataScrubbed": self.metadata_scrubbed,
        }
