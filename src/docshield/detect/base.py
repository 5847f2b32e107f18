"""Core detection model and protocol definitions.

A :class:`RedactionPattern` couples a compiled regular expression with a
severity and a category.  Patterns are immutable once built; catalogs swap
whole entries rather than editing them.  Matches are reported as
:class:`ClassifierHit` objects using the half-open ``[start, end)``
convention.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable

from docshield.utils.errors import PatternError

__all__ = [
    "Severity",
    "Category",
    "RedactionPattern",
    "ClassifierHit",
    "ClassificationResult",
    "ScoringStrategy",
]


class Severity(Enum):
    """How damaging a leak of the matched content would be."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Category(Enum):
    """Kind of identifier a pattern detects."""

    PII = "pii"
    FINANCIAL = "financial"
    MEDICAL = "medical"
    LEGAL = "legal"
    OTHER = "other"


@dataclass(slots=True, frozen=True)
class RedactionPattern:
    """A named detector: regular expression plus severity and category."""

    name: str
    matcher: re.Pattern[str]
    severity: Severity
    category: Category

    def __post_init__(self) -> None:  # noqa: D401 - simple validation
        if not self.name or not self.name.strip():
            raise PatternError("pattern name must be non-empty")
        if not isinstance(self.matcher, re.Pattern):
            raise PatternError(f"pattern {self.name!r} needs a compiled regular expression")

    @classmethod
    def compile(
        cls,
        name: str,
        regex: str,
        severity: Severity | str,
        category: Category | str,
        *,
        ignore_case: bool = False,
    ) -> "RedactionPattern":
        """Build a pattern from a regex string.

        Raises
        ------
        PatternError
            If ``regex`` does not compile or severity/category are unknown.
        """

        flags = re.IGNORECASE if ignore_case else 0
        try:
            matcher = re.compile(regex, flags)
        except re.error as exc:
            raise PatternError(f"invalid regex for pattern {name!r}: {exc}") from exc
        try:
            sev = Severity(severity) if not isinstance(severity, Severity) else severity
            cat = Category(category) if not isinstance(category, Category) else category
        except ValueError as exc:
            raise PatternError(f"pattern {name!r}: {exc}") from exc
        return cls(name, matcher, sev, cat)


@dataclass(slots=True, frozen=True)
class ClassifierHit:
    """A single pattern match that survived the confidence threshold."""

    pattern_name: str
    matched: str
    confidence: float
    category: Category
    start: int
    end: int

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError("confidence must be within [0.0, 1.0]")


@dataclass(slots=True, frozen=True)
class ClassificationResult:
    """Hits found in one span of text."""

    hits: tuple[ClassifierHit, ...] = ()

    @property
    def has_sensitive_content(self) -> bool:
        return bool(self.hits)

    @property
    def pattern_names(self) -> tuple[str, ...]:
        """Names of the matching patterns in first-hit order, without repeats."""

        return tuple(dict.fromkeys(h.pattern_name for h in self.hits))

    @property
    def confidence(self) -> float:
        """Highest hit confidence, ``0.0`` when nothing matched."""

        return max((h.confidence for h in self.hits), default=0.0)


@runtime_checkable
class ScoringStrategy(Protocol):
    """Scores how likely ``matched`` is a true positive for ``pattern``."""

    def __call__(self, matched: str, pattern: RedactionPattern) -> float:
        ...
