"""Named catalog of redaction patterns.

Purpose:
    Hold the set of regular-expression detectors consulted by the classifier.

Key responsibilities:
    - Register, replace and remove patterns by name at runtime.
    - Provide the built-in detectors for common personal, financial, medical
      and legal identifiers.

Notes/Edge cases:
    - Registering a name that already exists replaces the earlier entry
      (last write wins).
    - Category gating happens in the classifier, never here.
    - None of the built-in expressions match a redaction placeholder such as
      ``[PII_REDACTED]``, which keeps repeated redaction idempotent.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING

from docshield.utils.logging import get_logger

from .base import Category, RedactionPattern, Severity

if TYPE_CHECKING:  # pragma: no cover
    from docshield.config import ConfigModel

__all__ = ["DEFAULT_PATTERNS", "PatternCatalog"]

logger = get_logger(__name__)


DEFAULT_PATTERNS: tuple[RedactionPattern, ...] = (
    RedactionPattern.compile(
        "Email Address",
        r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b",
        Severity.HIGH,
        Category.PII,
    ),
    RedactionPattern.compile(
        "Phone Number",
        r"(?:\+?1[-.\s]?)?\(?[0-9]{3}\)?[-.\s]?[0-9]{3}[-.\s]?[0-9]{4}",
        Severity.HIGH,
        Category.PII,
    ),
    RedactionPattern.compile("SSN", r"\b\d{3}-?\d{2}-?\d{4}\b", Severity.HIGH, Category.PII),
    RedactionPattern.compile(
        "Credit Card", r"\b(?:\d{4}[-\s]?){3}\d{4}\b", Severity.HIGH, Category.FINANCIAL
    ),
    RedactionPattern.compile("Bank Account", r"\b\d{8,17}\b", Severity.HIGH, Category.FINANCIAL),
    RedactionPattern.compile(
        "Address",
        r"\b\d+\s+[A-Za-z0-9\s,.-]+"
        r"(?:Street|St|Avenue|Ave|Road|Rd|Boulevard|Blvd|Lane|Ln|Drive|Dr|Way|Place|Pl)\b",
        Severity.MEDIUM,
        Category.PII,
        ignore_case=True,
    ),
    RedactionPattern.compile(
        "Date of Birth",
        r"\b(?:0?[1-9]|1[0-2])[/\-](?:0?[1-9]|[12]\d|3[01])[/\-](?:19|20)\d{2}\b",
        Severity.HIGH,
        Category.PII,
    ),
    RedactionPattern.compile("Driver License", r"\b[A-Z]\d{7,8}\b", Severity.HIGH, Category.PII),
    RedactionPattern.compile("Passport", r"\b[A-Z]{1,2}\d{6,9}\b", Severity.HIGH, Category.PII),
    RedactionPattern.compile(
        "Medical Record",
        r"\b(?:MRN|Medical Record|Patient ID)[:\s]*\d{6,12}\b",
        Severity.HIGH,
        Category.MEDICAL,
        ignore_case=True,
    ),
    RedactionPattern.compile(
        "Case Number",
        r"\b(?:Case|Docket|File)[\s#:]*[A-Z0-9\-]{6,20}\b",
        Severity.MEDIUM,
        Category.LEGAL,
        ignore_case=True,
    ),
)


class PatternCatalog:
    """Mutable, thread-safe mapping from pattern name to :class:`RedactionPattern`."""

    def __init__(self, patterns: Iterable[RedactionPattern] = ()) -> None:
        self._lock = threading.Lock()
        self._patterns: dict[str, RedactionPattern] = {}
        for pattern in patterns:
            self.register(pattern)

    @classmethod
    def default(cls) -> "PatternCatalog":
        """Return a catalog holding the built-in detectors."""

        return cls(DEFAULT_PATTERNS)

    @classmethod
    def from_config(cls, cfg: "ConfigModel") -> "PatternCatalog":
        """Build the default catalog, then apply ``patterns`` settings from ``cfg``."""

        catalog = cls.default()
        for name in cfg.patterns.disabled:
            if not catalog.unregister(name):
                logger.warning("Cannot disable unknown pattern %r", name)
        for custom in cfg.patterns.custom:
            catalog.register(
                RedactionPattern.compile(
                    custom.name,
                    custom.regex,
                    custom.severity,
                    custom.category,
                    ignore_case=custom.ignore_case,
                )
            )
        return catalog

    def register(self, pattern: RedactionPattern) -> None:
        """Add ``pattern``; an existing pattern with the same name is replaced."""

        with self._lock:
            if pattern.name in self._patterns:
                logger.debug("Replacing pattern %r", pattern.name)
            self._patterns[pattern.name] = pattern

    def unregister(self, name: str) -> bool:
        """Remove the pattern called ``name``; return ``False`` if absent."""

        with self._lock:
            return self._patterns.pop(name, None) is not None

    def get(self, name: str) -> RedactionPattern | None:
        with self._lock:
            return self._patterns.get(name)

    def list(self) -> list[RedactionPattern]:
        """Return a snapshot of the registered patterns."""

        with self._lock:
            return list(self._patterns.values())

    def names(self) -> list[str]:
        with self._lock:
            return list(self._patterns)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._patterns

    def __len__(self) -> int:
        with self._lock:
            return len(self._patterns)

    def __iter__(self) -> Iterator[RedactionPattern]:
        return iter(self.list())
