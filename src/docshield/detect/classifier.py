"""Sensitive content classifier.

Applies every enabled pattern of a :class:`PatternCatalog` to a span of text
and scores each match with a pluggable :class:`ScoringStrategy`.  The default
strategy, :func:`heuristic_confidence`, is deliberately generous: a false
positive costs a human a glance during review while a false negative leaks
data.

A pattern that fails while scanning (bad backtracking, recursion limits) is
skipped for that text only; the remaining patterns still run.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from docshield.utils.errors import PatternApplicationError
from docshield.utils.logging import get_logger

from .base import (
    Category,
    ClassificationResult,
    ClassifierHit,
    RedactionPattern,
    ScoringStrategy,
    Severity,
)
from .patterns import PatternCatalog

__all__ = ["DEFAULT_THRESHOLD", "heuristic_confidence", "SensitiveContentClassifier"]

logger = get_logger(__name__)

DEFAULT_THRESHOLD = 0.7

_SEVERITY_WEIGHT: dict[Severity, float] = {
    Severity.HIGH: 0.3,
    Severity.MEDIUM: 0.1,
    Severity.LOW: -0.1,
}
_DIGIT_RE = re.compile(r"\d")
_LETTER_RE = re.compile(r"[A-Za-z]")


def heuristic_confidence(matched: str, pattern: RedactionPattern) -> float:
    """Additive point score for a match, clamped to ``[0.0, 1.0]``.

    Base 0.5, adjusted by severity, +0.1 for matches longer than five
    characters and +0.1 when the match mixes digits and letters.
    """

    confidence = 0.5 + _SEVERITY_WEIGHT[pattern.severity]
    if len(matched) > 5:
        confidence += 0.1
    if _DIGIT_RE.search(matched) and _LETTER_RE.search(matched):
        confidence += 0.1
    # round away float drift so 0.5 + 0.3 + 0.1 + 0.1 reads as 1.0
    return min(1.0, max(0.0, round(confidence, 6)))


class SensitiveContentClassifier:
    """Run a pattern catalog over text and report thresholded hits."""

    def __init__(
        self,
        catalog: PatternCatalog | None = None,
        *,
        scoring: ScoringStrategy = heuristic_confidence,
        threshold: float = DEFAULT_THRESHOLD,
    ) -> None:
        if not 0.0 <= threshold <= 1.0:
            raise ValueError("threshold must be within [0.0, 1.0]")
        self.catalog = catalog if catalog is not None else PatternCatalog.default()
        self.scoring = scoring
        self.threshold = threshold

    def classify(
        self,
        text: str,
        enabled_categories: Iterable[Category] | None = None,
        *,
        threshold: float | None = None,
    ) -> ClassificationResult:
        """Return every match in ``text`` scoring at least ``threshold``.

        Parameters
        ----------
        text:
            The span to scan.
        enabled_categories:
            Categories whose patterns are applied; ``None`` applies all.
        threshold:
            Minimum confidence for a match to be reported.  Defaults to the
            classifier's own threshold.
        """

        if not text:
            return ClassificationResult()

        min_conf = self.threshold if threshold is None else threshold
        enabled = set(enabled_categories) if enabled_categories is not None else None

        hits: list[ClassifierHit] = []
        for pattern in self.catalog.list():
            if enabled is not None and pattern.category not in enabled:
                continue
            try:
                hits.extend(self._apply(pattern, text, min_conf))
            except (re.error, RecursionError, MemoryError, TypeError) as exc:
                failure = PatternApplicationError(pattern.name, exc)
                logger.warning("Skipping pattern: %s", failure)

        hits.sort(key=lambda h: (h.start, -(h.end - h.start)))
        return ClassificationResult(tuple(hits))

    def _apply(
        self, pattern: RedactionPattern, text: str, min_conf: float
    ) -> list[ClassifierHit]:
        found: list[ClassifierHit] = []
        for match in pattern.matcher.finditer(text):
            matched = match.group(0)
            if not matched:
                continue
            confidence = min(1.0, max(0.0, float(self.scoring(matched, pattern))))
            if confidence < min_conf:
                continue
            found.append(
                ClassifierHit(
                    pattern.name,
                    matched,
                    confidence,
                    pattern.category,
                    match.start(),
                    match.end(),
                )
            )
        return found
