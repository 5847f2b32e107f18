"""Sensitive content detection: pattern catalog and classifier."""

from .base import (
    Category,
    ClassificationResult,
    ClassifierHit,
    RedactionPattern,
    ScoringStrategy,
    Severity,
)
from .classifier import DEFAULT_THRESHOLD, SensitiveContentClassifier, heuristic_confidence
from .patterns import DEFAULT_PATTERNS, PatternCatalog

__all__ = [
    "Category",
    "ClassificationResult",
    "ClassifierHit",
    "RedactionPattern",
    "ScoringStrategy",
    "Severity",
    "DEFAULT_THRESHOLD",
    "SensitiveContentClassifier",
    "heuristic_confidence",
    "DEFAULT_PATTERNS",
    "PatternCatalog",
]
