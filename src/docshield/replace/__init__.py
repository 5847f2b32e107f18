"""Redaction of texts and documents with category-tagged placeholders."""

from .engine import RedactionEngine, apply_areas
from .models import (
    PLACEHOLDERS,
    AreaType,
    RedactedArea,
    RedactionOptions,
    RedactionResult,
    RedactionSummary,
    placeholder_for,
)
from .plan import RedactionPlan, SealedRedactionPlan

__all__ = [
    "RedactionEngine",
    "apply_areas",
    "PLACEHOLDERS",
    "AreaType",
    "RedactedArea",
    "RedactionOptions",
    "RedactionResult",
    "RedactionSummary",
    "placeholder_for",
    "RedactionPlan",
    "SealedRedactionPlan",
]
