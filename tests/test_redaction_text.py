"""Tests for redacting plain text."""

from __future__ import annotations

import pytest

from docshield.detect import Category, PatternCatalog, RedactionPattern, SensitiveContentClassifier
from docshield.replace import (
    AreaType,
    RedactedArea,
    RedactionEngine,
    RedactionOptions,
    RedactionSummary,
    apply_areas,
)

SAMPLE = "Contact me at jane@example.com or 415-555-0100"


@pytest.fixture
def engine() -> RedactionEngine:
    return RedactionEngine()


def test_sample_is_redacted(engine: RedactionEngine) -> None:
    result = engine.redact_text(SAMPLE)
    assert len(result.redacted_areas) == 2
    email, phone = result.redacted_areas
    assert email.category is Category.PII and email.confidence >= 0.8
    assert phone.category is Category.PII and phone.confidence >= 0.7
    assert result.redacted_text.count("[PII_REDACTED]") == 2
    assert "jane@example.com" not in result.redacted_text
    assert "415-555-0100" not in result.redacted_text
    assert result.extracted_text == result.redacted_text
    assert result.original_text == SAMPLE


@pytest.mark.parametrize("text", ["", "Nothing to see in this sentence."])
def test_clean_text_yields_empty_result(engine: RedactionEngine, text: str) -> None:
    result = engine.redact_text(text)
    assert result.redacted_areas == ()
    assert result.confidence == 1.0
    assert result.redaction_summary.total_redactions == 0
    assert result.redacted_text == text


def test_redaction_is_idempotent(engine: RedactionEngine) -> None:
    once = engine.redact_text(SAMPLE)
    twice = engine.redact_text(once.redacted_text)
    assert twice.redacted_areas == ()
    assert twice.redacted_text == once.redacted_text


def test_overlapping_matches_are_removed_together(engine: RedactionEngine) -> None:
    once = engine.redact_text("Call 415-555-0100 at 12 Main Street")
    assert {a.pattern_name for a in once.redacted_areas} >= {"Phone Number", "Address"}
    for area in once.redacted_areas:
        assert area.original_content not in once.redacted_text
    assert "Main Street" not in once.redacted_text
    assert once.redacted_text == "Call [PII_REDACTED]"
    assert engine.redact_text(once.redacted_text).redacted_areas == ()


def test_apply_areas_merges_partial_overlap() -> None:
    areas = [
        RedactedArea("a", AreaType.TEXT, "MRN 4411", "[MEDICAL_REDACTED]", 0.9, Category.MEDICAL),
        RedactedArea(
            "b", AreaType.TEXT, "4411-22", "[FINANCIAL_REDACTED]", 0.9, Category.FINANCIAL
        ),
    ]
    text = "see MRN 4411-22 and 4411-22"
    assert apply_areas(text, areas) == "see [MEDICAL_REDACTED] and [FINANCIAL_REDACTED]"


def test_area_ids_are_unique(engine: RedactionEngine) -> None:
    result = engine.redact_text("a@example.com b@example.com c@example.com")
    ids = [a.id for a in result.redacted_areas]
    assert len(set(ids)) == len(ids) == 3
    assert all(i.startswith("redaction_") for i in ids)


def test_every_occurrence_is_replaced(engine: RedactionEngine) -> None:
    text = "Mail jane@example.com, again jane@example.com"
    result = engine.redact_text(text)
    assert "jane@example.com" not in result.redacted_text
    assert result.redacted_text.count("[PII_REDACTED]") == 2


def test_summary_totals_add_up(engine: RedactionEngine) -> None:
    text = (
        "jane@example.com, card 4111 1111 1111 1111, MRN: 12345678, "
        "Case #CV-2023-001, 415-555-0100"
    )
    summary = engine.redact_text(text).redaction_summary
    per_category = (
        summary.pii_redactions
        + summary.financial_redactions
        + summary.medical_redactions
        + summary.legal_redactions
        + summary.other_redactions
    )
    buckets = summary.high_confidence + summary.medium_confidence + summary.low_confidence
    assert summary.total_redactions == per_category == buckets
    assert summary.financial_redactions >= 1
    assert summary.medical_redactions >= 1
    assert summary.legal_redactions >= 1


def test_disabled_category_is_left_alone(engine: RedactionEngine) -> None:
    result = engine.redact_text(SAMPLE, RedactionOptions(enable_pii=False))
    assert result.redacted_areas == ()
    assert result.redacted_text == SAMPLE


def test_other_category_always_applies() -> None:
    catalog = PatternCatalog(
        [RedactionPattern.compile("Project Code", r"PRJ-\d{4}", "high", "other")]
    )
    engine = RedactionEngine(SensitiveContentClassifier(catalog))
    options = RedactionOptions(
        enable_pii=False, enable_financial=False, enable_medical=False, enable_legal=False
    )
    result = engine.redact_text("Budget for PRJ-1234", options)
    assert result.redacted_text == "Budget for [REDACTED]"
    assert result.redaction_summary.other_redactions == 1


def test_threshold_option_filters_matches(engine: RedactionEngine) -> None:
    result = engine.redact_text("Visit 12 Main Street", RedactionOptions(confidence_threshold=0.9))
    assert result.redacted_areas == ()
    relaxed = engine.redact_text("Visit 12 Main Street", RedactionOptions(confidence_threshold=0.6))
    assert [a.pattern_name for a in relaxed.redacted_areas] == ["Address"]


def test_options_validate_threshold() -> None:
    with pytest.raises(ValueError):
        RedactionOptions(confidence_threshold=-0.1)


def test_enabled_categories_include_other() -> None:
    opts = RedactionOptions(enable_financial=False)
    assert Category.OTHER in opts.enabled_categories
    assert Category.FINANCIAL not in opts.enabled_categories


def _area(confidence: float, category: Category = Category.PII) -> RedactedArea:
    return RedactedArea(
        id="redaction_x",
        type=AreaType.TEXT,
        original_content="x",
        redacted_content="[PII_REDACTED]",
        confidence=confidence,
        category=category,
    )


def test_summary_buckets_use_fixed_cutoffs() -> None:
    summary = RedactionSummary.from_areas(
        [_area(0.8), _area(0.79), _area(0.6), _area(0.59, Category.LEGAL)]
    )
    assert summary.high_confidence == 1
    assert summary.medium_confidence == 2
    assert summary.low_confidence == 1
    assert summary.legal_redactions == 1
    assert summary.to_dict()["totalRedactions"] == 4


def test_apply_areas_first_recorded_wins() -> None:
    areas = [
        RedactedArea("a", AreaType.TEXT, "4155550100", "[PII_REDACTED]", 0.9, Category.PII),
        RedactedArea(
            "b", AreaType.TEXT, "4155550100", "[FINANCIAL_REDACTED]", 0.9, Category.FINANCIAL
        ),
    ]
    assert apply_areas("acct 4155550100", areas) == "acct [PII_REDACTED]"


def test_result_dict_is_camel_case(engine: RedactionEngine) -> None:
    data = engine.redact_text(SAMPLE).to_dict()
    assert data["redactionSummary"]["piiRedactions"] == 2
    assert data["redactedAreas"][0]["type"] == "text"
    assert data["redactedAreas"][0]["category"] == "pii"
