"""Tests for the selection store."""

from __future__ import annotations

import pytest

from docshield.extract.models import TextSection
from docshield.selection import SelectionStore
from docshield.store import DocumentRecord, SQLiteStore
from docshield.utils.errors import DocumentNotFoundError, PersistenceError


def _text(i: int, sensitive: bool = False) -> TextSection:
    return TextSection(
        id=f"doc_1_text_0_{i}",
        index=i,
        page_number=0,
        content=f"block {i}",
        preview=f"block {i}",
        length=7,
        has_sensitive_content=sensitive,
        confidence=0.9 if sensitive else 0.0,
    )


@pytest.fixture
def selection(store: SQLiteStore) -> SelectionStore:
    store.create_document(DocumentRecord("doc_1", "a.pdf", "application/pdf", 10))
    store.create_sections("doc_1", [_text(0), _text(1, sensitive=True), _text(2)])
    return SelectionStore(store)


def test_every_section_starts_selected(selection: SelectionStore) -> None:
    assert selection.get_selection_state("doc_1") == {
        "doc_1_text_0_0": True,
        "doc_1_text_0_1": True,
        "doc_1_text_0_2": True,
    }


def test_unknown_ids_do_not_block_valid_ones(selection: SelectionStore) -> None:
    update = selection.bulk_set_selection(
        "doc_1", {"doc_1_text_0_0": False, "doc_1_text_0_9": False, "doc_1_text_0_2": False}
    )
    assert update.applied == ("doc_1_text_0_0", "doc_1_text_0_2")
    assert update.unknown == ("doc_1_text_0_9",)
    assert selection.get_selection_state("doc_1") == {
        "doc_1_text_0_0": False,
        "doc_1_text_0_1": True,
        "doc_1_text_0_2": False,
    }


def test_selection_is_independent_of_sensitivity(selection: SelectionStore) -> None:
    selected = selection.get_selected("doc_1")
    assert any(s.has_sensitive_content for s in selected)
    selection.set_selection("doc_1", "doc_1_text_0_0", False)
    assert [s.id for s in selection.get_selected("doc_1")] == ["doc_1_text_0_1", "doc_1_text_0_2"]


def test_deselect_sensitive(selection: SelectionStore) -> None:
    update = selection.deselect_sensitive("doc_1")
    assert update.applied == ("doc_1_text_0_1",)
    assert [s.id for s in selection.get_selected("doc_1")] == ["doc_1_text_0_0", "doc_1_text_0_2"]


def test_deselect_then_select_all(selection: SelectionStore) -> None:
    selection.deselect_all("doc_1")
    assert selection.get_selected("doc_1") == []
    selection.select_all("doc_1")
    assert len(selection.get_selected("doc_1")) == 3


def test_set_selection_reports_missing_section(selection: SelectionStore) -> None:
    assert selection.set_selection("doc_1", "doc_1_text_0_7", False) is False


def test_unknown_document_raises(selection: SelectionStore) -> None:
    with pytest.raises(DocumentNotFoundError):
        selection.get_selection_state("doc_missing")
    with pytest.raises(DocumentNotFoundError):
        selection.bulk_set_selection("doc_missing", {"x": True})


def test_failed_bulk_update_changes_nothing(selection: SelectionStore, store: SQLiteStore) -> None:
    store._conn.execute(
        "CREATE TRIGGER lock_last BEFORE UPDATE OF is_selected ON sections "
        "WHEN NEW.section_id = 'doc_1_text_0_2' "
        "BEGIN SELECT RAISE(ABORT, 'section is locked'); END"
    )
    with pytest.raises(PersistenceError):
        selection.bulk_set_selection(
            "doc_1", {"doc_1_text_0_0": False, "doc_1_text_0_1": False, "doc_1_text_0_2": False}
        )
    assert set(selection.get_selection_state("doc_1").values()) == {True}
