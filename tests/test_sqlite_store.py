"""Tests for the SQLite persistence store."""

from __future__ import annotations

from pathlib import Path

import pytest

from docshield.extract.models import LinkSection, MetadataSection, TextSection
from docshield.store import AnalysisStatus, DocumentRecord, SQLiteStore
from docshield.utils.errors import DocumentNotFoundError, PersistenceError


def _record(doc_id: str = "doc_1") -> DocumentRecord:
    return DocumentRecord(doc_id, "report.pdf", "application/pdf", 1024)


def _sections() -> list:
    return [
        MetadataSection(
            id="doc_1_metadata",
            index=0,
            content='{"Author": "A"}',
            preview="Document Metadata (1 fields)",
            length=15,
            entries={"Author": "A"},
        ),
        TextSection(
            id="doc_1_text_0_0",
            index=1,
            page_number=0,
            content="jane@example.com",
            preview="jane@example.com",
            length=16,
            has_sensitive_content=True,
            sensitive_patterns=("Email Address",),
            confidence=0.9,
            bounding_box=(1.0, 2.0, 3.0, 4.0),
        ),
        LinkSection(
            id="doc_1_link_1_0",
            index=2,
            page_number=1,
            content="https://example.com",
            preview="Link: https://example.com",
            length=19,
            uri="https://example.com",
        ),
    ]


def test_document_round_trip(store: SQLiteStore) -> None:
    store.create_document(_record())
    record = store.get_document("doc_1")
    assert record is not None
    assert record.status is AnalysisStatus.PENDING
    assert record.file_size == 1024
    assert record.created_at
    assert store.get_document("missing") is None


def test_status_lifecycle(store: SQLiteStore) -> None:
    store.create_document(_record())
    store.update_document_status("doc_1", AnalysisStatus.ANALYZING)
    store.update_document_status(
        "doc_1",
        AnalysisStatus.COMPLETED,
        total_sections=3,
        sensitive_sections=1,
        metadata={"pageCount": 2},
    )
    record = store.get_document("doc_1")
    assert record is not None
    assert record.status is AnalysisStatus.COMPLETED
    assert (record.total_sections, record.sensitive_sections) == (3, 1)
    assert record.metadata == {"pageCount": 2}


def test_terminal_status_is_final(store: SQLiteStore) -> None:
    store.create_document(_record())
    store.update_document_status("doc_1", AnalysisStatus.FAILED, failure_reason="boom")
    with pytest.raises(PersistenceError):
        store.update_document_status("doc_1", AnalysisStatus.ANALYZING)
    record = store.get_document("doc_1")
    assert record is not None
    assert record.status is AnalysisStatus.FAILED
    assert record.failure_reason == "boom"


def test_update_unknown_document(store: SQLiteStore) -> None:
    with pytest.raises(DocumentNotFoundError):
        store.update_document_status("nope", AnalysisStatus.ANALYZING)


def test_duplicate_document_is_rejected(store: SQLiteStore) -> None:
    store.create_document(_record())
    with pytest.raises(PersistenceError):
        store.create_document(_record())


def test_sections_round_trip_in_order(store: SQLiteStore) -> None:
    store.create_document(_record())
    sections = _sections()
    store.create_sections("doc_1", reversed(sections))
    assert store.get_sections("doc_1") == sections
    assert store.get_sections("doc_1", page_number=1) == [sections[2]]


def test_sections_need_a_document(store: SQLiteStore) -> None:
    with pytest.raises(PersistenceError):
        store.create_sections("ghost", _sections())


def test_section_batch_is_atomic(store: SQLiteStore) -> None:
    store.create_document(_record())
    sections = _sections()
    with pytest.raises(PersistenceError):
        store.create_sections("doc_1", [sections[0], sections[1], sections[0]])
    assert store.get_sections("doc_1") == []


def test_selection_defaults_and_updates(store: SQLiteStore) -> None:
    store.create_document(_record())
    store.create_sections("doc_1", _sections())
    assert set(store.get_selection_state("doc_1").values()) == {True}

    assert store.set_selection("doc_1", "doc_1_text_0_0", False) is True
    assert store.set_selection("doc_1", "nope", False) is False
    assert [s.id for s in store.get_selected_sections("doc_1")] == [
        "doc_1_metadata",
        "doc_1_link_1_0",
    ]


def test_bulk_update_reports_unknown_ids(store: SQLiteStore) -> None:
    store.create_document(_record())
    store.create_sections("doc_1", _sections())
    unknown = store.update_selection_bulk(
        "doc_1", {"doc_1_metadata": False, "ghost": False, "doc_1_link_1_0": False}
    )
    assert unknown == ["ghost"]
    assert store.get_selection_state("doc_1") == {
        "doc_1_metadata": False,
        "doc_1_text_0_0": True,
        "doc_1_link_1_0": False,
    }


def _lock_section(store: SQLiteStore, section_id: str) -> None:
    store._conn.execute(
        "CREATE TRIGGER lock_section BEFORE UPDATE OF is_selected ON sections "
        f"WHEN NEW.section_id = '{section_id}' "
        "BEGIN SELECT RAISE(ABORT, 'section is locked'); END"
    )


def test_bulk_update_rolls_back_on_failure(store: SQLiteStore) -> None:
    store.create_document(_record())
    store.create_sections("doc_1", _sections())
    store.set_selection("doc_1", "doc_1_text_0_0", False)
    before = store.get_selection_state("doc_1")
    _lock_section(store, "doc_1_link_1_0")

    with pytest.raises(PersistenceError, match="section is locked"):
        store.update_selection_bulk(
            "doc_1",
            {"doc_1_metadata": False, "doc_1_text_0_0": True, "doc_1_link_1_0": False},
        )
    assert store.get_selection_state("doc_1") == before


def test_file_database_persists(tmp_path: Path) -> None:
    path = tmp_path / "docs.db"
    with SQLiteStore(path) as first:
        first.create_document(_record())
        first.create_sections("doc_1", _sections())
    with SQLiteStore(path) as second:
        assert second.get_document("doc_1") is not None
        assert len(second.get_sections("doc_1")) == 3
