"""SQLite implementation of :class:`~docshield.store.base.PersistenceStore`.

One connection is shared by all callers and guarded by a re-entrant lock.
Every write runs inside ``with connection:`` so it either commits as a whole
or rolls back.  ``sqlite3.Error`` is re-raised as
:class:`~docshield.utils.errors.PersistenceError`.
"""

from __future__ import annotations

import json
import os
import sqlite3
import threading
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

from docshield.extract.models import ContentSection, build_section, variant_fields
from docshield.utils.errors import DocumentNotFoundError, PersistenceError
from docshield.utils.logging import get_logger

from .base import AnalysisStatus, DocumentRecord

__all__ = ["SQLiteStore"]

logger = get_logger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SQLiteStore:
    """Documents, sections and selection flags in a SQLite database."""

    CREATE_TABLES_SQL = (
        """
        CREATE TABLE IF NOT EXISTS documents (
            document_id TEXT PRIMARY KEY,
            file_name TEXT NOT NULL,
            file_type TEXT NOT NULL,
            file_size INTEGER NOT NULL,
            analysis_status TEXT NOT NULL DEFAULT 'pending'
                CHECK (analysis_status IN ('pending', 'analyzing', 'completed', 'failed')),
            total_sections INTEGER NOT NULL DEFAULT 0,
            sensitive_sections INTEGER NOT NULL DEFAULT 0,
            failure_reason TEXT,
            metadata TEXT NOT NULL DEFAULT '{}',
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS sections (
            document_id TEXT NOT NULL REFERENCES documents(document_id),
            section_id TEXT NOT NULL,
            section_type TEXT NOT NULL
                CHECK (section_type IN ('text', 'image', 'metadata', 'form', 'link', 'annotation')),
            section_index INTEGER NOT NULL,
            page_number INTEGER,
            content TEXT NOT NULL,
            content_preview TEXT NOT NULL,
            content_length INTEGER NOT NULL,
            has_sensitive_content INTEGER NOT NULL DEFAULT 0,
            sensitive_patterns TEXT NOT NULL DEFAULT '[]',
            confidence_score REAL NOT NULL DEFAULT 0.0,
            bounding_box TEXT,
            metadata TEXT NOT NULL DEFAULT '{}',
            details TEXT NOT NULL DEFAULT '{}',
            is_selected INTEGER NOT NULL DEFAULT 1,
            PRIMARY KEY (document_id, section_id)
        )
        """,
        "CREATE INDEX IF NOT EXISTS idx_sections_order ON sections(document_id, section_index)",
    )

    def __init__(self, path: str | os.PathLike[str] = ":memory:") -> None:
        self.path = str(path)
        self._lock = threading.RLock()
        try:
            self._conn = sqlite3.connect(self.path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
            with self._conn:
                for statement in self.CREATE_TABLES_SQL:
                    self._conn.execute(statement)
        except sqlite3.Error as exc:
            raise PersistenceError(f"cannot open database {self.path!r}: {exc}") from exc

    def __enter__(self) -> "SQLiteStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @contextmanager
    def _transaction(self, action: str) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                with self._conn:
                    yield self._conn
            except sqlite3.Error as exc:
                logger.error("Rolled back %s: %s", action, exc)
                raise PersistenceError(f"{action} failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def create_document(self, record: DocumentRecord) -> None:
        created = record.created_at or _now()
        with self._transaction("create document") as conn:
            conn.execute(
                """
                INSERT INTO documents (document_id, file_name, file_type, file_size,
                    analysis_status, total_sections, sensitive_sections, failure_reason,
                    metadata, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.document_id,
                    record.file_name,
                    record.file_type,
                    record.file_size,
                    record.status.value,
                    record.total_sections,
                    record.sensitive_sections,
                    record.failure_reason,
                    json.dumps(record.metadata),
                    created,
                    record.updated_at or created,
                ),
            )

    def update_document_status(
        self,
        document_id: str,
        status: AnalysisStatus,
        *,
        total_sections: int | None = None,
        sensitive_sections: int | None = None,
        metadata: Mapping[str, Any] | None = None,
        failure_reason: str | None = None,
    ) -> None:
        assignments = ["analysis_status = ?", "updated_at = ?"]
        values: list[Any] = [status.value, _now()]
        for column, value in (
            ("total_sections", total_sections),
            ("sensitive_sections", sensitive_sections),
            ("failure_reason", failure_reason),
        ):
            if value is not None:
                assignments.append(f"{column} = ?")
                values.append(value)
        if metadata is not None:
            assignments.append("metadata = ?")
            values.append(json.dumps(dict(metadata)))

        with self._transaction("update document status") as conn:
            row = conn.execute(
                "SELECT analysis_status FROM documents WHERE document_id = ?", (document_id,)
            ).fetchone()
            if row is None:
                raise DocumentNotFoundError(document_id)
            current = AnalysisStatus(row["analysis_status"])
            if current.is_terminal:
                raise PersistenceError(
                    f"document {document_id} is already {current.value}; cannot move to "
                    f"{status.value}"
                )
            conn.execute(
                f"UPDATE documents SET {', '.join(assignments)} WHERE document_id = ?",
                (*values, document_id),
            )

    def get_document(self, document_id: str) -> DocumentRecord | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT * FROM documents WHERE document_id = ?", (document_id,)
            ).fetchone()
        if row is None:
            return None
        return DocumentRecord(
            document_id=row["document_id"],
            file_name=row["file_name"],
            file_type=row["file_type"],
            file_size=row["file_size"],
            status=AnalysisStatus(row["analysis_status"]),
            total_sections=row["total_sections"],
            sensitive_sections=row["sensitive_sections"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            metadata=json.loads(row["metadata"] or "{}"),
            failure_reason=row["failure_reason"],
        )

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def create_section(
        self, document_id: str, section: ContentSection, *, selected: bool = True
    ) -> None:
        self.create_sections(document_id, [section], selected=selected)

    def create_sections(
        self, document_id: str, sections: Iterable[ContentSection], *, selected: bool = True
    ) -> None:
        rows = [self._section_row(document_id, s, selected) for s in sections]
        with self._transaction("create sections") as conn:
            conn.executemany(
                """
                INSERT INTO sections (document_id, section_id, section_type, section_index,
                    page_number, content, content_preview, content_length,
                    has_sensitive_content, sensitive_patterns, confidence_score,
                    bounding_box, metadata, details, is_selected)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                rows,
            )
        logger.debug("Stored %d sections for %s", len(rows), document_id)

    def get_sections(
        self, document_id: str, page_number: int | None = None
    ) -> list[ContentSection]:
        query = "SELECT * FROM sections WHERE document_id = ?"
        params: list[Any] = [document_id]
        if page_number is not None:
            query += " AND page_number = ?"
            params.append(page_number)
        return self._fetch_sections(query + " ORDER BY section_index", params)

    def get_selected_sections(self, document_id: str) -> list[ContentSection]:
        return self._fetch_sections(
            "SELECT * FROM sections WHERE document_id = ? AND is_selected = 1 "
            "ORDER BY section_index",
            [document_id],
        )

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def set_selection(self, document_id: str, section_id: str, selected: bool) -> bool:
        with self._transaction("set selection") as conn:
            cursor = conn.execute(
                "UPDATE sections SET is_selected = ? WHERE document_id = ? AND section_id = ?",
                (int(selected), document_id, section_id),
            )
        return cursor.rowcount > 0

    def update_selection_bulk(self, document_id: str, flags: Mapping[str, bool]) -> list[str]:
        with self._transaction("bulk selection update") as conn:
            known = {
                row["section_id"]
                for row in conn.execute(
                    "SELECT section_id FROM sections WHERE document_id = ?", (document_id,)
                )
            }
            unknown = [sid for sid in flags if sid not in known]
            conn.executemany(
                "UPDATE sections SET is_selected = ? WHERE document_id = ? AND section_id = ?",
                [(int(bool(v)), document_id, sid) for sid, v in flags.items() if sid in known],
            )
        if unknown:
            logger.info("Ignored %d unknown section ids for %s", len(unknown), document_id)
        return unknown

    def get_selection_state(self, document_id: str) -> dict[str, bool]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT section_id, is_selected FROM sections WHERE document_id = ? "
                "ORDER BY section_index",
                (document_id,),
            ).fetchall()
        return {row["section_id"]: bool(row["is_selected"]) for row in rows}

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # ------------------------------------------------------------------
    # Row conversion
    # ------------------------------------------------------------------

    @staticmethod
    def _section_row(document_id: str, section: ContentSection, selected: bool) -> tuple[Any, ...]:
        return (
            document_id,
            section.id,
            section.type.value,
            section.index,
            section.page_number,
            section.content,
            section.preview,
            section.length,
            int(section.has_sensitive_content),
            json.dumps(list(section.sensitive_patterns)),
            section.confidence,
            json.dumps(list(section.bounding_box)) if section.bounding_box else None,
            json.dumps(section.metadata),
            json.dumps(variant_fields(section)),
            int(selected),
        )

    def _fetch_sections(self, query: str, params: list[Any]) -> list[ContentSection]:
        try:
            with self._lock:
                rows = self._conn.execute(query, params).fetchall()
        except sqlite3.Error as exc:
            raise PersistenceError(f"section query failed: {exc}") from exc
        return [self._row_to_section(row) for row in rows]

    @staticmethod
    def _row_to_section(row: sqlite3.Row) -> ContentSection:
        bbox = json.loads(row["bounding_box"]) if row["bounding_box"] else None
        return build_section(
            row["section_type"],
            id=row["section_id"],
            index=row["section_index"],
            page_number=row["page_number"],
            content=row["content"],
            preview=row["content_preview"],
            length=row["content_length"],
            has_sensitive_content=bool(row["has_sensitive_content"]),
            sensitive_patterns=json.loads(row["sensitive_patterns"]),
            confidence=row["confidence_score"],
            bounding_box=bbox,
            metadata=json.loads(row["metadata"]),
            **json.loads(row["details"]),
        )
