"""Persistence of documents, sections and selection flags."""

from .base import TERMINAL_STATUSES, AnalysisStatus, DocumentRecord, PersistenceStore
from .sqlite_store import SQLiteStore

__all__ = [
    "TERMINAL_STATUSES",
    "AnalysisStatus",
    "DocumentRecord",
    "PersistenceStore",
    "SQLiteStore",
]
