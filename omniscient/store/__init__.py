from __future__ import annotations

from ._store import HistoryStore
from .merge import EXPORT_VERSION, export_history, import_history, load_export, merge_records
from .search import sanitize_fts_query
from .types import (
    CategoryStats,
    CommandRecord,
    ExportStats,
    HistoryQuery,
    HistoryStats,
    ImportStrategy,
    MergeSummary,
    OrderBy,
    RecordOutcome,
)

__all__ = [
    "EXPORT_VERSION",
    "CategoryStats",
    "CommandRecord",
    "ExportStats",
    "HistoryQuery",
    "HistoryStats",
    "HistoryStore",
    "ImportStrategy",
    "MergeSummary",
    "OrderBy",
    "RecordOutcome",
    "export_history",
    "import_history",
    "load_export",
    "merge_records",
    "sanitize_fts_query",
]
