"""Document storage, edit history, and text statistics."""

from .history import DEFAULT_HISTORY_LIMIT, HistoryEntry, HistoryLog
from .stats import DocumentStats, document_stats
from .store import DEFAULT_TITLE, DocumentSnapshot, DocumentStore

__all__ = [
    "DEFAULT_HISTORY_LIMIT",
    "DEFAULT_TITLE",
    "DocumentSnapshot",
    "DocumentStats",
    "DocumentStore",
    "HistoryEntry",
    "HistoryLog",
    "document_stats",
]
