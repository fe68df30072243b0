"""Bounded undo/redo log of committed content snapshots."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from .store import utc_now

DEFAULT_HISTORY_LIMIT = 50


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    content: str
    committed_at: datetime


class HistoryLog:
    """Linear history with a movable index.

    ``commit`` drops anything after the index before appending, so redo is
    lost once a new entry lands after an undo. The oldest entries are evicted
    once ``limit`` is exceeded.
    """

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if limit < 1:
            raise ValueError("History limit must be at least 1")
        self.limit = limit
        self._entries: List[HistoryEntry] = []
        self._index: int = -1

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def index(self) -> int:
        return self._index

    @property
    def current(self) -> Optional[str]:
        if self._index < 0:
            return None
        return self._entries[self._index].content

    def entries(self) -> tuple[str, ...]:
        return tuple(entry.content for entry in self._entries)

    def commit(self, content: str) -> HistoryEntry:
        entry = HistoryEntry(content=content, committed_at=utc_now())
        del self._entries[self._index + 1 :]
        self._entries.append(entry)
        overflow = len(self._entries) - self.limit
        if overflow > 0:
            del self._entries[:overflow]
        self._index = len(self._entries) - 1
        return entry

    def can_undo(self) -> bool:
        return self._index > 0

    def can_redo(self) -> bool:
        return self._index < len(self._entries) - 1

    def undo(self) -> Optional[str]:
        if not self.can_undo():
            return None
        self._index -= 1
        return self._entries[self._index].content

    def redo(self) -> Optional[str]:
        if not self.can_redo():
            return None
        self._index += 1
        return self._entries[self._index].content

    def clear(self) -> None:
        self._entries.clear()
        self._index = -1
