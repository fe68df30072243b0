"""Current document text, title, and version counter."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

DEFAULT_TITLE = "Untitled Document"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class DocumentSnapshot:
    title: str
    content: str
    version: int
    last_modified: datetime


class DocumentStore:
    """Single-writer holder of the shared document.

    ``version`` starts at 1 and grows by one on every content change; title
    changes leave it alone.
    """

    def __init__(
        self,
        *,
        title: str = DEFAULT_TITLE,
        content: str = "",
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._clock = clock or utc_now
        self._title = title
        self._content = content
        self._version = 1
        self._last_modified = self._clock()

    @property
    def title(self) -> str:
        return self._title

    @property
    def content(self) -> str:
        return self._content

    @property
    def version(self) -> int:
        return self._version

    @property
    def last_modified(self) -> datetime:
        return self._last_modified

    def set_content(self, text: str) -> DocumentSnapshot:
        self._content = text
        self._version += 1
        self._last_modified = self._clock()
        return self.snapshot()

    def set_title(self, title: str) -> DocumentSnapshot:
        self._title = title
        return self.snapshot()

    def snapshot(self) -> DocumentSnapshot:
        return DocumentSnapshot(
            title=self._title,
            content=self._content,
            version=self._version,
            last_modified=self._last_modified,
        )
