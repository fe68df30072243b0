"""Word, character, and line counts for the status bar."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class DocumentStats:
    words: int
    characters: int
    lines: int


def document_stats(text: str) -> DocumentStats:
    # an empty document still shows one line
    return DocumentStats(
        words=len(text.split()),
        characters=len(text),
        lines=text.count("\n") + 1,
    )
