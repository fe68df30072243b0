"""Inline markdown-style markers spliced around a text selection."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional


class FormatKind(str, Enum):
    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"

    @property
    def marker(self) -> str:
        return _MARKERS[self]


_MARKERS = {
    FormatKind.BOLD: "**",
    FormatKind.ITALIC: "*",
    FormatKind.UNDERLINE: "__",
}


class Alignment(str, Enum):
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


@dataclass(frozen=True, slots=True)
class Selection:
    start: int
    end: int

    @classmethod
    def between(cls, anchor: int, head: int, content: str) -> "Selection":
        """Normalise to ``start <= end`` and clamp both ends to ``content``."""

        limit = len(content)
        first, second = sorted((anchor, head))
        return cls(max(0, min(first, limit)), max(0, min(second, limit)))

    @property
    def empty(self) -> bool:
        return self.start == self.end

    def text(self, content: str) -> str:
        return content[self.start : self.end]


def wrap_selection(
    content: str, selection: Selection, kind: FormatKind
) -> Optional[str]:
    """Return ``content`` with markers around the selection, or ``None`` if empty.

    Markers are always added; an already wrapped span gets a second layer.
    """

    if selection.empty:
        return None
    marker = FormatKind(kind).marker
    return (
        content[: selection.start]
        + marker
        + selection.text(content)
        + marker
        + content[selection.end :]
    )


@dataclass(slots=True)
class FormattingState:
    """Toolbar flags. They are display state only and never read the text."""

    flags: Dict[FormatKind, bool] = field(
        default_factory=lambda: {kind: False for kind in FormatKind}
    )
    alignment: Alignment = Alignment.LEFT

    def toggle(self, kind: FormatKind) -> bool:
        kind = FormatKind(kind)
        self.flags[kind] = not self.flags[kind]
        return self.flags[kind]

    def is_active(self, kind: FormatKind) -> bool:
        return self.flags[FormatKind(kind)]

    def align(self, alignment: Alignment) -> Alignment:
        self.alignment = Alignment(alignment)
        return self.alignment

    def as_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {kind.value: value for kind, value in self.flags.items()}
        data["align"] = self.alignment.value
        return data
