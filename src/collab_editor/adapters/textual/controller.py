"""Textual-agnostic adapter that wires an EditorSession into UI callbacks."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, Optional, Sequence, Tuple

from collab_editor.document import DocumentStats
from collab_editor.editing import Alignment, DocumentImportError, FormatKind
from collab_editor.session import EditorSession, PresenceRow

Location = Tuple[int, int]  # (row, column), both 0-based


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


@dataclass(slots=True)
class DocumentView:
    """Everything the host needs to redraw the editor chrome."""

    title: str
    content: str
    version: int
    last_modified: datetime
    can_undo: bool
    can_redo: bool
    typing: bool
    stats: DocumentStats
    selected_chars: int = 0
    formatting: Dict[str, object] = field(default_factory=dict)


@dataclass(slots=True)
class TextualUIHooks:
    """Callbacks invoked by the adapter to update Textual widgets."""

    update_document: Callable[[DocumentView], None]
    update_presence: Callable[[Tuple[PresenceRow, ...]], None] = _noop
    update_status: Callable[[str], None] = _noop
    handle_event: Callable[[str, object | None], None] = _noop
    log: Callable[[str], None] = _noop


def offset_for_location(text: str, location: Location) -> int:
    """Character offset of a 0-based ``(row, column)`` location, clamped."""

    lines = text.split("\n")
    row, col = location
    row = max(0, min(row, len(lines) - 1))
    offset = sum(len(line) + 1 for line in lines[:row])
    return offset + max(0, min(col, len(lines[row])))


def location_for_offset(text: str, offset: int) -> Location:
    head = text[: max(0, min(offset, len(text)))]
    return (head.count("\n"), len(head) - (head.rfind("\n") + 1))


class TextualEditorAdapter:
    """Bridges session bus events to a Textual-friendly surface."""

    EVENTS: Sequence[str] = (
        "document.changed",
        "document.title",
        "document.imported",
        "history.commit",
        "history.undo",
        "history.redo",
        "cursor.moved",
        "format.applied",
        "typing.changed",
        "session.closed",
    )

    def __init__(self, session: EditorSession, hooks: TextualUIHooks) -> None:
        self.session = session
        self.hooks = hooks
        self._subscribe_events()
        self._refresh_document()
        self._refresh_presence()

    # -- inbound from the host ---------------------------------------------

    def handle_edit(self, text: str, *, cursor: Optional[int] = None) -> bool:
        """Apply a host edit; echoes of our own updates are ignored."""

        if text == self.session.document.content:
            if cursor is not None:
                self.session.move_cursor(cursor)
            return False
        self._log_state("edit ->", length=len(text), cursor=cursor)
        self.session.edit(text, cursor=cursor)
        return True

    def handle_selection(self, start: int, end: int) -> None:
        self.session.select(start, end)
        self._refresh_document()

    def handle_title(self, title: str) -> None:
        if title != self.session.document.title:
            self.session.set_title(title)

    def handle_action(self, name: str) -> bool:
        """Run a toolbar action by name; returns whether anything changed."""

        self._log_state("action ->", action=name)
        if name == "undo":
            changed = self.session.undo() is not None
        elif name == "redo":
            changed = self.session.redo() is not None
        elif name in {kind.value for kind in FormatKind}:
            changed = self.session.apply_format(name)
            if not changed:
                self.hooks.update_status(f"{name}: select some text first")
        elif name.startswith("align_"):
            self.session.set_alignment(Alignment(name.removeprefix("align_")))
            changed = True
        else:
            raise KeyError(f"Unknown editor action '{name}'")
        self._refresh_document()
        return changed

    def handle_import(self, path: str | Path) -> bool:
        try:
            snapshot = self.session.import_file(path)
        except DocumentImportError as exc:
            self.hooks.update_status(f"import failed: {exc}")
            self._log_state("import !!", path=str(path), error=str(exc))
            return False
        self.hooks.update_status(f"imported {snapshot.title}")
        return True

    def handle_export(self, directory: str | Path) -> Path:
        target = self.session.export_to(directory)
        self.hooks.update_status(f"exported {target.name}")
        return target

    def process_timers(self) -> int:
        """Fire due timers and report how many ran."""

        fired = self.session.process_timers()
        for task in fired:
            self._log_state("timer ->", task=task.name)
        return len(fired)

    # -- outbound to the host ----------------------------------------------

    def document_view(self) -> DocumentView:
        session = self.session
        snapshot = session.snapshot()
        return DocumentView(
            title=snapshot.title,
            content=snapshot.content,
            version=snapshot.version,
            last_modified=snapshot.last_modified,
            can_undo=session.can_undo,
            can_redo=session.can_redo,
            typing=session.typing,
            stats=session.stats(),
            selected_chars=len(session.selected_text),
            formatting=session.formatting.as_dict(),
        )

    def _subscribe_events(self) -> None:
        for event in self.EVENTS:
            self.session.bus.subscribe(
                event, lambda payload, name=event: self._handle_event(name, payload)
            )

    def _handle_event(self, name: str, payload: object | None) -> None:
        self._log_state("event ->", event=name)
        self.hooks.handle_event(name, payload)
        if name == "session.closed":
            self.hooks.update_status("session closed")
            return
        if name == "cursor.moved":
            self._refresh_presence()
            return
        if name == "history.commit":
            self.hooks.update_status("saved to history")
        self._refresh_document()
        self._refresh_presence()

    def _refresh_document(self) -> None:
        self.hooks.update_document(self.document_view())

    def _refresh_presence(self) -> None:
        self.hooks.update_presence(self.session.presence())

    def _log_state(self, prefix: str, **fields: object) -> None:
        session = self.session
        parts = [
            prefix,
            f"version={session.document.version!r}",
            f"history={session.history.index}/{len(session.history)}",
        ]
        for key, value in fields.items():
            if value is not None:
                parts.append(f"{key}={value!r}")
        self.hooks.log(" ".join(parts))


__all__ = [
    "DocumentView",
    "TextualEditorAdapter",
    "TextualUIHooks",
    "location_for_offset",
    "offset_for_location",
]
