"""Editing session: one document, its history, and participant cursors."""

from __future__ import annotations

import random
from contextlib import AbstractContextManager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from collab_editor.document import (
    DocumentSnapshot,
    DocumentStats,
    DocumentStore,
    HistoryLog,
    document_stats,
)
from collab_editor.editing import (
    Alignment,
    FormatKind,
    FormattingState,
    ImportedDocument,
    Selection,
    decode_import,
    export_text,
    read_import,
    wrap_selection,
    write_export,
)
from collab_editor.presence import (
    CursorPosition,
    CursorRegistry,
    CursorUpdate,
    SimulatedCursorFeed,
    User,
    apply_cursor_updates,
    position_of,
)
from collab_editor.runtime import telemetry
from collab_editor.runtime.scheduler import Debouncer, ScheduledTask, TaskScheduler
from collab_editor.runtime.settings import EditorSettings

LOCAL_USER_ID = "local"


class SessionClosedError(RuntimeError):
    """Raised when a closed session is asked to do anything."""


class SessionBus:
    """Synchronous pub/sub for session events."""

    def __init__(self) -> None:
        self._subscribers: Dict[str, List[Callable[[object], None]]] = {}

    def subscribe(self, event: str, callback: Callable[[object], None]) -> None:
        self._subscribers.setdefault(event, []).append(callback)

    def unsubscribe(self, event: str, callback: Callable[[object], None]) -> None:
        callbacks = self._subscribers.get(event, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def emit(self, event: str, payload: object | None = None) -> None:
        for callback in list(self._subscribers.get(event, [])):
            callback(payload)


@dataclass(frozen=True, slots=True)
class PresenceRow:
    user: User
    position: CursorPosition
    is_local: bool
    typing: bool = False


def local_user() -> User:
    return User(id=LOCAL_USER_ID, display_name="You", color="#3B82F6")


def demo_participants() -> Tuple[User, ...]:
    """Mock collaborators shown when no real presence channel is wired up."""

    return (
        User(id="alice", display_name="Alice", color="#EF4444", cursor_offset=15),
        User(
            id="bob",
            display_name="Bob",
            color="#10B981",
            cursor_offset=32,
            active=False,
        ),
    )


class EditorSession(AbstractContextManager["EditorSession"]):
    """Owns the document, history and cursors for one editing session.

    Content edits are committed to history only once ``settings.debounce_ms``
    has passed without another edit. The host drives timers by calling
    ``process_timers``.
    """

    def __init__(
        self,
        settings: Optional[EditorSettings] = None,
        *,
        scheduler: Optional[TaskScheduler] = None,
        title: Optional[str] = None,
        content: str = "",
        user: Optional[User] = None,
        participants: Iterable[User] = (),
        rng: Optional[random.Random] = None,
    ) -> None:
        self.settings = settings or EditorSettings()
        self.scheduler = scheduler or TaskScheduler()
        self.bus = SessionBus()

        self.document = DocumentStore(
            title=title if title is not None else self.settings.default_title,
            content=content,
        )
        self.history = HistoryLog(limit=self.settings.history_limit)
        self.history.commit(content)

        me = user or local_user()
        self.cursors = CursorRegistry(
            lambda: self.document.content, local_user_id=me.id
        )
        self.cursors.register(me)
        for participant in participants:
            self.cursors.register(participant)

        self.formatting = FormattingState()
        self._selection: Optional[Selection] = None
        self._typing = False
        self._closed = False
        self._commit_debounce = Debouncer(
            self.scheduler,
            self.settings.debounce_ms,
            self._commit_now,
            name="history_commit",
        )
        self.cursor_feed = SimulatedCursorFeed(
            self.cursors,
            self.scheduler,
            interval_ms=self.settings.cursor_feed_interval_ms,
            move_probability=self.settings.cursor_move_probability,
            rng=rng,
        )
        self.cursor_feed.subscribe(self.apply_remote_cursor)

    # -- lifecycle ---------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._commit_debounce.cancel()
        self.cursor_feed.stop()
        self._closed = True
        telemetry.record_event(
            "session.closed", data={"version": self.document.version}
        )
        self.bus.emit("session.closed", None)

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError("Editor session is closed")

    # -- queries -----------------------------------------------------------

    @property
    def local_user_id(self):
        return self.cursors.local_user_id

    @property
    def typing(self) -> bool:
        return self._typing

    @property
    def selection(self) -> Optional[Selection]:
        return self._selection

    @property
    def selected_text(self) -> str:
        if self._selection is None:
            return ""
        return self._selection.text(self.document.content)

    @property
    def can_undo(self) -> bool:
        # a pending commit is flushed before undoing
        return self._commit_debounce.pending or self.history.can_undo()

    @property
    def can_redo(self) -> bool:
        return not self._commit_debounce.pending and self.history.can_redo()

    @property
    def commit_pending(self) -> bool:
        return self._commit_debounce.pending

    def snapshot(self) -> DocumentSnapshot:
        return self.document.snapshot()

    def stats(self) -> DocumentStats:
        return document_stats(self.document.content)

    def presence(self) -> Tuple[PresenceRow, ...]:
        content = self.document.content
        return tuple(
            PresenceRow(
                user=user,
                position=position_of(user.cursor_offset, content),
                is_local=user.id == self.local_user_id,
                typing=self._typing and user.id == self.local_user_id,
            )
            for user in self.cursors.active_users()
        )

    # -- local edits -------------------------------------------------------

    def edit(self, content: str, *, cursor: Optional[int] = None) -> DocumentSnapshot:
        """Replace the text after a local change and restart the commit timer."""

        self._ensure_open()
        with telemetry.span(
            name="session::edit",
            component="session",
            metadata={"length": len(content)},
        ):
            snapshot = self.document.set_content(content)
            self._selection = None
            self._move_local_cursor(cursor)
            self._set_typing(True)
            self._commit_debounce.trigger()
        self.bus.emit("document.changed", snapshot)
        return snapshot

    def set_title(self, title: str) -> DocumentSnapshot:
        self._ensure_open()
        snapshot = self.document.set_title(title)
        self.bus.emit("document.title", snapshot)
        return snapshot

    def select(self, start: int, end: int) -> Selection:
        """Record a selection; the local cursor follows ``end``."""

        self._ensure_open()
        selection = Selection.between(start, end, self.document.content)
        self._selection = selection
        self._move_local_cursor(end)
        return selection

    def move_cursor(self, offset: int) -> User:
        self._ensure_open()
        self._selection = None
        return self._move_local_cursor(offset)

    def apply_format(self, kind: FormatKind | str) -> bool:
        """Wrap the selection in markers; ``False`` when nothing is selected."""

        self._ensure_open()
        kind = FormatKind(kind)
        selection = self._selection
        if selection is None:
            return False
        updated = wrap_selection(self.document.content, selection, kind)
        if updated is None:
            return False
        self.edit(updated, cursor=selection.end + 2 * len(kind.marker))
        active = self.formatting.toggle(kind)
        self.bus.emit(
            "format.applied",
            {"kind": kind.value, "active": active, "selection": selection},
        )
        return True

    def set_alignment(self, alignment: Alignment | str) -> Alignment:
        self._ensure_open()
        value = self.formatting.align(alignment)
        self.bus.emit("format.applied", {"align": value.value})
        return value

    # -- history -----------------------------------------------------------

    def undo(self) -> Optional[str]:
        self._ensure_open()
        self._commit_debounce.flush()
        content = self.history.undo()
        if content is None:
            return None
        self._restore(content)
        telemetry.record_event("history.undo", data={"index": self.history.index})
        self.bus.emit("history.undo", content)
        return content

    def redo(self) -> Optional[str]:
        self._ensure_open()
        if self._commit_debounce.pending:
            return None
        content = self.history.redo()
        if content is None:
            return None
        self._restore(content)
        telemetry.record_event("history.redo", data={"index": self.history.index})
        self.bus.emit("history.redo", content)
        return content

    def commit_now(self) -> None:
        """Commit immediately instead of waiting for the quiet interval."""

        self._ensure_open()
        if not self._commit_debounce.flush():
            self._commit_now()

    def process_timers(self) -> List[ScheduledTask]:
        if self._closed:
            return []
        return self.scheduler.run_due()

    # -- files -------------------------------------------------------------

    def import_file(self, path: str | Path) -> DocumentSnapshot:
        self._ensure_open()
        imported = read_import(path, accepted_suffixes=self.settings.accepted_suffixes)
        return self._load(imported)

    def import_bytes(self, filename: str, data: bytes) -> DocumentSnapshot:
        self._ensure_open()
        imported = decode_import(
            filename, data, accepted_suffixes=self.settings.accepted_suffixes
        )
        return self._load(imported)

    def export_payload(self) -> Tuple[str, str]:
        return export_text(
            self.document.snapshot(), fallback_title=self.settings.default_title
        )

    def export_to(self, directory: str | Path) -> Path:
        self._ensure_open()
        target = write_export(
            self.document.snapshot(),
            directory,
            fallback_title=self.settings.default_title,
        )
        telemetry.record_event("document.exported", data={"path": str(target)})
        return target

    # -- remote presence ---------------------------------------------------

    def apply_remote_cursor(self, update: CursorUpdate) -> bool:
        return self.apply_remote_cursors((update,)) == 1

    def apply_remote_cursors(self, updates: Iterable[CursorUpdate]) -> int:
        """Apply inbound updates; the local user is only moved by local input."""

        self._ensure_open()
        accepted = []
        for update in updates:
            if update.user_id == self.local_user_id:
                telemetry.record_event(
                    "cursor.update_dropped",
                    level="warning",
                    data={"user": update.user_id, "reason": "local user"},
                )
                continue
            accepted.append(update)
        applied = apply_cursor_updates(self.cursors, accepted)
        if applied:
            self.bus.emit("cursor.moved", None)
        return applied

    def start_simulation(self) -> None:
        self._ensure_open()
        self.cursor_feed.start()

    def stop_simulation(self) -> None:
        self.cursor_feed.stop()

    # -- internals ---------------------------------------------------------

    def _commit_now(self) -> None:
        content = self.document.content
        self.history.commit(content)
        self._set_typing(False)
        telemetry.record_event(
            "history.commit",
            data={
                "version": self.document.version,
                "entries": len(self.history),
                "index": self.history.index,
            },
        )
        self.bus.emit("history.commit", content)

    def _restore(self, content: str) -> None:
        snapshot = self.document.set_content(content)
        self._selection = None
        self._move_local_cursor(None)
        self.bus.emit("document.changed", snapshot)

    def _load(self, imported: ImportedDocument) -> DocumentSnapshot:
        with telemetry.span(
            name="session::import",
            component="session",
            metadata={"title": imported.title},
        ):
            self._commit_debounce.cancel()
            self.document.set_content(imported.content)
            snapshot = self.document.set_title(imported.title)
            self._selection = None
            self._move_local_cursor(None)
            self.history.commit(imported.content)
            self._set_typing(False)
        telemetry.record_event(
            "document.imported",
            data={"title": imported.title, "length": len(imported.content)},
        )
        self.bus.emit("document.imported", snapshot)
        self.bus.emit("document.changed", snapshot)
        return snapshot

    def _move_local_cursor(self, offset: Optional[int]) -> User:
        if offset is None:
            offset = self.cursors.offset_of(self.local_user_id)
        user = self.cursors.update_cursor(self.local_user_id, offset)
        self.bus.emit("cursor.moved", self.local_user_id)
        return user

    def _set_typing(self, typing: bool) -> None:
        if self._typing == typing:
            return
        self._typing = typing
        self.bus.emit("typing.changed", typing)


__all__ = [
    "EditorSession",
    "LOCAL_USER_ID",
    "PresenceRow",
    "SessionBus",
    "SessionClosedError",
    "demo_participants",
    "local_user",
]
