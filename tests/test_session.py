from pathlib import Path
from typing import List

import pytest

from collab_editor.editing import DocumentImportError, FormatKind
from collab_editor.presence import CursorPosition, CursorUpdate, User
from collab_editor.runtime import EditorSettings
from collab_editor.runtime.scheduler import ManualClock, TaskScheduler
from collab_editor.session import (
    LOCAL_USER_ID,
    EditorSession,
    SessionClosedError,
    demo_participants,
)
from collab_editor.document.store import utc_now


def make_session(
    content: str = "", *, debounce_ms: int = 1000, history_limit: int = 50, **kwargs
) -> tuple[EditorSession, ManualClock]:
    clock = ManualClock()
    settings = EditorSettings(debounce_ms=debounce_ms, history_limit=history_limit)
    session = EditorSession(
        settings, scheduler=TaskScheduler(clock), content=content, **kwargs
    )
    return session, clock


def settle(session: EditorSession, clock: ManualClock, ms: int = 1000) -> None:
    clock.advance_ms(ms)
    session.process_timers()


def test_initial_content_is_the_first_history_entry() -> None:
    session, _ = make_session("seed")

    assert session.history.entries() == ("seed",)
    assert session.document.version == 1
    assert not session.can_undo
    assert not session.can_redo


def test_rapid_edits_commit_once_after_quiet_interval() -> None:
    session, clock = make_session()
    commits: List[object] = []
    session.bus.subscribe("history.commit", commits.append)

    for text in ("h", "he", "hel", "hell", "hello"):
        session.edit(text)
        clock.advance_ms(300)
        session.process_timers()

    assert commits == []
    assert session.typing
    assert session.document.version == 6

    settle(session, clock, 699)
    assert commits == []
    settle(session, clock, 1)
    assert commits == ["hello"]
    assert session.history.entries() == ("", "hello")
    assert not session.typing


def test_undo_redo_walks_committed_history() -> None:
    session, clock = make_session()
    for text in ("a", "ab", "abc"):
        session.edit(text)
        settle(session, clock)

    assert session.undo() == "ab"
    assert session.document.content == "ab"
    assert session.undo() == "a"
    assert session.can_redo

    assert session.redo() == "ab"
    assert session.document.content == "ab"


def test_undo_at_boundary_is_a_noop() -> None:
    session, _ = make_session("only")
    version = session.document.version

    assert session.undo() is None
    assert session.redo() is None
    assert session.document.version == version


def test_undo_flushes_pending_typing_first() -> None:
    session, clock = make_session("start")
    session.edit("start typed")
    assert session.commit_pending
    assert session.can_undo

    assert session.undo() == "start"
    assert session.history.entries() == ("start", "start typed")
    assert session.redo() == "start typed"

    # the superseded debounce must not fire later
    settle(session, clock, 5000)
    assert session.history.entries() == ("start", "start typed")


def test_edit_after_undo_truncates_redo() -> None:
    session, clock = make_session()
    for text in ("a", "ab", "abc"):
        session.edit(text)
        settle(session, clock)
    session.undo()
    session.undo()

    session.edit("az")
    settle(session, clock)

    assert session.history.entries() == ("", "a", "az")
    assert session.redo() is None
    assert not session.can_redo


def test_undo_and_redo_bump_the_version() -> None:
    session, clock = make_session()
    session.edit("one")
    settle(session, clock)
    before = session.document.version

    session.undo()
    session.redo()

    assert session.document.version == before + 2


def test_history_limit_comes_from_settings() -> None:
    session, clock = make_session(history_limit=3)
    for i in range(10):
        session.edit(f"v{i}")
        settle(session, clock)

    assert session.history.entries() == ("v7", "v8", "v9")


def test_edit_moves_local_cursor_and_clamps() -> None:
    session, _ = make_session()

    session.edit("ab\ncd", cursor=5)
    assert session.cursors.position_for(LOCAL_USER_ID) == CursorPosition(2, 3)

    session.edit("ab", cursor=None)
    assert session.cursors.offset_of(LOCAL_USER_ID) == 2


def test_set_title_keeps_version() -> None:
    session, _ = make_session()

    snapshot = session.set_title("Plan")

    assert snapshot.title == "Plan"
    assert snapshot.version == 1


def test_apply_format_wraps_selection() -> None:
    session, clock = make_session("make this bold")
    formats: List[object] = []
    session.bus.subscribe("format.applied", formats.append)

    session.select(5, 9)
    assert session.selected_text == "this"
    assert session.apply_format(FormatKind.BOLD) is True

    assert session.document.content == "make **this** bold"
    assert session.formatting.is_active(FormatKind.BOLD)
    assert session.cursors.offset_of(LOCAL_USER_ID) == 13
    assert session.selection is None
    assert formats and formats[0]["kind"] == "bold"

    settle(session, clock)
    assert session.history.current == "make **this** bold"


def test_apply_format_without_selection_is_a_noop() -> None:
    session, _ = make_session("text")

    assert session.apply_format("italic") is False
    session.select(2, 2)
    assert session.apply_format("italic") is False
    assert session.document.content == "text"
    assert session.document.version == 1


def test_import_replaces_content_and_commits_immediately(tmp_path: Path) -> None:
    session, clock = make_session("draft")
    session.edit("draft edited")
    source = tmp_path / "chapter.txt"
    source.write_text("imported body", encoding="utf-8")

    snapshot = session.import_file(source)

    assert snapshot.title == "chapter"
    assert snapshot.content == "imported body"
    assert session.history.current == "imported body"
    assert not session.commit_pending

    # the cancelled debounce must not commit stale text
    settle(session, clock, 5000)
    assert session.history.entries() == ("draft", "imported body")


def test_import_bytes_failure_leaves_document_untouched() -> None:
    session, _ = make_session("keep")

    with pytest.raises(DocumentImportError):
        session.import_bytes("photo.jpg", b"\xff\xd8")

    assert session.document.content == "keep"


def test_export_writes_title_named_file(tmp_path: Path) -> None:
    session, _ = make_session("body", title="Notes")

    target = session.export_to(tmp_path)

    assert target.name == "Notes.txt"
    assert target.read_text(encoding="utf-8") == "body"
    assert session.export_payload() == ("Notes.txt", "body")


def test_remote_cursor_updates_never_move_local_user() -> None:
    session, _ = make_session("hello world", participants=demo_participants())
    session.edit("hello world", cursor=4)

    applied = session.apply_remote_cursors(
        [
            CursorUpdate("alice", 200, utc_now()),
            CursorUpdate(LOCAL_USER_ID, 0, utc_now()),
            CursorUpdate("nobody", 3, utc_now()),
        ]
    )

    assert applied == 1
    assert session.cursors.offset_of("alice") == 11
    assert session.cursors.offset_of(LOCAL_USER_ID) == 4


def test_presence_lists_active_users_in_order() -> None:
    session, _ = make_session("line one\nline two", participants=demo_participants())
    session.edit("line one\nline two", cursor=12)

    rows = session.presence()

    assert [row.user.id for row in rows] == [LOCAL_USER_ID, "alice"]
    assert rows[0].is_local and rows[0].typing
    assert rows[0].position == CursorPosition(2, 4)
    assert rows[1].position == CursorPosition(2, 7)


def test_simulation_moves_remote_cursors() -> None:
    class AlwaysMove:
        def random(self) -> float:
            return 0.0

        def choice(self, seq):
            return seq[0]

        def randrange(self, stop: int) -> int:
            return stop - 1

    session, clock = make_session(
        "abcdef",
        participants=[User(id="carol", display_name="Carol", color="#fff")],
        rng=AlwaysMove(),
    )
    session.start_simulation()

    settle(session, clock, 3000)

    assert session.cursors.offset_of("carol") == 5


def test_close_cancels_timers_and_blocks_operations() -> None:
    session, clock = make_session()
    commits: List[object] = []
    session.bus.subscribe("history.commit", commits.append)
    session.edit("pending")

    with session:
        pass

    assert session.closed
    settle(session, clock, 5000)
    assert commits == []
    with pytest.raises(SessionClosedError):
        session.edit("again")


def test_commit_now_bypasses_debounce() -> None:
    session, _ = make_session()
    session.edit("x")

    session.commit_now()

    assert session.history.entries() == ("", "x")
    assert not session.commit_pending


def test_export_of_blank_title_uses_default_title(tmp_path: Path) -> None:
    session, _ = make_session("body", title="")

    target = session.export_to(tmp_path)

    assert target == tmp_path / "Untitled Document.txt"
    assert session.export_payload() == ("Untitled Document.txt", "body")
