from __future__ import annotations

from pathlib import Path
from typing import List

import pytest

from collab_editor.adapters.textual import (
    DocumentView,
    TextualEditorAdapter,
    TextualUIHooks,
    location_for_offset,
    offset_for_location,
)
from collab_editor.runtime import EditorSettings
from collab_editor.runtime.scheduler import ManualClock, TaskScheduler
from collab_editor.session import EditorSession, demo_participants


def make_session(content: str = "") -> tuple[EditorSession, ManualClock]:
    clock = ManualClock()
    session = EditorSession(
        EditorSettings(debounce_ms=1000),
        scheduler=TaskScheduler(clock),
        content=content,
        participants=demo_participants(),
    )
    return session, clock


def test_adapter_pushes_initial_state() -> None:
    session, _ = make_session("hello")
    views: List[DocumentView] = []
    presence: List[tuple] = []

    TextualEditorAdapter(
        session,
        TextualUIHooks(update_document=views.append, update_presence=presence.append),
    )

    assert views[-1].content == "hello"
    assert views[-1].version == 1
    assert not views[-1].can_undo
    assert [row.user.id for row in presence[-1]] == ["local", "alice"]


def test_adapter_edit_then_timer_commits_and_reports() -> None:
    session, clock = make_session()
    views: List[DocumentView] = []
    statuses: List[str] = []
    adapter = TextualEditorAdapter(
        session,
        TextualUIHooks(update_document=views.append, update_status=statuses.append),
    )

    assert adapter.handle_edit("draft", cursor=5) is True
    assert views[-1].typing
    assert views[-1].can_undo

    clock.advance_ms(1000)
    assert adapter.process_timers() == 1

    assert "saved to history" in statuses
    assert not views[-1].typing
    assert views[-1].stats.words == 1


def test_adapter_ignores_echoed_text() -> None:
    session, _ = make_session("same")
    adapter = TextualEditorAdapter(session, TextualUIHooks(update_document=lambda v: None))

    assert adapter.handle_edit("same", cursor=2) is False
    assert session.document.version == 1
    assert session.cursors.offset_of("local") == 2


def test_adapter_actions_format_and_undo() -> None:
    session, _ = make_session("one two")
    views: List[DocumentView] = []
    statuses: List[str] = []
    adapter = TextualEditorAdapter(
        session,
        TextualUIHooks(update_document=views.append, update_status=statuses.append),
    )

    assert adapter.handle_action("bold") is False
    assert statuses[-1] == "bold: select some text first"

    adapter.handle_selection(4, 7)
    assert views[-1].selected_chars == 3
    assert adapter.handle_action("underline") is True
    assert session.document.content == "one __two__"
    assert views[-1].formatting["underline"] is True

    assert adapter.handle_action("undo") is True
    assert session.document.content == "one two"

    assert adapter.handle_action("align_right") is True
    assert views[-1].formatting["align"] == "right"


def test_adapter_rejects_unknown_action() -> None:
    session, _ = make_session()
    adapter = TextualEditorAdapter(session, TextualUIHooks(update_document=lambda v: None))

    with pytest.raises(KeyError):
        adapter.handle_action("strikethrough")


def test_adapter_surfaces_import_errors(tmp_path: Path) -> None:
    session, _ = make_session("keep")
    statuses: List[str] = []
    adapter = TextualEditorAdapter(
        session,
        TextualUIHooks(update_document=lambda v: None, update_status=statuses.append),
    )

    assert adapter.handle_import(tmp_path / "missing.md") is False
    assert statuses[-1].startswith("import failed")
    assert session.document.content == "keep"


def test_adapter_import_and_export(tmp_path: Path) -> None:
    session, _ = make_session()
    source = tmp_path / "story.md"
    source.write_text("once upon a time", encoding="utf-8")
    statuses: List[str] = []
    adapter = TextualEditorAdapter(
        session,
        TextualUIHooks(update_document=lambda v: None, update_status=statuses.append),
    )

    assert adapter.handle_import(source) is True
    target = adapter.handle_export(tmp_path / "out")

    assert target.name == "story.txt"
    assert target.read_text(encoding="utf-8") == "once upon a time"
    assert statuses[-1] == "exported story.txt"


def test_adapter_emits_log_lines() -> None:
    session, _ = make_session()
    logs: List[str] = []
    adapter = TextualEditorAdapter(
        session, TextualUIHooks(update_document=lambda v: None, log=logs.append)
    )

    adapter.handle_edit("x")

    assert any(line.startswith("edit ->") for line in logs)
    assert any(line.startswith("event ->") for line in logs)


@pytest.mark.parametrize(
    ("text", "location", "offset"),
    [
        ("", (0, 0), 0),
        ("ab\ncd", (1, 2), 5),
        ("ab\ncd", (0, 9), 2),
        ("ab\ncd", (7, 0), 3),
        ("ab\n", (1, 0), 3),
    ],
)
def test_offset_location_conversion(text: str, location: tuple, offset: int) -> None:
    assert offset_for_location(text, location) == offset


def test_location_for_offset_round_trips_line_starts() -> None:
    assert location_for_offset("ab\ncd", 3) == (1, 0)
    assert location_for_offset("ab\ncd", 99) == (1, 2)
