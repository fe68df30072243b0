"""Executable Textual app that hosts an editing session."""

from __future__ import annotations

import argparse
import os
import random
from pathlib import Path
from typing import Optional, Sequence, Tuple

try:  # pragma: no cover - imported only when the app is run
    from textual.app import App, ComposeResult
    from textual.containers import Horizontal, Vertical
    from textual.widgets import Footer, Header, Input, Static, TextArea
except ModuleNotFoundError as exc:  # pragma: no cover - friendly error for missing dep
    raise RuntimeError(
        "Install the 'textual' package to use collab_editor.adapters.textual.app"
    ) from exc

from collab_editor.runtime import telemetry
from collab_editor.runtime.settings import EditorSettings
from collab_editor.session import EditorSession, PresenceRow, demo_participants

from .controller import (
    DocumentView,
    TextualEditorAdapter,
    TextualUIHooks,
    location_for_offset,
    offset_for_location,
)

_ALIGN_CYCLE = ("align_left", "align_center", "align_right")


def create_session(
    settings: Optional[EditorSettings] = None,
    *,
    simulate: bool = True,
    seed: Optional[int] = None,
) -> EditorSession:
    """Build a session with the demo participants and optional mock cursors."""

    session = EditorSession(
        settings or EditorSettings.from_env(),
        participants=demo_participants(),
        rng=random.Random(seed),
    )
    if simulate:
        session.start_simulation()
    return session


class CollabEditorApp(App[None]):
    """Single-document editor with a presence sidebar and status bar."""

    CSS = """
	Screen {
		layout: vertical;
	}

	#title {
		height: 3;
	}

	#users {
		width: 28;
		border: round $accent;
		padding: 0 1;
	}

	#editor {
		width: 1fr;
	}

	#stats, #status-line {
		height: 1;
		padding: 0 1;
		background: $surface-darken-1;
	}
	"""

    BINDINGS = [
        ("ctrl+q", "quit", "Quit"),
        ("ctrl+z", "editor('undo')", "Undo"),
        ("ctrl+y", "editor('redo')", "Redo"),
        ("ctrl+b", "editor('bold')", "Bold"),
        ("ctrl+k", "editor('italic')", "Italic"),
        ("ctrl+u", "editor('underline')", "Underline"),
        ("f3", "cycle_alignment", "Align"),
        ("ctrl+s", "export", "Export"),
        ("f2", "toggle_users", "Users"),
    ]

    def __init__(
        self,
        session: EditorSession,
        *,
        import_path: Optional[Path] = None,
        export_dir: Path = Path("."),
    ) -> None:
        super().__init__()
        self.session = session
        self.adapter: TextualEditorAdapter | None = None
        self._import_path = import_path
        self._export_dir = export_dir
        self._align_index = 0
        self._ready = False

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield Input(value=self.session.document.title, id="title")
        with Horizontal():
            yield Static("", id="users")
            with Vertical(id="editor"):
                yield TextArea(self.session.document.content, id="text")
        yield Static("", id="stats")
        yield Static("", id="status-line")
        yield Footer()

    def on_mount(self) -> None:
        self._ready = True
        hooks = TextualUIHooks(
            update_document=self._update_document,
            update_presence=self._update_presence,
            update_status=self._update_status,
            log=self.log.info,
        )
        self.adapter = TextualEditorAdapter(self.session, hooks)
        if self._import_path is not None:
            self.adapter.handle_import(self._import_path)
        self.set_interval(0.05, self._process_timers)

    def on_unmount(self) -> None:
        self.session.close()

    def _process_timers(self) -> None:
        if self.adapter:
            self.adapter.process_timers()

    def on_input_changed(self, event: Input.Changed) -> None:
        if self.adapter and event.input.id == "title":
            self.adapter.handle_title(event.value)

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        if not self.adapter:
            return
        area = event.text_area
        text = area.text
        self.adapter.handle_edit(text, cursor=offset_for_location(text, area.cursor_location))

    def on_text_area_selection_changed(self, event: TextArea.SelectionChanged) -> None:
        if not self.adapter:
            return
        text = event.text_area.text
        if text != self.session.document.content:
            return
        start = offset_for_location(text, event.selection.start)
        end = offset_for_location(text, event.selection.end)
        self.adapter.handle_selection(start, end)

    def action_editor(self, name: str) -> None:
        if self.adapter:
            self.adapter.handle_action(name)

    def action_cycle_alignment(self) -> None:
        self._align_index = (self._align_index + 1) % len(_ALIGN_CYCLE)
        self.action_editor(_ALIGN_CYCLE[self._align_index])

    def action_export(self) -> None:
        if self.adapter:
            self.adapter.handle_export(self._export_dir)

    def action_toggle_users(self) -> None:
        users = self.query_one("#users", Static)
        users.display = not users.display

    def _update_document(self, view: DocumentView) -> None:
        if not self._ready:
            return
        area = self.query_one("#text", TextArea)
        if area.text != view.content:
            cursor = self.session.cursors.offset_of(self.session.local_user_id)
            area.load_text(view.content)
            area.move_cursor(location_for_offset(view.content, cursor))
        title = self.query_one("#title", Input)
        if title.value != view.title:
            title.value = view.title
        self.query_one("#stats", Static).update(_stats_line(view))

    def _update_presence(self, rows: Tuple[PresenceRow, ...]) -> None:
        if not self._ready:
            return
        lines = ["Active Users", ""]
        for row in rows:
            marker = f"[{row.user.color}]●[/]"
            lines.append(f"{marker} {row.user.display_name}")
            suffix = "  Typing..." if row.typing else ""
            lines.append(f"  Line {row.position.line}, Col {row.position.column}{suffix}")
        self.query_one("#users", Static).update("\n".join(lines))

    def _update_status(self, status: str) -> None:
        if self._ready:
            self.query_one("#status-line", Static).update(status)


def _stats_line(view: DocumentView) -> str:
    stats = view.stats
    parts = [
        f"v{view.version}",
        f"Last saved {view.last_modified.astimezone():%H:%M:%S}",
        f"Words: {stats.words}",
        f"Characters: {stats.characters}",
        f"Lines: {stats.lines}",
    ]
    if view.selected_chars:
        parts.append(f"Selected: {view.selected_chars} chars")
    parts.append("undo" if view.can_undo else "-")
    parts.append("redo" if view.can_redo else "-")
    parts.append(f"align:{view.formatting.get('align', 'left')}")
    return " | ".join(parts)


def _env_int(key: str) -> Optional[int]:
    value = os.environ.get(key)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the collaborative editor demo.")
    parser.add_argument(
        "--import",
        dest="import_path",
        type=Path,
        default=None,
        help="Text file to load on startup",
    )
    parser.add_argument(
        "--export-dir",
        type=Path,
        default=Path(os.environ.get("COLLAB_EDITOR_EXPORT_DIR", ".")),
        help="Directory that receives '<title>.txt' on export (default: .)",
    )
    parser.add_argument(
        "--debounce-ms",
        type=int,
        default=None,
        help="Quiet interval before edits are committed to history",
    )
    parser.add_argument(
        "--history-limit",
        type=int,
        default=None,
        help="Maximum number of history entries kept",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=_env_int("COLLAB_EDITOR_SEED"),
        help="Seed for the simulated collaborator cursors",
    )
    parser.add_argument(
        "--log-preset",
        choices=sorted(telemetry.PRESETS),
        default=None,
        help="Logging preset (default: COLLAB_EDITOR_LOG_PRESET)",
    )
    parser.add_argument(
        "--no-simulation",
        action="store_true",
        help="Keep the demo participants' cursors still",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    if args.log_preset:
        telemetry.configure(args.log_preset)
    settings = EditorSettings.from_env().with_overrides(
        debounce_ms=args.debounce_ms,
        history_limit=args.history_limit,
    )
    session = create_session(settings, simulate=not args.no_simulation, seed=args.seed)
    app = CollabEditorApp(
        session, import_path=args.import_path, export_dir=args.export_dir
    )
    app.run()


if __name__ == "__main__":  # pragma: no cover - manual demo
    main()
