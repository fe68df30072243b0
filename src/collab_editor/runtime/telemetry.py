"""Editor telemetry on top of telelog.

Session, scheduler and presence code report through two calls:
``record_event`` for discrete happenings (commits, undo/redo, imports,
dropped cursor updates) and ``span`` around work worth timing (edits,
imports, fired timers).

Output is configured from ``COLLAB_EDITOR_*`` environment variables.
``COLLAB_EDITOR_LOG_PRESET`` (or ``configure(preset=...)``, which the
``--log-preset`` flag of the app calls) picks one of ``PRESETS`` instead.
"""

from __future__ import annotations

import os
from contextlib import ExitStack, contextmanager
from typing import Any, Callable, Dict, Iterator, Optional, cast

import telelog  # type: ignore[import]

tl = cast(Any, telelog)

ENV_PREFIX = "COLLAB_EDITOR_"
LOGGER_NAME = "collab_editor"

_logger: Optional[Any] = None


def _env(name: str) -> Optional[str]:
    return os.getenv(f"{ENV_PREFIX}{name}")


def _env_flag(name: str) -> bool:
    raw = _env(name)
    return raw is not None and raw.strip().lower() in {"1", "true", "yes", "on"}


def _from_env(config: Any) -> None:
    config.with_min_level((_env("LOG_LEVEL") or "INFO").upper())
    console = not _env_flag("DISABLE_CONSOLE")
    config.with_console_output(console)
    if console:
        config.with_colored_output(not _env_flag("NO_COLOR"))
    if _env_flag("LOG_JSON"):
        config.with_json_format(True)
    if _env("LOG_FILE"):
        config.with_file_output(_env("LOG_FILE"))


def _development(config: Any) -> None:
    config.with_min_level("DEBUG")
    config.with_console_output(True)
    config.with_colored_output(True)


def _quiet(config: Any) -> None:
    # the Textual screen owns the terminal; only warnings, and only to a file
    config.with_min_level("WARNING")
    config.with_console_output(False)
    if _env("LOG_FILE"):
        config.with_file_output(_env("LOG_FILE"))


def _production(config: Any) -> None:
    config.with_min_level("INFO")
    config.with_console_output(False)
    config.with_json_format(True)
    config.with_file_output(_env("LOG_FILE") or "collab_editor.log")
    config.with_buffering(True)


PRESETS: Dict[str, Callable[[Any], None]] = {
    "development": _development,
    "quiet": _quiet,
    "production": _production,
}


def configure(preset: Optional[str] = None) -> None:
    """Rebuild the editor logger.

    ``preset`` names an entry of ``PRESETS``; without one the
    ``COLLAB_EDITOR_LOG_PRESET`` variable is consulted, then the individual
    ``COLLAB_EDITOR_LOG_*`` variables.
    """

    global _logger
    name = (preset or _env("LOG_PRESET") or "").strip().lower()
    if name and name not in PRESETS:
        raise ValueError(
            f"Unknown log preset '{name}' (expected one of {', '.join(PRESETS)})"
        )
    config = tl.Config()
    PRESETS.get(name, _from_env)(config)
    # spans rely on logger.profile
    config.with_profiling(True)
    _logger = tl.Logger.with_config(LOGGER_NAME, config)


def get_logger() -> Any:
    if _logger is None:
        configure()
    return _logger


def _pairs(data: Dict[str, Any]) -> list[tuple[str, str]]:
    return [(str(key), str(value)) for key, value in data.items()]


def _emit(log: Any, level: str, message: str, data: Dict[str, Any]) -> None:
    with_data = getattr(log, f"{level}_with", None)
    if with_data is not None:
        with_data(message, _pairs(data))
        return
    plain = getattr(log, level, None)
    if plain is None:
        raise ValueError(f"Unsupported log level '{level}'")
    plain(f"{message} {data}")


def record_event(
    name: str, *, level: str = "info", data: Optional[Dict[str, Any]] = None
) -> None:
    """Log ``event::<name>`` with ``data`` attached as key/value pairs."""

    _emit(get_logger(), level, f"event::{name}", {"event": name, **(data or {})})


@contextmanager
def span(
    name: str,
    *,
    component: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Iterator[None]:
    """Profile the block; ``metadata`` is logger context while it runs.

    A failure inside the block is logged as ``span::fail`` and re-raised.
    """

    log = get_logger()
    context = {key: str(value) for key, value in (metadata or {}).items()}
    for key, value in context.items():
        log.add_context(key, value)
    try:
        with ExitStack() as stack:
            if component:
                stack.enter_context(log.track_component(component))
            stack.enter_context(log.profile(name))
            yield
    except Exception as exc:
        _emit(log, "error", "span::fail", {"span": name, "reason": exc, **context})
        raise
    finally:
        for key in context:
            log.remove_context(key)


__all__ = [
    "PRESETS",
    "configure",
    "get_logger",
    "record_event",
    "span",
]
