"""Session configuration with ``COLLAB_EDITOR_*`` environment overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

ENV_PREFIX = "COLLAB_EDITOR_"


def _env_int(env: Mapping[str, str], key: str, fallback: int) -> int:
    value = env.get(f"{ENV_PREFIX}{key}")
    if value is None:
        return fallback
    try:
        return int(value)
    except ValueError:
        return fallback


def _env_float(env: Mapping[str, str], key: str, fallback: float) -> float:
    value = env.get(f"{ENV_PREFIX}{key}")
    if value is None:
        return fallback
    try:
        return float(value)
    except ValueError:
        return fallback


def _env_suffixes(
    env: Mapping[str, str], key: str, fallback: tuple[str, ...]
) -> tuple[str, ...]:
    value = env.get(f"{ENV_PREFIX}{key}")
    if not value:
        return fallback
    suffixes = []
    for item in value.split(","):
        item = item.strip().lower()
        if not item:
            continue
        suffixes.append(item if item.startswith(".") else f".{item}")
    return tuple(suffixes) or fallback


@dataclass(frozen=True, slots=True)
class EditorSettings:
    """Tunables for an editing session.

    ``debounce_ms`` is the quiet interval after the last edit before the
    content is committed to history. ``history_limit`` caps the number of
    history entries kept.
    """

    debounce_ms: int = 1000
    history_limit: int = 50
    cursor_feed_interval_ms: int = 3000
    cursor_move_probability: float = 0.3
    accepted_suffixes: tuple[str, ...] = (".txt", ".md")
    default_title: str = "Untitled Document"

    def __post_init__(self) -> None:
        if self.debounce_ms <= 0:
            raise ValueError("debounce_ms must be positive")
        if self.history_limit < 1:
            raise ValueError("history_limit must be at least 1")
        if self.cursor_feed_interval_ms <= 0:
            raise ValueError("cursor_feed_interval_ms must be positive")
        if not 0.0 <= self.cursor_move_probability <= 1.0:
            raise ValueError("cursor_move_probability must be within [0, 1]")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "EditorSettings":
        source = os.environ if env is None else env
        defaults = cls()
        return cls(
            debounce_ms=_env_int(source, "DEBOUNCE_MS", defaults.debounce_ms),
            history_limit=_env_int(source, "HISTORY_LIMIT", defaults.history_limit),
            cursor_feed_interval_ms=_env_int(
                source, "CURSOR_FEED_INTERVAL_MS", defaults.cursor_feed_interval_ms
            ),
            cursor_move_probability=_env_float(
                source,
                "CURSOR_MOVE_PROBABILITY",
                defaults.cursor_move_probability,
            ),
            accepted_suffixes=_env_suffixes(
                source, "ACCEPTED_SUFFIXES", defaults.accepted_suffixes
            ),
            default_title=source.get(
                f"{ENV_PREFIX}DEFAULT_TITLE", defaults.default_title
            ),
        )

    def with_overrides(self, **changes: object) -> "EditorSettings":
        """Return a copy with ``changes`` applied, skipping ``None`` values."""

        return replace(self, **{k: v for k, v in changes.items() if v is not None})


__all__ = ["EditorSettings", "ENV_PREFIX"]
