"""Participant tracking and cursor presence."""

from .cursors import (
    CursorPosition,
    CursorRegistry,
    UnknownUserError,
    User,
    clamp_offset,
    position_of,
)
from .feed import CursorUpdate, SimulatedCursorFeed, apply_cursor_updates

__all__ = [
    "CursorPosition",
    "CursorRegistry",
    "CursorUpdate",
    "SimulatedCursorFeed",
    "UnknownUserError",
    "User",
    "apply_cursor_updates",
    "clamp_offset",
    "position_of",
]
