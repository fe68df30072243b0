"""Textual host integration. ``app`` needs the textual package at import time."""

from .controller import (
    DocumentView,
    TextualEditorAdapter,
    TextualUIHooks,
    location_for_offset,
    offset_for_location,
)

__all__ = [
    "DocumentView",
    "TextualEditorAdapter",
    "TextualUIHooks",
    "location_for_offset",
    "offset_for_location",
]
