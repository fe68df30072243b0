"""Formatting insertion and file import/export."""

from .files import (
    DocumentImportError,
    ImportedDocument,
    decode_import,
    export_filename,
    export_text,
    read_import,
    title_from_filename,
    write_export,
)
from .formatting import Alignment, FormatKind, FormattingState, Selection, wrap_selection

__all__ = [
    "Alignment",
    "DocumentImportError",
    "FormatKind",
    "FormattingState",
    "ImportedDocument",
    "Selection",
    "decode_import",
    "export_filename",
    "export_text",
    "read_import",
    "title_from_filename",
    "wrap_selection",
    "write_export",
]
