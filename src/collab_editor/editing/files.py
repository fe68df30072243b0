"""Plain-text import and export of the document."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import Iterable, Optional, Tuple

from collab_editor.document.store import DEFAULT_TITLE, DocumentSnapshot

DEFAULT_ACCEPTED_SUFFIXES: Tuple[str, ...] = (".txt", ".md")
EXPORT_SUFFIX = ".txt"

_EXTENSION = re.compile(r"\.[^/.]+$")
_SEPARATORS = re.compile(r"[\\/]+")


class DocumentImportError(Exception):
    """Raised when a file cannot be imported as plain text."""

    def __init__(self, message: str, *, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path


@dataclass(frozen=True, slots=True)
class ImportedDocument:
    title: str
    content: str


def title_from_filename(name: str) -> str:
    """Drop the directory part and the last extension.

    The extension is a dot followed by at least one character, so
    ``"name."`` is kept whole and ``".bashrc"`` becomes ``""``.
    """

    return _EXTENSION.sub("", PurePath(name).name)


def _check_suffix(name: str, accepted: Optional[Iterable[str]]) -> None:
    if accepted is None:
        return
    allowed = {suffix.lower() for suffix in accepted}
    suffix = PurePath(name).suffix.lower()
    if suffix not in allowed:
        raise DocumentImportError(
            f"Unsupported file type '{suffix or name}'", path=name
        )


def decode_import(
    filename: str,
    data: bytes,
    *,
    accepted_suffixes: Optional[Iterable[str]] = DEFAULT_ACCEPTED_SUFFIXES,
    encoding: str = "utf-8",
) -> ImportedDocument:
    _check_suffix(filename, accepted_suffixes)
    try:
        content = data.decode(encoding)
    except UnicodeDecodeError as exc:
        raise DocumentImportError(
            f"'{filename}' is not {encoding} text", path=filename
        ) from exc
    if "\x00" in content:
        raise DocumentImportError(f"'{filename}' looks like binary data", path=filename)
    return ImportedDocument(title=title_from_filename(filename), content=content)


def read_import(
    path: str | Path,
    *,
    accepted_suffixes: Optional[Iterable[str]] = DEFAULT_ACCEPTED_SUFFIXES,
    encoding: str = "utf-8",
) -> ImportedDocument:
    source = Path(path)
    _check_suffix(source.name, accepted_suffixes)
    try:
        data = source.read_bytes()
    except OSError as exc:
        raise DocumentImportError(
            f"Cannot read '{source}': {exc.strerror or exc}", path=str(source)
        ) from exc
    return decode_import(
        source.name, data, accepted_suffixes=None, encoding=encoding
    )


def export_filename(title: str, *, fallback: str = DEFAULT_TITLE) -> str:
    """``<title>.txt`` reduced to a single path component.

    Path separators become ``-`` and leading dots are stripped, so the name
    can neither leave the export directory nor be hidden. A title with
    nothing left falls back to ``fallback``.
    """

    stem = _SEPARATORS.sub("-", title).strip().lstrip(".").strip()
    if not stem:
        stem = fallback
    return f"{stem}{EXPORT_SUFFIX}"


def export_text(
    snapshot: DocumentSnapshot, *, fallback_title: str = DEFAULT_TITLE
) -> Tuple[str, str]:
    """Return ``(filename, text)``; only the literal content is exported."""

    return export_filename(snapshot.title, fallback=fallback_title), snapshot.content


def write_export(
    snapshot: DocumentSnapshot,
    directory: str | Path,
    *,
    fallback_title: str = DEFAULT_TITLE,
    encoding: str = "utf-8",
) -> Path:
    filename, text = export_text(snapshot, fallback_title=fallback_title)
    folder = Path(directory)
    target = folder / filename
    if target.parent != folder:
        raise ValueError(f"Export name '{filename}' escapes '{folder}'")
    folder.mkdir(parents=True, exist_ok=True)
    # newline="" keeps the content byte-for-byte
    with target.open("w", encoding=encoding, newline="") as handle:
        handle.write(text)
    return target


__all__ = [
    "DEFAULT_ACCEPTED_SUFFIXES",
    "DocumentImportError",
    "ImportedDocument",
    "decode_import",
    "export_filename",
    "export_text",
    "read_import",
    "title_from_filename",
    "write_export",
]
