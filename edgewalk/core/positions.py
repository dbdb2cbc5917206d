"""Convert engine source positions into base-relative file ranges."""

from __future__ import annotations

from urllib.parse import unquote, urlsplit

from edgewalk.core.models import FileRange, SourcePosition

_LOCAL_SCHEMES = ("", "file")


def position_path(position: SourcePosition) -> str | None:
    """Local file path of a position, or None if it is not backed by a local file."""
    if position.url is None:
        return None

    parts = urlsplit(position.url)
    if parts.scheme not in _LOCAL_SCHEMES or not parts.path:
        return None
    return unquote(parts.path)


def to_file_range(position: SourcePosition | None, base_dir: str) -> FileRange | None:
    """Express a position relative to ``base_dir``.

    Returns None when the position has no local file or its path does not
    contain ``base_dir``; such positions are outside the analyzed project.
    """
    if position is None:
        return None

    path = position_path(position)
    if path is None:
        return None

    base = base_dir.rstrip("/")
    index = path.find(base)
    if index < 0:
        return None

    relative = path[index + len(base) + 1 :]
    return FileRange(file=relative, start=position.start_offset, end=position.end_offset)
