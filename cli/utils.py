"""Utility functions for CLI operations."""

import re
import sys
from pathlib import Path
from typing import Optional
from urllib.parse import unquote

from cli.constants import GREEN, RESET

_FILENAME_STAR = re.compile(r"filename\*\s*=\s*([^']*)'[^']*'([^;]+)", re.IGNORECASE)
_FILENAME_QUOTED = re.compile(r'filename\s*=\s*"([^"]*)"', re.IGNORECASE)
_FILENAME_TOKEN = re.compile(r"filename\s*=\s*([^;\s]+)", re.IGNORECASE)


class ProgressReporter:
    """Writes a single-line progress indicator to stdout."""

    def __init__(self, verb: str, label: str, total: int):
        """
        Initialize the progress reporter.

        Args:
            verb: Action shown before the label (e.g. "Uploading")
            label: Display name for the file
            total: Total bytes expected (0 if unknown)
        """
        self.verb = verb
        self.label = label
        self.total = total
        self.done = 0

    def advance(self, amount: int) -> None:
        """Record ``amount`` more bytes and redraw the line."""
        self.done += amount
        if self.total > 0:
            progress = (self.done / self.total) * 100
            sys.stdout.write(
                f"\r{self.verb} {self.label}: {format_file_size(self.done)} / "
                f"{format_file_size(self.total)} ({GREEN}{progress:.1f}%{RESET})"
            )
        else:
            sys.stdout.write(f"\r{self.verb} {self.label}: {format_file_size(self.done)}")
        sys.stdout.flush()

    def finish(self) -> None:
        """End the progress line."""
        sys.stdout.write('\n')
        sys.stdout.flush()

    def abort(self) -> None:
        """Erase the progress line after a failure."""
        sys.stdout.write('\r' + ' ' * 100 + '\r')
        sys.stdout.flush()


def parse_content_disposition(header: Optional[str]) -> Optional[str]:
    """
    Extract the file name from a Content-Disposition header.

    Prefers the RFC 5987 ``filename*`` parameter and falls back to the plain
    ``filename`` parameter. Any directory part is dropped.

    Args:
        header: Header value or None

    Returns:
        Bare file name, or None if the header carries none
    """
    if not header:
        return None

    name = None
    match = _FILENAME_STAR.search(header)
    if match:
        charset = match.group(1).strip() or "utf-8"
        try:
            name = unquote(match.group(2).strip(), encoding=charset)
        except LookupError:
            name = unquote(match.group(2).strip())
    else:
        match = _FILENAME_QUOTED.search(header) or _FILENAME_TOKEN.search(header)
        if match:
            name = match.group(1)

    if not name:
        return None

    name = Path(name.replace("\\", "/")).name
    if name in ("", ".", ".."):
        return None
    return name


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human-readable format with appropriate unit.

    Uses binary units (1024-based) and automatically selects the most
    appropriate unit (B, KiB, MiB, GiB, TiB).

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string with size and unit (e.g., "1.50 MiB", "512 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"

    units = ['KiB', 'MiB', 'GiB', 'TiB']
    size = size_bytes / 1024.0

    for unit in units:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0

    return f"{size:.2f} PiB"
