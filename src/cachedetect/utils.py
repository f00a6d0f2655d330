"""Shared utility functions."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Iterable

from cachedetect.models.deletion_result import DeletionFailure, DeletionResult
from cachedetect.models.scan_result import MatchedFile

log = logging.getLogger(__name__)

DeletionCallback = Callable[[Path, str | None], None]  # (path, error_message)


def xdg_config_home() -> Path:
    """Return XDG_CONFIG_HOME, defaulting to ~/.config."""
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


def remove_files(
    matches: Iterable[MatchedFile],
    *,
    on_result: DeletionCallback | None = None,
) -> DeletionResult:
    """Remove matched files one at a time and record each outcome.

    Symlinks are unlinked themselves; their targets are left alone.  A
    failure is recorded and the remaining files are still processed.
    """
    result = DeletionResult()

    for match in matches:
        path = match.path
        try:
            path.unlink()
        except OSError as e:
            message = e.strerror or str(e)
            log.debug("Failed to delete %s: %s", path, message)
            result.failures.append(DeletionFailure(path=path, message=message))
            if on_result:
                on_result(path, message)
            continue

        result.deleted.append(path)
        result.files_removed += 1
        result.freed_bytes += match.size_bytes
        if on_result:
            on_result(path, None)

    return result


def bytes_to_human(size_bytes: int) -> str:
    """Convert byte count to a human-readable string."""
    if size_bytes < 0:
        return f"-{bytes_to_human(-size_bytes)}"
    if size_bytes == 0:
        return "0 B"

    units = ("B", "KB", "MB", "GB", "TB")
    value = float(size_bytes)
    for unit in units[:-1]:
        if abs(value) < 1024:
            return f"{value:.1f} {unit}" if unit != "B" else f"{int(value)} B"
        value /= 1024
    return f"{value:.1f} {units[-1]}"


def format_elapsed(seconds: float) -> str:
    """Format an elapsed time as a human-readable string."""
    if seconds < 1:
        return f"{seconds * 1000:.0f} ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes = int(seconds) // 60
    secs = seconds - minutes * 60
    return f"{minutes}m {secs:.0f}s"
