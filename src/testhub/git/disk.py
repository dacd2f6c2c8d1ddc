"""Best-effort disk measurements for the repository hub."""

import os
import shutil
from pathlib import Path

from testhub.lib.logging import get_logger

logger = get_logger(__name__)

# Returned when a measurement is not available
UNKNOWN_SIZE = -1

_UNITS = ("B", "KB", "MB", "GB", "TB")


def free_space(path: Path) -> int:
    """Free bytes on the volume holding ``path`` (nearest existing ancestor), or -1."""
    existing = path
    try:
        while not existing.exists() and existing != existing.parent:
            existing = existing.parent
        return shutil.disk_usage(existing).free
    except OSError as e:
        logger.debug("disk_space_unavailable", path=str(path), error=str(e))
        return UNKNOWN_SIZE


def directory_size(path: Path) -> int:
    """Total size in bytes of the regular files under ``path``, or -1."""
    if not path.is_dir():
        return UNKNOWN_SIZE if not path.exists() else path.stat().st_size

    total = 0
    try:
        for dirpath, _, filenames in os.walk(path):
            for name in filenames:
                file_path = os.path.join(dirpath, name)
                if not os.path.islink(file_path):
                    total += os.lstat(file_path).st_size
    except OSError as e:
        logger.debug("disk_usage_unavailable", path=str(path), error=str(e))
        return UNKNOWN_SIZE
    return total


def format_size(size: int) -> str:
    """Render a byte count for logs, e.g. ``1.5 GB``; ``unknown`` for the sentinel."""
    if size < 0:
        return "unknown"
    value = float(size)
    for unit in _UNITS:
        if value < 1024 or unit == _UNITS[-1]:
            return f"{int(value)} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{size} B"
