"""Storage utilities: atomic file writes, size formatting, disk usage."""

import os
import shutil
from pathlib import Path

_SIZE_UNITS = ["Bytes", "KB", "MB", "GB"]


def atomic_write_text(path: Path, data: str) -> None:
    """Write *data* to *path* so readers see either the old or the new file."""
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    path.parent.mkdir(parents=True, exist_ok=True)
    with tmp_path.open("w", encoding="utf-8") as handle:
        handle.write(data)
        handle.flush()
        os.fsync(handle.fileno())
    tmp_path.replace(path)


def format_file_size(num_bytes: int | float) -> str:
    """Human-readable size in 1024 steps, e.g. ``1.5 KB`` or ``0 Bytes``."""
    if num_bytes <= 0:
        return "0 Bytes"

    value = float(num_bytes)
    unit = 0
    while value >= 1024 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit += 1

    value = round(value, 2)
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[unit]}"


def get_disk_info(path: Path) -> dict:
    """Get disk usage statistics for the volume holding *path*."""
    usage = shutil.disk_usage(path)
    return {
        "total_bytes": usage.total,
        "used_bytes": usage.used,
        "free_bytes": usage.free,
        "usage_percent": round(usage.used / usage.total * 100, 1),
    }
