"""File size parsing and formatting (binary units)."""

from __future__ import annotations

import re
from typing import Any

_UNITS = {
    "b": 1,
    "kb": 1024,
    "mb": 1024 ** 2,
    "gb": 1024 ** 3,
    "tb": 1024 ** 4,
}

_SIZE_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([kmgt]?b)?\s*$", re.IGNORECASE)


def parse_size(value: Any) -> int:
    """Normalize a size given as bytes or as a formatted string ("2.4 MB").

    Unparseable or missing values count as zero bytes.
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return max(int(value), 0)
    if isinstance(value, str):
        match = _SIZE_RE.match(value)
        if not match:
            return 0
        number, unit = match.groups()
        return int(float(number) * _UNITS[(unit or "b").lower()])
    return 0


def format_size(size_bytes: int) -> str:
    """Human-readable size, e.g. 2516582 -> "2.4 MB"."""
    if size_bytes < 1024:
        return f"{max(size_bytes, 0)} B"
    value = float(size_bytes)
    for unit in ("KB", "MB", "GB", "TB"):
        value /= 1024
        if value < 1024 or unit == "TB":
            return f"{value:.1f} {unit}"
    return f"{value:.1f} TB"  # pragma: no cover
