"""Type conversion utilities."""

from __future__ import annotations

from typing import Any


def to_int(raw: Any) -> int | None:
    """Convert a loosely-typed JSON value to int, return None if invalid.

    Handles various formats:
        - None → None
        - 3 → 3
        - 3.0 → 3
        - "12" → 12
        - " 2 " → 2
        - True, "", "abc", 2.5 → None
    """
    if raw is None or isinstance(raw, bool):
        return None

    if isinstance(raw, int):
        return raw

    if isinstance(raw, float):
        return int(raw) if raw.is_integer() else None

    if isinstance(raw, str):
        txt = raw.strip()
        if not txt.lstrip("-").isdigit():
            return None
        return int(txt)

    return None
