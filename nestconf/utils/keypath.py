"""Helpers for hierarchical, separator-delimited configuration keys.

``"database:primary:host"`` addresses ``tree["database"]["primary"]["host"]``.
"""

from __future__ import annotations

import json
from typing import Any

DEFAULT_SEPARATOR = ":"


def path(key: str | None, separator: str = DEFAULT_SEPARATOR) -> list[str]:
    """Split a key into its path segments.

    Empty segments are dropped, so ``None``, ``""`` and ``":"`` all address
    the root of the tree.

    Args:
        key: Delimited key
        separator: Segment separator

    Returns:
        Ordered list of segments

    """
    if key is None:
        return []
    return [segment for segment in str(key).split(separator) if segment]


def key(*segments: str) -> str:
    """Join segments with the default separator."""
    return keyed(DEFAULT_SEPARATOR, *segments)


def keyed(separator: str, *segments: str) -> str:
    """Join segments with ``separator``, skipping empty ones."""
    return separator.join(str(segment) for segment in segments if segment)


def parse_value(value: Any) -> Any:
    """Coerce a string into the native value it spells.

    ``"true"`` becomes ``True``, ``"0"`` becomes ``0``, ``"null"`` becomes
    ``None`` and JSON arrays/objects are decoded. ``"undefined"`` maps to
    ``None`` as well. Anything that does not decode is returned unchanged.
    """
    if not isinstance(value, str):
        return value
    if value == "undefined":
        return None
    try:
        return json.loads(value)
    except ValueError:
        return value
