"""In-memory hierarchical key/value store.

The tree is a plain nested ``dict``. Keys are separator-delimited paths into
it, and lookups distinguish "absent" (``MISSING``) from "present but falsy"
(``0``, ``""``, ``False``, ``None``).
"""

from __future__ import annotations

import time
from typing import Any

from nestconf.utils import keypath


class _Missing:
    """Sentinel type for keys that are not present in a store."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> _Missing:
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> _Missing:
        return self

    def __reduce__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


def _is_branch(node: Any) -> bool:
    return isinstance(node, dict)


class HierarchicalStore:
    """Nested mapping addressed by delimited keys.

    Attributes:
        store: The live tree
        mtimes: Last modification time per key passed to ``set``/``merge``
        read_only: Reject every mutation when True
        logical_separator: Key segment separator
        parse_values: Coerce string values with ``keypath.parse_value`` on set

    """

    def __init__(
        self,
        read_only: bool = False,
        logical_separator: str = keypath.DEFAULT_SEPARATOR,
        parse_values: bool = False,
    ):
        """Initialize an empty store."""
        self.store: dict[str, Any] = {}
        self.mtimes: dict[str, float] = {}
        self.read_only = read_only
        self.logical_separator = logical_separator
        self.parse_values = parse_values

    def _path(self, key: str | None) -> list[str]:
        return keypath.path(key, self.logical_separator)

    def get(self, key: str | None = None) -> Any:
        """Get the value stored at ``key``.

        Args:
            key: Delimited key; ``None`` or ``""`` returns the whole tree

        Returns:
            The stored value, or ``MISSING`` when any segment is absent or a
            scalar blocks the path

        """
        target: Any = self.store
        for segment in self._path(key):
            if not _is_branch(target) or segment not in target:
                return MISSING
            target = target[segment]
        return target

    def set(self, key: str | None, value: Any) -> bool:
        """Set ``value`` at ``key``, creating intermediate mappings.

        A scalar sitting where an intermediate mapping is needed is replaced.
        With an empty key the whole tree is replaced, which only accepts a
        mapping.

        Returns:
            True on success, False for read-only stores or a non-mapping
            root value

        """
        if self.read_only:
            return False

        if self.parse_values:
            value = keypath.parse_value(value)

        segments = self._path(key)
        if not segments:
            if not _is_branch(value):
                return False
            self.reset()
            self.store = value
            return True

        self.mtimes[str(key)] = time.time()
        target = self.store
        for segment in segments[:-1]:
            if not _is_branch(target.get(segment)):
                target[segment] = {}
            target = target[segment]

        target[segments[-1]] = value
        return True

    def clear(self, key: str) -> bool:
        """Remove ``key`` from the store.

        Returns:
            False when read-only or when an intermediate segment is absent or
            not a mapping. True otherwise, including when the terminal key
            was already absent.

        """
        if self.read_only:
            return False

        segments = self._path(key)
        if not segments:
            return False

        target = self.store
        for segment in segments[:-1]:
            child = target.get(segment, MISSING)
            if not _is_branch(child):
                return False
            target = child

        self.mtimes.pop(key, None)
        target.pop(segments[-1], None)
        return True

    def merge(self, key: str, value: Any) -> bool:
        """Merge ``value`` into the store at ``key``.

        Mapping values are merged recursively into an existing mapping so
        sibling keys survive. Scalars, lists and ``None`` are simply set, as
        is any mapping landing on a non-mapping target.
        """
        if self.read_only:
            return False

        if not _is_branch(value):
            return self.set(key, value)

        segments = self._path(key)
        if not segments:
            return all(self.merge(nested, value[nested]) for nested in value)

        self.mtimes[key] = time.time()
        target = self.store
        for segment in segments[:-1]:
            if not _is_branch(target.get(segment)):
                target[segment] = {}
            target = target[segment]

        terminal = segments[-1]
        if not _is_branch(target.get(terminal)):
            target[terminal] = value
            return True

        full_key = keypath.keyed(self.logical_separator, *segments)
        return all(
            self.merge(keypath.keyed(self.logical_separator, full_key, nested), item)
            for nested, item in value.items()
        )

    def reset(self) -> bool:
        """Drop every key from the store."""
        if self.read_only:
            return False
        self.mtimes = {}
        self.store = {}
        return True

    def load_sync(self) -> dict[str, Any]:
        """Return the live tree; an in-memory store has nothing to read."""
        return self.store
