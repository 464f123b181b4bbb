"""Configuration stores.

- HierarchicalStore: in-memory nested key/value tree
- FileStore: a HierarchicalStore persisted to a single file
"""

from __future__ import annotations

from nestconf.store.file import FileStore
from nestconf.store.memory import MISSING, HierarchicalStore

__all__ = ["MISSING", "FileStore", "HierarchicalStore"]
