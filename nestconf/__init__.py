"""nestconf - hierarchical configuration stored in a single, optionally encrypted, file."""

from __future__ import annotations

__version__ = "0.1.0"

from nestconf.formats import FormatAdapter, JsonFormat, TomlFormat, YamlFormat
from nestconf.security.secure_codec import SecureCodec
from nestconf.store import MISSING, FileStore, HierarchicalStore
from nestconf.utils.exceptions import (
    ConfigurationError,
    DecryptionError,
    FilesystemError,
    MalformedFileError,
    NestconfError,
)

__all__ = [
    "MISSING",
    "ConfigurationError",
    "DecryptionError",
    "FileStore",
    "FilesystemError",
    "FormatAdapter",
    "HierarchicalStore",
    "JsonFormat",
    "MalformedFileError",
    "NestconfError",
    "SecureCodec",
    "TomlFormat",
    "YamlFormat",
    "__version__",
]
