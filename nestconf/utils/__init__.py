"""Shared utilities and infrastructure.

This module contains the exception hierarchy, logging setup and key helpers.
"""

from __future__ import annotations

from nestconf.utils.exceptions import (
    ConfigurationError,
    DecryptionError,
    FilesystemError,
    MalformedFileError,
    NestconfError,
    SecurityError,
    ValidationError,
)
from nestconf.utils.keypath import key, keyed, parse_value, path
from nestconf.utils.logging_config import get_logger, setup_logging

__all__ = [
    # Exceptions
    "ConfigurationError",
    "DecryptionError",
    "FilesystemError",
    "MalformedFileError",
    "NestconfError",
    "SecurityError",
    "ValidationError",
    # Logging
    "get_logger",
    "setup_logging",
    # Keys
    "key",
    "keyed",
    "parse_value",
    "path",
]
