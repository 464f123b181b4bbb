"""Exception hierarchy for nestconf.

Provides the error types raised by the file store, the secure codec and the
format adapters.
"""

from __future__ import annotations

from typing import Any


class NestconfError(Exception):
    """Base exception for all nestconf errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """Initialize nestconf error."""
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class ValidationError(NestconfError):
    """Data validation errors."""


class ConfigurationError(ValidationError):
    """Invalid store construction options."""


class MalformedFileError(ValidationError):
    """Configuration file content could not be parsed."""


class DiskError(NestconfError):
    """Disk I/O related errors."""


class FilesystemError(DiskError):
    """Read, write or rename failures against the configuration file."""

    @property
    def path(self) -> str | None:
        """Path of the file the failed operation targeted."""
        return self.details.get("path")


class SecurityError(NestconfError):
    """Security-related errors."""


class DecryptionError(SecurityError):
    """A secure envelope could not be decrypted."""
