"""Pydantic models for nestconf.

Provides validated construction options for the file store and the at-rest
representation of an encrypted value.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_ALG = "aes-256-cbc"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class SecureOptions(BaseModel):
    """Secret and cipher selection for encrypted stores."""

    secret: str | None = Field(None, description="Secret the cipher key is derived from")
    alg: str = Field(DEFAULT_ALG, description="Cipher used when writing envelopes")
    secret_path: Path | None = Field(
        None, description="File holding the secret, read when secret is unset"
    )

    @model_validator(mode="after")
    def validate_secret_source(self) -> SecureOptions:
        """Require either an inline secret or a secret file."""
        if not self.secret and self.secret_path is None:
            msg = "secure.secret option is required"
            raise ValueError(msg)
        return self


class Envelope(BaseModel):
    """Encrypted-at-rest form of one top-level configuration value."""

    value: str = Field(..., description="Hex encoded ciphertext")
    alg: str = Field(..., description="Cipher identifier")
    iv: str | None = Field(None, description="Hex encoded IV, absent for legacy ciphers")

    def to_dict(self) -> dict[str, str]:
        """Return the JSON-ready mapping, omitting a missing IV."""
        return self.model_dump(exclude_none=True)


class FileStoreOptions(BaseModel):
    """Construction options for :class:`nestconf.store.file.FileStore`."""

    file: Path = Field(..., description="Config file path or bare file name")
    dir: Path = Field(default_factory=Path.cwd, description="Base directory for relative files")
    format: Any = Field(None, description="Format adapter exposing stringify/parse")
    secure: SecureOptions | None = Field(None, description="Encryption settings")
    spacing: int = Field(2, ge=0, description="Indentation used by stringify")
    search: bool = Field(False, description="Search parent directories at construction")
    read_only: bool = Field(False, description="Reject set/clear/merge/reset")
    logical_separator: str = Field(":", min_length=1, description="Key separator")
    parse_values: bool = Field(False, description="Coerce string values on set")

    model_config = {"arbitrary_types_allowed": True}

    @field_validator("secure", mode="before")
    @classmethod
    def validate_secure(cls, v: Any) -> Any:
        """Accept a bare secret string or bytes as shorthand."""
        if isinstance(v, bytes):
            v = v.decode("utf-8")
        if isinstance(v, str):
            return {"secret": v}
        return v

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: Any) -> Any:
        """Require the two-operation adapter contract."""
        if v is None:
            return v
        for attr in ("stringify", "parse"):
            if not callable(getattr(v, attr, None)):
                msg = f"format adapter must provide a callable {attr}()"
                raise ValueError(msg)
        return v
