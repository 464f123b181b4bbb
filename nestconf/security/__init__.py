"""Encryption of secure configuration values.

Provides:
- SecureCodec, the per-value envelope encoder/decoder
- AES cipher suites used by the codec
"""

from __future__ import annotations

from nestconf.security.secure_codec import SecureCodec, derive_key, evp_bytes_to_key

__all__ = ["SecureCodec", "derive_key", "evp_bytes_to_key"]
