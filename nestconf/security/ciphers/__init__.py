"""Cipher implementations for secure configuration values.

- AES-256-CBC, used to write every envelope
- AES-256-CTR, accepted when reading envelopes from older files
"""

from __future__ import annotations

from nestconf.security.ciphers.aes import AESCBCCipher, AESCTRCipher
from nestconf.security.ciphers.base import CipherSuite

__all__ = ["AESCBCCipher", "AESCTRCipher", "CipherSuite"]
