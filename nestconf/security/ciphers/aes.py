"""AES-256 cipher implementations.

``aes-256-cbc`` is the cipher every envelope is written with. ``aes-256-ctr``
is kept so files written by older releases still decrypt.
"""

from __future__ import annotations

import secrets

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from nestconf.security.ciphers.base import CipherSuite

AES_KEY_SIZE = 32
AES_BLOCK_SIZE = 16


class _AES256Cipher(CipherSuite):
    """Shared key and IV validation for the AES-256 modes."""

    def __init__(self, key: bytes, iv: bytes | None = None):
        """Initialize AES cipher.

        Args:
            key: Encryption key (32 bytes)
            iv: Initialization vector (16 bytes). If None, generates random IV.

        Raises:
            ValueError: If key or IV size is invalid

        """
        if len(key) != AES_KEY_SIZE:
            msg = f"AES-256 key must be {AES_KEY_SIZE} bytes, got {len(key)}"
            raise ValueError(msg)

        self.key = key
        self.iv = iv if iv is not None else secrets.token_bytes(AES_BLOCK_SIZE)

        if len(self.iv) != AES_BLOCK_SIZE:
            msg = f"AES IV must be {AES_BLOCK_SIZE} bytes, got {len(self.iv)}"
            raise ValueError(msg)

        self._cipher = Cipher(algorithms.AES(self.key), self._mode())

    def _mode(self) -> modes.Mode:
        raise NotImplementedError

    def key_size(self) -> int:
        """Get the key size in bytes (always 32)."""
        return len(self.key)


class AESCBCCipher(_AES256Cipher):
    """AES-256 in CBC mode with PKCS7 padding."""

    name = "aes-256-cbc"

    def _mode(self) -> modes.Mode:
        return modes.CBC(self.iv)

    def encrypt(self, data: bytes) -> bytes:
        """Pad and encrypt ``data``."""
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(data) + padder.finalize()
        encryptor = self._cipher.encryptor()
        return encryptor.update(padded) + encryptor.finalize()

    def decrypt(self, data: bytes) -> bytes:
        """Decrypt ``data`` and strip its padding.

        Raises:
            ValueError: If the ciphertext is not block aligned or the padding
                is invalid (usually a wrong key)

        """
        decryptor = self._cipher.decryptor()
        padded = decryptor.update(data) + decryptor.finalize()
        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
        return unpadder.update(padded) + unpadder.finalize()


class AESCTRCipher(_AES256Cipher):
    """AES-256 in CTR mode (stream-like, no padding)."""

    name = "aes-256-ctr"

    def _mode(self) -> modes.Mode:
        return modes.CTR(self.iv)

    def encrypt(self, data: bytes) -> bytes:
        """Encrypt ``data``."""
        encryptor = self._cipher.encryptor()
        return encryptor.update(data) + encryptor.finalize()

    def decrypt(self, data: bytes) -> bytes:
        """Decrypt ``data``."""
        decryptor = self._cipher.decryptor()
        return decryptor.update(data) + decryptor.finalize()
