"""Per-value encryption for secure configuration stores.

Every top-level value of a secure store is written as an envelope::

    {"value": "<hex ciphertext>", "alg": "aes-256-cbc", "iv": "<hex iv>"}

The plaintext is the JSON text of the value. The AES key is the SHA-256
digest of the UTF-8 secret, and every envelope gets a fresh random IV.

Envelopes tagged ``aes-256-ctr`` and carrying no IV come from older releases.
Their key and IV were derived from the secret with OpenSSL's
``EVP_BytesToKey`` (MD5, one round, no salt). They are decrypted but never
written; saving a store re-encrypts every value with the current cipher.
"""

from __future__ import annotations

import binascii
import hashlib
import json
from pathlib import Path
from typing import Any, Mapping

from pydantic import ValidationError as PydanticValidationError

from nestconf.models import DEFAULT_ALG, Envelope, SecureOptions
from nestconf.security.ciphers import AESCBCCipher, AESCTRCipher
from nestconf.security.ciphers.aes import AES_BLOCK_SIZE, AES_KEY_SIZE
from nestconf.utils.exceptions import (
    ConfigurationError,
    DecryptionError,
    FilesystemError,
)
from nestconf.utils.logging_config import get_logger

logger = get_logger(__name__)

LEGACY_ALGS = frozenset({AESCTRCipher.name})


def derive_key(secret: str) -> bytes:
    """Derive the 32-byte AES key for ``secret``."""
    return hashlib.sha256(secret.encode("utf-8")).digest()


def evp_bytes_to_key(
    secret: str, key_len: int = AES_KEY_SIZE, iv_len: int = AES_BLOCK_SIZE
) -> tuple[bytes, bytes]:
    """Derive a key and IV the way OpenSSL's ``EVP_BytesToKey`` does.

    Uses MD5, a single iteration and no salt, matching the password based
    cipher constructor that wrote legacy envelopes.
    """
    password = secret.encode("utf-8")
    derived = b""
    block = b""
    while len(derived) < key_len + iv_len:
        block = hashlib.md5(block + password).digest()  # noqa: S324
        derived += block
    return derived[:key_len], derived[key_len : key_len + iv_len]


class SecureCodec:
    """Encrypts and decrypts individual configuration values."""

    def __init__(
        self,
        secret: str | None = None,
        alg: str = DEFAULT_ALG,
        secret_path: str | Path | None = None,
    ):
        """Initialize the codec.

        Args:
            secret: Secret the cipher key is derived from
            alg: Cipher used for writing; only ``aes-256-cbc`` is supported
            secret_path: File to read the secret from when ``secret`` is unset

        Raises:
            ConfigurationError: If no usable secret is given or ``alg`` is not
                a supported writing cipher
            FilesystemError: If ``secret_path`` cannot be read

        """
        if not secret and secret_path is not None:
            try:
                secret = Path(secret_path).expanduser().read_text(encoding="utf-8").strip()
            except OSError as e:
                msg = f"Failed to read secret file {secret_path}: {e}"
                raise FilesystemError(msg, {"path": str(secret_path)}) from e

        if not secret:
            msg = "secure.secret option is required"
            raise ConfigurationError(msg)

        if alg != AESCBCCipher.name:
            msg = f"Unsupported cipher for writing: {alg}"
            raise ConfigurationError(msg, {"alg": alg})

        self.alg = alg
        self._key = derive_key(secret)
        self._legacy_key, self._legacy_iv = evp_bytes_to_key(secret)

    @classmethod
    def from_options(cls, options: SecureOptions | Mapping[str, Any] | str) -> SecureCodec:
        """Build a codec from ``secure`` construction options."""
        if not isinstance(options, SecureOptions):
            try:
                if isinstance(options, str):
                    options = SecureOptions(secret=options)
                else:
                    options = SecureOptions(**options)
            except PydanticValidationError as e:
                msg = f"Invalid secure options: {e}"
                raise ConfigurationError(msg) from e
        return cls(
            secret=options.secret,
            alg=options.alg,
            secret_path=options.secret_path,
        )

    def encrypt_value(self, plain: Any) -> Envelope:
        """Encrypt one value under the current cipher with a fresh IV."""
        cipher = AESCBCCipher(self._key)
        data = json.dumps(plain).encode("utf-8")
        ciphertext = cipher.encrypt(data)
        return Envelope(value=ciphertext.hex(), alg=cipher.name, iv=cipher.iv.hex())

    def decrypt_value(self, envelope: Envelope | Mapping[str, Any]) -> Any:
        """Decrypt one envelope, dispatching on its ``alg``.

        Raises:
            DecryptionError: If the envelope is malformed, uses an unknown
                cipher, or does not decrypt under this secret

        """
        if not isinstance(envelope, Envelope):
            try:
                envelope = Envelope.model_validate(envelope)
            except PydanticValidationError as e:
                msg = "Malformed secure envelope"
                raise DecryptionError(msg) from e

        try:
            ciphertext = bytes.fromhex(envelope.value)
            if envelope.alg == AESCBCCipher.name:
                if not envelope.iv:
                    msg = f"Envelope for {envelope.alg} is missing its iv"
                    raise DecryptionError(msg, {"alg": envelope.alg})
                plaintext = AESCBCCipher(self._key, bytes.fromhex(envelope.iv)).decrypt(
                    ciphertext
                )
            elif envelope.alg in LEGACY_ALGS:
                plaintext = AESCTRCipher(self._legacy_key, self._legacy_iv).decrypt(
                    ciphertext
                )
            else:
                msg = f"Unsupported cipher: {envelope.alg}"
                raise DecryptionError(msg, {"alg": envelope.alg})
            return json.loads(plaintext.decode("utf-8"))
        except DecryptionError:
            raise
        except (ValueError, binascii.Error) as e:
            # Wrong secret usually surfaces as bad padding or undecodable text
            msg = f"Failed to decrypt {envelope.alg} value: {e}"
            raise DecryptionError(msg, {"alg": envelope.alg}) from e

    def encrypt_tree(self, tree: Mapping[str, Any]) -> dict[str, dict[str, str]]:
        """Encrypt each top-level value of ``tree`` independently."""
        return {key: self.encrypt_value(value).to_dict() for key, value in tree.items()}

    def decrypt_tree(self, tree: Mapping[str, Any]) -> dict[str, Any]:
        """Decrypt each top-level envelope of ``tree``.

        Raises:
            DecryptionError: For the first key that fails, with the key in
                ``details``

        """
        result: dict[str, Any] = {}
        for key, envelope in tree.items():
            try:
                result[key] = self.decrypt_value(envelope)
            except DecryptionError as e:
                logger.warning("Failed to decrypt value for key %r", key)
                msg = f"Failed to decrypt key '{key}': {e.message}"
                raise DecryptionError(msg, {**e.details, "key": key}) from e
        return result
