"""Tests for per-value secure envelopes.

Covers:
- Key derivation
- Current-cipher round trips and IV freshness
- Legacy aes-256-ctr envelopes (decrypt only)
- Error reporting for bad envelopes
"""

from __future__ import annotations

import hashlib
import json

import pytest

from nestconf.models import Envelope, SecureOptions
from nestconf.security.ciphers import AESCTRCipher
from nestconf.security.secure_codec import SecureCodec, derive_key, evp_bytes_to_key
from nestconf.utils.exceptions import (
    ConfigurationError,
    DecryptionError,
    FilesystemError,
)

pytestmark = [pytest.mark.unit, pytest.mark.security]

SECRET = "super-secretzzz"


def legacy_envelope(value, secret=SECRET):
    """Build an envelope the way older releases wrote them."""
    key, iv = evp_bytes_to_key(secret)
    ciphertext = AESCTRCipher(key, iv).encrypt(json.dumps(value).encode("utf-8"))
    return {"value": ciphertext.hex(), "alg": "aes-256-ctr"}


@pytest.fixture
def codec():
    """Create a codec with the test secret."""
    return SecureCodec(SECRET)


class TestKeyDerivation:
    """Tests for secret to key derivation."""

    def test_derive_key_is_sha256(self):
        """Test the current key is the SHA-256 of the secret."""
        assert derive_key(SECRET) == hashlib.sha256(SECRET.encode()).digest()
        assert len(derive_key(SECRET)) == 32

    def test_derive_key_deterministic(self):
        """Test the same secret always gives the same key."""
        assert derive_key("a") == derive_key("a")
        assert derive_key("a") != derive_key("b")

    def test_evp_bytes_to_key_known_vector(self):
        """Test against OpenSSL EVP_BytesToKey(md5, nosalt, 1 round)."""
        d1 = hashlib.md5(b"password").digest()
        d2 = hashlib.md5(d1 + b"password").digest()
        d3 = hashlib.md5(d2 + b"password").digest()
        key, iv = evp_bytes_to_key("password")
        assert key == d1 + d2
        assert iv == d3
        assert len(key) == 32
        assert len(iv) == 16


class TestEncrypt:
    """Tests for encrypt_value()."""

    def test_envelope_shape(self, codec):
        """Test envelopes carry hex value, current alg and hex iv."""
        envelope = codec.encrypt_value({"a": 1})
        assert envelope.alg == "aes-256-cbc"
        assert len(bytes.fromhex(envelope.iv)) == 16
        assert len(bytes.fromhex(envelope.value)) % 16 == 0
        assert set(envelope.to_dict()) == {"value", "alg", "iv"}

    @pytest.mark.parametrize(
        "value",
        [0, "", False, None, "text", 3.25, [1, "two", None], {"nested": {"deep": [1]}}],
    )
    def test_round_trip(self, codec, value):
        """Test every JSON value survives encryption."""
        assert codec.decrypt_value(codec.encrypt_value(value)) == value

    def test_iv_freshness(self, codec):
        """Test the same plaintext encrypts differently each time."""
        first = codec.encrypt_value("same")
        second = codec.encrypt_value("same")
        assert first.iv != second.iv
        assert first.value != second.value
        assert codec.decrypt_value(first) == "same"
        assert codec.decrypt_value(second) == "same"

    def test_other_instance_same_secret(self, codec):
        """Test a second codec with the same secret decrypts."""
        envelope = codec.encrypt_value({"k": "v"}).to_dict()
        assert SecureCodec(SECRET).decrypt_value(envelope) == {"k": "v"}


class TestLegacy:
    """Tests for legacy aes-256-ctr envelopes."""

    def test_decrypts_legacy_envelope(self, codec):
        """Test legacy envelopes without iv decrypt."""
        envelope = legacy_envelope({"host": "localhost", "port": 5984})
        assert "iv" not in envelope
        assert codec.decrypt_value(envelope) == {"host": "localhost", "port": 5984}

    def test_reencrypt_upgrades_alg(self, codec):
        """Test values read from legacy envelopes are written with the current alg."""
        plain = codec.decrypt_value(legacy_envelope("bazz"))
        envelope = codec.encrypt_value(plain)
        assert envelope.alg == "aes-256-cbc"
        assert envelope.iv is not None
        assert codec.decrypt_value(envelope) == "bazz"

    def test_legacy_wrong_secret(self):
        """Test a legacy envelope under another secret fails loudly."""
        envelope = legacy_envelope({"password": "hunter2"}, secret="other-secret")
        with pytest.raises(DecryptionError):
            SecureCodec(SECRET).decrypt_value(envelope)


class TestDecryptErrors:
    """Tests for decrypt_value() failures."""

    def test_unknown_alg(self, codec):
        """Test an unknown cipher id is rejected."""
        envelope = codec.encrypt_value("x").to_dict()
        envelope["alg"] = "rot13"
        with pytest.raises(DecryptionError, match="Unsupported cipher: rot13"):
            codec.decrypt_value(envelope)

    def test_missing_iv(self, codec):
        """Test a current-cipher envelope without iv is rejected."""
        envelope = codec.encrypt_value("x").to_dict()
        del envelope["iv"]
        with pytest.raises(DecryptionError, match="missing its iv"):
            codec.decrypt_value(envelope)

    def test_corrupt_hex(self, codec):
        """Test non-hex ciphertext is rejected."""
        envelope = codec.encrypt_value("x").to_dict()
        envelope["value"] = "zz-not-hex"
        with pytest.raises(DecryptionError):
            codec.decrypt_value(envelope)

    def test_not_an_envelope(self, codec):
        """Test plain values are not mistaken for envelopes."""
        with pytest.raises(DecryptionError, match="Malformed secure envelope"):
            codec.decrypt_value("plain string")
        with pytest.raises(DecryptionError):
            codec.decrypt_value({"alg": "aes-256-cbc"})

    def test_wrong_secret(self, codec):
        """Test decrypting with another secret fails."""
        envelope = codec.encrypt_value({"password": "a fairly long secret value"})
        with pytest.raises(DecryptionError):
            SecureCodec("not-the-secret").decrypt_value(envelope)


class TestTrees:
    """Tests for per-key tree encryption."""

    def test_tree_round_trip(self, codec, data):
        """Test every top-level value becomes an envelope and comes back."""
        encrypted = codec.encrypt_tree(data)
        assert set(encrypted) == set(data)
        for envelope in encrypted.values():
            assert envelope["alg"] == "aes-256-cbc"
            assert isinstance(envelope["value"], str)
        assert codec.decrypt_tree(encrypted) == data

    def test_error_names_key(self, codec):
        """Test a bad envelope is attributed to its key."""
        encrypted = codec.encrypt_tree({"good": 1, "bad": 2})
        encrypted["bad"]["alg"] = "unknown"
        with pytest.raises(DecryptionError) as exc_info:
            codec.decrypt_tree(encrypted)
        assert exc_info.value.details["key"] == "bad"
        assert "bad" in str(exc_info.value)

    def test_mixed_legacy_and_current(self, codec):
        """Test a file mixing envelope generations decrypts."""
        tree = {
            "old": legacy_envelope("legacy"),
            "new": codec.encrypt_value("current").to_dict(),
        }
        assert codec.decrypt_tree(tree) == {"old": "legacy", "new": "current"}


class TestConstruction:
    """Tests for codec construction."""

    def test_empty_secret(self):
        """Test an empty secret is refused."""
        with pytest.raises(ConfigurationError, match="secret option is required"):
            SecureCodec("")

    def test_unsupported_write_alg(self):
        """Test only the current cipher may be used for writing."""
        with pytest.raises(ConfigurationError, match="Unsupported cipher"):
            SecureCodec(SECRET, alg="aes-256-ctr")

    def test_secret_path(self, tmp_path):
        """Test the secret can be read from a file."""
        secret_file = tmp_path / "secret"
        secret_file.write_text(SECRET + "\n", encoding="utf-8")
        envelope = SecureCodec(SECRET).encrypt_value("v")
        assert SecureCodec(secret_path=secret_file).decrypt_value(envelope) == "v"

    def test_secret_path_missing(self, tmp_path):
        """Test an unreadable secret file raises FilesystemError."""
        missing = tmp_path / "nope"
        with pytest.raises(FilesystemError) as exc_info:
            SecureCodec(secret_path=missing)
        assert exc_info.value.path == str(missing)

    def test_from_options(self):
        """Test building from options models, mappings and strings."""
        envelope = SecureCodec(SECRET).encrypt_value(1)
        for options in (SECRET, {"secret": SECRET}, SecureOptions(secret=SECRET)):
            assert SecureCodec.from_options(options).decrypt_value(envelope) == 1

    def test_from_options_invalid(self):
        """Test options without any secret are refused."""
        with pytest.raises(ConfigurationError):
            SecureCodec.from_options({"alg": "aes-256-cbc"})


def test_envelope_model_omits_missing_iv():
    """Test legacy envelopes serialize without an iv field."""
    assert Envelope(value="00", alg="aes-256-ctr").to_dict() == {
        "value": "00",
        "alg": "aes-256-ctr",
    }
