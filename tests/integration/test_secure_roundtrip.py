"""End-to-end tests for encrypted configuration files."""

from __future__ import annotations

import json

import pytest

from nestconf.security.ciphers import AESCTRCipher
from nestconf.security.secure_codec import evp_bytes_to_key
from nestconf.store.file import FileStore

pytestmark = [pytest.mark.integration, pytest.mark.security]

SECRET = "s3cret"


def test_five_keys_mixed_types(tmp_path):
    """Test a secure store survives save and a fresh load with the same secret."""
    path = tmp_path / "secure.json"
    expected = {
        "zero": 0,
        "nothing": None,
        "name": "nestconf",
        "flags": {"debug": False, "levels": [1, 2, 3]},
        "ratio": 0.75,
    }

    store = FileStore(file=path, secure=SECRET)
    for key, value in expected.items():
        assert store.set(key, value) is True
    store.save_sync()

    on_disk = json.loads(path.read_text(encoding="utf-8"))
    assert set(on_disk) == set(expected)
    assert all(envelope["alg"] == "aes-256-cbc" for envelope in on_disk.values())

    fresh = FileStore(file=path, secure=SECRET)
    assert fresh.load_sync() == expected
    assert fresh.get("zero") == 0
    assert fresh.get("nothing") is None
    assert fresh.get("flags:debug") is False


@pytest.mark.asyncio
async def test_five_keys_async(tmp_path):
    """Test the same scenario through the async API."""
    path = tmp_path / "secure.json"
    store = FileStore(file=path, secure=SECRET)
    store.set("a", 0)
    store.set("b", None)
    store.set("c", "")
    store.set("d:e", False)
    store.set("f", [0])
    await store.save()

    fresh = FileStore(file=path, secure=SECRET)
    assert await fresh.load() == {"a": 0, "b": None, "c": "", "d": {"e": False}, "f": [0]}


def test_legacy_file_is_upgraded_on_save(tmp_path):
    """Test a file of legacy envelopes loads and is rewritten with the current cipher."""
    key, iv = evp_bytes_to_key(SECRET)
    legacy = {
        name: {
            "value": AESCTRCipher(key, iv).encrypt(json.dumps(value).encode()).hex(),
            "alg": "aes-256-ctr",
        }
        for name, value in {"literal": "bazz", "obj": {"port": 5984}}.items()
    }
    path = tmp_path / "insecure.json"
    path.write_text(json.dumps(legacy, indent=2), encoding="utf-8")

    store = FileStore(file=path, secure=SECRET)
    assert store.load_sync() == {"literal": "bazz", "obj": {"port": 5984}}

    store.save_sync()
    rewritten = json.loads(path.read_text(encoding="utf-8"))
    assert {envelope["alg"] for envelope in rewritten.values()} == {"aes-256-cbc"}
    assert all("iv" in envelope for envelope in rewritten.values())
    assert FileStore(file=path, secure=SECRET).load_sync() == store.store


def test_secret_from_file(tmp_path, data):
    """Test secret_path works end to end."""
    secret_file = tmp_path / "secret.txt"
    secret_file.write_text(SECRET, encoding="utf-8")
    path = tmp_path / "secure.json"

    writer = FileStore(file=path, secure={"secret_path": secret_file})
    writer.store = data
    writer.save_sync()

    assert FileStore(file=path, secure=SECRET).load_sync() == data


def test_bom_prefixed_secure_file(tmp_path, data):
    """Test a BOM in front of an encrypted file is ignored."""
    path = tmp_path / "secure.json"
    store = FileStore(file=path, secure=SECRET)
    store.store = data
    text = store.stringify()
    path.write_bytes(b"\xef\xbb\xbf" + text.encode("utf-8"))

    assert FileStore(file=path, secure=SECRET).load_sync() == data
