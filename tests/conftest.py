"""Pytest configuration and shared fixtures for nestconf tests."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import pytest


def pytest_configure(config):
    """Register all project markers to avoid warnings when ini isn't loaded."""
    markers = [
        ("unit", "marks tests as unit tests"),
        ("integration", "marks tests as integration tests"),
        ("storage", "marks tests as store/file I/O tests"),
        ("security", "marks tests as encryption tests"),
        ("cli", "marks tests as CLI tests"),
        ("property", "marks tests as property-based tests"),
    ]
    for name, desc in markers:
        config.addinivalue_line("markers", f"{name}: {desc}")


@pytest.fixture(autouse=True)
def cleanup_logging():
    """Clean up logging handlers after each test to prevent closed file errors."""
    yield
    for logger_name in list(logging.Logger.manager.loggerDict.keys()):
        logger = logging.getLogger(logger_name)
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)
    root = logging.getLogger("nestconf")
    root.setLevel(logging.NOTSET)
    root.propagate = True


@pytest.fixture
def data() -> dict[str, Any]:
    """Sample configuration tree used across store tests."""
    return {
        "isNull": None,
        "literal": "bazz",
        "arr": ["one", 2, True, {"value": "foo"}],
        "obj": {
            "host": "localhost",
            "port": 5984,
            "array": ["one", 2, True, {"foo": "bar"}],
            "login": {
                "username": "admin",
                "password": "password123",
            },
        },
    }


@pytest.fixture
def json_file(tmp_path: Path, data: dict[str, Any]) -> Path:
    """A plain JSON config file holding ``data``."""
    path = tmp_path / "store.json"
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


@pytest.fixture
def bom_file(tmp_path: Path, data: dict[str, Any]) -> Path:
    """The same content as ``json_file`` prefixed with a UTF-8 BOM."""
    path = tmp_path / "bom.json"
    path.write_bytes(b"\xef\xbb\xbf" + json.dumps(data, indent=2).encode("utf-8"))
    return path


@pytest.fixture
def malformed_file(tmp_path: Path) -> Path:
    """A config file that is not valid JSON."""
    path = tmp_path / "malformed.json"
    path.write_text('{\n  "literal": "bazz",\n  "obj": {\n', encoding="utf-8")
    return path
