"""Tests for hierarchical key helpers."""

from __future__ import annotations

import pytest

from nestconf.utils import keypath

pytestmark = [pytest.mark.unit]


def test_path_splits_on_separator():
    """Test a colon key splits into ordered segments."""
    assert keypath.path("foo:bar:bazz") == ["foo", "bar", "bazz"]


def test_path_custom_separator():
    """Test a non-default separator."""
    assert keypath.path("foo.bar", ".") == ["foo", "bar"]
    assert keypath.path("foo:bar", ".") == ["foo:bar"]


@pytest.mark.parametrize("key", [None, "", ":", "::"])
def test_path_root(key):
    """Test empty keys address the root."""
    assert keypath.path(key) == []


def test_path_drops_empty_segments():
    """Test doubled separators do not create empty segments."""
    assert keypath.path("foo::bar:") == ["foo", "bar"]


def test_key_and_keyed():
    """Test joining segments back into a key."""
    assert keypath.key("foo", "bar", "bazz") == "foo:bar:bazz"
    assert keypath.keyed("__", "foo", "bar") == "foo__bar"
    assert keypath.key("", "foo") == "foo"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("true", True),
        ("false", False),
        ("0", 0),
        ("3.5", 3.5),
        ("null", None),
        ("undefined", None),
        ('["a", 1]', ["a", 1]),
        ('{"a": {"b": 1}}', {"a": {"b": 1}}),
        ("localhost", "localhost"),
        ("", ""),
        (5, 5),
    ],
)
def test_parse_value(raw, expected):
    """Test string coercion to native values."""
    assert keypath.parse_value(raw) == expected
