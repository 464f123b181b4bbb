"""Serialization formats for configuration files.

A format adapter is any object with ``stringify(tree, spacing=2) -> str`` and
``parse(text) -> dict``. JSON is the default; YAML and TOML adapters ship for
convenience and callers may inject their own.
"""

from __future__ import annotations

import json
from typing import Any, Protocol, runtime_checkable

import toml
import yaml


@runtime_checkable
class FormatAdapter(Protocol):
    """Serialize/deserialize pair used by the file store."""

    def stringify(self, tree: Any, spacing: int = 2) -> str:
        """Render ``tree`` as text."""

    def parse(self, text: str) -> Any:
        """Parse ``text`` into a tree. Raises on malformed input."""


class JsonFormat:
    """JSON with configurable indentation."""

    name = "json"

    def stringify(self, tree: Any, spacing: int = 2) -> str:
        return json.dumps(tree, indent=spacing or None, ensure_ascii=False)

    def parse(self, text: str) -> Any:
        return json.loads(text)


class YamlFormat:
    """YAML through PyYAML's safe loader and dumper."""

    name = "yaml"

    def stringify(self, tree: Any, spacing: int = 2) -> str:
        return yaml.safe_dump(
            tree, indent=max(spacing, 2), sort_keys=False, allow_unicode=True
        )

    def parse(self, text: str) -> Any:
        parsed = yaml.safe_load(text)
        return {} if parsed is None else parsed


class TomlFormat:
    """TOML. It has no null, so ``None`` values are dropped on write."""

    name = "toml"

    def stringify(self, tree: Any, spacing: int = 2) -> str:
        return toml.dumps(tree)

    def parse(self, text: str) -> Any:
        return toml.loads(text)


json_format = JsonFormat()
yaml_format = YamlFormat()
toml_format = TomlFormat()

FORMATS: dict[str, FormatAdapter] = {
    "json": json_format,
    "yaml": yaml_format,
    "yml": yaml_format,
    "toml": toml_format,
}


def get_format(name: str) -> FormatAdapter:
    """Look up a built-in adapter by name or file extension.

    Raises:
        KeyError: If no adapter is registered under ``name``

    """
    key = name.lower().lstrip(".")
    if key not in FORMATS:
        msg = f"Unknown format: {name}"
        raise KeyError(msg)
    return FORMATS[key]
