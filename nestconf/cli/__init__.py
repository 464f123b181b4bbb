"""Command line interface for nestconf."""

from __future__ import annotations

from nestconf.cli.main import cli

__all__ = ["cli"]
