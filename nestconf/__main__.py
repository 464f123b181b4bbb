#!/usr/bin/env python3
"""Run the nestconf command line interface."""

from __future__ import annotations

from nestconf.cli.main import cli

if __name__ == "__main__":
    cli()
