"""Command line interface for inspecting and editing nestconf files.

Adds commands:
- show
- get
- set
- clear
- encrypt
- upgrade
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

import click
from rich.console import Console

from nestconf.formats import get_format
from nestconf.models import LogLevel
from nestconf.store.file import FileStore
from nestconf.store.memory import MISSING
from nestconf.utils.exceptions import NestconfError
from nestconf.utils.keypath import parse_value
from nestconf.utils.logging_config import get_logger, log_exception, setup_logging

logger = get_logger(__name__)


@contextmanager
def _cli_errors() -> Iterator[None]:
    """Turn store errors into click errors with a non-zero exit."""
    try:
        yield
    except NestconfError as e:
        log_exception(logger, e, "Command failed")
        raise click.ClickException(str(e)) from None


def _open_store(ctx: click.Context, secure: bool = True) -> FileStore:
    params: dict[str, Any] = ctx.obj
    options: dict[str, Any] = {
        "file": params["file"],
        "format": get_format(params["format"]) if params["format"] else None,
        "search": params["search"],
    }
    if secure and (params["secret"] or params["secret_path"]):
        options["secure"] = {
            "secret": params["secret"],
            "secret_path": params["secret_path"],
        }
    store = FileStore(**options)
    store.load_sync()
    return store


@click.group()
@click.option(
    "--file",
    "-f",
    "file_",
    type=click.Path(dir_okay=False, path_type=Path),
    default="config.json",
    show_default=True,
    help="Configuration file",
)
@click.option(
    "--format",
    "format_",
    type=click.Choice(["json", "yaml", "toml"]),
    default=None,
    help="File format (default: json)",
)
@click.option("--secret", envvar="NESTCONF_SECRET", default=None, help="Encryption secret")
@click.option(
    "--secret-path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="File holding the encryption secret",
)
@click.option("--search", is_flag=True, help="Look for the file in parent directories")
@click.option(
    "--log-level",
    type=click.Choice([level.value for level in LogLevel]),
    envvar="NESTCONF_LOG_LEVEL",
    default=LogLevel.WARNING.value,
    show_default=True,
)
@click.pass_context
def cli(
    ctx: click.Context,
    file_: Path,
    format_: str | None,
    secret: str | None,
    secret_path: Path | None,
    search: bool,
    log_level: str,
) -> None:
    """Inspect and edit hierarchical configuration files."""
    setup_logging(log_level)
    ctx.obj = {
        "file": file_,
        "format": format_,
        "secret": secret,
        "secret_path": secret_path,
        "search": search,
    }


@cli.command("show")
@click.pass_context
def show(ctx: click.Context) -> None:
    """Print the whole (decrypted) configuration as JSON."""
    with _cli_errors():
        store = _open_store(ctx)
    click.echo(json.dumps(store.store, indent=2))


@cli.command("get")
@click.argument("key")
@click.pass_context
def get_value(ctx: click.Context, key: str) -> None:
    """Print the value at a colon-delimited KEY."""
    with _cli_errors():
        store = _open_store(ctx)
    value = store.get(key)
    if value is MISSING:
        msg = f"Key not found: {key}"
        raise click.ClickException(msg)
    click.echo(json.dumps(value, indent=2))


@cli.command("set")
@click.argument("key")
@click.argument("value")
@click.option("--raw", is_flag=True, help="Store VALUE as a string without coercion")
@click.pass_context
def set_value(ctx: click.Context, key: str, value: str, raw: bool) -> None:
    """Set KEY to VALUE and save the file.

    VALUE is decoded as JSON when possible, so ``8080`` is stored as a number
    and ``false`` as a boolean.
    """
    console = Console()
    with _cli_errors():
        store = _open_store(ctx)
        store.set(key, value if raw else parse_value(value))
        store.save_sync()
    console.print(f"[green]Set[/green] {key} in {store.file}")


@cli.command("clear")
@click.argument("key")
@click.pass_context
def clear_value(ctx: click.Context, key: str) -> None:
    """Remove KEY and save the file."""
    console = Console()
    with _cli_errors():
        store = _open_store(ctx)
        if store.get(key) is MISSING:
            msg = f"Key not found: {key}"
            raise click.ClickException(msg)
        store.clear(key)
        store.save_sync()
    console.print(f"[green]Cleared[/green] {key} in {store.file}")


@cli.command("encrypt")
@click.pass_context
def encrypt(ctx: click.Context) -> None:
    """Rewrite a plain file with every top-level value encrypted."""
    console = Console()
    params = ctx.obj
    if not (params["secret"] or params["secret_path"]):
        msg = "--secret or --secret-path is required"
        raise click.UsageError(msg)
    with _cli_errors():
        plain = _open_store(ctx, secure=False)
        secure = FileStore(
            file=plain.file,
            format=plain.format,
            secure={"secret": params["secret"], "secret_path": params["secret_path"]},
        )
        secure.store = plain.store
        secure.save_sync()
    console.print(f"[green]Encrypted[/green] {len(secure.store)} keys in {secure.file}")


@cli.command("upgrade")
@click.pass_context
def upgrade(ctx: click.Context) -> None:
    """Re-encrypt a secure file so legacy envelopes use the current cipher."""
    console = Console()
    params = ctx.obj
    if not (params["secret"] or params["secret_path"]):
        msg = "--secret or --secret-path is required"
        raise click.UsageError(msg)
    with _cli_errors():
        store = _open_store(ctx)
        store.save_sync()
    console.print(f"[green]Upgraded[/green] {store.file} to {store.codec.alg}")
