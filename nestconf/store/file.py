"""File-backed configuration store.

Provides a hierarchical key/value store persisted to a single file, with
synchronous and asyncio load/save, parent-directory search for the file, and
optional per-value encryption.
"""

from __future__ import annotations

import codecs
import contextlib
import copy
import os
from pathlib import Path
from typing import Any, Callable, Mapping

import aiofiles
import aiofiles.os
from pydantic import ValidationError as PydanticValidationError

from nestconf.formats import FormatAdapter, json_format
from nestconf.models import FileStoreOptions
from nestconf.security.secure_codec import SecureCodec
from nestconf.store.memory import MISSING, HierarchicalStore
from nestconf.utils.exceptions import (
    ConfigurationError,
    FilesystemError,
    MalformedFileError,
    NestconfError,
)
from nestconf.utils.logging_config import LoggingContext, get_logger

logger = get_logger(__name__)

#: ``callback(err, data)``; exactly one of the two is None
Callback = Callable[[NestconfError | None, Any], None]


class FileStore:
    """Configuration store persisted to a single file.

    Attributes:
        file: Resolved path of the target file
        dir: Base directory relative file names resolve against
        format: Format adapter used to read and write the file
        codec: SecureCodec when the store is encrypted, else None
        spacing: Indentation passed to the format adapter

    """

    def __init__(
        self,
        options: FileStoreOptions | Mapping[str, Any] | None = None,
        **kwargs: Any,
    ):
        """Initialize the store.

        Args:
            options: Options model or mapping; keyword arguments override it
            **kwargs: Any ``FileStoreOptions`` field (``file``, ``dir``,
                ``format``, ``secure``, ``spacing``, ``search``, ``read_only``,
                ``logical_separator``, ``parse_values``)

        Raises:
            ConfigurationError: If the options are invalid (for example no
                ``file``, or an empty secret)

        """
        if isinstance(options, FileStoreOptions):
            options = options.model_dump(exclude_unset=True)
        merged = {**(options or {}), **kwargs}
        if not merged.get("secure"):
            merged.pop("secure", None)
        if merged.get("dir") is None:
            merged.pop("dir", None)

        try:
            self.options = FileStoreOptions(**merged)
        except PydanticValidationError as e:
            msg = f"Invalid file store options: {e}"
            raise ConfigurationError(msg) from e

        self._file_name = self.options.file
        self.dir = self.options.dir
        self.file = (
            self._file_name
            if self._file_name.is_absolute()
            else self.dir / self._file_name
        )
        self.format: FormatAdapter = self.options.format or json_format
        self.spacing = self.options.spacing
        self.codec = (
            SecureCodec.from_options(self.options.secure)
            if self.options.secure is not None
            else None
        )
        self._memory = HierarchicalStore(
            read_only=self.options.read_only,
            logical_separator=self.options.logical_separator,
            parse_values=self.options.parse_values,
        )

        if self.options.search:
            self.search(self.dir)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(file={str(self.file)!r}, secure={self.secure})"

    @property
    def secure(self) -> bool:
        """Whether values are encrypted at rest."""
        return self.codec is not None

    @property
    def store(self) -> dict[str, Any]:
        """The live in-memory tree."""
        return self._memory.store

    @store.setter
    def store(self, tree: dict[str, Any]) -> None:
        self._memory.store = tree

    @property
    def mtimes(self) -> dict[str, float]:
        return self._memory.mtimes

    @property
    def read_only(self) -> bool:
        return self._memory.read_only

    # In-memory operations

    def get(self, key: str | None = None) -> Any:
        """Get the value at ``key``, or ``MISSING``."""
        return self._memory.get(key)

    def set(self, key: str | None, value: Any) -> bool:
        """Set ``value`` at ``key``. No file I/O is performed."""
        return self._memory.set(key, value)

    def clear(self, key: str) -> bool:
        """Remove ``key``. No file I/O is performed."""
        return self._memory.clear(key)

    def merge(self, key: str, value: Any) -> bool:
        """Merge ``value`` into the tree at ``key``."""
        return self._memory.merge(key, value)

    def reset(self) -> bool:
        """Drop every key from the in-memory tree."""
        return self._memory.reset()

    def has(self, key: str) -> bool:
        """Whether ``key`` is present, even with a falsy value."""
        return self._memory.get(key) is not MISSING

    # Encoding

    def _render(self, fmt: FormatAdapter | None = None) -> tuple[dict[str, Any], str]:
        """Snapshot the tree, encrypt it if secure, and stringify it."""
        fmt = fmt or self.format
        data = copy.deepcopy(self.store)
        if self.codec is not None:
            data = self.codec.encrypt_tree(data)
        return data, fmt.stringify(data, spacing=self.spacing)

    def stringify(self, fmt: FormatAdapter | None = None) -> str:
        """Render the whole store as file text, encrypting values if secure."""
        return self._render(fmt)[1]

    def parse(self, text: str) -> dict[str, Any]:
        """Parse file text into a plain tree, decrypting values if secure.

        Does not modify the store.

        Raises:
            MalformedFileError: If the format adapter rejects ``text`` or it
                does not hold a mapping
            DecryptionError: If a secure value cannot be decrypted

        """
        try:
            parsed = self.format.parse(text)
        except Exception as e:
            msg = f"Error parsing your configuration file: [{self.file}]: {e}"
            raise MalformedFileError(msg, {"path": str(self.file)}) from e

        if parsed is None:
            parsed = {}
        if not isinstance(parsed, dict):
            msg = (
                f"Error parsing your configuration file: [{self.file}]: "
                f"expected a mapping at the top level, got {type(parsed).__name__}"
            )
            raise MalformedFileError(msg, {"path": str(self.file)})

        if self.codec is not None:
            return self.codec.decrypt_tree(parsed)
        return parsed

    def _parse_bytes(self, raw: bytes) -> dict[str, Any]:
        """Decode raw file bytes (dropping a UTF-8 BOM) and parse them."""
        if raw.startswith(codecs.BOM_UTF8):
            raw = raw[len(codecs.BOM_UTF8) :]
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            msg = f"Error parsing your configuration file: [{self.file}]: {e}"
            raise MalformedFileError(msg, {"path": str(self.file)}) from e
        if not text.strip():
            return {}
        return self.parse(text)

    # Loading

    def _read_sync(self) -> bytes | None:
        try:
            return self.file.read_bytes()
        except FileNotFoundError:
            logger.debug("Config file %s does not exist, starting empty", self.file)
            return None
        except OSError as e:
            msg = f"Failed to read {self.file}: {e}"
            raise FilesystemError(msg, {"path": str(self.file)}) from e

    async def _read_async(self) -> bytes | None:
        try:
            async with aiofiles.open(self.file, "rb") as f:
                return await f.read()
        except FileNotFoundError:
            logger.debug("Config file %s does not exist, starting empty", self.file)
            return None
        except OSError as e:
            msg = f"Failed to read {self.file}: {e}"
            raise FilesystemError(msg, {"path": str(self.file)}) from e

    def load_sync(self) -> dict[str, Any]:
        """Load the file, replacing the in-memory tree.

        A missing or empty file loads as an empty tree.

        Returns:
            The loaded tree (the store's new contents)

        Raises:
            MalformedFileError: If the file cannot be parsed
            DecryptionError: If a secure value cannot be decrypted
            FilesystemError: If the file exists but cannot be read

        """
        with LoggingContext("config_load", path=str(self.file)):
            raw = self._read_sync()
            data = {} if raw is None else self._parse_bytes(raw)
        self._memory.store = data
        return data

    async def load(self, callback: Callback | None = None) -> dict[str, Any] | None:
        """Asynchronously load the file, replacing the in-memory tree.

        Behaves exactly like :meth:`load_sync`. Without ``callback`` errors
        are raised; with one, ``callback(err, data)`` receives the outcome and
        nothing is raised.
        """
        try:
            with LoggingContext("config_load", path=str(self.file)):
                raw = await self._read_async()
                data = {} if raw is None else self._parse_bytes(raw)
        except NestconfError as e:
            if callback is None:
                raise
            callback(e, None)
            return None

        self._memory.store = data
        if callback is not None:
            callback(None, data)
        return data

    # Saving

    @staticmethod
    def _temp_path(path: Path) -> Path:
        return path.with_name(f"{path.name}.tmp")

    def _write_sync(self, path: Path, text: str) -> None:
        """Atomic write: write to temp file, then rename."""
        temp_file = self._temp_path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_file, "w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            temp_file.replace(path)
        except OSError as e:
            with contextlib.suppress(OSError):
                temp_file.unlink()
            msg = f"Failed to write {path}: {e}"
            raise FilesystemError(msg, {"path": str(path)}) from e

    async def _write_async(self, path: Path, text: str) -> None:
        """Atomic write through aiofiles: temp file, then rename."""
        temp_file = self._temp_path(path)
        try:
            await aiofiles.os.makedirs(path.parent, exist_ok=True)
            async with aiofiles.open(temp_file, "w", encoding="utf-8") as f:
                await f.write(text)
                await f.flush()
                os.fsync(f.fileno())
            await aiofiles.os.replace(temp_file, path)
        except OSError as e:
            with contextlib.suppress(OSError):
                await aiofiles.os.remove(temp_file)
            msg = f"Failed to write {path}: {e}"
            raise FilesystemError(msg, {"path": str(path)}) from e

    def save_to_file_sync(
        self, path: str | Path, fmt: FormatAdapter | None = None
    ) -> dict[str, Any]:
        """Write the store to ``path``, optionally in another format.

        Returns:
            The tree that was written (envelopes when secure)

        """
        path = Path(path)
        with LoggingContext("config_save", path=str(path)):
            data, text = self._render(fmt)
            self._write_sync(path, text)
        return data

    def save_sync(self) -> dict[str, Any]:
        """Write the store to its target file."""
        return self.save_to_file_sync(self.file)

    async def save_to_file(
        self,
        path: str | Path,
        fmt: FormatAdapter | None = None,
        callback: Callback | None = None,
    ) -> dict[str, Any] | None:
        """Asynchronously write the store to ``path``.

        Error reporting follows :meth:`load`.
        """
        path = Path(path)
        try:
            with LoggingContext("config_save", path=str(path)):
                data, text = self._render(fmt)
                await self._write_async(path, text)
        except NestconfError as e:
            if callback is None:
                raise
            callback(e, None)
            return None

        if callback is not None:
            callback(None, data)
        return data

    async def save(self, callback: Callback | None = None) -> dict[str, Any] | None:
        """Asynchronously write the store to its target file."""
        return await self.save_to_file(self.file, callback=callback)

    # Locating the file

    def search(self, base: str | Path | None = None) -> Path | None:
        """Look for the configured file name from ``base`` upwards.

        An absolute file name that exists is taken as is. Otherwise each
        directory from ``base`` (default: cwd) up to the filesystem root is
        tried, then ``dir / file`` as a fallback. The first regular file found
        becomes :attr:`file`.

        Returns:
            The path found, or None when nothing matched (``file`` unchanged)

        """
        name = self._file_name

        if name.is_absolute():
            found = name if name.is_file() else None
        else:
            start = Path(os.path.abspath(base if base is not None else Path.cwd()))
            if not start.is_dir():
                logger.debug("Search base %s is not a directory", start)
                return None
            found = next(
                (
                    directory / name
                    for directory in (start, *start.parents)
                    if (directory / name).is_file()
                ),
                None,
            )
            if found is None and (self.dir / name).is_file():
                found = self.dir / name

        if found is None:
            logger.debug("No %s found searching from %s", name, base)
            return None

        logger.debug("Found config file %s", found)
        self.file = found
        return found
