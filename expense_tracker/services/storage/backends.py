"""
Key-Value Backends

Concrete KeyValueBackend implementations.

- FileKeyValueBackend: one UTF-8 file per key under a data directory.
  Writes go to a temporary file in the same directory and are moved
  into place with os.replace, so a crash mid-write leaves the previous
  value intact.
- InMemoryKeyValueBackend: a dict. Used by tests and the demo mode.
"""

import asyncio
import os
import re
import tempfile
from pathlib import Path
from typing import Optional

import structlog

from expense_tracker.services.storage.interface import (
    KeyValueBackend,
    StorageIOError,
    StorageReadError,
)


logger = structlog.get_logger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class FileKeyValueBackend(KeyValueBackend):
    """
    File-backed key-value store.

    Blocking file I/O runs in a worker thread so the event loop stays free.
    """

    def __init__(self, data_dir: Path):
        self._data_dir = Path(data_dir)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path_for(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key) or key in (".", ".."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._data_dir / f"{key}.json"

    def _read(self, path: Path) -> Optional[str]:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def _write(self, path: Path, value: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise

    def _remove(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass

    async def get_item(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        try:
            return await asyncio.to_thread(self._read, path)
        except UnicodeDecodeError as e:
            logger.error("storage_read_corrupt", key=key, error=str(e))
            raise StorageReadError(f"'{key}' is not valid UTF-8: {e}") from e
        except OSError as e:
            logger.error("storage_read_failed", key=key, error=str(e))
            raise StorageIOError(f"Failed to read '{key}': {e}") from e

    async def set_item(self, key: str, value: str) -> None:
        path = self._path_for(key)
        try:
            await asyncio.to_thread(self._write, path, value)
        except OSError as e:
            logger.error("storage_write_failed", key=key, error=str(e))
            raise StorageIOError(f"Failed to write '{key}': {e}") from e

    async def remove_item(self, key: str) -> None:
        path = self._path_for(key)
        try:
            await asyncio.to_thread(self._remove, path)
        except OSError as e:
            logger.error("storage_remove_failed", key=key, error=str(e))
            raise StorageIOError(f"Failed to remove '{key}': {e}") from e


class InMemoryKeyValueBackend(KeyValueBackend):
    """Dict-backed key-value store. Nothing survives the process."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._items: dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    async def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)
