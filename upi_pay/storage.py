"""Pluggable persistent key-value backends for the transaction blob.

The store needs exactly three operations from its backend: read, write and
remove a single text blob by key. Each backend translates its own failure
modes into :class:`~upi_pay.errors.StorageUnavailable`; none of them return a
default value in place of an error.

Backends
--------
- ``MemoryBackend``: process-local dict; useful for tests and previews.
- ``FileBackend``: one file per key under a directory. Writes target a
  ``.tmp`` sibling first and then ``os.replace`` into place.
- ``SqlBackend``: one row per key in ``upi_kv_blobs`` via SQLAlchemy.

Blocking I/O runs in a worker thread (``asyncio.to_thread``) so callers on
the event loop only suspend.
"""

from __future__ import annotations

import asyncio
import contextlib
import hashlib
import os
import re
from pathlib import Path
from typing import Protocol, runtime_checkable

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError

from .config import Settings
from .db.client import session_scope
from .db.models import KvBlob
from .errors import StorageUnavailable
from .logging_setup import get_logger

_logger = get_logger("upi_pay.storage")


@runtime_checkable
class KeyValueBackend(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...

    async def remove(self, key: str) -> None: ...


# ----------------------------------------------------------------------------
# In-memory
# ----------------------------------------------------------------------------


class MemoryBackend:
    """Dict-backed blobs that live as long as the instance."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)


# ----------------------------------------------------------------------------
# Filesystem
# ----------------------------------------------------------------------------

_SAFE_KEY_RE = re.compile(r"^[A-Za-z0-9._-]{1,100}$")


class FileBackend:
    """Store each key as ``<root>/<key>.json``.

    Keys outside ``[A-Za-z0-9._-]`` are hashed to keep paths inside ``root``.
    """

    def __init__(self, root: str | os.PathLike[str]) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, key: str) -> Path:
        if _SAFE_KEY_RE.fullmatch(key) and key not in {".", ".."}:
            name = key
        else:
            name = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self._root / f"{name}.json"

    def _read(self, key: str) -> str | None:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageUnavailable(f"failed to read {os.fspath(path)}: {exc}") from exc

    def _write(self, key: str, value: str) -> None:
        path = self.path_for(key)
        tmp = path.with_suffix(path.suffix + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(value, encoding="utf-8")
            os.replace(tmp, path)
        except OSError as exc:
            with contextlib.suppress(OSError):
                tmp.unlink()
            raise StorageUnavailable(f"failed to write {os.fspath(path)}: {exc}") from exc

    def _remove(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageUnavailable(f"failed to remove {os.fspath(path)}: {exc}") from exc

    async def get(self, key: str) -> str | None:
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._write, key, value)

    async def remove(self, key: str) -> None:
        await asyncio.to_thread(self._remove, key)


# ----------------------------------------------------------------------------
# SQL (SQLAlchemy)
# ----------------------------------------------------------------------------


class SqlBackend:
    """Persist blobs as rows of ``upi_kv_blobs`` in any SQLAlchemy database."""

    def __init__(self, database_url: str) -> None:
        if not database_url:
            raise ValueError("database_url is required for SqlBackend")
        self._database_url = database_url

    def _read(self, key: str) -> str | None:
        try:
            with session_scope(database_url=self._database_url) as session:
                return session.execute(
                    select(KvBlob.value).where(KvBlob.key == key)
                ).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StorageUnavailable(f"failed to read key {key!r}: {exc}") from exc

    def _write(self, key: str, value: str) -> None:
        try:
            with session_scope(database_url=self._database_url) as session:
                row = session.get(KvBlob, key)
                if row is None:
                    session.add(KvBlob(key=key, value=value))
                else:
                    row.value = value
                    row.updated_at = func.now()
        except SQLAlchemyError as exc:
            raise StorageUnavailable(f"failed to write key {key!r}: {exc}") from exc

    def _remove(self, key: str) -> None:
        try:
            with session_scope(database_url=self._database_url) as session:
                session.execute(delete(KvBlob).where(KvBlob.key == key))
        except SQLAlchemyError as exc:
            raise StorageUnavailable(f"failed to remove key {key!r}: {exc}") from exc

    async def get(self, key: str) -> str | None:
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._write, key, value)

    async def remove(self, key: str) -> None:
        await asyncio.to_thread(self._remove, key)


def backend_from_settings(settings: Settings) -> KeyValueBackend:
    """Pick the SQL backend when a database URL is configured, else files."""

    if settings.database_url:
        _logger.debug("storage:backend sql")
        return SqlBackend(settings.database_url)
    _logger.debug("storage:backend file root=%s", os.fspath(settings.data_dir))
    return FileBackend(settings.data_dir)


__all__ = [
    "FileBackend",
    "KeyValueBackend",
    "MemoryBackend",
    "SqlBackend",
    "backend_from_settings",
]
