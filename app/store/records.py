"""Flat-file record store: one JSON document per ``(collection, key)``.

Layout on disk is ``<base_dir>/<collection>/<key>.json``. Blocking file I/O
runs on a worker thread so the event loop keeps serving other requests while
one store call is outstanding.
"""
from __future__ import annotations

import asyncio
import json
import os
import re
import tempfile
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from ..logging_conf import get_logger

__all__ = [
    "Collection",
    "StoreError",
    "RecordExists",
    "RecordNotFound",
    "InvalidRecordKey",
    "StorageError",
    "RecordStore",
]

logger = get_logger("store")

_SAFE_NAME_RE = re.compile(r"^[A-Za-z0-9_+\-][A-Za-z0-9_.+\-]*$")


class Collection(str, Enum):
    users = "users"
    tokens = "tokens"


# ------------------------
# Errors
# ------------------------
class StoreError(Exception):
    """Base class for store failures; ``code`` is a stable machine code."""

    code: str = "store_error"


class RecordExists(StoreError):
    code = "record_exists"


class RecordNotFound(StoreError):
    code = "record_not_found"


class InvalidRecordKey(StoreError):
    code = "invalid_record_key"


class StorageError(StoreError):
    """I/O or (de)serialization fault; the original exception is chained."""

    code = "storage_error"


@dataclass
class _KeyLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


# ------------------------
# Store
# ------------------------
class RecordStore:
    def __init__(self, base_dir: str | Path) -> None:
        self.base_dir = Path(base_dir)
        self._locks: dict[tuple[str, str], _KeyLock] = {}

    def _path(self, collection: str | Collection, key: str) -> Path:
        name = collection.value if isinstance(collection, Collection) else collection
        for part in (name, key):
            if not isinstance(part, str) or not _SAFE_NAME_RE.match(part):
                raise InvalidRecordKey(f"unsafe record name: {part!r}")
        return self.base_dir / name / f"{key}.json"

    # --- sync bodies (run on a worker thread) ---

    @staticmethod
    def _serialize(data: Any) -> str:
        try:
            return json.dumps(data)
        except (TypeError, ValueError) as e:
            raise StorageError(f"record is not JSON-serializable: {e}") from e

    @staticmethod
    def _write_temp(directory: Path, raw: str) -> str:
        """Write ``raw`` to a fresh temp file in ``directory`` and return its name.

        A failed write removes the temp file before re-raising.
        """
        fh = tempfile.NamedTemporaryFile(
            "w", encoding="utf-8", dir=directory, suffix=".tmp", delete=False
        )
        try:
            with fh:
                fh.write(raw)
        except BaseException:
            os.unlink(fh.name)
            raise
        return fh.name

    @classmethod
    def _create_sync(cls, path: Path, data: Any) -> None:
        raw = cls._serialize(data)
        tmp_name: str | None = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_name = cls._write_temp(path.parent, raw)
            # link() fails if the key exists, so create is an atomic create-if-absent
            # and the key never points at a partially written file.
            os.link(tmp_name, path)
        except FileExistsError as e:
            raise RecordExists(str(path.name)) from e
        except OSError as e:
            raise StorageError(f"could not create {path}: {e}") from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)

    @staticmethod
    def _read_sync(path: Path) -> Any:
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise RecordNotFound(str(path.name)) from e
        except OSError as e:
            raise StorageError(f"could not read {path}: {e}") from e
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"corrupt record {path}: {e}") from e

    @classmethod
    def _update_sync(cls, path: Path, data: Any) -> None:
        if not path.is_file():
            raise RecordNotFound(str(path.name))
        raw = cls._serialize(data)
        tmp_name: str | None = None
        try:
            tmp_name = cls._write_temp(path.parent, raw)
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageError(f"could not update {path}: {e}") from e

    @staticmethod
    def _delete_sync(path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError as e:
            raise RecordNotFound(str(path.name)) from e
        except OSError as e:
            raise StorageError(f"could not delete {path}: {e}") from e

    # --- public async API ---

    async def create(self, collection: str | Collection, key: str, data: Any) -> None:
        """Store a new record; raises ``RecordExists`` if the key is taken."""
        path = self._path(collection, key)
        await asyncio.to_thread(self._create_sync, path, data)
        logger.debug("store.create", extra={"event": "store_create", "path": str(path)})

    async def read(self, collection: str | Collection, key: str) -> Any:
        path = self._path(collection, key)
        return await asyncio.to_thread(self._read_sync, path)

    async def update(self, collection: str | Collection, key: str, data: Any) -> None:
        """Replace an existing record wholesale (no merge)."""
        path = self._path(collection, key)
        await asyncio.to_thread(self._update_sync, path, data)
        logger.debug("store.update", extra={"event": "store_update", "path": str(path)})

    async def delete(self, collection: str | Collection, key: str) -> None:
        path = self._path(collection, key)
        await asyncio.to_thread(self._delete_sync, path)
        logger.debug("store.delete", extra={"event": "store_delete", "path": str(path)})

    @asynccontextmanager
    async def lock(self, collection: str | Collection, key: str) -> AsyncIterator[None]:
        """Hold a per-key mutex across a read-modify-write sequence."""
        path = self._path(collection, key)
        slot = (path.parent.name, key)
        entry = self._locks.get(slot)
        if entry is None:
            entry = self._locks[slot] = _KeyLock()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._locks[slot]
