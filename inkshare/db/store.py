"""
inkshare/db/store.py

Purpose: Credential store

- Durable mapping: session key -> UserRecord
- `merge` is the only mutation primitive (read-modify-write overlay)
- Merges on the same key are serialized
- File-backed store for deployment, in-memory store for tests
"""

import asyncio
import hashlib
import json
import os
from collections import defaultdict
from pathlib import Path
from typing import AsyncIterator, Dict, List, Optional, Protocol

from inkshare.models.user import UserRecord, UserRecordUpdate
from inkshare.core.logging import get_logger

logger = get_logger(__name__)


class CredentialStore(Protocol):
    """Storage contract consumed by the dispatcher and transfer service."""

    async def get(self, key: str) -> Optional[UserRecord]:
        """Return the record stored under `key`, or None when unregistered."""

    async def merge(self, key: str, update: UserRecordUpdate) -> UserRecord:
        """Overlay the fields set on `update` and persist the result."""

    async def clear_pending_if(self, key: str, expected: bytes) -> bool:
        """Clear the pending file only while it still equals `expected`."""

    def keys(self) -> AsyncIterator[str]:
        """Iterate over every stored key."""

    async def ping(self) -> bool:
        """Return True when the backing storage is reachable."""

    async def close(self) -> None:
        """Release any held resources."""


class _KeyLocks:
    """Lazily created asyncio locks, one per key."""

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def __call__(self, key: str) -> asyncio.Lock:
        return self._locks[key]


class MemoryCredentialStore:
    """
    Process-local store. Records do not survive a restart.
    """

    def __init__(self):
        self._records: Dict[str, UserRecord] = {}
        self._lock_for = _KeyLocks()

    async def get(self, key: str) -> Optional[UserRecord]:
        return self._records.get(key)

    async def merge(self, key: str, update: UserRecordUpdate) -> UserRecord:
        async with self._lock_for(key):
            current = self._records.get(key) or UserRecord()
            merged = current.merged(update)
            self._records[key] = merged
            return merged

    async def clear_pending_if(self, key: str, expected: bytes) -> bool:
        async with self._lock_for(key):
            current = self._records.get(key)
            if current is None or current.pending_file != expected:
                return False
            self._records[key] = current.merged(UserRecordUpdate(pending_file=None))
            return True

    async def keys(self) -> AsyncIterator[str]:
        for key in sorted(self._records):
            yield key

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None


class FileCredentialStore:
    """
    Directory-backed JSON store.

    Each key lives in `<dir>/<sha256(key)>.json` as `{"key": ..., "value": ...}`.
    Writes go through a temporary file and `os.replace`, so a crash never
    leaves a half-written record behind.
    """

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)
        self._lock_for = _KeyLocks()

    def _path_for(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self.directory / f"{digest}.json"

    def _ensure_directory(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)

    def _read(self, path: Path) -> Optional[dict]:
        try:
            with path.open("r", encoding="utf-8") as fh:
                return json.load(fh)
        except FileNotFoundError:
            return None

    def _write(self, path: Path, payload: dict) -> None:
        self._ensure_directory()
        tmp_path = path.with_suffix(".json.tmp")
        with tmp_path.open("w", encoding="utf-8") as fh:
            json.dump(payload, fh)
        os.replace(tmp_path, path)

    def _list_keys(self) -> List[str]:
        if not self.directory.exists():
            return []
        keys = []
        for path in sorted(self.directory.glob("*.json")):
            try:
                payload = self._read(path)
            except (ValueError, OSError):
                payload = None
            if not isinstance(payload, dict) or "key" not in payload:
                logger.warning(f"Skipping unreadable store entry {path.name}")
                continue
            keys.append(payload["key"])
        return sorted(keys)

    async def get(self, key: str) -> Optional[UserRecord]:
        payload = await asyncio.to_thread(self._read, self._path_for(key))
        if payload is None:
            return None
        return UserRecord.from_json_dict(payload.get("value") or {})

    async def merge(self, key: str, update: UserRecordUpdate) -> UserRecord:
        async with self._lock_for(key):
            current = await self.get(key) or UserRecord()
            merged = current.merged(update)
            await asyncio.to_thread(
                self._write,
                self._path_for(key),
                {"key": key, "value": merged.to_json_dict()},
            )
            logger.debug(
                "Record merged",
                extra={"session_key": key, "fields": sorted(update.changes())}
            )
            return merged

    async def clear_pending_if(self, key: str, expected: bytes) -> bool:
        async with self._lock_for(key):
            current = await self.get(key)
            if current is None or current.pending_file != expected:
                return False
            cleared = current.merged(UserRecordUpdate(pending_file=None))
            await asyncio.to_thread(
                self._write,
                self._path_for(key),
                {"key": key, "value": cleared.to_json_dict()},
            )
            return True

    async def keys(self) -> AsyncIterator[str]:
        for key in await asyncio.to_thread(self._list_keys):
            yield key

    async def ping(self) -> bool:
        try:
            await asyncio.to_thread(self._ensure_directory)
        except OSError as e:
            logger.error(f"Credential store directory unavailable: {e}")
            return False
        return os.access(self.directory, os.W_OK)

    async def close(self) -> None:
        return None
