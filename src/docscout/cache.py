"""Two-tier result cache: process memory in front of one JSON file per key.

The memory tier is authoritative for the running process. The durable tier
lets a freshly started process answer from disk, and is strictly
best-effort: read failures are treated as misses and write failures are
logged and ignored, so a broken disk degrades the cache to memory-only
instead of failing requests. Errors are logged with ``exc_info=True`` so
they remain observable via stderr.

Keys are validated before any I/O. A key that could escape the cache
directory raises ``SecurityError``; that is a caller bug, not a cache fault.
"""

from __future__ import annotations

import asyncio
import os
import re
import tempfile
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

import structlog

from docscout.errors import ErrorCode, SecurityError
from docscout.models.cache import CacheEntry

log = structlog.get_logger()

MAX_KEY_LENGTH = 200
_UNSAFE_FILENAME_CHARS_RE = re.compile(r"[^A-Za-z0-9_-]")
_UNDERSCORE_RUN_RE = re.compile(r"_+")


def validate_key(key: str) -> None:
    """Raise ``SecurityError`` for keys that are empty, oversized or path-like."""
    if not key or len(key) > MAX_KEY_LENGTH or key.startswith(".") or ".." in key:
        log.warning("cache_key_rejected", key=key[:MAX_KEY_LENGTH])
        raise SecurityError(
            "Cache key rejected",
            code=ErrorCode.CACHE_KEY_REJECTED,
        )


def key_to_filename(key: str) -> str:
    validate_key(key)
    safe = _UNDERSCORE_RUN_RE.sub("_", _UNSAFE_FILENAME_CHARS_RE.sub("_", key))
    return f"{safe[:MAX_KEY_LENGTH]}.json"


class FileStorage:
    """Durable tier: ``<root>/<sanitised key>.json``.

    All file I/O runs in a worker thread. Methods raise ``OSError`` or
    ``ValueError`` on failure and leave recovery to ``TwoTierCache``.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self.root.mkdir(mode=0o700, parents=True, exist_ok=True)
        os.chmod(self.root, 0o700)

    def path_for(self, key: str) -> Path:
        return self.root / key_to_filename(key)

    async def read(self, key: str) -> CacheEntry | None:
        return await asyncio.to_thread(self._read_path, self.path_for(key))

    async def write(self, key: str, entry: CacheEntry) -> None:
        path = self.path_for(key)
        await asyncio.to_thread(self._write_path, path, entry.model_dump_json(by_alias=True))

    async def delete(self, key: str) -> None:
        path = self.path_for(key)
        await asyncio.to_thread(path.unlink, missing_ok=True)

    async def clear(self) -> None:
        await asyncio.to_thread(self._clear_sync)

    async def sweep(self, now: float) -> int:
        """Delete expired entry files. Unreadable files are skipped."""
        return await asyncio.to_thread(self._sweep_sync, now)

    # ------------------------------------------------------------------
    # Blocking helpers (worker thread only)
    # ------------------------------------------------------------------

    @staticmethod
    def _read_path(path: Path) -> CacheEntry | None:
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        return CacheEntry.model_validate_json(raw)

    def _write_path(self, path: Path, data: str) -> None:
        # Temp names start with "." so they never match "*.json" sweeps.
        fd, tmp_name = tempfile.mkstemp(dir=self.root, prefix=".", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _clear_sync(self) -> None:
        for path in self.root.glob("*.json"):
            path.unlink(missing_ok=True)

    def _sweep_sync(self, now: float) -> int:
        removed = 0
        for path in self.root.glob("*.json"):
            try:
                entry = self._read_path(path)
            except (OSError, ValueError):
                log.debug("cache_sweep_skipped", file=path.name)
                continue
            if entry is not None and entry.is_expired(now):
                path.unlink(missing_ok=True)
                removed += 1
        return removed


class TwoTierCache:
    """Memory + file cache implementing CacheProtocol."""

    def __init__(
        self,
        storage: FileStorage | None = None,
        *,
        default_ttl_seconds: int = 3600,
        use_memory: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._storage = storage
        self._use_memory = use_memory
        self._default_ttl = default_ttl_seconds
        self._clock = clock
        self._memory: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    async def get(self, key: str) -> Any | None:
        validate_key(key)
        now = self._clock()

        entry = self._memory.get(key)
        if entry is not None:
            if not entry.is_expired(now):
                self._hits += 1
                log.debug("cache_hit", key=key, tier="memory")
                return entry.payload
            del self._memory[key]

        if self._storage is not None:
            try:
                entry = await self._storage.read(key)
            except (OSError, ValueError):
                log.warning("cache_read_error", key=key, exc_info=True)
                entry = None

            if entry is not None:
                if not entry.is_expired(now):
                    if self._use_memory:
                        self._memory[key] = entry
                    self._hits += 1
                    log.debug("cache_hit", key=key, tier="file")
                    return entry.payload
                await self._delete_durable(key)

        self._misses += 1
        log.debug("cache_miss", key=key)
        return None

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        validate_key(key)
        entry = CacheEntry(
            payload=value,
            created_at=self._clock(),
            ttl_seconds=self._default_ttl if ttl_seconds is None else ttl_seconds,
        )
        if self._use_memory:
            self._memory[key] = entry

        if self._storage is not None:
            try:
                await self._storage.write(key, entry)
            except (OSError, ValueError, TypeError):
                log.warning("cache_write_error", key=key, exc_info=True)

    async def delete(self, key: str) -> None:
        validate_key(key)
        self._memory.pop(key, None)
        await self._delete_durable(key)

    async def clear(self) -> None:
        self._memory.clear()
        if self._storage is not None:
            try:
                await self._storage.clear()
            except OSError:
                log.warning("cache_clear_error", exc_info=True)

    async def cleanup_expired(self) -> int:
        """Drop expired entries from both tiers. Returns the number removed."""
        now = self._clock()
        expired = [key for key, entry in self._memory.items() if entry.is_expired(now)]
        for key in expired:
            del self._memory[key]
        removed = len(expired)

        if self._storage is not None:
            try:
                removed += await self._storage.sweep(now)
            except OSError:
                log.warning("cache_cleanup_error", exc_info=True)

        log.info("cache_cleanup_complete", removed=removed)
        return removed

    def stats(self) -> dict[str, int]:
        return {"keys": len(self._memory), "hits": self._hits, "misses": self._misses}

    async def _delete_durable(self, key: str) -> None:
        if self._storage is None:
            return
        try:
            await self._storage.delete(key)
        except OSError:
            log.warning("cache_delete_error", key=key, exc_info=True)
