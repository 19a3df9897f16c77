"""Unit tests for docscout.cache."""

from __future__ import annotations

import json
import stat
from typing import TYPE_CHECKING

import pytest

from docscout.cache import FileStorage, TwoTierCache, key_to_filename, validate_key
from docscout.errors import ErrorCode, SecurityError

if TYPE_CHECKING:
    from pathlib import Path

    from docscout.models.cache import CacheEntry


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class BrokenStorage(FileStorage):
    """Durable tier whose disk has gone away."""

    async def read(self, key: str) -> CacheEntry | None:
        raise OSError("disk unavailable")

    async def write(self, key: str, entry: CacheEntry) -> None:
        raise OSError("disk full")


# ---------------------------------------------------------------------------
# Key handling
# ---------------------------------------------------------------------------


class TestKeys:
    def test_filename_is_sanitised(self) -> None:
        assert key_to_filename("search:0123abcd") == "search_0123abcd.json"

    def test_unsafe_runs_collapse(self) -> None:
        assert key_to_filename("a::/\\b") == "a_b.json"

    @pytest.mark.parametrize(
        "key",
        ["", ".hidden", "../../etc/passwd", "a/../b", "x" * 201],
    )
    def test_rejected_keys(self, key: str) -> None:
        with pytest.raises(SecurityError) as exc_info:
            validate_key(key)
        assert exc_info.value.code == ErrorCode.CACHE_KEY_REJECTED

    async def test_get_with_traversal_key_raises(self, cache: TwoTierCache) -> None:
        with pytest.raises(SecurityError):
            await cache.get("../outside")

    async def test_set_with_traversal_key_writes_nothing(
        self, cache: TwoTierCache, cache_dir: Path
    ) -> None:
        with pytest.raises(SecurityError):
            await cache.set("..", {"x": 1})
        assert list(cache_dir.iterdir()) == []


# ---------------------------------------------------------------------------
# FileStorage
# ---------------------------------------------------------------------------


class TestFileStorage:
    def test_directory_is_private(self, cache_dir: Path) -> None:
        FileStorage(cache_dir)
        assert stat.S_IMODE(cache_dir.stat().st_mode) == 0o700

    async def test_entry_file_uses_camel_case_fields(
        self, cache: TwoTierCache, cache_dir: Path
    ) -> None:
        await cache.set("search:abc", {"hello": "world"}, ttl_seconds=60)
        data = json.loads((cache_dir / "search_abc.json").read_text(encoding="utf-8"))
        assert data["payload"] == {"hello": "world"}
        assert data["ttlSeconds"] == 60
        assert "createdAt" in data

    async def test_no_temp_files_left_behind(self, cache: TwoTierCache, cache_dir: Path) -> None:
        await cache.set("search:abc", [1, 2, 3])
        assert [p.name for p in cache_dir.iterdir()] == ["search_abc.json"]


# ---------------------------------------------------------------------------
# TwoTierCache
# ---------------------------------------------------------------------------


class TestTwoTierCache:
    async def test_set_and_get(self, cache: TwoTierCache) -> None:
        await cache.set("api_ref:1", {"entry": None, "errors": []})
        assert await cache.get("api_ref:1") == {"entry": None, "errors": []}

    async def test_missing_key_returns_none(self, cache: TwoTierCache) -> None:
        assert await cache.get("api_ref:missing") is None

    async def test_fresh_instance_reads_from_disk(self, cache_dir: Path) -> None:
        first = TwoTierCache(FileStorage(cache_dir))
        await first.set("examples:1", {"entries": []})

        second = TwoTierCache(FileStorage(cache_dir))
        assert await second.get("examples:1") == {"entries": []}
        # Promoted into memory on the way out
        assert second.stats()["keys"] == 1

    async def test_expired_entry_is_a_miss(self, cache_dir: Path) -> None:
        clock = FakeClock()
        cache = TwoTierCache(FileStorage(cache_dir), clock=clock)
        await cache.set("search:1", "value", ttl_seconds=10)

        clock.now += 11
        assert await cache.get("search:1") is None
        # Expired durable copy is removed
        assert not (cache_dir / "search_1.json").exists()

    async def test_entry_valid_until_ttl_elapses(self, cache_dir: Path) -> None:
        clock = FakeClock()
        cache = TwoTierCache(FileStorage(cache_dir), clock=clock)
        await cache.set("search:1", "value", ttl_seconds=10)

        clock.now += 10
        assert await cache.get("search:1") == "value"

    async def test_default_ttl_applies(self) -> None:
        clock = FakeClock()
        cache = TwoTierCache(default_ttl_seconds=5, clock=clock)
        await cache.set("search:1", "value")
        clock.now += 6
        assert await cache.get("search:1") is None

    async def test_overwrite_replaces_value(self, cache: TwoTierCache) -> None:
        await cache.set("search:1", "v1")
        await cache.set("search:1", "v2")
        assert await cache.get("search:1") == "v2"

    async def test_delete_removes_both_tiers(self, cache: TwoTierCache, cache_dir: Path) -> None:
        await cache.set("search:1", "value")
        await cache.delete("search:1")
        assert await cache.get("search:1") is None
        assert not (cache_dir / "search_1.json").exists()

    async def test_clear(self, cache: TwoTierCache, cache_dir: Path) -> None:
        await cache.set("search:1", "a")
        await cache.set("search:2", "b")
        await cache.clear()
        assert await cache.get("search:1") is None
        assert list(cache_dir.glob("*.json")) == []

    async def test_corrupt_file_is_a_miss(self, cache_dir: Path) -> None:
        cache = TwoTierCache(FileStorage(cache_dir))
        (cache_dir / "search_1.json").write_text("{not json", encoding="utf-8")
        assert await cache.get("search:1") is None

    async def test_durable_failures_are_swallowed(self, cache_dir: Path) -> None:
        cache = TwoTierCache(BrokenStorage(cache_dir))
        await cache.set("search:1", "value")
        # Memory tier still serves the value
        assert await cache.get("search:1") == "value"

    async def test_durable_read_failure_is_a_miss(self, cache_dir: Path) -> None:
        cache = TwoTierCache(BrokenStorage(cache_dir))
        assert await cache.get("search:unknown") is None

    async def test_memory_only(self) -> None:
        cache = TwoTierCache()
        await cache.set("search:1", {"a": 1})
        assert await cache.get("search:1") == {"a": 1}

    async def test_file_only_skips_memory(self, cache_dir: Path) -> None:
        cache = TwoTierCache(FileStorage(cache_dir), use_memory=False)
        await cache.set("search:1", "value")
        assert cache.stats()["keys"] == 0
        assert await cache.get("search:1") == "value"
        assert cache.stats()["keys"] == 0

    async def test_stats_count_hits_and_misses(self, cache: TwoTierCache) -> None:
        await cache.get("search:1")
        await cache.set("search:1", "value")
        await cache.get("search:1")
        await cache.get("search:1")
        assert cache.stats() == {"keys": 1, "hits": 2, "misses": 1}


# ---------------------------------------------------------------------------
# Cleanup
# ---------------------------------------------------------------------------


class TestCleanupExpired:
    async def test_removes_expired_from_both_tiers(self, cache_dir: Path) -> None:
        clock = FakeClock()
        cache = TwoTierCache(FileStorage(cache_dir), clock=clock)
        await cache.set("search:old", "old", ttl_seconds=10)
        await cache.set("search:new", "new", ttl_seconds=1000)

        clock.now += 100
        removed = await cache.cleanup_expired()

        # One memory entry plus one file
        assert removed == 2
        assert not (cache_dir / "search_old.json").exists()
        assert (cache_dir / "search_new.json").exists()
        assert await cache.get("search:new") == "new"

    async def test_sweep_skips_unreadable_files(self, cache_dir: Path) -> None:
        clock = FakeClock()
        cache = TwoTierCache(FileStorage(cache_dir), clock=clock)
        (cache_dir / "garbage.json").write_text("not json", encoding="utf-8")
        await cache.set("search:old", "old", ttl_seconds=1)

        clock.now += 5
        await cache.cleanup_expired()
        assert (cache_dir / "garbage.json").exists()
        assert not (cache_dir / "search_old.json").exists()

    async def test_nothing_expired(self, cache: TwoTierCache) -> None:
        await cache.set("search:1", "value")
        assert await cache.cleanup_expired() == 0
