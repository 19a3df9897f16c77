"""Unit tests for startup wiring in server.py."""

from __future__ import annotations

from typing import TYPE_CHECKING

from docscout.config import Settings
from docscout.server import _build_cache, lifespan

if TYPE_CHECKING:
    from pathlib import Path


def _settings(tmp_path: Path, **cache: object) -> Settings:
    return Settings(cache={"dir": str(tmp_path / "cache"), **cache})


class TestBuildCache:
    async def test_both_tiers(self, tmp_path: Path) -> None:
        cache = _build_cache(_settings(tmp_path, storage="both"))
        await cache.set("search:1", "v")
        assert cache.stats()["keys"] == 1
        assert (tmp_path / "cache" / "search_1.json").exists()

    async def test_memory_only(self, tmp_path: Path) -> None:
        cache = _build_cache(_settings(tmp_path, storage="memory"))
        await cache.set("search:1", "v")
        assert not (tmp_path / "cache").exists()
        assert await cache.get("search:1") == "v"

    async def test_file_only(self, tmp_path: Path) -> None:
        cache = _build_cache(_settings(tmp_path, storage="file"))
        await cache.set("search:1", "v")
        assert cache.stats()["keys"] == 0
        assert await cache.get("search:1") == "v"

    async def test_unusable_dir_degrades_to_memory(self, tmp_path: Path) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x", encoding="utf-8")
        settings = Settings(cache={"dir": str(blocker / "cache"), "storage": "file"})

        cache = _build_cache(settings)
        await cache.set("search:1", "v")
        assert await cache.get("search:1") == "v"


class TestLifespan:
    async def test_wires_configured_sources(self, tmp_path: Path) -> None:
        settings = Settings(
            cache={"dir": str(tmp_path / "cache")},
            sources={"github": None},
        )
        async with lifespan(settings) as state:
            assert set(state.adapters) == {"electron", "react", "node"}
            assert state.orchestrator.adapters is state.adapters
            assert state.fetcher is not None
            assert state.fetcher.guard is state.guard
            client = state.http_client
            state.sessions.open()

        assert client is not None
        assert client.is_closed
        assert len(state.sessions) == 0

    async def test_no_sources_still_starts(self, tmp_path: Path) -> None:
        settings = Settings(
            cache={"dir": str(tmp_path / "cache")},
            sources={"electron": None, "react": None, "node": None, "github": None},
        )
        async with lifespan(settings) as state:
            assert state.adapters == {}
            result = await state.orchestrator.search("menu")
            assert result.entries == []
