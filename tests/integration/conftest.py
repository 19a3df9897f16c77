"""Integration test fixtures.

Provides a fully wired AppState with real adapters, a real fetcher behind a
guard that resolves every host to a public address, and a file-backed
cache in a tmp directory. HTTP traffic is mocked per test with respx.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from docscout.adapters import build_adapters
from docscout.config import FetcherSettings, Settings
from docscout.dispatcher import Dispatcher
from docscout.orchestrator import Orchestrator
from docscout.state import AppState

if TYPE_CHECKING:
    from pathlib import Path

    import httpx

    from docscout.cache import TwoTierCache
    from docscout.fetcher import Fetcher
    from docscout.guard import FetchGuard


@pytest.fixture()
def subprocess_env(tmp_path: Path) -> dict[str, str]:
    """Baseline env dict for subprocess-based MCP integration tests.

    Overrides any local docscout.yaml by forcing stdio transport and pointing
    the cache at an isolated tmp directory.
    """
    env = os.environ.copy()
    env["DOCSCOUT__SERVER__TRANSPORT"] = "stdio"
    env["DOCSCOUT__CACHE__DIR"] = str(tmp_path / "cache")
    env["DOCSCOUT__LOGGING__LEVEL"] = "WARNING"
    return env


@pytest.fixture()
def live_state(
    cache: TwoTierCache,
    fetcher: Fetcher,
    guard: FetchGuard,
    http_client: httpx.AsyncClient,
) -> AppState:
    """AppState with every real adapter, unthrottled."""
    settings = Settings()
    adapters = build_adapters(
        settings.sources.configured(),
        fetcher,
        FetcherSettings(rate_limit_per_minute=None),
    )
    return AppState(
        settings=settings,
        orchestrator=Orchestrator(cache, adapters),
        cache=cache,
        adapters=adapters,
        http_client=http_client,
        guard=guard,
        fetcher=fetcher,
    )


@pytest.fixture()
def dispatcher(live_state: AppState) -> Dispatcher:
    return Dispatcher(live_state)
