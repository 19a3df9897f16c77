"""Integration tests for MCP tool handlers.

Tests the full path through each handler: input validation → orchestrator →
real adapters → fetcher → parser → cache → markdown output. Only the
documentation sites themselves are mocked.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest
import respx

from docscout.adapters import build_adapters
from docscout.config import FetcherSettings, Settings
from docscout.errors import ErrorCode, ValidationError
from docscout.orchestrator import Orchestrator
from docscout.state import AppState
from docscout.tools.find_examples import handle as find_examples
from docscout.tools.get_api_reference import handle as get_api_reference
from docscout.tools.get_migration_guide import handle as get_migration_guide
from docscout.tools.search_documentation import handle as search_documentation

if TYPE_CHECKING:
    from pathlib import Path

    from docscout.cache import TwoTierCache
    from docscout.dispatcher import Dispatcher
    from docscout.fetcher import Fetcher

ELECTRON_API = "https://www.electronjs.org/docs/latest/api"

BREAKING_CHANGES_HTML = """
<html><body><article class="markdown">
  <h1>Breaking Changes</h1>
  <h2>Planned Breaking API Changes (from 27.0 to 28.0)</h2>
  <ul><li>Removed: BrowserView</li></ul>
</article></body></html>
"""


def _text(result: dict) -> str:
    return result["content"][0]["text"]


class TestSearchDocumentation:
    async def test_create_browser_window(
        self, live_state: AppState, browser_window_html: str
    ) -> None:
        with respx.mock:
            route = respx.get(f"{ELECTRON_API}/browser-window").mock(
                return_value=httpx.Response(200, text=browser_window_html)
            )
            args = {"query": "create browser window", "sources": ["electron"]}
            first = _text(await search_documentation(args, live_state))
            second = _text(await search_documentation(args, live_state))

        assert first.startswith('# Search Results for "create browser window"')
        assert "Found 2 results across electron" in first
        assert "## 1. BrowserWindow" in first
        assert "**URL:** https://www.electronjs.org/docs/latest/api/browser-window" in first
        # Second call is answered from the cache
        assert second == first
        assert route.call_count == 1

    async def test_failing_source_is_listed(
        self, live_state: AppState, browser_window_html: str
    ) -> None:
        with respx.mock:
            respx.get(f"{ELECTRON_API}/browser-window").mock(
                return_value=httpx.Response(200, text=browser_window_html)
            )
            respx.get("https://react.dev/reference/react").mock(return_value=httpx.Response(503))
            text = _text(
                await search_documentation(
                    {"query": "browser window", "sources": ["electron", "react"]}, live_state
                )
            )

        # The example's title contains the whole query, so it outranks the api page
        assert "## 1. Pass width and height to create a browser window of a given size." in text
        assert "## 2. BrowserWindow" in text
        assert "## Sources with errors" in text
        assert "- react: HTTP 503 fetching https://react.dev/reference/react" in text

    async def test_invalid_limit(self, live_state: AppState) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await search_documentation({"query": "menu", "limit": 0}, live_state)
        assert exc_info.value.code == ErrorCode.INVALID_INPUT


class TestGetApiReference:
    async def test_naming_variants(self, live_state: AppState, browser_window_html: str) -> None:
        with respx.mock:
            respx.get(f"{ELECTRON_API}/browserwindow").mock(return_value=httpx.Response(404))
            respx.get(f"{ELECTRON_API}/browser-window").mock(
                return_value=httpx.Response(200, text=browser_window_html)
            )
            text = _text(
                await get_api_reference(
                    {"apiName": "BrowserWindow", "source": "electron"}, live_state
                )
            )

        assert text.startswith("# BrowserWindow\n")
        assert "**Source:** electron | **Type:** api" in text
        assert "## Content" in text
        assert "Sources with errors" not in text

    async def test_not_found(self, live_state: AppState) -> None:
        with respx.mock:
            respx.get(url__regex=r"https://nodejs\.org/api/.*").mock(
                return_value=httpx.Response(404)
            )
            text = _text(await get_api_reference({"apiName": "nope", "source": "node"}, live_state))

        assert text.startswith('No API reference found for "nope" in node')
        assert "- node: API not found: nope" in text

    async def test_private_base_url_is_blocked(
        self, cache: TwoTierCache, fetcher: Fetcher
    ) -> None:
        settings = Settings(sources={"electron": "http://169.254.169.254", "react": None,
                                     "node": None, "github": None})
        adapters = build_adapters(
            settings.sources.configured(), fetcher, FetcherSettings(rate_limit_per_minute=None)
        )
        state = AppState(
            settings=settings,
            orchestrator=Orchestrator(cache, adapters),
            cache=cache,
            adapters=adapters,
        )
        with respx.mock(assert_all_called=False) as router:
            metadata = router.get(url__regex=r"http://169\.254\.169\.254/.*").mock(
                return_value=httpx.Response(200, text="<h1>secrets</h1>")
            )
            text = _text(await get_api_reference({"apiName": "app", "source": "electron"}, state))

        assert not metadata.called
        assert "- electron: URL not allowed" in text
        assert "169.254" not in text


class TestFindExamples:
    async def test_examples_from_page(
        self, live_state: AppState, browser_window_html: str
    ) -> None:
        with respx.mock:
            respx.get(f"{ELECTRON_API}/browser-window").mock(
                return_value=httpx.Response(200, text=browser_window_html)
            )
            text = _text(
                await find_examples(
                    {"topic": "browser window", "sources": ["electron"]}, live_state
                )
            )

        assert text.startswith("# Code Examples (1 found)")
        assert "**Language:** js" in text
        assert "```js\nconst { BrowserWindow } = require('electron')" in text

    async def test_no_examples(self, live_state: AppState) -> None:
        with respx.mock:
            respx.get(f"{ELECTRON_API}/tray").mock(return_value=httpx.Response(404))
            text = _text(await find_examples({"topic": "tray", "sources": ["electron"]}, live_state))

        assert text.startswith('No examples found for "tray"')
        assert "- electron: HTTP 404" in text


class TestGetMigrationGuide:
    async def test_electron_breaking_changes(self, live_state: AppState) -> None:
        with respx.mock:
            respx.get("https://www.electronjs.org/docs/latest/breaking-changes").mock(
                return_value=httpx.Response(200, text=BREAKING_CHANGES_HTML)
            )
            text = _text(
                await get_migration_guide(
                    {"source": "electron", "fromVersion": "27.0.0", "toVersion": "28.0.0"},
                    live_state,
                )
            )

        assert text.startswith("# Migration Guide: electron 27.0.0 → 28.0.0")
        assert "## Migration: 27.0 to 28.0" in text
        assert "Removed: BrowserView" in text
        assert "- From Version: 27.0" in text

    async def test_unsupported_source(self, live_state: AppState) -> None:
        text = _text(
            await get_migration_guide(
                {"source": "node", "fromVersion": "18", "toVersion": "20"}, live_state
            )
        )
        assert text.startswith("No migration guide found for node from 18 to 20")
        assert "- node: Migration guides are not supported for Node.js" in text


class TestThroughDispatcher:
    async def test_tool_call_writes_durable_cache(
        self, dispatcher: Dispatcher, browser_window_html: str, cache_dir: Path
    ) -> None:
        with respx.mock:
            respx.get(f"{ELECTRON_API}/browser-window").mock(
                return_value=httpx.Response(200, text=browser_window_html)
            )
            response = await dispatcher.dispatch(
                {
                    "jsonrpc": "2.0",
                    "id": 10,
                    "method": "tools/call",
                    "params": {
                        "name": "search_documentation",
                        "arguments": {"query": "window", "sources": ["electron"], "limit": 1},
                    },
                }
            )

        assert response["id"] == 10
        assert "Found 2 results across electron" in _text(response["result"])
        assert [p.name.split("_")[0] for p in cache_dir.glob("*.json")] == ["search"]
