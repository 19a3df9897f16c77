"""Shared test fixtures for the docscout test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from docscout.cache import FileStorage, TwoTierCache
from docscout.config import Settings
from docscout.fetcher import Fetcher
from docscout.guard import FetchGuard
from docscout.models.docs import DocumentationEntry, ScraperResult
from docscout.orchestrator import Orchestrator
from docscout.state import AppState

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

    from docscout.models.docs import DocKind, ScrapeIntent

PUBLIC_ADDRESS = "93.184.216.34"

BROWSER_WINDOW_HTML = """
<html>
  <head><title>BrowserWindow | Electron</title></head>
  <body>
    <nav>Docs navigation</nav>
    <article class="theme-doc-markdown markdown">
      <h1>BrowserWindow</h1>
      <p>Create and control browser windows.</p>
      <p>A browser window is created with new BrowserWindow(options) in the main process.</p>
      <p>Pass width and height to create a browser window of a given size.</p>
      <pre><code class="language-js">const { BrowserWindow } = require('electron')
const win = new BrowserWindow({ width: 800, height: 600 })</code></pre>
    </article>
  </body>
</html>
"""


async def public_resolver(hostname: str) -> list[str]:
    """Resolve every hostname to a public documentation address."""
    return [PUBLIC_ADDRESS]


def make_entry(
    title: str,
    content: str = "",
    *,
    source_id: str = "electron",
    kind: DocKind = "api",
    url: str | None = None,
    **metadata: object,
) -> DocumentationEntry:
    return DocumentationEntry(
        title=title,
        content=content or f"{title} documentation",
        url=url or f"https://docs.example.com/{title.lower().replace(' ', '-')}",
        kind=kind,
        source_id=source_id,
        metadata=metadata,
    )


class FakeAdapter:
    """In-memory SourceAdapterProtocol implementation that records its calls."""

    def __init__(
        self,
        source_id: str,
        entries: list[DocumentationEntry] | None = None,
        errors: list[str] | None = None,
    ) -> None:
        self.source_id = source_id
        self.entries = entries or []
        self.errors = errors or []
        self.calls: list[ScrapeIntent] = []

    async def scrape(self, intent: ScrapeIntent) -> ScraperResult:
        self.calls.append(intent)
        return ScraperResult(
            entries=list(self.entries),
            source_id=self.source_id,
            errors=list(self.errors),
        )


@pytest.fixture()
def guard() -> FetchGuard:
    """Guard whose DNS lookups always land on a public address."""
    return FetchGuard(resolver=public_resolver)


@pytest.fixture()
async def http_client() -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(follow_redirects=False) as client:
        yield client


@pytest.fixture()
def fetcher(http_client: httpx.AsyncClient, guard: FetchGuard) -> Fetcher:
    return Fetcher(http_client, guard)


@pytest.fixture()
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture()
def cache(cache_dir: Path) -> TwoTierCache:
    return TwoTierCache(FileStorage(cache_dir))


@pytest.fixture()
def entry_factory():
    """Build DocumentationEntry objects with sensible defaults."""
    return make_entry


@pytest.fixture()
def adapter_factory():
    """Build FakeAdapter instances: ``adapter_factory("react", entries=[...])``."""
    return FakeAdapter


@pytest.fixture()
def browser_window_html() -> str:
    return BROWSER_WINDOW_HTML


@pytest.fixture()
def fake_adapters() -> dict[str, FakeAdapter]:
    """Electron and React sources with a little canned content each."""
    return {
        "electron": FakeAdapter(
            "electron",
            entries=[
                make_entry("BrowserWindow", "Create and control browser windows."),
                make_entry(
                    "Create a window",
                    "const win = new BrowserWindow({ width: 800 })",
                    kind="example",
                    language="javascript",
                ),
                make_entry(
                    "Migration: 27.0 to 28.0",
                    "Removed: BrowserView",
                    kind="migration",
                    from_version="27.0",
                    to_version="28.0",
                ),
            ],
        ),
        "react": FakeAdapter(
            "react",
            entries=[make_entry("useState", "Adds a state variable.", source_id="react")],
        ),
    }


@pytest.fixture()
def app_state(fake_adapters: dict[str, FakeAdapter]) -> AppState:
    """AppState wired to canned adapters and a memory-only cache."""
    cache = TwoTierCache()
    return AppState(
        settings=Settings(),
        orchestrator=Orchestrator(cache, fake_adapters),
        cache=cache,
    )
