from __future__ import annotations

from typing import TYPE_CHECKING

from docscout.adapters.base import SourceAdapter, name_variants
from docscout.adapters.electron import ElectronAdapter
from docscout.adapters.github import GitHubAdapter
from docscout.adapters.node import NodeAdapter
from docscout.adapters.react import ReactAdapter
from docscout.models.docs import ScraperConfig

if TYPE_CHECKING:
    from docscout.config import FetcherSettings
    from docscout.fetcher import Fetcher

ADAPTER_CLASSES: dict[str, type[SourceAdapter]] = {
    cls.source_id: cls for cls in (ElectronAdapter, ReactAdapter, NodeAdapter, GitHubAdapter)
}


def build_adapters(
    sources: dict[str, str],
    fetcher: Fetcher,
    fetcher_settings: FetcherSettings,
) -> dict[str, SourceAdapter]:
    """Instantiate one adapter per configured source. Unknown names are ignored."""
    adapters: dict[str, SourceAdapter] = {}
    for source_id, base_url in sources.items():
        cls = ADAPTER_CLASSES.get(source_id)
        if cls is None:
            continue
        headers: dict[str, str] = {}
        if source_id == GitHubAdapter.source_id and fetcher_settings.github_token:
            headers["Authorization"] = f"token {fetcher_settings.github_token}"
        config = ScraperConfig(
            base_url=base_url,
            rate_limit_per_minute=fetcher_settings.rate_limit_per_minute,
            timeout_ms=int(fetcher_settings.timeout_seconds * 1000),
            headers=headers,
        )
        adapters[source_id] = cls(config, fetcher)
    return adapters


__all__ = [
    "ADAPTER_CLASSES",
    "ElectronAdapter",
    "GitHubAdapter",
    "NodeAdapter",
    "ReactAdapter",
    "SourceAdapter",
    "build_adapters",
    "name_variants",
]
