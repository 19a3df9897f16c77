"""Protocol interfaces for swappable components.

The orchestrator and AppState reference these protocols, not the concrete
implementations. This allows:
- Tests to use lightweight in-memory implementations
- Future backends (e.g. a shared cache) to be swapped without changing callers
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from docscout.models.docs import ScrapeIntent, ScraperResult


class CacheProtocol(Protocol):
    """Interface for the result cache backend."""

    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def clear(self) -> None: ...

    async def cleanup_expired(self) -> int: ...


class SourceAdapterProtocol(Protocol):
    """Interface for a documentation source."""

    source_id: str

    async def scrape(self, intent: ScrapeIntent) -> ScraperResult: ...
