"""Application state container.

AppState is created once at server startup (inside the ``lifespan`` context
manager in server.py) and passed to the dispatcher, which hands it to every
tool handler.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from docscout.sessions import SessionRegistry

if TYPE_CHECKING:
    import httpx

    from docscout.adapters import SourceAdapter
    from docscout.config import Settings
    from docscout.fetcher import Fetcher
    from docscout.guard import FetchGuard
    from docscout.orchestrator import Orchestrator
    from docscout.protocols import CacheProtocol


@dataclass
class AppState:
    """Holds all shared runtime state."""

    settings: Settings
    orchestrator: Orchestrator
    cache: CacheProtocol
    adapters: dict[str, SourceAdapter] = field(default_factory=dict)
    http_client: httpx.AsyncClient | None = None
    guard: FetchGuard | None = None
    fetcher: Fetcher | None = None
    sessions: SessionRegistry = field(default_factory=SessionRegistry)
