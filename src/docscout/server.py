"""docscout entrypoint.

Responsibilities (and nothing more):
- Configure structlog
- Create AppState via the ``lifespan`` context manager
- Start the correct transport (stdio or HTTP)
"""

from __future__ import annotations

import asyncio
import logging
import sys
from contextlib import asynccontextmanager, suppress
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from docscout import __version__
from docscout.adapters import build_adapters
from docscout.cache import FileStorage, TwoTierCache
from docscout.config import Settings
from docscout.fetcher import Fetcher, build_http_client
from docscout.guard import FetchGuard
from docscout.orchestrator import Orchestrator
from docscout.schedulers import run_cache_cleanup_scheduler
from docscout.state import AppState
from docscout.transport import run_http_server, run_stdio_server

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        # Logs go to stderr; stdout is reserved for the stdio JSON-RPC stream
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


def _build_cache(settings: Settings) -> TwoTierCache:
    """Create the cache, degrading to memory-only if the cache dir is unusable."""
    storage: FileStorage | None = None
    if settings.cache.storage in ("file", "both"):
        cache_dir = Path(settings.cache.dir).expanduser()
        try:
            storage = FileStorage(cache_dir)
        except OSError:
            log.warning("cache_dir_unavailable", dir=str(cache_dir), exc_info=True)

    return TwoTierCache(
        storage,
        default_ttl_seconds=settings.cache.default_ttl_seconds,
        use_memory=settings.cache.storage != "file" or storage is None,
    )


@asynccontextmanager
async def lifespan(settings: Settings) -> AsyncGenerator[AppState, None]:
    """Create and tear down all shared resources for the server's lifetime."""
    log.info(
        "server_starting",
        version=__version__,
        transport=settings.server.transport,
    )

    http_client = build_http_client(settings.fetcher)
    guard = FetchGuard()
    fetcher = Fetcher(http_client, guard, max_redirects=settings.fetcher.max_redirects)
    cache = _build_cache(settings)

    sources = settings.sources.configured()
    if not sources:
        log.warning("no_sources_configured")
    adapters = build_adapters(sources, fetcher, settings.fetcher)

    state = AppState(
        settings=settings,
        orchestrator=Orchestrator(cache, adapters),
        cache=cache,
        adapters=adapters,
        http_client=http_client,
        guard=guard,
        fetcher=fetcher,
    )

    cache_cleanup_task = asyncio.create_task(run_cache_cleanup_scheduler(state))

    log.info(
        "server_started",
        version=__version__,
        transport=settings.server.transport,
        sources=sorted(adapters),
        cache_storage=settings.cache.storage,
    )

    try:
        yield state
    finally:
        cache_cleanup_task.cancel()
        with suppress(asyncio.CancelledError):
            await cache_cleanup_task
        state.sessions.close_all()
        await http_client.aclose()
        log.info("server_stopping")


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


async def serve(settings: Settings) -> None:
    async with lifespan(settings) as state:
        if settings.server.transport == "http":
            await run_http_server(state)
        else:
            await run_stdio_server(state)


def main() -> None:
    settings = Settings()
    _setup_logging(settings)

    with suppress(KeyboardInterrupt):
        asyncio.run(serve(settings))


if __name__ == "__main__":
    main()
