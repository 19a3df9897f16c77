"""Background scheduler coroutines."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from docscout.state import AppState

log = structlog.get_logger()


async def run_cache_cleanup_scheduler(state: AppState) -> None:
    """Sweep expired cache entries at startup and then on the configured interval."""
    interval_seconds = state.settings.cache.cleanup_interval_hours * 3600

    while True:
        try:
            await state.cache.cleanup_expired()
        except Exception:
            log.warning("cache_cleanup_scheduler_error", exc_info=True)
        await asyncio.sleep(interval_seconds)
