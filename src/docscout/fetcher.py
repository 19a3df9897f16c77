"""HTTP documentation fetcher with SSRF protection and per-source pacing.

All network I/O for fetching documentation goes through a single Fetcher
instance shared by every source adapter. The Fetcher receives an
httpx.AsyncClient and a FetchGuard via constructor injection; the lifespan
owns the client lifecycle.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from urllib.parse import urljoin, urlsplit

import httpx
import structlog

from docscout.errors import ErrorCode, SourceError

if TYPE_CHECKING:
    from docscout.config import FetcherSettings
    from docscout.guard import FetchGuard

log = structlog.get_logger()

DEFAULT_TIMEOUT_SECONDS = 30.0

# Never forwarded to a different origin on redirect.
CREDENTIAL_HEADERS = frozenset({"authorization", "cookie", "proxy-authorization"})


def _same_origin(url: str, other: str) -> bool:
    """True when *other* keeps the host of *url* (an http to https upgrade still counts)."""
    a, b = urlsplit(url), urlsplit(other)
    if a.hostname != b.hostname:
        return False
    if a.scheme == b.scheme:
        return a.port == b.port
    return a.scheme == "http" and b.scheme == "https" and b.port in (None, 443)


def strip_credentials(headers: dict[str, str]) -> dict[str, str]:
    return {
        name: value for name, value in headers.items() if name.lower() not in CREDENTIAL_HEADERS
    }


def build_http_client(settings: FetcherSettings | None = None) -> httpx.AsyncClient:
    """Create the shared httpx client. Called once at startup."""
    timeout = settings.timeout_seconds if settings else DEFAULT_TIMEOUT_SECONDS
    user_agent = settings.user_agent if settings else "docscout/1.0"
    return httpx.AsyncClient(
        follow_redirects=False,
        timeout=httpx.Timeout(timeout),
        headers={"User-Agent": user_agent},
        limits=httpx.Limits(
            max_connections=10,
            max_keepalive_connections=5,
        ),
    )


class Fetcher:
    """HTTP fetcher that validates and paces every hop, redirects included."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        guard: FetchGuard,
        *,
        max_redirects: int = 3,
    ) -> None:
        self._client = client
        self.guard = guard
        self._max_redirects = max_redirects

    async def fetch_text(
        self,
        url: str,
        *,
        source_id: str,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> str:
        response = await self._get(url, source_id=source_id, headers=headers, timeout=timeout)
        return response.text

    async def fetch_json(
        self,
        url: str,
        *,
        source_id: str,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> Any:
        merged = {"Accept": "application/json", **(headers or {})}
        response = await self._get(url, source_id=source_id, headers=merged, timeout=timeout)
        try:
            return response.json()
        except ValueError as exc:
            raise SourceError(
                f"Invalid JSON from {url}",
                source_id=source_id,
                recoverable=False,
            ) from exc

    async def _get(
        self,
        url: str,
        *,
        source_id: str,
        headers: dict[str, str] | None,
        timeout: float | None,
    ) -> httpx.Response:
        """Fetch a URL with per-hop SSRF validation and pacing.

        Raises SecurityError when any hop is blocked, SourceError on network
        errors, timeouts, redirect loops and non-2xx responses.
        """
        current_url = url
        request_timeout = httpx.Timeout(timeout) if timeout else None
        extra: dict[str, Any] = {"headers": headers or {}}
        if request_timeout is not None:
            extra["timeout"] = request_timeout

        try:
            for hop in range(self._max_redirects + 1):
                await self.guard.validate(current_url)
                await self.guard.pace(source_id)

                log.debug("fetch_started", source=source_id, url=current_url, hop=hop)
                response = await self._client.get(current_url, **extra)

                if response.is_redirect and "location" in response.headers:
                    if hop == self._max_redirects:
                        raise SourceError(
                            f"Too many redirects fetching {url}",
                            source_id=source_id,
                            suggestion="The documentation URL has an unusually long redirect chain.",
                            recoverable=False,
                        )
                    next_url = urljoin(current_url, response.headers["location"])
                    if not _same_origin(current_url, next_url):
                        extra["headers"] = strip_credentials(extra["headers"])
                    current_url = next_url
                    continue

                if not response.is_success:
                    if response.status_code == 404:
                        raise SourceError(
                            f"HTTP 404 fetching {url}",
                            source_id=source_id,
                            code=ErrorCode.PAGE_NOT_FOUND,
                            suggestion="The requested documentation page does not exist.",
                            recoverable=False,
                        )
                    raise SourceError(
                        f"HTTP {response.status_code} fetching {url}",
                        source_id=source_id,
                        suggestion="The documentation source may be temporarily unavailable.",
                    )

                log.info(
                    "fetch_complete",
                    source=source_id,
                    url=url,
                    status_code=response.status_code,
                    content_length=len(response.content),
                )
                return response

        except httpx.TimeoutException as exc:
            raise SourceError(
                f"Timed out fetching {url}",
                source_id=source_id,
                suggestion="The documentation source is responding slowly. Try again later.",
            ) from exc
        except httpx.HTTPError as exc:
            raise SourceError(
                f"Network error fetching {url}: {exc}",
                source_id=source_id,
                suggestion="The documentation source may be temporarily unavailable.",
            ) from exc

        # Unreachable but satisfies the type checker
        raise SourceError("Redirect loop", source_id=source_id, recoverable=False)
