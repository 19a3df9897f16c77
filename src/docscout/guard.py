"""Outbound request guard: SSRF validation and per-source pacing.

``FetchGuard.validate`` runs before every network call (including each
redirect hop), not only when sources are configured. ``FetchGuard.pace``
spaces out calls to the same source according to its configured rate.
"""

from __future__ import annotations

import asyncio
import ipaddress
import socket
import time
from collections.abc import Awaitable, Callable
from typing import NoReturn
from urllib.parse import urlsplit

import structlog

from docscout.errors import SecurityError, SourceError

log = structlog.get_logger()

BLOCKED_NETWORKS: list[ipaddress.IPv4Network | ipaddress.IPv6Network] = [
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("169.254.0.0/16"),
    ipaddress.ip_network("0.0.0.0/32"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("::/128"),
    ipaddress.ip_network("fc00::/7"),
    ipaddress.ip_network("fe80::/10"),
]
BLOCKED_HOSTNAMES = frozenset({"localhost", "localhost.localdomain"})
ALLOWED_SCHEMES = frozenset({"http", "https"})

Resolver = Callable[[str], Awaitable[list[str]]]


async def resolve_host(hostname: str) -> list[str]:
    """Resolve *hostname* to every address it maps to, without blocking the loop."""
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(hostname, None, type=socket.SOCK_STREAM)
    return [info[4][0] for info in infos]


def is_blocked_address(address: str) -> bool:
    addr = ipaddress.ip_address(address.split("%", 1)[0])  # Drop IPv6 zone id
    if isinstance(addr, ipaddress.IPv6Address) and addr.ipv4_mapped is not None:
        addr = addr.ipv4_mapped
    return any(addr in net for net in BLOCKED_NETWORKS)


class RateLimiter:
    """Leaky-bucket pacing keyed by source id.

    Each source has a "next free slot" timestamp. A caller reserves the
    earliest free slot, pushes the slot forward by one interval, and sleeps
    until its reservation comes up. Reservation happens without awaiting, so
    concurrent callers are served strictly in call order.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._clock = clock
        self._sleep = sleep
        self._intervals: dict[str, float] = {}
        self._next_slot: dict[str, float] = {}

    def configure(self, source_id: str, rate_per_minute: int | None) -> None:
        if rate_per_minute:
            self._intervals[source_id] = 60.0 / rate_per_minute
        else:
            self._intervals.pop(source_id, None)
        self._next_slot.pop(source_id, None)

    def reserve(self, source_id: str) -> float:
        """Claim the next slot for *source_id* and return the delay until it."""
        interval = self._intervals.get(source_id)
        if interval is None:
            return 0.0
        now = self._clock()
        slot = max(now, self._next_slot.get(source_id, now))
        self._next_slot[source_id] = slot + interval
        return slot - now

    async def acquire(self, source_id: str) -> None:
        delay = self.reserve(source_id)
        if delay > 0:
            log.debug("rate_limit_wait", source=source_id, delay_seconds=round(delay, 3))
            await self._sleep(delay)


class FetchGuard:
    def __init__(
        self,
        *,
        resolver: Resolver = resolve_host,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        self._resolve = resolver
        self.rate_limiter = rate_limiter or RateLimiter()

    def configure_source(self, source_id: str, rate_per_minute: int | None) -> None:
        self.rate_limiter.configure(source_id, rate_per_minute)

    async def validate(self, url: str) -> None:
        """Raise ``SecurityError`` unless *url* is safe to request.

        The raised message is deliberately generic; the reason is only logged.
        """
        try:
            parsed = urlsplit(url)
            scheme = parsed.scheme.lower()
            hostname = (parsed.hostname or "").lower().rstrip(".")
        except ValueError:
            self._deny(url, "unparseable_url")

        if scheme not in ALLOWED_SCHEMES:
            self._deny(url, "scheme_not_allowed")
        if not hostname:
            self._deny(url, "missing_hostname")
        if hostname in BLOCKED_HOSTNAMES:
            self._deny(url, "localhost")

        try:
            ipaddress.ip_address(hostname)
        except ValueError:
            addresses = await self._resolve_or_fail(hostname)
        else:
            addresses = [hostname]

        for address in addresses:
            try:
                blocked = is_blocked_address(address)
            except ValueError:
                self._deny(url, "unparseable_address")
            if blocked:
                self._deny(url, "private_address")

    async def pace(self, source_id: str) -> None:
        await self.rate_limiter.acquire(source_id)

    async def _resolve_or_fail(self, hostname: str) -> list[str]:
        try:
            addresses = await self._resolve(hostname)
        except (OSError, UnicodeError) as exc:
            raise SourceError(
                f"Could not resolve host {hostname}",
                suggestion="The documentation source may be temporarily unreachable.",
            ) from exc
        if not addresses:
            raise SourceError(f"Could not resolve host {hostname}")
        return addresses

    @staticmethod
    def _deny(url: str, reason: str) -> NoReturn:
        log.warning("ssrf_blocked", url=url, reason=reason)
        raise SecurityError(
            "URL not allowed",
            suggestion="Only public http(s) documentation URLs can be fetched.",
        )
