"""Response cache for served images.

Entries are keyed by the full request URL and hold a complete response
(status, headers and body). Freshness comes from the response's own
``Cache-Control`` header: ``s-maxage`` wins over ``max-age``, and a response
without either, or marked ``no-store``/``private``, is not cached.
"""

import asyncio
import logging
import re
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol, runtime_checkable

from fastapi import Response

logger = logging.getLogger(__name__)

_DIRECTIVE = re.compile(r"^\s*([a-zA-Z-]+)\s*(?:=\s*\"?(\d+)\"?)?\s*$")


def freshness_lifetime(cache_control: Optional[str]) -> Optional[int]:
    """Return the shared-cache lifetime in seconds declared by a Cache-Control value."""
    if not cache_control:
        return None

    directives: dict[str, Optional[str]] = {}
    for part in cache_control.split(","):
        match = _DIRECTIVE.match(part)
        if match:
            directives[match.group(1).lower()] = match.group(2)

    if "no-store" in directives or "private" in directives:
        return None
    for name in ("s-maxage", "max-age"):
        value = directives.get(name)
        if value is not None:
            return int(value)
    return None


@dataclass
class CachedResponse:
    """A stored copy of a response and the instant it stops being fresh."""

    status_code: int
    headers: list[tuple[str, str]]
    body: bytes = field(repr=False)
    expires_at: float

    @classmethod
    def from_response(cls, response: Response, now: float) -> Optional["CachedResponse"]:
        lifetime = freshness_lifetime(response.headers.get("cache-control"))
        if lifetime is None or lifetime <= 0:
            return None
        return cls(
            status_code=response.status_code,
            headers=list(response.headers.items()),
            body=bytes(response.body),
            expires_at=now + lifetime,
        )

    def to_response(self) -> Response:
        return Response(
            content=self.body,
            status_code=self.status_code,
            headers=dict(self.headers),
        )


@runtime_checkable
class ResponseCache(Protocol):
    """Interface for a shared response cache."""

    async def match(self, key: str) -> Optional[Response]:
        """Return a fresh cached response for key, or None."""
        ...

    async def put(self, key: str, response: Response) -> None:
        """Store a response under key according to its Cache-Control header."""
        ...


class InMemoryResponseCache(ResponseCache):
    """Process-local response cache with TTL expiry and LRU eviction."""

    def __init__(self, max_entries: int = 1024, clock: Callable[[], float] = time.monotonic):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.clock = clock
        self._entries: OrderedDict[str, CachedResponse] = OrderedDict()
        self._lock = asyncio.Lock()

    async def match(self, key: str) -> Optional[Response]:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expires_at <= self.clock():
                del self._entries[key]
                logger.debug(f"Cache entry expired: {key}")
                return None
            self._entries.move_to_end(key)
        return entry.to_response()

    async def put(self, key: str, response: Response) -> None:
        entry = CachedResponse.from_response(response, self.clock())
        if entry is None:
            logger.debug(f"Response for {key} is not cacheable")
            return

        async with self._lock:
            self._entries[key] = entry
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Evicted cache entry: {evicted}")
        logger.debug(f"Cached response for {key} until {entry.expires_at:.0f}")

    def __len__(self) -> int:
        return len(self._entries)
