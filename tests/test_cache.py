"""Tests for the in-memory response cache."""
import pytest
from fastapi import Response

from edge_image_proxy.cache import (
    CachedResponse,
    InMemoryResponseCache,
    ResponseCache,
    freshness_lifetime,
)

URL = "http://testserver/images/abc.png"


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def image_response(body: bytes = b"image", cache_control: str = "s-maxage=3600") -> Response:
    return Response(
        content=body,
        headers={"content-type": "image/png", "etag": '"abc"', "cache-control": cache_control},
    )


@pytest.mark.parametrize("value,expected", [
    ("s-maxage=3600", 3600),
    ("max-age=60", 60),
    ("max-age=60, s-maxage=600", 600),
    ("public, max-age=\"30\"", 30),
    ("no-store, max-age=60", None),
    ("private, max-age=60", None),
    ("no-cache", None),
    ("", None),
    (None, None),
])
def test_freshness_lifetime(value, expected):
    assert freshness_lifetime(value) == expected


def test_cached_response_round_trip():
    entry = CachedResponse.from_response(image_response(b"payload"), now=0.0)

    assert entry.expires_at == 3600.0
    response = entry.to_response()
    assert response.body == b"payload"
    assert response.headers["etag"] == '"abc"'
    assert response.headers["content-type"] == "image/png"


def test_uncacheable_response():
    assert CachedResponse.from_response(image_response(cache_control="no-store"), now=0.0) is None


def test_implements_protocol():
    assert isinstance(InMemoryResponseCache(), ResponseCache)


def test_rejects_zero_capacity():
    with pytest.raises(ValueError):
        InMemoryResponseCache(max_entries=0)


@pytest.mark.asyncio
async def test_miss_then_hit():
    cache = InMemoryResponseCache()

    assert await cache.match(URL) is None

    await cache.put(URL, image_response(b"stored"))
    hit = await cache.match(URL)

    assert hit is not None
    assert hit.body == b"stored"
    assert hit.headers["cache-control"] == "s-maxage=3600"


@pytest.mark.asyncio
async def test_entry_expires_after_max_age():
    clock = FakeClock()
    cache = InMemoryResponseCache(clock=clock)
    await cache.put(URL, image_response(cache_control="s-maxage=10"))

    clock.now += 9
    assert await cache.match(URL) is not None

    clock.now += 1
    assert await cache.match(URL) is None
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_uncacheable_response_is_not_stored():
    cache = InMemoryResponseCache()

    await cache.put(URL, image_response(cache_control="no-store"))

    assert await cache.match(URL) is None


@pytest.mark.asyncio
async def test_least_recently_used_entry_is_evicted():
    cache = InMemoryResponseCache(max_entries=2)
    await cache.put("a", image_response(b"a"))
    await cache.put("b", image_response(b"b"))

    # Touch "a" so "b" becomes least recently used
    await cache.match("a")
    await cache.put("c", image_response(b"c"))

    assert await cache.match("a") is not None
    assert await cache.match("b") is None
    assert await cache.match("c") is not None
