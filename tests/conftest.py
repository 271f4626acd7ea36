"""Pytest configuration and fixtures."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

import pytest

from shortlink.common.logging_config import setup_logging
from shortlink.database.memory import InMemoryCache, InMemoryURLStore
from shortlink.errors import CacheError, StoreError
from shortlink.service import RedirectService, ShortenService, URLShortenerService
from shortlink.shortcode import ShortCodeGenerator


class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, start: Optional[datetime] = None):
        self.current = start or datetime(2030, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)

    def timestamp(self) -> float:
        return self.current.timestamp()


class RecordingStore(InMemoryURLStore):
    """In-memory store that records calls and can be told to fail."""

    def __init__(self):
        super().__init__()
        self.calls: List[Tuple] = []
        self.fail = False

    def ops(self, name: str) -> List[Tuple]:
        return [call for call in self.calls if call[0] == name]

    def _check(self):
        if self.fail:
            raise StoreError("store unavailable")

    async def find_by_code(self, code):
        self.calls.append(("find_by_code", code))
        self._check()
        return await super().find_by_code(code)

    async def insert(self, mapping):
        self.calls.append(("insert", mapping.code))
        self._check()
        return await super().insert(mapping)

    async def update(self, identity, long_url, expires_at):
        self.calls.append(("update", identity))
        self._check()
        return await super().update(identity, long_url, expires_at)


class RecordingCache(InMemoryCache):
    """In-memory cache that records calls and can be told to fail or stall."""

    def __init__(self, clock=None):
        if clock is not None:
            super().__init__(clock=clock.timestamp)
        else:
            super().__init__()
        self.calls: List[Tuple] = []
        self.fail_ops = set()
        self.stall_ops = set()

    def ops(self, name: str) -> List[Tuple]:
        return [call for call in self.calls if call[0] == name]

    async def _check(self, op: str):
        if op in self.stall_ops:
            await asyncio.sleep(5)
        if op in self.fail_ops:
            raise CacheError(f"cache {op} failed")

    async def get(self, key):
        self.calls.append(("get", key))
        await self._check("get")
        return await super().get(key)

    async def set(self, key, value, ttl=None):
        self.calls.append(("set", key, value, ttl))
        await self._check("set")
        await super().set(key, value, ttl)

    async def delete(self, key):
        self.calls.append(("delete", key))
        await self._check("delete")
        return await super().delete(key)


@pytest.fixture
def logger():
    """Create test logger."""
    return setup_logging(level="DEBUG")


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def cache(clock):
    return RecordingCache(clock=clock)


@pytest.fixture
def short_code_generator():
    """Create short code generator."""
    return ShortCodeGenerator(default_length=7)


@pytest.fixture
def shorten_service(store, cache, short_code_generator, clock, logger):
    return ShortenService(
        store=store,
        cache=cache,
        short_code_generator=short_code_generator,
        clock=clock,
        logger=logger,
    )


@pytest.fixture
def redirect_service(store, cache, clock, logger):
    return RedirectService(store=store, cache=cache, clock=clock, logger=logger)


@pytest.fixture
def service(store, cache, short_code_generator, clock, logger):
    """Create service facade over the recording store and cache."""
    return URLShortenerService(
        store=store,
        cache=cache,
        short_code_generator=short_code_generator,
        clock=clock,
        logger=logger,
    )


@pytest.fixture
def sample_urls():
    """Sample URLs for testing."""
    return [
        "https://example.com/a",
        "https://github.com/user/repo",
        "https://stackoverflow.com/questions/123456",
    ]
