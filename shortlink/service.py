"""Business logic for creating and resolving short URLs.

Both services follow the cache-aside pattern: the durable store is the source
of truth and the cache is a disposable projection that the services populate
and evict themselves. Cache failures are logged and swallowed at the call site;
store failures propagate as ``StoreError``.
"""

import asyncio
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Dict, Optional, Tuple, TypeVar

from .common.clock import SystemClock
from .common.validators import is_valid_alias, is_valid_url, parse_expiry
from .database.base import CacheBase, URLStoreBase
from .database.models import CachedURL, URLMapping
from .errors import (
    CacheError,
    ConflictError,
    Expired,
    ExhaustedError,
    NotApplicable,
    NotFound,
    StoreError,
    UniqueConstraintViolation,
    ValidationError,
)
from .shortcode import ShortCodeGenerator


MAX_ATTEMPTS = 5

# Paths containing these belong to static file serving, not to short codes
STATIC_PATH_CHARS = (".",)

T = TypeVar("T")


def ttl_seconds(expires_at: Optional[datetime], now: datetime) -> Optional[int]:
    """Cache TTL for a mapping.

    Args:
        expires_at: Mapping expiry, None for never
        now: Current time

    Returns:
        None when the entry should not expire, otherwise whole seconds until
        expiry rounded up. A result <= 0 means the entry must not be cached.
    """
    if expires_at is None:
        return None
    return math.ceil((expires_at - now).total_seconds())


@dataclass(frozen=True)
class ShortenResult:
    """Outcome of a successful create, reflecting the persisted record."""

    code: str
    long_url: str
    expires_at: Optional[datetime]
    # False when an existing record was reused or repointed
    created: bool = True


@dataclass(frozen=True)
class Resolution:
    """Outcome of a successful resolve."""

    long_url: str
    expires_at: Optional[datetime]
    source: str


class _CacheAsideService:
    """Store/cache plumbing shared by the shorten and redirect services."""

    def __init__(
        self,
        store: URLStoreBase,
        cache: Optional[CacheBase] = None,
        clock: Optional[SystemClock] = None,
        logger: Optional[logging.Logger] = None,
        store_timeout: Optional[float] = None,
        cache_timeout: Optional[float] = None,
    ):
        """Initialize service.

        Args:
            store: Durable store (source of truth)
            cache: Optional cache; None disables the fast path
            clock: Time source, anything with ``now() -> datetime``
            logger: Optional logger
            store_timeout: Deadline in seconds for each store call
            cache_timeout: Deadline in seconds for each cache call
        """
        self.store = store
        self.cache = cache
        self.clock = clock or SystemClock()
        self.logger = logger or logging.getLogger(__name__)
        self.store_timeout = store_timeout
        self.cache_timeout = cache_timeout

    async def _store_call(self, awaitable: Awaitable[T]) -> T:
        """Await a store call under the store deadline."""
        try:
            return await asyncio.wait_for(awaitable, self.store_timeout)
        except asyncio.TimeoutError as e:
            raise StoreError(f"Store call timed out after {self.store_timeout}s") from e

    async def _cache_call(self, awaitable: Awaitable[T]) -> T:
        """Await a cache call under the cache deadline."""
        try:
            return await asyncio.wait_for(awaitable, self.cache_timeout)
        except asyncio.TimeoutError as e:
            raise CacheError(f"Cache call timed out after {self.cache_timeout}s") from e

    async def _cache_get(self, code: str) -> Optional[CachedURL]:
        """Read a cache entry. Errors and undecodable entries count as a miss."""
        if self.cache is None:
            return None

        key = self.cache.get_cache_key(code)
        try:
            payload = await self._cache_call(self.cache.get(key))
        except CacheError as e:
            self.logger.warning(f"Cache lookup failed for {key}, falling back to store: {e}")
            return None

        if payload is None:
            self.logger.debug(f"Cache miss for {key}")
            return None

        try:
            return CachedURL.loads(payload)
        except ValueError as e:
            self.logger.error(f"Failed to parse cached URL data for {key}: {e}")
            return None

    async def _cache_mapping(self, mapping: URLMapping, now: datetime) -> bool:
        """Write a mapping to the cache, best effort.

        Returns:
            True if the entry was written
        """
        if self.cache is None:
            return False

        key = self.cache.get_cache_key(mapping.code)
        ttl = ttl_seconds(mapping.expires_at, now)
        if ttl is not None and ttl <= 0:
            self.logger.debug(f"Not caching {key}: already expired")
            return False

        try:
            await self._cache_call(self.cache.set(key, CachedURL.from_mapping(mapping).dumps(), ttl))
        except CacheError as e:
            self.logger.warning(f"Failed to write cache for {key}, continuing without cache: {e}")
            return False

        self.logger.debug(f"Cached {key} (ttl={ttl if ttl is not None else 'none'})")
        return True

    async def _cache_delete(self, code: str) -> None:
        """Evict a cache entry, best effort."""
        if self.cache is None:
            return

        key = self.cache.get_cache_key(code)
        try:
            await self._cache_call(self.cache.delete(key))
        except CacheError as e:
            self.logger.warning(f"Failed to evict {key} from cache: {e}")


class ShortenService(_CacheAsideService):
    """Assign short codes to long URLs."""

    def __init__(
        self,
        store: URLStoreBase,
        cache: Optional[CacheBase] = None,
        short_code_generator: Optional[ShortCodeGenerator] = None,
        clock: Optional[SystemClock] = None,
        logger: Optional[logging.Logger] = None,
        max_attempts: int = MAX_ATTEMPTS,
        store_timeout: Optional[float] = None,
        cache_timeout: Optional[float] = None,
    ):
        super().__init__(store, cache, clock, logger, store_timeout, cache_timeout)
        self.generator = short_code_generator or ShortCodeGenerator()
        self.max_attempts = max_attempts

    async def create(
        self,
        long_url: str,
        custom_alias: Optional[str] = None,
        expiry=None,
    ) -> ShortenResult:
        """Create (or idempotently re-create) a short URL.

        Args:
            long_url: The URL to shorten
            custom_alias: Optional caller-chosen code
            expiry: Optional expiry (datetime, ISO-8601 string or epoch ms)

        Returns:
            ShortenResult for the persisted record

        Raises:
            ValidationError: If input is malformed (no store access happens)
            ConflictError: If the code is bound to a different URL
            ExhaustedError: If every generated candidate collided
            StoreError: If the durable store fails
        """
        long_url, alias, expires_at = self._validate(long_url, custom_alias, expiry)

        if alias is not None:
            code, existing = await self._claim_alias(alias, long_url)
        else:
            code, existing = await self._claim_generated_code(long_url)

        mapping, created = await self._persist(code, long_url, expires_at, existing)

        if not await self._cache_mapping(mapping, self.clock.now()) and not created:
            # An older projection may still be cached under this code
            await self._cache_delete(mapping.code)

        self.logger.info(
            f"{'Created' if created else 'Reused'} short URL: {mapping.code} -> {mapping.long_url}"
        )

        return ShortenResult(
            code=mapping.code,
            long_url=mapping.long_url,
            expires_at=mapping.expires_at,
            created=created,
        )

    def _validate(self, long_url, custom_alias, expiry) -> Tuple[str, Optional[str], Optional[datetime]]:
        is_valid, error = is_valid_url(long_url)
        if not is_valid:
            raise ValidationError(error)

        alias = None
        if custom_alias is not None:
            if not isinstance(custom_alias, str):
                raise ValidationError("customAlias must be a string")
            alias = custom_alias.strip() or None

        if alias is not None:
            is_valid, error = is_valid_alias(alias)
            if not is_valid:
                raise ValidationError(error)

        try:
            expires_at = parse_expiry(expiry, self.clock.now())
        except ValueError as e:
            raise ValidationError(str(e)) from e

        return long_url, alias, expires_at

    async def _claim_alias(self, alias: str, long_url: str) -> Tuple[str, Optional[URLMapping]]:
        existing = await self._store_call(self.store.find_by_code(alias))

        if existing is not None and existing.long_url != long_url:
            self.logger.info(f"Alias {alias} already in use for a different URL")
            raise ConflictError(alias, "customAlias is already in use")

        return alias, existing

    async def _claim_generated_code(self, long_url: str) -> Tuple[str, Optional[URLMapping]]:
        """Find the first candidate code that is free or already ours.

        Tries attempts 0..max_attempts inclusive.
        """
        for attempt in range(self.max_attempts + 1):
            code = self.generator.generate(long_url, attempt)
            existing = await self._store_call(self.store.find_by_code(code))

            if existing is None or existing.long_url == long_url:
                self.logger.debug(f"Using code {code} (attempt {attempt})")
                return code, existing

            self.logger.debug(f"Code {code} collides with another URL (attempt {attempt})")

        self.logger.error(f"Failed to generate unique short code for {long_url}")
        raise ExhaustedError(long_url, self.max_attempts + 1)

    async def _persist(
        self,
        code: str,
        long_url: str,
        expires_at: Optional[datetime],
        existing: Optional[URLMapping],
    ) -> Tuple[URLMapping, bool]:
        """Write to the store; the unique index on ``code`` arbitrates races.

        Returns:
            Tuple of (persisted mapping, whether a new row was inserted)
        """
        if existing is not None:
            self.logger.debug(f"Updating existing mapping for {code} in place")
            mapping = await self._store_call(self.store.update(existing.id, long_url, expires_at))
            return mapping, False

        try:
            mapping = await self._store_call(
                self.store.insert(URLMapping(code=code, long_url=long_url, expires_at=expires_at))
            )
            return mapping, True
        except UniqueConstraintViolation:
            self.logger.warning(f"Duplicate key for code {code}, checking existing record")

        winner = await self._store_call(self.store.find_by_code(code))
        if winner is not None and winner.long_url == long_url:
            # A concurrent writer stored the same mapping first
            return winner, False

        raise ConflictError(code, "Short code already exists, please try again with another alias")


class RedirectService(_CacheAsideService):
    """Resolve short codes to long URLs."""

    async def resolve(self, code: str) -> Resolution:
        """Resolve a short code.

        Args:
            code: The short code from the request path

        Returns:
            Resolution with the long URL and where it came from

        Raises:
            NotApplicable: If the path is empty or looks like a static asset
            NotFound: If no mapping exists
            Expired: If the mapping's expiry has passed
            StoreError: If the durable store fails
        """
        if not code or any(c in code for c in STATIC_PATH_CHARS):
            raise NotApplicable(f"'{code}' is not a short code")

        cached = await self._cache_get(code)
        now = self.clock.now()

        if cached is not None:
            if cached.is_expired(now):
                self.logger.info(f"Cached URL for {code} expired, evicting")
                await self._cache_delete(code)
                raise Expired(code)

            self.logger.debug(f"Cache hit for {code}")
            return Resolution(long_url=cached.long_url, expires_at=cached.expires_at, source="cache")

        mapping = await self._store_call(self.store.find_by_code(code))

        if mapping is None:
            self.logger.info(f"Short code not found: {code}")
            raise NotFound(code)

        if mapping.is_expired(now):
            self.logger.info(f"Short code expired according to store: {code}")
            raise Expired(code)

        await self._cache_mapping(mapping, now)

        return Resolution(long_url=mapping.long_url, expires_at=mapping.expires_at, source="store")


class URLShortenerService:
    """Facade wiring both services over one store and cache."""

    def __init__(
        self,
        store: URLStoreBase,
        cache: Optional[CacheBase] = None,
        short_code_generator: Optional[ShortCodeGenerator] = None,
        clock: Optional[SystemClock] = None,
        logger: Optional[logging.Logger] = None,
        max_attempts: int = MAX_ATTEMPTS,
        store_timeout: Optional[float] = None,
        cache_timeout: Optional[float] = None,
    ):
        self.store = store
        self.cache = cache
        self.logger = logger or logging.getLogger(__name__)
        self.shortener = ShortenService(
            store,
            cache,
            short_code_generator=short_code_generator,
            clock=clock,
            logger=self.logger,
            max_attempts=max_attempts,
            store_timeout=store_timeout,
            cache_timeout=cache_timeout,
        )
        self.redirector = RedirectService(
            store,
            cache,
            clock=clock,
            logger=self.logger,
            store_timeout=store_timeout,
            cache_timeout=cache_timeout,
        )

    async def create(self, long_url: str, custom_alias: Optional[str] = None, expiry=None) -> ShortenResult:
        return await self.shortener.create(long_url, custom_alias, expiry)

    async def resolve(self, code: str) -> Resolution:
        return await self.redirector.resolve(code)

    async def connect(self) -> None:
        """Open store and cache connections."""
        await self.store.connect()
        if self.cache is not None:
            await self.cache.connect()

    async def health_check(self) -> Dict[str, bool]:
        """Perform health check.

        Returns:
            Dictionary with health status. The cache does not affect
            ``overall`` since the service runs without it.
        """
        db_healthy = await self.store.health_check()
        cache_healthy = await self.cache.health_check() if self.cache is not None else True

        return {
            "database": db_healthy,
            "cache": cache_healthy,
            "overall": db_healthy,
        }

    async def close(self) -> None:
        """Close service connections."""
        await self.store.close()
        if self.cache is not None:
            await self.cache.close()
