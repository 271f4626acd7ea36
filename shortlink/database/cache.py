"""Redis cache layer for URL shortener."""

import asyncio
import logging
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from ..errors import CacheError
from .base import CacheBase


CACHE_FAILURES = (RedisError, OSError, asyncio.TimeoutError)


class RedisCache(CacheBase):
    """Redis cache for URL mappings.

    Errors are raised as ``CacheError``. With no ``redis_url`` the cache is
    disabled: every get misses and writes are dropped.
    """

    def __init__(
        self,
        redis_url: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
        client: Optional[redis.Redis] = None,
    ):
        """Initialize Redis cache.

        Args:
            redis_url: Redis connection URL (e.g., redis://localhost:6379/0)
            logger: Optional logger instance
            client: Pre-built client (skips ``connect``'s client creation)
        """
        self.redis_url = redis_url
        self.logger = logger or logging.getLogger(__name__)
        self.client: Optional[redis.Redis] = client
        self.enabled = redis_url is not None or client is not None

        if self.enabled:
            self.logger.info("Redis cache enabled")

    async def connect(self) -> None:
        """Connect to Redis.

        A failed ping is logged, not raised; the client keeps retrying on use
        and the services fall back to the store meanwhile.
        """
        if not self.enabled:
            return

        if self.client is None:
            self.client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )

        try:
            await self.client.ping()
            self.logger.info("Connected to Redis")
        except CACHE_FAILURES as e:
            self.logger.error(f"Failed to connect to Redis: {e}")

    async def get(self, key: str) -> Optional[str]:
        if not self.enabled or not self.client:
            return None

        try:
            return await self.client.get(key)
        except CACHE_FAILURES as e:
            raise CacheError(f"Cache get error: {e}") from e

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        if not self.enabled or not self.client:
            return

        try:
            if ttl is None:
                await self.client.set(key, value)
            else:
                await self.client.set(key, value, ex=ttl)
        except CACHE_FAILURES as e:
            raise CacheError(f"Cache set error: {e}") from e

    async def delete(self, key: str) -> bool:
        if not self.enabled or not self.client:
            return False

        try:
            result = await self.client.delete(key)
            return result > 0
        except CACHE_FAILURES as e:
            raise CacheError(f"Cache delete error: {e}") from e

    async def health_check(self) -> bool:
        if not self.enabled:
            return True
        if not self.client:
            return False

        try:
            await self.client.ping()
            return True
        except CACHE_FAILURES as e:
            self.logger.error(f"Cache health check failed: {e}")
            return False

    async def close(self) -> None:
        """Close Redis connection."""
        if self.client:
            await self.client.aclose()
            self.client = None
            self.logger.info("Redis connection closed")
