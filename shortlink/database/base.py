"""Abstract base classes for the durable store and the cache."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from .models import URLMapping


class URLStoreBase(ABC):
    """Abstract base class for durable URL mapping storage.

    Implementations must enforce uniqueness of ``code`` themselves (a unique
    index or equivalent); the services rely on it as the only arbitration
    point between concurrent writers.
    """

    def __init__(self, db_config: str):
        """Initialize store.

        Args:
            db_config: Database connection string
        """
        self.db_config = db_config

    async def connect(self) -> None:
        """Open connections. Optional for stores without a connection."""
        pass

    @abstractmethod
    async def find_by_code(self, code: str) -> Optional[URLMapping]:
        """Find the mapping for a code.

        Args:
            code: The short code to lookup

        Returns:
            The mapping if found, None otherwise

        Raises:
            StoreError: If the store fails
        """
        pass

    @abstractmethod
    async def insert(self, mapping: URLMapping) -> URLMapping:
        """Insert a new mapping.

        Args:
            mapping: The mapping to insert (``id`` and timestamps are ignored)

        Returns:
            The stored mapping, with identity and timestamps filled in

        Raises:
            UniqueConstraintViolation: If the code already exists
            StoreError: If the store fails
        """
        pass

    @abstractmethod
    async def update(
        self,
        identity: int,
        long_url: str,
        expires_at: Optional[datetime],
    ) -> URLMapping:
        """Repoint an existing mapping in place.

        Args:
            identity: Store identity (``URLMapping.id``) of the row to update
            long_url: New long URL
            expires_at: New expiry (None for never)

        Returns:
            The updated mapping

        Raises:
            StoreError: If the row is gone or the store fails
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close store connections."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the store is healthy.

        Returns:
            True if healthy, False otherwise
        """
        pass


class CacheBase(ABC):
    """Abstract base class for a TTL key-value cache.

    Every failure is raised as ``CacheError``; callers decide whether to
    swallow it.
    """

    KEY_PREFIX = "url:"

    async def connect(self) -> None:
        """Open connections. Optional for in-process caches."""
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Get value from cache, None on miss."""
        pass

    @abstractmethod
    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        """Set value in cache.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Seconds until eviction; None keeps the entry until evicted
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete key from cache.

        Returns:
            True if a key was removed
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close cache connections."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the cache is healthy."""
        pass

    def get_cache_key(self, code: str) -> str:
        """Generate cache key for a short code.

        Args:
            code: The short code

        Returns:
            Cache key
        """
        return f"{self.KEY_PREFIX}{code}"
