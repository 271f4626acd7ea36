"""In-process store and cache.

Used for local development (``DATABASE_URL=memory://``, ``REDIS_URL=memory://``)
and as the base for test doubles. Both honour the same contracts as the
PostgreSQL store and Redis cache, including the unique constraint on ``code``.
"""

import asyncio
import itertools
import logging
import time
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Tuple

from ..errors import StoreError, UniqueConstraintViolation
from .base import CacheBase, URLStoreBase
from .models import URLMapping


class InMemoryURLStore(URLStoreBase):
    """Dict-backed URL mapping store."""

    def __init__(self, db_config: str = "memory://", logger: Optional[logging.Logger] = None):
        super().__init__(db_config)
        self.logger = logger or logging.getLogger(__name__)
        self._rows: Dict[str, URLMapping] = {}
        self._ids = itertools.count(1)
        # Guards check-then-write inside insert, like a unique index would
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._rows)

    async def find_by_code(self, code: str) -> Optional[URLMapping]:
        return self._rows.get(code)

    async def insert(self, mapping: URLMapping) -> URLMapping:
        async with self._lock:
            if mapping.code in self._rows:
                raise UniqueConstraintViolation(mapping.code)

            now = datetime.now(timezone.utc)
            stored = URLMapping(
                code=mapping.code,
                long_url=mapping.long_url,
                expires_at=mapping.expires_at,
                id=next(self._ids),
                created_at=now,
                updated_at=now,
            )
            self._rows[stored.code] = stored

        self.logger.debug(f"Inserted mapping: {stored.code} -> {stored.long_url}")
        return stored

    async def update(
        self,
        identity: int,
        long_url: str,
        expires_at: Optional[datetime],
    ) -> URLMapping:
        async with self._lock:
            for code, row in self._rows.items():
                if row.id == identity:
                    updated = row.with_target(long_url, expires_at)
                    updated.updated_at = datetime.now(timezone.utc)
                    self._rows[code] = updated
                    return updated

        raise StoreError(f"Mapping with id {identity} disappeared before update")

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        pass


class InMemoryCache(CacheBase):
    """Dict-backed TTL cache."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        """Initialize in-memory cache.

        Args:
            clock: Monotonic seconds source used for TTL bookkeeping
        """
        self._clock = clock
        self._entries: Dict[str, Tuple[str, Optional[float]]] = {}

    def _live(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        value, deadline = entry
        if deadline is not None and deadline <= self._clock():
            del self._entries[key]
            return None
        return value

    def __contains__(self, key: str) -> bool:
        return self._live(key) is not None

    async def get(self, key: str) -> Optional[str]:
        return self._live(key)

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        deadline = self._clock() + ttl if ttl is not None else None
        self._entries[key] = (value, deadline)

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        self._entries.clear()
