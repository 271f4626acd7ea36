"""Storage layer for URL shortener."""

from .base import URLStoreBase, CacheBase
from .models import URLMapping, CachedURL
from .postgres import URLStorePostgres
from .cache import RedisCache
from .memory import InMemoryURLStore, InMemoryCache

__all__ = [
    "URLStoreBase",
    "CacheBase",
    "URLMapping",
    "CachedURL",
    "URLStorePostgres",
    "RedisCache",
    "InMemoryURLStore",
    "InMemoryCache",
]
