"""Core business logic for shortlink."""

from .shortcode import ShortCodeGenerator
from .service import (
    MAX_ATTEMPTS,
    RedirectService,
    Resolution,
    ShortenResult,
    ShortenService,
    URLShortenerService,
    ttl_seconds,
)

__all__ = [
    "MAX_ATTEMPTS",
    "ShortCodeGenerator",
    "ShortenService",
    "RedirectService",
    "URLShortenerService",
    "ShortenResult",
    "Resolution",
    "ttl_seconds",
]
