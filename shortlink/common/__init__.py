"""Common utilities for shortlink."""

from .validators import is_valid_url, is_valid_alias, parse_expiry
from .headers import build_base_url, get_forwarded_path_prefix
from .url_builder import build_short_url
from .logging_config import setup_logging
from .clock import SystemClock

__all__ = [
    "is_valid_url",
    "is_valid_alias",
    "parse_expiry",
    "build_base_url",
    "get_forwarded_path_prefix",
    "build_short_url",
    "setup_logging",
    "SystemClock",
]
