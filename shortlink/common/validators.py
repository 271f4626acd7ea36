"""Validation utilities for URL shortener."""

import re
from datetime import datetime, timezone
from typing import Any, Optional, Tuple
from urllib.parse import urlparse


MAX_URL_LENGTH = 2048

ALIAS_PATTERN = re.compile(r"^[0-9a-zA-Z_-]{3,50}$")


def is_valid_url(url: str) -> Tuple[bool, str]:
    """Validate a long URL.

    Any scheme is accepted as long as the URL is absolute (scheme plus
    network location).

    Args:
        url: The URL to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not url or not isinstance(url, str):
        return False, "longUrl is required"

    if len(url) > MAX_URL_LENGTH:
        return False, f"URL is too long (max {MAX_URL_LENGTH} characters)"

    if any(c.isspace() for c in url):
        return False, "URL must not contain whitespace"

    try:
        result = urlparse(url)
        # Accessing .port validates it
        result.port
    except ValueError as e:
        return False, f"Invalid URL format: {e}"

    if not result.scheme:
        return False, "URL must be absolute (missing scheme)"

    if not result.netloc or not result.hostname:
        return False, "URL must have a valid host"

    return True, ""


def is_valid_alias(alias: str) -> Tuple[bool, str]:
    """Validate a caller-chosen alias.

    Args:
        alias: The alias to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not alias or not isinstance(alias, str):
        return False, "customAlias is required"

    if not ALIAS_PATTERN.match(alias):
        return False, "customAlias must be 3-50 characters, letters/numbers/-/_ only"

    return True, ""


def parse_expiry(value: Any, now: datetime) -> Optional[datetime]:
    """Parse a requested expiry into an aware UTC datetime.

    Accepts a datetime, an ISO-8601 string, or epoch milliseconds. Naive
    values are taken to be UTC.

    Args:
        value: Raw expiry value (None or "" means no expiry)
        now: Current time

    Returns:
        The expiry, or None when no expiry was requested

    Raises:
        ValueError: If the value does not parse or is not in the future
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None

    if isinstance(value, datetime):
        expires_at = value
    elif isinstance(value, bool):
        raise ValueError("Invalid expiry date")
    elif isinstance(value, (int, float)):
        try:
            expires_at = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise ValueError("Invalid expiry date") from e
    elif isinstance(value, str):
        try:
            expires_at = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError as e:
            raise ValueError("Invalid expiry date") from e
    else:
        raise ValueError("Invalid expiry date")

    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)

    if expires_at <= now:
        raise ValueError("Expiry must be in the future")

    return expires_at.astimezone(timezone.utc)
