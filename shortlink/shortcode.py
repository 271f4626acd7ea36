"""Short code generation utilities."""

import hashlib
import re
import string
from typing import Optional


class ShortCodeGenerator:
    """Derive deterministic short codes from URLs."""

    # Base62 characters: digits, then lowercase, then uppercase
    BASE62_CHARS = string.digits + string.ascii_lowercase + string.ascii_uppercase

    # Characters accepted in a stored code (generated codes only use BASE62_CHARS)
    CODE_PATTERN = re.compile(r"^[0-9a-zA-Z_-]+$")

    def __init__(self, default_length: int = 7):
        """Initialize short code generator.

        Args:
            default_length: Default length for generated codes
        """
        if default_length < 1:
            raise ValueError("default_length must be a positive integer")
        self.default_length = default_length

    def generate(self, long_url: str, attempt: int = 0, length: Optional[int] = None) -> str:
        """Generate a short code from a URL and an attempt counter.

        The same (long_url, attempt) pair always yields the same code. Bumping
        ``attempt`` is how callers step away from a collision.

        Args:
            long_url: The URL to hash
            attempt: Collision attempt counter (0 for the first try)
            length: Length of the code (uses default if not specified)

        Returns:
            Short code of exactly ``length`` base62 characters
        """
        length = length or self.default_length

        digest = hashlib.sha256(f"{long_url}{attempt}".encode("utf-8")).digest()
        return self._int_to_base62(int.from_bytes(digest, "big"), length)

    def _int_to_base62(self, num: int, length: int) -> str:
        """Convert integer to a fixed-length base62 string.

        Digits are emitted least-significant first. Once ``num`` is exhausted
        the remainder is zero, so short inputs pad with ``BASE62_CHARS[0]``.

        Args:
            num: Integer to convert
            length: Number of characters to emit

        Returns:
            Base62 string
        """
        base = len(self.BASE62_CHARS)
        result = []

        while len(result) < length:
            num, remainder = divmod(num, base)
            result.append(self.BASE62_CHARS[remainder])

        return "".join(result)

    @classmethod
    def is_valid_format(cls, code: str) -> bool:
        """Check if code only uses the stored-code alphabet.

        Args:
            code: Code to validate

        Returns:
            True if valid format
        """
        return bool(code) and cls.CODE_PATTERN.match(code) is not None
