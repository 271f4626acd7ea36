"""Exceptions raised by the shortlink core.

The HTTP layer maps these onto status codes; the core never does.

Classes:
    ShortlinkError:
        Base class for every error raised by this package.
    ValidationError:
        Malformed input. Raised before any store or cache access.
    ConflictError:
        The alias or code is already bound to a different URL.
    ExhaustedError:
        Every generated candidate collided with a different URL.
    NotApplicable:
        The path is not a short code (empty, or looks like a static asset).
    NotFound:
        No mapping exists for the code.
    Expired:
        The mapping exists but its expiry has passed.
    StoreError:
        The durable store is unreachable or failed. Fatal to the operation.
    UniqueConstraintViolation:
        An insert hit the store's unique index on ``code``.
    CacheError:
        The cache is unreachable or failed. Never escapes a service.
"""


class ShortlinkError(Exception):
    """Base class for shortlink errors."""

    pass


class ValidationError(ShortlinkError):
    """Raised when request input is malformed."""

    pass


class ConflictError(ShortlinkError):
    """Raised when a code is already bound to a different long URL."""

    def __init__(self, code: str, message: str = None):
        self.code = code
        super().__init__(message or f"Short code '{code}' is already in use")


class ExhaustedError(ShortlinkError):
    """Raised when short code generation runs out of attempts."""

    def __init__(self, long_url: str, attempts: int):
        self.long_url = long_url
        self.attempts = attempts
        super().__init__(f"Failed to generate unique short code after {attempts} attempts")


class NotApplicable(ShortlinkError):
    """Raised when a path should be handled by something other than the redirector."""

    pass


class NotFound(ShortlinkError):
    """Raised when a short code has no mapping."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Short code '{code}' not found")


class Expired(ShortlinkError):
    """Raised when a short code's mapping has expired."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Short code '{code}' has expired")


class StoreError(ShortlinkError):
    """Raised when the durable store fails.

    e.g. connection issues, timeouts, query errors.
    """

    pass


class UniqueConstraintViolation(StoreError):
    """Raised by a store when an insert collides on ``code``."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Short code '{code}' already exists in store")


class CacheError(ShortlinkError):
    """Raised when the cache fails."""

    pass
