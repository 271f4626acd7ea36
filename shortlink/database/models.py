"""Data models for URL shortener."""

import json
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Optional


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (stores hand back naive UTC)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return _as_utc(value)
    return _as_utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))


@dataclass
class URLMapping:
    """Represents a short code to long URL mapping."""

    code: str
    long_url: str
    expires_at: Optional[datetime] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        self.expires_at = _as_utc(self.expires_at)
        self.created_at = _as_utc(self.created_at)
        self.updated_at = _as_utc(self.updated_at)

    def is_expired(self, now: datetime) -> bool:
        """Check whether the mapping is dead at ``now``."""
        return self.expires_at is not None and self.expires_at <= now

    def with_target(self, long_url: str, expires_at: Optional[datetime]) -> "URLMapping":
        """Copy of this mapping pointed at a new target."""
        return replace(self, long_url=long_url, expires_at=expires_at)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "code": self.code,
            "long_url": self.long_url,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "URLMapping":
        """Create from dictionary or database row."""
        return cls(
            code=data["code"],
            long_url=data["long_url"],
            expires_at=_parse_datetime(data.get("expires_at")),
            id=data.get("id"),
            created_at=_parse_datetime(data.get("created_at")),
            updated_at=_parse_datetime(data.get("updated_at")),
        )


@dataclass(frozen=True)
class CachedURL:
    """The slice of a URLMapping kept in the cache."""

    long_url: str
    expires_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now

    def dumps(self) -> str:
        """Serialize to the cache wire format."""
        return json.dumps({
            "longUrl": self.long_url,
            "expiresAt": self.expires_at.isoformat() if self.expires_at else None,
        })

    @classmethod
    def loads(cls, payload: str) -> "CachedURL":
        """Deserialize from the cache wire format.

        Raises:
            ValueError: If the payload is not a valid cache entry
        """
        try:
            data = json.loads(payload)
            long_url = data["longUrl"]
            expires_at = _parse_datetime(data.get("expiresAt"))
        except (TypeError, KeyError, AttributeError) as e:
            raise ValueError(f"Malformed cache entry: {e}") from e

        if not isinstance(long_url, str) or not long_url:
            raise ValueError("Malformed cache entry: longUrl missing")

        return cls(long_url=long_url, expires_at=expires_at)

    @classmethod
    def from_mapping(cls, mapping: URLMapping) -> "CachedURL":
        return cls(long_url=mapping.long_url, expires_at=mapping.expires_at)
