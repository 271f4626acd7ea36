"""Pydantic schemas for API requests and responses."""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ShortenRequest(BaseModel):
    """Request to shorten a URL.

    Fields are deliberately loose; the service layer owns validation so that
    every malformed request gets the same 400 treatment.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {"longUrl": "https://example.com/very/long/path/to/resource"},
                {
                    "longUrl": "https://github.com/user/repo",
                    "customAlias": "myrepo",
                    "expiry": "2030-01-01T00:00:00Z",
                },
            ]
        },
    )

    long_url: Optional[str] = Field(None, alias="longUrl", description="The URL to shorten")
    custom_alias: Optional[str] = Field(None, alias="customAlias", description="Optional custom short code")
    expiry: Optional[Union[str, int, float]] = Field(
        None,
        description="Optional expiry (ISO-8601 timestamp or epoch milliseconds)",
    )


class ShortenResponse(BaseModel):
    """Response after shortening a URL."""

    model_config = ConfigDict(populate_by_name=True)

    short_url: str = Field(..., alias="shortUrl", description="The complete short URL")
    code: str = Field(..., description="The short code")
    long_url: str = Field(..., alias="longUrl", description="The original long URL")
    expires_at: Optional[datetime] = Field(None, alias="expiresAt", description="Expiry timestamp, null for never")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Overall status")
    database: str = Field(..., description="Database status")
    cache: str = Field(..., description="Cache status")
    timestamp: datetime = Field(..., description="Check timestamp")


class ErrorResponse(BaseModel):
    """Error response."""

    error: str = Field(..., description="Error message")
