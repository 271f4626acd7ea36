"""Proxy header helpers for building public short URLs."""

from typing import Mapping, Optional


def _lookup(headers: Mapping[str, str], name: str) -> Optional[str]:
    for key, value in headers.items():
        if key.lower() == name and value:
            return value.strip()
    return None


def build_base_url(
    headers: Mapping[str, str],
    fallback_base_url: str,
    request_scheme: Optional[str] = None,
    request_host: Optional[str] = None,
) -> str:
    """Build the public base URL for short links.

    Priority:
    1. X-Forwarded-Proto + X-Forwarded-Host
    2. Request scheme + host
    3. Fallback base URL from config

    Args:
        headers: Request headers
        fallback_base_url: Fallback base URL from configuration
        request_scheme: Request scheme (http/https)
        request_host: Request host

    Returns:
        Base URL without trailing slash (e.g., https://example.com)
    """
    proto = _lookup(headers, "x-forwarded-proto")
    host = _lookup(headers, "x-forwarded-host")
    if proto and host:
        # Proxies may append: "https, http"
        return f"{proto.split(',')[0].strip()}://{host.split(',')[0].strip()}"

    if request_scheme and request_host:
        return f"{request_scheme}://{request_host}"

    return fallback_base_url.rstrip("/")


def get_forwarded_path_prefix(headers: Mapping[str, str]) -> str:
    """Path prefix from X-Forwarded-Prefix, normalized to '/p' or ''."""
    prefix = (_lookup(headers, "x-forwarded-prefix") or "").strip("/")
    return "/" + prefix if prefix else ""
