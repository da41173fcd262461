"""
URL identity and scope rules.
"""
from __future__ import annotations

from typing import Optional
from urllib.parse import urlparse

DEFAULT_PORTS = {"http": 80, "https": 443}


class InvalidURL(ValueError):
    """Raised when a string cannot be parsed as an absolute URL."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"Invalid URL: {url}")


def _host(url: str) -> Optional[str]:
    """Return host[:port] for an absolute URL, or None if it doesn't parse."""
    try:
        parsed = urlparse(url.strip())
        hostname = parsed.hostname
        port = parsed.port
    except ValueError:
        return None

    if not parsed.scheme or not hostname:
        return None

    # IPv6 literals keep their brackets
    if ":" in hostname:
        hostname = f"[{hostname}]"

    if port is None or DEFAULT_PORTS.get(parsed.scheme.lower()) == port:
        return hostname
    return f"{hostname}:{port}"


def canonicalize(url: str) -> str:
    """
    Map a URL to the key used for deduplication.

    - Lowercases scheme and host, drops default ports
    - Strips trailing slashes (root path becomes empty)
    - Drops fragments (#...)
    - Keeps querystrings verbatim (they matter for uniqueness)
    """
    host = _host(url)
    if host is None:
        raise InvalidURL(url)

    parsed = urlparse(url.strip())
    path = parsed.path.rstrip("/")
    query = f"?{parsed.query}" if parsed.query else ""

    return f"{parsed.scheme.lower()}://{host}{path}{query}"


def in_scope(start_url: str, candidate_url: str) -> bool:
    """Check if candidate URL lives on exactly the same host as the start URL."""
    start_host = _host(start_url)
    if start_host is None:
        return False
    return _host(candidate_url) == start_host
