"""
Crawl data structures and the page I/O collaborators (fetching and link extraction).
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from urllib.parse import urljoin, urlparse

import requests
from bs4 import BeautifulSoup, SoupStrainer
from requests.adapters import HTTPAdapter

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 5
DEFAULT_RATE_LIMIT_MS = 100
DEFAULT_TIMEOUT_S = 15.0
DEFAULT_USER_AGENT = "LinkMap/1.0"

WEB_SCHEMES: frozenset[str] = frozenset(("http", "https"))

# SoupStrainer to parse only <a> tags (faster link extraction)
LINK_STRAINER = SoupStrainer("a", href=True)


@dataclass(frozen=True, slots=True)
class PageRecord:
    """Links discovered on a single crawled page."""
    url: str
    links: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, object]:
        return {"url": self.url, "links": list(self.links)}


@dataclass(frozen=True, slots=True)
class CrawlOptions:
    """Per-crawl settings, fixed for the duration of one crawl."""
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    rate_limit_ms: int = DEFAULT_RATE_LIMIT_MS
    max_pages: Optional[int] = None

    def __post_init__(self) -> None:
        if self.max_concurrency < 1:
            raise ValueError(f"max_concurrency must be positive, got {self.max_concurrency}")
        if self.rate_limit_ms < 0:
            raise ValueError(f"rate_limit_ms must be non-negative, got {self.rate_limit_ms}")
        if self.max_pages is not None and self.max_pages < 1:
            raise ValueError(f"max_pages must be positive, got {self.max_pages}")


@dataclass(slots=True)
class CrawlStats:
    """Statistics collected during crawl for summary output."""
    pages_recorded: int = 0
    fetch_failures: int = 0
    invalid_urls: int = 0
    duplicates_skipped: int = 0
    batches: int = 0
    peak_in_flight: int = 0
    failed_urls: List[str] = field(default_factory=list)

    def record_failure(self, url: str) -> None:
        self.fetch_failures += 1
        self.failed_urls.append(url)


def extract_links(html: str, base_url: str) -> List[str]:
    """
    Extract absolute http(s) URLs from <a href> tags, in document order.

    Relative references are resolved against base_url. Fragment-only
    references, non-web schemes and hrefs that fail to parse are skipped.
    """
    soup = BeautifulSoup(html, "lxml", parse_only=LINK_STRAINER)
    links: List[str] = []

    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if not href or href.startswith("#"):
            continue

        try:
            absolute = urljoin(base_url, href)
            parsed = urlparse(absolute)
            hostname = parsed.hostname
        except ValueError:
            logger.debug("Skipping malformed href %r on %s", href, base_url)
            continue

        if parsed.scheme not in WEB_SCHEMES or not hostname:
            continue
        links.append(absolute)

    return links


class PageFetcher:
    """
    Fetches HTML pages over a shared requests session.

    Awaiting the fetcher runs the blocking request in a worker thread, so
    the event loop stays free while pages download. Returns None for
    network errors, non-2xx statuses and non-HTML responses.
    """

    def __init__(
        self,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        user_agent: str = DEFAULT_USER_AGENT,
        pool_size: int = DEFAULT_MAX_CONCURRENCY,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.timeout_s = timeout_s
        self._owns_session = session is None

        if session is None:
            session = requests.Session()
            adapter = HTTPAdapter(pool_connections=pool_size, pool_maxsize=pool_size)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        session.headers["User-Agent"] = user_agent
        session.headers.setdefault("Accept", "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8")
        self.session = session

    async def __call__(self, url: str) -> Optional[str]:
        return await asyncio.to_thread(self.fetch, url)

    def fetch(self, url: str) -> Optional[str]:
        """Fetch a page synchronously; None on any failure."""
        logger.debug("Fetching %s", url)
        try:
            resp = self.session.get(url, timeout=self.timeout_s, allow_redirects=True)
        except requests.RequestException as e:
            logger.warning("Fetch failed for %s: %s", url, e)
            return None

        if not 200 <= resp.status_code < 300:
            logger.warning("HTTP %s on %s", resp.status_code, url)
            return None

        content_type = (resp.headers.get("content-type") or "").lower()
        if "text/html" not in content_type:
            logger.info("Skipping non-HTML response (%s) on %s", content_type or "no content-type", url)
            return None

        return resp.text

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "PageFetcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
