"""
Frontier scheduler: concurrent breadth-first traversal of a single host.

All scheduler state lives on the event loop thread. Fetches are the only
await points, so frontier/visited/in-flight mutations never interleave and
need no locking.
"""
from __future__ import annotations

import asyncio
import enum
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import AsyncIterator, Awaitable, Callable, Deque, Dict, Iterable, List, Optional, Set

from linkmap.core import CrawlOptions, CrawlStats, PageFetcher, PageRecord, extract_links
from linkmap.urls import InvalidURL, canonicalize, in_scope

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], Awaitable[Optional[str]]]
Extractor = Callable[[str, str], List[str]]


class URLState(enum.Enum):
    UNSEEN = "unseen"
    IN_FLIGHT = "in_flight"
    VISITED = "visited"


class ResultCollector:
    """Append-only store of page records, one per canonical URL."""

    def __init__(self) -> None:
        self._records: Dict[str, PageRecord] = {}

    def record(self, url: str, links: Iterable[str]) -> PageRecord:
        if url in self._records:
            raise ValueError(f"Page already recorded: {url}")
        page = PageRecord(url=url, links=tuple(dict.fromkeys(links)))
        self._records[url] = page
        return page

    @property
    def records(self) -> List[PageRecord]:
        return list(self._records.values())

    def __len__(self) -> int:
        return len(self._records)


@dataclass(slots=True)
class SchedulerState:
    """Mutable traversal state, owned by exactly one scheduler."""
    frontier: Deque[str] = field(default_factory=deque)
    visited: Set[str] = field(default_factory=set)
    in_flight: Set[str] = field(default_factory=set)
    results: ResultCollector = field(default_factory=ResultCollector)

    def status(self, key: str) -> URLState:
        if key in self.visited:
            return URLState.VISITED
        if key in self.in_flight:
            return URLState.IN_FLIGHT
        return URLState.UNSEEN

    def take(self, count: int) -> List[str]:
        """Remove up to count URLs from the head of the frontier."""
        taken = []
        while self.frontier and len(taken) < count:
            taken.append(self.frontier.popleft())
        return taken


class FrontierScheduler:
    """
    Drives one crawl from a start URL to exhaustion of its host.

    Each round admits as many frontier URLs as there are free concurrency
    slots, dispatches them together, waits for every one of them to settle,
    then sleeps for the rate limit before the next round. A scheduler runs
    exactly once; create a new one per crawl.
    """

    def __init__(
        self,
        start_url: str,
        fetcher: Fetcher,
        options: Optional[CrawlOptions] = None,
        extractor: Extractor = extract_links,
    ) -> None:
        canonicalize(start_url)  # raises InvalidURL

        self.start_url = start_url
        self.fetcher = fetcher
        self.extractor = extractor
        self.options = options or CrawlOptions()
        self.state = SchedulerState(frontier=deque([start_url]))
        self.stats = CrawlStats()
        self._started = False

    @property
    def done(self) -> bool:
        if self.state.in_flight:
            return False
        return not self.state.frontier or self._budget_exhausted()

    def _budget_exhausted(self) -> bool:
        max_pages = self.options.max_pages
        return max_pages is not None and len(self.state.results) >= max_pages

    def _available_slots(self) -> int:
        slots = self.options.max_concurrency - len(self.state.in_flight)
        if self.options.max_pages is not None:
            slots = min(slots, self.options.max_pages - len(self.state.results))
        return max(slots, 0)

    async def run(self) -> List[PageRecord]:
        """Crawl to completion and return every page record."""
        async for _ in self.stream():
            pass
        return self.state.results.records

    async def stream(self) -> AsyncIterator[PageRecord]:
        """Crawl, yielding page records as each batch settles."""
        if self._started:
            raise RuntimeError("FrontierScheduler can only run once; create a new one per crawl")
        self._started = True

        logger.info(
            "Starting crawl from %s (max_concurrency=%d, rate_limit_ms=%d)",
            self.start_url, self.options.max_concurrency, self.options.rate_limit_ms,
        )

        while not self.done:
            batch = self.state.take(self._available_slots())
            recorded_before = len(self.state.results)

            outcomes = await asyncio.gather(
                *(self._dispatch(url) for url in batch), return_exceptions=True
            )
            for url, outcome in zip(batch, outcomes):
                if isinstance(outcome, BaseException):
                    logger.error("Dispatch of %s failed", url, exc_info=outcome)

            self.stats.batches += 1
            for page in self.state.results.records[recorded_before:]:
                yield page

            if not self.done:
                await asyncio.sleep(self.options.rate_limit_ms / 1000)

        self.stats.pages_recorded = len(self.state.results)
        logger.info(
            "Crawl complete: %d pages, %d fetch failures",
            self.stats.pages_recorded, self.stats.fetch_failures,
        )

    async def _dispatch(self, url: str) -> None:
        state = self.state

        try:
            key = canonicalize(url)
        except InvalidURL:
            logger.warning("Recording unparseable URL %r as failed", url)
            self.stats.invalid_urls += 1
            if state.status(url) is URLState.UNSEEN:
                state.visited.add(url)
                state.results.record(url, ())
            return

        if state.status(key) is not URLState.UNSEEN:
            self.stats.duplicates_skipped += 1
            return

        state.in_flight.add(key)
        self.stats.peak_in_flight = max(self.stats.peak_in_flight, len(state.in_flight))
        links: List[str] = []

        try:
            html = await self.fetcher(url)
            if html is None:
                self.stats.record_failure(key)
            else:
                links = self._discover(url, html)
        finally:
            state.results.record(key, links)
            state.visited.add(key)
            state.in_flight.discard(key)

    def _discover(self, url: str, html: str) -> List[str]:
        """Canonicalize the page's links and queue the in-scope unseen ones."""
        state = self.state
        canonical_links: Dict[str, str] = {}

        for link in self.extractor(html, url):
            try:
                key = canonicalize(link)
            except InvalidURL:
                logger.debug("Dropping unparseable link %r on %s", link, url)
                self.stats.invalid_urls += 1
                continue
            canonical_links.setdefault(key, link)

        queued = 0
        for key, link in canonical_links.items():
            if in_scope(self.start_url, link) and state.status(key) is URLState.UNSEEN:
                state.frontier.append(link)
                queued += 1

        logger.debug("%s: %d links, %d queued", url, len(canonical_links), queued)
        return list(canonical_links)


async def crawl(
    start_url: str,
    options: Optional[CrawlOptions] = None,
    *,
    fetcher: Optional[Fetcher] = None,
    extractor: Optional[Extractor] = None,
) -> List[PageRecord]:
    """
    Crawl every page reachable from start_url on the same host.

    Args:
        start_url: Absolute URL to start from.
        options: Concurrency, rate limit and page budget for this crawl.
        fetcher: Async callable returning a page's HTML, or None on failure.
                 Defaults to a PageFetcher that is closed when the crawl ends.
        extractor: Callable returning absolute links found in a page.
                   Defaults to extract_links.

    Returns:
        One PageRecord per page attempted, in completion order.

    Raises:
        InvalidURL: If start_url is not an absolute URL.
    """
    options = options or CrawlOptions()
    extractor = extractor or extract_links
    if fetcher is not None:
        return await FrontierScheduler(start_url, fetcher, options, extractor).run()

    canonicalize(start_url)
    with PageFetcher(pool_size=options.max_concurrency) as page_fetcher:
        return await FrontierScheduler(start_url, page_fetcher, options, extractor).run()
