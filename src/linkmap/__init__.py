"""
Concurrent same-host web crawler.
Visits every page reachable from a start URL on its host and reports the links found on each page.
"""
from linkmap.core import CrawlOptions, CrawlStats, PageFetcher, PageRecord, extract_links
from linkmap.scheduler import FrontierScheduler, crawl
from linkmap.urls import InvalidURL, canonicalize, in_scope

__version__ = "1.0.0"
__all__ = [
    "crawl",
    "canonicalize",
    "in_scope",
    "extract_links",
    "CrawlOptions",
    "CrawlStats",
    "FrontierScheduler",
    "InvalidURL",
    "PageFetcher",
    "PageRecord",
]
