"""Test helpers: an in-memory site standing in for the network."""

import asyncio
from typing import Dict, List, Optional


class FakeSite:
    """Async fetcher serving canned HTML keyed by exact URL string.

    URLs missing from ``pages`` (or mapped to None) behave like fetch failures.
    """

    def __init__(self, pages: Dict[str, Optional[str]], delay: float = 0.0):
        self.pages = pages
        self.delay = delay
        self.calls: List[str] = []
        self.active = 0
        self.peak_active = 0

    async def __call__(self, url: str) -> Optional[str]:
        self.calls.append(url)
        self.active += 1
        self.peak_active = max(self.peak_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            return self.pages.get(url)
        finally:
            self.active -= 1


def page(*hrefs: str) -> str:
    """Build an HTML page linking to each href."""
    anchors = "".join(f'<a href="{href}">link</a>' for href in hrefs)
    return f"<html><body>{anchors}</body></html>"
