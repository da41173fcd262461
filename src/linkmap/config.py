"""Runtime configuration loaded from the environment."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from linkmap.core import (
    CrawlOptions,
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_RATE_LIMIT_MS,
    DEFAULT_TIMEOUT_S,
    DEFAULT_USER_AGENT,
)

load_dotenv()  # Loads variables from .env file


@dataclass
class Config:
    """Configuration shared by the CLI and the HTTP server."""
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    rate_limit_ms: int = DEFAULT_RATE_LIMIT_MS
    timeout: float = DEFAULT_TIMEOUT_S
    user_agent: str = DEFAULT_USER_AGENT
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 3000

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from LINKMAP_* environment variables.

        Returns:
            Config: Configuration instance with values from environment
        """
        return cls(
            max_concurrency=int(os.getenv("LINKMAP_MAX_CONCURRENCY", DEFAULT_MAX_CONCURRENCY)),
            rate_limit_ms=int(os.getenv("LINKMAP_RATE_LIMIT_MS", DEFAULT_RATE_LIMIT_MS)),
            timeout=float(os.getenv("LINKMAP_TIMEOUT", DEFAULT_TIMEOUT_S)),
            user_agent=os.getenv("LINKMAP_USER_AGENT", DEFAULT_USER_AGENT),
            log_level=os.getenv("LINKMAP_LOG_LEVEL", "INFO"),
            host=os.getenv("LINKMAP_HOST", "127.0.0.1"),
            port=int(os.getenv("LINKMAP_PORT", "3000")),
        )

    def crawl_options(self) -> CrawlOptions:
        return CrawlOptions(
            max_concurrency=self.max_concurrency,
            rate_limit_ms=self.rate_limit_ms,
        )
