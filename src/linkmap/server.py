"""
HTTP API exposing the crawler as POST /api/crawl.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from linkmap.config import Config
from linkmap.core import PageFetcher
from linkmap.logging_config import setup_logging
from linkmap.scheduler import crawl
from linkmap.urls import InvalidURL, canonicalize

logger = logging.getLogger(__name__)

config = Config.from_env()

app = FastAPI(
    title="LinkMap API",
    description="Crawl a single host and report the links found on every page",
    version="1.0.0",
)
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])


class CrawlRequest(BaseModel):
    url: Optional[str] = None


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(RequestValidationError)
async def invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Rejected malformed crawl request: %s", exc.errors())
    return error_response(400, "Invalid URL format")


@app.post("/api/crawl")
async def start_crawl(req: Optional[CrawlRequest] = None):
    """Crawl the requested site and return every page record."""
    url = req.url if req else None
    if not url:
        return error_response(400, "URL is required")

    try:
        canonicalize(url)
    except InvalidURL:
        return error_response(400, "Invalid URL format")

    logger.info("Starting concurrent crawl of: %s", url)
    try:
        with PageFetcher(
            timeout_s=config.timeout,
            user_agent=config.user_agent,
            pool_size=config.max_concurrency,
        ) as fetcher:
            results = await crawl(url, config.crawl_options(), fetcher=fetcher)
    except Exception as e:
        logger.exception("Crawl error")
        return error_response(500, str(e) or "Unknown error occurred")

    logger.info("Crawl complete: %d pages found", len(results))
    return {
        "success": True,
        "results": [r.to_dict() for r in results],
        "message": f"Crawl complete! Found {len(results)} pages.",
    }


def main() -> None:
    """Run the API server with uvicorn."""
    import uvicorn

    setup_logging(config.log_level)
    logger.info("Web Crawler Server running on http://%s:%d", config.host, config.port)
    uvicorn.run(app, host=config.host, port=config.port)


if __name__ == "__main__":
    main()
