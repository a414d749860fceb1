"""FastAPI server for ComicGlass.

Exposes:
- GET /?path=<relative>       (HTML listing of a library directory)
- GET /_cache/stats           (JSON snapshot of the listing cache)
- GET /{file path}            (library files)
"""

from __future__ import annotations

import asyncio
import logging
import os
import socket
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware

from browser import router as browser_router

from .cache import CacheStats, ListingCache
from .config import ComicGlassConfig
from .errors import ListingError
from .logging_config import get_logger
from .scanner import DirectoryScanner

logger = get_logger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log the first client connection with full URL for debugging."""

    async def dispatch(self, request, call_next):
        if not getattr(request.app.state, "logged_first_request", False):
            request_logger = logging.getLogger("comicglass.request")
            user_agent = request.headers.get("user-agent", "")
            client_name = user_agent.split("/")[0] if user_agent else "unknown"
            client_ip = request.client.host if request.client else "unknown"
            request_logger.info(
                'client_connected="%s" ip="%s" url="%s %s" ua="%s"',
                client_name,
                client_ip,
                request.method,
                str(request.url),
                user_agent,
            )
            request.app.state.logged_first_request = True
        return await call_next(request)


def _get_lan_ip() -> Optional[str]:
    """Return this machine's LAN IP (for the URL to give clients when binding to 0.0.0.0)."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.connect(("8.8.8.8", 80))
            return s.getsockname()[0]
    except OSError:
        return None


@asynccontextmanager
async def _lifespan(app: FastAPI):
    async def _print_startup_messages():
        await asyncio.sleep(0.1)
        logger.info("Started server process [" + str(os.getpid()) + "]")
        logger.info("Application startup complete. (Press CTRL+C to quit)")
        public_url = getattr(app.state, "public_url", None)
        if public_url:
            logger.info("Library available at: " + public_url)

    asyncio.create_task(_print_startup_messages())
    yield


async def _listing_error_handler(request: Request, exc: ListingError) -> Response:
    if exc.status_code >= 500:
        logger.error(f"server error: {exc.message} ({exc.path}): {exc.__cause__}")
    return PlainTextResponse(exc.message, status_code=exc.status_code)


def build_cache(config: ComicGlassConfig) -> ListingCache:
    """Construct the listing cache described by the config."""
    scanner = DirectoryScanner(config.scanner.allowed_extensions)
    return ListingCache(scanner, max_entries=config.cache.max_entries)


def create_app(
    config: ComicGlassConfig, cache: Optional[ListingCache] = None
) -> FastAPI:
    """Build the web app around an explicit config and listing cache."""
    app = FastAPI(title="ComicGlass", lifespan=_lifespan)
    app.state.config = config
    app.state.cache = cache if cache is not None else build_cache(config)

    app.add_middleware(RequestLoggingMiddleware)
    app.add_exception_handler(ListingError, _listing_error_handler)

    @app.get("/favicon.ico", include_in_schema=False)
    def favicon() -> Response:
        return Response(status_code=204)

    @app.get("/_cache/stats", response_model=CacheStats)
    def cache_stats(request: Request) -> CacheStats:
        """Diagnostic snapshot of the listing cache."""
        return request.app.state.cache.stats()

    # Last: the browser router ends in a catch-all file route.
    app.include_router(browser_router)
    return app


class _AccessFilter(logging.Filter):
    """Filter out access log lines for successful requests to reduce console noise.
    Keep errors (4xx, 5xx) visible for debugging.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            msg = record.getMessage()
        except Exception:
            return True
        return not any(
            pattern in msg
            for pattern in (' 200 OK', '" 200', ' 206 Partial', ' 304 Not Modified', '" 304')
        )


class _UvicornStartupFilter(logging.Filter):
    """Suppress uvicorn startup messages; we print our own in lifespan."""

    _MARKERS = (
        "Started server process",
        "Waiting for application startup",
        "Application startup complete",
        "running on",
    )

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name.startswith("comicglass"):
            return True
        raw = str(getattr(record, "msg", ""))
        return not any(marker in raw for marker in self._MARKERS)


def run_server(
    config: ComicGlassConfig,
    cache: ListingCache,
    host: Optional[str] = None,
    port: Optional[int] = None,
) -> None:
    """Run the FastAPI app with Uvicorn."""
    import uvicorn

    effective_host = host or config.server_host
    effective_port = port or config.server_port

    app = create_app(config, cache)

    # Show the network IP when binding to 0.0.0.0 so clients know where to connect
    if effective_host == "0.0.0.0":
        public_host = _get_lan_ip() or "0.0.0.0"
    else:
        public_host = effective_host
    app.state.public_url = f"http://{public_host}:{effective_port}/"

    startup_filter = _UvicornStartupFilter()
    for name in ("uvicorn", "uvicorn.error", "uvicorn.lifespan"):
        logging.getLogger(name).addFilter(startup_filter)
    logging.getLogger("uvicorn.access").addFilter(_AccessFilter())

    uvicorn.run(
        app,
        host=effective_host,
        port=effective_port,
        log_level="info",
        log_config=None,
    )
