"""
Shared aiohttp ClientSession for remote media downloads.

`initialize()` / `close()` run in the FastAPI lifespan. The download timeout is
HTTP_TIMEOUT_SEC. `request_session()` falls back to a short-lived session
while the shared one is absent, e.g. in tests or before startup.
"""

import logging
from contextlib import asynccontextmanager

import aiohttp

from aiguard.config import settings

logger = logging.getLogger(__name__)

session: aiohttp.ClientSession | None = None


def _new_session() -> aiohttp.ClientSession:
    return aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(total=settings.http_timeout_sec)
    )


async def initialize() -> None:
    global session
    session = _new_session()
    logger.info("[STARTUP] Shared HTTP session initialized")


async def close() -> None:
    global session
    if session and not session.closed:
        await session.close()
        session = None
        logger.info("[SHUTDOWN] Shared HTTP session closed")


@asynccontextmanager
async def request_session():
    """Yields the shared session, or a temporary one that is closed on exit."""
    if session and not session.closed:
        yield session
    else:
        tmp = _new_session()
        try:
            yield tmp
        finally:
            await tmp.close()
