"""
Per-invocation plumbing shared by the three orchestrators: URL validation,
the httpx client lifetime and the (fatal) primary page fetch.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional
from urllib.parse import urlparse

import httpx

from .config import Settings
from .errors import InputError, PrimaryFetchError
from .fetcher import FetchSuccess, fetch

logger = logging.getLogger(__name__)


def validate_url(url: Optional[str]) -> str:
    """Return the stripped absolute http(s) URL or raise InputError."""
    if not isinstance(url, str) or not url.strip():
        raise InputError("URL required")
    url = url.strip()
    try:
        parsed = urlparse(url)
    except ValueError:
        raise InputError(f"Invalid URL: {url}")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InputError(f"Invalid URL: {url}")
    return url


@asynccontextmanager
async def audit_client(
    client: Optional[httpx.AsyncClient], settings: Settings
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield the caller's client, or one owned by this invocation."""
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(headers=settings.headers, timeout=settings.timeout) as owned:
        yield owned


async def fetch_primary(client: httpx.AsyncClient, url: str, settings: Settings) -> FetchSuccess:
    result = await fetch(client, url, timeout=settings.timeout)
    if not result.ok:
        logger.error(f"Primary fetch failed for {url}: {result.reason}")
        raise PrimaryFetchError(url, result.reason, http_status=result.status_code)
    logger.info(f"Fetched {url} ({result.status_code}, {len(result.text)} chars)")
    return result
