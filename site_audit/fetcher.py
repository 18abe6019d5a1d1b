"""
Bounded HTTP fetch helpers.

Every helper returns a tagged value instead of raising, so a batch of
concurrent fetches can be folded into Checks after it resolves without any
exception control flow:

    result = await fetch(client, "https://example.com/robots.txt")
    if result.ok:
        body = result.text

No retries anywhere: a failed auxiliary fetch is recorded once.
"""

import asyncio
import logging
from enum import Enum
from typing import Dict, List, Literal, Optional, Sequence, Union
from urllib.parse import urljoin, urlparse

import httpx
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class FailureKind(str, Enum):
    TIMEOUT = "timeout"
    NETWORK = "network"
    HTTP_STATUS = "http_status"


class FetchSuccess(BaseModel):
    ok: Literal[True] = True
    url: str
    status_code: int
    headers: Dict[str, str] = Field(default_factory=dict)
    text: str = ""

    def header(self, name: str) -> Optional[str]:
        return self.headers.get(name.lower())


class FetchFailure(BaseModel):
    ok: Literal[False] = False
    url: str
    kind: FailureKind
    status_code: Optional[int] = None
    message: str = ""

    @property
    def reason(self) -> str:
        if self.kind == FailureKind.HTTP_STATUS:
            return f"HTTP {self.status_code}"
        if self.kind == FailureKind.TIMEOUT:
            return "Timeout"
        return self.message or "Unreachable"


FetchResult = Union[FetchSuccess, FetchFailure]


class LinkProbe(BaseModel):
    url: str
    status_code: int = 0
    error: Optional[str] = None

    @property
    def broken(self) -> bool:
        if self.error:
            return True
        # Servers that refuse HEAD are not broken links.
        return self.status_code >= 400 and self.status_code != 405

    def describe(self) -> str:
        if self.error:
            return f"{self.url} ({self.error})"
        return f"{self.url} (HTTP {self.status_code})"


def origin_of(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def _headers(response: httpx.Response) -> Dict[str, str]:
    return {key.lower(): value for key, value in response.headers.items()}


async def fetch(
    client: httpx.AsyncClient,
    url: str,
    method: str = "GET",
    timeout: Optional[float] = None,
    follow_redirects: bool = True,
) -> FetchResult:
    """
    Fetch one URL.

    Returns FetchSuccess for a 2xx response (or any response when redirects
    are not followed and a 3xx comes back), FetchFailure otherwise.
    """
    kwargs = {"follow_redirects": follow_redirects}
    if timeout is not None:
        kwargs["timeout"] = timeout
    try:
        response = await client.request(method, url, **kwargs)
    except httpx.TimeoutException:
        logger.info(f"Timeout fetching {url}")
        return FetchFailure(url=url, kind=FailureKind.TIMEOUT, message="Timeout")
    except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
        logger.info(f"Network error fetching {url}: {e}")
        return FetchFailure(url=url, kind=FailureKind.NETWORK, message=str(e) or type(e).__name__)

    redirect = not follow_redirects and response.is_redirect
    if not response.is_success and not redirect:
        return FetchFailure(
            url=url,
            kind=FailureKind.HTTP_STATUS,
            status_code=response.status_code,
            message=f"HTTP {response.status_code}",
        )
    return FetchSuccess(
        url=str(response.url),
        status_code=response.status_code,
        headers=_headers(response),
        text=response.text if method != "HEAD" else "",
    )


async def fetch_all(
    client: httpx.AsyncClient,
    urls: Sequence[str],
    timeout: Optional[float] = None,
) -> List[FetchResult]:
    """Fetch a batch concurrently; results keep the input order."""
    results = await asyncio.gather(
        *(fetch(client, url, timeout=timeout) for url in urls),
        return_exceptions=True,
    )
    folded: List[FetchResult] = []
    for url, result in zip(urls, results):
        if isinstance(result, BaseException):
            logger.warning(f"Unexpected failure fetching {url}: {result!r}")
            folded.append(FetchFailure(url=url, kind=FailureKind.NETWORK, message=str(result)))
        else:
            folded.append(result)
    return folded


async def trace_redirects(
    client: httpx.AsyncClient, url: str, max_hops: int = 5
) -> List[str]:
    """
    Walk redirects by hand (HEAD, no auto-follow) up to max_hops.

    Returns one "<status>: <from> -> <to>" line per hop. Stops at the first
    non-3xx answer, a 3xx without Location, or any failure.
    """
    chain: List[str] = []
    current = url
    for _ in range(max_hops):
        result = await fetch(client, current, method="HEAD", follow_redirects=False)
        if not result.ok or not 300 <= result.status_code < 400:
            break
        location = result.header("location")
        if not location:
            break
        try:
            target = urljoin(current, location)
        except ValueError:
            break
        chain.append(f"{result.status_code}: {current} -> {target}")
        current = target
    return chain


async def _probe(client: httpx.AsyncClient, url: str, timeout: float) -> LinkProbe:
    try:
        response = await asyncio.wait_for(
            client.head(url, follow_redirects=True, timeout=timeout), timeout
        )
    except (asyncio.TimeoutError, httpx.TimeoutException):
        return LinkProbe(url=url, error="Timeout")
    except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
        return LinkProbe(url=url, error=str(e) or type(e).__name__)
    return LinkProbe(url=url, status_code=response.status_code)


async def probe_links(
    client: httpx.AsyncClient, urls: Sequence[str], timeout: float = 3.0
) -> List[LinkProbe]:
    """HEAD every link concurrently with a short per-link timeout."""
    return list(await asyncio.gather(*(_probe(client, url, timeout) for url in urls)))
