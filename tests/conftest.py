"""
Shared fixtures: an in-memory website served through httpx.MockTransport.

    site = FakeSite({"https://shop.test/": html_page(...)})
    async with site.client() as client:
        report = await analyze_seo("https://shop.test/", client=client)

Routes map absolute URLs to (status, headers, body). Unknown URLs answer 404.
Every requested URL is recorded in ``site.requests``.
"""

from typing import Dict, List, Tuple

import httpx
import pytest

Route = Tuple[int, Dict[str, str], str]


def _key(url: str) -> str:
    return str(httpx.URL(url))


class FakeSite:
    def __init__(self, routes: Dict[str, Route] = None):
        self.routes: Dict[str, Route] = {_key(url): route for url, route in (routes or {}).items()}
        self.requests: List[Tuple[str, str]] = []

    def add(self, url: str, body: str = "", status: int = 200, headers: Dict[str, str] = None):
        self.routes[_key(url)] = (status, headers or {"content-type": "text/html; charset=utf-8"}, body)

    def requested(self, url: str) -> bool:
        return any(requested == _key(url) for _, requested in self.requests)

    def handle(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append((request.method, url))
        status, headers, body = self.routes.get(url, (404, {}, "not found"))
        return httpx.Response(status, headers=headers, text=body)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handle))


def html_page(body: str = "", head: str = "", lang: str = "en") -> str:
    return f'<!DOCTYPE html><html lang="{lang}"><head>{head}</head><body>{body}</body></html>'


def filler(count: int, word: str = "word") -> str:
    """``count`` distinct-ish words of plain text."""
    return " ".join(f"{word}{i}" for i in range(count))


@pytest.fixture
def site() -> FakeSite:
    return FakeSite()
