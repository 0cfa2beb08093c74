from __future__ import annotations

import asyncio
from collections.abc import Callable

import httpx
import pytest

from hashnav.assembly.fetch import Fetcher

BASE_URL = "http://site.test/"

# Served body per path: text is a 200 response, an int is a bare status,
# an exception instance is raised as a transport failure.
PageMap = dict[str, "str | int | Exception"]


class FakeSite:
    def __init__(self, pages: PageMap, *, delays: dict[str, float] | None = None) -> None:
        self.pages = pages
        self.delays = delays or {}
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.lstrip("/")
        self.calls.append(path)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            delay = self.delays.get(path)
            if delay:
                await asyncio.sleep(delay)
            body = self.pages.get(path)
        finally:
            self.in_flight -= 1
        if body is None:
            return httpx.Response(404, text="not found")
        if isinstance(body, Exception):
            raise body
        if isinstance(body, int):
            return httpx.Response(body, text="")
        return httpx.Response(200, text=body)

    def fetcher(self) -> Fetcher:
        return Fetcher(base_url=BASE_URL, transport=httpx.MockTransport(self.handler))


@pytest.fixture()
def fake_site() -> Callable[..., FakeSite]:
    def factory(pages: PageMap, *, delays: dict[str, float] | None = None) -> FakeSite:
        return FakeSite(pages, delays=delays)

    return factory
