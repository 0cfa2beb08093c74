from __future__ import annotations

import asyncio
from collections.abc import Mapping

import structlog
from lxml import html

from hashnav.assembly.fetch import Fetcher
from hashnav.assembly.markers import PREFETCH_ATTR
from hashnav.dom import closest
from hashnav.errors import FetchError, InvalidRouteKey
from hashnav.models import Route
from hashnav.routing.paths import HASH_MARKER, normalize, resolve_route

logger = structlog.get_logger(__name__)


class Prefetcher:
    def __init__(self, fetcher: Fetcher, routes: Mapping[str, Route]) -> None:
        self._fetcher = fetcher
        self._routes = routes

    def handle(self, target: html.HtmlElement) -> asyncio.Task[None] | None:
        anchor = closest(target, f"a[@{PREFETCH_ATTR}][@href]")
        if anchor is None:
            return None
        href = anchor.get("href") or ""
        if not href.startswith(HASH_MARKER):
            return None
        try:
            key = normalize(href)
        except InvalidRouteKey:
            return None
        route = resolve_route(self._routes, key)
        if route is None:
            return None
        return asyncio.get_running_loop().create_task(self._warm(route.template))

    async def _warm(self, uri: str) -> None:
        try:
            await self._fetcher.fetch_text(uri)
        except FetchError as exc:
            logger.debug("prefetch_failed", uri=uri, reason=exc.reason)
