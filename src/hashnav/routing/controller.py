from __future__ import annotations

import asyncio
from collections.abc import Mapping
from functools import partial
from types import MappingProxyType

import structlog
from lxml import html

from hashnav.assembly.fetch import Fetcher
from hashnav.assembly.page import PageAssembler
from hashnav.assembly.scripts import ScriptRegistry
from hashnav.config import RouterConfig
from hashnav.dom import Document, Location, closest, parse_fragment, swap_children
from hashnav.errors import (
    FetchError,
    InvalidRouteKey,
    RouteNotFound,
    TemplateLoadFailed,
    TransitionSuperseded,
)
from hashnav.models import Idle, NavigationState, Route, Transition, Transitioning
from hashnav.routing.lifecycle import LifecycleRegistry, PageRuntime, call_hook
from hashnav.routing.paths import HASH_MARKER, normalize, resolve_route, to_hash_href
from hashnav.routing.prefetch import Prefetcher

logger = structlog.get_logger(__name__)

NOT_FOUND_MARKUP = "<h1>404 - Page Not Found</h1>"
LOAD_ERROR_MARKUP = "<h1>Page Failed to Load</h1>"


class NavigationController:
    """Hash router driving fetch, assembly, swap and page hooks.

    Each hash change starts a transition tagged with a new generation. Only
    the newest generation may write to the document; an older one that wakes
    up after being superseded stops at its next checkpoint.
    """

    def __init__(
        self,
        document: Document,
        location: Location,
        fetcher: Fetcher,
        *,
        routes: Mapping[str, Route],
        fragments: Mapping[str, str] | None = None,
        scripts: ScriptRegistry | None = None,
        lifecycle: LifecycleRegistry | None = None,
        config: RouterConfig | None = None,
    ) -> None:
        self.config = config or RouterConfig()
        self.document = document
        self.location = location
        self.routes: Mapping[str, Route] = MappingProxyType(dict(routes))
        self.lifecycle = lifecycle or LifecycleRegistry()
        self._fetcher = fetcher
        self._assembler = PageAssembler(
            document,
            fetcher,
            fragments or {},
            scripts=scripts,
            default_title=self.config.default_title,
            max_fragment_depth=self.config.max_fragment_depth,
        )
        self._prefetcher = Prefetcher(fetcher, self.routes)
        self._generation = 0
        self._current: Transition | None = None
        self._in_flight: Transition | None = None
        self._mounted_key: str | None = None
        self._tasks: set[asyncio.Task[None]] = set()
        self._subscribed = False

    @property
    def active_key(self) -> str | None:
        return self._current.to_key if self._current is not None else None

    @property
    def state(self) -> NavigationState:
        if self._in_flight is None:
            return Idle()
        return Transitioning(from_key=self._in_flight.from_key, to_key=self._in_flight.to_key)

    def is_current(self, transition: Transition) -> bool:
        return self._current is transition

    def start(self) -> asyncio.Task[None] | None:
        if not self._subscribed:
            self.location.subscribe(self._on_hashchange)
            self._subscribed = True
        return self._begin(self.location.hash)

    def handle_click(self, target: html.HtmlElement) -> bool:
        anchor = closest(target, "a[@href]")
        if anchor is None:
            return False
        href = anchor.get("href") or ""
        if not href.startswith(HASH_MARKER):
            return False
        self.location.assign(href)
        return True

    def handle_hover(self, target: html.HtmlElement) -> asyncio.Task[None] | None:
        task = self._prefetcher.handle(target)
        if task is not None:
            self._track(task)
        return task

    def redirect(self, href: str) -> None:
        self.location.assign(href)

    async def navigate(self, href: str) -> None:
        self.location.assign(href)
        await self.settle()

    async def settle(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def signal_ready(self, transition: Transition) -> None:
        if not self.is_current(transition):
            logger.debug("stale_ready_signal", key=transition.to_key)
            return
        transition.ready = True
        if transition.mounted:
            await self._fire_mount(transition)

    def _on_hashchange(self, old_hash: str, new_hash: str) -> None:
        logger.debug("hashchange", old=old_hash, new=new_hash)
        self._begin(new_hash)

    def _begin(self, hash_value: str) -> asyncio.Task[None] | None:
        try:
            to_key = normalize(hash_value)
        except InvalidRouteKey as exc:
            logger.warning("invalid_route_key", hash=hash_value, error=str(exc))
            return None

        self._generation += 1
        transition = Transition(
            generation=self._generation, from_key=self.active_key, to_key=to_key
        )
        self._current = transition
        self._in_flight = transition
        task = asyncio.get_running_loop().create_task(self._run(transition))
        self._track(task)
        return task

    def _track(self, task: asyncio.Task[None]) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _checkpoint(self, transition: Transition) -> None:
        if not self.is_current(transition):
            raise TransitionSuperseded(f"generation {transition.generation} superseded")

    async def _run(self, transition: Transition) -> None:
        try:
            await self._transition(transition)
        except TransitionSuperseded:
            logger.debug(
                "transition_superseded",
                generation=transition.generation,
                to=transition.to_key,
            )
        finally:
            if self._in_flight is transition:
                self._in_flight = None

    async def _transition(self, transition: Transition) -> None:
        check = partial(self._checkpoint, transition)
        # Only a page that actually mounted owns an unmount hook, and only once.
        leaving, self._mounted_key = self._mounted_key, None
        if leaving is not None:
            unmount = self.lifecycle.consume_unmount(leaving)
            if unmount is not None:
                await call_hook(unmount, kind="unmount", key=leaving)
        check()

        try:
            route, transition.fallback = self._lookup(transition.to_key)
        except RouteNotFound as exc:
            logger.warning("route_not_found", key=transition.to_key, error=str(exc))
            self._mount_literal(NOT_FOUND_MARKUP, self.config.not_found_title)
            return

        try:
            raw = await self._load_template(route)
        except TemplateLoadFailed as exc:
            logger.error("template_load_failed", key=transition.to_key, error=str(exc))
            check()
            self._mount_literal(LOAD_ERROR_MARKUP, self.config.load_error_title)
            return

        check()
        runtime = PageRuntime(self, transition)
        page = await self._assembler.assemble(raw, route=route, runtime=runtime, checkpoint=check)

        check()
        swap_children(self.document.root, page.tree)
        rewritten = rewrite_internal_links(self.document.root)
        transition.mounted = True
        if not transition.fallback:
            self._mounted_key = transition.to_key
        logger.info(
            "page_mounted",
            key=transition.to_key,
            fallback=transition.fallback,
            title=page.title,
            styles=len(page.styles),
            scripts=len(page.scripts),
            links_rewritten=rewritten,
        )
        if transition.ready:
            await self._fire_mount(transition)

    def _lookup(self, key: str) -> tuple[Route, bool]:
        route = resolve_route(self.routes, key)
        if route is None:
            raise RouteNotFound(f"no route for {key!r} and no 404 route")
        return route, key not in self.routes

    async def _load_template(self, route: Route) -> str:
        try:
            return await self._fetcher.fetch_text(route.template)
        except FetchError as exc:
            raise TemplateLoadFailed(f"template {route.template}: {exc.reason}") from exc

    def _mount_literal(self, markup: str, title: str) -> None:
        swap_children(self.document.root, parse_fragment(markup))
        self.document.title = title

    async def _fire_mount(self, transition: Transition) -> None:
        if transition.fallback or transition.mount_fired or not self.is_current(transition):
            return
        transition.mount_fired = True
        mount = self.lifecycle.consume_mount(transition.to_key)
        if mount is not None:
            await call_hook(mount, kind="mount", key=transition.to_key)


def rewrite_internal_links(tree: html.HtmlElement) -> int:
    count = 0
    for anchor in tree.iter("a"):
        href = anchor.get("href")
        if href is None:
            continue
        mapped = to_hash_href(href)
        if mapped is None:
            continue
        anchor.set("href", mapped)
        count += 1
    return count
