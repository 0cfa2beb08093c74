from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING

import structlog
from lxml import html

from hashnav.assembly.fetch import Fetcher
from hashnav.assembly.fragments import DEFAULT_MAX_DEPTH, FragmentResolver
from hashnav.assembly.markers import (
    DYNAMIC_SCRIPT_ATTR,
    DYNAMIC_STYLE_ATTR,
    find_scripts,
    find_styles,
    find_title,
)
from hashnav.assembly.scripts import ScriptHost, ScriptRegistry
from hashnav.dom import Document, detach, parse_fragment
from hashnav.errors import ScriptLoadFailed
from hashnav.models import AssembledPage, Route

if TYPE_CHECKING:
    from hashnav.routing.lifecycle import PageRuntime

logger = structlog.get_logger(__name__)

Checkpoint = Callable[[], None]


def _no_checkpoint() -> None:
    return None


class PageAssembler:
    """Turns raw template markup into a mountable tree.

    Order is fixed: title, fragments, styles, scripts. Styles and scripts are
    moved out of the tree into the live document head and body, replacing
    whatever the previous page injected there. ``checkpoint`` runs before
    each write to the live document so a superseded navigation can bail out.
    """

    def __init__(
        self,
        document: Document,
        fetcher: Fetcher,
        fragments: Mapping[str, str],
        *,
        scripts: ScriptRegistry | None = None,
        default_title: str = "Untitled Page",
        max_fragment_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self._document = document
        self._resolver = FragmentResolver(fetcher, fragments, max_depth=max_fragment_depth)
        self._scripts = ScriptHost(fetcher, scripts or ScriptRegistry())
        self._default_title = default_title

    async def assemble(
        self,
        raw: str,
        *,
        route: Route | None = None,
        runtime: PageRuntime | None = None,
        checkpoint: Checkpoint | None = None,
    ) -> AssembledPage:
        check = checkpoint or _no_checkpoint
        tree = parse_fragment(raw)

        check()
        title = self._resolve_title(tree, route)

        await self._resolver.resolve(tree)

        check()
        styles = self._resolve_styles(tree, route)

        check()
        scripts = await self._resolve_scripts(tree, route, runtime)
        return AssembledPage(tree=tree, title=title, styles=styles, scripts=scripts)

    def _resolve_title(self, tree: html.HtmlElement, route: Route | None) -> str:
        marker = find_title(tree)
        title = ""
        if marker is not None:
            title = marker.value
            detach(marker.element)
        if not title:
            title = (route.title if route is not None else None) or self._default_title
        self._document.title = title
        return title

    def _resolve_styles(
        self, tree: html.HtmlElement, route: Route | None
    ) -> list[html.HtmlElement]:
        head = self._document.head
        for stale in head.xpath(f"./*[@{DYNAMIC_STYLE_ATTR}]"):
            detach(stale)

        injected = [detach(style.element) for style in find_styles(tree)]
        if route is not None:
            injected.extend(
                html.Element("link", rel="stylesheet", href=href) for href in route.styles
            )
        for element in injected:
            element.set(DYNAMIC_STYLE_ATTR, "")
            head.append(element)
        return injected

    async def _resolve_scripts(
        self,
        tree: html.HtmlElement,
        route: Route | None,
        runtime: PageRuntime | None,
    ) -> list[html.HtmlElement]:
        body = self._document.body
        for stale in body.xpath(f"./*[@{DYNAMIC_SCRIPT_ATTR}]"):
            detach(stale)

        entries = [(detach(script.element), script.src) for script in find_scripts(tree)]
        if route is not None:
            for src in route.scripts:
                element = html.Element("script", src=src)
                if src.endswith(".mjs"):
                    element.set("type", "module")
                entries.append((element, src))

        loads: list[asyncio.Task[None]] = []
        try:
            for element, src in entries:
                element.set(DYNAMIC_SCRIPT_ATTR, "")
                body.append(element)
                if src is None:
                    await self._scripts.run_inline(element.text or "", runtime)
                else:
                    loads.append(asyncio.ensure_future(self._load_script(src, runtime)))
            if loads:
                await asyncio.gather(*loads)
        finally:
            for pending in loads:
                pending.cancel()
        return [element for element, _ in entries]

    async def _load_script(self, src: str, runtime: PageRuntime | None) -> None:
        try:
            await self._scripts.load(src, runtime)
        except ScriptLoadFailed as exc:
            logger.warning("script_load_failed", src=src, error=str(exc))
