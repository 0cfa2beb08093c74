from __future__ import annotations

import asyncio
from collections.abc import Mapping

import structlog
from lxml import html

from hashnav.assembly.fetch import Fetcher
from hashnav.assembly.markers import SlotMarker, find_slots
from hashnav.dom import parse_fragment, replace_with_content
from hashnav.errors import FetchError, FragmentCycleDetected, FragmentLoadFailed

logger = structlog.get_logger(__name__)

DEFAULT_MAX_DEPTH = 16


class FragmentResolver:
    """Splices named partial templates into slot markers, innermost first."""

    def __init__(
        self,
        fetcher: Fetcher,
        fragments: Mapping[str, str],
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self._fetcher = fetcher
        self._fragments = dict(fragments)
        self._max_depth = max_depth

    async def resolve(self, node: html.HtmlElement) -> None:
        await self._resolve_level(node, chain=())

    async def _resolve_level(self, node: html.HtmlElement, *, chain: tuple[str, ...]) -> None:
        known = [slot for slot in find_slots(node) if slot.name in self._fragments]
        owned = {slot.element for slot in known}
        # A slot inside another known slot is replaced along with its parent.
        slots = [
            slot
            for slot in known
            if not any(ancestor in owned for ancestor in slot.element.iterancestors())
        ]
        if not slots:
            return
        await asyncio.gather(*(self._resolve_slot(slot, chain=chain) for slot in slots))

    async def _resolve_slot(self, slot: SlotMarker, *, chain: tuple[str, ...]) -> None:
        try:
            container = await self._expand(slot.name, chain=chain)
        except (FragmentLoadFailed, FragmentCycleDetected) as exc:
            logger.warning(
                "fragment_unresolved",
                fragment=slot.name,
                chain=list(chain),
                error_type=type(exc).__name__,
                error=str(exc),
            )
            # The marker stays, so slots nested inside it are still this level's job.
            await self._resolve_level(slot.element, chain=chain)
            return
        replace_with_content(slot.element, container)

    async def _expand(self, name: str, *, chain: tuple[str, ...]) -> html.HtmlElement:
        if name in chain or len(chain) >= self._max_depth:
            raise FragmentCycleDetected(name, chain)
        uri = self._fragments[name]
        try:
            markup = await self._fetcher.fetch_text(uri)
        except FetchError as exc:
            raise FragmentLoadFailed(f"fragment {name!r} from {uri}: {exc.reason}") from exc

        container = parse_fragment(markup)
        await self._resolve_level(container, chain=(*chain, name))
        return container
