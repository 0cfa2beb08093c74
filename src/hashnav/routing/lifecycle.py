from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from hashnav.dom import Document
from hashnav.errors import TransitionSuperseded
from hashnav.models import Transition

if TYPE_CHECKING:
    from hashnav.routing.controller import NavigationController

logger = structlog.get_logger(__name__)

Hook = Callable[[], Awaitable[None] | None]


@dataclass(slots=True)
class _HookEntry:
    mount: Hook | None = None
    unmount: Hook | None = None


class LifecycleRegistry:
    """At most one mount and one unmount hook per route key.

    Reading a hook never clears it; the entry only changes when the same
    route registers again.
    """

    def __init__(self) -> None:
        self._entries: dict[str, _HookEntry] = {}

    def set_mount(self, key: str, fn: Hook) -> None:
        self._entries.setdefault(key, _HookEntry()).mount = fn

    def set_unmount(self, key: str, fn: Hook) -> None:
        self._entries.setdefault(key, _HookEntry()).unmount = fn

    def consume_mount(self, key: str) -> Hook | None:
        entry = self._entries.get(key)
        return entry.mount if entry is not None else None

    def consume_unmount(self, key: str) -> Hook | None:
        entry = self._entries.get(key)
        return entry.unmount if entry is not None else None


async def call_hook(fn: Hook, *, kind: str, key: str) -> None:
    try:
        result = fn()
        if inspect.isawaitable(result):
            await result
    except TransitionSuperseded:
        raise
    except Exception:
        logger.exception("hook_failed", kind=kind, key=key)


class PageRuntime:
    """Hook surface handed to the scripts of one freshly assembled page."""

    def __init__(self, controller: NavigationController, transition: Transition) -> None:
        self._controller = controller
        self._transition = transition

    @property
    def document(self) -> Document:
        return self._controller.document

    @property
    def route_key(self) -> str:
        return self._transition.to_key

    def on_mount(self, fn: Hook) -> None:
        key = self._active_key()
        if key is not None:
            self._controller.lifecycle.set_mount(key, fn)

    def on_unmount(self, fn: Hook) -> None:
        key = self._active_key()
        if key is not None:
            self._controller.lifecycle.set_unmount(key, fn)

    async def ready(self) -> None:
        await self._controller.signal_ready(self._transition)

    def redirect(self, href: str) -> None:
        self._controller.redirect(href)

    def _active_key(self) -> str | None:
        if not self._controller.is_current(self._transition):
            logger.debug("stale_hook_registration", key=self._transition.to_key)
            return None
        if self._transition.fallback:
            logger.debug("fallback_hook_registration", key=self._transition.to_key)
            return None
        return self._controller.active_key
