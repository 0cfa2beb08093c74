from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, overload

import structlog

from hashnav.assembly.fetch import Fetcher
from hashnav.errors import FetchError, ScriptLoadFailed, TransitionSuperseded

if TYPE_CHECKING:
    from hashnav.routing.lifecycle import PageRuntime

logger = structlog.get_logger(__name__)

ScriptHandler = Callable[["PageRuntime"], Awaitable[None] | None]


class ScriptRegistry:
    """Python handlers standing in for page scripts.

    An inline ``<script>`` is looked up by its stripped text, an external one
    by its ``src`` attribute exactly as written in the template.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, ScriptHandler] = {}

    @overload
    def register(self, name: str) -> Callable[[ScriptHandler], ScriptHandler]: ...

    @overload
    def register(self, name: str, handler: ScriptHandler) -> ScriptHandler: ...

    def register(
        self, name: str, handler: ScriptHandler | None = None
    ) -> ScriptHandler | Callable[[ScriptHandler], ScriptHandler]:
        if handler is not None:
            self._handlers[name.strip()] = handler
            return handler

        def decorator(func: ScriptHandler) -> ScriptHandler:
            self._handlers[name.strip()] = func
            return func

        return decorator

    def get(self, name: str) -> ScriptHandler | None:
        return self._handlers.get(name.strip())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.strip() in self._handlers


class ScriptHost:
    def __init__(self, fetcher: Fetcher, registry: ScriptRegistry) -> None:
        self._fetcher = fetcher
        self._registry = registry

    async def run_inline(self, source: str, runtime: PageRuntime | None) -> None:
        await self._execute(source, runtime)

    async def load(self, src: str, runtime: PageRuntime | None) -> None:
        try:
            await self._fetcher.fetch_text(src)
        except FetchError as exc:
            raise ScriptLoadFailed(f"script {src}: {exc.reason}") from exc
        await self._execute(src, runtime)

    async def _execute(self, name: str, runtime: PageRuntime | None) -> None:
        handler = self._registry.get(name)
        if handler is None or runtime is None:
            return
        try:
            result = handler(runtime)
            if inspect.isawaitable(result):
                await result
        except TransitionSuperseded:
            raise
        except Exception:
            logger.exception("script_failed", script=name[:80])
