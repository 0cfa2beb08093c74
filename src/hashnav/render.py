from __future__ import annotations

import httpx

from hashnav.assembly.fetch import Fetcher
from hashnav.assembly.scripts import ScriptRegistry
from hashnav.config import RouterConfig, SiteConfig
from hashnav.dom import Document, Location
from hashnav.routing.controller import NavigationController


async def render_hash(
    *,
    site: SiteConfig,
    config: RouterConfig,
    hash_value: str,
    scripts: ScriptRegistry | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    document = Document(root_id=config.root_id)
    location = Location(hash_value)
    async with Fetcher(
        base_url=config.base_url,
        user_agent=config.user_agent,
        timeout_seconds=config.timeout_seconds,
        transport=transport,
    ) as fetcher:
        controller = NavigationController(
            document,
            location,
            fetcher,
            routes=site.routes,
            fragments=site.fragments,
            scripts=scripts,
            config=config,
        )
        controller.start()
        await controller.settle()
    return document.to_html()
