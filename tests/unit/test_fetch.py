from __future__ import annotations

import httpx
import pytest

from hashnav.errors import FetchError


@pytest.mark.asyncio
async def test_fetch_text_returns_body_for_ok_response(fake_site) -> None:  # type: ignore[no-untyped-def]
    site = fake_site({"home.html": "<h1>Home</h1>"})
    async with site.fetcher() as fetcher:
        assert await fetcher.fetch_text("home.html") == "<h1>Home</h1>"
    assert site.calls == ["home.html"]


@pytest.mark.asyncio
async def test_fetch_text_raises_for_error_status(fake_site) -> None:  # type: ignore[no-untyped-def]
    site = fake_site({"gone.html": 410})
    async with site.fetcher() as fetcher:
        with pytest.raises(FetchError) as exc:
            await fetcher.fetch_text("gone.html")
    assert exc.value.reason == "http_410"
    assert exc.value.uri == "gone.html"


@pytest.mark.asyncio
async def test_fetch_text_wraps_transport_errors(fake_site) -> None:  # type: ignore[no-untyped-def]
    site = fake_site({"down.html": httpx.ConnectError("connection refused")})
    async with site.fetcher() as fetcher:
        with pytest.raises(FetchError) as exc:
            await fetcher.fetch_text("down.html")
    assert exc.value.reason == "error:ConnectError"
