from __future__ import annotations

from types import TracebackType

import httpx

from hashnav.errors import FetchError


class Fetcher:
    def __init__(
        self,
        *,
        base_url: str,
        user_agent: str = "hashnav/0.1",
        timeout_seconds: float = 20.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            follow_redirects=True,
            timeout=timeout_seconds,
            headers={"User-Agent": user_agent},
            transport=transport,
        )

    async def __aenter__(self) -> Fetcher:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_text(self, uri: str) -> str:
        try:
            response = await self._client.get(uri)
        except httpx.HTTPError as exc:
            raise FetchError(uri, f"error:{type(exc).__name__}") from exc

        if response.status_code >= 400:
            raise FetchError(uri, f"http_{response.status_code}")
        return response.text
