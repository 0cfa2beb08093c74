from __future__ import annotations

from collections.abc import Mapping

from hashnav.errors import InvalidRouteKey
from hashnav.models import Route

HASH_MARKER = "#"
ROOT_KEY = "/"
NOT_FOUND_KEY = "404"


def normalize(hash_value: str | None) -> str:
    if not hash_value or hash_value == HASH_MARKER:
        return ROOT_KEY
    if hash_value.startswith(HASH_MARKER):
        return normalize(hash_value[len(HASH_MARKER) :])
    if hash_value.startswith("/") or hash_value == NOT_FOUND_KEY:
        return hash_value
    raise InvalidRouteKey(f"cannot route hash value {hash_value!r}")


def resolve_route(routes: Mapping[str, Route], key: str) -> Route | None:
    route = routes.get(key)
    if route is not None:
        return route
    return routes.get(NOT_FOUND_KEY)


def to_hash_href(href: str) -> str | None:
    # Root-absolute only; protocol-relative "//host" links leave the app.
    if href.startswith("/") and not href.startswith("//"):
        return f"{HASH_MARKER}{href}"
    return None
