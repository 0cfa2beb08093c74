from __future__ import annotations

import pytest

from hashnav.errors import InvalidRouteKey
from hashnav.models import Route
from hashnav.routing.paths import normalize, resolve_route, to_hash_href


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, "/"),
        ("", "/"),
        ("#", "/"),
        ("#/", "/"),
        ("#/about", "/about"),
        ("#/docs/intro", "/docs/intro"),
        ("/about", "/about"),
        ("404", "404"),
    ],
)
def test_normalize_maps_hash_values_to_route_keys(raw: str | None, expected: str) -> None:
    assert normalize(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "#", "#/", "#/about", "/x/y", "404", "##/nested"])
def test_normalize_is_idempotent(raw: str | None) -> None:
    once = normalize(raw)
    assert normalize(once) == once


@pytest.mark.parametrize("raw", ["about", "#about", "https://example.com/"])
def test_normalize_rejects_values_without_leading_slash(raw: str) -> None:
    with pytest.raises(InvalidRouteKey):
        normalize(raw)


def test_invalid_route_key_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        normalize("#nope")


def test_resolve_route_falls_back_to_404_entry() -> None:
    home = Route(template="home.html")
    missing = Route(template="404.html")
    routes = {"/": home, "404": missing}
    assert resolve_route(routes, "/") is home
    assert resolve_route(routes, "/missing") is missing
    assert resolve_route({"/": home}, "/missing") is None


def test_to_hash_href_only_rewrites_root_absolute_links() -> None:
    assert to_hash_href("/about") == "#/about"
    assert to_hash_href("/") == "#/"
    assert to_hash_href("//cdn.example.com/lib.js") is None
    assert to_hash_href("#/about") is None
    assert to_hash_href("https://example.com/") is None
    assert to_hash_href("relative.html") is None
