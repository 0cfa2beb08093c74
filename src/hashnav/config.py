from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, cast

from jsonschema import ValidationError, validate

from hashnav.errors import ConfigError, InvalidRouteKey
from hashnav.models import Route
from hashnav.routing.paths import normalize

SITE_SCHEMA: dict[str, object] = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "routes": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "additionalProperties": False,
                "properties": {
                    "template": {"type": "string", "minLength": 1},
                    "title": {"type": "string"},
                    "styles": {"type": "array", "items": {"type": "string"}},
                    "scripts": {"type": "array", "items": {"type": "string"}},
                },
                "required": ["template"],
            },
        },
        "fragments": {
            "type": "object",
            "additionalProperties": {"type": "string", "minLength": 1},
        },
    },
    "required": ["routes"],
}


@dataclass(slots=True)
class RouterConfig:
    root_id: str = "root"
    default_title: str = "Untitled Page"
    not_found_title: str = "404 - Page Not Found"
    load_error_title: str = "Error - Page Failed to Load"
    max_fragment_depth: int = 16
    base_url: str = "http://127.0.0.1:8000/"
    timeout_seconds: float = 20.0
    user_agent: str = "hashnav/0.1"
    log_level: str = "info"


@dataclass(slots=True)
class SiteConfig:
    routes: dict[str, Route] = field(default_factory=dict)
    fragments: dict[str, str] = field(default_factory=dict)


def build_routes(raw: Mapping[str, Mapping[str, Any]]) -> dict[str, Route]:
    routes: dict[str, Route] = {}
    for key, entry in raw.items():
        try:
            canonical = normalize(str(key))
        except InvalidRouteKey as exc:
            raise ConfigError(f"invalid route key {key!r}") from exc
        if canonical != str(key):
            raise ConfigError(f"route key {key!r} is not canonical, use {canonical!r}")
        routes[canonical] = Route(
            template=entry["template"],
            title=entry.get("title"),
            styles=tuple(entry.get("styles", ())),
            scripts=tuple(entry.get("scripts", ())),
        )
    return routes


def parse_site(payload: object) -> SiteConfig:
    try:
        validate(payload, SITE_SCHEMA)
    except ValidationError as exc:
        raise ConfigError(f"site schema error: {exc.message}") from exc
    site = cast(dict[str, Any], payload)
    return SiteConfig(
        routes=build_routes(site["routes"]),
        fragments=dict(site.get("fragments", {})),
    )


def load_site(path: Path) -> SiteConfig:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"cannot read site file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"site file {path} is not valid JSON: {exc.msg}") from exc
    return parse_site(payload)
