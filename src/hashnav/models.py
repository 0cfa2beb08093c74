from __future__ import annotations

from dataclasses import dataclass, field

from lxml import html


@dataclass(slots=True, frozen=True)
class Route:
    template: str
    title: str | None = None
    styles: tuple[str, ...] = ()
    scripts: tuple[str, ...] = ()


@dataclass(slots=True)
class AssembledPage:
    tree: html.HtmlElement
    title: str
    styles: list[html.HtmlElement] = field(default_factory=list)
    scripts: list[html.HtmlElement] = field(default_factory=list)


@dataclass(slots=True)
class Transition:
    generation: int
    from_key: str | None
    to_key: str
    ready: bool = False
    mounted: bool = False
    mount_fired: bool = False
    fallback: bool = False


@dataclass(slots=True, frozen=True)
class Idle:
    pass


@dataclass(slots=True, frozen=True)
class Transitioning:
    from_key: str | None
    to_key: str


NavigationState = Idle | Transitioning
