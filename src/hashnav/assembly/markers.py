"""Markup conventions recognized while assembling a page.

Every element the assembler treats specially is reported as one variant of
``SpecialElement``; nothing else in a template carries meaning to the router.
"""

from __future__ import annotations

from dataclasses import dataclass

from lxml import html

SLOT_ATTR = "data-fragment"
PREFETCH_ATTR = "data-prefetch"
TITLE_META_NAME = "page-title"
DYNAMIC_STYLE_ATTR = "data-dynamic-style"
DYNAMIC_SCRIPT_ATTR = "data-dynamic-script"

_SLOT_XPATH = f".//*[@{SLOT_ATTR}]"
_TITLE_XPATH = f".//meta[@name='{TITLE_META_NAME}']"


@dataclass(slots=True, frozen=True)
class SlotMarker:
    element: html.HtmlElement
    name: str


@dataclass(slots=True, frozen=True)
class TitleMarker:
    element: html.HtmlElement
    value: str


@dataclass(slots=True, frozen=True)
class StyleElement:
    element: html.HtmlElement
    inline: bool


@dataclass(slots=True, frozen=True)
class ScriptElement:
    element: html.HtmlElement
    src: str | None


SpecialElement = SlotMarker | TitleMarker | StyleElement | ScriptElement


def find_slots(tree: html.HtmlElement) -> list[SlotMarker]:
    return [
        SlotMarker(element=element, name=(element.get(SLOT_ATTR) or "").strip())
        for element in tree.xpath(_SLOT_XPATH)
    ]


def find_title(tree: html.HtmlElement) -> TitleMarker | None:
    matches = tree.xpath(_TITLE_XPATH)
    if not matches:
        return None
    element = matches[0]
    return TitleMarker(element=element, value=(element.get("content") or "").strip())


def find_styles(tree: html.HtmlElement) -> list[StyleElement]:
    links = [
        StyleElement(element=element, inline=False)
        for element in tree.iter("link")
        if "stylesheet" in (element.get("rel") or "").lower().split() and element.get("href")
    ]
    inline = [StyleElement(element=element, inline=True) for element in tree.iter("style")]
    return links + inline


def find_scripts(tree: html.HtmlElement) -> list[ScriptElement]:
    found: list[ScriptElement] = []
    for element in tree.iter("script"):
        src = (element.get("src") or "").strip()
        found.append(ScriptElement(element=element, src=src or None))
    return found
