from __future__ import annotations

import re
from collections.abc import Callable

from lxml import html

from hashnav.errors import ConfigError

DEFAULT_SHELL = (
    "<html><head><meta charset='utf-8'><title></title></head>"
    "<body><div id='{root_id}'></div></body></html>"
)

HashListener = Callable[[str, str], None]

_FULL_DOCUMENT_RE = re.compile(
    r"\s*(?:<!--.*?-->\s*)*<(?:!doctype|html)\b", re.IGNORECASE | re.DOTALL
)


class Document:
    def __init__(self, *, root_id: str = "root", shell: str | None = None) -> None:
        markup = shell if shell is not None else DEFAULT_SHELL.format(root_id=root_id)
        self.tree = html.document_fromstring(markup)
        self.root_id = root_id
        if not self.tree.xpath("//*[@id=$root_id]", root_id=root_id):
            raise ConfigError(f"document has no mount element with id {root_id!r}")

    @property
    def head(self) -> html.HtmlElement:
        return self.tree.head

    @property
    def body(self) -> html.HtmlElement:
        return self.tree.body

    @property
    def root(self) -> html.HtmlElement:
        return self.tree.get_element_by_id(self.root_id)

    @property
    def title(self) -> str:
        element = self.head.find("title")
        if element is None:
            return ""
        return element.text or ""

    @title.setter
    def title(self, value: str) -> None:
        element = self.head.find("title")
        if element is None:
            element = html.Element("title")
            self.head.append(element)
        element.text = value

    def to_html(self) -> str:
        return html.tostring(
            self.tree, encoding="unicode", method="html", doctype="<!DOCTYPE html>"
        )


class Location:
    """Current hash of the page; assigning a new value fires hashchange listeners."""

    def __init__(self, hash: str = "") -> None:  # noqa: A002
        self._hash = _canonical_hash(hash)
        self._listeners: list[HashListener] = []

    @property
    def hash(self) -> str:
        return self._hash

    def subscribe(self, listener: HashListener) -> None:
        self._listeners.append(listener)

    def assign(self, value: str) -> bool:
        new_hash = _canonical_hash(value)
        if new_hash == self._hash:
            return False
        old_hash, self._hash = self._hash, new_hash
        for listener in list(self._listeners):
            listener(old_hash, new_hash)
        return True


def _canonical_hash(value: str) -> str:
    cleaned = value.strip()
    if cleaned in {"", "#"}:
        return ""
    return cleaned if cleaned.startswith("#") else f"#{cleaned}"


def parse_fragment(markup: str) -> html.HtmlElement:
    if not markup.strip():
        container = html.Element("div")
        container.text = markup or None
        return container
    if _FULL_DOCUMENT_RE.match(markup):
        return _document_container(markup)
    return html.fragment_fromstring(markup, create_parent="div")


def _document_container(markup: str) -> html.HtmlElement:
    # Head content other than <title> and charset-style <meta> is lifted ahead of the body.
    page = html.document_fromstring(markup)
    container = html.Element("div")
    head = page.find("head")
    if head is not None:
        for child in list(head):
            if not isinstance(child.tag, str) or child.tag == "title":
                continue
            if child.tag == "meta" and child.get("name") is None:
                continue
            child.tail = None
            container.append(child)
    body = page.find("body")
    if body is not None:
        _insert_text(container, len(container), body.text)
        container.extend(list(body))
    return container


def closest(element: html.HtmlElement, xpath_step: str) -> html.HtmlElement | None:
    matches = element.xpath(f"ancestor-or-self::{xpath_step}[1]")
    return matches[0] if matches else None


def replace_with_content(target: html.HtmlElement, container: html.HtmlElement) -> None:
    parent = target.getparent()
    if parent is None:
        raise ValueError("cannot replace a detached element")
    index = parent.index(target)
    tail = target.tail
    parent.remove(target)
    _insert_text(parent, index, container.text)
    children = list(container)
    for offset, child in enumerate(children):
        parent.insert(index + offset, child)
    _insert_text(parent, index + len(children), tail)


def detach(element: html.HtmlElement) -> html.HtmlElement:
    parent = element.getparent()
    if parent is None:
        return element
    index = parent.index(element)
    tail = element.tail
    element.tail = None
    parent.remove(element)
    _insert_text(parent, index, tail)
    return element


def swap_children(target: html.HtmlElement, container: html.HtmlElement) -> None:
    for child in list(target):
        target.remove(child)
    target.text = container.text
    target.extend(list(container))


def _insert_text(parent: html.HtmlElement, index: int, text: str | None) -> None:
    if not text:
        return
    if index == 0:
        parent.text = (parent.text or "") + text
        return
    previous = parent[index - 1]
    previous.tail = (previous.tail or "") + text
