"""Mutable HTML document with mutation observers and delegated click handling."""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import Any, Callable

from bs4 import BeautifulSoup, Tag


@dataclass
class Mutation:
    added: list[Tag] = field(default_factory=list)
    removed: list[Tag] = field(default_factory=list)


MutationCallback = Callable[[Mutation], None]


def classes(tag: Tag) -> list[str]:
    value = tag.get("class")
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    return list(value)


def has_class(tag: Tag, name: str) -> bool:
    return name in classes(tag)


def set_classes(tag: Tag, add: tuple[str, ...] = (), remove: tuple[str, ...] = ()) -> None:
    current = [c for c in classes(tag) if c not in remove]
    for name in add:
        if name not in current:
            current.append(name)
    tag["class"] = current


def first_child(tag: Tag) -> Tag | None:
    return next((c for c in tag.children if isinstance(c, Tag)), None)


def last_child(tag: Tag) -> Tag | None:
    return next((c for c in reversed(list(tag.children)) if isinstance(c, Tag)), None)


class ChatDocument:
    """A document the host keeps rebuilding and the extension decorates.

    Structural changes made through this class are reported to observers,
    like a DOM MutationObserver watching the whole subtree. Click handlers are
    registered against a CSS selector and resolved on the closest matching
    ancestor of the clicked element.
    """

    def __init__(self, html: str = ""):
        self.soup = BeautifulSoup(html, "html.parser")
        self._observers: list[MutationCallback] = []
        self._click_handlers: list[tuple[str, Callable[[Tag], Any]]] = []

    def __str__(self) -> str:
        return str(self.soup)

    # -- queries ---------------------------------------------------------

    def select(self, selector: str) -> list[Tag]:
        return self.soup.select(selector)

    def select_one(self, selector: str) -> Tag | None:
        return self.soup.select_one(selector)

    # -- observation -----------------------------------------------------

    def observe(self, callback: MutationCallback) -> Callable[[], None]:
        """Subscribe to subtree changes. Returns an unsubscribe function."""
        if callback not in self._observers:
            self._observers.append(callback)

        def disconnect() -> None:
            if callback in self._observers:
                self._observers.remove(callback)

        return disconnect

    def _notify(self, mutation: Mutation) -> None:
        if not mutation.added and not mutation.removed:
            return
        for callback in list(self._observers):
            callback(mutation)

    # -- mutation --------------------------------------------------------

    def new_element(self, name: str, css_classes: tuple[str, ...] = (), **attrs: str) -> Tag:
        tag = self.soup.new_tag(name, attrs=attrs)
        if css_classes:
            tag["class"] = list(css_classes)
        return tag

    def parse_fragment(self, html: str) -> list[Tag]:
        fragment = BeautifulSoup(html, "html.parser")
        return [node.extract() for node in list(fragment.children) if isinstance(node, Tag)]

    def insert(
        self,
        tag: Tag,
        *,
        into: Tag | None = None,
        prepend: bool = False,
        before: Tag | None = None,
        after: Tag | None = None,
    ) -> Tag:
        """Place ``tag`` relative to another element and report the addition."""
        if tag.parent is not None:
            tag.extract()

        if before is not None:
            before.insert_before(tag)
        elif after is not None:
            after.insert_after(tag)
        else:
            parent = into if into is not None else self.soup
            if prepend:
                parent.insert(0, tag)
            else:
                parent.append(tag)

        self._notify(Mutation(added=[tag]))
        return tag

    def append_html(self, html: str, into: Tag | None = None) -> list[Tag]:
        """Parse ``html`` and append its elements, reporting one mutation."""
        parent = into if into is not None else self.soup
        nodes = self.parse_fragment(html)
        for node in nodes:
            parent.append(node)
        self._notify(Mutation(added=nodes))
        return nodes

    def replace_children(self, parent: Tag, html: str) -> list[Tag]:
        """Rebuild ``parent``'s contents, the way a host re-renders a region."""
        removed = [c for c in parent.children if isinstance(c, Tag)]
        parent.clear()
        nodes = self.parse_fragment(html)
        for node in nodes:
            parent.append(node)
        self._notify(Mutation(added=nodes, removed=removed))
        return nodes

    def remove(self, tag: Tag) -> None:
        tag.extract()
        self._notify(Mutation(removed=[tag]))

    # -- events ----------------------------------------------------------

    def on_click(self, selector: str, handler: Callable[[Tag], Any]) -> None:
        self._click_handlers.append((selector, handler))

    async def click(self, tag: Tag) -> None:
        """Dispatch a click on ``tag`` to every handler whose selector it falls under."""
        for selector, handler in list(self._click_handlers):
            target = tag.css.closest(selector)
            if target is None:
                continue
            result = handler(target)
            if inspect.isawaitable(result):
                await result
