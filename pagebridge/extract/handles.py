"""Native element handles the extractor reads from.

A handle wraps one element of a host document and answers a fixed set of
questions about it. Two kinds of host are supported: the builder's own
editable model (a nested mapping) and rendered page markup (a BeautifulSoup
tag carrying the builder's data-* attributes).
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from bs4 import BeautifulSoup, Tag

from pagebridge.model.node import ElementKind


@runtime_checkable
class NativeHandle(Protocol):
    """Read-only view of one host element."""

    def element_id(self) -> str | None: ...

    def element_type(self) -> str | None: ...

    def widget_type(self) -> str | None: ...

    def settings_blob(self) -> Mapping[str, Any] | str | None: ...

    def is_inner(self) -> bool: ...

    def rendered_html(self) -> str | None: ...

    def children(self, kind: ElementKind) -> list[NativeHandle]: ...


class Locator(Protocol):
    """Finds the element a user pointed at. Selector logic lives in the host."""

    def locate(self, role: str) -> NativeHandle | None: ...


class ModelHandle:
    """Handle over the builder's editable model.

    The model is a mapping with `id`, `elType`, `widgetType`, `settings`,
    `elements` and `isInner`. Settings may be a mapping or JSON text.
    """

    def __init__(self, model: Mapping[str, Any]) -> None:
        self._model = model

    def element_id(self) -> str | None:
        value = self._model.get("id")
        return str(value) if value not in (None, "") else None

    def element_type(self) -> str | None:
        value = self._model.get("elType")
        return value if isinstance(value, str) else None

    def widget_type(self) -> str | None:
        value = self._model.get("widgetType")
        return value if isinstance(value, str) and value else None

    def settings_blob(self) -> Mapping[str, Any] | str | None:
        return self._model.get("settings")

    def is_inner(self) -> bool:
        return bool(self._model.get("isInner", False))

    def rendered_html(self) -> str | None:
        value = self._model.get("renderedContent")
        return value if isinstance(value, str) else None

    def children(self, kind: ElementKind) -> list[NativeHandle]:
        if kind is ElementKind.WIDGET:
            return []
        elements = self._model.get("elements") or []
        if not isinstance(elements, list):
            return []
        return [ModelHandle(child) for child in elements if isinstance(child, Mapping)]


# Child selectors per kind, relative to the element itself. Both the legacy
# markup (row / column-wrap wrappers) and the current one are covered.
_CHILD_SELECTORS: dict[ElementKind, str] = {
    ElementKind.SECTION: (
        ":scope > .elementor-container > .elementor-column, "
        ":scope > .elementor-container > .elementor-row > .elementor-column"
    ),
    ElementKind.COLUMN: (
        ":scope > .elementor-widget-wrap > .elementor-element, "
        ":scope > .elementor-column-wrap > .elementor-widget-wrap > .elementor-element"
    ),
    ElementKind.CONTAINER: (
        ":scope > .e-con-inner > .elementor-element, "
        ":scope > .elementor-element"
    ),
    ElementKind.PAGE: (
        ":scope > .elementor-element, "
        ":scope > .elementor-section-wrap > .elementor-element, "
        ":scope > .elementor-inner > .elementor-section-wrap > .elementor-element"
    ),
}

_INNER_CLASSES = {"elementor-inner-section", "elementor-inner-column", "e-child"}


class HtmlHandle:
    """Handle over rendered markup (a BeautifulSoup tag)."""

    def __init__(self, tag: Tag) -> None:
        self._tag = tag

    @classmethod
    def from_html(cls, html: str) -> HtmlHandle | None:
        """Wrap the first builder element (or page root) in an HTML fragment."""
        soup = BeautifulSoup(html, "html.parser")
        tag = soup.select_one("[data-elementor-type], [data-element_type]")
        return cls(tag) if tag is not None else None

    @property
    def tag(self) -> Tag:
        return self._tag

    def _attr(self, name: str) -> str | None:
        value = self._tag.get(name)
        if isinstance(value, list):
            value = " ".join(value)
        return value if value else None

    def element_id(self) -> str | None:
        return self._attr("data-id") or self._attr("data-elementor-id")

    def element_type(self) -> str | None:
        if self._attr("data-elementor-type") and not self._attr("data-element_type"):
            return ElementKind.PAGE.value
        return self._attr("data-element_type")

    def widget_type(self) -> str | None:
        # "heading.default" -> "heading" (the suffix is the skin)
        value = self._attr("data-widget_type")
        if value is None:
            return None
        return value.split(".", 1)[0] or None

    def settings_blob(self) -> Mapping[str, Any] | str | None:
        return self._attr("data-settings") or self._attr("data-elementor-settings")

    def is_inner(self) -> bool:
        classes = set(self._tag.get("class") or [])
        return bool(classes & _INNER_CLASSES)

    def rendered_html(self) -> str | None:
        container = self._tag.select_one(":scope > .elementor-widget-container")
        target = container if container is not None else self._tag
        html = target.decode_contents().strip()
        return html or None

    def children(self, kind: ElementKind) -> list[NativeHandle]:
        selector = _CHILD_SELECTORS.get(kind)
        if selector is None:
            return []
        return [HtmlHandle(tag) for tag in self._tag.select(selector)]


class HtmlDocumentLocator:
    """Locates elements in a rendered page by element id.

    `role` is either an element id or "page" for the document root.
    """

    def __init__(self, html: str) -> None:
        self._soup = BeautifulSoup(html, "html.parser")

    def locate(self, role: str) -> NativeHandle | None:
        if role == ElementKind.PAGE.value:
            tag = self._soup.select_one("[data-elementor-type]")
        else:
            tag = self._soup.find(attrs={"data-id": role})
        return HtmlHandle(tag) if isinstance(tag, Tag) else None
