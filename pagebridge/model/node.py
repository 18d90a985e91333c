"""Element node model shared by every pipeline stage.

A tree is finite and acyclic. Stages never mutate a tree in place; each one
returns a new tree built with replace() or clone().
"""

from __future__ import annotations

import copy
import dataclasses
import math
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from pagebridge.core.constants import MAX_TREE_DEPTH
from pagebridge.core.errors import TreeDepthError
from pagebridge.core.utils import generate_element_id

# Recursive JSON value. Narrowed from untrusted input by the sanitizer.
Value = Union[None, bool, int, float, str, list["Value"], dict[str, "Value"]]


def is_value(obj: Any, depth: int = 0, max_depth: int = MAX_TREE_DEPTH) -> bool:
    """True if obj is representable as a JSON Value within max_depth levels."""
    if depth > max_depth:
        return False
    if obj is None or isinstance(obj, (bool, str, int)):
        return True
    if isinstance(obj, float):
        return math.isfinite(obj)
    if isinstance(obj, list):
        return all(is_value(item, depth + 1, max_depth) for item in obj)
    if isinstance(obj, dict):
        return all(
            isinstance(key, str) and is_value(item, depth + 1, max_depth)
            for key, item in obj.items()
        )
    return False


class ElementKind(Enum):
    """Structural role of a node."""

    WIDGET = "widget"
    SECTION = "section"
    COLUMN = "column"
    CONTAINER = "container"
    PAGE = "page"

    @classmethod
    def parse(cls, text: Any) -> ElementKind | None:
        """Parse a wire kind name, returning None when unknown."""
        if isinstance(text, str):
            try:
                return cls(text.strip().lower())
            except ValueError:
                return None
        return None


@dataclass(frozen=True)
class ElementNode:
    """One element of a page-builder document."""

    id: str
    kind: ElementKind
    widget_type: str | None = None
    settings: dict[str, Value] = field(default_factory=dict)
    children: tuple[ElementNode, ...] = ()
    # Placement hint for the target; never changes traversal order.
    is_inner: bool = False
    rendered_content: str | None = None

    def __post_init__(self) -> None:
        if self.kind is ElementKind.WIDGET and not self.widget_type:
            raise ValueError(f"Widget node '{self.id}' requires a widget_type")
        if self.kind is not ElementKind.WIDGET and self.widget_type is not None:
            raise ValueError(f"Only widgets carry a widget_type (node '{self.id}')")
        if not isinstance(self.children, tuple):
            object.__setattr__(self, "children", tuple(self.children))

    # --- construction -------------------------------------------------

    @classmethod
    def widget(
        cls,
        widget_type: str,
        settings: Mapping[str, Value] | None = None,
        node_id: str | None = None,
    ) -> ElementNode:
        """Build a widget leaf."""
        return cls(
            id=node_id or generate_element_id(),
            kind=ElementKind.WIDGET,
            widget_type=widget_type,
            settings=dict(settings or {}),
        )

    @classmethod
    def container(
        cls,
        kind: ElementKind,
        children: list[ElementNode] | tuple[ElementNode, ...] = (),
        settings: Mapping[str, Value] | None = None,
        node_id: str | None = None,
        is_inner: bool = False,
    ) -> ElementNode:
        """Build a non-widget node holding children."""
        return cls(
            id=node_id or generate_element_id(),
            kind=kind,
            settings=dict(settings or {}),
            children=tuple(children),
            is_inner=is_inner,
        )

    def replace(self, **changes: Any) -> ElementNode:
        """Return a copy with the given fields changed."""
        return dataclasses.replace(self, **changes)

    def clone(self) -> ElementNode:
        """Deep copy, settings included."""
        return ElementNode.from_wire(self.to_wire())

    # --- traversal ----------------------------------------------------

    def walk(self, max_depth: int = MAX_TREE_DEPTH) -> Iterator[tuple[ElementNode, int]]:
        """Yield (node, depth) pairs in pre-order.

        Raises:
            TreeDepthError: If the tree is deeper than max_depth.
        """
        yield from self._walk(0, max_depth)

    def _walk(self, depth: int, max_depth: int) -> Iterator[tuple[ElementNode, int]]:
        if depth > max_depth:
            raise TreeDepthError(depth, max_depth)
        yield self, depth
        for child in self.children:
            yield from child._walk(depth + 1, max_depth)

    def count(self) -> int:
        """Number of nodes in the tree, this one included."""
        return sum(1 for _ in self.walk())

    def ids(self) -> list[str]:
        return [node.id for node, _ in self.walk()]

    # --- wire format --------------------------------------------------

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the camelCase wire shape used inside payloads."""
        return self._to_wire(0)

    def _to_wire(self, depth: int) -> dict[str, Any]:
        if depth > MAX_TREE_DEPTH:
            raise TreeDepthError(depth, MAX_TREE_DEPTH)
        data: dict[str, Any] = {
            "id": self.id,
            "elType": self.kind.value,
        }
        if self.widget_type is not None:
            data["widgetType"] = self.widget_type
        data["settings"] = copy.deepcopy(self.settings)
        data["elements"] = [child._to_wire(depth + 1) for child in self.children]
        data["isInner"] = self.is_inner
        if self.rendered_content is not None:
            data["renderedContent"] = self.rendered_content
        return data

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> ElementNode:
        """Strict inverse of to_wire().

        Only use this on trees that already passed the sanitizer, or that
        this process produced itself.

        Raises:
            ValueError: If the mapping does not describe a valid node.
            TreeDepthError: If the tree is deeper than the ceiling.
        """
        return cls._from_wire(data, 0)

    @classmethod
    def _from_wire(cls, data: Mapping[str, Any], depth: int) -> ElementNode:
        if depth > MAX_TREE_DEPTH:
            raise TreeDepthError(depth, MAX_TREE_DEPTH)
        if not isinstance(data, Mapping):
            raise ValueError(f"Expected element object, got {type(data).__name__}")
        kind = ElementKind.parse(data.get("elType"))
        if kind is None:
            raise ValueError(f"Unknown element type: {data.get('elType')!r}")
        node_id = data.get("id")
        if not isinstance(node_id, str) or not node_id:
            raise ValueError("Element id must be a non-empty string")
        settings = data.get("settings") or {}
        if not isinstance(settings, Mapping):
            raise ValueError(f"Settings of '{node_id}' must be an object")
        elements = data.get("elements") or []
        if not isinstance(elements, list):
            raise ValueError(f"Elements of '{node_id}' must be a list")
        rendered = data.get("renderedContent")
        return cls(
            id=node_id,
            kind=kind,
            widget_type=data.get("widgetType") if kind is ElementKind.WIDGET else None,
            settings=copy.deepcopy(dict(settings)),
            children=tuple(cls._from_wire(child, depth + 1) for child in elements),
            is_inner=bool(data.get("isInner", False)),
            rendered_content=rendered if isinstance(rendered, str) else None,
        )
