"""Turn an untrusted wire tree into a safe ElementNode.

Sanitizing never fails. Anything that cannot be repaired is dropped or
replaced by a minimal stub, and every such step is reported as a
SanitizationDegraded entry. The result is a fixed point: sanitizing it again
returns an equal tree.
"""

from __future__ import annotations

import json
import logging
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pagebridge.config.schema import SanitizerConfig
from pagebridge.core.utils import generate_element_id
from pagebridge.model.node import ElementKind, ElementNode
from pagebridge.sanitize.css import sanitize_css
from pagebridge.sanitize.html import neutralize_dangerous_tags, sanitize_html
from pagebridge.sanitize.urls import has_script_scheme, sanitize_url

logger = logging.getLogger(__name__)

# Expected type of well-known top-level settings keys
KNOWN_SETTING_TYPES: dict[str, str] = {
    "title": "string",
    "text": "string",
    "content": "string",
    "editor": "string",
    "url": "string",
    "header_size": "string",
    "align": "string",
    "background_color": "string",
    "color": "string",
    "typography_font_family": "string",
    "_element_id": "string",
    "_css_classes": "string",
    "_column_size": "number",
    "_inline_size": "number",
    "typography_font_size": "object",
    "border_width": "object",
    "border_radius": "object",
    "padding": "object",
    "margin": "object",
    "image": "object",
    "background_image": "object",
}

_URL_KEYS = frozenset({"url", "href", "src", "video_link", "background_video_link"})
_URL_SUFFIXES = ("_url", "_link", "_href", "_src")
_CSS_KEYS = frozenset({"css", "style", "custom_css", "_custom_css"})

_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")
_WIDGET_TYPE_PATTERN = re.compile(r"^[a-z0-9_.-]{1,100}$")
_WIDGET_TYPE_STRIP = re.compile(r"[^a-z0-9_.-]")
_BAD_KEY = re.compile(r"[<>\"'`\x00-\x1f]")

# Widget type used for stubs; an empty HTML widget renders nothing
STUB_WIDGET_TYPE = "html"

_DROP = object()


@dataclass
class SanitizationDegraded:
    """Something in the input was removed, replaced or coerced."""

    node_id: str | None
    path: str
    reason: str


@dataclass
class SanitizeReport:
    """Sanitized tree plus what had to change to get there."""

    tree: ElementNode
    degraded: list[SanitizationDegraded] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not self.degraded


def _is_url_key(key: str) -> bool:
    return key in _URL_KEYS or key.endswith(_URL_SUFFIXES)


def _is_css_key(key: str) -> bool:
    return key in _CSS_KEYS or key.endswith("_css")


def _format_number(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _parse_number(text: str) -> int | float:
    stripped = text.strip()
    try:
        return int(stripped)
    except ValueError:
        pass
    try:
        number = float(stripped)
    except ValueError:
        return 0
    return number if math.isfinite(number) else 0


def coerce_known(value: Any, expected: str) -> tuple[Any, bool]:
    """Coerce a value to the expected type. Returns (value, changed)."""
    if expected == "string":
        if isinstance(value, str):
            return value, False
        if value is None:
            return "", True
        if isinstance(value, bool):
            return ("true" if value else "false"), True
        if isinstance(value, (int, float)):
            return _format_number(value), True
        if isinstance(value, (dict, list)):
            try:
                return json.dumps(value, ensure_ascii=False), True
            except (TypeError, ValueError):
                return "", True
        return "", True

    if expected == "number":
        if isinstance(value, bool):
            return int(value), True
        if isinstance(value, int):
            return value, False
        if isinstance(value, float):
            return (value, False) if math.isfinite(value) else (0, True)
        if isinstance(value, str):
            return _parse_number(value), True
        return 0, True

    if expected == "object":
        if isinstance(value, (dict, list)):
            return value, False
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
            except (json.JSONDecodeError, RecursionError):
                return {}, True
            return (parsed if isinstance(parsed, (dict, list)) else {}), True
        return {}, True

    return value, False


@dataclass
class _Pass:
    """State of one sanitize call."""

    degraded: list[SanitizationDegraded] = field(default_factory=list)
    used_ids: set[str] = field(default_factory=set)

    def degrade(self, node_id: str | None, path: str, reason: str) -> None:
        logger.info("Sanitizer: %s at %s", reason, path)
        self.degraded.append(SanitizationDegraded(node_id, path, reason))


class Sanitizer:
    """Validates and repairs untrusted trees."""

    def __init__(self, config: SanitizerConfig | None = None) -> None:
        self._config = config or SanitizerConfig()

    def sanitize(self, raw: Any) -> ElementNode:
        """Return a safe tree for any input."""
        return self.sanitize_with_report(raw).tree

    def sanitize_with_report(self, raw: Any) -> SanitizeReport:
        if isinstance(raw, ElementNode):
            raw = raw.to_wire()
        state = _Pass()
        tree = self._node(raw, 0, "root", state)
        if state.degraded:
            logger.warning(
                "Sanitized tree %s with %d degradation(s)", tree.id, len(state.degraded)
            )
        return SanitizeReport(tree=tree, degraded=state.degraded)

    # --- nodes --------------------------------------------------------

    def _stub(self, node_id: str) -> ElementNode:
        return ElementNode(
            id=node_id,
            kind=ElementKind.WIDGET,
            widget_type=STUB_WIDGET_TYPE,
        )

    def _node_id(self, raw: Mapping[str, Any], path: str, state: _Pass) -> str:
        node_id = raw.get("id")
        if isinstance(node_id, str) and _ID_PATTERN.fullmatch(node_id) and node_id not in state.used_ids:
            state.used_ids.add(node_id)
            return node_id

        if node_id in (None, ""):
            reason = "missing id replaced"
        elif isinstance(node_id, str) and node_id in state.used_ids:
            reason = "duplicate id replaced"
        else:
            reason = "invalid id replaced"
        new_id = generate_element_id()
        while new_id in state.used_ids:
            new_id = generate_element_id()
        state.used_ids.add(new_id)
        state.degrade(new_id, path, reason)
        return new_id

    def _node(self, raw: Any, depth: int, path: str, state: _Pass) -> ElementNode:
        if not isinstance(raw, Mapping):
            node_id = self._node_id({}, path, state)
            state.degrade(node_id, path, f"{type(raw).__name__} is not an element; stubbed")
            return self._stub(node_id)

        node_id = self._node_id(raw, path, state)
        path = f"{path}[{node_id}]"

        kind = ElementKind.parse(raw.get("elType"))
        if kind is None:
            state.degrade(node_id, path, f"unknown element type {raw.get('elType')!r}; stubbed")
            return self._stub(node_id)

        widget_type = None
        if kind is ElementKind.WIDGET:
            widget_type = self._widget_type(raw.get("widgetType"))
            if widget_type is None:
                state.degrade(node_id, path, "widget without usable type; stubbed")
                return self._stub(node_id)
            if widget_type != raw.get("widgetType"):
                state.degrade(node_id, path, "widget type normalized")
        elif raw.get("widgetType") is not None:
            state.degrade(node_id, path, "widget type on non-widget removed")

        raw_settings = raw.get("settings")
        if raw_settings is None:
            settings: dict[str, Any] = {}
        elif isinstance(raw_settings, Mapping):
            settings = self._settings(raw_settings, 0, f"{path}.settings", node_id, state)
        else:
            state.degrade(node_id, f"{path}.settings", "settings not an object; emptied")
            settings = {}

        is_inner = raw.get("isInner", False)
        if not isinstance(is_inner, bool):
            state.degrade(node_id, f"{path}.isInner", "non-boolean isInner reset")
            is_inner = False

        rendered = raw.get("renderedContent")
        if rendered is not None and not isinstance(rendered, str):
            state.degrade(node_id, f"{path}.renderedContent", "non-string rendered content removed")
            rendered = None
        elif isinstance(rendered, str):
            cleaned = sanitize_html(rendered)
            if cleaned != rendered:
                state.degrade(node_id, f"{path}.renderedContent", "rendered content sanitized")
            rendered = cleaned

        children = self._children(raw.get("elements"), kind, depth, path, node_id, state)

        return ElementNode(
            id=node_id,
            kind=kind,
            widget_type=widget_type,
            settings=settings,
            children=children,
            is_inner=is_inner,
            rendered_content=rendered,
        )

    @staticmethod
    def _widget_type(raw: Any) -> str | None:
        if not isinstance(raw, str):
            return None
        if _WIDGET_TYPE_PATTERN.fullmatch(raw):
            return raw
        normalized = _WIDGET_TYPE_STRIP.sub("", raw.strip().lower())[:100]
        return normalized or None

    def _children(
        self,
        raw: Any,
        kind: ElementKind,
        depth: int,
        path: str,
        node_id: str,
        state: _Pass,
    ) -> tuple[ElementNode, ...]:
        if raw is None or raw == []:
            return ()
        if kind is ElementKind.WIDGET:
            state.degrade(node_id, f"{path}.elements", "children of widget removed")
            return ()
        if not isinstance(raw, list):
            state.degrade(node_id, f"{path}.elements", "elements not a list; emptied")
            return ()
        if depth + 1 > self._config.max_depth:
            state.degrade(node_id, f"{path}.elements", "children beyond depth limit dropped")
            return ()
        return tuple(
            self._node(child, depth + 1, f"{path}.elements", state) for child in raw
        )

    # --- settings -----------------------------------------------------

    def _settings(
        self,
        raw: Mapping[Any, Any],
        depth: int,
        path: str,
        node_id: str,
        state: _Pass,
    ) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for key, value in raw.items():
            if not isinstance(key, str) or _BAD_KEY.search(key):
                state.degrade(node_id, path, f"invalid settings key {key!r} removed")
                continue
            key_path = f"{path}.{key}"

            if depth == 0 and self._config.coerce_known_types and key in KNOWN_SETTING_TYPES:
                value, changed = coerce_known(value, KNOWN_SETTING_TYPES[key])
                if changed:
                    logger.warning(
                        "Setting %s coerced to %s", key_path, KNOWN_SETTING_TYPES[key]
                    )
                    state.degrade(node_id, key_path, f"coerced to {KNOWN_SETTING_TYPES[key]}")

            cleaned = self._value(value, key, depth, key_path, node_id, state)
            if cleaned is _DROP:
                state.degrade(node_id, key_path, "unrepresentable value removed")
                continue
            result[key] = cleaned
        return result

    def _value(
        self,
        value: Any,
        key: str,
        depth: int,
        path: str,
        node_id: str,
        state: _Pass,
    ) -> Any:
        if depth > self._config.max_settings_depth:
            return _DROP
        if value is None or isinstance(value, (bool, int)):
            return value
        if isinstance(value, float):
            return value if math.isfinite(value) else _DROP
        if isinstance(value, str):
            cleaned = self._string(key, value)
            if cleaned != value:
                state.degrade(node_id, path, "unsafe content removed")
            return cleaned
        if isinstance(value, list):
            items = []
            for index, item in enumerate(value):
                cleaned = self._value(item, key, depth + 1, f"{path}[{index}]", node_id, state)
                if cleaned is _DROP:
                    state.degrade(node_id, f"{path}[{index}]", "unrepresentable value removed")
                    continue
                items.append(cleaned)
            return items
        if isinstance(value, Mapping):
            if depth + 1 > self._config.max_settings_depth:
                return _DROP
            return self._settings(value, depth + 1, path, node_id, state)
        return _DROP

    @staticmethod
    def _string(key: str, value: str) -> str:
        lowered = key.lower()
        if _is_url_key(lowered):
            return neutralize_dangerous_tags(sanitize_url(value))
        if _is_css_key(lowered):
            return neutralize_dangerous_tags(sanitize_css(value))
        # URL-shaped values under unrecognised keys
        if " " not in value.strip() and has_script_scheme(value):
            return ""
        return sanitize_html(value)
