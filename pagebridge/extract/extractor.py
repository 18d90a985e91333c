"""Turn a native host element into an ElementNode tree."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from pagebridge.config.schema import ExtractionConfig
from pagebridge.core.errors import ExtractionError, ExtractionErrorCode
from pagebridge.core.utils import generate_element_id
from pagebridge.extract.handles import NativeHandle
from pagebridge.extract.scrape import scrape_rendered
from pagebridge.model.node import ElementKind, ElementNode

logger = logging.getLogger(__name__)


class Extractor:
    """Builds trees from native handles.

    extract() never raises: failures come back as ExtractionError values.
    The handle is only read, so extracting the same handle twice gives
    structurally equal trees (apart from ids generated here).
    """

    def __init__(self, config: ExtractionConfig | None = None) -> None:
        self._config = config or ExtractionConfig()

    def extract(self, handle: NativeHandle | None) -> ElementNode | ExtractionError:
        if handle is None:
            return ExtractionError(
                ExtractionErrorCode.NOT_FOUND,
                "No element found at the requested location",
            )
        try:
            return self._extract_node(handle, 0, set())
        except ExtractionError as e:
            logger.warning("Extraction failed: %s", e.message)
            return e
        except Exception as e:
            logger.exception("Unexpected error while extracting element")
            return ExtractionError(
                ExtractionErrorCode.INVALID_STRUCTURE,
                f"Could not read element structure: {e}",
            )

    def _extract_node(
        self, handle: NativeHandle, depth: int, seen_ids: set[str]
    ) -> ElementNode:
        kind, widget_type = self._resolve_kind(handle)

        node_id = handle.element_id()
        if not node_id or node_id in seen_ids:
            node_id = generate_element_id()
        seen_ids.add(node_id)

        settings, structured = self._read_settings(handle)

        rendered_content = None
        if kind is ElementKind.WIDGET and widget_type is not None and not structured:
            rendered = handle.rendered_html()
            if rendered:
                if self._config.scrape_rendered_content:
                    settings = scrape_rendered(widget_type, rendered)
                rendered_content = rendered

        children: list[ElementNode] = []
        if kind is not ElementKind.WIDGET:
            if depth + 1 > self._config.max_depth:
                logger.warning(
                    "Element %s is at depth %d; children truncated", node_id, depth
                )
            else:
                for child_handle in handle.children(kind):
                    try:
                        children.append(
                            self._extract_node(child_handle, depth + 1, seen_ids)
                        )
                    except ExtractionError as e:
                        logger.warning("Skipping child of %s: %s", node_id, e.message)
                    except Exception:
                        logger.exception("Skipping unreadable child of %s", node_id)

        return ElementNode(
            id=node_id,
            kind=kind,
            widget_type=widget_type,
            settings=settings,
            children=tuple(children),
            is_inner=handle.is_inner(),
            rendered_content=rendered_content,
        )

    @staticmethod
    def _resolve_kind(handle: NativeHandle) -> tuple[ElementKind, str | None]:
        raw_type = handle.element_type()
        if not raw_type:
            raise ExtractionError(
                ExtractionErrorCode.INVALID_STRUCTURE,
                "Element has no type information",
            )

        # Some markup encodes "widget.heading" in one attribute
        kind_name, _, type_suffix = raw_type.partition(".")
        kind = ElementKind.parse(kind_name)
        if kind is None:
            raise ExtractionError(
                ExtractionErrorCode.INVALID_STRUCTURE,
                f"Unknown element type: {raw_type!r}",
            )

        if kind is not ElementKind.WIDGET:
            return kind, None

        widget_type = handle.widget_type() or type_suffix or None
        if not widget_type:
            raise ExtractionError(
                ExtractionErrorCode.INVALID_STRUCTURE,
                "Widget element has no widget type",
            )
        return kind, widget_type

    @staticmethod
    def _read_settings(handle: NativeHandle) -> tuple[dict[str, Any], bool]:
        """Return (settings, structured) where structured means a blob was read."""
        blob = handle.settings_blob()
        if blob is None or blob == "":
            return {}, False
        if isinstance(blob, Mapping):
            return json.loads(json.dumps(dict(blob), default=str)), True
        if isinstance(blob, str):
            try:
                parsed = json.loads(blob)
            except json.JSONDecodeError as e:
                logger.warning("Unreadable settings blob (%s); using rendered content", e)
                return {}, False
            if isinstance(parsed, dict):
                return parsed, True
            logger.warning("Settings blob is %s, not an object", type(parsed).__name__)
            return {}, False
        logger.warning("Unsupported settings blob type: %s", type(blob).__name__)
        return {}, False
