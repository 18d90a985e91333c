"""Encode and decode clipboard payloads.

The codec only deals with text. decode_payload() returns None for anything
that is not one of our payloads, so foreign clipboard content is ignored
rather than reported as an error.
"""
from __future__ import annotations

import json
import logging
from typing import Any

from pagebridge.clipboard.types import ClipboardPayload, Marker, PayloadMetadata
from pagebridge.core.constants import FORMAT_VERSION, MARKER_SOURCE, SCHEMA_VERSION
from pagebridge.core.utils import now_ms, utc_now_iso
from pagebridge.model.media import MediaReference
from pagebridge.model.node import ElementNode

logger = logging.getLogger(__name__)


def build_payload(
    tree: ElementNode,
    media: list[MediaReference] | None = None,
    source_origin: str = "",
    builder_version: str | None = None,
) -> ClipboardPayload:
    """Wrap a tree in a fresh payload envelope."""
    return ClipboardPayload(
        element_kind=tree.kind.value,
        data=tree.to_wire(),
        marker=Marker(
            source=MARKER_SOURCE,
            schema_version=SCHEMA_VERSION,
            timestamp_ms=now_ms(),
        ),
        metadata=PayloadMetadata(
            source_origin=source_origin,
            captured_at=utc_now_iso(),
            source_builder_version=builder_version,
        ),
        media=list(media or []),
        format_version=FORMAT_VERSION,
    )


def encode_payload(payload: ClipboardPayload) -> str:
    """Serialize a payload to JSON text for the clipboard."""
    return json.dumps(payload.to_wire(), indent=2, ensure_ascii=False)


def has_marker(obj: Any) -> bool:
    """True if obj is a mapping whose marker names pagebridge as its source."""
    if not isinstance(obj, dict):
        return False
    marker = obj.get("marker")
    if not isinstance(marker, dict):
        return False
    source = marker.get("source")
    return isinstance(source, str) and source == MARKER_SOURCE


def decode_payload(text: str | None, max_bytes: int | None = None) -> ClipboardPayload | None:
    """Parse clipboard text into a payload.

    Returns:
        The payload, or None when the text is empty, not JSON, not an object,
        lacks our marker, is larger than max_bytes, or carries no tree object.
    """
    if not text or not text.strip():
        return None
    if max_bytes is not None and len(text.encode("utf-8")) > max_bytes:
        logger.warning("Ignoring clipboard text larger than %d bytes", max_bytes)
        return None

    try:
        obj = json.loads(text)
    except (json.JSONDecodeError, RecursionError):
        return None

    if not has_marker(obj):
        return None

    data = obj.get("data")
    if not isinstance(data, dict):
        logger.warning("Marked clipboard payload has no element object")
        return None

    marker = obj["marker"]
    timestamp = marker.get("timestampMs")
    metadata = obj.get("metadata") if isinstance(obj.get("metadata"), dict) else {}
    source_version = metadata.get("sourceBuilderVersion")
    media_entries = obj.get("media") if isinstance(obj.get("media"), list) else []
    element_kind = obj.get("elementKind")

    return ClipboardPayload(
        element_kind=element_kind if isinstance(element_kind, str) else str(data.get("elType", "")),
        data=data,
        marker=Marker(
            source=marker["source"],
            schema_version=str(marker.get("schemaVersion") or SCHEMA_VERSION),
            timestamp_ms=timestamp if isinstance(timestamp, int) and not isinstance(timestamp, bool) else 0,
        ),
        metadata=PayloadMetadata(
            source_origin=str(metadata.get("sourceOrigin") or ""),
            captured_at=str(metadata.get("capturedAtIso8601") or ""),
            source_builder_version=source_version if isinstance(source_version, str) else None,
        ),
        media=[ref for ref in (MediaReference.from_wire(m) for m in media_entries) if ref is not None],
        format_version=str(obj.get("formatVersion") or FORMAT_VERSION),
    )
