"""Clipboard payload types."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pagebridge.core.constants import FORMAT_VERSION, MARKER_SOURCE, SCHEMA_VERSION
from pagebridge.model.media import MediaReference
from pagebridge.model.node import ElementNode


class WriteMethod(Enum):
    """Which path finally put the payload on the clipboard."""

    CLIPBOARD = "clipboard"
    LEGACY = "legacy"


@dataclass
class Marker:
    """Tags text on the clipboard as produced by pagebridge."""

    source: str = MARKER_SOURCE
    schema_version: str = SCHEMA_VERSION
    timestamp_ms: int = 0

    def to_wire(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "schemaVersion": self.schema_version,
            "timestampMs": self.timestamp_ms,
        }


@dataclass
class PayloadMetadata:
    """Where and when a payload was captured."""

    source_origin: str = ""
    captured_at: str = ""
    source_builder_version: str | None = None

    def to_wire(self) -> dict[str, Any]:
        return {
            "sourceOrigin": self.source_origin,
            "capturedAtIso8601": self.captured_at,
            "sourceBuilderVersion": self.source_builder_version,
        }


@dataclass
class ClipboardPayload:
    """Self-describing clipboard envelope.

    `data` is the wire form of the tree. After a read it is untrusted and
    must go through the sanitizer before anything else looks at it.
    """

    element_kind: str
    data: dict[str, Any]
    marker: Marker = field(default_factory=Marker)
    metadata: PayloadMetadata = field(default_factory=PayloadMetadata)
    media: list[MediaReference] = field(default_factory=list)
    format_version: str = FORMAT_VERSION

    def tree(self) -> ElementNode:
        """Strictly parse `data`. Only safe on sanitized or self-produced payloads."""
        return ElementNode.from_wire(self.data)

    def to_wire(self) -> dict[str, Any]:
        return {
            "formatVersion": self.format_version,
            "marker": self.marker.to_wire(),
            "elementKind": self.element_kind,
            "data": self.data,
            "media": [ref.to_wire() for ref in self.media],
            "metadata": self.metadata.to_wire(),
        }


@dataclass
class CopyContext:
    """Facts about the source page supplied by the caller at copy time."""

    source_origin: str
    builder_version: str | None = None


@dataclass
class WriteResult:
    """Outcome of a successful clipboard write."""

    payload: ClipboardPayload
    text: str
    method: WriteMethod
    attempts: int
