"""Clipboard transport for element trees."""
from pagebridge.clipboard.backend import ClipboardBackend, PyperclipBackend
from pagebridge.clipboard.codec import build_payload, decode_payload, encode_payload, has_marker
from pagebridge.clipboard.manager import ClipboardManager
from pagebridge.clipboard.storage import BackupStorage, ErrorLogEntry
from pagebridge.clipboard.types import (
    ClipboardPayload,
    CopyContext,
    Marker,
    PayloadMetadata,
    WriteMethod,
    WriteResult,
)

__all__ = [
    "ClipboardBackend",
    "PyperclipBackend",
    "ClipboardManager",
    "BackupStorage",
    "ErrorLogEntry",
    "ClipboardPayload",
    "CopyContext",
    "Marker",
    "PayloadMetadata",
    "WriteMethod",
    "WriteResult",
    "build_payload",
    "encode_payload",
    "decode_payload",
    "has_marker",
]
