"""Failure classification and the manual-recovery export.

When every injection strategy fails the tree must not be lost: it is
serialized to a ManualExport the user can copy or import by hand.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from pagebridge.core.constants import get_exports_dir
from pagebridge.core.errors import InjectionError, InjectionErrorCode
from pagebridge.core.secure_io import secure_mkdir, secure_write_atomic
from pagebridge.core.utils import now_ms, utc_now_iso
from pagebridge.model.node import ElementNode

logger = logging.getLogger(__name__)

SUGGESTED_ACTIONS: dict[InjectionErrorCode, list[str]] = {
    InjectionErrorCode.TARGET_NOT_READY: [
        "Wait for the editor to fully load",
        "Try pasting again",
        "Refresh the page",
    ],
    InjectionErrorCode.NO_INSERTION_POINT: [
        "Select a section or container in the editor",
        "Try pasting again",
    ],
    InjectionErrorCode.TIMEOUT: [
        "Try pasting again",
        "Paste a smaller element",
    ],
    InjectionErrorCode.API_UNAVAILABLE: [
        "Refresh the page",
        "Update the page builder",
        "Paste the exported data manually",
    ],
    InjectionErrorCode.BRIDGE_FAILURE: [
        "Refresh the page",
        "Try pasting again",
    ],
    InjectionErrorCode.UNKNOWN: [
        "Try pasting again",
        "Paste the exported data manually",
    ],
}

# Checked in order; the first hit wins
_MESSAGE_HINTS: list[tuple[tuple[str, ...], InjectionErrorCode]] = [
    (("not ready", "not loaded", "still loading"), InjectionErrorCode.TARGET_NOT_READY),
    (("timeout", "timed out"), InjectionErrorCode.TIMEOUT),
    (("container", "insertion point", "no selection"), InjectionErrorCode.NO_INSERTION_POINT),
    (
        ("not available", "unknown action", "not a function", "undefined", "unsupported"),
        InjectionErrorCode.API_UNAVAILABLE,
    ),
    (("bridge", "disconnected", "connection"), InjectionErrorCode.BRIDGE_FAILURE),
]

EXPORT_NOTE = (
    "This is the raw element data. Automatic paste failed. "
    "You may need to import or adjust it manually."
)


def classify_failure(exc: BaseException) -> InjectionErrorCode:
    """Map any exception raised during injection to a failure category."""
    if isinstance(exc, InjectionError):
        return exc.code
    if isinstance(exc, TimeoutError):
        return InjectionErrorCode.TIMEOUT
    if isinstance(exc, ConnectionError):
        return InjectionErrorCode.BRIDGE_FAILURE
    if isinstance(exc, (NotImplementedError, AttributeError)):
        return InjectionErrorCode.API_UNAVAILABLE

    return classify_message(str(exc))


def classify_message(text: str) -> InjectionErrorCode:
    """Classify a bare error message, e.g. one reported by the target page."""
    lowered = text.lower()
    for hints, code in _MESSAGE_HINTS:
        if any(hint in lowered for hint in hints):
            return code
    return InjectionErrorCode.UNKNOWN


def as_injection_error(exc: BaseException) -> InjectionError:
    """Wrap exc in an InjectionError carrying its classified code."""
    if isinstance(exc, InjectionError):
        return exc
    message = str(exc) or type(exc).__name__
    return InjectionError(classify_failure(exc), message)


@dataclass
class ManualExport:
    """Raw JSON of trees that could not be injected.

    Attributes:
        text: JSON document with error, timestamp, originalData and note.
        filename: Suggested file name for download.
        path: Where the export was written, None when it was not written.
    """

    text: str
    filename: str
    path: Path | None = None

    @classmethod
    def build(
        cls,
        trees: Sequence[ElementNode],
        error: InjectionError,
    ) -> ManualExport:
        document = {
            "error": error.message,
            "timestamp": utc_now_iso(),
            "originalData": [tree.to_wire() for tree in trees],
            "note": EXPORT_NOTE,
        }
        return cls(
            text=json.dumps(document, indent=2, ensure_ascii=False),
            filename=f"pagebridge-raw-data-{now_ms()}.json",
        )

    def write(self, export_dir: Path | None = None) -> Path:
        """Write the export with owner-only permissions and remember its path."""
        directory = export_dir or get_exports_dir()
        secure_mkdir(directory)
        path = directory / self.filename
        secure_write_atomic(path, self.text)
        self.path = path
        logger.info("Manual export written to %s", path)
        return path
