"""Catalogue of user-facing messages for copy and paste failures."""

from __future__ import annotations

from pagebridge.core.errors import (
    ClipboardError,
    ClipboardErrorCode,
    ExtractionError,
    ExtractionErrorCode,
    InjectionError,
    InjectionErrorCode,
)
from pagebridge.inject.fallback import SUGGESTED_ACTIONS
from pagebridge.notify.sink import Notification, NotificationLevel

_EXTRACTION_MESSAGES: dict[ExtractionErrorCode, tuple[str, list[str]]] = {
    ExtractionErrorCode.NOT_FOUND: (
        "No page-builder element was found at that location.",
        ["Point at a widget, column or section", "Reload the page and try again"],
    ),
    ExtractionErrorCode.INVALID_STRUCTURE: (
        "The element could not be read. Its format may not be supported.",
        ["Try copying a different element", "Copy the parent section instead"],
    ),
}

_CLIPBOARD_MESSAGES: dict[ClipboardErrorCode, tuple[str, list[str]]] = {
    ClipboardErrorCode.FOCUS_DENIED: (
        "The clipboard was busy or the window was not focused.",
        ["Click into the window and copy again", "Copy the data manually"],
    ),
    ClipboardErrorCode.WRITE_FAILED: (
        "Clipboard access failed. The system may be blocking clipboard operations.",
        ["Grant clipboard permissions", "Copy the data manually"],
    ),
    ClipboardErrorCode.READ_FAILED: (
        "The clipboard could not be read.",
        ["Grant clipboard permissions", "Copy the element again"],
    ),
}

_INJECTION_MESSAGES: dict[InjectionErrorCode, str] = {
    InjectionErrorCode.TARGET_NOT_READY: "The editor did not finish loading in time.",
    InjectionErrorCode.NO_INSERTION_POINT: "There is no place to insert the element.",
    InjectionErrorCode.TIMEOUT: "The editor took too long to respond.",
    InjectionErrorCode.API_UNAVAILABLE: "The editor does not offer a supported way to insert elements.",
    InjectionErrorCode.BRIDGE_FAILURE: "Lost contact with the editor page.",
    InjectionErrorCode.UNKNOWN: "The element could not be inserted.",
}

# Substrings of technical messages mapped to friendlier text
_ACTIONABLE_HINTS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("permission", "denied"), "Permission denied. Check clipboard permissions and try again."),
    (("not focused", "focus"), "The window must be focused. Click into it and try again."),
    (("timeout", "timed out"), "The operation timed out. Wait for the editor to load and retry."),
    (("not ready", "not loaded"), "The editor is not ready yet. Wait a moment and retry."),
)


def actionable_message(technical: str, fallback: str) -> str:
    """Turn a technical error message into something a user can act on."""
    lowered = technical.lower()
    for needles, message in _ACTIONABLE_HINTS:
        if any(needle in lowered for needle in needles):
            return message
    return fallback


def extraction_failed(error: ExtractionError) -> Notification:
    message, actions = _EXTRACTION_MESSAGES[error.code]
    return Notification(NotificationLevel.ERROR, "Copy failed", message, actions)


def clipboard_failed(error: ClipboardError) -> Notification:
    message, actions = _CLIPBOARD_MESSAGES[error.code]
    return Notification(
        NotificationLevel.ERROR,
        "Clipboard unavailable",
        actionable_message(error.message, message),
        actions,
    )


def manual_copy_required(text: str) -> Notification:
    """Shown when every automatic clipboard path failed."""
    return Notification(
        NotificationLevel.WARNING,
        "Copy the element manually",
        "The clipboard could not be written. Copy the data below and paste it in the editor.\n"
        + text,
        ["Copy data", "Download data"],
    )


def copied(element_kind: str) -> Notification:
    return Notification(
        NotificationLevel.SUCCESS,
        "Copied",
        f"{element_kind.capitalize()} copied. Paste it into the editor on the target site.",
    )


def pasted(count: int, method: str) -> Notification:
    noun = "element" if count == 1 else "elements"
    return Notification(
        NotificationLevel.SUCCESS,
        "Pasted",
        f"Inserted {count} {noun} ({method}).",
    )


def sanitization_degraded(count: int) -> Notification:
    return Notification(
        NotificationLevel.WARNING,
        "Content cleaned",
        f"{count} unsafe or malformed value(s) were removed or replaced before pasting.",
        ["Review the pasted element"],
    )


def clipboard_empty() -> Notification:
    return Notification(
        NotificationLevel.INFO,
        "Nothing to paste",
        "The clipboard does not hold a copied element.",
        ["Copy an element on the source site first"],
    )


def injection_failed(error: InjectionError, export_path: str | None = None) -> Notification:
    """Shown when every injection strategy failed; the data is still available."""
    message = _INJECTION_MESSAGES[error.code]
    if export_path:
        message += f" The element data was saved to {export_path}."
    else:
        message += " The element data is available for manual import."
    return Notification(
        NotificationLevel.ERROR,
        "Paste failed",
        message,
        list(SUGGESTED_ACTIONS[error.code]),
    )
