"""System clipboard backends."""
from __future__ import annotations

import asyncio
import logging
import shutil
import sys
from abc import ABC, abstractmethod

import pyperclip

from pagebridge.core.errors import ClipboardError, ClipboardErrorCode

logger = logging.getLogger(__name__)

# Messages that mean "try again in a moment" rather than "no clipboard"
_TRANSIENT_MARKERS = ("not focused", "focus", "openclipboard", "access is denied")

# Selection-based copy commands, tried in order
_LEGACY_COMMANDS: tuple[tuple[str, ...], ...] = (
    ("xclip", "-selection", "clipboard"),
    ("xsel", "--clipboard", "--input"),
    ("wl-copy",),
    ("pbcopy",),
    ("clip",),
)


def classify_clipboard_failure(exc: BaseException, reading: bool = False) -> ClipboardErrorCode:
    """Map a backend exception to a clipboard error code."""
    text = str(exc).lower()
    if any(marker in text for marker in _TRANSIENT_MARKERS):
        return ClipboardErrorCode.FOCUS_DENIED
    return ClipboardErrorCode.READ_FAILED if reading else ClipboardErrorCode.WRITE_FAILED


class ClipboardBackend(ABC):
    """Contract for clipboard access.

    Implementations raise ClipboardError; FOCUS_DENIED marks failures worth
    retrying after focus is re-acquired.
    """

    @abstractmethod
    async def write_text(self, text: str) -> None:
        """Put text on the clipboard."""

    @abstractmethod
    async def read_text(self) -> str | None:
        """Return the clipboard text, or None when it holds no text."""

    async def acquire_focus(self) -> bool:
        """Make the clipboard writable. Backends without a focus concept return True."""
        return True

    async def legacy_copy(self, text: str) -> bool:
        """Older copy mechanism used when write_text keeps failing."""
        return False


class PyperclipBackend(ClipboardBackend):
    """Clipboard access through pyperclip, with command-line tools as legacy path."""

    async def write_text(self, text: str) -> None:
        try:
            await asyncio.to_thread(pyperclip.copy, text)
        except pyperclip.PyperclipException as e:
            raise ClipboardError(
                classify_clipboard_failure(e),
                f"Clipboard write failed: {e}",
            ) from e

    async def read_text(self) -> str | None:
        try:
            content = await asyncio.to_thread(pyperclip.paste)
        except pyperclip.PyperclipException as e:
            raise ClipboardError(
                classify_clipboard_failure(e, reading=True),
                f"Clipboard read failed: {e}",
            ) from e
        return str(content) if content else None

    async def legacy_copy(self, text: str) -> bool:
        for command in _LEGACY_COMMANDS:
            if shutil.which(command[0]) is None:
                continue
            if command[0] == "clip" and sys.platform != "win32":
                continue
            try:
                process = await asyncio.create_subprocess_exec(
                    *command,
                    stdin=asyncio.subprocess.PIPE,
                    stdout=asyncio.subprocess.DEVNULL,
                    stderr=asyncio.subprocess.DEVNULL,
                )
                await process.communicate(text.encode("utf-8"))
            except OSError as e:
                logger.debug("Legacy copy via %s failed: %s", command[0], e)
                continue
            if process.returncode == 0:
                logger.debug("Legacy copy via %s succeeded", command[0])
                return True
            logger.debug("Legacy copy via %s exited with %s", command[0], process.returncode)
        return False
