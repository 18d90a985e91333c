"""Clipboard manager: durable, retrying writes and marker-checked reads."""
from __future__ import annotations

import asyncio
import json
import logging
import sqlite3

from pagebridge.clipboard.backend import ClipboardBackend
from pagebridge.clipboard.codec import build_payload, decode_payload, encode_payload
from pagebridge.clipboard.storage import BackupStorage
from pagebridge.clipboard.types import ClipboardPayload, CopyContext, WriteMethod, WriteResult
from pagebridge.config.schema import ClipboardConfig
from pagebridge.core.constants import LAST_COPIED_AT_KEY, LAST_COPIED_KEY
from pagebridge.core.errors import ClipboardError, ClipboardErrorCode
from pagebridge.core.retry import backoff_delay
from pagebridge.core.utils import utc_now_iso
from pagebridge.model.media import MediaReference
from pagebridge.model.node import ElementNode
from pagebridge.notify import messages
from pagebridge.notify.sink import NotificationSink

logger = logging.getLogger(__name__)


class ClipboardManager:
    """Moves payloads between trees and the system clipboard.

    Write order:
    1. Persist the payload to the backup store
    2. Clipboard API, retried with backoff on focus failures and timeouts
    3. Legacy copy command
    4. Surface the text for manual copy and raise ClipboardError
    """

    def __init__(
        self,
        backend: ClipboardBackend,
        config: ClipboardConfig | None = None,
        storage: BackupStorage | None = None,
        sink: NotificationSink | None = None,
    ) -> None:
        self._backend = backend
        self._config = config or ClipboardConfig()
        self._storage = storage
        self._sink = sink

    async def write(
        self,
        tree: ElementNode,
        context: CopyContext,
        media: list[MediaReference] | None = None,
    ) -> WriteResult:
        """Encode a tree and put it on the clipboard.

        Raises:
            ClipboardError: When no path could write the clipboard. The error's
                manual_text holds the encoded payload.
        """
        payload = build_payload(
            tree,
            media=media,
            source_origin=context.source_origin,
            builder_version=context.builder_version,
        )
        text = encode_payload(payload)

        size = len(text.encode("utf-8"))
        if size > self._config.max_payload_bytes:
            raise ClipboardError(
                ClipboardErrorCode.WRITE_FAILED,
                f"Payload is {size} bytes; the limit is {self._config.max_payload_bytes}",
                manual_text=text,
            )

        self._backup(payload)

        last_error: ClipboardError | None = None
        attempts = 0
        for attempt in range(self._config.max_attempts):
            attempts = attempt + 1
            retryable = True
            if not await self._acquire_focus():
                last_error = ClipboardError(
                    ClipboardErrorCode.FOCUS_DENIED, "Window is not focused"
                )
            else:
                try:
                    await asyncio.wait_for(
                        self._backend.write_text(text),
                        timeout=self._config.attempt_timeout,
                    )
                    logger.debug("Clipboard written on attempt %d", attempts)
                    return WriteResult(payload, text, WriteMethod.CLIPBOARD, attempts)
                except TimeoutError:
                    last_error = ClipboardError(
                        ClipboardErrorCode.WRITE_FAILED,
                        f"Clipboard write timed out after {self._config.attempt_timeout}s",
                    )
                except ClipboardError as e:
                    last_error = e
                    retryable = e.code is ClipboardErrorCode.FOCUS_DENIED

            if not retryable:
                break
            if attempt < self._config.max_attempts - 1:
                delay = backoff_delay(
                    attempt,
                    self._config.retry_base_delay,
                    self._config.backoff_multiplier,
                )
                logger.info(
                    "Clipboard write attempt %d failed (%s), retrying in %.2fs",
                    attempts,
                    last_error.message,
                    delay,
                )
                await asyncio.sleep(delay)

        if self._config.legacy_copy_enabled:
            try:
                if await self._backend.legacy_copy(text):
                    logger.info("Clipboard written with legacy copy")
                    return WriteResult(payload, text, WriteMethod.LEGACY, attempts)
            except ClipboardError as e:
                logger.warning("Legacy copy failed: %s", e.message)

        messages.manual_copy_required(text).send(self._sink)

        code = last_error.code if last_error else ClipboardErrorCode.WRITE_FAILED
        detail = last_error.message if last_error else "no clipboard path succeeded"
        raise ClipboardError(
            code,
            f"Clipboard write failed: {detail}. "
            "Ensure the window is focused and try again.",
            manual_text=text,
        )

    async def read(self) -> ClipboardPayload | None:
        """Read the clipboard and return our payload, or None for anything else.

        Raises:
            ClipboardError: READ_FAILED when the clipboard cannot be read at all.
        """
        try:
            text = await asyncio.wait_for(
                self._backend.read_text(),
                timeout=self._config.attempt_timeout,
            )
        except TimeoutError as e:
            raise ClipboardError(
                ClipboardErrorCode.READ_FAILED, "Clipboard read timed out"
            ) from e
        except ClipboardError as e:
            raise ClipboardError(ClipboardErrorCode.READ_FAILED, e.message) from e

        payload = decode_payload(text, max_bytes=self._config.max_payload_bytes)
        if payload is None:
            logger.debug("Clipboard holds no pagebridge payload")
        return payload

    def last_backup(self) -> ClipboardPayload | None:
        """The payload of the most recent write, re-validated, if one was stored."""
        if self._storage is None:
            return None
        stored = self._storage.get(LAST_COPIED_KEY)
        if stored is None:
            return None
        return decode_payload(json.dumps(stored), max_bytes=self._config.max_payload_bytes)

    async def _acquire_focus(self) -> bool:
        for attempt in range(self._config.focus_attempts):
            if await self._backend.acquire_focus():
                return True
            if attempt < self._config.focus_attempts - 1:
                await asyncio.sleep(self._config.retry_base_delay)
        logger.debug("Could not acquire focus after %d attempts", self._config.focus_attempts)
        return False

    def _backup(self, payload: ClipboardPayload) -> None:
        if self._storage is None or not self._config.backup_enabled:
            return
        try:
            self._storage.set(LAST_COPIED_KEY, payload.to_wire())
            self._storage.set(LAST_COPIED_AT_KEY, utc_now_iso())
        except sqlite3.Error as e:
            # The clipboard write can still succeed without a backup
            logger.warning("Could not back up payload: %s", e)
