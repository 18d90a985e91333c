"""Copy and paste pipelines.

Copy (source page):   extract -> absolutize media -> clipboard write
Paste (target page):  clipboard read -> sanitize -> convert versions -> inject

Pipelines own user messaging: every failure is reported to the notification
sink and recorded in the persistent error log. Payload content never leaves
the pipeline silently; on total injection failure it ends up in a manual
export.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field

from pagebridge.clipboard.manager import ClipboardManager
from pagebridge.clipboard.storage import BackupStorage
from pagebridge.clipboard.types import ClipboardPayload, CopyContext, WriteResult
from pagebridge.compat.resolver import ConversionResult, VersionResolver
from pagebridge.core.errors import (
    ClipboardError,
    ExtractionError,
    InjectionError,
    PageBridgeError,
)
from pagebridge.extract.extractor import Extractor
from pagebridge.extract.handles import NativeHandle
from pagebridge.extract.media import absolutize_media
from pagebridge.inject.injector import CascadingInjector, InjectionOutcome
from pagebridge.inject.runtime import TargetRuntime
from pagebridge.model.media import MediaReference
from pagebridge.model.node import ElementNode
from pagebridge.notify import messages
from pagebridge.notify.sink import Notification, NotificationLevel, NotificationSink
from pagebridge.sanitize.sanitizer import SanitizationDegraded, Sanitizer
from pagebridge.sanitize.urls import is_safe_url

logger = logging.getLogger(__name__)


def _record_error(
    storage: BackupStorage | None, code: str, technical: str, user: str
) -> None:
    if storage is None:
        return
    try:
        storage.record_error(code, technical, user)
    except sqlite3.Error as e:
        logger.warning("Could not record error in the error log: %s", e)


def _report(
    note: Notification,
    sink: NotificationSink | None,
    storage: BackupStorage | None,
    code: str,
    technical: str,
) -> None:
    note.send(sink)
    _record_error(storage, code, technical, note.message)


@dataclass
class CopyOutcome:
    """Result of one copy."""

    tree: ElementNode | None = None
    media: list[MediaReference] = field(default_factory=list)
    write: WriteResult | None = None
    error: ExtractionError | ClipboardError | None = None

    @property
    def success(self) -> bool:
        return self.error is None and self.write is not None


class CopyPipeline:
    """Turns a native element into a clipboard payload."""

    def __init__(
        self,
        extractor: Extractor,
        clipboard: ClipboardManager,
        sink: NotificationSink | None = None,
        storage: BackupStorage | None = None,
    ) -> None:
        self._extractor = extractor
        self._clipboard = clipboard
        self._sink = sink
        self._storage = storage

    async def copy(
        self,
        handle: NativeHandle | None,
        source_origin: str,
        builder_version: str | None = None,
    ) -> CopyOutcome:
        result = self._extractor.extract(handle)
        if isinstance(result, ExtractionError):
            _report(
                messages.extraction_failed(result),
                self._sink,
                self._storage,
                f"extraction.{result.code.value}",
                result.message,
            )
            return CopyOutcome(error=result)

        tree, media = absolutize_media(result, source_origin)
        context = CopyContext(source_origin=source_origin, builder_version=builder_version)
        try:
            write = await self._clipboard.write(tree, context, media)
        except ClipboardError as e:
            _report(
                messages.clipboard_failed(e),
                self._sink,
                self._storage,
                f"clipboard.{e.code.value}",
                e.message,
            )
            return CopyOutcome(tree=tree, media=media, error=e)

        logger.info(
            "Copied %s %s (%d node(s), %d media) via %s",
            tree.kind.value, tree.id, tree.count(), len(media), write.method.value,
        )
        messages.copied(tree.kind.value).send(self._sink)
        return CopyOutcome(tree=tree, media=media, write=write)


@dataclass
class PasteOutcome:
    """Result of one paste.

    tree is the sanitized and converted tree, None when the clipboard could
    not be read.
    """

    payload: ClipboardPayload | None = None
    tree: ElementNode | None = None
    media: list[MediaReference] = field(default_factory=list)
    degraded: list[SanitizationDegraded] = field(default_factory=list)
    conversion: ConversionResult | None = None
    injection: InjectionOutcome | None = None
    error: PageBridgeError | None = None

    @property
    def success(self) -> bool:
        return self.injection is not None and self.injection.success


class PastePipeline:
    """Reads a payload and replays it into the target runtime."""

    def __init__(
        self,
        clipboard: ClipboardManager,
        sanitizer: Sanitizer,
        resolver: VersionResolver,
        injector: CascadingInjector,
        runtime: TargetRuntime,
        sink: NotificationSink | None = None,
        storage: BackupStorage | None = None,
        target_version: str | None = None,
    ) -> None:
        self._clipboard = clipboard
        self._sanitizer = sanitizer
        self._resolver = resolver
        self._injector = injector
        self._runtime = runtime
        self._sink = sink
        self._storage = storage
        self._target_version = target_version

    async def paste(self) -> PasteOutcome | None:
        """Paste whatever pagebridge payload the clipboard holds.

        Returns:
            None when the clipboard holds no pagebridge payload.
        """
        try:
            payload = await self._clipboard.read()
        except ClipboardError as e:
            _report(
                messages.clipboard_failed(e),
                self._sink,
                self._storage,
                f"clipboard.{e.code.value}",
                e.message,
            )
            return PasteOutcome(error=e)

        if payload is None:
            logger.debug("Clipboard holds no payload; nothing to paste")
            return None

        report = self._sanitizer.sanitize_with_report(payload.data)
        if not report.is_clean:
            messages.sanitization_degraded(len(report.degraded)).send(self._sink)
        media = [ref for ref in payload.media if is_safe_url(ref.url)]

        source_version = payload.metadata.source_builder_version
        target_version = await self._resolve_target_version()
        conversion = self._resolver.convert(report.tree, source_version, target_version)
        note = self._resolver.notification_for(conversion)
        if note.level is not NotificationLevel.SUCCESS:
            note.send(self._sink)
        incompatibility = conversion.compatibility.error
        if incompatibility is not None and incompatibility.hard:
            _record_error(self._storage, "version.incompatible", incompatibility.message, note.message)

        injection = await self._injector.inject(conversion.tree)
        outcome = PasteOutcome(
            payload=payload,
            tree=conversion.tree,
            media=media,
            degraded=report.degraded,
            conversion=conversion,
            injection=injection,
            error=injection.error,
        )

        if injection.success and injection.result is not None:
            messages.pasted(injection.result.count, injection.result.method).send(self._sink)
        elif injection.error is not None:
            export_path = (
                str(injection.export.path)
                if injection.export is not None and injection.export.path is not None
                else None
            )
            _report(
                messages.injection_failed(injection.error, export_path),
                self._sink,
                self._storage,
                f"injection.{injection.error.code.value}",
                injection.error.message,
            )
        return outcome

    async def _resolve_target_version(self) -> str | None:
        if self._target_version:
            return self._target_version
        try:
            return await self._runtime.get_version()
        except InjectionError as e:
            logger.debug("Target version unavailable: %s", e.message)
            return None
