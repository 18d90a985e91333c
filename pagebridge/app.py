"""Wiring for the copy and paste pipelines.

All collaborators are passed in explicitly; nothing here keeps module-level
state. Anything not supplied is built from the configuration.

Usage:
    config = load_config()
    copy_pipeline = create_copy_pipeline(config)
    outcome = await copy_pipeline.copy(handle, "https://source.example")

    paste_pipeline = create_paste_pipeline(config, runtime)
    outcome = await paste_pipeline.paste()
"""

from __future__ import annotations

import logging
from pathlib import Path

from pagebridge.clipboard.backend import ClipboardBackend, PyperclipBackend
from pagebridge.clipboard.manager import ClipboardManager
from pagebridge.clipboard.storage import BackupStorage
from pagebridge.compat.resolver import VersionResolver
from pagebridge.config.schema import Config
from pagebridge.core.constants import get_default_storage_path, get_logs_dir
from pagebridge.core.logging_config import configure_logging
from pagebridge.extract.extractor import Extractor
from pagebridge.inject.injector import CascadingInjector
from pagebridge.inject.runtime import TargetRuntime
from pagebridge.notify.sink import NotificationSink, RichNotificationSink
from pagebridge.pipeline import CopyPipeline, PastePipeline
from pagebridge.sanitize.sanitizer import Sanitizer

logger = logging.getLogger(__name__)


def setup_logging(config: Config) -> Path | None:
    """Install file logging when enabled. Returns the log file path."""
    if not config.logging.enabled:
        return None
    log_dir = (
        Path(config.logging.log_dir).expanduser()
        if config.logging.log_dir
        else get_logs_dir()
    )
    return configure_logging(
        log_dir,
        level=getattr(logging, config.logging.level),
        console_level=getattr(logging, config.logging.console_level),
    )


def open_storage(config: Config) -> BackupStorage | None:
    """Open the backup store, or None when storage is disabled."""
    if not config.storage.enabled:
        return None
    path = (
        Path(config.storage.path).expanduser()
        if config.storage.path
        else get_default_storage_path()
    )
    return BackupStorage(path)


def _clipboard_manager(
    config: Config,
    backend: ClipboardBackend | None,
    storage: BackupStorage | None,
    sink: NotificationSink,
) -> ClipboardManager:
    return ClipboardManager(
        backend or PyperclipBackend(),
        config=config.clipboard,
        storage=storage,
        sink=sink,
    )


def create_copy_pipeline(
    config: Config | None = None,
    backend: ClipboardBackend | None = None,
    sink: NotificationSink | None = None,
    storage: BackupStorage | None = None,
) -> CopyPipeline:
    """Build a CopyPipeline from configuration.

    Args:
        config: Loaded configuration (defaults when None).
        backend: Clipboard backend (pyperclip when None).
        sink: Notification sink (Rich console when None).
        storage: Backup store (opened from config when None).
    """
    config = config or Config()
    setup_logging(config)
    sink = sink or RichNotificationSink()
    storage = storage if storage is not None else open_storage(config)
    return CopyPipeline(
        Extractor(config.extraction),
        _clipboard_manager(config, backend, storage, sink),
        sink=sink,
        storage=storage,
    )


def create_paste_pipeline(
    config: Config | None,
    runtime: TargetRuntime,
    backend: ClipboardBackend | None = None,
    sink: NotificationSink | None = None,
    storage: BackupStorage | None = None,
) -> PastePipeline:
    """Build a PastePipeline that injects into runtime.

    The target version comes from config.builder_version when set, otherwise
    it is asked from the runtime at paste time.
    """
    config = config or Config()
    setup_logging(config)
    sink = sink or RichNotificationSink()
    storage = storage if storage is not None else open_storage(config)
    logger.debug("Paste strategies: %s", ", ".join(config.injector.strategies))
    return PastePipeline(
        _clipboard_manager(config, backend, storage, sink),
        Sanitizer(config.sanitizer),
        VersionResolver(config.compatibility),
        CascadingInjector(runtime, config.injector),
        runtime,
        sink=sink,
        storage=storage,
        target_version=config.builder_version,
    )
