"""Shared pytest fixtures and configuration for pytest."""

import sys
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest

from pagebridge.clipboard.backend import ClipboardBackend
from pagebridge.clipboard.storage import BackupStorage
from pagebridge.inject.runtime import InsertionPoint, TargetRuntime
from pagebridge.model.node import ElementKind, ElementNode
from pagebridge.notify.sink import NotificationLevel


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for platform-specific tests."""
    config.addinivalue_line("markers", "unix_only: mark test to run only on Unix")


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Auto-skip tests based on platform markers."""
    skip_unix = pytest.mark.skip(reason="Unix-only test")

    for item in items:
        if "unix_only" in item.keywords and sys.platform == "win32":
            item.add_marker(skip_unix)


class FakeRuntime(TargetRuntime):
    """In-memory target runtime that records what it was asked to do."""

    def __init__(
        self,
        ready: bool = True,
        create_ok: bool = True,
        default_point: InsertionPoint | None = InsertionPoint("document", "document"),
        selection: InsertionPoint | None = None,
        version: str | None = None,
    ) -> None:
        self.ready = ready
        self.create_ok = create_ok
        self.default_point = default_point
        self.selection = selection
        self.version = version
        self.created: list[tuple[ElementNode, InsertionPoint]] = []
        self.clipboard: list[ElementNode] = []
        self.view: list[ElementNode] = []

    async def is_ready(self) -> bool:
        return self.ready

    async def get_insertion_point(self) -> InsertionPoint | None:
        return self.default_point

    async def create_node(self, tree: ElementNode, insertion_point: InsertionPoint) -> bool:
        if self.create_ok:
            self.created.append((tree, insertion_point))
        return self.create_ok

    async def get_version(self) -> str | None:
        return self.version

    async def get_selection(self) -> InsertionPoint | None:
        return self.selection


def heading_section(title: str = "Hello") -> ElementNode:
    """Section > Column > heading widget."""
    heading = ElementNode.widget("heading", {"title": title}, node_id="w1")
    column = ElementNode.container(
        ElementKind.COLUMN, [heading], {"_column_size": 100}, node_id="c1"
    )
    return ElementNode.container(ElementKind.SECTION, [column], {}, node_id="s1")


@pytest.fixture
def fake_runtime() -> FakeRuntime:
    return FakeRuntime()


@pytest.fixture
def section_tree() -> ElementNode:
    return heading_section()


@pytest.fixture
def section_wire() -> dict[str, Any]:
    return heading_section().to_wire()


@pytest.fixture
def runtime_factory() -> type[FakeRuntime]:
    """The FakeRuntime class, for tests that need non-default behaviour."""
    return FakeRuntime


class MemoryBackend(ClipboardBackend):
    """Clipboard backend holding text in memory.

    write_failures is a list of errors raised by successive write_text calls
    before writes start succeeding.
    """

    def __init__(
        self,
        text: str | None = None,
        write_failures: list[Exception] | None = None,
        focus: bool = True,
        legacy_ok: bool = False,
    ) -> None:
        self.text = text
        self.write_failures = list(write_failures or [])
        self.focus = focus
        self.legacy_ok = legacy_ok
        self.write_calls = 0
        self.legacy_calls = 0

    async def write_text(self, text: str) -> None:
        self.write_calls += 1
        if self.write_failures:
            raise self.write_failures.pop(0)
        self.text = text

    async def read_text(self) -> str | None:
        return self.text

    async def acquire_focus(self) -> bool:
        return self.focus

    async def legacy_copy(self, text: str) -> bool:
        self.legacy_calls += 1
        if self.legacy_ok:
            self.text = text
        return self.legacy_ok


class RecordingSink:
    """Notification sink that keeps everything it is shown."""

    def __init__(self) -> None:
        self.shown: list[tuple[NotificationLevel, str, str, list[str] | None]] = []

    def show(
        self,
        level: NotificationLevel,
        title: str,
        message: str,
        actions: list[str] | None = None,
    ) -> None:
        self.shown.append((level, title, message, actions))

    @property
    def titles(self) -> list[str]:
        return [title for _, title, _, _ in self.shown]


@pytest.fixture
def memory_backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def backend_factory() -> type[MemoryBackend]:
    return MemoryBackend


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def storage(tmp_path: Path) -> Iterator[BackupStorage]:
    """A BackupStorage in a temporary directory."""
    store = BackupStorage(tmp_path / ".pagebridge" / "pagebridge.db")
    yield store
    store.close()
