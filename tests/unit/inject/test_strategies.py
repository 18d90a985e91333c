"""Tests for insertion point resolution and injection strategies."""

from unittest.mock import AsyncMock

import pytest

from pagebridge.core.errors import InjectionError, InjectionErrorCode
from pagebridge.inject.runtime import InsertionPoint
from pagebridge.inject.strategies import (
    ClipboardChannelStrategy,
    DirectViewStrategy,
    InjectionResult,
    InsertionTracker,
    StructuredCreateStrategy,
    build_strategies,
)
from pagebridge.model.node import ElementNode


class TestInsertionTracker:
    """Tests for InsertionTracker.resolve()."""

    @pytest.mark.asyncio
    async def test_selection_first(self, runtime_factory) -> None:
        runtime = runtime_factory(selection=InsertionPoint("sel", "column"))
        tracker = InsertionTracker()
        tracker.remember(InsertionPoint("old"))

        point = await tracker.resolve(runtime)

        assert point == InsertionPoint("sel", "column", "selection")

    @pytest.mark.asyncio
    async def test_last_known_before_default(self, fake_runtime) -> None:
        tracker = InsertionTracker()
        tracker.remember(InsertionPoint("old", "section"))

        point = await tracker.resolve(fake_runtime)

        assert point == InsertionPoint("old", "section", "last-known")

    @pytest.mark.asyncio
    async def test_default(self, fake_runtime) -> None:
        point = await InsertionTracker().resolve(fake_runtime)
        assert point == InsertionPoint("document", "document", "default")

    @pytest.mark.asyncio
    async def test_selection_unsupported_falls_through(self, fake_runtime) -> None:
        fake_runtime.get_selection = AsyncMock(
            side_effect=InjectionError(InjectionErrorCode.API_UNAVAILABLE, "no selection API")
        )
        point = await InsertionTracker().resolve(fake_runtime)
        assert point.source == "default"

    @pytest.mark.asyncio
    async def test_selection_other_errors_propagate(self, fake_runtime) -> None:
        fake_runtime.get_selection = AsyncMock(
            side_effect=InjectionError(InjectionErrorCode.TIMEOUT, "slow")
        )
        with pytest.raises(InjectionError) as exc_info:
            await InsertionTracker().resolve(fake_runtime)
        assert exc_info.value.code is InjectionErrorCode.TIMEOUT

    @pytest.mark.asyncio
    async def test_nothing_available(self, runtime_factory) -> None:
        runtime = runtime_factory(default_point=None)
        with pytest.raises(InjectionError) as exc_info:
            await InsertionTracker().resolve(runtime)
        assert exc_info.value.code is InjectionErrorCode.NO_INSERTION_POINT


class TestStructuredCreateStrategy:
    """Tests for StructuredCreateStrategy."""

    @pytest.mark.asyncio
    async def test_creates_each_tree(self, fake_runtime, section_tree) -> None:
        widget = ElementNode.widget("heading", node_id="w2")
        tracker = InsertionTracker()

        result = await StructuredCreateStrategy().attempt(fake_runtime, [section_tree, widget], tracker)

        assert result == InjectionResult(success=True, method="structured-create", count=2)
        assert [tree.id for tree, _ in fake_runtime.created] == ["s1", "w2"]
        assert tracker.last_known.id == "document"

    @pytest.mark.asyncio
    async def test_rejection(self, runtime_factory, section_tree) -> None:
        runtime = runtime_factory(create_ok=False)
        tracker = InsertionTracker()

        with pytest.raises(InjectionError) as exc_info:
            await StructuredCreateStrategy().attempt(runtime, [section_tree], tracker)

        assert exc_info.value.code is InjectionErrorCode.UNKNOWN
        assert tracker.last_known is None


class TestClipboardChannelStrategy:
    """Tests for ClipboardChannelStrategy."""

    @pytest.mark.asyncio
    async def test_push_then_paste(self, fake_runtime, section_tree) -> None:
        fake_runtime.push_clipboard = AsyncMock()
        fake_runtime.run_paste = AsyncMock(return_value=1)

        result = await ClipboardChannelStrategy().attempt(fake_runtime, [section_tree], InsertionTracker())

        assert result.to_dict() == {"success": True, "method": "clipboard-channel", "count": 1}
        fake_runtime.push_clipboard.assert_awaited_once_with([section_tree])
        assert fake_runtime.run_paste.await_args.args[0].id == "document"

    @pytest.mark.asyncio
    async def test_without_insertion_point(self, runtime_factory, section_tree) -> None:
        runtime = runtime_factory(default_point=None)
        runtime.push_clipboard = AsyncMock()
        runtime.run_paste = AsyncMock(return_value=1)

        await ClipboardChannelStrategy().attempt(runtime, [section_tree], InsertionTracker())

        runtime.run_paste.assert_awaited_once_with(None)

    @pytest.mark.asyncio
    async def test_nothing_pasted(self, fake_runtime, section_tree) -> None:
        fake_runtime.push_clipboard = AsyncMock()
        fake_runtime.run_paste = AsyncMock(return_value=0)

        with pytest.raises(InjectionError):
            await ClipboardChannelStrategy().attempt(fake_runtime, [section_tree], InsertionTracker())

    @pytest.mark.asyncio
    async def test_unsupported_runtime(self, fake_runtime, section_tree) -> None:
        with pytest.raises(InjectionError) as exc_info:
            await ClipboardChannelStrategy().attempt(fake_runtime, [section_tree], InsertionTracker())
        assert exc_info.value.code is InjectionErrorCode.API_UNAVAILABLE


class TestDirectViewStrategy:
    """Tests for DirectViewStrategy."""

    @pytest.mark.asyncio
    async def test_partial_append_counts(self, fake_runtime, section_tree) -> None:
        fake_runtime.append_to_view = AsyncMock(side_effect=[True, False])
        widget = ElementNode.widget("heading", node_id="w2")

        result = await DirectViewStrategy().attempt(fake_runtime, [section_tree, widget], InsertionTracker())

        assert result.count == 1
        assert result.method == "direct-view-insertion"

    @pytest.mark.asyncio
    async def test_nothing_appended(self, fake_runtime, section_tree) -> None:
        fake_runtime.append_to_view = AsyncMock(return_value=False)
        with pytest.raises(InjectionError):
            await DirectViewStrategy().attempt(fake_runtime, [section_tree], InsertionTracker())


class TestBuildStrategies:
    """Tests for build_strategies()."""

    def test_order_kept(self) -> None:
        names = ["direct-view-insertion", "structured-create"]
        assert [s.name for s in build_strategies(names)] == names

    def test_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown injection strategy"):
            build_strategies(["teleport"])
