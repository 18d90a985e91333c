"""Tests for the request bridge and the bridge-backed runtime."""

import asyncio
from typing import Any

import pytest

from pagebridge.config.schema import InjectorConfig
from pagebridge.core.errors import InjectionError, InjectionErrorCode
from pagebridge.inject.bridge import CONTENT_SOURCE, PAGE_SOURCE, BridgeRuntime, RequestBridge
from pagebridge.inject.runtime import InsertionPoint
from pagebridge.model.node import ElementNode

NO_REPLY = object()


class FakePage:
    """Plays the page script: answers requests from a table of replies.

    A reply that is an Exception becomes an error response; NO_REPLY (or an
    unknown action) leaves the request unanswered.
    """

    def __init__(self, replies: dict[str, Any] | None = None, ready: bool = True) -> None:
        self.replies = replies or {}
        self.sent: list[dict[str, Any]] = []
        self.bridge = RequestBridge(self.post, request_timeout=0.2)
        if ready:
            self.bridge.handle_message({"source": PAGE_SOURCE, "type": "bridge-ready"})

    async def post(self, message: dict[str, Any]) -> None:
        self.sent.append(message)
        reply = self.replies.get(message["action"], NO_REPLY)
        if reply is NO_REPLY:
            return
        response: dict[str, Any] = {
            "source": PAGE_SOURCE,
            "type": "response",
            "requestId": message["requestId"],
        }
        if isinstance(reply, Exception):
            response["error"] = str(reply)
        else:
            response["payload"] = reply
        asyncio.get_running_loop().call_soon(self.bridge.handle_message, response)


def fast_config() -> InjectorConfig:
    return InjectorConfig(request_timeout=0.2, bridge_ready_timeout=0.1)


class TestRequestBridge:
    """Tests for RequestBridge."""

    @pytest.mark.asyncio
    async def test_request_response(self) -> None:
        page = FakePage({"get-version": {"version": "3.5.0"}})

        result = await page.bridge.send_request("get-version", {"a": 1})

        assert result == {"version": "3.5.0"}
        assert page.sent == [{
            "source": CONTENT_SOURCE,
            "action": "get-version",
            "requestId": 1,
            "payload": {"a": 1},
        }]
        assert page.bridge.pending_count == 0

    @pytest.mark.asyncio
    async def test_request_ids_increase(self) -> None:
        page = FakePage({"ping": True})
        await page.bridge.send_request("ping")
        await page.bridge.send_request("ping")
        assert [m["requestId"] for m in page.sent] == [1, 2]

    @pytest.mark.asyncio
    async def test_concurrent_requests_correlated(self) -> None:
        bridge = RequestBridge(self._noop_post)

        first = asyncio.create_task(bridge.send_request("a"))
        second = asyncio.create_task(bridge.send_request("b"))
        await asyncio.sleep(0)
        assert bridge.pending_count == 2

        # Answer out of order
        bridge.handle_message({"source": PAGE_SOURCE, "type": "response", "requestId": 2, "payload": "B"})
        bridge.handle_message({"source": PAGE_SOURCE, "type": "response", "requestId": 1, "payload": "A"})

        assert await first == "A"
        assert await second == "B"

    @staticmethod
    async def _noop_post(message: dict[str, Any]) -> None:
        return None

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        page = FakePage()

        with pytest.raises(InjectionError) as exc_info:
            await page.bridge.send_request("get-version", timeout=0.05)

        assert exc_info.value.code is InjectionErrorCode.TIMEOUT
        assert "timed out after 0.05s" in exc_info.value.message
        assert page.bridge.pending_count == 0

    @pytest.mark.asyncio
    async def test_error_response_classified(self) -> None:
        page = FakePage({"create-element": RuntimeError("Container not found")})

        with pytest.raises(InjectionError) as exc_info:
            await page.bridge.send_request("create-element")

        assert exc_info.value.code is InjectionErrorCode.NO_INSERTION_POINT
        assert exc_info.value.message == "Container not found"

    @pytest.mark.asyncio
    async def test_post_failure(self) -> None:
        async def broken_post(message: dict[str, Any]) -> None:
            raise ConnectionResetError("tab closed")

        bridge = RequestBridge(broken_post)
        with pytest.raises(InjectionError) as exc_info:
            await bridge.send_request("is-ready")
        assert exc_info.value.code is InjectionErrorCode.BRIDGE_FAILURE
        assert bridge.pending_count == 0

    @pytest.mark.asyncio
    async def test_close_fails_pending(self) -> None:
        bridge = RequestBridge(self._noop_post)
        task = asyncio.create_task(bridge.send_request("slow"))
        await asyncio.sleep(0)

        bridge.close()

        with pytest.raises(InjectionError) as exc_info:
            await task
        assert exc_info.value.code is InjectionErrorCode.BRIDGE_FAILURE
        assert bridge.is_closed

        with pytest.raises(InjectionError):
            await bridge.send_request("after-close")

    @pytest.mark.asyncio
    async def test_wait_until_ready(self) -> None:
        bridge = RequestBridge(self._noop_post)
        assert not bridge.is_ready

        asyncio.get_running_loop().call_later(
            0.01, bridge.handle_message, {"source": PAGE_SOURCE, "type": "bridge-ready"}
        )
        await bridge.wait_until_ready(timeout=1.0)

        assert bridge.is_ready

    @pytest.mark.asyncio
    async def test_ready_timeout(self) -> None:
        bridge = RequestBridge(self._noop_post)
        with pytest.raises(InjectionError) as exc_info:
            await bridge.wait_until_ready(timeout=0.05)
        assert exc_info.value.code is InjectionErrorCode.BRIDGE_FAILURE
        assert "Bridge ready timeout" in exc_info.value.message

    def test_foreign_messages_ignored(self) -> None:
        bridge = RequestBridge(self._noop_post)
        assert not bridge.handle_message("text")
        assert not bridge.handle_message({"source": "someone-else", "type": "bridge-ready"})
        assert not bridge.handle_message({"source": PAGE_SOURCE, "type": "response", "requestId": 99})
        assert not bridge.handle_message({"source": PAGE_SOURCE, "type": "mystery"})
        assert not bridge.is_ready

    def test_events(self) -> None:
        bridge = RequestBridge(self._noop_post)
        received: list[Any] = []
        bridge.on("selection-changed", received.append)

        handled = bridge.handle_message({
            "source": PAGE_SOURCE,
            "type": "event",
            "payload": {"eventName": "selection-changed", "data": {"id": "c1"}},
        })

        assert handled
        assert received == [{"id": "c1"}]

    def test_event_handler_errors_contained(self) -> None:
        bridge = RequestBridge(self._noop_post)

        def broken(data: Any) -> None:
            raise ValueError("bad handler")

        bridge.on("x", broken)
        assert bridge.handle_message({
            "source": PAGE_SOURCE, "type": "event", "payload": {"eventName": "x"},
        })


class TestBridgeRuntime:
    """Tests for BridgeRuntime over a fake page."""

    @pytest.mark.asyncio
    async def test_is_ready(self) -> None:
        page = FakePage({"is-ready": {"ready": True}})
        assert await BridgeRuntime(page.bridge, fast_config()).is_ready()

    @pytest.mark.asyncio
    async def test_not_ready_without_bridge(self) -> None:
        page = FakePage({"is-ready": {"ready": True}}, ready=False)
        assert not await BridgeRuntime(page.bridge, fast_config()).is_ready()
        assert page.sent == []

    @pytest.mark.asyncio
    async def test_get_version(self) -> None:
        page = FakePage({"get-version": {"version": "3.21.4"}})
        assert await BridgeRuntime(page.bridge, fast_config()).get_version() == "3.21.4"

    @pytest.mark.asyncio
    async def test_get_version_unavailable(self) -> None:
        page = FakePage({"get-version": RuntimeError("Unknown action: get-version")})
        assert await BridgeRuntime(page.bridge, fast_config()).get_version() is None

    @pytest.mark.asyncio
    async def test_insertion_points(self) -> None:
        page = FakePage({
            "get-current-container": {"id": "doc", "elType": "document"},
            "get-selection": None,
        })
        runtime = BridgeRuntime(page.bridge, fast_config())

        assert await runtime.get_insertion_point() == InsertionPoint("doc", "document", "default")
        assert await runtime.get_selection() is None

    @pytest.mark.asyncio
    async def test_create_node(self, section_tree: ElementNode) -> None:
        page = FakePage({"create-element": {"success": True}})
        runtime = BridgeRuntime(page.bridge, fast_config())

        assert await runtime.create_node(section_tree, InsertionPoint("c9"))

        assert page.sent[0]["payload"] == {"element": section_tree.to_wire(), "container": "c9"}

    @pytest.mark.asyncio
    async def test_create_node_reported_failure(self, section_tree: ElementNode) -> None:
        page = FakePage({"create-element": {"success": False, "error": "Element type not available"}})
        runtime = BridgeRuntime(page.bridge, fast_config())

        with pytest.raises(InjectionError) as exc_info:
            await runtime.create_node(section_tree, InsertionPoint("c9"))
        assert exc_info.value.code is InjectionErrorCode.API_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_clipboard_channel_actions(self, section_tree: ElementNode) -> None:
        page = FakePage({"push-clipboard": {"success": True}, "trigger-paste": {"count": 3}})
        runtime = BridgeRuntime(page.bridge, fast_config())

        await runtime.push_clipboard([section_tree])
        count = await runtime.run_paste(None)

        assert count == 3
        assert page.sent[0]["payload"] == {"elements": [section_tree.to_wire()]}
        assert page.sent[1]["payload"] == {"container": None}

    @pytest.mark.asyncio
    async def test_append_to_view(self, section_tree: ElementNode) -> None:
        page = FakePage({"append-to-view": {}})
        assert await BridgeRuntime(page.bridge, fast_config()).append_to_view(section_tree)
