"""Request/response bridge to the script running inside the target page.

Every cross-boundary call goes through RequestBridge.send_request(): the
request carries a correlation id, the matching response resolves a future,
and a missing response becomes InjectionError(TIMEOUT).

Outgoing messages:
    {"source": "pagebridge-content", "action": str, "requestId": int, "payload": dict}

Incoming messages:
    {"source": "pagebridge-page", "type": "bridge-ready"}
    {"source": "pagebridge-page", "type": "response", "requestId": int,
     "payload": Any, "error": str | None}
    {"source": "pagebridge-page", "type": "event",
     "payload": {"eventName": str, "data": Any}}
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from pagebridge.config.schema import InjectorConfig
from pagebridge.core.errors import InjectionError, InjectionErrorCode
from pagebridge.inject.fallback import classify_message
from pagebridge.inject.runtime import InsertionPoint, TargetRuntime
from pagebridge.model.node import ElementNode

logger = logging.getLogger(__name__)

CONTENT_SOURCE = "pagebridge-content"
PAGE_SOURCE = "pagebridge-page"

DEFAULT_REQUEST_TIMEOUT = 5.0
DEFAULT_READY_TIMEOUT = 3.0

PostMessage = Callable[[dict[str, Any]], Awaitable[None]]
EventHandler = Callable[[Any], None]


class RequestBridge:
    """Correlates requests to the page script with their responses.

    The owner wires post to whatever delivers messages into the page and
    feeds everything coming back into handle_message().
    """

    def __init__(
        self,
        post: PostMessage,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self._post = post
        self._request_timeout = request_timeout
        self._request_id = 0
        self._pending: dict[int, asyncio.Future[Any]] = {}
        self._handlers: dict[str, EventHandler] = {}
        self._ready = asyncio.Event()
        self._closed = False

    @property
    def is_ready(self) -> bool:
        return self._ready.is_set()

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def on(self, event_name: str, handler: EventHandler) -> None:
        """Register a handler for events pushed by the page script."""
        self._handlers[event_name] = handler

    async def send_request(
        self,
        action: str,
        payload: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Send one request and wait for its response payload.

        Raises:
            InjectionError: TIMEOUT when no response arrives in time,
                BRIDGE_FAILURE when the bridge is closed or the message cannot
                be delivered, or the classified code of an error response.
        """
        if self._closed:
            raise InjectionError(
                InjectionErrorCode.BRIDGE_FAILURE,
                f"Bridge is closed; cannot send '{action}'",
            )

        self._request_id += 1
        request_id = self._request_id
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        effective_timeout = timeout if timeout is not None else self._request_timeout

        message = {
            "source": CONTENT_SOURCE,
            "action": action,
            "requestId": request_id,
            "payload": payload or {},
        }
        try:
            try:
                await self._post(message)
            except (OSError, RuntimeError) as e:
                raise InjectionError(
                    InjectionErrorCode.BRIDGE_FAILURE,
                    f"Failed to deliver '{action}' request: {e}",
                ) from e

            try:
                return await asyncio.wait_for(future, timeout=effective_timeout)
            except TimeoutError:
                raise InjectionError(
                    InjectionErrorCode.TIMEOUT,
                    f"Request '{action}' timed out after {effective_timeout}s",
                ) from None
        finally:
            self._pending.pop(request_id, None)

    def handle_message(self, message: Any) -> bool:
        """Process one incoming message. Returns True when it was consumed."""
        if not isinstance(message, dict) or message.get("source") != PAGE_SOURCE:
            return False

        kind = message.get("type")
        if kind == "bridge-ready":
            self._ready.set()
            logger.debug("Bridge ready")
            return True

        if kind == "response":
            return self._resolve(message)

        if kind == "event":
            return self._dispatch_event(message.get("payload"))

        logger.debug("Ignoring bridge message of type %r", kind)
        return False

    def _resolve(self, message: dict[str, Any]) -> bool:
        request_id = message.get("requestId")
        future = self._pending.get(request_id) if isinstance(request_id, int) else None
        if future is None or future.done():
            logger.debug("Ignoring response for unknown request %r", request_id)
            return False

        error = message.get("error")
        if error:
            text = str(error)
            future.set_exception(InjectionError(classify_message(text), text))
        else:
            future.set_result(message.get("payload"))
        return True

    def _dispatch_event(self, payload: Any) -> bool:
        if not isinstance(payload, dict):
            return False
        handler = self._handlers.get(payload.get("eventName", ""))
        if handler is None:
            return False
        try:
            handler(payload.get("data"))
        except Exception as e:
            logger.warning("Bridge event handler for %r failed: %s", payload.get("eventName"), e)
        return True

    async def wait_until_ready(self, timeout: float = DEFAULT_READY_TIMEOUT) -> None:
        """Wait for the page script's bridge-ready signal.

        Raises:
            InjectionError: BRIDGE_FAILURE if the signal does not arrive in time.
        """
        if self._ready.is_set():
            return
        try:
            await asyncio.wait_for(self._ready.wait(), timeout=timeout)
        except TimeoutError:
            raise InjectionError(
                InjectionErrorCode.BRIDGE_FAILURE,
                f"Bridge ready timeout after {timeout}s",
            ) from None

    def close(self) -> None:
        """Fail all pending requests and refuse new ones."""
        self._closed = True
        pending = list(self._pending.values())
        self._pending.clear()
        for future in pending:
            if not future.done():
                future.set_exception(
                    InjectionError(InjectionErrorCode.BRIDGE_FAILURE, "Bridge closed")
                )
        if pending:
            logger.debug("Bridge closed with %d pending request(s)", len(pending))


def _insertion_point(payload: Any, source: str) -> InsertionPoint | None:
    if not isinstance(payload, dict):
        return None
    point_id = payload.get("id")
    if not isinstance(point_id, str) or not point_id:
        return None
    kind = payload.get("elType")
    return InsertionPoint(
        id=point_id,
        kind=kind if isinstance(kind, str) else None,
        source=source,
    )


def _check_success(action: str, payload: Any) -> dict[str, Any]:
    """Raise when the page reports {"success": false}."""
    result = payload if isinstance(payload, dict) else {}
    if result.get("success") is False:
        text = str(result.get("error") or f"'{action}' failed in the target page")
        raise InjectionError(classify_message(text), text)
    return result


class BridgeRuntime(TargetRuntime):
    """TargetRuntime implemented over a RequestBridge.

    Actions understood by the page script: is-ready, get-version,
    get-current-container, get-selection, create-element, push-clipboard,
    trigger-paste and append-to-view.
    """

    def __init__(self, bridge: RequestBridge, config: InjectorConfig | None = None) -> None:
        self._bridge = bridge
        self._config = config or InjectorConfig()

    @property
    def bridge(self) -> RequestBridge:
        return self._bridge

    async def _request(self, action: str, payload: dict[str, Any] | None = None) -> Any:
        return await self._bridge.send_request(
            action, payload, timeout=self._config.request_timeout
        )

    async def is_ready(self) -> bool:
        try:
            await self._bridge.wait_until_ready(self._config.bridge_ready_timeout)
            result = await self._request("is-ready")
        except InjectionError as e:
            logger.debug("Readiness probe failed: %s", e.message)
            return False
        if isinstance(result, dict):
            return bool(result.get("ready"))
        return bool(result)

    async def get_version(self) -> str | None:
        try:
            result = await self._request("get-version")
        except InjectionError as e:
            logger.debug("Could not read target version: %s", e.message)
            return None
        if isinstance(result, dict):
            result = result.get("version")
        return result if isinstance(result, str) and result else None

    async def get_insertion_point(self) -> InsertionPoint | None:
        return _insertion_point(await self._request("get-current-container"), "default")

    async def get_selection(self) -> InsertionPoint | None:
        return _insertion_point(await self._request("get-selection"), "selection")

    async def create_node(self, tree: ElementNode, insertion_point: InsertionPoint) -> bool:
        result = _check_success(
            "create-element",
            await self._request(
                "create-element",
                {"element": tree.to_wire(), "container": insertion_point.id},
            ),
        )
        return bool(result.get("success", True))

    async def push_clipboard(self, trees: Sequence[ElementNode]) -> None:
        _check_success(
            "push-clipboard",
            await self._request(
                "push-clipboard", {"elements": [tree.to_wire() for tree in trees]}
            ),
        )

    async def run_paste(self, insertion_point: InsertionPoint | None) -> int:
        result = _check_success(
            "trigger-paste",
            await self._request(
                "trigger-paste",
                {"container": insertion_point.id if insertion_point else None},
            ),
        )
        count = result.get("count", 0)
        return count if isinstance(count, int) and not isinstance(count, bool) else 0

    async def append_to_view(self, tree: ElementNode) -> bool:
        result = _check_success(
            "append-to-view",
            await self._request("append-to-view", {"element": tree.to_wire()}),
        )
        return bool(result.get("success", True))
