"""Injection strategies, tried by the cascading injector in priority order.

Every strategy honours the same contract: attempt() returns an
InjectionResult or raises. New strategies only need a name and attempt().
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import ClassVar

from pagebridge.core.errors import InjectionError, InjectionErrorCode
from pagebridge.inject.runtime import InsertionPoint, TargetRuntime
from pagebridge.model.node import ElementNode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InjectionResult:
    """Outcome reported by one strategy."""

    success: bool
    method: str
    count: int = 0

    def to_dict(self) -> dict[str, object]:
        return {"success": self.success, "method": self.method, "count": self.count}


class InsertionTracker:
    """Resolves where to insert: selection, then last known container, then default.

    The last successfully used point is remembered across pastes.
    """

    def __init__(self) -> None:
        self._last_known: InsertionPoint | None = None

    @property
    def last_known(self) -> InsertionPoint | None:
        return self._last_known

    def remember(self, point: InsertionPoint) -> None:
        self._last_known = point

    async def resolve(self, runtime: TargetRuntime) -> InsertionPoint:
        """Find an insertion point.

        Raises:
            InjectionError: NO_INSERTION_POINT if none of the sources has one.
        """
        try:
            selection = await runtime.get_selection()
        except InjectionError as e:
            if e.code is not InjectionErrorCode.API_UNAVAILABLE:
                raise
            selection = None
        if selection is not None:
            return selection.with_source("selection")

        if self._last_known is not None:
            return self._last_known.with_source("last-known")

        default = await runtime.get_insertion_point()
        if default is not None:
            return default.with_source("default")

        raise InjectionError(
            InjectionErrorCode.NO_INSERTION_POINT,
            "No container selected and the target has no default insertion point",
        )


class InjectionStrategy(ABC):
    """One way of replaying trees into the target runtime."""

    name: ClassVar[str]

    @abstractmethod
    async def attempt(
        self,
        runtime: TargetRuntime,
        trees: Sequence[ElementNode],
        tracker: InsertionTracker,
    ) -> InjectionResult:
        """Inject trees. Raises InjectionError (or anything else) on failure."""


class StructuredCreateStrategy(InjectionStrategy):
    """Create each tree through the target's command/model API."""

    name = "structured-create"

    async def attempt(
        self,
        runtime: TargetRuntime,
        trees: Sequence[ElementNode],
        tracker: InsertionTracker,
    ) -> InjectionResult:
        point = await tracker.resolve(runtime)
        logger.debug("Creating %d tree(s) at %s (%s)", len(trees), point.id, point.source)

        count = 0
        for tree in trees:
            if not await runtime.create_node(tree, point):
                raise InjectionError(
                    InjectionErrorCode.UNKNOWN,
                    f"Target rejected element {tree.id} after {count} created",
                )
            count += 1

        tracker.remember(point)
        return InjectionResult(success=True, method=self.name, count=count)


class ClipboardChannelStrategy(InjectionStrategy):
    """Push trees into the target's own clipboard and run its native paste."""

    name = "clipboard-channel"

    async def attempt(
        self,
        runtime: TargetRuntime,
        trees: Sequence[ElementNode],
        tracker: InsertionTracker,
    ) -> InjectionResult:
        # Placement is up to the host; a missing point is not fatal here
        try:
            point: InsertionPoint | None = await tracker.resolve(runtime)
        except InjectionError as e:
            if e.code is not InjectionErrorCode.NO_INSERTION_POINT:
                raise
            point = None

        await runtime.push_clipboard(trees)
        pasted = await runtime.run_paste(point)
        if pasted <= 0:
            raise InjectionError(
                InjectionErrorCode.UNKNOWN,
                "Native paste reported no pasted elements",
            )

        if point is not None:
            tracker.remember(point)
        return InjectionResult(success=True, method=self.name, count=pasted)


class DirectViewStrategy(InjectionStrategy):
    """Append trees straight to the rendering view, bypassing the command layer."""

    name = "direct-view-insertion"

    async def attempt(
        self,
        runtime: TargetRuntime,
        trees: Sequence[ElementNode],
        tracker: InsertionTracker,
    ) -> InjectionResult:
        count = 0
        for tree in trees:
            if await runtime.append_to_view(tree):
                count += 1
            else:
                logger.warning("View rejected element %s", tree.id)

        if count == 0:
            raise InjectionError(
                InjectionErrorCode.UNKNOWN,
                "No element could be appended to the view",
            )
        return InjectionResult(success=True, method=self.name, count=count)


STRATEGIES: dict[str, type[InjectionStrategy]] = {
    StructuredCreateStrategy.name: StructuredCreateStrategy,
    ClipboardChannelStrategy.name: ClipboardChannelStrategy,
    DirectViewStrategy.name: DirectViewStrategy,
}


def build_strategies(names: Sequence[str]) -> list[InjectionStrategy]:
    """Instantiate strategies by name, keeping the given order."""
    strategies = []
    for name in names:
        cls = STRATEGIES.get(name)
        if cls is None:
            raise ValueError(f"Unknown injection strategy: {name}")
        strategies.append(cls())
    return strategies
