"""Capability interface of the target builder runtime.

The injector only talks to the target through TargetRuntime. Required methods
cover structured creation; the optional capabilities used by the fallback
strategies raise API_UNAVAILABLE unless a runtime overrides them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

from pagebridge.core.errors import InjectionError, InjectionErrorCode
from pagebridge.model.node import ElementNode


@dataclass(frozen=True)
class InsertionPoint:
    """Where new nodes are placed in the target document.

    Attributes:
        id: Target-side identifier of the container.
        kind: Element kind of the container, when known ("document" for the root).
        source: How the point was found: "selection", "last-known" or "default".
    """

    id: str
    kind: str | None = None
    source: str = "default"

    def with_source(self, source: str) -> InsertionPoint:
        return InsertionPoint(id=self.id, kind=self.kind, source=source)


def _unavailable(capability: str) -> InjectionError:
    return InjectionError(
        InjectionErrorCode.API_UNAVAILABLE,
        f"Target runtime does not support {capability}",
    )


class TargetRuntime(ABC):
    """Async view of the builder running on the target page."""

    @abstractmethod
    async def is_ready(self) -> bool:
        """True once the target editor has finished loading."""

    @abstractmethod
    async def get_insertion_point(self) -> InsertionPoint | None:
        """The runtime's default insertion point (usually the document root)."""

    @abstractmethod
    async def create_node(self, tree: ElementNode, insertion_point: InsertionPoint) -> bool:
        """Instantiate tree under insertion_point through the command/model API.

        Returns True when the node was created.
        """

    async def get_version(self) -> str | None:
        """Builder version of the target, None when it cannot be determined."""
        return None

    async def get_selection(self) -> InsertionPoint | None:
        """The container currently selected by the user."""
        raise _unavailable("selection lookup")

    async def push_clipboard(self, trees: Sequence[ElementNode]) -> None:
        """Place trees into the target's internal clipboard channel."""
        raise _unavailable("its internal clipboard")

    async def run_paste(self, insertion_point: InsertionPoint | None) -> int:
        """Invoke the native paste command. Returns the number of nodes pasted."""
        raise _unavailable("native paste")

    async def append_to_view(self, tree: ElementNode) -> bool:
        """Append tree directly to the rendering view collection."""
        raise _unavailable("direct view insertion")
