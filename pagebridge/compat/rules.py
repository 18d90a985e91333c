"""Declarative migration rules.

Each rule rewrites matching nodes and reports whether it changed anything.
Rules never mutate their input; they rebuild the nodes they touch.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from pagebridge.config.schema import MigrationSet
from pagebridge.core.constants import MAX_TREE_DEPTH
from pagebridge.core.errors import TreeDepthError
from pagebridge.model.node import ElementKind, ElementNode


class MigrationRule(ABC):
    """A rewrite applied to every node of a tree."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable summary, used in logs and conversion results."""

    @abstractmethod
    def apply_node(self, node: ElementNode) -> ElementNode | None:
        """Rewrite one node (children excluded). None means no match."""

    def apply(
        self, tree: ElementNode, max_depth: int = MAX_TREE_DEPTH
    ) -> tuple[ElementNode, bool]:
        """Apply to the whole tree. Returns (new_tree, changed)."""
        return self._apply(tree, 0, max_depth)

    def _apply(
        self, node: ElementNode, depth: int, max_depth: int
    ) -> tuple[ElementNode, bool]:
        if depth > max_depth:
            raise TreeDepthError(depth, max_depth)

        changed = False
        rewritten = self.apply_node(node)
        if rewritten is not None:
            node = rewritten
            changed = True

        new_children = []
        for child in node.children:
            new_child, child_changed = self._apply(child, depth + 1, max_depth)
            new_children.append(new_child)
            changed = changed or child_changed

        if changed:
            node = node.replace(children=tuple(new_children))
        return node, changed


@dataclass(frozen=True)
class WidgetRenameRule(MigrationRule):
    """Rename a widget type, e.g. image-box -> icon-box."""

    source: str
    target: str

    @property
    def description(self) -> str:
        return f"widget {self.source} -> {self.target}"

    def apply_node(self, node: ElementNode) -> ElementNode | None:
        if node.kind is ElementKind.WIDGET and node.widget_type == self.source:
            return node.replace(widget_type=self.target)
        return None


@dataclass(frozen=True)
class SettingRenameRule(MigrationRule):
    """Rename a settings key in place, optionally on one widget type only.

    An existing value under the target key is replaced.
    """

    source: str
    target: str
    widget_type: str | None = None

    @property
    def description(self) -> str:
        scope = f" on {self.widget_type}" if self.widget_type else ""
        return f"setting {self.source} -> {self.target}{scope}"

    def apply_node(self, node: ElementNode) -> ElementNode | None:
        if self.widget_type is not None and node.widget_type != self.widget_type:
            return None
        if self.source not in node.settings:
            return None
        settings = {}
        for key, value in node.settings.items():
            if key == self.target:
                continue
            settings[self.target if key == self.source else key] = value
        return node.replace(settings=settings)


@dataclass(frozen=True)
class SettingDropRule(MigrationRule):
    """Remove a settings key the target version does not understand."""

    key: str
    widget_type: str | None = None

    @property
    def description(self) -> str:
        scope = f" on {self.widget_type}" if self.widget_type else ""
        return f"drop setting {self.key}{scope}"

    def apply_node(self, node: ElementNode) -> ElementNode | None:
        if self.widget_type is not None and node.widget_type != self.widget_type:
            return None
        if self.key not in node.settings:
            return None
        settings = {k: v for k, v in node.settings.items() if k != self.key}
        return node.replace(settings=settings)


@dataclass(frozen=True)
class KindRenameRule(MigrationRule):
    """Change a structural kind, e.g. container -> section for old targets."""

    source: ElementKind
    target: ElementKind

    def __post_init__(self) -> None:
        if ElementKind.WIDGET in (self.source, self.target):
            raise ValueError("Kind renames cannot involve widgets")

    @property
    def description(self) -> str:
        return f"kind {self.source.value} -> {self.target.value}"

    def apply_node(self, node: ElementNode) -> ElementNode | None:
        if node.kind is self.source:
            return node.replace(kind=self.target)
        return None


def rules_from_config(migrations: MigrationSet) -> list[MigrationRule]:
    """Build rules in a fixed order: kinds, widgets, setting renames, drops."""
    rules: list[MigrationRule] = []
    for source, target in migrations.kind_renames.items():
        rules.append(KindRenameRule(ElementKind(source), ElementKind(target)))
    for source, target in migrations.widget_renames.items():
        rules.append(WidgetRenameRule(source, target))
    for spec in migrations.setting_renames:
        rules.append(SettingRenameRule(spec.source, spec.target, spec.widget_type))
    for spec in migrations.drop_settings:
        rules.append(SettingDropRule(spec.key, spec.widget_type))
    return rules
