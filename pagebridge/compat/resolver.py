"""Version compatibility checks and best-effort tree conversion."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from pagebridge.compat.converters import STANDARD_WIDGETS, ConverterRegistry, default_registry
from pagebridge.compat.rules import MigrationRule, rules_from_config
from pagebridge.compat.versions import parse_version
from pagebridge.config.schema import CompatibilityConfig
from pagebridge.core.constants import MAX_TREE_DEPTH
from pagebridge.core.errors import TreeDepthError, VersionIncompatible
from pagebridge.model.node import ElementKind, ElementNode
from pagebridge.notify.sink import Notification, NotificationLevel

logger = logging.getLogger(__name__)

ANY_PATH = "*"


@dataclass
class CompatibilityResult:
    """Verdict for one source/target pair.

    compatible=False is a hard incompatibility; conversion still runs but the
    result is likely to need manual fixes.
    """

    compatible: bool
    warning: bool
    message: str
    source_family: str | None = None
    target_family: str | None = None

    @property
    def error(self) -> VersionIncompatible | None:
        """The matching typed error, or None when the pair is silently compatible."""
        if not self.compatible:
            return VersionIncompatible(self.message, hard=True)
        if self.warning:
            return VersionIncompatible(self.message, hard=False)
        return None


@dataclass
class ConversionResult:
    """A converted tree and what happened to it."""

    tree: ElementNode
    rules_applied: int
    compatibility: CompatibilityResult
    applied: list[str] = field(default_factory=list)
    source_version: str | None = None
    target_version: str | None = None


class VersionResolver:
    """Looks up compatibility and applies migration rules between versions.

    Add-on widgets are mapped onto standard widgets first (see
    pagebridge.compat.converters), then the path's migration rules run.
    """

    def __init__(
        self,
        config: CompatibilityConfig | None = None,
        registry: ConverterRegistry | None = None,
    ) -> None:
        self._config = config or CompatibilityConfig()
        self._registry = registry or default_registry()
        self._standard = STANDARD_WIDGETS | set(self._config.extra_standard_widgets)
        for migrations in self._config.migrations.values():
            self._standard |= set(migrations.widget_renames)
            self._standard |= set(migrations.widget_renames.values())

    def is_compatible(self, source: str | None, target: str | None) -> CompatibilityResult:
        src = parse_version(source)
        tgt = parse_version(target)

        if src is None or tgt is None:
            return CompatibilityResult(
                compatible=True,
                warning=True,
                message="Version information not available. Attempting best-effort conversion.",
                source_family=src.family if src else None,
                target_family=tgt.family if tgt else None,
            )

        families = {"source_family": src.family, "target_family": tgt.family}

        if src.family == tgt.family:
            return CompatibilityResult(True, False, "Same version family", **families)

        row = self._config.matrix.get(src.family)
        if row is None:
            return CompatibilityResult(
                compatible=True,
                warning=True,
                message=f"Unknown source version {src.full}. Attempting best-effort conversion.",
                **families,
            )

        if tgt.family in row.compatible:
            return CompatibilityResult(True, False, "Versions are compatible", **families)

        if tgt.family in row.warning:
            return CompatibilityResult(
                compatible=True,
                warning=True,
                message=(
                    f"Converting from {src.full} to {tgt.full} may lose some settings. "
                    "Review the pasted element."
                ),
                **families,
            )

        return CompatibilityResult(
            compatible=False,
            warning=True,
            message=(
                f"Major incompatibility between {src.full} and {tgt.full}. "
                "Conversion may not work correctly."
            ),
            **families,
        )

    def rules_for(self, source: str | None, target: str | None) -> list[MigrationRule]:
        """Rules for a cross-family path: the '*' set, then the path's own set."""
        src = parse_version(source)
        tgt = parse_version(target)
        if src is None or tgt is None or src.family == tgt.family:
            return []

        rules: list[MigrationRule] = []
        for key in (ANY_PATH, f"{src.family}_to_{tgt.family}"):
            migrations = self._config.migrations.get(key)
            if migrations is not None:
                rules.extend(rules_from_config(migrations))
        return rules

    def convert(
        self, tree: ElementNode, source: str | None, target: str | None
    ) -> ConversionResult:
        """Convert add-on widgets, then apply every rule for the path, to a copy of tree.

        rules_applied counts rules that changed at least one node, plus one
        per distinct widget conversion.
        """
        compatibility = self.is_compatible(source, target)
        if not compatibility.compatible:
            logger.warning("Converting across incompatible versions: %s", compatibility.message)

        current = tree.clone()
        applied: list[str] = []
        if self._config.convert_custom_widgets:
            try:
                current = self._convert_widgets(current, 0, applied)
            except TreeDepthError as e:
                logger.error("Widget conversion skipped: %s", e.message)

        for rule in self.rules_for(source, target):
            try:
                current, changed = rule.apply(current)
            except TreeDepthError as e:
                logger.error("Rule '%s' skipped: %s", rule.description, e.message)
                continue
            if changed:
                applied.append(rule.description)
                logger.debug("Applied rule: %s", rule.description)

        if applied:
            logger.info(
                "Converted %s -> %s with %d rule(s): %s",
                source, target, len(applied), ", ".join(applied),
            )
        return ConversionResult(
            tree=current,
            rules_applied=len(applied),
            compatibility=compatibility,
            applied=applied,
            source_version=source,
            target_version=target,
        )

    def is_standard_widget(self, widget_type: str) -> bool:
        return widget_type in self._standard

    def _convert_widgets(
        self, node: ElementNode, depth: int, applied: list[str]
    ) -> ElementNode:
        if depth > MAX_TREE_DEPTH:
            raise TreeDepthError(depth, MAX_TREE_DEPTH)

        if node.kind is ElementKind.WIDGET:
            assert node.widget_type is not None
            if self.is_standard_widget(node.widget_type):
                return node
            converted = self._registry.convert(node)
            if converted is None:
                logger.warning(
                    "No standard equivalent for widget %s (%s); pasting as is",
                    node.id, node.widget_type,
                )
                return node
            new_node, converter = converted
            description = (
                f"convert {node.widget_type} -> {new_node.widget_type} ({converter.name})"
            )
            if description not in applied:
                applied.append(description)
            logger.debug("Converted widget %s: %s", node.id, description)
            return new_node

        children = tuple(
            self._convert_widgets(child, depth + 1, applied) for child in node.children
        )
        if all(new is old for new, old in zip(children, node.children)):
            return node
        return node.replace(children=children)

    @staticmethod
    def notification_for(result: ConversionResult) -> Notification:
        """User notification for a conversion."""
        compatibility = result.compatibility
        if not compatibility.compatible:
            return Notification(
                NotificationLevel.ERROR,
                "Version incompatibility",
                compatibility.message,
                ["Review pasted element carefully", "Some settings may need adjustment"],
            )
        if compatibility.warning:
            return Notification(
                NotificationLevel.WARNING,
                "Version conversion",
                compatibility.message,
                ["Review pasted element carefully"],
            )
        if result.rules_applied > 0:
            return Notification(
                NotificationLevel.INFO,
                "Converted",
                f"Converted from {result.source_version} to {result.target_version} "
                f"({result.rules_applied} change(s)).",
            )
        return Notification(NotificationLevel.SUCCESS, "Compatible", compatibility.message)
