"""Tests for VersionResolver."""

import pytest

from pagebridge.compat.resolver import VersionResolver
from pagebridge.config.schema import CompatibilityConfig, FamilyCompatibility, MigrationSet
from pagebridge.model.node import ElementKind, ElementNode
from pagebridge.notify.sink import NotificationLevel


@pytest.fixture
def resolver() -> VersionResolver:
    return VersionResolver()


class TestIsCompatible:
    """Tests for VersionResolver.is_compatible()."""

    def test_same_family(self, resolver) -> None:
        result = resolver.is_compatible("3.5.0", "3.9.2")
        assert result.compatible
        assert not result.warning
        assert result.message == "Same version family"
        assert result.error is None

    def test_matrix_compatible(self, resolver) -> None:
        result = resolver.is_compatible("2.9.0", "3.1.0")
        assert result.compatible
        assert not result.warning
        assert result.source_family == "2.x"
        assert result.target_family == "3.x"

    def test_matrix_warning(self, resolver) -> None:
        result = resolver.is_compatible("4.0.1", "2.8.0")
        assert result.compatible
        assert result.warning
        assert "may lose some settings" in result.message
        assert result.error is not None
        assert result.error.hard is False

    def test_hard_incompatibility(self, resolver) -> None:
        result = resolver.is_compatible("3.5.0", "5.0.0")
        assert not result.compatible
        assert "Major incompatibility between 3.5.0 and 5.0.0" in result.message
        assert result.error.hard is True

    def test_unknown_source_family(self, resolver) -> None:
        result = resolver.is_compatible("1.2.0", "3.0.0")
        assert result.compatible
        assert result.warning
        assert result.message.startswith("Unknown source version 1.2.0")

    @pytest.mark.parametrize(("source", "target"), [(None, "3.0.0"), ("3.0.0", None), ("", "")])
    def test_missing_versions(self, resolver, source, target) -> None:
        result = resolver.is_compatible(source, target)
        assert result.compatible
        assert result.warning
        assert result.message.startswith("Version information not available")

    def test_custom_matrix(self) -> None:
        config = CompatibilityConfig(matrix={"3.x": FamilyCompatibility(compatible=["3.x"])})
        assert not VersionResolver(config).is_compatible("3.0.0", "4.0.0").compatible


class TestRulesFor:
    """Tests for VersionResolver.rules_for()."""

    def test_same_family_has_no_rules(self, resolver) -> None:
        assert resolver.rules_for("3.5.0", "3.9.2") == []

    def test_unknown_version_has_no_rules(self, resolver) -> None:
        assert resolver.rules_for(None, "3.0.0") == []

    def test_wildcard_then_path(self, resolver) -> None:
        descriptions = [rule.description for rule in resolver.rules_for("2.4.0", "3.1.0")]
        assert descriptions[:3] == [
            "setting tag -> header_size on heading",
            "setting size -> button_size on button",
            "setting caption -> caption_text on image",
        ]
        assert "widget image-box -> icon-box" in descriptions

    def test_path_without_own_rules(self) -> None:
        config = CompatibilityConfig(migrations={"*": MigrationSet(widget_renames={"a": "b"})})
        assert len(VersionResolver(config).rules_for("3.0.0", "4.0.0")) == 1


class TestConvert:
    """Tests for VersionResolver.convert()."""

    def test_same_family_unchanged(self, resolver, section_tree) -> None:
        result = resolver.convert(section_tree, "3.5.0", "3.9.2")
        assert result.rules_applied == 0
        assert result.tree == section_tree
        assert result.tree is not section_tree

    def test_upgrade_renames_widget(self, resolver) -> None:
        tree = ElementNode.container(
            ElementKind.COLUMN,
            [ElementNode.widget("image-box", {"title_text": "Box"}, node_id="w1")],
            node_id="c1",
        )

        result = resolver.convert(tree, "2.4.0", "3.1.0")

        assert result.tree.children[0].widget_type == "icon-box"
        assert result.tree.children[0].settings == {"title_text": "Box"}
        assert result.rules_applied == 1
        assert result.applied == ["widget image-box -> icon-box"]
        assert tree.children[0].widget_type == "image-box"

    def test_downgrade_to_2x(self, resolver) -> None:
        tree = ElementNode.container(
            ElementKind.CONTAINER,
            [ElementNode.widget("heading", {"tag": "h3"}, node_id="w1")],
            {"_flex_direction": "row", "_flex_wrap": "wrap", "gap": 10},
            node_id="k1",
        )

        result = resolver.convert(tree, "3.20.0", "2.9.0")

        assert result.tree.kind is ElementKind.SECTION
        assert result.tree.settings == {"gap": 10}
        assert result.tree.children[0].settings == {"header_size": "h3"}
        assert result.rules_applied == 4

    def test_input_not_mutated(self, resolver) -> None:
        widget = ElementNode.widget("heading", {"tag": "h2"}, node_id="w1")
        resolver.convert(widget, "2.0.0", "3.0.0")
        assert widget.settings == {"tag": "h2"}

    def test_unknown_versions_pass_through(self, resolver, section_tree) -> None:
        result = resolver.convert(section_tree, None, "3.0.0")
        assert result.tree == section_tree
        assert result.compatibility.warning


class TestNotificationFor:
    """Tests for VersionResolver.notification_for()."""

    def test_levels(self, resolver, section_tree) -> None:
        image_box = ElementNode.widget("image-box", node_id="w1")

        same = resolver.convert(section_tree, "3.0.0", "3.1.0")
        converted = resolver.convert(image_box, "2.0.0", "3.0.0")
        warned = resolver.convert(section_tree, "2.0.0", "4.0.0")
        broken = resolver.convert(section_tree, "3.0.0", "5.0.0")

        assert VersionResolver.notification_for(same).level is NotificationLevel.SUCCESS
        assert VersionResolver.notification_for(converted).level is NotificationLevel.INFO
        assert VersionResolver.notification_for(warned).level is NotificationLevel.WARNING
        note = VersionResolver.notification_for(broken)
        assert note.level is NotificationLevel.ERROR
        assert note.actions


class TestAddonWidgetConversion:
    """Add-on widgets are mapped onto standard widgets during convert()."""

    @staticmethod
    def column(*widgets: ElementNode) -> ElementNode:
        return ElementNode.container(ElementKind.COLUMN, list(widgets), node_id="c1")

    def test_converted_and_counted(self, resolver) -> None:
        tree = self.column(
            ElementNode.widget("wd_video", {"video_url": "https://vimeo.com/42"}, node_id="w1"),
            ElementNode.widget("heading", {"title": "Kept"}, node_id="w2"),
        )

        result = resolver.convert(tree, "3.5.0", "3.9.2")

        video, heading = result.tree.children
        assert video.widget_type == "video"
        assert video.settings["vimeo_url"] == "https://vimeo.com/42"
        assert heading.settings == {"title": "Kept"}
        assert result.applied == ["convert wd_video -> video (VideoConverter)"]
        assert result.rules_applied == 1
        assert tree.children[0].widget_type == "wd_video"

    def test_same_conversion_counted_once(self, resolver) -> None:
        tree = self.column(
            ElementNode.widget("wd_separator", node_id="w1"),
            ElementNode.widget("wd_separator", node_id="w2"),
        )
        result = resolver.convert(tree, "3.5.0", "3.9.2")
        assert [c.widget_type for c in result.tree.children] == ["divider", "divider"]
        assert result.rules_applied == 1

    def test_conversion_runs_before_version_rules(self, resolver) -> None:
        tree = self.column(
            ElementNode.widget("wd_title", {"title": "T", "tag": "h4"}, node_id="w1"),
            ElementNode.widget("heading", {"tag": "h2"}, node_id="w2"),
        )
        result = resolver.convert(tree, "2.9.0", "3.1.0")
        assert result.tree.children[0].settings["header_size"] == "h4"
        assert result.tree.children[1].settings == {"header_size": "h2"}
        assert result.applied == [
            "convert wd_title -> heading (HeadingPattern)",
            "setting tag -> header_size on heading",
        ]

    def test_unconvertible_widget_left_alone(self, resolver) -> None:
        tree = self.column(ElementNode.widget("wd_mystery", {"x": 1}, node_id="w1"))
        result = resolver.convert(tree, "3.5.0", "3.9.2")
        assert result.tree == tree
        assert result.rules_applied == 0

    def test_rename_endpoints_are_standard(self, resolver) -> None:
        assert resolver.is_standard_widget("icon-list-item")
        assert not resolver.is_standard_widget("wd_video")

    def test_extra_standard_widgets_untouched(self) -> None:
        resolver = VersionResolver(CompatibilityConfig(extra_standard_widgets=["wd_video"]))
        tree = self.column(ElementNode.widget("wd_video", {"video_url": "/a.mp4"}, node_id="w1"))
        result = resolver.convert(tree, "3.5.0", "3.9.2")
        assert result.tree.children[0].widget_type == "wd_video"
        assert result.rules_applied == 0

    def test_conversion_can_be_disabled(self) -> None:
        resolver = VersionResolver(CompatibilityConfig(convert_custom_widgets=False))
        tree = self.column(ElementNode.widget("wd_separator", node_id="w1"))
        assert resolver.convert(tree, "3.5.0", "3.9.2").tree == tree

    def test_same_family_conversion_notifies(self, resolver) -> None:
        tree = self.column(ElementNode.widget("wd_separator", node_id="w1"))
        result = resolver.convert(tree, "3.5.0", "3.9.2")
        assert VersionResolver.notification_for(result).level is NotificationLevel.INFO
