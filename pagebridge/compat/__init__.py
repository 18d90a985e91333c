"""Version compatibility and migration between builder versions."""
from pagebridge.compat.converters import (
    STANDARD_WIDGETS,
    ConverterRegistry,
    WidgetConverter,
    default_registry,
)
from pagebridge.compat.resolver import CompatibilityResult, ConversionResult, VersionResolver
from pagebridge.compat.rules import (
    KindRenameRule,
    MigrationRule,
    SettingDropRule,
    SettingRenameRule,
    WidgetRenameRule,
    rules_from_config,
)
from pagebridge.compat.versions import Version, compare_versions, parse_version, version_family

__all__ = [
    "VersionResolver",
    "CompatibilityResult",
    "ConversionResult",
    "MigrationRule",
    "WidgetRenameRule",
    "SettingRenameRule",
    "SettingDropRule",
    "KindRenameRule",
    "rules_from_config",
    "WidgetConverter",
    "ConverterRegistry",
    "default_registry",
    "STANDARD_WIDGETS",
    "Version",
    "parse_version",
    "version_family",
    "compare_versions",
]
