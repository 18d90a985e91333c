"""Configuration loading and validation."""
from pagebridge.config.loader import load_config
from pagebridge.config.schema import (
    ClipboardConfig,
    CompatibilityConfig,
    Config,
    ExtractionConfig,
    FamilyCompatibility,
    InjectorConfig,
    LoggingConfig,
    MigrationSet,
    SanitizerConfig,
    SettingDropSpec,
    SettingRenameSpec,
    StorageConfig,
)

__all__ = [
    "load_config",
    "Config",
    "ExtractionConfig",
    "ClipboardConfig",
    "SanitizerConfig",
    "CompatibilityConfig",
    "FamilyCompatibility",
    "MigrationSet",
    "SettingRenameSpec",
    "SettingDropSpec",
    "InjectorConfig",
    "StorageConfig",
    "LoggingConfig",
]
