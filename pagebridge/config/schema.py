"""Pydantic models for pagebridge configuration validation."""

import re
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

_MIGRATION_KEY = re.compile(r"^(\*|\d+\.x_to_\d+\.x)$")
_FAMILY_KEY = re.compile(r"^\d+\.x$")
_STRUCTURAL_KINDS = {"section", "column", "container", "page"}

StrategyName = Literal["structured-create", "clipboard-channel", "direct-view-insertion"]
LogLevelName = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


class ExtractionConfig(BaseModel):
    """Configuration for element extraction."""

    model_config = ConfigDict(extra="forbid")

    max_depth: int = Field(
        default=50,
        ge=1,
        le=50,
        description="Deepest level collected; children below are truncated",
    )
    scrape_rendered_content: bool = Field(
        default=True,
        description="Recover settings from rendered markup when structured settings are missing",
    )


class ClipboardConfig(BaseModel):
    """Configuration for clipboard writes and reads."""

    model_config = ConfigDict(extra="forbid")

    max_attempts: int = Field(
        default=4,
        ge=1,
        le=10,
        description="Write attempts before falling back to the legacy copy path",
    )
    retry_base_delay: float = Field(
        default=0.1,
        ge=0.0,
        le=5.0,
        description="Delay before the first retry (seconds)",
    )
    backoff_multiplier: float = Field(
        default=2.0,
        ge=1.0,
        le=10.0,
        description="Exponential backoff multiplier between attempts",
    )
    attempt_timeout: float = Field(
        default=1.0,
        gt=0.0,
        le=30.0,
        description="Timeout for a single clipboard write or read (seconds)",
    )
    focus_attempts: int = Field(
        default=2,
        ge=1,
        le=10,
        description="Focus acquisition attempts before each write",
    )
    max_payload_bytes: int = Field(
        default=5 * 1024 * 1024,  # 5 MB
        ge=1024,
        le=50 * 1024 * 1024,
        description="Largest encoded payload that is written or accepted on read",
    )
    legacy_copy_enabled: bool = Field(
        default=True,
        description="Try the selection-based copy command when the clipboard API fails",
    )
    backup_enabled: bool = Field(
        default=True,
        description="Persist the last copied payload to the backup store",
    )


class SanitizerConfig(BaseModel):
    """Configuration for untrusted tree sanitization."""

    model_config = ConfigDict(extra="forbid")

    max_depth: int = Field(
        default=50,
        ge=1,
        le=50,
        description="Nodes nested deeper than this are dropped",
    )
    max_settings_depth: int = Field(
        default=20,
        ge=1,
        le=50,
        description="Nested settings values deeper than this are dropped",
    )
    coerce_known_types: bool = Field(
        default=True,
        description="Coerce well-known settings keys to their expected type",
    )


class FamilyCompatibility(BaseModel):
    """Compatibility row for one source version family."""

    model_config = ConfigDict(extra="forbid")

    compatible: list[str] = Field(default_factory=list)
    warning: list[str] = Field(default_factory=list)

    @field_validator("compatible", "warning")
    @classmethod
    def validate_families(cls, v: list[str]) -> list[str]:
        for family in v:
            if not _FAMILY_KEY.fullmatch(family):
                raise ValueError(f"Invalid version family '{family}' (expected '<major>.x')")
        return v


class SettingRenameSpec(BaseModel):
    """Rename one settings key, optionally only on one widget type."""

    model_config = ConfigDict(extra="forbid")

    source: str
    target: str
    widget_type: str | None = None


class SettingDropSpec(BaseModel):
    """Remove one settings key, optionally only on one widget type."""

    model_config = ConfigDict(extra="forbid")

    key: str
    widget_type: str | None = None


class MigrationSet(BaseModel):
    """Rules applied along one migration path."""

    model_config = ConfigDict(extra="forbid")

    widget_renames: dict[str, str] = Field(default_factory=dict)
    setting_renames: list[SettingRenameSpec] = Field(default_factory=list)
    kind_renames: dict[str, str] = Field(default_factory=dict)
    drop_settings: list[SettingDropSpec] = Field(default_factory=list)

    @field_validator("kind_renames")
    @classmethod
    def validate_kinds(cls, v: dict[str, str]) -> dict[str, str]:
        for source, target in v.items():
            if source not in _STRUCTURAL_KINDS or target not in _STRUCTURAL_KINDS:
                raise ValueError(f"Invalid structural kind in rename '{source}' -> '{target}'")
        return v


def _default_matrix() -> dict[str, FamilyCompatibility]:
    return {
        "2.x": FamilyCompatibility(compatible=["2.x", "3.x"], warning=["4.x"]),
        "3.x": FamilyCompatibility(compatible=["2.x", "3.x", "4.x"]),
        "4.x": FamilyCompatibility(compatible=["3.x", "4.x"], warning=["2.x"]),
    }


def _default_migrations() -> dict[str, MigrationSet]:
    downgrade_to_2 = MigrationSet(
        kind_renames={"container": "section"},
        drop_settings=[
            SettingDropSpec(key="_flex_direction"),
            SettingDropSpec(key="_flex_wrap"),
        ],
    )
    return {
        "*": MigrationSet(
            setting_renames=[
                SettingRenameSpec(source="tag", target="header_size", widget_type="heading"),
                SettingRenameSpec(source="size", target="button_size", widget_type="button"),
                SettingRenameSpec(source="caption", target="caption_text", widget_type="image"),
            ],
        ),
        "2.x_to_3.x": MigrationSet(
            widget_renames={"image-box": "icon-box", "icon-list": "icon-list-item"},
        ),
        "3.x_to_4.x": MigrationSet(),
        "3.x_to_2.x": downgrade_to_2,
        "4.x_to_2.x": downgrade_to_2.model_copy(deep=True),
    }


class CompatibilityConfig(BaseModel):
    """Compatibility matrix and migration rule tables."""

    model_config = ConfigDict(extra="forbid")

    matrix: dict[str, FamilyCompatibility] = Field(
        default_factory=_default_matrix,
        description="Per source family: target families that are compatible or warn",
    )
    migrations: dict[str, MigrationSet] = Field(
        default_factory=_default_migrations,
        description="Rules keyed '<src>_to_<tgt>'; '*' applies to every cross-family path",
    )
    convert_custom_widgets: bool = Field(
        default=True,
        description="Map add-on widget types onto standard widgets before pasting",
    )
    extra_standard_widgets: list[str] = Field(
        default_factory=list,
        description="Add-on widget types installed on the target; never converted",
    )

    @field_validator("matrix")
    @classmethod
    def validate_matrix_keys(
        cls, v: dict[str, FamilyCompatibility]
    ) -> dict[str, FamilyCompatibility]:
        for family in v:
            if not _FAMILY_KEY.fullmatch(family):
                raise ValueError(f"Invalid version family '{family}' (expected '<major>.x')")
        return v

    @field_validator("migrations")
    @classmethod
    def validate_migration_keys(cls, v: dict[str, MigrationSet]) -> dict[str, MigrationSet]:
        for key in v:
            if not _MIGRATION_KEY.fullmatch(key):
                raise ValueError(
                    f"Invalid migration path '{key}' (expected '<major>.x_to_<major>.x' or '*')"
                )
        return v


class InjectorConfig(BaseModel):
    """Configuration for the cascading injector and request bridge."""

    model_config = ConfigDict(extra="forbid")

    strategies: list[StrategyName] = Field(
        default_factory=lambda: [
            "structured-create",
            "clipboard-channel",
            "direct-view-insertion",
        ],
        min_length=1,
        description="Strategy order; the first success wins",
    )
    ready_timeout: float = Field(
        default=10.0,
        ge=0.0,
        le=120.0,
        description="How long to wait for the target to report ready (seconds)",
    )
    ready_poll_interval: float = Field(
        default=0.1,
        gt=0.0,
        le=5.0,
        description="Readiness polling interval (seconds)",
    )
    strategy_timeout: float = Field(
        default=5.0,
        gt=0.0,
        le=60.0,
        description="Timeout for a single strategy (seconds)",
    )
    strategy_retries: int = Field(
        default=1,
        ge=0,
        le=5,
        description="Extra attempts per strategy for timeouts and bridge failures",
    )
    retry_base_delay: float = Field(
        default=1.0,
        ge=0.0,
        le=10.0,
        description="Delay before retrying a strategy (seconds)",
    )
    bridge_ready_timeout: float = Field(
        default=3.0,
        gt=0.0,
        le=60.0,
        description="How long to wait for the bridge ready signal (seconds)",
    )
    request_timeout: float = Field(
        default=5.0,
        gt=0.0,
        le=60.0,
        description="Default timeout for one bridge request (seconds)",
    )
    write_export_file: bool = Field(
        default=True,
        description="Write the manual export to disk when every strategy fails",
    )
    export_dir: str | None = Field(
        default=None,
        description="Directory for manual exports (default ~/.pagebridge/exports)",
    )


class StorageConfig(BaseModel):
    """Configuration for the backup store."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    path: str | None = Field(
        default=None,
        description="SQLite database path (default ~/.pagebridge/backup.db)",
    )


class LoggingConfig(BaseModel):
    """Configuration for file and console logging."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = Field(
        default=False,
        description="Install the rotating file handler when pipelines are created",
    )
    level: LogLevelName = "INFO"
    console_level: LogLevelName = "WARNING"
    log_dir: str | None = Field(
        default=None,
        description="Log directory (default ~/.pagebridge/logs)",
    )


class Config(BaseModel):
    """Root configuration model."""

    model_config = ConfigDict(extra="forbid")

    builder_version: str | None = Field(
        default=None,
        description="Version of the local builder, used when the runtime does not report one",
    )
    extraction: ExtractionConfig = ExtractionConfig()
    clipboard: ClipboardConfig = ClipboardConfig()
    sanitizer: SanitizerConfig = SanitizerConfig()
    compatibility: CompatibilityConfig = CompatibilityConfig()
    injector: InjectorConfig = InjectorConfig()
    storage: StorageConfig = StorageConfig()
    logging: LoggingConfig = LoggingConfig()
