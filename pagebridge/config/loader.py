"""Configuration loading with fail-fast behavior and layered merging.

Two layers are merged (later wins):
1. Global user config (~/.pagebridge/config.json) OR shipped defaults
2. Project local config (cwd/.pagebridge/config.json)

Defaults are only used as a fallback when no global config exists.
"""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from pagebridge.config.schema import Config
from pagebridge.core.constants import PAGEBRIDGE_DIR_NAME, get_defaults_dir, get_pagebridge_dir
from pagebridge.core.errors import ConfigError
from pagebridge.core.utils import deep_merge

logger = logging.getLogger(__name__)

DEFAULTS_DIR = get_defaults_dir()
DEFAULT_CONFIG = DEFAULTS_DIR / "config.json"


def read_config_file(path: Path, required: bool = False) -> dict[str, Any] | None:
    """Read one JSON config layer.

    Returns None when the file is absent and not required. An empty file is an
    empty layer. A UTF-8 BOM is tolerated.

    Raises:
        ConfigError: If a required file is missing, the file cannot be read,
            or it does not hold a JSON object.
    """
    resolved = path.resolve()
    if not resolved.is_file():
        if required:
            raise ConfigError(f"Config file not found: {path}")
        logger.debug("Config file not found: %s", path)
        return None

    try:
        content = resolved.read_text(encoding="utf-8-sig").strip()
    except OSError as e:
        raise ConfigError(f"Failed to read config file {path}: {e}") from e
    if not content:
        return {}

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Expected an object in {path}, got {type(data).__name__}")
    return data


def load_config(path: Path | None = None, cwd: Path | None = None) -> Config:
    """Load configuration from file with layered merging.

    Args:
        path: Explicit config file path. If provided, skips layered loading.
        cwd: Working directory for local lookup. Defaults to Path.cwd().

    Returns:
        Validated Config object.

    Raises:
        ConfigError: If any config file contains invalid JSON or merged config
            fails validation.
    """
    if path is not None:
        return _load_from_path(path)

    effective_cwd = cwd or Path.cwd()
    merged: dict[str, Any] = {}
    loaded_from: list[Path] = []

    global_config = get_pagebridge_dir() / "config.json"
    global_data = read_config_file(global_config)
    if global_data:
        merged = deep_merge(merged, global_data)
        loaded_from.append(global_config)
        logger.debug("Using global config: %s", global_config)
    else:
        logger.debug("No global config at: %s, using defaults", global_config)
        default_data = read_config_file(DEFAULT_CONFIG)
        if default_data:
            merged = deep_merge(merged, default_data)
            loaded_from.append(DEFAULT_CONFIG)

    local_config = effective_cwd / PAGEBRIDGE_DIR_NAME / "config.json"
    # Home directory as cwd would load the global file twice
    if local_config.resolve() != global_config.resolve():
        local_data = read_config_file(local_config)
        if local_data:
            merged = deep_merge(merged, local_data)
            loaded_from.append(local_config)

    if loaded_from:
        logger.info("Config loaded from: %s", [str(p) for p in loaded_from])
    else:
        logger.debug("No config files found, using Pydantic defaults")

    if not merged:
        return Config()

    try:
        return Config.model_validate(merged)
    except ValidationError as e:
        sources = ", ".join(str(p) for p in loaded_from)
        raise ConfigError(f"Config validation failed (merged from {sources}): {e}") from e


def _load_from_path(path: Path) -> Config:
    """Load and validate config from a specific path.

    Raises:
        ConfigError: If file doesn't exist, contains invalid JSON, or fails validation.
    """
    data = read_config_file(path, required=True) or {}
    try:
        return Config.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Config validation failed for {path}: {e}") from e
