"""Core constants and paths for pagebridge.

Single source of truth for wire-format constants and global paths.
"""

from pathlib import Path

PAGEBRIDGE_DIR_NAME = ".pagebridge"

# Wire format
MARKER_SOURCE = "pagebridge-extension"
FORMAT_VERSION = "1.0.0"
SCHEMA_VERSION = "1.0.0"

# Every recursive traversal stops here
MAX_TREE_DEPTH = 50

# Backup store keys
LAST_COPIED_KEY = "lastCopied"
LAST_COPIED_AT_KEY = "lastCopiedAt"

# Error log retention
MAX_ERROR_LOG_ENTRIES = 50


def get_pagebridge_dir() -> Path:
    """Get ~/.pagebridge (global config directory)."""
    return Path.home() / PAGEBRIDGE_DIR_NAME


def get_defaults_dir() -> Path:
    """Get package defaults directory (shipped with package)."""
    import pagebridge
    return Path(pagebridge.__file__).parent / "defaults"


def get_default_storage_path() -> Path:
    """Get the backup database path."""
    return get_pagebridge_dir() / "backup.db"


def get_exports_dir() -> Path:
    """Get the directory manual exports are written to."""
    return get_pagebridge_dir() / "exports"


def get_logs_dir() -> Path:
    """Get the log directory."""
    return get_pagebridge_dir() / "logs"
