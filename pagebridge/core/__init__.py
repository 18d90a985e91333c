"""Core primitives shared by every pagebridge stage."""
from pagebridge.core.errors import (
    ClipboardError,
    ClipboardErrorCode,
    ConfigError,
    ExtractionError,
    ExtractionErrorCode,
    InjectionError,
    InjectionErrorCode,
    PageBridgeError,
    TreeDepthError,
    VersionIncompatible,
)

__all__ = [
    "PageBridgeError",
    "ConfigError",
    "TreeDepthError",
    "ExtractionError",
    "ExtractionErrorCode",
    "ClipboardError",
    "ClipboardErrorCode",
    "VersionIncompatible",
    "InjectionError",
    "InjectionErrorCode",
]
