"""Typed exception hierarchy for pagebridge."""

from __future__ import annotations

from enum import Enum


class PageBridgeError(Exception):
    """Base class for all pagebridge errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigError(PageBridgeError):
    """Raised for configuration issues (missing file, invalid JSON, validation failure)."""


class TreeDepthError(PageBridgeError):
    """Raised when a traversal descends past the tree depth ceiling."""

    def __init__(self, depth: int, limit: int) -> None:
        self.depth = depth
        self.limit = limit
        super().__init__(f"Element tree exceeds maximum depth of {limit} (reached {depth})")


class ExtractionErrorCode(Enum):
    """Why a native element could not be turned into a tree."""

    NOT_FOUND = "not_found"
    INVALID_STRUCTURE = "invalid_structure"


class ExtractionError(PageBridgeError):
    """Extraction failure.

    The extractor returns instances of this class instead of raising them, so
    callers check the result with isinstance().
    """

    def __init__(self, code: ExtractionErrorCode, message: str) -> None:
        self.code = code
        super().__init__(message)


class ClipboardErrorCode(Enum):
    """Clipboard failure categories."""

    WRITE_FAILED = "write_failed"
    READ_FAILED = "read_failed"
    FOCUS_DENIED = "focus_denied"


class ClipboardError(PageBridgeError):
    """Raised when the system clipboard cannot be written or read.

    When a write ultimately fails, manual_text carries the encoded payload so
    the caller can still offer it for manual copy.
    """

    def __init__(
        self,
        code: ClipboardErrorCode,
        message: str,
        manual_text: str | None = None,
    ) -> None:
        self.code = code
        self.manual_text = manual_text
        super().__init__(message)


class VersionIncompatible(PageBridgeError):
    """Source and target builder versions are not (fully) compatible.

    hard=True means the matrix lists no compatibility at all; hard=False means
    conversion is expected to work with warnings.
    """

    def __init__(self, message: str, hard: bool) -> None:
        self.hard = hard
        super().__init__(message)


class InjectionErrorCode(Enum):
    """Classified injection failures."""

    TARGET_NOT_READY = "target_not_ready"
    NO_INSERTION_POINT = "no_insertion_point"
    TIMEOUT = "timeout"
    API_UNAVAILABLE = "api_unavailable"
    BRIDGE_FAILURE = "bridge_failure"
    UNKNOWN = "unknown"


class InjectionError(PageBridgeError):
    """Raised by injection strategies and the request bridge."""

    def __init__(self, code: InjectionErrorCode, message: str) -> None:
        self.code = code
        super().__init__(message)
