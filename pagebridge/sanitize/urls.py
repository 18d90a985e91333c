"""URL validation for untrusted settings and attributes."""

from __future__ import annotations

import html
import re
from urllib.parse import unquote, urlparse

DANGEROUS_SCHEMES: tuple[str, ...] = ("javascript:", "data:", "vbscript:", "file:")

# Schemes that execute script wherever they appear after decoding
_SCRIPT_SCHEMES: tuple[str, ...] = ("javascript:", "vbscript:")

# Browsers ignore whitespace and control characters inside a scheme
_IGNORED_CHARS = re.compile(r"[\x00-\x20\x7f]+")
_BAD_PERCENT = re.compile(r"%(?![0-9a-fA-F]{2})")
_SCHEME = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.-]*):")

_MAX_DECODE_ROUNDS = 3


def _compact(value: str) -> str:
    return _IGNORED_CHARS.sub("", value).lower()


def _decode(value: str) -> str:
    """Entity- and percent-decode repeatedly until stable.

    Raises:
        ValueError: If the value holds malformed percent-encoding.
    """
    current = value
    for _ in range(_MAX_DECODE_ROUNDS):
        if _BAD_PERCENT.search(current):
            raise ValueError("malformed percent-encoding")
        decoded = unquote(html.unescape(current), errors="strict")
        if decoded == current:
            break
        current = decoded
    return current


def has_script_scheme(value: str) -> bool:
    """True if a script-executing scheme starts the value once decoded."""
    compact = _compact(html.unescape(value))
    return compact.startswith(_SCRIPT_SCHEMES)


def is_safe_url(value: str) -> bool:
    """Decide whether an untrusted URL may be kept."""
    stripped = value.strip()
    if not stripped:
        return True

    if _compact(stripped).startswith(DANGEROUS_SCHEMES):
        return False

    try:
        decoded = _compact(_decode(stripped))
    except (ValueError, UnicodeDecodeError):
        return False
    if decoded.startswith(DANGEROUS_SCHEMES):
        return False

    if stripped.startswith("//"):
        return _has_valid_host("https:" + stripped)

    match = _SCHEME.match(stripped)
    if match is not None and match.group(1).lower() in ("http", "https"):
        # The scheme is fixed here, so later mentions are inert text
        return _has_valid_host(stripped)

    if any(scheme in decoded for scheme in _SCRIPT_SCHEMES):
        return False
    # Relative paths, anchors, mailto:, tel: and other inert schemes
    return True


def _has_valid_host(url: str) -> bool:
    try:
        parsed = urlparse(url)
        host = parsed.hostname
        # Accessing port validates it (out-of-range ports raise)
        port = parsed.port
    except ValueError:
        return False
    return bool(host) and (port is None or port > 0)


def sanitize_url(value: str) -> str:
    """Return the trimmed URL if it is safe, otherwise an empty string."""
    stripped = value.strip()
    return stripped if is_safe_url(stripped) else ""
