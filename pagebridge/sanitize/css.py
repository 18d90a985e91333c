"""CSS sanitization for style attributes and custom CSS settings."""

from __future__ import annotations

import re

_CSS_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_CSS_ESCAPE = re.compile(r"\\([0-9a-fA-F]{1,6})\s?")

# Order matters: whole url(...) values go before the bare scheme patterns
_DANGEROUS_CSS: tuple[re.Pattern[str], ...] = (
    re.compile(r"url\(\s*['\"]?\s*(?:javascript|data|vbscript)\s*:[^)]*\)", re.IGNORECASE),
    re.compile(r"@import\b[^;]*;?", re.IGNORECASE),
    re.compile(r"expression\s*\(", re.IGNORECASE),
    re.compile(r"javascript\s*:", re.IGNORECASE),
    re.compile(r"vbscript\s*:", re.IGNORECASE),
    re.compile(r"behavior\s*:", re.IGNORECASE),
    re.compile(r"-moz-binding\s*:", re.IGNORECASE),
)

_MAX_PASSES = 10


def _has_dangerous(css: str) -> bool:
    return any(pattern.search(css) for pattern in _DANGEROUS_CSS)


def _unescape(css: str) -> str:
    def replace(match: re.Match[str]) -> str:
        code = int(match.group(1), 16)
        if 0 < code <= 0x10FFFF and not 0xD800 <= code <= 0xDFFF:
            return chr(code)
        return ""
    return _CSS_ESCAPE.sub(replace, css)


def _clean_once(css: str) -> str:
    css = _CSS_COMMENT.sub("", css)
    unescaped = _unescape(css)
    if unescaped != css and _has_dangerous(unescaped):
        css = unescaped
    for pattern in _DANGEROUS_CSS:
        css = pattern.sub("", css)
    return css


def sanitize_css(value: str) -> str:
    """Remove script-capable constructs from CSS text.

    Cleaning repeats until the text stops changing, so fragments that
    reassemble after one removal are caught. Escaped forms (e.g.
    "\\65 xpression(") are decoded only when decoding reveals a dangerous
    construct, which keeps icon-font escapes intact.
    """
    css = value
    for _ in range(_MAX_PASSES):
        cleaned = _clean_once(css)
        if cleaned == css:
            return css
        css = cleaned
    # Still changing after the pass limit: give up on the value
    return ""
