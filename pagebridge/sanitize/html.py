"""Markup sanitization for rendered content and rich-text settings."""

from __future__ import annotations

import html
import logging
import re

from bs4 import BeautifulSoup, Tag
from bs4.element import CData, Comment, Declaration, Doctype, ProcessingInstruction

from pagebridge.sanitize.css import sanitize_css
from pagebridge.sanitize.urls import has_script_scheme, sanitize_url

logger = logging.getLogger(__name__)

DANGEROUS_TAGS: frozenset[str] = frozenset({
    "script",
    "iframe",
    "object",
    "embed",
    "applet",
    "meta",
    "link",
    "style",
    "base",
})

URL_ATTRIBUTES: frozenset[str] = frozenset({
    "href",
    "src",
    "action",
    "formaction",
    "xlink:href",
    "poster",
    "background",
    "cite",
    "data",
    "longdesc",
})

_MARKUP = re.compile(r"<[^>]+>")
_DANGEROUS_TAG_TEXT = re.compile(
    r"<\s*/?\s*(?:" + "|".join(sorted(DANGEROUS_TAGS)) + r")\b",
    re.IGNORECASE,
)
_REMOVED_NODES = (Comment, CData, Declaration, Doctype, ProcessingInstruction)


def looks_like_markup(text: str) -> bool:
    return bool(_MARKUP.search(text))


def neutralize_dangerous_tags(text: str) -> str:
    """HTML-escape text that still spells out a dangerous tag."""
    if _DANGEROUS_TAG_TEXT.search(text):
        return html.escape(text, quote=False)
    return text


def _clean_srcset(value: str) -> str:
    candidates = [c.strip() for c in value.split(",") if c.strip()]
    for candidate in candidates:
        url = candidate.split(None, 1)[0]
        if not sanitize_url(url):
            return ""
    return ", ".join(candidates)


def _clean_attributes(tag: Tag) -> None:
    for name in list(tag.attrs):
        lowered = name.lower()
        raw = tag.attrs[name]
        value = " ".join(raw) if isinstance(raw, list) else str(raw)

        if lowered.startswith("on"):
            del tag.attrs[name]
            continue

        if lowered in URL_ATTRIBUTES:
            cleaned = sanitize_url(value)
        elif lowered == "srcset":
            cleaned = _clean_srcset(value)
        elif lowered == "style":
            cleaned = sanitize_css(value).strip()
        elif has_script_scheme(value):
            # e.g. SVG animation values="javascript:..."
            cleaned = ""
        else:
            continue

        if cleaned:
            if cleaned != value:
                tag.attrs[name] = cleaned
        else:
            del tag.attrs[name]


def _clean_markup(value: str) -> str:
    soup = BeautifulSoup(value, "html.parser")

    for tag in soup.find_all(list(DANGEROUS_TAGS)):
        # Nested dangerous tags die with their parent
        if not tag.decomposed:
            tag.decompose()

    for node in soup.find_all(string=lambda s: isinstance(s, _REMOVED_NODES)):
        node.extract()

    for tag in soup.find_all(True):
        _clean_attributes(tag)

    return str(soup)


def sanitize_html(value: str) -> str:
    """Sanitize a string that may contain markup.

    Text without markup is returned unchanged unless it spells out a
    dangerous tag, in which case it is escaped. The result never contains
    an opening or closing dangerous tag, and sanitizing it again returns it
    unchanged.
    """
    if looks_like_markup(value):
        cleaned = _clean_markup(value)
        if cleaned != value:
            logger.debug("Markup sanitized (%d -> %d chars)", len(value), len(cleaned))
        value = cleaned
    return neutralize_dangerous_tags(value)
