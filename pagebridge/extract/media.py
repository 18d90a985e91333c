"""Media URL collection and rewriting.

Media is never transferred; URLs are made absolute against the page they
were copied from and flagged when they point at another host.
"""

from __future__ import annotations

import copy
import logging
import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag

from pagebridge.core.constants import MAX_TREE_DEPTH
from pagebridge.core.errors import TreeDepthError
from pagebridge.model.media import MediaReference, MediaType, media_type_for_url
from pagebridge.model.node import ElementNode

logger = logging.getLogger(__name__)

_CSS_URL = re.compile(r"""url\(\s*(['"]?)([^'")]+)\1\s*\)""", re.IGNORECASE)
_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")


@dataclass(frozen=True)
class _MediaPath:
    keys: tuple[str, ...]
    type: MediaType
    # Plain links only count as media when the extension says so
    media_only: bool = False


_MEDIA_PATHS: tuple[_MediaPath, ...] = (
    _MediaPath(("image", "url"), MediaType.IMAGE),
    _MediaPath(("background_image", "url"), MediaType.BACKGROUND_IMAGE),
    _MediaPath(("background_video_link",), MediaType.VIDEO),
    _MediaPath(("video_link",), MediaType.VIDEO),
    _MediaPath(("external_link", "url"), MediaType.LINK),
    _MediaPath(("link", "url"), MediaType.LINK),
    _MediaPath(("url",), MediaType.LINK, media_only=True),
)

_CSS_KEYS = ("_custom_css", "custom_css")


def _get_path(settings: dict[str, Any], keys: tuple[str, ...]) -> Any:
    value: Any = settings
    for key in keys:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def _set_path(settings: dict[str, Any], keys: tuple[str, ...], new_value: Any) -> None:
    target = settings
    for key in keys[:-1]:
        target = target[key]
    target[keys[-1]] = new_value


def collect_media(tree: ElementNode) -> list[MediaReference]:
    """Collect media referenced by a tree's settings and rendered markup.

    References are de-duplicated by URL, first occurrence wins.
    """
    found: list[MediaReference] = []
    seen: set[str] = set()

    def add(ref: MediaReference) -> None:
        if ref.url and ref.url not in seen:
            seen.add(ref.url)
            found.append(ref)

    for node, _ in tree.walk():
        for ref in _settings_media(node):
            add(ref)
        if node.rendered_content:
            for ref in _markup_media(node.id, node.rendered_content):
                add(ref)
    return found


def _settings_media(node: ElementNode) -> list[MediaReference]:
    refs: list[MediaReference] = []
    for spec in _MEDIA_PATHS:
        url = _get_path(node.settings, spec.keys)
        if not isinstance(url, str) or not url.strip():
            continue
        media_type = spec.type
        if spec.type is MediaType.LINK:
            media_type = media_type_for_url(url)
            if spec.media_only and media_type is MediaType.LINK:
                continue
        ref = MediaReference(
            id=f"{node.id}-{len(refs)}",
            url=url.strip(),
            type=media_type,
            path=".".join((node.id, "settings", *spec.keys)),
        )
        if spec.keys[0] == "image":
            image = node.settings.get("image")
            if isinstance(image, dict):
                if isinstance(image.get("alt"), str):
                    ref.alt = image["alt"]
                if image.get("id") not in (None, ""):
                    ref.id = str(image["id"])
        refs.append(ref)

    for key in _CSS_KEYS:
        css = node.settings.get(key)
        if isinstance(css, str):
            for match in _CSS_URL.finditer(css):
                refs.append(MediaReference(
                    id=f"{node.id}-{len(refs)}",
                    url=match.group(2).strip(),
                    type=MediaType.CSS_BACKGROUND,
                    path=f"{node.id}.settings.{key}",
                ))
    return refs


def _markup_media(node_id: str, html: str) -> list[MediaReference]:
    soup = BeautifulSoup(html, "html.parser")
    refs: list[MediaReference] = []

    for img in soup.find_all("img"):
        alt = img.get("alt") or ""
        for attr in ("src", "data-src", "data-lazy-src"):
            url = img.get(attr)
            if url:
                refs.append(MediaReference(
                    id=f"{node_id}-r{len(refs)}",
                    url=url.strip(),
                    type=MediaType.IMAGE,
                    alt=alt,
                    width=_int_attr(img, "width"),
                    height=_int_attr(img, "height"),
                    path=f"{node_id}.renderedContent",
                ))
        srcset = img.get("srcset")
        if srcset:
            for candidate in srcset.split(","):
                url = candidate.strip().split(" ", 1)[0]
                if url:
                    refs.append(MediaReference(
                        id=f"{node_id}-r{len(refs)}",
                        url=url,
                        type=MediaType.IMAGE,
                        alt=alt,
                        path=f"{node_id}.renderedContent",
                    ))

    for tag in soup.find_all(style=True):
        for match in _CSS_URL.finditer(tag["style"]):
            refs.append(MediaReference(
                id=f"{node_id}-r{len(refs)}",
                url=match.group(2).strip(),
                type=MediaType.BACKGROUND_IMAGE,
                path=f"{node_id}.renderedContent",
            ))
    return refs


def _int_attr(tag: Tag, name: str) -> int | None:
    value = tag.get(name)
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


def make_absolute(url: str, source_origin: str) -> str:
    """Resolve a relative or protocol-relative URL against the source origin.

    Absolute URLs, anchors and other schemes (mailto:, data:, ...) are
    returned unchanged; judging those is the sanitizer's job.
    """
    stripped = url.strip()
    if not stripped or stripped.startswith("#") or not source_origin:
        return url
    if stripped.startswith("//"):
        scheme = urlparse(source_origin).scheme or "https"
        return f"{scheme}:{stripped}"
    if _SCHEME.match(stripped):
        return url
    return urljoin(source_origin.rstrip("/") + "/", stripped)


def is_external(url: str, source_origin: str) -> bool:
    """True when url points at a different host than the source origin."""
    try:
        host = urlparse(url).hostname
        origin_host = urlparse(source_origin).hostname
    except ValueError:
        return True
    if host is None:
        return False
    return host != origin_host


def absolutize_media(
    tree: ElementNode, source_origin: str
) -> tuple[ElementNode, list[MediaReference]]:
    """Rewrite media URLs in a tree to absolute form.

    Returns:
        (new_tree, media) where media is the collected side-list with
        original_url and is_external filled in.
    """
    originals: dict[str, str] = {}
    new_tree = _absolutize_node(tree, source_origin, originals, 0)
    media = collect_media(new_tree)
    for ref in media:
        absolute = make_absolute(ref.url, source_origin)
        if absolute != ref.url:
            originals.setdefault(absolute, ref.url)
            ref.url = absolute
        if ref.url in originals:
            ref.original_url = originals[ref.url]
        ref.is_external = is_external(ref.url, source_origin)
    logger.debug("Collected %d media references from %s", len(media), source_origin)
    return new_tree, media


def _absolutize_node(
    node: ElementNode, source_origin: str, originals: dict[str, str], depth: int
) -> ElementNode:
    if depth > MAX_TREE_DEPTH:
        raise TreeDepthError(depth, MAX_TREE_DEPTH)

    settings = copy.deepcopy(node.settings)
    for spec in _MEDIA_PATHS:
        url = _get_path(settings, spec.keys)
        if isinstance(url, str) and url.strip():
            absolute = make_absolute(url, source_origin)
            if absolute != url:
                originals[absolute] = url
                _set_path(settings, spec.keys, absolute)

    for key in _CSS_KEYS:
        css = settings.get(key)
        if isinstance(css, str):
            settings[key] = _CSS_URL.sub(
                lambda m: f"url({m.group(1)}{make_absolute(m.group(2), source_origin)}{m.group(1)})",
                css,
            )

    children = tuple(
        _absolutize_node(child, source_origin, originals, depth + 1)
        for child in node.children
    )
    return node.replace(settings=settings, children=children)
