"""Map add-on widgets onto the builder's standard widgets.

Themes and add-on plugins register their own widget types (``wd_video``,
``pix-img-box``, ``ekit-testimonial`` ...). A target site without the same
add-on cannot render them, so before pasting each non-standard widget is
offered to a registry of converters. Specialized converters are tried first,
then broad pattern families, then a plain HTML widget built from the
rendered markup. A widget nothing can convert is left as it is.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from fnmatch import fnmatchcase
from typing import Any

from bs4 import BeautifulSoup, Tag

from pagebridge.model.node import ElementKind, ElementNode

logger = logging.getLogger(__name__)

# Widgets shipped with the builder itself (free and pro)
STANDARD_WIDGETS: frozenset[str] = frozenset({
    "heading", "image", "text-editor", "video", "button", "divider", "spacer",
    "google_maps", "icon", "image-box", "icon-box", "star-rating", "image-carousel",
    "image-gallery", "icon-list", "counter", "progress", "testimonial", "tabs",
    "accordion", "toggle", "social-icons", "alert", "audio", "shortcode", "html",
    "menu-anchor", "sidebar", "read-more", "text-path", "animated-headline",
    "price-list", "price-table", "flip-box", "call-to-action", "countdown",
    "form", "login", "posts", "portfolio", "gallery", "slides", "nav-menu",
    "search-form", "sitemap", "breadcrumbs", "author-box", "post-info",
    "post-title", "post-excerpt", "post-content", "post-navigation",
    "facebook-button", "facebook-comments", "facebook-embed", "facebook-page",
    "woocommerce-menu-cart", "woocommerce-breadcrumb", "woocommerce-products",
    "theme-site-logo", "theme-site-title", "theme-page-title", "theme-post-title",
})

DEFAULT_PRIORITY = 10
PATTERN_PRIORITY = 5
FALLBACK_PRIORITY = 0

_HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]


def _first_string(settings: Mapping[str, Any], *keys: str) -> str | None:
    """First non-empty string among keys. A {"url": ...} mapping counts as its url."""
    for key in keys:
        value = settings.get(key)
        if isinstance(value, Mapping):
            value = value.get("url")
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _soup(node: ElementNode) -> BeautifulSoup | None:
    if not node.rendered_content:
        return None
    return BeautifulSoup(node.rendered_content, "html.parser")


def _text(tag: Any) -> str:
    return tag.get_text(" ", strip=True) if isinstance(tag, Tag) else ""


def _attr(tag: Any, *names: str) -> str | None:
    if not isinstance(tag, Tag):
        return None
    for name in names:
        value = tag.get(name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


class WidgetConverter(ABC):
    """Turns one add-on widget into a standard widget.

    Subclasses set ``patterns`` (case-insensitive shell-style globs matched
    against the widget type) and ``target``, and implement ``build_settings``.
    """

    patterns: tuple[str, ...] = ()
    excluded: tuple[str, ...] = ()
    target: str = ""

    @property
    def name(self) -> str:
        return type(self).__name__

    def matches(self, widget_type: str) -> bool:
        lowered = widget_type.lower()
        if any(fnmatchcase(lowered, pattern) for pattern in self.excluded):
            return False
        return any(fnmatchcase(lowered, pattern) for pattern in self.patterns)

    def can_convert(self, node: ElementNode) -> bool:
        return (
            node.kind is ElementKind.WIDGET
            and node.widget_type is not None
            and self.matches(node.widget_type)
        )

    def target_for(self, node: ElementNode) -> str:
        return self.target

    @abstractmethod
    def build_settings(self, node: ElementNode) -> dict[str, Any] | None:
        """Settings for the standard widget, or None if the data is missing."""

    def convert(self, node: ElementNode) -> ElementNode | None:
        settings = self.build_settings(node)
        if settings is None:
            return None
        assert node.widget_type is not None
        marker = "converted-from-" + node.widget_type.replace(".", "-")
        existing = node.settings.get("_css_classes")
        if isinstance(existing, str) and existing.strip():
            marker = f"{existing.strip()} {marker}"
        settings["_css_classes"] = marker
        return ElementNode(
            id=node.id,
            kind=ElementKind.WIDGET,
            widget_type=self.target_for(node),
            settings=settings,
            is_inner=node.is_inner,
        )


# --- specialized converters ---------------------------------------------


class VideoConverter(WidgetConverter):
    """YouTube, Vimeo and self-hosted players."""

    patterns = ("*video*", "*player*", "*youtube*", "*vimeo*")
    target = "video"

    def build_settings(self, node: ElementNode) -> dict[str, Any] | None:
        url = _first_string(
            node.settings,
            "video_url", "youtube_url", "vimeo_url", "hosted_url", "url", "src", "video",
        )
        if url is None:
            url = self._url_from_markup(node)
        if url is None:
            return None

        lowered = url.lower()
        if "youtube.com" in lowered or "youtu.be" in lowered:
            settings: dict[str, Any] = {"video_type": "youtube", "youtube_url": url}
            prefix = "youtube_"
        elif "vimeo.com" in lowered:
            settings = {"video_type": "vimeo", "vimeo_url": url}
            prefix = "vimeo_"
        else:
            settings = {"video_type": "hosted", "hosted_url": {"url": url}}
            prefix = ""

        for option in ("autoplay", "mute", "loop"):
            if node.settings.get(option) in (True, "yes", "true", 1):
                settings[prefix + option] = "yes"
        return settings

    @staticmethod
    def _url_from_markup(node: ElementNode) -> str | None:
        soup = _soup(node)
        if soup is None:
            return None
        for iframe in soup.find_all("iframe"):
            src = _attr(iframe, "src", "data-src")
            if src and ("youtu" in src or "vimeo.com" in src):
                return src
        for tag in soup.find_all(["video", "source"]):
            src = _attr(tag, "src")
            if src:
                return src
        holder = soup.find(attrs={"data-video-url": True}) or soup.find(attrs={"data-url": True})
        return _attr(holder, "data-video-url", "data-url")


class GalleryConverter(WidgetConverter):
    """Image grids and carousels."""

    patterns = ("*gallery*", "*image-grid*", "*portfolio-grid*", "*images*", "*carousel*")
    target = "image-gallery"

    def target_for(self, node: ElementNode) -> str:
        assert node.widget_type is not None
        return "image-carousel" if "carousel" in node.widget_type.lower() else "image-gallery"

    def build_settings(self, node: ElementNode) -> dict[str, Any] | None:
        images = self._images_from_settings(node.settings) or self._images_from_markup(node)
        if not images:
            return None
        key = "carousel" if self.target_for(node) == "image-carousel" else "wp_gallery"
        settings: dict[str, Any] = {key: images}
        columns = node.settings.get("columns") or node.settings.get("gallery_columns")
        if isinstance(columns, (int, str)) and str(columns).isdigit():
            settings["gallery_columns"] = str(columns)
        return settings

    @staticmethod
    def _images_from_settings(settings: Mapping[str, Any]) -> list[dict[str, Any]]:
        for key in ("gallery", "wp_gallery", "images", "photos", "carousel"):
            raw = settings.get(key)
            if not isinstance(raw, list):
                continue
            images = []
            for item in raw:
                if isinstance(item, str) and item.strip():
                    images.append({"url": item.strip()})
                elif isinstance(item, Mapping):
                    url = _first_string(item, "url", "src", "image")
                    if url:
                        image: dict[str, Any] = {"url": url}
                        if isinstance(item.get("id"), (int, str)) and item.get("id") != "":
                            image["id"] = item["id"]
                        images.append(image)
            if images:
                return images
        return []

    @staticmethod
    def _images_from_markup(node: ElementNode) -> list[dict[str, Any]]:
        soup = _soup(node)
        if soup is None:
            return []
        images = []
        for img in soup.find_all("img"):
            url = _attr(img, "data-src", "data-lazy-src", "src")
            if url and not url.startswith("data:"):
                images.append({"url": url})
        return images


class IconListConverter(WidgetConverter):
    """Feature and check lists."""

    patterns = ("*icon-list*", "*icon_list*", "*feature-list*", "*feature_list*", "*checklist*")
    excluded = ("*icon-box*", "*icon_box*")
    target = "icon-list"

    def build_settings(self, node: ElementNode) -> dict[str, Any] | None:
        items = self._items_from_settings(node.settings) or self._items_from_markup(node)
        if not items:
            return None
        return {"icon_list": items}

    @staticmethod
    def _items_from_settings(settings: Mapping[str, Any]) -> list[dict[str, Any]]:
        for key in ("icon_list", "items", "list", "features"):
            raw = settings.get(key)
            if not isinstance(raw, list):
                continue
            items = []
            for entry in raw:
                if isinstance(entry, str) and entry.strip():
                    items.append({"text": entry.strip()})
                elif isinstance(entry, Mapping):
                    text = _first_string(entry, "text", "title", "label", "content")
                    if text:
                        item: dict[str, Any] = {"text": text}
                        link = _first_string(entry, "link", "url")
                        if link:
                            item["link"] = {"url": link}
                        items.append(item)
            if items:
                return items
        return []

    @staticmethod
    def _items_from_markup(node: ElementNode) -> list[dict[str, Any]]:
        soup = _soup(node)
        if soup is None:
            return []
        items = []
        for li in soup.find_all("li"):
            text = _text(li)
            if not text:
                continue
            item: dict[str, Any] = {"text": text}
            href = _attr(li.find("a"), "href")
            if href:
                item["link"] = {"url": href}
            items.append(item)
        return items


class TestimonialConverter(WidgetConverter):
    """Quotes with an author."""

    patterns = ("*testimonial*", "*review*", "*quote*")
    target = "testimonial"

    def build_settings(self, node: ElementNode) -> dict[str, Any] | None:
        s = node.settings
        content = _first_string(s, "testimonial_content", "content", "quote", "text")
        name = _first_string(s, "testimonial_name", "name", "author")
        job = _first_string(s, "testimonial_job", "job", "position", "role")
        image = _first_string(s, "testimonial_image", "image", "avatar")

        soup = _soup(node)
        if soup is not None:
            if content is None:
                content = _text(soup.find("blockquote")) or _text(soup.find("p")) or None
            if name is None:
                name = _text(soup.find("cite")) or _text(soup.select_one("[class*=name]")) or None
            if image is None:
                image = _attr(soup.find("img"), "data-src", "src")

        if not content:
            return None
        settings: dict[str, Any] = {"testimonial_content": content}
        if name:
            settings["testimonial_name"] = name
        if job:
            settings["testimonial_job"] = job
        if image:
            settings["testimonial_image"] = {"url": image}
        return settings


class AccordionConverter(WidgetConverter):
    """Accordions, toggles, tabs and FAQ blocks."""

    patterns = ("*accordion*", "*toggle*", "*tabs*", "*collapse*", "*faq*")
    target = "accordion"

    def target_for(self, node: ElementNode) -> str:
        assert node.widget_type is not None
        lowered = node.widget_type.lower()
        if "tabs" in lowered:
            return "tabs"
        if "toggle" in lowered:
            return "toggle"
        return "accordion"

    def build_settings(self, node: ElementNode) -> dict[str, Any] | None:
        tabs = self._tabs_from_settings(node.settings) or self._tabs_from_markup(node)
        if not tabs:
            return None
        return {"tabs": tabs}

    @staticmethod
    def _tabs_from_settings(settings: Mapping[str, Any]) -> list[dict[str, str]]:
        for key in ("tabs", "items", "faqs", "panels"):
            raw = settings.get(key)
            if not isinstance(raw, list):
                continue
            tabs = []
            for entry in raw:
                if not isinstance(entry, Mapping):
                    continue
                title = _first_string(entry, "tab_title", "title", "question", "heading")
                body = _first_string(entry, "tab_content", "content", "answer", "text")
                if title:
                    tabs.append({"tab_title": title, "tab_content": body or ""})
            if tabs:
                return tabs
        return []

    @staticmethod
    def _tabs_from_markup(node: ElementNode) -> list[dict[str, str]]:
        soup = _soup(node)
        if soup is None:
            return []
        tabs = []
        for details in soup.find_all("details"):
            summary = details.find("summary")
            title = _text(summary)
            if isinstance(summary, Tag):
                summary.extract()
            if title:
                tabs.append({"tab_title": title, "tab_content": details.decode_contents().strip()})
        if tabs:
            return tabs
        for term in soup.find_all("dt"):
            definition = term.find_next_sibling("dd")
            title = _text(term)
            if title:
                body = definition.decode_contents().strip() if isinstance(definition, Tag) else ""
                tabs.append({"tab_title": title, "tab_content": body})
        return tabs


# --- pattern families -----------------------------------------------------


class ImagePattern(WidgetConverter):
    patterns = ("*img*", "*image*")
    target = "image"

    def build_settings(self, node: ElementNode) -> dict[str, Any] | None:
        s = node.settings
        url = _first_string(s, "image", "img", "src")
        alt = ""
        image = s.get("image")
        if isinstance(image, Mapping) and isinstance(image.get("alt"), str):
            alt = image["alt"]
        if url is None:
            soup = _soup(node)
            img = soup.find("img") if soup is not None else None
            url = _attr(img, "data-src", "data-lazy-src", "src")
            alt = alt or _attr(img, "alt") or ""
        if url is None:
            return None
        converted: dict[str, Any] = {"url": url, "alt": alt}
        if isinstance(image, Mapping) and isinstance(image.get("id"), int):
            converted["id"] = image["id"]
        return {"image": converted, "image_size": "full"}


class HeadingPattern(WidgetConverter):
    patterns = ("*heading*", "*title*")
    target = "heading"

    def build_settings(self, node: ElementNode) -> dict[str, Any] | None:
        s = node.settings
        title = _first_string(s, "title", "heading")
        tag = _first_string(s, "header_size", "tag")
        if title is None:
            soup = _soup(node)
            heading = soup.find(_HEADING_TAGS) if soup is not None else None
            if isinstance(heading, Tag):
                title = _text(heading) or None
                tag = heading.name
        if title is None:
            return None
        settings: dict[str, Any] = {
            "title": title,
            "header_size": tag if tag in _HEADING_TAGS + ["div", "span", "p"] else "h2",
        }
        align = _first_string(s, "align")
        if align:
            settings["align"] = align
        return settings


class TextPattern(WidgetConverter):
    patterns = ("*text*", "*content*", "*editor*")
    target = "text-editor"

    def build_settings(self, node: ElementNode) -> dict[str, Any] | None:
        editor = _first_string(node.settings, "editor", "content", "text")
        if editor is None and node.rendered_content and node.rendered_content.strip():
            editor = node.rendered_content.strip()
        return {"editor": editor} if editor else None


class ButtonPattern(WidgetConverter):
    patterns = ("*button*", "*btn*")
    target = "button"

    def build_settings(self, node: ElementNode) -> dict[str, Any] | None:
        s = node.settings
        text = _first_string(s, "text", "button_text", "label")
        link = _first_string(s, "link", "url", "button_link")
        if text is None or link is None:
            soup = _soup(node)
            anchor = soup.find("a") if soup is not None else None
            text = text or _text(anchor) or None
            link = link or _attr(anchor, "href")
        if text is None:
            return None
        settings: dict[str, Any] = {"text": text, "link": {"url": link or ""}}
        align = _first_string(s, "align")
        if align:
            settings["align"] = align
        return settings


class IconPattern(WidgetConverter):
    patterns = ("*icon*",)
    excluded = ("*box*",)
    target = "icon"

    def build_settings(self, node: ElementNode) -> dict[str, Any] | None:
        selected = node.settings.get("selected_icon")
        if isinstance(selected, Mapping) and isinstance(selected.get("value"), str):
            return {"selected_icon": dict(selected), "view": "default"}
        value = _first_string(node.settings, "icon")
        if value is None:
            soup = _soup(node)
            icon = soup.find("i") if soup is not None else None
            classes = icon.get("class") if isinstance(icon, Tag) else None
            value = " ".join(classes) if classes else None
        if not value:
            return None
        return {"selected_icon": {"value": value, "library": ""}, "view": "default"}


class DividerPattern(WidgetConverter):
    patterns = ("*divider*", "*separator*")
    target = "divider"

    def build_settings(self, node: ElementNode) -> dict[str, Any] | None:
        return {"style": "solid", "weight": {"size": 1, "unit": "px"}}


class SpacerPattern(WidgetConverter):
    patterns = ("*spacer*", "*space*")
    target = "spacer"

    def build_settings(self, node: ElementNode) -> dict[str, Any] | None:
        size = node.settings.get("space") or node.settings.get("height")
        if isinstance(size, Mapping):
            size = size.get("size")
        if not isinstance(size, (int, float)) or isinstance(size, bool) or size <= 0:
            size = 50
        return {"space": {"size": size, "unit": "px"}}


class RenderedHtmlFallback(WidgetConverter):
    """Last resort: keep the widget's rendered (already sanitized) markup."""

    patterns = ("*",)
    target = "html"

    def can_convert(self, node: ElementNode) -> bool:
        return super().can_convert(node) and bool(node.rendered_content)

    def build_settings(self, node: ElementNode) -> dict[str, Any] | None:
        if not node.rendered_content:
            return None
        return {"html": node.rendered_content}


# --- registry --------------------------------------------------------------


class ConverterRegistry:
    """Converters ordered by priority; registration order breaks ties."""

    def __init__(self) -> None:
        self._entries: list[tuple[int, int, WidgetConverter]] = []

    def register(self, converter: WidgetConverter, priority: int = DEFAULT_PRIORITY) -> None:
        self._entries.append((priority, len(self._entries), converter))
        self._entries.sort(key=lambda entry: (-entry[0], entry[1]))
        logger.debug("Registered %s with priority %d", converter.name, priority)

    @property
    def converters(self) -> list[WidgetConverter]:
        return [converter for _, _, converter in self._entries]

    def candidates(self, node: ElementNode) -> Iterable[WidgetConverter]:
        return (c for c in self.converters if c.can_convert(node))

    def convert(self, node: ElementNode) -> tuple[ElementNode, WidgetConverter] | None:
        """Convert with the first converter that produces a widget.

        Returns (converted_node, converter), or None when nothing applies.
        """
        for converter in self.candidates(node):
            try:
                converted = converter.convert(node)
            except (TypeError, ValueError, AttributeError) as e:
                logger.warning(
                    "%s failed on widget %s (%s): %s",
                    converter.name, node.id, node.widget_type, e,
                )
                continue
            if converted is not None:
                return converted, converter
        return None


def default_registry() -> ConverterRegistry:
    registry = ConverterRegistry()
    for converter in (
        VideoConverter(),
        GalleryConverter(),
        IconListConverter(),
        TestimonialConverter(),
        AccordionConverter(),
    ):
        registry.register(converter, DEFAULT_PRIORITY)
    for pattern in (
        ImagePattern(),
        HeadingPattern(),
        TextPattern(),
        ButtonPattern(),
        IconPattern(),
        DividerPattern(),
        SpacerPattern(),
    ):
        registry.register(pattern, PATTERN_PRIORITY)
    registry.register(RenderedHtmlFallback(), FALLBACK_PRIORITY)
    return registry
