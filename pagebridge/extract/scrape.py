"""Recover widget settings from rendered markup.

Used when a widget carries no structured settings (or they are unreadable).
Only the common widget families are understood; anything else yields {}.
"""

from __future__ import annotations

import re
from typing import Any

from bs4 import BeautifulSoup, Tag

_WP_IMAGE_ID = re.compile(r"wp-image-(\d+)")
_HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]


def scrape_rendered(widget_type: str, html: str) -> dict[str, Any]:
    """Scrape settings for a widget from its rendered inner markup."""
    soup = BeautifulSoup(html, "html.parser")
    family = widget_type.lower()

    if "heading" in family:
        return _scrape_heading(soup)
    if "button" in family:
        return _scrape_button(soup)
    if "image" in family:
        return _scrape_image(soup)
    if "text" in family:
        return _scrape_text(soup)
    return {}


def _scrape_heading(soup: BeautifulSoup) -> dict[str, Any]:
    heading = soup.find(_HEADING_TAGS)
    if not isinstance(heading, Tag):
        return {}
    settings: dict[str, Any] = {
        "title": heading.get_text(strip=True),
        "header_size": heading.name,
    }
    link = heading.find("a", href=True)
    if isinstance(link, Tag):
        settings["link"] = {"url": link["href"]}
    return settings


def _scrape_button(soup: BeautifulSoup) -> dict[str, Any]:
    link = soup.find("a")
    label = soup.select_one(".elementor-button-text")
    text_source = label if label is not None else link
    settings: dict[str, Any] = {}
    if isinstance(text_source, Tag):
        settings["text"] = text_source.get_text(strip=True)
    if isinstance(link, Tag) and link.get("href"):
        settings["link"] = {"url": link["href"]}
    return settings


def _scrape_image(soup: BeautifulSoup) -> dict[str, Any]:
    img = soup.find("img")
    if not isinstance(img, Tag):
        return {}
    url = img.get("src") or img.get("data-src") or img.get("data-lazy-src") or ""
    image: dict[str, Any] = {"url": url, "alt": img.get("alt") or ""}
    classes = " ".join(img.get("class") or [])
    match = _WP_IMAGE_ID.search(classes)
    if match:
        image["id"] = int(match.group(1))
    settings: dict[str, Any] = {"image": image}
    caption = soup.find("figcaption")
    if isinstance(caption, Tag):
        settings["caption"] = caption.get_text(strip=True)
    return settings


def _scrape_text(soup: BeautifulSoup) -> dict[str, Any]:
    wrapper = soup.select_one(".elementor-text-editor")
    target = wrapper if wrapper is not None else soup
    editor = target.decode_contents().strip()
    return {"editor": editor} if editor else {}
