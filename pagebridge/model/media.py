"""Media references collected alongside a tree."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class MediaType(Enum):
    """What kind of asset a media URL points at."""

    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    BACKGROUND_IMAGE = "background-image"
    CSS_BACKGROUND = "css-background"
    LINK = "link"


_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".bmp", ".ico", ".avif")
_VIDEO_EXTENSIONS = (".mp4", ".webm", ".ogg", ".mov", ".avi", ".m4v")
_AUDIO_EXTENSIONS = (".mp3", ".wav", ".m4a", ".aac", ".flac", ".oga")


def media_type_for_url(url: str, default: MediaType = MediaType.LINK) -> MediaType:
    """Guess a media type from the URL's file extension."""
    path = url.split("?", 1)[0].split("#", 1)[0].lower()
    if path.endswith(_IMAGE_EXTENSIONS):
        return MediaType.IMAGE
    if path.endswith(_VIDEO_EXTENSIONS):
        return MediaType.VIDEO
    if path.endswith(_AUDIO_EXTENSIONS):
        return MediaType.AUDIO
    return default


@dataclass
class MediaReference:
    """A media URL referenced from a tree.

    The list of references travels next to the tree in the payload; nodes
    never embed it. `path` records where in the tree the URL was found,
    e.g. "a1b2c3d4.settings.image.url".
    """

    id: str
    url: str
    type: MediaType
    alt: str = ""
    width: int | None = None
    height: int | None = None
    path: str | None = None
    original_url: str | None = None
    is_external: bool = False

    def to_wire(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "url": self.url,
            "type": self.type.value,
            "alt": self.alt,
        }
        if self.width is not None:
            data["width"] = self.width
        if self.height is not None:
            data["height"] = self.height
        if self.path is not None:
            data["path"] = self.path
        if self.original_url is not None:
            data["originalUrl"] = self.original_url
        if self.is_external:
            data["isExternal"] = True
        return data

    @classmethod
    def from_wire(cls, data: Any) -> MediaReference | None:
        """Parse one wire entry, returning None when it is unusable."""
        if not isinstance(data, dict):
            return None
        url = data.get("url")
        if not isinstance(url, str) or not url:
            return None
        try:
            media_type = MediaType(data.get("type"))
        except ValueError:
            media_type = media_type_for_url(url)
        width = data.get("width")
        height = data.get("height")
        original = data.get("originalUrl")
        path = data.get("path")
        return cls(
            id=str(data.get("id") or ""),
            url=url,
            type=media_type,
            alt=data.get("alt") if isinstance(data.get("alt"), str) else "",
            width=width if isinstance(width, int) and not isinstance(width, bool) else None,
            height=height if isinstance(height, int) and not isinstance(height, bool) else None,
            path=path if isinstance(path, str) else None,
            original_url=original if isinstance(original, str) else None,
            is_external=data.get("isExternal") is True,
        )
