"""Element extraction from builder models and rendered markup."""
from pagebridge.extract.extractor import Extractor
from pagebridge.extract.handles import (
    HtmlDocumentLocator,
    HtmlHandle,
    Locator,
    ModelHandle,
    NativeHandle,
)
from pagebridge.extract.media import absolutize_media, collect_media, make_absolute

__all__ = [
    "Extractor",
    "NativeHandle",
    "Locator",
    "ModelHandle",
    "HtmlHandle",
    "HtmlDocumentLocator",
    "collect_media",
    "absolutize_media",
    "make_absolute",
]
