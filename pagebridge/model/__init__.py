"""Element node model."""
from pagebridge.model.media import MediaReference, MediaType, media_type_for_url
from pagebridge.model.node import ElementKind, ElementNode, Value, is_value

__all__ = [
    "ElementKind",
    "ElementNode",
    "Value",
    "is_value",
    "MediaReference",
    "MediaType",
    "media_type_for_url",
]
