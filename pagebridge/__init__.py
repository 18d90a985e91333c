"""pagebridge: move page-builder elements between sites through the clipboard."""

__version__ = "0.1.0"
