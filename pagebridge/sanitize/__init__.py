"""Sanitization of untrusted element trees."""
from pagebridge.sanitize.css import sanitize_css
from pagebridge.sanitize.html import sanitize_html
from pagebridge.sanitize.sanitizer import SanitizationDegraded, Sanitizer, SanitizeReport
from pagebridge.sanitize.urls import is_safe_url, sanitize_url

__all__ = [
    "Sanitizer",
    "SanitizeReport",
    "SanitizationDegraded",
    "sanitize_css",
    "sanitize_html",
    "sanitize_url",
    "is_safe_url",
]
