"""Tests for CSS sanitization."""

import pytest

from pagebridge.sanitize.css import sanitize_css


class TestSanitizeCss:
    """Tests for sanitize_css()."""

    def test_plain_css_unchanged(self) -> None:
        css = "selector { color: red; padding: 10px; background: url(/bg.png); }"
        assert sanitize_css(css) == css

    def test_icon_font_escape_kept(self) -> None:
        css = 'selector::before { content: "\\f101"; }'
        assert sanitize_css(css) == css

    @pytest.mark.parametrize(
        ("css", "forbidden"),
        [
            ("background: url(javascript:alert(1))", "javascript"),
            ("background: url('data:text/html,x')", "data:"),
            ("width: expression(alert(1))", "expression"),
            ("@import url(evil.css); color: red", "@import"),
            ("behavior: url(x.htc)", "behavior"),
            ("-moz-binding: url(x.xml#xss)", "-moz-binding"),
            ("color: red; x: vbscript:msgbox(1)", "vbscript"),
            ("width: exp/**/ression(alert(1))", "expression"),
            ("width: \\65 xpression(alert(1))", "expression"),
            ("background: javajavascript:script:alert(1)", "javascript"),
        ],
    )
    def test_dangerous_removed(self, css: str, forbidden: str) -> None:
        assert forbidden not in sanitize_css(css).lower()

    def test_safe_parts_survive(self) -> None:
        cleaned = sanitize_css("@import url(evil.css); color: red")
        assert "color: red" in cleaned

    def test_comments_removed(self) -> None:
        assert sanitize_css("color: red; /* note */") == "color: red; "

    @pytest.mark.parametrize(
        "css",
        [
            "width: exp/**/ression(alert(1))",
            "background: javajavascript:script:alert(1)",
            "width: \\65 xpression(alert(1))",
            "color: blue",
        ],
    )
    def test_idempotent(self, css: str) -> None:
        once = sanitize_css(css)
        assert sanitize_css(once) == once
