"""Tests for markup sanitization."""

import pytest

from pagebridge.sanitize.html import looks_like_markup, neutralize_dangerous_tags, sanitize_html


class TestSanitizeHtml:
    """Tests for sanitize_html()."""

    def test_plain_text_unchanged(self) -> None:
        assert sanitize_html("Just a heading") == "Just a heading"

    def test_safe_markup_unchanged(self) -> None:
        markup = '<p class="lead">Hello <strong>world</strong> <a href="/about">more</a></p>'
        assert sanitize_html(markup) == markup

    def test_script_removed(self) -> None:
        assert sanitize_html("<script>alert(1)</script><p>ok</p>") == "<p>ok</p>"

    def test_nested_dangerous_tags(self) -> None:
        cleaned = sanitize_html("<object><embed src='x'><iframe></iframe></object><b>b</b>")
        assert cleaned == "<b>b</b>"

    def test_event_handlers_removed(self) -> None:
        assert sanitize_html('<p onclick="steal()" OnMouseOver="x()">Hi</p>') == "<p>Hi</p>"

    def test_script_urls_removed(self) -> None:
        assert sanitize_html('<a href="javascript:alert(1)">x</a>') == "<a>x</a>"

    def test_entity_encoded_url_removed(self) -> None:
        assert sanitize_html('<a href="jav&#x09;ascript:alert(1)">x</a>') == "<a>x</a>"

    def test_srcset_with_bad_candidate_removed(self) -> None:
        cleaned = sanitize_html('<img src="/a.png" srcset="/a.png 1x, javascript:alert(1) 2x">')
        assert "srcset" not in cleaned
        assert 'src="/a.png"' in cleaned

    def test_style_attribute_cleaned(self) -> None:
        cleaned = sanitize_html('<div style="color: red; background: url(javascript:alert(1))">x</div>')
        assert "javascript" not in cleaned
        assert "color: red" in cleaned

    def test_script_scheme_in_other_attribute(self) -> None:
        cleaned = sanitize_html('<svg><animate attributeName="href" values="javascript:alert(1)"></animate></svg>')
        assert "javascript" not in cleaned

    def test_comments_removed(self) -> None:
        assert sanitize_html("<p>a<!-- <script>x</script> --></p>") == "<p>a</p>"

    def test_spelled_out_tag_escaped(self) -> None:
        cleaned = sanitize_html("<scr<script>ipt>alert(1)</script>")
        assert "<script" not in cleaned.lower()

    @pytest.mark.parametrize(
        "markup",
        [
            "<script>alert(1)</script><p>ok</p>",
            '<p onclick="x()">Hi</p>',
            "<scr<script>ipt>alert(1)</script>",
            '<img src="/a.png" srcset="/a.png 1x, /b.png 2x">',
            "Plain & simple",
        ],
    )
    def test_idempotent(self, markup: str) -> None:
        once = sanitize_html(markup)
        assert sanitize_html(once) == once


class TestHelpers:
    """Tests for the markup helper functions."""

    def test_looks_like_markup(self) -> None:
        assert looks_like_markup("<b>x</b>")
        assert not looks_like_markup("no tags here")

    def test_neutralize(self) -> None:
        assert neutralize_dangerous_tags("x <script> y") == "x &lt;script&gt; y"
        assert neutralize_dangerous_tags("x <b> y") == "x <b> y"
