"""Tests for scraping settings from rendered markup."""

from pagebridge.extract.scrape import scrape_rendered


class TestScrapeRendered:
    """Tests for scrape_rendered()."""

    def test_heading_with_link(self) -> None:
        settings = scrape_rendered(
            "heading", '<h4 class="title"><a href="/x">  Linked  </a></h4>'
        )
        assert settings == {"title": "Linked", "header_size": "h4", "link": {"url": "/x"}}

    def test_button(self) -> None:
        settings = scrape_rendered(
            "button",
            '<a href="https://a.example" class="elementor-button">'
            '<span class="elementor-button-text">Buy</span></a>',
        )
        assert settings == {"text": "Buy", "link": {"url": "https://a.example"}}

    def test_image_with_lazy_src_and_caption(self) -> None:
        settings = scrape_rendered(
            "image",
            '<figure><img data-lazy-src="/lazy.png" alt="L">'
            "<figcaption>Caption</figcaption></figure>",
        )
        assert settings == {"image": {"url": "/lazy.png", "alt": "L"}, "caption": "Caption"}

    def test_text_editor_keeps_markup(self) -> None:
        settings = scrape_rendered(
            "text-editor", '<div class="elementor-text-editor"><p>One <b>two</b></p></div>'
        )
        assert settings == {"editor": "<p>One <b>two</b></p>"}

    def test_unknown_family(self) -> None:
        assert scrape_rendered("countdown", "<div>12:00</div>") == {}

    def test_heading_without_heading_tag(self) -> None:
        assert scrape_rendered("heading", "<p>not a heading</p>") == {}
