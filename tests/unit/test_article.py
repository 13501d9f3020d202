import pytest
from bs4 import BeautifulSoup

from mypi.fetch.article import extract_article, strip_boilerplate, html_to_markdown
from mypi.fetch.base import OutcomeKind
from conftest import ARTICLE_HTML, NAV_ONLY_HTML

class TestExtractArticle:
    """Unit tests for readability extraction"""

    def test_article_becomes_markdown_with_title(self):
        """A real article is converted and prefixed with '# <title>'"""
        outcome = extract_article(ARTICLE_HTML, "https://blog.example.com/posts/tests")
        assert outcome.is_text
        assert outcome.content.startswith("# Why Regression Tests Matter\n\n")
        assert "Regression tests pin down behaviour" in outcome.content
        assert "ship changes with more confidence" in outcome.content

    def test_navigation_only_is_not_applicable(self):
        """Pages without a substantial content block are skipped, not failed"""
        outcome = extract_article(NAV_ONLY_HTML, "https://example.com/")
        assert outcome.kind is OutcomeKind.NOT_APPLICABLE
        assert outcome.content == ""

    @pytest.mark.parametrize("html", ["", "   ", "\n"])
    def test_empty_document(self, html):
        """Empty input never reaches readability"""
        assert extract_article(html, "https://example.com/").kind is OutcomeKind.NOT_APPLICABLE

    def test_garbage_does_not_raise(self):
        """Non-HTML input is reported, never raised"""
        outcome = extract_article("\x00\x01 not html at all <<<>>>", "https://example.com/")
        assert not outcome.is_text

class TestBoilerplate:
    """Unit tests for page chrome removal"""

    def test_top_level_chrome_removed(self):
        """nav/header/footer outside the article are dropped"""
        soup = BeautifulSoup(
            "<body><header>Site</header><nav>Menu</nav><main><p>Body</p></main><footer>F</footer></body>",
            "html.parser",
        )
        strip_boilerplate(soup)
        assert soup.get_text(strip=True) == "Body"

    def test_chrome_inside_article_kept(self):
        """An article's own header is content"""
        soup = BeautifulSoup(
            "<article><header><h1>Title</h1></header><p>Text</p></article>",
            "html.parser",
        )
        strip_boilerplate(soup)
        assert soup.find("h1") is not None

    def test_cookie_flag_on_body_does_not_remove_page(self):
        """Consent markers on <body> must not wipe the document"""
        soup = BeautifulSoup(
            '<body class="cookie-consent-pending"><div id="cookie-banner">Accept?</div><p>Text</p></body>',
            "html.parser",
        )
        strip_boilerplate(soup)
        assert soup.get_text(strip=True) == "Text"

    def test_markdown_uses_atx_headings(self):
        """Headings convert to '#' style"""
        markdown = html_to_markdown("<h2>Section</h2><p>Para</p>")
        assert markdown.startswith("## Section")
        assert "Para" in markdown
