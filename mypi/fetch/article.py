"""
Readability-based article extraction.

Alternative to the RSC parser for server-rendered pages: strip the page
chrome, let readability pick the main content block, convert it to Markdown.
"""

import logging
import re
from typing import Optional

from bs4 import BeautifulSoup
from markdownify import markdownify
from readability import Document

from mypi.core.config import settings
from mypi.fetch.base import ExtractionOutcome

logger = logging.getLogger(__name__)

# Readability falls back to this when a page has no <title>
_NO_TITLE = "[no-title]"

_ALWAYS_DROP = ["script", "style", "noscript", "template", "svg", "canvas", "iframe"]
# Page chrome, kept only when nested inside the article itself
_CHROME = ["nav", "header", "footer", "aside", "form", "dialog"]

_NOISE_SELECTORS = [
    '[class*="cookie" i]', '[id*="cookie" i]',
    '[class*="consent" i]', '[id*="consent" i]',
    '[class*="advert" i]', '[id*="advert" i]',
    '[class*="banner" i]', '[id*="banner" i]',
    '.social', '.share', '.newsletter', '.breadcrumbs', '.breadcrumb',
]
# Pages often flag consent state on these, e.g. <body class="cookie-consent-shown">
_NEVER_NOISE = {"html", "body", "main", "article"}


def strip_boilerplate(soup: BeautifulSoup) -> BeautifulSoup:
    """Remove scripts, page chrome and ad/cookie blocks in place."""
    for el in soup.find_all(_ALWAYS_DROP):
        el.decompose()

    for el in soup.find_all(_CHROME):
        if el.decomposed:
            continue
        if el.find_parent(["article", "main"]) is None:
            el.decompose()

    for sel in _NOISE_SELECTORS:
        for el in soup.select(sel):
            if el.decomposed or el.name in _NEVER_NOISE:
                continue
            el.decompose()

    return soup


def _fallback_title(soup: BeautifulSoup) -> Optional[str]:
    h1 = soup.find("h1")
    if h1:
        title = h1.get_text(" ", strip=True)
        return title or None
    return None


def html_to_markdown(html: str) -> str:
    markdown = markdownify(html, heading_style="ATX", bullets="-")
    markdown = re.sub(r"[ \t]+\n", "\n", markdown)
    return re.sub(r"\n{3,}", "\n\n", markdown).strip()


def extract_article(html: str, source_url: str) -> ExtractionOutcome:
    """
    Find the main article in an HTML page and render it as Markdown.

    Returns TEXT ("# <title>" followed by the Markdown body) when both a
    title and a content block of more than MIN_ARTICLE_CHARS characters are
    found, NOT_APPLICABLE when the page has no such block, and FAILED when
    the markup could not be parsed at all. Never raises.
    """
    if not html or not html.strip():
        return ExtractionOutcome.not_applicable("empty document")

    soup = BeautifulSoup(html, "html.parser")
    try:
        strip_boilerplate(soup)
        cleaned = str(soup)

        try:
            doc = Document(cleaned, url=source_url)
            content_html = doc.summary(html_partial=True)
            title = doc.short_title()
        except Exception as e:
            logger.debug("Readability could not parse %s: %s", source_url, e)
            return ExtractionOutcome.failed(f"readability: {e}")

        content_soup = BeautifulSoup(content_html, "html.parser")
        content_text = content_soup.get_text(" ", strip=True)
        content_soup.decompose()
        if len(content_text) <= settings.MIN_ARTICLE_CHARS:
            return ExtractionOutcome.not_applicable("no substantial content block")

        if not title or title == _NO_TITLE:
            title = _fallback_title(soup)
        if not title:
            return ExtractionOutcome.not_applicable("no title")

        markdown = html_to_markdown(content_html)
        return ExtractionOutcome.text(f"# {title.strip()}\n\n{markdown}")
    finally:
        soup.decompose()
