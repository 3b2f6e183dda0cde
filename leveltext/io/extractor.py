"""Main-content extraction from fetched article markup.

Responsibilities:
- Locate the main article body with `readability` and convert it into blank-line
  separated paragraphs.
- Apply per-domain overrides that skip extraction or disable segmentation.
- Reject pages whose readable text is too short to translate.

Key types:
- `ContentExtractor`: markup -> `ExtractedContent`.
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup, Comment, Tag
from readability import Document
from readability.readability import Unparseable

from ..errors import ContentTooShortError, ExtractionError
from ..models.datatypes import ExtractedContent
from .domain_policy import DomainPolicy


_NON_CONTENT_TAGS = ("script", "style", "noscript", "svg", "iframe", "template")
_CHROME_TAGS = ("nav", "header", "footer", "aside", "form", "button")
_BLOCK_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6", "p", "li", "blockquote", "pre")
_WHITESPACE = re.compile(r"\s+")


class ContentExtractor:
    """Extract title and paragraph text from HTML markup."""

    def __init__(self, policy: DomainPolicy | None = None, min_content_chars: int = 100) -> None:
        """Initialize the domain policy and minimum readable text length."""

        self.policy = policy if policy is not None else DomainPolicy()
        self.min_content_chars = min_content_chars

    def extract(self, markup: str, url: str) -> ExtractedContent:
        """Extract readable content for `url`.

        Raises:
            ExtractionError: When the markup yields no readable content.
            ContentTooShortError: When readable content is below the minimum.
        """

        rule = self.policy.rule_for(url)
        soup = BeautifulSoup(markup, "html.parser")

        if rule.skip_extraction:
            title = _document_title(soup, fallback_title="")
            text = _strip_active_content(soup)
        else:
            for tag in soup.find_all(_NON_CONTENT_TAGS + _CHROME_TAGS):
                tag.decompose()
            content_root = soup.body if soup.body is not None else soup
            if not content_root.get_text(strip=True):
                raise ExtractionError(f"no readable content found at {url}")
            try:
                document = Document(str(soup), url=url)
                title = _document_title(soup, fallback_title=document.short_title())
                text = _summary_text(document.summary(html_partial=True))
            except Unparseable as exc:
                raise ExtractionError(f"{url}: {exc}") from exc
            if not text:
                raise ExtractionError(f"no readable content found at {url}")

        if len(text) < self.min_content_chars:
            raise ContentTooShortError(len(text), self.min_content_chars)
        return ExtractedContent(
            title=title,
            plain_text=text,
            single_chunk=rule.single_chunk,
            skipped_extraction=rule.skip_extraction,
        )


def _document_title(soup: BeautifulSoup, fallback_title: str) -> str:
    """Return `og:title`, then the shortened or full `<title>`, then the first `h1`."""

    og_title = soup.find("meta", attrs={"property": "og:title"})
    if isinstance(og_title, Tag) and og_title.get("content", "").strip():
        return _collapse(og_title["content"])
    if fallback_title.strip():
        return _collapse(fallback_title)
    if soup.title is not None and soup.title.get_text(strip=True):
        return _collapse(soup.title.get_text())
    heading = soup.find("h1")
    if heading is not None and heading.get_text(strip=True):
        return _collapse(heading.get_text())
    return "Untitled"


def _strip_active_content(soup: BeautifulSoup) -> str:
    """Remove scripts, styles, comments, and inline handlers; keep the rest as markup."""

    for tag in soup.find_all(_NON_CONTENT_TAGS):
        tag.decompose()
    for comment in soup.find_all(string=lambda value: isinstance(value, Comment)):
        comment.extract()
    for tag in soup.find_all(True):
        for attribute in [name for name in tag.attrs if name.lower().startswith("on")]:
            del tag.attrs[attribute]
    body = soup.body if soup.body is not None else soup
    return str(body).strip()


def _summary_text(summary_html: str) -> str:
    """Convert the readability summary into blank-line separated block text."""

    root = BeautifulSoup(summary_html, "html.parser")
    paragraphs: list[str] = []
    for block in root.find_all(_BLOCK_TAGS):
        if block.find_parent(_BLOCK_TAGS) is not None:
            continue
        text = _collapse(block.get_text(" "))
        if text:
            paragraphs.append(text)
    if not paragraphs:
        fallback = root.get_text("\n")
        paragraphs = [_collapse(line) for line in fallback.splitlines() if line.strip()]
    return "\n\n".join(paragraphs).strip()


def _collapse(text: str) -> str:
    """Collapse internal whitespace runs to single spaces."""

    return _WHITESPACE.sub(" ", text).strip()
