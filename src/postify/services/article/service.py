"""Article extraction: HTTP fetch plus readable-text extraction.

Extraction order:
1. trafilatura ``bare_extraction`` (text plus title/author metadata)
2. readability-lxml ``Document`` (title plus main-content HTML)
3. lxml lookup of common content containers, then all paragraphs
"""

from __future__ import annotations

import logging
import re
from typing import Any
from urllib.parse import urlparse

import httpx
import trafilatura
from lxml import etree
from lxml import html as lxml_html
from readability import Document

from postify.errors import ArticleFetchError, ArticleParseError
from postify.models.article import ArticleData

log = logging.getLogger(__name__)

_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; Postify/1.0; +https://postify.app)",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}

_CONTENT_XPATHS = [
    "//article",
    "//*[@role='main']",
    "//*[contains(concat(' ', normalize-space(@class), ' '), ' content ')]",
    "//*[contains(concat(' ', normalize-space(@class), ' '), ' post-content ')]",
    "//*[contains(concat(' ', normalize-space(@class), ' '), ' entry-content ')]",
    "//main",
    "//*[contains(concat(' ', normalize-space(@class), ' '), ' article-body ')]",
]

_WS_RE = re.compile(r"\s+")


def clean_text(text: str | None) -> str:
    """Collapse runs of whitespace into single spaces."""
    if not text:
        return ""
    return _WS_RE.sub(" ", text).strip()


def extract_site_name(url: str) -> str:
    """``https://www.example.com/x`` -> ``Example.com``."""
    try:
        hostname = urlparse(url).hostname or ""
    except ValueError:
        return "Unknown Site"
    hostname = hostname.removeprefix("www.")
    if not hostname:
        return "Unknown Site"
    return hostname[0].upper() + hostname[1:]


def is_valid_url(url: Any) -> bool:
    if not isinstance(url, str):
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _extract_with_trafilatura(html: str, url: str) -> dict[str, str] | None:
    try:
        doc = trafilatura.bare_extraction(html, url=url, with_metadata=True)
    except Exception:
        log.debug("article.trafilatura_failed", exc_info=True)
        return None
    if not doc:
        return None
    data = doc if isinstance(doc, dict) else doc.as_dict()
    text = data.get("text") or ""
    if not text.strip():
        return None
    return {
        "title": data.get("title") or "",
        "byline": data.get("author") or "",
        "text": text,
        "excerpt": data.get("description") or "",
    }


def _extract_with_readability(html: str) -> dict[str, str] | None:
    try:
        doc = Document(html)
        summary_html = doc.summary()
        title = doc.title()
    except Exception:
        log.debug("article.readability_failed", exc_info=True)
        return None
    try:
        text = lxml_html.fromstring(summary_html).text_content()
    except (etree.ParserError, ValueError):
        return None
    if not text.strip():
        return None
    return {"title": title or "", "byline": "", "text": text, "excerpt": ""}


def _extract_fallback(html: str) -> dict[str, str]:
    """Container lookup, then every paragraph. Always returns a dict."""
    try:
        tree = lxml_html.fromstring(html)
    except (etree.ParserError, ValueError):
        return {"title": "", "byline": "", "text": "", "excerpt": ""}

    title = ""
    for xpath in ("//title", "//h1"):
        nodes = tree.xpath(xpath)
        if nodes:
            title = nodes[0].text_content()
            break

    text = ""
    for xpath in _CONTENT_XPATHS:
        nodes = tree.xpath(xpath)
        if nodes:
            text = nodes[0].text_content()
            break

    if not clean_text(text):
        text = " ".join(p.text_content() for p in tree.xpath("//p"))

    return {"title": title, "byline": "", "text": text, "excerpt": ""}


class ArticleService:
    """Fetches an article URL and returns cleaned, truncated ArticleData."""

    def __init__(
        self,
        max_text_length: int = 4000,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.max_text_length = max_text_length
        self._timeout = timeout
        self._transport = transport

    async def parse_article(self, url: str) -> ArticleData | None:
        """Fetch and extract an article. Returns None on any failure."""
        try:
            log.info("article.fetch url=%s", url)
            html = await self.fetch_html(url)
            article = self.extract(html, url)
        except (ArticleFetchError, ArticleParseError) as exc:
            log.warning("article.parse_failed url=%s error=%s", url, exc)
            return None

        log.info("article.parsed title=%r length=%d", article.title, article.length)
        return article

    async def fetch_html(self, url: str) -> str:
        if not is_valid_url(url):
            raise ArticleFetchError("Invalid URL format", context={"url": url})

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                headers=_HEADERS,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                resp = await client.get(url)
                resp.raise_for_status()
                html = resp.text
        except httpx.HTTPStatusError as exc:
            raise ArticleFetchError(
                f"HTTP {exc.response.status_code}: {exc.response.reason_phrase}",
                context={"url": url},
            ) from exc
        except httpx.HTTPError as exc:
            raise ArticleFetchError(f"fetch failed: {exc}", context={"url": url}) from exc

        if not html or not html.strip():
            raise ArticleFetchError("Empty response from URL", context={"url": url})
        return html

    def extract(self, html: str, url: str) -> ArticleData:
        extracted = _extract_with_trafilatura(html, url)
        if extracted is None:
            log.info("article.trafilatura_empty url=%s trying readability", url)
            extracted = _extract_with_readability(html)
        if extracted is None:
            log.info("article.readability_empty url=%s trying fallback", url)
            extracted = _extract_fallback(html)

        text = clean_text(extracted["text"])
        if not text:
            raise ArticleParseError("No readable content found", context={"url": url})

        if len(text) > self.max_text_length:
            text = text[: self.max_text_length] + "..."

        excerpt = clean_text(extracted["excerpt"]) or text[:200]
        return ArticleData(
            title=clean_text(extracted["title"]) or "Untitled",
            text_content=text,
            byline=clean_text(extracted["byline"]),
            site_name=extract_site_name(url),
            url=url,
            length=len(text),
            excerpt=excerpt,
        )
