"""Extracted article model."""

from __future__ import annotations

from pydantic import BaseModel


class ArticleData(BaseModel):
    """Readable content pulled from an article page."""

    title: str = "Untitled"
    text_content: str = ""
    byline: str = ""
    site_name: str = "Unknown Site"
    url: str
    length: int = 0
    excerpt: str = ""
