"""Article fetching and readable-text extraction."""

from postify.services.article.service import ArticleService

__all__ = ["ArticleService"]
