"""Pydantic schemas for collected items and digests."""

from codebrief.schemas.digest import Digest
from codebrief.schemas.news import NewsItem, NewsSource

__all__ = [
    "Digest",
    "NewsItem",
    "NewsSource",
]
