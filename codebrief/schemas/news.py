"""News item schema shared by collectors, aggregation, and digest assembly."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class NewsSource(StrEnum):
    """Known news sources. Items may also carry any other source string."""

    GITHUB = "GitHub"
    REDDIT = "Reddit"
    HACKER_NEWS = "HackerNews"
    DEV_TO = "DevTo"
    RSS = "RSS"
    NPM = "Npm"


_SOURCE_EMOJI = {
    "github": "🐙",
    "reddit": "🤖",
    "hackernews": "📰",
    "devto": "✍️",
    "rss": "📡",
    "npm": "📦",
}

_SCORE_UNITS = {
    "reddit": "upvotes",
    "hackernews": "points",
    "github": "stars",
    "devto": "reactions",
}


class NewsItem(BaseModel):
    """A single collected item. Immutable once created by a collector."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(min_length=1)
    url: str = Field(min_length=1)
    source: str
    category: str = ""
    score: int | None = None
    published_at: datetime
    description: str = ""
    tags: tuple[str, ...] = ()

    @property
    def source_emoji(self) -> str:
        return _SOURCE_EMOJI.get(self.source.lower(), "📌")

    @property
    def score_unit(self) -> str:
        return _SCORE_UNITS.get(self.source.lower(), "")
