"""Digest schema."""

from pydantic import BaseModel, ConfigDict

from codebrief.schemas.news import NewsItem


class Digest(BaseModel):
    """Ranked grouping of one run's items into three buckets.

    Bucket entries are the same NewsItem objects produced by the collectors;
    overlap between buckets is not checked.
    """

    model_config = ConfigDict(frozen=True)

    date: str
    top_updates: tuple[NewsItem, ...] = ()
    quick_mentions: tuple[NewsItem, ...] = ()
    community_buzz: tuple[NewsItem, ...] = ()
    is_fallback: bool = False

    @property
    def is_empty(self) -> bool:
        return not (self.top_updates or self.quick_mentions or self.community_buzz)

    @property
    def item_count(self) -> int:
        return (
            len(self.top_updates) + len(self.quick_mentions) + len(self.community_buzz)
        )
