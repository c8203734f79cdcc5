"""RSS feed collector.

Fetches each configured feed with httpx, parses it with feedparser, and
keeps entries published within the collection window.
"""

from __future__ import annotations

import logging
from calendar import timegm
from datetime import UTC, datetime
from functools import partial

import feedparser
import httpx

from codebrief.collectors.base import collect_targets, fetch_text, strip_html, truncate
from codebrief.config import Settings
from codebrief.exceptions import CollectorError
from codebrief.schemas.news import NewsItem, NewsSource
from codebrief.services.retry import RetryPolicy
from codebrief.time_utils import collection_cutoff

logger = logging.getLogger(__name__)

_DESCRIPTION_LENGTH = 200


def _parse_published_date(entry: feedparser.FeedParserDict) -> datetime | None:
    """Extract the published (or updated) date from a feedparser entry."""
    published_parsed = entry.get("published_parsed") or entry.get("updated_parsed")
    if published_parsed is None:
        return None
    try:
        return datetime.fromtimestamp(timegm(published_parsed), tz=UTC)
    except (ValueError, OverflowError, OSError, TypeError, AttributeError):
        return None


def _entries_to_items(
    entries: list[feedparser.FeedParserDict],
    feed_title: str,
    cutoff: datetime,
) -> list[NewsItem]:
    """Convert recent feedparser entries to NewsItems."""
    items: list[NewsItem] = []
    now = datetime.now(tz=UTC)
    for entry in entries:
        link = entry.get("link")
        title = entry.get("title")
        if not link or not title:
            continue

        published_at = _parse_published_date(entry) or now
        if published_at <= cutoff:
            continue

        description = strip_html(entry.get("summary") or entry.get("description"))
        items.append(
            NewsItem(
                title=title,
                url=link,
                source=NewsSource.RSS,
                category=feed_title,
                published_at=published_at,
                description=truncate(description, _DESCRIPTION_LENGTH),
            )
        )
    return items


async def _fetch_feed(
    http_client: httpx.AsyncClient,
    settings: Settings,
    retry: RetryPolicy,
    feed_url: str,
) -> list[NewsItem]:
    text = await fetch_text(http_client, feed_url, retry)
    parsed = feedparser.parse(text or "")
    if parsed.get("bozo") and not parsed.entries:
        raise CollectorError(
            f"Invalid RSS/Atom feed: {feed_url} ({parsed.get('bozo_exception')})"
        )

    feed_title = parsed.feed.get("title") or feed_url
    cutoff = collection_cutoff(settings.collection.hours)
    return _entries_to_items(parsed.entries, feed_title, cutoff)


async def collect_feeds(
    http_client: httpx.AsyncClient,
    settings: Settings,
    retry: RetryPolicy,
) -> list[NewsItem]:
    """Collect recent entries from every configured feed."""
    items = await collect_targets(
        "RSS",
        settings.rss.feeds,
        partial(_fetch_feed, http_client, settings, retry),
    )
    logger.info("Collected %d RSS article(s)", len(items))
    return items
