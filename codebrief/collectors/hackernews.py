"""Hacker News collector: frontend-related top stories."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

import httpx

from codebrief.collectors.base import TARGET_ERRORS, fetch_json
from codebrief.config import HackerNewsConfig, Settings
from codebrief.schemas.news import NewsItem, NewsSource
from codebrief.services.retry import RetryPolicy

logger = logging.getLogger(__name__)


def _is_relevant(title: str, score: int, config: HackerNewsConfig) -> bool:
    """Keep stories matching a keyword, or any story with a very high score."""
    lowered = title.lower()
    if any(keyword.lower() in lowered for keyword in config.keywords):
        return True
    return score >= config.keyword_bypass_score


def _story_to_item(story: dict | None, config: HackerNewsConfig) -> NewsItem | None:
    """Convert an HN item to a NewsItem, or None if it should be skipped."""
    if not story or story.get("type") != "story" or not story.get("url"):
        return None

    title = story.get("title") or ""
    score = int(story.get("score", 0))
    if not title or not _is_relevant(title, score, config):
        return None

    return NewsItem(
        title=title,
        url=story["url"],
        source=NewsSource.HACKER_NEWS,
        category="Top Story",
        score=score,
        published_at=datetime.fromtimestamp(story["time"], tz=UTC),
    )


async def collect_stories(
    http_client: httpx.AsyncClient,
    settings: Settings,
    retry: RetryPolicy,
) -> list[NewsItem]:
    """Collect up to `max_items` qualifying stories from the top stories list.

    A failure fetching the top stories list propagates; a failure fetching a
    single story is logged and skipped.
    """
    config = settings.hackernews
    story_ids = await fetch_json(http_client, f"{config.api_url}/topstories.json", retry)

    items: list[NewsItem] = []
    checked = 0
    for story_id in story_ids:
        if checked >= config.max_stories or len(items) >= config.max_items:
            break
        try:
            story = await fetch_json(
                http_client, f"{config.api_url}/item/{story_id}.json", retry
            )
            item = _story_to_item(story, config)
        except TARGET_ERRORS as exc:
            logger.warning("Failed to fetch HN story %s: %s", story_id, exc)
            continue
        checked += 1
        if item is not None and item.score is not None and item.score >= config.min_score:
            items.append(item)

    logger.info("Collected %d Hacker News story(ies)", len(items))
    return items
