"""Reddit collector: top posts of the configured subreddits."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from functools import partial

import httpx

from codebrief.collectors.base import collect_targets, fetch_json, truncate
from codebrief.config import Settings
from codebrief.schemas.news import NewsItem, NewsSource
from codebrief.services.retry import RetryPolicy

logger = logging.getLogger(__name__)

_POSTS_PER_SUBREDDIT = 10
_DESCRIPTION_LENGTH = 200


async def _fetch_subreddit(
    http_client: httpx.AsyncClient,
    settings: Settings,
    retry: RetryPolicy,
    subreddit: str,
) -> list[NewsItem]:
    data = await fetch_json(
        http_client,
        f"{settings.reddit.api_url}/r/{subreddit}/top.json",
        retry,
        headers={"User-Agent": settings.http.user_agent},
        params={"t": settings.reddit.time_filter, "limit": _POSTS_PER_SUBREDDIT},
    )

    items: list[NewsItem] = []
    for child in data["data"]["children"]:
        post = child["data"]
        ups = int(post.get("ups", 0))
        if ups < settings.reddit.min_upvotes:
            continue
        items.append(
            NewsItem(
                title=post["title"],
                url=f"https://reddit.com{post['permalink']}",
                source=NewsSource.REDDIT,
                category=f"r/{subreddit}",
                score=ups,
                published_at=datetime.fromtimestamp(post["created_utc"], tz=UTC),
                description=truncate(post.get("selftext"), _DESCRIPTION_LENGTH),
            )
        )
    return items


async def collect_posts(
    http_client: httpx.AsyncClient,
    settings: Settings,
    retry: RetryPolicy,
) -> list[NewsItem]:
    """Collect top posts above the upvote threshold from every subreddit."""
    items = await collect_targets(
        "Reddit",
        settings.reddit.subreddits,
        partial(_fetch_subreddit, http_client, settings, retry),
    )
    logger.info("Collected %d Reddit post(s)", len(items))
    return items
