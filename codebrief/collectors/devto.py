"""Dev.to collector: top articles per tag."""

from __future__ import annotations

import logging
from datetime import datetime
from functools import partial

import httpx

from codebrief.collectors.base import collect_targets, fetch_json
from codebrief.config import Settings
from codebrief.schemas.news import NewsItem, NewsSource
from codebrief.services.retry import RetryPolicy
from codebrief.time_utils import as_utc

logger = logging.getLogger(__name__)

_DEVTO_HEADERS = {"Accept": "application/vnd.forem.api-v1+json"}
_ARTICLES_PER_TAG = 10


async def _fetch_articles_by_tag(
    http_client: httpx.AsyncClient,
    settings: Settings,
    retry: RetryPolicy,
    tag: str,
) -> list[NewsItem]:
    articles = await fetch_json(
        http_client,
        f"{settings.devto.api_url}/articles",
        retry,
        headers=_DEVTO_HEADERS,
        params={"tag": tag, "per_page": _ARTICLES_PER_TAG, "top": 1},
    )

    items: list[NewsItem] = []
    for article in articles:
        reactions = int(article.get("public_reactions_count") or 0)
        if reactions < settings.devto.min_reactions:
            continue
        published_at = datetime.fromisoformat(
            article["published_at"].replace("Z", "+00:00")
        )
        items.append(
            NewsItem(
                title=article["title"],
                url=article["url"],
                source=NewsSource.DEV_TO,
                category="Article",
                score=reactions,
                published_at=as_utc(published_at),
                description=article.get("description") or "",
                tags=tuple(article.get("tag_list") or ()),
            )
        )
    return items


async def collect_articles(
    http_client: httpx.AsyncClient,
    settings: Settings,
    retry: RetryPolicy,
) -> list[NewsItem]:
    """Collect articles above the reaction threshold for every configured tag."""
    items = await collect_targets(
        "Dev.to",
        settings.devto.tags,
        partial(_fetch_articles_by_tag, http_client, settings, retry),
    )
    logger.info("Collected %d Dev.to article(s)", len(items))
    return items
