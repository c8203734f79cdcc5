"""Daily digest run.

Collects items from every source, ranks them into a digest, and delivers
the digest to Slack. Delivery failures propagate to the caller.
"""

from __future__ import annotations

import logging
from typing_extensions import TypedDict

from codebrief.collectors.base import create_http_client
from codebrief.collectors.registry import build_collectors
from codebrief.config import Settings, get_settings
from codebrief.services.aggregator import NewsAggregator
from codebrief.services.digest import process_news_items
from codebrief.services.retry import RetryPolicy
from codebrief.services.slack import post_digest
from codebrief.time_utils import digest_date_label

logger = logging.getLogger(__name__)


class DigestRunResult(TypedDict):
    """Result stats returned by the daily digest run."""

    items_collected: int
    sources_succeeded: int
    sources_failed: int
    top_updates: int
    quick_mentions: int
    community_buzz: int
    used_fallback: bool
    delivered: bool
    digest_date: str


async def run_daily_digest(settings: Settings | None = None) -> DigestRunResult:
    """Run collection, digest assembly, and delivery once.

    Stages:
        1. Collect items from all sources concurrently
        2. Rank items into a digest with Gemini (score-based fallback)
        3. Post the digest to Slack

    Args:
        settings: Application settings. Uses defaults if None.

    Returns:
        Run stats. `delivered` is False when nothing was collected.

    Raises:
        DeliveryError: The digest could not be posted.
    """
    if settings is None:
        settings = get_settings()

    retry = RetryPolicy.from_settings(settings)
    logger.info("Starting daily digest run")

    async with create_http_client(settings) as http_client:
        # Stage 1: Collect
        logger.info("Stage 1/3: Collecting news from all sources")
        aggregator = NewsAggregator(
            build_collectors(http_client, settings, retry),
            task_timeout=settings.collection.task_timeout_seconds,
            shutdown_grace=settings.collection.shutdown_grace_seconds,
            max_workers=settings.collection.max_workers,
        )
        report = await aggregator.collect_all()
        items = report.items

        if not items:
            logger.warning("No news items collected, skipping digest")
            return DigestRunResult(
                items_collected=0,
                sources_succeeded=len(report.succeeded),
                sources_failed=len(report.failed),
                top_updates=0,
                quick_mentions=0,
                community_buzz=0,
                used_fallback=False,
                delivered=False,
                digest_date=digest_date_label(),
            )
        logger.info("Collected %d news item(s)", len(items))

        # Stage 2: Digest
        logger.info("Stage 2/3: Processing news with Gemini")
        digest = await process_news_items(items, settings)
        logger.info(
            "Generated digest: %d top update(s), %d quick mention(s), "
            "%d community buzz item(s)%s",
            len(digest.top_updates),
            len(digest.quick_mentions),
            len(digest.community_buzz),
            " (fallback)" if digest.is_fallback else "",
        )

        # Stage 3: Deliver
        logger.info("Stage 3/3: Posting digest to Slack")
        await post_digest(digest, settings, http_client=http_client, retry=retry)

    result = DigestRunResult(
        items_collected=len(items),
        sources_succeeded=len(report.succeeded),
        sources_failed=len(report.failed),
        top_updates=len(digest.top_updates),
        quick_mentions=len(digest.quick_mentions),
        community_buzz=len(digest.community_buzz),
        used_fallback=digest.is_fallback,
        delivered=True,
        digest_date=digest.date,
    )
    logger.info("Daily digest run complete: %s", result)
    return result
