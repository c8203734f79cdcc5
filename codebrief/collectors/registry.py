"""Registry binding the concrete collectors into aggregator tasks."""

from __future__ import annotations

from functools import partial

import httpx

from codebrief.collectors.devto import collect_articles
from codebrief.collectors.github import collect_github
from codebrief.collectors.hackernews import collect_stories
from codebrief.collectors.npm import collect_package_updates
from codebrief.collectors.reddit import collect_posts
from codebrief.collectors.rss import collect_feeds
from codebrief.config import Settings
from codebrief.services.aggregator import CollectorTask
from codebrief.services.retry import RetryPolicy

_COLLECTORS = (
    ("github", collect_github),
    ("reddit", collect_posts),
    ("hackernews", collect_stories),
    ("devto", collect_articles),
    ("rss", collect_feeds),
    ("npm", collect_package_updates),
)


def build_collectors(
    http_client: httpx.AsyncClient,
    settings: Settings,
    retry: RetryPolicy,
) -> list[CollectorTask]:
    """Return one zero-argument task per source, sharing client and retry policy."""
    return [
        CollectorTask(name=name, collect=partial(fn, http_client, settings, retry))
        for name, fn in _COLLECTORS
    ]
