"""npm collector: recently published versions of tracked packages."""

from __future__ import annotations

import logging
from datetime import datetime
from functools import partial

import httpx

from codebrief.collectors.base import collect_targets, fetch_json
from codebrief.config import Settings
from codebrief.schemas.news import NewsItem, NewsSource
from codebrief.services.retry import RetryPolicy
from codebrief.time_utils import as_utc, collection_cutoff

logger = logging.getLogger(__name__)

_NPM_PACKAGE_URL = "https://www.npmjs.com/package/{name}"


async def _fetch_package(
    http_client: httpx.AsyncClient,
    settings: Settings,
    retry: RetryPolicy,
    package: str,
) -> list[NewsItem]:
    document = await fetch_json(
        http_client,
        f"{settings.npm.registry_url}/{package}",
        retry,
        allow_not_found=True,
    )
    if document is None:
        logger.warning("npm package not found: %s", package)
        return []

    latest = document["dist-tags"]["latest"]
    modified = as_utc(
        datetime.fromisoformat(document["time"]["modified"].replace("Z", "+00:00"))
    )
    if modified <= collection_cutoff(settings.collection.hours):
        return []

    return [
        NewsItem(
            title=f"{package} v{latest}",
            url=_NPM_PACKAGE_URL.format(name=package),
            source=NewsSource.NPM,
            category="Package Update",
            published_at=modified,
            description=document.get("description") or "",
        )
    ]


async def collect_package_updates(
    http_client: httpx.AsyncClient,
    settings: Settings,
    retry: RetryPolicy,
) -> list[NewsItem]:
    """Collect packages modified within the collection window."""
    items = await collect_targets(
        "npm",
        settings.npm.packages,
        partial(_fetch_package, http_client, settings, retry),
    )
    logger.info("Collected %d npm package update(s)", len(items))
    return items
