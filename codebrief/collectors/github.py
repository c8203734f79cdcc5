"""GitHub collector: recent releases of tracked repos and trending new repos."""

from __future__ import annotations

import logging
from datetime import datetime
from functools import partial

import httpx

from codebrief.collectors.base import TARGET_ERRORS, collect_targets, fetch_json
from codebrief.config import Settings
from codebrief.exceptions import CollectorError
from codebrief.schemas.news import NewsItem, NewsSource
from codebrief.services.retry import RetryPolicy
from codebrief.time_utils import as_utc, collection_cutoff

logger = logging.getLogger(__name__)

_GITHUB_HEADERS = {"Accept": "application/vnd.github.v3+json"}
_RELEASES_PER_REPO = 5
_TRENDING_PER_PAGE = 10

_REPO_ALIASES = {
    "react": "facebook/react",
    "vue": "vuejs/core",
    "angular": "angular/angular",
    "svelte": "sveltejs/svelte",
    "next.js": "vercel/next.js",
    "remix": "remix-run/remix",
}


def resolve_repo_path(repo_name: str) -> str | None:
    """Map a short framework name or "owner/repo" to a repository path."""
    alias = _REPO_ALIASES.get(repo_name.lower())
    if alias is not None:
        return alias
    if "/" in repo_name:
        return repo_name
    return None


def _parse_timestamp(value: str) -> datetime:
    return as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


async def _fetch_releases_for_repo(
    http_client: httpx.AsyncClient,
    settings: Settings,
    retry: RetryPolicy,
    repo: str,
) -> list[NewsItem]:
    repo_path = resolve_repo_path(repo)
    if repo_path is None:
        logger.warning("Could not find repository for: %s", repo)
        return []

    url = f"{settings.github.api_url}/repos/{repo_path}/releases"
    releases = await fetch_json(
        http_client,
        url,
        retry,
        headers=_GITHUB_HEADERS,
        params={"per_page": _RELEASES_PER_REPO},
        allow_not_found=True,
    )
    if not releases:
        return []

    cutoff = collection_cutoff(settings.collection.hours)
    items: list[NewsItem] = []
    for release in releases:
        published = release.get("published_at")
        if not published:
            continue
        published_at = _parse_timestamp(published)
        if published_at <= cutoff:
            continue
        items.append(
            NewsItem(
                title=f"{repo_path} {release['tag_name']}",
                url=release["html_url"],
                source=NewsSource.GITHUB,
                category="Release",
                published_at=published_at,
                description=release.get("name") or "",
            )
        )
    return items


async def collect_releases(
    http_client: httpx.AsyncClient,
    settings: Settings,
    retry: RetryPolicy,
) -> list[NewsItem]:
    """Collect releases published within the collection window."""
    items = await collect_targets(
        "GitHub releases",
        settings.github.repos,
        partial(_fetch_releases_for_repo, http_client, settings, retry),
    )
    logger.info("Collected %d GitHub release(s)", len(items))
    return items


async def collect_trending(
    http_client: httpx.AsyncClient,
    settings: Settings,
    retry: RetryPolicy,
) -> list[NewsItem]:
    """Collect the most-starred repos created within the collection window."""
    cutoff_date = collection_cutoff(settings.collection.hours).date()
    languages = " ".join(f"language:{lang}" for lang in settings.github.trending_languages)
    query = f"{languages} created:>{cutoff_date.isoformat()}".strip()

    data = await fetch_json(
        http_client,
        f"{settings.github.api_url}/search/repositories",
        retry,
        headers=_GITHUB_HEADERS,
        params={
            "q": query,
            "sort": "stars",
            "order": "desc",
            "per_page": _TRENDING_PER_PAGE,
        },
    )

    items: list[NewsItem] = []
    for repo in data.get("items", []):
        stars = int(repo.get("stargazers_count", 0))
        if stars < settings.github.min_stars:
            continue
        items.append(
            NewsItem(
                title=repo["full_name"],
                url=repo["html_url"],
                source=NewsSource.GITHUB,
                category="Trending",
                score=stars,
                published_at=_parse_timestamp(repo["created_at"]),
                description=repo.get("description") or "",
            )
        )
    logger.info("Collected %d trending GitHub repo(s)", len(items))
    return items


async def collect_github(
    http_client: httpx.AsyncClient,
    settings: Settings,
    retry: RetryPolicy,
) -> list[NewsItem]:
    """Collect releases, then trending repos, as one unit of work.

    Raises:
        CollectorError: Both releases and trending failed.
    """
    errors: list[str] = []

    try:
        releases = await collect_releases(http_client, settings, retry)
    except TARGET_ERRORS as exc:
        logger.error("Failed to collect GitHub releases: %s", exc)
        errors.append(f"releases: {exc}")
        releases = []

    try:
        trending = await collect_trending(http_client, settings, retry)
    except TARGET_ERRORS as exc:
        logger.error("Failed to collect trending GitHub repos: %s", exc)
        errors.append(f"trending: {exc}")
        trending = []

    if len(errors) == 2:
        raise CollectorError("GitHub: " + "; ".join(errors))
    return releases + trending
