"""Shared HTTP helpers for news collectors.

Every collector is an async function `(http_client, settings, retry)`
returning a list of NewsItem. Requests go through the shared retry policy;
per-target failures are isolated with `collect_targets`.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

import httpx

from codebrief.config import Settings
from codebrief.exceptions import CollectorError
from codebrief.schemas.news import NewsItem
from codebrief.services.retry import RetryPolicy

logger = logging.getLogger(__name__)

_HTML_TAG = re.compile(r"<[^>]*>")

# Failures isolated per target inside a collector.
TARGET_ERRORS = (
    httpx.HTTPError,
    CollectorError,
    AttributeError,
    KeyError,
    TypeError,
    ValueError,
)


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    """Create the shared async HTTP client for one run."""
    timeout = httpx.Timeout(
        settings.http.read_timeout,
        connect=settings.http.connect_timeout,
        write=settings.http.write_timeout,
    )
    return httpx.AsyncClient(
        timeout=timeout,
        follow_redirects=True,
        headers={"User-Agent": settings.http.user_agent},
    )


async def fetch_text(
    http_client: httpx.AsyncClient,
    url: str,
    retry: RetryPolicy,
    *,
    headers: dict[str, str] | None = None,
    params: dict[str, Any] | None = None,
    allow_not_found: bool = False,
) -> str | None:
    """GET a URL through the retry policy and return the body text.

    Returns None for a 404 when `allow_not_found` is set; any other non-2xx
    status raises httpx.HTTPStatusError after retries.
    """

    async def _get() -> str | None:
        resp = await http_client.get(url, headers=headers, params=params)
        if allow_not_found and resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.text

    return await retry.call(_get, description=f"GET {url}")


async def fetch_json(
    http_client: httpx.AsyncClient,
    url: str,
    retry: RetryPolicy,
    *,
    headers: dict[str, str] | None = None,
    params: dict[str, Any] | None = None,
    allow_not_found: bool = False,
) -> Any:
    """GET a URL and decode the JSON body (None for an allowed 404)."""
    text = await fetch_text(
        http_client,
        url,
        retry,
        headers=headers,
        params=params,
        allow_not_found=allow_not_found,
    )
    if text is None:
        return None
    return json.loads(text)


async def collect_targets(
    source: str,
    targets: Sequence[str],
    fetch_one: Callable[[str], Awaitable[list[NewsItem]]],
) -> list[NewsItem]:
    """Fetch each target sequentially, skipping the ones that fail.

    Raises:
        CollectorError: Every target failed.
    """
    items: list[NewsItem] = []
    failures = 0
    for target in targets:
        try:
            items.extend(await fetch_one(target))
        except TARGET_ERRORS as exc:
            failures += 1
            logger.warning("%s: failed to fetch '%s': %s", source, target, exc)

    if targets and failures == len(targets):
        raise CollectorError(f"{source}: all {failures} target(s) failed")
    return items


def strip_html(text: str | None) -> str:
    """Remove HTML tags."""
    if not text:
        return ""
    return _HTML_TAG.sub("", text).strip()


def truncate(text: str | None, length: int) -> str:
    """Cut text to `length` characters, appending "..." when shortened."""
    if not text:
        return ""
    if len(text) <= length:
        return text
    return text[:length] + "..."
