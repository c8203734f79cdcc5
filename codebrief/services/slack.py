"""Slack delivery: formats a Digest as mrkdwn and posts it to the webhook."""

from __future__ import annotations

import logging

import httpx

from codebrief.collectors.base import create_http_client
from codebrief.config import Settings, get_settings
from codebrief.exceptions import DeliveryError
from codebrief.schemas.digest import Digest
from codebrief.schemas.news import NewsItem
from codebrief.services.retry import RetryPolicy

logger = logging.getLogger(__name__)

_DIVIDER = "────────────────────────────────"
_FOOTER = "_Curated by Gemini AI_"
_FALLBACK_NOTE = "_AI ranking was unavailable today; items are ordered by score._"
_TEST_MESSAGE = "🎉 Code Brief is set up and ready to go!"


def _format_item(item: NewsItem, include_score: bool) -> str:
    line = f"• {item.source_emoji} <{item.url}|{item.title}>"
    if include_score and item.score is not None:
        unit = item.score_unit
        line += f" ({item.score} {unit})" if unit else f" ({item.score})"
    return line + "\n"


def format_digest(digest: Digest) -> str:
    """Render the digest as a Slack mrkdwn message. Empty sections are omitted."""
    parts = [f"📬 *Code Brief - {digest.date}*\n\n"]

    sections = (
        ("🔥 *Top Updates*", digest.top_updates, True),
        ("📰 *Quick Mentions*", digest.quick_mentions, False),
        ("💬 *Community Buzz*", digest.community_buzz, True),
    )
    for heading, items, include_score in sections:
        if not items:
            continue
        parts.append(heading + "\n")
        parts.extend(_format_item(item, include_score) for item in items)
        parts.append("\n")

    if digest.is_fallback:
        parts.append(_FALLBACK_NOTE + "\n")
    parts.append(_DIVIDER + "\n")
    parts.append(_FOOTER)
    return "".join(parts)


async def _send(http_client: httpx.AsyncClient, webhook_url: str, payload: dict) -> None:
    resp = await http_client.post(webhook_url, json=payload)
    resp.raise_for_status()


async def post_digest(
    digest: Digest,
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
    retry: RetryPolicy | None = None,
) -> None:
    """Post the digest to the Slack webhook.

    Raises:
        DeliveryError: The webhook is not configured or every attempt failed.
    """
    if settings is None:
        settings = get_settings()
    if not settings.slack_webhook_url:
        raise DeliveryError("Slack webhook URL is not configured")
    if retry is None:
        retry = RetryPolicy.from_settings(settings)

    payload = {"text": format_digest(digest), "mrkdwn": True}
    logger.info("Posting digest to Slack (%d item(s))", digest.item_count)

    owns_client = http_client is None
    client = http_client or create_http_client(settings)
    try:
        await retry.call(
            lambda: _send(client, settings.slack_webhook_url, payload),
            description="Slack webhook post",
        )
    except httpx.HTTPStatusError as exc:
        raise DeliveryError(
            f"Slack webhook returned {exc.response.status_code}"
        ) from exc
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise DeliveryError(f"Failed to post to Slack: {exc}") from exc
    finally:
        if owns_client:
            await client.aclose()

    logger.info("Successfully posted digest to Slack")


async def send_test_message(
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> bool:
    """Post a one-off setup message without retry. Returns True on success."""
    if settings is None:
        settings = get_settings()
    if not settings.slack_webhook_url:
        logger.error("Slack webhook test failed: webhook URL is not configured")
        return False

    owns_client = http_client is None
    client = http_client or create_http_client(settings)
    try:
        await _send(client, settings.slack_webhook_url, {"text": _TEST_MESSAGE})
    except httpx.HTTPStatusError as exc:
        logger.error("Slack webhook test failed: HTTP %d", exc.response.status_code)
        return False
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.error("Slack webhook test failed: %s", exc)
        return False
    finally:
        if owns_client:
            await client.aclose()

    logger.info("Slack webhook test successful")
    return True
