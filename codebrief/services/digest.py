"""Daily digest assembly using Gemini ranking with a deterministic fallback.

The assembler always returns a Digest. Gemini failures (after retries) and
unusable responses are handled the same way: items are bucketed by score.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Sequence
from typing import Any, NamedTuple

from google import genai

from codebrief.config import Settings, get_settings
from codebrief.exceptions import DigestParseError
from codebrief.schemas.digest import Digest
from codebrief.schemas.news import NewsItem
from codebrief.services.gemini import (
    build_generation_config,
    call_gemini_with_retry,
    create_gemini_client,
)
from codebrief.services.retry import RetryPolicy
from codebrief.time_utils import digest_date_label

logger = logging.getLogger(__name__)

_BUCKET_FIELDS = ("topUpdates", "quickMentions", "communityBuzz")

_TOP_UPDATES_END = 3
_QUICK_MENTIONS_END = 8
_COMMUNITY_BUZZ_END = 10

_LEADING_FENCE = re.compile(r"^```[\w+-]*[ \t]*\n?")
_TRAILING_FENCE = re.compile(r"\n?```$")


class DigestBuckets(NamedTuple):
    """0-based indices into the item sequence, one list per bucket."""

    top_updates: list[int]
    quick_mentions: list[int]
    community_buzz: list[int]


_DIGEST_PROMPT = """\
You are a frontend development news curator. Analyze the following news items \
and create a concise daily digest.

NEWS ITEMS:
{items_section}

TASK:
1. Identify the TOP 3 most important updates (framework releases, major news)
2. List 3-5 quick mentions (interesting but less critical)
3. Highlight 2-3 community discussions (Reddit/HN posts with high engagement)

OUTPUT FORMAT (respond with ONLY this JSON object, no markdown formatting):
{{
  "topUpdates": [1, 3, 7],
  "quickMentions": [2, 5, 9, 12],
  "communityBuzz": [4, 8]
}}

- Use the item numbers from the list above.
- "topUpdates" holds at most 3 numbers, "quickMentions" 3-5, "communityBuzz" 2-3."""


def _build_digest_prompt(items: Sequence[NewsItem]) -> str:
    """Build the Gemini ranking prompt with 1-based item numbers."""
    lines = []
    for i, item in enumerate(items):
        score = item.score if item.score is not None else "N/A"
        lines.append(f"{i + 1}. [{item.source}] {item.title} (Score: {score})")
        if item.description:
            lines.append(f"   Description: {item.description}")
        lines.append("")
    return _DIGEST_PROMPT.format(items_section="\n".join(lines))


def _strip_code_fence(text: str) -> str:
    """Remove a surrounding markdown code fence, with or without a language tag."""
    stripped = text.strip()
    stripped = _LEADING_FENCE.sub("", stripped, count=1)
    stripped = _TRAILING_FENCE.sub("", stripped, count=1)
    return stripped.strip()


def _to_index(value: Any) -> int:
    """Convert a JSON array element to an int, rejecting non-integral values."""
    if isinstance(value, bool):
        raise DigestParseError(f"Unexpected boolean index: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    raise DigestParseError(f"Unexpected index value: {value!r}")


def _extract_indices(data: dict[str, Any], key: str, item_count: int) -> list[int]:
    """Return valid 0-based indices for one bucket, dropping out-of-range ones."""
    if key not in data:
        return []
    raw = data[key]
    if not isinstance(raw, list):
        raise DigestParseError(f"Field '{key}' is not an array")

    indices: list[int] = []
    for value in raw:
        index = _to_index(value) - 1
        if 0 <= index < item_count:
            indices.append(index)
        else:
            logger.debug("Dropping out-of-range index %r in '%s'", value, key)
    return indices


def _parse_digest_response(text: str, item_count: int) -> DigestBuckets:
    """Parse Gemini response text into bucket indices.

    Args:
        text: Raw response text, optionally wrapped in a code fence.
        item_count: Number of items the prompt enumerated.

    Returns:
        Bucket indices (0-based). Missing fields yield empty buckets.

    Raises:
        DigestParseError: The text is not a JSON object of integer arrays.
    """
    try:
        data = json.loads(_strip_code_fence(text))
    except (json.JSONDecodeError, TypeError) as exc:
        raise DigestParseError(f"Response is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise DigestParseError(
            f"Expected a JSON object, got {type(data).__name__}"
        )

    top, quick, community = (
        _extract_indices(data, key, item_count) for key in _BUCKET_FIELDS
    )
    return DigestBuckets(top_updates=top, quick_mentions=quick, community_buzz=community)


def fallback_buckets(items: Sequence[NewsItem]) -> DigestBuckets:
    """Bucket items by score without AI.

    Sorts descending by score (missing score counts as 0); equal scores keep
    their original order. The first 3 go to top updates, the next 5 to quick
    mentions, and the next 2 to community buzz.
    """
    ranked = sorted(
        range(len(items)),
        key=lambda i: items[i].score or 0,
        reverse=True,
    )
    return DigestBuckets(
        top_updates=ranked[:_TOP_UPDATES_END],
        quick_mentions=ranked[_TOP_UPDATES_END:_QUICK_MENTIONS_END],
        community_buzz=ranked[_QUICK_MENTIONS_END:_COMMUNITY_BUZZ_END],
    )


def _build_digest(
    items: Sequence[NewsItem],
    buckets: DigestBuckets,
    *,
    is_fallback: bool = False,
) -> Digest:
    """Resolve bucket indices against the shared item sequence."""
    return Digest(
        date=digest_date_label(),
        top_updates=tuple(items[i] for i in buckets.top_updates),
        quick_mentions=tuple(items[i] for i in buckets.quick_mentions),
        community_buzz=tuple(items[i] for i in buckets.community_buzz),
        is_fallback=is_fallback,
    )


def create_empty_digest() -> Digest:
    """Return a dated digest with all buckets empty."""
    return Digest(date=digest_date_label())


async def process_news_items(
    items: Sequence[NewsItem],
    settings: Settings | None = None,
    client: genai.Client | None = None,
) -> Digest:
    """Rank collected items into a Digest, falling back to score order on failure.

    Args:
        items: Merged items from the aggregator.
        settings: Application settings. Uses defaults if None.
        client: Gemini client. Created from settings if None.

    Returns:
        A Digest. Never raises for AI unavailability or malformed output.
    """
    if not items:
        logger.warning("No news items to process, returning empty digest")
        return create_empty_digest()

    if settings is None:
        settings = get_settings()

    logger.info("Processing %d news item(s) with Gemini", len(items))
    prompt = _build_digest_prompt(items)

    try:
        if client is None:
            client = create_gemini_client(settings)
        response_text = await call_gemini_with_retry(
            client,
            settings.gemini.model,
            prompt,
            config=build_generation_config(settings),
            retry=RetryPolicy.from_settings(settings),
        )
        buckets = _parse_digest_response(response_text, len(items))
    except DigestParseError as exc:
        logger.warning("Failed to parse Gemini digest response, using fallback: %s", exc)
        return _build_digest(items, fallback_buckets(items), is_fallback=True)
    except Exception:
        logger.exception("Gemini digest generation failed, using fallback")
        return _build_digest(items, fallback_buckets(items), is_fallback=True)

    return _build_digest(items, buckets)
