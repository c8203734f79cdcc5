"""Daily digest run tests."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from codebrief.config import Settings
from codebrief.exceptions import DeliveryError
from codebrief.schemas.digest import Digest
from codebrief.services.aggregator import CollectorTask
from codebrief.services.pipeline import run_daily_digest
from tests.factories import make_item


def _make_settings() -> Settings:
    return Settings(
        slack_webhook_url="https://hooks.slack.com/services/T/B/X",
        retry={"max_attempts": 1, "delay_seconds": 0},
        collection={"task_timeout_seconds": 5, "shutdown_grace_seconds": 1},
    )


def _tasks(*collects) -> list[CollectorTask]:
    return [CollectorTask(f"source{i}", collect) for i, collect in enumerate(collects)]


async def _two_items():
    return [make_item(1, score=10), make_item(2, score=20)]


async def _nothing():
    return []


async def _broken():
    raise RuntimeError("HTTP 503")


@pytest.mark.asyncio
@patch("codebrief.services.pipeline.post_digest", new_callable=AsyncMock)
@patch("codebrief.services.pipeline.process_news_items", new_callable=AsyncMock)
@patch("codebrief.services.pipeline.build_collectors")
async def test_run_daily_digest_happy_path(
    mock_build_collectors: MagicMock,
    mock_process: AsyncMock,
    mock_post: AsyncMock,
) -> None:
    """Verify collected items are ranked and the digest is delivered.

    Mock: One collector returns 2 items, one fails.
    Expects: The digest is posted once and the stats reflect both outcomes.
    """
    mock_build_collectors.return_value = _tasks(_two_items, _broken)
    digest = Digest(
        date="Sunday, October 18, 2026",
        top_updates=(make_item(2, score=20),),
        quick_mentions=(make_item(1, score=10),),
    )
    mock_process.return_value = digest
    settings = _make_settings()

    result = await run_daily_digest(settings)

    processed_items = mock_process.call_args.args[0]
    assert [item.title for item in processed_items] == ["Item 1", "Item 2"]
    mock_post.assert_awaited_once()
    assert mock_post.call_args.args[0] is digest
    assert mock_post.call_args.kwargs["http_client"] is not None
    assert result == {
        "items_collected": 2,
        "sources_succeeded": 1,
        "sources_failed": 1,
        "top_updates": 1,
        "quick_mentions": 1,
        "community_buzz": 0,
        "used_fallback": False,
        "delivered": True,
        "digest_date": "Sunday, October 18, 2026",
    }


@pytest.mark.asyncio
@patch("codebrief.services.pipeline.post_digest", new_callable=AsyncMock)
@patch("codebrief.services.pipeline.process_news_items", new_callable=AsyncMock)
@patch("codebrief.services.pipeline.build_collectors")
async def test_run_daily_digest_skips_delivery_when_nothing_collected(
    mock_build_collectors: MagicMock,
    mock_process: AsyncMock,
    mock_post: AsyncMock,
) -> None:
    mock_build_collectors.return_value = _tasks(_nothing, _broken)

    result = await run_daily_digest(_make_settings())

    mock_process.assert_not_called()
    mock_post.assert_not_called()
    assert result["delivered"] is False
    assert result["items_collected"] == 0
    assert result["sources_failed"] == 1


@pytest.mark.asyncio
@patch("codebrief.services.pipeline.post_digest", new_callable=AsyncMock)
@patch("codebrief.services.pipeline.process_news_items", new_callable=AsyncMock)
@patch("codebrief.services.pipeline.build_collectors")
async def test_run_daily_digest_propagates_delivery_error(
    mock_build_collectors: MagicMock,
    mock_process: AsyncMock,
    mock_post: AsyncMock,
) -> None:
    mock_build_collectors.return_value = _tasks(_two_items)
    mock_process.return_value = Digest(date="Sunday, October 18, 2026", is_fallback=True)
    mock_post.side_effect = DeliveryError("Slack webhook returned 500")

    with pytest.raises(DeliveryError):
        await run_daily_digest(_make_settings())


@pytest.mark.asyncio
@patch("codebrief.services.pipeline.post_digest", new_callable=AsyncMock)
@patch("codebrief.services.digest.create_gemini_client")
@patch("codebrief.services.pipeline.build_collectors")
async def test_run_daily_digest_reports_fallback(
    mock_build_collectors: MagicMock,
    mock_create_client: MagicMock,
    mock_post: AsyncMock,
) -> None:
    """Verify an AI outage still delivers a score-ordered digest."""
    mock_build_collectors.return_value = _tasks(_two_items)
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(side_effect=RuntimeError("503"))
    mock_create_client.return_value = client

    result = await run_daily_digest(_make_settings())

    assert result["used_fallback"] is True
    assert result["delivered"] is True
    assert result["top_updates"] == 2
    posted = mock_post.call_args.args[0]
    assert [item.score for item in posted.top_updates] == [20, 10]
