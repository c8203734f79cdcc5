"""Slack delivery tests."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from codebrief.config import Settings
from codebrief.exceptions import DeliveryError
from codebrief.schemas.digest import Digest
from codebrief.services.retry import RetryPolicy
from codebrief.services.slack import format_digest, post_digest, send_test_message
from tests.factories import make_item

WEBHOOK_URL = "https://hooks.slack.com/services/T000/B000/XXXX"


def _make_settings(webhook_url: str = WEBHOOK_URL) -> Settings:
    return Settings(
        slack_webhook_url=webhook_url,
        retry={"max_attempts": 1, "delay_seconds": 0},
    )


def _response(status_code: int) -> httpx.Response:
    return httpx.Response(status_code, request=httpx.Request("POST", WEBHOOK_URL))


def _make_http_client(*responses: httpx.Response | Exception) -> MagicMock:
    client = MagicMock(spec=httpx.AsyncClient)
    client.post = AsyncMock(side_effect=list(responses))
    client.aclose = AsyncMock()
    return client


def _make_digest(**overrides) -> Digest:
    fields = {
        "date": "Sunday, October 18, 2026",
        "top_updates": (make_item(1, source="GitHub", score=1200),),
        "quick_mentions": (make_item(2, source="RSS", score=7),),
        "community_buzz": (make_item(3, source="Reddit", score=340),),
    }
    fields.update(overrides)
    return Digest(**fields)


# --- format_digest ---


def test_format_digest_renders_all_sections() -> None:
    text = format_digest(_make_digest())

    assert text.startswith("📬 *Code Brief - Sunday, October 18, 2026*")
    assert "🔥 *Top Updates*\n• 🐙 <https://example.com/item-1|Item 1> (1200 stars)" in text
    assert "📰 *Quick Mentions*\n• 📡 <https://example.com/item-2|Item 2>\n" in text
    assert "💬 *Community Buzz*\n• 🤖 <https://example.com/item-3|Item 3> (340 upvotes)" in text
    assert text.endswith("_Curated by Gemini AI_")


def test_format_digest_omits_empty_sections() -> None:
    text = format_digest(_make_digest(quick_mentions=(), community_buzz=()))

    assert "Top Updates" in text
    assert "Quick Mentions" not in text
    assert "Community Buzz" not in text


def test_format_digest_unknown_source_and_missing_score() -> None:
    item = make_item(4, source="Lobsters")
    text = format_digest(_make_digest(top_updates=(item,)))

    assert "• 📌 <https://example.com/item-4|Item 4>\n" in text


def test_format_digest_notes_fallback_ranking() -> None:
    assert "ordered by score" in format_digest(_make_digest(is_fallback=True))
    assert "ordered by score" not in format_digest(_make_digest())


# --- post_digest ---


@pytest.mark.asyncio
async def test_post_digest_sends_mrkdwn_payload() -> None:
    http_client = _make_http_client(_response(200))
    digest = _make_digest()

    await post_digest(digest, _make_settings(), http_client=http_client)

    http_client.post.assert_awaited_once()
    args, kwargs = http_client.post.call_args
    assert args[0] == WEBHOOK_URL
    assert kwargs["json"] == {"text": format_digest(digest), "mrkdwn": True}
    http_client.aclose.assert_not_called()


@pytest.mark.asyncio
async def test_post_digest_without_webhook_raises() -> None:
    http_client = _make_http_client()

    with pytest.raises(DeliveryError, match="not configured"):
        await post_digest(_make_digest(), _make_settings(""), http_client=http_client)

    http_client.post.assert_not_called()


@pytest.mark.asyncio
@patch("codebrief.services.retry.asyncio.sleep", new_callable=AsyncMock)
async def test_post_digest_retries_then_succeeds(mock_sleep: AsyncMock) -> None:
    http_client = _make_http_client(_response(503), _response(200))

    await post_digest(
        _make_digest(),
        _make_settings(),
        http_client=http_client,
        retry=RetryPolicy(max_attempts=3, delay=2.0),
    )

    assert http_client.post.await_count == 2
    mock_sleep.assert_awaited_once_with(2.0)


@pytest.mark.asyncio
async def test_post_digest_http_status_error_raises_delivery_error() -> None:
    http_client = _make_http_client(_response(404))

    with pytest.raises(DeliveryError, match="404") as exc_info:
        await post_digest(_make_digest(), _make_settings(), http_client=http_client)

    assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)


@pytest.mark.asyncio
async def test_post_digest_transport_error_raises_delivery_error() -> None:
    http_client = _make_http_client(httpx.ConnectError("connection refused"))

    with pytest.raises(DeliveryError, match="connection refused"):
        await post_digest(_make_digest(), _make_settings(), http_client=http_client)


@pytest.mark.asyncio
@patch("codebrief.services.slack.create_http_client")
async def test_post_digest_closes_client_it_created(mock_create: MagicMock) -> None:
    http_client = _make_http_client(_response(500))
    mock_create.return_value = http_client

    with pytest.raises(DeliveryError):
        await post_digest(_make_digest(), _make_settings())

    http_client.aclose.assert_awaited_once()


# --- send_test_message ---


@pytest.mark.asyncio
async def test_send_test_message_success() -> None:
    http_client = _make_http_client(_response(200))

    assert await send_test_message(_make_settings(), http_client=http_client) is True
    payload = http_client.post.call_args.kwargs["json"]
    assert "ready to go" in payload["text"]


@pytest.mark.asyncio
async def test_send_test_message_failure_returns_false() -> None:
    http_client = _make_http_client(_response(403))

    assert await send_test_message(_make_settings(), http_client=http_client) is False
    http_client.post.assert_awaited_once()


@pytest.mark.asyncio
async def test_send_test_message_without_webhook_returns_false() -> None:
    assert await send_test_message(_make_settings("")) is False


@pytest.mark.asyncio
async def test_post_digest_malformed_webhook_url_raises_delivery_error() -> None:
    """Verify an unparseable webhook URL is reported as a delivery failure."""
    settings = _make_settings("http://[::1")

    with pytest.raises(DeliveryError) as exc_info:
        await post_digest(Digest(date="Sunday, October 18, 2026"), settings)

    assert isinstance(exc_info.value.__cause__, httpx.InvalidURL)


@pytest.mark.asyncio
async def test_send_test_message_malformed_webhook_url_returns_false() -> None:
    assert await send_test_message(_make_settings("http://[::1")) is False
