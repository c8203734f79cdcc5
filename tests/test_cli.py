"""Command line entrypoint tests."""

from unittest.mock import AsyncMock, MagicMock, patch

from codebrief.__main__ import main
from codebrief.exceptions import DeliveryError


@patch("codebrief.__main__.configure_logging")
@patch("codebrief.__main__.run_daily_digest", new_callable=AsyncMock)
def test_main_runs_digest_once(mock_run: AsyncMock, mock_logging: MagicMock) -> None:
    mock_run.return_value = {"delivered": True}

    assert main([]) == 0
    mock_run.assert_awaited_once()
    mock_logging.assert_called_once()


@patch("codebrief.__main__.configure_logging")
@patch("codebrief.__main__.run_daily_digest", new_callable=AsyncMock)
def test_main_returns_nonzero_on_failure(mock_run: AsyncMock, mock_logging: MagicMock) -> None:
    mock_run.side_effect = DeliveryError("Slack webhook URL is not configured")

    assert main([]) == 1


@patch("codebrief.__main__.configure_logging")
@patch("codebrief.__main__.run_daily_digest", new_callable=AsyncMock)
@patch("codebrief.__main__.send_test_message", new_callable=AsyncMock)
def test_main_test_webhook(
    mock_send: AsyncMock,
    mock_run: AsyncMock,
    mock_logging: MagicMock,
) -> None:
    mock_send.return_value = False

    assert main(["--test-webhook"]) == 1
    mock_send.assert_awaited_once()
    mock_run.assert_not_called()
