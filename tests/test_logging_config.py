import json
import logging
import sys

from codebrief.config import get_settings
from codebrief.main import configure_logging


def _record(msg: str = "hello", exc_info=None) -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


def test_settings_reads_log_format_from_env(monkeypatch) -> None:
    monkeypatch.setenv("LOG_FORMAT", "json")
    get_settings.cache_clear()

    settings = get_settings()

    assert settings.log_format == "json"


def test_configure_logging_uses_json_formatter(monkeypatch) -> None:
    monkeypatch.setenv("ENV", "prod")
    monkeypatch.setenv("LOG_FORMAT", "json")
    get_settings.cache_clear()

    configure_logging()
    root = logging.getLogger()
    assert root.handlers
    assert root.level == logging.INFO
    formatter = root.handlers[0].formatter
    assert formatter is not None

    payload = json.loads(formatter.format(_record()))

    assert payload["message"] == "hello"
    assert payload["name"] == "test.logger"
    assert payload["levelname"] == "INFO"


def test_json_formatter_includes_exception(monkeypatch) -> None:
    monkeypatch.setenv("LOG_FORMAT", "json")
    get_settings.cache_clear()
    configure_logging()
    formatter = logging.getLogger().handlers[0].formatter

    try:
        raise ValueError("bad value")
    except ValueError:
        payload = json.loads(formatter.format(_record("failed", sys.exc_info())))

    assert "ValueError: bad value" in payload["exc_info"]


def test_configure_logging_text_format_in_dev(monkeypatch) -> None:
    monkeypatch.setenv("ENV", "dev")
    monkeypatch.setenv("LOG_FORMAT", "text")
    get_settings.cache_clear()

    configure_logging()

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert "hello" in root.handlers[0].formatter.format(_record())
    assert logging.getLogger("httpx").level == logging.WARNING
