from __future__ import annotations

import json
import logging

from tickerwatch.telemetry.logging_setup import JsonFormatter, configure_logging


def test_json_formatter_should_merge_extra_fields() -> None:
    record = logging.LogRecord("tickerwatch.view", logging.WARNING, __file__, 1, "Refresh failed", None, None)
    record.view = "bybit:spot"
    record.error = "timeout"
    record.unserializable = object()
    payload = json.loads(JsonFormatter().format(record))

    assert payload["level"] == "WARNING"
    assert payload["message"] == "Refresh failed"
    assert payload["view"] == "bybit:spot"
    assert payload["error"] == "timeout"
    assert "unserializable" not in payload
    assert "msg" not in payload
    assert payload["timestamp"].endswith("+00:00")


def test_configure_logging_should_write_jsonl(tmp_path) -> None:
    logger = configure_logging(log_dir=tmp_path / "logs", level="info", logger_name="tickerwatch.test", console=False)
    logger.info("hello", extra={"market": "KRW"})
    for handler in logger.handlers:
        handler.flush()

    lines = (tmp_path / "logs" / "viewer_current.jsonl").read_text(encoding="utf-8").strip().splitlines()
    last = json.loads(lines[-1])
    assert last["message"] == "hello"
    assert last["market"] == "KRW"
    assert logger.propagate is False
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
