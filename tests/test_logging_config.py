"""
Tests for JSON log formatting.
"""

import json
import logging

from citycard.logging_config import JSONFormatter


def test_json_formatter_fields():
    record = logging.LogRecord(
        name="citycard.services.card_service",
        level=logging.INFO,
        pathname=__file__,
        lineno=42,
        msg="Card cache hit: %s",
        args=("2026-03/07/v2/杭州.webp",),
        exc_info=None,
    )

    payload = json.loads(JSONFormatter().format(record))

    assert payload["level"] == "INFO"
    assert payload["message"] == "Card cache hit: 2026-03/07/v2/杭州.webp"
    assert payload["logger"] == "citycard.services.card_service"
    assert payload["line"] == 42


def test_json_formatter_extra_fields():
    record = logging.LogRecord("x", logging.WARNING, __file__, 1, "lease wait expired", None, None)
    record.extra = {"cache_key": "2026-03/07/v2/paris.webp"}

    payload = json.loads(JSONFormatter().format(record))

    assert payload["cache_key"] == "2026-03/07/v2/paris.webp"
