"""Tests for the structured log formatter."""

import json
import logging

from app.core.logging import JSONFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("app.test", logging.INFO, __file__, 1, "poll %d done", (7,), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_basic_fields(self):
        data = json.loads(JSONFormatter().format(_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "app.test"
        assert data["message"] == "poll 7 done"
        assert "brand_id" not in data

    def test_context_fields(self):
        data = json.loads(JSONFormatter().format(_record(brand_id=7, request_id="abc")))

        assert data["brand_id"] == 7
        assert data["request_id"] == "abc"
