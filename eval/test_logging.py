"""Structured log formatting."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from amc8_coach.observability.context import set_request_id, reset_request_id
from amc8_coach.observability.logging_setup import build_handler


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("amc8.store", logging.WARNING, __file__, 1, "snapshot_invalid", (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_lines_carry_extras_and_request_id():
    handler = build_handler("json")
    token = set_request_id("req-1")
    try:
        record = _record(event="snapshot_invalid", errors=2)
        assert all(f.filter(record) for f in handler.filters)
        payload = json.loads(handler.format(record))
    finally:
        reset_request_id(token)

    assert payload["level"] == "WARNING"
    assert payload["logger"] == "amc8.store"
    assert payload["event"] == "snapshot_invalid"
    assert payload["errors"] == 2
    assert payload["request_id"] == "req-1"


def test_text_format_is_plain():
    handler = build_handler("text")
    line = handler.format(_record())
    assert "WARNING amc8.store snapshot_invalid" in line
