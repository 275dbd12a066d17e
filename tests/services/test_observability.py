"""Structured logging - JSON records carry the domain correlation fields."""

import json
import logging

from memoria.infrastructure.observability import JSONFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "memoria.services.group_roster", logging.INFO, __file__, 1,
        "Member joined", None, None,
    )
    record.__dict__.update(extra)
    return record


def test_json_formatter_surfaces_known_extras():
    line = JSONFormatter().format(_record(user_id="bob", group_id="g-1", unrelated="x"))
    log = json.loads(line)

    assert log["message"] == "Member joined"
    assert log["level"] == "INFO"
    assert log["logger"] == "memoria.services.group_roster"
    assert log["user_id"] == "bob"
    assert log["group_id"] == "g-1"
    assert "unrelated" not in log


def test_json_formatter_skips_missing_extras():
    log = json.loads(JSONFormatter().format(_record()))
    assert "user_id" not in log
    assert "exception" not in log
