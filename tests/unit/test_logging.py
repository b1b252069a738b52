from __future__ import annotations

import json
import logging

from recordkit.utils.logging import _json_formatter

EXPECTED_ROWS = 10
EXPECTED_PARAMS = [5, "abc"]


def _record() -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="hello",
        args=(),
        exc_info=None,
    )


def test_json_formatter_promotes_standard_extra_fields() -> None:
    record = _record()
    record.rows = EXPECTED_ROWS
    record.statement = 'SELECT * FROM "alerts"'
    record.params = EXPECTED_PARAMS

    payload = json.loads(_json_formatter(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "test.logger"
    assert payload["message"] == "hello"
    assert payload["rows"] == EXPECTED_ROWS
    assert payload["statement"] == 'SELECT * FROM "alerts"'
    assert payload["params"] == EXPECTED_PARAMS
    assert "pathname" not in payload


def test_json_formatter_supports_legacy_nested_extra_field() -> None:
    record = _record()
    record.extra = {"rows": EXPECTED_ROWS}

    payload = json.loads(_json_formatter(record))

    assert payload["rows"] == EXPECTED_ROWS


def test_json_formatter_stringifies_unserializable_values() -> None:
    record = _record()
    record.model = object()

    payload = json.loads(_json_formatter(record))

    assert payload["model"].startswith("<object object")
