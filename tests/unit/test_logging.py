"""Tests for the JSON logger facade."""

import io
import json

from mailsync.utils.logging import REDACTED, get_logger


def _entries(stream):
    return [json.loads(line) for line in stream.getvalue().splitlines()]


def test_log_lines_carry_core_fields():
    stream = io.StringIO()
    logger = get_logger("mailsync.test", stream=stream)
    logger.info("connected", host="imap.test.local", port=993)
    (entry,) = _entries(stream)
    assert entry["lvl"] == "INFO"
    assert entry["msg"] == "connected"
    assert entry["component"] == "mailsync.test"
    assert entry["host"] == "imap.test.local"
    assert "ts" in entry


def test_sensitive_values_are_redacted_recursively():
    stream = io.StringIO()
    logger = get_logger("mailsync.test", stream=stream)
    logger.warning("login", password="hunter2", context={"credentials": "x", "uid": 4})
    (entry,) = _entries(stream)
    assert entry["lvl"] == "WARN"
    assert entry["password"] == REDACTED
    assert entry["context"] == {"credentials": REDACTED, "uid": 4}


def test_non_json_values_are_stringified():
    stream = io.StringIO()
    get_logger("mailsync.test", stream=stream).debug("flags", value=b"\\Seen")
    assert _entries(stream)[0]["value"] == "b'\\\\Seen'"
