"""Tests for the completion API audit log."""

from __future__ import annotations

import json
import logging
from unittest.mock import MagicMock

from relaybot import api_log


def test_request_entry_truncates_system_and_input():
    entry = api_log.request_entry(
        {
            "model": "claude-test",
            "max_tokens": 1000,
            "temperature": 0.7,
            "system": "s" * 150,
            "messages": [
                {"role": "user", "content": "first"},
                {"role": "user", "content": "u" * 120},
            ],
        }
    )
    assert entry["type"] == "REQUEST"
    assert entry["model"] == "claude-test"
    assert entry["system_prompt"] == "s" * 100 + "..."
    assert entry["user_input"] == "u" * 100 + "..."
    assert entry["turns"] == 2


def test_request_entry_without_system_or_messages():
    entry = api_log.request_entry({"model": "m", "messages": []})
    assert entry["system_prompt"] is None
    assert entry["user_input"] is None


def test_request_entry_reads_text_blocks():
    entry = api_log.request_entry(
        {"messages": [{"role": "user", "content": [{"type": "text", "text": "block"}, {"type": "image"}]}]}
    )
    assert entry["user_input"] == "block"


def test_response_entry():
    block = MagicMock()
    block.text = "reply"
    response = MagicMock(id="msg_1", model="claude-test", type="message", content=[block])
    entry = api_log.response_entry(response)
    assert entry == {
        "timestamp": entry["timestamp"],
        "type": "RESPONSE",
        "model": "claude-test",
        "id": "msg_1",
        "response_type": "message",
        "content": "reply",
    }


def test_configure_api_log_writes_json_lines(temp_dir):
    path = temp_dir / "logs" / "api.log"
    logger = logging.getLogger(api_log.API_LOGGER_NAME)
    handler = api_log.configure_api_log(path)
    try:
        assert api_log.configure_api_log(path) is handler
        api_log.log_request({"model": "m", "messages": [{"role": "user", "content": "hi"}]})
        handler.flush()
        lines = path.read_text(encoding="utf-8").splitlines()
        assert json.loads(lines[-1])["user_input"] == "hi"
    finally:
        logger.removeHandler(handler)
        handler.close()
