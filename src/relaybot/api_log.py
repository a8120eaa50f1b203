"""Audit trail of completion API requests and responses.

Entries go to the ``relaybot.api`` logger as one JSON document per record.
:func:`configure_api_log` additionally mirrors them into a JSON-lines file.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from relaybot.conversation.summary import truncate

API_LOGGER_NAME = "relaybot.api"
_LOG = logging.getLogger(API_LOGGER_NAME)
_FILE_HANDLER_NAME = "relaybot.api.file"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _text_of(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, Sequence):
        parts = []
        for block in content:
            if isinstance(block, Mapping) and block.get("type") == "text":
                parts.append(str(block.get("text", "")))
        return "\n".join(parts)
    return "" if content is None else str(content)


def _clip(value: Any) -> str | None:
    text = _text_of(value)
    return truncate(text) if text else None


def request_entry(kwargs: Mapping[str, Any]) -> dict[str, Any]:
    messages = kwargs.get("messages") or []
    last_input = messages[-1].get("content") if messages else None
    return {
        "timestamp": _now(),
        "type": "REQUEST",
        "model": kwargs.get("model"),
        "max_tokens": kwargs.get("max_tokens"),
        "temperature": kwargs.get("temperature"),
        "system_prompt": _clip(kwargs.get("system")),
        "user_input": _clip(last_input),
        "turns": len(messages),
    }


def response_entry(response: Any) -> dict[str, Any]:
    blocks = getattr(response, "content", None) or []
    first_text = getattr(blocks[0], "text", None) if blocks else None
    return {
        "timestamp": _now(),
        "type": "RESPONSE",
        "model": getattr(response, "model", None),
        "id": getattr(response, "id", None),
        "response_type": getattr(response, "type", None),
        "content": _clip(first_text),
    }


def log_request(kwargs: Mapping[str, Any]) -> dict[str, Any]:
    entry = request_entry(kwargs)
    _LOG.info("%s", json.dumps(entry, ensure_ascii=False, default=str))
    return entry


def log_response(response: Any) -> dict[str, Any]:
    entry = response_entry(response)
    _LOG.info("%s", json.dumps(entry, ensure_ascii=False, default=str))
    return entry


def configure_api_log(path: str | Path) -> logging.Handler:
    """Attach a file handler for API entries. Calling again reuses the handler."""
    for handler in _LOG.handlers:
        if handler.get_name() == _FILE_HANDLER_NAME:
            return handler
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.set_name(_FILE_HANDLER_NAME)
    handler.setFormatter(logging.Formatter("%(message)s"))
    _LOG.addHandler(handler)
    if _LOG.level == logging.NOTSET or _LOG.level > logging.INFO:
        _LOG.setLevel(logging.INFO)
    return handler
