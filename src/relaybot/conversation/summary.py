"""Human-readable digest of a session's recent messages."""

from __future__ import annotations

from collections.abc import Hashable

from relaybot.errors import InvalidArgument

from .store import Message, Role, SessionStore

EMPTY_HISTORY = "No conversation history yet."
HEADER = "Conversation History:"
SUMMARY_WINDOW = 10
CONTENT_LIMIT = 100
ELLIPSIS = "..."
MEDIA_MARKER = " [Media]"
ROLE_LABELS = {
    Role.USER: "🧑 You",
    Role.ASSISTANT: "🤖 Claude",
}


def truncate(text: str, limit: int = CONTENT_LIMIT, ellipsis: str = ELLIPSIS) -> str:
    """Return *text* cut to *limit* characters plus *ellipsis* when longer."""
    if len(text) <= limit:
        return text
    return text[:limit] + ellipsis


def format_line(index: int, message: Message) -> str:
    marker = MEDIA_MARKER if message.has_media else ""
    return f"{index}. {ROLE_LABELS[message.role]}{marker}: {truncate(message.content)}"


class Summarizer:
    """Render the last ``window`` messages of a session, numbered by position."""

    def __init__(self, store: SessionStore, window: int = SUMMARY_WINDOW) -> None:
        if isinstance(window, bool) or not isinstance(window, int) or window <= 0:
            raise InvalidArgument(f"window must be a positive int, got {window!r}")
        self.store = store
        self.window = window

    def summarize(self, session_key: Hashable) -> str:
        log = self.store.peek_conversation(session_key)
        if not log:
            return EMPTY_HISTORY
        start = max(0, len(log) - self.window)
        lines = [
            format_line(start + offset + 1, message)
            for offset, message in enumerate(log[start:])
        ]
        return HEADER + "\n\n" + "\n\n".join(lines)
