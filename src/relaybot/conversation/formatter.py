"""Project a session log into the request shape of a chat-completion API."""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from .store import SessionStore

SYSTEM_ROLE = "system"


@dataclass(frozen=True, slots=True)
class CompletionRequest:
    """Directive plus conversational turns, ready for a completion call.

    ``turns`` holds plain ``{"role", "content"}`` dicts. Anthropic takes the
    directive as the top-level ``system`` parameter; OpenAI-style APIs want
    it inline, which :meth:`as_messages` provides.
    """

    directive: str
    turns: tuple[dict[str, str], ...]

    def as_messages(self) -> list[dict[str, str]]:
        return [{"role": SYSTEM_ROLE, "content": self.directive}, *(dict(t) for t in self.turns)]


class MessageFormatter:
    def __init__(self, store: SessionStore, directive: str) -> None:
        self.store = store
        self.directive = directive

    def format_for_completion(self, session_key: Hashable) -> CompletionRequest:
        log = self.store.get_conversation(session_key)
        turns = tuple({"role": m.role.value, "content": m.content} for m in log)
        return CompletionRequest(directive=self.directive, turns=turns)


def split_directive(
    messages: Iterable[Mapping[str, Any]],
) -> tuple[str | None, list[dict[str, Any]]]:
    """Separate ``system`` entries from an inline message list.

    Multiple system entries are joined with blank lines. Returns
    ``(directive or None, turns)`` with turn order preserved.
    """
    system_parts: list[str] = []
    turns: list[dict[str, Any]] = []
    for message in messages:
        role = str(message.get("role") or "").lower()
        if role == SYSTEM_ROLE:
            content = message.get("content")
            if content:
                system_parts.append(str(content))
        else:
            turns.append({"role": role, "content": message.get("content")})
    directive = "\n\n".join(system_parts).strip() or None
    return directive, turns
