"""In-memory, bounded conversation history keyed by chat session."""

from __future__ import annotations

import copy
import logging
import threading
from collections import deque
from collections.abc import Hashable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Deque

from relaybot.errors import InvalidArgument

_LOG = logging.getLogger(__name__)


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True, slots=True)
class Message:
    role: Role
    content: str
    media_info: Mapping[str, Any] | None = None

    @property
    def has_media(self) -> bool:
        return self.media_info is not None


class SessionStore:
    """Per-session message logs capped at ``2 * max_history_pairs`` entries.

    Each session key gets its own ``threading.Lock``; operations on one key
    are serialized while different keys never contend. ``_table_lock`` only
    guards creation of those per-key locks and is never held while a log is
    being changed.

    Locks outlive ``clear_conversation`` so a caller that raced a clear still
    serializes against whoever recreates the session.
    """

    def __init__(self, max_history_pairs: int) -> None:
        if isinstance(max_history_pairs, bool) or not isinstance(max_history_pairs, int):
            raise InvalidArgument(f"max_history_pairs must be an int, got {max_history_pairs!r}")
        if max_history_pairs <= 0:
            raise InvalidArgument(f"max_history_pairs must be positive, got {max_history_pairs}")
        self.max_history_pairs = max_history_pairs
        self._sessions: dict[Hashable, Deque[Message]] = {}
        self._locks: dict[Hashable, threading.Lock] = {}
        self._table_lock = threading.Lock()

    @property
    def max_messages(self) -> int:
        return self.max_history_pairs * 2

    # ---------------------------------------------------------------- helpers

    def _lock_for(self, session_key: Hashable) -> threading.Lock:
        with self._table_lock:
            lock = self._locks.get(session_key)
            if lock is None:
                lock = threading.Lock()
                self._locks[session_key] = lock
            return lock

    def _log_for(self, session_key: Hashable) -> Deque[Message]:
        # caller holds the key's lock
        log = self._sessions.get(session_key)
        if log is None:
            log = deque(maxlen=self.max_messages)
            self._sessions[session_key] = log
        return log

    @staticmethod
    def _coerce_role(role: Role | str) -> Role:
        try:
            return Role(role)
        except ValueError:
            raise InvalidArgument(
                f"role must be 'user' or 'assistant', got {role!r}"
            ) from None

    @staticmethod
    def _freeze_media(media_info: Mapping[str, Any] | None) -> Mapping[str, Any] | None:
        if media_info is None:
            return None
        if not isinstance(media_info, Mapping):
            raise InvalidArgument(
                f"media_info must be a mapping or None, got {type(media_info).__name__}"
            )
        return MappingProxyType(copy.deepcopy(dict(media_info)))

    # ---------------------------------------------------------------- public

    def add_message(
        self,
        session_key: Hashable,
        role: Role | str,
        content: str,
        media_info: Mapping[str, Any] | None = None,
    ) -> None:
        """Append a message, dropping the oldest entries past the bound."""
        checked_role = self._coerce_role(role)
        if not isinstance(content, str) or not content:
            raise InvalidArgument("content must be a non-empty string")
        message = Message(checked_role, content, self._freeze_media(media_info))

        with self._lock_for(session_key):
            log = self._log_for(session_key)
            if len(log) == log.maxlen:
                _LOG.debug("Session %s full; dropping oldest message", session_key)
            log.append(message)
            _LOG.debug(
                "Session %s: appended %s message (%d/%d)",
                session_key,
                checked_role.value,
                len(log),
                self.max_messages,
            )

    def get_conversation(self, session_key: Hashable) -> tuple[Message, ...]:
        """Return a snapshot of the session's log, creating the session if new."""
        with self._lock_for(session_key):
            return tuple(self._log_for(session_key))

    def peek_conversation(self, session_key: Hashable) -> tuple[Message, ...]:
        """Like :meth:`get_conversation` but never creates a session or its lock."""
        if session_key not in self._sessions:
            return ()
        with self._lock_for(session_key):
            return tuple(self._sessions.get(session_key, ()))

    def clear_conversation(self, session_key: Hashable) -> None:
        """Forget the session entirely. Unknown keys are ignored."""
        with self._lock_for(session_key):
            removed = self._sessions.pop(session_key, None)
        if removed is not None:
            _LOG.info("Cleared session %s (%d message(s))", session_key, len(removed))

    # ------------------------------------------------------------ diagnostics

    def session_keys(self) -> list[Hashable]:
        return list(self._sessions)

    def __contains__(self, session_key: object) -> bool:
        return session_key in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self.session_keys())
