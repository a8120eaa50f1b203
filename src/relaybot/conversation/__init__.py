from .formatter import SYSTEM_ROLE, CompletionRequest, MessageFormatter, split_directive
from .store import Message, Role, SessionStore
from .summary import Summarizer, truncate

__all__ = [
    "SYSTEM_ROLE",
    "CompletionRequest",
    "Message",
    "MessageFormatter",
    "Role",
    "SessionStore",
    "Summarizer",
    "split_directive",
    "truncate",
]
