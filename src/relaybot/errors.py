"""Exception types and user-facing error messages."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp
from anthropic import APIConnectionError, APIStatusError

_LOG = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "Sorry, I encountered an error. Please try again later."
NETWORK_ERROR_MESSAGE = "Network error. Please check your connection and try again."
_STATUS_MESSAGES: dict[int, str] = {
    400: "Invalid request. The bot encountered an error with your message.",
    401: "Authentication error. Please check API keys.",
    403: "Access denied. Your API key may not have permission to use this model.",
    429: "Rate limit exceeded. Please try again in a few moments.",
}
_SERVER_ERROR_MESSAGE = "Service is temporarily unavailable. Please try again later."


class RelayError(Exception):
    """Base class for errors raised by relaybot itself."""


class InvalidArgument(RelayError, ValueError):
    """A caller passed a value the conversation store refuses to record."""


class ConfigError(RelayError):
    """Required configuration is missing or malformed."""


class FileTooLarge(RelayError):
    """An uploaded file exceeds the size that may be read back."""

    def __init__(self, size_bytes: int, limit_bytes: int) -> None:
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes
        super().__init__(
            f"File is too large ({size_bytes / (1024 * 1024):.2f}MB). "
            f"Maximum size is {limit_bytes // (1024 * 1024)}MB."
        )


def user_error_message(exc: BaseException) -> str:
    """Return a short sentence suitable for showing *exc* to a chat user."""
    if isinstance(exc, APIStatusError):
        status = exc.status_code
        if status in _STATUS_MESSAGES:
            return _STATUS_MESSAGES[status]
        if status >= 500:
            return _SERVER_ERROR_MESSAGE
        return DEFAULT_ERROR_MESSAGE
    if isinstance(exc, (APIConnectionError, aiohttp.ClientConnectionError, TimeoutError)):
        return NETWORK_ERROR_MESSAGE
    if isinstance(exc, FileTooLarge):
        return str(exc)
    return DEFAULT_ERROR_MESSAGE


def log_error(exc: BaseException, **context: Any) -> None:
    """Log *exc* with its traceback and whatever context the caller has."""
    _LOG.error(
        "%s: %s (context=%s)",
        type(exc).__name__,
        exc,
        context,
        exc_info=(type(exc), exc, exc.__traceback__),
    )
