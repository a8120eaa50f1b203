"""Text-generation backend that calls Anthropic's Claude models."""
from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Dict, List

from anthropic import APIConnectionError, APIError, AsyncAnthropic, RateLimitError

from relaybot import api_log
from relaybot.conversation import CompletionRequest, split_directive

from .base import Prompt, TextGeneratorAPI

_log = logging.getLogger(__name__)

# --------------------------------------------------------------------------- #
# A single shared client per API key; reuse it across all requests            #
# --------------------------------------------------------------------------- #
_CLIENT_CACHE: Dict[str, AsyncAnthropic] = {}


class AnthropicTextGenerator(TextGeneratorAPI):
    """Generate text using Anthropic's Claude models.

    ``prompt`` may be either:

    • **CompletionRequest** – the directive becomes the top-level ``system``
      parameter and the turns become ``messages``.

    • **str** – treated as a single ``{"role": "user", "content": <prompt>}``
      message.

    • **Sequence[dict]** – role/content messages. Entries with role
      ``system`` are lifted out into the ``system`` parameter, as the
      Messages API does not accept them inline.

    Without an explicit ``api_key`` the SDK reads ``ANTHROPIC_API_KEY``.
    """

    def __init__(self, model: str, *, api_key: str | None = None, max_tokens: int = 1000) -> None:
        self.model = model
        self.api_key = api_key
        self.max_tokens = max_tokens

    # ---------------------------------------------------------------- helpers

    def _get_client(self) -> AsyncAnthropic:
        """Return (and cache) a shared ``AsyncAnthropic`` client instance."""
        key = self.api_key or "default"
        if key not in _CLIENT_CACHE:
            _CLIENT_CACHE[key] = AsyncAnthropic(api_key=self.api_key) if self.api_key else AsyncAnthropic()
        return _CLIENT_CACHE[key]

    @staticmethod
    def _normalise(prompt: Prompt) -> tuple[str | None, List[Dict[str, Any]]]:
        if isinstance(prompt, CompletionRequest):
            return prompt.directive or None, [dict(t) for t in prompt.turns]
        if isinstance(prompt, str):
            return None, [{"role": "user", "content": prompt}]
        if isinstance(prompt, Sequence):
            # A very light validation to help catch obvious misuse.
            if not all(isinstance(m, Mapping) and "role" in m and "content" in m for m in prompt):
                raise TypeError("Each message must be a dict with 'role' and 'content' keys")
            return split_directive(prompt)
        raise TypeError(
            "prompt must be a CompletionRequest, a string or a sequence of message dicts"
        )

    # ---------------------------------------------------------------- public

    async def generate(self, prompt: Prompt, temperature: float = 1.0) -> str:
        """Return Claude's reply for *prompt* as a plain string."""
        system, messages = self._normalise(prompt)
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": messages,
            "temperature": temperature,
        }
        if system:
            kwargs["system"] = system

        client = self._get_client()
        api_log.log_request(kwargs)
        try:
            response = await client.messages.create(**kwargs)
        except RateLimitError as e:
            _log.warning("Anthropic rate limit hit for model %s: %s", self.model, e)
            raise
        except APIConnectionError as e:
            _log.error("Anthropic connection error for model %s: %s", self.model, e)
            raise
        except APIError as e:
            _log.error(
                "Anthropic API error for model %s (status %s): %s",
                self.model,
                getattr(e, "status_code", None),
                e.message,
            )
            raise
        api_log.log_response(response)

        # SDK returns a list of content blocks; aggregate text blocks.
        parts: List[str] = []
        for block in getattr(response, "content", []) or []:
            text = getattr(block, "text", None)
            if text:
                parts.append(text)
        return "".join(parts).strip()
