from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import Any

from relaybot.conversation import CompletionRequest

Prompt = CompletionRequest | str | Sequence[Mapping[str, Any]]


class TextGeneratorAPI(ABC):
    """Abstract base class for completion providers."""

    @abstractmethod
    async def generate(self, prompt: Prompt, temperature: float = 1.0) -> str:
        """Return generated text for the given prompt."""
        raise NotImplementedError
