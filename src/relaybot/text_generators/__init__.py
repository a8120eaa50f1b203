# text_generators/__init__.py
from .anthropic import AnthropicTextGenerator
from .base import Prompt, TextGeneratorAPI

__all__ = [
    "AnthropicTextGenerator",
    "Prompt",
    "TextGeneratorAPI",
    "get_text_generator",
]


def get_text_generator(api: str, model: str, **kwargs) -> TextGeneratorAPI:
    """Return an appropriate text-generator instance for the given API."""
    if api in ("anthropic", "claude"):
        return AnthropicTextGenerator(model, **kwargs)
    raise ValueError(f"Unknown API: {api}")
