"""Discord bridge to Anthropic's Claude with bounded per-channel history."""

__version__ = "0.1.0"
