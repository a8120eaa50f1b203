"""Runtime configuration.

Secrets (bot token, API key) come from the environment, usually via a .env
file loaded by the entry point. Non-secret defaults are tracked here.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from relaybot.errors import ConfigError

_LOG = logging.getLogger(__name__)

REQUIRED_ENV_VARS = ("DISCORD_TOKEN", "ANTHROPIC_API_KEY", "ANTHROPIC_MODEL")

# --------------------- System prompt (completion directive) ---------------------

_FALLBACK_SYSTEM_PROMPT: str = (
    "You are Claude, an AI assistant by Anthropic, helping via a Discord bot. "
    "Be helpful, harmless, and honest. Keep responses concise and to the point, "
    "suitable for a messaging platform."
)


def _project_root() -> Path:
    """settings.py lives at src/relaybot/settings.py; the repo root is two levels up."""
    return Path(__file__).resolve().parents[2]


def _candidate_prompt_paths(environ: Mapping[str, str]) -> list[Path]:
    """Return possible paths for the system prompt file.

    Priority order:
    1) SYSTEM_PROMPT_FILE (as-is); if relative, also try as repo-root-relative.
    2) config/system_prompt.txt (repo-root-relative).
    """
    env_val = environ.get("SYSTEM_PROMPT_FILE", "").strip()
    candidates: list[Path] = []
    if env_val:
        p = Path(env_val).expanduser()
        candidates.append(p)
        if not p.is_absolute():
            candidates.append(_project_root() / p)
    candidates.append(_project_root() / "config" / "system_prompt.txt")
    return candidates


def load_system_prompt(environ: Mapping[str, str] | None = None) -> str:
    """Load the directive from a file if one is available, else the built-in text.

    The result is read once at startup; the directive is fixed for the life
    of the process.
    """
    environ = os.environ if environ is None else environ
    for path in _candidate_prompt_paths(environ):
        if not path.is_file():
            continue
        try:
            text = path.read_text(encoding="utf-8").strip()
        except OSError:
            _LOG.warning("Could not read system prompt file %s", path, exc_info=True)
            continue
        if text:
            _LOG.info("Loaded system prompt from %s", path)
            return text
    return _FALLBACK_SYSTEM_PROMPT


# --------------------- Settings ---------------------


@dataclass(frozen=True, slots=True)
class Settings:
    discord_token: str
    anthropic_api_key: str
    anthropic_model: str
    system_prompt: str = _FALLBACK_SYSTEM_PROMPT
    max_history_pairs: int = 10
    anthropic_max_tokens: int = 1000
    anthropic_temperature: float = 0.7
    server_url: str = "http://localhost:3000"
    port: int = 3000
    uploads_dir: Path = Path("uploads")
    api_log_file: Path = Path("logs") / "anthropic_api.log"
    log_level: str = "INFO"


def _int_env(environ: Mapping[str, str], name: str, default: int, *, minimum: int | None = None) -> int:
    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None
    if minimum is not None and value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}, got {value}")
    return value


def _float_env(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build :class:`Settings` from *environ* (defaults to ``os.environ``).

    Raises :class:`ConfigError` naming every missing required variable.
    """
    environ = os.environ if environ is None else environ
    missing = [name for name in REQUIRED_ENV_VARS if not environ.get(name, "").strip()]
    if missing:
        raise ConfigError("Missing required environment variable(s): " + ", ".join(missing))

    return Settings(
        discord_token=environ["DISCORD_TOKEN"].strip(),
        anthropic_api_key=environ["ANTHROPIC_API_KEY"].strip(),
        anthropic_model=environ["ANTHROPIC_MODEL"].strip(),
        system_prompt=load_system_prompt(environ),
        max_history_pairs=_int_env(environ, "MAX_HISTORY_PAIRS", 10, minimum=1),
        anthropic_max_tokens=_int_env(environ, "ANTHROPIC_MAX_TOKENS", 1000, minimum=1),
        anthropic_temperature=_float_env(environ, "ANTHROPIC_TEMPERATURE", 0.7),
        server_url=(environ.get("SERVER_URL", "").strip() or "http://localhost:3000").rstrip("/"),
        port=_int_env(environ, "PORT", 3000, minimum=1),
        uploads_dir=Path(environ.get("UPLOADS_DIR", "").strip() or "uploads"),
        api_log_file=Path(environ.get("API_LOG_FILE", "").strip() or Path("logs") / "anthropic_api.log"),
        log_level=(environ.get("LOG_LEVEL", "").strip() or "INFO").upper(),
    )
