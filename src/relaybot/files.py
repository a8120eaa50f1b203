"""Local storage for files users upload through the chat."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from relaybot.errors import FileTooLarge

if TYPE_CHECKING:
    import discord

_LOG = logging.getLogger(__name__)

MAX_READ_BYTES = 10 * 1024 * 1024
TEXT_EXTENSIONS = {".txt", ".md", ".json", ".csv", ".js", ".py", ".html", ".css", ".xml", ".log"}
_UNSAFE_CHARS_RE = re.compile(r"[^a-z0-9]", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class StoredFile:
    path: Path
    name: str
    url: str
    content_type: str | None = None
    size: int | None = None

    def media_info(self, kind: str, original_name: str | None = None) -> dict[str, object]:
        return {
            "type": kind,
            "file_name": original_name or self.name,
            "url": self.url,
            "content_type": self.content_type,
            "size": self.size,
        }


class UploadStore:
    """Saves attachments under ``directory`` and maps them to public URLs."""

    def __init__(self, directory: str | Path, base_url: str) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self.base_url = base_url.rstrip("/")

    @staticmethod
    def safe_name(stem: str, suffix: str = "", *, timestamp_ms: int | None = None) -> str:
        stamp = int(time.time() * 1000) if timestamp_ms is None else timestamp_ms
        return f"{_UNSAFE_CHARS_RE.sub('_', stem)}_{stamp}{suffix.lower()}"

    def url_for(self, name: str) -> str:
        return f"{self.base_url}/uploads/{name}"

    async def save_bytes(
        self, data: bytes, stem: str, suffix: str = "", content_type: str | None = None
    ) -> StoredFile:
        name = self.safe_name(stem, suffix)
        path = self.directory / name
        await asyncio.to_thread(path.write_bytes, data)
        _LOG.info("Saved upload %s (%d bytes)", path, len(data))
        return StoredFile(path=path, name=name, url=self.url_for(name), content_type=content_type, size=len(data))

    async def save_attachment(self, attachment: discord.Attachment, stem: str | None = None) -> StoredFile:
        """Download *attachment* from Discord and store it locally."""
        original = Path(attachment.filename)
        data = await attachment.read()
        return await self.save_bytes(
            data,
            stem or original.stem or "file",
            original.suffix,
            content_type=attachment.content_type,
        )


def _read_file_content_sync(path: Path) -> str:
    size = path.stat().st_size
    if size > MAX_READ_BYTES:
        raise FileTooLarge(size, MAX_READ_BYTES)
    suffix = path.suffix.lower()
    if suffix in TEXT_EXTENSIONS:
        return path.read_text(encoding="utf-8", errors="replace")
    size_mb = size / (1024 * 1024)
    return f"This is a binary or non-text file ({suffix or 'no extension'}). File size: {size_mb:.2f}MB."


async def read_file_content(path: str | Path) -> str:
    """Return the file's text, or a short description if it is not a text file.

    Raises :class:`FileTooLarge` above ``MAX_READ_BYTES``.
    """
    return await asyncio.to_thread(_read_file_content_sync, Path(path))
