from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Hashable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from discord.ext import commands

from relaybot.conversation import MessageFormatter, Role, SessionStore, Summarizer
from relaybot.errors import log_error, user_error_message
from relaybot.files import UploadStore, read_file_content

if TYPE_CHECKING:
    import discord

    from relaybot.text_generators import TextGeneratorAPI

_LOG = logging.getLogger(__name__)

_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp"}
_MESSAGE_CHUNK = 1900

WELCOME_TEXT = (
    "Hello! I am your Claude AI assistant bot. How can I help you today? "
    "You can also send me images and files!"
)
HELP_TEXT = (
    "Available commands:\n"
    "`!start` - Start the bot\n"
    "`!clear` - Clear conversation history\n"
    "`!history` - View recent conversation\n"
    "`!analyze` - Analyze the last uploaded file\n"
    "`!help` - Show this help message\n\n"
    "Simply send a message to chat with Claude AI.\n"
    "You can also send images and files that I can see and process."
)
ANALYZE_PROMPT = (
    "Please analyze the following file content:\n\n{content}\n\n"
    "Provide a summary and any insights about this content."
)
EMPTY_REPLY_TEXT = "Generation failed: empty response."


@dataclass(frozen=True, slots=True)
class UploadedFile:
    file_name: str
    path: Path
    url: str
    content_type: str | None


def is_image_attachment(attachment: discord.Attachment) -> bool:
    """Check if attachment is an image file."""
    if attachment.content_type and attachment.content_type.lower().startswith("image/"):
        return True
    _, ext = os.path.splitext(attachment.filename)
    return ext.lower() in _IMAGE_EXTENSIONS


def has_command_prefix(content: str | None, prefixes: str | list[str]) -> bool:
    """Match the bot's resolved prefixes the same way the command framework does."""
    if not content:
        return False
    if isinstance(prefixes, str):
        prefixes = [prefixes]
    return content.startswith(tuple(prefixes))


def chunk_text(text: str, size: int = _MESSAGE_CHUNK) -> list[str]:
    """Split *text* on line boundaries into pieces no longer than *size*."""
    text = text.strip()
    if len(text) <= size:
        return [text] if text else []
    chunks: list[str] = []
    buffer = ""
    for line in text.splitlines(keepends=True):
        if len(buffer) + len(line) > size:
            if buffer:
                chunks.append(buffer.rstrip())
                buffer = ""
            while len(line) > size:
                chunks.append(line[:size])
                line = line[size:]
        buffer += line
    if buffer.strip():
        chunks.append(buffer.rstrip())
    return [chunk for chunk in chunks if chunk]


class ChatCog(commands.Cog):
    """Relay channel messages to the completion API with per-channel history.

    The channel id is the session key. A channel's exchanges run one at a
    time under that channel's ``asyncio.Lock``; other channels proceed
    independently.
    """

    def __init__(
        self,
        bot: commands.Bot,
        *,
        store: SessionStore,
        formatter: MessageFormatter,
        summarizer: Summarizer,
        generator: TextGeneratorAPI,
        uploads: UploadStore,
        temperature: float = 0.7,
    ) -> None:
        self.bot = bot
        self.store = store
        self.formatter = formatter
        self.summarizer = summarizer
        self.generator = generator
        self.uploads = uploads
        self.temperature = temperature
        self._last_uploads: dict[Hashable, UploadedFile] = {}
        self._channel_locks: dict[Hashable, asyncio.Lock] = {}

    # ---------------------------------------------------------------- helpers

    def _lock_for_channel(self, channel_id: Hashable) -> asyncio.Lock:
        lock = self._channel_locks.get(channel_id)
        if lock is None:
            lock = asyncio.Lock()
            self._channel_locks[channel_id] = lock
        return lock

    async def _is_command(self, message: discord.Message) -> bool:
        """True when the command framework will treat *message* as a command.

        Covers every prefix the bot accepts, including a leading mention.
        """
        prefixes = await self.bot.get_prefix(message)
        return has_command_prefix(message.content, prefixes)

    async def _send_chunks(self, channel: discord.abc.Messageable, text: str) -> None:
        for chunk in chunk_text(text) or ["[no content]"]:
            await channel.send(chunk)

    async def _complete_and_reply(self, channel: discord.abc.Messageable, session_key: Hashable) -> None:
        """Send the session to the completion API, record and deliver the reply."""
        request = self.formatter.format_for_completion(session_key)
        async with channel.typing():
            reply = await self.generator.generate(request, temperature=self.temperature)
        if not reply.strip():
            await channel.send(EMPTY_REPLY_TEXT)
            return
        self.store.add_message(session_key, Role.ASSISTANT, reply)
        await self._send_chunks(channel, reply)

    # ------------------------------------------------------------- core flow

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot:
            return
        if await self._is_command(message):
            return
        if message.attachments:
            await self._handle_uploads(message)
            return
        if not (message.content or "").strip():
            return

        channel = message.channel
        session_key = channel.id
        user_input = message.content.strip()
        async with self._lock_for_channel(session_key):
            try:
                self.store.add_message(session_key, Role.USER, user_input)
                await self._complete_and_reply(channel, session_key)
            except Exception as exc:  # noqa: BLE001
                log_error(exc, channel_id=session_key, user_input=user_input[:120])
                await channel.send(user_error_message(exc))

    async def _handle_uploads(self, message: discord.Message) -> None:
        caption = (message.content or "").strip()
        for attachment in message.attachments:
            is_image = is_image_attachment(attachment)
            try:
                if is_image:
                    await self._handle_image(message, attachment, caption)
                else:
                    await self._handle_document(message, attachment, caption)
            except Exception as exc:  # noqa: BLE001
                kind = "image" if is_image else "file"
                log_error(exc, channel_id=message.channel.id, context=f"{kind} upload")
                await message.channel.send(
                    f"Sorry, I couldn't process this {kind}. " + user_error_message(exc)
                )

    async def _handle_image(
        self, message: discord.Message, attachment: discord.Attachment, caption: str
    ) -> None:
        channel = message.channel
        stored = await self.uploads.save_attachment(attachment, stem=f"photo_{channel.id}")
        text = f"[{caption or 'Image'}] - Image uploaded: {stored.url}"
        async with self._lock_for_channel(channel.id):
            self.store.add_message(
                channel.id, Role.USER, text, media_info=stored.media_info("image", attachment.filename)
            )
        suffix = f' with caption: "{caption}"' if caption else ""
        await channel.send(f"I've received your image{suffix}.")

    async def _handle_document(
        self, message: discord.Message, attachment: discord.Attachment, caption: str
    ) -> None:
        channel = message.channel
        file_name = attachment.filename or "document"
        stored = await self.uploads.save_attachment(attachment)
        self._last_uploads[channel.id] = UploadedFile(
            file_name=file_name,
            path=stored.path,
            url=stored.url,
            content_type=attachment.content_type,
        )
        text = (
            f"[{caption or 'Document'}] - File uploaded: {stored.url} "
            f"(name: {file_name}, type: {attachment.content_type or 'unknown'})"
        )
        async with self._lock_for_channel(channel.id):
            self.store.add_message(
                channel.id, Role.USER, text, media_info=stored.media_info("document", file_name)
            )
        suffix = f' with caption: "{caption}"' if caption else ""
        await channel.send(
            f'I\'ve received your file: "{file_name}"{suffix}.\n'
            "Use `!analyze` to analyze the content of this file."
        )

    # --------------------------------------------------------------- commands

    @commands.command(name="start")
    async def start_command(self, ctx: commands.Context) -> None:
        await ctx.send(WELCOME_TEXT)

    @commands.command(name="clear")
    async def clear_command(self, ctx: commands.Context) -> None:
        async with self._lock_for_channel(ctx.channel.id):
            self.store.clear_conversation(ctx.channel.id)
        await ctx.send("Conversation history cleared!")

    @commands.command(name="history")
    async def history_command(self, ctx: commands.Context) -> None:
        summary = self.summarizer.summarize(ctx.channel.id)
        for chunk in chunk_text(summary):
            await ctx.send(chunk)

    @commands.command(name="help")
    async def help_command(self, ctx: commands.Context) -> None:
        await ctx.send(HELP_TEXT)

    @commands.command(name="analyze")
    async def analyze_command(self, ctx: commands.Context) -> None:
        session_key = ctx.channel.id
        upload = self._last_uploads.get(session_key)
        if upload is None:
            await ctx.send("No file to analyze. Please upload a file first.")
            return
        async with self._lock_for_channel(session_key):
            try:
                content = await read_file_content(upload.path)
                self.store.add_message(session_key, Role.USER, ANALYZE_PROMPT.format(content=content))
                await ctx.send(f"Analyzing file: {upload.file_name}...")
                await self._complete_and_reply(ctx.channel, session_key)
            except Exception as exc:  # noqa: BLE001
                log_error(exc, channel_id=session_key, context="file analysis")
                await ctx.send("Sorry, I couldn't analyze this file. " + user_error_message(exc))
