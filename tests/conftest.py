"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import tempfile
from contextlib import asynccontextmanager
from pathlib import Path

import pytest

from relaybot.conversation import MessageFormatter, SessionStore, Summarizer


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def store():
    """A fresh store keeping at most three exchanges (six messages)."""
    return SessionStore(max_history_pairs=3)


@pytest.fixture
def formatter(store):
    return MessageFormatter(store, "D")


@pytest.fixture
def summarizer(store):
    return Summarizer(store)


class FakeChannel:
    def __init__(self, channel_id: int = 1):
        self.id = channel_id
        self.sent: list[str] = []
        self.typing_entered = 0

    async def send(self, content: str):
        self.sent.append(content)

    @asynccontextmanager
    async def typing(self):
        self.typing_entered += 1
        yield


class FakeAuthor:
    def __init__(self, *, bot: bool = False):
        self.bot = bot
        self.id = 111222333
        self.name = "TestUser"


class FakeAttachment:
    def __init__(self, filename: str, data: bytes, content_type: str | None = None):
        self.filename = filename
        self.content_type = content_type
        self.size = len(data)
        self._data = data

    async def read(self) -> bytes:
        return self._data


class FakeMessage:
    def __init__(self, content: str, channel: FakeChannel, author: FakeAuthor | None = None, attachments=None):
        self.content = content
        self.channel = channel
        self.author = author or FakeAuthor()
        self.attachments = list(attachments or [])


class FakeCtx:
    def __init__(self, channel: FakeChannel):
        self.channel = channel
        self.sent: list[str] = []

    async def send(self, content: str):
        self.sent.append(content)


class DummyGenerator:
    """Records every request and answers with a canned reply."""

    def __init__(self, reply: str = "Hello back!"):
        self.reply = reply
        self.requests = []
        self.error: BaseException | None = None

    async def generate(self, prompt, temperature: float = 1.0) -> str:
        self.requests.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def fake_channel():
    return FakeChannel()


@pytest.fixture
def generator():
    return DummyGenerator()
