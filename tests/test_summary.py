"""Tests for the conversation digest shown by the history command."""

from __future__ import annotations

import pytest

from relaybot.conversation import SessionStore, Summarizer, truncate
from relaybot.conversation.summary import EMPTY_HISTORY, HEADER
from relaybot.errors import InvalidArgument


class TestTruncate:
    def test_exactly_limit_is_unchanged(self):
        text = "x" * 100
        assert truncate(text) == text

    def test_one_over_limit_is_cut(self):
        text = "x" * 100 + "y"
        assert truncate(text) == "x" * 100 + "..."

    def test_long_text_keeps_first_hundred(self):
        text = "".join(str(i % 10) for i in range(150))
        assert truncate(text) == text[:100] + "..."

    def test_short_and_empty(self):
        assert truncate("hi") == "hi"
        assert truncate("") == ""

    def test_custom_limit_and_marker(self):
        assert truncate("abcdef", limit=3, ellipsis="…") == "abc…"


class TestSummarize:
    def test_empty_history(self, summarizer):
        assert summarizer.summarize("nobody") == EMPTY_HISTORY

    def test_summarize_does_not_create_session(self, store, summarizer):
        summarizer.summarize("nobody")
        assert "nobody" not in store

    def test_cleared_session_reports_empty(self, store, summarizer):
        store.add_message(1, "user", "hi")
        store.clear_conversation(1)
        assert summarizer.summarize(1) == EMPTY_HISTORY

    def test_lines_labels_and_blank_line_separation(self, store, summarizer):
        store.add_message(1, "user", "hi")
        store.add_message(1, "assistant", "hello")
        assert summarizer.summarize(1) == (
            f"{HEADER}\n\n"
            "1. 🧑 You: hi\n\n"
            "2. 🤖 Claude: hello"
        )

    def test_media_marker(self, store, summarizer):
        store.add_message(1, "user", "[Image] - Image uploaded: u", media_info={"type": "image"})
        assert "1. 🧑 You [Media]: [Image]" in summarizer.summarize(1)

    def test_long_content_truncated(self, store, summarizer):
        store.add_message(1, "user", "a" * 150)
        assert summarizer.summarize(1).endswith("1. 🧑 You: " + "a" * 100 + "...")

    def test_twelve_messages_show_last_ten_from_three(self):
        store = SessionStore(max_history_pairs=10)
        for i in range(1, 13):
            store.add_message(1, "user" if i % 2 else "assistant", f"m{i}")
        lines = Summarizer(store).summarize(1).split("\n\n")[1:]
        assert len(lines) == 10
        assert lines[0].startswith("3. ") and lines[0].endswith(": m3")
        assert lines[-1].startswith("12. ") and lines[-1].endswith(": m12")

    @pytest.mark.parametrize("count", [1, 9, 10])
    def test_short_logs_numbered_from_one(self, count):
        store = SessionStore(max_history_pairs=10)
        for i in range(count):
            store.add_message(1, "user", f"m{i}")
        lines = Summarizer(store).summarize(1).split("\n\n")[1:]
        assert [line.split(".")[0] for line in lines] == [str(i) for i in range(1, count + 1)]

    @pytest.mark.parametrize("window", [0, -3, 2.5, True])
    def test_rejects_non_positive_window(self, store, window):
        with pytest.raises(InvalidArgument, match="window"):
            Summarizer(store, window=window)

    def test_custom_window(self, store):
        for i in range(4):
            store.add_message(1, "user", f"m{i}")
        lines = Summarizer(store, window=1).summarize(1).split("\n\n")[1:]
        assert lines == ["4. 🧑 You: m3"]

    def test_does_not_mutate_log(self, store, summarizer):
        store.add_message(1, "user", "b" * 200)
        before = store.get_conversation(1)
        summarizer.summarize(1)
        assert store.get_conversation(1) == before
