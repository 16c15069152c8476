"""Tests for the Telegram handlers using fake updates."""

import asyncio
from pathlib import Path
from types import SimpleNamespace
import sys

sys.path.append(str(Path(__file__).resolve().parent.parent))

import pytest  # noqa: E402

import eliza  # noqa: E402
import ground  # noqa: E402
from session import Session  # noqa: E402


class FakeMessage:
    def __init__(self, text):
        self.text = text
        self.replies = []

    async def reply_text(self, text):
        self.replies.append(text)


def _update(text, chat_id=1):
    return SimpleNamespace(effective_chat=SimpleNamespace(id=chat_id), message=FakeMessage(text))


@pytest.fixture(autouse=True)
def fresh_sessions(monkeypatch, script):
    monkeypatch.setattr(ground, "SESSIONS", {})
    monkeypatch.setattr(eliza, "new_session", lambda path=None: Session(script))


def _send(text, chat_id=1):
    update = _update(text, chat_id)
    asyncio.run(ground.handle_message(update, None))
    return update.message.replies


def test_first_message_is_greeted_and_answered():
    assert _send("I am tired") == ["Hello.\nWhy do you say you are tired"]
    assert 1 in ground.SESSIONS


def test_start_command_greets():
    update = _update("/start")
    asyncio.run(ground.start(update, None))
    assert update.message.replies == ["Hello."]
    assert _send("I am tired") == ["Why do you say you are tired"]


def test_chats_have_separate_sessions():
    _send("My dog is lost", chat_id=1)
    assert _send("hmm", chat_id=2) == ["Hello.\nPlease go on."]
    assert _send("hmm", chat_id=1) == ["Earlier you said your dog is lost."]


def test_farewell_drops_session():
    _send("hello")
    assert _send("bye") == ["Goodbye."]
    assert 1 not in ground.SESSIONS
    assert _send("I am back") == ["Hello.\nWhy do you say you are back"]


def test_main_requires_token(monkeypatch):
    monkeypatch.delenv("TELEGRAM_TOKEN", raising=False)
    with pytest.raises(RuntimeError):
        ground.main()
