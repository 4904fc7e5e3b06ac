import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from storage.migrate import migrate
from config.settings import settings
from llm_gateway import ModelUnavailable, coerce_messages


class StubInvoker:
    """Replays canned replies; an Exception instance in the queue is raised instead."""

    def __init__(self, replies, default="still not json"):
        self.replies = list(replies)
        self.default = default
        self.calls = []

    def invoke(self, model_name, messages):
        chat = coerce_messages(messages)
        self.calls.append({"model": model_name, "messages": chat, "prompt": "\n".join(m["content"] for m in chat)})
        reply = self.replies.pop(0) if self.replies else self.default
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    monkeypatch.setattr(settings, "FEEDBACK_DIR", os.path.join(td.name, "feedback"), raising=False)
    migrate(db_path)
    try:
        yield db_path
    finally:
        td.cleanup()


@pytest.fixture
def stub_invoker():
    return StubInvoker


@pytest.fixture
def unavailable_invoker():
    return StubInvoker([], default=ModelUnavailable("connection refused by 127.0.0.1:11434"))
