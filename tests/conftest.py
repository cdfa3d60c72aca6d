"""Pytest configuration and fixtures for EchoNote tests."""

import asyncio
import base64
import uuid
import pytest
import tempfile
import logging
from datetime import datetime, timedelta
from typing import List

from pubsub import pub

from echonote.models.notes import AudioPayload, Note, TranscriptSegment


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

BASE_TIME = datetime(2024, 5, 1, 9, 0, 0)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without network or audio hardware")


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def make_note():
    """Factory for notes whose created_at is BASE_TIME plus ``minutes``."""
    def _make_note(note_id: str, minutes: int = 0, title: str = None, summary: str = None) -> Note:
        return Note(
            id=note_id,
            title=title or f"Note {note_id}",
            title_emoji="📝",
            summary=summary or f"Summary of {note_id}",
            transcript=(
                TranscriptSegment(speaker="Speaker 1", text=f"Hello from {note_id}."),
                TranscriptSegment(speaker="Speaker 2", text="Hi there."),
            ),
            audio=AudioPayload(
                data_base64=base64.b64encode(f"audio-{note_id}".encode()).decode("ascii"),
                mime_type="audio/webm",
            ),
            created_at=BASE_TIME + timedelta(minutes=minutes),
        )
    return _make_note


@pytest.fixture
def topics():
    """Unique pub/sub topic names so tests never hear each other."""
    suffix = uuid.uuid4().hex
    return f"notes_{suffix}", f"storage_warnings_{suffix}"


@pytest.fixture
def change_log(topics):
    """Records every change message published on the notes topic."""
    messages = []

    def listener(active, trashed, generation):
        messages.append({"active": active, "trashed": trashed, "generation": generation})

    pub.subscribe(listener, topics[0])
    yield messages
    pub.unsubscribe(listener, topics[0])


@pytest.fixture
def warning_log(topics):
    """Records every storage warning published."""
    messages = []

    def listener(message):
        messages.append(message)

    pub.subscribe(listener, topics[1])
    yield messages
    pub.unsubscribe(listener, topics[1])


class FakeChat:
    """Stands in for a remote chat, streaming scripted replies."""

    def __init__(self, factory: "FakeChatFactory", system_instruction: str):
        self.factory = factory
        self.system_instruction = system_instruction
        self.sent: List[str] = []

    async def send_message_stream(self, message: str):
        self.sent.append(message)
        for item in self.factory.next_reply():
            if isinstance(item, Exception):
                raise item
            yield item
            # Give other tasks a chance to run between fragments
            await asyncio.sleep(0)
            if self.factory.on_fragment:
                self.factory.on_fragment(item)


class FakeChatFactory:
    """Callable chat factory recording every chat it opens."""

    def __init__(self, replies=None):
        self.replies = list(replies or [])
        self.default_reply = ["Hel", "lo, ", "world"]
        self.on_fragment = None
        self.chats: List[FakeChat] = []

    def next_reply(self):
        if self.replies:
            return self.replies.pop(0)
        return self.default_reply

    def __call__(self, system_instruction: str) -> FakeChat:
        chat = FakeChat(self, system_instruction)
        self.chats.append(chat)
        return chat


@pytest.fixture
def chat_factory():
    return FakeChatFactory()
