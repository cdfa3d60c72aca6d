"""Chat-related data models."""

from dataclasses import dataclass
from enum import Enum


class ChatRole(Enum):
    """Author of a chat message."""
    USER = "user"
    MODEL = "model"


class SessionState(Enum):
    """Lifecycle state of a conversation session."""
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    STREAMING = "streaming"
    ERROR = "error"


@dataclass
class ChatMessage:
    """A single message in a visible chat transcript."""
    role: ChatRole
    text: str
