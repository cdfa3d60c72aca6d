"""Data models for the EchoNote application."""

from .audio import AudioStats
from .notes import (
    NoteCollection,
    TranscriptSegment,
    AudioPayload,
    Note,
    LoadResult,
)
from .chat import ChatRole, SessionState, ChatMessage
from .summary import SummarySegment, SummaryResult, SUMMARY_RESPONSE_SCHEMA

__all__ = [
    "AudioStats",
    "NoteCollection",
    "TranscriptSegment",
    "AudioPayload",
    "Note",
    "LoadResult",
    # Chat models
    "ChatRole",
    "SessionState",
    "ChatMessage",
    # Summarization schema
    "SummarySegment",
    "SummaryResult",
    "SUMMARY_RESPONSE_SCHEMA",
]
