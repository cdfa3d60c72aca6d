"""Durable storage for notes."""

from .note_store import NoteStore

__all__ = [
    "NoteStore",
]
