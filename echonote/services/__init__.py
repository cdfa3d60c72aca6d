"""Services layer for EchoNote application logic."""

from .note_repository import NoteRepository, DuplicateNoteError
from .session_manager import ConversationSession, ConversationSessionManager, FAILURE_NOTICE
from .notes_service import NotesService

__all__ = [
    "NoteRepository",
    "DuplicateNoteError",
    "ConversationSession",
    "ConversationSessionManager",
    "FAILURE_NOTICE",
    "NotesService",
]
