"""High-level notes API: audio in, stored note and assistants out."""

import random
import string
import logging
from datetime import datetime
from typing import Callable, List, Optional, Tuple, Union

from ..ai.gemini_client import GeminiClient
from ..ai.summarizer import Summarizer
from ..audio.ingestion import load_audio_file
from ..config import EchoNoteConfig
from ..models.notes import AudioPayload, Note, NoteCollection, TranscriptSegment
from ..storage.note_store import NoteStore
from .note_repository import NoteRepository
from .session_manager import ChatFactory, ConversationSession, ConversationSessionManager

logger = logging.getLogger(__name__)


class NotesService:
    """Wires storage, repository, summarization and chat sessions together."""

    def __init__(self,
                 config: EchoNoteConfig,
                 summarizer: Optional[Summarizer] = None,
                 chat_factory: Optional[ChatFactory] = None,
                 topic: str = "notes.changed",
                 warning_topic: str = "notes.storage_warning",
                 on_update: Optional[Callable[[ConversationSession], None]] = None):
        """Initialize notes service and load stored notes.

        Args:
            config: Application configuration
            summarizer: Summarizer to use; built from config if None
            chat_factory: Opens remote chats; built from config if None
            topic: Pub/sub topic for note changes
            warning_topic: Pub/sub topic for storage write failures
            on_update: Called whenever any session's transcript changes
        """
        self.config = config

        if summarizer is None or chat_factory is None:
            client = GeminiClient(
                api_key=config.get_api_key(),
                model=config.get('gemini.model'),
                base_url=config.get('gemini.base_url'),
                timeout_seconds=config.get('gemini.timeout_seconds', 120),
            )
            summarizer = summarizer or Summarizer(client)
            chat_factory = chat_factory or client.create_chat

        self.summarizer = summarizer
        self.store = NoteStore(config.get_data_directory())
        self.repository = NoteRepository(self.store, topic=topic, warning_topic=warning_topic)
        self.sessions = ConversationSessionManager(chat_factory, topic=topic, on_update=on_update)

        # Publishes the initial state, which opens the global session
        self.load_warnings: List[str] = self.repository.load()
        logger.info("NotesService ready")

    def generate_note_id(self) -> str:
        """Create a note id from the current time plus a random suffix."""
        while True:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            random_suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=4))
            note_id = f"{timestamp}_{random_suffix}"
            if not self.repository.contains(note_id):
                return note_id

    async def create_note_from_payload(self, payload: AudioPayload) -> Note:
        """Summarize encoded audio and store the result as a new active note.

        Raises:
            SummarizationError: If the remote call fails; no note is created
        """
        result = await self.summarizer.summarize(payload)
        note = Note(
            id=self.generate_note_id(),
            title=result.title,
            title_emoji=result.title_emoji,
            summary=result.summary,
            transcript=tuple(
                TranscriptSegment(speaker=segment.speaker, text=segment.text)
                for segment in result.transcription
            ),
            audio=payload,
            created_at=datetime.now(),
        )
        return self.repository.create(note)

    async def create_note_from_file(self, path: str) -> Note:
        """Upload an audio file and turn it into a note.

        Raises:
            IngestionError: If the file cannot be read
            SummarizationError: If the remote call fails
        """
        payload = load_audio_file(path)
        return await self.create_note_from_payload(payload)

    def list_notes(self, collection: Union[NoteCollection, str] = NoteCollection.ACTIVE) -> Tuple[Note, ...]:
        return self.repository.list(collection)

    def get_note(self, note_id: str) -> Optional[Note]:
        return self.repository.get(note_id)

    def delete_note(self, note_id: str) -> bool:
        return self.repository.soft_delete(note_id)

    def restore_note(self, note_id: str) -> bool:
        return self.repository.restore(note_id)

    def purge_note(self, note_id: str) -> bool:
        return self.repository.purge(note_id)

    @property
    def storage_warnings(self) -> List[str]:
        return self.repository.storage_warnings

    @property
    def global_session(self) -> ConversationSession:
        return self.sessions.global_session

    def open_note(self, note_id: str) -> Optional[ConversationSession]:
        """Get the assistant session for a note, or None if the note is unknown."""
        note = self.repository.get(note_id)
        if note is None:
            logger.warning(f"Cannot open note {note_id}: not found")
            return None
        return self.sessions.open_note_session(note)

    def close_note(self, note_id: str) -> bool:
        return self.sessions.close_note_session(note_id)

    def shutdown(self) -> None:
        self.sessions.close()
        logger.info("NotesService shut down")
