"""In-memory authority for active and trashed notes with write-through persistence."""

import logging
from typing import List, Optional, Tuple, Union

from pubsub import pub

from ..models.notes import Note, NoteCollection
from ..storage.note_store import NoteStore

logger = logging.getLogger(__name__)


class DuplicateNoteError(ValueError):
    """Raised when a note id is already present in either collection."""


class NoteRepository:
    """Owns the active and trashed note collections.

    The repository is the only writer of its ``NoteStore``. Every successful
    mutation writes the changed collections through to the store and publishes
    a change message on ``topic`` carrying the new state and a generation
    counter.
    """

    def __init__(self,
                 store: NoteStore,
                 topic: str = "notes.changed",
                 warning_topic: str = "notes.storage_warning"):
        """Initialize the repository.

        Args:
            store: Durable store used for write-through
            topic: Pub/sub topic for change notifications
            warning_topic: Pub/sub topic for failed writes
        """
        self.store = store
        self.topic = topic
        self.warning_topic = warning_topic
        self.generation = 0
        self.storage_warnings: List[str] = []

        self._active: List[Note] = []
        self._trashed: List[Note] = []

        logger.info(f"NoteRepository initialized with topic: {topic}")

    def load(self) -> List[str]:
        """Replace in-memory state with the contents of the store.

        Unreadable collections come back empty. An id found in both
        collections keeps its active copy.

        Returns:
            Warnings describing anything that had to be discarded
        """
        warnings = []

        active_result = self.store.load(NoteCollection.ACTIVE)
        trashed_result = self.store.load(NoteCollection.TRASHED)
        for result in (active_result, trashed_result):
            if result.error:
                warnings.append(result.error)

        active = self._dedupe(active_result.notes, set(), warnings, "active")
        trashed = self._dedupe(trashed_result.notes, {note.id for note in active}, warnings, "trashed")

        self._active = self._sorted_by_created(active)
        self._trashed = trashed
        self.storage_warnings.extend(warnings)

        logger.info(f"Loaded {len(self._active)} active and {len(self._trashed)} trashed notes")
        self._notify()
        return warnings

    @staticmethod
    def _dedupe(notes: List[Note], taken: set, warnings: List[str], name: str) -> List[Note]:
        seen = set(taken)
        kept = []
        for note in notes:
            if note.id in seen:
                warning = f"Dropped duplicate note {note.id} from {name} notes"
                logger.warning(warning)
                warnings.append(warning)
                continue
            seen.add(note.id)
            kept.append(note)
        return kept

    @staticmethod
    def _sorted_by_created(notes: List[Note]) -> List[Note]:
        return sorted(notes, key=lambda note: note.created_at, reverse=True)

    @staticmethod
    def _index_of(notes: List[Note], note_id: str) -> Optional[int]:
        for i, note in enumerate(notes):
            if note.id == note_id:
                return i
        return None

    def create(self, note: Note) -> Note:
        """Insert a new note into the active collection.

        Args:
            note: Fully populated note

        Returns:
            The inserted note

        Raises:
            DuplicateNoteError: If the id already exists in either collection
        """
        if self.contains(note.id):
            raise DuplicateNoteError(f"Note id already exists: {note.id}")

        self._active = self._sorted_by_created(self._active + [note])
        logger.info(f"Created note {note.id}: {note.title_emoji} {note.title}")
        self._commit(NoteCollection.ACTIVE)
        return note

    def soft_delete(self, note_id: str) -> bool:
        """Move a note from the active collection to the front of the trash.

        Returns:
            True if the note was moved, False if it is not active
        """
        index = self._index_of(self._active, note_id)
        if index is None:
            logger.warning(f"Cannot delete note {note_id}: not in active notes")
            return False

        note = self._active.pop(index)
        self._trashed.insert(0, note)
        logger.info(f"Moved note {note_id} to trash")
        self._commit(NoteCollection.ACTIVE, NoteCollection.TRASHED)
        return True

    def restore(self, note_id: str) -> bool:
        """Move a note from the trash back into the active collection.

        Returns:
            True if the note was restored, False if it is not in the trash
        """
        index = self._index_of(self._trashed, note_id)
        if index is None:
            logger.warning(f"Cannot restore note {note_id}: not in trash")
            return False

        note = self._trashed.pop(index)
        self._active = self._sorted_by_created(self._active + [note])
        logger.info(f"Restored note {note_id} from trash")
        self._commit(NoteCollection.ACTIVE, NoteCollection.TRASHED)
        return True

    def purge(self, note_id: str) -> bool:
        """Permanently remove a note from the trash.

        Returns:
            True if the note was removed, False if it is not in the trash
        """
        index = self._index_of(self._trashed, note_id)
        if index is None:
            logger.warning(f"Cannot purge note {note_id}: not in trash")
            return False

        del self._trashed[index]
        logger.info(f"Permanently deleted note {note_id}")
        self._commit(NoteCollection.TRASHED)
        return True

    def list(self, collection: Union[NoteCollection, str] = NoteCollection.ACTIVE) -> Tuple[Note, ...]:
        """Get the current ordered contents of a collection.

        Active notes are newest first; trashed notes are most recently
        deleted first.
        """
        if NoteCollection(collection) is NoteCollection.ACTIVE:
            return tuple(self._active)
        return tuple(self._trashed)

    def get(self, note_id: str) -> Optional[Note]:
        """Look up a note in either collection."""
        for notes in (self._active, self._trashed):
            index = self._index_of(notes, note_id)
            if index is not None:
                return notes[index]
        return None

    def contains(self, note_id: str) -> bool:
        return self.get(note_id) is not None

    def _commit(self, *collections: NoteCollection) -> None:
        """Write changed collections through to the store and notify subscribers.

        A failed write is logged and published as a warning; the in-memory
        change is kept.
        """
        self.generation += 1

        for collection in collections:
            try:
                self.store.save(collection, list(self.list(collection)))
            except OSError as e:
                warning = f"Could not save {collection.value} notes: {e}"
                logger.warning(warning)
                self.storage_warnings.append(warning)
                pub.sendMessage(self.warning_topic, message=warning)

        self._notify()

    def _notify(self) -> None:
        pub.sendMessage(
            self.topic,
            active=self.list(NoteCollection.ACTIVE),
            trashed=self.list(NoteCollection.TRASHED),
            generation=self.generation,
        )
        logger.debug(f"Published {self.topic} generation {self.generation}")
