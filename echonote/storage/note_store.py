"""Durable storage for the active and trashed note collections."""

import os
import json
import logging
from pathlib import Path
from typing import Dict, List, Union

from ..models.notes import Note, NoteCollection, LoadResult


logger = logging.getLogger(__name__)


class NoteStore:
    """Reads and writes whole note collections as JSON snapshots.
    
    Each collection lives in its own file under the data directory. Every
    save rewrites the full collection; there is no incremental log.
    """
    
    SLOT_NAMES: Dict[NoteCollection, str] = {
        NoteCollection.ACTIVE: "echo-note-projects.json",
        NoteCollection.TRASHED: "echo-note-deleted-projects.json",
    }
    
    def __init__(self, data_dir: str = "./data"):
        """Initialize note store with data directory.
        
        Args:
            data_dir: Base directory for storing all data
        """
        self.data_dir = Path(data_dir)
        self.notes_dir = self.data_dir / "notes"
        self.notes_dir.mkdir(parents=True, exist_ok=True)
        
        logger.info(f"NoteStore initialized with data_dir: {self.data_dir}")
    
    def slot_path(self, collection: Union[NoteCollection, str]) -> Path:
        """Get the file path backing a collection."""
        return self.notes_dir / self.SLOT_NAMES[NoteCollection(collection)]
    
    def save(self, collection: Union[NoteCollection, str], notes: List[Note]) -> str:
        """Serialize a full collection and write it to its slot.
        
        Args:
            collection: Which collection is being written
            notes: Complete ordered contents of the collection
            
        Returns:
            Path to the written file
            
        Raises:
            OSError: If the file cannot be written
        """
        path = self.slot_path(collection)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        payload = [note.to_dict() for note in notes]
        
        try:
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
        except Exception as e:
            logger.error(f"Error saving {NoteCollection(collection).value} notes: {e}")
            if tmp_path.is_file():
                tmp_path.unlink()
            raise
        
        logger.debug(f"Saved {len(notes)} {NoteCollection(collection).value} notes to {path}")
        return str(path)
    
    def load(self, collection: Union[NoteCollection, str]) -> LoadResult:
        """Load a collection from its slot.
        
        Missing data yields an empty collection. Unreadable or malformed data
        also yields an empty collection, with the problem reported in
        ``LoadResult.error``. Never raises.
        
        Args:
            collection: Which collection to read
            
        Returns:
            LoadResult with the notes in stored order
        """
        name = NoteCollection(collection).value
        path = self.slot_path(collection)
        
        if not path.exists():
            logger.info(f"No stored {name} notes at {path}")
            return LoadResult()
        
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            
            if not isinstance(data, list):
                raise ValueError(f"expected a list of notes, got {type(data).__name__}")
            
            notes = [Note.from_dict(item) for item in data]
            logger.info(f"Loaded {len(notes)} {name} notes from {path}")
            return LoadResult(notes=notes)
            
        except (OSError, ValueError, KeyError, TypeError) as e:
            error = f"Failed to load {name} notes from {path}: {e}"
            logger.warning(error)
            return LoadResult(error=error)
