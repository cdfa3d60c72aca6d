"""Transient playable audio for a note."""

import os
import base64
import logging
import mimetypes
import tempfile
from contextlib import contextmanager
from typing import Iterator, Optional

from ..models.notes import Note

logger = logging.getLogger(__name__)


class PlaybackHandle:
    """A temporary audio file rebuilt from a note's stored payload.

    Handles are never persisted. Whoever opens one must release it, which
    deletes the file; releasing twice is harmless.
    """

    def __init__(self, note: Note, directory: Optional[str] = None):
        """Materialize the note's audio into a temp file.

        Args:
            note: Note whose audio payload is decoded
            directory: Where to create the file (system temp dir by default)
        """
        self.note_id = note.id
        self.mime_type = note.audio.mime_type
        suffix = mimetypes.guess_extension(self.mime_type) or ".bin"

        fd, path = tempfile.mkstemp(prefix=f"echonote_{note.id}_", suffix=suffix, dir=directory)
        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(base64.b64decode(note.audio.data_base64))
        except Exception:
            os.unlink(path)
            raise

        self.path: Optional[str] = path
        logger.debug(f"Opened playback file for note {note.id}: {path}")

    @property
    def is_released(self) -> bool:
        return self.path is None

    def release(self) -> None:
        """Delete the temp file."""
        if self.path is None:
            return
        try:
            os.unlink(self.path)
        except FileNotFoundError:
            pass
        logger.debug(f"Released playback file for note {self.note_id}")
        self.path = None

    def __enter__(self) -> "PlaybackHandle":
        return self

    def __exit__(self, *args) -> None:
        self.release()


@contextmanager
def open_playback(note: Note, directory: Optional[str] = None) -> Iterator[PlaybackHandle]:
    """Open a playback handle that is released when the block exits."""
    handle = PlaybackHandle(note, directory)
    try:
        yield handle
    finally:
        handle.release()
