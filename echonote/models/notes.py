"""Data models for notes and their stored audio."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Dict, Any, Optional, Tuple
from enum import Enum


class NoteCollection(Enum):
    """The two mutually exclusive collections a note can live in."""
    ACTIVE = "active"
    TRASHED = "trashed"


@dataclass(frozen=True)
class TranscriptSegment:
    """One speaker turn of a transcript."""
    speaker: str  # Free-form label, usually "Speaker N"
    text: str


@dataclass(frozen=True)
class AudioPayload:
    """Durable encoded audio: base64 data plus its MIME type."""
    data_base64: str
    mime_type: str


@dataclass(frozen=True)
class Note:
    """A recorded or uploaded audio item with its generated title, summary and transcript."""
    id: str
    title: str
    title_emoji: str
    summary: str
    transcript: Tuple[TranscriptSegment, ...]
    audio: AudioPayload
    created_at: datetime
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert note to a JSON-serializable dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "title_emoji": self.title_emoji,
            "summary": self.summary,
            "transcript": [
                {"speaker": segment.speaker, "text": segment.text}
                for segment in self.transcript
            ],
            "audio_mime_type": self.audio.mime_type,
            "audio_base64": self.audio.data_base64,
            "created_at": self.created_at.isoformat(),
        }
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Note":
        """Build a note from a dictionary produced by ``to_dict``.
        
        Raises:
            KeyError, TypeError, ValueError: If the dictionary is malformed
        """
        if not isinstance(data, dict):
            raise TypeError(f"Expected a note object, got {type(data).__name__}")
        
        transcript = tuple(
            TranscriptSegment(speaker=str(segment["speaker"]), text=str(segment["text"]))
            for segment in data["transcript"]
        )
        return cls(
            id=str(data["id"]),
            title=str(data["title"]),
            title_emoji=str(data["title_emoji"]),
            summary=str(data["summary"]),
            transcript=transcript,
            audio=AudioPayload(
                data_base64=str(data["audio_base64"]),
                mime_type=str(data["audio_mime_type"]),
            ),
            created_at=datetime.fromisoformat(data["created_at"]),
        )


@dataclass
class LoadResult:
    """Outcome of reading one collection from the durable store."""
    notes: List[Note] = field(default_factory=list)
    error: Optional[str] = None  # Set when data was unreadable and an empty collection was substituted
    
    @property
    def ok(self) -> bool:
        return self.error is None
