"""Audio capture, upload and playback."""

from .ingestion import AudioRecorder, IngestionError, load_audio_file, encode_audio
from .playback import PlaybackHandle, open_playback

__all__ = [
    'AudioRecorder',
    'IngestionError',
    'load_audio_file',
    'encode_audio',
    'PlaybackHandle',
    'open_playback',
]
