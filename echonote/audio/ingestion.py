"""Audio ingestion from uploaded files and live microphone recording."""

import io
import base64
import logging
import mimetypes
import wave
from datetime import datetime
from pathlib import Path
from threading import Thread, Event
from typing import List, Optional

import numpy as np
import pyaudio

from ..models.audio import AudioStats
from ..models.notes import AudioPayload

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"


class IngestionError(Exception):
    """Raised when audio cannot be read from a file or the microphone."""


def encode_audio(audio_bytes: bytes, mime_type: str) -> AudioPayload:
    """Wrap raw audio bytes as a base64 payload."""
    return AudioPayload(
        data_base64=base64.b64encode(audio_bytes).decode("ascii"),
        mime_type=mime_type,
    )


def load_audio_file(path: str) -> AudioPayload:
    """Read an audio file into a payload.

    Args:
        path: Path to the audio file

    Returns:
        AudioPayload with MIME type guessed from the extension

    Raises:
        IngestionError: If the file is missing or unreadable
    """
    file_path = Path(path)
    try:
        audio_bytes = file_path.read_bytes()
    except OSError as e:
        logger.error(f"Error reading audio file {file_path}: {e}")
        raise IngestionError(f"Could not read audio file {file_path}: {e}") from e

    if not audio_bytes:
        raise IngestionError(f"Audio file is empty: {file_path}")

    mime_type = mimetypes.guess_type(file_path.name)[0] or DEFAULT_MIME_TYPE
    logger.info(f"Loaded audio file {file_path} ({len(audio_bytes)} bytes, {mime_type})")
    return encode_audio(audio_bytes, mime_type)


class AudioRecorder:
    """Records from the default microphone on a background thread.

    Frames are kept in memory until ``get_payload`` packages a stopped
    recording as a WAV payload.
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        chunk_size: int = 1024,
        channels: int = 1,
        format: int = pyaudio.paInt16,
        stop_timeout: float = 2.0,
    ):
        """Initialize audio recorder with specified parameters.

        Args:
            sample_rate: Audio sample rate in Hz
            chunk_size: Size of each audio chunk in samples
            channels: Number of audio channels (1 for mono)
            format: Audio format (16-bit signed int)
            stop_timeout: Seconds to wait for the capture thread on stop
        """
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.format = format
        self.stop_timeout = stop_timeout

        # Recording thread management
        self.recording_thread: Optional[Thread] = None
        self.stop_event = Event()
        self.is_recording = False

        # Statistics tracking
        self.start_time: Optional[datetime] = None
        self.total_chunks = 0
        self.peak_level = 0.0

        self.frames: List[bytes] = []
        self.error: Optional[Exception] = None
        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None

    def start_recording(self) -> None:
        """Open the microphone and start recording in a background thread.

        Raises:
            IngestionError: If the microphone cannot be opened
        """
        if self.is_recording:
            logger.warning("Recording already in progress")
            return

        logger.info("Starting audio recording")
        self.stop_event.clear()
        self.start_time = datetime.now()
        self.total_chunks = 0
        self.peak_level = 0.0
        self.frames = []
        self.error = None

        try:
            stream = self._open_stream()
        except (OSError, IOError) as e:
            self._terminate()
            logger.error(f"Error opening microphone: {e}")
            raise IngestionError(f"Microphone is not available: {e}") from e

        self.recording_thread = Thread(target=self._record_continuously, args=(stream,), daemon=True)
        self.recording_thread.name = "AudioRecorderThread"
        self.recording_thread.start()
        self.is_recording = True

    def stop_recording(self) -> None:
        """Stop recording and wait for the capture thread to finish.

        Raises:
            IngestionError: If no recording is running, or the capture thread
                is still alive after the timeout (the recorder stays recording
                so it cannot be restarted over the running thread)
        """
        if not self.is_recording:
            raise IngestionError("No recording in progress")

        logger.info("Stopping audio recording")
        self.stop_event.set()

        if self.recording_thread and self.recording_thread.is_alive():
            self.recording_thread.join(timeout=self.stop_timeout)
            if self.recording_thread.is_alive():
                logger.warning("Recording thread did not stop cleanly")
                raise IngestionError("Recording thread did not stop in time")

        self.is_recording = False
        logger.info(f"Recording stopped. Total chunks: {self.total_chunks}")

    def get_payload(self) -> AudioPayload:
        """Package everything captured by a stopped recording as WAV.

        Raises:
            IngestionError: If still recording, nothing was recorded or the
                capture failed
        """
        if self.is_recording:
            raise IngestionError("Recording is still in progress")
        if self.error is not None:
            raise IngestionError(f"Recording failed: {self.error}") from self.error
        if not self.frames:
            raise IngestionError("No audio was recorded")

        return encode_audio(self.to_wav_bytes(), "audio/wav")

    def to_wav_bytes(self) -> bytes:
        """Package the captured frames as a WAV file in memory."""
        buffer = io.BytesIO()
        with wave.open(buffer, 'wb') as wf:
            wf.setnchannels(self.channels)
            wf.setsampwidth(pyaudio.get_sample_size(self.format))
            wf.setframerate(self.sample_rate)
            for chunk in self.frames:
                wf.writeframes(chunk)
        return buffer.getvalue()

    def _open_stream(self) -> pyaudio.Stream:
        self.pyaudio_instance = pyaudio.PyAudio()
        stream = self.pyaudio_instance.open(
            format=self.format,
            channels=self.channels,
            rate=self.sample_rate,
            input=True,
            frames_per_buffer=self.chunk_size,
        )
        logger.info(f"Audio stream opened: {self.sample_rate}Hz, "
                    f"{self.chunk_size} samples/chunk")
        return stream

    def _record_continuously(self, stream: pyaudio.Stream) -> None:
        """Internal method: continuous recording loop in background thread."""
        try:
            while not self.stop_event.is_set():
                audio_chunk = stream.read(self.chunk_size, exception_on_overflow=False)
                self.frames.append(audio_chunk)
                self.total_chunks += 1
                self._update_peak_level(audio_chunk)
        except (OSError, IOError) as e:
            logger.error(f"Error while recording: {e}")
            self.error = e
        finally:
            stream.stop_stream()
            stream.close()
            self._terminate()

    def _update_peak_level(self, audio_chunk: bytes) -> None:
        samples = np.frombuffer(audio_chunk, dtype=np.int16)
        if samples.size:
            level = float(np.abs(samples.astype(np.int32)).max()) / 32768.0
            self.peak_level = max(self.peak_level, level)

    def _terminate(self) -> None:
        if self.pyaudio_instance:
            self.pyaudio_instance.terminate()
            self.pyaudio_instance = None

    def get_recording_stats(self) -> AudioStats:
        """Get current recording statistics."""
        duration = 0.0
        if self.start_time:
            duration = (datetime.now() - self.start_time).total_seconds()

        return AudioStats(
            is_recording=self.is_recording,
            duration_seconds=duration,
            sample_rate=self.sample_rate,
            chunk_size=self.chunk_size,
            total_chunks=self.total_chunks,
            peak_level=self.peak_level,
        )
