"""Unit tests for audio ingestion and playback handles."""

import io
import os
import time
import threading
import wave
import base64
import pytest
from unittest.mock import Mock, patch

import numpy as np

from echonote.audio.ingestion import AudioRecorder, IngestionError, load_audio_file
from echonote.audio.playback import PlaybackHandle, open_playback


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        # Half-scale samples so the peak level is predictable
        mock_stream.read.return_value = np.array([0, 16384, -8192, 0], dtype=np.int16).tobytes()
        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


@pytest.mark.unit
class TestLoadAudioFile:
    """Test cases for load_audio_file."""

    def test_encodes_file_with_mime_type(self, temp_data_dir):
        path = os.path.join(temp_data_dir, "meeting.wav")
        with open(path, 'wb') as f:
            f.write(b"RIFF1234")

        payload = load_audio_file(path)

        assert payload.mime_type in ("audio/wav", "audio/x-wav")
        assert base64.b64decode(payload.data_base64) == b"RIFF1234"

    def test_unknown_extension_falls_back(self, temp_data_dir):
        path = os.path.join(temp_data_dir, "recording.unknownext")
        with open(path, 'wb') as f:
            f.write(b"data")

        assert load_audio_file(path).mime_type == "application/octet-stream"

    def test_missing_file(self, temp_data_dir):
        with pytest.raises(IngestionError):
            load_audio_file(os.path.join(temp_data_dir, "missing.mp3"))

    def test_empty_file(self, temp_data_dir):
        path = os.path.join(temp_data_dir, "empty.mp3")
        open(path, 'wb').close()

        with pytest.raises(IngestionError):
            load_audio_file(path)


@pytest.mark.unit
class TestAudioRecorder:
    """Test cases for AudioRecorder."""

    def test_records_wav_payload(self, mock_pyaudio):
        recorder = AudioRecorder(sample_rate=16000, chunk_size=4, channels=1)

        recorder.start_recording()
        assert recorder.is_recording
        time.sleep(0.05)
        recorder.stop_recording()
        payload = recorder.get_payload()

        assert payload.mime_type == "audio/wav"
        with wave.open(io.BytesIO(base64.b64decode(payload.data_base64)), 'rb') as wf:
            assert wf.getnchannels() == 1
            assert wf.getframerate() == 16000
            assert wf.getnframes() == recorder.total_chunks * 4

        stats = recorder.get_recording_stats()
        assert not stats.is_recording
        assert stats.total_chunks > 0
        assert stats.peak_level == pytest.approx(0.5)
        mock_pyaudio['stream'].close.assert_called_once()
        mock_pyaudio['instance'].terminate.assert_called_once()

    def test_microphone_unavailable(self, mock_pyaudio):
        mock_pyaudio['instance'].open.side_effect = OSError("Invalid input device")
        recorder = AudioRecorder()

        with pytest.raises(IngestionError):
            recorder.start_recording()

        assert not recorder.is_recording
        mock_pyaudio['instance'].terminate.assert_called_once()

    def test_read_failure_reported_with_payload(self, mock_pyaudio):
        mock_pyaudio['stream'].read.side_effect = OSError("Stream closed")
        recorder = AudioRecorder()

        recorder.start_recording()
        time.sleep(0.05)
        recorder.stop_recording()

        with pytest.raises(IngestionError):
            recorder.get_payload()

    def test_stop_without_start(self):
        with pytest.raises(IngestionError):
            AudioRecorder().stop_recording()

    def test_stuck_thread_keeps_recording(self, mock_pyaudio):
        unblock = threading.Event()

        def blocking_read(*args, **kwargs):
            unblock.wait(timeout=5)
            return b"\x00\x00"

        mock_pyaudio['stream'].read.side_effect = blocking_read
        recorder = AudioRecorder(stop_timeout=0.05)
        recorder.start_recording()

        with pytest.raises(IngestionError):
            recorder.stop_recording()

        assert recorder.is_recording
        recorder.start_recording()
        assert mock_pyaudio['class'].call_count == 1
        with pytest.raises(IngestionError):
            recorder.get_payload()

        unblock.set()
        recorder.stop_timeout = 2.0
        recorder.stop_recording()

        assert not recorder.is_recording
        assert recorder.get_payload().mime_type == "audio/wav"

    def test_payload_requires_captured_frames(self):
        recorder = AudioRecorder()

        with pytest.raises(IngestionError):
            recorder.get_payload()


@pytest.mark.unit
class TestPlaybackHandle:
    """Test cases for PlaybackHandle."""

    def test_materializes_and_releases(self, temp_data_dir, make_note):
        note = make_note("a1")

        handle = PlaybackHandle(note, directory=temp_data_dir)
        path = handle.path

        with open(path, 'rb') as f:
            assert f.read() == b"audio-a1"

        handle.release()
        assert handle.is_released
        assert not os.path.exists(path)
        handle.release()

    def test_context_manager_releases_on_error(self, temp_data_dir, make_note):
        with pytest.raises(RuntimeError):
            with open_playback(make_note("a1"), directory=temp_data_dir) as handle:
                path = handle.path
                raise RuntimeError("view crashed")

        assert not os.path.exists(path)

    def test_each_open_gets_its_own_file(self, temp_data_dir, make_note):
        note = make_note("a1")
        with PlaybackHandle(note, temp_data_dir) as first, PlaybackHandle(note, temp_data_dir) as second:
            assert first.path != second.path

        assert os.listdir(temp_data_dir) == []
