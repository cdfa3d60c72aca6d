"""Unit tests for EchoNoteConfig."""

import os
import pytest
from pathlib import Path
from unittest.mock import patch

from echonote.config import EchoNoteConfig


def write_config(directory, text):
    path = Path(directory) / "echonote.yaml"
    path.write_text(text, encoding='utf-8')
    return str(path)


@pytest.mark.unit
class TestEchoNoteConfig:
    """Test cases for EchoNoteConfig."""

    def test_defaults_without_file(self):
        config = EchoNoteConfig()

        assert config.get('gemini.model') == "gemini-2.5-flash"
        assert config.get('audio.sample_rate') == 16000
        assert config.get('missing.key', 'fallback') == 'fallback'

    def test_missing_file_raises(self, temp_data_dir):
        with pytest.raises(FileNotFoundError):
            EchoNoteConfig(os.path.join(temp_data_dir, "nope.yaml"))

    def test_file_overrides_defaults_and_resolves_paths(self, temp_data_dir):
        path = write_config(temp_data_dir, "gemini:\n  model: gemini-pro\nstorage:\n  data_directory: notes\n")

        config = EchoNoteConfig(path)

        assert config.get('gemini.model') == "gemini-pro"
        assert config.get('gemini.timeout_seconds') == 120
        assert config.get_data_directory() == str(Path(temp_data_dir) / "notes")
        assert config.get('logging.file_path') == str(Path(temp_data_dir) / "data/logs/echonote.log")

    @pytest.mark.parametrize("text", ["", "gemini: [unclosed", "- just\n- a list\n"])
    def test_invalid_file_raises(self, temp_data_dir, text):
        with pytest.raises(ValueError):
            EchoNoteConfig(write_config(temp_data_dir, text))

    def test_set_creates_nested_keys(self):
        config = EchoNoteConfig()
        config.set('gemini.api_key', 'secret')
        config.set('new.nested.value', 3)

        assert config.get('gemini.api_key') == 'secret'
        assert config.get('new.nested.value') == 3

    def test_api_key_from_environment(self):
        with patch.dict(os.environ, {"GEMINI_API_KEY": "env-key"}, clear=True):
            assert EchoNoteConfig().get_api_key() == "env-key"

    def test_api_key_missing_raises(self):
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ValueError):
                EchoNoteConfig().get_api_key()
