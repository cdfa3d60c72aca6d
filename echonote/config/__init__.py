"""Simple YAML configuration loader for EchoNote."""

import os
import copy
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "gemini": {
        "model": "gemini-2.5-flash",
        "base_url": "https://generativelanguage.googleapis.com/v1beta",
        "timeout_seconds": 120,
    },
    "storage": {
        "data_directory": "data",
    },
    "audio": {
        "sample_rate": 16000,
        "chunk_size": 1024,
        "channels": 1,
    },
    "logging": {
        "level": "INFO",
        "file_path": "data/logs/echonote.log",
        "console_output": True,
    },
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


class EchoNoteConfig:
    """EchoNote configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, built-in defaults
                        are used.
        """
        self.config_file = Path(config_path) if config_path else None

        if self.config_file is None:
            logger.info("No configuration file given, using defaults")
            self.config = copy.deepcopy(DEFAULT_CONFIG)
            return

        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file over the defaults."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")
        except OSError as e:
            raise ValueError(f"Failed to load configuration: {e}")

        if not loaded:
            raise ValueError("Configuration file is empty")
        if not isinstance(loaded, dict):
            raise ValueError("Configuration file must contain a mapping")

        config = _merge(copy.deepcopy(DEFAULT_CONFIG), loaded)

        # Resolve relative paths
        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        # Resolve data directory
        data_dir = config['storage'].get('data_directory')
        if data_dir and not os.path.isabs(data_dir):
            config['storage']['data_directory'] = str(config_dir / data_dir)

        # Resolve log file path
        log_path = config['logging'].get('file_path')
        if log_path and not os.path.isabs(log_path):
            config['logging']['file_path'] = str(config_dir / log_path)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'gemini.model').

        Args:
            key_path: Dot-separated key path
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'gemini.model')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        # Navigate to the parent dictionary
        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set")

    def get_api_key(self) -> str:
        """Get Gemini API key from config or environment - CRASHES if not found."""
        api_key = self.get('gemini.api_key') or os.environ.get('GEMINI_API_KEY') or os.environ.get('API_KEY')
        if not api_key:
            raise ValueError("Gemini API key not configured: set gemini.api_key or GEMINI_API_KEY")
        return api_key

    def get_data_directory(self) -> str:
        """Get data directory path."""
        data_dir = self.get('storage.data_directory', 'data')
        return str(Path(data_dir).absolute())
