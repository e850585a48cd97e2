"""Configuration management for the relay CLI."""

import json
import os
import shutil
import tempfile
from pathlib import Path

from common.constants import CHUNK_SIZE_BYTES, DEFAULT_RELAY_PORT


class Config:
    """
    Client settings persisted as JSON (typically ~/.relaydrop/config.json).

    Missing keys fall back to DEFAULT_CONFIG. The server address defaults can
    be overridden with RELAY_SERVER_HOST and RELAY_SERVER_PORT.
    """

    DEFAULT_CONFIG = {
        "server_host": os.environ.get("RELAY_SERVER_HOST", "localhost"),
        "server_port": int(os.environ.get("RELAY_SERVER_PORT", str(DEFAULT_RELAY_PORT))),
        "timeout": 30,
        "max_retries": 3,
        "retry_backoff_multiplier": 2,
        "chunk_size": CHUNK_SIZE_BYTES,
        "download_dir": "downloads",
    }

    def __init__(self, config_path: Path):
        self.config_path = config_path
        self._ensure_config_dir()
        self.data = {**self.DEFAULT_CONFIG, **self._read_user_settings()}

    def _ensure_config_dir(self) -> None:
        """Create the config directory, moving to the temp dir if home is read-only."""
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            self.config_path = Path(tempfile.gettempdir()) / '.relaydrop' / 'config.json'
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

    def _read_user_settings(self) -> dict:
        """
        Read settings saved on disk.

        A missing file is created with the defaults. An unreadable or
        corrupted file is copied to ``config.json.bak`` and ignored.

        Returns:
            Settings found in the file (possibly empty)
        """
        if not self.config_path.exists():
            self.data = dict(self.DEFAULT_CONFIG)
            self.save()
            return {}

        try:
            with open(self.config_path, 'r') as f:
                settings = json.load(f)
        except (json.JSONDecodeError, OSError):
            try:
                shutil.copy(self.config_path, self.config_path.with_suffix('.json.bak'))
            except OSError:
                pass
            return {}

        return settings if isinstance(settings, dict) else {}

    def save(self) -> None:
        """Save current configuration to file."""
        try:
            with open(self.config_path, 'w') as f:
                json.dump(self.data, f, indent=2)
        except OSError:
            pass

    def get_base_url(self) -> str:
        """
        Get relay server base URL.

        Returns:
            Base URL string (e.g., "http://localhost:8000")
        """
        return f"http://{self.data['server_host']}:{self.data['server_port']}"

    def get_timeout(self) -> int:
        return self.data.get('timeout', 30)

    def get_retry_config(self) -> dict:
        """
        Get retry configuration.

        Returns:
            Dictionary with 'max_retries' and 'retry_backoff_multiplier'
        """
        return {
            'max_retries': self.data.get('max_retries', 3),
            'retry_backoff_multiplier': self.data.get('retry_backoff_multiplier', 2),
        }

    def get_chunk_size(self) -> int:
        """
        Get upload chunk size in bytes.

        Returns:
            Positive chunk size (falls back to the default for bad values)
        """
        size = self.data.get('chunk_size', CHUNK_SIZE_BYTES)
        if not isinstance(size, int) or size <= 0:
            return CHUNK_SIZE_BYTES
        return size

    def get_download_dir(self) -> Path:
        """Get directory that received files are written to."""
        return Path(self.data.get('download_dir', 'downloads'))
