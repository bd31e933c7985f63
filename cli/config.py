"""Client settings kept in ~/.chunkup/config.json."""

import json
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict

from common.constants import DEFAULT_CHUNK_SIZE_BYTES, DEFAULT_SERVER_PORT


class Config:
    """
    JSON-backed CLI settings.

    Missing keys fall back to ``DEFAULT_CONFIG``; a file that cannot be parsed
    is preserved as ``config.json.bak`` and the defaults are used instead.
    """

    DEFAULT_CONFIG: Dict[str, Any] = {
        "server_host": os.environ.get("UPLOAD_SERVER_HOST", "localhost"),
        "server_port": int(os.environ.get("UPLOAD_SERVER_PORT", str(DEFAULT_SERVER_PORT))),
        "timeout": 30,
        "max_retries": 3,
        "retry_backoff_multiplier": 2,
        "chunk_size": DEFAULT_CHUNK_SIZE_BYTES,
    }

    def __init__(self, config_path: Path):
        """
        Args:
            config_path: Settings file, created with defaults when absent
        """
        self.config_path = config_path
        self.data = self._load()

    def _ensure_directory(self) -> None:
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            # unwritable home directory; keep settings for this session in /tmp
            self.config_path = Path(tempfile.gettempdir()) / '.chunkup' / 'config.json'
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

    def _load(self) -> Dict[str, Any]:
        self._ensure_directory()
        config = dict(self.DEFAULT_CONFIG)

        if not self.config_path.exists():
            self._write(config)
            return config

        try:
            with open(self.config_path, 'r') as f:
                stored = json.load(f)
        except (json.JSONDecodeError, OSError):
            self._backup_corrupt_file()
            return config

        if isinstance(stored, dict):
            config.update(stored)
        else:
            self._backup_corrupt_file()
        return config

    def _backup_corrupt_file(self) -> None:
        try:
            shutil.copy(self.config_path, self.config_path.with_suffix('.json.bak'))
        except OSError:
            pass

    def _write(self, data: Dict[str, Any]) -> None:
        try:
            with open(self.config_path, 'w') as f:
                json.dump(data, f, indent=2)
        except OSError:
            pass

    def get_base_url(self) -> str:
        """
        Returns:
            Server root URL, e.g. "http://localhost:3000"
        """
        host = self.data.get('server_host', 'localhost')
        port = self.data.get('server_port', DEFAULT_SERVER_PORT)
        return f"http://{host}:{port}"

    def get_timeout(self) -> int:
        return self.data.get('timeout', 30)

    def get_chunk_size(self) -> int:
        return int(self.data.get('chunk_size', DEFAULT_CHUNK_SIZE_BYTES))

    def get_retry_config(self) -> Dict[str, int]:
        """
        Returns:
            Dictionary with 'max_retries' and 'retry_backoff_multiplier'
        """
        return {
            'max_retries': self.data.get('max_retries', 3),
            'retry_backoff_multiplier': self.data.get('retry_backoff_multiplier', 2),
        }
