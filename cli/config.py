"""Configuration management for the walletctl CLI."""

import json
import logging
import shutil
from pathlib import Path
from typing import Optional

from common.config import BLE_CHUNK_SIZE, DATABASE_PATH, STORAGE_CHUNK_SIZE

logger = logging.getLogger(__name__)


class Config:
    """Manages CLI configuration stored in JSON file."""

    DEFAULT_CONFIG = {
        "db_path": DATABASE_PATH,
        "storage_chunk_size": STORAGE_CHUNK_SIZE,
        "max_value_size": 2048,
        "transport_chunk_size": BLE_CHUNK_SIZE,
    }

    def __init__(self, config_path: Path):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to config JSON file (typically ~/.walletctl/config.json)
        """
        self.config_path = config_path
        self.data = self._load()

    def _load(self) -> dict:
        """
        Load configuration from file, creating defaults if necessary.

        Returns:
            Configuration dictionary
        """
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    data = json.load(f)
                config = self.DEFAULT_CONFIG.copy()
                config.update(data)
                return config
            except (json.JSONDecodeError, IOError) as e:
                backup_path = self.config_path.with_suffix('.json.bak')
                logger.warning(f"Unreadable config {self.config_path} ({e}), backing up to {backup_path}")
                try:
                    shutil.copy(self.config_path, backup_path)
                except OSError as copy_error:
                    logger.warning(f"Failed to back up config: {copy_error}")
                return self.DEFAULT_CONFIG.copy()

        config = self.DEFAULT_CONFIG.copy()
        try:
            with open(self.config_path, 'w') as f:
                json.dump(config, f, indent=2)
        except IOError as e:
            logger.warning(f"Failed to write default config: {e}")
        return config

    def save(self) -> None:
        """Save current configuration to file."""
        try:
            with open(self.config_path, 'w') as f:
                json.dump(self.data, f, indent=2)
        except IOError as e:
            logger.warning(f"Failed to save config: {e}")

    def get_db_path(self) -> Path:
        """
        Get SQLite database path.

        Returns:
            Path to the wallet database
        """
        return Path(self.data.get('db_path', DATABASE_PATH)).expanduser()

    def get_max_value_size(self) -> Optional[int]:
        """
        Get backend per-value size cap.

        Returns:
            Cap in characters, or None for unlimited
        """
        return self.data.get('max_value_size')

    def get_storage_chunk_size(self) -> int:
        return self.data.get('storage_chunk_size', STORAGE_CHUNK_SIZE)

    def get_transport_chunk_size(self) -> int:
        return self.data.get('transport_chunk_size', BLE_CHUNK_SIZE)
