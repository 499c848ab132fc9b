"""
Configuration management for Synapse.

This module handles loading and accessing configuration values from config.yaml.
Storage location, save debounce, the recovery window and tabular defaults all
live here so behaviour can be tuned without changing code.
"""

import yaml
from pathlib import Path
from typing import Any, Dict
import logging


class ConfigManager:
    """
    Manages configuration loading and access for Synapse.
    """

    def __init__(self, config_path: str = "config.yaml"):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to the configuration file
        """
        self.config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from YAML file."""
        try:
            if not self.config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

            with open(self.config_path, 'r', encoding='utf-8') as f:
                self._config = yaml.safe_load(f) or {}

            logging.info(f"Configuration loaded from {self.config_path}")

        except (OSError, yaml.YAMLError) as e:
            logging.warning(f"Failed to load configuration: {e}")
            # Fall back to default configuration
            self._config = self._get_default_config()

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration values as fallback."""
        return {
            "storage": {
                "directory": ".synapse",
                "blob_key": "db_blob",
                "working_filename": "workspace.duckdb"
            },
            "persistence": {
                "debounce_seconds": 0.5
            },
            "recovery": {
                "window_seconds": 10.0
            },
            "workspace": {
                "default_page_title": "Workspace"
            },
            "tabular": {
                "default_page_size": 10,
                "min_column_width": 80
            },
            "paths": {
                "log_file": "synapse.log"
            },
            "logging": {
                "level": "INFO",
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            }
        }

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key_path: Dot-separated path to the configuration value (e.g., "recovery.window_seconds")
            default: Default value if key is not found

        Returns:
            The configuration value

        Examples:
            config.get("storage.blob_key")  # Returns "db_blob"
            config.get("tabular.default_page_size")  # Returns 10
        """
        keys = key_path.split('.')
        value = self._config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def get_section(self, section: str) -> Dict[str, Any]:
        """
        Get an entire configuration section.

        Args:
            section: Name of the configuration section

        Returns:
            Dictionary containing the section configuration
        """
        return self._config.get(section, {})

    # Convenience properties for commonly used values

    @property
    def storage_directory(self) -> str:
        """Get the directory holding the durable blob store."""
        return self.get("storage.directory", ".synapse")

    @property
    def blob_key(self) -> str:
        """Get the fixed key the workspace blob is stored under."""
        return self.get("storage.blob_key", "db_blob")

    @property
    def working_filename(self) -> str:
        """Get the filename of the relational working copy."""
        return self.get("storage.working_filename", "workspace.duckdb")

    @property
    def save_debounce_seconds(self) -> float:
        """Get the trailing delay before a scheduled save runs."""
        return float(self.get("persistence.debounce_seconds", 0.5))

    @property
    def recovery_window_seconds(self) -> float:
        """Get how long a deleted page stays recoverable."""
        return float(self.get("recovery.window_seconds", 10.0))

    @property
    def default_page_title(self) -> str:
        return self.get("workspace.default_page_title", "Workspace")

    @property
    def default_page_size(self) -> int:
        return int(self.get("tabular.default_page_size", 10))

    @property
    def min_column_width(self) -> int:
        return int(self.get("tabular.min_column_width", 80))

    @property
    def log_filename(self) -> str:
        """Get log file name."""
        return self.get("paths.log_file", "synapse.log")


# Global configuration instance
config = ConfigManager()


def get_config() -> ConfigManager:
    """
    Get the global configuration instance.

    Returns:
        The global ConfigManager instance
    """
    return config
