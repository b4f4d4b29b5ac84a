"""
Config Module - Black Box Interface

Purpose: Process-level configuration management
Interface: get_config(), ConfigModule.get(), ConfigModule.get_config_schema()
Hidden: Config sources, validation logic, environment parsing

Bind address, queue and authentication tuning live in
bssbridge.config.provider; this module only carries the log level and the
service version.
"""

import os
from typing import Any, Dict

from bssbridge import __version__


# Configuration Contract: Required and Optional Keys

REQUIRED_CONFIG_KEYS = {
    "log_level": "Logging level (DEBUG, INFO, WARNING, ERROR)",
    "version": "Service version reported by /api/status",
}

OPTIONAL_CONFIG_KEYS: Dict[str, Dict[str, Any]] = {}


class ConfigModule:
    """Configuration management module."""

    def __init__(self):
        """Initialize with environment variables."""
        self._config = self._load_from_env()
        self._validate_required_keys()

    def _validate_required_keys(self) -> None:
        """
        Validate that all required configuration keys are present.

        Raises:
            ValueError: If required keys are missing
        """
        missing_keys = []
        for key in REQUIRED_CONFIG_KEYS:
            if key not in self._config or self._config[key] is None:
                missing_keys.append(key)

        if missing_keys:
            raise ValueError(
                f"Missing required configuration keys: {', '.join(missing_keys)}. "
                f"Check environment variables and deployment configuration."
            )

    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment."""
        return {
            "log_level": os.getenv("LOG_LEVEL", "INFO"),
            "version": __version__,
        }

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self._config.get(key, default)

    @staticmethod
    def get_config_schema() -> Dict[str, Any]:
        """
        Get the configuration schema (contract) for this module.

        Returns:
            Dictionary with 'required' and 'optional' key specifications

        Example:
            >>> schema = ConfigModule.get_config_schema()
            >>> print(schema['required']['log_level'])
            'Logging level (DEBUG, INFO, WARNING, ERROR)'
        """
        return {
            "required": REQUIRED_CONFIG_KEYS.copy(),
            "optional": OPTIONAL_CONFIG_KEYS.copy(),
        }


# Singleton instance
_instance = None


def get_config() -> ConfigModule:
    """Get the configuration module singleton."""
    global _instance
    if _instance is None:
        _instance = ConfigModule()
    return _instance


__all__ = ["get_config", "ConfigModule"]
