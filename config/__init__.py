"""
Configuration Module for the Certificate Extraction System.

This module provides centralized configuration management using YAML files.
Scoring weights, vocabularies, LLM provider settings and logging options are
all controlled through configuration, not hard-coded.

Secrets (LLM API keys) are never stored in the YAML file: the file only names
the environment variables that hold them.
"""

import os
import yaml
from pathlib import Path
from typing import Any, Dict, Optional

from cert_extraction.utils.exceptions import ConfigurationError

DEFAULT_CONFIG_PATH = Path(__file__).parent / "settings.yaml"

# Dot-notation keys holding file paths
PATH_KEYS = ("logging.file.path",)


class ConfigurationManager:
    """
    Centralized configuration management for the certificate extraction system.

    This class handles loading and providing access to all configuration
    parameters defined in settings.yaml.

    Attributes:
        config_path (Path): Path to the configuration file.
        config (Dict): Loaded configuration dictionary.

    Example:
        >>> config = ConfigurationManager()
        >>> mode = config.get("extraction.mode")
        >>> timeout = config.get("llm.timeout_seconds")
    """

    _instance: Optional['ConfigurationManager'] = None
    _config: Dict[str, Any] = {}

    def __new__(cls, config_path: Optional[str] = None) -> 'ConfigurationManager':
        """
        Singleton pattern to ensure only one configuration instance exists.

        Args:
            config_path: Optional path to configuration file.

        Returns:
            ConfigurationManager instance.
        """
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[str] = None) -> None:
        """
        Initialize the configuration manager.

        Passing a different ``config_path`` to an already initialized
        manager switches it to that file.

        Args:
            config_path: Optional path to configuration file.
                        Defaults to config/settings.yaml.
        """
        if self._initialized:
            if config_path is None or Path(config_path) == self.config_path:
                return

        if config_path is None:
            self.config_path = DEFAULT_CONFIG_PATH
        else:
            self.config_path = Path(config_path)

        self._load_config()
        self._initialized = True

    def _load_config(self) -> None:
        """
        Load configuration from YAML file.

        Raises:
            ConfigurationError: If the file is missing or is not a YAML mapping.
        """
        if not self.config_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {self.config_path}",
                {"path": str(self.config_path)}
            )

        with open(self.config_path, 'r', encoding='utf-8') as f:
            try:
                loaded = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigurationError(
                    f"Invalid configuration file: {self.config_path}",
                    {"reason": str(e)}
                ) from e

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigurationError(
                f"Configuration root must be a mapping: {self.config_path}"
            )
        self._config = loaded

        self._resolve_paths()

    def _resolve_paths(self) -> None:
        """
        Resolve relative file paths in configuration to absolute paths.

        The bundled settings resolve against the project root; a custom
        file resolves against its own directory.
        """
        if self.config_path == DEFAULT_CONFIG_PATH:
            base_dir = DEFAULT_CONFIG_PATH.parent.parent
        else:
            base_dir = self.config_path.parent

        for key in PATH_KEYS:
            *parents, leaf = key.split('.')
            section = self._config
            for part in parents:
                section = section.get(part) if isinstance(section, dict) else None
            if isinstance(section, dict) and section.get(leaf):
                if not Path(section[leaf]).is_absolute():
                    section[leaf] = str(base_dir / section[leaf])

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key: Configuration key in dot notation (e.g., "llm.provider").
            default: Default value if key doesn't exist.

        Returns:
            Configuration value or default.

        Example:
            >>> config.get("confidence.review_threshold")
            0.7
            >>> config.get("nonexistent.key", "default_value")
            "default_value"
        """
        keys = key.split('.')
        value = self._config

        try:
            for k in keys:
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def get_secret(self, env_var: Optional[str]) -> Optional[str]:
        """
        Read a secret from the environment.

        Args:
            env_var: Name of the environment variable.

        Returns:
            Stripped value, or None when unset or blank.
        """
        if not env_var:
            return None
        value = os.environ.get(env_var, "").strip()
        return value or None

    def get_all(self) -> Dict[str, Any]:
        """
        Get the complete configuration dictionary.

        Returns:
            Complete configuration dictionary.
        """
        return self._config.copy()

    def reload(self) -> None:
        """Reload configuration from file."""
        self._load_config()

    @classmethod
    def reset(cls) -> None:
        """
        Reset the singleton instance.
        Useful for testing or configuration changes.
        """
        cls._instance = None


def get_config(key: str, default: Any = None) -> Any:
    """
    Convenience function to get configuration values.

    Args:
        key: Configuration key in dot notation.
        default: Default value if key doesn't exist.

    Returns:
        Configuration value or default.
    """
    return ConfigurationManager().get(key, default)


def get_secret(env_var: Optional[str]) -> Optional[str]:
    """Convenience wrapper around ConfigurationManager.get_secret."""
    return ConfigurationManager().get_secret(env_var)


__all__ = ['ConfigurationManager', 'get_config', 'get_secret']
