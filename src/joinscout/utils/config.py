"""Configuration management for JoinScout."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .logging import get_logger

logger = get_logger(__name__)


class Config:
    """Configuration manager for JoinScout."""

    def __init__(self, config_dict: Optional[Dict[str, Any]] = None):
        """Initialize configuration.

        Args:
            config_dict: Configuration dictionary. If None, uses defaults.
        """
        self._config = config_dict or self._get_default_config()

    @staticmethod
    def _get_default_config() -> Dict[str, Any]:
        """Get default configuration."""
        return {
            "inference": {
                "min_confidence": 0.6,  # Pairwise matches below this are dropped
                "max_tables": 20,
                "default_join_type": "LEFT",
                "default_conversation_id": "join-inference",
                "junction": {
                    "max_ai_columns": 10,  # Only small tables are sent to the LLM
                    "min_ai_confidence": 70,  # 0-100 scale, as returned by the LLM
                },
            },
            "cache": {
                "enabled": True,
                "ttl_seconds": 86400,  # 24h
                "key_prefix": "join-suggestions",
            },
            "metadata": {
                "table": "dra_table_metadata",
                "default_schema": "public",
            },
            "agent": {
                "enabled": False,
                "provider": "openai",
                "model": "gpt-4o-mini",
                "temperature": 0.0,
                "max_history_messages": 20,
            },
        }

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> Config:
        """Load configuration from YAML file.

        Args:
            yaml_path: Path to YAML configuration file

        Returns:
            Config instance

        Example:
            >>> config = Config.from_yaml("config.yml")
            >>> print(config.get("inference.min_confidence"))
        """
        yaml_path = Path(yaml_path)

        if not yaml_path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        logger.info(f"Loading config from {yaml_path}")

        with open(yaml_path, "r") as f:
            config_dict = yaml.safe_load(f)

        merged_config = cls._merge_configs(
            cls._get_default_config(), config_dict or {}
        )

        return cls(merged_config)

    @classmethod
    def from_dict(cls, overrides: Dict[str, Any]) -> Config:
        """Build a config from a partial dict merged over the defaults.

        Args:
            overrides: Partial configuration

        Returns:
            Config instance
        """
        return cls(cls._merge_configs(cls._get_default_config(), overrides or {}))

    @staticmethod
    def _merge_configs(
        base: Dict[str, Any], override: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Recursively merge two configuration dictionaries.

        Args:
            base: Base configuration
            override: Override configuration

        Returns:
            Merged configuration
        """
        result = base.copy()

        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = Config._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key.

        Supports dot notation for nested keys.

        Args:
            key: Configuration key (e.g., "cache.ttl_seconds")
            default: Default value if key not found

        Returns:
            Configuration value

        Example:
            >>> config.get("cache.ttl_seconds")
            86400
        """
        value = self._config

        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """Set configuration value by key.

        Supports dot notation for nested keys.

        Args:
            key: Configuration key (e.g., "inference.max_tables")
            value: Value to set
        """
        keys = key.split(".")
        config = self._config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return self._config.copy()

    def __repr__(self) -> str:
        return f"Config({self._config})"


_global_config: Optional[Config] = None


def get_config() -> Config:
    """Get global configuration instance.

    Resolution order: JOINSCOUT_CONFIG env var > ./config.yml > defaults.

    Returns:
        Global Config instance
    """
    global _global_config
    if _global_config is None:
        env_path = os.getenv("JOINSCOUT_CONFIG")
        if env_path:
            path = Path(env_path)
            if path.exists():
                try:
                    logger.info(f"Loading config from JOINSCOUT_CONFIG: {path}")
                    _global_config = Config.from_yaml(path)
                    return _global_config
                except Exception as e:
                    logger.warning(
                        f"Failed to load config from JOINSCOUT_CONFIG ({path}): {e}; falling back"
                    )
            else:
                logger.warning(
                    f"JOINSCOUT_CONFIG set to {path} but file does not exist; falling back"
                )

        config_path = Path("config.yml")
        if config_path.exists():
            try:
                _global_config = Config.from_yaml(config_path)
            except Exception as e:
                logger.warning(f"Failed to load config.yml: {e}, using defaults")
                _global_config = Config()
        else:
            _global_config = Config()
    return _global_config


def set_config(config: Optional[Config]) -> None:
    """Set (or with None, reset) the global configuration instance."""
    global _global_config
    _global_config = config


def load_config(yaml_path: str | Path) -> Config:
    """Load configuration from YAML and set as global.

    Args:
        yaml_path: Path to YAML configuration file

    Returns:
        Loaded Config instance
    """
    config = Config.from_yaml(yaml_path)
    set_config(config)
    return config
