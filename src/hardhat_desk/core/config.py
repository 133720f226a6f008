"""Configuration management.

Loads and merges configuration from multiple sources with proper precedence.
"""

import os
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .config_loader import deep_merge, load_config_file, load_config_text
from .config_schema import Config, LoggingConfig, NetworkConfig, ServerConfig, ToolchainConfig
from .global_paths import GlobalPath
from ..util.log import Log

log = Log.create({"service": "config"})

__all__ = [
    "Config",
    "ConfigError",
    "ConfigManager",
    "LoggingConfig",
    "NetworkConfig",
    "ServerConfig",
    "ToolchainConfig",
]

CONFIG_FILES = ("config.json", "hardhat-desk.json", "hardhat-desk.yaml", "hardhat-desk.yml")
CONFIG_ENV = "HARDHAT_DESK_CONFIG_CONTENT"


class ConfigError(Exception):
    """Configuration error."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"Config error in {path}: {message}")


_config_var: ContextVar["ConfigManager"] = ContextVar("_config_var")


class ConfigManager:
    """Configuration management.

    Instance-based with a ContextVar for scoping; class methods delegate to
    the current instance.

    Sources, lowest precedence first:
    1. Global config files in the user config directory
    2. ``HARDHAT_DESK_CONFIG_CONTENT`` environment variable (JSON or YAML)
    """

    def __init__(self) -> None:
        self._cache: Optional[Config] = None
        self._sources: List[str] = []

    @classmethod
    def current(cls) -> "ConfigManager":
        try:
            return _config_var.get()
        except LookupError:
            instance = cls()
            _config_var.set(instance)
            return instance

    @classmethod
    def reset(cls) -> None:
        """Drop the cached configuration."""
        inst = cls.current()
        inst._cache = None
        inst._sources = []

    @classmethod
    async def get(cls) -> Config:
        inst = cls.current()
        if inst._cache is None:
            return inst._load()
        return inst._cache

    @classmethod
    def sources(cls) -> List[str]:
        """Files (and env var) that contributed to the loaded config."""
        return cls.current()._sources.copy()

    def _load(self) -> Config:
        if self._cache is not None:
            return self._cache

        result: Dict[str, Any] = {}
        sources: List[str] = []

        config_dir = GlobalPath.config()
        for filename in CONFIG_FILES:
            filepath = os.path.join(config_dir, filename)
            data = load_config_file(filepath)
            if data:
                result = deep_merge(result, data)
                sources.append(filepath)
                log.info("loaded global config", {"path": filepath})

        env_config = os.environ.get(CONFIG_ENV)
        if env_config:
            try:
                result = deep_merge(result, load_config_text(env_config))
                sources.append(CONFIG_ENV)
                log.info("loaded config from environment", {"var": CONFIG_ENV})
            except ValueError as e:
                log.error("failed to parse config from environment", {"var": CONFIG_ENV, "error": str(e)})

        try:
            config = Config.model_validate(result)
        except ValidationError as e:
            raise ConfigError(sources[-1] if sources else str(Path(config_dir)), str(e)) from e

        self._sources = sources
        self._cache = config
        return config
