"""Configuration management for the notification service.

This provides a unified interface for configuration:
1. Starts from built-in defaults
2. Overlays environment variables (``.env`` is loaded first)
3. Overlays ``config/notifications.yaml`` when present
"""

import asyncio
import logging
import os
from typing import Any, Dict, Optional

import aiofiles
import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)


DEFAULT_CONFIG: Dict[str, Any] = {
    "mongo_uri": "mongodb://localhost:27017",
    "mongo_db_name": "social",
    "mongo_tls": False,
    "default_page_size": 20,
    "max_page_size": 100,
    "log_level": "INFO",
    "shutdown_timeout": 5.0,
    "allowed_origins": ["http://localhost:5173"],
    "excluded_paths": ["/healthz", "/ws", "/docs", "/openapi.json"],
}

_INT_KEYS = ("default_page_size", "max_page_size")
_FLOAT_KEYS = ("shutdown_timeout",)
_BOOL_KEYS = ("mongo_tls",)
_LIST_KEYS = ("allowed_origins", "excluded_paths")


class ConfigSingleton:
    """Configuration singleton loaded once at startup."""

    _instance = None
    _config: Dict[str, Any] = {}
    _lock = asyncio.Lock()
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(ConfigSingleton, cls).__new__(cls)
        return cls._instance

    @classmethod
    async def initialize(
        cls,
        config_file: str = "config/notifications.yaml",
        overrides: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Initialize configuration.

        Args:
            config_file: Optional YAML file overlaid on top of the environment
            overrides: Values applied last, mostly used by tests

        Returns:
            Complete configuration dictionary
        """
        if cls._initialized:
            return cls._config

        async with cls._lock:
            if cls._initialized:
                return cls._config

            logger.info("Initializing configuration...")
            load_dotenv()

            config = dict(DEFAULT_CONFIG)
            config.update(cls._load_env_config())
            config.update(await cls._load_file_config(config_file))
            if overrides:
                config.update(overrides)

            cls._config = cls._coerce(config)
            cls._initialized = True
            logger.info(f"Configuration initialized with {len(cls._config)} values")

        return cls._config

    @classmethod
    def _load_env_config(cls) -> Dict[str, Any]:
        config = {}
        for key, value in os.environ.items():
            lowered = key.lower()
            if lowered in DEFAULT_CONFIG:
                config[lowered] = value
        return config

    @classmethod
    async def _load_file_config(cls, file_path: str) -> Dict[str, Any]:
        if not file_path or not os.path.exists(file_path):
            return {}
        try:
            async with aiofiles.open(file_path, "r") as f:
                content = await f.read()
            data = yaml.safe_load(content) or {}
            if not isinstance(data, dict):
                logger.warning(f"Ignoring {file_path}: expected a mapping")
                return {}
            return data
        except Exception as e:
            logger.warning(f"Failed to load {file_path}: {e}")
            return {}

    @staticmethod
    def _coerce(config: Dict[str, Any]) -> Dict[str, Any]:
        for key in _INT_KEYS:
            config[key] = int(config[key])
        for key in _FLOAT_KEYS:
            config[key] = float(config[key])
        for key in _BOOL_KEYS:
            value = config[key]
            if isinstance(value, str):
                value = value.strip().lower() in ("1", "true", "yes", "on")
            config[key] = bool(value)
        for key in _LIST_KEYS:
            value = config[key]
            if isinstance(value, str):
                value = [item.strip() for item in value.split(",") if item.strip()]
            config[key] = list(value)
        if config["default_page_size"] > config["max_page_size"]:
            config["default_page_size"] = config["max_page_size"]
        return config

    @classmethod
    async def reload(cls, **kwargs) -> Dict[str, Any]:
        """Drop the cached configuration and load it again."""
        cls.reset()
        return await cls.initialize(**kwargs)

    @classmethod
    def reset(cls) -> None:
        cls._config = {}
        cls._initialized = False

    @classmethod
    def get_config(cls, config_name: Optional[str] = None) -> Any:
        """Get configuration value.

        Args:
            config_name: Optional specific config key or dotted path

        Returns:
            Config value or entire config if no key specified
        """
        if not cls._initialized:
            raise RuntimeError(
                "Config not initialized. Call 'await ConfigSingleton.initialize()' first."
            )

        if config_name:
            if "." in config_name:
                value = cls._config
                for part in config_name.split("."):
                    if isinstance(value, dict):
                        value = value.get(part)
                    else:
                        return None
                return value

            return cls._config.get(config_name)

        return cls._config


config_singleton = ConfigSingleton()
get_config = config_singleton.get_config
