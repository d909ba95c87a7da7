"""
Configuration Manager - Server, store, git and path-policy settings
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = "SHOWME_CONFIG_DIR"
PORT_ENV = "SHOWME_PORT"
LOG_LEVEL_ENV = "SHOWME_LOG_LEVEL"


def _merge(defaults: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class ConfigManager:
    """Manage configuration persistence"""

    _instance = None

    def __init__(self, config_dir: str | os.PathLike | None = None):
        self._config_file = self._locate_config_file(config_dir)
        self._config = self._load_config()

    @staticmethod
    def _locate_config_file(config_dir: str | os.PathLike | None) -> Path:
        # Explicit argument, then environment, then ~/.showme, then the temp dir
        candidates = [config_dir, os.environ.get(CONFIG_DIR_ENV), os.path.expanduser("~/.showme")]
        for candidate in candidates:
            if not candidate:
                continue
            try:
                path = Path(candidate)
                path.mkdir(parents=True, exist_ok=True)
                return path / "config.json"
            except OSError as e:
                logger.warning("[Config] Cannot use %s: %s", candidate, e)

        tmp_dir = Path(tempfile.gettempdir()) / "showme"
        tmp_dir.mkdir(parents=True, exist_ok=True)
        logger.info("[Config] Using temporary config path: %s", tmp_dir)
        return tmp_dir / "config.json"

    @classmethod
    def get_instance(cls) -> "ConfigManager":
        """Get singleton instance"""
        if cls._instance is None:
            cls._instance = ConfigManager()
        return cls._instance

    @property
    def config_file(self) -> Path:
        return self._config_file

    def _load_config(self) -> dict[str, Any]:
        """Load configuration from file, layered over defaults and under env overrides"""
        stored: dict[str, Any] = {}
        if self._config_file.exists():
            try:
                with open(self._config_file) as f:
                    stored = json.load(f)
            except (json.JSONDecodeError, OSError) as e:
                logger.error("[Config] Error loading %s: %s", self._config_file, e)
                stored = {}
        return self._apply_env(_merge(self._default_config(), stored))

    @staticmethod
    def _apply_env(config: dict[str, Any]) -> dict[str, Any]:
        port = os.environ.get(PORT_ENV)
        if port:
            try:
                config["server"]["port"] = int(port)
            except ValueError:
                logger.warning("[Config] Ignoring non-numeric %s=%r", PORT_ENV, port)
        level = os.environ.get(LOG_LEVEL_ENV)
        if level:
            config["logging"]["level"] = level

        level = str(config["logging"].get("level", "INFO")).upper()
        if not isinstance(logging.getLevelName(level), int):
            logger.warning("[Config] Ignoring unknown log level %r", config["logging"].get("level"))
            level = "INFO"
        config["logging"]["level"] = level
        return config

    def _default_config(self) -> dict[str, Any]:
        """Get default configuration"""
        return {
            "server": {"host": "localhost", "port": 3847},
            "store": {"ttlSeconds": 3600, "sweepIntervalSeconds": 1800},
            "git": {
                "diffTimeoutSeconds": 30,
                "lookupTimeoutSeconds": 10,
                "maxOutputBytes": 10 * 1024 * 1024,
            },
            "paths": {"allowAbsolute": True, "workspaceRoot": None},
            "logging": {"level": "INFO"},
        }

    def get_config(self) -> dict[str, Any]:
        """Get current configuration"""
        # Reload config from file to ensure we have the latest
        self._config = self._load_config()
        return copy.deepcopy(self._config)

    def save_config(self, config: dict[str, Any]):
        """Save configuration to file"""
        self._config = _merge(self._config, config)
        self._config_file.parent.mkdir(parents=True, exist_ok=True)
        try:
            with open(self._config_file, "w") as f:
                json.dump(self._config, f, indent=2)
        except OSError as e:
            raise RuntimeError(f"Failed to save config: {e}") from e

    def get(self, key: str, default=None):
        """Get specific config value"""
        return self._config.get(key, default)

    def set(self, key: str, value: Any):
        """Set specific config value"""
        self.save_config({key: value})

    def log_level(self) -> str:
        return self._config["logging"]["level"]

    def server_settings(self) -> dict[str, Any]:
        return dict(self._config["server"])
