"""
Configuration loading and management.

Merges defaults, an optional JSON config file, environment variables and
command-line overrides into validated SyncSettings.
"""

import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union
import logging

from pydantic import ValidationError

from core.models.config import DirectoryLayout, SyncSettings
from .defaults import DEFAULT_SETTINGS, ENV_VAR_MAPPING, STRING_SETTINGS

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Missing or invalid startup configuration"""
    pass


class ConfigurationLoader:
    """Load kenku-sync settings from layered sources"""

    def __init__(self, environ: Optional[Dict[str, str]] = None):
        self.environ = environ if environ is not None else os.environ

    def load_settings(
        self,
        config_file: Optional[Union[str, Path]] = None,
        overrides: Optional[Dict[str, Any]] = None
    ) -> SyncSettings:
        """
        Build settings: defaults < config file < environment < overrides.

        Args:
            config_file: Optional JSON file with the same shape as DEFAULT_SETTINGS
            overrides: Dot-notation keys (e.g. "remote.port"); None values are ignored

        Raises:
            ConfigurationError: If a source cannot be read or validation fails
        """
        config_data = copy.deepcopy(DEFAULT_SETTINGS)

        if config_file is not None:
            self._merge(config_data, self._load_config_file(Path(config_file)))

        config_data = self._apply_env_overrides(config_data)

        for path, value in (overrides or {}).items():
            if value is not None:
                self._set_nested_value(config_data, path, value)

        try:
            settings = SyncSettings(**config_data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

        logger.debug(f"Loaded settings: {settings.model_dump()}")
        return settings

    def require_layout(self, settings: SyncSettings) -> DirectoryLayout:
        """
        Validate the directory layout needed by watch and backfill.

        Raises:
            ConfigurationError: If root is missing, invalid or not a directory
        """
        if not settings.directories.root:
            raise ConfigurationError("Missing root directory (--root-dir or KENKU_SYNC_ROOT_DIR)")

        try:
            layout = settings.get_layout()
        except ValueError as e:
            raise ConfigurationError(f"Invalid directory layout: {e}") from e

        root = Path(layout.root)
        if not root.exists():
            raise ConfigurationError(f"Root directory does not exist: {root}")
        if not root.is_dir():
            raise ConfigurationError(f"Root path is not a directory: {root}")

        return layout

    def _load_config_file(self, config_file: Path) -> Dict[str, Any]:
        """Load a JSON settings file"""
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise ConfigurationError(f"Config file not found: {config_file}") from e
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Failed to load config from {config_file}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file must contain a JSON object: {config_file}")

        logger.info(f"Loaded configuration from {config_file}")
        return data

    def _merge(self, base: Dict[str, Any], update: Dict[str, Any]) -> None:
        """Recursively merge update into base"""
        for key, value in update.items():
            if isinstance(value, dict) and isinstance(base.get(key), dict):
                self._merge(base[key], value)
            else:
                base[key] = value

    def _apply_env_overrides(self, config_data: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides to configuration"""
        for env_var, config_path in ENV_VAR_MAPPING.items():
            env_value = self.environ.get(env_var)
            if env_value is not None:
                if config_path in STRING_SETTINGS:
                    self._set_nested_value(config_data, config_path, env_value)
                else:
                    self._set_nested_value(config_data, config_path, self._convert_env_value(env_value))

        return config_data

    def _set_nested_value(self, data: Dict[str, Any], path: str, value: Any) -> None:
        """Set nested dictionary value using dot notation path"""
        keys = path.split('.')
        current = data

        for key in keys[:-1]:
            if key not in current or not isinstance(current[key], dict):
                current[key] = {}
            current = current[key]

        current[keys[-1]] = value

    def _convert_env_value(self, value: str) -> Any:
        """Convert environment variable string to appropriate type"""
        # Boolean conversion
        if value.lower() in ('true', 'yes', 'on'):
            return True
        elif value.lower() in ('false', 'no', 'off'):
            return False
        elif value.lower() in ('none', 'null', ''):
            return None

        # Numeric conversion
        try:
            if '.' in value:
                return float(value)
            else:
                return int(value)
        except ValueError:
            pass

        # Return as string
        return value
