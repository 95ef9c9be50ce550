"""
Reliquary Configuration Manager.

Configuration with:
- Schema-driven validation
- Environment variable and .env support
- Optional JSON config file
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from dotenv import load_dotenv

from reliquary.shared.gate import GateLogger, PathUtils
from reliquary.FileGateway.models import GatewayConfig

from reliquary.Config.schema import (
    CONFIG_SCHEMA,
    ConfigField,
    ConfigType,
    ConfigCategory,
    get_schema_by_key,
    get_required_fields,
)

_log = GateLogger.get("Config")


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


class ConfigManager:
    """
    Manages Reliquary configuration.

    Priority order:
    1. Environment variables (including those loaded from .env)
    2. JSON config file
    3. Schema defaults
    """

    def __init__(
        self,
        env_file: Optional[Union[str, Path]] = None,
        config_json: Optional[Union[str, Path]] = None
    ):
        self.env_file = env_file
        self.config_json = Path(config_json) if config_json else None
        self._cache: Dict[str, Any] = {}
        self._load()

    def _load(self):
        """Load configuration from all sources."""
        # Existing environment variables win over .env entries
        if self.env_file is not None:
            load_dotenv(self.env_file)
        else:
            load_dotenv()

        json_config = {}
        if self.config_json is not None and self.config_json.exists():
            try:
                with open(self.config_json, encoding="utf-8") as f:
                    json_config = json.load(f)
            except (json.JSONDecodeError, OSError) as e:
                _log.warning(f"Ignoring unreadable config file {self.config_json}: {e}")

        for field in CONFIG_SCHEMA:
            value = os.environ.get(field.env_var)

            if value is None and field.key in json_config:
                value = json_config[field.key]

            if value is None:
                value = field.default

            self._cache[field.key] = self._convert_type(value, field)

    def _convert_type(self, value: Any, field: ConfigField) -> Any:
        """Convert value to appropriate type."""
        if value is None or value == "":
            return None

        if field.config_type == ConfigType.INTEGER:
            try:
                return int(value)
            except (ValueError, TypeError):
                _log.warning(f"{field.key}={value!r} is not an integer, using default {field.default}")
                return field.default

        value = str(value)
        if field.options and value.upper() not in field.options:
            _log.warning(f"{field.key}={value!r} is not one of {field.options}, using default {field.default}")
            return field.default
        return value.upper() if field.options else value

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value."""
        value = self._cache.get(key)
        return default if value is None else value

    def get_log_level(self) -> int:
        """LOG_LEVEL as a logging module constant."""
        return getattr(logging, self.get("LOG_LEVEL", "INFO"))

    def apply_log_level(self) -> int:
        """Set the configured level on every Reliquary logger."""
        level = self.get_log_level()
        GateLogger.set_level(level)
        return level

    def get_all(self) -> Dict[str, Any]:
        """Get all configuration values."""
        return dict(self._cache)

    def validate(self) -> Tuple[bool, List[str]]:
        """
        Validate current configuration.

        Returns:
            Tuple of (is_valid, list of error messages)
        """
        errors = []
        for field in get_required_fields():
            if self._cache.get(field.key) is None:
                errors.append(f"Missing required config: {field.key} ({field.description})")
        return len(errors) == 0, errors

    def to_gateway_config(self, create_root: bool = True) -> GatewayConfig:
        """
        Build the immutable gateway configuration.

        Args:
            create_root: Create the graph directory if it does not exist

        Raises:
            ConfigError: If required values are missing or invalid
        """
        is_valid, errors = self.validate()
        if not is_valid:
            raise ConfigError("; ".join(errors))

        root = self.get("RELIQUARY_GRAPH_DIR")
        if not os.path.isdir(root):
            if not create_root:
                raise ConfigError(f"Graph directory does not exist: {root}")
            _log.warning(f"Graph directory does not exist, creating: {root}")
            try:
                PathUtils.ensure_dir(root)
            except OSError as e:
                raise ConfigError(f"Cannot create graph directory {root}: {e}") from e

        try:
            return GatewayConfig(
                root=root,
                backup_dir=self.get("RELIQUARY_BACKUP_DIR"),
                recycle_dir=self.get("RELIQUARY_RECYCLE_DIR"),
                encoding=self.get("RELIQUARY_ENCODING"),
            )
        except ValueError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e


def load_gateway_config(
    env_file: Optional[Union[str, Path]] = None,
    config_json: Optional[Union[str, Path]] = None,
    create_root: bool = True
) -> GatewayConfig:
    """Load settings from the environment and return a GatewayConfig."""
    return ConfigManager(env_file, config_json).to_gateway_config(create_root)


def get_schema() -> Dict[str, Any]:
    """Get the configuration schema as a dict keyed by category."""
    result: Dict[str, Any] = {}
    for field in CONFIG_SCHEMA:
        result.setdefault(field.category.value, []).append({
            "key": field.key,
            "description": field.description,
            "type": field.config_type.value,
            "required": field.required,
            "default": field.default,
            "env_var": field.env_var,
        })
    return result


__all__ = [
    "ConfigManager",
    "ConfigError",
    "ConfigField",
    "ConfigType",
    "ConfigCategory",
    "load_gateway_config",
    "get_schema",
    "get_schema_by_key",
]
