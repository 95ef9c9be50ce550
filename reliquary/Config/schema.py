"""
Configuration schema for Reliquary.

Defines all configurable options with metadata for validation
and documentation.
"""

from enum import Enum
from typing import Optional, List, Any
from dataclasses import dataclass


class ConfigType(Enum):
    """Configuration value types."""
    STRING = "string"
    INTEGER = "integer"
    PATH = "path"          # File system path


class ConfigCategory(Enum):
    """Configuration categories."""
    PATHS = "paths"
    SERVER = "server"


@dataclass
class ConfigField:
    """Definition of a configuration field."""
    key: str
    description: str
    config_type: ConfigType
    category: ConfigCategory
    required: bool = False
    default: Any = None
    options: Optional[List[str]] = None  # Allowed values for STRING fields
    env_var: str = None          # Override env var name (defaults to key)

    def __post_init__(self):
        if self.env_var is None:
            self.env_var = self.key


# ==================== Schema Definition ====================

CONFIG_SCHEMA: List[ConfigField] = [
    # === Paths ===
    ConfigField(
        key="RELIQUARY_GRAPH_DIR",
        description="Root directory every file operation is confined to",
        config_type=ConfigType.PATH,
        category=ConfigCategory.PATHS,
        required=True,
    ),
    ConfigField(
        key="RELIQUARY_BACKUP_DIR",
        description="Backup area for superseded content, relative to the repo root",
        config_type=ConfigType.PATH,
        category=ConfigCategory.PATHS,
        default="logseq/backup",
    ),
    ConfigField(
        key="RELIQUARY_RECYCLE_DIR",
        description="Recycle area for deleted files, relative to the repo root",
        config_type=ConfigType.PATH,
        category=ConfigCategory.PATHS,
        default="logseq/.recycle",
    ),
    ConfigField(
        key="RELIQUARY_ENCODING",
        description="Text encoding for reads and writes",
        config_type=ConfigType.STRING,
        category=ConfigCategory.PATHS,
        default="utf-8",
    ),

    # === Server ===
    ConfigField(
        key="PORT",
        description="HTTP port for the file API server",
        config_type=ConfigType.INTEGER,
        category=ConfigCategory.SERVER,
        default=3000,
    ),
    ConfigField(
        key="LOG_LEVEL",
        description="Logging verbosity",
        config_type=ConfigType.STRING,
        category=ConfigCategory.SERVER,
        default="INFO",
        options=["DEBUG", "INFO", "WARNING", "ERROR"],
    ),
]


def get_schema_by_key(key: str) -> Optional[ConfigField]:
    """Get a schema field by key."""
    for field in CONFIG_SCHEMA:
        if field.key == key:
            return field
    return None


def get_required_fields() -> List[ConfigField]:
    """Get all required fields."""
    return [f for f in CONFIG_SCHEMA if f.required]
