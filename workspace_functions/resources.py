"""
Named resource configuration.

Handlers refer to spreadsheets and Drive folders by a short config name
("default", "sales", ...) instead of raw IDs. The mapping lives in a JSON
file (config/resources.json by default):

    {
        "spreadsheets": {"default": "1AbC..."},
        "folders": {
            "default": {
                "backup_source": "...",
                "backup_destination": "...",
                "cleanup": "..."
            }
        }
    }
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from workspace_functions.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "default"


@dataclass(frozen=True)
class FolderConfig:
    """Drive folders used by the backup and cleanup functions."""

    backup_source: str = ""
    backup_destination: str = ""
    cleanup: str = ""


@dataclass
class ResourceConfig:
    """Spreadsheet and folder IDs keyed by config name."""

    spreadsheets: dict[str, str] = field(default_factory=dict)
    folders: dict[str, FolderConfig] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "ResourceConfig":
        folders = {
            name: FolderConfig(
                backup_source=value.get("backup_source", ""),
                backup_destination=value.get("backup_destination", ""),
                cleanup=value.get("cleanup", ""),
            )
            for name, value in (raw.get("folders") or {}).items()
        }
        return cls(spreadsheets=dict(raw.get("spreadsheets") or {}), folders=folders)

    @classmethod
    def load(cls, path: str | Path) -> "ResourceConfig":
        """
        Load the resource file.

        Raises:
            ConfigurationError: If the file is missing or not valid JSON
        """
        config_path = Path(path)
        try:
            raw = json.loads(config_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load resource configuration: {e}")
            raise ConfigurationError(
                f"Configuration file not found or invalid. Please create {config_path}"
            ) from e

        if not isinstance(raw, dict):
            raise ConfigurationError(f"{config_path} must contain a JSON object")

        logger.info(f"Resource configuration loaded from {config_path}")
        return cls.from_dict(raw)

    def get_spreadsheet_id(self, config_name: str = DEFAULT_CONFIG_NAME) -> str:
        """Spreadsheet ID for a config name, falling back to the default."""
        spreadsheet_id = self.spreadsheets.get(config_name)
        if not spreadsheet_id:
            logger.warning(f"Spreadsheet config '{config_name}' not found, using default")
            return self.spreadsheets.get(DEFAULT_CONFIG_NAME, "")
        return spreadsheet_id

    def get_folder_config(self, config_name: str = DEFAULT_CONFIG_NAME) -> FolderConfig:
        """Folder config for a config name, falling back to the default."""
        folder_config = self.folders.get(config_name)
        if folder_config is None:
            logger.warning(f"Folder config '{config_name}' not found, using default")
            return self.folders.get(DEFAULT_CONFIG_NAME, FolderConfig())
        return folder_config

    def available_configs(self) -> dict[str, list[str]]:
        return {
            "spreadsheets": list(self.spreadsheets.keys()),
            "folders": list(self.folders.keys()),
        }

    def validate(self) -> bool:
        """True if both a default spreadsheet and default folder config exist."""
        if not self.spreadsheets.get(DEFAULT_CONFIG_NAME):
            logger.error("Default spreadsheet ID is required")
            return False

        if DEFAULT_CONFIG_NAME not in self.folders:
            logger.error("Default folder configuration is required")
            return False

        logger.info("Resource configuration validation passed")
        return True


_resources: ResourceConfig | None = None


def get_resources(path: str | Path | None = None) -> ResourceConfig:
    """Return the cached resource config, loading it on first use."""
    global _resources

    if _resources is None:
        if path is None:
            from workspace_functions.config import get_settings

            path = get_settings().resources_config_path
        _resources = ResourceConfig.load(path)
    return _resources


def clear_resources() -> None:
    """Clear cached resource config (for testing)."""
    global _resources
    _resources = None
