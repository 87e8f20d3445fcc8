"""Configuration file parsing utilities."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from flightcore.config.schemas import InstallerSettings

SETTINGS_FILE_NAME = "flightcore.yaml"


class ConfigError(Exception):
    """Error loading or parsing configuration."""

    def __init__(self, message: str, path: Path | None = None):
        self.path = path
        super().__init__(message)


def load_yaml(path: Path) -> dict[str, Any]:
    """Load and parse a YAML file.

    Args:
        path: Path to the YAML file

    Returns:
        Parsed YAML as a dictionary

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    if not path.exists():
        raise ConfigError(f"File not found: {path}", path)

    try:
        with open(path, encoding="utf-8") as f:
            result = yaml.safe_load(f)
            if result is None:
                return {}
            if not isinstance(result, dict):
                raise ConfigError(f"YAML file must contain a mapping: {path}", path)
            return result
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}", path) from e
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}", path) from e


def save_yaml(path: Path, data: dict[str, Any]) -> None:
    """Save data to a YAML file.

    Args:
        path: Path to write to
        data: Data to serialize
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)


def load_settings(path: Path | None = None) -> InstallerSettings:
    """Load installer settings.

    Args:
        path: Settings file, or None to look for flightcore.yaml in the
            current directory

    Returns:
        Parsed InstallerSettings; defaults if no file is given and none exists

    Raises:
        ConfigError: If the file is missing (when given explicitly) or invalid
    """
    if path is None:
        path = Path.cwd() / SETTINGS_FILE_NAME
        if not path.exists():
            return InstallerSettings()

    data = load_yaml(path)

    try:
        return InstallerSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings: {e}", path) from e


def save_settings(path: Path, settings: InstallerSettings) -> None:
    """Save installer settings to a YAML file."""
    save_yaml(path, settings.model_dump(mode="json"))
