"""Pydantic schemas for flightcore configuration.

This module defines the data models for:
- the game install an operation targets
- flightcore.yaml (installer settings)
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

InstallType = Literal["steam", "origin", "ea-app", "unknown"]


class GameInstall(BaseModel):
    """A detected Titanfall 2 install."""

    game_path: Path
    install_type: InstallType = "unknown"

    @property
    def profile_dir(self) -> Path:
        """The Northstar profile directory."""
        return self.game_path / "R2Northstar"

    @property
    def plugins_dir(self) -> Path:
        """The live plugins directory packages are installed into."""
        return self.profile_dir / "plugins"


class InstallerSettings(BaseModel):
    """Installer settings from flightcore.yaml."""

    plugins_allowed: bool = False
    consent_timeout: float | None = Field(default=300.0, gt=0)
    plugin_extensions: list[str] = Field(default_factory=lambda: [".dll"])
    manifest_name: str = "manifest.json"

    @field_validator("plugin_extensions")
    @classmethod
    def normalize_extensions(cls, v: list[str]) -> list[str]:
        """Lowercase extensions and ensure a leading dot."""
        if not v:
            raise ValueError("At least one plugin extension is required")
        return [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in v]

    @field_validator("manifest_name")
    @classmethod
    def validate_manifest_name(cls, v: str) -> str:
        """Manifest must be a bare file name."""
        if not v or "/" in v or "\\" in v:
            raise ValueError(f"Invalid manifest name: {v!r}")
        return v
