"""Tests for flightcore.config.schemas module."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from flightcore.config.schemas import GameInstall, InstallerSettings


class TestGameInstall:
    """Tests for GameInstall model."""

    def test_plugins_dir(self):
        """Plugins live under R2Northstar/plugins."""
        install = GameInstall(game_path=Path("/games/Titanfall2"), install_type="origin")

        assert install.profile_dir == Path("/games/Titanfall2/R2Northstar")
        assert install.plugins_dir == Path("/games/Titanfall2/R2Northstar/plugins")

    def test_default_install_type(self):
        """Install type defaults to unknown."""
        assert GameInstall(game_path=Path("/x")).install_type == "unknown"

    def test_rejects_unknown_install_type(self):
        """Only known install types validate."""
        with pytest.raises(ValidationError):
            GameInstall(game_path=Path("/x"), install_type="gog")


class TestInstallerSettings:
    """Tests for InstallerSettings model."""

    def test_defaults(self):
        """Plugins are disabled by default."""
        settings = InstallerSettings()

        assert settings.plugins_allowed is False
        assert settings.consent_timeout == 300
        assert settings.plugin_extensions == [".dll"]
        assert settings.manifest_name == "manifest.json"

    def test_normalizes_extensions(self):
        """Extensions are lowercased and dotted."""
        settings = InstallerSettings(plugin_extensions=["DLL", ".So"])

        assert settings.plugin_extensions == [".dll", ".so"]

    def test_rejects_empty_extensions(self):
        """At least one extension is required."""
        with pytest.raises(ValidationError, match="At least one plugin extension"):
            InstallerSettings(plugin_extensions=[])

    def test_rejects_non_positive_timeout(self):
        """Timeouts must be positive."""
        with pytest.raises(ValidationError):
            InstallerSettings(consent_timeout=0)

    def test_allows_no_timeout(self):
        """None waits forever."""
        assert InstallerSettings(consent_timeout=None).consent_timeout is None

    @pytest.mark.parametrize("name", ["", "sub/manifest.json", "..\\manifest.json"])
    def test_rejects_invalid_manifest_name(self, name: str):
        """The manifest must be a bare file name."""
        with pytest.raises(ValidationError):
            InstallerSettings(manifest_name=name)
