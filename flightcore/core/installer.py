"""Plugin installation orchestrator.

This module contains the PluginInstaller which runs a single package
install through its steps: parse the mod string, stage the archive, detect
plugins, obtain consent, resolve conflicts with previous installs, and
commit. The staging directory is removed on every exit path.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from flightcore.config.schemas import GameInstall, InstallerSettings
from flightcore.core.commit import (
    DEFAULT_MANIFEST_NAME,
    RETIRED_SUBDIR,
    stage_package,
    swap_into_place,
)
from flightcore.core.consent import ConsentGate, ConsentNotifier
from flightcore.core.detector import DEFAULT_PLUGIN_EXTENSIONS, find_plugins
from flightcore.core.errors import InstallError, PluginsDisabledError
from flightcore.core.modstring import ParsedModString
from flightcore.core.resolver import find_conflicting_installs
from flightcore.core.staging import ArchiveSource, StagingArea

logger = logging.getLogger("flightcore.installer")


@dataclass(frozen=True)
class InstallRequest:
    """Inputs of a single install."""

    game_install: GameInstall
    archive: ArchiveSource
    mod_string: str
    plugins_allowed: bool


@dataclass
class InstallResult:
    """Result of a package installation."""

    mod_string: str
    success: bool
    message: str = ""
    install_dir: Path | None = None
    plugins: list[str] = field(default_factory=list)
    replaced: list[str] = field(default_factory=list)


class PluginInstaller:
    """Orchestrates package installation into a game's plugins directory.

    Create one installer per process: installs are serialized so that only
    one install at a time touches the plugins directory or waits for
    consent.
    """

    def __init__(
        self,
        consent_gate: ConsentGate,
        extensions: Sequence[str] = DEFAULT_PLUGIN_EXTENSIONS,
        manifest_name: str = DEFAULT_MANIFEST_NAME,
    ):
        """Initialize the installer.

        Args:
            consent_gate: Gate used to ask the user before installing plugins
            extensions: File suffixes that identify a native plugin
            manifest_name: Manifest file expected at the package root
        """
        self.consent_gate = consent_gate
        self.extensions = tuple(extensions)
        self.manifest_name = manifest_name
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(
        cls, settings: InstallerSettings, notifier: ConsentNotifier
    ) -> PluginInstaller:
        """Build an installer and its consent gate from settings."""
        gate = ConsentGate(notifier, timeout=settings.consent_timeout)
        return cls(
            gate, extensions=settings.plugin_extensions, manifest_name=settings.manifest_name
        )

    async def install(
        self,
        game_install: GameInstall,
        archive: ArchiveSource,
        mod_string: str,
        plugins_allowed: bool,
    ) -> InstallResult:
        """Install a package from an archive.

        Args:
            game_install: Target game install
            archive: Open zip archive, binary file handle, or path to a zip file
            mod_string: Thunderstore mod string (author-name-version)
            plugins_allowed: Whether packages carrying plugins may be installed

        Returns:
            InstallResult describing the install

        Raises:
            InstallError: If any step fails
        """
        request = InstallRequest(
            game_install=game_install,
            archive=archive,
            mod_string=mod_string,
            plugins_allowed=plugins_allowed,
        )
        async with self._lock:
            return await self._install(request)

    async def try_install(
        self,
        game_install: GameInstall,
        archive: ArchiveSource,
        mod_string: str,
        plugins_allowed: bool,
    ) -> InstallResult:
        """Install a package, reporting failures in the result instead of raising."""
        try:
            return await self.install(game_install, archive, mod_string, plugins_allowed)
        except InstallError as e:
            logger.error("Failed to install %s: %s", mod_string, e)
            return InstallResult(mod_string=mod_string, success=False, message=str(e))

    async def _install(self, request: InstallRequest) -> InstallResult:
        package = ParsedModString.parse(request.mod_string)
        plugins_dir = request.game_install.plugins_dir
        logger.info("Installing %s into %s", package, plugins_dir)

        try:
            async with StagingArea(plugins_dir) as staging:
                await asyncio.to_thread(staging.extract, request.archive)
                plugins = await asyncio.to_thread(find_plugins, staging.path, self.extensions)

                if plugins:
                    if not request.plugins_allowed:
                        raise PluginsDisabledError(str(package))
                    await self.consent_gate.request_consent(package, plugins)

                staged = await asyncio.to_thread(
                    stage_package, staging.path, package, plugins, self.manifest_name
                )
                conflicts = await asyncio.to_thread(find_conflicting_installs, plugins_dir, package)
                destination = plugins_dir / package.folder_name
                await asyncio.to_thread(
                    swap_into_place, staged, destination, conflicts, staging.path / RETIRED_SUBDIR
                )
        except InstallError as e:
            if e.package is None:
                e.package = str(package)
            raise

        replaced = [path.name for path in conflicts if path != destination]
        return InstallResult(
            mod_string=request.mod_string,
            success=True,
            message=f"Installed {package}",
            install_dir=destination,
            plugins=[p.name for p in plugins],
            replaced=replaced,
        )
