"""Committing a staged package into the live plugins directory.

The destination tree is assembled inside the staging area first and only
renamed into place once every copy succeeded. Previous installs of the same
package are moved aside before the rename and deleted after it, so the live
directory never holds two versions or a half-written one.
"""

import logging
import os
from pathlib import Path

from flightcore.core.errors import DuplicatePluginError, FilesystemError, MissingFileError
from flightcore.core.modstring import ParsedModString
from flightcore.core.resolver import remove_installs, restore_installs, retire_installs
from flightcore.utils.filesystem import copy_file

logger = logging.getLogger("flightcore.commit")

DEFAULT_MANIFEST_NAME = "manifest.json"
COMMIT_SUBDIR = ".commit"
RETIRED_SUBDIR = ".retired"


def stage_package(
    staging_dir: Path,
    package: ParsedModString,
    plugins: list[Path],
    manifest_name: str = DEFAULT_MANIFEST_NAME,
) -> Path:
    """Build the final install directory inside the staging area.

    Plugin files keep their file name; their subdirectory structure is
    discarded.

    Args:
        staging_dir: Root of the extracted package
        package: Package being installed
        plugins: Detected plugin files
        manifest_name: Name of the manifest file at the package root

    Returns:
        Path to the assembled directory

    Raises:
        MissingFileError: If the manifest is absent
        DuplicatePluginError: If two plugins share a file name
        FilesystemError: If a copy fails
    """
    manifest = staging_dir / manifest_name
    if not manifest.is_file():
        raise MissingFileError(manifest, str(package))

    # Names collide case-insensitively on the game's filesystem
    seen: set[str] = set()
    for plugin in plugins:
        key = plugin.name.lower()
        if key in seen:
            raise DuplicatePluginError(plugin.name, str(package))
        seen.add(key)

    staged = staging_dir / COMMIT_SUBDIR / package.folder_name
    try:
        staged.mkdir(parents=True, exist_ok=True)
        copy_file(manifest, staged / manifest_name)
        for plugin in plugins:
            copy_file(plugin, staged / plugin.name)
    except OSError as e:
        raise FilesystemError(f"Cannot copy package files for {package}: {e}", str(package)) from e

    logger.debug("Staged %s with %d plugin(s)", package, len(plugins))
    return staged


def swap_into_place(
    staged: Path,
    destination: Path,
    conflicts: list[Path],
    retired_dir: Path,
) -> None:
    """Replace previous installs with the staged directory.

    Args:
        staged: Directory built by stage_package()
        destination: Final install directory
        conflicts: Previous installs of the same package
        retired_dir: Holding directory for previous installs

    Raises:
        FilesystemError: If the swap fails (previous installs are restored)
            or a previous install cannot be deleted afterwards
    """
    moves = retire_installs(conflicts, retired_dir)

    try:
        os.replace(staged, destination)
    except OSError as e:
        restore_installs(moves)
        raise FilesystemError(f"Cannot move {staged.name} into {destination.parent}: {e}") from e

    logger.info("Installed %s", destination.name)
    remove_installs(retired for _, retired in moves)
