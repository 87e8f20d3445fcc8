"""Detection and removal of previously installed versions of a package.

A package's identity is its name alone: an install of ``authorB-Foo-2.0.0``
replaces ``authorA-Foo-1.0.0``. Directories whose name does not parse as a
mod string are not managed by flightcore and are never touched.
"""

import logging
import shutil
from collections.abc import Iterable
from pathlib import Path

from flightcore.core.errors import FilesystemError
from flightcore.core.modstring import ParsedModString
from flightcore.core.staging import STAGING_DIR_NAME
from flightcore.utils.filesystem import remove_directory

logger = logging.getLogger("flightcore.resolver")


def list_installed_packages(plugins_dir: Path) -> list[tuple[ParsedModString, Path]]:
    """List managed package installs in a plugins directory.

    Args:
        plugins_dir: Live plugins directory

    Returns:
        (parsed mod string, directory) pairs sorted by directory name

    Raises:
        FilesystemError: If the plugins directory cannot be read
    """
    installs = []
    try:
        if not plugins_dir.is_dir():
            return []
        for path in sorted(plugins_dir.iterdir()):
            if not path.is_dir() or path.name == STAGING_DIR_NAME:
                continue
            parsed = ParsedModString.try_parse(path.name)
            if parsed is not None:
                installs.append((parsed, path))
    except OSError as e:
        raise FilesystemError(f"Cannot read plugins directory {plugins_dir}: {e}") from e
    return installs


def find_conflicting_installs(
    plugins_dir: Path,
    package: ParsedModString,
    exclude: Iterable[Path] = (),
) -> list[Path]:
    """Find installs sharing the package's name, regardless of author or version.

    Args:
        plugins_dir: Live plugins directory
        package: Incoming package
        exclude: Directories to ignore

    Returns:
        Directories holding a prior install of the same package
    """
    excluded = set(exclude)
    return [
        path
        for parsed, path in list_installed_packages(plugins_dir)
        if parsed.name == package.name and path not in excluded
    ]


def remove_installs(paths: Iterable[Path]) -> None:
    """Delete install directories.

    Raises:
        FilesystemError: On the first directory that cannot be removed
    """
    for path in paths:
        logger.info("Removing %s", path)
        try:
            remove_directory(path)
        except OSError as e:
            raise FilesystemError(f"Cannot remove previous install {path}: {e}") from e


def retire_installs(paths: Iterable[Path], retired_dir: Path) -> list[tuple[Path, Path]]:
    """Move installs out of the live plugins directory.

    On failure the installs already moved are put back before raising.

    Args:
        paths: Install directories to move
        retired_dir: Holding directory on the same filesystem

    Returns:
        (original, retired) pairs for every moved directory

    Raises:
        FilesystemError: If a directory cannot be moved
    """
    moves: list[tuple[Path, Path]] = []
    try:
        retired_dir.mkdir(parents=True, exist_ok=True)
        for path in paths:
            target = retired_dir / path.name
            logger.debug("Retiring %s", path)
            shutil.move(str(path), str(target))
            moves.append((path, target))
    except OSError as e:
        restore_installs(moves)
        raise FilesystemError(f"Cannot move previous install out of the way: {e}") from e
    return moves


def restore_installs(moves: Iterable[tuple[Path, Path]]) -> None:
    """Move retired installs back to their original location."""
    for original, retired in moves:
        try:
            shutil.move(str(retired), str(original))
        except OSError:
            logger.exception("Failed to restore %s from %s", original, retired)
