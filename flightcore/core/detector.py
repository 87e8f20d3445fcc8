"""Native plugin detection in a staged package."""

import logging
from collections.abc import Iterable
from pathlib import Path

from flightcore.core.errors import FilesystemError, MissingFileError
from flightcore.utils.filesystem import has_any_file

logger = logging.getLogger("flightcore.detector")

PLUGINS_SUBDIR = "plugins"
DEFAULT_PLUGIN_EXTENSIONS = (".dll",)


def find_plugins(
    staging_dir: Path,
    extensions: Iterable[str] = DEFAULT_PLUGIN_EXTENSIONS,
) -> list[Path]:
    """Find native plugin binaries in a staged package.

    Only the file extension is considered; file contents are never read.

    Args:
        staging_dir: Root of the extracted package
        extensions: File suffixes that identify a native binary

    Returns:
        Sorted list of plugin files under ``plugins/``

    Raises:
        MissingFileError: If the staged package contains no files at all
        FilesystemError: If the staged tree cannot be scanned
    """
    suffixes = {ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in extensions}
    plugins_dir = staging_dir / PLUGINS_SUBDIR

    try:
        if not plugins_dir.is_dir():
            if not has_any_file(staging_dir):
                raise MissingFileError(plugins_dir)
            logger.debug("No %s/ directory in %s", PLUGINS_SUBDIR, staging_dir)
            return []

        plugins = sorted(
            path
            for path in plugins_dir.rglob("*")
            if path.is_file() and path.suffix.lower() in suffixes
        )
    except OSError as e:
        raise FilesystemError(f"Cannot scan {staging_dir} for plugins: {e}") from e
    logger.debug("Found %d plugin file(s) in %s", len(plugins), plugins_dir)
    return plugins
