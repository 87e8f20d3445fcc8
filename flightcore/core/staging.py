"""Staging area for archive extraction.

The staging directory lives inside the live plugins directory under a fixed,
reserved name so leftovers from a crashed run can be recognized and removed.
It is owned by exactly one install at a time and is always torn down when
the install finishes, whatever the outcome.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
import zipfile
import zlib
from pathlib import Path
from types import TracebackType
from typing import BinaryIO

from flightcore.core.errors import ArchiveError, FilesystemError
from flightcore.utils.filesystem import enclosed_name, is_hidden, remove_directory

logger = logging.getLogger("flightcore.staging")

STAGING_DIR_NAME = "___flightcore-temp-plugin-dir"

ArchiveSource = zipfile.ZipFile | BinaryIO | Path | str

# Errors zipfile raises for corrupt, truncated or unsupported entries
_ARCHIVE_ERRORS = (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError, RuntimeError)


def remove_stale_staging_dir(plugins_dir: Path) -> bool:
    """Remove a staging directory left behind by an interrupted install.

    Args:
        plugins_dir: Live plugins directory

    Returns:
        True if a leftover directory was found and removed

    Raises:
        FilesystemError: If the leftover cannot be removed
    """
    path = plugins_dir / STAGING_DIR_NAME
    if not path.exists():
        return False

    logger.warning("Removing leftover staging directory %s", path)
    try:
        remove_directory(path)
    except OSError as e:
        raise FilesystemError(f"Cannot remove leftover staging directory {path}: {e}") from e
    return True


class StagingArea:
    """An exclusively-owned extraction directory.

    Use as a context manager so teardown runs on every exit path:

        with StagingArea(plugins_dir) as staging:
            staging.extract(archive)

    ``async with`` performs creation and teardown on a worker thread.
    """

    def __init__(self, plugins_dir: Path):
        self.plugins_dir = plugins_dir
        self.path = plugins_dir / STAGING_DIR_NAME
        self._created = False
        self._torn_down = False

    @property
    def active(self) -> bool:
        """Whether the directory has been created and not yet torn down."""
        return self._created and not self._torn_down

    def create(self) -> Path:
        """Create the staging directory.

        Returns:
            Path to the staging directory

        Raises:
            FilesystemError: If the directory cannot be created
        """
        if self._created:
            raise FilesystemError(f"Staging directory already created: {self.path}")

        remove_stale_staging_dir(self.plugins_dir)
        try:
            self.path.mkdir(parents=True)
        except OSError as e:
            raise FilesystemError(f"Cannot create staging directory {self.path}: {e}") from e

        self._created = True
        logger.debug("Created staging directory %s", self.path)
        return self.path

    def extract(self, archive: ArchiveSource) -> list[Path]:
        """Extract archive entries into the staging directory.

        Entries without a safe relative path or starting with a hidden-file
        marker are skipped.

        Args:
            archive: Open zip archive, binary file handle, or path to a zip file

        Returns:
            Paths of the files written

        Raises:
            ArchiveError: If the archive is corrupt
            FilesystemError: If an entry cannot be written
        """
        if not self.active:
            raise FilesystemError(f"Staging directory is not active: {self.path}")

        if isinstance(archive, zipfile.ZipFile):
            return self._extract_entries(archive)

        try:
            zf = zipfile.ZipFile(archive)
        except _ARCHIVE_ERRORS as e:
            raise ArchiveError(f"Cannot read archive: {e}") from e
        except OSError as e:
            raise ArchiveError(f"Cannot open archive: {e}") from e

        with zf:
            return self._extract_entries(zf)

    def _extract_entries(self, zf: zipfile.ZipFile) -> list[Path]:
        written: list[Path] = []

        try:
            entries = zf.infolist()
        except _ARCHIVE_ERRORS as e:
            raise ArchiveError(f"Cannot read archive: {e}") from e

        for info in entries:
            relative = enclosed_name(info.filename)
            if relative is None or is_hidden(relative):
                logger.debug("Skipping archive entry %r", info.filename)
                continue

            out = self.path.joinpath(*relative.parts)

            try:
                if info.filename.replace("\\", "/").endswith("/"):
                    out.mkdir(parents=True, exist_ok=True)
                    continue
                out.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(info) as src, open(out, "wb") as dst:
                    shutil.copyfileobj(src, dst)
            except _ARCHIVE_ERRORS as e:
                raise ArchiveError(f"Corrupt archive entry {info.filename!r}: {e}") from e
            except OSError as e:
                raise FilesystemError(f"Cannot write {out}: {e}") from e

            written.append(out)

        logger.debug("Extracted %d file(s) into %s", len(written), self.path)
        return written

    def teardown(self) -> None:
        """Remove the staging directory and everything in it.

        Only the first call after a successful create does any work.

        Raises:
            FilesystemError: If the directory cannot be removed
        """
        if not self.active:
            return

        self._torn_down = True
        try:
            remove_directory(self.path)
        except OSError as e:
            raise FilesystemError(f"Cannot remove staging directory {self.path}: {e}") from e
        logger.debug("Removed staging directory %s", self.path)

    def _release(self, exc: BaseException | None) -> None:
        try:
            self.teardown()
        except FilesystemError:
            if exc is None:
                raise
            # Keep the original error; the leftover is cleaned up on the next create
            logger.exception("Failed to remove staging directory %s", self.path)

    def __enter__(self) -> StagingArea:
        self.create()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self._release(exc)

    async def __aenter__(self) -> StagingArea:
        await asyncio.to_thread(self.create)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await asyncio.to_thread(self._release, exc)
