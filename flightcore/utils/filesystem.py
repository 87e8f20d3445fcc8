"""Filesystem utilities for flightcore."""

import shutil
from pathlib import Path, PurePosixPath


def copy_file(src: Path, dest: Path) -> Path:
    """Copy a file to a destination.

    Args:
        src: Source file path
        dest: Destination path (file or directory)

    Returns:
        Path to the copied file
    """
    if dest.is_dir():
        dest = dest / src.name
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(src, dest)
    return dest


def remove_directory(path: Path) -> bool:
    """Remove a directory and its contents.

    Args:
        path: Directory path to remove

    Returns:
        True if the directory was removed, False if it didn't exist
    """
    if not path.exists():
        return False
    shutil.rmtree(path)
    return True


def has_any_file(path: Path) -> bool:
    """Check whether a directory tree contains at least one regular file."""
    if not path.is_dir():
        return False
    return any(p.is_file() for p in path.rglob("*"))


def enclosed_name(entry_name: str) -> PurePosixPath | None:
    """Resolve an archive entry name to a safe relative path.

    Backslashes are treated as separators. Absolute paths, drive-qualified
    paths and paths with a ``..`` component have no enclosed name.

    Args:
        entry_name: Raw entry name from the archive

    Returns:
        Relative path, or None if the entry cannot be placed safely
    """
    normalized = entry_name.replace("\\", "/")
    if normalized.startswith("/"):
        return None

    path = PurePosixPath(normalized)
    parts = [part for part in path.parts if part != "."]
    if not parts:
        return None
    if ".." in parts or ":" in parts[0]:
        return None
    return PurePosixPath(*parts)


def is_hidden(path: PurePosixPath) -> bool:
    """Check whether a relative path starts with a hidden-file marker."""
    return bool(path.parts) and path.parts[0].startswith(".")
