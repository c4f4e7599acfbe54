"""Collect the regular files that a run will inspect.

Only regular files are collected: directories and symbolic links are left
alone, and the journal directory is never descended into.
"""

from __future__ import annotations

import os
from pathlib import Path

from .journal import BACKUP_DIR


def validate_path_under_root(path: Path, root: Path) -> None:
    """Raise ``ValueError`` if *path* is not under *root* after resolution."""
    resolved = path.resolve()
    root_resolved = root.resolve()
    # commonpath, not startswith: "/data-old" is not under "/data".
    try:
        common = Path(os.path.commonpath([resolved, root_resolved]))
    except ValueError:
        raise ValueError(f"Path {path} is not under root {root}") from None
    if common != root_resolved:
        raise ValueError(f"Path {path} is not under root {root}")


def collect_files(root: Path, *, recursive: bool = False) -> list[Path]:
    """Return the regular files under *root*, sorted for deterministic runs.

    Args:
        root: Directory to scan (must exist and be a directory).
        recursive: Descend into subdirectories.

    Raises:
        ValueError: If *root* is not a directory.
    """
    root = root.resolve()
    if not root.is_dir():
        raise ValueError(f"Root path is not a directory: {root}")

    if not recursive:
        with os.scandir(root) as it:
            return sorted(Path(entry.path) for entry in it if entry.is_file(follow_symlinks=False))

    files: list[Path] = []
    for dirpath_str, dirnames, _ in os.walk(root):
        # Pruned in place: os.walk must not enter the journal directory.
        dirnames[:] = sorted(d for d in dirnames if d != BACKUP_DIR)
        with os.scandir(dirpath_str) as it:
            files.extend(
                Path(entry.path) for entry in it if entry.is_file(follow_symlinks=False)
            )
    return sorted(files)
