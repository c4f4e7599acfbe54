"""Filesystem seam: directory listings and non-clobbering renames.

The detector, resolver and journal replay only see the filesystem through
this class, so tests can hand in a fake.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class LocalFilesystem:
    """Directory listing and rename primitives backed by :mod:`os`."""

    def list_names(self, directory: Path) -> list[str] | None:
        """Return the basenames in *directory*, or ``None`` if it cannot be read."""
        try:
            return os.listdir(directory)
        except OSError as exc:
            logger.warning("Cannot list %s: %s", directory, exc)
            return None

    def exists(self, path: Path) -> bool:
        # Dangling symlinks still occupy their name.
        return os.path.lexists(path)

    def rename(self, source: Path, destination: Path) -> str | None:
        """Rename *source* to *destination*.

        Returns ``None`` on success or an error message.  An existing
        destination is reported as an error rather than overwritten.
        """
        if not self.exists(source):
            return f"Source no longer exists: {source}"
        if self.exists(destination):
            return f"Destination already exists: {destination}"
        try:
            os.rename(source, destination)
        except OSError as exc:
            logger.error("Rename %s -> %s failed: %s", source, destination, exc)
            return str(exc)
        logger.debug("Renamed %s -> %s", source, destination)
        return None
