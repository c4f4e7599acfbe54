"""Collision resolution: pick a name that is not already taken in a directory."""

from __future__ import annotations

from collections.abc import Collection
from pathlib import Path

from .detector import MAX_FILENAME_BYTES, encoded_length, fit_to_bytes
from .fs import LocalFilesystem


def split_extension(name: str) -> tuple[str, str]:
    """Split *name* into ``(stem, extension)``; the extension keeps its dot.

    The extension is the text after the last dot.  Names whose only dot is
    the leading one (``.profile``) have no extension.
    """
    dot_idx = name.rfind(".")
    if dot_idx <= 0:
        return name, ""
    return name[:dot_idx], name[dot_idx:]


def get_unique_name(
    candidate: str,
    occupied: Collection[str],
    *,
    max_bytes: int = MAX_FILENAME_BYTES,
    case_insensitive: bool = False,
) -> str:
    """Return *candidate*, or ``stem_N.ext`` with the smallest free ``N``.

    The suffix is inserted before the file extension: ``file_1.txt``.  When
    the suffix would push the name over *max_bytes*, the stem is shortened.
    Every probe is distinct, so at most ``len(occupied) + 1`` probes run.

    With *case_insensitive*, a name is also taken when it differs from an
    occupied one only by case, as on NTFS and APFS.
    """
    if case_insensitive:
        taken = {name.casefold() for name in occupied}

        def is_free(name: str) -> bool:
            return name.casefold() not in taken

    else:

        def is_free(name: str) -> bool:
            return name not in occupied

    if is_free(candidate):
        return candidate

    stem, ext = split_extension(candidate)

    counter = 1
    while True:
        suffix = f"_{counter}"
        stem_budget = max_bytes - encoded_length(ext) - len(suffix)
        if stem_budget < 1:
            # Extension alone leaves no room: treat the whole name as the stem.
            probe = fit_to_bytes(candidate, max_bytes - len(suffix)) + suffix
        else:
            probe = fit_to_bytes(stem, stem_budget) + suffix + ext

        if is_free(probe):
            return probe
        counter += 1


def resolve_in_directory(
    directory: Path,
    candidate: str,
    *,
    fs: LocalFilesystem | None = None,
    max_bytes: int = MAX_FILENAME_BYTES,
    case_insensitive: bool = False,
) -> str:
    """Resolve *candidate* against the current listing of *directory*."""
    fs = fs or LocalFilesystem()
    names = fs.list_names(directory) or []
    return get_unique_name(
        candidate, set(names), max_bytes=max_bytes, case_insensitive=case_insensitive
    )
