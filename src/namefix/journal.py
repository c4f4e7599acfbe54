"""Per-directory rename journal and the undo replay that consumes it.

Each fixed directory gets ``.namefix_backup/.namefix_undo.log`` holding one
line per rename::

    timestamp|working directory|original name|new name

Lines are appended and flushed one at a time, immediately before the rename
they describe.  ``%``, ``|``, CR and LF inside a field are written as
``%25``, ``%7C``, ``%0D`` and ``%0A``.

A successful undo renames the journal to ``.namefix_undo.log.done`` so it is
never replayed twice.  Only one invocation may work on a directory at a time;
nothing here locks the journal.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from urllib.parse import unquote

from .fs import LocalFilesystem
from .resolver import get_unique_name

logger = logging.getLogger(__name__)

BACKUP_DIR: str = ".namefix_backup"
BACKUP_LOG: str = ".namefix_undo.log"
ARCHIVE_SUFFIX: str = ".done"
FIELD_SEPARATOR: str = "|"

_ESCAPES: dict[str, str] = {"%": "%25", "|": "%7C", "\r": "%0D", "\n": "%0A"}


class NamefixError(Exception):
    """Base class for errors raised by namefix."""


class JournalNotFoundError(NamefixError):
    """No active journal exists for the directory."""

    def __init__(self, directory: Path) -> None:
        super().__init__(f"No backup found in {directory}")
        self.directory: Path = directory


class JournalFormatError(NamefixError):
    """A journal line could not be parsed."""


@dataclass(frozen=True)
class RenameRecord:
    """One journaled rename.  Identity is the record's position in the journal."""

    timestamp: str
    working_directory: str
    original_name: str
    new_name: str

    @classmethod
    def create(cls, original_name: str, new_name: str) -> RenameRecord:
        return cls(
            timestamp=datetime.now(UTC).isoformat(timespec="seconds"),
            working_directory=os.getcwd(),
            original_name=original_name,
            new_name=new_name,
        )

    def to_line(self) -> str:
        fields = (self.timestamp, self.working_directory, self.original_name, self.new_name)
        return FIELD_SEPARATOR.join(_escape(f) for f in fields) + "\n"

    @classmethod
    def from_line(cls, line: str) -> RenameRecord:
        parts = line.rstrip("\r\n").split(FIELD_SEPARATOR)
        if len(parts) != 4:
            raise JournalFormatError(f"Expected 4 fields, got {len(parts)}: {line!r}")
        timestamp, working_directory, original_name, new_name = (
            unquote(p, errors="surrogateescape") for p in parts
        )
        return cls(timestamp, working_directory, original_name, new_name)


@dataclass
class UndoResult:
    """Outcome of replaying one directory's journal."""

    directory: Path
    dry_run: bool = False
    processed: int = 0
    restored: int = 0
    missing: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    archived_to: Path | None = None

    @property
    def archived(self) -> bool:
        return self.archived_to is not None


def journal_path(directory: Path) -> Path:
    return directory / BACKUP_DIR / BACKUP_LOG


def has_journal(directory: Path) -> bool:
    return journal_path(directory).is_file()


def append_record(directory: Path, record: RenameRecord) -> None:
    """Append *record* to the journal of *directory*, durably."""
    path = journal_path(directory)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8", errors="surrogateescape") as fh:
        fh.write(record.to_line())
        fh.flush()
        os.fsync(fh.fileno())
    logger.debug("Journaled %r -> %r in %s", record.original_name, record.new_name, directory)


def iter_records(directory: Path) -> Iterator[RenameRecord]:
    """Yield the records of *directory*'s journal in append order.

    Raises:
        JournalNotFoundError: If the directory has no active journal.
        JournalFormatError: If a line is malformed.
    """
    path = journal_path(directory)
    if not path.is_file():
        raise JournalNotFoundError(directory)
    with path.open("r", encoding="utf-8", errors="surrogateescape", newline="\n") as fh:
        for line in fh:
            if not line.strip():
                continue
            yield RenameRecord.from_line(line)


def read_journal(directory: Path) -> list[RenameRecord]:
    """Return every record of *directory*'s journal."""
    return list(iter_records(directory))


def archive_journal(directory: Path) -> Path:
    """Retire the journal of *directory* so it is never replayed again.

    Earlier archives are kept: a second archive gets a numbered name.
    """
    path = journal_path(directory)
    if not path.is_file():
        raise JournalNotFoundError(directory)
    existing = set(os.listdir(path.parent))
    archived = path.parent / get_unique_name(BACKUP_LOG + ARCHIVE_SUFFIX, existing)
    os.rename(path, archived)
    logger.debug("Archived journal %s -> %s", path, archived)
    return archived


def undo_directory(
    directory: Path,
    *,
    dry_run: bool = False,
    fs: LocalFilesystem | None = None,
) -> UndoResult:
    """Replay *directory*'s journal, renaming each new name back to its original.

    Records are matched by the name currently on disk.  When several records
    share a new name only the first one finds the file; the rest are
    reported as missing.

    Raises:
        JournalNotFoundError: If the directory has no active journal.
        JournalFormatError: If the journal is malformed.
    """
    fs = fs or LocalFilesystem()
    records = read_journal(directory)
    result = UndoResult(directory=directory, dry_run=dry_run)

    for record in records:
        result.processed += 1
        current = directory / record.new_name
        original = directory / record.original_name

        if not fs.exists(current):
            logger.warning("File not found: %r", record.new_name)
            result.missing.append(record.new_name)
            continue

        if dry_run:
            logger.debug("Would restore %r -> %r", record.new_name, record.original_name)
            result.restored += 1
            continue

        error = fs.rename(current, original)
        if error is None:
            result.restored += 1
        else:
            result.errors.append(f"Failed to restore {record.new_name!r}: {error}")

    if not dry_run and result.restored > 0:
        result.archived_to = archive_journal(directory)

    return result


def find_journal_directories(root: Path, *, recursive: bool = False) -> list[Path]:
    """Return directories under *root* (including *root*) with an active journal."""
    if not recursive:
        return [root] if has_journal(root) else []
    found: list[Path] = []
    for dirpath_str, dirnames, _ in os.walk(root):
        if BACKUP_DIR in dirnames:
            dirnames.remove(BACKUP_DIR)
            dirpath = Path(dirpath_str)
            if has_journal(dirpath):
                found.append(dirpath)
        dirnames.sort()
    return found


def _escape(value: str) -> str:
    return "".join(_ESCAPES.get(c, c) for c in value)
