"""Per-file orchestration: detect, sanitize, resolve, journal, rename.

Files are processed one at a time.  Each rename is journaled immediately
before it is attempted, so an interrupt between the two leaves at worst a
journal entry whose undo reports "not found".  Errors on one file are
recorded and processing continues with the next.
"""

from __future__ import annotations

import enum
import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import assert_never

from .detector import (
    MAX_FILENAME_BYTES,
    UNICODE_SCAN,
    FilenameIssueKind,
    detect_issues,
)
from .fs import LocalFilesystem
from .journal import (
    JournalFormatError,
    JournalNotFoundError,
    RenameRecord,
    UndoResult,
    append_record,
    find_journal_directories,
    undo_directory,
)
from .resolver import get_unique_name
from .sanitizer import SanitizationStrategy, sanitize_name
from .scanner import validate_path_under_root

logger = logging.getLogger(__name__)


class Mode(enum.Enum):
    """What a run does with the files it inspects."""

    CHECK = "check"
    FIX = "fix"
    UNDO = "undo"


class FixAction(enum.Enum):
    """How fix mode applies a proposed rename."""

    DRY_RUN = "dry-run"
    INTERACTIVE = "interactive"
    BATCH = "batch"


class Decision(enum.Enum):
    """Answer of the interactive collaborator for one proposed rename."""

    APPLY = "apply"
    SKIP = "skip"
    QUIT = "quit"


class FileOutcome(enum.Enum):
    CLEAN = "clean"
    REPORTED = "reported"
    UNCHANGED = "unchanged"
    WOULD_RENAME = "would_rename"
    RENAMED = "renamed"
    SKIPPED = "skipped"
    FAILED = "failed"
    QUIT = "quit"


# (current path, proposed name, issues) -> decision
DecisionProvider = Callable[[Path, str, tuple[FilenameIssueKind, ...]], Decision]


@dataclass(frozen=True)
class FileResult:
    """What happened to a single file."""

    path: Path
    issues: tuple[FilenameIssueKind, ...]
    outcome: FileOutcome
    suggested_name: str | None = None
    error_message: str | None = None

    @property
    def has_problems(self) -> bool:
        return bool(self.issues)

    @property
    def destination(self) -> Path | None:
        if self.suggested_name is None:
            return None
        return self.path.with_name(self.suggested_name)


@dataclass
class RunSummary:
    """Aggregate of one run, built from the per-file results."""

    mode: Mode
    dry_run: bool = False
    results: list[FileResult] = field(default_factory=list)
    degraded_checks: int = 0
    quit_requested: bool = False

    def _count(self, *outcomes: FileOutcome) -> int:
        return sum(1 for r in self.results if r.outcome in outcomes)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def problems(self) -> int:
        return sum(1 for r in self.results if r.has_problems)

    @property
    def fixed(self) -> int:
        return self._count(FileOutcome.RENAMED)

    @property
    def would_fix(self) -> int:
        return self._count(FileOutcome.WOULD_RENAME)

    @property
    def skipped(self) -> int:
        return self._count(FileOutcome.SKIPPED)

    @property
    def unchanged(self) -> int:
        return self._count(FileOutcome.UNCHANGED)

    @property
    def errors(self) -> int:
        return self._count(FileOutcome.FAILED)

    @property
    def exit_code(self) -> int:
        """0 when all is well, 1 on errors, 2 when check mode found problems."""
        if self.errors > 0:
            return 1
        if self.mode is Mode.CHECK and self.problems > 0:
            return 2
        return 0


class RenameEngine:
    """Drives detection, sanitization, resolution and renaming of files.

    Args:
        mode: Check, fix or undo.
        strategy: Replacement policy handed to the sanitizer.
        fix_action: Dry-run, interactive or batch application of renames.
        decide: Interactive collaborator; required for ``FixAction.INTERACTIVE``.
        fs: Filesystem seam (listing and rename primitives).
        max_bytes: Maximum encoded filename length.
        unicode_scan: Pattern for the problematic-Unicode check, ``None`` to
            run without it.
    """

    def __init__(
        self,
        mode: Mode = Mode.CHECK,
        strategy: SanitizationStrategy = SanitizationStrategy.UNDERSCORE,
        fix_action: FixAction = FixAction.BATCH,
        *,
        decide: DecisionProvider | None = None,
        fs: LocalFilesystem | None = None,
        max_bytes: int = MAX_FILENAME_BYTES,
        unicode_scan: re.Pattern[str] | None = UNICODE_SCAN,
    ) -> None:
        if mode is Mode.FIX and fix_action is FixAction.INTERACTIVE and decide is None:
            raise ValueError("Interactive fix mode needs a decision provider")
        self.mode: Mode = mode
        self.strategy: SanitizationStrategy = strategy
        self.fix_action: FixAction = fix_action
        self.decide: DecisionProvider | None = decide
        self.fs: LocalFilesystem = fs or LocalFilesystem()
        self.max_bytes: int = max_bytes
        self.unicode_scan: re.Pattern[str] | None = unicode_scan

    @property
    def dry_run(self) -> bool:
        return self.fix_action is FixAction.DRY_RUN

    def propose_name(
        self, path: Path, issues: tuple[FilenameIssueKind, ...], siblings: Iterable[str]
    ) -> str | None:
        """Return a safe, collision-free name for *path*, or ``None`` if none differs.

        A file whose sanitized name equals its current name keeps it, unless
        it is part of a case conflict: then its own name counts as taken and
        a numbered variant is proposed.
        """
        candidate = sanitize_name(path.name, self.strategy, max_bytes=self.max_bytes)
        if candidate == path.name and FilenameIssueKind.CASE_CONFLICT not in issues:
            return None
        final = get_unique_name(
            candidate, set(siblings), max_bytes=self.max_bytes, case_insensitive=True
        )
        return None if final == path.name else final

    def process_file(self, path: Path) -> FileResult:
        """Inspect *path* and, in fix mode, rename it according to ``fix_action``."""
        if self.mode is Mode.UNDO:
            raise ValueError("process_file is not available in undo mode")

        siblings = self.fs.list_names(path.parent)
        issues = detect_issues(
            path.name, siblings, max_bytes=self.max_bytes, unicode_scan=self.unicode_scan
        )
        if not issues:
            return FileResult(path, issues, FileOutcome.CLEAN)
        if self.mode is Mode.CHECK:
            return FileResult(path, issues, FileOutcome.REPORTED)

        new_name = self.propose_name(path, issues, siblings or ())
        if new_name is None:
            return FileResult(path, issues, FileOutcome.UNCHANGED)

        if self.fix_action is FixAction.DRY_RUN:
            logger.debug("Would rename %r -> %r", path.name, new_name)
            return FileResult(path, issues, FileOutcome.WOULD_RENAME, new_name)
        if self.fix_action is FixAction.INTERACTIVE:
            decide = self.decide
            if decide is None:
                raise ValueError("Interactive fix mode needs a decision provider")
            decision = decide(path, new_name, issues)
            if decision is Decision.SKIP:
                return FileResult(path, issues, FileOutcome.SKIPPED, new_name)
            if decision is Decision.QUIT:
                return FileResult(path, issues, FileOutcome.QUIT, new_name)
            if decision is not Decision.APPLY:
                assert_never(decision)
            return self._execute(path, issues, new_name)
        if self.fix_action is FixAction.BATCH:
            return self._execute(path, issues, new_name)
        assert_never(self.fix_action)

    def run(
        self,
        paths: Iterable[Path],
        *,
        on_result: Callable[[FileResult], None] | None = None,
    ) -> RunSummary:
        """Process *paths* in order and return the aggregated summary.

        *on_result* is called after each file, before the next one starts.
        Stops before the next file once the interactive collaborator answers
        ``QUIT``.
        """
        summary = RunSummary(mode=self.mode, dry_run=self.mode is Mode.FIX and self.dry_run)
        for path in paths:
            result = self.process_file(path)
            summary.results.append(result)
            if on_result is not None:
                on_result(result)
            if self.unicode_scan is None:
                summary.degraded_checks += 1
            if result.outcome is FileOutcome.QUIT:
                summary.quit_requested = True
                break
        if summary.degraded_checks:
            logger.warning(
                "problematic_unicode check skipped for %d files", summary.degraded_checks
            )
        return summary

    def undo(self, root: Path, *, recursive: bool = False) -> list[UndoResult]:
        """Replay the journals under *root*.

        Each directory is undone independently; a malformed journal is
        reported in that directory's result and the others still run.

        Raises:
            JournalNotFoundError: If no active journal exists under *root*.
        """
        directories = find_journal_directories(root, recursive=recursive)
        if not directories:
            raise JournalNotFoundError(root)

        results: list[UndoResult] = []
        for directory in directories:
            try:
                results.append(undo_directory(directory, dry_run=self.dry_run, fs=self.fs))
            except JournalFormatError as exc:
                logger.error("Cannot undo %s: %s", directory, exc)
                results.append(
                    UndoResult(directory=directory, dry_run=self.dry_run, errors=[str(exc)])
                )
        return results

    def _execute(
        self, path: Path, issues: tuple[FilenameIssueKind, ...], new_name: str
    ) -> FileResult:
        destination = path.with_name(new_name)
        try:
            validate_path_under_root(destination, path.parent)
            append_record(path.parent, RenameRecord.create(path.name, new_name))
        except (ValueError, OSError) as exc:
            logger.error("Not renaming %s: %s", path, exc)
            return FileResult(path, issues, FileOutcome.FAILED, new_name, str(exc))

        error = self.fs.rename(path, destination)
        if error is not None:
            return FileResult(path, issues, FileOutcome.FAILED, new_name, error)
        return FileResult(path, issues, FileOutcome.RENAMED, new_name)
