"""Public API: re-exports all public symbols from the package.

The package ``__init__.py`` re-exports everything from here via
``from .namefix import *``.
"""

from __future__ import annotations

# CLI entry point
from .cli import main

# Detector: issue classification
from .detector import (
    CONTROL_CHARS,
    FORBIDDEN_CHARS,
    MAX_FILENAME_BYTES,
    UNICODE_SCAN,
    FilenameIssueKind,
    IssueReport,
    detect_issues,
    inspect_file,
)

# Engine: orchestration and run summaries
from .engine import (
    Decision,
    FileOutcome,
    FileResult,
    FixAction,
    Mode,
    RenameEngine,
    RunSummary,
)
from .fs import LocalFilesystem

# Journal: rename records and undo
from .journal import (
    BACKUP_DIR,
    BACKUP_LOG,
    JournalFormatError,
    JournalNotFoundError,
    NamefixError,
    RenameRecord,
    UndoResult,
    append_record,
    archive_journal,
    read_journal,
    undo_directory,
)

# Resolver: collision-free names
from .resolver import get_unique_name, resolve_in_directory

# Sanitizer: pure functions and strategies
from .sanitizer import SanitizationStrategy, is_name_safe, sanitize_name

# Scanner: file collection
from .scanner import collect_files

# TUI entry point (optional, requires 'tui' extra)
try:
    from .tui import tui_main
except ImportError:

    def tui_main(
        argv: list[str] | None = None,  # pyright: ignore[reportUnusedParameter]
    ) -> int:
        """Stub that prints an install hint when Textual is not available."""
        import sys  # noqa: I001

        print(
            "Error: The TUI requires the 'tui' extra. Install with: pip install namefix[tui]",
            file=sys.stderr,
        )
        return 1


__all__ = [
    # CLI
    "main",
    # Detector
    "FilenameIssueKind",
    "IssueReport",
    "detect_issues",
    "inspect_file",
    "FORBIDDEN_CHARS",
    "CONTROL_CHARS",
    "MAX_FILENAME_BYTES",
    "UNICODE_SCAN",
    # Sanitizer
    "SanitizationStrategy",
    "sanitize_name",
    "is_name_safe",
    # Resolver
    "get_unique_name",
    "resolve_in_directory",
    # Journal
    "BACKUP_DIR",
    "BACKUP_LOG",
    "NamefixError",
    "JournalNotFoundError",
    "JournalFormatError",
    "RenameRecord",
    "UndoResult",
    "append_record",
    "read_journal",
    "archive_journal",
    "undo_directory",
    # Engine
    "Mode",
    "FixAction",
    "Decision",
    "FileOutcome",
    "FileResult",
    "RunSummary",
    "RenameEngine",
    "LocalFilesystem",
    # Scanner
    "collect_files",
    # TUI
    "tui_main",
]

if __name__ == "__main__":
    raise SystemExit(main())
