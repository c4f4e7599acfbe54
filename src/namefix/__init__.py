__version__ = "1.0.0"

__all__ = (  # noqa: F405
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
)

from .namefix import *  # noqa: E402, F403
