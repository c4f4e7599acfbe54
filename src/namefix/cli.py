"""Command-line interface and main entry point for namefix."""

from __future__ import annotations

import argparse
import io
import logging
import sys
from pathlib import Path

from . import __version__
from .detector import FilenameIssueKind
from .engine import Decision, FileOutcome, FileResult, FixAction, Mode, RenameEngine
from .journal import JournalNotFoundError
from .report import (
    format_file_result,
    format_issue_line,
    format_summary,
    format_undo_result,
    render_json,
    render_undo_json,
)
from .sanitizer import SanitizationStrategy
from .scanner import collect_files

EXIT_INTERRUPTED = 130


def create_parser() -> argparse.ArgumentParser:
    """Create and return the argument parser."""

    parser = argparse.ArgumentParser(
        prog="namefix",
        description=(
            "Cross-platform filename validator and sanitizer. Detects names "
            "that break on Windows, macOS or Linux (forbidden characters, "
            "reserved device names, trailing dots/spaces, oversize names, "
            "problematic Unicode, case conflicts), renames them, and can undo "
            "the renames later."
        ),
    )
    parser.add_argument(
        "path",
        nargs="?",
        type=Path,
        default=Path("."),
        help="Directory to process (default: current directory).",
    )

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "-c",
        "--check",
        dest="mode",
        action="store_const",
        const=Mode.CHECK,
        help="Check mode (default): detect problems only.",
    )
    mode.add_argument(
        "-f",
        "--fix",
        dest="mode",
        action="store_const",
        const=Mode.FIX,
        help="Fix mode: sanitize problematic filenames.",
    )
    mode.add_argument(
        "-u",
        "--undo",
        dest="mode",
        action="store_const",
        const=Mode.UNDO,
        help="Undo mode: restore original filenames from the rename journal.",
    )
    parser.set_defaults(mode=Mode.CHECK)

    parser.add_argument(
        "-d",
        "--dry-run",
        action="store_true",
        default=False,
        help="Preview changes without applying them.",
    )
    apply = parser.add_mutually_exclusive_group()
    apply.add_argument(
        "-i",
        "--interactive",
        action="store_true",
        default=False,
        help="Prompt before each rename.",
    )
    apply.add_argument(
        "-b",
        "--batch",
        action="store_false",
        dest="interactive",
        help="Apply fixes without prompting (default).",
    )
    parser.add_argument(
        "-r",
        "--recursive",
        action="store_true",
        default=False,
        help="Process directories recursively.",
    )
    parser.add_argument(
        "-j",
        "--json",
        action="store_true",
        default=False,
        help="Output in JSON format.",
    )
    output = parser.add_mutually_exclusive_group()
    output.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Show detailed output.",
    )
    output.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        default=False,
        help="Suppress non-essential output.",
    )
    parser.add_argument(
        "-s",
        "--strategy",
        choices=[s.label for s in SanitizationStrategy],
        default=SanitizationStrategy.UNDERSCORE.label,
        help="Replacement for restricted characters (default: underscore).",
    )
    parser.add_argument("--version", action="version", version=f"namefix {__version__}")
    return parser


def configure_logging(*, verbose: bool, quiet: bool) -> None:
    """Send namefix log records to stderr at a level matching the output flags."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.CRITICAL
    else:
        level = logging.ERROR
    logging.basicConfig(format="%(levelname)s: %(message)s", stream=sys.stderr)
    logging.getLogger("namefix").setLevel(level)


def prompt_decision(
    path: Path, new_name: str, issues: tuple[FilenameIssueKind, ...]
) -> Decision:
    """Ask on the terminal whether to apply one rename."""
    print(format_issue_line(FileResult(path, issues, FileOutcome.REPORTED)))
    print(f"  Suggested: {new_name}")
    try:
        response = input("  Apply rename? [y/N/q]: ")
    except EOFError:
        return Decision.QUIT
    answer = response.strip().lower()
    if answer in ("y", "yes"):
        return Decision.APPLY
    if answer in ("q", "quit"):
        return Decision.QUIT
    return Decision.SKIP


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to ``sys.argv[1:]``).

    Returns:
        Exit code: 0 on success, 1 on errors, 2 when check mode found
        problems, 130 when interrupted.
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    # Extract typed values from argparse namespace.
    root_arg: Path = args.path
    mode: Mode = args.mode
    dry_run: bool = args.dry_run
    interactive: bool = args.interactive
    recursive: bool = args.recursive
    json_output: bool = args.json
    verbose: bool = args.verbose
    quiet: bool = args.quiet
    strategy = SanitizationStrategy.parse(args.strategy)

    # Undecodable bytes in names arrive as surrogate escapes from os.listdir.
    for stream in (sys.stdout, sys.stderr):
        if isinstance(stream, io.TextIOWrapper):
            stream.reconfigure(errors="backslashreplace")

    configure_logging(verbose=verbose, quiet=quiet)

    root = root_arg.resolve()
    if not root.is_dir():
        print(f"ERROR: Directory not found: {root_arg}", file=sys.stderr)
        return 1

    if mode is Mode.FIX and interactive and json_output:
        print("ERROR: --interactive cannot be combined with --json.", file=sys.stderr)
        return 1

    if dry_run:
        fix_action = FixAction.DRY_RUN
    elif interactive:
        fix_action = FixAction.INTERACTIVE
    else:
        fix_action = FixAction.BATCH

    engine = RenameEngine(
        mode,
        strategy,
        fix_action,
        decide=prompt_decision if fix_action is FixAction.INTERACTIVE else None,
    )

    try:
        if mode is Mode.UNDO:
            return _run_undo(engine, root, recursive=recursive, json_output=json_output, quiet=quiet)
        return _run_files(
            engine, root, recursive=recursive, json_output=json_output, verbose=verbose, quiet=quiet
        )
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return EXIT_INTERRUPTED


def _run_files(
    engine: RenameEngine,
    root: Path,
    *,
    recursive: bool,
    json_output: bool,
    verbose: bool,
    quiet: bool,
) -> int:
    chatty = not json_output and not quiet
    if chatty:
        print(f"namefix v{__version__}")
        print(f"Target: {root}")
        print(f"Mode: {engine.mode.value}")
        if engine.mode is Mode.FIX and engine.fix_action is not FixAction.BATCH:
            print(f"({engine.fix_action.value} mode)")
        print()

    files = collect_files(root, recursive=recursive)
    if not files and chatty:
        print("No files found.")

    interactive = engine.fix_action is FixAction.INTERACTIVE and engine.mode is Mode.FIX

    def show(result: FileResult) -> None:
        if not chatty or not result.has_problems:
            return
        if interactive and result.suggested_name is not None:
            # The prompt already showed the issues; report only what happened.
            if result.outcome is FileOutcome.FAILED:
                print(f"  Failed: {result.error_message}")
            elif result.outcome is FileOutcome.QUIT:
                print("Quitting...")
            else:
                print(f"  {result.outcome.value.capitalize()}")
            return
        print(format_file_result(result, verbose=verbose))

    summary = engine.run(files, on_result=show)

    if json_output:
        print(render_json(summary))
    else:
        for result in summary.results:
            if result.outcome is FileOutcome.FAILED:
                print(
                    f"ERROR: Failed to rename {result.path.name!r}: {result.error_message}",
                    file=sys.stderr,
                )
        if not quiet:
            print(format_summary(summary))

    return summary.exit_code


def _run_undo(
    engine: RenameEngine, root: Path, *, recursive: bool, json_output: bool, quiet: bool
) -> int:
    try:
        results = engine.undo(root, recursive=recursive)
    except JournalNotFoundError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    if json_output:
        print(render_undo_json(results))
    elif not quiet:
        print("Restoring original filenames...")
        for result in results:
            print(format_undo_result(result))

    return 1 if any(r.errors for r in results) else 0
