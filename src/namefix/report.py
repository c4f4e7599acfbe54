"""Human-readable and JSON rendering of run and undo results."""

from __future__ import annotations

import json
from typing import Any

from .engine import FileOutcome, FileResult, Mode, RunSummary
from .journal import UndoResult

RULE = "-" * 46

_OUTCOME_LABELS: dict[FileOutcome, str] = {
    FileOutcome.WOULD_RENAME: "Would rename",
    FileOutcome.RENAMED: "Renamed",
    FileOutcome.SKIPPED: "Skipped",
    FileOutcome.UNCHANGED: "No automatic fix available",
    FileOutcome.FAILED: "Failed",
    FileOutcome.QUIT: "Quit",
}


def format_issue_line(result: FileResult) -> str:
    """Return the ``-> name`` / ``Issues:`` lines for a problem file."""
    issues = ",".join(kind.value for kind in result.issues)
    return f"-> {result.path.name}\n  Issues: {issues}"


def format_file_result(result: FileResult, *, verbose: bool = False) -> str:
    """Format one problem file.  Clean files render as an empty string."""
    if not result.has_problems:
        return ""
    lines = [format_issue_line(result)]
    if result.suggested_name is not None:
        lines.append(f"  Suggested: {result.suggested_name}")
    label = _OUTCOME_LABELS.get(result.outcome)
    if label is not None and (verbose or result.outcome is not FileOutcome.WOULD_RENAME):
        if result.error_message:
            lines.append(f"  {label}: {result.error_message}")
        else:
            lines.append(f"  {label}")
    if verbose:
        lines.append(f"  in {result.path.parent}")
    return "\n".join(lines)


def format_summary(summary: RunSummary) -> str:
    """Format the end-of-run summary block."""
    lines = [
        "",
        RULE,
        "Summary",
        RULE,
        f"  Total files checked: {summary.total}",
        f"  Problems detected:   {summary.problems}",
    ]
    if summary.mode is Mode.FIX:
        if summary.dry_run:
            lines.append(f"  Would be fixed:      {summary.would_fix}")
        else:
            lines.append(f"  Files fixed:         {summary.fixed}")
        lines.append(f"  Files skipped:       {summary.skipped}")
        if summary.unchanged:
            lines.append(f"  Left unchanged:      {summary.unchanged}")
    if summary.errors > 0:
        lines.append(f"  Errors:              {summary.errors}")
    if summary.degraded_checks:
        lines.append(f"  Unicode checks skipped: {summary.degraded_checks}")
    lines.append(RULE)
    if summary.dry_run:
        lines.append("(Dry run - no changes made)")
    if summary.quit_requested:
        lines.append("(Stopped at user request)")
    return "\n".join(lines)


def format_undo_result(result: UndoResult) -> str:
    """Format the outcome of undoing one directory."""
    lines = [f"Undo in {result.directory}"]
    for name in result.missing:
        lines.append(f"  WARN: File not found: {name!r}")
    for error in result.errors:
        lines.append(f"  ERROR: {error}")
    lines.append(f"  Entries processed: {result.processed}")
    if result.dry_run:
        lines.append(f"  Files to restore:  {result.restored}")
        lines.append("(Dry run - no changes made)")
    else:
        lines.append(f"  Files restored:    {result.restored}")
    if result.archived_to is not None:
        lines.append(f"  Journal archived to {result.archived_to.name}")
    return "\n".join(lines)


def file_result_to_dict(result: FileResult) -> dict[str, Any]:
    data: dict[str, Any] = {
        "file": str(result.path),
        "issues": [kind.value for kind in result.issues],
    }
    if result.suggested_name is not None:
        data["suggested"] = result.suggested_name
    if result.outcome is not FileOutcome.REPORTED:
        data["outcome"] = result.outcome.value
    if result.error_message:
        data["error"] = result.error_message
    return data


def summary_to_dict(summary: RunSummary) -> dict[str, Any]:
    return {
        "total": summary.total,
        "problems": summary.problems,
        "fixed": summary.fixed,
        "skipped": summary.skipped,
        "errors": summary.errors,
        "unicode_checks_skipped": summary.degraded_checks,
    }


def render_json(summary: RunSummary) -> str:
    """Render problem files and the summary as one JSON document."""
    data = {
        "mode": summary.mode.value,
        "dry_run": summary.dry_run,
        "results": [file_result_to_dict(r) for r in summary.results if r.has_problems],
        "summary": summary_to_dict(summary),
    }
    return json.dumps(data, indent=2)


def render_undo_json(results: list[UndoResult]) -> str:
    data = [
        {
            "directory": str(r.directory),
            "dry_run": r.dry_run,
            "processed": r.processed,
            "restored": r.restored,
            "missing": r.missing,
            "errors": r.errors,
            "archived": r.archived,
        }
        for r in results
    ]
    return json.dumps({"undo": data}, indent=2)
