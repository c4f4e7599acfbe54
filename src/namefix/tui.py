"""Interactive TUI for namefix (requires the 'tui' extra)."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import ClassVar

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import (
    Button,
    DataTable,
    Footer,
    Header,
    Input,
    Label,
    RichLog,
    Static,
    Switch,
)
from textual.widgets.data_table import RowKey

from .engine import FileOutcome, FileResult, FixAction, Mode, RenameEngine, RunSummary
from .journal import JournalNotFoundError, UndoResult
from .sanitizer import SanitizationStrategy
from .scanner import collect_files


def _issues_label(result: FileResult) -> str:
    return ", ".join(kind.value for kind in result.issues)


class NamefixApp(App[int]):
    """Interactive TUI for checking, fixing and undoing filename fixes."""

    TITLE = "namefix"  # pyright: ignore[reportUnannotatedClassAttribute]
    # The strategy Input would otherwise take focus and swallow the a/u/r keys.
    AUTO_FOCUS = "#issue-table"  # pyright: ignore[reportUnannotatedClassAttribute]

    CSS: ClassVar[str] = """
    #settings-bar {
        height: auto;
        padding: 1 2;
        background: $surface;
        align: left middle;
    }

    #settings-bar Label {
        padding: 0 1;
    }

    #settings-bar Input {
        width: 16;
    }

    #settings-bar Switch {
        margin: 0 1;
    }

    #settings-bar Button {
        margin: 0 1;
    }

    #content-area {
        height: 1fr;
    }

    #issue-table {
        width: 2fr;
    }

    #detail-panel {
        width: 1fr;
        border-left: solid $accent;
        padding: 1 2;
        overflow-y: auto;
    }

    #detail-header {
        text-style: bold;
        margin-bottom: 1;
    }

    #detail-content {
        height: auto;
    }

    #status-area {
        height: 10;
        border-top: solid $accent;
    }

    #log-output {
        height: 1fr;
    }
    """

    BINDINGS = [  # pyright: ignore[reportUnannotatedClassAttribute]
        Binding("q", "quit", "Quit"),
        Binding("r", "rescan", "Re-scan"),
        Binding("a", "apply", "Apply Fixes"),
        Binding("u", "undo", "Undo"),
    ]

    def __init__(self, root: Path) -> None:
        super().__init__()
        self.root: Path = root  # pyright: ignore[reportUnannotatedClassAttribute]
        self.current_scan: RunSummary | None = None
        self.row_results: dict[RowKey, FileResult] = {}

    def compose(self) -> ComposeResult:  # pyright: ignore[reportImplicitOverride]
        yield Header()
        with Vertical():
            with Horizontal(id="settings-bar"):
                yield Label("Strategy:")
                yield Input(
                    id="strategy",
                    placeholder=SanitizationStrategy.UNDERSCORE.label,
                )
                yield Label("Recursive:")
                yield Switch(id="recursive", value=False)
                yield Button("Re-scan", id="rescan-btn", variant="default")
                yield Button("Apply Fixes", id="apply-btn", variant="warning", disabled=True)
                yield Button("Undo", id="undo-btn", variant="error")
            with Horizontal(id="content-area"):
                yield DataTable(id="issue-table", cursor_type="row")
                with Vertical(id="detail-panel"):
                    yield Static("Select a row to see details", id="detail-header")
                    yield Static("", id="detail-content")
            with Vertical(id="status-area"):
                yield RichLog(id="log-output", max_lines=200, markup=True)
        yield Footer()

    def on_mount(self) -> None:
        table: DataTable[str] = self.query_one(  # pyright: ignore[reportUnknownVariableType]
            "#issue-table", DataTable
        )
        table.add_columns("Original Name", "Suggested", "Directory", "Issues")
        table.focus()
        self.action_rescan()

    def _read_settings(self) -> tuple[SanitizationStrategy, bool] | None:
        """Read and validate settings from widgets. Returns None on validation error."""
        log = self.query_one("#log-output", RichLog)

        value = self.query_one("#strategy", Input).value.strip().lower()
        labels = [s.label for s in SanitizationStrategy]
        if value and value not in labels:
            log.write(f"[red]Error:[/red] Strategy must be one of: {', '.join(labels)}.")
            return None
        strategy = SanitizationStrategy.parse(value or None)

        recursive = self.query_one("#recursive", Switch).value
        return strategy, recursive

    def _set_busy(self, busy: bool) -> None:
        self.query_one("#rescan-btn", Button).disabled = busy
        self.query_one("#undo-btn", Button).disabled = busy
        if busy:
            self.query_one("#apply-btn", Button).disabled = True

    def action_rescan(self) -> None:
        settings = self._read_settings()
        if settings is None:
            return
        strategy, recursive = settings

        self.query_one("#issue-table", DataTable).loading = True
        self._set_busy(True)
        self.run_scan(strategy, recursive)

    def action_apply(self) -> None:
        scan = self.current_scan
        if scan is None or scan.would_fix == 0:
            self.query_one("#log-output", RichLog).write("Nothing to apply.")
            return
        settings = self._read_settings()
        if settings is None:
            return
        self._set_busy(True)
        paths = [r.path for r in scan.results if r.outcome is FileOutcome.WOULD_RENAME]
        self.run_apply(settings[0], paths)

    def action_undo(self) -> None:
        settings = self._read_settings()
        if settings is None:
            return
        self._set_busy(True)
        self.run_undo(settings[1])

    @work(exclusive=True, thread=True)
    def run_scan(self, strategy: SanitizationStrategy, recursive: bool) -> None:
        engine = RenameEngine(Mode.FIX, strategy, FixAction.DRY_RUN)
        summary = engine.run(collect_files(self.root, recursive=recursive))
        self.call_from_thread(self._populate_table, summary)

    def _populate_table(self, summary: RunSummary) -> None:
        self.current_scan = summary
        table: DataTable[str] = self.query_one(  # pyright: ignore[reportUnknownVariableType]
            "#issue-table", DataTable
        )
        table.clear()
        self.row_results.clear()

        for result in summary.results:
            if not result.has_problems:
                continue
            try:
                rel_dir = str(result.path.parent.relative_to(self.root))
            except ValueError:
                rel_dir = str(result.path.parent)
            row_key = table.add_row(  # pyright: ignore[reportUnknownMemberType]
                result.path.name,
                result.suggested_name or "-",
                rel_dir if rel_dir != "." else "(root)",
                _issues_label(result),
            )
            self.row_results[row_key] = result

        table.loading = False
        self._set_busy(False)
        self.query_one("#apply-btn", Button).disabled = summary.would_fix == 0

        # Update detail panel
        header = self.query_one("#detail-header", Static)
        content = self.query_one("#detail-content", Static)
        header.update("Select a row to see details")
        content.update("")

        log = self.query_one("#log-output", RichLog)
        log.write(
            f"Checked {summary.total} files under {self.root}, "
            f"{summary.problems} with problems, {summary.would_fix} fixable."
        )
        if summary.degraded_checks:
            log.write(
                f"[yellow]Warning:[/yellow] Unicode check skipped for "
                f"{summary.degraded_checks} files."
            )

    @work(exclusive=True, thread=True)
    def run_apply(self, strategy: SanitizationStrategy, paths: list[Path]) -> None:
        engine = RenameEngine(Mode.FIX, strategy, FixAction.BATCH)
        summary = engine.run(paths)

        def update_ui() -> None:
            log = self.query_one("#log-output", RichLog)
            for r in summary.results:
                if r.outcome is FileOutcome.RENAMED:
                    log.write(f"[green]OK[/green] {r.path.name} -> {r.suggested_name}")
                elif r.outcome is FileOutcome.FAILED:
                    log.write(f"[red]FAIL[/red] {r.path.name}: {r.error_message}")
            log.write(f"\nDone: {summary.fixed} renamed, {summary.errors} errors.")

            self.current_scan = None
            self._set_busy(False)

        self.call_from_thread(update_ui)

    @work(exclusive=True, thread=True)
    def run_undo(self, recursive: bool) -> None:
        engine = RenameEngine(Mode.UNDO)
        try:
            results: list[UndoResult] = engine.undo(self.root, recursive=recursive)
        except JournalNotFoundError as exc:
            message = str(exc)

            def report_missing() -> None:
                self.query_one("#log-output", RichLog).write(f"[red]Error:[/red] {message}")
                self._set_busy(False)

            self.call_from_thread(report_missing)
            return

        def update_ui() -> None:
            log = self.query_one("#log-output", RichLog)
            for result in results:
                for name in result.missing:
                    log.write(f"[yellow]Not found:[/yellow] {name}")
                for error in result.errors:
                    log.write(f"[red]FAIL[/red] {error}")
                log.write(
                    f"Undo in {result.directory}: {result.restored} of "
                    f"{result.processed} restored."
                )
            self._set_busy(False)
            self.action_rescan()

        self.call_from_thread(update_ui)

    def on_data_table_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        result = self.row_results.get(event.row_key)
        if result is None:
            return
        header = self.query_one("#detail-header", Static)
        content = self.query_one("#detail-content", Static)
        header.update(result.path.name)
        lines = [
            f"Path:      {result.path}",
            f"Suggested: {result.suggested_name or '(no automatic fix)'}",
            "",
            "Issues:",
        ]
        for kind in result.issues:
            lines.append(f"  - {kind.value}")
        content.update("\n".join(lines))

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "rescan-btn":
            self.action_rescan()
        elif event.button.id == "apply-btn":
            self.action_apply()
        elif event.button.id == "undo-btn":
            self.action_undo()


def tui_main(argv: list[str] | None = None) -> int:
    """CLI entry point for the TUI."""
    parser = argparse.ArgumentParser(
        prog="namefix-tui",
        description="Interactive TUI for checking and fixing portable filenames.",
    )
    parser.add_argument("path", type=Path, help="Directory to scan.")
    args = parser.parse_args(argv)

    root: Path = args.path.resolve()
    if not root.is_dir():
        print(f"Error: '{args.path}' is not a directory.", file=sys.stderr)
        return 1

    app = NamefixApp(root=root)
    result = app.run()
    return result if result is not None else 0
