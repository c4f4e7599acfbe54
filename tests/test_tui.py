"""Tests for the Textual TUI."""

from __future__ import annotations

from pathlib import Path

import pytest
from textual.pilot import Pilot
from textual.widgets import Button, DataTable, Input, Static

from namefix.tui import NamefixApp, tui_main


async def _settle(app: NamefixApp, pilot: Pilot[int]) -> None:
    """Wait for background workers and the UI updates they schedule."""
    await app.workers.wait_for_complete()
    await pilot.pause()
    await app.workers.wait_for_complete()
    await pilot.pause()


class TestNamefixApp:
    @pytest.fixture
    def clean_dir(self, tmp_path: Path) -> Path:
        (tmp_path / "safe_file.txt").touch()
        (tmp_path / "another.doc").touch()
        return tmp_path

    @pytest.fixture
    def dirty_dir(self, tmp_path: Path) -> Path:
        (tmp_path / "file:name.txt").touch()
        (tmp_path / "aux").touch()
        (tmp_path / "safe.txt").touch()
        return tmp_path

    @pytest.mark.asyncio
    async def test_clean_directory_shows_no_issues(self, clean_dir: Path) -> None:
        app = NamefixApp(root=clean_dir)
        async with app.run_test(size=(120, 40)) as pilot:
            await _settle(app, pilot)
            table: DataTable[str] = app.query_one(  # pyright: ignore[reportUnknownVariableType]
                "#issue-table", DataTable
            )
            assert table.row_count == 0
            apply_btn = app.query_one("#apply-btn", Button)
            assert apply_btn.disabled is True

    @pytest.mark.asyncio
    async def test_dirty_directory_populates_table(self, dirty_dir: Path) -> None:
        app = NamefixApp(root=dirty_dir)
        async with app.run_test(size=(120, 40)) as pilot:
            await _settle(app, pilot)
            table: DataTable[str] = app.query_one(  # pyright: ignore[reportUnknownVariableType]
                "#issue-table", DataTable
            )
            assert table.row_count == 2  # file:name.txt and aux
            apply_btn = app.query_one("#apply-btn", Button)
            assert apply_btn.disabled is False
            # Scanning is a dry run.
            assert (dirty_dir / "file:name.txt").exists()

    @pytest.mark.asyncio
    async def test_rescan_with_strategy(self, dirty_dir: Path) -> None:
        app = NamefixApp(root=dirty_dir)
        async with app.run_test(size=(120, 40)) as pilot:
            await _settle(app, pilot)
            app.query_one("#strategy", Input).value = "hyphen"
            await pilot.click("#rescan-btn")
            await _settle(app, pilot)
            assert app.current_scan is not None
            suggested = {r.suggested_name for r in app.row_results.values()}
            assert suggested == {"file-name.txt", "_aux"}

    @pytest.mark.asyncio
    async def test_invalid_strategy_does_not_scan(self, dirty_dir: Path) -> None:
        app = NamefixApp(root=dirty_dir)
        async with app.run_test(size=(120, 40)) as pilot:
            await _settle(app, pilot)
            first_scan = app.current_scan
            app.query_one("#strategy", Input).value = "dots"
            await pilot.click("#rescan-btn")
            await _settle(app, pilot)
            assert app.current_scan is first_scan

    @pytest.mark.asyncio
    async def test_apply_renames_files(self, dirty_dir: Path) -> None:
        app = NamefixApp(root=dirty_dir)
        async with app.run_test(size=(120, 40)) as pilot:
            await _settle(app, pilot)
            await pilot.click("#apply-btn")
            await _settle(app, pilot)
            assert (dirty_dir / "file_name.txt").exists()
            assert not (dirty_dir / "file:name.txt").exists()
            assert (dirty_dir / "_aux").exists()
            assert not (dirty_dir / "aux").exists()
            apply_btn = app.query_one("#apply-btn", Button)
            assert apply_btn.disabled is True

    @pytest.mark.asyncio
    async def test_apply_then_undo(self, dirty_dir: Path) -> None:
        app = NamefixApp(root=dirty_dir)
        async with app.run_test(size=(120, 40)) as pilot:
            await _settle(app, pilot)
            assert app.focused is app.query_one("#issue-table", DataTable)
            await pilot.press("a")
            await _settle(app, pilot)
            assert (dirty_dir / "_aux").exists()
            await pilot.press("u")
            await _settle(app, pilot)
            assert (dirty_dir / "aux").exists()
            assert (dirty_dir / "file:name.txt").exists()
            assert app.current_scan is not None
            assert app.current_scan.would_fix == 2

    @pytest.mark.asyncio
    async def test_undo_without_journal_keeps_files(self, dirty_dir: Path) -> None:
        app = NamefixApp(root=dirty_dir)
        async with app.run_test(size=(120, 40)) as pilot:
            await _settle(app, pilot)
            await pilot.click("#undo-btn")
            await _settle(app, pilot)
            assert (dirty_dir / "aux").exists()
            assert app.query_one("#undo-btn", Button).disabled is False

    @pytest.mark.asyncio
    async def test_detail_panel_updates_on_row_highlight(self, dirty_dir: Path) -> None:
        app = NamefixApp(root=dirty_dir)
        async with app.run_test(size=(120, 40)) as pilot:
            await _settle(app, pilot)
            detail_header = app.query_one("#detail-header", Static)
            assert str(detail_header.render()) != ""
            table: DataTable[str] = app.query_one(  # pyright: ignore[reportUnknownVariableType]
                "#issue-table", DataTable
            )
            table.focus()
            await pilot.press("down")
            await pilot.pause()
            assert len(app.row_results) == 2

    @pytest.mark.asyncio
    async def test_quit_keybinding(self, clean_dir: Path) -> None:
        app = NamefixApp(root=clean_dir)
        async with app.run_test(size=(120, 40)) as pilot:
            await _settle(app, pilot)
            await pilot.press("q")


class TestTuiMain:
    def test_invalid_path_returns_1(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        result = tui_main([str(tmp_path / "nonexistent")])
        assert result == 1
        captured = capsys.readouterr()
        assert "not a directory" in captured.err

    def test_file_path_returns_1(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        f = tmp_path / "file.txt"
        f.touch()
        result = tui_main([str(f)])
        assert result == 1
        captured = capsys.readouterr()
        assert "not a directory" in captured.err
