"""Tests for the journal module: append-only rename records and undo replay."""

from __future__ import annotations

from pathlib import Path

import pytest

from namefix.fs import LocalFilesystem
from namefix.journal import (
    BACKUP_DIR,
    BACKUP_LOG,
    JournalFormatError,
    JournalNotFoundError,
    RenameRecord,
    append_record,
    archive_journal,
    find_journal_directories,
    has_journal,
    journal_path,
    read_journal,
    undo_directory,
)


def _journal_rename(directory: Path, original: str, new: str) -> None:
    """Journal and perform one rename, the way the engine does."""
    append_record(directory, RenameRecord.create(original, new))
    (directory / original).rename(directory / new)


class TestRenameRecord:
    def test_line_format(self) -> None:
        record = RenameRecord("2024-01-01T00:00:00+00:00", "/home/u", "CON.txt", "_CON.txt")
        assert record.to_line() == "2024-01-01T00:00:00+00:00|/home/u|CON.txt|_CON.txt\n"

    def test_parse_line(self) -> None:
        record = RenameRecord.from_line("ts|/work|a:b.txt|a_b.txt\n")
        assert record == RenameRecord("ts", "/work", "a:b.txt", "a_b.txt")

    def test_pipe_and_newline_escaped(self) -> None:
        record = RenameRecord("ts", "/w|d", "a|b\nc%", "a_b_c%")
        line = record.to_line()
        assert line.count("|") == 3
        assert line.count("\n") == 1
        assert RenameRecord.from_line(line) == record

    def test_wrong_field_count(self) -> None:
        with pytest.raises(JournalFormatError):
            RenameRecord.from_line("only|three|fields\n")

    def test_create_stamps_time_and_cwd(self) -> None:
        record = RenameRecord.create("a", "b")
        assert record.timestamp
        assert record.working_directory


class TestAppendAndRead:
    def test_append_creates_hidden_directory(self, tmp_path: Path) -> None:
        append_record(tmp_path, RenameRecord.create("CON.txt", "_CON.txt"))
        assert journal_path(tmp_path) == tmp_path / BACKUP_DIR / BACKUP_LOG
        assert has_journal(tmp_path)

    def test_records_in_append_order(self, tmp_path: Path) -> None:
        append_record(tmp_path, RenameRecord.create("a:1", "a_1"))
        append_record(tmp_path, RenameRecord.create("b:2", "b_2"))
        records = read_journal(tmp_path)
        assert [(r.original_name, r.new_name) for r in records] == [
            ("a:1", "a_1"),
            ("b:2", "b_2"),
        ]

    def test_one_line_per_record(self, tmp_path: Path) -> None:
        append_record(tmp_path, RenameRecord.create("a:1", "a_1"))
        append_record(tmp_path, RenameRecord.create("b:2", "b_2"))
        assert len(journal_path(tmp_path).read_text().splitlines()) == 2

    def test_missing_journal(self, tmp_path: Path) -> None:
        with pytest.raises(JournalNotFoundError, match="No backup found"):
            read_journal(tmp_path)

    def test_blank_lines_ignored(self, tmp_path: Path) -> None:
        append_record(tmp_path, RenameRecord.create("a:1", "a_1"))
        with journal_path(tmp_path).open("a") as fh:
            fh.write("\n")
        assert len(read_journal(tmp_path)) == 1


class TestArchive:
    def test_archive_renames_to_done(self, tmp_path: Path) -> None:
        append_record(tmp_path, RenameRecord.create("a", "b"))
        archived = archive_journal(tmp_path)
        assert archived.name == BACKUP_LOG + ".done"
        assert archived.exists()
        assert not has_journal(tmp_path)

    def test_second_archive_keeps_first(self, tmp_path: Path) -> None:
        append_record(tmp_path, RenameRecord.create("a", "b"))
        first = archive_journal(tmp_path)
        append_record(tmp_path, RenameRecord.create("c", "d"))
        second = archive_journal(tmp_path)
        assert first.exists()
        assert second.exists()
        assert first != second

    def test_archive_without_journal(self, tmp_path: Path) -> None:
        with pytest.raises(JournalNotFoundError):
            archive_journal(tmp_path)


class TestUndoDirectory:
    def test_restores_and_archives(self, tmp_path: Path) -> None:
        (tmp_path / "CON.txt").touch()
        _journal_rename(tmp_path, "CON.txt", "_CON.txt")

        result = undo_directory(tmp_path)

        assert (tmp_path / "CON.txt").exists()
        assert not (tmp_path / "_CON.txt").exists()
        assert result.processed == 1
        assert result.restored == 1
        assert result.archived
        assert not has_journal(tmp_path)

    def test_second_undo_finds_no_journal(self, tmp_path: Path) -> None:
        (tmp_path / "a:b").touch()
        _journal_rename(tmp_path, "a:b", "a_b")
        undo_directory(tmp_path)

        with pytest.raises(JournalNotFoundError):
            undo_directory(tmp_path)

    def test_dry_run_changes_nothing(self, tmp_path: Path) -> None:
        (tmp_path / "a:b").touch()
        _journal_rename(tmp_path, "a:b", "a_b")

        result = undo_directory(tmp_path, dry_run=True)

        assert (tmp_path / "a_b").exists()
        assert result.restored == 1
        assert not result.archived
        assert has_journal(tmp_path)

    def test_missing_file_is_warning(self, tmp_path: Path) -> None:
        (tmp_path / "a:b").touch()
        (tmp_path / "c:d").touch()
        _journal_rename(tmp_path, "a:b", "a_b")
        _journal_rename(tmp_path, "c:d", "c_d")
        (tmp_path / "a_b").unlink()

        result = undo_directory(tmp_path)

        assert result.missing == ["a_b"]
        assert result.restored == 1
        assert (tmp_path / "c:d").exists()
        assert result.archived

    def test_nothing_restored_keeps_journal(self, tmp_path: Path) -> None:
        (tmp_path / "a:b").touch()
        _journal_rename(tmp_path, "a:b", "a_b")
        (tmp_path / "a_b").unlink()

        result = undo_directory(tmp_path)

        assert result.restored == 0
        assert not result.archived
        assert has_journal(tmp_path)

    def test_existing_original_not_overwritten(self, tmp_path: Path) -> None:
        (tmp_path / "a:b").touch()
        _journal_rename(tmp_path, "a:b", "a_b")
        (tmp_path / "a:b").write_text("newer")

        result = undo_directory(tmp_path)

        assert result.restored == 0
        assert len(result.errors) == 1
        assert (tmp_path / "a:b").read_text() == "newer"
        assert (tmp_path / "a_b").exists()

    def test_shared_new_name_first_match_wins(self, tmp_path: Path) -> None:
        # Fixed twice between undos: both records name "x_y" as the new name.
        (tmp_path / "x:y").touch()
        _journal_rename(tmp_path, "x:y", "x_y")
        (tmp_path / "x?y").touch()
        append_record(tmp_path, RenameRecord.create("x?y", "x_y"))

        result = undo_directory(tmp_path)

        assert result.restored == 1
        assert result.missing == ["x_y"]
        assert (tmp_path / "x:y").exists()

    def test_uses_injected_filesystem(self, tmp_path: Path) -> None:
        class RefusingFilesystem(LocalFilesystem):
            def rename(self, source: Path, destination: Path) -> str | None:
                return "permission denied"

        (tmp_path / "a:b").touch()
        _journal_rename(tmp_path, "a:b", "a_b")

        result = undo_directory(tmp_path, fs=RefusingFilesystem())

        assert result.errors
        assert not result.archived


class TestFindJournalDirectories:
    def test_non_recursive(self, tmp_path: Path) -> None:
        assert find_journal_directories(tmp_path) == []
        append_record(tmp_path, RenameRecord.create("a", "b"))
        assert find_journal_directories(tmp_path) == [tmp_path]

    def test_recursive(self, tmp_path: Path) -> None:
        sub = tmp_path / "sub"
        sub.mkdir()
        append_record(sub, RenameRecord.create("a", "b"))
        assert find_journal_directories(tmp_path) == []
        assert find_journal_directories(tmp_path, recursive=True) == [sub]
