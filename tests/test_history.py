"""Tests for rebuilding history entries from a history file."""

from datetime import datetime, timezone

import pytest

from histparse import (
    Entry,
    ParsedCommand,
    iter_history_entries,
    iter_logical_lines,
    parse_history,
    parse_logical_line,
)


def _utc(epoch):
    return datetime.fromtimestamp(epoch, tz=timezone.utc)


class TestIterLogicalLines:
    def test_plain_lines(self):
        assert list(iter_logical_lines(["a", "b"])) == ["a", "b"]

    def test_continuation_joins(self):
        assert list(iter_logical_lines(["echo \\", "hello"])) == ["echo \nhello"]

    def test_multiple_continuations(self):
        lines = ["for x in 1 2; do \\", "  echo $x \\", "done"]
        assert list(iter_logical_lines(lines)) == ["for x in 1 2; do \n  echo $x \ndone"]

    def test_unfinished_continuation_is_flushed(self):
        assert list(iter_logical_lines(["a", "echo \\"])) == ["a", "echo \n"]

    def test_lone_backslash_line(self):
        assert list(iter_logical_lines(["\\", "x"])) == ["\nx"]

    def test_empty_lines_are_kept(self):
        assert list(iter_logical_lines(["", "a"])) == ["", "a"]


class TestParseLogicalLine:
    def test_extended(self):
        entry = parse_logical_line(": 1700000000:5;echo hi")
        assert entry == Entry(
            timestamp=_utc(1700000000),
            duration=5,
            parsed=ParsedCommand(raw="echo hi", command="echo", arguments=("hi",)),
        )
        assert entry.has_metadata
        assert entry.timestamp.timestamp() == 1700000000

    def test_extended_command_keeps_semicolons(self):
        entry = parse_logical_line(": 1700000000:0;cd /tmp; ls")
        assert entry.parsed.raw == "cd /tmp; ls"
        assert entry.parsed.command == "cd"

    def test_extended_fields_are_trimmed(self):
        entry = parse_logical_line(":  1700000000 : 3 ;ls")
        assert entry.timestamp == _utc(1700000000)
        assert entry.duration == 3

    def test_extended_empty_command(self):
        entry = parse_logical_line(": 1700000000:0;")
        assert entry.has_metadata
        assert entry.parsed == ParsedCommand(raw="")

    def test_non_numeric_timestamp_falls_back(self):
        entry = parse_logical_line(": abc:5;ls")
        assert entry.timestamp is None
        assert entry.duration is None
        assert entry.parsed.raw == ": abc:5;ls"
        assert entry.parsed.command == ":"

    def test_non_numeric_duration_falls_back(self):
        entry = parse_logical_line(": 1700000000:x;ls")
        assert not entry.has_metadata
        assert entry.parsed.raw == ": 1700000000:x;ls"

    def test_missing_semicolon_falls_back(self):
        entry = parse_logical_line(": 1700000000:5 ls")
        assert not entry.has_metadata

    def test_missing_colon_falls_back(self):
        entry = parse_logical_line(": 1700000000;ls")
        assert not entry.has_metadata
        assert entry.parsed.raw == ": 1700000000;ls"

    def test_wrong_prefix_is_plain(self):
        entry = parse_logical_line(":1700000000:5;ls")
        assert not entry.has_metadata

    def test_out_of_range_timestamp_falls_back(self):
        entry = parse_logical_line(": 99999999999999999999:0;ls")
        assert not entry.has_metadata

    def test_plain(self):
        entry = parse_logical_line("ls -la")
        assert entry == Entry(
            timestamp=None,
            duration=None,
            parsed=ParsedCommand(raw="ls -la", command="ls", arguments=("-la",)),
        )

    def test_empty_plain_line(self):
        assert parse_logical_line("") is None

    def test_blank_plain_line_is_kept(self):
        entry = parse_logical_line("  ")
        assert entry.parsed.command == ""


class TestIterHistoryEntries:
    def test_continuation_gives_one_entry(self):
        entries = list(iter_history_entries(["echo \\", "hello"]))
        assert len(entries) == 1
        assert entries[0].parsed.raw == "echo \nhello"
        assert entries[0].parsed.command == "echo"
        assert entries[0].parsed.arguments == ("hello",)

    def test_extended_continuation(self):
        entries = list(iter_history_entries([": 1700000000:2;git commit \\", "  -m 'msg'"]))
        assert len(entries) == 1
        assert entries[0].duration == 2
        assert entries[0].parsed.arguments == ("commit", "-m", "msg")

    def test_order_is_preserved(self):
        lines = [": 1700000002:0;b", "a", ": 1700000001:0;c"]
        assert [e.parsed.command for e in iter_history_entries(lines)] == ["b", "a", "c"]

    def test_empty_lines_are_skipped(self):
        assert [e.parsed.command for e in iter_history_entries(["", "ls", ""])] == ["ls"]


class TestParseHistory:
    def test_reads_file(self, write_history):
        path = write_history([
            ": 1700000000:5;echo hi",
            "FOO=1 make build",
            ": 1700000010:0;vim \\",
            "notes.txt",
        ])
        entries = parse_history(path)
        assert [e.parsed.command for e in entries] == ["echo", "make", "vim"]
        assert entries[0].timestamp == _utc(1700000000)
        assert entries[1].timestamp is None
        assert entries[2].parsed.raw == "vim \nnotes.txt"

    def test_accepts_str_path(self, write_history):
        path = write_history(["ls"])
        assert len(parse_history(str(path))) == 1

    def test_crlf_line_endings(self, tmp_path):
        path = tmp_path / "history"
        path.write_bytes(b": 1700000000:1;ls -la\r\necho \\\r\nhi\r\n")
        entries = parse_history(path)
        assert len(entries) == 2
        assert entries[0].parsed.arguments == ("-la",)
        assert entries[1].parsed.raw == "echo \nhi"

    def test_lone_carriage_return_does_not_split(self, tmp_path):
        path = tmp_path / "history"
        path.write_bytes(b"echo a\rb\n")
        entries = parse_history(path)
        assert len(entries) == 1
        assert entries[0].parsed.raw == "echo a\rb"

    def test_invalid_utf8_is_replaced(self, tmp_path):
        path = tmp_path / "history"
        path.write_bytes(b"echo \xff\n")
        entries = parse_history(path)
        assert entries[0].parsed.arguments == ("\ufffd",)

    def test_file_ending_mid_continuation(self, tmp_path):
        path = tmp_path / "history"
        path.write_text("ls\necho \\", encoding="utf-8")
        entries = parse_history(path)
        assert [e.parsed.raw for e in entries] == ["ls", "echo \n"]

    def test_empty_file(self, write_history):
        assert parse_history(write_history([])) == []

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(OSError):
            parse_history(tmp_path / "missing")

    def test_directory_raises(self, tmp_path):
        with pytest.raises(OSError):
            parse_history(tmp_path)

    def test_reparse_is_identical(self, write_history):
        path = write_history([": 1700000000:5;echo hi", "ls", "cat 'a b'"])
        assert parse_history(path) == parse_history(path)
