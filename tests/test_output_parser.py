"""Tests for the mypy output parser."""

from __future__ import annotations

from pathlib import Path

import pytest

from mypy_annotator.checker.output_parser import (
    anchor_for,
    build_path_index,
    parse_line,
    parse_output,
)
from mypy_annotator.checker.scannable import ScannableFile
from mypy_annotator.models.buffer import Buffer
from mypy_annotator.models.problem import SeverityLevel

SOURCE = """\
import os

value: int = "text"
print(undefined_name)
"""


@pytest.fixture
def buffer(project):
    b = Buffer(path=project / "file.py", text=SOURCE)
    b.save()
    return b


@pytest.fixture
def files(buffer):
    return [ScannableFile(buffer, buffer.path)]


class TestParseOutput:
    def test_single_error(self, buffer, files, project):
        results = parse_output("file.py:3:5: error: Incompatible types", files, base_dir=project)
        assert list(results) == [buffer]
        (problem,) = results[buffer]
        assert problem.line == 3
        assert problem.column == 5
        assert problem.severity is SeverityLevel.ERROR
        assert problem.message == "Incompatible types"
        assert problem.after_end_of_line is False
        assert problem.suppress_errors is False

    def test_severities(self, buffer, files, project):
        raw = "\n".join(
            [
                "file.py:3:1: error: e",
                "file.py:3:1: warning: w",
                "file.py:3:1: note: n",
            ]
        )
        problems = parse_output(raw, files, base_dir=project)[buffer]
        assert [p.severity for p in problems] == [
            SeverityLevel.ERROR,
            SeverityLevel.WARNING,
            SeverityLevel.NOTE,
        ]
        assert [p.suppress_errors for p in problems] == [False, False, True]

    def test_preserves_output_order(self, buffer, files, project):
        raw = "file.py:4:1: error: second line first\nfile.py:1:1: error: first line second"
        problems = parse_output(raw, files, base_dir=project)[buffer]
        assert [p.line for p in problems] == [4, 1]

    def test_absolute_path(self, buffer, files):
        raw = f"{buffer.path}:4:7: error: Name \"undefined_name\" is not defined"
        (problem,) = parse_output(raw, files)[buffer]
        assert problem.message == 'Name "undefined_name" is not defined'
        assert problem.anchor.text == "undefined_name"

    def test_malformed_lines_dropped(self, buffer, files, project):
        raw = "\n".join(
            [
                "Success: no issues found in 1 source file",
                "file.py: error: no line number",
                "file.py:x:1: error: bad line",
                "file.py:3:1: fatal: unknown severity",
                "",
                "file.py:3:1: error: kept",
            ]
        )
        problems = parse_output(raw, files, base_dir=project)[buffer]
        assert [p.message for p in problems] == ["kept"]

    def test_unknown_file_dropped(self, files, project):
        assert parse_output("other.py:1:1: error: elsewhere", files, base_dir=project) == {}

    def test_empty_output(self, files):
        assert parse_output("", files) == {}

    def test_missing_column_defaults_to_one(self, buffer, files, project):
        (problem,) = parse_output("file.py:1: error: no column", files, base_dir=project)[buffer]
        assert problem.column == 1
        assert problem.anchor.text == "import"

    def test_materialized_path_maps_back_to_buffer(self, project, tmp_path):
        buffer = Buffer(path=project / "edited.py", text="a = 1\n")
        temp = tmp_path / "tmpdir" / "edited.py"
        files = [ScannableFile(buffer, temp)]
        results = parse_output(f"{temp}:1:1: error: from temp copy", files, base_dir=project)
        assert results[buffer][0].message == "from temp copy"

    def test_batch_routes_to_each_buffer(self, project):
        a = Buffer(path=project / "a.py", text="a = 1\n")
        b = Buffer(path=project / "b.py", text="b = 1\n")
        files = [ScannableFile(a, a.path), ScannableFile(b, b.path)]
        raw = "b.py:1:1: error: in b\na.py:1:1: error: in a"
        results = parse_output(raw, files, base_dir=project)
        assert list(results) == [b, a]
        assert results[a][0].message == "in a"
        assert results[b][0].message == "in b"

    def test_trailing_whitespace_trimmed(self, buffer, files, project):
        (problem,) = parse_output("file.py:3:1: error: message   \r", files, base_dir=project)[buffer]
        assert problem.message == "message"


class TestParseLine:
    def test_windows_drive_letter_kept(self):
        buffer = Buffer(path=Path("C:\\src\\a.py"), text="x = 1\n")
        index = build_path_index([ScannableFile(buffer, buffer.path)], Path("/base"))
        problem = parse_line("C:\\src\\a.py:1:1: error: drive", index, Path("/base"))
        assert problem is not None
        assert problem.message == "drive"

    def test_no_match(self):
        assert parse_line("garbage", {}) is None


class TestAnchorFor:
    def test_identifier_span(self, buffer):
        anchor, after_eol = anchor_for(buffer, 3, 1)
        assert anchor.text == "value"
        assert after_eol is False

    def test_single_character_for_punctuation(self, buffer):
        anchor, after_eol = anchor_for(buffer, 3, 6)
        assert anchor.text == ":"
        assert after_eol is False

    def test_column_past_line_end(self, buffer):
        anchor, after_eol = anchor_for(buffer, 1, 80)
        assert after_eol is True
        assert anchor.start == anchor.end == len("import os")

    def test_empty_line(self, buffer):
        anchor, after_eol = anchor_for(buffer, 2, 1)
        assert after_eol is True
        assert anchor.start == anchor.end

    def test_line_past_end_of_buffer(self, buffer):
        anchor, after_eol = anchor_for(buffer, 99, 1)
        assert after_eol is True
        assert anchor.start == anchor.end == len(SOURCE)

    def test_records_modification_stamp(self, buffer):
        buffer.edit(SOURCE)
        anchor, _ = anchor_for(buffer, 1, 1)
        assert anchor.stamp == buffer.modification_stamp == 1
