"""Tests for CLI commands — mypy itself is replaced by FakeRunner."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from mypy_annotator.cli import _build_context, main
from mypy_annotator.messages import message
from mypy_annotator.testing import FakeRunner


@pytest.fixture(autouse=True)
def clean_env():
    with patch.dict(os.environ, {}, clear=False):
        for k in [k for k in os.environ if k.startswith("MYPY_ANNOTATOR_")]:
            os.environ.pop(k)
        yield


@pytest.fixture
def source(project):
    path = project / "mod.py"
    path.write_text("count: int = 'three'\n")
    return path


def _invoke(runner: FakeRunner, *args: str):
    with patch("mypy_annotator.cli.MypyRunner", return_value=runner):
        return CliRunner().invoke(main, list(args))


# ── check ──


class TestCheck:
    def test_prints_diagnostics_and_fails(self, project, source):
        runner = FakeRunner("mod.py:1:14: error: Incompatible types in assignment")
        result = _invoke(runner, "check", "--project-root", str(project), str(source))
        assert result.exit_code == 1
        assert result.output.strip() == (
            f"{source.resolve()}:1:14: error: Incompatible types in assignment"
        )
        assert runner.calls == [[str(source.resolve())]]

    def test_clean_exits_zero(self, project, source):
        result = _invoke(FakeRunner(""), "check", "--project-root", str(project), str(source))
        assert result.exit_code == 0
        assert result.output == ""

    def test_notes_alone_do_not_fail(self, project, source):
        runner = FakeRunner("mod.py:1:1: note: Revealed type is builtins.int")
        result = _invoke(runner, "check", "--project-root", str(project), str(source))
        assert result.exit_code == 0
        assert "note: Revealed type" in result.output

    def test_summary(self, project, source):
        result = _invoke(
            FakeRunner(""), "check", "--summary", "--project-root", str(project), str(source)
        )
        assert "Inspection summary" in result.output
        assert "cleaned_up - disposed=1" in result.output

    def test_unavailable(self, project, source):
        result = _invoke(
            FakeRunner(available=False), "check", "--project-root", str(project), str(source)
        )
        assert result.exit_code == 2
        assert message("mypy.not-available") in result.output

    def test_undecodable_file(self, project):
        path = project / "bad.py"
        path.write_bytes(b"\xff\xfe\x00broken")
        result = _invoke(FakeRunner(), "check", "--project-root", str(project), str(path))
        assert result.exit_code == 2
        assert "cannot decode" in result.output

    def test_checker_failure_reported(self, project, source):
        runner = FakeRunner(error=RuntimeError("mypy crashed"))
        result = _invoke(runner, "check", "--project-root", str(project), str(source))
        assert result.exit_code == 0
        assert "mypy crashed" in result.output

    def test_requires_files(self):
        result = CliRunner().invoke(main, ["check"])
        assert result.exit_code != 0


# ── doctor ──


class TestDoctor:
    def test_available(self, project):
        result = _invoke(FakeRunner(), "doctor", "--project-root", str(project))
        assert result.exit_code == 0
        assert "Status: available" in result.output
        assert f"Project root: {project.resolve()}" in result.output

    def test_unavailable(self, project):
        result = _invoke(FakeRunner(available=False), "doctor", "--project-root", str(project))
        assert result.exit_code == 2


# ── context building ──


class TestBuildContext:
    def test_env_then_flags(self, project, tmp_path):
        cfg = tmp_path / "mypy.ini"
        with patch.dict(os.environ, {"MYPY_ANNOTATOR_ARGS": "--strict"}):
            ctx = _build_context(str(project), "/usr/bin/mypy", str(cfg), ("--warn-unused-ignores",), 3.0)
        assert ctx.executable == "/usr/bin/mypy"
        assert ctx.config_file == cfg.resolve()
        assert ctx.arguments == ("--strict", "--warn-unused-ignores")
        assert ctx.inspection_timeout == 3.0
        assert ctx.process_timeout >= 3.0

    def test_no_flags_keeps_env(self, project):
        ctx = _build_context(str(project), None, None, (), None)
        assert ctx.executable == "mypy"
        assert ctx.arguments == ()


def test_log_format_option(project, source):
    result = _invoke(
        FakeRunner(""), "--log-format", "json", "check", "--project-root", str(project), str(source)
    )
    assert result.exit_code == 0


def test_log_format_rejects_unknown(project, source):
    result = _invoke(
        FakeRunner(""), "--log-format", "xml", "check", "--project-root", str(project), str(source)
    )
    assert result.exit_code == 2
