"""Tests for the batch inspection adapter."""

from __future__ import annotations

import asyncio
import threading

import pytest

from mypy_annotator.inspection import MypyInspection, ProblemDescriptor
from mypy_annotator.inspector import MypyInspector
from mypy_annotator.models.problem import Anchor, Problem, SeverityLevel
from mypy_annotator.progress import InspectionState, InspectionTracker
from mypy_annotator.testing import FakeRunner, RecordingNotifier


def _inspection(context, store, output="", **runner_kwargs) -> MypyInspection:
    runner = FakeRunner(output, **runner_kwargs)
    return MypyInspection(
        MypyInspector(context, runner=runner, store=store, notifier=RecordingNotifier())
    )


class TestProblemDescriptor:
    def test_from_note(self, make_buffer):
        buffer = make_buffer("file.py", "x = 1\n")
        problem = Problem(
            anchor=Anchor(buffer, 0, 1),
            message="Revealed type is int",
            severity=SeverityLevel.NOTE,
            line=1,
            column=1,
            suppress_errors=True,
        )
        d = ProblemDescriptor.from_problem(problem)
        assert d.path == str(buffer.path)
        assert d.severity == "note"
        assert d.highlight_severity == "warning"
        assert d.description == "Mypy: Revealed type is int"
        assert d.suppress_errors is True
        assert d.format() == f"{buffer.path}:1:1: note: Revealed type is int"


class TestMypyInspection:
    @pytest.mark.asyncio
    async def test_check_file(self, make_buffer, context, store):
        inspection = _inspection(context, store, "file.py:1:5: error: Bad value")
        tracker = InspectionTracker()
        (d,) = await inspection.check_file(make_buffer(), tracker=tracker)
        assert (d.line, d.column, d.severity, d.message) == (1, 5, "error", "Bad value")
        assert tracker.state is InspectionState.CLEANED_UP

    @pytest.mark.asyncio
    async def test_check_files_keeps_buffer_order(self, make_buffer, context, store):
        a, b = make_buffer("a.py"), make_buffer("b.py")
        output = "b.py:1:1: error: from b\na.py:1:1: error: from a 1\na.py:1:1: note: from a 2"
        inspection = _inspection(context, store, output)
        descriptors = await inspection.check_files([a, b])
        assert [d.message for d in descriptors] == ["from a 1", "from a 2", "from b"]

    @pytest.mark.asyncio
    async def test_unavailable_checker(self, make_buffer, context, store):
        inspection = _inspection(context, store, "a.py:1:1: error: e", available=False)
        tracker = InspectionTracker()
        assert await inspection.check_files([make_buffer("a.py")], tracker=tracker) == []
        assert tracker.count(InspectionState.SKIPPED_UNAVAILABLE) == 1

    @pytest.mark.asyncio
    async def test_concurrent_runs_keep_their_own_trackers(self, make_buffer, context, store):
        release = threading.Event()
        runner = FakeRunner("", block=release)
        inspection = MypyInspection(
            MypyInspector(context, runner=runner, store=store, notifier=RecordingNotifier())
        )
        first, second = InspectionTracker(), InspectionTracker()
        runs = [
            asyncio.create_task(inspection.check_files([make_buffer("a.py")], tracker=first)),
            asyncio.create_task(inspection.check_files([make_buffer("b.py")], tracker=second)),
        ]
        for _ in range(500):
            if len(runner.calls) == 2:
                break
            await asyncio.sleep(0.01)
        release.set()
        await asyncio.gather(*runs)

        for tracker in (first, second):
            assert tracker.count(InspectionState.CLEANED_UP) == 1
            assert tracker.count(InspectionState.DELIVERED) == 1
        assert not hasattr(inspection, "tracker")
