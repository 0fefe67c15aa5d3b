"""Batch inspection adapter producing problem descriptors for a file set."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from mypy_annotator.cancellation import CancellationToken
from mypy_annotator.inspector import MypyInspector
from mypy_annotator.models.buffer import Buffer
from mypy_annotator.models.problem import Problem
from mypy_annotator.progress import InspectionTracker


@dataclass(frozen=True)
class ProblemDescriptor:
    """Flat, UI-independent view of a Problem."""

    path: str
    line: int
    column: int
    severity: str
    highlight_severity: str
    message: str
    description: str
    after_end_of_line: bool
    suppress_errors: bool

    @classmethod
    def from_problem(cls, problem: Problem) -> ProblemDescriptor:
        return cls(
            path=str(problem.buffer.path),
            line=problem.line,
            column=problem.column,
            severity=problem.severity.value,
            highlight_severity=problem.highlight_severity.value,
            message=problem.message,
            description=problem.annotation_message,
            after_end_of_line=problem.after_end_of_line,
            suppress_errors=problem.suppress_errors,
        )

    def format(self) -> str:
        return f"{self.path}:{self.line}:{self.column}: {self.severity}: {self.message}"


class MypyInspection:
    """Adapter for batch inspection runs (whole-project checks, CLI).

    Holds no per-run state, so one instance may serve concurrent runs. Pass a
    *tracker* to observe a run's progress.
    """

    def __init__(self, inspector: MypyInspector) -> None:
        self.inspector = inspector

    async def check_file(
        self,
        buffer: Buffer,
        token: CancellationToken | None = None,
        tracker: InspectionTracker | None = None,
    ) -> list[ProblemDescriptor]:
        problems = await self.inspector.inspect(buffer, token=token, tracker=tracker)
        return [ProblemDescriptor.from_problem(p) for p in problems]

    async def check_files(
        self,
        buffers: Sequence[Buffer],
        token: CancellationToken | None = None,
        tracker: InspectionTracker | None = None,
    ) -> list[ProblemDescriptor]:
        """Descriptors for all buffers, grouped in *buffers* order."""
        results = await self.inspector.scan(buffers, token=token, tracker=tracker)
        return [
            ProblemDescriptor.from_problem(p)
            for buffer in dict.fromkeys(buffers)
            for p in results.get(buffer, ())
        ]
