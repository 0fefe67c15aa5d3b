"""Test doubles for mypy_annotator — use in unit and integration tests.

Usage::

    from mypy_annotator.testing import FakeRunner, RecordingNotifier

    runner = FakeRunner(output="a.py:3:5: error: Incompatible types")
    runner = FakeRunner(error=OSError("disk full"))      # fail every run
    runner = FakeRunner(available=False)                 # checker missing
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from pathlib import Path

from mypy_annotator.cancellation import CancellationToken
from mypy_annotator.checker.base import CheckerRunner
from mypy_annotator.core.config import CheckerContext
from mypy_annotator.models.buffer import Buffer, FileSystemBufferStore
from mypy_annotator.models.problem import Problem


class FakeRunner(CheckerRunner):
    """Drop-in CheckerRunner returning scripted output.

    Parameters
    ----------
    output:
        Raw text returned by ``run``. A callable receives the paths and
        returns the text, for output that must name temporary files.
    error:
        Raised by ``run`` instead of returning output.
    available:
        Result of ``check_available``.
    block:
        If set, ``run`` waits on it (or on the token) before answering.
    """

    def __init__(
        self,
        output: str | Callable[[Sequence[str]], str] = "",
        *,
        error: BaseException | None = None,
        available: bool = True,
        block: threading.Event | None = None,
    ) -> None:
        self._output = output
        self._error = error
        self._available = available
        self._block = block
        self.calls: list[list[str]] = []
        self.availability_checks = 0

    @property
    def name(self) -> str:
        return "fake"

    def check_available(self, context: CheckerContext) -> bool:
        self.availability_checks += 1
        return self._available

    def run(
        self,
        paths: Sequence[str],
        context: CheckerContext,
        token: CancellationToken | None = None,
    ) -> str:
        self.calls.append(list(paths))
        if self._block is not None:
            while not self._block.wait(0.01):
                if token is not None:
                    token.raise_if_cancelled()
        if self._error is not None:
            raise self._error
        if callable(self._output):
            return self._output(paths)
        return self._output


class RecordingNotifier:
    """UserNotifier that keeps every notification."""

    def __init__(self) -> None:
        self.warnings: list[tuple[str, str]] = []
        self.exceptions: list[tuple[str, BaseException]] = []

    def warn(self, project: str, message: str) -> None:
        self.warnings.append((project, message))

    def report_exception(self, project: str, exc: BaseException) -> None:
        self.exceptions.append((project, exc))


class RecordingSink:
    """AnnotationSink that keeps every published problem."""

    def __init__(self) -> None:
        self.published: list[tuple[Buffer, Problem]] = []

    def publish(self, buffer: Buffer, problem: Problem) -> None:
        self.published.append((buffer, problem))


class RecordingBufferStore(FileSystemBufferStore):
    """FileSystemBufferStore that counts materializations and discards.

    *fail_on* makes materialization of the n-th buffer (1-based) raise
    *failure*, for fault injection in the preparer.
    """

    def __init__(
        self,
        temp_root: str | Path | None = None,
        *,
        fail_on: int | None = None,
        failure: BaseException | None = None,
    ) -> None:
        super().__init__(temp_root)
        self.materialized: list[Path] = []
        self.discarded: list[Path] = []
        self._fail_on = fail_on
        self._failure = failure or OSError("simulated write failure")
        self._lock = threading.Lock()

    def materialize_content(self, buffer: Buffer, workspace: Path, project_root: Path) -> Path:
        with self._lock:
            attempt = len(self.materialized) + 1
        if self._fail_on is not None and attempt == self._fail_on:
            raise self._failure
        path = super().materialize_content(buffer, workspace, project_root)
        with self._lock:
            self.materialized.append(path)
        return path

    def discard_content(self, path: Path) -> None:
        with self._lock:
            self.discarded.append(path)
        super().discard_content(path)
