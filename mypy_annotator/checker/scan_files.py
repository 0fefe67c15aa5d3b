"""Scan coordinator: one prepare/invoke/parse/filter pass over a batch."""

from __future__ import annotations

import time
from collections.abc import Sequence

import structlog

from mypy_annotator.cancellation import CancellationToken
from mypy_annotator.checker.base import CheckerRunner
from mypy_annotator.checker.output_parser import parse_output
from mypy_annotator.checker.scannable import ScannableFileSet, create_and_validate
from mypy_annotator.core.config import CheckerContext
from mypy_annotator.exceptions import ScanReuseError
from mypy_annotator.models.buffer import Buffer, BufferStore
from mypy_annotator.models.problem import Problem
from mypy_annotator.progress import InspectionState, InspectionTracker

log = structlog.get_logger("mypy_annotator.scan")

# reported for incomplete code mid-edit; dropped from results
ERROR_MESSAGE_INVALID_SYNTAX = "invalid syntax"


def filter_noise(results: dict[Buffer, list[Problem]]) -> dict[Buffer, list[Problem]]:
    return {
        buffer: [p for p in problems if p.message != ERROR_MESSAGE_INVALID_SYNTAX]
        for buffer, problems in results.items()
    }


class ScanFiles:
    """
    Single-use unit of work for one batch of buffers.

    Phase 1: create_and_validate()   (registered into the request's file set)
    Phase 2: CheckerRunner.run()     (once for the whole batch)
    Phase 3: parse_output()
    Phase 4: filter_noise()

    The file set belongs to the caller, which disposes it. ``call`` runs in a
    worker thread and checks the token between phases.
    """

    def __init__(
        self,
        context: CheckerContext,
        buffers: Sequence[Buffer],
        runner: CheckerRunner,
        store: BufferStore,
        files: ScannableFileSet,
        tracker: InspectionTracker | None = None,
        token: CancellationToken | None = None,
    ) -> None:
        self.context = context
        self.buffers = list(buffers)
        self.runner = runner
        self.store = store
        self.files = files
        self.tracker = tracker or InspectionTracker()
        self.token = token or CancellationToken()
        self._used = False

    def call(self) -> dict[Buffer, list[Problem]]:
        if self._used:
            raise ScanReuseError("ScanFiles instances are single-use")
        self._used = True
        start = time.monotonic()

        self.tracker.advance(InspectionState.PREPARING)
        self.files.add_all(create_and_validate(self.buffers, self.context, self.store))
        if not self.files:
            log.debug("scan.nothing_to_scan", buffers=len(self.buffers))
            return {}
        self.token.raise_if_cancelled()

        self.tracker.advance(InspectionState.INVOKING, detail=f"files={len(self.files)}")
        raw = self.runner.run([str(sf.path) for sf in self.files], self.context, self.token)
        self.token.raise_if_cancelled()

        self.tracker.advance(InspectionState.PARSING)
        results = parse_output(raw, self.files, base_dir=self.context.project_root)

        self.tracker.advance(InspectionState.FILTERING)
        results = filter_noise(results)

        log.debug(
            "scan.completed",
            files=len(self.files),
            problems=sum(len(p) for p in results.values()),
            duration=round(time.monotonic() - start, 3),
        )
        return results
