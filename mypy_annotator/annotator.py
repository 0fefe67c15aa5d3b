"""Inline annotator adapter with the three-phase collect/annotate/apply protocol.

The editor calls ``collect_information`` on its UI loop, awaits
``do_annotate`` (which never blocks the loop) and finally calls ``apply`` to
push the problems into its highlighting layer.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass, field

import structlog

from mypy_annotator.cancellation import CancellationToken
from mypy_annotator.inspector import MypyInspector
from mypy_annotator.models.buffer import Buffer, BufferStore
from mypy_annotator.models.problem import AnnotationSink, Problem

log = structlog.get_logger("mypy_annotator.annotator")


@dataclass
class AnnotationState:
    buffer: Buffer
    siblings: Sequence[Buffer] = ()
    token: CancellationToken = field(default_factory=CancellationToken)


@dataclass
class AnnotationResults:
    problems: list[Problem]


class MypyAnnotator:
    """Adapter between an editor's external-annotator hooks and MypyInspector."""

    def __init__(self, inspector: MypyInspector, store: BufferStore | None = None) -> None:
        self.inspector = inspector
        self.store = store or inspector.store

    def collect_information(
        self,
        buffer: Buffer,
        siblings: Sequence[Buffer] = (),
        token: CancellationToken | None = None,
    ) -> AnnotationState:
        # a saved buffer is scanned in place; only the log differs
        unsaved = self.store.is_modified_and_unsaved(buffer)
        log.debug(
            "annotator.collect",
            file=str(buffer.path),
            modified=buffer.modification_stamp,
            saved=not unsaved,
            thread=threading.current_thread().name,
        )
        return AnnotationState(buffer, siblings, token or CancellationToken())

    async def do_annotate(self, state: AnnotationState) -> AnnotationResults:
        start = time.monotonic()
        problems = await self.inspector.inspect(
            state.buffer, siblings=state.siblings, token=state.token
        )
        log.debug(
            "annotator.completed",
            file=state.buffer.name,
            problems=len(problems),
            duration_ms=round((time.monotonic() - start) * 1000),
        )
        return AnnotationResults(problems)

    def apply(
        self,
        buffer: Buffer,
        results: AnnotationResults | None,
        sink: AnnotationSink,
    ) -> int:
        """Publish problems still anchored in a live, unedited buffer. Returns how many.

        A buffer edited after the scan invalidates its anchors; the next
        pass re-annotates it.
        """
        if results is None or not buffer.is_valid:
            return 0

        published = 0
        for problem in results.problems:
            anchor = problem.anchor
            if problem.buffer is not buffer or not anchor.is_valid or anchor.is_stale:
                continue
            problem.create_annotation(sink)
            published += 1

        log.debug(
            "annotator.applied",
            file=buffer.name,
            published=published,
            discarded=len(results.problems) - published,
        )
        return published
