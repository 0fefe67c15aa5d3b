"""Async inspection façade — the single entry point for editor integrations.

Usage::

    inspector = MypyInspector(CheckerContext.from_env(project_root))

    # inline: problems for one buffer (plus batch siblings)
    problems = await inspector.inspect(buffer, token=token)

    # batch: problems for every buffer
    results = await inspector.scan(buffers)

Neither call raises ``Exception``: every failure becomes an empty result plus
a log entry or user notification. Ephemeral files are always cleaned up.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable, Sequence
from enum import Enum

import structlog

from mypy_annotator.cancellation import CancellationToken
from mypy_annotator.checker.base import CheckerRunner
from mypy_annotator.checker.mypy_runner import MypyRunner
from mypy_annotator.checker.scan_files import ScanFiles
from mypy_annotator.checker.scannable import ScannableFileSet
from mypy_annotator.core.config import CheckerContext
from mypy_annotator.exceptions import ScanCancelledError, ScanParseError, ScanTimeoutError
from mypy_annotator.messages import message
from mypy_annotator.models.buffer import Buffer, BufferStore, FileSystemBufferStore
from mypy_annotator.models.problem import Problem
from mypy_annotator.notifications import LoggingNotifier, UserNotifier
from mypy_annotator.progress import InspectionState, InspectionTracker

log = structlog.get_logger("mypy_annotator.inspector")

WAIT_POLL_INTERVAL = 0.05  # seconds between token checks while waiting


class FailureKind(Enum):
    CANCELLED = "cancelled"
    PARSE = "parse"
    IO = "io"
    UNCLASSIFIED = "unclassified"


def classify_failure(exc: BaseException) -> FailureKind:
    """Sort a scan failure into the bucket that decides how it is reported."""
    cause = exc.__cause__
    if isinstance(exc, (ScanCancelledError, AssertionError)) or isinstance(
        cause, ScanCancelledError
    ):
        return FailureKind.CANCELLED
    if isinstance(exc, ScanParseError):
        return FailureKind.PARSE
    if isinstance(exc, OSError) or isinstance(cause, OSError):
        return FailureKind.IO
    return FailureKind.UNCLASSIFIED


def _log_orphaned_scan(future: asyncio.Future) -> None:
    """Consume the outcome of a scan nobody waits for any more."""
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        log.debug("inspection.orphaned_scan_failed", error=repr(exc))


class MypyInspector:
    """Façade over the scan pipeline.

    Each call builds its own ScanFiles, ScannableFileSet and token; nothing
    is shared between concurrent calls.
    """

    def __init__(
        self,
        context: CheckerContext,
        runner: CheckerRunner | None = None,
        store: BufferStore | None = None,
        notifier: UserNotifier | None = None,
    ) -> None:
        self.context = context
        self.runner = runner or MypyRunner()
        self.store = store or FileSystemBufferStore()
        self.notifier = notifier or LoggingNotifier()

    async def inspect(
        self,
        buffer: Buffer,
        siblings: Iterable[Buffer] = (),
        token: CancellationToken | None = None,
        tracker: InspectionTracker | None = None,
    ) -> list[Problem]:
        """Problems for *buffer*, scanned in one batch with *siblings*."""
        buffers = list(dict.fromkeys([buffer, *siblings]))
        results = await self._run(buffers, token, tracker, target=buffer.name)
        return list(results.get(buffer, ()))

    async def scan(
        self,
        buffers: Sequence[Buffer],
        token: CancellationToken | None = None,
        tracker: InspectionTracker | None = None,
    ) -> dict[Buffer, list[Problem]]:
        """Problems for every buffer; clean buffers may be absent."""
        unique = list(dict.fromkeys(buffers))
        return await self._run(unique, token, tracker, target=f"{len(unique)} buffer(s)")

    async def _run(
        self,
        buffers: list[Buffer],
        token: CancellationToken | None,
        tracker: InspectionTracker | None,
        target: str,
    ) -> dict[Buffer, list[Problem]]:
        token = token or CancellationToken()
        tracker = tracker or InspectionTracker()
        files = ScannableFileSet()
        start = time.monotonic()
        try:
            available = self.runner.check_available(self.context)
            tracker.advance(InspectionState.AVAILABILITY_CHECKED)
            if not available:
                log.debug("inspection.skipped", target=target, reason="checker_unavailable")
                tracker.advance(InspectionState.SKIPPED_UNAVAILABLE)
                return {}
            token.raise_if_cancelled()

            scan = ScanFiles(
                self.context, buffers, self.runner, self.store, files, tracker, token
            )
            results = await self._await_scan(scan, token)
            tracker.advance(InspectionState.DELIVERED)
            log.debug(
                "inspection.completed",
                target=target,
                problems=sum(len(p) for p in results.values()),
                duration=round(time.monotonic() - start, 3),
            )
            return results

        except asyncio.CancelledError:
            token.cancel("inspection task cancelled")
            raise

        except Exception as exc:
            self._handle_exception(exc, target, time.monotonic() - start)
            return {}

        finally:
            disposed = files.close()
            tracker.advance(InspectionState.CLEANED_UP, detail=f"disposed={disposed}")

    async def _await_scan(
        self, scan: ScanFiles, token: CancellationToken
    ) -> dict[Buffer, list[Problem]]:
        """Run *scan* in a worker thread; the only suspension point of an inspection.

        Returns early on cancellation or timeout. The worker is not joined
        then: it sees the cancelled token and stops at its next check, and the
        runner kills mypy on its next poll. A worker stuck elsewhere can
        outlive the request.
        """
        loop = asyncio.get_running_loop()
        timeout = self.context.inspection_timeout
        deadline = loop.time() + timeout
        future = asyncio.ensure_future(asyncio.to_thread(scan.call))
        try:
            while True:
                remaining = deadline - loop.time()
                done, _ = await asyncio.wait(
                    {future}, timeout=max(0.0, min(WAIT_POLL_INTERVAL, remaining))
                )
                if done:
                    return future.result()
                if token.is_cancelled:
                    raise ScanCancelledError(token.reason)
                if loop.time() >= deadline:
                    token.cancel("inspection timed out")
                    raise ScanTimeoutError(f"Scan did not finish within {timeout}s")
        finally:
            if not future.done():
                future.add_done_callback(_log_orphaned_scan)

    def _handle_exception(self, exc: Exception, target: str, elapsed: float) -> None:
        kind = classify_failure(exc)
        project = self.context.project_name

        if kind is FailureKind.CANCELLED:
            log.debug("inspection.cancelled", target=target, reason=str(exc))

        elif kind is FailureKind.PARSE:
            log.debug("inspection.parse_failed", target=target, exc_info=exc)

        elif kind is FailureKind.IO:
            log.debug("inspection.io_failed", target=target, error=repr(exc))
            self._notify(self.notifier.warn, project, message("mypy.file-io-failed"))

        else:
            log.warning(
                "inspection.failed",
                target=target,
                elapsed=round(elapsed, 3),
                exc_info=exc,
            )
            self._notify(self.notifier.report_exception, project, exc)

    @staticmethod
    def _notify(send, *args) -> None:
        try:
            send(*args)
        except Exception:
            log.debug("notification.failed", exc_info=True)
