"""Checker-ready content for buffers, with disposal obligations."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path

from mypy_annotator.core.config import CheckerContext
from mypy_annotator.exceptions import ScanCancelledError
from mypy_annotator.models.buffer import Buffer, BufferStore

logger = logging.getLogger(__name__)


class ScannableFile:
    """
    Pairs a buffer with the path mypy should read.

    For an unsaved buffer the path is a temporary copy; ``dispose`` removes
    it. Disposal runs its cleanup exactly once, from whichever thread gets
    there first.
    """

    def __init__(
        self,
        buffer: Buffer,
        path: Path,
        on_dispose: Callable[[], None] | None = None,
    ) -> None:
        self.buffer = buffer
        self.path = path
        self._on_dispose = on_dispose
        self._lock = threading.Lock()
        self._disposed = False

    @property
    def is_temporary(self) -> bool:
        return self._on_dispose is not None

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> bool:
        """Run the disposal obligation. Returns False if it already ran."""
        with self._lock:
            if self._disposed:
                return False
            self._disposed = True
        if self._on_dispose is not None:
            self._on_dispose()
        return True

    def __repr__(self) -> str:
        return f"ScannableFile({self.buffer.name!r}, path={str(self.path)!r})"


def is_scannable(buffer: Buffer, context: CheckerContext) -> bool:
    return buffer.is_valid and buffer.path.suffix in context.supported_suffixes


def create_and_validate(
    buffers: Iterable[Buffer],
    context: CheckerContext,
    store: BufferStore,
) -> list[ScannableFile]:
    """Build ScannableFiles for every eligible buffer.

    Unsaved buffers are materialized through *store* into one workspace
    shared by the whole batch. A saved buffer is scanned in place. If
    anything fails, files created so far and the workspace are disposed
    before the error propagates.

    Raises:
        ScanParseError: a buffer's content cannot be encoded for the checker.
        OSError: temporary content could not be written.
    """
    created: list[ScannableFile] = []
    workspace: Path | None = None
    try:
        for buffer in buffers:
            if not is_scannable(buffer, context):
                logger.debug("Skipping %s: not a scannable file", buffer.path)
                continue
            if store.is_modified_and_unsaved(buffer):
                if workspace is None:
                    workspace = store.create_workspace()
                temp_path = store.materialize_content(buffer, workspace, context.project_root)
                created.append(
                    ScannableFile(
                        buffer,
                        temp_path,
                        on_dispose=lambda p=temp_path: store.discard_content(p),
                    )
                )
            elif buffer.path.is_file():
                created.append(ScannableFile(buffer, buffer.path))
            else:
                logger.debug("Skipping %s: no content on disk", buffer.path)
    except BaseException:
        for sf in created:
            sf.dispose()
        if workspace is not None:
            store.discard_workspace(workspace)
        raise
    return created


class ScannableFileSet:
    """
    All ScannableFiles of one scan request.

    ``close`` disposes every registered file. Files registered after close
    (a worker finishing late) are disposed on the spot.
    """

    def __init__(self) -> None:
        self._files: list[ScannableFile] = []
        self._lock = threading.Lock()
        self._closed = False

    def add_all(self, files: Iterable[ScannableFile]) -> None:
        files = list(files)
        with self._lock:
            if not self._closed:
                self._files.extend(files)
                return
        for sf in files:
            sf.dispose()
        raise ScanCancelledError("scan request already cleaned up")

    def close(self) -> int:
        """Dispose all files. Returns how many disposals ran now."""
        with self._lock:
            self._closed = True
            files = list(self._files)
        disposed = 0
        for sf in files:
            try:
                if sf.dispose():
                    disposed += 1
            except Exception:
                # the obligation is spent even if its cleanup failed
                disposed += 1
                logger.warning("Failed to dispose %r", sf, exc_info=True)
        return disposed

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._files)

    def __iter__(self) -> Iterator[ScannableFile]:
        return iter(list(self._files))
