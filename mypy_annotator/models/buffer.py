"""In-memory editable source buffers and the store that materializes them."""

from __future__ import annotations

import logging
import shutil
import tempfile
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from mypy_annotator.exceptions import ScanParseError

logger = logging.getLogger(__name__)

# mkdtemp suffixes keep the name a valid identifier
TEMP_PREFIX = "mypy_annotator_"
PACKAGE_MARKERS = ("__init__.py", "__init__.pyi")


@dataclass(eq=False)
class Buffer:
    """
    Editable text of one source file, possibly diverged from disk.

    Buffers compare and hash by identity so they can key scan results.
    """

    path: Path
    text: str
    encoding: str = "utf-8"
    modification_stamp: int = 0
    saved_stamp: int | None = None
    _valid: bool = field(default=True, repr=False)

    @classmethod
    def from_file(cls, path: str | Path, encoding: str = "utf-8") -> Buffer:
        """Open a buffer on an existing file, in the saved state."""
        p = Path(path).resolve()
        return cls(path=p, text=p.read_text(encoding=encoding), encoding=encoding, saved_stamp=0)

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def is_valid(self) -> bool:
        return self._valid

    @property
    def is_modified(self) -> bool:
        return self.saved_stamp != self.modification_stamp

    def edit(self, text: str) -> None:
        self.text = text
        self.modification_stamp += 1

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(self.text, encoding=self.encoding)
        self.saved_stamp = self.modification_stamp

    def close(self) -> None:
        self._valid = False

    def line_bounds(self, line: int) -> tuple[int, int] | None:
        """Return (start, end) offsets of 1-based *line*, excluding the newline.

        Returns None when the buffer has fewer lines.
        """
        if line < 1:
            return None
        start = 0
        for _ in range(line - 1):
            nl = self.text.find("\n", start)
            if nl < 0:
                return None
            start = nl + 1
        end = self.text.find("\n", start)
        if end < 0:
            end = len(self.text)
        if end > start and self.text[end - 1] == "\r":
            end -= 1
        return start, end


class BufferStore(Protocol):
    """Host-side access to buffer persistence state."""

    def is_modified_and_unsaved(self, buffer: Buffer) -> bool: ...

    def create_workspace(self) -> Path: ...

    def materialize_content(self, buffer: Buffer, workspace: Path, project_root: Path) -> Path: ...

    def discard_content(self, path: Path) -> None: ...

    def discard_workspace(self, workspace: Path) -> None: ...


def _relative_to(path: Path, root: Path) -> Path | None:
    for candidate, base in ((path, root), (path.resolve(), root.resolve())):
        try:
            rel = candidate.relative_to(base)
        except ValueError:
            continue
        if ".." not in rel.parts:
            return rel
    return None


def _copy_package_markers(project_root: Path, rel_dir: Path, workspace: Path) -> None:
    parts = rel_dir.parts
    for depth in range(1, len(parts) + 1):
        sub = Path(*parts[:depth])
        for marker in PACKAGE_MARKERS:
            source = project_root / sub / marker
            dest = workspace / sub / marker
            if source.is_file() and not dest.exists():
                shutil.copyfile(source, dest)


class FileSystemBufferStore:
    """Materializes unsaved buffers into per-request workspaces.

    A workspace mirrors the project layout. Each buffer lands at its
    project-relative path beside copies of its packages' ``__init__`` files,
    so mypy derives the module name it would for the file on disk. Buffers
    outside the project get a private subdirectory under their bare name.
    The workspace is removed along with its last materialized file.
    """

    def __init__(self, temp_root: str | Path | None = None) -> None:
        self.temp_root = str(temp_root) if temp_root else None
        self._live: dict[Path, int] = {}
        self._lock = threading.Lock()

    def is_modified_and_unsaved(self, buffer: Buffer) -> bool:
        return buffer.is_modified or not buffer.path.exists()

    def create_workspace(self) -> Path:
        workspace = Path(tempfile.mkdtemp(prefix=TEMP_PREFIX, dir=self.temp_root))
        with self._lock:
            self._live[workspace] = 0
        return workspace

    def materialize_content(self, buffer: Buffer, workspace: Path, project_root: Path) -> Path:
        try:
            data = buffer.text.encode(buffer.encoding)
        except (UnicodeEncodeError, LookupError) as exc:
            raise ScanParseError(
                f"Cannot encode {buffer.name} as {buffer.encoding}: {exc}"
            ) from exc

        rel = _relative_to(buffer.path, project_root)
        if rel is None:
            target = Path(tempfile.mkdtemp(dir=workspace)) / buffer.name
        else:
            target = workspace / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            _copy_package_markers(project_root, rel.parent, workspace)
        target.write_bytes(data)
        with self._lock:
            self._live[workspace] = self._live.get(workspace, 0) + 1
        logger.debug("Materialized %s -> %s", buffer.path, target)
        return target

    def discard_content(self, path: Path) -> None:
        path.unlink(missing_ok=True)
        with self._lock:
            workspace = next((p for p in path.parents if p in self._live), None)
            if workspace is None:
                return
            remaining = self._live[workspace] - 1
            if remaining > 0:
                self._live[workspace] = remaining
                return
            del self._live[workspace]
        shutil.rmtree(workspace, ignore_errors=True)

    def discard_workspace(self, workspace: Path) -> None:
        """Remove *workspace* unless materialized files still live in it."""
        with self._lock:
            if self._live.get(workspace, 0) > 0:
                return
            self._live.pop(workspace, None)
        shutil.rmtree(workspace, ignore_errors=True)
