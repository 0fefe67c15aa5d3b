"""Shared pytest fixtures for mypy-annotator tests."""

import pytest

from mypy_annotator.core.config import CheckerContext
from mypy_annotator.models.buffer import Buffer
from mypy_annotator.testing import RecordingBufferStore


@pytest.fixture
def project(tmp_path):
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def context(project):
    return CheckerContext(project_root=project, inspection_timeout=5.0, process_timeout=5.0)


@pytest.fixture
def store(tmp_path):
    temp_root = tmp_path / "materialized"
    temp_root.mkdir()
    return RecordingBufferStore(temp_root)


@pytest.fixture
def make_buffer(project):
    """Factory for buffers under the project root.

    ``saved=True`` writes the text to disk first; otherwise the buffer only
    exists in memory.
    """

    def _make(name: str = "file.py", text: str = "x = 1\n", *, saved: bool = True) -> Buffer:
        buffer = Buffer(path=project / name, text=text)
        if saved:
            buffer.save()
        return buffer

    return _make
