"""Parse mypy's line-oriented output into Problems.

mypy (with --show-column-numbers) prints one diagnostic per line:

    path/to/file.py:12:5: error: Incompatible types in assignment  [assignment]
    path/to/file.py:12:5: note: Revealed type is "builtins.int"

The grammar belongs to mypy; parsing is best-effort. Lines that do not
match, carry an unknown severity, or name a file outside the scanned batch
are dropped.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterable
from pathlib import Path

from mypy_annotator.checker.scannable import ScannableFile
from mypy_annotator.models.buffer import Buffer
from mypy_annotator.models.problem import Anchor, Problem, SeverityLevel

logger = logging.getLogger(__name__)

# Non-greedy path so "C:\src\a.py:3:5: ..." keeps its drive letter
_LINE_RE = re.compile(
    r"^(?P<file>.+?):(?P<line>\d+)(?::(?P<column>\d+))?:\s*"
    r"(?P<severity>[A-Za-z]+):\s?(?P<message>.*?)\s*$"
)
_WORD_RE = re.compile(r"\w+")


def _normalize(path: str | Path, base_dir: Path | None) -> str:
    p = Path(path)
    if not p.is_absolute() and base_dir is not None:
        p = base_dir / p
    return os.path.normcase(os.path.normpath(os.path.abspath(p)))


def build_path_index(
    files: Iterable[ScannableFile], base_dir: Path | None = None
) -> dict[str, Buffer]:
    """Map normalized paths to buffers.

    Both the checker path and the buffer's own path resolve, so output that
    names the original file still lands on the right buffer.
    """
    index: dict[str, Buffer] = {}
    for sf in files:
        index.setdefault(_normalize(sf.path, base_dir), sf.buffer)
        index.setdefault(_normalize(sf.buffer.path, base_dir), sf.buffer)
    return index


def anchor_for(buffer: Buffer, line: int, column: int) -> tuple[Anchor, bool]:
    """Anchor 1-based (line, column) in *buffer*.

    Returns the anchor and whether it should render after the end of line.
    """
    stamp = buffer.modification_stamp
    bounds = buffer.line_bounds(line)
    if bounds is None:
        end = len(buffer.text)
        return Anchor(buffer, end, end, stamp), True

    line_start, line_end = bounds
    offset = line_start + max(column, 1) - 1
    if offset >= line_end:
        return Anchor(buffer, line_end, line_end, stamp), True

    m = _WORD_RE.match(buffer.text, offset, line_end)
    end = m.end() if m else offset + 1
    return Anchor(buffer, offset, end, stamp), False


def parse_line(line: str, index: dict[str, Buffer], base_dir: Path | None = None) -> Problem | None:
    m = _LINE_RE.match(line)
    if not m:
        return None

    severity = SeverityLevel.from_token(m.group("severity"))
    if severity is None:
        return None

    buffer = index.get(_normalize(m.group("file"), base_dir))
    if buffer is None:
        return None

    line_no = int(m.group("line"))
    column = int(m.group("column")) if m.group("column") else 1
    anchor, after_eol = anchor_for(buffer, line_no, column)
    return Problem(
        anchor=anchor,
        message=m.group("message"),
        severity=severity,
        line=line_no,
        column=column,
        after_end_of_line=after_eol,
        suppress_errors=severity is SeverityLevel.NOTE,
    )


def has_diagnostics(raw: str) -> bool:
    """True if *raw* holds at least one line in diagnostic form."""
    return any(_LINE_RE.match(line) for line in raw.splitlines())


def parse_output(
    raw: str,
    files: Iterable[ScannableFile],
    base_dir: Path | None = None,
) -> dict[Buffer, list[Problem]]:
    """Parse raw mypy output into problems grouped by buffer, in output order.

    Args:
        raw: mypy stdout.
        files: The ScannableFiles handed to mypy.
        base_dir: Directory relative paths in the output are resolved against
            (the directory mypy ran in).
    """
    index = build_path_index(files, base_dir)
    results: dict[Buffer, list[Problem]] = {}
    dropped = 0
    for line in raw.splitlines():
        if not line.strip():
            continue
        problem = parse_line(line, index, base_dir)
        if problem is None:
            dropped += 1
            continue
        results.setdefault(problem.buffer, []).append(problem)

    if dropped:
        logger.debug("Dropped %d unparsed or unmatched output line(s)", dropped)
    return results
