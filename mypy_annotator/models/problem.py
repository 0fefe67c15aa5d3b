"""Diagnostic data types produced by the output parser."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from mypy_annotator.messages import message
from mypy_annotator.models.buffer import Buffer


class SeverityLevel(Enum):
    """Severity as reported by mypy."""

    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"

    @classmethod
    def from_token(cls, token: str) -> SeverityLevel | None:
        try:
            return cls(token.strip().lower())
        except ValueError:
            return None


class HighlightSeverity(Enum):
    """Severity in the UI-facing space. NOTE has no level of its own."""

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Anchor:
    """A text range in a buffer, captured at scan time."""

    buffer: Buffer
    start: int
    end: int
    stamp: int = 0

    @property
    def is_valid(self) -> bool:
        """False once the buffer is closed or the range no longer fits its text."""
        return self.buffer.is_valid and 0 <= self.start <= self.end <= len(self.buffer.text)

    @property
    def is_stale(self) -> bool:
        return self.buffer.modification_stamp != self.stamp

    @property
    def text(self) -> str:
        return self.buffer.text[self.start : self.end]


@dataclass(frozen=True)
class Problem:
    """One mypy diagnostic anchored in a buffer.

    Equality covers every field, so duplicate diagnostics collapse in sets.
    """

    anchor: Anchor
    message: str
    severity: SeverityLevel
    line: int
    column: int
    after_end_of_line: bool = False
    suppress_errors: bool = False

    @property
    def buffer(self) -> Buffer:
        return self.anchor.buffer

    @property
    def highlight_severity(self) -> HighlightSeverity:
        if self.severity is SeverityLevel.ERROR:
            return HighlightSeverity.ERROR
        # NOTE has no highlight level of its own
        return HighlightSeverity.WARNING

    @property
    def annotation_message(self) -> str:
        return message("inspection.message", self.message)

    def create_annotation(self, sink: AnnotationSink) -> None:
        sink.publish(self.buffer, self)


class AnnotationSink(Protocol):
    """UI-facing delivery of problems, rendered at (line, column)."""

    def publish(self, buffer: Buffer, problem: Problem) -> None: ...
