"""mypy-annotator: mypy diagnostics for interactive editors."""

__version__ = "0.1.0"

from mypy_annotator.annotator import AnnotationResults, AnnotationState, MypyAnnotator
from mypy_annotator.cancellation import CancellationToken
from mypy_annotator.checker.base import CheckerRunner
from mypy_annotator.checker.mypy_runner import MypyRunner
from mypy_annotator.checker.scan_files import ScanFiles
from mypy_annotator.checker.scannable import ScannableFile, ScannableFileSet
from mypy_annotator.core.config import CheckerContext
from mypy_annotator.inspection import MypyInspection, ProblemDescriptor
from mypy_annotator.inspector import FailureKind, MypyInspector, classify_failure
from mypy_annotator.models.buffer import Buffer, BufferStore, FileSystemBufferStore
from mypy_annotator.models.problem import (
    Anchor,
    AnnotationSink,
    HighlightSeverity,
    Problem,
    SeverityLevel,
)
from mypy_annotator.progress import InspectionState, InspectionTracker

__all__ = [
    "Anchor",
    "AnnotationResults",
    "AnnotationSink",
    "AnnotationState",
    "Buffer",
    "BufferStore",
    "CancellationToken",
    "CheckerContext",
    "CheckerRunner",
    "FailureKind",
    "FileSystemBufferStore",
    "HighlightSeverity",
    "InspectionState",
    "InspectionTracker",
    "MypyAnnotator",
    "MypyInspection",
    "MypyInspector",
    "MypyRunner",
    "Problem",
    "ProblemDescriptor",
    "ScanFiles",
    "ScannableFile",
    "ScannableFileSet",
    "SeverityLevel",
    "classify_failure",
]
