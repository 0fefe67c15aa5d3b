"""Custom exceptions for mypy-annotator."""


class AnnotatorError(Exception):
    """Base exception for all annotator errors."""


class ScanParseError(AnnotatorError):
    """Raised when a buffer's content cannot be prepared for the checker."""


class CheckerProcessError(AnnotatorError):
    """Raised when the checker process fails or cannot be started."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = ""):
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


class CheckerTimeoutError(CheckerProcessError):
    """Raised when the checker process exceeds its own time limit."""


class ScanCancelledError(AnnotatorError):
    """Raised when a scan observes a cancelled token."""


class ScanTimeoutError(ScanCancelledError):
    """Raised when waiting for a scan exceeds the inspection timeout."""


class ScanReuseError(AnnotatorError):
    """Raised when a single-use scan is called a second time."""


class InvalidTransitionError(AnnotatorError):
    """Raised when an inspection moves to a state it cannot reach."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move inspection from {current} to {target}")
