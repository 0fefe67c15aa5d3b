"""Cooperative cancellation shared between the event loop and scan workers."""

from __future__ import annotations

import threading

from mypy_annotator.exceptions import ScanCancelledError


class CancellationToken:
    """Thread-safe cancellation flag.

    The editor cancels it when a request is superseded or its file closes;
    scan workers poll it between stages.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._reason = ""

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ScanCancelledError(self._reason)
