"""User-facing notification channel."""

from __future__ import annotations

from typing import Protocol

import structlog

log = structlog.get_logger("mypy_annotator.notifications")


class UserNotifier(Protocol):
    """Fire-and-forget side channel to the user; never part of the scan result."""

    def warn(self, project: str, message: str) -> None: ...

    def report_exception(self, project: str, exc: BaseException) -> None: ...


class LoggingNotifier:
    """Default notifier: routes notifications into the structured log."""

    def warn(self, project: str, message: str) -> None:
        log.warning("notification.warning", project=project, message=message)

    def report_exception(self, project: str, exc: BaseException) -> None:
        log.error(
            "notification.exception",
            project=project,
            error=f"{type(exc).__name__}: {exc}",
            exc_info=exc,
        )
