"""Abstract base class for checker invokers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from mypy_annotator.cancellation import CancellationToken
from mypy_annotator.core.config import CheckerContext


class CheckerRunner(ABC):
    """
    Runs the type checker over a prepared batch of files.
    The scan pipeline treats it as one blocking text-in/text-out call.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Checker identifier, e.g. 'mypy'."""
        ...

    @abstractmethod
    def check_available(self, context: CheckerContext) -> bool:
        """Cheap precondition: can the checker be invoked at all?"""
        ...

    @abstractmethod
    def run(
        self,
        paths: Sequence[str],
        context: CheckerContext,
        token: CancellationToken | None = None,
    ) -> str:
        """
        Check *paths* in one invocation.

        Args:
            paths: Absolute paths of the files the checker should read.
            context: Checker configuration.
            token: Cancellation token polled while the process runs.

        Returns:
            Raw line-oriented checker output.
        """
        ...
