"""Mypy invoker — runs the mypy executable as a subprocess.

Requires mypy on PATH or an explicit executable in CheckerContext.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import time
from collections.abc import Sequence

from mypy_annotator.cancellation import CancellationToken
from mypy_annotator.checker.base import CheckerRunner
from mypy_annotator.checker.output_parser import has_diagnostics
from mypy_annotator.core.config import CheckerContext
from mypy_annotator.exceptions import (
    CheckerProcessError,
    CheckerTimeoutError,
    ScanCancelledError,
)

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.1  # seconds between cancellation checks

# Output shape the parser expects: one "path:line:col: severity: message" per line
MYPY_FIXED_ARGS = (
    "--show-column-numbers",
    "--no-error-summary",
    "--hide-error-context",
    "--hide-error-codes",
    "--no-color-output",
    "--no-pretty",
    "--follow-imports",
    "silent",
)

# 0 = clean, 1 = type errors found, 2 = blocking errors (syntax) or a crash
_OK_RETURNCODES = (0, 1)
_BLOCKING_RETURNCODE = 2


class MypyRunner(CheckerRunner):
    """
    Subprocess-based mypy invoker.

    Workflow:
        ScannableFile paths -> mypy --show-column-numbers ... <paths>
            -> stdout (one diagnostic per line) -> output_parser
    """

    @property
    def name(self) -> str:
        return "mypy"

    def resolve_executable(self, context: CheckerContext) -> str | None:
        exe = context.executable
        if os.path.isabs(exe):
            return exe if os.path.isfile(exe) and os.access(exe, os.X_OK) else None
        return shutil.which(exe)

    def check_available(self, context: CheckerContext) -> bool:
        if self.resolve_executable(context) is None:
            logger.debug("mypy executable not found: %s", context.executable)
            return False
        if context.config_file is not None and not context.config_file.is_file():
            logger.debug("mypy config file not found: %s", context.config_file)
            return False
        return True

    def build_command(self, executable: str, paths: Sequence[str], context: CheckerContext) -> list[str]:
        cmd = [executable, *MYPY_FIXED_ARGS]
        if context.config_file is not None:
            cmd += ["--config-file", str(context.config_file)]
        cmd += list(context.arguments)
        cmd += list(paths)
        return cmd

    def run(
        self,
        paths: Sequence[str],
        context: CheckerContext,
        token: CancellationToken | None = None,
    ) -> str:
        executable = self.resolve_executable(context) or context.executable
        cmd = self.build_command(executable, paths, context)

        logger.info("Running mypy on %d file(s)", len(paths))
        logger.debug("mypy command: %s", " ".join(cmd))
        try:
            proc = subprocess.Popen(
                cmd,
                cwd=str(context.project_root),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except OSError as exc:
            raise CheckerProcessError(f"Failed to start mypy ({executable}): {exc}") from exc

        stdout, stderr = self._communicate(proc, context.process_timeout, token)

        if _is_blocking_report(proc.returncode, stdout, stderr):
            logger.debug("mypy reported blocking errors; keeping its diagnostics")
            return stdout
        if proc.returncode not in _OK_RETURNCODES:
            tail = stderr[-2000:] if stderr else ""
            logger.warning("mypy exited with %s: %s", proc.returncode, tail)
            raise CheckerProcessError(
                f"mypy exited with status {proc.returncode}: {tail or stdout[-500:]}",
                returncode=proc.returncode,
                stderr=tail,
            )
        return stdout

    def _communicate(
        self,
        proc: subprocess.Popen,
        timeout: float,
        token: CancellationToken | None,
    ) -> tuple[str, str]:
        """Wait for *proc*, killing it on cancellation or timeout."""
        deadline = time.monotonic() + timeout
        while True:
            try:
                return proc.communicate(timeout=POLL_INTERVAL)
            except subprocess.TimeoutExpired:
                pass
            if token is not None and token.is_cancelled:
                self._kill(proc)
                raise ScanCancelledError(f"mypy run cancelled: {token.reason}")
            if time.monotonic() >= deadline:
                self._kill(proc)
                raise CheckerTimeoutError(f"mypy timed out after {timeout}s")

    @staticmethod
    def _kill(proc: subprocess.Popen) -> None:
        proc.kill()
        try:
            proc.communicate(timeout=5)
        except subprocess.TimeoutExpired:
            logger.warning("mypy process %s did not exit after kill", proc.pid)


def _is_blocking_report(returncode: int, stdout: str, stderr: str) -> bool:
    """Exit 2 with diagnostics on stdout and a quiet stderr is a syntax report, not a crash."""
    return returncode == _BLOCKING_RETURNCODE and not stderr.strip() and has_diagnostics(stdout)
