"""Checker configuration threaded explicitly through every scan."""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_EXECUTABLE = "mypy"
DEFAULT_PROCESS_TIMEOUT = 60.0  # seconds the mypy process may run
DEFAULT_INSPECTION_TIMEOUT = 30.0  # seconds an inspection waits for its scan
SUPPORTED_SUFFIXES = frozenset({".py", ".pyi"})


def _env_float(key: str, default: float) -> float:
    return float(os.environ.get(key, default))


@dataclass(frozen=True)
class CheckerContext:
    """Everything a scan needs to know about the checker and the project.

    One context is built per editing session and passed into each
    ``inspect``/``scan`` call.
    """

    project_root: Path
    executable: str = DEFAULT_EXECUTABLE
    config_file: Path | None = None
    arguments: tuple[str, ...] = ()
    process_timeout: float = DEFAULT_PROCESS_TIMEOUT
    inspection_timeout: float = DEFAULT_INSPECTION_TIMEOUT
    supported_suffixes: frozenset[str] = field(default=SUPPORTED_SUFFIXES)

    @property
    def project_name(self) -> str:
        return self.project_root.name or str(self.project_root)

    @classmethod
    def from_env(cls, project_root: str | Path | None = None) -> CheckerContext:
        """Build a context from environment variables.

        Reads:
            MYPY_ANNOTATOR_PATH               — mypy executable (default: mypy)
            MYPY_ANNOTATOR_CONFIG_FILE        — mypy config file
            MYPY_ANNOTATOR_ARGS               — extra arguments, shell-split
            MYPY_ANNOTATOR_PROCESS_TIMEOUT    — default 60
            MYPY_ANNOTATOR_INSPECTION_TIMEOUT — default 30
        """
        root = Path(project_root) if project_root else Path.cwd()
        config_file = os.environ.get("MYPY_ANNOTATOR_CONFIG_FILE")
        return cls(
            project_root=root.resolve(),
            executable=os.environ.get("MYPY_ANNOTATOR_PATH", DEFAULT_EXECUTABLE),
            config_file=Path(config_file) if config_file else None,
            arguments=tuple(shlex.split(os.environ.get("MYPY_ANNOTATOR_ARGS", ""))),
            process_timeout=_env_float(
                "MYPY_ANNOTATOR_PROCESS_TIMEOUT", DEFAULT_PROCESS_TIMEOUT
            ),
            inspection_timeout=_env_float(
                "MYPY_ANNOTATOR_INSPECTION_TIMEOUT", DEFAULT_INSPECTION_TIMEOUT
            ),
        )
