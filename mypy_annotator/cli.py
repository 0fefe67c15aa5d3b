"""CLI entry point for standalone usage: mypy-annotate.

Subcommands:
    mypy-annotate check a.py b.py          # Batch-inspect files, print diagnostics
    mypy-annotate check --summary a.py     # ... and the inspection state summary
    mypy-annotate doctor                   # Report checker availability
"""

from __future__ import annotations

import asyncio
import dataclasses
import sys
from pathlib import Path

import click

from mypy_annotator.checker.mypy_runner import MypyRunner
from mypy_annotator.core.config import CheckerContext
from mypy_annotator.core.logging import LOG_FORMATS, setup_logging
from mypy_annotator.inspection import MypyInspection
from mypy_annotator.inspector import MypyInspector
from mypy_annotator.messages import message
from mypy_annotator.models.buffer import Buffer
from mypy_annotator.progress import InspectionTracker


class ConsoleNotifier:
    """UserNotifier that writes to stderr."""

    def warn(self, project: str, text: str) -> None:
        click.echo(f"warning [{project}]: {text}", err=True)

    def report_exception(self, project: str, exc: BaseException) -> None:
        click.echo(f"error [{project}]: {message('mypy.exception', exc)}", err=True)


def _build_context(
    project_root: str | None,
    mypy: str | None,
    config_file: str | None,
    mypy_args: tuple[str, ...],
    timeout: float | None,
) -> CheckerContext:
    """Environment defaults, overridden by explicit CLI flags."""
    context = CheckerContext.from_env(project_root)
    overrides: dict = {}
    if mypy:
        overrides["executable"] = mypy
    if config_file:
        overrides["config_file"] = Path(config_file).resolve()
    if mypy_args:
        overrides["arguments"] = context.arguments + tuple(mypy_args)
    if timeout is not None:
        overrides["inspection_timeout"] = timeout
        overrides["process_timeout"] = max(context.process_timeout, timeout)
    return dataclasses.replace(context, **overrides) if overrides else context


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
@click.option("--log-format", type=click.Choice(LOG_FORMATS), default=None,
              help="Log renderer (default: $MYPY_ANNOTATOR_LOG_FORMAT or console)")
def main(verbose: bool, log_format: str | None) -> None:
    """mypy-annotate: run mypy and report position-anchored diagnostics."""
    setup_logging("DEBUG" if verbose else "WARNING", log_format)


_common_options = [
    click.option("--project-root", default=None, type=click.Path(file_okay=False),
                 help="Directory mypy runs in (default: cwd)"),
    click.option("--mypy", default=None, help="mypy executable (default: $MYPY_ANNOTATOR_PATH or mypy)"),
    click.option("--config-file", default=None, type=click.Path(dir_okay=False),
                 help="mypy config file"),
    click.option("--mypy-arg", "mypy_args", multiple=True, help="Extra argument passed to mypy"),
    click.option("--timeout", default=None, type=float, help="Inspection timeout in seconds"),
]


def common_options(func):
    for option in reversed(_common_options):
        func = option(func)
    return func


@main.command("check")
@common_options
@click.option("--summary", is_flag=True, help="Print the inspection state summary")
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
def check(
    project_root: str | None,
    mypy: str | None,
    config_file: str | None,
    mypy_args: tuple[str, ...],
    timeout: float | None,
    summary: bool,
    files: tuple[str, ...],
) -> None:
    """Check FILES in one mypy batch and print their diagnostics."""
    context = _build_context(project_root, mypy, config_file, mypy_args, timeout)
    runner = MypyRunner()
    if not runner.check_available(context):
        click.echo(f"Error: {message('mypy.not-available')}", err=True)
        sys.exit(2)

    buffers = []
    for f in files:
        try:
            buffers.append(Buffer.from_file(f))
        except UnicodeDecodeError as exc:
            click.echo(f"Error: cannot decode {f}: {exc}", err=True)
            sys.exit(2)

    inspection = MypyInspection(MypyInspector(context, runner=runner, notifier=ConsoleNotifier()))
    tracker = InspectionTracker()
    descriptors = asyncio.run(inspection.check_files(buffers, tracker=tracker))

    for d in descriptors:
        click.echo(d.format())

    if summary:
        s = tracker.get_summary()
        click.echo(f"\nInspection summary (total: {s['total_duration']}s):")
        for state in s["states"]:
            detail = f" - {state['detail']}" if state["detail"] else ""
            click.echo(f"  [{state['elapsed']:>7}s] {state['state']}{detail}")

    if any(not d.suppress_errors for d in descriptors):
        sys.exit(1)


@main.command("doctor")
@common_options
def doctor(
    project_root: str | None,
    mypy: str | None,
    config_file: str | None,
    mypy_args: tuple[str, ...],
    timeout: float | None,
) -> None:
    """Report whether mypy can be invoked with the current settings."""
    context = _build_context(project_root, mypy, config_file, mypy_args, timeout)
    runner = MypyRunner()
    click.echo(f"Project root: {context.project_root}")
    click.echo(f"Executable: {context.executable} -> {runner.resolve_executable(context) or 'not found'}")
    click.echo(f"Config file: {context.config_file or '-'}")
    click.echo(f"Arguments: {' '.join(context.arguments) or '-'}")
    click.echo(f"Timeouts: process={context.process_timeout}s inspection={context.inspection_timeout}s")
    if runner.check_available(context):
        click.echo("Status: available")
    else:
        click.echo(f"Status: {message('mypy.not-available')}")
        sys.exit(2)


if __name__ == "__main__":
    main()
