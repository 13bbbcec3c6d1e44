"""CLI for git_folder_triage."""

import contextlib
import logging
import os
import subprocess
import sys
from collections.abc import Iterator
from pathlib import Path
from typing import Annotated

import typer
from click.exceptions import UsageError
from git import GitError, Repo

from . import __version__
from .errors import SuppressionStoreUnreadable
from .format import (
    LEGEND,
    REPORT_FORMATS,
    REPORT_FORMATS_TYPE,
    format_report,
    status_line,
)
from .scan import DEFAULT_CONCURRENCY, scan_outcomes
from .snooze import snooze_project
from .status import ProjectStatus

app = typer.Typer()

PROMPT = "\n(s)tatus, (i)gnore, (n)ext, (e)xecute shell, (q)uit: "


def _version_callback(value: bool) -> None:  # noqa: FBT001
    if value:
        print(f"git-folder-triage {__version__}")
        raise typer.Exit(0)


@contextlib.contextmanager
def _log_to_stderr(level: int) -> Iterator[None]:
    logger = logging.getLogger("git_folder_triage")
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    previous_level = logger.level
    logger.addHandler(handler)
    logger.setLevel(level)
    try:
        yield
    finally:
        logger.removeHandler(handler)
        logger.setLevel(previous_level)


def _show_status(project: ProjectStatus) -> None:
    try:
        with Repo(project.path) as repo:
            print(f"\n{repo.git.status()}")
    except GitError as e:
        print(f"Error getting status: {e}")


def _snooze(project: ProjectStatus, args: list[str], scan_root: Path) -> None:
    if not args:
        print("Usage: i <duration> [check]")
        return
    duration = args[0]
    check = args[1] if len(args) > 1 else "all"
    try:
        until = snooze_project(project.path, duration, check, scan_root)
    except (ValueError, SuppressionStoreUnreadable) as e:
        print(f"Can't snooze: {e}")
    else:
        print(f"Snoozed {check} for {project.name} until {until}")


def _open_shell(project: ProjectStatus) -> None:
    shell = os.environ.get("SHELL") or "/bin/bash"
    try:
        subprocess.run([shell], cwd=project.path, check=False)  # noqa: S603
    except OSError as e:
        print(f"Error starting subshell: {e}")


def visit_projects(projects: list[ProjectStatus], scan_root: Path) -> None:
    """Walk through each project that needs attention."""
    for i, project in enumerate(projects, 1):
        while True:
            print(f"\nProject {i}/{len(projects)}: {project.name}")
            try:
                line = input(PROMPT)
            except EOFError:
                return
            parts = line.strip().lower().split()
            if not parts:
                continue
            command, args = parts[0], parts[1:]
            if command == "n":
                break
            if command == "q":
                return
            if command == "s":
                _show_status(project)
            elif command == "i":
                _snooze(project, args, scan_root)
            elif command == "e":
                _open_shell(project)
            else:
                print("Invalid command.")


@app.command()
def git_folder_triage(  # noqa: PLR0913
    directory: Annotated[Path, typer.Argument(help="directory to check")] = Path(),
    *,
    stat: Annotated[
        bool,
        typer.Option("-s", "--stat", help="show the changes of dirty repos"),
    ] = False,
    concurrency: Annotated[
        int,
        typer.Option(
            "-c", "--concurrency", min=1, help="max number of repos checked at once"
        ),
    ] = DEFAULT_CONCURRENCY,
    fmt: Annotated[
        str, typer.Option("-f", "--format", help="output format")
    ] = "report",
    empty: Annotated[
        bool, typer.Option("-e", "--empty", help="show also repos without issues")
    ] = False,
    interactive: Annotated[
        bool | None,
        typer.Option(
            "--interactive/--no-interactive",
            "-i",
            help="visit the repos with issues [default: on if stdin is a tty]",
            show_default=False,
        ),
    ] = None,
    verbose: Annotated[
        bool, typer.Option("-v", "--verbose", help="show debug messages")
    ] = False,
    quiet: Annotated[
        bool, typer.Option("-q", "--quiet", help="show only warnings")
    ] = False,
    version: Annotated[  # noqa: ARG001
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=_version_callback,
            is_eager=True,
            help="Print version",
        ),
    ] = None,
) -> int:
    """Find repos with uncommitted, stashed or unpushed work in a directory."""
    if fmt not in REPORT_FORMATS:
        raise UsageError(f"format must be one of {REPORT_FORMATS}")
    fmt_report: REPORT_FORMATS_TYPE = fmt  # type: ignore[assignment]
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    with _log_to_stderr(level):
        try:
            outcomes = scan_outcomes(directory, concurrency, show_changes=stat)
        except OSError as e:
            print(f"Error reading directory {directory}: {e}", file=sys.stderr)
            raise typer.Exit(1) from e

        if fmt_report == "report":
            print(LEGEND)
        statuses: list[ProjectStatus] = []
        for outcome in outcomes:
            if outcome.status is None:
                continue
            statuses.append(outcome.status)
            if fmt_report == "report" and (empty or not outcome.status.clean):
                print(status_line(outcome.status))
        to_visit = [s for s in statuses if not s.clean]
        if fmt_report == "report":
            print(
                f"\n{len(to_visit)} projects need attention, "
                f"{len(statuses) - len(to_visit)} clean"
            )
        else:
            print(format_report(statuses, include_ok=empty, fmt=fmt_report))

        if interactive is None:
            interactive = sys.stdin.isatty()
        if interactive and to_visit:
            visit_projects(to_visit, directory)
    return 0
