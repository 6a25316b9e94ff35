"""Main Typer CLI application for testopia-runner."""

from __future__ import annotations

import signal
import sys
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from testopia_runner.build import Build, BuildResult, TestopiaBuilder
from testopia_runner.config import apply_settings, get_settings, load_config
from testopia_runner.core.exceptions import ConfigurationError, TestopiaError
from testopia_runner.formatting import FORMATTERS
from testopia_runner.logging import configure_logging
from testopia_runner.seekers import get_default_registry

app = typer.Typer(
    name="testopia-runner",
    help="Run Testopia automated test cases and publish their results",
    no_args_is_help=True,
)

EXIT_CODES = {
    BuildResult.SUCCESS: 0,
    BuildResult.UNSTABLE: 1,
    BuildResult.FAILURE: 2,
    BuildResult.ABORTED: 3,
}


def _setup_logging(log_level: str | None, json_logs: bool) -> None:
    settings = get_settings()
    configure_logging(
        log_level=log_level or settings.log_level,
        json_format=json_logs or settings.log_json_format,
    )


@app.command()
def run(
    config: Annotated[
        Path,
        typer.Argument(help="Path to the YAML job file"),
    ],
    workspace: Annotated[
        Path,
        typer.Option(
            "-w",
            "--workspace",
            help="Build workspace where steps run and reports are searched",
        ),
    ] = Path("."),
    build_id: Annotated[
        str | None,
        typer.Option(
            "--build-id",
            help="Identifier attached to log events",
            envvar="BUILD_NUMBER",
        ),
    ] = None,
    output_format: Annotated[
        str,
        typer.Option(
            "-f",
            "--output-format",
            help="Report format (text, markdown, json)",
        ),
    ] = "text",
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Log level (or set TESTOPIA_LOG_LEVEL)",
        ),
    ] = None,
    json_logs: Annotated[
        bool,
        typer.Option(
            "--json-logs",
            help="Emit structured logs as JSON",
        ),
    ] = False,
) -> None:
    """Run a build against a Testopia test run.

    Exit code is 0 for SUCCESS, 1 for UNSTABLE, 2 for FAILURE, 3 if aborted.
    """
    formatter = FORMATTERS.get(output_format)
    if formatter is None:
        typer.echo(f"Error: Unknown output format: {output_format}", err=True)
        raise typer.Exit(code=EXIT_CODES[BuildResult.FAILURE])

    _setup_logging(log_level, json_logs)
    try:
        runner_config = apply_settings(load_config(config), get_settings())
        builder = TestopiaBuilder.from_config(runner_config)
    except ConfigurationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=EXIT_CODES[BuildResult.FAILURE]) from e

    build = Build(workspace=workspace.resolve(), build_id=build_id or "", console=sys.stderr)
    previous = signal.signal(signal.SIGTERM, lambda signum, frame: build.request_abort())
    try:
        builder.perform(build)
    except TestopiaError as e:
        typer.echo(f"Error: {e}", err=True)
    finally:
        signal.signal(signal.SIGTERM, previous)

    if build.report is not None:
        typer.echo(formatter(build.report, result=build.result.name))
    raise typer.Exit(code=EXIT_CODES[build.result])


@app.command()
def seek(
    config: Annotated[
        Path,
        typer.Argument(help="Path to the YAML job file"),
    ],
    workspace: Annotated[
        Path,
        typer.Option(
            "-w",
            "--workspace",
            help="Directory searched for reports",
        ),
    ] = Path("."),
) -> None:
    """Show the status each report entry would push, without contacting Testopia."""
    _setup_logging(None, False)
    try:
        runner_config = load_config(config)
        registry = get_default_registry()
        seekers = [registry.create(s) for s in runner_config.job.result_seekers]
        rows = [
            (seeker.display_name, name, status.label, source)
            for seeker in seekers
            for name, status, source in seeker.preview(workspace)
        ]
    except TestopiaError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=EXIT_CODES[BuildResult.FAILURE]) from e

    table = Table(title="Resolved test results")
    for column in ("Seeker", "Name", "Status", "Report"):
        table.add_column(column)
    for row in rows:
        table.add_row(*row)
    Console(highlight=False).print(table)


def main() -> None:
    """Entry point for the Typer CLI."""
    app()
