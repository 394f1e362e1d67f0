"""CLI commands for running red-green-refactor cycles."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer

from .config import DEFAULT_CONFIG_NAME, ConfigError, OrchestratorConfig, example_config, load_config, write_config
from .models import LLMClientError
from .orchestrator import CycleError, CycleReport, Orchestrator
from .tools.edits import EditError
from .tools.process import CommandError
from .tools.vcs import GitError

APP_HELP = "Orchestrate TDD with LLM roles: tester, implementor, refactorer."

LOGGER = logging.getLogger(__name__)

# Errors that end a run; anything else is a bug and keeps its traceback.
_RUN_ERRORS = (CycleError, LLMClientError, GitError, CommandError, EditError)

app = typer.Typer(help=APP_HELP, no_args_is_help=False)


@dataclass(slots=True)
class CliState:
    """Global options shared by every command."""

    project: Path
    config_path: Optional[Path]
    verbose: int


def configure_logging(verbosity: int) -> None:
    """Map ``-v`` counts onto logging levels."""
    level = logging.INFO if verbosity <= 0 else logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", force=True)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    project: Path = typer.Option(
        Path("."),
        "--project",
        "-p",
        help="Path to the kata project.",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to YAML (or .json) config with provider settings.",
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase verbosity (-v, -vv).",
    ),
) -> None:
    """Orchestrate TDD with LLM roles: tester, implementor, refactorer."""
    configure_logging(verbose)
    ctx.obj = CliState(project=project, config_path=config, verbose=verbose)
    if ctx.invoked_subcommand is None:
        _run(ctx.obj, continuous=False)


def _load(state: CliState) -> OrchestratorConfig:
    try:
        return load_config(state.config_path)
    except ConfigError as error:
        typer.echo(f"Error: {error}", err=True)
        raise typer.Exit(code=1) from error


def _build_orchestrator(state: CliState, config: OrchestratorConfig) -> Orchestrator:
    try:
        return Orchestrator(state.project, config)
    except (ConfigError, LLMClientError) as error:
        typer.echo(f"Error: {error}", err=True)
        raise typer.Exit(code=1) from error


def _render_report(report: CycleReport) -> None:
    typer.echo(f"Cycle {report.outcome.value}: {report.attempts} implementor attempt(s)")
    if report.preservation_branch:
        typer.echo(f"- Failed attempts preserved on {report.preservation_branch}")
    typer.echo(f"- HEAD: {report.final_head[:7]}")


def _run(state: CliState, *, continuous: bool) -> None:
    config = _load(state)
    orchestrator = _build_orchestrator(state, config)
    try:
        if continuous:
            orchestrator.run_forever(on_cycle=_render_report)
        else:
            _render_report(orchestrator.run_cycle())
    except _RUN_ERRORS as error:
        LOGGER.debug("Cycle aborted", exc_info=True)
        typer.echo(f"Error: {error}", err=True)
        raise typer.Exit(code=1) from error


@app.command("run-once")
def run_once(ctx: typer.Context) -> None:
    """Run the Red-Green-Refactor loop once (tester -> implementor -> refactorer)."""
    _run(ctx.obj, continuous=False)


@app.command("run")
def run(ctx: typer.Context) -> None:
    """Run continuously until stopped (Ctrl-C)."""
    _run(ctx.obj, continuous=True)


@app.command("init-config")
def init_config(
    out: Path = typer.Option(
        Path(DEFAULT_CONFIG_NAME),
        "--out",
        help="Where to write the sample config (a directory gets the default file name).",
    ),
) -> None:
    """Initialize a sample config file."""
    path = out / DEFAULT_CONFIG_NAME if out.is_dir() else out
    write_config(path, example_config())
    typer.echo(f"Wrote sample config to {path}")


if __name__ == "__main__":
    app()
