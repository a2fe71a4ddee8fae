from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer

from strictify.config import StrictifyConfig, TomlTable, load_project_config
from strictify.exceptions import ConfigError, ProjectNotCompilingError
from strictify.reporting import Logger, build_logger
from strictify.repair.strategy import RepairMode
from strictify.runner import Runner

EXIT_OK = 0
EXIT_STALLED = 1
EXIT_PRECONDITION = 2

app = typer.Typer(add_completion=False, help="Repair python sources for stricter type checks.")


def _load_config_or_exit(
    project: Path,
    overrides: TomlTable,
    logger: Logger,
) -> StrictifyConfig:
    try:
        return load_project_config(project, overrides=overrides)
    except ConfigError as exc:
        logger.error(str(exc))
        raise typer.Exit(code=EXIT_PRECONDITION)


def _overrides(
    *,
    input_dir: Optional[Path] = None,
    mode: Optional[RepairMode] = None,
    format_output: Optional[bool] = None,
    max_iterations: Optional[int] = None,
    checks: Optional[List[str]] = None,
) -> TomlTable:
    return {
        "include": [str(input_dir.resolve())] if input_dir is not None else None,
        "mode": mode.value if mode is not None else None,
        "format": format_output,
        "max_iterations": max_iterations,
        "checks": list(checks) if checks else None,
    }


@app.command()
def upgrade(
    project: Path = typer.Option(..., "--project", "-p", help="Project config file or directory."),
    mode: Optional[RepairMode] = typer.Option(None, "--mode", "-m", case_sensitive=False),
    input_dir: Optional[Path] = typer.Option(None, "--input-dir", "-i"),
    log: Optional[Path] = typer.Option(None, "--log", "-l"),
    format_output: Optional[bool] = typer.Option(None, "--format/--no-format"),
    out_of_place: Optional[Path] = typer.Option(None, "--out-of-place"),
    report: Optional[Path] = typer.Option(None, "--report"),
    max_iterations: Optional[int] = typer.Option(None, "--max-iterations", min=1),
    check: Optional[List[str]] = typer.Option(None, "--check", "-c", help="Check flag to enable (repeatable)."),
) -> None:
    """Rewrite sources until the enabled checks pass or no progress is made."""
    logger = build_logger(log)
    config = _load_config_or_exit(
        project,
        _overrides(
            input_dir=input_dir,
            mode=mode,
            format_output=format_output,
            max_iterations=max_iterations,
            checks=check,
        ),
        logger,
    )
    runner = Runner(config, logger=logger, out_of_place=out_of_place, report_path=report)
    try:
        outcome = runner.upgrade()
    except ProjectNotCompilingError as exc:
        logger.error(str(exc))
        raise typer.Exit(code=EXIT_PRECONDITION)
    raise typer.Exit(code=outcome.exit_code)


@app.command()
def check(
    project: Path = typer.Option(..., "--project", "-p", help="Project config file or directory."),
    input_dir: Optional[Path] = typer.Option(None, "--input-dir", "-i"),
    log: Optional[Path] = typer.Option(None, "--log", "-l"),
    check_flag: Optional[List[str]] = typer.Option(None, "--check", "-c"),
) -> None:
    """Print the diagnostics of the enabled checks without editing anything."""
    logger = build_logger(log)
    config = _load_config_or_exit(
        project, _overrides(input_dir=input_dir, checks=check_flag), logger
    )
    runner = Runner(config, logger=logger)
    try:
        diagnostics = runner.check()
    except ProjectNotCompilingError as exc:
        logger.error(str(exc))
        raise typer.Exit(code=EXIT_PRECONDITION)
    for diagnostic in diagnostics:
        typer.echo(diagnostic.render())
    typer.echo(f"{len(diagnostics)} diagnostic(s)")
    raise typer.Exit(code=EXIT_STALLED if diagnostics else EXIT_OK)


def main() -> None:
    app()
