"""RuleSync command-line interface."""

from __future__ import annotations

import logging
import sys
from functools import partial
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from .config import create_sample_config, find_project_for_path, get_default_config_path, load_config
from .exceptions import RuleSyncError
from .models import ProjectConfig
from .reporting import ProjectReport, porcelain_lines, render_project_reports, render_verification
from .sync import GLOBAL_SOURCE, sync_global, sync_project
from .verifier import verify_rules

app = typer.Typer(
    name="rulesync",
    help="RuleSync: distribute central Markdown rules to AI tool formats",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)


def _get_version_string() -> str:
    """Get version string from package metadata."""
    try:
        return get_version("rulesync")
    except PackageNotFoundError:
        return "unknown"


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def version_callback(value: bool) -> None:
    """Callback for --version flag."""
    if value:
        console.print(f"RuleSync version {_get_version_string()}")
        raise typer.Exit


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """RuleSync: distribute central Markdown rules to AI tool formats."""


@app.command()
def init(
    path: Path | None = typer.Option(
        None,
        "--path",
        "-p",
        help="Where to write the config (defaults to the standard location)",
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite an existing config file",
    ),
) -> None:
    """Create a sample configuration file."""
    target = path or Path(get_default_config_path())
    try:
        written = create_sample_config(target, force=force)
    except RuleSyncError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        console.print("Use --force to overwrite it.")
        raise typer.Exit(1) from e
    except OSError as e:
        console.print(f"[red]Error:[/red] Failed to write config: {e}")
        raise typer.Exit(1) from e

    console.print(f"[green]✓[/green] Sample config written to {written}")
    console.print("\nNext steps:")
    console.print(f"  1. Edit projects and rulesSource in {written}")
    console.print("  2. Add Markdown rules to the rules source directory")
    console.print("  3. Run 'rulesync sync' to generate project files")


@app.command()
def sync(
    config_path: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file path (defaults to $RULESYNC_CONFIG or the standard location)",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        "-n",
        help="Show what would be written without writing files",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show every file written and debug logging",
    ),
    porcelain: bool = typer.Option(
        False,
        "--porcelain",
        help="Print machine-readable TSV (ACTION, SOURCE, DETAIL) to stdout",
    ),
) -> None:
    """Synchronize rules into every configured project."""
    verbose = verbose and not porcelain
    _configure_logging(verbose)
    try:
        config = load_config(config_path)
    except RuleSyncError as e:
        (err_console if porcelain else console).print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    echo = partial(console.print, markup=False, highlight=False) if verbose else None
    reports: list[ProjectReport] = []

    try:
        result = sync_global(config, dry_run=dry_run, verbose=verbose, echo=echo)
        if config.global_rules:
            reports.append(ProjectReport(project_path=GLOBAL_SOURCE, result=result))
    except RuleSyncError as e:
        reports.append(ProjectReport(project_path=GLOBAL_SOURCE, error=e))

    for project in config.projects:
        try:
            result = sync_project(
                project,
                config.rules_source,
                dry_run=dry_run,
                verbose=verbose,
                echo=echo,
            )
            reports.append(ProjectReport(project_path=project.path, result=result))
        except RuleSyncError as e:
            reports.append(ProjectReport(project_path=project.path, error=e))

    if porcelain:
        for line in porcelain_lines(reports):
            typer.echo(line)
        failed = [report for report in reports if report.failed]
        for report in failed:
            err_console.print(
                f"[red]Error:[/red] {escape(report.project_path)}: {escape(str(report.error))}",
            )
        if failed:
            raise typer.Exit(1)
        return

    ok = render_project_reports(reports, console, dry_run=dry_run, show_paths=verbose)
    if not ok:
        raise typer.Exit(1)


@app.command()
def verify(
    config_path: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Config file path (defaults to $RULESYNC_CONFIG or the standard location)",
    ),
    project_path: Path | None = typer.Option(
        None,
        "--project",
        "-p",
        help="Only verify the configured project containing this path",
    ),
) -> None:
    """Check configured projects for drift from the central rules."""
    try:
        config = load_config(config_path)

        projects: list[ProjectConfig]
        if project_path is not None:
            match = find_project_for_path(str(project_path), config)
            if match is None:
                console.print(
                    f"[red]Error:[/red] No configured project contains {escape(str(project_path))}",
                )
                raise typer.Exit(1)
            projects = [match]
        else:
            projects = list(config.projects)

        drift = False
        for project in projects:
            for format_name in project.formats:
                result = verify_rules(
                    project.path,
                    format_name,
                    project.rules,
                    config.rules_source,
                )
                render_verification(project.path, format_name, result, console)
                drift = drift or not result.synced

    except RuleSyncError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    if drift:
        console.print("\nRun 'rulesync sync' to regenerate drifted files.")
        raise typer.Exit(1)


@app.command("config-path")
def config_path_command() -> None:
    """Print the config file path in use."""
    console.print(get_default_config_path())


@app.command()
def version() -> None:
    """Show RuleSync version information."""
    console.print(f"RuleSync version {_get_version_string()}")


def main() -> None:
    """Entry point for the CLI."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    main()
