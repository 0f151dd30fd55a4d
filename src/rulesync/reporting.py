"""Terminal rendering of sync and verification results."""

from __future__ import annotations

from dataclasses import dataclass

from rich.console import Console
from rich.markup import escape

from .models import IssueType, VerificationResult
from .sync import GLOBAL_SOURCE, SyncResult


@dataclass
class ProjectReport:
    """Sync outcome for one project, successful or not."""

    project_path: str
    result: SyncResult | None = None
    error: Exception | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def written(self) -> list[str]:
        return self.result.report.written if self.result else []


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}" if count == 1 else f"{count} {noun}s"


def render_project_reports(
    reports: list[ProjectReport],
    console: Console,
    dry_run: bool = False,
    show_paths: bool = False,
) -> bool:
    """Print a report for every project.

    Returns:
        True if every project succeeded
    """
    console.print("\n[bold]RuleSync Report[/bold]")

    all_ok = True
    for project in reports:
        if project.project_path == GLOBAL_SOURCE:
            console.print("\n[bold]Global rules[/bold]")
        else:
            console.print(f"\n[bold]Project:[/bold] {escape(project.project_path)}")
        if project.failed:
            all_ok = False
            console.print("  [red]✗ Failed[/red]")
        else:
            console.print("  [green]✓ Success[/green]")

        if project.written:
            console.print(f"  Written: {_plural(len(project.written), 'file')}")
            if show_paths:
                for path in project.written:
                    console.print(f"    - {escape(path)}")

        unmatched = project.result.unmatched_patterns if project.result else []
        for pattern in unmatched:
            console.print(
                f"  [yellow]Warning:[/yellow] pattern '{escape(pattern)}' matched no rules",
            )

        if project.error is not None:
            console.print(f"  [red]Error:[/red] {escape(str(project.error))}")
            if project.error.__cause__ is not None:
                console.print(f"    Cause: {escape(str(project.error.__cause__))}")

    if dry_run:
        console.print("\n[blue]Dry-run mode: no changes were applied[/blue]")

    return all_ok


def porcelain_lines(reports: list[ProjectReport]) -> list[str]:
    """Machine-readable TSV rows for a sync run.

    A header is followed by sorted ``WRITE`` rows for every written path,
    then ``WARN`` rows for unmatched patterns ordered by source. Failed
    sources contribute no rows.
    """
    lines = ["ACTION\tSOURCE\tDETAIL"]
    written = sorted(path for report in reports for path in report.written)
    lines.extend(f"WRITE\t\t{path}" for path in written)

    for report in sorted(reports, key=lambda r: r.project_path):
        unmatched = report.result.unmatched_patterns if report.result else []
        lines.extend(f"WARN\t{report.project_path}\t{pattern}" for pattern in unmatched)
    return lines


_ISSUE_STYLES = {
    IssueType.MISSING: "red",
    IssueType.MODIFIED: "yellow",
    IssueType.EXTRA: "magenta",
}


def render_verification(
    project_path: str,
    format_name: str,
    result: VerificationResult,
    console: Console,
) -> None:
    """Print the verification outcome of one project/format pair."""
    if result.synced:
        console.print(f"[green]✓[/green] {format_name} in sync: {escape(project_path)}")
        return

    console.print(f"[red]✗[/red] {format_name} drifted: {escape(project_path)}")
    for issue in result.issues:
        style = _ISSUE_STYLES[issue.type]
        console.print(f"  [{style}]{issue.type.value:<8}[/{style}] {escape(issue.path)}")
