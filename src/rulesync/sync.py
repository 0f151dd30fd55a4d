"""Project and global synchronization built on the loader, formats, and executor."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from pydantic import BaseModel, Field

from .exceptions import RuleSyncError, SyncError
from .executor import execute_intents
from .formats import RULE_SEPARATOR, get_format
from .guard import PathGuard
from .loader import load_rules
from .models import ExecutionReport, ProjectConfig, Rule, SyncConfig, WriteIntent
from .paths import normalize_path

logger = logging.getLogger(__name__)

# Per-user instruction files read by each supported tool
GLOBAL_TARGETS = (
    "~/.claude/CLAUDE.md",
    "~/.gemini/AGENTS.md",
    "~/.config/opencode/AGENTS.md",
    "~/.codex/AGENTS.md",
)

# Source label for results and warnings produced by global sync
GLOBAL_SOURCE = "global"


class SyncResult(BaseModel):
    """Outcome of syncing one project."""

    project_path: str
    report: ExecutionReport = Field(default_factory=ExecutionReport)
    unmatched_patterns: list[str] = Field(default_factory=list)


def sync_project(
    project: ProjectConfig,
    rules_dir: str,
    dry_run: bool = False,
    verbose: bool = False,
    guard: PathGuard | None = None,
    echo: Callable[[str], None] | None = None,
) -> SyncResult:
    """Synchronize rules for a single project.

    Rules are loaded once and rendered by every configured format. The
    executor is restricted to exactly the planned paths unless a guard is
    supplied.

    Args:
        project: Project configuration
        rules_dir: Central rules directory
        dry_run: Plan and report without writing
        verbose: Emit one line per write
        guard: Optional guard overriding the planned-writes guard
        echo: Line sink for verbose output

    Returns:
        Sync result with the execution report and unmatched patterns

    Raises:
        UnknownFormatError: If a configured format is not registered
        SyncError: If a format fails to plan its writes
        PathSafetyError: If a planned path is rejected by the guard
        PatternLoadError: If a rule file cannot be read
        WriteError: If a write fails
    """
    logger.debug(
        "Starting sync of %s (formats=%s, dry_run=%s)",
        project.path,
        ",".join(project.formats),
        dry_run,
    )

    formats = [get_format(name) for name in project.formats]
    loaded = load_rules(rules_dir, project.rules)

    intents: list[WriteIntent] = []
    for output_format in formats:
        try:
            planned = output_format.plan(project.path, loaded.rules)
        except RuleSyncError as e:
            msg = f"Failed to process format '{output_format.name}'"
            raise SyncError(
                msg,
                details={"format": output_format.name, "project": project.path},
            ) from e
        logger.debug("Format %s planned %d writes", output_format.name, len(planned))
        intents.extend(planned)

    if not intents:
        return SyncResult(
            project_path=project.path,
            unmatched_patterns=loaded.unmatched_patterns,
        )

    planned_guard = guard or PathGuard.for_planned_writes(i.path for i in intents)
    report = execute_intents(
        intents,
        dry_run=dry_run,
        verbose=verbose,
        guard=planned_guard,
        echo=echo,
    )

    logger.info("Synced %s: %d files", project.path, len(report.written))
    return SyncResult(
        project_path=project.path,
        report=report,
        unmatched_patterns=loaded.unmatched_patterns,
    )


def _global_intents(rules: Sequence[Rule], targets: Sequence[str]) -> list[WriteIntent]:
    if not rules:
        return []
    content = RULE_SEPARATOR.join(rule.content for rule in rules)
    return [WriteIntent(path=normalize_path(target), content=content) for target in targets]


def plan_global_writes(
    rules_dir: str,
    patterns: list[str],
    targets: Sequence[str] = GLOBAL_TARGETS,
) -> list[WriteIntent]:
    """Plan the combined global rules written to each per-user target."""
    if not patterns:
        return []
    return _global_intents(load_rules(rules_dir, patterns).rules, targets)


def sync_global(
    config: SyncConfig,
    dry_run: bool = False,
    verbose: bool = False,
    targets: Sequence[str] = GLOBAL_TARGETS,
    echo: Callable[[str], None] | None = None,
) -> SyncResult:
    """Write the configured global rules to every per-user target file.

    Returns:
        Sync result labelled :data:`GLOBAL_SOURCE`, with any global
        patterns that matched no rule
    """
    if not config.global_rules:
        return SyncResult(project_path=GLOBAL_SOURCE)

    loaded = load_rules(config.rules_source, config.global_rules)
    intents = _global_intents(loaded.rules, targets)
    if not intents:
        return SyncResult(
            project_path=GLOBAL_SOURCE,
            unmatched_patterns=loaded.unmatched_patterns,
        )

    guard = PathGuard.for_planned_writes(intent.path for intent in intents)
    report = execute_intents(
        intents,
        dry_run=dry_run,
        verbose=verbose,
        guard=guard,
        echo=echo,
    )
    return SyncResult(
        project_path=GLOBAL_SOURCE,
        report=report,
        unmatched_patterns=loaded.unmatched_patterns,
    )
