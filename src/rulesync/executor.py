"""Applies planned writes to disk."""

from __future__ import annotations

import logging
import os
import uuid
from collections.abc import Callable, Sequence
from pathlib import Path

from .exceptions import WriteError
from .guard import PathGuard
from .models import ExecutionReport, WriteIntent
from .paths import normalize_path

logger = logging.getLogger(__name__)


def _write_atomic(path: str, content: str) -> None:
    """Write to a temp file beside ``path`` then rename over it."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = target.parent / f".{uuid.uuid4().hex}.tmp"
    try:
        with tmp.open("x", encoding="utf-8", newline="") as handle:
            handle.write(content)
        os.replace(tmp, target)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


def execute_intents(
    intents: Sequence[WriteIntent],
    dry_run: bool = False,
    verbose: bool = False,
    guard: PathGuard | None = None,
    echo: Callable[[str], None] | None = None,
) -> ExecutionReport:
    """Apply write intents in order, stopping at the first failure.

    Every path is normalized and checked against ``guard`` before any write
    happens, so a bad entry late in the batch aborts it untouched.

    Args:
        intents: Planned writes
        dry_run: Report what would be written without touching the filesystem
        verbose: Emit one line per intent through ``echo``
        guard: Guard each path must pass; omitted means no extra check
        echo: Line sink for verbose output, defaults to the module logger

    Returns:
        Report listing every written (or would-be written) path

    Raises:
        InvalidPathError: If an intent has an empty path
        OutsideAllowedRootsError: If the guard rejects an intent's path
        WriteError: If writing a file fails
    """
    report = ExecutionReport()
    if not intents:
        return report

    emit = echo or logger.info

    normalized: list[tuple[str, str]] = []
    for intent in intents:
        path = guard.validate(intent.path) if guard else normalize_path(intent.path)
        normalized.append((path, intent.content))

    for path, content in normalized:
        if dry_run:
            if verbose:
                emit(f"[Dry-run] [Write] {path}")
            report.written.append(path)
            continue

        if verbose:
            emit(f"Writing to: {path}")
        try:
            _write_atomic(path, content)
        except OSError as e:
            raise WriteError(path, action="write") from e
        report.written.append(path)

    logger.debug("Executed %d writes (dry_run=%s)", len(report.written), dry_run)
    return report
