"""Drift detection between planned output and what a project contains."""

from __future__ import annotations

import re
from pathlib import Path

from .formats import MultiFileFormat, get_format
from .loader import load_rules
from .models import IssueType, VerificationIssue, VerificationResult
from .paths import normalize_path

_LINE_ENDINGS = re.compile(r"\r\n?")


def normalize_content(text: str) -> str:
    """Normalize text so editor and platform differences do not count as drift.

    Line endings become LF, trailing whitespace is stripped from each line,
    and blank lines are trimmed from both ends of the document. Leading
    indentation is kept since it is meaningful in code blocks.
    """
    unified = _LINE_ENDINGS.sub("\n", text)
    lines = [line.rstrip() for line in unified.split("\n")]
    return "\n".join(lines).strip("\n")


def _list_files(directory: Path) -> list[str]:
    """Visible files under ``directory``; dot-files and dot-directories are skipped."""
    if not directory.is_dir():
        return []
    return sorted(
        normalize_path(path)
        for path in directory.rglob("*")
        if path.is_file()
        and not any(part.startswith(".") for part in path.relative_to(directory).parts)
    )


def verify_rules(
    project_path: str,
    format_name: str,
    patterns: list[str],
    rules_dir: str,
) -> VerificationResult:
    """Check that a project's rendered rules match the central rules.

    Expected output is always recomputed from the rules directory.

    Args:
        project_path: Absolute path of the project
        format_name: Registered output format to check
        patterns: Rule selection patterns for the project
        rules_dir: Central rules directory

    Returns:
        Verification result listing missing, modified, and extra files

    Raises:
        UnknownFormatError: If ``format_name`` is not registered
        PatternLoadError: If a rule file cannot be read
    """
    output_format = get_format(format_name)
    loaded = load_rules(rules_dir, patterns)
    expected = output_format.plan(project_path, loaded.rules)

    issues: list[VerificationIssue] = []
    for intent in expected:
        try:
            actual = Path(intent.path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            issues.append(VerificationIssue(type=IssueType.MISSING, path=intent.path))
            continue
        if normalize_content(actual) != normalize_content(intent.content):
            issues.append(VerificationIssue(type=IssueType.MODIFIED, path=intent.path))

    if isinstance(output_format, MultiFileFormat):
        expected_paths = {normalize_path(intent.path) for intent in expected}
        output_dir = Path(output_format.output_dir(project_path))
        for actual_path in _list_files(output_dir):
            if actual_path not in expected_paths:
                issues.append(VerificationIssue(type=IssueType.EXTRA, path=actual_path))

    return VerificationResult(issues=issues)
