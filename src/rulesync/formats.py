"""Output formats that plan how rules are rendered for each downstream tool."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from posixpath import basename

from .exceptions import UnknownFormatError
from .models import Rule, WriteIntent
from .paths import normalize_path, resolve_inside

RULE_SEPARATOR = "\n\n---\n\n"
GUIDANCE_LINE = "To modify rules, edit the source .md files and run sync to regenerate."
EMPTY_PLACEHOLDER = "No rules configured."


class OutputFormat(ABC):
    """A downstream tool's on-disk representation of a rule set."""

    name: str

    @abstractmethod
    def plan(self, project_path: str, rules: Sequence[Rule]) -> list[WriteIntent]:
        """Describe the writes that render ``rules`` into ``project_path``.

        Implementations are pure: they never touch the filesystem.
        """

    @property
    @abstractmethod
    def is_multi_file(self) -> bool:
        """Whether the format owns a directory of per-rule files."""


@dataclass(frozen=True)
class SingleFileFormat(OutputFormat):
    """Concatenates all rules into one Markdown document."""

    name: str
    filename: str
    title: str
    ignore: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_multi_file(self) -> bool:
        return False

    def select(self, rules: Sequence[Rule]) -> list[Rule]:
        """Drop rules whose path matches one of the ignore globs."""
        return [
            rule
            for rule in rules
            if not any(fnmatchcase(rule.path, pattern) for pattern in self.ignore)
        ]

    def render(self, rules: Sequence[Rule]) -> str:
        """Build the document body for ``rules``."""
        selected = self.select(rules)
        if not selected:
            return f"# {self.title}\n\n{EMPTY_PLACEHOLDER}\n"

        body = RULE_SEPARATOR.join(rule.content.strip() for rule in selected)
        return f"# {self.title}\n\n{GUIDANCE_LINE}\n\n{body}\n"

    def plan(self, project_path: str, rules: Sequence[Rule]) -> list[WriteIntent]:
        target = os.path.join(normalize_path(project_path), self.filename)
        return [WriteIntent(path=os.path.normpath(target), content=self.render(rules))]


@dataclass(frozen=True)
class MultiFileFormat(OutputFormat):
    """Writes each rule to its own file under a tool-specific directory."""

    name: str
    directory: str
    flatten: bool = False

    @property
    def is_multi_file(self) -> bool:
        return True

    def output_dir(self, project_path: str) -> str:
        """Absolute directory holding this format's rule files."""
        return resolve_inside(normalize_path(project_path), self.directory)

    def plan(self, project_path: str, rules: Sequence[Rule]) -> list[WriteIntent]:
        base = self.output_dir(project_path)
        planned: dict[str, WriteIntent] = {}
        for rule in rules:
            relative = basename(rule.path) if self.flatten else rule.path
            target = resolve_inside(base, relative)
            planned[target] = WriteIntent(path=target, content=rule.content)
        return list(planned.values())


# Memory bank rules are injected separately; self-reflection does not apply.
CLAUDE_IGNORE = ("*memory-bank*", "*self-reflection*")

FORMATS: dict[str, OutputFormat] = {
    "claude": SingleFileFormat(
        name="claude",
        filename="CLAUDE.md",
        title="CLAUDE.md - Rules for Claude Code",
        ignore=CLAUDE_IGNORE,
    ),
    "gemini": SingleFileFormat(
        name="gemini",
        filename="GEMINI.md",
        title="GEMINI.md - Rules for Gemini Code",
    ),
    "codex": SingleFileFormat(
        name="codex",
        filename="AGENTS.md",
        title="AGENTS.md - Project docs for Codex CLI",
    ),
    "cline": MultiFileFormat(name="cline", directory=".clinerules"),
    "kilocode": MultiFileFormat(name="kilocode", directory=".kilocode/rules"),
}


def get_format(name: str) -> OutputFormat:
    """Look up a registered format.

    Raises:
        UnknownFormatError: If ``name`` is not registered
    """
    try:
        return FORMATS[name]
    except KeyError:
        raise UnknownFormatError(name) from None


def plan_writes(
    project_path: str,
    rules: Sequence[Rule],
    format_names: Sequence[str],
) -> list[WriteIntent]:
    """Plan every write for a project across several formats.

    All names are resolved before any planning, so an unknown format fails
    the project up front.
    """
    formats = [get_format(name) for name in format_names]
    intents: list[WriteIntent] = []
    for output_format in formats:
        intents.extend(output_format.plan(project_path, rules))
    return intents
