"""Pure helpers for splitting rule selection patterns."""

from __future__ import annotations

from typing import NamedTuple

DEFAULT_PATTERN = "**/*.md"


class PatternSplit(NamedTuple):
    """Positive (include) and negative (exclude) glob patterns."""

    positive: list[str]
    negative: list[str]


def split_patterns(patterns: list[str]) -> PatternSplit:
    """Separate ``!``-prefixed exclusions from inclusion patterns.

    Blank patterns are dropped. When no positive pattern remains the
    selection defaults to every Markdown file.
    """
    positive: list[str] = []
    negative: list[str] = []

    for pattern in patterns:
        if not pattern or not pattern.strip():
            continue
        if pattern.startswith("!"):
            remainder = pattern[1:]
            if remainder.strip():
                negative.append(remainder)
        else:
            positive.append(pattern)

    return PatternSplit(positive=positive or [DEFAULT_PATTERN], negative=negative)


def unique_sorted(paths: list[str]) -> list[str]:
    """Deduplicate and sort paths for deterministic output."""
    return sorted(set(paths))
