"""Rule loading from the central rules directory."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path, PurePath

from .exceptions import PatternLoadError
from .models import LoadResult, Rule
from .paths import normalize_path
from .patterns import split_patterns, unique_sorted

logger = logging.getLogger(__name__)

_MAGIC = re.compile(r"[*?\[]")


def _has_magic(pattern: str) -> bool:
    return _MAGIC.search(pattern) is not None


def _expand_pattern(root: Path, pattern: str) -> str:
    """Normalize a pattern so that it always selects files.

    A bare directory name selects everything beneath it, as does a
    trailing ``**``.
    """
    stripped = pattern.strip().lstrip("/")
    if stripped.startswith("./"):
        stripped = stripped[2:]
    stripped = stripped.rstrip("/")
    if stripped and not _has_magic(stripped) and (root / stripped).is_dir():
        stripped = f"{stripped}/**"
    if stripped.endswith("**"):
        return f"{stripped}/*"
    return stripped


def _translate_segment(segment: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(segment):
        char = segment[i]
        if char == "*":
            out.append("[^/]*")
        elif char == "?":
            out.append("[^/]")
        elif char == "[":
            start = i + 1
            if segment[start : start + 1] == "!":
                start += 1
            if segment[start : start + 1] == "]":
                start += 1
            end = segment.find("]", start)
            if end == -1:
                out.append(re.escape(char))
            else:
                body = segment[i + 1 : end].replace("\\", "\\\\")
                if body.startswith("!"):
                    body = "^" + body[1:]
                elif body.startswith("^"):
                    body = "\\" + body
                out.append(f"(?!/)[{body}]")
                i = end
        else:
            out.append(re.escape(char))
        i += 1
    return "".join(out)


def _compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a POSIX glob where ``**`` spans any number of directories."""
    segments = pattern.split("/")
    parts: list[str] = []
    for index, segment in enumerate(segments):
        last = index == len(segments) - 1
        if segment == "**":
            parts.append(".*" if last else "(?:[^/]+/)*")
            continue
        parts.append(_translate_segment(segment) + ("" if last else "/"))
    return re.compile(r"\A" + "".join(parts) + r"\Z")


def _is_hidden(relative: str, pattern: str) -> bool:
    """Dot-files and dot-directories only match patterns that name them."""
    if pattern.startswith(".") or "/." in pattern:
        return False
    return any(part.startswith(".") for part in relative.split("/"))


def _is_loop(root: str, dirpath: str, real: str) -> bool:
    """Whether ``dirpath`` resolves to one of its own ancestors."""
    parent = os.path.dirname(dirpath)
    while len(parent) >= len(root):
        if os.path.realpath(parent) == real:
            return True
        if parent == root:
            break
        parent = os.path.dirname(parent)
    return False


def _list_rule_files(root: Path) -> list[str]:
    """Return POSIX paths of every file under ``root``, following symlinks."""
    root_str = str(root)
    files: list[str] = []
    for dirpath, dirnames, filenames in os.walk(root_str, followlinks=True):
        if dirpath != root_str and _is_loop(root_str, dirpath, os.path.realpath(dirpath)):
            logger.debug("Skipping symlink loop at %s", dirpath)
            dirnames[:] = []
            continue
        relative_dir = os.path.relpath(dirpath, root_str)
        for name in filenames:
            if not os.path.isfile(os.path.join(dirpath, name)):
                continue
            files.append(PurePath(relative_dir, name).as_posix())
    return files


def _match_pattern(root: Path, files: list[str], pattern: str) -> set[str]:
    """Return the entries of ``files`` matched by ``pattern``."""
    expanded = _expand_pattern(root, pattern)
    if not expanded:
        return set()

    regex = _compile_pattern(expanded)
    return {
        relative
        for relative in files
        if regex.match(relative) and not _is_hidden(relative, expanded)
    }


def glob_rule_paths(rules_dir: str | Path, patterns: list[str]) -> list[str]:
    """Find rule files selected by positive patterns minus negative ones.

    Symlinked files and directories are followed.

    Args:
        rules_dir: Central rules directory
        patterns: POSIX glob patterns, ``!`` prefix marks an exclusion

    Returns:
        Sorted, deduplicated POSIX paths relative to ``rules_dir``
    """
    root = Path(normalize_path(rules_dir))
    if not root.is_dir():
        return []

    files = _list_rule_files(root)
    split = split_patterns(patterns)
    selected: set[str] = set()
    for pattern in split.positive:
        selected |= _match_pattern(root, files, pattern)
    for pattern in split.negative:
        selected -= _match_pattern(root, files, pattern)

    return unique_sorted(list(selected))


def find_unmatched_patterns(rules_dir: str | Path, patterns: list[str]) -> list[str]:
    """Return the positive patterns that match no file when run on their own."""
    root = Path(normalize_path(rules_dir))
    split = split_patterns(patterns)
    files = _list_rule_files(root) if root.is_dir() else []

    unmatched: list[str] = []
    for pattern in split.positive:
        if pattern in unmatched:
            continue
        if not _match_pattern(root, files, pattern):
            unmatched.append(pattern)
    return unmatched


def read_rule_contents(rules_dir: str | Path, relative_paths: list[str]) -> list[Rule]:
    """Read every selected rule file.

    Raises:
        PatternLoadError: If any file cannot be read; no partial list is returned
    """
    root = Path(normalize_path(rules_dir))
    rules: list[Rule] = []
    for relative in relative_paths:
        full_path = root / relative
        try:
            content = full_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise PatternLoadError(str(full_path), e) from e
        rules.append(Rule(path=relative, content=content))
    return rules


def load_rules(rules_dir: str | Path, patterns: list[str]) -> LoadResult:
    """Select, read, and report on rules for one set of patterns.

    Args:
        rules_dir: Central rules directory
        patterns: POSIX glob patterns from the project configuration

    Returns:
        Loaded rules in path order plus unmatched positive patterns

    Raises:
        PatternLoadError: If a matched rule file cannot be read
    """
    relative_paths = glob_rule_paths(rules_dir, patterns)
    unmatched = find_unmatched_patterns(rules_dir, patterns)
    rules = read_rule_contents(rules_dir, relative_paths)

    logger.debug(
        "Loaded %d rules from %s (%d unmatched patterns)",
        len(rules),
        rules_dir,
        len(unmatched),
    )
    return LoadResult(rules=rules, unmatched_patterns=unmatched)
