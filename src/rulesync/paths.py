"""Path normalization helpers shared by the guard, planners, and config."""

from __future__ import annotations

import os
from pathlib import Path

from .exceptions import OutsideAllowedRootsError


def expand_home(value: str) -> str:
    """Expand a leading ``~`` (alone or followed by a separator)."""
    if value == "~" or value.startswith(("~/", "~\\")):
        return str(Path.home()) + value[1:]
    return value


def normalize_path(value: str | os.PathLike[str]) -> str:
    """Expand ``~`` and resolve ``.``/``..`` lexically into an absolute path.

    No symlinks are followed and no boundary checks are performed.
    """
    return os.path.abspath(expand_home(os.fspath(value)))


def is_within(root: str, candidate: str) -> bool:
    """Return True when ``candidate`` equals ``root`` or lies beneath it.

    Both arguments must already be absolute and normalized.
    """
    try:
        relative = os.path.relpath(candidate, root)
    except ValueError:
        # Different drives on Windows
        return False
    if relative == os.curdir:
        return True
    if os.path.isabs(relative):
        return False
    return relative != os.pardir and not relative.startswith(os.pardir + os.sep)


def resolve_inside(base_directory: str, relative_path: str) -> str:
    """Resolve ``relative_path`` under ``base_directory``, rejecting escapes.

    Args:
        base_directory: Directory the result must stay inside
        relative_path: POSIX-style path relative to the base

    Returns:
        Absolute normalized path inside the base directory

    Raises:
        OutsideAllowedRootsError: If the path is absolute or escapes the base
    """
    base = normalize_path(base_directory)
    if os.path.isabs(relative_path) or relative_path.startswith(("/", "\\")):
        msg = f"Refusing to write outside {base}: {relative_path}"
        raise OutsideAllowedRootsError(msg, path=relative_path)

    full = os.path.normpath(os.path.join(base, *relative_path.split("/")))
    if not is_within(base, full):
        msg = f"Refusing to write outside {base}: {relative_path}"
        raise OutsideAllowedRootsError(msg, path=relative_path)
    return full
