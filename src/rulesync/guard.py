"""Path guard restricting filesystem writes to authorized locations."""

from __future__ import annotations

import os
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .exceptions import (
    InvalidPathError,
    NoRootsProvidedError,
    OutsideAllowedRootsError,
    RootNotAbsoluteError,
)
from .paths import expand_home, is_within, normalize_path

if TYPE_CHECKING:
    from .models import SyncConfig


def _normalize_root(root: str) -> str:
    expanded = expand_home(root)
    if not os.path.isabs(expanded):
        raise RootNotAbsoluteError(root)
    normalized = os.path.normpath(expanded)
    if len(normalized) > 1 and normalized.endswith(os.sep):
        normalized = normalized.rstrip(os.sep)
    return normalized


@dataclass(frozen=True)
class PathGuard:
    """Immutable validator for paths against allowed roots or exact paths.

    A guard works in one of two modes. Root mode accepts any path equal to or
    beneath one of its directories. Planned-writes mode accepts only exact
    members of a fixed set of file paths and is the guard the executor uses.

    Build guards with :meth:`from_roots` or :meth:`for_planned_writes`.
    """

    _roots: tuple[str, ...]
    _exact: frozenset[str] | None = None

    @classmethod
    def from_roots(cls, roots: Iterable[str]) -> PathGuard:
        """Create a guard that accepts paths inside any of ``roots``.

        Args:
            roots: Absolute directory paths (``~`` is expanded)

        Raises:
            NoRootsProvidedError: If ``roots`` is empty
            RootNotAbsoluteError: If any root is relative
        """
        root_list = list(roots)
        if not root_list:
            msg = "At least one allowed root directory must be provided"
            raise NoRootsProvidedError(msg)
        return cls(_roots=tuple(_normalize_root(root) for root in root_list))

    @classmethod
    def for_planned_writes(cls, paths: Iterable[str]) -> PathGuard:
        """Create a guard that accepts only the exact planned file paths.

        Raises:
            NoRootsProvidedError: If ``paths`` is empty
        """
        planned = [normalize_path(path) for path in paths]
        if not planned:
            msg = "At least one planned path must be provided"
            raise NoRootsProvidedError(msg)
        ordered = tuple(dict.fromkeys(planned))
        return cls(_roots=ordered, _exact=frozenset(ordered))

    @classmethod
    def from_config(cls, config: SyncConfig) -> PathGuard:
        """Create a guard over the rules source and every project root."""
        return cls.from_roots(
            [config.rules_source, *(project.path for project in config.projects)],
        )

    @property
    def allowed_roots(self) -> list[str]:
        """Normalized roots (or planned paths in planned-writes mode)."""
        return list(self._roots)

    @property
    def is_exact(self) -> bool:
        """Whether this guard only accepts exact planned paths."""
        return self._exact is not None

    def with_root(self, root: str) -> PathGuard:
        """Return a new guard that additionally accepts ``root``."""
        if self._exact is not None:
            return PathGuard.for_planned_writes([*self._roots, root])
        return PathGuard.from_roots([*self._roots, root])

    def validate(self, path: str) -> str:
        """Validate ``path`` and return its normalized absolute form.

        Raises:
            InvalidPathError: If ``path`` is empty or whitespace only
            OutsideAllowedRootsError: If ``path`` is not allowed
        """
        if not path or not path.strip():
            msg = "Invalid path: empty string"
            raise InvalidPathError(msg, details={"path": path})

        normalized = normalize_path(path)

        if self._exact is not None:
            if normalized not in self._exact:
                msg = f"Path not in planned writes: {path}"
                raise OutsideAllowedRootsError(msg, path=normalized)
            return normalized

        if not self._contains(normalized):
            msg = f"Path is outside allowed directories: {path}"
            raise OutsideAllowedRootsError(msg, path=normalized)
        return normalized

    def is_inside(self, path: str) -> bool:
        """Non-raising variant of :meth:`validate`."""
        try:
            self.validate(path)
        except (InvalidPathError, OutsideAllowedRootsError):
            return False
        return True

    def _contains(self, normalized: str) -> bool:
        # The lexical check decides; symlinks may only narrow the result.
        for root in self._roots:
            if not is_within(root, normalized):
                continue
            if is_within(os.path.realpath(root), os.path.realpath(normalized)):
                return True
        return False
