"""Custom exceptions for RuleSync."""

from typing import Any


class RuleSyncError(Exception):
    """Base exception for all RuleSync errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.details = details or {}


class PathSafetyError(RuleSyncError):
    """Raised when a path fails a path guard check."""


class InvalidPathError(PathSafetyError):
    """Raised when a path is empty or whitespace only."""


class OutsideAllowedRootsError(PathSafetyError):
    """Raised when a path lies outside every allowed root."""

    def __init__(self, message: str, path: str) -> None:
        super().__init__(message, details={"path": path})
        self.path = path


class NoRootsProvidedError(PathSafetyError):
    """Raised when a path guard is built without any roots."""


class RootNotAbsoluteError(PathSafetyError):
    """Raised when a configured root is a relative path."""

    def __init__(self, root: str) -> None:
        super().__init__(
            f"Allowed root must be an absolute path: {root}",
            details={"root": root},
        )
        self.root = root


class PatternLoadError(RuleSyncError):
    """Raised when a selected rule file cannot be read."""

    def __init__(self, path: str, cause: Exception) -> None:
        super().__init__(
            f"Failed to read rule file '{path}': {cause}",
            details={"path": path},
        )
        self.path = path


class WriteError(RuleSyncError):
    """Raised when the executor fails to apply a write."""

    def __init__(self, path: str, action: str = "write") -> None:
        super().__init__(
            f"Failed to {action} {path}",
            details={"action": action, "path": path},
        )
        self.action = action
        self.path = path


class UnknownFormatError(RuleSyncError):
    """Raised when an output format name has no registered planner."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown format: {name}", details={"format": name})
        self.name = name


class SyncError(RuleSyncError):
    """Raised when planning writes for a project fails."""


class ConfigError(RuleSyncError):
    """Base class for configuration failures."""


class ConfigNotFoundError(ConfigError):
    """Raised when the configuration file does not exist."""

    def __init__(self, path: str, is_default: bool = False) -> None:
        prefix = "Default config file" if is_default else "Config file"
        super().__init__(
            f"{prefix} not found at {path}",
            details={"path": path},
        )
        self.path = path
        self.is_default = is_default


class ConfigParseError(ConfigError):
    """Raised when the configuration file is malformed or invalid."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(
            f"Failed to load config from {path}: {reason}",
            details={"path": path},
        )
        self.path = path
