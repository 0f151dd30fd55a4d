"""Core data models for RuleSync."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from .paths import normalize_path


class Rule(BaseModel):
    """A single rule document selected from the central rules directory."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="POSIX path relative to the rules directory")
    content: str = Field(..., description="Raw Markdown content")


class WriteIntent(BaseModel):
    """A planned, not yet applied, file write."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Absolute normalized target path")
    content: str = Field(..., description="Full file content to write")


class LoadResult(BaseModel):
    """Rules selected by a set of patterns plus the patterns that matched nothing."""

    model_config = ConfigDict(frozen=True)

    rules: list[Rule] = Field(default_factory=list)
    unmatched_patterns: list[str] = Field(
        default_factory=list,
        description="Positive patterns that matched zero files on their own",
    )


class ExecutionReport(BaseModel):
    """Paths written (or that would be written in dry-run mode)."""

    written: list[str] = Field(default_factory=list)


class IssueType(str, Enum):
    """Kinds of drift the verifier reports."""

    MISSING = "missing"
    MODIFIED = "modified"
    EXTRA = "extra"


class VerificationIssue(BaseModel):
    """A single divergence between expected and on-disk output."""

    model_config = ConfigDict(frozen=True)

    type: IssueType
    path: str


class VerificationResult(BaseModel):
    """Outcome of comparing planned output with a project on disk."""

    issues: list[VerificationIssue] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def synced(self) -> bool:
        """True when no issues were found."""
        return not self.issues


class ProjectConfig(BaseModel):
    """A client project and the rules and formats it receives."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Absolute path of the project root")
    rules: list[str] = Field(..., description="POSIX glob patterns for rule selection")
    formats: list[str] = Field(..., description="Output format names")

    @field_validator("path")
    @classmethod
    def normalize_project_path(cls, v: str) -> str:
        """Expand ``~`` and make the project path absolute."""
        if not v.strip():
            msg = "Project path cannot be empty"
            raise ValueError(msg)
        return normalize_path(v)

    @field_validator("rules")
    @classmethod
    def require_positive_pattern(cls, v: list[str]) -> list[str]:
        """Reject pattern lists that cannot select anything explicitly."""
        if not any(p.strip() and not p.strip().startswith("!") for p in v):
            msg = (
                "rules must include at least one positive glob pattern "
                '(e.g., "**/*.md"); only negative patterns are not allowed'
            )
            raise ValueError(msg)
        return v

    @field_validator("formats")
    @classmethod
    def validate_format_names(cls, v: list[str]) -> list[str]:
        """Ensure every format name is registered."""
        from .formats import FORMATS

        if not v:
            msg = "At least one format must be specified"
            raise ValueError(msg)
        unknown = [name for name in v if name not in FORMATS]
        if unknown:
            msg = (
                f"Unsupported format(s): {', '.join(unknown)}. "
                f"Available: {', '.join(sorted(FORMATS))}"
            )
            raise ValueError(msg)
        return v


class SyncConfig(BaseModel):
    """Complete RuleSync configuration."""

    model_config = ConfigDict(frozen=True)

    rules_source: str = Field(..., description="Central rules directory")
    global_rules: list[str] = Field(
        default_factory=list,
        description="Patterns for rules written to per-user tool files",
    )
    projects: list[ProjectConfig] = Field(..., min_length=1)

    @field_validator("rules_source")
    @classmethod
    def normalize_rules_source(cls, v: str) -> str:
        """Expand ``~`` and make the rules source absolute."""
        return normalize_path(v)
