"""Configuration loading with schema validation and project lookup."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from pydantic import ValidationError

from .exceptions import ConfigNotFoundError, ConfigParseError, RuleSyncError
from .models import ProjectConfig, SyncConfig
from .paths import is_within, normalize_path

CONFIG_ENV_VAR = "RULESYNC_CONFIG"
BUILTIN_CONFIG_PATH = normalize_path("~/.config/rulesync/config.yaml")
DEFAULT_RULES_SOURCE = normalize_path("~/.local/share/rulesync/rules")

CONFIG_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "RuleSync Configuration",
    "type": "object",
    "required": ["projects"],
    "additionalProperties": False,
    "properties": {
        "rulesSource": {
            "type": "string",
            "description": "Central rules directory",
        },
        "global": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Patterns for rules written to per-user tool files",
        },
        "projects": {
            "type": "array",
            "minItems": 1,
            "items": {
                "type": "object",
                "required": ["path", "rules", "formats"],
                "additionalProperties": False,
                "properties": {
                    "path": {"type": "string", "minLength": 1},
                    "rules": {
                        "type": "array",
                        "minItems": 1,
                        "items": {"type": "string"},
                    },
                    "formats": {
                        "type": "array",
                        "minItems": 1,
                        "items": {"type": "string"},
                    },
                },
            },
        },
    },
}

SAMPLE_CONFIG = """\
# RuleSync configuration
# ======================
# Rules are Markdown files in rulesSource. Each project selects rules with
# POSIX glob patterns ("!" excludes) and lists the formats to render.
#
# FORMATS:
#   claude    -> CLAUDE.md
#   gemini    -> GEMINI.md
#   codex     -> AGENTS.md
#   cline     -> .clinerules/
#   kilocode  -> .kilocode/rules/

rulesSource: "~/.local/share/rulesync/rules"

# Rules combined into per-user files (~/.claude/CLAUDE.md, ...)
# global:
#   - "global/**/*.md"

projects:
  - path: "~/projects/example"
    rules:
      - "**/*.md"
      - "!drafts/**"
    formats:
      - claude
      - cline
"""


def get_default_config_path() -> str:
    """Resolve the config path, honouring the ``RULESYNC_CONFIG`` override."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return normalize_path(override)
    return BUILTIN_CONFIG_PATH


def parse_config(data: Any, source: str = "<config>") -> SyncConfig:
    """Validate raw configuration data.

    Args:
        data: Parsed YAML/JSON document
        source: Where the data came from, for error messages

    Returns:
        Validated configuration with normalized paths

    Raises:
        ConfigParseError: If schema or model validation fails
    """
    if data is None:
        data = {}

    try:
        jsonschema.validate(data, CONFIG_SCHEMA)
    except jsonschema.ValidationError as e:
        location = "/".join(str(part) for part in e.absolute_path) or "<root>"
        raise ConfigParseError(source, f"{location}: {e.message}") from e

    try:
        return SyncConfig.model_validate(
            {
                "rules_source": data.get("rulesSource", DEFAULT_RULES_SOURCE),
                "global_rules": data.get("global", []),
                "projects": data["projects"],
            },
        )
    except ValidationError as e:
        raise ConfigParseError(source, str(e)) from e


def load_config(config_path: str | Path | None = None) -> SyncConfig:
    """Load and validate the configuration file.

    Args:
        config_path: Explicit path; defaults to :func:`get_default_config_path`

    Raises:
        ConfigNotFoundError: If the file does not exist
        ConfigParseError: If the file cannot be read, parsed, or validated
    """
    is_default = config_path is None
    path = Path(normalize_path(config_path or get_default_config_path()))
    if not path.exists():
        raise ConfigNotFoundError(str(path), is_default=is_default)

    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigParseError(str(path), f"invalid YAML: {e}") from e
    except OSError as e:
        raise ConfigParseError(str(path), str(e)) from e

    return parse_config(data, source=str(path))


def create_sample_config(config_path: str | Path, force: bool = False) -> Path:
    """Write a commented starter configuration.

    Raises:
        RuleSyncError: If the file exists and ``force`` is not set
    """
    path = Path(normalize_path(config_path))
    if path.exists() and not force:
        msg = f"Config file already exists at {path}"
        raise RuleSyncError(msg, details={"path": str(path)})

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(SAMPLE_CONFIG, encoding="utf-8")
    return path


def find_project_for_path(current_path: str, config: SyncConfig) -> ProjectConfig | None:
    """Return the most specific project containing ``current_path``.

    Nested projects resolve to the deepest match, so ``/app/frontend`` wins
    over ``/app``.
    """
    target = normalize_path(current_path)
    matches = [project for project in config.projects if is_within(project.path, target)]
    if not matches:
        return None
    return max(matches, key=lambda project: len(project.path))
