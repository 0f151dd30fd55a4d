"""End-to-end tests for project and global synchronization."""

import tempfile
from pathlib import Path

import pytest

from rulesync.exceptions import OutsideAllowedRootsError, UnknownFormatError
from rulesync.guard import PathGuard
from rulesync.models import ProjectConfig, SyncConfig
from rulesync.sync import GLOBAL_SOURCE, plan_global_writes, sync_global, sync_project
from rulesync.verifier import verify_rules


class TestSyncProject:
    """Test the load, plan, execute pipeline for one project."""

    @pytest.fixture
    def workspace(self) -> tuple[Path, Path]:
        """Create a rules directory and a target project."""
        with tempfile.TemporaryDirectory() as temp_dir:
            rules_dir = Path(temp_dir) / "rules"
            project = Path(temp_dir) / "project"
            (rules_dir / "python").mkdir(parents=True)
            project.mkdir()
            (rules_dir / "general.md").write_text("# General\nBe precise.\n", encoding="utf-8")
            (rules_dir / "python" / "typing.md").write_text("# Typing\n", encoding="utf-8")
            (rules_dir / "memory-bank.md").write_text("# Memory\n", encoding="utf-8")
            yield rules_dir, project

    def _project(self, project: Path, formats: list[str], rules: list[str] | None = None) -> ProjectConfig:
        return ProjectConfig(path=str(project), rules=rules or ["**/*.md"], formats=formats)

    def test_writes_every_format(self, workspace: tuple[Path, Path]) -> None:
        """Test that one sync renders all configured formats."""
        rules_dir, project = workspace

        result = sync_project(self._project(project, ["claude", "cline"]), str(rules_dir))

        assert result.project_path == str(project)
        assert result.report.written == [
            str(project / "CLAUDE.md"),
            str(project / ".clinerules" / "general.md"),
            str(project / ".clinerules" / "memory-bank.md"),
            str(project / ".clinerules" / "python" / "typing.md"),
        ]
        claude_md = (project / "CLAUDE.md").read_text(encoding="utf-8")
        assert "# General\nBe precise.\n\n---\n\n# Typing\n" in claude_md
        assert "# Memory" not in claude_md

    def test_idempotent(self, workspace: tuple[Path, Path]) -> None:
        """Test that a second sync reproduces identical files."""
        rules_dir, project = workspace
        config = self._project(project, ["codex", "kilocode"])

        sync_project(config, str(rules_dir))
        first = {p: p.read_bytes() for p in project.rglob("*") if p.is_file()}
        for format_name in config.formats:
            assert verify_rules(str(project), format_name, config.rules, str(rules_dir)).synced

        sync_project(config, str(rules_dir))
        second = {p: p.read_bytes() for p in project.rglob("*") if p.is_file()}

        assert first == second

    def test_dry_run(self, workspace: tuple[Path, Path]) -> None:
        """Test that dry-run reports the plan and writes nothing."""
        rules_dir, project = workspace
        lines: list[str] = []

        result = sync_project(
            self._project(project, ["gemini"]),
            str(rules_dir),
            dry_run=True,
            verbose=True,
            echo=lines.append,
        )

        assert result.report.written == [str(project / "GEMINI.md")]
        assert lines == [f"[Dry-run] [Write] {project / 'GEMINI.md'}"]
        assert list(project.iterdir()) == []

    def test_unmatched_patterns_returned(self, workspace: tuple[Path, Path]) -> None:
        """Test that stale patterns surface in the result."""
        rules_dir, project = workspace
        config = self._project(project, ["cline"], rules=["general.md", "missing/**"])

        result = sync_project(config, str(rules_dir))

        assert result.unmatched_patterns == ["missing/**"]
        assert result.report.written == [str(project / ".clinerules" / "general.md")]

    def test_no_intents_writes_nothing(self, workspace: tuple[Path, Path]) -> None:
        """Test that a multi-file format with no rules is a no-op."""
        rules_dir, project = workspace
        config = self._project(project, ["cline"], rules=["nothing/*.md"])

        result = sync_project(config, str(rules_dir))

        assert result.report.written == []
        assert not (project / ".clinerules").exists()

    def test_unknown_format_fails_before_io(self, workspace: tuple[Path, Path]) -> None:
        """Test that an unknown format stops the project before writing."""
        rules_dir, project = workspace
        config = ProjectConfig.model_construct(
            path=str(project),
            rules=["**/*.md"],
            formats=["claude", "cursor"],
        )

        with pytest.raises(UnknownFormatError):
            sync_project(config, str(rules_dir))

        assert list(project.iterdir()) == []

    def test_explicit_guard_enforced(self, workspace: tuple[Path, Path]) -> None:
        """Test that a caller-supplied guard bounds every write."""
        rules_dir, project = workspace
        guard = PathGuard.from_roots([str(rules_dir)])

        with pytest.raises(OutsideAllowedRootsError):
            sync_project(self._project(project, ["claude"]), str(rules_dir), guard=guard)

        assert list(project.iterdir()) == []


class TestSyncGlobal:
    """Test writing global rules to per-user targets."""

    @pytest.fixture
    def workspace(self) -> Path:
        """Create a rules directory with global rules."""
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            (root / "rules" / "global").mkdir(parents=True)
            (root / "rules" / "global" / "a.md").write_text("# A\n", encoding="utf-8")
            (root / "rules" / "global" / "b.md").write_text("# B\n", encoding="utf-8")
            (root / "project").mkdir()
            yield root

    def _config(self, root: Path, global_rules: list[str]) -> SyncConfig:
        return SyncConfig(
            rules_source=str(root / "rules"),
            global_rules=global_rules,
            projects=[
                ProjectConfig(path=str(root / "project"), rules=["*.md"], formats=["claude"]),
            ],
        )

    def test_writes_combined_content_to_each_target(self, workspace: Path) -> None:
        """Test that every target receives the joined global rules."""
        targets = [str(workspace / "home" / ".claude" / "CLAUDE.md"), str(workspace / "home" / ".codex" / "AGENTS.md")]

        result = sync_global(self._config(workspace, ["global/*.md"]), targets=targets)

        assert result.project_path == GLOBAL_SOURCE
        assert result.report.written == targets
        assert result.unmatched_patterns == []
        for target in targets:
            assert Path(target).read_text(encoding="utf-8") == "# A\n\n\n---\n\n# B\n"

    def test_no_patterns_no_writes(self, workspace: Path) -> None:
        """Test that global sync is skipped when not configured."""
        targets = [str(workspace / "home" / "CLAUDE.md")]
        result = sync_global(self._config(workspace, []), targets=targets)
        assert result.report.written == []
        assert not (workspace / "home").exists()

    def test_unmatched_global_patterns_reported(self, workspace: Path) -> None:
        """Test that stale global patterns come back with the result."""
        targets = [str(workspace / "home" / "CLAUDE.md")]

        result = sync_global(
            self._config(workspace, ["global/a.md", "retired/*.md"]),
            targets=targets,
        )

        assert result.unmatched_patterns == ["retired/*.md"]
        assert result.report.written == targets

    def test_nothing_matched_still_reports_patterns(self, workspace: Path) -> None:
        """Test that an empty selection writes nothing but keeps the warning."""
        targets = [str(workspace / "home" / "CLAUDE.md")]

        result = sync_global(self._config(workspace, ["retired/*.md"]), targets=targets)

        assert result.report.written == []
        assert result.unmatched_patterns == ["retired/*.md"]
        assert not (workspace / "home").exists()

    def test_no_matching_rules_no_writes(self, workspace: Path) -> None:
        """Test that an empty selection does not blank the targets."""
        intents = plan_global_writes(
            str(workspace / "rules"),
            ["missing/*.md"],
            targets=[str(workspace / "home" / "CLAUDE.md")],
        )
        assert intents == []

    def test_default_targets_under_home(self, workspace: Path) -> None:
        """Test that built-in targets expand to the home directory."""
        intents = plan_global_writes(str(workspace / "rules"), ["global/*.md"])
        assert [i.path for i in intents] == [
            str(Path.home() / ".claude" / "CLAUDE.md"),
            str(Path.home() / ".gemini" / "AGENTS.md"),
            str(Path.home() / ".config" / "opencode" / "AGENTS.md"),
            str(Path.home() / ".codex" / "AGENTS.md"),
        ]
