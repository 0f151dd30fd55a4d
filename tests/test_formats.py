"""Tests for output format planning."""

import pytest

from rulesync.exceptions import OutsideAllowedRootsError, UnknownFormatError
from rulesync.formats import (
    FORMATS,
    MultiFileFormat,
    SingleFileFormat,
    get_format,
    plan_writes,
)
from rulesync.models import Rule, WriteIntent


class TestSingleFileFormat:
    """Test concatenated single-file output."""

    @pytest.fixture
    def output_format(self) -> SingleFileFormat:
        """A single-file format titled X."""
        return SingleFileFormat(name="x", filename="X.md", title="X")

    def test_rules_joined_with_separator(self, output_format: SingleFileFormat) -> None:
        """Test the exact rendered document for two rules."""
        rules = [Rule(path="a.md", content="# A"), Rule(path="b.md", content="# B")]

        intents = output_format.plan("/p", rules)

        assert intents == [
            WriteIntent(
                path="/p/X.md",
                content=(
                    "# X\n\n"
                    "To modify rules, edit the source .md files and run sync to regenerate.\n\n"
                    "# A\n\n---\n\n# B\n"
                ),
            ),
        ]

    def test_empty_rules_placeholder(self, output_format: SingleFileFormat) -> None:
        """Test that an empty rule set still yields a valid file."""
        intents = output_format.plan("/p", [])
        assert len(intents) == 1
        assert intents[0].content == "# X\n\nNo rules configured.\n"

    def test_rule_content_trimmed(self, output_format: SingleFileFormat) -> None:
        """Test that surrounding whitespace of each rule is dropped."""
        rules = [Rule(path="a.md", content="\n\n# A\n  body\n\n\n")]
        content = output_format.plan("/p", rules)[0].content
        assert content.endswith("\n\n# A\n  body\n")

    def test_ignored_rules_filtered(self) -> None:
        """Test that ignore globs drop matching rules."""
        claude = get_format("claude")
        rules = [
            Rule(path="memory-bank.md", content="memory"),
            Rule(path="team/self-reflection.md", content="reflect"),
            Rule(path="memory-bank/notes.md", content="nested"),
            Rule(path="style.md", content="# Style"),
        ]

        content = claude.plan("/p", rules)[0].content

        assert content.startswith("# CLAUDE.md - Rules for Claude Code\n\n")
        assert "# Style" in content
        assert "memory" not in content.split("\n\n", 2)[2]
        assert "reflect" not in content
        assert "nested" not in content

    def test_all_rules_ignored_gives_placeholder(self) -> None:
        """Test that filtering everything out still writes the placeholder."""
        claude = get_format("claude")
        intents = claude.plan("/p", [Rule(path="memory-bank.md", content="m")])
        assert intents[0].content == (
            "# CLAUDE.md - Rules for Claude Code\n\nNo rules configured.\n"
        )

    def test_project_path_normalized(self, output_format: SingleFileFormat) -> None:
        """Test that the target path is absolute and normalized."""
        intents = output_format.plan("/p/sub/../", [])
        assert intents[0].path == "/p/X.md"


class TestMultiFileFormat:
    """Test per-rule multi-file output."""

    def test_rule_paths_preserved(self) -> None:
        """Test that each rule lands under the format directory unchanged."""
        output_format = MultiFileFormat(name="tool", directory=".tool/rules")
        rules = [Rule(path="dir/a.md", content="  # A  \n\n")]

        intents = output_format.plan("/p", rules)

        assert intents == [
            WriteIntent(path="/p/.tool/rules/dir/a.md", content="  # A  \n\n"),
        ]

    def test_no_rules_no_intents(self) -> None:
        """Test that an empty rule set plans nothing."""
        assert get_format("cline").plan("/p", []) == []

    def test_flatten_uses_basename(self) -> None:
        """Test that flattening drops the rule's directories."""
        output_format = MultiFileFormat(name="flat", directory="rules", flatten=True)
        intents = output_format.plan(
            "/p",
            [Rule(path="a/one.md", content="1"), Rule(path="b/two.md", content="2")],
        )
        assert [i.path for i in intents] == ["/p/rules/one.md", "/p/rules/two.md"]

    @pytest.mark.parametrize(
        "path",
        ["../../../etc/passwd", "valid/../../../etc/passwd", "/etc/passwd"],
    )
    def test_escaping_rule_path_rejected(self, path: str) -> None:
        """Test that rule paths cannot leave the format directory."""
        with pytest.raises(OutsideAllowedRootsError, match="Refusing to write outside"):
            get_format("kilocode").plan("/p", [Rule(path=path, content="x")])

    def test_output_dir(self) -> None:
        """Test the absolute output directory."""
        assert get_format("kilocode").output_dir("/p") == "/p/.kilocode/rules"


class TestFormatRegistry:
    """Test the closed set of registered formats."""

    def test_registered_names(self) -> None:
        """Test that every supported tool is registered."""
        assert set(FORMATS) == {"claude", "gemini", "codex", "cline", "kilocode"}

    @pytest.mark.parametrize(
        ("name", "filename"),
        [("claude", "CLAUDE.md"), ("gemini", "GEMINI.md"), ("codex", "AGENTS.md")],
    )
    def test_single_file_targets(self, name: str, filename: str) -> None:
        """Test single-file format target names."""
        output_format = get_format(name)
        assert not output_format.is_multi_file
        assert output_format.plan("/p", [])[0].path == f"/p/{filename}"

    @pytest.mark.parametrize(
        ("name", "directory"),
        [("cline", ".clinerules"), ("kilocode", ".kilocode/rules")],
    )
    def test_multi_file_targets(self, name: str, directory: str) -> None:
        """Test multi-file format directories."""
        output_format = get_format(name)
        assert output_format.is_multi_file
        intents = output_format.plan("/p", [Rule(path="a.md", content="A")])
        assert intents[0].path == f"/p/{directory}/a.md"

    def test_unknown_format(self) -> None:
        """Test that unregistered names fail clearly."""
        with pytest.raises(UnknownFormatError, match="Unknown format: cursor"):
            get_format("cursor")

    def test_plan_writes_concatenates(self) -> None:
        """Test planning several formats for one project."""
        rules = [Rule(path="a.md", content="# A")]
        intents = plan_writes("/p", rules, ["claude", "cline"])
        assert [i.path for i in intents] == ["/p/CLAUDE.md", "/p/.clinerules/a.md"]

    def test_plan_writes_rejects_unknown_first(self) -> None:
        """Test that an unknown name fails even after valid ones."""
        with pytest.raises(UnknownFormatError):
            plan_writes("/p", [], ["claude", "nope"])
