"""Tests for report file scanning."""

from __future__ import annotations

import pytest

from testopia_runner.scanner import scan, split_patterns


class TestSplitPatterns:
    """Tests for split_patterns."""

    @pytest.mark.parametrize(
        "pattern,expected",
        [
            ("**/*.xml", ["**/*.xml"]),
            ("a/*.xml, b/*.xml", ["a/*.xml", "b/*.xml"]),
            ("a.xml,,  ,b.xml", ["a.xml", "b.xml"]),
            ("", []),
        ],
    )
    def test_split(self, pattern, expected):
        """Comma separated patterns are stripped and blanks dropped."""
        assert split_patterns(pattern) == expected


class TestScan:
    """Tests for scan."""

    @pytest.fixture
    def workspace(self, tmp_path):
        for relative in (
            "module-b/target/testng-results.xml",
            "module-a/target/testng-results.xml",
            "testng-results.xml",
            "reports/junit.xml",
            "notes.txt",
        ):
            path = tmp_path / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("<x/>")
        (tmp_path / "dir.xml").mkdir()
        return tmp_path

    def test_recursive_glob_sorted(self, workspace):
        """Matches are relative POSIX paths in sorted order."""
        assert scan(workspace, "**/testng-results.xml") == [
            "module-a/target/testng-results.xml",
            "module-b/target/testng-results.xml",
            "testng-results.xml",
        ]

    def test_several_patterns_are_deduplicated(self, workspace):
        """Files matched by several patterns are listed once."""
        assert scan(workspace, "reports/*.xml, **/junit.xml") == ["reports/junit.xml"]

    def test_directories_are_ignored(self, workspace):
        """Only files are returned."""
        assert "dir.xml" not in scan(workspace, "*.xml")

    def test_no_match_is_empty(self, workspace):
        """Nothing matching is not an error."""
        assert scan(workspace, "**/*.json") == []

    def test_missing_workspace(self, tmp_path):
        """A missing workspace raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            scan(tmp_path / "missing", "**/*.xml")

    def test_workspace_is_file(self, workspace):
        """A file given as workspace raises NotADirectoryError."""
        with pytest.raises(NotADirectoryError):
            scan(workspace / "notes.txt", "*.xml")

    def test_absolute_pattern_inside_workspace(self, workspace):
        """Absolute globs pointing into the workspace are made relative."""
        assert scan(workspace, f"{workspace}/reports/*.xml") == ["reports/junit.xml"]

    def test_absolute_pattern_outside_workspace(self, workspace, tmp_path_factory):
        """Absolute globs elsewhere are rejected."""
        other = tmp_path_factory.mktemp("elsewhere")

        with pytest.raises(ValueError, match="outside the workspace"):
            scan(workspace, f"{other}/*.xml")

    def test_parent_relative_pattern(self, workspace):
        """Patterns climbing out of the workspace are rejected."""
        with pytest.raises(ValueError, match="must not leave the workspace"):
            scan(workspace, "../**/*.xml")
