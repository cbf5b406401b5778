"""Tests for jav.issues: issue-list parsing."""

from pathlib import Path

import pytest

from jav.issues import parse_issues, read_issues_file, resolve_issues


class TestParseIssues:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ('["ABC-1", "ABC-2"]', ["ABC-1", "ABC-2"]),
            ('[{"id": "ABC-1"}, {"key": "ABC-2"}, "ABC-3"]', ["ABC-1", "ABC-2", "ABC-3"]),
            ("[10001, 10002]", ["10001", "10002"]),
            ("ABC-1,ABC-2", ["ABC-1", "ABC-2"]),
            ("ABC-1, ABC-2 ,ABC-3", ["ABC-1", "ABC-2", "ABC-3"]),
            ("ABC-1\nABC-2\r\nABC-3\n", ["ABC-1", "ABC-2", "ABC-3"]),
            ("ABC-1,\n\n,ABC-2", ["ABC-1", "ABC-2"]),
            ("12345", ["12345"]),
            ("ABC-1,ABC-1", ["ABC-1", "ABC-1"]),
            ("", []),
            ("[]", []),
        ],
    )
    def test_formats(self, text: str, expected: list[str]) -> None:
        assert parse_issues(text) == expected

    def test_unusable_array_entries_dropped(self) -> None:
        assert parse_issues('["ABC-1", null, {"summary": "x"}, true, " "]') == ["ABC-1"]

    def test_id_preferred_over_key(self) -> None:
        assert parse_issues('[{"id": "10001", "key": "ABC-1"}]') == ["10001"]


class TestReadIssuesFile:
    def test_json_file(self, tmp_path: Path) -> None:
        path = tmp_path / "issues.json"
        path.write_text('[{"id": "ABC-1"}, {"id": "ABC-2"}]')
        assert read_issues_file(path) == ["ABC-1", "ABC-2"]

    def test_text_file(self, tmp_path: Path) -> None:
        path = tmp_path / "issues.txt"
        path.write_text("ABC-1\nABC-2\n")
        assert read_issues_file(path) == ["ABC-1", "ABC-2"]

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            read_issues_file(tmp_path / "nope.txt")


class TestResolveIssues:
    def test_file_wins(self, tmp_path: Path) -> None:
        path = tmp_path / "issues.txt"
        path.write_text("FILE-1")
        assert resolve_issues("ARG-1", path) == ["FILE-1"]

    def test_string_input(self) -> None:
        assert resolve_issues("ABC-1,ABC-2", None) == ["ABC-1", "ABC-2"]

    @pytest.mark.parametrize("issues", [None, ""])
    def test_no_source_raises(self, issues: str | None) -> None:
        with pytest.raises(ValueError, match="--issues"):
            resolve_issues(issues, None)
