"""Tests for branch and project name validation"""

import pytest

from twiggit.exceptions import ErrorKind, ValidationError
from twiggit.validation import (
    contains_path_traversal,
    parse_project_branch,
    sanitize_path_component,
    validate_branch_name,
    validate_project_name,
)


class TestBranchNameGrammar:
    """Test the branch name grammar."""

    @pytest.mark.parametrize("name", ["feature-1", "release.v1.0", "fix_bug", "A1", "x"])
    def test_accepts_valid_names(self, name):
        assert validate_branch_name(name) == name

    def test_trims_whitespace(self):
        assert validate_branch_name("  feature-1 ") == "feature-1"

    @pytest.mark.parametrize(
        "name",
        ["-branch", "branch-", ".hidden", "trailing.", "HEAD", "feature@x", "", "   ", "a/b", "a b"],
    )
    def test_rejects_invalid_names(self, name):
        with pytest.raises(ValidationError) as exc_info:
            validate_branch_name(name)
        assert exc_info.value.kind == ErrorKind.VALIDATION
        assert exc_info.value.field == "branch name"

    def test_rejects_none(self):
        with pytest.raises(ValidationError):
            validate_branch_name(None)

    @pytest.mark.parametrize("name", ["head", "Orig_Head", "fetch_head", "MERGE_HEAD", "cherry_pick_head"])
    def test_reserved_names_case_insensitive(self, name):
        with pytest.raises(ValidationError, match="reserved"):
            validate_branch_name(name)

    @pytest.mark.parametrize("name", ["main", "master"])
    def test_primary_branches_rejected(self, name):
        with pytest.raises(ValidationError) as exc_info:
            validate_branch_name(name)
        assert exc_info.value.suggestions

    def test_primary_branch_match_is_exact(self):
        """Only exact 'main'/'master' collide."""
        assert validate_branch_name("Main") == "Main"
        assert validate_branch_name("main-fix") == "main-fix"

    def test_error_carries_value(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_branch_name("feature@x")
        assert exc_info.value.value == "feature@x"
        assert "feature@x" in str(exc_info.value)


class TestProjectName:
    """Test project name validation."""

    def test_accepts_plain_name(self):
        assert validate_project_name(" demo ") == "demo"

    @pytest.mark.parametrize("name", ["..", "../etc", "a/../b", "x..", "..x", "%2e%2e", "%252e%252e"])
    def test_rejects_traversal(self, name):
        with pytest.raises(ValidationError):
            validate_project_name(name)

    @pytest.mark.parametrize("name", ["a/b", "a\\b", "."])
    def test_rejects_paths(self, name):
        with pytest.raises(ValidationError):
            validate_project_name(name)

    def test_rejects_empty(self):
        with pytest.raises(ValidationError):
            validate_project_name("")


class TestHelpers:
    """Test parsing and sanitizing helpers."""

    def test_contains_path_traversal(self):
        assert contains_path_traversal("../x")
        assert contains_path_traversal("%2E%2E/x")
        assert not contains_path_traversal("release.v1.0")

    def test_sanitize_keeps_base_component(self):
        assert sanitize_path_component("../../etc/passwd") == "passwd"
        assert sanitize_path_component("feature") == "feature"
        assert sanitize_path_component("a/b/") == "b"

    def test_parse_project_branch(self):
        assert parse_project_branch("demo/feature-1") == ("demo", "feature-1")

    @pytest.mark.parametrize("identifier", ["demo", "demo/", "/feature", "a/b/c"])
    def test_parse_project_branch_rejects_other_shapes(self, identifier):
        with pytest.raises(ValidationError):
            parse_project_branch(identifier)

    def test_parse_project_branch_validates_project(self):
        with pytest.raises(ValidationError):
            parse_project_branch("../feature")
