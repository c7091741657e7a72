"""Input validation for branch names, project names and identifiers."""

import os
import re
from typing import Optional, Tuple
from urllib.parse import unquote

from twiggit.constants import PRIMARY_BRANCH_NAMES, RESERVED_REF_NAMES
from twiggit.exceptions import ValidationError

BRANCH_NAME_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")
_RESERVED_UPPER = frozenset(name.upper() for name in RESERVED_REF_NAMES)


def validate_branch_name(branch_name: Optional[str]) -> str:
    """Check a branch name against the worktree branch grammar.

    Args:
        branch_name: Name as typed by the user

    Returns:
        The trimmed branch name

    Raises:
        ValidationError: If the name is empty, uses disallowed characters,
            starts or ends with '-' or '.', or collides with a reserved name
    """
    value = branch_name or ""
    name = value.strip()
    if not name:
        raise ValidationError("branch name", value, "cannot be empty")

    if not BRANCH_NAME_PATTERN.match(name):
        raise ValidationError(
            "branch name",
            name,
            "only letters, digits, '.', '-' and '_' are allowed",
            ["Use a name like 'feature-1' or 'release.v1.0'"],
        )

    if name[0] in "-." or name[-1] in "-.":
        raise ValidationError("branch name", name, "cannot start or end with '-' or '.'")

    if name.upper() in _RESERVED_UPPER:
        raise ValidationError("branch name", name, "is a reserved git reference name")

    if name in PRIMARY_BRANCH_NAMES:
        raise ValidationError(
            "branch name",
            name,
            "is the primary branch and lives in the main repository",
            [f"Use 'twiggit cd {name}' to go to the main repository"],
        )

    return name


def contains_path_traversal(value: str) -> bool:
    """Return True if value (or its URL-decoded forms) can escape a directory."""
    candidates = {value}
    decoded = unquote(value)
    candidates.add(decoded)
    candidates.add(unquote(decoded))

    for candidate in candidates:
        normalized = candidate.replace("\\", "/")
        parts = normalized.split("/")
        if ".." in parts:
            return True
        if normalized.startswith("..") or normalized.endswith(".."):
            return True
    return False


def validate_project_name(project_name: Optional[str]) -> str:
    """Validate a project name; returns it trimmed.

    Raises:
        ValidationError: If empty, a path, or containing traversal sequences
    """
    value = project_name or ""
    name = value.strip()
    if not name:
        raise ValidationError("project name", value, "cannot be empty")
    if contains_path_traversal(name):
        raise ValidationError("project name", name, "contains a path traversal sequence")
    if "/" in name or "\\" in name or name in (".", ".."):
        raise ValidationError("project name", name, "must be a single directory name")
    return name


def sanitize_path_component(name: str) -> str:
    """Keep only the final path component of name."""
    return os.path.basename(name.replace("\\", "/").rstrip("/"))


def is_project_branch_form(identifier: str) -> bool:
    parts = identifier.split("/")
    return len(parts) == 2 and all(parts)


def parse_project_branch(identifier: str) -> Tuple[str, str]:
    """Split a 'project/branch' identifier.

    Raises:
        ValidationError: If identifier does not have exactly two non-empty parts
    """
    if not is_project_branch_form(identifier.strip()):
        raise ValidationError(
            "target",
            identifier,
            "expected the form 'project/branch'",
            ["Use 'myproject/feature-x'"],
        )
    project_name, branch_name = identifier.strip().split("/")
    return validate_project_name(project_name), branch_name
