"""Shared constants for twiggit."""

from dataclasses import dataclass
from typing import List


# Git's own reserved ref names; compared case-insensitively
RESERVED_REF_NAMES = frozenset({
    "HEAD",
    "ORIG_HEAD",
    "FETCH_HEAD",
    "MERGE_HEAD",
    "MERGE_STATE",
    "CHERRY_PICK_HEAD",
    "REVERT_HEAD",
})

# Names a new worktree branch may never take (exact match)
PRIMARY_BRANCH_NAMES = frozenset({"main", "master"})

# Identifier that always means "the project's main checkout"
MAIN_IDENTIFIER = "main"

# Upper bound for the upward .git search
MAX_TRAVERSAL_DEPTH = 256

DEFAULT_PROTECTED_BRANCHES = ("main", "master", "develop")
DEFAULT_MAX_SUGGESTIONS = 20
DEFAULT_GIT_TIMEOUT = 30.0
DEFAULT_HOOK_TIMEOUT = 30.0

# Per-project file in the main repository holding [hooks.*] tables
PROJECT_CONFIG_FILENAME = ".twiggit.toml"

# Local mise config copied from the main repository into new worktrees
MISE_LOCAL_CONFIG_FILES = (".mise.local.toml", "mise/config.local.toml")


class SkipCategory:
    """Prune skip categories."""

    CURRENT = "current"
    PROTECTED = "protected"
    UNMERGED = "unmerged"
    SKIPPED = "skipped"


# Skip reason recorded for worktrees a dry run would delete
REASON_DRY_RUN = "dry run"


@dataclass
class ColumnDefinition:
    """Definition of a table column."""

    key: str
    label: str
    width: int = 0  # 0 means auto-width


WORKTREE_COLUMNS: List[ColumnDefinition] = [
    ColumnDefinition("project", "Project", 20),
    ColumnDefinition("branch", "Branch", 30),
    ColumnDefinition("commit", "Commit", 9),
    ColumnDefinition("path", "Path"),
]


SYMBOL_CLEAN = "✓"
SYMBOL_DIRTY = "✗"
SYMBOL_CURRENT = " *"


# CLI colors (Rich color names)
CLI_COLORS = {
    SkipCategory.CURRENT: "cyan",
    SkipCategory.PROTECTED: "cyan",
    SkipCategory.UNMERGED: "yellow",
    SkipCategory.SKIPPED: "yellow",
    "deleted": "red",
}
