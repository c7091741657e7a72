"""Formatting utilities for twiggit.

- worktree: worktree rows and status fields
- prune: prune report lines and summary
"""

# Worktree formatters
from .worktree import (
    format_branch,
    format_changes,
    format_clean,
    format_flags,
    format_sync,
)

# Prune formatters
from .prune import CATEGORY_TITLES, format_outcome, format_summary

__all__ = [
    # Worktree
    "format_branch",
    "format_changes",
    "format_clean",
    "format_flags",
    "format_sync",
    # Prune
    "CATEGORY_TITLES",
    "format_outcome",
    "format_summary",
]
