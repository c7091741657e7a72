"""Worktree and status formatting utilities."""

import os
from typing import Optional

from twiggit.constants import SYMBOL_CLEAN, SYMBOL_CURRENT, SYMBOL_DIRTY
from twiggit.models.worktree import BranchSyncStatus, WorktreeRecord, WorktreeStatus

SYNC_DISPLAY = {
    BranchSyncStatus.UP_TO_DATE: "up-to-date",
    BranchSyncStatus.AHEAD: "↑ ahead",
    BranchSyncStatus.BEHIND: "↓ behind",
    BranchSyncStatus.DIVERGED: "↕ diverged",
}


def format_branch(record: WorktreeRecord, current_path: Optional[str] = None) -> str:
    """
    Format the branch column of a worktree row.

    Args:
        record: Worktree to format
        current_path: Root of the worktree the user is in, if any

    Returns:
        Branch name, "(detached)" or "(bare)", with a marker for the current worktree
    """
    if record.is_bare:
        name = "(bare)"
    elif record.is_detached or not record.branch:
        name = "(detached)"
    else:
        name = record.branch
    if current_path and os.path.normpath(record.path) == os.path.normpath(current_path):
        name += SYMBOL_CURRENT
    return name


def format_flags(record: WorktreeRecord) -> str:
    flags = []
    if record.is_locked:
        flags.append("locked")
    if record.is_prunable:
        flags.append("prunable")
    return ", ".join(flags)


def format_clean(is_clean: bool) -> str:
    return f"{SYMBOL_CLEAN} clean" if is_clean else f"{SYMBOL_DIRTY} dirty"


def format_sync(status: WorktreeStatus) -> str:
    """Sync column, with counts for ahead/behind."""
    text = SYNC_DISPLAY[status.branch_status]
    repo_status = status.repository_status
    if status.branch_status == BranchSyncStatus.AHEAD:
        text += f" {repo_status.ahead}"
    elif status.branch_status == BranchSyncStatus.BEHIND:
        text += f" {repo_status.behind}"
    elif status.branch_status == BranchSyncStatus.DIVERGED:
        text += f" +{repo_status.ahead}/-{repo_status.behind}"
    return text


def format_changes(status: WorktreeStatus) -> str:
    """Compact change counts, e.g. "+M2 +U1"."""
    repo_status = status.repository_status
    parts = []
    if repo_status.modified:
        parts.append(f"+M{len(repo_status.modified)}")
    if repo_status.staged:
        parts.append(f"+S{len(repo_status.staged)}")
    if repo_status.deleted:
        parts.append(f"+D{len(repo_status.deleted)}")
    if repo_status.untracked:
        parts.append(f"+U{len(repo_status.untracked)}")
    return " ".join(parts)
