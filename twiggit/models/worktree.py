"""Worktree data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from twiggit.models.hooks import HookResult
from twiggit.models.repository import RepositoryStatus


@dataclass(frozen=True)
class WorktreeRecord:
    """One worktree as reported by `git worktree list`."""

    path: str
    branch: str
    head_commit: str = ""
    is_bare: bool = False
    is_detached: bool = False
    is_locked: bool = False
    is_prunable: bool = False  # Directory missing, reference is stale

    @property
    def short_commit(self) -> str:
        return self.head_commit[:7]

    def __str__(self) -> str:
        """String representation of worktree."""
        branch = self.branch or "(detached)"
        return f"{branch} @ {self.path}"


class BranchSyncStatus(Enum):
    """Position of a worktree's branch relative to its upstream."""
    UP_TO_DATE = "up-to-date"
    AHEAD = "ahead"
    BEHIND = "behind"
    DIVERGED = "diverged"

    @classmethod
    def from_counts(cls, ahead: int, behind: int) -> "BranchSyncStatus":
        if ahead > 0 and behind > 0:
            return cls.DIVERGED
        if ahead > 0:
            return cls.AHEAD
        if behind > 0:
            return cls.BEHIND
        return cls.UP_TO_DATE


@dataclass(frozen=True)
class WorktreeStatus:
    """Status of a single worktree."""

    worktree: WorktreeRecord
    repository_status: RepositoryStatus
    branch_status: BranchSyncStatus
    last_checked: datetime
    project_name: Optional[str] = None

    @property
    def is_clean(self) -> bool:
        return self.repository_status.is_clean

    @property
    def has_uncommitted_changes(self) -> bool:
        return not self.repository_status.is_clean


@dataclass
class WorktreeCreation:
    """A newly created worktree plus the outcome of the follow-up setup steps.

    Setup steps never undo the creation; their problems are collected in
    ``warnings`` and ``hook_result``.
    """

    worktree: WorktreeRecord
    project_name: str
    hook_result: Optional[HookResult] = None
    copied_files: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def path(self) -> str:
        return self.worktree.path
