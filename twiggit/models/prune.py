"""Prune request and report models."""

from dataclasses import dataclass, field
from typing import List, Optional

from twiggit.constants import SkipCategory
from twiggit.models.context import Context
from twiggit.utils.deadline import Deadline


@dataclass
class PruneRequest:
    """What to prune and how.

    Exactly one scope applies: ``target`` ("project/branch"), ``all_projects``,
    or a single project (``project_name`` or the context's project).
    """
    context: Optional[Context] = None
    project_name: Optional[str] = None
    target: Optional[str] = None
    all_projects: bool = False
    force: bool = False
    dry_run: bool = False
    delete_branches: bool = False
    deadline: Optional[Deadline] = None  # Passed to every git call


@dataclass
class PruneWorktreeOutcome:
    """Per-worktree result of a prune pass."""
    project_name: str
    worktree_path: str
    branch_name: str
    deleted: bool = False
    branch_deleted: bool = False
    category: Optional[str] = None  # SkipCategory value when skipped
    skip_reason: Optional[str] = None
    error: Optional[Exception] = None


@dataclass
class PruneReport:
    """Aggregate prune result; skip lists are disjoint."""
    deleted: List[PruneWorktreeOutcome] = field(default_factory=list)
    current_skipped: List[PruneWorktreeOutcome] = field(default_factory=list)
    protected_skipped: List[PruneWorktreeOutcome] = field(default_factory=list)
    unmerged_skipped: List[PruneWorktreeOutcome] = field(default_factory=list)
    skipped: List[PruneWorktreeOutcome] = field(default_factory=list)
    total_deleted: int = 0
    total_skipped: int = 0
    total_branches_deleted: int = 0
    navigation_path: Optional[str] = None

    def add_deleted(self, outcome: PruneWorktreeOutcome) -> None:
        outcome.deleted = True
        self.deleted.append(outcome)
        self.total_deleted += 1

    def add_skipped(self, outcome: PruneWorktreeOutcome) -> None:
        """File an outcome under the list matching its category."""
        buckets = {
            SkipCategory.CURRENT: self.current_skipped,
            SkipCategory.PROTECTED: self.protected_skipped,
            SkipCategory.UNMERGED: self.unmerged_skipped,
        }
        buckets.get(outcome.category, self.skipped).append(outcome)
        self.total_skipped += 1

    def outcomes(self) -> List[PruneWorktreeOutcome]:
        """All outcomes, deleted first."""
        return (
            self.deleted
            + self.current_skipped
            + self.protected_skipped
            + self.unmerged_skipped
            + self.skipped
        )
