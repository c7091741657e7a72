"""Project data models."""

from dataclasses import dataclass, field
from typing import List

from twiggit.models.worktree import WorktreeRecord
from twiggit.utils.paths import normalize_path


@dataclass(frozen=True)
class ProjectSummary:
    """Lightweight project reference used by scans."""
    name: str
    path: str
    main_repo_path: str


@dataclass(frozen=True)
class ProjectInfo:
    """A project: one main repository plus its worktrees."""
    name: str
    path: str
    main_repo_path: str
    worktrees: List[WorktreeRecord] = field(default_factory=list)
    branches: List[str] = field(default_factory=list)
    default_branch: str = ""
    is_bare: bool = False

    def linked_worktrees(self) -> List[WorktreeRecord]:
        """Worktrees other than the main checkout (bare entries excluded)."""
        main_repo = normalize_path(self.main_repo_path)
        return [
            wt for wt in self.worktrees
            if not wt.is_bare and normalize_path(wt.path) != main_repo
        ]
