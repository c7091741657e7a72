"""Context data models."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ContextType(Enum):
    """Where the user is standing."""
    PROJECT = "project"
    WORKTREE = "worktree"
    OUTSIDE_GIT = "outside-git"


@dataclass(frozen=True)
class Context:
    """Classification of a filesystem path relative to projects and worktrees."""

    type: ContextType
    path: str
    project_name: Optional[str] = None
    branch_name: Optional[str] = None
    repo_root: Optional[str] = None  # Main checkout (project) or worktree root
    explanation: str = ""

    def __post_init__(self):
        if self.type == ContextType.OUTSIDE_GIT:
            if self.project_name or self.branch_name:
                raise ValueError("outside-git context cannot carry a project or branch")
        elif not self.project_name:
            raise ValueError(f"{self.type.value} context requires a project name")
        if self.type == ContextType.WORKTREE and not self.branch_name:
            raise ValueError("worktree context requires a branch name")
        if self.type == ContextType.PROJECT and self.branch_name:
            raise ValueError("project context cannot carry a branch name")

    @property
    def in_project(self) -> bool:
        """True for project and worktree contexts."""
        return self.type != ContextType.OUTSIDE_GIT

    def __str__(self) -> str:
        if self.type == ContextType.WORKTREE:
            return f"worktree {self.project_name}/{self.branch_name} @ {self.path}"
        if self.type == ContextType.PROJECT:
            return f"project {self.project_name} @ {self.path}"
        return f"outside git @ {self.path}"
