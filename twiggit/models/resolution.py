"""Resolution result models."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class PathType(Enum):
    """Kind of target an identifier resolved to."""
    PROJECT = "project"
    WORKTREE = "worktree"


@dataclass(frozen=True)
class ResolutionResult:
    """A single, unambiguous resolution of an identifier."""

    resolved_path: str
    target_type: PathType
    project_name: str
    branch_name: str = ""  # Empty when target_type is PROJECT
    explanation: str = ""


@dataclass(frozen=True)
class ResolutionSuggestion:
    """One candidate for partial or ambiguous input."""

    text: str
    description: str
    target_type: PathType
    project_name: str
    branch_name: Optional[str] = None
    resolved_path: Optional[str] = None
