"""Repository metadata models (read through the metadata backend)."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass(frozen=True)
class BranchInfo:
    """A local branch."""
    name: str
    is_current: bool = False
    commit: str = ""
    author: str = ""
    date: Optional[datetime] = None
    remote: Optional[str] = None  # e.g. "origin/feature-x"


@dataclass(frozen=True)
class RemoteInfo:
    """A configured remote."""
    name: str
    fetch_url: str = ""
    push_url: str = ""


@dataclass(frozen=True)
class CommitInfo:
    """A single commit."""
    hash: str
    short_hash: str
    author: str
    email: str
    date: datetime
    message: str


@dataclass(frozen=True)
class RepositoryStatus:
    """Working tree state of one checkout."""
    branch: str  # Empty when HEAD is detached
    commit: str
    modified: List[str] = field(default_factory=list)
    added: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    staged: List[str] = field(default_factory=list)
    untracked: List[str] = field(default_factory=list)
    ahead: int = 0
    behind: int = 0

    @property
    def is_clean(self) -> bool:
        return not (self.modified or self.added or self.deleted or self.staged or self.untracked)


@dataclass(frozen=True)
class RepositoryInfo:
    """Aggregate repository description."""
    path: str
    is_bare: bool
    head_commit: str
    branches: List[BranchInfo] = field(default_factory=list)
    remotes: List[RemoteInfo] = field(default_factory=list)
    default_branch: str = ""
