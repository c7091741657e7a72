"""Git backend interfaces and the routing facade.

Two narrow capability sets are defined here:

* ``MetadataBackend`` - read-only repository metadata, served in-process.
* ``MutationBackend`` - worktree mutation, merge checks and branch deletion,
  served by the ``git`` executable.

``GitBackend`` holds one of each and forwards every operation to the one
backend that owns it. Routing is fixed per method; nothing is retried or
attempted on the other side.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from twiggit.models.repository import (
    BranchInfo,
    CommitInfo,
    RemoteInfo,
    RepositoryInfo,
    RepositoryStatus,
)
from twiggit.models.worktree import WorktreeRecord
from twiggit.utils.deadline import Deadline


class MetadataBackend(ABC):
    """Read-only repository metadata."""

    @abstractmethod
    def open_repository(self, repo_path: str):
        """Open the repository at repo_path.

        Raises:
            GitBackendError: If repo_path is not a git repository
        """

    @abstractmethod
    def is_repository(self, path: str) -> bool:
        """Return True if path is the root of a git checkout."""

    @abstractmethod
    def validate_repository(self, path: str) -> None:
        """Raise GitBackendError unless path is a git repository."""

    @abstractmethod
    def list_branches(self, repo_path: str) -> List[BranchInfo]:
        """List local branches."""

    @abstractmethod
    def branch_exists(self, repo_path: str, branch_name: str) -> bool:
        """Return True if a local branch named branch_name exists."""

    @abstractmethod
    def get_repository_status(
        self, repo_path: str, deadline: Optional[Deadline] = None
    ) -> RepositoryStatus:
        """Return dirty file lists and ahead/behind counts for a checkout."""

    @abstractmethod
    def get_repository_info(self, repo_path: str) -> RepositoryInfo:
        """Return branches, remotes and head commit of a repository."""

    @abstractmethod
    def get_commit_info(self, repo_path: str, rev: str = "HEAD") -> CommitInfo:
        """Return details of a single commit."""

    @abstractmethod
    def list_remotes(self, repo_path: str) -> List[RemoteInfo]:
        """List configured remotes."""


class MutationBackend(ABC):
    """Worktree mutation and branch lifecycle."""

    @abstractmethod
    def create_worktree(
        self,
        repo_path: str,
        branch_name: str,
        source_branch: Optional[str],
        worktree_path: str,
        deadline: Optional[Deadline] = None,
    ) -> None:
        """Check out branch_name at worktree_path, creating it from source_branch if missing."""

    @abstractmethod
    def delete_worktree(
        self,
        repo_path: str,
        worktree_path: str,
        force: bool = False,
        deadline: Optional[Deadline] = None,
    ) -> None:
        """Remove a worktree; a worktree git no longer knows about is not an error."""

    @abstractmethod
    def list_worktrees(
        self, repo_path: str, deadline: Optional[Deadline] = None
    ) -> List[WorktreeRecord]:
        """List worktrees, main checkout first."""

    @abstractmethod
    def prune_worktrees(self, repo_path: str, deadline: Optional[Deadline] = None) -> None:
        """Drop stale worktree administrative entries."""

    @abstractmethod
    def is_branch_merged(
        self,
        repo_path: str,
        branch_name: str,
        base: Optional[str] = None,
        deadline: Optional[Deadline] = None,
    ) -> bool:
        """Return True if branch_name is merged into base (HEAD when None)."""

    @abstractmethod
    def delete_branch(
        self,
        repo_path: str,
        branch_name: str,
        force: bool = False,
        deadline: Optional[Deadline] = None,
    ) -> None:
        """Delete a local branch."""


class GitBackend:
    """Facade that statically routes git operations to their backend."""

    def __init__(self, metadata: MetadataBackend, mutation: MutationBackend):
        self.metadata = metadata
        self.mutation = mutation

    # Metadata set

    def open_repository(self, repo_path: str):
        return self.metadata.open_repository(repo_path)

    def is_repository(self, path: str) -> bool:
        return self.metadata.is_repository(path)

    def validate_repository(self, path: str) -> None:
        self.metadata.validate_repository(path)

    def list_branches(self, repo_path: str) -> List[BranchInfo]:
        return self.metadata.list_branches(repo_path)

    def branch_exists(self, repo_path: str, branch_name: str) -> bool:
        return self.metadata.branch_exists(repo_path, branch_name)

    def get_repository_status(
        self, repo_path: str, deadline: Optional[Deadline] = None
    ) -> RepositoryStatus:
        return self.metadata.get_repository_status(repo_path, deadline=deadline)

    def get_repository_info(self, repo_path: str) -> RepositoryInfo:
        return self.metadata.get_repository_info(repo_path)

    def get_commit_info(self, repo_path: str, rev: str = "HEAD") -> CommitInfo:
        return self.metadata.get_commit_info(repo_path, rev)

    def list_remotes(self, repo_path: str) -> List[RemoteInfo]:
        return self.metadata.list_remotes(repo_path)

    # Mutation set

    def create_worktree(
        self,
        repo_path: str,
        branch_name: str,
        source_branch: Optional[str],
        worktree_path: str,
        deadline: Optional[Deadline] = None,
    ) -> None:
        self.mutation.create_worktree(
            repo_path, branch_name, source_branch, worktree_path, deadline=deadline
        )

    def delete_worktree(
        self,
        repo_path: str,
        worktree_path: str,
        force: bool = False,
        deadline: Optional[Deadline] = None,
    ) -> None:
        self.mutation.delete_worktree(repo_path, worktree_path, force=force, deadline=deadline)

    def list_worktrees(
        self, repo_path: str, deadline: Optional[Deadline] = None
    ) -> List[WorktreeRecord]:
        return self.mutation.list_worktrees(repo_path, deadline=deadline)

    def prune_worktrees(self, repo_path: str, deadline: Optional[Deadline] = None) -> None:
        self.mutation.prune_worktrees(repo_path, deadline=deadline)

    def is_branch_merged(
        self,
        repo_path: str,
        branch_name: str,
        base: Optional[str] = None,
        deadline: Optional[Deadline] = None,
    ) -> bool:
        return self.mutation.is_branch_merged(repo_path, branch_name, base=base, deadline=deadline)

    def delete_branch(
        self,
        repo_path: str,
        branch_name: str,
        force: bool = False,
        deadline: Optional[Deadline] = None,
    ) -> None:
        self.mutation.delete_branch(repo_path, branch_name, force=force, deadline=deadline)
