"""Repository metadata served in-process by GitPython's object model."""

from typing import List, Optional

import git

from twiggit.constants import PRIMARY_BRANCH_NAMES
from twiggit.exceptions import GitBackendError
from twiggit.logging_config import get_logger
from twiggit.models.repository import (
    BranchInfo,
    CommitInfo,
    RemoteInfo,
    RepositoryInfo,
    RepositoryStatus,
)
from twiggit.services.git.backend import MetadataBackend
from twiggit.utils.deadline import Deadline

logger = get_logger(__name__)


def _check_deadline(deadline: Optional[Deadline], operation: str, path: str) -> None:
    if deadline is not None and deadline.expired():
        raise GitBackendError(operation, path, "deadline exceeded", TimeoutError(repr(deadline)))


class GitPythonMetadataBackend(MetadataBackend):
    """Metadata backend built on ``git.Repo``.

    A fresh ``git.Repo`` is opened for every call; nothing is cached.
    """

    def _get_repo(self, repo_path: str, operation: str) -> git.Repo:
        try:
            return git.Repo(repo_path)
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
            raise GitBackendError(operation, repo_path, "not a git repository", e) from e

    def open_repository(self, repo_path: str) -> git.Repo:
        return self._get_repo(repo_path, "open")

    def is_repository(self, path: str) -> bool:
        try:
            git.Repo(path)
            return True
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
            return False

    def validate_repository(self, path: str) -> None:
        self._get_repo(path, "validate")

    def list_branches(self, repo_path: str) -> List[BranchInfo]:
        repo = self._get_repo(repo_path, "branch list")
        try:
            current = self._active_branch_name(repo)
            branches = []
            for head in repo.heads:
                commit = head.commit
                tracking = head.tracking_branch()
                branches.append(
                    BranchInfo(
                        name=head.name,
                        is_current=head.name == current,
                        commit=commit.hexsha,
                        author=commit.author.name,
                        date=commit.committed_datetime,
                        remote=tracking.name if tracking is not None else None,
                    )
                )
            return branches
        except (git.exc.GitError, ValueError) as e:
            raise GitBackendError("branch list", repo_path, cause=e) from e

    def branch_exists(self, repo_path: str, branch_name: str) -> bool:
        repo = self._get_repo(repo_path, "branch exists")
        return any(head.name == branch_name for head in repo.heads)

    def get_repository_status(
        self, repo_path: str, deadline: Optional[Deadline] = None
    ) -> RepositoryStatus:
        """Read the working tree state of a checkout.

        Args:
            repo_path: Main repository or worktree directory
            deadline: Checked between the diff passes

        Returns:
            RepositoryStatus with file lists and ahead/behind counts

        Raises:
            GitBackendError: If the path is not a repository, git fails,
                or the deadline expires
        """
        _check_deadline(deadline, "status", repo_path)
        repo = self._get_repo(repo_path, "status")
        try:
            branch = self._active_branch_name(repo)
            commit = repo.head.commit.hexsha if repo.head.is_valid() else ""

            # Working tree against index
            modified = []
            deleted = []
            for diff in repo.index.diff(None):
                if diff.change_type == "D":
                    deleted.append(diff.a_path)
                else:
                    modified.append(diff.a_path)
            _check_deadline(deadline, "status", repo_path)

            # Index against HEAD
            staged = []
            added = []
            if repo.head.is_valid():
                for diff in repo.head.commit.diff():
                    path = diff.b_path or diff.a_path
                    staged.append(path)
                    if diff.change_type == "A":
                        added.append(path)
                    elif diff.change_type == "D" and path not in deleted:
                        deleted.append(path)
            else:
                staged = [path for path, _stage in repo.index.entries]
                added = list(staged)
            _check_deadline(deadline, "status", repo_path)

            untracked = list(repo.untracked_files)
            _check_deadline(deadline, "status", repo_path)

            ahead, behind = self._ahead_behind(repo, branch)
            return RepositoryStatus(
                branch=branch,
                commit=commit,
                modified=modified,
                added=added,
                deleted=deleted,
                staged=staged,
                untracked=untracked,
                ahead=ahead,
                behind=behind,
            )
        except (git.exc.GitError, ValueError) as e:
            raise GitBackendError("status", repo_path, cause=e) from e

    def get_repository_info(self, repo_path: str) -> RepositoryInfo:
        repo = self._get_repo(repo_path, "repository info")
        try:
            return RepositoryInfo(
                path=repo.working_tree_dir or repo.git_dir,
                is_bare=repo.bare,
                head_commit=repo.head.commit.hexsha if repo.head.is_valid() else "",
                branches=self.list_branches(repo_path),
                remotes=self.list_remotes(repo_path),
                default_branch=self._default_branch(repo),
            )
        except (git.exc.GitError, ValueError) as e:
            raise GitBackendError("repository info", repo_path, cause=e) from e

    def get_commit_info(self, repo_path: str, rev: str = "HEAD") -> CommitInfo:
        repo = self._get_repo(repo_path, "commit info")
        try:
            commit = repo.commit(rev)
        except (git.exc.BadName, git.exc.GitError, ValueError) as e:
            raise GitBackendError("commit info", repo_path, f"unknown revision '{rev}'", e) from e
        return CommitInfo(
            hash=commit.hexsha,
            short_hash=commit.hexsha[:7],
            author=commit.author.name,
            email=commit.author.email,
            date=commit.committed_datetime,
            message=commit.message.strip(),
        )

    def list_remotes(self, repo_path: str) -> List[RemoteInfo]:
        repo = self._get_repo(repo_path, "remote list")
        remotes = []
        for remote in repo.remotes:
            fetch_url = remote.config_reader.get_value("url", "")
            push_url = remote.config_reader.get_value("pushurl", fetch_url)
            remotes.append(RemoteInfo(name=remote.name, fetch_url=fetch_url, push_url=push_url))
        return remotes

    @staticmethod
    def _active_branch_name(repo: git.Repo) -> str:
        try:
            return repo.active_branch.name
        except TypeError:
            # Detached HEAD
            return ""

    @staticmethod
    def _ahead_behind(repo: git.Repo, branch: str) -> tuple[int, int]:
        if not branch:
            return 0, 0
        tracking = repo.heads[branch].tracking_branch()
        if tracking is None or not tracking.is_valid():
            return 0, 0
        ahead = list(repo.iter_commits(f"{tracking.name}..{branch}"))
        behind = list(repo.iter_commits(f"{branch}..{tracking.name}"))
        return len(ahead), len(behind)

    @staticmethod
    def _default_branch(repo: git.Repo) -> str:
        """Primary branch of the repository, else the checked-out branch."""
        names = [head.name for head in repo.heads]
        for name in sorted(PRIMARY_BRANCH_NAMES):
            if name in names:
                return name
        try:
            return repo.active_branch.name
        except TypeError:
            return ""
