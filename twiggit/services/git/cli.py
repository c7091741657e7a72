"""Worktree mutation served by the git executable.

Commands run through GitPython's ``git.Git`` command runner rooted at the
repository, so each call is one ``git`` process that GitPython kills once
``kill_after_timeout`` elapses.
"""

import os
from typing import Any, Dict, List, Optional

import git

from twiggit.constants import DEFAULT_GIT_TIMEOUT
from twiggit.exceptions import GitBackendError
from twiggit.logging_config import get_logger
from twiggit.models.worktree import WorktreeRecord
from twiggit.services.git.backend import MutationBackend
from twiggit.utils.deadline import Deadline

logger = get_logger(__name__)

# git answers for a worktree it does not (or no longer) knows about
_MISSING_WORKTREE_MARKERS = ("is not a working tree", "not found", "does not exist")


def parse_worktree_porcelain(output: str) -> List[WorktreeRecord]:
    """Parse ``git worktree list --porcelain`` output.

    Format (blank line between entries)::

        worktree /path/to/worktree
        HEAD <sha>
        branch refs/heads/<name>     (or "detached" / "bare")
        locked [reason]
        prunable [reason]
    """
    records = []
    entry: Dict[str, Any] = {}

    def flush():
        if entry.get("path"):
            records.append(
                WorktreeRecord(
                    path=entry["path"],
                    branch=entry.get("branch", ""),
                    head_commit=entry.get("head", ""),
                    is_bare=entry.get("bare", False),
                    is_detached=entry.get("detached", False),
                    is_locked=entry.get("locked", False),
                    is_prunable=entry.get("prunable", False),
                )
            )
        entry.clear()

    for line in output.splitlines():
        line = line.strip()
        if not line:
            flush()
            continue

        key, _, value = line.partition(" ")
        if key == "worktree":
            flush()
            entry["path"] = value
        elif key == "HEAD":
            entry["head"] = value
        elif key == "branch":
            entry["branch"] = value[len("refs/heads/"):] if value.startswith("refs/heads/") else value
        elif key in ("bare", "detached", "locked", "prunable"):
            entry[key] = True

    # Last entry may lack a trailing blank line
    flush()
    return records


def parse_merged_branches(output: str) -> List[str]:
    """Branch names from ``git branch --merged`` (markers '*' and '+' removed)."""
    names = []
    for line in output.splitlines():
        name = line.strip().lstrip("*+").strip()
        if name and not name.startswith("("):
            names.append(name)
    return names


class GitCliBackend(MutationBackend):
    """Mutation backend that shells out to ``git``."""

    def __init__(self, timeout: float = DEFAULT_GIT_TIMEOUT):
        """Initialize the backend.

        Args:
            timeout: Seconds before a git process is killed when the caller
                passes no deadline
        """
        self.timeout = timeout

    def _run(
        self,
        repo_path: str,
        operation: str,
        args: List[str],
        deadline: Optional[Deadline] = None,
        **kwargs,
    ):
        """Run ``git <args>`` in repo_path.

        Raises:
            GitBackendError: If git fails, the repository is missing, or the
                deadline has already expired
        """
        timeout = self.timeout
        if deadline is not None:
            remaining = deadline.remaining()
            if remaining is not None:
                if remaining <= 0:
                    raise GitBackendError(
                        operation, repo_path, "deadline exceeded", TimeoutError(repr(deadline))
                    )
                timeout = min(timeout, remaining)

        if not os.path.isdir(repo_path):
            raise GitBackendError(
                operation, repo_path, "repository directory does not exist",
                FileNotFoundError(repo_path),
            )

        logger.debug(f"git {' '.join(args)} (cwd={repo_path}, timeout={timeout:.1f}s)")
        try:
            return git.Git(repo_path).execute(
                ["git", *args], kill_after_timeout=timeout, **kwargs
            )
        except git.exc.GitCommandError as e:
            if deadline is not None and deadline.expired():
                raise GitBackendError(operation, repo_path, "deadline exceeded", TimeoutError(str(e))) from e
            raise GitBackendError(operation, repo_path, _stderr(e), e) from e

    def _branch_exists(self, repo_path: str, branch_name: str, deadline: Optional[Deadline]) -> bool:
        status, _out, err = self._run(
            repo_path,
            "show-ref",
            ["show-ref", "--verify", "--quiet", f"refs/heads/{branch_name}"],
            deadline,
            with_extended_output=True,
            with_exceptions=False,
        )
        if status == 0:
            return True
        if status == 1:
            return False
        raise GitBackendError("show-ref", repo_path, f"exit {status}: {err.strip()}")

    def create_worktree(
        self,
        repo_path: str,
        branch_name: str,
        source_branch: Optional[str],
        worktree_path: str,
        deadline: Optional[Deadline] = None,
    ) -> None:
        if self._branch_exists(repo_path, branch_name, deadline):
            args = ["worktree", "add", worktree_path, branch_name]
        else:
            args = ["worktree", "add", "-b", branch_name, worktree_path]
            if source_branch:
                args.append(source_branch)
        self._run(repo_path, "worktree add", args, deadline)
        logger.info(f"Created worktree for {branch_name} at {worktree_path}")

    def delete_worktree(
        self,
        repo_path: str,
        worktree_path: str,
        force: bool = False,
        deadline: Optional[Deadline] = None,
    ) -> None:
        args = ["worktree", "remove"]
        if force:
            args.append("--force")
        args.append(worktree_path)
        try:
            self._run(repo_path, "worktree remove", args, deadline)
        except GitBackendError as e:
            if isinstance(e.cause, git.exc.GitCommandError) and any(
                marker in _stderr(e.cause).lower() for marker in _MISSING_WORKTREE_MARKERS
            ):
                logger.debug(f"Worktree {worktree_path} already gone: {_stderr(e.cause)}")
                # A registered worktree whose directory vanished leaves a stale entry
                self.prune_worktrees(repo_path, deadline)
                return
            raise
        logger.info(f"Removed worktree at {worktree_path}")

    def list_worktrees(
        self, repo_path: str, deadline: Optional[Deadline] = None
    ) -> List[WorktreeRecord]:
        output = self._run(repo_path, "worktree list", ["worktree", "list", "--porcelain"], deadline)
        records = parse_worktree_porcelain(output)
        logger.debug(f"Found {len(records)} worktrees in {repo_path}")
        return records

    def prune_worktrees(self, repo_path: str, deadline: Optional[Deadline] = None) -> None:
        self._run(repo_path, "worktree prune", ["worktree", "prune"], deadline)
        logger.debug(f"Pruned stale worktree references in {repo_path}")

    def is_branch_merged(
        self,
        repo_path: str,
        branch_name: str,
        base: Optional[str] = None,
        deadline: Optional[Deadline] = None,
    ) -> bool:
        args = ["branch", "--merged"]
        if base:
            args.append(base)
        output = self._run(repo_path, "branch --merged", args, deadline)
        merged = branch_name in parse_merged_branches(output)
        logger.debug(f"Branch {branch_name} merged into {base or 'HEAD'}: {merged}")
        return merged

    def delete_branch(
        self,
        repo_path: str,
        branch_name: str,
        force: bool = False,
        deadline: Optional[Deadline] = None,
    ) -> None:
        flag = "-D" if force else "-d"
        self._run(repo_path, "branch delete", ["branch", flag, branch_name], deadline)
        logger.info(f"Deleted branch {branch_name}")


def _stderr(error: git.exc.GitCommandError) -> str:
    stderr = (error.stderr or "").strip()
    if stderr.startswith("stderr:"):
        stderr = stderr[len("stderr:"):].strip()
    return stderr.strip("'").strip() or f"exit code {error.status}"
