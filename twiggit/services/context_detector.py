"""Context detection: where is the user standing?"""

import os
import stat
from typing import Optional

from twiggit.config import Config
from twiggit.constants import MAX_TRAVERSAL_DEPTH
from twiggit.exceptions import BackendFailureError, ValidationError
from twiggit.logging_config import get_logger
from twiggit.models.context import Context, ContextType
from twiggit.utils.paths import normalize_path, relative_parts

logger = get_logger(__name__)


def _marker_kind(marker: str) -> Optional[str]:
    """Return "dir", "file" or None for a .git marker; PermissionError propagates."""
    try:
        mode = os.stat(marker).st_mode
    except (FileNotFoundError, NotADirectoryError):
        return None
    if stat.S_ISDIR(mode):
        return "dir"
    if stat.S_ISREG(mode):
        return "file"
    return None


def read_gitdir(git_file: str) -> Optional[str]:
    """Follow a worktree's ``.git`` file to its gitdir.

    Returns:
        Absolute gitdir path, or None if the file has no ``gitdir:`` line or
        points at a directory that does not exist
    """
    try:
        with open(git_file, encoding="utf-8") as f:
            content = f.read()
    except PermissionError:
        raise
    except (OSError, UnicodeDecodeError) as e:
        logger.debug(f"Could not read {git_file}: {e}")
        return None

    for line in content.splitlines():
        if line.startswith("gitdir:"):
            gitdir = line[len("gitdir:"):].strip()
            if not gitdir:
                return None
            if not os.path.isabs(gitdir):
                gitdir = os.path.join(os.path.dirname(git_file), gitdir)
            gitdir = normalize_path(gitdir)
            return gitdir if os.path.isdir(gitdir) else None
    return None


def main_repository_from_gitdir(gitdir: str, checkout_root: str) -> str:
    """Main repository that owns a linked gitdir (via its ``commondir``)."""
    commondir_file = os.path.join(gitdir, "commondir")
    if not os.path.isfile(commondir_file):
        # Not a linked worktree (e.g. --separate-git-dir): the checkout is the repository
        return checkout_root

    with open(commondir_file, encoding="utf-8") as f:
        common = f.read().strip()
    if not os.path.isabs(common):
        common = os.path.join(gitdir, common)
    common = normalize_path(common)
    if os.path.basename(common) == ".git":
        return os.path.dirname(common)
    return common


class ContextDetector:
    """Classifies filesystem paths as project, worktree or outside git."""

    def __init__(self, config: Config):
        self.config = config
        self.projects_dir = normalize_path(config.projects_dir)
        self.worktrees_dir = normalize_path(config.worktrees_dir)

    def detect_context(self, path: str) -> Context:
        """Classify path.

        Args:
            path: Filesystem path, usually the current directory

        Returns:
            A fresh Context

        Raises:
            ValidationError: If path is empty
            BackendFailureError: If the filesystem cannot be read
        """
        if not path or not str(path).strip():
            raise ValidationError("path", str(path or ""), "cannot be empty")

        abs_path = normalize_path(str(path))
        try:
            context = self._detect_worktree(abs_path) or self._detect_project(abs_path)
        except PermissionError as e:
            raise BackendFailureError("detect context", abs_path, "unreadable filesystem state", e) from e

        if context is None:
            context = Context(
                type=ContextType.OUTSIDE_GIT,
                path=abs_path,
                explanation="No git repository found",
            )
        logger.debug(f"Detected context: {context}")
        return context

    def _detect_worktree(self, abs_path: str) -> Optional[Context]:
        parts = relative_parts(self.worktrees_dir, abs_path)
        if not parts or len(parts) < 2:
            return None

        project_name, branch_name = parts[0], parts[1]
        worktree_root = os.path.join(self.worktrees_dir, project_name, branch_name)
        marker = os.path.join(worktree_root, ".git")
        if _marker_kind(marker) != "file" or read_gitdir(marker) is None:
            return None

        return Context(
            type=ContextType.WORKTREE,
            path=abs_path,
            project_name=project_name,
            branch_name=branch_name,
            repo_root=worktree_root,
            explanation=f"In worktree '{branch_name}' of project '{project_name}'",
        )

    def _detect_project(self, abs_path: str) -> Optional[Context]:
        current = abs_path
        for _ in range(MAX_TRAVERSAL_DEPTH):
            marker = os.path.join(current, ".git")
            kind = _marker_kind(marker)

            main_repo = None
            if kind == "dir":
                main_repo = current
            elif kind == "file":
                gitdir = read_gitdir(marker)
                if gitdir is not None:
                    main_repo = main_repository_from_gitdir(gitdir, current)
                else:
                    logger.debug(f"Ignoring unusable .git file {marker}")

            if main_repo is not None:
                return self._classify_repository(abs_path, main_repo)

            parent = os.path.dirname(current)
            if parent == current:
                break
            current = parent
        return None

    def _classify_repository(self, abs_path: str, main_repo: str) -> Context:
        parts = relative_parts(self.projects_dir, main_repo)
        if not parts:
            return Context(
                type=ContextType.OUTSIDE_GIT,
                path=abs_path,
                explanation=f"Repository {main_repo} is outside {self.projects_dir}",
            )

        project_name = parts[0]
        return Context(
            type=ContextType.PROJECT,
            path=abs_path,
            project_name=project_name,
            repo_root=os.path.join(self.projects_dir, project_name),
            explanation=f"In project '{project_name}'",
        )
