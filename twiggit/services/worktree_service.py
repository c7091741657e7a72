"""Worktree lifecycle: create, delete, list, status."""

import os
from datetime import datetime
from typing import List, Optional, Tuple

from twiggit.config import Config
from twiggit.exceptions import (
    BackendFailureError,
    ConflictError,
    NotFoundError,
    TwiggitError,
    ValidationError,
)
from twiggit.logging_config import get_logger
from twiggit.models.context import Context
from twiggit.models.hooks import HookType
from twiggit.models.project import ProjectInfo
from twiggit.models.worktree import BranchSyncStatus, WorktreeCreation, WorktreeRecord, WorktreeStatus
from twiggit.services.git.backend import GitBackend
from twiggit.services.hook_runner import HookRunner
from twiggit.services.mise_integration import MiseIntegration
from twiggit.services.project_discovery import ProjectDiscovery
from twiggit.utils.deadline import Deadline
from twiggit.utils.paths import is_path_under, normalize_path, relative_parts
from twiggit.validation import sanitize_path_component, validate_branch_name

logger = get_logger(__name__)


class WorktreeService:
    """Service for creating, deleting and inspecting worktrees."""

    def __init__(
        self,
        config: Config,
        git_backend: GitBackend,
        discovery: ProjectDiscovery,
        hook_runner: Optional[HookRunner] = None,
        mise: Optional[MiseIntegration] = None,
    ):
        """Initialize the worktree service.

        Args:
            config: Loaded configuration
            git_backend: Routing facade over the git backends
            discovery: Project lookup
            hook_runner: Runs post-create hooks (hook_timeout from config when None)
            mise: Copies local mise config into new worktrees
        """
        self.config = config
        self.git = git_backend
        self.discovery = discovery
        self.hook_runner = hook_runner or HookRunner(timeout=config.hook_timeout)
        self.mise = mise or MiseIntegration()
        self.projects_dir = normalize_path(config.projects_dir)
        self.worktrees_dir = normalize_path(config.worktrees_dir)

    def worktree_path_for(self, project_name: str, branch_name: str) -> str:
        """Destination of a branch's worktree: <worktrees_dir>/<project>/<branch>."""
        path = os.path.join(
            self.worktrees_dir,
            sanitize_path_component(project_name),
            sanitize_path_component(branch_name),
        )
        if not is_path_under(self.worktrees_dir, path):
            raise ValidationError("branch name", branch_name, f"resolves outside {self.worktrees_dir}")
        return path

    def create_worktree(
        self,
        project_name: Optional[str],
        branch_name: str,
        source_branch: Optional[str] = None,
        context: Optional[Context] = None,
        deadline: Optional[Deadline] = None,
    ) -> WorktreeCreation:
        """Create a worktree for branch_name in a project.

        An existing branch is checked out; a new one is created from
        source_branch (default_source_branch when None). Afterwards local
        mise config is copied in and the project's post-create hook runs;
        failures of those two steps are reported on the result and never
        undo the worktree.

        Args:
            project_name: Project to create in; empty means the context's project
            branch_name: Branch for the worktree
            source_branch: Start point for a new branch
            context: Detected context of the caller
            deadline: Cancellation signal for the git calls

        Returns:
            WorktreeCreation holding the record listed by git after creation

        Raises:
            ValidationError: If the branch or project name is invalid
            NotFoundError: If the project does not exist
            ConflictError: If the destination path already exists
            BackendFailureError: If git fails
        """
        branch_name = validate_branch_name(branch_name)
        source = (source_branch or self.config.default_source_branch).strip()
        if not source:
            raise ValidationError("source branch", source_branch or "", "cannot be empty")

        project = self.discovery.discover_project(project_name, context)
        worktree_path = self.worktree_path_for(project.name, branch_name)

        if os.path.lexists(worktree_path):
            raise ConflictError("worktree", branch_name, worktree_path)

        try:
            os.makedirs(os.path.dirname(worktree_path), exist_ok=True)
        except OSError as e:
            raise BackendFailureError("create worktree directory", worktree_path, cause=e) from e

        logger.debug(f"Creating worktree {branch_name} from {source} in {project.name}")
        self.git.create_worktree(
            project.main_repo_path, branch_name, source, worktree_path, deadline=deadline
        )

        record = None
        for listed in self.git.list_worktrees(project.main_repo_path, deadline=deadline):
            if normalize_path(listed.path) == normalize_path(worktree_path):
                record = listed
                break
        if record is None:
            raise BackendFailureError(
                "create worktree", worktree_path, "worktree not listed by git after creation"
            )

        creation = WorktreeCreation(worktree=record, project_name=project.name)
        self._set_up_worktree(project, creation, branch_name, source)
        return creation

    def _set_up_worktree(
        self, project: ProjectInfo, creation: WorktreeCreation, branch_name: str, source: str
    ) -> None:
        try:
            creation.copied_files = self.mise.setup_worktree(project.main_repo_path, creation.path)
        except BackendFailureError as e:
            logger.warning(f"mise setup failed for {creation.path}: {e}")
            creation.warnings.append(f"mise setup failed: {e}")

        creation.hook_result = self.hook_runner.run(
            HookType.POST_CREATE,
            main_repo_path=project.main_repo_path,
            worktree_path=creation.path,
            project_name=project.name,
            branch_name=branch_name,
            source_branch=source,
        )

    def delete_worktree(
        self,
        worktree_path: str,
        force: bool = False,
        context: Optional[Context] = None,
        deadline: Optional[Deadline] = None,
    ) -> None:
        """Delete a worktree. A worktree no project knows about counts as deleted.

        Raises:
            ValidationError: If the path is empty or is a project's main repository
            BackendFailureError: If git refuses the removal
        """
        if not worktree_path or not worktree_path.strip():
            raise ValidationError("worktree path", worktree_path or "", "cannot be empty")

        owner = self.find_worktree(worktree_path, deadline=deadline)
        if owner is None:
            logger.info(f"Worktree {worktree_path} is not registered in any project; nothing to delete")
            return

        repo_path, record = owner
        if normalize_path(record.path) == normalize_path(repo_path):
            raise ValidationError(
                "worktree path", worktree_path, "is a project's main repository, not a worktree"
            )

        self.git.delete_worktree(repo_path, record.path, force=force, deadline=deadline)

    def find_worktree(
        self, worktree_path: str, deadline: Optional[Deadline] = None
    ) -> Optional[Tuple[str, WorktreeRecord]]:
        """Locate the project that owns a worktree.

        Tries <projects_dir>/<first segment> for paths under worktrees_dir,
        then every discovered project.

        Returns:
            (main repository path, worktree record), or None if no project lists it
        """
        target = normalize_path(worktree_path)
        candidates: List[str] = []

        parts = relative_parts(self.worktrees_dir, target)
        if parts:
            candidates.append(os.path.join(self.projects_dir, parts[0]))

        checked = set()
        for repo_path in candidates + [s.main_repo_path for s in self.discovery.list_project_summaries()]:
            repo_path = normalize_path(repo_path)
            if repo_path in checked:
                continue
            checked.add(repo_path)
            if not os.path.isdir(repo_path) or not self.git.is_repository(repo_path):
                continue

            try:
                records = self.git.list_worktrees(repo_path, deadline=deadline)
            except TwiggitError as e:
                logger.warning(f"Could not list worktrees of {repo_path}: {e}")
                continue
            for record in records:
                if normalize_path(record.path) == target:
                    return repo_path, record
        return None

    def list_project_worktrees(
        self,
        project_name: Optional[str] = None,
        context: Optional[Context] = None,
        all_projects: bool = False,
        include_main: bool = False,
        deadline: Optional[Deadline] = None,
    ) -> List[Tuple[str, WorktreeRecord]]:
        """Worktrees paired with the name of their project."""
        if all_projects:
            scopes = [(s.name, s.main_repo_path) for s in self.discovery.list_project_summaries()]
        else:
            project = self.discovery.discover_project(project_name, context)
            scopes = [(project.name, project.main_repo_path)]

        results = []
        for name, repo_path in scopes:
            try:
                records = self.git.list_worktrees(repo_path, deadline=deadline)
            except TwiggitError as e:
                if not all_projects:
                    raise
                logger.warning(f"Skipping project {name}: {e}")
                continue
            main_repo = normalize_path(repo_path)
            for record in records:
                if not include_main and normalize_path(record.path) == main_repo:
                    continue
                results.append((name, record))
        return results

    def list_worktrees(
        self,
        project_name: Optional[str] = None,
        context: Optional[Context] = None,
        all_projects: bool = False,
        include_main: bool = False,
        deadline: Optional[Deadline] = None,
    ) -> List[WorktreeRecord]:
        """List worktrees of one project (by name or context) or of all projects.

        The main repository is left out unless include_main is set.
        """
        return [
            record
            for _name, record in self.list_project_worktrees(
                project_name, context, all_projects, include_main, deadline
            )
        ]

    def get_worktree_status(
        self, worktree_path: str, deadline: Optional[Deadline] = None
    ) -> WorktreeStatus:
        """Clean/dirty state and upstream position of a worktree.

        Raises:
            NotFoundError: If the directory is missing or no project lists it
            BackendFailureError: If git fails
        """
        repo_path, record = self._require_worktree(worktree_path, deadline)
        repository_status = self.git.get_repository_status(record.path, deadline=deadline)
        return WorktreeStatus(
            worktree=record,
            repository_status=repository_status,
            branch_status=BranchSyncStatus.from_counts(
                repository_status.ahead, repository_status.behind
            ),
            last_checked=datetime.now(),
            project_name=os.path.basename(repo_path),
        )

    def validate_worktree(self, worktree_path: str) -> WorktreeRecord:
        """Check that a path is a git checkout listed by its owning project."""
        path = normalize_path(worktree_path or ".")
        if worktree_path and os.path.isdir(path) and not self.git.is_repository(path):
            raise ValidationError("worktree path", worktree_path, "is not a git repository")
        return self._require_worktree(worktree_path)[1]

    def _require_worktree(
        self, worktree_path: str, deadline: Optional[Deadline] = None
    ) -> Tuple[str, WorktreeRecord]:
        if not worktree_path or not worktree_path.strip():
            raise ValidationError("worktree path", worktree_path or "", "cannot be empty")
        if not os.path.isdir(normalize_path(worktree_path)):
            raise NotFoundError(worktree_path, message=f"Worktree '{worktree_path}' does not exist")

        owner = self.find_worktree(worktree_path, deadline=deadline)
        if owner is None:
            raise NotFoundError(
                worktree_path,
                scopes=[self.worktrees_dir, "all projects"],
                message=f"'{worktree_path}' is not a worktree of any project",
            )
        return owner
