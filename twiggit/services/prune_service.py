"""Merge-aware pruning of worktrees."""

import os
from typing import Callable, List, Optional, Tuple

from twiggit.config import Config
from twiggit.constants import REASON_DRY_RUN, SkipCategory
from twiggit.exceptions import NotFoundError, TwiggitError, ValidationError
from twiggit.logging_config import get_logger
from twiggit.models.project import ProjectInfo
from twiggit.models.prune import PruneReport, PruneRequest, PruneWorktreeOutcome
from twiggit.models.worktree import WorktreeRecord
from twiggit.services.git.backend import GitBackend
from twiggit.services.project_discovery import ProjectDiscovery
from twiggit.utils.paths import is_path_under, normalize_path
from twiggit.validation import parse_project_branch

logger = get_logger(__name__)


class PruneService:
    """Deletes merged worktrees that pass every safety guard."""

    def __init__(
        self,
        config: Config,
        git_backend: GitBackend,
        discovery: ProjectDiscovery,
        getcwd: Callable[[], str] = os.getcwd,
    ):
        self.config = config
        self.git = git_backend
        self.discovery = discovery
        self.getcwd = getcwd
        self.projects_dir = normalize_path(config.projects_dir)

    def prune(self, request: PruneRequest) -> PruneReport:
        """Run one prune pass.

        Each linked worktree in scope is checked, in order, for: the current
        directory being inside it, a protected branch, an unmerged branch,
        uncommitted changes (skipped with force or dry_run), and dry run.
        Worktrees that pass are deleted, followed by their branch when
        delete_branches is set.

        Args:
            request: Scope and flags of the prune

        Returns:
            PruneReport with every worktree in exactly one list

        Raises:
            ValidationError: If the scope is contradictory or the target malformed
            NotFoundError: If the project or target worktree does not exist
        """
        scopes = self._collect_scopes(request)
        cwd = self._current_directory()
        report = PruneReport()

        for project, worktrees in scopes:
            for worktree in worktrees:
                self._prune_worktree(project, worktree, request, cwd, report)

        if request.target and report.total_deleted == 1:
            project_dir = os.path.join(self.projects_dir, report.deleted[0].project_name)
            if os.path.isdir(project_dir):
                report.navigation_path = project_dir

        logger.info(
            f"Prune finished: {report.total_deleted} deleted, {report.total_skipped} skipped, "
            f"{report.total_branches_deleted} branches deleted"
        )
        return report

    def _collect_scopes(self, request: PruneRequest) -> List[Tuple[ProjectInfo, List[WorktreeRecord]]]:
        if request.all_projects and request.target:
            raise ValidationError(
                "prune request",
                request.target,
                "a specific worktree cannot be combined with all projects",
            )
        if request.target and request.project_name:
            raise ValidationError(
                "prune request",
                request.target,
                "a specific worktree already names its project; drop the project option",
            )
        if request.all_projects and request.project_name:
            raise ValidationError(
                "prune request",
                request.project_name,
                "a single project cannot be combined with all projects",
            )

        if request.target:
            project_name, branch_name = parse_project_branch(request.target)
            project = self.discovery.discover_project(project_name)
            worktrees = [wt for wt in project.linked_worktrees() if wt.branch == branch_name]
            if not worktrees:
                raise NotFoundError(
                    request.target,
                    scopes=[f"worktrees of '{project_name}'"],
                    message=f"No worktree for branch '{branch_name}' in project '{project_name}'",
                )
            return [(project, worktrees)]

        if request.all_projects:
            scopes = []
            for summary in self.discovery.list_project_summaries():
                try:
                    project = self.discovery.get_project_info(summary.main_repo_path)
                except TwiggitError as e:
                    logger.warning(f"Skipping project {summary.name}: {e}")
                    continue
                scopes.append((project, project.linked_worktrees()))
            return scopes

        project = self.discovery.discover_project(request.project_name, request.context)
        return [(project, project.linked_worktrees())]

    def _current_directory(self) -> Optional[str]:
        try:
            return normalize_path(self.getcwd())
        except FileNotFoundError:
            # The current directory was removed underneath us
            return None

    def _prune_worktree(
        self,
        project: ProjectInfo,
        worktree: WorktreeRecord,
        request: PruneRequest,
        cwd: Optional[str],
        report: PruneReport,
    ) -> None:
        outcome = PruneWorktreeOutcome(
            project_name=project.name,
            worktree_path=worktree.path,
            branch_name=worktree.branch,
        )

        def skip(category: str, reason: str, error: Optional[Exception] = None) -> None:
            outcome.category = category
            outcome.skip_reason = reason
            outcome.error = error
            logger.debug(f"Skipping {worktree.path} ({category}): {reason}")
            report.add_skipped(outcome)

        if cwd is not None and is_path_under(normalize_path(worktree.path), cwd, allow_equal=True):
            return skip(SkipCategory.CURRENT, "current directory is inside this worktree")

        if not worktree.branch:
            return skip(SkipCategory.SKIPPED, "detached HEAD")

        if self.config.is_protected(worktree.branch):
            return skip(SkipCategory.PROTECTED, f"branch '{worktree.branch}' is protected")

        base = project.default_branch or None
        try:
            merged = self.git.is_branch_merged(
                project.main_repo_path, worktree.branch, base=base, deadline=request.deadline
            )
        except TwiggitError as e:
            return skip(SkipCategory.SKIPPED, "merge check failed", e)
        if not merged:
            return skip(SkipCategory.UNMERGED, f"branch is not merged into {base or 'HEAD'}")

        if not (request.force or request.dry_run):
            try:
                status = self.git.get_repository_status(worktree.path, deadline=request.deadline)
            except TwiggitError as e:
                return skip(SkipCategory.SKIPPED, "status check failed", e)
            if not status.is_clean:
                return skip(SkipCategory.SKIPPED, "uncommitted changes")

        if request.dry_run:
            return skip(SkipCategory.SKIPPED, REASON_DRY_RUN)

        try:
            self.git.delete_worktree(
                project.main_repo_path, worktree.path, force=request.force, deadline=request.deadline
            )
        except TwiggitError as e:
            return skip(SkipCategory.SKIPPED, "delete failed", e)
        report.add_deleted(outcome)

        if request.delete_branches:
            try:
                self.git.prune_worktrees(project.main_repo_path, deadline=request.deadline)
                # Merge status was verified above
                self.git.delete_branch(
                    project.main_repo_path, worktree.branch, force=True, deadline=request.deadline
                )
            except TwiggitError as e:
                logger.warning(f"Worktree {worktree.path} deleted but branch {worktree.branch} was not: {e}")
                outcome.error = e
                return
            outcome.branch_deleted = True
            report.total_branches_deleted += 1
