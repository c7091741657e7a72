"""Project discovery: mapping project names to main repositories."""

import os
from abc import ABC, abstractmethod
from typing import List, Optional

from twiggit.config import Config
from twiggit.exceptions import NotFoundError, TwiggitError, ValidationError
from twiggit.logging_config import get_logger
from twiggit.models.context import Context
from twiggit.models.project import ProjectInfo, ProjectSummary
from twiggit.services.git.backend import GitBackend
from twiggit.utils.paths import is_path_under, normalize_path
from twiggit.validation import validate_project_name

logger = get_logger(__name__)


class ProjectDiscovery(ABC):
    """Lookup of projects and their main repositories."""

    @abstractmethod
    def discover_project(self, name: Optional[str], context: Optional[Context] = None) -> ProjectInfo:
        """Find a project by name, falling back to the context's project."""

    @abstractmethod
    def list_projects(self) -> List[ProjectInfo]:
        """Full information for every project."""

    @abstractmethod
    def list_project_summaries(self) -> List[ProjectSummary]:
        """Name and paths of every project, without worktree or branch detail."""

    @abstractmethod
    def get_project_info(self, path: str) -> ProjectInfo:
        """Full information for the project whose main repository is at path."""

    @abstractmethod
    def validate_project(self, path: str) -> None:
        """Raise unless path is a project main repository."""


class FilesystemProjectDiscovery(ProjectDiscovery):
    """Projects are the immediate sub-directories of ``projects_dir`` that are git repositories."""

    def __init__(self, config: Config, git_backend: GitBackend):
        self.config = config
        self.git = git_backend
        self.projects_dir = normalize_path(config.projects_dir)

    def list_project_summaries(self) -> List[ProjectSummary]:
        if not os.path.isdir(self.projects_dir):
            logger.debug(f"Projects directory {self.projects_dir} does not exist")
            return []

        summaries = []
        for entry in sorted(os.listdir(self.projects_dir)):
            path = os.path.join(self.projects_dir, entry)
            if not os.path.isdir(path) or not self.git.is_repository(path):
                continue
            summaries.append(
                ProjectSummary(name=entry, path=path, main_repo_path=normalize_path(path))
            )
        logger.debug(f"Discovered {len(summaries)} projects in {self.projects_dir}")
        return summaries

    def list_projects(self) -> List[ProjectInfo]:
        projects = []
        for summary in self.list_project_summaries():
            try:
                projects.append(self.get_project_info(summary.main_repo_path))
            except TwiggitError as e:
                logger.warning(f"Skipping project {summary.name}: {e}")
        return projects

    def discover_project(self, name: Optional[str], context: Optional[Context] = None) -> ProjectInfo:
        """Find a project by name.

        Args:
            name: Project name; when empty the context's project is used
            context: Detected context of the caller

        Returns:
            ProjectInfo of the project

        Raises:
            ValidationError: If no name is given and the context has no project,
                or the name is malformed
            NotFoundError: If no project with that name exists
        """
        if not name and context is not None and context.in_project:
            name = context.project_name
        if not name:
            raise ValidationError(
                "project name",
                "",
                "required when not inside a project",
                ["Pass a project name or run the command inside a project"],
            )

        name = validate_project_name(name)
        path = os.path.join(self.projects_dir, name)
        if not os.path.isdir(path) or not self.git.is_repository(path):
            known = [summary.name for summary in self.list_project_summaries()]
            raise NotFoundError(
                name,
                scopes=[self.projects_dir],
                message=f"Project '{name}' not found",
                suggestions=[f"Known projects: {', '.join(known)}"] if known else None,
            )
        return self.get_project_info(path)

    def get_project_info(self, path: str) -> ProjectInfo:
        main_repo_path = normalize_path(path)
        info = self.git.get_repository_info(main_repo_path)
        worktrees = self.git.list_worktrees(main_repo_path)
        return ProjectInfo(
            name=os.path.basename(os.path.abspath(path)),
            path=main_repo_path,
            main_repo_path=main_repo_path,
            worktrees=worktrees,
            branches=[branch.name for branch in info.branches],
            default_branch=info.default_branch,
            is_bare=info.is_bare,
        )

    def validate_project(self, path: str) -> None:
        main_repo_path = normalize_path(path)
        if not os.path.isdir(main_repo_path):
            raise NotFoundError(path, message=f"Project directory '{path}' not found")
        if not is_path_under(self.projects_dir, main_repo_path):
            raise ValidationError("project path", path, f"must be inside {self.projects_dir}")
        if not self.git.is_repository(main_repo_path):
            raise ValidationError("project path", path, "is not a git repository")
