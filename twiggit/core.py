"""Core wiring for twiggit"""

import os
from typing import Callable, Optional

from twiggit.config import Config, load_config
from twiggit.exceptions import NotFoundError
from twiggit.logging_config import get_logger
from twiggit.models.context import Context
from twiggit.services.context_detector import ContextDetector
from twiggit.services.context_resolver import ContextResolver
from twiggit.services.git import GitBackend, GitCliBackend, GitPythonMetadataBackend
from twiggit.services.project_discovery import FilesystemProjectDiscovery, ProjectDiscovery
from twiggit.services.prune_service import PruneService
from twiggit.services.worktree_service import WorktreeService
from twiggit.utils.deadline import Deadline

logger = get_logger(__name__)


class Twiggit:
    """Builds the git backends and services from one configuration."""

    def __init__(
        self,
        config: Optional[Config] = None,
        git_backend: Optional[GitBackend] = None,
        discovery: Optional[ProjectDiscovery] = None,
        getcwd: Callable[[], str] = os.getcwd,
    ):
        """Initialize twiggit.

        Args:
            config: Configuration (loaded from file and environment when None)
            git_backend: Backend facade (GitPython metadata + git executable when None)
            discovery: Project lookup (filesystem scan of projects_dir when None)
            getcwd: Source of the current directory
        """
        self.config = config if config is not None else load_config()
        self.git = git_backend or GitBackend(
            GitPythonMetadataBackend(),
            GitCliBackend(timeout=self.config.git_timeout),
        )
        self.discovery = discovery or FilesystemProjectDiscovery(self.config, self.git)
        self.getcwd = getcwd

        self.detector = ContextDetector(self.config)
        self.resolver = ContextResolver(self.config, self.discovery, self.git)
        self.worktrees = WorktreeService(self.config, self.git, self.discovery)
        self.pruner = PruneService(self.config, self.git, self.discovery, getcwd=getcwd)
        logger.debug(f"Initialized with projects_dir={self.config.projects_dir}, "
                     f"worktrees_dir={self.config.worktrees_dir}")

    def current_context(self) -> Context:
        """Context of the current working directory."""
        return self.detector.detect_context(self.current_directory())

    def current_directory(self) -> str:
        """The working directory.

        Raises:
            NotFoundError: If the directory was removed while we were in it
        """
        try:
            return self.getcwd()
        except FileNotFoundError as e:
            raise NotFoundError(
                ".",
                message="Current directory no longer exists",
                suggestions=["Change to an existing directory and try again"],
            ) from e

    def deadline(self) -> Deadline:
        """A fresh deadline of git_timeout seconds."""
        return Deadline(self.config.git_timeout)
