"""Carry local mise configuration into new worktrees."""

import os
import shutil
import subprocess
from typing import List, Optional, Sequence

from twiggit.constants import MISE_LOCAL_CONFIG_FILES
from twiggit.exceptions import BackendFailureError
from twiggit.logging_config import get_logger

logger = get_logger(__name__)


class MiseIntegration:
    """Copies untracked ``*.local.toml`` mise files and trusts the new directory.

    The copy happens whether or not mise is installed; ``mise trust`` only
    runs when the executable is on PATH.
    """

    def __init__(
        self,
        exec_path: str = "mise",
        config_files: Sequence[str] = MISE_LOCAL_CONFIG_FILES,
        timeout: float = 10.0,
    ):
        self.exec_path = exec_path
        self.config_files = tuple(config_files)
        self.timeout = timeout

    def is_available(self) -> bool:
        return shutil.which(self.exec_path) is not None

    def detect_config_files(self, repo_path: str) -> List[str]:
        """Relative paths of the local config files present in repo_path."""
        return [f for f in self.config_files if os.path.isfile(os.path.join(repo_path, f))]

    def setup_worktree(self, source_repo_path: str, worktree_path: str) -> List[str]:
        """Copy local mise config from the main repository into a worktree.

        Returns:
            The relative paths that were copied

        Raises:
            BackendFailureError: If the worktree is missing or a copy fails
        """
        if not os.path.isdir(worktree_path):
            raise BackendFailureError("mise setup", worktree_path, "worktree directory does not exist")

        copied = []
        for relative in self.detect_config_files(source_repo_path):
            target = os.path.join(worktree_path, relative)
            try:
                os.makedirs(os.path.dirname(target), exist_ok=True)
                shutil.copyfile(os.path.join(source_repo_path, relative), target)
            except OSError as e:
                raise BackendFailureError("mise setup", target, "could not copy config", e) from e
            copied.append(relative)

        if copied:
            logger.debug(f"Copied mise config {copied} into {worktree_path}")
            self.trust_directory(worktree_path)
        return copied

    def trust_directory(self, path: str) -> Optional[bool]:
        """Run ``mise trust``. Returns None when mise is not installed."""
        if not self.is_available():
            return None
        try:
            subprocess.run(
                [self.exec_path, "trust", path],
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=True,
            )
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as e:
            logger.debug(f"mise trust failed for {path}: {e}")
            return False
        return True
