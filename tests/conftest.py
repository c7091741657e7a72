"""Pytest fixtures for twiggit tests"""
import os
import tempfile
from pathlib import Path
from unittest.mock import Mock

import git
import pytest

from twiggit.config import Config
from twiggit.core import Twiggit
from twiggit.models.project import ProjectInfo, ProjectSummary
from twiggit.models.repository import RepositoryStatus
from twiggit.models.worktree import WorktreeRecord
from twiggit.services.git import GitBackend, GitCliBackend, GitPythonMetadataBackend
from twiggit.services.project_discovery import ProjectDiscovery


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        # realpath so comparisons match the paths git reports
        yield Path(os.path.realpath(tmpdir))


@pytest.fixture
def projects_dir(temp_dir):
    path = temp_dir / "Projects"
    path.mkdir()
    return path


@pytest.fixture
def worktrees_dir(temp_dir):
    path = temp_dir / "Worktrees"
    path.mkdir()
    return path


@pytest.fixture
def config(projects_dir, worktrees_dir):
    """Configuration rooted in the temporary directory."""
    return Config(projects_dir=str(projects_dir), worktrees_dir=str(worktrees_dir))


def init_repo(repo_path: Path) -> git.Repo:
    """Create a repository with one commit on main."""
    repo_path.mkdir(parents=True, exist_ok=True)
    repo = git.Repo.init(repo_path)

    # Configure git user for commits
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()

    test_file = repo_path / "README.md"
    test_file.write_text("# Test Repository\n")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit")

    # Rename master to main if needed
    repo.git.branch("-M", "main")
    return repo


@pytest.fixture
def make_project(projects_dir):
    """Factory creating a project repository under projects_dir."""
    repos = []

    def _make(name: str) -> git.Repo:
        repo = init_repo(projects_dir / name)
        repos.append(repo)
        return repo

    yield _make

    for repo in repos:
        repo.close()


@pytest.fixture
def make_repo():
    """Factory creating a repository at an arbitrary path."""
    repos = []

    def _make(path: Path) -> git.Repo:
        repo = init_repo(path)
        repos.append(repo)
        return repo

    yield _make

    for repo in repos:
        repo.close()


@pytest.fixture
def demo_project(make_project):
    return make_project("demo")


@pytest.fixture
def add_worktree(worktrees_dir):
    """Factory adding a worktree at <worktrees_dir>/<project>/<branch>."""

    def _add(repo: git.Repo, branch: str, commit_file: str = None) -> Path:
        project_name = os.path.basename(repo.working_dir)
        path = worktrees_dir / project_name / branch
        path.parent.mkdir(parents=True, exist_ok=True)
        repo.git.worktree("add", "-b", branch, str(path))
        if commit_file:
            worktree_repo = git.Repo(path)
            (path / commit_file).write_text(f"{branch}\n")
            worktree_repo.index.add([commit_file])
            worktree_repo.index.commit(f"Work on {branch}")
            worktree_repo.close()
        return path

    return _add


@pytest.fixture
def git_backend(config):
    """The real backend pair."""
    return GitBackend(GitPythonMetadataBackend(), GitCliBackend(timeout=config.git_timeout))


@pytest.fixture
def app(config, temp_dir):
    """Twiggit wired against the temporary layout, standing in temp_dir."""
    return Twiggit(config, getcwd=lambda: str(temp_dir))


@pytest.fixture
def mock_backend():
    """Create a mock GitBackend."""
    backend = Mock(spec=GitBackend)
    backend.is_branch_merged.return_value = True
    backend.get_repository_status.return_value = RepositoryStatus(branch="", commit="abc123")
    return backend


@pytest.fixture
def mock_project():
    """A project 'demo' with four linked worktrees."""
    main = "/fake/Projects/demo"
    worktrees = [WorktreeRecord(path=main, branch="main", head_commit="a" * 40)]
    for branch in ("feature-a", "feature-b", "develop", "wip"):
        worktrees.append(
            WorktreeRecord(path=f"/fake/Worktrees/demo/{branch}", branch=branch, head_commit="b" * 40)
        )
    return ProjectInfo(
        name="demo",
        path=main,
        main_repo_path=main,
        worktrees=worktrees,
        branches=["main", "feature-a", "feature-b", "develop", "wip"],
        default_branch="main",
    )


@pytest.fixture
def mock_discovery(mock_project):
    """Create a mock ProjectDiscovery serving mock_project."""
    discovery = Mock(spec=ProjectDiscovery)
    discovery.discover_project.return_value = mock_project
    discovery.get_project_info.return_value = mock_project
    discovery.list_project_summaries.return_value = [
        ProjectSummary(name="demo", path=mock_project.path, main_repo_path=mock_project.main_repo_path)
    ]
    return discovery
