"""Tests for the git backends and the routing facade"""

from unittest.mock import Mock, patch

import git
import pytest

from twiggit.exceptions import ErrorKind, GitBackendError
from twiggit.services.git import (
    GitBackend,
    GitCliBackend,
    GitPythonMetadataBackend,
    MetadataBackend,
    MutationBackend,
)
from twiggit.services.git.cli import parse_merged_branches, parse_worktree_porcelain
from twiggit.utils.deadline import Deadline


PORCELAIN = """worktree /repos/demo
HEAD 1111111111111111111111111111111111111111
branch refs/heads/main

worktree /wt/demo/feature-1
HEAD 2222222222222222222222222222222222222222
branch refs/heads/feature-1
locked reason here

worktree /wt/demo/detached
HEAD 3333333333333333333333333333333333333333
detached
prunable gitdir file points to non-existent location
"""


class TestFacadeRouting:
    """Test that each operation reaches exactly one backend."""

    @pytest.fixture
    def backends(self):
        metadata = Mock(spec=MetadataBackend)
        mutation = Mock(spec=MutationBackend)
        return metadata, mutation, GitBackend(metadata, mutation)

    @pytest.mark.parametrize(
        "method,args",
        [
            ("open_repository", ("/r",)),
            ("is_repository", ("/r",)),
            ("validate_repository", ("/r",)),
            ("list_branches", ("/r",)),
            ("branch_exists", ("/r", "b")),
            ("get_repository_status", ("/r",)),
            ("get_repository_info", ("/r",)),
            ("get_commit_info", ("/r",)),
            ("list_remotes", ("/r",)),
        ],
    )
    def test_metadata_operations(self, backends, method, args):
        metadata, mutation, backend = backends
        getattr(backend, method)(*args)
        assert getattr(metadata, method).called
        assert not mutation.method_calls

    @pytest.mark.parametrize(
        "method,args",
        [
            ("create_worktree", ("/r", "b", "main", "/w")),
            ("delete_worktree", ("/r", "/w")),
            ("list_worktrees", ("/r",)),
            ("prune_worktrees", ("/r",)),
            ("is_branch_merged", ("/r", "b")),
            ("delete_branch", ("/r", "b")),
        ],
    )
    def test_mutation_operations(self, backends, method, args):
        metadata, mutation, backend = backends
        getattr(backend, method)(*args)
        assert getattr(mutation, method).called
        assert not metadata.method_calls

    def test_no_fallback_on_failure(self, backends):
        metadata, mutation, backend = backends
        mutation.list_worktrees.side_effect = GitBackendError("worktree list", "/r", "boom")
        with pytest.raises(GitBackendError):
            backend.list_worktrees("/r")
        assert not metadata.method_calls


class TestParsers:
    """Test parsing of git output."""

    def test_worktree_porcelain(self):
        records = parse_worktree_porcelain(PORCELAIN)

        assert [r.path for r in records] == ["/repos/demo", "/wt/demo/feature-1", "/wt/demo/detached"]
        assert records[0].branch == "main"
        assert records[1].is_locked
        assert records[2].is_detached
        assert records[2].branch == ""
        assert records[2].is_prunable

    def test_worktree_porcelain_bare(self):
        records = parse_worktree_porcelain("worktree /repos/bare.git\nbare\n")
        assert records[0].is_bare

    def test_merged_branches(self):
        output = "  feature-1\n* main\n+ feature-2\n  (HEAD detached at 123abc)\n"
        assert parse_merged_branches(output) == ["feature-1", "main", "feature-2"]


class TestGitCliBackend:
    """Test worktree mutation through the git executable."""

    @pytest.fixture
    def cli(self):
        return GitCliBackend(timeout=30)

    def test_create_new_branch_and_list(self, cli, demo_project, worktrees_dir):
        repo_path = demo_project.working_dir
        path = str(worktrees_dir / "demo" / "feature-1")

        cli.create_worktree(repo_path, "feature-1", "main", path)

        records = cli.list_worktrees(repo_path)
        assert [r.path for r in records] == [repo_path, path]
        assert records[1].branch == "feature-1"
        assert records[1].head_commit == demo_project.head.commit.hexsha
        assert "feature-1" in [h.name for h in demo_project.heads]

    def test_create_checks_out_existing_branch(self, cli, demo_project, worktrees_dir):
        demo_project.git.branch("existing")
        path = str(worktrees_dir / "demo" / "existing")

        cli.create_worktree(demo_project.working_dir, "existing", "does-not-matter", path)
        assert cli.list_worktrees(demo_project.working_dir)[1].branch == "existing"

    def test_create_with_unknown_source_fails(self, cli, demo_project, worktrees_dir):
        with pytest.raises(GitBackendError) as exc_info:
            cli.create_worktree(
                demo_project.working_dir, "feature-1", "no-such-ref", str(worktrees_dir / "x")
            )
        assert exc_info.value.kind == ErrorKind.BACKEND_FAILURE
        assert exc_info.value.git_operation == "worktree add"
        assert exc_info.value.path == demo_project.working_dir

    def test_delete_is_idempotent(self, cli, demo_project, worktrees_dir):
        repo_path = demo_project.working_dir
        path = str(worktrees_dir / "demo" / "feature-1")
        cli.create_worktree(repo_path, "feature-1", "main", path)

        cli.delete_worktree(repo_path, path)
        cli.delete_worktree(repo_path, path)
        cli.delete_worktree(repo_path, str(worktrees_dir / "never-existed"))

        assert [r.path for r in cli.list_worktrees(repo_path)] == [repo_path]

    def test_delete_dirty_requires_force(self, cli, demo_project, worktrees_dir):
        repo_path = demo_project.working_dir
        path = worktrees_dir / "demo" / "feature-1"
        cli.create_worktree(repo_path, "feature-1", "main", str(path))
        (path / "scratch.txt").write_text("dirty\n")

        with pytest.raises(GitBackendError):
            cli.delete_worktree(repo_path, str(path))
        cli.delete_worktree(repo_path, str(path), force=True)
        assert not path.exists()

    def test_merge_check_and_branch_delete(self, cli, demo_project, add_worktree):
        repo_path = demo_project.working_dir
        add_worktree(demo_project, "merged")
        add_worktree(demo_project, "unmerged", commit_file="work.txt")

        assert cli.is_branch_merged(repo_path, "merged")
        assert cli.is_branch_merged(repo_path, "merged", base="main")
        assert not cli.is_branch_merged(repo_path, "unmerged")

        demo_project.git.branch("spare")
        cli.delete_branch(repo_path, "spare")
        assert "spare" not in [h.name for h in demo_project.heads]

    def test_missing_repository(self, cli, temp_dir):
        with pytest.raises(GitBackendError):
            cli.list_worktrees(str(temp_dir / "missing"))

    def test_expired_deadline_raises_before_running(self, cli, demo_project):
        deadline = Deadline(10)
        deadline.cancel()
        with patch("twiggit.services.git.cli.git.Git") as mock_git:
            with pytest.raises(GitBackendError) as exc_info:
                cli.list_worktrees(demo_project.working_dir, deadline=deadline)
        assert isinstance(exc_info.value.cause, TimeoutError)
        assert not mock_git.called

    def test_timeout_passed_to_git(self, cli, demo_project):
        with patch("twiggit.services.git.cli.git.Git") as mock_git:
            mock_git.return_value.execute.return_value = ""
            cli.prune_worktrees(demo_project.working_dir, deadline=Deadline(5))
        kwargs = mock_git.return_value.execute.call_args.kwargs
        assert 0 < kwargs["kill_after_timeout"] <= 5

    def test_command_error_is_wrapped(self, cli, demo_project):
        error = git.exc.GitCommandError(["git", "branch"], 128, stderr="fatal: boom")
        with patch("twiggit.services.git.cli.git.Git") as mock_git:
            mock_git.return_value.execute.side_effect = error
            with pytest.raises(GitBackendError) as exc_info:
                cli.delete_branch(demo_project.working_dir, "x")
        assert exc_info.value.cause is error
        assert "boom" in str(exc_info.value)


class TestGitPythonMetadataBackend:
    """Test metadata reads through GitPython."""

    @pytest.fixture
    def metadata(self):
        return GitPythonMetadataBackend()

    def test_is_repository(self, metadata, demo_project, temp_dir):
        assert metadata.is_repository(demo_project.working_dir)
        assert not metadata.is_repository(str(temp_dir))
        assert not metadata.is_repository(str(temp_dir / "missing"))

    def test_open_non_repository(self, metadata, temp_dir):
        with pytest.raises(GitBackendError) as exc_info:
            metadata.open_repository(str(temp_dir))
        assert exc_info.value.path == str(temp_dir)

    def test_branches(self, metadata, demo_project):
        demo_project.git.branch("feature-1")
        branches = {b.name: b for b in metadata.list_branches(demo_project.working_dir)}

        assert set(branches) == {"main", "feature-1"}
        assert branches["main"].is_current
        assert not branches["feature-1"].is_current
        assert metadata.branch_exists(demo_project.working_dir, "feature-1")
        assert not metadata.branch_exists(demo_project.working_dir, "nope")

    def test_clean_status(self, metadata, demo_project):
        status = metadata.get_repository_status(demo_project.working_dir)
        assert status.is_clean
        assert status.branch == "main"
        assert status.commit == demo_project.head.commit.hexsha
        assert (status.ahead, status.behind) == (0, 0)

    def test_dirty_status(self, metadata, demo_project):
        root = demo_project.working_dir
        with open(f"{root}/README.md", "a") as f:
            f.write("change\n")
        with open(f"{root}/new.txt", "w") as f:
            f.write("new\n")
        with open(f"{root}/staged.txt", "w") as f:
            f.write("staged\n")
        demo_project.index.add(["staged.txt"])

        status = metadata.get_repository_status(root)
        assert not status.is_clean
        assert status.modified == ["README.md"]
        assert status.untracked == ["new.txt"]
        assert status.staged == ["staged.txt"]
        assert status.added == ["staged.txt"]

    def test_status_of_worktree(self, metadata, demo_project, add_worktree):
        path = add_worktree(demo_project, "feature-1")
        status = metadata.get_repository_status(str(path))
        assert status.branch == "feature-1"
        assert status.is_clean

    def test_status_honors_deadline(self, metadata, demo_project):
        deadline = Deadline(10)
        deadline.cancel()
        with pytest.raises(GitBackendError) as exc_info:
            metadata.get_repository_status(demo_project.working_dir, deadline=deadline)
        assert isinstance(exc_info.value.cause, TimeoutError)

    def test_repository_and_commit_info(self, metadata, demo_project):
        demo_project.create_remote("origin", "git@example.com:test/demo.git")
        info = metadata.get_repository_info(demo_project.working_dir)

        assert info.default_branch == "main"
        assert not info.is_bare
        assert [r.name for r in info.remotes] == ["origin"]
        assert info.remotes[0].fetch_url == "git@example.com:test/demo.git"
        assert info.remotes[0].push_url == info.remotes[0].fetch_url

        commit = metadata.get_commit_info(demo_project.working_dir)
        assert commit.message == "Initial commit"
        assert commit.short_hash == commit.hash[:7]
        assert commit.email == "test@example.com"

    def test_unknown_revision(self, metadata, demo_project):
        with pytest.raises(GitBackendError):
            metadata.get_commit_info(demo_project.working_dir, "no-such-rev")
