"""Tests for post-create hooks and the mise integration"""

import subprocess
from unittest.mock import patch

import pytest

from twiggit.exceptions import BackendFailureError
from twiggit.models.hooks import HookType
from twiggit.services.hook_runner import HookRunner, read_hook_commands
from twiggit.services.mise_integration import MiseIntegration


@pytest.fixture
def main_repo(temp_dir):
    path = temp_dir / "main"
    path.mkdir()
    return path


@pytest.fixture
def worktree(temp_dir):
    path = temp_dir / "wt"
    path.mkdir()
    return path


def run_hook(runner, main_repo, worktree):
    return runner.run(
        HookType.POST_CREATE,
        main_repo_path=str(main_repo),
        worktree_path=str(worktree),
        project_name="demo",
        branch_name="feature-1",
        source_branch="main",
    )


class TestReadHookCommands:
    """Test reading [hooks.post-create] from .twiggit.toml."""

    def test_missing_file(self, main_repo):
        assert read_hook_commands(str(main_repo / ".twiggit.toml"), HookType.POST_CREATE) == []

    def test_blank_commands_dropped(self, main_repo):
        config_file = main_repo / ".twiggit.toml"
        config_file.write_text('[hooks.post-create]\ncommands = ["make", "  ", "npm ci"]\n')
        assert read_hook_commands(str(config_file), HookType.POST_CREATE) == ["make", "npm ci"]

    def test_other_tables_ignored(self, main_repo):
        config_file = main_repo / ".twiggit.toml"
        config_file.write_text('[tools]\nnode = "20"\n')
        assert read_hook_commands(str(config_file), HookType.POST_CREATE) == []

    def test_invalid_toml(self, main_repo):
        config_file = main_repo / ".twiggit.toml"
        config_file.write_text("[hooks.post-create\n")
        with pytest.raises(ValueError):
            read_hook_commands(str(config_file), HookType.POST_CREATE)

    def test_commands_must_be_strings(self, main_repo):
        config_file = main_repo / ".twiggit.toml"
        config_file.write_text("[hooks.post-create]\ncommands = [1, 2]\n")
        with pytest.raises(ValueError):
            read_hook_commands(str(config_file), HookType.POST_CREATE)


class TestHookRunner:
    """Test running hook commands."""

    def test_not_executed_without_commands(self, main_repo, worktree):
        (main_repo / ".twiggit.toml").write_text("[hooks.post-create]\ncommands = []\n")
        result = run_hook(HookRunner(), main_repo, worktree)
        assert not result.executed
        assert result.success

    def test_all_commands_run_after_failure(self, main_repo, worktree):
        (main_repo / ".twiggit.toml").write_text(
            '[hooks.post-create]\ncommands = ["false", "echo ok > done.txt"]\n'
        )
        result = run_hook(HookRunner(), main_repo, worktree)

        assert result.executed
        assert [f.command for f in result.failures] == ["false"]
        assert result.failures[0].exit_code == 1
        assert (worktree / "done.txt").read_text() == "ok\n"

    def test_timeout_recorded(self, main_repo, worktree):
        (main_repo / ".twiggit.toml").write_text('[hooks.post-create]\ncommands = ["sleep 5"]\n')
        with patch(
            "twiggit.services.hook_runner.subprocess.run",
            side_effect=subprocess.TimeoutExpired(["sh"], 0.5),
        ):
            result = run_hook(HookRunner(timeout=0.5), main_repo, worktree)

        [failure] = result.failures
        assert failure.exit_code == -1
        assert "timed out" in failure.output

    def test_missing_shell_recorded(self, main_repo, worktree):
        (main_repo / ".twiggit.toml").write_text('[hooks.post-create]\ncommands = ["true"]\n')
        result = run_hook(HookRunner(shell="/nonexistent/sh"), main_repo, worktree)
        assert result.failures[0].exit_code == -1

    def test_timeout_passed_to_subprocess(self, main_repo, worktree):
        (main_repo / ".twiggit.toml").write_text('[hooks.post-create]\ncommands = ["true"]\n')
        with patch("twiggit.services.hook_runner.subprocess.run") as mock_run:
            mock_run.return_value = subprocess.CompletedProcess(["sh"], 0, "", "")
            run_hook(HookRunner(timeout=7.0), main_repo, worktree)

        args, kwargs = mock_run.call_args
        assert args[0] == ["sh", "-c", "true"]
        assert kwargs["timeout"] == 7.0
        assert kwargs["cwd"] == str(worktree)
        assert kwargs["env"]["TWIGGIT_BRANCH_NAME"] == "feature-1"


class TestMiseIntegration:
    """Test copying local mise config."""

    @pytest.fixture
    def mise(self):
        return MiseIntegration(exec_path="twiggit-test-missing-mise")

    def test_detect(self, mise, main_repo):
        (main_repo / ".mise.local.toml").write_text("")
        assert mise.detect_config_files(str(main_repo)) == [".mise.local.toml"]

    def test_nothing_to_copy(self, mise, main_repo, worktree):
        assert mise.setup_worktree(str(main_repo), str(worktree)) == []

    def test_missing_worktree(self, mise, main_repo, temp_dir):
        with pytest.raises(BackendFailureError):
            mise.setup_worktree(str(main_repo), str(temp_dir / "gone"))

    def test_trust_skipped_without_executable(self, mise, worktree):
        assert mise.trust_directory(str(worktree)) is None

    def test_trust_runs_after_copy(self, main_repo, worktree):
        (main_repo / ".mise.local.toml").write_text("")
        mise = MiseIntegration()
        with patch("twiggit.services.mise_integration.shutil.which", return_value="/usr/bin/mise"), \
                patch("twiggit.services.mise_integration.subprocess.run") as mock_run:
            assert mise.setup_worktree(str(main_repo), str(worktree)) == [".mise.local.toml"]

        assert mock_run.call_args[0][0] == ["mise", "trust", str(worktree)]

    def test_trust_failure_ignored(self, worktree):
        mise = MiseIntegration()
        with patch("twiggit.services.mise_integration.shutil.which", return_value="/usr/bin/mise"), \
                patch(
                    "twiggit.services.mise_integration.subprocess.run",
                    side_effect=subprocess.CalledProcessError(1, ["mise"]),
                ):
            assert mise.trust_directory(str(worktree)) is False
