"""Project hooks: shell commands from a project's .twiggit.toml."""

import os
import subprocess
import tomllib
from typing import Dict, List, Optional

from twiggit.constants import DEFAULT_HOOK_TIMEOUT, PROJECT_CONFIG_FILENAME
from twiggit.logging_config import get_logger
from twiggit.models.hooks import HookFailure, HookResult, HookType

logger = get_logger(__name__)


def read_hook_commands(config_file: str, hook_type: HookType) -> List[str]:
    """Commands of one hook from a project config file.

    Expected layout::

        [hooks.post-create]
        commands = ["npm install", "cp ../.env ."]

    Returns:
        The non-blank commands; empty when the file or table is missing

    Raises:
        ValueError: If the file is not valid TOML or ``commands`` is not a list
    """
    if not os.path.isfile(config_file):
        return []
    try:
        with open(config_file, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"failed to parse {config_file}: {e}") from e

    hooks = data.get("hooks")
    definition = hooks.get(hook_type.value) if isinstance(hooks, dict) else None
    if not isinstance(definition, dict):
        return []
    commands = definition.get("commands", [])
    if not isinstance(commands, list) or not all(isinstance(c, str) for c in commands):
        raise ValueError(f"hooks.{hook_type.value}.commands in {config_file} must be a list of strings")
    return [c for c in commands if c.strip()]


class HookRunner:
    """Runs hook commands with ``sh -c`` inside the new worktree."""

    def __init__(self, timeout: float = DEFAULT_HOOK_TIMEOUT, shell: str = "sh"):
        self.timeout = timeout
        self.shell = shell

    def run(
        self,
        hook_type: HookType,
        main_repo_path: str,
        worktree_path: str,
        project_name: str,
        branch_name: str,
        source_branch: Optional[str] = None,
    ) -> HookResult:
        """Run a hook defined in ``<main_repo_path>/.twiggit.toml``.

        A missing or unreadable config file means the hook is not executed;
        failing commands are recorded and the remaining commands still run.
        """
        result = HookResult(hook_type=hook_type)
        config_file = os.path.join(main_repo_path, PROJECT_CONFIG_FILENAME)
        try:
            commands = read_hook_commands(config_file, hook_type)
        except (OSError, ValueError) as e:
            logger.warning(f"Not running {hook_type.value} hooks: {e}")
            return result
        if not commands:
            return result

        env = self._environment(
            worktree_path=worktree_path,
            project_name=project_name,
            branch_name=branch_name,
            source_branch=source_branch,
            main_repo_path=main_repo_path,
        )
        result.executed = True
        for command in commands:
            failure = self._run_command(command, worktree_path, env)
            if failure is not None:
                logger.warning(f"{hook_type.value} hook failed ({failure.exit_code}): {command}")
                result.failures.append(failure)
        return result

    def _run_command(self, command: str, cwd: str, env: Dict[str, str]) -> Optional[HookFailure]:
        logger.debug(f"Running hook command in {cwd}: {command}")
        try:
            completed = subprocess.run(
                [self.shell, "-c", command],
                cwd=cwd,
                env=env,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            return HookFailure(command, -1, f"timed out after {self.timeout:g}s")
        except OSError as e:
            return HookFailure(command, -1, str(e))

        if completed.returncode == 0:
            return None
        output = "\n".join(
            part.strip() for part in (completed.stdout, completed.stderr) if part and part.strip()
        )
        return HookFailure(command, completed.returncode, output)

    @staticmethod
    def _environment(**values: Optional[str]) -> Dict[str, str]:
        """The caller's environment plus TWIGGIT_* variables describing the worktree."""
        env = dict(os.environ)
        for key, value in values.items():
            if value:
                env[f"TWIGGIT_{key.upper()}"] = value
        return env
