"""Configuration handling for twiggit"""

import os
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from twiggit.constants import (
    DEFAULT_GIT_TIMEOUT,
    DEFAULT_HOOK_TIMEOUT,
    DEFAULT_MAX_SUGGESTIONS,
    DEFAULT_PROTECTED_BRANCHES,
)
from twiggit.logging_config import get_logger

logger = get_logger(__name__)

ENV_PREFIX = "TWIGGIT_"


def _home() -> Path:
    return Path.home()


@dataclass(frozen=True)
class Config:
    """Immutable configuration for twiggit, validated on construction."""

    # Directory layout
    projects_dir: str = field(default_factory=lambda: str(_home() / "Projects"))
    worktrees_dir: str = field(default_factory=lambda: str(_home() / "Worktrees"))

    # Branch defaults
    default_source_branch: str = "main"
    protected_branches: Tuple[str, ...] = DEFAULT_PROTECTED_BRANCHES

    # Navigation
    max_suggestions: int = DEFAULT_MAX_SUGGESTIONS

    # Seconds before a git process is killed
    git_timeout: float = DEFAULT_GIT_TIMEOUT

    # Seconds each post-create hook command may run
    hook_timeout: float = DEFAULT_HOOK_TIMEOUT

    verbose: bool = False
    debug: bool = False

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_directories()
        self._validate_default_source_branch()
        self._validate_protected_branches()
        self._validate_max_suggestions()
        self._validate_git_timeout()
        self._validate_hook_timeout()

    def _validate_directories(self):
        """Expand and absolutize directories; projects_dir falls back to a sibling of worktrees_dir."""
        if not self.worktrees_dir or not str(self.worktrees_dir).strip():
            raise ValueError("worktrees_dir cannot be empty")
        worktrees_dir = os.path.abspath(os.path.expanduser(str(self.worktrees_dir).strip()))
        object.__setattr__(self, "worktrees_dir", worktrees_dir)

        projects_dir = str(self.projects_dir or "").strip()
        if not projects_dir:
            projects_dir = os.path.join(os.path.dirname(worktrees_dir), "Projects")
        projects_dir = os.path.abspath(os.path.expanduser(projects_dir))
        object.__setattr__(self, "projects_dir", projects_dir)

        if projects_dir == worktrees_dir:
            raise ValueError("projects_dir and worktrees_dir must be different directories")

    def _validate_default_source_branch(self):
        """Validate default_source_branch is not empty."""
        if not self.default_source_branch or not self.default_source_branch.strip():
            raise ValueError("default_source_branch cannot be empty")
        object.__setattr__(self, "default_source_branch", self.default_source_branch.strip())

    def _validate_protected_branches(self):
        """Validate protected_branches and store them as a tuple."""
        if isinstance(self.protected_branches, str) or not isinstance(
            self.protected_branches, (list, tuple, set, frozenset)
        ):
            raise ValueError("protected_branches must be a list")
        branches = tuple(b.strip() for b in self.protected_branches if b and b.strip())
        object.__setattr__(self, "protected_branches", branches)

    def _validate_max_suggestions(self):
        """Validate max_suggestions is positive."""
        if self.max_suggestions <= 0:
            raise ValueError(f"max_suggestions must be positive, got {self.max_suggestions}")

    def _validate_git_timeout(self):
        """Validate git_timeout is positive."""
        if self.git_timeout <= 0:
            raise ValueError(f"git_timeout must be positive, got {self.git_timeout}")

    def _validate_hook_timeout(self):
        if self.hook_timeout <= 0:
            raise ValueError(f"hook_timeout must be positive, got {self.hook_timeout}")

    def is_protected(self, branch_name: str) -> bool:
        return branch_name in self.protected_branches

    def to_dict(self) -> dict:
        """Convert config to a plain dictionary."""
        return {
            "projects_dir": self.projects_dir,
            "worktrees_dir": self.worktrees_dir,
            "default_source_branch": self.default_source_branch,
            "protected_branches": list(self.protected_branches),
            "max_suggestions": self.max_suggestions,
            "git_timeout": self.git_timeout,
            "hook_timeout": self.hook_timeout,
            "verbose": self.verbose,
            "debug": self.debug,
        }

    @classmethod
    def from_dict(cls, config_dict: Mapping[str, Any]) -> "Config":
        """Create Config from dictionary, ignoring unknown keys."""
        known_fields = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in config_dict.items() if k in known_fields}
        if "protected_branches" in filtered:
            filtered["protected_branches"] = tuple(filtered["protected_branches"])
        return cls(**filtered)


def get_config_paths() -> List[Path]:
    """Candidate config files in order of preference (XDG first)."""
    paths = []
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        paths.append(Path(xdg_config_home) / "twiggit" / "config.toml")
    paths.append(_home() / ".config" / "twiggit" / "config.toml")
    paths.append(_home() / ".twiggit.toml")
    return paths


def _flatten_sections(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Lift keys out of [validation] / [navigation] / [git] tables."""
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, dict) and key in ("validation", "navigation", "git"):
            flat.update(value)
        else:
            flat[key] = value
    return flat


def _read_env(environ: Mapping[str, str]) -> Dict[str, Any]:
    """Read TWIGGIT_* overrides, converting to the field types."""
    overrides: Dict[str, Any] = {}
    for name, value in environ.items():
        if not name.startswith(ENV_PREFIX):
            continue
        key = name[len(ENV_PREFIX):].lower()
        if key == "protected_branches":
            overrides[key] = [b for b in value.split(",") if b.strip()]
        elif key == "max_suggestions":
            overrides[key] = int(value)
        elif key in ("git_timeout", "hook_timeout"):
            overrides[key] = float(value)
        elif key in ("verbose", "debug"):
            overrides[key] = value.strip().lower() in ("1", "true", "yes", "on")
        elif key in ("projects_dir", "worktrees_dir", "default_source_branch"):
            overrides[key] = value
    return overrides


def load_config(
    path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> Config:
    """Load configuration from file, environment and explicit overrides.

    Precedence (lowest to highest): defaults, the first config file found,
    TWIGGIT_* environment variables, keyword overrides.

    Args:
        path: Explicit config file; when given it must exist
        environ: Environment mapping (defaults to os.environ)
        **overrides: Values that win over everything else (None is ignored)

    Returns:
        Validated Config

    Raises:
        ValueError: If the file cannot be parsed or a value is invalid
    """
    environ = os.environ if environ is None else environ
    values: Dict[str, Any] = {}

    candidates = [Path(path)] if path else get_config_paths()
    for candidate in candidates:
        if not candidate.is_file():
            if path:
                raise ValueError(f"config file not found: {candidate}")
            continue
        try:
            with open(candidate, "rb") as f:
                values.update(_flatten_sections(tomllib.load(f)))
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"failed to parse config file {candidate}: {e}") from e
        logger.debug(f"Loaded config from {candidate}")
        break  # Use first found config file

    values.update(_read_env(environ))
    values.update({k: v for k, v in overrides.items() if v is not None})
    return Config.from_dict(values)
