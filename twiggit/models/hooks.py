"""Hook data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class HookType(Enum):
    """Points in the worktree lifecycle where project hooks run."""
    POST_CREATE = "post-create"


@dataclass(frozen=True)
class HookFailure:
    """A hook command that failed."""
    command: str
    exit_code: int  # -1 when the command could not run or timed out
    output: str = ""


@dataclass
class HookResult:
    """Outcome of running one hook's commands."""
    hook_type: HookType
    executed: bool = False
    failures: List[HookFailure] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failures
