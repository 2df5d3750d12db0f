"""Define the task, worktree, and run-outcome models shared across chief commands."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from .constants import STATE_DIR_NAME


class RunState(str, Enum):
    """Enumerate the states of the worktree task-run loop."""

    AWAITING_VERIFICATION_PROFILE = "awaiting_verification_profile"
    LOOPING = "looping"
    DRAINING = "draining"
    PUBLISHING = "publishing"
    DONE = "done"
    FAILED = "failed"


class AgentMode(str, Enum):
    """Describe how the agent process is attached to the terminal."""

    INTERACTIVE = "interactive"
    CAPTURED = "captured"
    PLAN = "plan"


@dataclass
class Task:
    """Store one entry of a worktree task document."""

    category: str
    description: str
    passes: bool = False
    steps: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        """Create a `Task` from an already validated task document entry.

        Args:
            data: Raw task payload.

        Returns:
            A `Task` instance.
        """
        return cls(
            category=str(data["category"]),
            description=str(data["description"]),
            passes=bool(data["passes"]),
            steps=[str(step) for step in data["steps"]],
        )


@dataclass(frozen=True)
class TaskStats:
    completed: int
    total: int

    @property
    def remaining(self) -> int:
        return self.total - self.completed


@dataclass(frozen=True)
class Worktree:
    """Identify a chief-managed git worktree on disk."""

    project: str
    name: str
    path: Path
    created_at: Optional[datetime] = None

    @property
    def state_dir(self) -> Path:
        return self.path / STATE_DIR_NAME


@dataclass(frozen=True)
class AgentResult:
    mode: AgentMode
    exit_code: int
    output: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


@dataclass
class PublishResult:
    """Summarize what the publish step did after the run loop finished."""

    nothing_to_publish: bool = False
    pushed: bool = False
    pr_requested: bool = False
    pr_error: Optional[str] = None
    pr_output: str = ""


@dataclass
class RunOutcome:
    """Report how a run loop ended."""

    state: RunState
    iterations: int = 0
    single: bool = False
    publish: Optional[PublishResult] = None
    history: list[RunState] = field(default_factory=list)
