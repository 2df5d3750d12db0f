"""Define the exception types raised by chief commands."""

from __future__ import annotations


class ChiefError(RuntimeError):
    """Base class for errors reported to the user as `Error: <message>`."""


class PreconditionError(ChiefError):
    """Raised when a command cannot start (no repo, empty input, missing files)."""


class WorktreeNotFoundError(PreconditionError):
    """Raised when an explicitly named worktree does not exist."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"Worktree not found: {name}\n\nRun `chief worktrees` to see available worktrees."
        )


class VerificationError(PreconditionError):
    """Raised when the verification profile cannot be used."""


class TaskDocumentError(ChiefError):
    """Raised when a task document exists but cannot be parsed or validated."""

    def __init__(self, path: str, issues: list[str]):
        self.path = path
        self.issues = list(issues)
        summary = "; ".join(self.issues[:5])
        if len(self.issues) > 5:
            summary += f" (+{len(self.issues) - 5} more)"
        super().__init__(f"Invalid task document {path}: {summary}")


class AgentError(ChiefError):
    """Raised when the agent process cannot be started."""


class PublishError(ChiefError):
    """Raised when pushing the worktree branch fails."""


class IterationLimitError(ChiefError):
    """Raised when the optional iteration budget runs out with tasks pending."""

    def __init__(self, max_iterations: int, remaining: int):
        self.max_iterations = max_iterations
        self.remaining = remaining
        super().__init__(
            f"Reached max iterations ({max_iterations}) with {remaining} task(s) still pending."
        )
