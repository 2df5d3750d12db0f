"""Perform the PUBLISH stage: `git push` and a pull request opened by the agent."""

from __future__ import annotations

import subprocess
from pathlib import Path

from loguru import logger

from ..agent import AgentRunner
from ..errors import AgentError, PublishError
from ..git_utils import _git_push, has_unpushed_commits
from ..models import PublishResult
from ..prompts import build_pr_prompt


def run_publish_action(*, worktree_path: Path, agent: AgentRunner) -> PublishResult:
    """Push the worktree branch and ask the agent to open a pull request.

    Args:
        worktree_path: Worktree whose current branch is published.
        agent: Agent used for the pull-request instruction.

    Returns:
        A `PublishResult` describing what happened. A failed pull-request
        invocation is reported in `pr_error`; the push is kept.

    Raises:
        PublishError: If `git push` fails. The push is not retried.
    """
    if not has_unpushed_commits(worktree_path):
        logger.info("Nothing to publish for {}", worktree_path)
        return PublishResult(nothing_to_publish=True)

    try:
        _git_push(worktree_path)
    except subprocess.CalledProcessError as exc:
        detail = (exc.stderr or "").strip() or f"exit code {exc.returncode}"
        raise PublishError(f"Failed to push {worktree_path.name}: {detail}") from exc
    except OSError as exc:
        raise PublishError(f"Failed to push {worktree_path.name}: {exc}") from exc
    logger.info("Pushed {}", worktree_path)

    try:
        result = agent.run_captured(
            build_pr_prompt(),
            worktree_path,
            model=agent.config.pr_model,
            chrome=False,
        )
    except AgentError as exc:
        logger.error("Pull request request failed: {}", exc)
        return PublishResult(pushed=True, pr_requested=False, pr_error=str(exc))

    if not result.ok:
        error = f"Agent exited with code {result.exit_code} while creating the pull request"
        logger.error(error)
        return PublishResult(pushed=True, pr_requested=False, pr_error=error, pr_output=result.output)
    return PublishResult(pushed=True, pr_requested=True, pr_output=result.output)
