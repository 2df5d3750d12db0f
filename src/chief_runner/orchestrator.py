"""Drive the agent over a worktree's task document until nothing is pending.

State flow:

    AWAITING_VERIFICATION_PROFILE -> LOOPING -> PUBLISHING -> DONE
    AWAITING_VERIFICATION_PROFILE -> DRAINING (single-shot) -> DONE

Any unrecovered error moves the loop to FAILED and is re-raised. The task
document is the only termination signal: it is re-read from disk at the head
of every iteration because the agent, not the loop, writes it.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from loguru import logger
from rich.console import Console

from .actions.run_publish import run_publish_action
from .agent import AgentRunner
from .constants import PLAN_FILE, TASKS_FILE
from .errors import IterationLimitError
from .models import PublishResult, RunOutcome, RunState, Worktree
from .prompts import build_run_prompt
from .tasks import has_pending_tasks, read_tasks, task_stats
from .verification import ensure_verification_steps, project_verification_path

PublishFn = Callable[..., PublishResult]


class TaskRunLoop:
    """Run the agent against one worktree, one task per iteration."""

    def __init__(
        self,
        worktree: Worktree,
        *,
        agent: AgentRunner,
        console: Optional[Console] = None,
        max_iterations: Optional[int] = None,
        publish: Optional[PublishFn] = None,
        verification_options: Optional[dict[str, Any]] = None,
    ):
        self.worktree = worktree
        self.agent = agent
        self.console = console or Console()
        self.max_iterations = max_iterations
        self.publish = publish or run_publish_action
        self.verification_options = dict(verification_options or {})
        self.state = RunState.AWAITING_VERIFICATION_PROFILE
        self.history: list[RunState] = [self.state]
        self.iterations = 0

    def _transition(self, state: RunState) -> None:
        logger.debug("Run loop {} -> {}", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    def _outcome(self, *, single: bool, publish: Optional[PublishResult] = None) -> RunOutcome:
        return RunOutcome(
            state=self.state,
            iterations=self.iterations,
            single=single,
            publish=publish,
            history=list(self.history),
        )

    def build_prompt(self, verification_steps: str) -> str:
        state_dir = self.worktree.state_dir
        return build_run_prompt(state_dir / PLAN_FILE, state_dir / TASKS_FILE, verification_steps)

    def run(self, *, single: bool = False) -> RunOutcome:
        """Run the loop to completion.

        Args:
            single: Run exactly one interactive iteration instead of looping.

        Returns:
            The final outcome, with `state` set to DONE.

        Raises:
            ChiefError: On any unrecovered failure (the state becomes FAILED).
        """
        try:
            steps = ensure_verification_steps(
                self.worktree.path, console=self.console, **self.verification_options
            )
            prompt = self.build_prompt(steps)
            if single:
                return self._run_single(prompt)
            return self._run_loop(prompt)
        except Exception:
            self._transition(RunState.FAILED)
            raise

    def _run_single(self, prompt: str) -> RunOutcome:
        self._transition(RunState.DRAINING)
        self.console.print(f"\nRunning single task in: [bold]{self.worktree.name}[/bold]")
        self.console.print("(Interactive mode - exit when done)\n")
        result = self.agent.run_interactive(prompt, self.worktree.path)
        self.iterations = 1
        if not result.ok:
            logger.warning("Interactive agent session exited with code {}", result.exit_code)
        self.console.print("\n[green]✓ Single run completed.[/green]")
        self._transition(RunState.DONE)
        return self._outcome(single=True)

    def _run_loop(self, prompt: str) -> RunOutcome:
        self._transition(RunState.LOOPING)
        self.console.print(f"\nRunning tasks in loop mode: [bold]{self.worktree.name}[/bold]")
        self.console.print("(Press Ctrl+C to stop)\n")

        while True:
            tasks = read_tasks(self.worktree.path)
            if not has_pending_tasks(tasks):
                stats = task_stats(tasks)
                logger.info("No pending tasks ({}/{} complete)", stats.completed, stats.total)
                self.console.print("\n[green]✓ All tasks completed![/green]")
                break

            stats = task_stats(tasks)
            if self.max_iterations is not None and self.iterations >= self.max_iterations:
                raise IterationLimitError(self.max_iterations, stats.remaining)

            self.console.print(
                f"\n[bold]--- Iteration {self.iterations + 1} ---[/bold] "
                f"[dim]({stats.completed}/{stats.total} tasks complete)[/dim]"
            )
            result = self.agent.run_captured(prompt, self.worktree.path)
            self.console.print(result.output, markup=False, highlight=False)
            if not result.ok:
                # No retry here: the next loop turn re-reads the document and tries again.
                self.console.print(f"[yellow]Agent exited with code {result.exit_code}[/yellow]")
            self.iterations += 1

        self._transition(RunState.PUBLISHING)
        self.console.print("\nPublishing changes...")
        publish = self.publish(worktree_path=self.worktree.path, agent=self.agent)
        if publish.nothing_to_publish:
            self.console.print("[green]✓ Nothing to publish; branch is up to date.[/green]")
        elif publish.pr_error:
            self.console.print(f"[yellow]Pushed, but the pull request was not created: {publish.pr_error}[/yellow]")
        else:
            if publish.pr_output.strip():
                self.console.print(publish.pr_output, markup=False, highlight=False)
            self.console.print("\n[green]✓ All done! Check the PR on GitHub.[/green]")
        self._transition(RunState.DONE)
        return self._outcome(single=False, publish=publish)


def run_worktree_tasks(
    worktree: Worktree,
    *,
    agent: AgentRunner,
    single: bool = False,
    max_iterations: Optional[int] = None,
    console: Optional[Console] = None,
) -> RunOutcome:
    """Run the task loop for a resolved worktree.

    Args:
        worktree: Target worktree.
        agent: Agent runner to invoke.
        single: Run one supervised interactive iteration only.
        max_iterations: Optional cap on loop iterations; None is unbounded.
        console: Console for progress output.

    Returns:
        The loop outcome.
    """
    loop = TaskRunLoop(
        worktree,
        agent=agent,
        console=console,
        max_iterations=max_iterations,
        verification_options={"project_file": project_verification_path(worktree.project)},
    )
    return loop.run(single=single)
