"""Build the text instructions passed to the agent."""

from __future__ import annotations

from pathlib import Path


def build_run_prompt(plan_path: Path, tasks_path: Path, verification_steps: str) -> str:
    """Build the instruction for one run-loop iteration.

    The agent may only flip `passes` in the task document; the loop re-reads
    the document after every iteration to see what changed.
    """
    steps = "\n".join(f"   {line}" for line in verification_steps.strip().splitlines())
    return f"""@{plan_path} @{tasks_path}

1. Find the highest priority task to work on that is not marked as 'passes'. Only work on one task at a time.
2. Verify your work by using the following tools:
{steps}
3. When you're done with your task:
   - Update {tasks_path.name} to mark the task as done by setting the 'passes' property to true.
   - Commit your changes to the repository.
4. If you learn a critical operational detail, update CLAUDE.md.

IMPORTANT: Only work on one task at a time. NEVER make changes to {tasks_path.name} (except to mark tasks as done by setting the 'passes' property to true).
"""


def build_pr_prompt() -> str:
    return (
        "Create a pull request for this branch using the `gh pr create` command. "
        "Use a descriptive title and body based on the changes made."
    )


def build_plan_prompt(description: str, plan_path: Path) -> str:
    return f"""{description.strip()}

Conduct a user interview before creating the plan. Ask clarifying questions to understand the requirements better.

When you have formulated the plan, output it to {plan_path}.

Important: you are NOT allowed to start executing the plan. Once the plan is created, you MUST exit the session.
If you're unable to exit the session, instruct the user to press Ctrl+C twice to exit the session and continue with the plan.
"""


def build_breakdown_prompt(plan_path: Path, schema_path: Path, tasks_path: Path) -> str:
    return (
        f'Read the plan from "{plan_path}" and convert it into a series of tasks according to '
        f'the JSON schema in "{schema_path}".\n'
        f'Output the tasks to "{tasks_path}". Make sure each task has: category, description, '
        "passes (set to false), and steps array.\n"
    )
