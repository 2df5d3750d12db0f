#!/usr/bin/env python3
"""Provide the `chief` CLI entrypoint and its subcommands.

Creates worktrees, plans them with the agent, and runs the agent over the
worktree task document until every task passes.
"""

from __future__ import annotations

import argparse
import os
import re
import shutil
import subprocess
import sys
import uuid
from pathlib import Path
from typing import Optional

from loguru import logger
from rich.console import Console
from rich.table import Table

from .agent import AgentRunner
from .config import (
    ensure_state_dir,
    ensure_worktrees_root,
    resolve_chief_config,
)
from .constants import DEFAULT_LOG_LEVEL, ENV_FILE_PREFIX, LOG_LEVEL_ENV, PLAN_FILE, TASKS_FILE, TASKS_SCHEMA_FILE
from .errors import ChiefError, PreconditionError, TaskDocumentError
from .git_utils import (
    _ensure_gitignore,
    _git_create_worktree,
    _git_current_branch,
    _git_main_root,
    _git_remove_worktree,
)
from .models import Worktree
from .orchestrator import run_worktree_tasks
from .prompts import build_breakdown_prompt, build_plan_prompt
from .tasks import read_tasks, task_stats, write_task_schema
from .terminal import confirm, prompt_multiline
from .verification import copy_project_verification, project_verification_path
from .worktrees import list_worktrees, project_for_cwd, resolve_worktree

console = Console()
err_console = Console(stderr=True)


def _configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    """Configure loguru logger with the specified level."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{module}</cyan>:<cyan>{line}</cyan>\n"
            "{message}"
        ),
    )


def _slugify(text: str, max_len: int = 30) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    slug = slug[:max_len].rstrip("-")
    return slug or "worktree"


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError("must be at least 1")
    return number


def _agent_for(project: str) -> AgentRunner:
    return AgentRunner(resolve_chief_config(project).agent)


def _resolve(name: Optional[str], message: str) -> Optional[Worktree]:
    worktree = resolve_worktree(name, cwd=Path.cwd(), message=message)
    if worktree is None:
        console.print("\nNo worktree selected.")
        console.print("Run `chief new` to create one, or `chief worktrees` to list them.")
    return worktree


def _run_command(args: argparse.Namespace) -> int:
    worktree = _resolve(args.name, "Select a worktree to run:")
    if worktree is None:
        return 0
    config = resolve_chief_config(worktree.project)
    max_iterations = args.max_iterations or config.run.max_iterations
    run_worktree_tasks(
        worktree,
        agent=AgentRunner(config.agent),
        single=bool(args.single),
        max_iterations=max_iterations,
        console=console,
    )
    return 0


def _tasks_list(args: argparse.Namespace) -> int:
    worktree = _resolve(args.name, "Select a worktree:")
    if worktree is None:
        return 0
    tasks = read_tasks(worktree.path)
    if not tasks:
        console.print(f"\nNo tasks found in {worktree.name}")
        console.print("Run `chief tasks create` to create tasks for this worktree.")
        return 0

    stats = task_stats(tasks)
    table = Table(title=f"Tasks for {worktree.name} ({stats.completed}/{stats.total} completed)")
    table.add_column("#", justify="right")
    table.add_column("")
    table.add_column("Category", style="cyan")
    table.add_column("Description")
    table.add_column("Steps", justify="right")
    for idx, task in enumerate(tasks, start=1):
        status = "[green]✓[/green]" if task.passes else "[yellow]○[/yellow]"
        desc = task.description if len(task.description) <= 60 else task.description[:57] + "..."
        table.add_row(str(idx), status, task.category, desc, str(len(task.steps)))
    console.print(table)
    console.print(f"\n{stats.remaining} tasks remaining")
    if stats.remaining:
        console.print("\nRun `chief run` to start working on tasks.")
    else:
        console.print("\nAll tasks completed! Run `chief clean` to clean up.")
    return 0


def _breakdown(worktree: Worktree, agent: AgentRunner) -> None:
    state_dir = ensure_state_dir(worktree.path)
    plan_path = state_dir / PLAN_FILE
    if not plan_path.exists():
        raise PreconditionError(
            f"Plan not found at {plan_path}. Create a plan.md file first or run `chief new` to start a new project."
        )
    schema_path = state_dir / TASKS_SCHEMA_FILE
    if not schema_path.exists():
        write_task_schema(state_dir)

    console.print("\nConverting plan to tasks...")
    result = agent.run_captured(
        build_breakdown_prompt(plan_path, schema_path, state_dir / TASKS_FILE),
        worktree.path,
        model=agent.config.breakdown_model,
        chrome=False,
    )
    if not result.ok:
        raise ChiefError(f"Agent exited with code {result.exit_code} while creating tasks.")
    tasks = read_tasks(worktree.path)
    console.print(f"\n[green]✓ Created {len(tasks)} task(s).[/green]")
    console.print(f"  Worktree: {worktree.path}")


def _tasks_create(args: argparse.Namespace) -> int:
    worktree = _resolve(args.name, "Select a worktree:")
    if worktree is None:
        return 0
    _breakdown(worktree, _agent_for(worktree.project))
    console.print("\nNext steps:")
    console.print("  chief tasks list  - View the tasks")
    console.print("  chief run         - Start working on tasks")
    return 0


def _copy_env_files(source: Path, dest: Path) -> int:
    copied = 0
    for entry in source.iterdir():
        if entry.is_file() and entry.name.startswith(ENV_FILE_PREFIX):
            shutil.copy2(entry, dest / entry.name)
            copied += 1
    return copied


def _new_command(args: argparse.Namespace) -> int:
    cwd = Path.cwd()
    project = project_for_cwd(cwd)
    main_root = _git_main_root(cwd)
    base_branch = _git_current_branch(cwd) or "HEAD"

    description = prompt_multiline(
        "Describe what you want to build or accomplish:",
        " ".join(args.description).strip(),
    )
    if not description.strip():
        raise PreconditionError("Project description cannot be empty.")

    _ensure_gitignore(main_root)
    name = f"{_slugify(args.name or description)}-{uuid.uuid4().hex[:6]}"
    worktree_path = ensure_worktrees_root(project) / name

    console.print(f"\nCreating git worktree from {base_branch}...")
    try:
        _git_create_worktree(cwd, worktree_path, name)
    except subprocess.CalledProcessError as exc:
        raise ChiefError(f"Failed to create worktree: {(exc.stderr or '').strip() or exc}") from exc
    console.print(f"Created worktree: {worktree_path}")
    worktree = Worktree(project=project, name=name, path=worktree_path)

    _ensure_gitignore(worktree_path)
    copied = _copy_env_files(main_root, worktree_path)
    if copied:
        console.print(f"Copied {copied} .env file(s) to worktree")

    state_dir = ensure_state_dir(worktree_path)
    write_task_schema(state_dir)
    copy_project_verification(project_verification_path(project), worktree_path)

    agent = _agent_for(project)
    console.print("\nStarting planning session with the agent...")
    console.print("(Exit the session when you're done planning)\n")
    agent.run_plan(build_plan_prompt(description, state_dir / PLAN_FILE), worktree_path)

    _breakdown(worktree, agent)
    console.print("\nNext steps:")
    console.print(f"  chief tasks list {name}  - View the tasks")
    console.print(f"  chief run {name}         - Start working on tasks")
    return 0


def _worktrees_command(args: argparse.Namespace) -> int:
    project = project_for_cwd(Path.cwd())
    worktrees = list_worktrees(project)
    if not worktrees:
        console.print("\nNo worktrees found.")
        console.print("Run `chief new` to create one.")
        return 0

    table = Table(title=f"Worktrees for {project}")
    table.add_column("Name", style="cyan")
    table.add_column("Created")
    table.add_column("Tasks", justify="right")
    table.add_column("Path", overflow="fold")
    for wt in worktrees:
        try:
            tasks = read_tasks(wt.path)
            progress = ""
            if tasks:
                stats = task_stats(tasks)
                progress = f"{stats.completed}/{stats.total}"
        except TaskDocumentError:
            progress = "[red]invalid[/red]"
        created = wt.created_at.astimezone().strftime("%Y-%m-%d %H:%M") if wt.created_at else ""
        table.add_row(wt.name, created, progress, str(wt.path))
    console.print(table)
    console.print(f"\n{len(worktrees)} worktree(s) total")
    console.print("\nUse `chief run <name>` to work on a worktree.")
    return 0


def _cd_command(args: argparse.Namespace) -> int:
    worktree = resolve_worktree(args.name, cwd=Path.cwd(), message="Select a worktree:")
    if worktree is None:
        err_console.print("No worktree selected.")
        return 0
    # Plain stdout so `cd $(chief cd)` works.
    sys.stdout.write(f"{worktree.path}\n")
    return 0


def _clean_command(args: argparse.Namespace) -> int:
    worktree = _resolve(args.name, "Select a worktree to clean:")
    if worktree is None:
        return 0
    if not args.yes and not confirm(f'\nAre you sure you want to delete worktree "{worktree.name}"?'):
        console.print("Cancelled.")
        return 0

    console.print(f"\nDeleting worktree: {worktree.name}")
    try:
        main_root = _git_main_root(worktree.path)
        _git_remove_worktree(main_root, worktree.path)
    except (OSError, subprocess.CalledProcessError) as exc:
        logger.debug("git worktree remove failed: {}", exc)
        console.print("Note: Git worktree may have been removed already.")
    if worktree.path.exists():
        shutil.rmtree(worktree.path)

    console.print(f'\n[green]✓ Worktree "{worktree.name}" cleaned up successfully.[/green]')
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chief", description="AI coding agent task runner")
    parser.add_argument(
        "--log-level",
        default=os.environ.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "debug", "info", "warning", "error"],
        help="Log verbosity (default: WARNING, or $CHIEF_LOG_LEVEL)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    new = subparsers.add_parser("new", help="Create a new worktree and start planning")
    new.add_argument("description", nargs="*", help="What to build (prompted when omitted)")
    new.add_argument("--name", default=None, help="Worktree name prefix (derived from the description by default)")
    new.set_defaults(func=_new_command)

    run = subparsers.add_parser("run", help="Run tasks (loop until done, or once with --single)")
    run.add_argument("name", nargs="?", default=None)
    run.add_argument("-s", "--single", action="store_true", help="Run one interactive iteration")
    run.add_argument(
        "--max-iterations",
        type=_positive_int,
        default=None,
        help="Stop with an error after this many iterations (default: unbounded)",
    )
    run.set_defaults(func=_run_command)

    tasks = subparsers.add_parser("tasks", help="Manage tasks in a worktree")
    tasks_sub = tasks.add_subparsers(dest="tasks_cmd", required=True)
    tlist = tasks_sub.add_parser("list", help="List tasks for a worktree")
    tlist.add_argument("name", nargs="?", default=None)
    tlist.set_defaults(func=_tasks_list)
    tcreate = tasks_sub.add_parser("create", help="Create tasks from the worktree plan")
    tcreate.add_argument("name", nargs="?", default=None)
    tcreate.set_defaults(func=_tasks_create)

    worktrees = subparsers.add_parser("worktrees", help="List all worktrees")
    worktrees.set_defaults(func=_worktrees_command)

    cd = subparsers.add_parser("cd", help="Print worktree path (use with: cd $(chief cd))")
    cd.add_argument("name", nargs="?", default=None)
    cd.set_defaults(func=_cd_command)

    clean = subparsers.add_parser("clean", help="Delete a worktree")
    clean.add_argument("name", nargs="?", default=None)
    clean.add_argument("-y", "--yes", action="store_true", help="Skip the confirmation prompt")
    clean.set_defaults(func=_clean_command)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the `chief` CLI.

    Args:
        argv: Optional argument list (excluding the executable name). When omitted,
            uses `sys.argv[1:]`.

    Returns:
        The process exit code: 0 on success or a cancelled selection, 1 on error.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)
    try:
        return int(args.func(args) or 0)
    except KeyboardInterrupt:
        sys.stderr.write("\nInterrupted.\n")
        return 130
    except Exception as exc:
        logger.debug("Command failed: {!r}", exc)
        sys.stderr.write(f"Error: {exc}\n")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
