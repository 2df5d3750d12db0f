"""Read worktree task documents and summarize their completion state.

The task document is written by the agent, never by the run loop, so every
read goes back to disk.
"""

from __future__ import annotations

import json
from pathlib import Path

from loguru import logger

from .constants import STATE_DIR_NAME, TASKS_FILE, TASKS_SCHEMA_FILE
from .errors import TaskDocumentError
from .io_utils import _atomic_write_json
from .models import Task, TaskStats
from .validation import get_task_schema, validate_task_document


def tasks_path(worktree_path: Path) -> Path:
    return Path(worktree_path) / STATE_DIR_NAME / TASKS_FILE


def read_tasks(worktree_path: Path) -> list[Task]:
    """Read and validate `.chief/tasks.json` for a worktree.

    Args:
        worktree_path: Worktree root directory.

    Returns:
        The tasks in document order, or an empty list when no document exists.

    Raises:
        TaskDocumentError: If the document is not valid JSON or does not match
            the task schema.
    """
    path = tasks_path(worktree_path)
    if not path.exists():
        logger.debug("No task document at {}", path)
        return []

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise TaskDocumentError(str(path), [f"JSONDecodeError: {exc}"]) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise TaskDocumentError(str(path), [f"{exc.__class__.__name__}: {exc}"]) from exc

    issues = validate_task_document(data, source=path.name)
    if issues:
        raise TaskDocumentError(str(path), issues)
    return [Task.from_dict(item) for item in data]


def has_pending_tasks(tasks: list[Task]) -> bool:
    """Return True when at least one task has not passed yet."""
    return any(not task.passes for task in tasks)


def task_stats(tasks: list[Task]) -> TaskStats:
    completed = sum(1 for task in tasks if task.passes)
    return TaskStats(completed=completed, total=len(tasks))


def write_task_schema(state_dir: Path) -> Path:
    """Write `tasks.schema.json` into a `.chief` directory.

    Args:
        state_dir: Target `.chief` directory.

    Returns:
        The path of the written schema file.
    """
    path = Path(state_dir) / TASKS_SCHEMA_FILE
    _atomic_write_json(path, get_task_schema())
    return path
